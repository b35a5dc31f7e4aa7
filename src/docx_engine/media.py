"""
MediaManager class for embedded binary assets (images).

Assets live at ``word/media/image<N>.<ext>``. Each asset is bound to the
parts that show it through an ``image`` relationship registered in the
embedding part's table.
"""

from __future__ import annotations

import hashlib
import logging
import posixpath
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from .constants import DOCUMENT_PART, MEDIA_DIRECTORY, RelationshipTypes
from .errors import NotFoundError, RelationshipError, ValidationError
from .ids import MEDIA, IDManager
from .relationships import RelationshipRegistry, relative_target

logger = logging.getLogger(__name__)

# Supported formats: extension -> content type
SUPPORTED_FORMATS = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "emf": "image/x-emf",
    "wmf": "image/x-wmf",
    "svg": "image/svg+xml",
}

# File extension aliases -> canonical format name
EXTENSION_FORMATS = {
    "png": "png",
    "jpg": "jpeg",
    "jpeg": "jpeg",
    "jpe": "jpeg",
    "gif": "gif",
    "bmp": "bmp",
    "tif": "tiff",
    "tiff": "tiff",
    "emf": "emf",
    "wmf": "wmf",
    "svg": "svg",
}

_IMAGE_NUMBER = re.compile(r"^image(\d+)\.", re.IGNORECASE)


def sniff_format(data: bytes) -> str | None:
    """Identify an image format from its leading bytes.

    Args:
        data: Raw image bytes

    Returns:
        Canonical format name (a key of SUPPORTED_FORMATS), or None
    """
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data.startswith(b"\xff\xd8\xff"):
        return "jpeg"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "gif"
    if data.startswith(b"BM"):
        return "bmp"
    if data.startswith((b"II*\x00", b"MM\x00*")):
        return "tiff"
    if len(data) >= 44 and data[:4] == b"\x01\x00\x00\x00" and data[40:44] == b" EMF":
        return "emf"
    if data.startswith((b"\xd7\xcd\xc6\x9a", b"\x01\x00\x09\x00", b"\x02\x00\x09\x00")):
        return "wmf"
    head = data[:1024].lstrip(b"\xef\xbb\xbf").lstrip()
    if head.startswith(b"<") and b"<svg" in head:
        return "svg"
    return None


@dataclass
class MediaAsset:
    """One embedded binary asset.

    Attributes:
        media_id: Document-unique asset ID
        path: Archive entry name (e.g., "word/media/image1.png")
        content_type: MIME type written to the content-type manifest
        data: The raw bytes
        digest: SHA-256 of the bytes, used for deduplication
        relationships: (part name, relationship ID) bindings of this asset
    """

    media_id: int
    path: str
    content_type: str
    data: bytes = field(repr=False)
    digest: str = field(repr=False, default="")
    relationships: list[tuple[str, str]] = field(default_factory=list, repr=False)

    @property
    def filename(self) -> str:
        return posixpath.basename(self.path)

    @property
    def extension(self) -> str:
        return posixpath.splitext(self.path)[1].lstrip(".").lower()


class MediaManager:
    """Tracks the media assets of one document.

    Identical bytes embedded twice reuse the same asset and archive entry
    when ``dedup`` is enabled; each embedding part still receives its own
    relationship (the registry returns the existing ID within a part).

    Example:
        >>> media = MediaManager(ids, registry)
        >>> media_id, rel_id = media.embed(png_bytes, "logo.png")
        >>> media.get(media_id).path
        'word/media/image1.png'
    """

    def __init__(
        self, ids: IDManager, relationships: RelationshipRegistry, dedup: bool = True
    ) -> None:
        self._ids = ids
        self._relationships = relationships
        self._dedup = dedup
        self._assets: dict[int, MediaAsset] = {}
        self._by_path: dict[str, MediaAsset] = {}
        self._by_digest: dict[str, MediaAsset] = {}

    def _detect_format(self, data: bytes, filename: str) -> str:
        extension = posixpath.splitext(filename)[1].lstrip(".").lower()
        declared = EXTENSION_FORMATS.get(extension)
        sniffed = sniff_format(data)

        if declared is None and sniffed is None:
            raise ValidationError(
                "unsupported media format", op="embed_media", field="filename", value=filename
            )
        if declared is not None and sniffed is not None and declared != sniffed:
            raise ValidationError(
                f"file content is {sniffed}, not {declared}",
                op="embed_media",
                field="filename",
                value=filename,
            )
        if declared is None and extension:
            raise ValidationError(
                "unsupported media extension", op="embed_media", field="filename", value=filename
            )
        if declared is not None and sniffed is None and declared != "svg":
            raise ValidationError(
                "file content does not match a supported image signature",
                op="embed_media",
                field="filename",
                value=filename,
            )
        return declared or sniffed  # type: ignore[return-value]

    def _next_path(self, extension: str) -> tuple[int, str]:
        while True:
            number = self._ids.next_id(MEDIA)
            path = f"{MEDIA_DIRECTORY}/image{number}.{extension}"
            if path not in self._by_path:
                return number, path

    def embed(
        self, data: bytes, filename: str, part_name: str = DOCUMENT_PART
    ) -> tuple[int, str]:
        """Embed image bytes and bind them to a part.

        Args:
            data: Raw image bytes
            filename: Original file name; its extension must agree with the
                sniffed signature
            part_name: Part that displays the image

        Returns:
            Tuple of (media ID, relationship ID in ``part_name``)

        Raises:
            ValidationError: If the data is empty or not a supported format
            RelationshipError: If ``part_name`` is unknown
        """
        if not data:
            raise ValidationError("media data must not be empty", op="embed_media", field="data")
        if not self._relationships.has_part(part_name):
            raise RelationshipError("unknown part", op="embed_media", field="part", value=part_name)

        fmt = self._detect_format(data, filename)
        digest = hashlib.sha256(data).hexdigest()

        asset = self._by_digest.get(digest) if self._dedup else None
        if asset is None:
            extension = posixpath.splitext(filename)[1].lstrip(".").lower()
            if EXTENSION_FORMATS.get(extension) != fmt:
                extension = fmt
            media_id, path = self._next_path(extension)
            asset = MediaAsset(
                media_id=media_id,
                path=path,
                content_type=SUPPORTED_FORMATS[fmt],
                data=bytes(data),
                digest=digest,
            )
            self._add(asset)
            logger.debug(f"Embedded media {path} ({asset.content_type}, {len(data)} bytes)")
        else:
            logger.debug(f"Reusing media {asset.path} for identical bytes")

        rel_id = self._relationships.register(
            part_name, relative_target(part_name, asset.path), RelationshipTypes.IMAGE
        )
        if (part_name, rel_id) not in asset.relationships:
            asset.relationships.append((part_name, rel_id))
        return asset.media_id, rel_id

    def _add(self, asset: MediaAsset) -> None:
        self._assets[asset.media_id] = asset
        self._by_path[asset.path] = asset
        if asset.digest and asset.digest not in self._by_digest:
            self._by_digest[asset.digest] = asset

    def register_existing(
        self, path: str, data: bytes, content_type: str | None = None
    ) -> MediaAsset:
        """Register an asset read from an existing package.

        The asset keeps its original archive path. The media counter is
        raised past any ``image<N>`` number in the file name.

        Args:
            path: Archive entry name
            data: Raw bytes
            content_type: Content type from the package manifest, if known
        """
        if path in self._by_path:
            return self._by_path[path]

        match = _IMAGE_NUMBER.match(posixpath.basename(path))
        if match:
            self._ids.initialize_from(MEDIA, int(match.group(1)))

        if content_type is None:
            fmt = EXTENSION_FORMATS.get(posixpath.splitext(path)[1].lstrip(".").lower())
            fmt = fmt or sniff_format(data)
            content_type = SUPPORTED_FORMATS.get(fmt or "", "application/octet-stream")

        media_id = self._ids.next_id(MEDIA)
        while media_id in self._assets:
            media_id = self._ids.next_id(MEDIA)
        asset = MediaAsset(
            media_id=media_id,
            path=path,
            content_type=content_type,
            data=data,
            digest=hashlib.sha256(data).hexdigest(),
        )
        self._add(asset)
        logger.debug(f"Registered existing media {path} ({content_type})")
        return asset

    def bind(self, media_id: int, part_name: str, rel_id: str) -> None:
        """Record that ``rel_id`` in ``part_name`` points at an asset."""
        asset = self.get(media_id)
        if (part_name, rel_id) not in asset.relationships:
            asset.relationships.append((part_name, rel_id))

    def get(self, media_id: int) -> MediaAsset:
        """Look up an asset by ID.

        Raises:
            NotFoundError: If no asset has this ID
        """
        try:
            return self._assets[media_id]
        except KeyError as e:
            raise NotFoundError("media asset not found", op="get_media", value=media_id) from e

    def by_path(self, path: str) -> MediaAsset | None:
        return self._by_path.get(path)

    @property
    def assets(self) -> list[MediaAsset]:
        return list(self._assets.values())

    def extensions(self) -> dict[str, str]:
        """Return the extension -> content type map of every asset in use."""
        result: dict[str, str] = {}
        for asset in self._assets.values():
            result.setdefault(asset.extension, asset.content_type)
        return result

    def __iter__(self) -> Iterator[MediaAsset]:
        return iter(self.assets)

    def __len__(self) -> int:
        return len(self._assets)
