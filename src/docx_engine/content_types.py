"""
ContentTypeManifest class for [Content_Types].xml.

Content types in OOXML use two mechanisms:
- Default: maps file extensions to content types (e.g., .png -> image/png)
- Override: maps specific part names to content types (e.g., /word/header1.xml)

The writer builds a fresh manifest on every save from the parts it is
actually about to write, so a present part can never lack an entry.
"""

from __future__ import annotations

import logging
import posixpath

from lxml import etree

from .constants import CONTENT_TYPES_NAMESPACE

logger = logging.getLogger(__name__)


def _normalize_part_name(part_name: str) -> str:
    return part_name if part_name.startswith("/") else f"/{part_name}"


def _extension_of(part_name: str) -> str:
    return posixpath.splitext(part_name)[1].lstrip(".").lower()


class ContentTypeManifest:
    """In-memory model of [Content_Types].xml.

    Example:
        >>> manifest = ContentTypeManifest()
        >>> manifest.add_default("png", "image/png")
        >>> manifest.add_override("word/document.xml", ContentTypes.DOCUMENT)
        >>> manifest.content_type_for("word/media/image1.png")
        'image/png'
    """

    def __init__(self) -> None:
        self._defaults: dict[str, str] = {}
        self._overrides: dict[str, str] = {}

    @property
    def defaults(self) -> dict[str, str]:
        return dict(self._defaults)

    @property
    def overrides(self) -> dict[str, str]:
        return dict(self._overrides)

    def add_default(self, extension: str, content_type: str) -> None:
        """Map a file extension (without dot) to a content type."""
        extension = extension.lstrip(".").lower()
        if extension not in self._defaults:
            self._defaults[extension] = content_type
            logger.debug(f"Added Default for .{extension}: {content_type}")

    def add_override(self, part_name: str, content_type: str) -> None:
        """Declare the content type of one part.

        Args:
            part_name: Part name with or without the leading slash
            content_type: The MIME type of the part
        """
        self._overrides[_normalize_part_name(part_name)] = content_type
        logger.debug(f"Added Override for {part_name}: {content_type}")

    def remove_override(self, part_name: str) -> bool:
        return self._overrides.pop(_normalize_part_name(part_name), None) is not None

    def override_for(self, part_name: str) -> str | None:
        return self._overrides.get(_normalize_part_name(part_name))

    def default_for(self, extension: str) -> str | None:
        return self._defaults.get(extension.lstrip(".").lower())

    def content_type_for(self, part_name: str) -> str | None:
        """Return the effective content type of a part (Override wins over Default)."""
        override = self.override_for(part_name)
        if override is not None:
            return override
        return self.default_for(_extension_of(part_name))

    def covers(self, part_name: str) -> bool:
        return self.content_type_for(part_name) is not None

    def to_element(self) -> etree._Element:
        """Build the ``Types`` root element."""
        root = etree.Element(
            f"{{{CONTENT_TYPES_NAMESPACE}}}Types",
            nsmap={None: CONTENT_TYPES_NAMESPACE},
        )
        for extension, content_type in self._defaults.items():
            default = etree.SubElement(root, f"{{{CONTENT_TYPES_NAMESPACE}}}Default")
            default.set("Extension", extension)
            default.set("ContentType", content_type)
        for part_name, content_type in self._overrides.items():
            override = etree.SubElement(root, f"{{{CONTENT_TYPES_NAMESPACE}}}Override")
            override.set("PartName", part_name)
            override.set("ContentType", content_type)
        return root

    @classmethod
    def from_element(cls, element: etree._Element) -> ContentTypeManifest:
        """Parse a ``Types`` element read from an existing package."""
        manifest = cls()
        for default in element.iter(f"{{{CONTENT_TYPES_NAMESPACE}}}Default"):
            extension = default.get("Extension")
            content_type = default.get("ContentType")
            if extension and content_type:
                manifest.add_default(extension, content_type)
        for override in element.iter(f"{{{CONTENT_TYPES_NAMESPACE}}}Override"):
            part_name = override.get("PartName")
            content_type = override.get("ContentType")
            if part_name and content_type:
                manifest.add_override(part_name, content_type)
        return manifest
