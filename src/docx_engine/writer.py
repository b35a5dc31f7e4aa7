"""
PackageWriter: assembles the XML parts of a Document into a .docx archive.

The writer first plans every archive entry, then builds the content-type
manifest from that plan and checks that each internal relationship target
resolves to a planned entry. Every part is then rendered to bytes; only when
all of them rendered is the output opened, so a part that cannot be
serialized never leaves a partial archive behind.
"""

from __future__ import annotations

import logging
import posixpath
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from lxml import etree

from .constants import (
    CONTENT_TYPES_PART,
    PACKAGE_PART,
    ContentTypes,
)
from .content_types import ContentTypeManifest
from .errors import RelationshipError, ValidationError
from .relationships import rels_part_name, resolve_target
from .serializer import DocumentSerializer

if TYPE_CHECKING:
    from .document import Document

logger = logging.getLogger(__name__)

# Fixed timestamp for every entry so identical documents produce identical archives
ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


def to_xml_bytes(element: etree._Element) -> bytes:
    """Serialize an element as a standalone UTF-8 XML document."""
    return etree.tostring(element, xml_declaration=True, encoding="UTF-8", standalone=True)


class PackageWriter:
    """Write a Document to a path or binary stream.

    Example:
        >>> PackageWriter(doc).write("out.docx")
    """

    def __init__(self, document: Document) -> None:
        self._document = document
        self._serializer = DocumentSerializer(document)

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def plan(self) -> dict[str, Callable[[], bytes]]:
        """Return archive entry name -> producer of the entry's bytes.

        [Content_Types].xml is not part of the plan; it is derived from it.
        """
        doc = self._document
        serializer = self._serializer
        entries: dict[str, Callable[[], bytes]] = {}

        def xml_entry(element_factory: Callable[[], etree._Element]) -> Callable[[], bytes]:
            return lambda: to_xml_bytes(element_factory())

        entries[doc._main_part] = xml_entry(serializer.document_element)
        entries[doc._styles_part] = xml_entry(serializer.styles_element)
        entries[doc._settings_part] = xml_entry(serializer.settings_element)
        for part in doc.header_footer_parts():
            factory = serializer.header_element if part.root_tag == "hdr" else serializer.footer_element
            entries[part.part_name] = xml_entry(lambda part=part, factory=factory: factory(part))
        entries[doc._core_part] = xml_entry(serializer.core_properties_element)
        entries[doc._app_part] = xml_entry(serializer.app_properties_element)

        for asset in doc.media.assets:
            entries[asset.path] = lambda asset=asset: asset.data

        for part_name, data in doc._passthrough.items():
            if part_name in entries:
                # A modeled part always wins over a preserved copy
                continue
            entries[part_name] = lambda data=data: data

        registry = doc.relationships
        for part_name in registry.parts():
            if part_name != PACKAGE_PART and part_name not in entries:
                continue
            table = registry.table(part_name)
            if not len(table) and part_name not in (PACKAGE_PART, doc._main_part):
                continue
            entries[rels_part_name(part_name)] = xml_entry(table.to_element)
        return entries

    def build_manifest(self, entry_names: list[str]) -> ContentTypeManifest:
        """Build [Content_Types].xml for the planned entries."""
        doc = self._document
        manifest = ContentTypeManifest()
        manifest.add_default("rels", ContentTypes.RELATIONSHIPS)
        manifest.add_default("xml", ContentTypes.XML)
        for extension, content_type in doc.media.extensions().items():
            manifest.add_default(extension, content_type)

        manifest.add_override(doc._main_part, doc._main_content_type)
        manifest.add_override(doc._styles_part, ContentTypes.STYLES)
        manifest.add_override(doc._settings_part, ContentTypes.SETTINGS)
        for part in doc.header_footer_parts():
            manifest.add_override(
                part.part_name, ContentTypes.HEADER if part.root_tag == "hdr" else ContentTypes.FOOTER
            )
        manifest.add_override(doc._core_part, ContentTypes.CORE_PROPERTIES)
        manifest.add_override(doc._app_part, ContentTypes.EXTENDED_PROPERTIES)

        original = doc._content_types
        for part_name in doc._passthrough:
            if part_name not in entry_names or manifest.override_for(part_name) is not None:
                continue
            override = original.override_for(part_name)
            if override is not None:
                manifest.add_override(part_name, override)
                continue
            extension = posixpath.splitext(part_name)[1].lstrip(".").lower()
            default = original.default_for(extension)
            if manifest.default_for(extension) is not None:
                continue
            if default is not None:
                manifest.add_default(extension, default)
            else:
                logger.warning(f"No content type known for preserved part {part_name}")
        return manifest

    def check_relationships(self, entry_names: list[str]) -> None:
        """Ensure every internal relationship target is a planned entry.

        Raises:
            RelationshipError: On a target that would dangle in the archive
        """
        names = set(entry_names)
        registry = self._document.relationships
        for part_name in registry.parts():
            if rels_part_name(part_name) not in names:
                continue
            for relationship in registry.table(part_name):
                if relationship.external:
                    continue
                target = resolve_target(part_name, relationship.target.split("#", 1)[0])
                if target not in names:
                    raise RelationshipError(
                        f"relationship {relationship.rel_id} of part '{part_name}' points at a missing part",
                        op="save",
                        field="target",
                        value=relationship.target,
                    )

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def write(self, target: str | Path | BinaryIO) -> None:
        """Write the package.

        Args:
            target: Output path or writable binary stream

        Raises:
            RelationshipError: If a relationship target would be missing
            ValidationError: If a part cannot be serialized as XML
        """
        doc = self._document
        doc.core_properties.touch()

        entries = self.plan()
        names = list(entries)
        self.check_relationships(names)
        manifest = self.build_manifest(names)
        rendered = self.render(manifest, entries)

        if isinstance(target, str | Path):
            output_path = Path(target)
            try:
                with open(output_path, "wb") as stream:
                    self._write_archive(stream, rendered)
            except BaseException:
                output_path.unlink(missing_ok=True)
                raise
            logger.debug(f"Saved document to {output_path}")
        else:
            self._write_archive(target, rendered)

    def render(
        self, manifest: ContentTypeManifest, entries: dict[str, Callable[[], bytes]]
    ) -> dict[str, bytes]:
        """Produce the bytes of every entry in archive order.

        [Content_Types].xml comes first and the root relationships second,
        the order Word and most consumers expect.

        Raises:
            ValidationError: If lxml refuses to serialize a part
        """
        order = [name for name in entries if name != rels_part_name(PACKAGE_PART)]
        if rels_part_name(PACKAGE_PART) in entries:
            order.insert(0, rels_part_name(PACKAGE_PART))

        rendered = {CONTENT_TYPES_PART: to_xml_bytes(manifest.to_element())}
        for name in order:
            try:
                rendered[name] = entries[name]()
            except ValueError as e:
                raise ValidationError(f"part cannot be serialized: {e}", op="save", field=name) from e
        return rendered

    def _write_archive(self, stream: BinaryIO, rendered: dict[str, bytes]) -> None:
        compression = self._document.options.compression
        with zipfile.ZipFile(stream, "w", compression) as zip_ref:
            for name, data in rendered.items():
                info = zipfile.ZipInfo(name, date_time=ZIP_TIMESTAMP)
                info.compress_type = compression
                zip_ref.writestr(info, data)
                logger.debug(f"Wrote {name} ({len(data)} bytes)")
