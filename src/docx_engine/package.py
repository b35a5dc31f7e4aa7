"""
Package class for reading the ZIP structure of an existing .docx file.

This module separates archive handling from document reconstruction: it
loads every entry, checks that the parts any word-processing package needs
are present and parses XML parts with a hardened parser.
"""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO

from lxml import etree

from .constants import (
    CONTENT_TYPES_PART,
    DOCUMENT_PART,
    PACKAGE_PART,
    PACKAGE_RELATIONSHIPS_NAMESPACE,
    ROOT_RELS_PART,
    RelationshipTypes,
)
from .content_types import ContentTypeManifest
from .errors import NotFoundError, PackageError, ParseError, StructureError
from .relationships import resolve_target

logger = logging.getLogger(__name__)


def xml_parser() -> etree.XMLParser:
    """Return a parser that never expands entities or touches the network."""
    return etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=False)


def parse_xml(data: bytes, part_name: str) -> etree._Element:
    """Parse the bytes of a package part.

    Raises:
        ParseError: If the part is not well-formed XML
    """
    try:
        return etree.fromstring(data, xml_parser())
    except etree.XMLSyntaxError as e:
        raise ParseError(f"malformed XML: {e}", op="open", field=part_name) from e


class Package:
    """The raw entries of an opened OOXML package.

    Use :meth:`open` or :meth:`from_bytes` rather than calling the
    constructor directly.

    Example:
        >>> package = Package.open("document.docx")
        >>> package.main_part_name
        'word/document.xml'
        >>> root = package.get_part("word/document.xml")
    """

    def __init__(self, parts: dict[str, bytes], source_path: Path | None = None) -> None:
        self._parts = parts
        self._source_path = source_path
        self._content_types = ContentTypeManifest.from_element(
            parse_xml(parts[CONTENT_TYPES_PART], CONTENT_TYPES_PART)
        )
        self._root_rels = parse_xml(parts[ROOT_RELS_PART], ROOT_RELS_PART)
        self._main_part_name = self._find_main_part()

    @classmethod
    def open(cls, source: str | Path | bytes | BinaryIO) -> Package:
        """Open a package from a path, raw bytes or a binary stream.

        Raises:
            PackageError: If the source is not a readable ZIP archive
            StructureError: If [Content_Types].xml, _rels/.rels or the main
                document part is missing
            ParseError: If one of those parts is malformed
        """
        source_path: Path | None = None
        if isinstance(source, bytes | bytearray):
            zip_source: Path | BinaryIO = io.BytesIO(bytes(source))
        elif isinstance(source, str | Path):
            source_path = Path(source)
            if not source_path.is_file():
                raise PackageError("document not found", op="open", field="path", value=str(source_path))
            zip_source = source_path
        else:
            zip_source = source

        parts: dict[str, bytes] = {}
        try:
            with zipfile.ZipFile(zip_source, "r") as zip_ref:
                for info in zip_ref.infolist():
                    if info.is_dir():
                        continue
                    parts[info.filename.lstrip("/")] = zip_ref.read(info)
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError) as e:
            raise PackageError(f"not a readable .docx (ZIP) archive: {e}", op="open") from e

        for required in (CONTENT_TYPES_PART, ROOT_RELS_PART):
            if required not in parts:
                raise StructureError("required part is missing", op="open", field=required)

        logger.debug(f"Opened package with {len(parts)} entries")
        return cls(parts, source_path)

    @classmethod
    def from_bytes(cls, data: bytes) -> Package:
        return cls.open(data)

    def _find_main_part(self) -> str:
        for rel_elem in self._root_rels.iter(f"{{{PACKAGE_RELATIONSHIPS_NAMESPACE}}}Relationship"):
            if rel_elem.get("Type") == RelationshipTypes.OFFICE_DOCUMENT and rel_elem.get("TargetMode") != "External":
                part_name = resolve_target(PACKAGE_PART, rel_elem.get("Target", ""))
                if part_name in self._parts:
                    return part_name
                raise StructureError(
                    "main document part named by the package relationships is missing",
                    op="open",
                    field=part_name,
                )
        if DOCUMENT_PART in self._parts:
            logger.warning(f"No officeDocument relationship; falling back to {DOCUMENT_PART}")
            return DOCUMENT_PART
        raise StructureError("main document part is missing", op="open", field=DOCUMENT_PART)

    @property
    def source_path(self) -> Path | None:
        return self._source_path

    @property
    def main_part_name(self) -> str:
        return self._main_part_name

    @property
    def content_types(self) -> ContentTypeManifest:
        return self._content_types

    @property
    def root_relationships(self) -> etree._Element:
        return self._root_rels

    def part_names(self) -> list[str]:
        return list(self._parts)

    def part_exists(self, part_name: str) -> bool:
        return part_name in self._parts

    def get_bytes(self, part_name: str) -> bytes:
        """Return the raw bytes of a part.

        Raises:
            NotFoundError: If the package has no such part
        """
        try:
            return self._parts[part_name]
        except KeyError as e:
            raise NotFoundError("part not found", op="get_part", field=part_name) from e

    def get_part(self, part_name: str) -> etree._Element | None:
        """Return a part parsed as XML, or None if it does not exist.

        Raises:
            ParseError: If the part is malformed
        """
        data = self._parts.get(part_name)
        if data is None:
            return None
        return parse_xml(data, part_name)
