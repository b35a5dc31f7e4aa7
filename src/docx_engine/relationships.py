"""
Relationship registry for the parts of one OOXML package.

A relationship links a source part to a target part or external URI using
a short ID (``rId3``), a relationship type URI and a target. Every part
that can reference other parts has its own table, persisted as a
``_rels/<part>.rels`` file next to the part.
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Iterator
from dataclasses import dataclass

from lxml import etree

from .constants import PACKAGE_PART, PACKAGE_RELATIONSHIPS_NAMESPACE
from .errors import NotFoundError, RelationshipError
from .ids import IDManager, relationship_namespace

logger = logging.getLogger(__name__)

_RID_PATTERN = re.compile(r"^rId(\d+)$")


def rels_part_name(part_name: str) -> str:
    """Compute the .rels part name for a source part.

    For example:
    - "" (the package) -> "_rels/.rels"
    - "word/document.xml" -> "word/_rels/document.xml.rels"
    - "word/header1.xml" -> "word/_rels/header1.xml.rels"

    Args:
        part_name: Source part name

    Returns:
        Name of the relationship part within the archive
    """
    if part_name == PACKAGE_PART:
        return "_rels/.rels"
    directory, filename = posixpath.split(part_name)
    return posixpath.join(directory, "_rels", f"{filename}.rels")


def source_part_name(rels_name: str) -> str | None:
    """Inverse of ``rels_part_name``; None if the name is not a .rels part."""
    if rels_name == "_rels/.rels":
        return PACKAGE_PART
    directory, filename = posixpath.split(rels_name)
    if posixpath.basename(directory) != "_rels" or not filename.endswith(".rels"):
        return None
    return posixpath.join(posixpath.dirname(directory), filename[: -len(".rels")])


def resolve_target(part_name: str, target: str) -> str:
    """Resolve a relationship target to an archive entry name.

    Targets are relative to the directory of the source part unless they
    start with "/".
    """
    if target.startswith("/"):
        return posixpath.normpath(target.lstrip("/"))
    base = posixpath.dirname(part_name)
    return posixpath.normpath(posixpath.join(base, target))


def relative_target(part_name: str, target_part: str) -> str:
    """Express ``target_part`` relative to the directory of ``part_name``."""
    base = posixpath.dirname(part_name) or "."
    return posixpath.relpath(target_part, base)


@dataclass(frozen=True)
class Relationship:
    """One entry of a relationship table.

    Attributes:
        rel_id: Part-scoped ID (e.g., "rId3")
        rel_type: Relationship type URI
        target: Target path relative to the source part, or an external URI
        external: Whether the target lives outside the package
    """

    rel_id: str
    rel_type: str
    target: str
    external: bool = False

    @property
    def target_mode(self) -> str | None:
        return "External" if self.external else None


class RelationshipTable:
    """The relationships of a single source part.

    Registering the same ``(target, type, external)`` triple twice returns
    the ID of the first registration. IDs are drawn from the part's counter
    in the shared IDManager, so an ID is never handed out twice even after
    its relationship has been removed.
    """

    def __init__(self, part_name: str, ids: IDManager) -> None:
        self._part_name = part_name
        self._ids = ids
        self._namespace = relationship_namespace(part_name)
        self._relationships: dict[str, Relationship] = {}

    @property
    def part_name(self) -> str:
        return self._part_name

    def add(self, target: str, rel_type: str, external: bool = False) -> str:
        """Add a relationship or return the ID of an identical one.

        Args:
            target: Target path or URI
            rel_type: Relationship type URI
            external: Whether the target is external (TargetMode="External")

        Returns:
            The relationship ID

        Raises:
            RelationshipError: If target or type is empty
        """
        if not target:
            raise RelationshipError(
                "relationship target must not be empty",
                op="register_relationship",
                field=self._part_name,
                value=target,
            )
        if not rel_type:
            raise RelationshipError(
                "relationship type must not be empty",
                op="register_relationship",
                field=self._part_name,
                value=rel_type,
            )

        for rel in self._relationships.values():
            if rel.target == target and rel.rel_type == rel_type and rel.external == external:
                logger.debug(f"Relationship {rel_type} -> {target} already exists: {rel.rel_id}")
                return rel.rel_id

        rel_id = f"rId{self._ids.next_id(self._namespace)}"
        while rel_id in self._relationships:
            rel_id = f"rId{self._ids.next_id(self._namespace)}"

        self._relationships[rel_id] = Relationship(rel_id, rel_type, target, external)
        logger.debug(f"Added relationship {rel_id} in {self._part_name}: {rel_type} -> {target}")
        return rel_id

    def add_existing(self, relationship: Relationship) -> None:
        """Register a relationship read from an existing package.

        The part's counter is raised past the numeric suffix of the ID so
        that later ``add`` calls cannot collide with it.

        Raises:
            RelationshipError: If the ID is empty or already registered
        """
        if not relationship.rel_id:
            raise RelationshipError(
                "relationship ID must not be empty",
                op="register_existing",
                field=self._part_name,
            )
        if relationship.rel_id in self._relationships:
            raise RelationshipError(
                "duplicate relationship ID",
                op="register_existing",
                field=self._part_name,
                value=relationship.rel_id,
            )
        self._relationships[relationship.rel_id] = relationship
        match = _RID_PATTERN.match(relationship.rel_id)
        if match:
            self._ids.initialize_from(self._namespace, int(match.group(1)))

    def get(self, rel_id: str) -> Relationship:
        """Look up a relationship by ID.

        Raises:
            NotFoundError: If no relationship has this ID
        """
        try:
            return self._relationships[rel_id]
        except KeyError as e:
            raise NotFoundError(
                "relationship not found", op="get_relationship", field=self._part_name, value=rel_id
            ) from e

    def find(self, rel_type: str) -> list[Relationship]:
        """Return every relationship of a given type, in registration order."""
        return [rel for rel in self._relationships.values() if rel.rel_type == rel_type]

    def remove(self, rel_id: str) -> None:
        """Remove a relationship. Its ID is not reused."""
        if self._relationships.pop(rel_id, None) is None:
            raise NotFoundError(
                "relationship not found",
                op="remove_relationship",
                field=self._part_name,
                value=rel_id,
            )
        logger.debug(f"Removed relationship {rel_id} from {self._part_name}")

    def __contains__(self, rel_id: object) -> bool:
        return rel_id in self._relationships

    def __iter__(self) -> Iterator[Relationship]:
        return iter(list(self._relationships.values()))

    def __len__(self) -> int:
        return len(self._relationships)

    def to_element(self) -> etree._Element:
        """Build the ``Relationships`` root element for this table."""
        root = etree.Element(
            f"{{{PACKAGE_RELATIONSHIPS_NAMESPACE}}}Relationships",
            nsmap={None: PACKAGE_RELATIONSHIPS_NAMESPACE},
        )
        for rel in self._relationships.values():
            rel_elem = etree.SubElement(root, f"{{{PACKAGE_RELATIONSHIPS_NAMESPACE}}}Relationship")
            rel_elem.set("Id", rel.rel_id)
            rel_elem.set("Type", rel.rel_type)
            rel_elem.set("Target", rel.target)
            if rel.target_mode:
                rel_elem.set("TargetMode", rel.target_mode)
        return root

    def load(self, element: etree._Element) -> None:
        """Register every relationship of a parsed ``.rels`` root element."""
        for rel_elem in element.iter(f"{{{PACKAGE_RELATIONSHIPS_NAMESPACE}}}Relationship"):
            self.add_existing(
                Relationship(
                    rel_id=rel_elem.get("Id", ""),
                    rel_type=rel_elem.get("Type", ""),
                    target=rel_elem.get("Target", ""),
                    external=rel_elem.get("TargetMode") == "External",
                )
            )


class RelationshipRegistry:
    """Per-document registry of relationship tables, keyed by source part.

    Example:
        >>> registry = RelationshipRegistry(IDManager())
        >>> registry.add_part("word/document.xml")
        >>> registry.register("word/document.xml", "styles.xml", RelationshipTypes.STYLES)
        'rId1'
    """

    def __init__(self, ids: IDManager) -> None:
        self._ids = ids
        self._tables: dict[str, RelationshipTable] = {}

    def add_part(self, part_name: str) -> RelationshipTable:
        """Create the table for a part (or return the existing one)."""
        table = self._tables.get(part_name)
        if table is None:
            table = RelationshipTable(part_name, self._ids)
            self._tables[part_name] = table
            logger.debug(f"Added relationship table for part '{part_name}'")
        return table

    def remove_part(self, part_name: str) -> None:
        self._tables.pop(part_name, None)

    def has_part(self, part_name: str) -> bool:
        return part_name in self._tables

    def parts(self) -> list[str]:
        return list(self._tables)

    def table(self, part_name: str) -> RelationshipTable:
        """Return the table of a known part.

        Raises:
            RelationshipError: If the part has not been added
        """
        table = self._tables.get(part_name)
        if table is None:
            raise RelationshipError("unknown part", op="relationships", field="part", value=part_name)
        return table

    def register(
        self, part_name: str, target: str, rel_type: str, external: bool = False
    ) -> str:
        """Register a relationship from ``part_name`` and return its ID.

        Args:
            part_name: Source part (must have been added)
            target: Target path relative to the source part, or external URI
            rel_type: Relationship type URI
            external: Whether the target is external

        Raises:
            RelationshipError: If the part is unknown or target/type is empty
        """
        if part_name not in self._tables:
            raise RelationshipError(
                "unknown part", op="register_relationship", field="part", value=part_name
            )
        return self._tables[part_name].add(target, rel_type, external)

    def register_existing(
        self,
        part_name: str,
        rel_id: str,
        rel_type: str,
        target: str,
        external: bool = False,
    ) -> None:
        """Register a relationship read from an existing package."""
        self.add_part(part_name).add_existing(Relationship(rel_id, rel_type, target, external))

    def get(self, part_name: str, rel_id: str) -> Relationship:
        return self.table(part_name).get(rel_id)

    def has(self, part_name: str, rel_id: str) -> bool:
        table = self._tables.get(part_name)
        return table is not None and rel_id in table

    def remove(self, part_name: str, rel_id: str) -> None:
        self.table(part_name).remove(rel_id)

    def load(self, part_name: str, element: etree._Element) -> RelationshipTable:
        table = self.add_part(part_name)
        table.load(element)
        return table
