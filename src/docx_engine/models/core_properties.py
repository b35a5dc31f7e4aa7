"""
Document metadata stored in docProps/core.xml.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from lxml import etree

from ..constants import (
    CP_NAMESPACE,
    DC_NAMESPACE,
    DCTERMS_NAMESPACE,
    NSMAP_CORE_PROPERTIES,
    XSI_NAMESPACE,
    local_name,
    namespace_of,
)

logger = logging.getLogger(__name__)

# (attribute, namespace, local name) in the order Word writes them
_TEXT_PROPERTIES = (
    ("title", DC_NAMESPACE, "title"),
    ("subject", DC_NAMESPACE, "subject"),
    ("creator", DC_NAMESPACE, "creator"),
    ("keywords", CP_NAMESPACE, "keywords"),
    ("description", DC_NAMESPACE, "description"),
    ("last_modified_by", CP_NAMESPACE, "lastModifiedBy"),
    ("category", CP_NAMESPACE, "category"),
)
_DATE_PROPERTIES = (
    ("created", "created"),
    ("modified", "modified"),
)
_W3CDTF = "%Y-%m-%dT%H:%M:%SZ"


def _format_date(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(_W3CDTF)


def _parse_date(text: str | None) -> datetime | None:
    if not text:
        return None
    candidate = text.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        logger.warning(f"Ignoring unparseable core property date: {text!r}")
        return None


@dataclass
class CoreProperties:
    """Title, author and timestamps of a document.

    Dates are timezone-aware UTC datetimes. ``modified`` is refreshed each
    time the document is saved.
    """

    title: str | None = None
    subject: str | None = None
    creator: str | None = None
    keywords: str | None = None
    description: str | None = None
    last_modified_by: str | None = None
    category: str | None = None
    revision: int | None = None
    created: datetime | None = None
    modified: datetime | None = None
    extras: list = field(default_factory=list, repr=False)

    def touch(self, when: datetime | None = None) -> None:
        """Set ``modified`` (and ``created`` if unset) to ``when`` or now."""
        now = when or datetime.now(timezone.utc).replace(microsecond=0)
        self.modified = now
        if self.created is None:
            self.created = now

    def to_element(self) -> etree._Element:
        root = etree.Element(f"{{{CP_NAMESPACE}}}coreProperties", nsmap=NSMAP_CORE_PROPERTIES)
        for attribute, namespace, name in _TEXT_PROPERTIES:
            value = getattr(self, attribute)
            if value is not None:
                etree.SubElement(root, f"{{{namespace}}}{name}").text = value
        if self.revision is not None:
            etree.SubElement(root, f"{{{CP_NAMESPACE}}}revision").text = str(self.revision)
        for attribute, name in _DATE_PROPERTIES:
            value = getattr(self, attribute)
            if value is not None:
                elem = etree.SubElement(root, f"{{{DCTERMS_NAMESPACE}}}{name}")
                elem.set(f"{{{XSI_NAMESPACE}}}type", "dcterms:W3CDTF")
                elem.text = _format_date(value)
        for extra in self.extras:
            root.append(etree.fromstring(etree.tostring(extra)))
        return root

    @classmethod
    def from_element(cls, root: etree._Element) -> CoreProperties:
        props = cls()
        text_lookup = {(ns, name): attr for attr, ns, name in _TEXT_PROPERTIES}
        date_lookup = {name: attr for attr, name in _DATE_PROPERTIES}
        for child in root:
            key = (namespace_of(child.tag), local_name(child.tag))
            if key in text_lookup:
                setattr(props, text_lookup[key], child.text or "")
            elif key == (CP_NAMESPACE, "revision"):
                try:
                    props.revision = int((child.text or "").strip())
                except ValueError:
                    logger.warning(f"Ignoring non-numeric revision: {child.text!r}")
            elif key[0] == DCTERMS_NAMESPACE and key[1] in date_lookup:
                setattr(props, date_lookup[key[1]], _parse_date(child.text))
            elif isinstance(child.tag, str):
                props.extras.append(child)
        return props
