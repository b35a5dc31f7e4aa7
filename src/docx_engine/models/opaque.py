"""
OpaqueNode: XML the document model does not understand.

Opaque nodes sit in block sequences (body, headers, footers, table
cells) and in paragraph content. They hold a private copy of the original
element and are written back unchanged on the next save.
"""

from __future__ import annotations

import copy

from lxml import etree

from ..constants import OFFICE_RELATIONSHIPS_NAMESPACE, local_name, namespace_of, w


class OpaqueNode:
    """An unmodeled XML element kept verbatim.

    Example:
        >>> node = OpaqueNode(sdt_element)
        >>> node.local_name
        'sdt'
    """

    def __init__(self, element: etree._Element) -> None:
        self._element = copy.deepcopy(element)

    @property
    def element(self) -> etree._Element:
        """The stored element. Mutating it changes what will be saved."""
        return self._element

    @property
    def tag(self) -> str:
        return self._element.tag if isinstance(self._element.tag, str) else ""

    @property
    def local_name(self) -> str:
        return local_name(self._element.tag)

    @property
    def text(self) -> str:
        """Concatenated w:t text inside the node."""
        if not isinstance(self._element.tag, str):
            return ""
        return "".join(t.text or "" for t in self._element.iter(w("t")))

    def to_element(self) -> etree._Element:
        """Return a fresh copy of the element for serialization."""
        return copy.deepcopy(self._element)

    def relationship_ids(self) -> list[str]:
        """Every r:id, r:embed, r:link (or other r:*) value inside the node."""
        return relationship_references(self._element)

    def __repr__(self) -> str:
        return f"<OpaqueNode {self.local_name or 'comment'}>"


def relationship_references(element: etree._Element) -> list[str]:
    """Collect the values of relationship-namespace attributes under ``element``."""
    if not isinstance(element.tag, str):
        return []
    refs = []
    for elem in element.iter():
        if not isinstance(elem.tag, str):
            continue
        for key, value in elem.attrib.items():
            if namespace_of(key) == OFFICE_RELATIONSHIPS_NAMESPACE and value:
                refs.append(value)
    return refs
