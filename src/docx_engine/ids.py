"""
IDManager class for allocating numeric IDs inside one document.

Bookmarks, drawings, media assets, header and footer parts and every
part's relationship table draw their IDs from a named counter. Counters
are per document, monotonic and safe to call from several threads.
"""

import logging
import threading

logger = logging.getLogger(__name__)

# Well-known counter namespaces
BOOKMARK = "bookmark"
DRAWING = "drawing"
MEDIA = "media"
HEADER = "header"
FOOTER = "footer"


def relationship_namespace(part_name: str) -> str:
    """Return the counter namespace for a part's relationship IDs.

    Args:
        part_name: Source part name (e.g., "word/document.xml", "" for the package)

    Returns:
        Namespace string such as "rel:word/document.xml"
    """
    return f"rel:{part_name}"


class IDManager:
    """Allocates monotonic integer IDs per namespace.

    Each namespace starts at zero, so the first call to ``next_id`` returns 1.
    When an existing package is opened, ``initialize_from`` raises a counter
    to the largest ID already present so later allocations cannot collide.

    Example:
        >>> ids = IDManager()
        >>> ids.next_id("bookmark")
        1
        >>> ids.initialize_from("bookmark", 10)
        >>> ids.next_id("bookmark")
        11
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}

    def next_id(self, namespace: str) -> int:
        """Allocate the next ID in a namespace.

        Args:
            namespace: Counter name (e.g., "bookmark", "rel:word/document.xml")

        Returns:
            An ID strictly greater than every ID previously returned or
            observed for this namespace
        """
        with self._lock:
            value = self._counters.get(namespace, 0) + 1
            self._counters[namespace] = value
        return value

    def initialize_from(self, namespace: str, max_observed: int) -> None:
        """Reseed a namespace from the largest ID found in an existing package.

        The counter is only ever raised; a smaller value is ignored.

        Args:
            namespace: Counter name
            max_observed: Largest ID already in use
        """
        with self._lock:
            current = self._counters.get(namespace, 0)
            if max_observed > current:
                self._counters[namespace] = max_observed
                logger.debug(f"Reseeded ID namespace {namespace} to {max_observed}")

    def current(self, namespace: str) -> int:
        """Return the last ID allocated or observed in a namespace (0 if none)."""
        with self._lock:
            return self._counters.get(namespace, 0)

    def namespaces(self) -> list[str]:
        with self._lock:
            return sorted(self._counters)
