"""
Tests for IDManager: per-namespace, monotonic and thread-safe counters.
"""

import threading

from docx_engine import IDManager, create_document
from docx_engine.ids import BOOKMARK, DRAWING, MEDIA, relationship_namespace


class TestIDManager:
    """Tests for allocating IDs from named counters."""

    def test_first_id_is_one(self):
        """A fresh namespace starts at 1."""
        ids = IDManager()
        assert ids.next_id(BOOKMARK) == 1

    def test_ids_are_strictly_increasing(self):
        """N sequential calls return pairwise-distinct increasing values."""
        ids = IDManager()
        values = [ids.next_id(DRAWING) for _ in range(50)]
        assert values == sorted(values)
        assert len(set(values)) == 50
        assert all(b > a for a, b in zip(values, values[1:]))

    def test_namespaces_are_independent(self):
        """Counters in different namespaces do not affect each other."""
        ids = IDManager()
        ids.next_id(BOOKMARK)
        ids.next_id(BOOKMARK)
        assert ids.next_id(MEDIA) == 1
        assert ids.next_id(BOOKMARK) == 3

    def test_current_reports_last_value(self):
        ids = IDManager()
        assert ids.current(BOOKMARK) == 0
        ids.next_id(BOOKMARK)
        assert ids.current(BOOKMARK) == 1

    def test_relationship_namespace(self):
        assert relationship_namespace("word/document.xml") == "rel:word/document.xml"
        assert relationship_namespace("") == "rel:"


class TestInitializeFrom:
    """Tests for reseeding counters from an opened package."""

    def test_raises_counter(self):
        """Allocation continues after the largest observed ID."""
        ids = IDManager()
        ids.initialize_from(BOOKMARK, 10)
        assert ids.next_id(BOOKMARK) == 11

    def test_never_lowers_counter(self):
        """A smaller observed value is ignored."""
        ids = IDManager()
        for _ in range(5):
            ids.next_id(BOOKMARK)
        ids.initialize_from(BOOKMARK, 2)
        assert ids.next_id(BOOKMARK) == 6

    def test_namespaces_listed(self):
        ids = IDManager()
        ids.initialize_from("rel:word/document.xml", 4)
        ids.next_id(DRAWING)
        assert ids.namespaces() == [DRAWING, "rel:word/document.xml"]


class TestThreadSafety:
    """Tests for concurrent allocation on one manager."""

    def test_concurrent_calls_never_collide(self):
        """IDs allocated from several threads are unique and gap-free."""
        ids = IDManager()
        results: list[int] = []
        lock = threading.Lock()

        def worker():
            local = [ids.next_id(BOOKMARK) for _ in range(500)]
            with lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 4000
        assert set(results) == set(range(1, 4001))


class TestDocumentIDs:
    """Tests for IDs drawn through a document."""

    def test_bookmarks_use_shared_counter(self):
        """Bookmarks never share the placeholder ID."""
        doc = create_document()
        first = doc.add_paragraph("One").add_bookmark("one")
        second = doc.add_paragraph("Two").add_bookmark("two")
        assert first.bookmark_id != second.bookmark_id
        assert second.bookmark_id > first.bookmark_id

    def test_documents_do_not_share_counters(self):
        """Each document owns its own counters."""
        first = create_document()
        second = create_document()
        first.add_paragraph("a").add_bookmark("a")
        first.add_paragraph("b").add_bookmark("b")
        assert second.add_paragraph("c").add_bookmark("c").bookmark_id == 1
