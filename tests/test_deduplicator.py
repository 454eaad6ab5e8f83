"""
Tests for embedding-based near-duplicate removal.
"""

import pytest

from email_collation.dedup.deduplicator import Deduplicator
from email_collation.models import Document


def ids(documents):
    return [d.id for d in documents]


class TestDeduplicator:
    """Tests for Deduplicator class."""

    def test_default_threshold(self):
        assert Deduplicator().threshold == 0.95

    def test_shorter_similar_document_removed(self, make_document):
        """Scenario: [1,0] / [1,0.01] / [0,1] with bodies 100 / 50 / 80."""
        docs = [
            make_document(1, length=100, embedding=[1.0, 0.0]),
            make_document(2, length=50, embedding=[1.0, 0.01]),
            make_document(3, length=80, embedding=[0.0, 1.0]),
        ]

        result = Deduplicator(0.95).deduplicate(docs)

        assert ids(result) == [1, 3]

    def test_longer_later_document_wins(self, make_document):
        """If i is shorter, i is removed and j survives."""
        docs = [
            make_document("short", length=60, embedding=[1.0, 0.0]),
            make_document("long", length=300, embedding=[1.0, 0.001]),
        ]

        assert ids(Deduplicator().deduplicate(docs)) == ["long"]

    def test_equal_length_removes_earlier(self, make_document):
        docs = [
            make_document("first", length=120, embedding=[0.6, 0.8]),
            make_document("second", length=120, embedding=[0.6, 0.8]),
        ]

        assert ids(Deduplicator().deduplicate(docs)) == ["second"]

    def test_marked_document_stops_scanning(self, make_document):
        """Once i is removed it is not compared with later documents."""
        docs = [
            make_document("a", length=60, embedding=[1.0, 0.0]),
            make_document("b", length=200, embedding=[1.0, 0.0]),
            make_document("c", length=100, embedding=[1.0, 0.0]),
        ]

        report = Deduplicator().analyze(docs)

        # a loses to b; then b removes c
        assert ids(report.documents) == ["b"]
        assert [(m.removed_id, m.kept_id) for m in report.matches] == [("a", "b"), ("c", "b")]

    def test_documents_without_embedding_always_kept(self, make_document):
        docs = [
            make_document("plain", length=90),
            make_document("long", length=150, embedding=[0.2, 0.4, 0.4]),
            make_document("short", length=70, embedding=[0.2, 0.4, 0.41]),
        ]

        assert ids(Deduplicator().deduplicate(docs)) == ["plain", "long"]

    def test_empty_embedding_treated_as_absent(self, make_document):
        docs = [
            make_document(1, length=100, embedding=[]),
            make_document(2, length=50, embedding=[]),
        ]

        assert ids(Deduplicator().deduplicate(docs)) == [1, 2]

    def test_threshold_is_strict(self, make_document):
        """Similarity equal to the threshold is not a duplicate."""
        docs = [
            make_document(1, length=100, embedding=[1.0, 0.0]),
            make_document(2, length=50, embedding=[1.0, 0.0]),
        ]

        assert ids(Deduplicator(similarity_threshold=1.0).deduplicate(docs)) == [1, 2]

    def test_lower_threshold_catches_more(self, make_document):
        docs = [
            make_document(1, length=100, embedding=[1.0, 0.0]),
            make_document(2, length=50, embedding=[1.0, 0.5]),
        ]

        assert ids(Deduplicator(0.95).deduplicate(docs)) == [1, 2]
        assert ids(Deduplicator(0.85).deduplicate(docs)) == [1]

    def test_mismatched_dimensions_never_duplicates(self, make_document):
        docs = [
            make_document(1, length=100, embedding=[1.0, 0.0]),
            make_document(2, length=50, embedding=[1.0, 0.0, 0.0]),
        ]

        assert ids(Deduplicator().deduplicate(docs)) == [1, 2]

    def test_zero_vectors_never_duplicates(self, make_document):
        docs = [
            make_document(1, length=100, embedding=[0.0, 0.0]),
            make_document(2, length=50, embedding=[0.0, 0.0]),
        ]

        assert ids(Deduplicator().deduplicate(docs)) == [1, 2]

    def test_malformed_vectors_never_duplicates(self):
        """Vectors that are not flat lists of numbers compare as not similar."""
        docs = [
            Document(id=1, body="a" * 60, embedding=["x", "y"]),
            Document(id=2, body="b" * 50, embedding=[1.0, 2.0]),
            Document(id=3, body="c" * 70, embedding=[[1.0, 2.0]]),
            Document(id=4, body="d" * 40, embedding=[[1.0, 2.0]]),
        ]

        assert ids(Deduplicator().deduplicate(docs)) == [1, 2, 3, 4]

    def test_loaded_document_with_bad_embedding_kept(self):
        docs = [
            Document.from_dict({"id": 1, "body": "a" * 60, "embedding": "ab"}),
            Document.from_dict({"id": 2, "body": "b" * 50, "embedding": [1.0, 2.0]}),
            Document.from_dict({"id": 3, "body": "c" * 40, "embedding": [1.0, 2.0]}),
        ]

        assert docs[0].embedding is None
        assert ids(Deduplicator().deduplicate(docs)) == [1, 2]

    def test_length_counts_characters(self):
        """Body length is measured in characters, not UTF-16 code units."""
        docs = [
            Document(id="emoji", body="\U0001F600" * 10, embedding=[1.0, 0.0]),
            Document(id="plain", body="a" * 15, embedding=[1.0, 0.0]),
        ]

        assert ids(Deduplicator().deduplicate(docs)) == ["plain"]

    def test_empty_input(self):
        assert Deduplicator().deduplicate([]) == []

    def test_input_not_modified(self, make_document):
        docs = [
            make_document(1, length=100, embedding=[1.0, 0.0]),
            make_document(2, length=50, embedding=[1.0, 0.0]),
        ]
        snapshot = list(docs)

        Deduplicator().deduplicate(docs)

        assert docs == snapshot

    def test_match_report(self, make_document):
        docs = [
            make_document(1, length=100, embedding=[1.0, 0.0]),
            make_document(2, length=50, embedding=[1.0, 0.01]),
        ]

        report = Deduplicator().analyze(docs)

        assert report.removed_count == 1
        match = report.matches[0].to_dict()
        assert match["removed_id"] == 2
        assert match["kept_id"] == 1
        assert match["similarity"] == pytest.approx(0.99995, abs=1e-4)


class TestDeduplicatorProperties:
    """Order preservation and idempotence over a mixed corpus."""

    @pytest.fixture
    def corpus(self):
        # Three reply-chain clusters plus unrelated and embedding-less messages
        specs = [
            ("r1", 120, [1.0, 0.0, 0.0, 0.0]),
            ("u1", 80, [0.0, 0.0, 0.0, 1.0]),
            ("r2", 240, [1.0, 0.02, 0.0, 0.0]),
            ("n1", 70, None),
            ("s1", 300, [0.0, 1.0, 0.0, 0.0]),
            ("r3", 360, [0.99, 0.03, 0.0, 0.0]),
            ("s2", 150, [0.0, 1.0, 0.01, 0.0]),
            ("t1", 90, [0.0, 0.0, 1.0, 0.0]),
            ("t2", 90, [0.0, 0.0, 1.0, 0.01]),
            ("n2", 55, None),
        ]
        return [
            Document(id=doc_id, body="b" * length, embedding=embedding)
            for doc_id, length, embedding in specs
        ]

    def test_expected_survivors(self, corpus):
        assert ids(Deduplicator().deduplicate(corpus)) == ["u1", "n1", "s1", "r3", "t2", "n2"]

    def test_output_is_ordered_subsequence(self, corpus):
        result = Deduplicator().deduplicate(corpus)
        positions = [corpus.index(d) for d in result]

        assert positions == sorted(positions)

    def test_idempotent(self, corpus):
        dedup = Deduplicator()
        once = dedup.deduplicate(corpus)

        assert dedup.deduplicate(once) == once
