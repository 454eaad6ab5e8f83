"""
Email collation pipeline.

Takes the messages of one or more senders, drops trivial bodies, embeds
the rest, removes near-duplicates and returns the survivors in
chronological order. Fetching messages and rendering reports are left
to the caller.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .config import CollationSettings
from .dedup import Deduplicator, DuplicateMatch
from .embedding import EmbeddingService
from .infra.progress import ProgressReporter
from .models import Document

logger = logging.getLogger("email_collation")

# Progress milestones (percent)
PROGRESS_FOUND = 10
PROGRESS_EMBED_START = 40
PROGRESS_EMBED_SPAN = 30
PROGRESS_DEDUP = 70
PROGRESS_SORT = 90
PROGRESS_DONE = 100

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an email Date header or ISO 8601 string.

    Naive results are taken as UTC.

    Returns:
        Timezone-aware datetime, or None if missing or unparseable
    """
    if not value or not isinstance(value, str):
        return None

    parsed: Optional[datetime] = None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None

    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_chronologically(documents: Sequence[Document]) -> List[Document]:
    """
    Sort documents oldest first.

    Documents without a parseable date go last; ties keep input order.
    """
    def sort_key(document: Document):
        parsed = parse_date(document.date)
        return (parsed is None, parsed or _EPOCH)

    return sorted(documents, key=sort_key)


def is_trivial(document: Document, min_body_chars: int) -> bool:
    """True if the stripped body is too short to be worth embedding."""
    return len(document.body.strip()) <= min_body_chars


@dataclass
class CollationResult:
    """
    Result of one collation run.

    Attributes:
        documents: Unique documents, oldest first
        total_messages: Messages given to the run
        skipped_trivial: Messages dropped for having trivial bodies
        embedded: Messages that received an embedding
        matches: Duplicate removal decisions
    """
    documents: List[Document]
    total_messages: int
    skipped_trivial: int = 0
    embedded: int = 0
    matches: List[DuplicateMatch] = field(default_factory=list)

    @property
    def duplicates_removed(self) -> int:
        return len(self.matches)

    @property
    def unique_count(self) -> int:
        return len(self.documents)

    def to_dict(self, include_embeddings: bool = False) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_messages": self.total_messages,
            "skipped_trivial": self.skipped_trivial,
            "embedded": self.embedded,
            "duplicates_removed": self.duplicates_removed,
            "unique_count": self.unique_count,
            "duplicates": [m.to_dict() for m in self.matches],
            "messages": [d.to_dict(include_embedding=include_embeddings) for d in self.documents],
        }


class EmailCollator:
    """
    Runs the embed-dedupe-sort pipeline for a set of messages.

    Build one collator per run: the embedding cache and rate limiter
    live inside it and are not shared between runs.
    """

    def __init__(
        self,
        settings: Optional[CollationSettings] = None,
        service: Optional[EmbeddingService] = None,
        deduplicator: Optional[Deduplicator] = None,
        reporter: Optional[ProgressReporter] = None,
        client: Optional[httpx.Client] = None
    ):
        """
        Initialize the collator.

        Args:
            settings: Collation settings (validated here)
            service: Embedding service (built from settings if omitted)
            deduplicator: Deduplicator (built from settings if omitted)
            reporter: Progress reporter (a fresh one if omitted)
            client: HTTP client for the provider built from settings

        Raises:
            ConfigurationError: If settings are out of range
            UnsupportedProviderError: If the provider name is unknown
        """
        self.settings = (settings or CollationSettings()).validate()
        self.service = service or EmbeddingService(self.settings, client=client)
        self.deduplicator = deduplicator or Deduplicator(self.settings.similarity_threshold)
        self.progress_reporter = reporter or ProgressReporter()

    def _report_embedding(self, current: int, total: int) -> None:
        percentage = PROGRESS_EMBED_START + int(current / total * PROGRESS_EMBED_SPAN + 0.5)
        self.progress_reporter.report_progress(
            percentage, 100, f"Generating embedding {current} of {total}..."
        )

    def collate(
        self,
        documents: Sequence[Document],
        cancel_event: Optional[threading.Event] = None
    ) -> CollationResult:
        """
        Collate messages into a unique, chronological corpus.

        Messages that fail to embed are kept. Any failure is reported as an
        error event and re-raised.

        Args:
            documents: Messages to collate
            cancel_event: When set, embedding stops and BatchCancelledError is raised

        Returns:
            CollationResult
        """
        reporter = self.progress_reporter
        total = len(documents)

        try:
            if total == 0:
                reporter.report_progress(PROGRESS_DONE, 100, "No messages found.")
                reporter.report_complete("No messages found.")
                logger.info("[Collator] No messages to collate")
                return CollationResult(documents=[], total_messages=0)

            reporter.report_progress(
                PROGRESS_FOUND, 100, f"Found {total} messages. Filtering trivial bodies..."
            )
            candidates = [
                d for d in documents
                if not is_trivial(d, self.settings.min_body_chars)
            ]
            skipped = total - len(candidates)
            if skipped:
                logger.info(
                    f"[Collator] Skipped {skipped} messages with bodies of "
                    f"{self.settings.min_body_chars} chars or fewer"
                )

            reporter.report_progress(
                PROGRESS_EMBED_START, 100, "Generating AI embeddings for content analysis..."
            )
            embedded = self.service.embed_documents(
                candidates,
                on_progress=self._report_embedding,
                cancel_event=cancel_event,
            )

            reporter.report_progress(PROGRESS_DEDUP, 100, "Deduplicating content...")
            report = self.deduplicator.analyze(embedded)

            reporter.report_progress(PROGRESS_SORT, 100, "Sorting messages by date...")
            ordered = sort_chronologically(report.documents)

            result = CollationResult(
                documents=ordered,
                total_messages=total,
                skipped_trivial=skipped,
                embedded=sum(1 for d in embedded if d.has_embedding),
                matches=report.matches,
            )

            message = f"Collation complete! Found {result.unique_count} unique messages."
            reporter.report_progress(PROGRESS_DONE, 100, message)
            reporter.report_complete(message)
            logger.info(
                f"[Collator] {total} messages -> {result.unique_count} unique "
                f"({result.duplicates_removed} duplicates, {skipped} trivial)"
            )
            return result

        except Exception as e:
            logger.error(f"[Collator] Collation process failed: {e}")
            reporter.report_error(e)
            raise

    def close(self) -> None:
        self.service.close()
