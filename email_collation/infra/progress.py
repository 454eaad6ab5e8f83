"""
Progress reporting for collation runs.

An append-only stream of events delivered to registered listeners.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("email_collation")

EVENT_PROGRESS = "progress"
EVENT_COMPLETE = "complete"
EVENT_ERROR = "error"


@dataclass(frozen=True)
class ProgressEvent:
    """
    Single progress notification.

    Attributes:
        type: "progress", "complete" or "error"
        message: Human-readable status
        current: Steps done (progress events only)
        total: Total steps (progress events only)
        percentage: Rounded percent done (progress events only)
    """
    type: str
    message: str
    current: Optional[int] = None
    total: Optional[int] = None
    percentage: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, dropping unset fields."""
        data = {"type": self.type, "message": self.message}
        if self.current is not None:
            data["current"] = self.current
            data["total"] = self.total
            data["percentage"] = self.percentage
        return data


ProgressListener = Callable[[ProgressEvent], None]


class ProgressReporter:
    """Broadcasts progress events to listeners."""

    def __init__(self):
        self._listeners: List[ProgressListener] = []

    def add_listener(self, listener: ProgressListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def report(self, event: ProgressEvent) -> None:
        """Deliver an event to every listener. A failing listener is logged and skipped."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"[Progress] Error in progress listener: {e}")

    def report_progress(self, current: int, total: int, message: str = "") -> None:
        percentage = int(current / total * 100 + 0.5) if total > 0 else 0
        self.report(ProgressEvent(
            type=EVENT_PROGRESS,
            message=message,
            current=current,
            total=total,
            percentage=percentage,
        ))

    def report_complete(self, message: str) -> None:
        self.report(ProgressEvent(type=EVENT_COMPLETE, message=message))

    def report_error(self, error: BaseException) -> None:
        self.report(ProgressEvent(
            type=EVENT_ERROR,
            message=str(error) or "An unknown error occurred",
        ))
