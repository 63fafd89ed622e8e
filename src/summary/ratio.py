"""Windowed success-ratio accumulator."""

from datetime import datetime

from src.summary.schemas import TimeWindow


class SuccessRatio:
    """Tally of boolean outcomes whose timestamp falls inside a window.

    Outcomes stamped exactly at the window start or end are ignored.
    Order of ``add`` calls does not matter. An empty or inverted window
    counts nothing, so its value is 0.0.

    Usage:
        ratio = SuccessRatio(start, now)
        for entry in entries:
            ratio.add(entry.created_at, entry.metadata.is_enriched)
        ratio.value()
    """

    def __init__(self, start: datetime, end: datetime) -> None:
        self.start = start
        self.end = end
        self.window: TimeWindow | None = TimeWindow(start, end) if start < end else None
        self.success_count = 0
        self.total_count = 0

    def add(self, timestamp: datetime, success: bool) -> None:
        if self.window is None or not self.window.contains(timestamp):
            return
        self.total_count += 1
        if success:
            self.success_count += 1

    def value(self) -> float:
        """Success fraction, 0.0 when nothing was counted."""
        if self.total_count == 0:
            return 0.0
        return self.success_count / self.total_count

    def __repr__(self) -> str:
        return (
            f"SuccessRatio({self.success_count}/{self.total_count}, "
            f"{self.start.isoformat()}..{self.end.isoformat()})"
        )
