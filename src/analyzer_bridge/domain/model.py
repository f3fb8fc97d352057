"""
Domain model for HbA1c result delivery.

A Result is extracted from the analyzer report, forwarded to the LIMS as an
observation, and recorded in the DailyLedger of the report's day once the
LIMS has accepted it. Identity for duplicate suppression is (sample_id, day).
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import List, Optional, Set

from analyzer_bridge.domain.events import ObservationDelivered


@dataclass(frozen=True)
class Result:
    """One sample row of the analyzer report."""
    sample_id: str
    value: str          # raw percentage text, e.g. "4.58"


@dataclass(frozen=True)
class ReportQuery:
    """Date range of an analyzer report query. Always a single day."""
    start_date: date
    end_date: date

    @classmethod
    def for_day(cls, day: date) -> "ReportQuery":
        return cls(start_date=day, end_date=day)


@dataclass(frozen=True)
class DeliveryRecord:
    """This sample's result was handed to the LIMS for this day."""
    sample_id: str
    day: date


@dataclass(frozen=True)
class DeliveryOutcome:
    """Answer of the LIMS to a single observation."""
    accepted: bool
    status_code: Optional[int] = None
    reason: Optional[str] = None

    @classmethod
    def accepted_with(cls, status_code: int) -> "DeliveryOutcome":
        return cls(accepted=True, status_code=status_code)

    @classmethod
    def rejected(cls, reason: str, status_code: Optional[int] = None) -> "DeliveryOutcome":
        return cls(accepted=False, status_code=status_code, reason=reason)


class DailyLedger:
    """Sample ids already delivered for one calendar day."""

    def __init__(self, day: date, delivered: Optional[Set[str]] = None):
        self.day = day
        self.delivered = set(delivered or ())
        self.pending: List[DeliveryRecord] = []
        self.events: List = []

    def __repr__(self):
        return f"<DailyLedger {self.day.isoformat()} ({len(self.delivered)} delivered)>"

    def is_delivered(self, sample_id: str) -> bool:
        return sample_id in self.delivered

    def mark_delivered(self, sample_id: str) -> DeliveryRecord:
        """
        Record that the LIMS accepted the observation for sample_id.

        The record stays pending until the unit of work commits it to the
        backing store. Marking an already delivered sample is a no-op.
        """
        record = DeliveryRecord(sample_id=sample_id, day=self.day)
        if sample_id in self.delivered:
            return record

        self.delivered.add(sample_id)
        self.pending.append(record)
        self.events.append(
            ObservationDelivered(
                sample_id=sample_id,
                day=self.day,
                delivered_at=datetime.now(timezone.utc),
            )
        )
        return record


@dataclass
class LaneReport:
    """Summary of one PollReport run for a single day."""
    day: date
    lane: str
    status: str = "completed"
    delivered: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    rejected: List[str] = field(default_factory=list)
    unrecorded: List[str] = field(default_factory=list)

    COMPLETED = "completed"
    FETCH_FAILED = "fetch_failed"
    NO_RESULTS = "no_results"
    SKIPPED_BUSY = "skipped_busy"
    FAILED = "failed"

    def as_dict(self) -> dict:
        return {
            "day": self.day.isoformat(),
            "lane": self.lane,
            "status": self.status,
            "delivered": list(self.delivered),
            "skipped": list(self.skipped),
            "rejected": list(self.rejected),
            "unrecorded": list(self.unrecorded),
        }
