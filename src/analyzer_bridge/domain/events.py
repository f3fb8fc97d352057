"""Domain events for the analyzer bridge."""

from dataclasses import dataclass
from datetime import date, datetime

from analyzer_bridge.domain.commands import Event


@dataclass
class ObservationDelivered(Event):
    """Event raised when the LIMS accepted an observation for a sample."""
    sample_id: str
    day: date
    delivered_at: datetime
