"""Commands for the analyzer bridge."""

from dataclasses import dataclass
from datetime import date


@dataclass
class Command:
    """Base class for all commands."""
    pass


@dataclass
class Event:
    """Base class for all domain events."""
    pass


@dataclass
class PollReport(Command):
    """Command to fetch one day's analyzer report and deliver its new results."""
    day: date
    lane: str = "today"
