from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from schemas.schedule.entry import ScheduleEntry
from store.preference_store import Preferences


@dataclass
class SessionState:
    """
    Everything one viewer's session holds between renders.

    The record set is whatever the store pushed last; the rest is local to
    this client and never written to the shared store.
    """

    # shared data (last push wins)
    entries: List[ScheduleEntry] = field(default_factory=list)
    """The full record set as last delivered by the schedule store."""
    version: int = 0
    """Bumped on every push; part of the view cache key."""
    updated_at: Optional[datetime] = None
    """When the shared record set was last replaced, if known."""

    # local UI state
    preferences: Preferences = field(default_factory=Preferences)
    """Selected person, active view and test filter (persisted locally)."""
    week_start: str = ""
    """ISO date of the Saturday that starts the displayed week."""
    month: str = ""
    """`YYYY-MM` of the displayed calendar month."""

    # status
    loading: bool = True
    """True until the first push (or failure) arrives."""
    error: str = ""
    """Non-blocking banner text; empty when there is nothing to report."""
    notice: str = ""
    """Success message from the last upload."""
