"""
Completion targets
One view over the two record shapes the monitor drives: a single-cleaner
appointment, or one cleaner's completion row on a multi-cleaner appointment
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Appointment, CleanerJobCompletion, Home, User
from .time_windows import calculate_scheduled_end_time

IN_PROGRESS = "in_progress"
SUBMITTED = "submitted"


class CompletionTarget:
    """Fields and writes shared by single- and multi-cleaner completion records"""

    kind = "completion"
    multi_cleaner = False

    def __init__(self, record, appointment: Appointment, cleaner: Optional[User]):
        self.record = record
        self.appointment = appointment
        self.cleaner = cleaner

    @property
    def label(self) -> str:
        return f"{self.kind} {self.record.id}"

    @property
    def homeowner(self) -> Optional[User]:
        return self.appointment.user

    @property
    def home(self) -> Optional[Home]:
        return self.appointment.home

    @property
    def home_address(self) -> str:
        if not self.home:
            return "the home"
        return f"{self.home.address}, {self.home.city}"

    @property
    def date(self) -> str:
        return self.appointment.date

    @property
    def scheduled_end_time(self) -> datetime:
        if self.appointment.scheduled_end_time is not None:
            return self.appointment.scheduled_end_time
        return calculate_scheduled_end_time(self.appointment.date, self.appointment.time_window)

    @property
    def auto_complete_at(self) -> Optional[datetime]:
        return self.record.auto_complete_at

    @property
    def reminders_sent(self) -> int:
        return self.record.auto_complete_reminders_sent or 0

    @property
    def completion_status(self) -> str:
        return self.record.completion_status

    def completion_values(self, now: datetime, approval_expires_at: datetime) -> dict:
        return {
            "completion_status": SUBMITTED,
            "completion_submitted_at": now,
            "auto_completed_by_system": True,
            "auto_approval_expires_at": approval_expires_at,
            "auto_complete_at": None,
        }

    def guarded_update(self, db: Session, guards: list, values: dict) -> bool:
        """
        Apply values in one UPDATE that only matches while the guards still hold.

        Returns False when another run already moved the record on.
        """
        model = type(self.record)
        rows = (
            db.query(model)
            .filter(model.id == self.record.id, *guards)
            .update(values, synchronize_session=False)
        )
        db.commit()
        return rows == 1


class SingleCleanerTarget(CompletionTarget):
    """Appointment row; the first assigned cleaner is the one who gets notified"""

    kind = "appointment"

    def __init__(self, appointment: Appointment, cleaner: Optional[User]):
        super().__init__(appointment, appointment, cleaner)


class MultiCleanerTarget(CompletionTarget):
    """Per-cleaner completion row; also advances the coarse status on completion"""

    kind = "multi-cleaner completion"
    multi_cleaner = True

    def __init__(self, completion: CleanerJobCompletion):
        super().__init__(completion, completion.appointment, completion.cleaner)

    def completion_values(self, now: datetime, approval_expires_at: datetime) -> dict:
        values = super().completion_values(now, approval_expires_at)
        values.update({"status": "completed", "completed_at": now})
        return values


def find_first_cleaner(db: Session, appointment: Appointment) -> Optional[User]:
    """Load the authoritative cleaner for a single-cleaner appointment"""
    cleaner_ids = appointment.employees_assigned or []
    if not cleaner_ids:
        return None
    return db.query(User).filter(User.id == cleaner_ids[0]).first()
