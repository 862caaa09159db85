from typing import List

from pydantic import BaseModel, Field, field_validator

from .config import (
    DEFAULT_AUTO_APPROVAL_HOURS,
    DEFAULT_HOURS_AFTER_END,
    DEFAULT_REMINDER_INTERVALS,
)


class TimeWindow(BaseModel):
    start: int
    end: int


class AutoCompleteConfig(BaseModel):
    """Tunables for one monitor run, resolved from the active PricingConfig"""

    hours_after_end: int = Field(default=DEFAULT_HOURS_AFTER_END, ge=0)
    reminder_intervals: List[int] = Field(default_factory=lambda: list(DEFAULT_REMINDER_INTERVALS))
    auto_approval_hours: int = Field(default=DEFAULT_AUTO_APPROVAL_HOURS, ge=0)

    @field_validator("reminder_intervals")
    @classmethod
    def sort_intervals(cls, value: List[int]) -> List[int]:
        if any(minutes < 0 for minutes in value):
            raise ValueError("reminder intervals must be non-negative minutes")
        # Ordinal lookup scans from the highest index down
        return sorted(value)
