"""
Auto-completion
Submits in-progress jobs on the cleaner's behalf once the auto-complete
deadline passes, and starts the homeowner's approval window
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from ..schemas import AutoCompleteConfig
from .completion_targets import IN_PROGRESS, CompletionTarget
from .notification_service import (
    send_job_auto_completed_homeowner_notification,
    send_job_auto_completed_notification,
)
from .time_windows import calculate_auto_complete_at, calculate_scheduled_end_time

logger = logging.getLogger(__name__)


def schedule_auto_complete(db: Session, target: CompletionTarget, config: AutoCompleteConfig) -> datetime:
    """
    Arm the auto-complete deadline for a job that has just gone in progress.

    Caches the appointment's scheduled end time and resets the reminder count.
    The job-start flow calls this when a cleaner starts work; the monitor only
    reads what it armed.
    """
    appointment = target.appointment
    scheduled_end = calculate_scheduled_end_time(appointment.date, appointment.time_window)
    auto_complete_at = calculate_auto_complete_at(scheduled_end, config)

    appointment.scheduled_end_time = scheduled_end
    target.record.auto_complete_at = auto_complete_at
    target.record.auto_complete_reminders_sent = 0
    target.record.last_reminder_sent_at = None
    db.commit()

    logger.info(f"⏰ Auto-complete armed for {target.label} at {auto_complete_at.isoformat()}")
    return auto_complete_at


def is_auto_complete_due(target: CompletionTarget, now: datetime) -> bool:
    if target.completion_status != IN_PROGRESS:
        return False
    auto_complete_at = target.auto_complete_at
    return auto_complete_at is not None and now >= auto_complete_at


def calculate_auto_approval_expiration(now: datetime, config: AutoCompleteConfig) -> datetime:
    return now + timedelta(hours=config.auto_approval_hours)


async def auto_complete(
    db: Session,
    target: CompletionTarget,
    config: AutoCompleteConfig,
    now: datetime,
) -> bool:
    """
    Submit the job for homeowner review on the system's behalf.

    The status change is a single guarded UPDATE; if another run already
    submitted the record, nothing is sent. Notifications go out after the
    commit and their failures never roll it back.

    Returns:
        True if this call performed the transition
    """
    appointment_id = target.appointment.id
    appointment_date = target.date
    home_address = target.home_address
    cleaner = target.cleaner
    homeowner = target.homeowner
    hours = config.auto_approval_hours

    model = type(target.record)
    claimed = target.guarded_update(
        db,
        [model.completion_status == IN_PROGRESS, model.auto_complete_at.isnot(None)],
        target.completion_values(now, calculate_auto_approval_expiration(now, config)),
    )
    if not claimed:
        logger.info(f"⏭️ {target.label} already left in_progress, skipping auto-complete")
        return False

    multi_cleaner = target.multi_cleaner
    cleaner_name = cleaner.first_name if cleaner and cleaner.first_name else None

    if cleaner:
        try:
            await send_job_auto_completed_notification(
                db=db,
                cleaner=cleaner,
                appointment_id=appointment_id,
                appointment_date=appointment_date,
                home_address=home_address,
                message=(
                    f"Your {'work' if multi_cleaner else 'job'} on {appointment_date} was auto-completed "
                    f"by the system. The homeowner has {hours} hours to review."
                ),
                auto_approval_hours=hours,
            )
        except Exception as e:
            logger.error(f"❌ Failed to notify cleaner about auto-completed {target.label}: {e}")

    if homeowner:
        if multi_cleaner:
            cleaner_name = cleaner_name or "A cleaner"
            message = (
                f"{cleaner_name}'s work on {appointment_date} has been marked complete. "
                f"Please review within {hours} hours."
            )
        else:
            cleaner_name = cleaner_name or "Your cleaner"
            message = (
                f"Your cleaning on {appointment_date} has been marked complete. "
                f"Please review within {hours} hours."
            )
        try:
            await send_job_auto_completed_homeowner_notification(
                db=db,
                homeowner=homeowner,
                appointment_id=appointment_id,
                appointment_date=appointment_date,
                cleaner_name=cleaner_name,
                message=message,
                auto_approval_hours=hours,
            )
        except Exception as e:
            logger.error(f"❌ Failed to notify homeowner about auto-completed {target.label}: {e}")

    logger.info(f"✅ Auto-completed {target.label}")
    return True
