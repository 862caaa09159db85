"""
Unified Notification Service
Delivers auto-complete notifications over in-app, email and push channels
Each channel is independent: a missing address or token skips that channel,
and a failing channel is recorded in the result without stopping the others
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Notification, User

logger = logging.getLogger(__name__)


def create_in_app_notification(
    db: Session,
    user_id: int,
    message: str,
    context: Optional[dict] = None,
    notification_type: Optional[str] = None,
) -> Notification:
    """Store an in-app notification for the user's notification feed"""
    notification = Notification(
        user_id=user_id,
        notification_type=notification_type,
        message=message,
        context=context or {},
    )
    db.add(notification)
    db.commit()
    return notification


async def send_notification(
    db: Session,
    user_id: int,
    email: Optional[str],
    push_token: Optional[str],
    recipient_name: str,
    notification_type: str,
    message: str,
    context: dict,
    email_func,
    push_func,
    email_kwargs: dict,
    push_kwargs: dict,
) -> dict:
    """
    Unified notification sender for in-app, email and push

    Args:
        db: Database session
        user_id: Recipient user ID
        email: Recipient email address
        push_token: Recipient Expo push token
        recipient_name: Recipient name for logging
        notification_type: Type of notification (for logging and the in-app feed)
        message: In-app message text
        context: In-app notification context (e.g. appointment_id)
        email_func: Email function to call
        push_func: Push function to call
        email_kwargs: Kwargs for email function
        push_kwargs: Kwargs for push function

    Returns:
        Dict with per-channel sent flags and errors
    """
    result = {
        "in_app_sent": False,
        "email_sent": False,
        "push_sent": False,
        "in_app_error": None,
        "email_error": None,
        "push_error": None,
    }

    # In-app
    try:
        create_in_app_notification(db, user_id, message, context, notification_type)
        result["in_app_sent"] = True
    except Exception as e:
        db.rollback()
        result["in_app_error"] = str(e)
        logger.error(f"❌ Failed to create {notification_type} in-app notification for user {user_id}: {e}")

    # Email
    if email:
        try:
            logger.info(f"📧 Sending {notification_type} email to {email}")
            await email_func(to=email, **email_kwargs)
            result["email_sent"] = True
            logger.info(f"✅ {notification_type} email sent successfully to {email}")
        except Exception as e:
            result["email_error"] = str(e)
            logger.error(f"❌ Failed to send {notification_type} email to {email}: {e}")
    else:
        logger.debug(f"⚠️ No email address for {notification_type} notification to {recipient_name}")

    # Push
    if push_token:
        try:
            success, error = await push_func(push_token=push_token, **push_kwargs)
            if success:
                result["push_sent"] = True
                logger.info(f"✅ {notification_type} push sent to user {user_id}")
            else:
                result["push_error"] = error
                logger.warning(f"⚠️ {notification_type} push not sent to user {user_id}: {error}")
        except Exception as e:
            result["push_error"] = str(e)
            logger.error(f"❌ Failed to send {notification_type} push to user {user_id}: {e}")
    else:
        logger.debug(f"⚠️ No push token for {notification_type} push to {recipient_name}")

    return result


async def send_auto_complete_reminder_notification(
    db: Session,
    cleaner: User,
    appointment_id: int,
    appointment_date: str,
    home_address: str,
    message: str,
    time_remaining: str,
    is_final: bool,
) -> dict:
    """Send an auto-complete reminder to a cleaner on every available channel"""
    from ..email_service import send_auto_complete_reminder
    from .push_service import send_push_auto_complete_reminder

    return await send_notification(
        db=db,
        user_id=cleaner.id,
        email=cleaner.email,
        push_token=cleaner.expo_push_token,
        recipient_name=cleaner.first_name or f"user {cleaner.id}",
        notification_type="auto_complete_reminder",
        message=message,
        context={"appointment_id": appointment_id},
        email_func=send_auto_complete_reminder,
        push_func=send_push_auto_complete_reminder,
        email_kwargs={
            "cleaner_name": cleaner.first_name or "there",
            "appointment_date": appointment_date,
            "home_address": home_address,
            "time_remaining": time_remaining,
            "is_final": is_final,
        },
        push_kwargs={
            "appointment_date": appointment_date,
            "home_address": home_address,
            "time_remaining": time_remaining,
            "is_final": is_final,
        },
    )


async def send_job_auto_completed_notification(
    db: Session,
    cleaner: User,
    appointment_id: int,
    appointment_date: str,
    home_address: str,
    message: str,
    auto_approval_hours: int,
) -> dict:
    """Tell a cleaner the system submitted their job"""
    from ..email_service import send_job_auto_completed
    from .push_service import send_push_job_auto_completed

    return await send_notification(
        db=db,
        user_id=cleaner.id,
        email=cleaner.email,
        push_token=cleaner.expo_push_token,
        recipient_name=cleaner.first_name or f"user {cleaner.id}",
        notification_type="job_auto_completed",
        message=message,
        context={"appointment_id": appointment_id},
        email_func=send_job_auto_completed,
        push_func=send_push_job_auto_completed,
        email_kwargs={
            "cleaner_name": cleaner.first_name or "there",
            "appointment_date": appointment_date,
            "home_address": home_address,
            "auto_approval_hours": auto_approval_hours,
        },
        push_kwargs={"appointment_date": appointment_date},
    )


async def send_job_auto_completed_homeowner_notification(
    db: Session,
    homeowner: User,
    appointment_id: int,
    appointment_date: str,
    cleaner_name: str,
    message: str,
    auto_approval_hours: int,
) -> dict:
    """Ask the homeowner to review a system-submitted job"""
    from ..email_service import send_job_auto_completed_homeowner
    from .push_service import send_push_job_auto_completed_homeowner

    return await send_notification(
        db=db,
        user_id=homeowner.id,
        email=homeowner.email,
        push_token=homeowner.expo_push_token,
        recipient_name=homeowner.first_name or f"user {homeowner.id}",
        notification_type="job_auto_completed_homeowner",
        message=message,
        context={"appointment_id": appointment_id},
        email_func=send_job_auto_completed_homeowner,
        push_func=send_push_job_auto_completed_homeowner,
        email_kwargs={
            "homeowner_name": homeowner.first_name or "there",
            "appointment_date": appointment_date,
            "cleaner_name": cleaner_name,
            "auto_approval_hours": auto_approval_hours,
        },
        push_kwargs={"appointment_date": appointment_date, "cleaner_name": cleaner_name},
    )
