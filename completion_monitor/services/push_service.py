"""
Expo Push Service
Sends push notifications to the mobile app for the auto-complete flow
"""

import logging
from typing import Optional

import httpx

from ..config import EXPO_ACCESS_TOKEN, EXPO_PUSH_URL

logger = logging.getLogger(__name__)


async def send_push(
    push_token: str,
    title: str,
    body: str,
    data: Optional[dict] = None,
) -> tuple[bool, Optional[str]]:
    """
    Send a push notification via the Expo push API

    Args:
        push_token: Expo push token (ExponentPushToken[...])
        title: Notification title
        body: Notification body
        data: Optional payload delivered to the app

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    if not push_token:
        return False, "No push token provided"

    if not push_token.startswith(("ExponentPushToken[", "ExpoPushToken[")):
        logger.warning(f"Push token not in Expo format: {push_token[:20]}...")
        return False, "Invalid Expo push token"

    headers = {"Accept": "application/json", "Content-Type": "application/json"}
    if EXPO_ACCESS_TOKEN:
        headers["Authorization"] = f"Bearer {EXPO_ACCESS_TOKEN}"

    payload = {
        "to": push_token,
        "sound": "default",
        "title": title,
        "body": body,
        "data": data or {},
    }

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(EXPO_PUSH_URL, json=payload, headers=headers)

        if response.status_code != 200:
            error = f"Expo API error: HTTP {response.status_code}"
            logger.error(f"❌ {error} - {response.text[:200]}")
            return False, error

        ticket = response.json().get("data", {})
        if isinstance(ticket, dict) and ticket.get("status") == "error":
            error = ticket.get("message", "Unknown Expo error")
            logger.warning(f"⚠️ Expo rejected push: {error}")
            return False, error

        logger.info(f"✅ Push sent: {title}")
        return True, None

    except httpx.HTTPError as e:
        logger.error(f"❌ Push request failed: {e}")
        return False, str(e)


async def send_push_auto_complete_reminder(
    push_token: str,
    appointment_date: str,
    home_address: str,
    time_remaining: str,
    is_final: bool = False,
) -> tuple[bool, Optional[str]]:
    title = "Final reminder" if is_final else "Mark your job complete"
    body = f"Your job at {home_address} on {appointment_date} auto-completes in {time_remaining}."
    return await send_push(push_token, title, body, {"type": "auto_complete_reminder"})


async def send_push_job_auto_completed(
    push_token: str, appointment_date: str
) -> tuple[bool, Optional[str]]:
    return await send_push(
        push_token,
        "Job auto-completed",
        f"Your job on {appointment_date} was submitted for homeowner review.",
        {"type": "job_auto_completed"},
    )


async def send_push_job_auto_completed_homeowner(
    push_token: str, appointment_date: str, cleaner_name: str
) -> tuple[bool, Optional[str]]:
    return await send_push(
        push_token,
        "Cleaning ready for review",
        f"{cleaner_name}'s cleaning on {appointment_date} is ready for your review.",
        {"type": "job_auto_completed"},
    )
