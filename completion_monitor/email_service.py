"""
Email Service using Resend
Compiles MJML templates and sends the auto-complete flow emails
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    auto_complete_reminder_template,
    job_auto_completed_homeowner_template,
    job_auto_completed_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict-like result with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        # If it returns a string directly (older versions)
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {to}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


async def send_auto_complete_reminder(
    to: str,
    cleaner_name: str,
    appointment_date: str,
    home_address: str,
    time_remaining: str,
    is_final: bool = False,
) -> dict:
    """Remind a cleaner to mark their job complete before the system does"""
    mjml_content = auto_complete_reminder_template(
        cleaner_name, appointment_date, home_address, time_remaining, is_final
    )
    subject = (
        "Final reminder: your job is about to auto-complete"
        if is_final
        else "Reminder: please mark your job complete"
    )
    return await send_email(to=to, subject=subject, mjml_content=mjml_content)


async def send_job_auto_completed(
    to: str,
    cleaner_name: str,
    appointment_date: str,
    home_address: str,
    auto_approval_hours: int,
) -> dict:
    """Tell the cleaner the system submitted their job"""
    mjml_content = job_auto_completed_template(
        cleaner_name, appointment_date, home_address, auto_approval_hours
    )
    return await send_email(
        to=to,
        subject=f"Your job on {appointment_date} was auto-completed",
        mjml_content=mjml_content,
    )


async def send_job_auto_completed_homeowner(
    to: str,
    homeowner_name: str,
    appointment_date: str,
    cleaner_name: str,
    auto_approval_hours: int,
) -> dict:
    """Ask the homeowner to review a system-submitted job"""
    mjml_content = job_auto_completed_homeowner_template(
        homeowner_name, appointment_date, cleaner_name, auto_approval_hours
    )
    return await send_email(
        to=to,
        subject=f"Please review your cleaning on {appointment_date}",
        mjml_content=mjml_content,
    )
