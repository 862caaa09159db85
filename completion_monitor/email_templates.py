"""
MJML Email Templates
Templates for the job auto-complete flow (reminders and system submissions)
"""

from typing import Optional

from .config import FRONTEND_URL

# App theme colors - Teal/Slate color scheme
THEME = {
    "primary": "#14b8a6",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="32px 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              You're receiving this because you have an account with Kleanr.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def auto_complete_reminder_template(
    cleaner_name: str,
    appointment_date: str,
    home_address: str,
    time_remaining: str,
    is_final: bool = False,
) -> str:
    """Reminder to a cleaner whose job is about to be auto-completed"""
    accent = THEME["danger"] if is_final else THEME["warning"]
    headline = "Final reminder" if is_final else "Reminder"

    content = f"""
    <mj-text>
      Hi {cleaner_name},
    </mj-text>

    <mj-text>
      Your cleaning at <strong>{home_address}</strong> on <strong>{appointment_date}</strong>
      has passed its scheduled end time but hasn't been marked complete yet.
    </mj-text>

    <mj-text color="{accent}" font-weight="600">
      {headline}: the job will be submitted automatically in {time_remaining}.
    </mj-text>

    <mj-text color="{THEME['text_muted']}">
      Marking it complete yourself lets you attach your checklist and notes for the homeowner.
    </mj-text>
    """

    return get_base_template(
        title="Please mark your job complete",
        preview_text=f"Your job on {appointment_date} auto-completes in {time_remaining}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/employee/jobs",
        cta_label="Mark Job Complete",
    )


def job_auto_completed_template(
    cleaner_name: str,
    appointment_date: str,
    home_address: str,
    auto_approval_hours: int,
) -> str:
    """Tell the cleaner the system submitted their job"""
    content = f"""
    <mj-text>
      Hi {cleaner_name},
    </mj-text>

    <mj-text>
      Your cleaning at <strong>{home_address}</strong> on <strong>{appointment_date}</strong>
      was not marked complete, so we submitted it for you.
    </mj-text>

    <mj-text>
      The homeowner now has {auto_approval_hours} hours to review the job. If they don't respond,
      it will be approved automatically.
    </mj-text>
    """

    return get_base_template(
        title="Your job was auto-completed",
        preview_text=f"Your job on {appointment_date} was submitted for review",
        content_sections=content,
    )


def job_auto_completed_homeowner_template(
    homeowner_name: str,
    appointment_date: str,
    cleaner_name: str,
    auto_approval_hours: int,
) -> str:
    """Ask the homeowner to review a system-submitted job"""
    content = f"""
    <mj-text>
      Hi {homeowner_name},
    </mj-text>

    <mj-text>
      {cleaner_name}'s cleaning on <strong>{appointment_date}</strong> has been marked complete.
    </mj-text>

    <mj-text>
      Please review it within <strong>{auto_approval_hours} hours</strong>. After that, the
      cleaning is approved automatically.
    </mj-text>
    """

    return get_base_template(
        title="Your cleaning is ready for review",
        preview_text=f"Review your cleaning on {appointment_date}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/appointments",
        cta_label="Review Cleaning",
    )
