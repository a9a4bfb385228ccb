"""Notification Content — subject/message/email body for deadline alerts (pure).

Invariants:
    - Urgency label derived ONLY from days remaining: <=1 URGENT, <=3 Important, else Reminder
    - Subject format: "{urgency}: Deadline in {N} day(s) - {title}"
    - 0 days renders as "today", negative as "overdue"
    - Subjects are single-line (whitespace runs in the title collapse to one space)
"""

from datetime import datetime
from html import escape


def urgency_label(days_remaining: int) -> str:
    if days_remaining <= 1:
        return "URGENT"
    if days_remaining <= 3:
        return "Important"
    return "Reminder"


def _days_phrase(days_remaining: int) -> str:
    if days_remaining < 0:
        return "overdue"
    if days_remaining == 0:
        return "today"
    return f"in {days_remaining} day{'s' if days_remaining != 1 else ''}"


def build_subject(title: str, days_remaining: int) -> str:
    # subjects become mail headers: line breaks from upstream titles collapse to spaces
    title = " ".join(title.split())
    return f"{urgency_label(days_remaining)}: Deadline {_days_phrase(days_remaining)} - {title}"


def build_message(
    title: str, client_name: str | None, deadline: datetime, days_remaining: int,
) -> str:
    who = f" for {client_name}" if client_name else ""
    return (
        f'Matter "{title}"{who} has a deadline {_days_phrase(days_remaining)} '
        f"({deadline.date().isoformat()})."
    )


def build_email_html(
    subject: str, message: str, matter_url: str, days_remaining: int,
) -> str:
    """Minimal HTML body; the same text is sent as the plain-text alternative."""
    color = "#dc2626" if days_remaining <= 1 else "#d97706" if days_remaining <= 3 else "#2563eb"
    return (
        "<html><body style=\"font-family: sans-serif\">"
        f"<h2 style=\"color: {color}\">{escape(subject)}</h2>"
        f"<p>{escape(message)}</p>"
        f"<p><a href=\"{escape(matter_url, quote=True)}\">View matter</a></p>"
        "</body></html>"
    )
