# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Message builders for on-call notifications.
Pure string rendering: subject, HTML body, and SMS text per notify type.
"""

from dataclasses import dataclass
from datetime import datetime
from html import escape

from oncall_rotation.core.clock import localize
from oncall_rotation.core.config import settings
from oncall_rotation.models.domain import NotifyType, ScheduleEntry

DATE_FORMAT = "%m/%d/%Y"
DATETIME_FORMAT = "%A, %m/%d/%Y %I:%M %p %Z"


@dataclass
class Message:
    subject: str
    html: str
    sms: str


def department_label(department: str) -> str:
    return settings.DEPARTMENT_LABELS.get(department, department)


def format_local(value: datetime, tz_name: str) -> str:
    """12-hour wall-clock label with the zone abbreviation, e.g. CST/CDT."""
    return localize(value, tz_name).strftime(DATETIME_FORMAT)


def _team_lines(entry: ScheduleEntry) -> str:
    lines = []
    for dept, person in entry.departments.items():
        contact = f" ({escape(person.email)})" if person.email else ""
        lines.append(
            f"<li><strong>{escape(department_label(dept))}:</strong> "
            f"{escape(person.name or 'Unassigned')}{contact}</li>"
        )
    return "".join(lines)


def build_message(
    entry: ScheduleEntry,
    tz_name: str,
    notify_type: NotifyType,
    already_active: bool = False,
) -> Message:
    """
    UPCOMING renders the weekly reminder; START_TODAY renders the start
    notice, or the "currently on call" notice when the window opened on an
    earlier day.
    """
    week_start = entry.start.strftime(DATE_FORMAT)
    start_label = escape(format_local(entry.start, tz_name))
    end_label = format_local(entry.end, tz_name)
    portal = settings.PUBLIC_PORTAL_URL
    portal_html = (
        f'<p>View the full on-call schedule:<br/><a href="{escape(portal)}">{escape(portal)}</a></p>'
        if portal else ""
    )

    if notify_type == NotifyType.UPCOMING:
        subject = f"REMINDER: ONCALL FOR WEEK STARTING {week_start}"
        heading = "On-Call Reminder"
        intro = (
            "This is a <strong>REMINDER</strong> message. You are scheduled to "
            "provide on-call support during the upcoming week."
        )
        sms = f"Reminder: your on-call week starts {format_local(entry.start, tz_name)}"
    elif already_active:
        subject = f"ONCALL IN PROGRESS - {week_start}"
        heading = "Currently On Call"
        intro = "This is a notification that you are <strong>currently on call</strong>."
        sms = f"You are currently on call until {end_label}"
    else:
        subject = f"ONCALL STARTS TODAY - {week_start}"
        heading = "On-Call Starts Today"
        intro = "This is a notification that your <strong>on-call duty begins today</strong>."
        sms = f"Your on-call duty starts now and ends {end_label}"

    if portal:
        sms = f"{sms}. Schedule: {portal}"

    html = (
        '<div style="font-family: Arial, sans-serif; padding:24px;">'
        f"<h2>{heading}</h2>"
        f"<p>{intro}</p>"
        f"<p><strong>Start:</strong><br/>{start_label}</p>"
        f"<p><strong>End:</strong><br/>{escape(end_label)}</p>"
        f"<ul>{_team_lines(entry)}</ul>"
        f"{portal_html}"
        "</div>"
    )
    return Message(subject=subject, html=html, sms=sms)
