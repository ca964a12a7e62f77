"""HTML email templates for meeting notifications.

Rendering is a pure function of the meeting payload. User-supplied text
is HTML-escaped.
"""

from dataclasses import dataclass
from html import escape
from typing import Optional

from ..models.meeting import LocationType, MeetingLocation, MeetingPayload
from ..utils.date_utils import calculate_duration, format_datetime

INVITE_COLOR = "#4A90E2"
UPDATE_COLOR = "#FF9800"
CANCEL_COLOR = "#F44336"


@dataclass
class MeetingChanges:
    """What changed in an update notification."""

    old_start: Optional[str] = None
    old_end: Optional[str] = None
    old_location: Optional[MeetingLocation] = None

    @property
    def is_empty(self) -> bool:
        return self.old_start is None and self.old_location is None


def _styles(color: str) -> str:
    return f"""
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background: {color}; color: white; padding: 20px; text-align: center; }}
    .content {{ padding: 20px; background: #f9f9f9; }}
    .details {{ background: white; padding: 15px; margin: 10px 0; border-left: 4px solid {color}; }}
    .changes {{ background: #FFF3E0; padding: 15px; margin: 10px 0; border-left: 4px solid {color}; }}
    .button {{ display: inline-block; padding: 12px 24px; background: {color}; color: white; text-decoration: none; border-radius: 4px; margin: 10px 0; }}
    .participants {{ list-style: none; padding: 0; }}
    .participants li {{ padding: 5px 0; }}"""


def _document(color: str, title: str, content: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>{_styles(color)}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>{escape(title)}</h1>
    </div>
    <div class="content">
{content}
    </div>
  </div>
</body>
</html>
"""


def render_location(location: MeetingLocation) -> str:
    """Join link for video, street address for physical, dial-in for phone."""
    if location.type == LocationType.VIDEO:
        if not location.join_url:
            return "      <p><strong>Join via:</strong> Video conference link to follow</p>"
        url = escape(location.join_url, quote=True)
        return (
            f'      <p><strong>Join via:</strong> <a href="{url}">Video Conference</a></p>\n'
            f'      <a href="{url}" class="button">Join Meeting</a>'
        )
    if location.type == LocationType.PHYSICAL:
        return (
            f"      <p><strong>Location:</strong> "
            f"{escape(location.physical_address or 'To be confirmed')}</p>"
        )
    return f"      <p><strong>Dial-in:</strong> {escape(location.dial_in or 'To be confirmed')}</p>"


def _duration(payload: MeetingPayload) -> int:
    return payload.time.duration_minutes or calculate_duration(
        payload.time.start, payload.time.end
    )


def _calendar_link(payload: MeetingPayload, label: str) -> str:
    if payload.calendar and payload.calendar.calendar_html_link:
        href = escape(payload.calendar.calendar_html_link, quote=True)
        return f'      <p><a href="{href}">{label}</a></p>\n'
    return ""


def render_invite_email(payload: MeetingPayload) -> str:
    """HTML body of the initial invitation."""
    organizer = escape(payload.organizer.name)
    participants = "\n".join(
        f"          <li>{escape(p.name)} ({escape(p.email)})</li>"
        for p in payload.participants
    )
    agenda = (
        f"      <p><strong>Agenda:</strong><br>{escape(payload.description)}</p>\n"
        if payload.description
        else ""
    )

    content = f"""      <p>Hi everyone,</p>
      <p>{organizer} has invited you to a meeting.</p>
      <div class="details">
        <h3>Meeting Details</h3>
        <p><strong>When:</strong> {format_datetime(payload.time.start, payload.time.timezone)}</p>
        <p><strong>Duration:</strong> {_duration(payload)} minutes</p>
{render_location(payload.location)}
{agenda}      </div>
      <div class="details">
        <h3>Participants</h3>
        <ul class="participants">
{participants}
        </ul>
      </div>
{_calendar_link(payload, "View in Calendar")}      <p>Looking forward to meeting with you!</p>
      <p>Best regards,<br>{organizer}</p>"""

    return _document(INVITE_COLOR, payload.subject, content)


def render_update_email(payload: MeetingPayload, changes: MeetingChanges) -> str:
    """HTML body of an update notification listing what changed."""
    organizer = escape(payload.organizer.name)
    tz = payload.time.timezone

    items = []
    if changes.old_start:
        items.append(
            f"          <li><strong>Time changed:</strong> From "
            f"{format_datetime(changes.old_start, tz)} to "
            f"{format_datetime(payload.time.start, tz)}</li>"
        )
    if changes.old_location:
        items.append(
            f"          <li><strong>Location changed:</strong> From "
            f"{changes.old_location.type.value} to {payload.location.type.value}</li>"
        )
    changes_list = "\n".join(items)

    content = f"""      <p>Hi everyone,</p>
      <p>{organizer} has updated the meeting: <strong>{escape(payload.subject)}</strong></p>
      <div class="changes">
        <h3>What Changed</h3>
        <ul>
{changes_list}
        </ul>
      </div>
      <div class="details">
        <h3>New Meeting Details</h3>
        <p><strong>When:</strong> {format_datetime(payload.time.start, tz)}</p>
        <p><strong>Duration:</strong> {_duration(payload)} minutes</p>
{render_location(payload.location)}
      </div>
{_calendar_link(payload, "View Updated Event")}      <p>Best regards,<br>{organizer}</p>"""

    return _document(UPDATE_COLOR, "Meeting Updated", content)


def render_cancellation_email(payload: MeetingPayload, reason: Optional[str] = None) -> str:
    """HTML body of a cancellation notice."""
    organizer = escape(payload.organizer.name)
    reason_line = (
        f"        <p><strong>Reason:</strong> {escape(reason)}</p>\n" if reason else ""
    )

    content = f"""      <p>Hi everyone,</p>
      <p>{organizer} has cancelled the meeting: <strong>{escape(payload.subject)}</strong></p>
      <div class="details">
        <h3>Cancelled Meeting Details</h3>
        <p><strong>Was scheduled for:</strong> {format_datetime(payload.time.start, payload.time.timezone)}</p>
{reason_line}      </div>
      <p>This event has been removed from your calendar.</p>
      <p>Best regards,<br>{organizer}</p>"""

    return _document(CANCEL_COLOR, "Meeting Cancelled", content)
