# g2history/calendar.py
"""Render an upcoming match as a one-event iCalendar document."""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, List, Mapping, Optional

from .errors import InvalidDate

EVENT_DURATION = timedelta(hours=1)
PRODID = "-//G2 History API//Upcoming Matches//ES"
UID_DOMAIN = "g2historyapi"

# Liquipedia-style text dates, e.g. "June 14, 2025 - 17:00 CEST"
_TEXT_FORMATS = (
    "%B %d, %Y - %H:%M",
    "%b %d, %Y - %H:%M",
    "%B %d, %Y %H:%M",
    "%Y-%m-%d %H:%M",
)
_ZONE_OFFSETS = {
    "UTC": 0,
    "GMT": 0,
    "WET": 0,
    "WEST": 1,
    "CET": 1,
    "CEST": 2,
    "EET": 2,
    "EEST": 3,
    "KST": 9,
    "PST": -8,
    "PDT": -7,
    "EST": -5,
    "EDT": -4,
}


def parse_match_date(raw: Optional[str]) -> datetime:
    """
    Parse a stored match date into an aware UTC datetime.

    Naive values are taken as UTC.

    Raises:
        InvalidDate: when no supported format matches
    """
    text = re.sub(r"\s+", " ", str(raw or "")).strip()
    if not text:
        raise InvalidDate(f"Empty match date: {raw!r}")

    iso = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        moment = datetime.fromisoformat(iso)
    except ValueError:
        moment = None

    if moment is None:
        offset_hours = 0
        zone = re.search(r"\s([A-Z]{2,5})$", text)
        if zone and zone.group(1) in _ZONE_OFFSETS:
            offset_hours = _ZONE_OFFSETS[zone.group(1)]
            text = text[: zone.start()].strip()
        for fmt in _TEXT_FORMATS:
            try:
                moment = datetime.strptime(text, fmt).replace(tzinfo=timezone(timedelta(hours=offset_hours)))
                break
            except ValueError:
                continue

    if moment is None:
        raise InvalidDate(f"Unparseable match date: {raw!r}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _escape(value: Any) -> str:
    text = str(value)
    text = text.replace("\\", "\\\\").replace(";", "\\;").replace(",", "\\,")
    return text.replace("\r\n", "\\n").replace("\n", "\\n")


def _fold(line: str) -> List[str]:
    """Split content lines longer than 75 octets (RFC 5545 section 3.1)."""
    encoded = line.encode("utf-8")
    if len(encoded) <= 75:
        return [line]
    parts: List[str] = []
    current = ""
    for char in line:
        if len((current + char).encode("utf-8")) > 75:
            parts.append(current)
            current = " " + char
        else:
            current += char
    parts.append(current)
    return parts


def _stamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def event_summary(match: Mapping[str, Any]) -> str:
    summary = f"{match.get('team1') or 'TBD'} vs {match.get('team2') or 'TBD'}"
    if match.get("bo"):
        summary += f" ({match['bo']})"
    return summary


def event_description(match: Mapping[str, Any]) -> str:
    lines = []
    if match.get("tournament_name"):
        lines.append(f"Torneo: {match['tournament_name']}")
    if match.get("streams_twitch"):
        lines.append(f"Twitch: {match['streams_twitch']}")
    if match.get("streams_youtube"):
        lines.append(f"YouTube: {match['streams_youtube']}")
    return "\n".join(lines)


def build_ics(match: Mapping[str, Any], now: Optional[datetime] = None) -> str:
    """
    Build a VCALENDAR with one VEVENT spanning one hour from the match start.

    Raises:
        InvalidDate: when the match date cannot be parsed
    """
    start = parse_match_date(match.get("date"))
    end = start + EVENT_DURATION
    stamp = now or datetime.now(timezone.utc)

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{match.get('id')}@{UID_DOMAIN}",
        f"DTSTAMP:{_stamp(stamp)}",
        f"DTSTART:{_stamp(start)}",
        f"DTEND:{_stamp(end)}",
        f"SUMMARY:{_escape(event_summary(match))}",
    ]
    description = event_description(match)
    if description:
        lines.append(f"DESCRIPTION:{_escape(description)}")
    if match.get("tournament_name"):
        lines.append(f"LOCATION:{_escape(match['tournament_name'])}")
    url = match.get("tournament_url") or match.get("streams_twitch")
    if url:
        lines.append(f"URL:{url}")
    lines.extend(["END:VEVENT", "END:VCALENDAR"])

    folded: List[str] = []
    for line in lines:
        folded.extend(_fold(line))
    return "\r\n".join(folded) + "\r\n"


def calendar_filename(match: Mapping[str, Any]) -> str:
    return f"{re.sub(r'[^A-Za-z0-9_-]+', '-', str(match.get('id') or 'match'))}.ics"
