from datetime import date
from typing import Dict, Optional
from urllib.parse import urlencode

from contract_assistant.core.date_extractor import resolve_date_range
from contract_assistant.schemas import CalendarType, ImportantDate

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"
OUTLOOK_CALENDAR_URL = "https://outlook.live.com/calendar/0/deeplink/compose"

# (keywords, title prefix), checked in order
TITLE_PREFIXES = [
    (("deadline", "due"), "Contract Deadline"),
    (("payment",), "Contract Payment"),
    (("review", "renewal"), "Contract Review"),
    (("delivery",), "Contract Delivery"),
    (("start", "begin"), "Contract Start"),
    (("end", "termination"), "Contract End"),
]


def build_event_title(event_type: str) -> str:
    lowered = (event_type or "").lower()
    for keywords, prefix in TITLE_PREFIXES:
        if any(keyword in lowered for keyword in keywords):
            return f"{prefix}: {event_type}"
    return f"Contract Date: {event_type}"


def build_event_description(date_info: ImportantDate) -> str:
    return (
        f"Important Contract Date\n\n"
        f"{date_info.context}\n\n"
        f"Date Type: {date_info.type.value}\n"
        f"Event Type: {date_info.event_type}"
    )


def build_calendar_link(date_info: ImportantDate, calendar_type: CalendarType = CalendarType.GOOGLE,
                        today: Optional[date] = None) -> Dict[str, str]:
    """
    Build a Google or Outlook "add event" deep link for an extracted date.

    Returns:
        Dictionary with url, title, start_date and end_date (ISO dates)
    """
    start, end = resolve_date_range(date_info, today)
    title = build_event_title(date_info.event_type)
    description = build_event_description(date_info)

    if calendar_type == CalendarType.OUTLOOK:
        params = {
            "subject": title,
            "startdt": f"{start.isoformat()}T00:00:00",
            "enddt": f"{end.isoformat()}T23:59:59",
            "body": description,
            "allday": "true"
        }
        url = f"{OUTLOOK_CALENDAR_URL}?{urlencode(params)}"
    else:
        params = {
            "action": "TEMPLATE",
            "text": title,
            "dates": f"{start:%Y%m%d}/{end:%Y%m%d}",
            "details": description
        }
        url = f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"

    return {
        "url": url,
        "title": title,
        "start_date": start.isoformat(),
        "end_date": end.isoformat()
    }
