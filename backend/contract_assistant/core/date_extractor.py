"""
Important date extraction from contract text.

Finds absolute dates (01/15/2024, 2024-01-15, January 15, 2024, 15 January 2024,
March 2024) and relative periods (within 30 days, after 2 weeks, thirty (30) days
prior to, next month), classifies each one from its sentence and resolves it
to a concrete range for calendar events.
"""

import calendar
import re
from datetime import date, datetime, timedelta
from typing import List, Optional, Pattern, Tuple

from contract_assistant.core.model_config import ANALYSIS_CONFIG
from contract_assistant.schemas import DateType, ImportantDate

MONTH_NAMES = (
    r'(?:January|February|March|April|May|June|July|August|September|October|November|December'
    r'|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sept|Sep|Oct|Nov|Dec)\.?'
)
# "thirty (30)" or plain "30"
QUANTITY = r'(?:[a-z]+(?:-[a-z]+)?\s+\((?P<qty_paren>\d+)\)|(?P<qty>\d+))'
UNIT = r'(?:business\s+|calendar\s+)?(?P<unit>days?|weeks?|months?|years?)'

DATE_PATTERNS: List[Tuple[str, Pattern, DateType]] = [
    ("mdy_slash", re.compile(r'\b(?P<month>\d{1,2})/(?P<day>\d{1,2})/(?P<year>\d{4})\b'), DateType.ABSOLUTE),
    ("iso", re.compile(r'\b(?P<year>\d{4})[-/](?P<month>\d{1,2})[-/](?P<day>\d{1,2})\b'), DateType.ABSOLUTE),
    ("month_day_year", re.compile(
        rf'\b(?P<month_name>{MONTH_NAMES})\s+(?P<day>\d{{1,2}})(?:st|nd|rd|th)?,?\s+(?P<year>\d{{4}})\b',
        re.IGNORECASE), DateType.ABSOLUTE),
    ("day_month_year", re.compile(
        rf'\b(?P<day>\d{{1,2}})(?:st|nd|rd|th)?\s+(?:day\s+of\s+)?(?P<month_name>{MONTH_NAMES}),?\s+(?P<year>\d{{4}})\b',
        re.IGNORECASE), DateType.ABSOLUTE),
    ("month_year", re.compile(rf'\b(?P<month_name>{MONTH_NAMES})\s+(?P<year>\d{{4}})\b', re.IGNORECASE),
     DateType.ABSOLUTE),
    ("within", re.compile(rf'\bwithin\s+{QUANTITY}\s+{UNIT}\b', re.IGNORECASE), DateType.RELATIVE),
    ("after", re.compile(rf'\bafter\s+{QUANTITY}\s+{UNIT}\b', re.IGNORECASE), DateType.RELATIVE),
    ("period", re.compile(
        rf'\b{QUANTITY}\s+{UNIT}\s+(?P<relation>after|before|following|prior\s+to|prior|from)\b',
        re.IGNORECASE), DateType.RELATIVE),
    ("next", re.compile(r'\bnext\s+(?P<unit>week|month|year)\b', re.IGNORECASE), DateType.RELATIVE),
]

# Checked in order, first hit wins
EVENT_KEYWORDS: List[Tuple[str, Pattern]] = [
    ("Payment", re.compile(r'\b(?:payment|pay|invoice|fee|rent|installment)', re.IGNORECASE)),
    ("Deadline", re.compile(r'\b(?:deadline|due\b|no later than)', re.IGNORECASE)),
    ("Renewal", re.compile(r'\b(?:renew|extension|extend)', re.IGNORECASE)),
    ("Termination", re.compile(r'\b(?:terminat|expir|end date|end of the term|ends\b)', re.IGNORECASE)),
    ("Notice Period", re.compile(r'\b(?:notice|notify)', re.IGNORECASE)),
    ("Start Date", re.compile(r'\b(?:effective|commence|start|begin)', re.IGNORECASE)),
    ("Delivery", re.compile(r'\b(?:deliver|shipment|ship)', re.IGNORECASE)),
    ("Review", re.compile(r'\b(?:review|audit|inspect)', re.IGNORECASE)),
]
DEFAULT_EVENT_TYPE = "Key Date"

UNIT_DAYS = {"day": 1, "week": 7, "month": 30, "year": 365}
MAX_CONTEXT_LENGTH = 200
SENTENCE_SEPARATORS = (". ", "! ", "? ", ".\n", "\n\n")

_STANDARD_FORMATS = ("%m/%d/%Y", "%Y/%m/%d", "%Y-%m-%d", "%B %d, %Y", "%b %d, %Y", "%B %Y")


def _month_number(name: str) -> int:
    key = name.rstrip(".").lower()[:3]
    return [m.lower() for m in calendar.month_abbr].index(key)


def _unit_name(unit: str) -> str:
    return unit.lower().rstrip("s")


def _quantity(match: re.Match) -> int:
    return int(match.group("qty_paren") or match.group("qty"))


def _format_absolute(name: str, match: re.Match) -> Optional[str]:
    """Render an absolute match as "January 15, 2024" / "March 2024", None when invalid"""
    groups = match.groupdict()
    try:
        year = int(groups["year"])
        month = _month_number(groups["month_name"]) if groups.get("month_name") else int(groups["month"])
        if name == "month_year":
            return f"{calendar.month_name[month]} {year}"
        parsed = date(year, month, int(groups["day"]))
    except (ValueError, TypeError):
        return None
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def _format_relative(name: str, match: re.Match) -> str:
    if name == "next":
        return f"next {match.group('unit').lower()}"

    amount = _quantity(match)
    unit = _unit_name(match.group("unit"))
    unit_text = unit if amount == 1 else f"{unit}s"
    if name == "period":
        relation = " ".join(match.group("relation").lower().split())
        return f"{amount} {unit_text} {relation}"
    return f"{name} {amount} {unit_text}"


def _sentence_around(text: str, start: int, end: int) -> str:
    left = max(text.rfind(sep, 0, start) for sep in SENTENCE_SEPARATORS)
    left = 0 if left == -1 else left + 2

    rights = [pos for pos in (text.find(sep, end) for sep in SENTENCE_SEPARATORS) if pos != -1]
    right = min(rights) + 1 if rights else len(text)

    sentence = " ".join(text[left:right].split())
    if len(sentence) <= MAX_CONTEXT_LENGTH:
        return sentence

    # Long clause: keep a window around the match
    half = max(0, MAX_CONTEXT_LENGTH - (end - start)) // 2
    window_start = max(left, start - half)
    window_end = min(right, end + half)
    window = " ".join(text[window_start:window_end].split())
    prefix = "..." if window_start > left else ""
    suffix = "..." if window_end < right else ""
    return f"{prefix}{window}{suffix}"


def classify_event_type(context: str) -> str:
    for event_type, pattern in EVENT_KEYWORDS:
        if pattern.search(context):
            return event_type
    return DEFAULT_EVENT_TYPE


def extract_important_dates(text: str, limit: int = ANALYSIS_CONFIG["max_important_dates"]) -> List[ImportantDate]:
    """
    Extract important dates from contract text.

    Args:
        text: Contract text (or the dates section of a model answer)
        limit: Maximum number of dates to return

    Returns:
        Dates in order of appearance, without overlaps or duplicates
    """
    if not text:
        return []

    candidates = []
    for order, (name, pattern, date_type) in enumerate(DATE_PATTERNS):
        for match in pattern.finditer(text):
            candidates.append((match.start(), -(match.end() - match.start()), order, name, match, date_type))
    candidates.sort(key=lambda c: c[:3])

    dates: List[ImportantDate] = []
    seen = set()
    last_end = -1

    for start, _, _, name, match, date_type in candidates:
        if start < last_end:
            continue

        if date_type == DateType.ABSOLUTE:
            formatted = _format_absolute(name, match)
            if formatted is None:
                continue
        else:
            formatted = _format_relative(name, match)
        last_end = match.end()

        context = _sentence_around(text, match.start(), match.end())
        event_type = classify_event_type(context)

        key = (formatted.lower(), event_type)
        if key in seen:
            continue
        seen.add(key)

        dates.append(ImportantDate(
            date=" ".join(match.group(0).split()),
            context=context,
            type=date_type,
            formatted_date=formatted,
            event_type=event_type
        ))
        if len(dates) >= limit:
            break

    return dates


def merge_dates(primary: List[ImportantDate], extra: List[ImportantDate],
                limit: int = ANALYSIS_CONFIG["max_important_dates"]) -> List[ImportantDate]:
    """Append dates from a second source, skipping ones already present"""
    merged = list(primary)
    seen = {(d.formatted_date.lower(), d.event_type) for d in merged}
    for item in extra:
        key = (item.formatted_date.lower(), item.event_type)
        if key not in seen:
            seen.add(key)
            merged.append(item)
    return merged[:limit]


def parse_standard_date(text: str) -> Optional[date]:
    """Parse MM/DD/YYYY, YYYY/MM/DD (or YYYY-MM-DD), Month DD, YYYY and Month YYYY"""
    if not text:
        return None
    cleaned = " ".join(text.replace(".", "").split())
    for fmt in _STANDARD_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def _first_of_next_month(today: date) -> date:
    if today.month == 12:
        return date(today.year + 1, 1, 1)
    return date(today.year, today.month + 1, 1)


def resolve_date_range(important_date: ImportantDate, today: Optional[date] = None) -> Tuple[date, date]:
    """
    Resolve an extracted date to a (start, end) calendar range.

    Dates that cannot be resolved fall back to today.
    """
    today = today or date.today()

    parsed = parse_standard_date(important_date.formatted_date) or parse_standard_date(important_date.date)
    if parsed:
        return parsed, parsed

    if important_date.type != DateType.RELATIVE:
        return today, today

    text = (important_date.formatted_date or important_date.date).lower()

    within = re.search(r'within\s+(\d+)\s+(day|week|month|year)s?', text)
    if within:
        return today, today + timedelta(days=int(within.group(1)) * UNIT_DAYS[within.group(2)])

    after = (re.search(r'after\s+(\d+)\s+(day|week|month|year)s?', text)
             or re.search(r'(\d+)\s+(day|week|month|year)s?\s+(?:after|following|from)', text))
    if after:
        start = today + timedelta(days=int(after.group(1)) * UNIT_DAYS[after.group(2)])
        return start, start

    upcoming = re.search(r'next\s+(week|month|year)', text)
    if upcoming:
        unit = upcoming.group(1)
        if unit == "week":
            start = today + timedelta(days=7)
        elif unit == "month":
            start = _first_of_next_month(today)
        else:
            start = date(today.year + 1, 1, 1)
        return start, start

    return today, today
