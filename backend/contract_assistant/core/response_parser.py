"""
Parsers for the free-text answers returned by the analysis and chat models.

Model output drifts between numbered, bold and markdown headings, so section
detection goes through a table of heading aliases instead of fixed positions.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from contract_assistant.utils.logger import logger

TIMEOUT_PLACEHOLDER = "Analysis timeout - Partial results"
SUMMARY_NOT_AVAILABLE = "Summary not available"

HEADING_ALIASES: Dict[str, List[str]] = {
    "summary": ["summary", "executive summary", "overview", "one paragraph summary"],
    "risk_score": ["risk score", "overall risk score"],
    "risk_level": ["risk level", "overall risk level"],
    "risk_explanation": ["risk explanation", "risk rationale", "risk assessment", "explanation"],
    "key_terms": ["key terms", "key points", "key point", "main obligations", "key obligations"],
    "issues": ["potential issues", "issues", "main issues", "critical issues", "risks", "concerns"],
    "recommendations": ["recommendations", "recommendation", "suggestions"],
    "important_dates": ["important dates", "key dates", "dates", "deadlines"],
}

# Sections whose bodies are item lists
LIST_SECTIONS = ("key_terms", "issues", "recommendations", "important_dates")

RISK_LEVEL_SCORES = {
    "low": 25,
    "medium": 50,
    "moderate": 50,
    "high": 75,
}

# Longest aliases first so "key points" wins over "key point"
_ALIASES_BY_LENGTH: List[Tuple[str, str]] = sorted(
    ((alias, key) for key, aliases in HEADING_ALIASES.items() for alias in aliases),
    key=lambda pair: len(pair[0]),
    reverse=True
)

_HEADING_PREFIX = re.compile(r'^(?:#{1,6}\s*)?(?P<number>\d+[.)]\s+)?')
_HEADING_TAIL = re.compile(r'\s*(?:\([^)]*\))?\s*(?::|$)')
_BULLET_MARKER = re.compile(r'^(?:[-*•●▪–]+|\d+[.)])\s*')
_PLACEHOLDER_LINE = re.compile(r'^\[[^\]]*\]$')
_SCORE_RANGE_HINT = re.compile(r'\(\s*0\s*-\s*100\s*\)')
_RISK_SCORE_VALUE = re.compile(r'risk\s+score[^\d\n]{0,25}(\d{1,3})', re.IGNORECASE)
_RISK_LEVEL_VALUE = re.compile(r'risk\s+level[^a-z\n]{0,10}(low|medium|moderate|high)', re.IGNORECASE)
_PARAGRAPH_BREAK = re.compile(r'\n\s*\n')


@dataclass
class ChunkAnalysis:
    summary: str = ""
    risk_level: Optional[str] = None
    risk_score: Optional[int] = None
    key_points: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    dates_text: str = ""
    is_placeholder: bool = False


@dataclass
class ParsedAnalysis:
    summary: str = SUMMARY_NOT_AVAILABLE
    risk_score: Optional[int] = None
    risk_explanation: Optional[str] = None
    key_terms: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    important_dates_text: str = ""


def _clamp_score(value: int) -> int:
    return max(0, min(100, value))


def match_heading(line: str, in_list: bool = False) -> Optional[Tuple[str, str]]:
    """
    Check whether a line opens a known section.

    Inside a list section a numbered line carrying text after the colon
    ("2. Risks: unlimited liability") is an item, not a new heading.

    Returns:
        (canonical_heading, text after the colon) or None
    """
    stripped = line.strip()
    if not stripped:
        return None

    prefix = _HEADING_PREFIX.match(stripped)
    numbered = bool(prefix.group("number"))
    candidate = stripped[prefix.end():]
    candidate = candidate.replace("**", "").replace("__", "").strip()
    lowered = candidate.lower()

    for alias, key in _ALIASES_BY_LENGTH:
        if not lowered.startswith(alias):
            continue
        rest = candidate[len(alias):]
        tail = _HEADING_TAIL.match(rest)
        if not tail:
            continue
        inline = rest[tail.end():].strip()
        if numbered and in_list and inline:
            return None
        return key, inline
    return None


def split_sections(text: str) -> Dict[str, str]:
    """
    Split a model answer into its sections.

    Unknown headings stay inside the current section and anything before the
    first recognised heading is kept under "preamble".
    """
    sections: Dict[str, List[str]] = {}
    current = "preamble"

    for line in (text or "").splitlines():
        heading = match_heading(line, in_list=current in LIST_SECTIONS)
        if heading:
            current, rest = heading
            sections.setdefault(current, [])
            if rest:
                sections[current].append(rest)
            continue
        sections.setdefault(current, []).append(line)

    result = {key: "\n".join(lines).strip() for key, lines in sections.items()}
    if not result.get("preamble"):
        result.pop("preamble", None)
    return result


def extract_bullets(body: str) -> List[str]:
    """Turn a section body into a list of items"""
    items = []
    for line in (body or "").splitlines():
        item = _BULLET_MARKER.sub("", line.strip())
        item = item.replace("**", "").strip()
        if not item or _PLACEHOLDER_LINE.match(item):
            continue
        if item not in items:
            items.append(item)
    return items


def extract_risk_score(text: str, default: Optional[int] = None) -> Optional[int]:
    """
    Find the risk score in a model answer.

    Accepts "Risk Score: 75", "75/100" or "75%"; falls back to a risk level
    word (Low/Medium/High) and finally to the default.
    """
    if not text:
        return default

    cleaned = _SCORE_RANGE_HINT.sub("", text)
    score_match = _RISK_SCORE_VALUE.search(cleaned)
    if score_match:
        return _clamp_score(int(score_match.group(1)))

    level_match = _RISK_LEVEL_VALUE.search(cleaned)
    if level_match:
        return RISK_LEVEL_SCORES[level_match.group(1).lower()]

    return default


def parse_chunk_analysis(text: str) -> ChunkAnalysis:
    """Parse a SUMMARY / RISK LEVEL / KEY POINTS / ISSUES / IMPORTANT DATES answer"""
    if not text or not text.strip() or text.strip().startswith(TIMEOUT_PLACEHOLDER):
        return ChunkAnalysis(is_placeholder=True)

    sections = split_sections(text)

    risk_level = None
    level_body = sections.get("risk_level", "")
    if level_body:
        level_word = re.match(r'\W*([A-Za-z]+)', level_body)
        if level_word and level_word.group(1).lower() in RISK_LEVEL_SCORES:
            risk_level = level_word.group(1).title()

    return ChunkAnalysis(
        summary=sections.get("summary") or sections.get("preamble", ""),
        risk_level=risk_level,
        risk_score=extract_risk_score(text),
        key_points=extract_bullets(sections.get("key_terms", "")),
        issues=extract_bullets(sections.get("issues", "")),
        dates_text=sections.get("important_dates", "")
    )


def parse_synthesis(text: str, default_score: Optional[int] = None) -> ParsedAnalysis:
    """
    Parse the contract-level synthesis answer.

    Falls back to the paragraph-position parser when no heading is recognised.
    """
    sections = split_sections(text)
    if not any(key != "preamble" for key in sections):
        logger.warning("No recognised headings in synthesis answer, using paragraph parser")
        return parse_ai_response(text, default_score)

    score_body = sections.get("risk_score")
    risk_score = None
    if score_body:
        number = re.search(r'\d{1,3}', _SCORE_RANGE_HINT.sub("", score_body))
        if number:
            risk_score = _clamp_score(int(number.group(0)))
    if risk_score is None:
        risk_score = extract_risk_score(text, default_score)

    return ParsedAnalysis(
        summary=sections.get("summary") or sections.get("preamble") or SUMMARY_NOT_AVAILABLE,
        risk_score=risk_score,
        risk_explanation=sections.get("risk_explanation") or None,
        key_terms=extract_bullets(sections.get("key_terms", "")),
        issues=extract_bullets(sections.get("issues", "")),
        recommendations=extract_bullets(sections.get("recommendations", "")),
        important_dates_text=sections.get("important_dates", "")
    )


def _strip_label(paragraph: str, key: str) -> str:
    heading = match_heading(paragraph.split("\n", 1)[0])
    if heading and heading[0] == key:
        remainder = paragraph.split("\n", 1)[1] if "\n" in paragraph else ""
        return "\n".join(part for part in (heading[1], remainder) if part).strip()
    return paragraph.strip()


def parse_ai_response(text: str, default_score: Optional[int] = None) -> ParsedAnalysis:
    """
    Legacy paragraph-position parser.

    Paragraph 0 is the summary, 1 the risk score, 2 the key terms,
    3 the issues and 4 the recommendations.
    """
    paragraphs = [p for p in _PARAGRAPH_BREAK.split(text or "") if p.strip()]

    def paragraph(index: int) -> str:
        return paragraphs[index] if len(paragraphs) > index else ""

    risk_score = default_score
    score_match = re.search(r'\d{1,3}', _SCORE_RANGE_HINT.sub("", paragraph(1)))
    if score_match:
        risk_score = _clamp_score(int(score_match.group(0)))

    return ParsedAnalysis(
        summary=_strip_label(paragraph(0), "summary") or SUMMARY_NOT_AVAILABLE,
        risk_score=risk_score,
        key_terms=extract_bullets(_strip_label(paragraph(2), "key_terms")),
        issues=extract_bullets(_strip_label(paragraph(3), "issues")),
        recommendations=extract_bullets(_strip_label(paragraph(4), "recommendations"))
    )


def _context_list(context: str, pattern: str) -> List[str]:
    match = re.search(pattern, context, re.IGNORECASE)
    if not match:
        return []
    body = match.group(1).strip()
    if "\n" in body:
        return extract_bullets(body)
    return [item.strip() for item in body.split(",") if item.strip()]


def parse_chat_context(context: str) -> Dict[str, object]:
    """Pull the analysis fields back out of a free-text chat context"""
    context = context or ""

    summary_match = re.search(r'Summary:\s*([\s\S]*?)(?=Risk Score:|Key Terms:|$)', context, re.IGNORECASE)
    score_match = re.search(r'Risk Score:\s*(\d+)\s*(?:%|/\s*100)?', context, re.IGNORECASE)

    return {
        "summary": summary_match.group(1).strip() if summary_match else "",
        "risk_score": score_match.group(1) if score_match else "0",
        "key_terms": _context_list(context, r'Key Terms:\s*([\s\S]*?)(?=Potential Issues:|Recommendations:|User Question:|$)'),
        "potential_issues": _context_list(context, r'Potential Issues:\s*([\s\S]*?)(?=Recommendations:|User Question:|$)'),
        "recommendations": _context_list(context, r'Recommendations:\s*([\s\S]*?)(?=User Question:|$)')
    }
