"""Best-effort parsing of free-text analysis responses.

The model is asked for three paragraphs (a mood tally, a summary and a
closing sentence carrying the centered score) but nothing guarantees it
complies. Every function here degrades to empty / None instead of raising.
"""

import re
import string

from centered.models.analysis import MoodCount, ParsedAnalysis

_PARAGRAPH_SEP = "\n\n"
_COUNT_RE = re.compile(r"\s*([0-9]+)\s*")


def _paragraphs(raw: object) -> list[str]:
    if not isinstance(raw, str):
        return []
    text = raw.replace("\r\n", "\n").strip()
    if not text:
        return []
    return text.split(_PARAGRAPH_SEP)


def _parse_mood_token(token: str) -> tuple[str, int] | None:
    item = token.strip()
    open_idx = item.rfind("(")
    close_idx = item.rfind(")")
    if open_idx < 0 or close_idx < 0 or open_idx >= close_idx:
        return None
    match = _COUNT_RE.fullmatch(item[open_idx + 1:close_idx])
    if not match:
        return None
    return item[:open_idx].strip(), int(match.group(1))


def parse_mood_counts(raw: object) -> list[MoodCount]:
    """Extract ``Mood(count)`` pairs from the first paragraph, in order of appearance."""
    paragraphs = _paragraphs(raw)
    if not paragraphs:
        return []

    counts: list[MoodCount] = []
    for token in paragraphs[0].split(","):
        parsed = _parse_mood_token(token)
        if parsed is None:
            continue
        mood, count = parsed
        counts.append(MoodCount(mood=mood, count=count, order=len(counts)))
    return counts


def parse_centered_score(raw: object) -> int | None:
    """
    Last two digits found in the last paragraph.

    Digits are collected wherever they appear in the paragraph, so a score
    embedded in prose ("...remains at 82.") is found, but so would be any
    trailing number. Fewer than two digits means no score.
    """
    paragraphs = _paragraphs(raw)
    if not paragraphs:
        return None
    digits = [c for c in paragraphs[-1] if c in string.digits]
    if len(digits) < 2:
        return None
    return int("".join(digits[-2:]))


def parse_summary(raw: object) -> str | None:
    paragraphs = _paragraphs(raw)
    if len(paragraphs) < 2:
        return None
    summary = paragraphs[1].strip()
    return summary or None


def parse_response(raw: object) -> ParsedAnalysis:
    """Structure a raw response. Never raises."""
    return ParsedAnalysis(
        mood_counts=parse_mood_counts(raw),
        centered_score=parse_centered_score(raw),
        summary=parse_summary(raw),
    )
