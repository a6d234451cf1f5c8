"""Prompt rendering for periodic journal analyses."""

from collections.abc import Iterable

from centered.models.entry import JournalEntry
from .eligibility import naive_local
from .period import AnalysisMode

SUMMARY_WORD_LIMIT = 200
SCORE_MIN = 60
SCORE_MAX = 100

_TOP_MOODS = {
    AnalysisMode.WEEKLY: ("three", 3),
    AnalysisMode.MONTHLY: ("four", 4),
}

_PERIOD_NOUN = {
    AnalysisMode.WEEKLY: "week",
    AnalysisMode.MONTHLY: "month",
}

SYSTEM_INSTRUCTION = (
    "You are a supportive journaling companion. "
    "Read the person's journal entries and reflect them back with warmth. "
    "Be encouraging and kind, never clinical or judgmental. "
    "Acknowledge difficulties honestly and highlight progress, however small. "
    "Follow the requested output format exactly."
)

PROMPT_TEMPLATE = """Task: Analyze the journal entries below, written over the past {period}.

Journal entries:
{content}

Output exactly three paragraphs separated by a blank line:
1. The top {top_word} moods expressed in the entries with how many entries show each, on a single line in the form Mood(count), Mood(count), ... with at most {top_count} moods and no other text.
2. A summary of the {period} followed by one or two achievable actions for the next {period}, in complete sentences and no more than {word_limit} words.
3. One sentence giving a centered score for the {period}: a whole number between {score_min} and {score_max}, written as the last number of the sentence.

Constraints: Do not label the paragraphs. Do not quote the entries back. Do not mention word limits."""


def join_entries(entries: Iterable[JournalEntry]) -> str:
    """Concatenate entry contents oldest first, separated by blank lines."""
    ordered = sorted(entries, key=lambda e: naive_local(e.created_at))
    return "\n\n".join(e.content.strip() for e in ordered if e.content and e.content.strip())


def build_prompt(mode: AnalysisMode, content: str) -> str:
    """Render the instruction text for ``mode``. No truncation is applied."""
    top_word, top_count = _TOP_MOODS[mode]
    return PROMPT_TEMPLATE.format(
        period=_PERIOD_NOUN[mode],
        content=content,
        top_word=top_word,
        top_count=top_count,
        word_limit=SUMMARY_WORD_LIMIT,
        score_min=SCORE_MIN,
        score_max=SCORE_MAX,
    )
