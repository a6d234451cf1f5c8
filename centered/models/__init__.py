from .analysis import AnalysisMode, AnalysisRecord, AnalysisRecordSummary, MoodCount, ParsedAnalysis, PeriodStats
from .entry import JournalEntry, JournalEntryCreate, QuestionKind

__all__ = [
    "AnalysisMode", "AnalysisRecord", "AnalysisRecordSummary", "MoodCount", "ParsedAnalysis", "PeriodStats",
    "JournalEntry", "JournalEntryCreate", "QuestionKind",
]
