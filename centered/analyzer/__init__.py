from .eligibility import Eligibility, check_eligibility
from .parser import parse_response
from .period import AnalysisMode, ReportingWindow, determine_mode, window_for
from .pipeline import AnalysisOutcome, AnalysisPipeline, AnalysisStatus
from .retry import RetryOrchestrator, RetryPolicy

__all__ = [
    "AnalysisMode", "ReportingWindow", "determine_mode", "window_for",
    "Eligibility", "check_eligibility", "parse_response",
    "RetryOrchestrator", "RetryPolicy",
    "AnalysisPipeline", "AnalysisStatus", "AnalysisOutcome",
]
