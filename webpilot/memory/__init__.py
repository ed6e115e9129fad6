"""Memory module - run recorder, Markdown reports, and the SQLite history store."""

from .recorder import RunRecorder
from .report_generator import RunReportGenerator
from .history_store import HistoryStore

__all__ = [
    "RunRecorder",
    "RunReportGenerator",
    "HistoryStore",
]
