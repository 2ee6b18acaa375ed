from .logger import LogFeature
from .history import HistoryFeature, default_history_format_function
from .buffer import EventBuffer
from .dump import HistoryDump, HistoryDumpGenerator

__all__ = (
    "LogFeature",
    "HistoryFeature",
    "default_history_format_function",
    "EventBuffer",
    "HistoryDump",
    "HistoryDumpGenerator",
)
