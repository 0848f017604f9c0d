"""
Decision engine: window selection, signal aggregation, and umbrella scoring.
"""

from .errors import EmptyWindowNoFallback, ForecastDataError, InvalidPayloadShape
from .payload import LegacyPayload, OneCallPayload, detect_shape, parse_payload
from .windows import ResolvedWindow, TimeWindow, describe_date, resolve_window, window_label
from .dataset import NormalizedSample, WindowSelection, select_window
from .signals import AggregateSignals, aggregate
from .scoring import AdvisoryLevel, ScoreResult, evaluate, level_for, score
from .executor import CheckOutcome, Recommendation, recommend, run_check

__all__ = [
    "EmptyWindowNoFallback",
    "ForecastDataError",
    "InvalidPayloadShape",
    "LegacyPayload",
    "OneCallPayload",
    "detect_shape",
    "parse_payload",
    "ResolvedWindow",
    "TimeWindow",
    "describe_date",
    "resolve_window",
    "window_label",
    "NormalizedSample",
    "WindowSelection",
    "select_window",
    "AggregateSignals",
    "aggregate",
    "AdvisoryLevel",
    "ScoreResult",
    "evaluate",
    "level_for",
    "score",
    "CheckOutcome",
    "Recommendation",
    "recommend",
    "run_check",
]
