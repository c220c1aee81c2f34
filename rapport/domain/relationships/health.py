"""Relationship health metrics.

Computed from the completed, analysed sessions of a trailing window. The
window must be ordered newest first: the trend compares the more recent half
of that list against the older half, and IMPROVING means the recent half
scored higher.
"""
import math
from typing import Optional, Sequence

from rapport.domain.relationships.models import HealthReport, HealthTrend, SessionSummary

DEFAULT_TREND_MIN_SESSIONS = 4
DEFAULT_TREND_THRESHOLD = 5.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _mean(values: Sequence[int]) -> float:
    return sum(values) / len(values)


def score_trend(
    scores: Sequence[int],
    min_sessions: int = DEFAULT_TREND_MIN_SESSIONS,
    threshold: float = DEFAULT_TREND_THRESHOLD,
) -> Optional[HealthTrend]:
    """Trend of scores ordered newest first; None when there are too few to tell."""
    if len(scores) < min_sessions:
        return None
    mid = len(scores) // 2
    recent_mean = _mean(scores[:mid])
    older_mean = _mean(scores[mid:])
    if recent_mean - older_mean > threshold:
        return HealthTrend.IMPROVING
    if older_mean - recent_mean > threshold:
        return HealthTrend.DECLINING
    return HealthTrend.STABLE


def green_card_ratio(window: Sequence[SessionSummary]) -> int:
    """Share of green cards across the window as a rounded percentage."""
    green = sum(s.analysis.green_card_count for s in window)
    total = sum(
        s.analysis.green_card_count + s.analysis.yellow_card_count + s.analysis.red_card_count
        for s in window
    )
    if total == 0:
        return 0
    return round_half_up(green / total * 100)


def compute_health(
    window: Sequence[SessionSummary],
    bank_balance: Optional[int],
    total_session_count: int,
    min_trend_sessions: int = DEFAULT_TREND_MIN_SESSIONS,
    trend_threshold: float = DEFAULT_TREND_THRESHOLD,
) -> HealthReport:
    """Build a HealthReport from windowed sessions (newest first)."""
    analysed = [s for s in window if s.analysis is not None]
    scores = [s.analysis.overall_score for s in analysed]

    return HealthReport(
        health_score=round_half_up(_mean(scores)) if scores else None,
        trend=score_trend(scores, min_trend_sessions, trend_threshold),
        emotional_bank_balance=bank_balance or 0,
        green_card_ratio=green_card_ratio(analysed),
        total_session_count=total_session_count,
        last_session_date=analysed[0].created_at if analysed else None,
    )
