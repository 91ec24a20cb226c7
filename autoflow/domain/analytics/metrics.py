"""Execution metrics computed from ActivePieces execution logs.

A log is any mapping with ``status`` (success | failure | skipped),
``created_at`` (ISO string or datetime) and an optional ``duration_ms``.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Literal, Mapping

MINUTES_SAVED_PER_EXECUTION = 5
API_CALLS_PER_EXECUTION = 2
COST_PER_API_CALL_USD = 0.0001

Trend = Literal['up', 'down', 'stable']


@dataclass(frozen=True)
class ExecutionMetrics:
    automation_id: str
    automation_name: str
    total_executions: int
    success_count: int
    failure_count: int
    skipped_count: int
    success_rate: float
    avg_execution_time_ms: float
    last_execution_at: datetime
    this_month_executions: int
    this_month_failures: int
    estimated_time_saved_min: int
    estimated_cost_usd: float
    trend: Trend


@dataclass(frozen=True)
class ExecutionSeriesPoint:
    date: date
    executions: int = 0
    successes: int = 0
    failures: int = 0
    avg_duration_s: float = 0.0


def _parse_ts(value: Any) -> datetime | None:
    """Aware UTC timestamp, or None when the value is missing or unparseable."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
    else:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _positive_durations(logs: Iterable[Mapping[str, Any]]) -> list[float]:
    return [d for d in (log.get('duration_ms') or 0 for log in logs) if d > 0]


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def calculate_execution_metrics(
    automation_id: str,
    automation_name: str,
    logs: list[Mapping[str, Any]],
    now: datetime | None = None,
) -> ExecutionMetrics:
    now = now or datetime.now(timezone.utc)
    total = len(logs)
    by_status = defaultdict(int)
    for log in logs:
        by_status[log.get('status')] += 1

    # Unstamped logs still count in the totals but fall in no time window.
    parsed = [(_parse_ts(log.get('created_at')), log) for log in logs]
    stamped = [(ts, log) for ts, log in parsed if ts is not None]
    this_month = [
        log for ts, log in stamped if ts.year == now.year and ts.month == now.month
    ]

    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)
    last_week = sum(1 for ts, _ in stamped if ts >= week_ago)
    previous_week = sum(1 for ts, _ in stamped if two_weeks_ago <= ts < week_ago)

    trend: Trend = 'stable'
    if last_week > previous_week * 1.2:
        trend = 'up'
    elif last_week < previous_week * 0.8:
        trend = 'down'

    return ExecutionMetrics(
        automation_id=automation_id,
        automation_name=automation_name,
        total_executions=total,
        success_count=by_status['success'],
        failure_count=by_status['failure'],
        skipped_count=by_status['skipped'],
        success_rate=(by_status['success'] / total) * 100 if total else 0.0,
        avg_execution_time_ms=_mean(_positive_durations(logs)),
        # Logs arrive newest first.
        last_execution_at=(parsed[0][0] if parsed else None) or now,
        this_month_executions=len(this_month),
        this_month_failures=sum(1 for log in this_month if log.get('status') == 'failure'),
        estimated_time_saved_min=total * MINUTES_SAVED_PER_EXECUTION,
        estimated_cost_usd=total * API_CALLS_PER_EXECUTION * COST_PER_API_CALL_USD,
        trend=trend,
    )


def generate_execution_series(
    logs: list[Mapping[str, Any]],
    now: datetime | None = None,
    days: int = 30,
) -> list[ExecutionSeriesPoint]:
    """Daily buckets for the last ``days`` days, oldest first."""
    today = (now or datetime.now(timezone.utc)).astimezone(timezone.utc).date()
    buckets = [today - timedelta(days=i) for i in reversed(range(days))]
    counts: dict[date, dict[str, int]] = {d: defaultdict(int) for d in buckets}
    durations: dict[date, list[Mapping[str, Any]]] = defaultdict(list)

    for log in logs:
        ts = _parse_ts(log.get('created_at'))
        if ts is None:
            continue
        day = ts.astimezone(timezone.utc).date()
        if day not in counts:
            continue
        counts[day]['executions'] += 1
        if log.get('status') == 'success':
            counts[day]['successes'] += 1
        if log.get('status') == 'failure':
            counts[day]['failures'] += 1
        durations[day].append(log)

    return [
        ExecutionSeriesPoint(
            date=d,
            executions=counts[d]['executions'],
            successes=counts[d]['successes'],
            failures=counts[d]['failures'],
            avg_duration_s=_mean(_positive_durations(durations[d])) / 1000,
        )
        for d in buckets
    ]


def format_metrics(metrics: ExecutionMetrics) -> dict[str, str]:
    arrows = {'up': 'up', 'down': 'down', 'stable': '->'}
    return {
        'success_rate': f'{metrics.success_rate:.1f}%',
        'avg_time': f'{metrics.avg_execution_time_ms / 1000:.2f}s',
        'time_saved': f'{round(metrics.estimated_time_saved_min)} min',
        'cost': f'${metrics.estimated_cost_usd:.4f}',
        'trend': arrows[metrics.trend],
    }


def get_insights(metrics: ExecutionMetrics) -> list[str]:
    insights: list[str] = []

    if metrics.success_rate >= 99:
        insights.append('Highly reliable automation (99%+ success rate)')
    elif metrics.success_rate >= 90:
        insights.append('Good reliability (90%+ success rate)')
    elif metrics.failure_count > 5:
        insights.append('Consider reviewing failures to improve reliability')

    if metrics.trend == 'up':
        insights.append('Usage is increasing - great adoption!')

    if metrics.this_month_executions > 100:
        insights.append('Heavy usage this month - significant time savings')

    if metrics.avg_execution_time_ms > 5000:
        insights.append('Slow execution - consider optimizing')

    if metrics.estimated_time_saved_min > 60:
        insights.append(
            f'This automation has saved you {round(metrics.estimated_time_saved_min)} minutes!'
        )

    return insights or ['Continue monitoring this automation for performance trends']
