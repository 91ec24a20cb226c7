from .metrics import (
    ExecutionMetrics,
    ExecutionSeriesPoint,
    calculate_execution_metrics,
    generate_execution_series,
    format_metrics,
    get_insights,
)
