from .summarizer import ExecutionSummary, KeyMetrics, ExecutionSummarizer, calculate_duration
