"""Series statistics and exposure metrics."""
from .risk_metrics import RiskMetrics, SeriesStatistics

__all__ = ['RiskMetrics', 'SeriesStatistics']
