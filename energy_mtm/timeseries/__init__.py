"""Price curve time-series aggregation."""
from .aggregator import TimeSeriesAggregator, TimeSeriesPoint, TimeSeriesRow, TimeInterval

__all__ = ['TimeSeriesAggregator', 'TimeSeriesPoint', 'TimeSeriesRow', 'TimeInterval']
