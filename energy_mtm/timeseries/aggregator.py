"""
Time-series aggregation of price curve points into calendar buckets.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Dict, Optional, Iterable, Union
import pandas as pd

logger = logging.getLogger(__name__)

MONTH_LABELS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


class TimeInterval(str, Enum):
    """Bucket granularity for aggregated series."""
    MONTHLY = 'monthly'
    QUARTERLY = 'quarterly'
    YEARLY = 'yearly'

    @property
    def period_freq(self) -> str:
        """pandas Period frequency for this interval."""
        return {'monthly': 'M', 'quarterly': 'Q', 'yearly': 'Y'}[self.value]


def parse_point_date(value: Union[str, datetime, pd.Timestamp]) -> datetime:
    """
    Parse a store date into a naive datetime.

    Timezone-aware values are converted to UTC first.
    """
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    elif isinstance(value, str):
        value = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@dataclass
class TimeSeriesPoint:
    """A raw dated price from the price curve store."""
    date: datetime
    price: float
    series: str
    state: Optional[str] = None
    type: Optional[str] = None
    scenario: Optional[str] = None
    financial_year: Optional[int] = None
    curve: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict, series: str) -> 'TimeSeriesPoint':
        """
        Build a point from a store record.

        Args:
            data: Store record (date, price, state, type, scenario, ...)
            series: Series identifier the caller groups this point under

        Returns:
            TimeSeriesPoint
        """
        return cls(
            date=parse_point_date(data['date']),
            price=float(data['price']),
            series=series,
            state=data.get('state'),
            type=data.get('type'),
            scenario=data.get('scenario'),
            financial_year=data.get('financialYear'),
            curve=data.get('curve')
        )


@dataclass
class TimeSeriesRow:
    """One calendar bucket with an average price per series identifier."""
    label: str
    start: datetime
    values: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Union[str, float]]:
        """Flatten to a chart row: label plus one key per series."""
        return {'period': self.label, **self.values}


def round_price(value: float) -> float:
    """Round to cents with halves rounded up."""
    return math.floor(value * 100 + 0.5) / 100


class TimeSeriesAggregator:
    """Resamples irregular price points onto calendar buckets by averaging."""

    @staticmethod
    def points_from_series(series_points: Dict[str, Iterable[Dict]]) -> List[TimeSeriesPoint]:
        """
        Flatten the store's ``{series: [records]}`` shape into tagged points.

        Args:
            series_points: Mapping of series identifier to raw store records

        Returns:
            List of TimeSeriesPoint
        """
        points = []
        for series, records in series_points.items():
            for record in records:
                points.append(TimeSeriesPoint.from_dict(record, series))
        return points

    def aggregate(self, points: List[TimeSeriesPoint],
                  interval: Union[TimeInterval, str] = TimeInterval.YEARLY) -> List[TimeSeriesRow]:
        """
        Aggregate points into ordered calendar buckets.

        Each row holds the mean price of every series with at least one
        point inside the bucket, rounded to cents. Series without points
        are omitted from the row and rows without any values are dropped.

        Args:
            points: Dated price points tagged with a series identifier
            interval: monthly, quarterly or yearly

        Returns:
            Rows ordered by bucket start
        """
        interval = TimeInterval(interval)

        if not points:
            return []

        df = pd.DataFrame({
            'series': [p.series for p in points],
            'date': pd.to_datetime([p.date for p in points]),
            'price': [p.price for p in points],
        })
        df = df.sort_values(['series', 'date'], kind='stable')

        series_order = list(dict.fromkeys(p.series for p in points))
        min_date = df['date'].min()
        max_date = df['date'].max()

        df['period'] = df['date'].dt.to_period(interval.period_freq)
        means = df.groupby(['period', 'series'])['price'].mean()

        rows = []
        for period in self._buckets(min_date, max_date, interval):
            row = TimeSeriesRow(label=self._label(period, interval),
                                start=period.start_time.to_pydatetime())
            for series in series_order:
                key = (period, series)
                if key in means.index:
                    row.values[series] = round_price(float(means[key]))
            if row.values:
                rows.append(row)

        logger.debug(f"Aggregated {len(points)} points into {len(rows)} {interval.value} rows")
        return rows

    @staticmethod
    def _buckets(min_date: pd.Timestamp, max_date: pd.Timestamp,
                 interval: TimeInterval) -> List[pd.Period]:
        """Generate the ordered buckets covering [min_date, max_date]."""
        freq = interval.period_freq
        periods = pd.period_range(start=min_date.to_period(freq),
                                  end=max_date.to_period(freq), freq=freq)

        if interval is TimeInterval.QUARTERLY:
            # Only quarters whose start date falls inside the range
            return [p for p in periods if min_date <= p.start_time <= max_date]

        return list(periods)

    @staticmethod
    def _label(period: pd.Period, interval: TimeInterval) -> str:
        if interval is TimeInterval.MONTHLY:
            return f"{MONTH_LABELS[period.month - 1]} {period.year}"
        elif interval is TimeInterval.QUARTERLY:
            return f"Q{period.quarter} {period.year}"
        else:
            return str(period.year)

    @staticmethod
    def to_dataframe(rows: List[TimeSeriesRow]) -> pd.DataFrame:
        """
        Convert rows to a DataFrame with one column per series.

        Args:
            rows: Aggregated rows

        Returns:
            DataFrame indexed by period label; missing values are NaN
        """
        if not rows:
            return pd.DataFrame(index=pd.Index([], name='period'))

        df = pd.DataFrame([row.to_dict() for row in rows])
        return df.set_index('period')

    @staticmethod
    def summarize(rows: List[TimeSeriesRow]) -> pd.DataFrame:
        """
        Summarize each series across the aggregated buckets.

        Args:
            rows: Aggregated rows

        Returns:
            DataFrame with mean, min, max and bucket count per series
        """
        df = TimeSeriesAggregator.to_dataframe(rows)
        if df.empty:
            return pd.DataFrame(columns=['Series', 'Mean', 'Min', 'Max', 'Buckets'])

        summary = pd.DataFrame({
            'Series': df.columns,
            'Mean': [round_price(v) for v in df.mean()],
            'Min': df.min().values,
            'Max': df.max().values,
            'Buckets': df.count().values,
        })
        return summary.reset_index(drop=True)
