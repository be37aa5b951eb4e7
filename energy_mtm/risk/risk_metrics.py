"""
Risk metrics calculation module.
"""
import logging
from dataclasses import dataclass
from typing import List, Dict, Sequence
import numpy as np

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class SeriesStatistics:
    """Summary statistics of a monthly MtM series."""
    total: float
    average: float
    maximum: float
    minimum: float
    volatility: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'total': self.total,
            'average': self.average,
            'max': self.maximum,
            'min': self.minimum,
            'volatility': self.volatility
        }


class RiskMetrics:
    """Calculate MtM series and portfolio risk metrics."""

    @staticmethod
    def calculate_series_statistics(monthly_values: Sequence[float]) -> SeriesStatistics:
        """
        Calculate total, average, extremes and volatility of a monthly series.

        The average is always taken over 12 months and volatility is the
        population standard deviation around that average.

        Args:
            monthly_values: Monthly MtM values

        Returns:
            SeriesStatistics
        """
        values = np.asarray(monthly_values, dtype=float)

        if values.size == 0:
            return SeriesStatistics(0.0, 0.0, 0.0, 0.0, 0.0)

        total = float(values.sum())
        average = total / MONTHS_PER_YEAR
        volatility = float(np.sqrt(np.sum((values - average) ** 2) / MONTHS_PER_YEAR))

        return SeriesStatistics(
            total=total,
            average=average,
            maximum=float(values.max()),
            minimum=float(values.min()),
            volatility=volatility
        )

    @staticmethod
    def sum_monthly_series(series: List[Sequence[float]]) -> List[float]:
        """
        Sum monthly series elementwise.

        Args:
            series: Monthly series of equal length

        Returns:
            Elementwise totals (12 zeros for no series)
        """
        if not series:
            return [0.0] * MONTHS_PER_YEAR

        totals = np.sum(np.asarray(series, dtype=float), axis=0)
        return [float(v) for v in totals]

    @staticmethod
    def count_losing_months(monthly_values: Sequence[float]) -> int:
        """Number of months with a negative MtM."""
        return int(np.sum(np.asarray(monthly_values, dtype=float) < 0))

    @staticmethod
    def identify_exposure_concentrations(totals_by_contract: Dict[str, float],
                                         threshold: float = 0.25) -> List[Dict]:
        """
        Identify contracts whose absolute MtM exceeds a share of the book.

        Args:
            totals_by_contract: Contract label -> total MtM
            threshold: Concentration threshold (default 25%)

        Returns:
            List of contracts exceeding threshold, largest first
        """
        gross = sum(abs(v) for v in totals_by_contract.values())
        concentrations = []

        for name, total in totals_by_contract.items():
            concentration = (abs(total) / gross) if gross > 0 else 0

            if concentration > threshold:
                concentrations.append({
                    'name': name,
                    'concentration': concentration * 100,
                    'total_mtm': total,
                    'threshold': threshold * 100
                })

        return sorted(concentrations, key=lambda x: x['concentration'], reverse=True)
