"""
Portfolio aggregation, ranking and recalculation of MtM records.
"""
import logging
from collections import Counter
from dataclasses import dataclass
from typing import List, Dict, Optional, Sequence, Tuple
import pandas as pd
from .mtm_calculator import MtMCalculator, MtMRecord
from ..data_collection.contract import Contract
from ..risk.risk_metrics import RiskMetrics
from ..timeseries.aggregator import MONTH_LABELS

logger = logging.getLogger(__name__)

SORT_KEYS = {
    'name': None,
    'totalMtM': 'total_mtm',
    'avgMtM': 'avg_monthly_mtm',
    'volatility': 'volatility',
}


@dataclass
class PortfolioTotals:
    """Elementwise monthly totals across contracts and their statistics."""
    monthly_totals: List[float]
    total_mtm: float
    avg_monthly_mtm: float
    max_mtm: float
    min_mtm: float
    volatility: float


class PortfolioAggregator:
    """Values a contract book and aggregates it into portfolio views."""

    def __init__(self, calculator: Optional[MtMCalculator] = None):
        """
        Initialize portfolio aggregator.

        Args:
            calculator: MtM calculator (lenient NSW/flat fallbacks by default)
        """
        self.calculator = calculator or MtMCalculator()

    def calculate_all_mtm(self, contracts: List[Contract],
                          price_curve: Dict[str, Sequence[float]],
                          volume_shapes: Dict[str, Sequence[float]]) -> List[MtMRecord]:
        """
        Calculate MtM records for every contract.

        Contracts without a store identifier are reported under their
        position in the list.

        Args:
            contracts: Contract book
            price_curve: State -> 12 monthly market prices
            volume_shapes: Shape name -> 12 monthly percentages

        Returns:
            List of MtMRecord in contract order
        """
        records = [
            self.calculator.calculate_mtm(contract, volume_shapes, price_curve,
                                          contract_id=str(index))
            for index, contract in enumerate(contracts)
        ]
        logger.debug(f"Calculated MtM for {len(records)} contracts")
        return records

    @staticmethod
    def calculate_portfolio_totals(records: List[MtMRecord]) -> PortfolioTotals:
        """
        Sum monthly MtM across records and compute portfolio statistics.

        Args:
            records: MtM records

        Returns:
            PortfolioTotals
        """
        monthly_totals = RiskMetrics.sum_monthly_series([r.monthly_mtm for r in records])
        stats = RiskMetrics.calculate_series_statistics(monthly_totals)

        return PortfolioTotals(
            monthly_totals=monthly_totals,
            total_mtm=stats.total,
            avg_monthly_mtm=stats.average,
            max_mtm=stats.maximum,
            min_mtm=stats.minimum,
            volatility=stats.volatility
        )

    @staticmethod
    def sort_records(records: List[MtMRecord], sort_by: str = 'totalMtM',
                     direction: str = 'desc') -> List[MtMRecord]:
        """
        Order records by name, total, average or volatility.

        Names compare case-insensitively; ties keep their original order.

        Args:
            records: MtM records
            sort_by: 'name', 'totalMtM', 'avgMtM' or 'volatility'
            direction: 'asc' or 'desc'

        Returns:
            New sorted list
        """
        if sort_by not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {sort_by}")
        if direction not in ('asc', 'desc'):
            raise ValueError(f"Unknown sort direction: {direction}")

        attr = SORT_KEYS[sort_by]
        if attr is None:
            key = lambda r: r.contract_name.casefold()
        else:
            key = lambda r: getattr(r, attr)

        return sorted(records, key=key, reverse=(direction == 'desc'))

    @staticmethod
    def find_record(records: List[MtMRecord], contract: Contract) -> Optional[MtMRecord]:
        """
        Find the record for a contract (individual view).

        Args:
            records: MtM records
            contract: Contract to look up by document or numeric id

        Returns:
            Matching record or None
        """
        for record in records:
            source = record.contract
            if source is None:
                continue
            if contract.doc_id and source.doc_id == contract.doc_id:
                return record
            if contract.id is not None and source.id == contract.id:
                return record
        return None

    @staticmethod
    def select_records(records: List[MtMRecord], contract_ids: List[str]) -> List[MtMRecord]:
        """
        Records for a comparison selection, in selection order.

        Args:
            records: MtM records
            contract_ids: Selected contract identifiers

        Returns:
            Records for the known identifiers
        """
        by_id = {record.contract_id: record for record in records}
        return [by_id[cid] for cid in contract_ids if cid in by_id]

    @staticmethod
    def toggle_selection(selected_ids: List[str], contract_id: str) -> List[str]:
        """Add or remove a contract from a comparison selection."""
        if contract_id in selected_ids:
            return [cid for cid in selected_ids if cid != contract_id]
        return [*selected_ids, contract_id]

    def create_mtm_summary_df(self, records: List[MtMRecord]) -> pd.DataFrame:
        """
        Create MtM summary DataFrame.

        Args:
            records: MtM records

        Returns:
            DataFrame with one row per contract
        """
        rows = []

        for record in records:
            contract = record.contract
            rows.append({
                'Contract': record.contract_name,
                'Type': contract.type if contract else '',
                'State': contract.state if contract else '',
                'Total MtM': record.total_mtm,
                'Avg Monthly MtM': record.avg_monthly_mtm,
                'Best Month': record.max_mtm,
                'Worst Month': record.min_mtm,
                'Volatility': record.volatility,
                'Losing Months': RiskMetrics.count_losing_months(record.monthly_mtm)
            })

        return pd.DataFrame(rows, columns=['Contract', 'Type', 'State', 'Total MtM',
                                           'Avg Monthly MtM', 'Best Month', 'Worst Month',
                                           'Volatility', 'Losing Months'])

    @staticmethod
    def record_labels(records: List[MtMRecord], reserved: Sequence[str] = ()) -> List[str]:
        """
        Build one distinct display label per record.

        Names shared by several records, or equal to a reserved label, are
        suffixed with the contract id.

        Args:
            records: MtM records
            reserved: Labels already taken by other columns

        Returns:
            Labels in record order
        """
        counts = Counter(record.contract_name for record in records)
        taken = set(reserved)
        labels = []

        for i, record in enumerate(records):
            label = record.contract_name
            if counts[label] > 1 or label in taken:
                label = f"{label} ({record.contract_id})"
            if label in taken:
                label = f"{label} #{i + 1}"
            taken.add(label)
            labels.append(label)

        return labels

    def create_monthly_df(self, records: List[MtMRecord],
                          totals: Optional[PortfolioTotals] = None) -> pd.DataFrame:
        """
        Create monthly MtM DataFrame with one column per contract.

        Args:
            records: MtM records
            totals: Portfolio totals to append as a 'Portfolio' column

        Returns:
            DataFrame indexed by month label
        """
        labels = self.record_labels(records, reserved=('Portfolio',) if totals is not None else ())
        data = {label: record.monthly_mtm for label, record in zip(labels, records)}
        if totals is not None:
            data['Portfolio'] = totals.monthly_totals

        df = pd.DataFrame(data, index=MONTH_LABELS)
        df.index.name = 'Month'
        return df


class MtMRecalculator:
    """
    Recomputes MtM records only when an input changes identity.

    Callers replace the contract list, price curve or volume shape table
    with new objects on every mutation and call ``recalculate`` afterwards.
    """

    def __init__(self, aggregator: Optional[PortfolioAggregator] = None):
        self.aggregator = aggregator or PortfolioAggregator()
        self._inputs: Optional[Tuple] = None
        self.records: List[MtMRecord] = []
        self.totals: Optional[PortfolioTotals] = None
        self.recalculation_count = 0

    def recalculate(self, contracts: List[Contract], price_curve: Dict[str, Sequence[float]],
                    volume_shapes: Dict[str, Sequence[float]]) -> List[MtMRecord]:
        """
        Return MtM records for the inputs, recomputing if any input changed.

        Args:
            contracts: Contract book
            price_curve: State -> 12 monthly market prices
            volume_shapes: Shape name -> 12 monthly percentages

        Returns:
            List of MtMRecord
        """
        if self._inputs is not None and all(
                new is old for new, old in zip((contracts, price_curve, volume_shapes), self._inputs)):
            return self.records

        self.records = self.aggregator.calculate_all_mtm(contracts, price_curve, volume_shapes)
        self.totals = self.aggregator.calculate_portfolio_totals(self.records)
        # Hold references so identities are not recycled
        self._inputs = (contracts, price_curve, volume_shapes)
        self.recalculation_count += 1
        logger.debug(f"Recalculated MtM ({self.recalculation_count})")
        return self.records

    def invalidate(self):
        """Force the next call to recompute."""
        self._inputs = None
