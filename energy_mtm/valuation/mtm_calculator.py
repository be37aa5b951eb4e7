"""
Mark-to-market valuation of energy contracts against monthly price curves.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Sequence
from ..data_collection.contract import Contract
from ..risk.risk_metrics import RiskMetrics, MONTHS_PER_YEAR

logger = logging.getLogger(__name__)


class ValuationInputError(ValueError):
    """Raised when valuation inputs are structurally unusable."""


class UnknownVolumeShapeError(ValuationInputError, KeyError):
    """Raised in strict mode when a contract names an unknown volume shape."""


class UnknownStateError(ValuationInputError, KeyError):
    """Raised in strict mode when the price curve has no entry for a state."""


@dataclass
class MtMRecord:
    """Monthly MtM values and summary statistics for one contract."""
    contract_id: str
    contract_name: str
    monthly_mtm: List[float]
    total_mtm: float
    avg_monthly_mtm: float
    max_mtm: float
    min_mtm: float
    volatility: float
    contract: Optional[Contract] = field(default=None, repr=False)

    def to_dict(self) -> Dict:
        return {
            'contract_id': self.contract_id,
            'contract_name': self.contract_name,
            'monthly_mtm': list(self.monthly_mtm),
            'total_mtm': self.total_mtm,
            'avg_monthly_mtm': self.avg_monthly_mtm,
            'max_mtm': self.max_mtm,
            'min_mtm': self.min_mtm,
            'volatility': self.volatility
        }


class MtMCalculator:
    """
    Values contracts against a state-keyed monthly price curve.

    Lookups for a contract's volume shape and state fall back to
    ``default_shape`` and ``default_state`` unless ``strict_lookups`` is set,
    in which case unknown names raise.
    """

    def __init__(self, default_state: str = 'NSW', default_shape: str = 'flat',
                 strict_lookups: bool = False):
        """
        Initialize MtM calculator.

        Args:
            default_state: State whose curve is used for unknown states
            default_shape: Volume shape used for unknown shape names
            strict_lookups: Raise instead of falling back on unknown names
        """
        self.default_state = default_state
        self.default_shape = default_shape
        self.strict_lookups = strict_lookups

    def calculate_mtm(self, contract: Contract, volume_shapes: Dict[str, Sequence[float]],
                      price_curve: Dict[str, Sequence[float]],
                      contract_id: Optional[str] = None) -> MtMRecord:
        """
        Calculate monthly MtM and summary statistics for a contract.

        Retail contracts are valued strike minus market; wholesale and
        offtake contracts market minus strike.

        Args:
            contract: Contract to value
            volume_shapes: Shape name -> 12 monthly percentages of annual volume
            price_curve: State -> 12 monthly market prices
            contract_id: Identifier to report when the contract has none

        Returns:
            MtMRecord
        """
        if contract.annual_volume < 0:
            raise ValuationInputError(
                f"Contract {contract.name} has negative annual volume {contract.annual_volume}"
            )

        shape = self.resolve_volume_shape(contract, volume_shapes)
        prices = self.resolve_price_curve(contract, price_curve)

        monthly_mtm = [
            self.calculate_monthly_mtm(contract, pct, price)
            for pct, price in zip(shape, prices)
        ]
        stats = RiskMetrics.calculate_series_statistics(monthly_mtm)

        return MtMRecord(
            contract_id=contract.identifier() or contract_id or '',
            contract_name=contract.name,
            monthly_mtm=monthly_mtm,
            total_mtm=stats.total,
            avg_monthly_mtm=stats.average,
            max_mtm=stats.maximum,
            min_mtm=stats.minimum,
            volatility=stats.volatility,
            contract=contract
        )

    @staticmethod
    def calculate_monthly_mtm(contract: Contract, volume_pct: float, market_price: float) -> float:
        """
        Calculate one month's MtM.

        Args:
            contract: Contract being valued
            volume_pct: Share of annual volume delivered this month (percent)
            market_price: Market price for the month

        Returns:
            Monthly MtM value
        """
        volume = contract.annual_volume * volume_pct / 100
        strike_value = volume * contract.strike_price
        market_value = volume * market_price

        if contract.is_retail:
            return strike_value - market_value
        return market_value - strike_value

    def resolve_volume_shape(self, contract: Contract,
                             volume_shapes: Dict[str, Sequence[float]]) -> Sequence[float]:
        """Look up the contract's volume shape, applying the fallback policy."""
        shape = volume_shapes.get(contract.volume_shape)

        if shape is None:
            if self.strict_lookups:
                raise UnknownVolumeShapeError(
                    f"Unknown volume shape '{contract.volume_shape}' for contract {contract.name}"
                )
            logger.warning(f"Unknown volume shape '{contract.volume_shape}' for {contract.name}, "
                           f"using '{self.default_shape}'")
            shape = volume_shapes.get(self.default_shape)
            if shape is None:
                raise ValuationInputError(f"Fallback volume shape '{self.default_shape}' is not defined")

        self._check_months(shape, f"volume shape '{contract.volume_shape}'")
        return shape

    def resolve_price_curve(self, contract: Contract,
                            price_curve: Dict[str, Sequence[float]]) -> Sequence[float]:
        """Look up the state's monthly prices, applying the fallback policy."""
        prices = price_curve.get(contract.state)

        if prices is None:
            if self.strict_lookups:
                raise UnknownStateError(
                    f"No price curve for state '{contract.state}' (contract {contract.name})"
                )
            logger.warning(f"No price curve for state '{contract.state}' for {contract.name}, "
                           f"using '{self.default_state}'")
            prices = price_curve.get(self.default_state)
            if prices is None:
                raise ValuationInputError(f"Fallback state '{self.default_state}' has no price curve")

        self._check_months(prices, f"price curve for '{contract.state}'")
        return prices

    @staticmethod
    def _check_months(values: Sequence[float], description: str):
        if len(values) != MONTHS_PER_YEAR:
            raise ValuationInputError(
                f"{description} has {len(values)} entries, expected {MONTHS_PER_YEAR}"
            )
