"""
Price Curve Manager with caching and fallback curves.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, List, Any
from .store_connection import StoreConnectionManager, StoreError
from ..timeseries.aggregator import TimeSeriesAggregator, TimeSeriesPoint

logger = logging.getLogger(__name__)

# Monthly average prices ($/MWh) used when the price curve store is unavailable
DEFAULT_MARKET_PRICES: Dict[str, List[float]] = {
    'NSW': [85.20, 78.50, 72.30, 69.80, 75.60, 82.40, 89.70, 91.20, 86.50, 79.30, 74.80, 81.60],
    'VIC': [82.10, 76.20, 70.50, 67.90, 73.20, 79.80, 86.30, 88.50, 83.70, 76.80, 72.40, 78.90],
    'QLD': [88.50, 81.70, 75.80, 73.20, 78.90, 85.60, 92.10, 94.30, 89.20, 82.40, 77.60, 84.80],
    'SA': [91.20, 84.60, 78.30, 75.70, 81.50, 88.90, 95.80, 98.20, 92.60, 85.30, 80.10, 87.40],
    'WA': [79.80, 73.50, 67.90, 65.40, 71.20, 77.60, 83.90, 86.10, 81.40, 74.70, 70.20, 76.50],
}

DEFAULT_STATES = ['NSW', 'VIC', 'QLD', 'SA']
DEFAULT_TYPES = ['Energy']
DEFAULT_SCENARIOS = ['Central']


@dataclass(frozen=True)
class PriceCurveQuery:
    """Parameters selecting a monthly price curve snapshot."""
    curve: str = 'Aurora Jan 2025'
    year: int = 2025
    profile: str = 'baseload'
    type: str = 'Energy'

    def to_params(self) -> Dict[str, str]:
        return {'curve': self.curve, 'year': str(self.year),
                'profile': self.profile, 'type': self.type}


@dataclass
class PriceCurveMetadata:
    """Describes a fetched curve and the dimensions available for it."""
    curve: str
    profile: str
    type: str
    year: Any
    available_years: List[int] = field(default_factory=list)
    available_profiles: List[str] = field(default_factory=list)
    available_types: List[str] = field(default_factory=list)
    available_states: List[str] = field(default_factory=list)
    record_count: int = 0

    @classmethod
    def from_dict(cls, data: Dict) -> 'PriceCurveMetadata':
        return cls(
            curve=data.get('curve', ''),
            profile=data.get('profile', ''),
            type=data.get('type', ''),
            year=data.get('year'),
            available_years=list(data.get('availableYears') or []),
            available_profiles=list(data.get('availableProfiles') or []),
            available_types=list(data.get('availableTypes') or []),
            available_states=list(data.get('availableStates') or []),
            record_count=int(data.get('recordCount') or 0)
        )


@dataclass
class PriceCurveOptions:
    """Selectable dimensions of a curve for the time-series viewer."""
    states: List[str] = field(default_factory=lambda: list(DEFAULT_STATES))
    types: List[str] = field(default_factory=lambda: list(DEFAULT_TYPES))
    scenarios: List[str] = field(default_factory=lambda: list(DEFAULT_SCENARIOS))
    years: List[str] = field(default_factory=lambda: ['2025', 'all'])


class PriceCurveCache:
    """Cache for price curve responses with TTL."""

    def __init__(self, ttl: float = 300):
        """
        Initialize cache.

        Args:
            ttl: Time-to-live in seconds
        """
        self.ttl = ttl
        self.cache: Dict[Any, tuple] = {}  # key -> (data, timestamp)

    def get(self, key) -> Optional[Any]:
        """Get cached data if not expired."""
        if key in self.cache:
            data, timestamp = self.cache[key]
            if time.time() - timestamp < self.ttl:
                return data
            else:
                del self.cache[key]
        return None

    def set(self, key, data):
        """Store data in cache."""
        self.cache[key] = (data, time.time())

    def clear(self):
        """Clear all cached data."""
        self.cache.clear()


class PriceCurveManager:
    """Fetches price curves for valuation and price points for aggregation."""

    def __init__(self, connection: StoreConnectionManager, path: str = '/api/price-curves',
                 cache_ttl: float = 300,
                 fallback_prices: Optional[Dict[str, List[float]]] = None):
        """
        Initialize price curve manager.

        Args:
            connection: Store connection manager
            path: Price curve endpoint path
            cache_ttl: Cache time-to-live in seconds
            fallback_prices: Curve used when the store cannot be reached
        """
        self.connection = connection
        self.path = path
        self.cache = PriceCurveCache(ttl=cache_ttl)
        self.fallback_prices = fallback_prices or DEFAULT_MARKET_PRICES
        self.aggregator = TimeSeriesAggregator()

        self.metadata: Optional[PriceCurveMetadata] = None
        self.last_error: Optional[str] = None

    def fetch_price_curve(self, query: PriceCurveQuery) -> Dict[str, List[float]]:
        """
        Fetch the monthly price curve snapshot for a query.

        Falls back to the default curve when the store fails or reports an
        error; the reason is kept in ``last_error``.

        Args:
            query: Curve selection parameters

        Returns:
            Mapping of state to 12 monthly prices
        """
        cached = self.cache.get(query)
        if cached:
            prices, self.metadata = cached
            self.last_error = None
            return prices

        self.last_error = None
        try:
            data = self.connection.get(self.path, params=query.to_params())
        except StoreError as e:
            logger.error(f"Error fetching price curves: {e}")
            return self._fallback('Failed to load price data')

        if not isinstance(data, dict):
            logger.error(f"Malformed price curve response: {type(data).__name__}")
            return self._fallback('Malformed price curve response')

        if not data.get('success'):
            error = data.get('error', 'Unknown error')
            logger.error(f"Failed to fetch price curves: {error}")
            return self._fallback(error)

        try:
            prices = {state: [float(p) for p in values]
                      for state, values in (data.get('marketPrices') or {}).items()}
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"Malformed price curve data: {e}")
            return self._fallback('Malformed price curve data')

        if not prices:
            logger.warning(f"Empty price curve for {query}, using default prices")
            return self._fallback('Empty price curve')

        metadata = data.get('metadata')
        self.metadata = PriceCurveMetadata.from_dict(metadata if isinstance(metadata, dict) else {})
        self.cache.set(query, (prices, self.metadata))
        logger.info(f"Price curve data loaded: {self.metadata.curve} "
                    f"({self.metadata.record_count} records)")
        return prices

    def _fallback(self, error: str) -> Dict[str, List[float]]:
        """Record the failure and hand out a copy of the fallback curve."""
        self.last_error = error
        self.metadata = None
        return {state: list(values) for state, values in self.fallback_prices.items()}

    @property
    def using_fallback(self) -> bool:
        """True when the last fetch fell back to the default curve."""
        return self.last_error is not None

    def fetch_options(self, curve: str) -> PriceCurveOptions:
        """
        Fetch the states, types, scenarios and financial years of a curve.

        Args:
            curve: Curve name

        Returns:
            PriceCurveOptions (defaults where the store omits a dimension)
        """
        options = PriceCurveOptions()
        try:
            data = self.connection.get(self.path, params={'curve': curve})
        except StoreError as e:
            logger.error(f"Error fetching options: {e}")
            return options

        if not isinstance(data, dict):
            logger.error(f"Malformed options response for {curve}")
            return options

        if data.get('success'):
            options.states = data.get('availableStates') or options.states
            options.types = data.get('availableTypes') or options.types
            options.scenarios = data.get('availableScenarios') or options.scenarios
            years = data.get('financialYears')
            if isinstance(years, list) and years:
                options.years = [str(y) for y in years] + ['all']

        return options

    def fetch_price_points(self, view_mode: str, states: List[str], types: List[str],
                           selected_state: str = 'NSW', selected_type: str = 'Energy',
                           year: str = 'all', scenario: str = 'Central',
                           curve: str = 'Aurora Jan 2025 Intervals') -> List[TimeSeriesPoint]:
        """
        Fetch dated price points for the time-series viewer.

        In ``states`` mode one series is fetched per state for the selected
        type; in ``types`` mode one series per type for the selected state.

        Args:
            view_mode: 'states' or 'types'
            states: States to compare (states mode)
            types: Types to compare (types mode)
            selected_state: State held fixed in types mode
            selected_type: Type held fixed in states mode
            year: Financial year or 'all'
            scenario: Scenario name
            curve: Curve name

        Returns:
            Points tagged with their state or type as series identifier
        """
        if view_mode == 'states':
            selections = [(state, {'state': state, 'type': selected_type}) for state in states]
        elif view_mode == 'types':
            selections = [(ptype, {'state': selected_state, 'type': ptype}) for ptype in types]
        else:
            raise ValueError(f"Unknown view mode: {view_mode}")

        series_points: Dict[str, List[Dict]] = {}
        for series, selection in selections:
            params = {**selection, 'year': year, 'scenario': scenario, 'curve': curve}
            logger.debug(f"Fetching data for {series}: {params}")
            try:
                data = self.connection.get(self.path, params=params)
            except StoreError as e:
                logger.error(f"Error fetching price data for {series}: {e}")
                continue

            if not isinstance(data, dict) or not data.get('success'):
                continue
            market_prices = data.get('marketPrices')
            if isinstance(market_prices, dict):
                for records in market_prices.values():
                    if isinstance(records, list):
                        series_points[series] = records

        points = []
        for series, records in series_points.items():
            try:
                points.extend(self.aggregator.points_from_series({series: records}))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.error(f"Skipping malformed price data for {series}: {e}")
        return points

    def clear_cache(self):
        """Drop cached curves."""
        self.cache.clear()
        logger.info("Cleared price curve cache")
