"""
Main execution flow for the energy contract MtM dashboard backend.
"""
import logging
from typing import Dict, List, Optional

from .utils.config_loader import load_config, get_setting, setup_logging
from .utils.settings_store import SettingsStore
from .data_collection import (StoreConnectionManager, ContractStore, ContractTracker,
                              PriceCurveManager, PriceCurveQuery)
from .valuation import MtMCalculator, PortfolioAggregator, MtMRecalculator
from .timeseries import TimeSeriesAggregator, TimeSeriesRow
from .output import ReportGenerator

logger = logging.getLogger(__name__)


class ContractDashboard:
    """Main application class for contract valuation and price curve analysis."""

    def __init__(self, config_path: str = 'config/config.yaml', config: Optional[Dict] = None):
        """
        Initialize dashboard.

        Args:
            config_path: Path to configuration file
            config: Configuration dictionary (overrides config_path)
        """
        self.config = config if config is not None else load_config(config_path)

        self.connection = None
        self.contract_tracker = None
        self.price_curve_manager = None
        self.settings_store = None
        self.recalculator = None
        self.time_series_aggregator = None
        self.report_generator = None

        self.price_curve: Dict[str, List[float]] = {}
        self.time_series: List[TimeSeriesRow] = []

    def initialize(self):
        """Initialize all components."""
        logger.info("Initializing contract dashboard")

        self.connection = StoreConnectionManager(
            base_url=get_setting(self.config, 'api.base_url', 'http://localhost:3000'),
            timeout=get_setting(self.config, 'api.timeout', 10.0),
            retry_attempts=get_setting(self.config, 'api.retry_attempts', 3),
            retry_delay=get_setting(self.config, 'api.retry_delay', 0.5)
        )

        self.contract_tracker = ContractTracker(ContractStore(self.connection))

        self.price_curve_manager = PriceCurveManager(
            self.connection,
            cache_ttl=get_setting(self.config, 'price_curve.cache_ttl', 300)
        )

        self.settings_store = SettingsStore(
            get_setting(self.config, 'settings.path', 'data/settings.yaml')
        )
        self.settings_store.load()

        calculator = MtMCalculator(
            default_state=get_setting(self.config, 'valuation.default_state', 'NSW'),
            default_shape=get_setting(self.config, 'valuation.default_shape', 'flat'),
            strict_lookups=get_setting(self.config, 'valuation.strict_lookups', False)
        )
        self.recalculator = MtMRecalculator(PortfolioAggregator(calculator))
        self.time_series_aggregator = TimeSeriesAggregator()

        self.report_generator = ReportGenerator(
            get_setting(self.config, 'reporting.export_path', 'data/reports/')
        )

        logger.info("Initialization complete")

    def price_curve_query(self) -> PriceCurveQuery:
        """Build the curve query from configuration."""
        return PriceCurveQuery(
            curve=get_setting(self.config, 'price_curve.curve', 'Aurora Jan 2025'),
            year=get_setting(self.config, 'price_curve.year', 2025),
            profile=get_setting(self.config, 'price_curve.profile', 'baseload'),
            type=get_setting(self.config, 'price_curve.type', 'Energy')
        )

    def load_contracts(self):
        """Load the contract book."""
        logger.info("Loading contracts")
        return self.contract_tracker.load_contracts()

    def load_price_curve(self):
        """Load the price curve snapshot used for valuation."""
        self.price_curve = self.price_curve_manager.fetch_price_curve(self.price_curve_query())
        if self.price_curve_manager.using_fallback:
            logger.warning(f"{self.price_curve_manager.last_error} (using fallback data)")
        return self.price_curve

    def load_time_series(self):
        """Fetch and aggregate price points for the configured view."""
        ts_config = get_setting(self.config, 'time_series', {}) or {}
        curve = ts_config.get('curve', 'Aurora Jan 2025 Intervals')

        options = self.price_curve_manager.fetch_options(curve)
        points = self.price_curve_manager.fetch_price_points(
            view_mode=ts_config.get('view_mode', 'states'),
            states=options.states,
            types=options.types,
            selected_state=ts_config.get('state', 'NSW'),
            selected_type=ts_config.get('type', 'Energy'),
            year=str(ts_config.get('year', 'all')),
            scenario=ts_config.get('scenario', 'Central'),
            curve=curve
        )

        self.time_series = self.time_series_aggregator.aggregate(
            points, ts_config.get('interval', 'yearly')
        )
        logger.info(f"Aggregated {len(points)} price points into {len(self.time_series)} rows")
        return self.time_series

    def recalculate(self):
        """Recompute MtM records for the current inputs."""
        return self.recalculator.recalculate(
            self.contract_tracker.contracts,
            self.price_curve,
            self.settings_store.volume_shapes
        )

    def generate_report(self):
        """Generate, print and save the MtM report."""
        logger.info("Generating MtM report")

        records = self.recalculate()
        report = self.report_generator.generate_full_report(
            records,
            self.recalculator.totals,
            self.time_series,
            concentration_threshold=get_setting(self.config, 'reporting.concentration_threshold', 0.25)
        )

        self.report_generator.print_report(report)

        saved_files = self.report_generator.save_full_report(report)
        if self.time_series:
            saved_files['time_series'] = self.report_generator.export_time_series(
                self.time_series, 'price_curve_time_series'
            )
        logger.info(f"Report saved to: {saved_files}")

        return report

    def run_once(self):
        """Run the full load, value and report cycle once."""
        logger.info("=== RUNNING MTM ANALYSIS ===")

        self.initialize()

        try:
            self.load_contracts()
            self.load_price_curve()
            if get_setting(self.config, 'time_series.enabled', True):
                self.load_time_series()
            return self.generate_report()
        finally:
            self.connection.close()


def main():
    """Main entry point."""
    config = load_config()
    setup_logging(log_level=get_setting(config, 'logging.level', 'INFO'),
                  log_file=get_setting(config, 'logging.file', 'logs/energy_mtm.log'))

    logger.info("="*80)
    logger.info("ENERGY CONTRACT MTM")
    logger.info("="*80)

    dashboard = ContractDashboard(config=config)
    dashboard.run_once()


if __name__ == "__main__":
    main()
