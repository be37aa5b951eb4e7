"""
Unit tests for report generation and export.
"""
import json
import os
import tempfile
import unittest
import sys
from datetime import datetime
from pathlib import Path

import pandas as pd

sys.path.insert(0, str(Path(__file__).parent.parent))

from energy_mtm.data_collection.contract import Contract
from energy_mtm.data_collection.price_curve_manager import DEFAULT_MARKET_PRICES
from energy_mtm.utils.settings_store import DEFAULT_VOLUME_SHAPES
from energy_mtm.valuation.portfolio_aggregation import PortfolioAggregator
from energy_mtm.timeseries.aggregator import TimeSeriesAggregator, TimeSeriesPoint
from energy_mtm.output.report_generator import ReportGenerator


class TestReportGenerator(unittest.TestCase):
    """Test report generator."""

    def setUp(self):
        """Set up records and an export directory."""
        self.tmpdir = tempfile.TemporaryDirectory()
        self.generator = ReportGenerator(self.tmpdir.name)

        aggregator = PortfolioAggregator()
        contracts = [
            Contract(name='Alpha Swap', type='wholesale', state='NSW', annual_volume=1200,
                     strike_price=80, doc_id='a'),
            Contract(name='Beta Retail', type='retail', state='VIC', annual_volume=300,
                     strike_price=95, volume_shape='wind', doc_id='b'),
        ]
        self.records = aggregator.calculate_all_mtm(contracts, DEFAULT_MARKET_PRICES,
                                                    DEFAULT_VOLUME_SHAPES)
        self.totals = aggregator.calculate_portfolio_totals(self.records)

        points = [
            TimeSeriesPoint(date=datetime(2025, 7, 1), price=80.0, series='NSW'),
            TimeSeriesPoint(date=datetime(2026, 7, 1), price=90.0, series='NSW'),
        ]
        self.time_series = TimeSeriesAggregator().aggregate(points, 'yearly')

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_portfolio_summary(self):
        """Test summary values are signed currency strings."""
        summary = self.generator.generate_portfolio_summary(self.totals, len(self.records))
        values = dict(zip(summary['Metric'], summary['Value']))

        self.assertTrue(values['Total Annual MtM'].startswith(('+$', '-$')))
        self.assertEqual(values['Number of Contracts'], 2)

    def test_monthly_detail(self):
        """Test monthly detail has a row per month and a portfolio column."""
        detail = self.generator.generate_monthly_detail(self.records, self.totals)

        self.assertEqual(len(detail), 12)
        self.assertEqual(list(detail.columns), ['Month', 'Alpha Swap', 'Beta Retail', 'Portfolio'])

    def test_full_report_sections(self):
        """Test the full report includes price curve sections when given."""
        report = self.generator.generate_full_report(self.records, self.totals, self.time_series)

        for section in ('Portfolio Summary', 'Contract Summary', 'Monthly MtM',
                        'Price Curves', 'Price Curve Summary'):
            self.assertIn(section, report)
        self.assertEqual(list(report['Price Curves']['Period']), ['2025', '2026'])

    def test_concentration_report(self):
        """Test a dominant contract is flagged."""
        df = self.generator.generate_concentration_report(self.records, threshold=0.25)

        self.assertIsInstance(df, pd.DataFrame)
        self.assertGreaterEqual(len(df), 1)

    def test_concentration_report_keeps_same_named_contracts(self):
        """Test contracts sharing a name are reported separately."""
        aggregator = PortfolioAggregator()
        book = [
            Contract(name='Swap', type='wholesale', state='NSW', annual_volume=1200,
                     strike_price=80, doc_id='a'),
            Contract(name='Swap', type='retail', state='NSW', annual_volume=1200,
                     strike_price=80, doc_id='b'),
            Contract(name='Portfolio', type='offtake', state='QLD', annual_volume=0,
                     strike_price=60, doc_id='c'),
        ]
        records = aggregator.calculate_all_mtm(book, DEFAULT_MARKET_PRICES, DEFAULT_VOLUME_SHAPES)

        df = self.generator.generate_concentration_report(records, threshold=0.25)

        self.assertEqual(list(df['Contract']), ['Swap (a)', 'Swap (b)'])
        self.assertEqual(list(df['Share of Gross MtM']), ['50.0%', '50.0%'])

    def test_export_time_series(self):
        """Test time series export writes CSV and JSON."""
        saved = self.generator.export_time_series(self.time_series, 'prices')

        self.assertTrue(os.path.exists(saved['csv']))
        with open(saved['json']) as f:
            data = json.load(f)
        self.assertEqual(data['rows'][0], {'period': '2025', 'NSW': 80.0})

    def test_save_full_report(self):
        """Test the full report is saved as Excel and CSV."""
        report = self.generator.generate_full_report(self.records, self.totals)
        saved = self.generator.save_full_report(report, 'mtm')

        self.assertTrue(os.path.exists(saved['excel']))
        self.assertEqual(len(saved['csv']), len(report))


if __name__ == '__main__':
    unittest.main()
