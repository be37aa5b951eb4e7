"""
Report generation and export for MtM and price curve analysis.
"""
import logging
import json
import pandas as pd
from typing import Dict, List, Optional
from datetime import datetime
import os
from ..valuation.mtm_calculator import MtMRecord
from ..valuation.portfolio_aggregation import PortfolioAggregator, PortfolioTotals
from ..timeseries.aggregator import TimeSeriesAggregator, TimeSeriesRow
from ..risk.risk_metrics import RiskMetrics

logger = logging.getLogger(__name__)


class ReportGenerator:
    """Generate MtM and price curve reports."""

    def __init__(self, export_path: str = 'data/reports/'):
        """
        Initialize report generator.

        Args:
            export_path: Path to export reports
        """
        self.export_path = export_path
        self.aggregator = PortfolioAggregator()
        os.makedirs(export_path, exist_ok=True)

    def generate_portfolio_summary(self, totals: PortfolioTotals, num_contracts: int) -> pd.DataFrame:
        """
        Generate portfolio summary.

        Args:
            totals: Portfolio totals
            num_contracts: Number of contracts valued

        Returns:
            DataFrame of metric/value pairs
        """
        summary_data = [
            {'Metric': 'Total Annual MtM', 'Value': f"{self._signed(totals.total_mtm)}"},
            {'Metric': 'Avg Monthly MtM', 'Value': f"{self._signed(totals.avg_monthly_mtm)}"},
            {'Metric': 'Best Month', 'Value': f"{self._signed(totals.max_mtm)}"},
            {'Metric': 'Worst Month', 'Value': f"{self._signed(totals.min_mtm)}"},
            {'Metric': 'Volatility', 'Value': f"${totals.volatility:,.2f}"},
            {'Metric': 'Number of Contracts', 'Value': num_contracts},
        ]
        return pd.DataFrame(summary_data)

    def generate_contract_summary(self, records: List[MtMRecord]) -> pd.DataFrame:
        """
        Generate per-contract MtM summary, ordered by total MtM.

        Args:
            records: MtM records

        Returns:
            DataFrame with formatted values
        """
        ordered = self.aggregator.sort_records(records, 'totalMtM', 'desc')
        df = self.aggregator.create_mtm_summary_df(ordered)

        for column in ('Total MtM', 'Avg Monthly MtM', 'Best Month', 'Worst Month'):
            df[column] = df[column].map(self._signed)
        df['Volatility'] = df['Volatility'].map(lambda v: f"${v:,.2f}")

        return df

    def generate_monthly_detail(self, records: List[MtMRecord],
                                totals: PortfolioTotals) -> pd.DataFrame:
        """
        Generate monthly MtM detail with a portfolio column.

        Args:
            records: MtM records
            totals: Portfolio totals

        Returns:
            DataFrame with one row per month
        """
        df = self.aggregator.create_monthly_df(records, totals)
        return df.round(2).reset_index()

    def generate_concentration_report(self, records: List[MtMRecord],
                                      threshold: float = 0.25) -> pd.DataFrame:
        """
        Generate report of contracts dominating the book's gross MtM.

        Args:
            records: MtM records
            threshold: Share of gross MtM above which a contract is listed

        Returns:
            DataFrame of concentrated contracts
        """
        labels = self.aggregator.record_labels(records)
        totals = {label: record.total_mtm for label, record in zip(labels, records)}
        concentrations = RiskMetrics.identify_exposure_concentrations(totals, threshold)

        rows = [{
            'Contract': item['name'],
            'Share of Gross MtM': f"{item['concentration']:.1f}%",
            'Total MtM': self._signed(item['total_mtm']),
        } for item in concentrations]

        return pd.DataFrame(rows, columns=['Contract', 'Share of Gross MtM', 'Total MtM'])

    def generate_time_series_table(self, rows: List[TimeSeriesRow]) -> pd.DataFrame:
        """
        Generate the aggregated price table.

        Args:
            rows: Aggregated time-series rows

        Returns:
            DataFrame with a Period column and one column per series
        """
        df = TimeSeriesAggregator.to_dataframe(rows)
        return df.reset_index().rename(columns={'period': 'Period'})

    @staticmethod
    def _signed(value: float) -> str:
        sign = '+' if value >= 0 else '-'
        return f"{sign}${abs(value):,.2f}"

    def export_to_csv(self, df: pd.DataFrame, filename: str):
        """
        Export DataFrame to CSV.

        Args:
            df: DataFrame to export
            filename: Output filename
        """
        try:
            filepath = os.path.join(self.export_path, filename)
            df.to_csv(filepath, index=False)
            logger.info(f"Exported CSV to {filepath}")
            return filepath
        except OSError as e:
            logger.error(f"Error exporting CSV: {e}")
            return None

    def export_to_json(self, data: Dict, filename: str):
        """
        Export data to JSON.

        Args:
            data: Dictionary to export
            filename: Output filename
        """
        try:
            filepath = os.path.join(self.export_path, filename)
            with open(filepath, 'w') as f:
                json.dump(data, f, indent=2, default=str)
            logger.info(f"Exported JSON to {filepath}")
            return filepath
        except (OSError, TypeError) as e:
            logger.error(f"Error exporting JSON: {e}")
            return None

    def export_to_excel(self, dataframes: Dict[str, pd.DataFrame], filename: str):
        """
        Export multiple DataFrames to Excel with multiple sheets.

        Args:
            dataframes: Dictionary of sheet_name -> DataFrame
            filename: Output filename
        """
        try:
            filepath = os.path.join(self.export_path, filename)
            with pd.ExcelWriter(filepath, engine='openpyxl') as writer:
                for sheet_name, df in dataframes.items():
                    df.to_excel(writer, sheet_name=sheet_name[:31], index=False)
            logger.info(f"Exported Excel to {filepath}")
            return filepath
        except (OSError, ValueError) as e:
            logger.error(f"Error exporting Excel: {e}")
            return None

    def export_time_series(self, rows: List[TimeSeriesRow], base_filename: str) -> Dict[str, str]:
        """
        Export aggregated time-series rows as CSV and JSON.

        Args:
            rows: Aggregated rows
            base_filename: Filename without extension

        Returns:
            Dictionary with paths to saved files
        """
        saved_files = {}

        csv_path = self.export_to_csv(self.generate_time_series_table(rows), f"{base_filename}.csv")
        if csv_path:
            saved_files['csv'] = csv_path

        json_path = self.export_to_json({'rows': [row.to_dict() for row in rows]},
                                        f"{base_filename}.json")
        if json_path:
            saved_files['json'] = json_path

        return saved_files

    def generate_full_report(self, records: List[MtMRecord], totals: PortfolioTotals,
                             time_series: Optional[List[TimeSeriesRow]] = None,
                             concentration_threshold: float = 0.25) -> Dict[str, pd.DataFrame]:
        """
        Generate full analysis report with all sections.

        Args:
            records: MtM records
            totals: Portfolio totals
            time_series: Aggregated price rows (optional)
            concentration_threshold: Share of gross MtM flagged as concentrated

        Returns:
            Dictionary of report section name -> DataFrame
        """
        report = {
            'Portfolio Summary': self.generate_portfolio_summary(totals, len(records)),
            'Contract Summary': self.generate_contract_summary(records),
            'Monthly MtM': self.generate_monthly_detail(records, totals),
        }

        concentration = self.generate_concentration_report(records, concentration_threshold)
        if not concentration.empty:
            report['Concentration'] = concentration

        if time_series:
            report['Price Curves'] = self.generate_time_series_table(time_series)
            report['Price Curve Summary'] = TimeSeriesAggregator.summarize(time_series)

        return report

    def print_report(self, report: Dict[str, pd.DataFrame]):
        """
        Print report to console.

        Args:
            report: Dictionary of report sections
        """
        print("\n" + "="*80)
        print("MARK-TO-MARKET REPORT")
        print(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print("="*80 + "\n")

        for section_name, df in report.items():
            print(f"\n{section_name}")
            print("-" * len(section_name))
            print(df.to_string(index=False))
            print()

    def save_full_report(self, report: Dict[str, pd.DataFrame], base_filename: str = None):
        """
        Save full report in multiple formats.

        Args:
            report: Dictionary of report sections
            base_filename: Base filename (timestamp will be added)

        Returns:
            Dictionary with paths to saved files
        """
        if base_filename is None:
            base_filename = f"mtm_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

        saved_files = {}

        excel_file = f"{base_filename}.xlsx"
        excel_path = self.export_to_excel(report, excel_file)
        if excel_path:
            saved_files['excel'] = excel_path

        csv_files = []
        for section_name, df in report.items():
            csv_filename = f"{base_filename}_{section_name.replace(' ', '_')}.csv"
            csv_path = self.export_to_csv(df, csv_filename)
            if csv_path:
                csv_files.append(csv_path)

        if csv_files:
            saved_files['csv'] = csv_files

        logger.info(f"Saved full report: {saved_files}")
        return saved_files
