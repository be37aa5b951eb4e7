"""Report generation and export."""
from .report_generator import ReportGenerator

__all__ = ['ReportGenerator']
