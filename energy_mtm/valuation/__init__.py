"""Valuation engine for contract MtM and portfolio aggregation."""
from .mtm_calculator import (MtMCalculator, MtMRecord, ValuationInputError,
                             UnknownStateError, UnknownVolumeShapeError)
from .portfolio_aggregation import PortfolioAggregator, PortfolioTotals, MtMRecalculator

__all__ = ['MtMCalculator', 'MtMRecord', 'ValuationInputError', 'UnknownStateError',
           'UnknownVolumeShapeError', 'PortfolioAggregator', 'PortfolioTotals', 'MtMRecalculator']
