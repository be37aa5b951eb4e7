"""Data collection module for the contract and price curve stores."""
from .contract import Contract
from .store_connection import StoreConnectionManager, StoreError
from .contract_tracker import ContractStore, ContractTracker
from .price_curve_manager import (PriceCurveManager, PriceCurveQuery, PriceCurveMetadata,
                                  PriceCurveOptions, DEFAULT_MARKET_PRICES)

__all__ = [
    'Contract',
    'StoreConnectionManager',
    'StoreError',
    'ContractStore',
    'ContractTracker',
    'PriceCurveManager',
    'PriceCurveQuery',
    'PriceCurveMetadata',
    'PriceCurveOptions',
    'DEFAULT_MARKET_PRICES'
]
