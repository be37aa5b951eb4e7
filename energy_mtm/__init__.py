"""Energy contract mark-to-market valuation and price curve analytics."""
__version__ = '0.1.0'
