"""Risk-adjusted yield ranking and rebalance decision engine."""

__version__ = "0.1.0"
