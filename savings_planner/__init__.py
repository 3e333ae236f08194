"""Savings Planner - multi-currency savings goal tracking."""

__version__ = "1.0.0"
