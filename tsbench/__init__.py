"""
Concurrent write benchmark for time-series stores.

Each virtual client generates synthetic data points, writes them in batches
through its own sink and times every write; the per-client statistics are
then combined into benchmark-wide totals.
"""

from .main import main, run_benchmark

__all__ = ["main", "run_benchmark"]
