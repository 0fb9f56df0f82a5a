"""
Utility functions for lorentz_cascade.

Plotting helpers for hyperboloid points, attention weights and benchmark
results.
"""

from .visualization import plot_attention_weights, plot_benchmark_results, plot_poincare_points

__all__ = [
    "plot_attention_weights",
    "plot_benchmark_results",
    "plot_poincare_points",
]
