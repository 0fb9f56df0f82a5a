"""
Visualization utilities for Lorentz attention.

This module provides plots of hyperboloid points in the Poincaré disk, of
attention weights per head, and of benchmark timings.
"""

from typing import Optional, Sequence, Tuple
import logging

import numpy as np
import torch
import matplotlib.pyplot as plt
import matplotlib.patches as patches

from ..core.math_ops import HyperboloidPoint, curvature_magnitude, lorentz_to_poincare


logger = logging.getLogger(__name__)


def _save(fig, save_path: Optional[str], what: str) -> None:
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"{what} saved to {save_path}")


def plot_poincare_points(
    points: HyperboloidPoint,
    curvature: float = -1.0,
    labels: Optional[Sequence[int]] = None,
    query: Optional[HyperboloidPoint] = None,
    output: Optional[HyperboloidPoint] = None,
    weights: Optional[torch.Tensor] = None,
    figsize: Tuple[int, int] = (8, 8),
    title: Optional[str] = None,
    save_path: Optional[str] = None
):
    """
    Plot hyperboloid points in the Poincaré disk.

    Points are mapped to the ball and the first two coordinates are drawn.
    Marker sizes follow the attention weights when given.

    Args:
        points: Batched hyperboloid points, shape (n, dim) with dim >= 2
        curvature: Curvature of the points
        labels: Optional integer labels for colouring points
        query: Optional query point to highlight
        output: Optional attention output to highlight
        weights: Optional per-point attention weights, shape (n,)
        figsize: Figure size
        title: Plot title
        save_path: Optional path to save the plot

    Returns:
        Matplotlib figure
    """
    if not points.is_batch or points.dim < 2:
        raise ValueError("Points must be a batch with at least 2 space dimensions")

    radius = 1.0 / np.sqrt(curvature_magnitude(curvature))
    coords = lorentz_to_poincare(points, curvature)[:, :2].detach().cpu().numpy()

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.add_patch(patches.Circle((0, 0), radius, fill=False, edgecolor='black', linewidth=2))

    sizes = 40.0
    if weights is not None:
        w = weights.detach().cpu().numpy()
        sizes = 20.0 + 400.0 * w / max(float(w.max()), 1e-12)

    if labels is not None:
        labels_np = np.asarray(labels)
        scatter = ax.scatter(coords[:, 0], coords[:, 1], c=labels_np, cmap='tab10',
                             s=sizes, alpha=0.7)
        ax.legend(*scatter.legend_elements(), title="Label")
    else:
        ax.scatter(coords[:, 0], coords[:, 1], s=sizes, alpha=0.7, label='Keys')

    for point, marker, color, name in [(query, '*', 'red', 'Query'), (output, 'X', 'green', 'Output')]:
        if point is not None:
            xy = lorentz_to_poincare(point, curvature)[:2].detach().cpu().numpy()
            ax.scatter([xy[0]], [xy[1]], marker=marker, c=color, s=250, label=name)

    ax.set_aspect('equal')
    ax.set_xlim(-radius * 1.1, radius * 1.1)
    ax.set_ylim(-radius * 1.1, radius * 1.1)
    ax.set_xlabel('Poincaré X')
    ax.set_ylabel('Poincaré Y')
    ax.set_title(title or f'Poincaré Disk (curvature={curvature})')
    if labels is None and (query is not None or output is not None):
        ax.legend()
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    _save(fig, save_path, "Plot")
    return fig


def plot_attention_weights(
    weights: torch.Tensor,
    num_heads: int = 1,
    figsize: Tuple[int, int] = (10, 4),
    title: Optional[str] = None,
    save_path: Optional[str] = None
):
    """
    Heatmap of attention weights, one row per head.

    Args:
        weights: Flattened weights of length num_heads * n
        num_heads: Number of heads the weights were produced by
        figsize: Figure size
        title: Plot title
        save_path: Optional path to save the plot

    Returns:
        Matplotlib figure
    """
    w = weights.detach().cpu().numpy()
    if w.size % num_heads != 0:
        raise ValueError(f"{w.size} weights cannot be split into {num_heads} heads")
    w = w.reshape(num_heads, -1)

    fig, ax = plt.subplots(figsize=figsize)
    im = ax.imshow(w, cmap='viridis', aspect='auto', vmin=0.0)
    fig.colorbar(im, ax=ax, label='Attention weight')

    ax.set_xlabel('Key index')
    ax.set_ylabel('Head')
    ax.set_yticks(range(num_heads))
    ax.set_title(title or 'Attention Weights')

    fig.tight_layout()
    _save(fig, save_path, "Attention heatmap")
    return fig


def plot_benchmark_results(
    results,
    figsize: Tuple[int, int] = (12, 5),
    save_path: Optional[str] = None
):
    """
    Bar charts of baseline against Lorentz timings and the resulting speedups.

    Args:
        results: BenchmarkSuiteResult
        figsize: Figure size
        save_path: Optional path to save the plot

    Returns:
        Matplotlib figure
    """
    comparisons = [
        ('Distance', results.distance),
        ('Aggregation', results.aggregation),
        ('Attention', results.attention),
    ]
    names = [name for name, _ in comparisons]
    baseline_ms = [c.baseline.avg_time * 1e3 for _, c in comparisons]
    lorentz_ms = [c.lorentz.avg_time * 1e3 for _, c in comparisons]
    speedups = [c.speedup for _, c in comparisons]

    fig, axes = plt.subplots(1, 2, figsize=figsize)
    x = np.arange(len(names))
    width = 0.35

    axes[0].bar(x - width / 2, baseline_ms, width, label='Poincaré baseline', alpha=0.8)
    axes[0].bar(x + width / 2, lorentz_ms, width, label='Lorentz', alpha=0.8)
    axes[0].set_xticks(x)
    axes[0].set_xticklabels(names)
    axes[0].set_yscale('log')
    axes[0].set_ylabel('Average time per call (ms)')
    axes[0].set_title('Timing')
    axes[0].legend()
    axes[0].grid(True, alpha=0.3)

    bars = axes[1].bar(x, speedups, alpha=0.8, color='tab:green')
    axes[1].axhline(1.0, color='black', linewidth=1, linestyle='--')
    axes[1].set_xticks(x)
    axes[1].set_xticklabels(names)
    axes[1].set_ylabel('Speedup (x)')
    axes[1].set_title(f'Speedup (overall {results.avg_speedup:.2f}x)')
    axes[1].grid(True, alpha=0.3)

    for bar, value in zip(bars, speedups):
        height = bar.get_height()
        axes[1].text(bar.get_x() + bar.get_width() / 2., height,
                     f'{value:.1f}x', ha='center', va='bottom')

    fig.tight_layout()
    _save(fig, save_path, "Benchmark plot")
    return fig
