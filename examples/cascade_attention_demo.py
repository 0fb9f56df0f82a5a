"""
Demonstration of Lorentz cascade attention.

This script walks through:
- Basic hyperboloid operations
- Single-level and tangent-space attention
- Cascade and hierarchical cascade attention
- The adaptive depth selector
- Plotting keys and the attention output in the Poincaré disk
"""

import math
from pathlib import Path
import logging

import torch

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from lorentz_cascade import (
    AdaptiveCascadeAttention,
    CascadeConfig,
    LorentzAttention,
    LorentzCascadeAttention,
    LorentzManifold,
    centroid,
    distance,
    exp_map,
    log_map,
    to_hyperboloid,
)
from lorentz_cascade.core.math_ops import to_hyperboloid_batch
from lorentz_cascade.utils.visualization import plot_attention_weights, plot_poincare_points


def demo_basic_operations():
    """Distances, centroids and exp/log maps on the hyperboloid."""
    print("\n" + "=" * 50)
    print("DEMO: Basic Hyperboloid Operations")
    print("=" * 50)

    curvature = -1.0
    a = to_hyperboloid([0.3, -0.2, 0.1], curvature)
    b = to_hyperboloid([-0.1, 0.4, 0.2], curvature)

    print(f"Constraint residual of a: {a.constraint_residual(curvature).item():.2e}")
    print(f"d(a, b) = {distance(a, b, curvature).item():.4f}")
    print(f"d(a, a) = {distance(a, a, curvature).item():.4f} (acosh clamp floor)")

    mid = centroid([a, b], curvature=curvature)
    print(f"Centroid space part: {mid.space.tolist()}")

    v = log_map(a, b, curvature)
    back = exp_map(a, v, curvature)
    print(f"exp_a(log_a(b)) error: {torch.max(torch.abs(back.space - b.space)).item():.2e}")


def demo_single_level(dim: int = 8):
    """Distance-based and tangent-space attention at one curvature."""
    print("\n" + "=" * 50)
    print("DEMO: Single-Level Attention")
    print("=" * 50)

    generator = torch.Generator().manual_seed(0)
    query = torch.randn(dim, generator=generator, dtype=torch.float64) * 0.3
    keys = torch.randn(16, dim, generator=generator, dtype=torch.float64) * 0.3

    attention = LorentzAttention(dim, curvature=-1.0, num_heads=2, temperature=0.5)
    result = attention.compute(query, keys, keys)
    print(f"Weights per head sum to: {result.weights.reshape(2, -1).sum(dim=1).tolist()}")
    print(f"Metrics: {result.metrics}")

    tangent = attention.compute_tangent(query, keys, keys)
    print(f"Tangent-mode output: {tangent.projected[:4].tolist()} ...")

    return query, keys, result


def demo_cascade(dim: int = 8):
    """Cascade, hierarchical cascade and adaptive depth selection."""
    print("\n" + "=" * 50)
    print("DEMO: Cascade Attention")
    print("=" * 50)

    generator = torch.Generator().manual_seed(1)
    query = torch.randn(dim, generator=generator, dtype=torch.float64) * 0.3
    keys = torch.randn(32, dim, generator=generator, dtype=torch.float64) * 0.3

    cascade = LorentzCascadeAttention(CascadeConfig(dim=dim))
    result = cascade.compute(query, keys, keys)
    print(f"Curvatures used: {result.curvatures_used}")
    print(f"Distance ops: {result.metrics.distance_ops}, "
          f"aggregation ops: {result.metrics.aggregation_ops}")

    depths = [int(math.log2(i + 1)) for i in range(len(keys))]
    hierarchical = cascade.compute_hierarchical(query, keys, keys, depths)
    print(f"Hierarchical output: {hierarchical.projected[:4].tolist()} ...")

    adaptive = AdaptiveCascadeAttention(dim, max_levels=4)
    for n in [1, 4, 32]:
        print(f"{n} keys -> depth {adaptive.estimate_levels(n)}")
    print(f"Hint 2.3 -> {len(adaptive.compute(query, keys, keys, 2.3).curvatures_used)} levels")


def demo_visualization(query, keys, result, output_dir: Path = Path("demo_outputs")):
    """Save a Poincaré disk plot and a weight heatmap."""
    print("\n" + "=" * 50)
    print("DEMO: Visualization")
    print("=" * 50)

    output_dir.mkdir(exist_ok=True)
    manifold = LorentzManifold(curvature=-1.0)

    plot_poincare_points(
        to_hyperboloid_batch(keys, manifold.curvature),
        curvature=manifold.curvature,
        query=manifold.to_hyperboloid(query),
        output=result.point,
        weights=result.weights.reshape(2, -1).mean(dim=0),
        save_path=str(output_dir / "poincare_disk.png"),
    )
    plot_attention_weights(result.weights, num_heads=2,
                           save_path=str(output_dir / "attention_weights.png"))
    print(f"Plots saved to {output_dir}")


def main():
    demo_basic_operations()
    query, keys, result = demo_single_level()
    demo_cascade()
    demo_visualization(query, keys, result)


if __name__ == "__main__":
    main()
