"""
Benchmark harness for closed-form Lorentz operations.

Times the Lorentz path (single-acosh distance, closed-form centroid,
distance-softmax-centroid attention, cascades) against the Poincaré-ball
baseline (Möbius distance, iterative Fréchet mean) on identical seeded
inputs. The harness validates the performance contract, not correctness.
"""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union
import json
import logging
import time

import numpy as np
import torch

from .config import BenchmarkConfig
from .core.math_ops import centroid, distance, poincare_to_lorentz
from .core.poincare import frechet_mean, poincare_distance
from .exceptions import BenchmarkError, ErrorHandler, PerformanceContractError
from .factories import create_cascade_attention
from .layers.attention import LorentzAttention, stable_softmax


logger = logging.getLogger(__name__)


@dataclass
class BenchmarkResult:
    """Timing statistics of one benchmarked operation (times in seconds)."""
    name: str
    operation: str
    iterations: int
    total_time: float
    avg_time: float
    std_time: float
    median_time: float
    ops_per_second: float


@dataclass
class AttentionComparison:
    """Baseline against closed-form timing of the same operation."""
    baseline: BenchmarkResult
    lorentz: BenchmarkResult
    speedup: float
    percentage: float

    @classmethod
    def from_results(cls, baseline: BenchmarkResult,
                     lorentz: BenchmarkResult) -> "AttentionComparison":
        return cls(
            baseline=baseline,
            lorentz=lorentz,
            speedup=baseline.avg_time / lorentz.avg_time,
            percentage=(baseline.avg_time - lorentz.avg_time) / baseline.avg_time * 100.0,
        )


@dataclass
class BenchmarkSuiteResult:
    """Results of the full benchmark suite."""
    distance: AttentionComparison
    aggregation: AttentionComparison
    attention: AttentionComparison
    cascade: BenchmarkResult
    avg_speedup: float
    bottleneck_eliminated: str
    recommendation: str


def random_ball_vectors(n: int, dim: int, norm: float,
                        generator: torch.Generator) -> torch.Tensor:
    """Uniform vectors in [-1, 1]^dim rescaled to Euclidean norm ``norm``."""
    vectors = torch.rand(n, dim, generator=generator, dtype=torch.float64) * 2.0 - 1.0
    return vectors / torch.norm(vectors, dim=-1, keepdim=True) * norm


def _generator(config: BenchmarkConfig) -> torch.Generator:
    return torch.Generator().manual_seed(config.seed)


def run_benchmark(name: str, operation: str, iterations: int,
                  fn: Callable[[], Any]) -> BenchmarkResult:
    """
    Time ``fn`` over ``iterations`` calls after min(10, iterations) warm-up calls.

    Args:
        name: Display name
        operation: Operation category (distance, aggregation, ...)
        iterations: Number of timed calls
        fn: Zero-argument callable to time

    Returns:
        BenchmarkResult with mean, standard deviation and median per call
    """
    if iterations < 1:
        raise BenchmarkError("Iterations must be positive", {"iterations": iterations})

    for _ in range(min(10, iterations)):
        fn()

    timings = np.empty(iterations)
    for i in range(iterations):
        start = time.perf_counter()
        fn()
        timings[i] = time.perf_counter() - start

    total_time = float(np.sum(timings))
    avg_time = float(np.mean(timings))
    result = BenchmarkResult(
        name=name,
        operation=operation,
        iterations=iterations,
        total_time=total_time,
        avg_time=avg_time,
        std_time=float(np.std(timings)),
        median_time=float(np.median(timings)),
        ops_per_second=1.0 / avg_time if avg_time > 0 else float("inf"),
    )
    logger.debug(f"{name}: {avg_time * 1e3:.4f}ms avg over {iterations} iterations")
    return result


def benchmark_distance(config: Optional[BenchmarkConfig] = None) -> AttentionComparison:
    """Möbius-difference ball distance against the single-acosh Lorentz distance."""
    config = config or BenchmarkConfig()
    generator = _generator(config)
    a, b = random_ball_vectors(2, config.dim, config.vector_norm, generator)

    baseline = run_benchmark(
        "Poincaré Distance", "distance", config.iterations,
        lambda: poincare_distance(a, b, config.curvature)
    )

    a_l = poincare_to_lorentz(a, config.curvature)
    b_l = poincare_to_lorentz(b, config.curvature)
    lorentz = run_benchmark(
        "Lorentz Distance", "distance", config.iterations,
        lambda: distance(a_l, b_l, config.curvature)
    )

    return AttentionComparison.from_results(baseline, lorentz)


def benchmark_aggregation(config: Optional[BenchmarkConfig] = None) -> AttentionComparison:
    """Iterative Fréchet mean against the closed-form centroid."""
    config = config or BenchmarkConfig()
    generator = _generator(config)
    vectors = random_ball_vectors(config.num_vectors, config.dim, config.vector_norm, generator)
    weights = torch.full((config.num_vectors,), 1.0 / config.num_vectors, dtype=torch.float64)

    baseline = run_benchmark(
        f"Poincaré Fréchet Mean ({config.frechet_iterations} iterations)",
        "aggregation", config.iterations,
        lambda: frechet_mean(vectors, weights, config.curvature, config.frechet_iterations)
    )

    points = poincare_to_lorentz(vectors, config.curvature)
    lorentz = run_benchmark(
        "Lorentz Centroid (closed form)", "aggregation", config.iterations,
        lambda: centroid(points, weights, config.curvature)
    )

    return AttentionComparison.from_results(baseline, lorentz)


def benchmark_attention(config: Optional[BenchmarkConfig] = None) -> AttentionComparison:
    """Distance-softmax-Fréchet ball attention against single-level Lorentz attention."""
    config = config or BenchmarkConfig()
    generator = _generator(config)
    vectors = random_ball_vectors(1 + 2 * config.seq_len, config.dim, config.vector_norm, generator)
    query = vectors[0]
    keys = vectors[1:1 + config.seq_len]
    values = vectors[1 + config.seq_len:]
    iterations = max(1, config.iterations // 2)

    def baseline_attention():
        distances = poincare_distance(query.unsqueeze(0), keys, config.curvature)
        weights = stable_softmax(-distances)
        return frechet_mean(values, weights, config.curvature, config.frechet_iterations)

    baseline = run_benchmark("Poincaré Attention", "full_attention", iterations, baseline_attention)

    attention = LorentzAttention(config.dim, config.curvature, num_heads=1, temperature=1.0)
    lorentz = run_benchmark(
        "Lorentz Attention", "full_attention", iterations,
        lambda: attention.compute(query, keys, values)
    )

    return AttentionComparison.from_results(baseline, lorentz)


def benchmark_cascade(config: Optional[BenchmarkConfig] = None) -> BenchmarkResult:
    """Timing of a cascade built from the interpolated level schedule."""
    config = config or BenchmarkConfig()
    generator = _generator(config)
    vectors = random_ball_vectors(1 + 2 * config.seq_len, config.dim, config.vector_norm, generator)
    query = vectors[0]
    keys = vectors[1:1 + config.seq_len]
    values = vectors[1 + config.seq_len:]

    cascade = create_cascade_attention(config.dim, config.num_levels)
    return run_benchmark(
        f"Lorentz Cascade ({config.num_levels} levels)", "cascade_attention",
        max(1, config.iterations // 2),
        lambda: cascade.compute(query, keys, values)
    )


def run_benchmark_suite(config: Optional[BenchmarkConfig] = None) -> BenchmarkSuiteResult:
    """
    Run every benchmark and summarise the speedups.

    Args:
        config: Benchmark configuration (defaults when omitted)

    Returns:
        BenchmarkSuiteResult
    """
    config = config or BenchmarkConfig()
    logger.info(f"Running benchmark suite: dim={config.dim}, seq_len={config.seq_len}, "
                f"iterations={config.iterations}")

    with ErrorHandler("Distance benchmark"):
        distance_cmp = benchmark_distance(config)
    logger.info(f"Distance: {distance_cmp.speedup:.2f}x speedup")

    with ErrorHandler("Aggregation benchmark"):
        aggregation_cmp = benchmark_aggregation(config)
    logger.info(f"Aggregation: {aggregation_cmp.speedup:.2f}x speedup")

    with ErrorHandler("Attention benchmark"):
        attention_cmp = benchmark_attention(config)
    logger.info(f"Full attention: {attention_cmp.speedup:.2f}x speedup")

    with ErrorHandler("Cascade benchmark"):
        cascade = benchmark_cascade(config)
    logger.info(f"Cascade ({config.num_levels} levels): {cascade.avg_time * 1e3:.3f}ms avg")

    avg_speedup = (distance_cmp.speedup + aggregation_cmp.speedup + attention_cmp.speedup) / 3.0

    if aggregation_cmp.speedup > config.min_aggregation_speedup:
        bottleneck = f"Fréchet mean iteration ({config.frechet_iterations}x → 1x)"
    else:
        bottleneck = "Partial"

    if avg_speedup > 5:
        recommendation = "Use Lorentz cascade attention for production workloads"
    else:
        recommendation = "Consider Lorentz attention for hierarchical data"

    return BenchmarkSuiteResult(
        distance=distance_cmp,
        aggregation=aggregation_cmp,
        attention=attention_cmp,
        cascade=cascade,
        avg_speedup=avg_speedup,
        bottleneck_eliminated=bottleneck,
        recommendation=recommendation,
    )


def check_performance_contract(comparison: AttentionComparison,
                               min_speedup: float = 10.0) -> None:
    """Raise PerformanceContractError unless the closed form is ``min_speedup`` times faster."""
    if comparison.speedup < min_speedup:
        raise PerformanceContractError(comparison.lorentz.operation, comparison.speedup, min_speedup)


def _comparison_lines(title: str, comparison: AttentionComparison) -> list:
    return [
        f"  {title}:",
        f"    Baseline:  {comparison.baseline.avg_time * 1e3:.4f}ms avg "
        f"({comparison.baseline.ops_per_second:.0f} ops/sec)",
        f"    Lorentz:   {comparison.lorentz.avg_time * 1e3:.4f}ms avg "
        f"({comparison.lorentz.ops_per_second:.0f} ops/sec)",
        f"    Speedup:   {comparison.speedup:.2f}x ({comparison.percentage:.1f}% faster)",
        "",
    ]


def format_benchmark_results(results: BenchmarkSuiteResult) -> str:
    """Render suite results as a plain-text report."""
    rule = "=" * 70
    lines = [
        rule,
        "  LORENTZ CASCADE ATTENTION BENCHMARK RESULTS",
        rule,
        "",
        f"  {'Operation':<14}| {'Baseline':<18}| {'Lorentz':<17}| Speedup",
        f"  {'-' * 14}+{'-' * 19}+{'-' * 18}+{'-' * 9}",
        f"  {'Distance':<14}| {'Möbius + atanh':<18}| {'single acosh':<17}| "
        f"{results.distance.speedup:.1f}x",
        f"  {'Aggregation':<14}| {'iterative mean':<18}| {'closed form':<17}| "
        f"{results.aggregation.speedup:.1f}x",
        f"  {'Attention':<14}| {'ball attention':<18}| {'Lorentz':<17}| "
        f"{results.attention.speedup:.1f}x",
        "",
    ]
    lines += _comparison_lines("DISTANCE", results.distance)
    lines += _comparison_lines("AGGREGATION", results.aggregation)
    lines += _comparison_lines("FULL ATTENTION", results.attention)
    lines += [
        "  CASCADE ATTENTION:",
        f"    {results.cascade.name}: {results.cascade.avg_time * 1e3:.4f}ms avg "
        f"({results.cascade.ops_per_second:.0f} ops/sec)",
        "",
        rule,
        f"  OVERALL SPEEDUP: {results.avg_speedup:.2f}x",
        f"  BOTTLENECK ELIMINATED: {results.bottleneck_eliminated}",
        f"  RECOMMENDATION: {results.recommendation}",
        rule,
    ]
    return "\n".join(lines)


def results_to_dict(results: BenchmarkSuiteResult) -> Dict[str, Any]:
    """Convert suite results to a JSON-compatible dictionary."""
    return asdict(results)


def save_results(results: BenchmarkSuiteResult, output_path: Union[str, Path]) -> None:
    """Save suite results to a JSON file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        json.dump(results_to_dict(results), f, indent=2)

    logger.info(f"Saved benchmark results to {output_path}")
