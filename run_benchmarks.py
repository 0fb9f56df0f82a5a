#!/usr/bin/env python3
"""
Lorentz cascade benchmark runner

Times the closed-form Lorentz operations against the iterative Poincaré-ball
baseline and prints a report, optionally saving JSON results and a plot.
"""

import sys
import logging
from argparse import ArgumentParser
from pathlib import Path

from lorentz_cascade.benchmark import (
    check_performance_contract,
    format_benchmark_results,
    run_benchmark_suite,
    save_results,
)
from lorentz_cascade.config import EngineConfig, LogLevel, load_config
from lorentz_cascade.exceptions import LorentzCascadeError, PerformanceContractError


def create_argument_parser() -> ArgumentParser:
    """Create and configure the argument parser."""
    parser = ArgumentParser(
        description="Benchmark closed-form Lorentz attention against the Poincaré baseline"
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file (JSON format)"
    )

    bench_group = parser.add_argument_group("Benchmark Configuration")
    bench_group.add_argument("--dim", type=int, help="Embedding dimension")
    bench_group.add_argument("--seq-len", type=int, help="Number of keys/values per attention call")
    bench_group.add_argument(
        "--num-vectors",
        type=int,
        help="Number of points averaged by the aggregation benchmark"
    )
    bench_group.add_argument("--iterations", type=int, help="Timed calls per benchmark")
    bench_group.add_argument(
        "--frechet-iterations",
        type=int,
        help="Iterations of the Fréchet mean baseline"
    )
    bench_group.add_argument("--levels", type=int, help="Number of cascade levels")
    bench_group.add_argument("--seed", type=int, help="Random seed for the inputs")
    bench_group.add_argument(
        "--check-contract",
        action="store_true",
        help="Fail unless the closed-form centroid beats the baseline by the configured factor"
    )

    logging_group = parser.add_argument_group("Logging Configuration")
    logging_group.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        help="Set the logging level (default: INFO)"
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument("--output", type=Path, help="Save results as JSON")
    output_group.add_argument("--plot", type=Path, help="Save a timing plot (PNG)")

    return parser


def create_config_from_args(args) -> EngineConfig:
    """Create configuration from command line arguments."""
    config = load_config(args.config)
    bench = config.benchmark

    overrides = {
        "dim": args.dim,
        "seq_len": args.seq_len,
        "num_vectors": args.num_vectors,
        "iterations": args.iterations,
        "frechet_iterations": args.frechet_iterations,
        "num_levels": args.levels,
        "seed": args.seed,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(bench, name, value)
    bench.validate()

    if args.log_level:
        config.logging.level = LogLevel(args.log_level)
    config.logging.configure_logging()

    return config


def main() -> int:
    """Main entry point."""
    parser = create_argument_parser()
    args = parser.parse_args()

    try:
        config = create_config_from_args(args)
        logger = logging.getLogger(__name__)

        results = run_benchmark_suite(config.benchmark)
        print(format_benchmark_results(results))

        if args.output:
            save_results(results, args.output)

        if args.plot:
            from lorentz_cascade.utils.visualization import plot_benchmark_results
            plot_benchmark_results(results, save_path=str(args.plot))

        if args.check_contract:
            check_performance_contract(results.aggregation, config.benchmark.min_aggregation_speedup)
            logger.info("Performance contract satisfied")

        return 0

    except PerformanceContractError as e:
        logger = logging.getLogger(__name__)
        logger.error(f"Performance contract violated: {e}")
        return 2

    except (LorentzCascadeError, ValueError) as e:
        logger = logging.getLogger(__name__)
        logger.error(f"Benchmark error: {e}")
        return 1

    except KeyboardInterrupt:
        logger = logging.getLogger(__name__)
        logger.info("Benchmark interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
