"""
Multi-curvature cascade attention.

A cascade runs one LorentzAttention per level, ordered from coarse (curvature
near 0) to fine (curvature near -1). Each level's output becomes the query of
the next level, and from the second level on the new output is blended with
the previous one through a two-point centroid.
"""

from typing import Callable, Dict, Optional, Sequence, Tuple
import logging
import math
import time

import torch

from ..config import CascadeConfig, build_level_schedule
from ..core.math_ops import DEFAULT_EPSILON, centroid, stack_points, to_euclidean, to_hyperboloid
from ..exceptions import ConfigurationError, InvalidArgumentError
from .attention import AttentionMetrics, AttentionResult, LorentzAttention


logger = logging.getLogger(__name__)


def harmonic_residual_weight(level_index: int) -> float:
    """Weight 1/(i+1) given to the previous level's output at level i."""
    return 1.0 / (level_index + 1)


class LorentzCascadeAttention:
    """
    Cascade of Lorentz attention levels.

    Args:
        config: Cascade configuration
        residual_weight: Maps a level index to the weight of the previous
            output in the residual blend (and of each level in the
            hierarchical combination)

    Example:
        >>> cascade = LorentzCascadeAttention(CascadeConfig(dim=16))
        >>> result = cascade.compute(query, keys, values)
        >>> result.curvatures_used
        [-0.1, -0.5, -1.0]
    """

    def __init__(self, config: CascadeConfig,
                 residual_weight: Callable[[int], float] = harmonic_residual_weight):
        if not isinstance(config, CascadeConfig):
            raise ConfigurationError(
                "Cascade requires a CascadeConfig",
                {"type": type(config).__name__}
            )

        self.config = config
        self.residual_weight = residual_weight
        self.levels = [
            LorentzAttention.from_level(config.dim, level, config.epsilon, config.torch_dtype)
            for level in config.levels
        ]

        logger.info(f"Initialized LorentzCascadeAttention(dim={config.dim}, "
                    f"levels={self.num_levels}, tangent={config.use_tangent_mode})")

    @property
    def num_levels(self) -> int:
        return len(self.levels)

    @property
    def curvatures(self) -> list:
        return [level.curvature for level in self.levels]

    def get_config(self) -> CascadeConfig:
        return self.config

    def _blend(self, previous: torch.Tensor, current: torch.Tensor,
               curvature: float, weight: float):
        prev_l = to_hyperboloid(previous, curvature)
        curr_l = to_hyperboloid(current, curvature)
        return centroid(
            [prev_l, curr_l],
            [weight, 1.0 - weight],
            curvature,
            self.config.epsilon
        )

    def compute(self, query, keys, values) -> AttentionResult:
        """
        Run the levels in order, refining the query at every step.

        Level i >= 1 blends the previous level's Euclidean output with its
        own, both lifted onto level i's hyperboloid, using weights
        [w, 1 - w] with w = residual_weight(i).

        Args:
            query: Query embedding, length ``dim``
            keys: Key embeddings, shape (n, dim)
            values: Value embeddings, shape (n, dim)

        Returns:
            AttentionResult of the last level with all level curvatures and
            summed operation counters
        """
        start_time = time.perf_counter()
        metrics = AttentionMetrics()
        curvatures = []

        current_query = query
        last = None

        for i, level in enumerate(self.levels):
            curvatures.append(level.curvature)

            if self.config.use_tangent_mode:
                output = level.compute_tangent(current_query, keys, values)
            else:
                output = level.compute(current_query, keys, values)

            metrics = metrics + output.metrics

            if last is not None:
                combined = self._blend(
                    last.projected, output.projected,
                    level.curvature, self.residual_weight(i)
                )
                output.point = combined
                output.projected = to_euclidean(combined)

            last = output
            current_query = output.projected

        metrics.elapsed_time = time.perf_counter() - start_time
        logger.debug(f"Cascade over {self.num_levels} levels took {metrics.elapsed_time:.6f}s")

        return AttentionResult(
            point=last.point,
            projected=last.projected,
            weights=last.weights,
            curvatures_used=curvatures,
            metrics=metrics,
        )

    def _bucket(self, hierarchy_levels: Sequence[float]) -> Dict[int, list]:
        depths = [max(float(h), 0.0) for h in hierarchy_levels]
        max_depth = max(depths)
        buckets = {}
        for j, depth in enumerate(depths):
            level = min(int(math.floor(depth / (max_depth + 1) * self.num_levels)),
                        self.num_levels - 1)
            buckets.setdefault(level, []).append(j)
        return buckets

    def compute_hierarchical(self, query, keys, values,
                             hierarchy_levels: Sequence[float]) -> AttentionResult:
        """
        Attend per hierarchy bucket, one bucket per level.

        Key j with depth h_j goes to level min(floor(h_j / (max_h + 1) * L), L - 1),
        negative depths counting as 0. Each level attends only inside its
        bucket, using the previous level's output as query. A level without
        keys attends over the original query alone. The final point is the
        centroid of all level outputs on the last level's hyperboloid with
        weights residual_weight(i).

        Args:
            query: Query embedding
            keys: Key embeddings
            values: Value embeddings
            hierarchy_levels: One depth per key

        Returns:
            AttentionResult carrying the last level's weights

        Raises:
            InvalidArgumentError: If the depths do not match the keys
        """
        start_time = time.perf_counter()
        if len(keys) == 0:
            raise InvalidArgumentError("Cannot attend over empty keys")
        if len(hierarchy_levels) != len(keys) or len(values) != len(keys):
            raise InvalidArgumentError(
                "Keys, values and hierarchy levels must have the same length",
                {"keys": len(keys), "values": len(values),
                 "hierarchy_levels": len(hierarchy_levels)}
            )

        buckets = self._bucket(hierarchy_levels)

        metrics = AttentionMetrics()
        curvatures = []
        outputs = []
        current_query = query

        for i, level in enumerate(self.levels):
            curvatures.append(level.curvature)

            indices = buckets.get(i)
            if indices is None:
                logger.debug(f"Level {i} has no keys, attending over the query alone")
                group_keys = [query]
                group_values = [query]
            else:
                group_keys = [keys[j] for j in indices]
                group_values = [values[j] for j in indices]

            output = level.compute(current_query, group_keys, group_values)
            metrics = metrics + output.metrics

            outputs.append(output)
            current_query = output.projected

        final_curvature = self.levels[-1].curvature
        lifted = stack_points([to_hyperboloid(o.projected, final_curvature) for o in outputs])
        combined = centroid(
            lifted,
            [self.residual_weight(i) for i in range(len(outputs))],
            final_curvature,
            self.config.epsilon
        )

        metrics.elapsed_time = time.perf_counter() - start_time

        return AttentionResult(
            point=combined,
            projected=to_euclidean(combined),
            weights=outputs[-1].weights,
            curvatures_used=curvatures,
            metrics=metrics,
        )

    def __repr__(self) -> str:
        return f"LorentzCascadeAttention(dim={self.config.dim}, curvatures={self.curvatures})"


class AdaptiveCascadeAttention:
    """
    Picks the cascade depth per call.

    One cascade is built for every depth 1..max_levels at construction. A
    call uses the depth hint when given, otherwise ceil(log2(n_keys)), both
    clamped to [1, max_levels].

    Args:
        dim: Embedding dimension
        max_levels: Deepest cascade to build
        use_tangent_mode: Whether the cascades attend in tangent space
        curvature_range: (coarse, fine) curvatures of every schedule
        epsilon: Numerical tolerance
        max_heads: Head cap of the level schedule
    """

    def __init__(
        self,
        dim: int,
        max_levels: int = 5,
        use_tangent_mode: bool = False,
        curvature_range: Tuple[float, float] = (-0.1, -1.0),
        epsilon: float = DEFAULT_EPSILON,
        max_heads: int = 8
    ):
        if max_levels < 1:
            raise ConfigurationError(
                "max_levels must be positive",
                {"max_levels": max_levels}
            )

        self.dim = dim
        self.max_levels = max_levels

        try:
            self.cascades = {
                depth: LorentzCascadeAttention(CascadeConfig(
                    dim=dim,
                    levels=build_level_schedule(depth, curvature_range, max_heads),
                    use_tangent_mode=use_tangent_mode,
                    epsilon=epsilon,
                ))
                for depth in range(1, max_levels + 1)
            }
        except ValueError as e:
            raise ConfigurationError(str(e), {"dim": dim, "max_levels": max_levels}) from e

    def estimate_levels(self, n_keys: int) -> int:
        if n_keys <= 1:
            return 1
        return min(max(1, math.ceil(math.log2(n_keys))), self.max_levels)

    def select_depth(self, n_keys: int, hierarchy_depth_hint: Optional[float] = None) -> int:
        if hierarchy_depth_hint is None:
            return self.estimate_levels(n_keys)
        return min(max(1, math.ceil(hierarchy_depth_hint)), self.max_levels)

    def get_cascade(self, depth: int) -> LorentzCascadeAttention:
        if depth not in self.cascades:
            raise InvalidArgumentError(
                f"No cascade of depth {depth}",
                {"max_levels": self.max_levels}
            )
        return self.cascades[depth]

    def compute(self, query, keys, values,
                hierarchy_depth_hint: Optional[float] = None) -> AttentionResult:
        depth = self.select_depth(len(keys), hierarchy_depth_hint)
        logger.debug(f"Adaptive cascade selected depth {depth} for {len(keys)} keys")
        return self.cascades[depth].compute(query, keys, values)
