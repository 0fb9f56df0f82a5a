"""
Single-level Lorentz attention.

Attention weights come from geodesic distances on the hyperboloid and the
values are aggregated with the closed-form centroid, which replaces the
iterative Fréchet mean of ball-model attention. A tangent-space variant maps
keys and values to the tangent space at the query, attends with Euclidean
dot products there, and maps the weighted sum back with the exponential map.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import logging
import time

import torch

from ..core.base import LorentzModule
from ..core.math_ops import (
    DEFAULT_EPSILON,
    HyperboloidPoint,
    centroid,
    distance_batch,
    to_euclidean,
    to_hyperboloid,
    to_hyperboloid_batch,
)
from ..exceptions import ConfigurationError, InvalidArgumentError


logger = logging.getLogger(__name__)


@dataclass
class AttentionMetrics:
    """Operation counters and wall-clock time of one attention call."""
    distance_ops: int = 0
    aggregation_ops: int = 0
    elapsed_time: float = 0.0

    def __add__(self, other: "AttentionMetrics") -> "AttentionMetrics":
        return AttentionMetrics(
            distance_ops=self.distance_ops + other.distance_ops,
            aggregation_ops=self.aggregation_ops + other.aggregation_ops,
            elapsed_time=self.elapsed_time + other.elapsed_time,
        )


@dataclass
class AttentionResult:
    """
    Output of an attention call.

    Attributes:
        point: Attended point on the hyperboloid
        projected: Euclidean projection of ``point`` (its space part)
        weights: Attention weights, one per attended key (heads flattened)
        curvatures_used: Curvature of every level that contributed
        metrics: Operation counters and elapsed time
    """
    point: HyperboloidPoint
    projected: torch.Tensor
    weights: torch.Tensor
    curvatures_used: List[float] = field(default_factory=list)
    metrics: AttentionMetrics = field(default_factory=AttentionMetrics)


def stable_softmax(scores: torch.Tensor) -> torch.Tensor:
    """Softmax that subtracts the maximum score before exponentiating."""
    shifted = torch.exp(scores - torch.max(scores))
    return shifted / torch.sum(shifted)


class LorentzAttention(LorentzModule):
    """
    Multi-head attention on one hyperboloid.

    Each head owns a contiguous range of the space coordinates; the time
    coordinate is shared by all heads. The output point has the mean of the
    per-head times and the concatenation of the per-head space parts, which
    approximates a proper per-head decomposition of the hyperboloid.

    Args:
        dim: Embedding dimension
        curvature: Negative curvature
        num_heads: Number of attention heads, must divide ``dim``
        temperature: Softmax temperature
        dropout: Dropout probability, kept as configuration only (the engine
            runs in inference mode)
        epsilon: Numerical tolerance
        dtype: Floating point dtype

    Example:
        >>> attention = LorentzAttention(dim=8, curvature=-1.0, num_heads=2)
        >>> result = attention.compute(query, keys, values)
        >>> result.projected.shape
        torch.Size([8])
    """

    def __init__(
        self,
        dim: int,
        curvature: float = -1.0,
        num_heads: int = 1,
        temperature: float = 1.0,
        dropout: float = 0.0,
        epsilon: float = DEFAULT_EPSILON,
        dtype: torch.dtype = torch.float64
    ):
        if dim < 1 or num_heads < 1:
            raise ConfigurationError(
                "Dimension and number of heads must be positive",
                {"dim": dim, "num_heads": num_heads}
            )
        if dim % num_heads != 0:
            raise ConfigurationError(
                f"Dimension {dim} must be divisible by num_heads {num_heads}"
            )
        if not temperature > 0:
            raise ConfigurationError(
                "Temperature must be positive",
                {"temperature": temperature}
            )
        if not (0 <= dropout < 1):
            raise ConfigurationError(
                "Dropout must be in [0, 1)",
                {"dropout": dropout}
            )

        super().__init__(curvature=curvature, epsilon=epsilon, dtype=dtype)

        self.dim = dim
        self.num_heads = num_heads
        self.head_dim = dim // num_heads
        self.temperature = temperature
        self.dropout = dropout

    @classmethod
    def from_level(cls, dim: int, level, epsilon: float = DEFAULT_EPSILON,
                   dtype: torch.dtype = torch.float64) -> "LorentzAttention":
        """Build the attention for one CascadeLevelConfig."""
        return cls(
            dim,
            curvature=level.curvature,
            num_heads=level.num_heads,
            temperature=level.temperature,
            dropout=level.dropout,
            epsilon=epsilon,
            dtype=dtype,
        )

    def _prepare(self, query, keys, values):
        query = self.to_vector(query, self.dim, "query")
        keys = self.to_matrix(keys, self.dim, "keys")
        values = self.to_matrix(values, self.dim, "values")
        if keys.shape[0] != values.shape[0]:
            raise InvalidArgumentError(
                "Keys and values must have the same length",
                {"keys": keys.shape[0], "values": values.shape[0]}
            )
        return query, keys, values

    def _head_attention(self, query: HyperboloidPoint, keys: HyperboloidPoint,
                        values: HyperboloidPoint):
        distances = distance_batch(query, keys, self.curvature, self.epsilon)
        weights = stable_softmax(-distances / self.temperature)
        output = centroid(values, weights, self.curvature, self.epsilon)
        return output, weights

    def compute(self, query, keys, values) -> AttentionResult:
        """
        Distance-based multi-head attention with closed-form aggregation.

        Args:
            query: Query embedding, length ``dim``
            keys: Key embeddings, shape (n, dim), n >= 1
            values: Value embeddings, shape (n, dim)

        Returns:
            AttentionResult whose weights have length num_heads * n

        Raises:
            InvalidArgumentError: On empty keys, mismatched key/value counts
                or embeddings of the wrong length
        """
        start_time = time.perf_counter()
        query, keys, values = self._prepare(query, keys, values)
        n = keys.shape[0]

        query_l = to_hyperboloid(query, self.curvature)
        keys_l = to_hyperboloid_batch(keys, self.curvature)
        values_l = to_hyperboloid_batch(values, self.curvature)

        head_times = []
        head_spaces = []
        all_weights = []
        metrics = AttentionMetrics()

        for h in range(self.num_heads):
            start = h * self.head_dim
            end = start + self.head_dim

            output, weights = self._head_attention(
                query_l.slice_space(start, end),
                keys_l.slice_space(start, end),
                values_l.slice_space(start, end)
            )
            metrics.distance_ops += n
            metrics.aggregation_ops += n

            head_times.append(output.time)
            head_spaces.append(output.space)
            all_weights.append(weights)

        point = HyperboloidPoint(
            torch.mean(torch.stack(head_times)),
            torch.cat(head_spaces)
        )
        metrics.elapsed_time = time.perf_counter() - start_time

        logger.debug(f"Attention over {n} keys with {self.num_heads} heads "
                     f"(curvature={self.curvature}) took {metrics.elapsed_time:.6f}s")

        return AttentionResult(
            point=point,
            projected=to_euclidean(point),
            weights=torch.cat(all_weights),
            curvatures_used=[self.curvature],
            metrics=metrics,
        )

    def compute_tangent(self, query, keys, values) -> AttentionResult:
        """
        Single-head attention in the tangent space at the query.

        Keys and values are log-mapped to the tangent space at the query.
        Scores are Euclidean dot products of the query embedding with the
        key tangents' space parts, divided by the temperature. The weighted
        sum of the value tangents is mapped back with the exponential map.

        Args:
            query: Query embedding, length ``dim``
            keys: Key embeddings, shape (n, dim), n >= 1
            values: Value embeddings, shape (n, dim)

        Returns:
            AttentionResult with one weight per key
        """
        start_time = time.perf_counter()
        query, keys, values = self._prepare(query, keys, values)
        n = keys.shape[0]

        query_l = to_hyperboloid(query, self.curvature)
        keys_l = to_hyperboloid_batch(keys, self.curvature)
        values_l = to_hyperboloid_batch(values, self.curvature)

        keys_tangent = self.log_map(query_l, keys_l)
        scores = torch.mv(keys_tangent.space, query) / self.temperature
        weights = stable_softmax(scores)

        values_tangent = self.log_map(query_l, values_l)
        weighted_tangent = HyperboloidPoint(
            torch.sum(weights * values_tangent.time),
            torch.sum(weights.unsqueeze(-1) * values_tangent.space, dim=0)
        )
        point = self.exp_map(query_l, weighted_tangent)

        metrics = AttentionMetrics(
            distance_ops=n,
            aggregation_ops=n,
            elapsed_time=time.perf_counter() - start_time,
        )

        logger.debug(f"Tangent attention over {n} keys "
                     f"(curvature={self.curvature}) took {metrics.elapsed_time:.6f}s")

        return AttentionResult(
            point=point,
            projected=to_euclidean(point),
            weights=weights,
            curvatures_used=[self.curvature],
            metrics=metrics,
        )

    def __repr__(self) -> str:
        return (f"LorentzAttention(dim={self.dim}, curvature={self.curvature}, "
                f"num_heads={self.num_heads}, temperature={self.temperature})")


class LorentzSelfAttention:
    """Every position of a sequence attends over the whole sequence."""

    def __init__(
        self,
        dim: int,
        curvature: float = -1.0,
        num_heads: int = 1,
        temperature: float = 1.0,
        epsilon: float = DEFAULT_EPSILON,
        dtype: torch.dtype = torch.float64
    ):
        self.attention = LorentzAttention(
            dim, curvature, num_heads, temperature,
            epsilon=epsilon, dtype=dtype
        )

    def compute(self, sequence) -> List[AttentionResult]:
        if len(sequence) == 0:
            raise InvalidArgumentError("Cannot attend over an empty sequence")
        return [self.attention.compute(query, sequence, sequence) for query in sequence]


class LorentzCrossAttention:
    """A query sequence attends over a separate key/value sequence."""

    def __init__(
        self,
        dim: int,
        curvature: float = -1.0,
        num_heads: int = 1,
        temperature: float = 1.0,
        epsilon: float = DEFAULT_EPSILON,
        dtype: torch.dtype = torch.float64
    ):
        self.attention = LorentzAttention(
            dim, curvature, num_heads, temperature,
            epsilon=epsilon, dtype=dtype
        )

    def compute(self, queries, keys_values,
                values: Optional[list] = None) -> List[AttentionResult]:
        """
        Args:
            queries: Query sequence
            keys_values: Key sequence, also used as values when ``values``
                is not given
            values: Optional separate value sequence
        """
        if values is None:
            values = keys_values
        return [self.attention.compute(query, keys_values, values) for query in queries]
