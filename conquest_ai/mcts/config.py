"""
Configuration for Monte Carlo Tree Search (MCTS).

This module defines the configuration parameters for the search, including
the iteration budget, exploration constant, playout depth, scoring mode and
reinforcement allocation policy.
"""
from dataclasses import dataclass, field, fields
from typing import Optional, Literal, ClassVar
import math

from conquest_ai.core.constants import DEFAULT_MAX_VARIATIONS, DEFAULT_TOP_K, MAX_TOP_K
from conquest_ai.core.scoring import ScoringWeights


@dataclass
class MCTSConfig:
    """
    Tunable settings of the move advisor.

    Invalid values raise ValueError on construction, so a config that
    exists is always usable by the search.
    """
    # Search parameters
    iterations: int = 1000
    """Number of MCTS iterations per recommendation"""

    exploration_weight: float = math.sqrt(2)
    """UCT exploration constant (default is sqrt(2))"""

    max_depth: int = 10
    """Maximum number of plies in a playout"""

    time_limit: Optional[float] = None
    """Optional time limit in seconds, checked between iterations (None = no limit)"""

    # Strategy parameters
    scoring_mode: Literal["mean", "win_rate"] = "mean"
    """Exploitation term: mean playout score or win rate"""

    allocation_policy: Literal["proportional", "top_k"] = "proportional"
    """How reinforcement candidates are generated"""

    max_variations: int = DEFAULT_MAX_VARIATIONS
    """Upper bound on proportional allocation variants"""

    top_k: int = DEFAULT_TOP_K
    """Number of countries considered by the top-k policy"""

    cycle_turns: bool = True
    """Whether playouts advance through phases and players"""

    weights: ScoringWeights = field(default_factory=ScoringWeights)
    """Weights of the evaluation function"""

    # Reporting
    top_n: int = 5
    """Number of ranked moves returned"""

    # Parallelization
    num_workers: int = 1
    """Number of independent root-parallel trees (1 = single-threaded)"""

    # Constants
    INFINITE_VALUE: ClassVar[float] = float('inf')
    """Value representing infinity in the algorithm"""

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.iterations <= 0:
            raise ValueError("iterations must be positive")

        if self.exploration_weight < 0:
            raise ValueError("exploration_weight must be non-negative")

        if self.max_depth <= 0:
            raise ValueError("max_depth must be positive")

        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError("time_limit must be positive or None")

        if self.scoring_mode not in ["mean", "win_rate"]:
            raise ValueError("scoring_mode must be 'mean' or 'win_rate'")

        if self.allocation_policy not in ["proportional", "top_k"]:
            raise ValueError("allocation_policy must be 'proportional' or 'top_k'")

        if self.max_variations <= 0:
            raise ValueError("max_variations must be positive")

        if not 1 <= self.top_k <= MAX_TOP_K:
            raise ValueError(f"top_k must be between 1 and {MAX_TOP_K}")

        if self.top_n <= 0:
            raise ValueError("top_n must be positive")

        if self.num_workers <= 0:
            raise ValueError("num_workers must be positive")

        if isinstance(self.weights, dict):
            self.weights = ScoringWeights.from_dict(self.weights)

    @classmethod
    def default(cls) -> 'MCTSConfig':
        """The settings used when no configuration is given."""
        return cls()

    @classmethod
    def fast(cls) -> 'MCTSConfig':
        """
        A quick advisor for interactive play.

        Fewer iterations, shorter playouts and fewer reinforcement variants.
        """
        return cls(
            iterations=200,
            max_depth=6,
            max_variations=200,
        )

    @classmethod
    def deep(cls) -> 'MCTSConfig':
        """
        A slow, stronger advisor.

        More iterations and longer playouts, spread over four root-parallel
        trees.
        """
        return cls(
            iterations=5000,
            max_depth=20,
            num_workers=4,
        )

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'MCTSConfig':
        """
        Build a configuration from plain values, e.g. a parsed JSON file.

        Unknown keys are ignored and `weights` may be given as a dict.

        Args:
            config_dict: Field values by name

        Returns:
            Validated MCTSConfig
        """
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config_dict.items() if k in names})

    def to_dict(self) -> dict:
        """Plain, JSON-compatible values of every field."""
        result = {}
        for name in (f.name for f in fields(self)):
            value = getattr(self, name)
            result[name] = value.to_dict() if isinstance(value, ScoringWeights) else value
        return result

    def __str__(self) -> str:
        params = [f"{f.name}={getattr(self, f.name)}" for f in fields(self)
                  if f.name != "weights"]
        return f"MCTSConfig({', '.join(params)})"
