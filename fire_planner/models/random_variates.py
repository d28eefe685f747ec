"""
Random variate generation for Monte Carlo simulation.

This module turns uniform draws into standard-normal variates with the
Box-Muller transform and provides the numpy-backed uniform source used by the
batch runner. Each simulated path owns its own generator, so the cached second
variate of one path is never observed by another.
"""

import math
from typing import List, Optional, Union

import numpy as np

from .simulation.protocols import UniformSource

# Replacement for a zero uniform draw, keeps log(u1) finite
MIN_UNIFORM = 1e-10


class NumpyUniformSource:
    """Uniform source backed by a ``numpy.random.Generator``."""

    def __init__(
        self, seed: Union[None, int, np.random.SeedSequence] = None
    ) -> None:
        """Initialize the source.

        Args:
            seed: Integer seed or SeedSequence, None for fresh OS entropy
        """
        self._rng = np.random.default_rng(seed)

    def random(self) -> float:
        """Draw a uniform sample in [0, 1)."""
        return float(self._rng.random())


class NormalVariateGenerator:
    """
    Standard-normal generator using the Box-Muller transform.

    Every transform yields a pair of independent normals. The first is
    returned and the second is cached for the next call, so the logarithm and
    trigonometric functions are evaluated once per two variates.
    """

    def __init__(self, uniform_source: UniformSource) -> None:
        """Initialize the generator.

        Args:
            uniform_source: Source of uniform draws owned by this generator
        """
        self.uniform_source = uniform_source
        self._cached: Optional[float] = None

    def next(self) -> float:
        """Draw one standard-normal variate."""
        if self._cached is not None:
            z = self._cached
            self._cached = None
            return z

        u1 = self.uniform_source.random() or MIN_UNIFORM
        u2 = self.uniform_source.random()

        radius = math.sqrt(-2.0 * math.log(u1))
        theta = 2.0 * math.pi * u2

        self._cached = radius * math.sin(theta)
        return radius * math.cos(theta)

    def reset(self) -> None:
        """Discard the cached variate."""
        self._cached = None


def random_return(
    expected_return: float, volatility: float, generator: NormalVariateGenerator
) -> float:
    """
    Draw a normally distributed annual return.

    Args:
        expected_return: Mean annual return (decimal)
        volatility: Annual standard deviation (decimal)
        generator: Normal variate generator owned by the current path

    Returns:
        Simulated annual return (decimal)
    """
    return expected_return + volatility * generator.next()


def spawn_path_seeds(
    seed: Optional[int], num_paths: int
) -> List[np.random.SeedSequence]:
    """
    Derive one independent seed sequence per simulated path.

    Args:
        seed: Batch seed, None for fresh OS entropy
        num_paths: Number of paths in the batch

    Returns:
        List of SeedSequences, index ``i`` belonging to path id ``i + 1``
    """
    return np.random.SeedSequence(seed).spawn(num_paths)
