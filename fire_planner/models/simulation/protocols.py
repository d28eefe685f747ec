"""
Protocol interfaces for simulation randomness.

This module defines the Protocol interfaces through which the path simulator
consumes randomness. Injecting them keeps every path's random stream owned by
that path and lets tests substitute deterministic sequences.

Design Principles:
1. Dependency Inversion: the simulator depends on these abstractions only
2. Substitutability: numpy generators, ``random.Random`` or scripted test
   sources can be swapped freely
3. Isolation: one source per path, never shared between concurrent paths
"""

from typing import Callable, Protocol


class UniformSource(Protocol):
    """
    Provides uniform random draws.

    ``random.Random`` instances satisfy this protocol out of the box.
    """

    def random(self) -> float:
        """
        Draw a uniform sample.

        Returns:
            A float in the half-open interval [0, 1)
        """
        ...


class NormalSource(Protocol):
    """Provides standard-normal random draws."""

    def next(self) -> float:
        """Draw one standard-normal variate."""
        ...


# Builds the uniform source owned by the path with the given 1-based id
UniformSourceFactory = Callable[[int], UniformSource]
