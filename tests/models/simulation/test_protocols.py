"""
Tests for simulation protocol interfaces.

This module tests protocol conformance of the shipped implementations and of
mock sources.
"""

import random

import pytest

from fire_planner.models.random_variates import NormalVariateGenerator, NumpyUniformSource
from fire_planner.models.simulation.path_simulator import simulate_path
from fire_planner.models.simulation.protocols import (
    NormalSource,
    UniformSource,
    UniformSourceFactory,
)


class MockUniformSource:
    """Mock implementation of UniformSource for testing."""

    def __init__(self):
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return (self.calls * 0.37) % 1.0


def draw_many(source: UniformSource, count: int):
    return [source.random() for _ in range(count)]


def draw_normals(source: NormalSource, count: int):
    return [source.next() for _ in range(count)]


class TestUniformSourceConformance:
    """Test implementations of UniformSource."""

    @pytest.mark.parametrize(
        "source",
        [NumpyUniformSource(seed=1), random.Random(1), MockUniformSource()],
        ids=["numpy", "stdlib", "mock"],
    )
    def test_draws_in_unit_interval(self, source):
        """Test every implementation draws from [0, 1)."""
        draws = draw_many(source, 100)

        assert all(0.0 <= draw < 1.0 for draw in draws)

    def test_mock_drives_a_path(self, base_profile, base_params):
        """Test a path runs on any conforming source."""
        source = MockUniformSource()

        run = simulate_path(base_profile, base_params, 1, source)

        assert run.outcome.simulation_id == 1
        assert source.calls > 0


class TestNormalSourceConformance:
    """Test implementations of NormalSource."""

    def test_generator_conforms(self):
        """Test the Box-Muller generator satisfies NormalSource."""
        draws = draw_normals(NormalVariateGenerator(random.Random(2)), 10)

        assert len(draws) == 10
        assert len(set(draws)) == 10


class TestUniformSourceFactory:
    """Test factories of per-path sources."""

    def test_factory_builds_distinct_sources(self):
        """Test a factory hands out one source per path id."""
        factory: UniformSourceFactory = lambda simulation_id: random.Random(
            simulation_id
        )

        first = factory(1)
        second = factory(2)

        assert first is not second
        assert first.random() != second.random()
