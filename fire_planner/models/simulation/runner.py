"""
Batch orchestration for Monte Carlo FIRE simulations.

The BatchRunner validates the inputs once, fans the paths of a batch out over
a thread or process pool in contiguous chunks, merges the per-chunk buffers in
id order and reduces the outcomes into an AggregateResult. Paths are pure
Python, so only the process pool runs them in parallel.

Every path owns its uniform source and normal generator. The default sources
are spawned from the batch seed per path id, so a seeded batch returns the
same outcomes whatever the number of workers or the chunk size.
"""

import logging
import threading
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from typing import List, Optional, Tuple

from ..profile import (
    FinancialProfile,
    FixedParameters,
    SimulationParameters,
    validate_inputs,
)
from ..random_variates import NormalVariateGenerator, NumpyUniformSource, spawn_path_seeds
from ..success_metrics import summarize_outcomes
from .path_simulator import PathRun, simulate_path
from .protocols import UniformSourceFactory
from .result import AggregateResult, PathOutcome, SimulationLog

logger = logging.getLogger(__name__)

EXECUTOR_KINDS = ("thread", "process")


class SimulationCancelled(Exception):
    """Raised when a batch is cancelled before all paths completed."""


class CancellationToken:
    """Cooperative cancellation flag checked between paths."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation of the batch."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._event.is_set()


class BatchRunner:
    """Runs a batch of independent simulated paths."""

    def __init__(
        self,
        max_workers: int = 1,
        chunk_size: Optional[int] = None,
        uniform_source_factory: Optional[UniformSourceFactory] = None,
        executor: str = "thread",
    ) -> None:
        """Initialize the batch runner.

        Args:
            max_workers: Number of workers, 1 runs paths inline
            chunk_size: Paths per work unit, defaults to an even split
            uniform_source_factory: Builds the uniform source of a path from
                its id, defaults to numpy generators spawned from the batch seed.
                Must be picklable with the process executor.
            executor: "thread" or "process" pool for more than one worker
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if chunk_size is not None and chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        if executor not in EXECUTOR_KINDS:
            raise ValueError(f"executor must be one of {EXECUTOR_KINDS}")

        self.max_workers = max_workers
        self.chunk_size = chunk_size
        self.uniform_source_factory = uniform_source_factory
        self.executor = executor

    def run(
        self,
        profile: FinancialProfile,
        params: SimulationParameters,
        capture_logs: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AggregateResult:
        """
        Run the batch and aggregate its outcomes.

        Args:
            profile: Financial profile to simulate
            params: Monte Carlo parameters
            capture_logs: Whether to keep yearly logs and the parameter snapshot
            cancel_token: Optional token checked between paths

        Returns:
            AggregateResult with outcomes in id order

        Raises:
            ConfigurationError: If the profile cannot be simulated, before any
                path runs
            SimulationCancelled: If cancellation was requested
        """
        validate_inputs(profile)

        num_paths = params.num_simulations
        started = time.perf_counter()
        logger.info(
            f"Starting Monte Carlo batch of {num_paths} paths "
            f"with {self.max_workers} {self.executor} worker(s)"
        )

        factory = self.uniform_source_factory or SpawnedSourceFactory(params)
        chunks = self._chunk_ranges(num_paths)

        try:
            if self.max_workers == 1 or len(chunks) == 1:
                buffers = [
                    simulate_chunk(
                        profile, params, bounds, factory, capture_logs, cancel_token
                    )
                    for bounds in chunks
                ]
            else:
                buffers = self._run_pool(
                    profile, params, chunks, factory, capture_logs, cancel_token
                )
        except SimulationCancelled:
            logger.warning(f"Monte Carlo batch of {num_paths} paths was cancelled")
            raise

        outcomes: List[PathOutcome] = []
        logs: List[SimulationLog] = []
        for buffer in buffers:
            for path_run in buffer:
                outcomes.append(path_run.outcome)
                if path_run.log is not None:
                    logs.append(path_run.log)

        summary = summarize_outcomes(outcomes)
        elapsed = time.perf_counter() - started

        logger.info(
            f"Completed Monte Carlo batch: {summary.success_count}/{num_paths} "
            f"successful ({summary.success_rate:.1f}%) in {elapsed:.2f}s"
        )

        return AggregateResult(
            **summary.model_dump(),
            simulations=outcomes,
            logs=logs if capture_logs else None,
            fixed_parameters=(
                FixedParameters.from_inputs(profile, params) if capture_logs else None
            ),
            execution_time_seconds=elapsed,
        )

    def _chunk_ranges(self, num_paths: int) -> List[Tuple[int, int]]:
        """Split path ids 1..num_paths into contiguous inclusive ranges."""
        chunk_size = self.chunk_size
        if chunk_size is None:
            chunk_size = -(-num_paths // self.max_workers)

        return [
            (first_id, min(first_id + chunk_size - 1, num_paths))
            for first_id in range(1, num_paths + 1, chunk_size)
        ]

    def _run_pool(
        self,
        profile: FinancialProfile,
        params: SimulationParameters,
        chunks: List[Tuple[int, int]],
        factory: UniformSourceFactory,
        capture_logs: bool,
        cancel_token: Optional[CancellationToken],
    ) -> List[List[PathRun]]:
        """Fan chunks out over a thread or process pool and collect them in order."""
        if self.executor == "process":
            pool_class = ProcessPoolExecutor
            # Tokens do not cross process boundaries, so workers never see them
            worker_token = None
        else:
            pool_class = ThreadPoolExecutor
            worker_token = cancel_token

        buffers: List[List[PathRun]] = []
        with pool_class(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(
                    simulate_chunk,
                    profile,
                    params,
                    bounds,
                    factory,
                    capture_logs,
                    worker_token,
                )
                for bounds in chunks
            ]
            for future in futures:
                if cancel_token is not None and cancel_token.cancelled:
                    for pending in futures:
                        pending.cancel()
                    raise SimulationCancelled("Batch cancelled while chunks were running")
                buffers.append(future.result())

        return buffers


class SpawnedSourceFactory:
    """
    Uniform sources spawned per path id from the batch seed.

    Holds only the spawned seed sequences, so it can be sent to worker
    processes.
    """

    def __init__(self, params: SimulationParameters) -> None:
        self.seeds = spawn_path_seeds(params.seed, params.num_simulations)

    def __call__(self, simulation_id: int) -> NumpyUniformSource:
        return NumpyUniformSource(self.seeds[simulation_id - 1])


def simulate_chunk(
    profile: FinancialProfile,
    params: SimulationParameters,
    bounds: Tuple[int, int],
    factory: UniformSourceFactory,
    capture_logs: bool,
    cancel_token: Optional[CancellationToken] = None,
) -> List[PathRun]:
    """
    Simulate the paths of one contiguous id range.

    Args:
        profile: Financial profile to simulate
        params: Monte Carlo parameters
        bounds: First and last path id, inclusive
        factory: Builds the uniform source of a path from its id
        capture_logs: Whether to record yearly logs
        cancel_token: Optional token checked before each path

    Returns:
        Path runs in id order

    Raises:
        SimulationCancelled: If the token was cancelled before a path started
    """
    first_id, last_id = bounds
    buffer: List[PathRun] = []
    for simulation_id in range(first_id, last_id + 1):
        if cancel_token is not None and cancel_token.cancelled:
            raise SimulationCancelled(f"Batch cancelled before path {simulation_id}")
        uniform_source = factory(simulation_id)
        buffer.append(
            simulate_path(
                profile,
                params,
                simulation_id,
                uniform_source,
                NormalVariateGenerator(uniform_source),
                capture_log=capture_logs,
            )
        )
    return buffer


def run_monte_carlo_simulation(
    profile: FinancialProfile,
    params: SimulationParameters,
    capture_logs: bool = False,
) -> AggregateResult:
    """Run a batch inline with default per-path random sources."""
    return BatchRunner().run(profile, params, capture_logs=capture_logs)
