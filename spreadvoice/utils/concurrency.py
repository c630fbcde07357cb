"""Index-ordered parallel execution over a bounded thread pool."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
import os
import threading
import time
from typing import Any, Generic, Protocol, TypeVar

from tqdm import tqdm

from spreadvoice.errors import PartialFailure, TotalFailure

from .log_utils import logger


T = TypeVar("T")
TIn = TypeVar("TIn")
TOut = TypeVar("TOut")


class ProgressReporter(Protocol):
    """Lightweight progress reporter abstraction."""

    def start(self, total: int) -> None: ...

    def increment(self) -> None: ...

    def close(self) -> None: ...


class TqdmProgressReporter:
    """Progress reporter backed by tqdm; safe to increment from worker threads."""

    def __init__(self, desc: str) -> None:
        self._desc = desc
        self._pbar: tqdm | None = None
        self._lock = threading.Lock()

    def start(self, total: int) -> None:
        self._pbar = tqdm(
            total=total,
            desc=self._desc,
            smoothing=0,
            leave=False,
        )

    def increment(self) -> None:
        with self._lock:
            if self._pbar is not None:
                self._pbar.update(1)

    def close(self) -> None:
        with self._lock:
            if self._pbar is not None:
                self._pbar.close()
                self._pbar = None


@dataclass(frozen=True, slots=True)
class LogicalUnit(Generic[T]):
    """One logical page's payload, tagged with its global position."""

    index: int
    payload: T


@dataclass(frozen=True, slots=True)
class UnitFailure:
    """A failed logical index and the error that caused it."""

    index: int
    error: BaseException

    def describe(self) -> str:
        return f"unit {self.index}: {self.error}"


@dataclass(slots=True)
class PipelineResult(Generic[T]):
    """Units sorted by index plus every failure collected along the way."""

    units: list[LogicalUnit[T]] = field(default_factory=list)
    failures: list[UnitFailure] = field(default_factory=list)
    expected_total: int | None = None

    def __post_init__(self) -> None:
        self.units = sorted(self.units, key=lambda unit: unit.index)
        self.failures = sorted(self.failures, key=lambda failure: failure.index)

    @property
    def ok(self) -> bool:
        return not self.failures and not self.missing_indices()

    @property
    def indices(self) -> list[int]:
        return [unit.index for unit in self.units]

    @property
    def failed_indices(self) -> list[int]:
        return [failure.index for failure in self.failures]

    def payloads(self) -> list[T]:
        return [unit.payload for unit in self.units]

    def missing_indices(self) -> list[int]:
        """Indices in ``0..expected_total-1`` with neither a unit nor a failure."""
        if self.expected_total is None:
            return []
        seen = set(self.indices) | set(self.failed_indices)
        return [index for index in range(self.expected_total) if index not in seen]

    def is_contiguous(self) -> bool:
        """True when successful indices are exactly ``0..len(units)-1``."""
        return self.indices == list(range(len(self.units)))

    def raise_for_failures(self, report: Any | None = None) -> None:
        """Raise ``TotalFailure`` when nothing succeeded, ``PartialFailure`` when some units failed.

        ``report`` is attached to the ``PartialFailure`` so callers can still
        reach the units that did succeed.
        """
        if not self.failures:
            return
        if not self.units:
            raise TotalFailure(self.failures)
        raise PartialFailure(self.failures, report)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for worker jobs."""

    max_attempts: int = 1
    retry_exceptions: tuple[type[BaseException], ...] = (TimeoutError,)
    backoff_seconds: float = 0.0

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        if attempt >= self.max_attempts:
            return False
        return isinstance(exc, self.retry_exceptions)


def default_concurrency() -> int:
    return max(1, os.cpu_count() or 1)


class ParallelExecutor:
    """Run blocking callables across a bounded thread pool.

    Every item carries a precomputed logical index; results are reassembled by
    that index alone, so completion order never leaks into the output. Worker
    failures are collected rather than raised so independent units keep
    progressing.
    """

    def __init__(
        self,
        *,
        max_concurrency: int | None = None,
        retry_policy: RetryPolicy | None = None,
        progress_reporter: ProgressReporter | None = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._max_concurrency = max_concurrency or default_concurrency()
        self._retry_policy = retry_policy or RetryPolicy()
        self._progress = progress_reporter

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    def map_indexed(
        self,
        fn: Callable[[TIn], TOut],
        items: Iterable[TIn],
        *,
        index_fn: Callable[[TIn], int],
        expected_total: int | None = None,
    ) -> PipelineResult[TOut]:
        """Apply ``fn`` to every item and return results ordered by ``index_fn``."""
        jobs = [(index_fn(item), item) for item in items]
        _check_unique_indices(index for index, _ in jobs)
        if not jobs:
            return PipelineResult(expected_total=expected_total)

        units: list[LogicalUnit[TOut]] = []
        failures: list[UnitFailure] = []

        if self._progress:
            self._progress.start(len(jobs))
        try:
            workers = min(self._max_concurrency, len(jobs))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="spreadvoice") as pool:
                futures = {
                    pool.submit(self._run_with_retry, fn, item): index for index, item in jobs
                }
                for future in as_completed(futures):
                    index = futures[future]
                    exc = future.exception()
                    if exc is None:
                        units.append(LogicalUnit(index=index, payload=future.result()))
                    else:
                        logger.opt(exception=exc).debug(f"Parallel executor job {index} failed")
                        logger.error(f"Unit {index} failed: {exc}")
                        failures.append(UnitFailure(index=index, error=exc))
                    if self._progress:
                        self._progress.increment()
        finally:
            if self._progress:
                self._progress.close()

        result = PipelineResult(units=units, failures=failures, expected_total=expected_total)
        if result.failures:
            logger.warning(
                f"Parallel executor encountered {len(result.failures)} failed job(s): "
                f"{result.failed_indices}."
            )
        missing = result.missing_indices()
        if missing:
            logger.warning(f"Result is missing logical indices {missing}.")
        return result

    def _run_with_retry(self, fn: Callable[[TIn], TOut], item: TIn) -> TOut:
        attempt = 0
        while True:
            attempt += 1
            try:
                return fn(item)
            except Exception as exc:
                if not self._retry_policy.should_retry(exc, attempt):
                    raise
                logger.debug(f"Retrying job after attempt {attempt} failed: {exc!r}")
                if self._retry_policy.backoff_seconds > 0:
                    time.sleep(self._retry_policy.backoff_seconds)


def _check_unique_indices(indices: Iterable[int]) -> None:
    seen: set[int] = set()
    duplicates: set[int] = set()
    for index in indices:
        if index < 0:
            raise ValueError(f"Logical indices must be non-negative, got {index}")
        if index in seen:
            duplicates.add(index)
        seen.add(index)
    if duplicates:
        raise ValueError(f"Duplicate logical indices: {sorted(duplicates)}")


__all__ = [
    "LogicalUnit",
    "ParallelExecutor",
    "PipelineResult",
    "ProgressReporter",
    "RetryPolicy",
    "TqdmProgressReporter",
    "UnitFailure",
    "default_concurrency",
]
