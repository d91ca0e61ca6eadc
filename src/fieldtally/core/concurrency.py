# concurrency.py
# SPDX-License-Identifier: MIT
"""Worker pool used to fan per-file jobs out and results back in.

Wraps thread and process pool executors with a submission window and
delivers results to a callback in completion order on the calling
thread, so the consumer of those results is a single writer.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import (
    FIRST_COMPLETED,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass
from typing import Literal, TypeVar

from .config import FieldTallyConfig, resolve_worker_count
from .log import get_logger

log = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class ExecutorConfig:
    """Immutable executor settings used to construct worker pools.

    Attributes:
        max_workers (int): Maximum number of worker threads or
            processes.
        window (int): Maximum number of in-flight tasks allowed
            before submission waits for a completion.
        kind (Literal["thread", "process"]): Executor implementation
            to use.
    """
    max_workers: int
    window: int
    kind: Literal["thread", "process"]


class WorkerPool:
    """Run tasks in a thread or process pool with bounded submission.

    The executor's work queue is the job queue; completed futures form the
    result queue, drained as they finish; leaving the executor context is
    the barrier after which no more results can arrive.

    Attributes:
        cfg (ExecutorConfig): Executor configuration for this instance.
    """

    def __init__(self, cfg: ExecutorConfig) -> None:
        self.cfg = cfg

    def _make_executor(self):
        if self.cfg.max_workers < 1:
            raise ValueError("WorkerPool requires max_workers >= 1")
        executor_cls = ProcessPoolExecutor if self.cfg.kind == "process" else ThreadPoolExecutor
        return executor_cls(max_workers=self.cfg.max_workers)

    def map_unordered(
        self,
        items: Iterable[T],
        fn: Callable[[T], R],
        on_result: Callable[[R], None],
        *,
        on_error: Callable[[T, BaseException], None] | None = None,
    ) -> None:
        """Submit items to workers and consume results as they complete.

        Args:
            items (Iterable[T]): Items to process.
            fn (Callable[[T], R]): Worker function invoked for each item.
            on_result (Callable[[R], None]): Called on this thread for every
                successful result, in completion order.
            on_error (Callable[[T, BaseException], None] | None): Called with
                the item when submitting it fails or its worker raises.
                Without it such errors are logged and the item dropped.
        """

        def _report(item: T, exc: BaseException) -> None:
            if on_error is not None:
                on_error(item, exc)
            else:
                log.error("Worker failed on %r: %s", item, exc)

        window = max(self.cfg.window, self.cfg.max_workers)
        with self._make_executor() as pool:
            pending: dict[Future[R], T] = {}

            def _drain() -> None:
                if not pending:
                    return
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for fut in done:
                    item = pending.pop(fut)
                    try:
                        result = fut.result()
                    except Exception as exc:  # noqa: BLE001
                        _report(item, exc)
                        continue
                    on_result(result)

            for item in items:
                try:
                    pending[pool.submit(fn, item)] = item
                except Exception as exc:  # noqa: BLE001
                    _report(item, exc)
                    continue
                if len(pending) >= window:
                    _drain()

            while pending:
                _drain()


def resolve_pool_config(cfg: FieldTallyConfig, n_jobs: int) -> ExecutorConfig:
    """Build executor settings for a run over ``n_jobs`` files.

    The submission window is sized to the job count so enqueuing never
    waits on a worker.
    """
    max_workers = resolve_worker_count(cfg)
    kind = (cfg.pipeline.executor_kind or "thread").strip().lower()
    if kind not in {"thread", "process"}:
        log.warning("Unknown executor kind %r; using thread", cfg.pipeline.executor_kind)
        kind = "thread"
    return ExecutorConfig(
        max_workers=max_workers,
        window=max(n_jobs, max_workers),
        kind=kind,  # type: ignore[arg-type]
    )


__all__ = [
    "ExecutorConfig",
    "WorkerPool",
    "resolve_pool_config",
]
