"""
Partitioned Dispatcher - runs archive tasks on a fixed set of workers

With one worker (or fewer) tasks run in input order on the calling thread and
the first failure stops the dispatch.

With N workers the index range is split round-robin into N shards:

```
tasks:   0 1 2 3 4 5 6          N = 3
shard 0: 0     3     6
shard 1:   1     4
shard 2:     2     5
```

Each shard runs on its own pool thread in ascending index order. A failure is
logged and recorded, and the worker moves on to its next task; sibling
workers are never interrupted. An exception that is not a TaskFailure is
wrapped in an InvocationError for its task and handled the same way.
Once every worker has finished, the dispatch raises the recorded failure
with the lowest task index, so the reported error does not depend on
thread timing.

The partition is static: when archive sizes vary a lot one shard can finish
well after the others.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, Optional, Sequence

from archsign.errors import InvocationError, TaskFailure
from archsign.messages import get_message
from archsign.models import ArchiveTask, SigningOutcome

logger = logging.getLogger(__name__)


def shard_indices(count: int, workers: int) -> list[list[int]]:
    """Indices owned by each worker: worker k gets k, k+N, k+2N, ..."""
    if workers < 1:
        raise ValueError("workers must be positive")
    return [list(range(k, count, workers)) for k in range(workers)]


class AttemptCounter:
    """Monotonic counter shared by all workers."""

    def __init__(self, start: int = 0) -> None:
        self._value = start
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class PartitionedDispatcher:
    """Feeds tasks to ``invoke`` and aggregates what happened.

    Usage:
        dispatcher = PartitionedDispatcher(invoker.invoke)
        outcomes = dispatcher.dispatch(tasks, worker_count=4)
        dispatcher.attempted   # tasks handed to invoke, failed or not
    """

    def __init__(
        self,
        invoke: Callable[[ArchiveTask], SigningOutcome],
        counter: Optional[AttemptCounter] = None,
    ) -> None:
        self.invoke = invoke
        self.counter = counter or AttemptCounter()
        self.outcomes: list[SigningOutcome] = []
        self.errors: list[TaskFailure] = []
        self.assignments: dict[int, list[int]] = {}
        self._lock = threading.Lock()

    @property
    def attempted(self) -> int:
        return self.counter.value

    @property
    def failures(self) -> list[SigningOutcome]:
        """Failed outcomes, in the order they were recorded."""
        with self._lock:
            errors = list(self.errors)
        return [SigningOutcome.from_failure(e.task, e) for e in errors]

    def dispatch(self, tasks: Sequence[ArchiveTask], worker_count: int = 1) -> list[SigningOutcome]:
        """Run every task; raise a TaskFailure if any of them failed."""
        indexed = [replace(task, index=i) for i, task in enumerate(tasks)]
        if not indexed:
            return []
        if worker_count <= 1:
            return self._run_sequential(indexed)
        return self._run_partitioned(indexed, worker_count)

    def _record(self, error: TaskFailure) -> None:
        with self._lock:
            self.errors.append(error)

    def _attempt(self, task: ArchiveTask) -> SigningOutcome:
        try:
            outcome = self.invoke(task)
        except TaskFailure as e:
            if e.task is None:
                e.task = task
            self._record(e)
            raise
        except Exception as e:
            # unexpected errors are recorded against the task like any other failure
            failure = InvocationError(f"{type(e).__name__}: {e}", task=task)
            self._record(failure)
            raise failure from e
        finally:
            self.counter.increment()
        with self._lock:
            self.outcomes.append(outcome)
        return outcome

    def _run_sequential(self, tasks: list[ArchiveTask]) -> list[SigningOutcome]:
        done = []
        self.assignments.setdefault(0, [])
        for task in tasks:
            self.assignments[0].append(task.index)
            done.append(self._attempt(task))
        return done

    def _run_shard(self, worker_id: int, shard: list[ArchiveTask]) -> list[SigningOutcome]:
        done = []
        for task in shard:
            with self._lock:
                self.assignments.setdefault(worker_id, []).append(task.index)
            try:
                done.append(self._attempt(task))
            except TaskFailure as e:
                logger.warning("%s: %s", get_message("workerError", task.path), e)
        return done

    def _run_partitioned(self, tasks: list[ArchiveTask], worker_count: int) -> list[SigningOutcome]:
        shards = shard_indices(len(tasks), worker_count)
        errors_before = len(self.errors)

        with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="archsign-worker") as executor:
            futures = [
                executor.submit(self._run_shard, worker_id, [tasks[i] for i in shard])
                for worker_id, shard in enumerate(shards)
            ]
        # Pool joined; surface anything a worker did not handle itself.
        results = [future.result() for future in futures]

        new_errors = self.errors[errors_before:]
        if new_errors:
            raise min(new_errors, key=lambda e: e.task.index)

        done = [outcome for shard_result in results for outcome in shard_result]
        done.sort(key=lambda o: o.task.index)
        return done


__all__ = ["shard_indices", "AttemptCounter", "PartitionedDispatcher"]
