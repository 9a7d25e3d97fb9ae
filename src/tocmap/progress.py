"""Progress tracking for long-running document jobs.

A :class:`ProgressStore` holds the latest :class:`ProgressState` per
operation id so a poller can report phase, percentage and ETA while a
parsing job runs. Finished operations are evicted after a TTL by
:meth:`ProgressStore.sweep`, which either the caller invokes or a
background thread runs between :meth:`ProgressStore.start` and
:meth:`ProgressStore.stop`.

The clock is injectable so tests can advance time without sleeping.
"""
from __future__ import annotations

import dataclasses
import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"

MAX_RUNNING_PERCENTAGE = 99


@dataclass(frozen=True, slots=True)
class ProgressConfig:
    """Eviction policy, all values in seconds."""

    completed_ttl: float = 30.0
    error_ttl: float = 60.0
    stale_ttl: float = 3600.0
    sweep_interval: float = 5.0


@dataclass(slots=True)
class ProgressState:
    operation_id: str
    phase: str
    percentage: int
    start_time: float
    updated_at: float
    current_step: str
    status: str = STATUS_RUNNING
    estimated_time_remaining: float | None = None
    error: str | None = None
    finished_at: float | None = None
    chunk_count: int | None = None
    char_count: int | None = None
    elapsed_ms: int | None = None
    contract_stats: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


class ProgressStore:
    """Thread-safe map of operation id to progress state."""

    def __init__(
        self,
        config: ProgressConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or ProgressConfig()
        self.clock = clock
        self._states: dict[str, ProgressState] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # ── state access ──────────────────────────────────────────────────

    def get(self, operation_id: str) -> ProgressState | None:
        """Return a snapshot of the operation's state, or None."""
        with self._lock:
            state = self._states.get(operation_id)
            if state is None:
                return None
            return dataclasses.replace(state, contract_stats=dict(state.contract_stats))

    def put(self, state: ProgressState) -> None:
        with self._lock:
            self._states[state.operation_id] = state

    def update(self, operation_id: str, **changes: Any) -> bool:
        """Apply ``changes`` to a tracked state. False if it is gone."""
        with self._lock:
            state = self._states.get(operation_id)
            if state is None:
                return False
            for name, value in changes.items():
                setattr(state, name, value)
            state.updated_at = self.clock()
            return True

    def discard(self, operation_id: str) -> None:
        with self._lock:
            self._states.pop(operation_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def __contains__(self, operation_id: object) -> bool:
        with self._lock:
            return operation_id in self._states

    # ── eviction ──────────────────────────────────────────────────────

    def _expired(self, state: ProgressState, now: float) -> bool:
        if state.status == STATUS_COMPLETED:
            ref = state.finished_at if state.finished_at is not None else state.updated_at
            return now - ref >= self.config.completed_ttl
        if state.status == STATUS_ERROR:
            ref = state.finished_at if state.finished_at is not None else state.updated_at
            return now - ref >= self.config.error_ttl
        return now - state.updated_at >= self.config.stale_ttl

    def sweep(self) -> int:
        """Evict expired operations. Returns the number removed."""
        now = self.clock()
        with self._lock:
            expired = [
                op_id for op_id, state in self._states.items()
                if self._expired(state, now)
            ]
            for op_id in expired:
                del self._states[op_id]
        if expired:
            logger.debug("Evicted %d progress entries", len(expired))
        return len(expired)

    # ── background sweep lifecycle ────────────────────────────────────

    def start(self) -> None:
        """Start the background sweep thread (no-op if already running)."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._sweep_loop, name="progress-sweep", daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Stop the background sweep thread and wait for it to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(self.config.sweep_interval):
            self.sweep()

    def __enter__(self) -> ProgressStore:
        self.start()
        return self

    def __exit__(self, *_args: object) -> None:
        self.stop()


class ProgressTracker:
    """Reports weighted phase progress for one operation into a store.

    ``phases`` is a sequence of ``(name, weight)``; the overall percentage
    is the completed weight over the total weight, held at 99 until
    :meth:`complete` is called.
    """

    def __init__(
        self,
        store: ProgressStore,
        operation_id: str,
        phases: Sequence[tuple[str, float]],
    ) -> None:
        if not phases:
            raise ValueError("ProgressTracker requires at least one phase")
        if any(weight < 0 for _, weight in phases):
            raise ValueError("Phase weights must be non-negative")
        self.store = store
        self.operation_id = operation_id
        self.phases = list(phases)
        self.current_phase_index = 0
        self.start_time = store.clock()
        first = self.phases[0][0]
        store.put(
            ProgressState(
                operation_id=operation_id,
                phase=first,
                percentage=0,
                start_time=self.start_time,
                updated_at=self.start_time,
                current_step=first,
            )
        )

    def _percentage(self, phase_index: int, progress_within_phase: float | None) -> int:
        completed = sum(w for _, w in self.phases[:phase_index])
        if progress_within_phase is not None:
            within = min(max(progress_within_phase, 0.0), 100.0)
            completed += self.phases[phase_index][1] * within / 100
        total = sum(w for _, w in self.phases)
        if total <= 0:
            return 0
        return min(int(completed / total * 100), MAX_RUNNING_PERCENTAGE)

    def update_phase(
        self,
        phase_index: int,
        step: str | None = None,
        progress_within_phase: float | None = None,
        *,
        telemetry: dict[str, int] | None = None,
        contract_stats: dict[str, int] | None = None,
    ) -> int:
        """Move to ``phase_index`` and recompute percentage and ETA.

        Returns the new percentage.
        """
        if not 0 <= phase_index < len(self.phases):
            raise ValueError(
                f"phase_index {phase_index} out of range for {len(self.phases)} phases"
            )
        self.current_phase_index = phase_index
        percentage = self._percentage(phase_index, progress_within_phase)

        elapsed = self.store.clock() - self.start_time
        eta: float | None = None
        if percentage > 0:
            eta = max(0.0, elapsed / percentage * 100 - elapsed)

        name = self.phases[phase_index][0]
        changes: dict[str, Any] = {
            "phase": name,
            "percentage": percentage,
            "estimated_time_remaining": eta,
            "current_step": step or name,
        }
        if telemetry:
            changes["chunk_count"] = telemetry.get("chunk_count")
            changes["char_count"] = telemetry.get("char_count")
            changes["elapsed_ms"] = telemetry.get("elapsed_ms")
        if contract_stats:
            changes["contract_stats"] = dict(contract_stats)
        self.store.update(self.operation_id, **changes)
        return percentage

    def update_step(self, step: str) -> None:
        self.store.update(self.operation_id, current_step=step)

    def complete(self) -> None:
        self.store.update(
            self.operation_id,
            percentage=100,
            status=STATUS_COMPLETED,
            estimated_time_remaining=0.0,
            current_step="Complete",
            finished_at=self.store.clock(),
        )

    def error(self, message: str) -> None:
        logger.warning("Operation %s failed: %s", self.operation_id, message)
        self.store.update(
            self.operation_id,
            status=STATUS_ERROR,
            error=message,
            finished_at=self.store.clock(),
        )
