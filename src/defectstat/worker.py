"""Background execution of the Monte Carlo simulation.

The simulation is too heavy to run on an interactive thread, so
:class:`SimulationWorker` runs it on a daemon thread and publishes progress and
the final outcome as :class:`WorkerMessage` items on a queue.  A host loop
(GUI ``after`` callback, service tick, CLI spinner) drains the queue with
:meth:`SimulationWorker.poll`.
"""

from __future__ import annotations

import logging
import queue
import threading
import traceback
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .models import MonteCarloResult
from .simulation import InsufficientDataError, MonteCarloSimulator, SimulationCancelled

logger = logging.getLogger(__name__)


@dataclass
class WorkerMessage:
    """Container for messages communicated from the worker thread."""

    kind: str
    progress: int = 0
    results: Optional[List[MonteCarloResult]] = None
    error: Optional[str] = None
    details: Optional[str] = None


class SimulationWorker:
    """Runs one simulation at a time off the calling thread."""

    def __init__(self, simulator: Optional[MonteCarloSimulator] = None) -> None:
        self.simulator = simulator or MonteCarloSimulator()
        self._queue: "queue.Queue[WorkerMessage]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self.latest_results: Optional[List[MonteCarloResult]] = None

    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self, costs: Sequence[float]) -> None:
        snapshot = [float(c) for c in costs]
        if not snapshot:
            raise InsufficientDataError("cannot run Monte Carlo simulation without repair cost data")
        with self._lock:
            if self.is_running:
                raise RuntimeError("a simulation is already running")
            self._cancel = threading.Event()
            self._worker = threading.Thread(
                target=self._run,
                args=(snapshot, self._cancel),
                name="defectstat-simulation",
                daemon=True,
            )
            self._worker.start()

    def cancel(self) -> None:
        self._cancel.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the worker thread; returns True once it has finished."""

        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    def poll(self) -> List[WorkerMessage]:
        messages: List[WorkerMessage] = []
        try:
            while True:
                messages.append(self._queue.get_nowait())
        except queue.Empty:
            pass
        return messages

    def _run(self, costs: List[float], cancel: threading.Event) -> None:
        def on_progress(pct: int) -> None:
            self._queue.put(WorkerMessage("progress", progress=pct))

        try:
            results = self.simulator.run(costs, progress=on_progress, cancel=cancel)
        except SimulationCancelled:
            logger.info("Simulation cancelled")
            self._queue.put(WorkerMessage("cancelled"))
        except Exception as exc:
            logger.error("Simulation failed: %s", exc)
            self._queue.put(WorkerMessage("error", error=str(exc), details=traceback.format_exc()))
        else:
            self.latest_results = results
            self._queue.put(WorkerMessage("result", progress=100, results=results))


__all__ = ["SimulationWorker", "WorkerMessage"]
