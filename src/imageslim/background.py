"""One-shot background execution of a batch run."""

from __future__ import annotations

import queue
import threading
from typing import Callable, Optional

from loguru import logger

from imageslim.command_builder import RunConfiguration
from imageslim.errors import describe_failure
from imageslim.gm_runner import RunOutcome, describe_command


class BackgroundRun:
    """Runs ``runner(config)`` on a daemon thread.

    The outcome is delivered through a single-slot queue and read by the UI
    loop with :meth:`poll`; the UI never shares mutable state with the worker.
    """

    def __init__(self, config: RunConfiguration, runner: Callable[[RunConfiguration], RunOutcome]) -> None:
        self.config = config
        self._runner = runner
        self._results: "queue.Queue[RunOutcome]" = queue.Queue(maxsize=1)
        self._thread: Optional[threading.Thread] = None
        self._delivered = False

    def start(self) -> "BackgroundRun":
        if self._thread is not None:
            return self
        self._thread = threading.Thread(
            target=self._worker,
            daemon=True,
            name="imageslim-gm-run",
        )
        self._thread.start()
        logger.debug(f"Background run started: {self._thread.name}")
        return self

    @property
    def in_flight(self) -> bool:
        return self._thread is not None and not self._delivered

    def poll(self) -> Optional[RunOutcome]:
        """Return the outcome once it is ready; ``None`` until then and after."""
        if self._delivered:
            return None
        try:
            outcome = self._results.get_nowait()
        except queue.Empty:
            return None
        self._delivered = True
        return outcome

    def wait(self, timeout: Optional[float] = None) -> Optional[RunOutcome]:
        """Block until the outcome arrives. Used by tests and non-interactive callers."""
        if self._delivered:
            return None
        try:
            outcome = self._results.get(timeout=timeout)
        except queue.Empty:
            return None
        self._delivered = True
        return outcome

    def _worker(self) -> None:
        try:
            outcome = self._runner(self.config)
        except Exception as e:
            # The UI must always get a completion event, even if the runner blew up.
            logger.exception("Unexpected error in background run")
            outcome = RunOutcome(
                command_description=describe_command(self.config, "(not started)"),
                output="",
                failure=e,
            )
        if outcome.failure is not None:
            logger.debug(f"Background run failed: {describe_failure(outcome.failure)}")
        self._results.put(outcome)
