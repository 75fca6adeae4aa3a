"""
Drive work units through the model one at a time and build the result table.

State machine: Idle -> Running -> Succeeded | Failed | Cancelled.
Processing is strictly sequential; the first failing unit stops the run but
keeps every row gathered so far.
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from slr_extract.errors import InputError, PipelineBusyError
from slr_extract.progress import ProgressTracker, UnitStatus
from slr_extract.splitter import DEFAULT_BATCH_SIZE, FileUnit, split_text
from slr_extract.table import HEADER_TOKEN, ResultTable, extract_rows

TEXT_MODE = "text"
FILE_MODE = "file"

FALLBACK_ERROR = "An unexpected error occurred during processing"


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RunSnapshot:
    """Consistent, read-only view of a run for observers."""
    state: RunState
    mode: str
    result: str
    completed: int
    total: int
    units: tuple
    error: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.state in (RunState.SUCCEEDED, RunState.FAILED, RunState.CANCELLED)


class ExtractionPipeline:
    """
    Owns all run state: input, file queue, tracker, result table and error.

    Observers subscribe to receive a RunSnapshot after every change. State is
    only mutated under the lock, so an observer never sees half an update.
    """

    def __init__(
        self,
        extractor,
        batch_size: int = DEFAULT_BATCH_SIZE,
        unit_delay: float = 2.0,
        header_token: str = HEADER_TOKEN,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.extractor = extractor
        self.batch_size = batch_size
        self.unit_delay = unit_delay
        self.header_token = header_token
        self.sleep = sleep

        self.mode = TEXT_MODE
        self.text_input = ""
        self.files = []
        self.state = RunState.IDLE
        self.table = ResultTable()
        self.tracker = ProgressTracker()
        self.error = None
        self.exception = None

        self._lock = threading.RLock()
        self._cancel = threading.Event()
        self._subscribers = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[RunSnapshot], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> RunSnapshot:
        with self._lock:
            return RunSnapshot(
                state=self.state,
                mode=self.mode,
                result=self.table.markdown if self.state != RunState.IDLE else "",
                completed=self.tracker.completed,
                total=self.tracker.total,
                units=tuple(self.tracker.items()),
                error=self.error
            )

    def _notify(self) -> None:
        snap = self.snapshot()
        for callback in list(self._subscribers):
            callback(snap)

    @property
    def running(self) -> bool:
        return self.state == RunState.RUNNING

    def _guard(self, action: str) -> None:
        if self.running:
            raise PipelineBusyError(f"Cannot {action} while a run is in progress")

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def set_text(self, text: str) -> None:
        """Replace the abstracts input and switch to text mode."""
        with self._lock:
            self._guard("change input")
            self.text_input = text
            self.mode = TEXT_MODE
        self._notify()

    def add_files(self, units: list) -> None:
        """Queue file units after any already queued and switch to file mode."""
        with self._lock:
            self._guard("add files")
            for unit in units:
                self.files.append(unit)
                self.tracker.register(unit.unit_id, unit.name)
            self.mode = FILE_MODE
        self._notify()

    def remove_file(self, unit_id: str) -> None:
        with self._lock:
            self._guard("remove files")
            self.files = [f for f in self.files if f.unit_id != unit_id]
            self.tracker.remove(unit_id)
        self._notify()

    def clear(self) -> None:
        """Drop input, queued files, results and error; back to Idle."""
        with self._lock:
            self._guard("clear")
            self.text_input = ""
            self.files = []
            self.table = ResultTable()
            self.tracker.clear()
            self.error = None
            self.exception = None
            self.state = RunState.IDLE
        self._notify()

    def cancel(self) -> None:
        """Ask the run to stop before the next unit is dispatched."""
        self._cancel.set()

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def _build_units(self) -> list:
        if self.mode == TEXT_MODE:
            if not self.text_input.strip():
                raise InputError("No abstracts to analyze. Paste text in 'ID <n>:' format or load a CSV.")
            return split_text(self.text_input, self.batch_size)

        if not self.files:
            raise InputError("No PDF files queued for analysis.")
        return list(self.files)

    def _start(self, instruction: str) -> list:
        with self._lock:
            self._guard("start another run")
            units = self._build_units()

            self.tracker.clear()
            for unit in units:
                name = unit.name if isinstance(unit, FileUnit) else unit.unit_id
                self.tracker.register(unit.unit_id, name, unit.size)
            self.table = ResultTable.from_instruction(instruction)
            self.error = None
            self.exception = None
            self._cancel.clear()
            self.state = RunState.RUNNING
        return units

    def _finish(self, state: RunState, exception: Optional[BaseException] = None) -> None:
        with self._lock:
            self.state = state
            if exception is not None:
                self.exception = exception
                self.error = str(exception) or FALLBACK_ERROR
        self._notify()

    def run(self, instruction: str) -> RunSnapshot:
        """
        Process every unit in order.

        Args:
            instruction: System instruction containing the table template

        Returns:
            Final RunSnapshot. A failed run has ``state == FAILED`` and the
            error message set; rows from earlier units are kept.

        Raises:
            InputError: nothing to analyse (no state is touched)
            PipelineBusyError: a run is already in progress

        A subscriber or Ctrl-C interrupting the loop is re-raised after the
        run is moved to FAILED or CANCELLED.
        """
        units = self._start(instruction)
        total = len(units)
        current = None

        try:
            self._notify()
            for i, unit in enumerate(units):
                if self._cancel.is_set():
                    self._finish(RunState.CANCELLED)
                    return self.snapshot()

                with self._lock:
                    self.tracker.mark(unit.unit_id, UnitStatus.PROCESSING)
                    current = unit
                self._notify()

                try:
                    raw = self.extractor.invoke(unit, instruction)
                    rows = extract_rows(raw, self.header_token)
                except Exception as e:
                    with self._lock:
                        self.tracker.mark(unit.unit_id, UnitStatus.ERROR)
                        current = None
                    self._finish(RunState.FAILED, e)
                    return self.snapshot()

                with self._lock:
                    self.table.append(rows)
                    self.tracker.mark(unit.unit_id, UnitStatus.COMPLETED)
                    current = None
                self._notify()

                # Fixed gap between units, on top of any retry backoff
                if i < total - 1:
                    self.sleep(self.unit_delay)

        except BaseException as e:
            # Ctrl-C or a failing subscriber: never leave the run RUNNING
            if self.running:
                with self._lock:
                    if current is not None:
                        self.tracker.mark(current.unit_id, UnitStatus.ERROR)
                if isinstance(e, KeyboardInterrupt):
                    self._finish(RunState.CANCELLED)
                else:
                    self._finish(RunState.FAILED, e)
            raise

        self._finish(RunState.SUCCEEDED)
        return self.snapshot()
