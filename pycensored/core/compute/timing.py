"""
Execution timing utilities.

Wall-clock timing for engine fits, split into named sections so a
Result can report where the time went (model frame, optimizer,
baseline hazard).
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Accumulating wall-clock timer.

    Usage:
        timer = Timer()
        timer.start()

        with timer.section('newton_raphson'):
            ...

        with timer.section('baseline_hazard'):
            ...

        timer.stop()
        result = timer.result()
        # {'total_seconds': 0.05, 'newton_raphson': 0.03, 'baseline_hazard': 0.02}
    """

    def __init__(self):
        self._sections: dict[str, float] = {}
        self._start_time: float | None = None
        self._total: float | None = None

    def start(self) -> None:
        """Start the overall timer."""
        self._start_time = time.perf_counter()

    def stop(self) -> None:
        """Stop the overall timer."""
        if self._start_time is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._start_time

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """
        Time a named section.

        Repeated sections with the same name accumulate.

        Args:
            name: Section identifier (used as key in result dict)
        """
        t0 = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - t0
            self._sections[name] = self._sections.get(name, 0.0) + elapsed

    def result(self) -> dict[str, float]:
        """
        Timing breakdown.

        Returns:
            Dict with 'total_seconds' plus one entry per named section

        Raises:
            RuntimeError: If the timer was never stopped
        """
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")
        out = {'total_seconds': self._total}
        out.update(self._sections)
        return out


@contextmanager
def timed() -> Iterator[Timer]:
    """
    Context manager for simple timing.

    Usage:
        with timed() as timer:
            model = spec.fit(formula, data)
        print(f"Took {timer.result()['total_seconds']:.3f}s")

    Yields:
        Timer instance (stopped on exit)
    """
    timer = Timer()
    timer.start()
    try:
        yield timer
    finally:
        timer.stop()
