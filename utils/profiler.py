"""
A simple context manager for code profiling.

This utility measures the execution time of a block of code, which is useful
for checking that one evaluation of a fuzzy logic system fits inside a host
frame.
"""
import time
import logging

profiler_log = logging.getLogger('profiler')

DEFAULT_BUDGET_MS = 16.7  # one frame at 60 Hz


class CodeProfiler:
    """
    A context manager to time the execution of a code block.

    Example:
        with CodeProfiler("FLS tick"):
            # code to time goes here

    Attributes:
        name (str): The name of the code block being timed.
        budget_ms (float): Time above which a warning is logged.
        start_time (float): The time when the block was entered.
        elapsed_ms (float): Duration of the last run of the block.
    """
    def __init__(self, name="", budget_ms=DEFAULT_BUDGET_MS):
        self.name = name
        self.budget_ms = budget_ms
        self.elapsed_ms = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        profiler_log.debug("'%s' execution time: %.3f ms", self.name, self.elapsed_ms)
        if self.elapsed_ms > self.budget_ms:
            profiler_log.warning(
                "'%s' exceeded %.1f ms frame budget (%.3f ms).", self.name, self.budget_ms, self.elapsed_ms
            )
