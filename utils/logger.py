# logger.py
import os, glob, logging
from contextvars import ContextVar

_TICK_I = ContextVar("tick_i", default=-1)

LOGGER_NAMES = [
    "main",
    "system",
    "inference",
    "fuzzifier",
    "defuzzifier",
    "registry",
    "serialization",
    "config",
    "simulation",
    "profiler",
]


def set_tick_index(i: int) -> None:
    _TICK_I.set(int(i))


class TickIndexFilter(logging.Filter):
    def filter(self, record):
        # every record carries the host tick as .i
        record.i = _TICK_I.get()
        return True


def setup_logging(
    log_dir: str = "logs",
    overwrite: bool = True,
    log_level: int = logging.DEBUG,
    console_level: int = logging.INFO,
    cleanup_rotated: bool = True,
) -> None:
    os.makedirs(log_dir, exist_ok=True)
    if cleanup_rotated:
        for path in glob.glob(os.path.join(log_dir, "*.log.*")):
            try:
                os.remove(path)
            except OSError:
                pass

    fmt = logging.Formatter("%(i)06d | %(levelname)s | %(name)s | %(message)s")

    # console for "main"
    console = logging.StreamHandler()
    console.setFormatter(fmt)
    console.setLevel(console_level)
    console.addFilter(TickIndexFilter())

    for name in LOGGER_NAMES:
        log = logging.getLogger(name)
        log.setLevel(log_level)
        log.propagate = False
        for h in list(log.handlers):
            log.removeHandler(h)
            h.close()

        mode = "w" if overwrite else "a"
        fh = logging.FileHandler(os.path.join(log_dir, f"{name}.log"), mode=mode, encoding="utf-8")
        fh.setFormatter(fmt)
        fh.setLevel(log_level)
        fh.addFilter(TickIndexFilter())
        log.addHandler(fh)

    logging.getLogger("main").addHandler(console)
    logging.getLogger("main").info("Logging system initialized.")
