import logging

from utils.logger import LOGGER_NAMES, TickIndexFilter, set_tick_index, setup_logging
from utils.profiler import CodeProfiler


def test_setup_logging_creates_one_file_per_logger(tmp_path, isolated_logging):
    setup_logging(log_dir=str(tmp_path))
    for name in LOGGER_NAMES:
        assert (tmp_path / f"{name}.log").exists()
        assert logging.getLogger(name).propagate is False


def test_records_carry_tick_index(tmp_path, isolated_logging):
    setup_logging(log_dir=str(tmp_path))
    set_tick_index(42)
    logging.getLogger("system").info("hello")
    for h in logging.getLogger("system").handlers:
        h.flush()
    assert "000042 | INFO | system | hello" in (tmp_path / "system.log").read_text()
    set_tick_index(-1)


def test_setup_logging_removes_rotated_files(tmp_path, isolated_logging):
    stale = tmp_path / "main.log.1"
    stale.write_text("old")
    setup_logging(log_dir=str(tmp_path))
    assert not stale.exists()


def test_tick_filter_never_drops_records():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    set_tick_index(7)
    assert TickIndexFilter().filter(record)
    assert record.i == 7
    set_tick_index(-1)


def test_profiler_measures_and_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="profiler"):
        with CodeProfiler("noop", budget_ms=1000.0) as fast:
            pass
        with CodeProfiler("over", budget_ms=-1.0) as slow:
            pass
    assert fast.elapsed_ms >= 0.0
    assert slow.elapsed_ms >= 0.0
    assert any("'over' exceeded" in r.getMessage() for r in caplog.records)
    assert not any("'noop' exceeded" in r.getMessage() for r in caplog.records)
