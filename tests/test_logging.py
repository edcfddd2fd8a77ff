"""
Tests for structured JSON logging.
"""
import json
import logging

from devstack.core.logging import JSONFormatter, setup_logging
from devstack.core.run_context import get_run_id, run_id_var, set_run_id


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("devstack.test", logging.INFO, __file__, 1, "stage_done stage=build", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "devstack.test"
        assert data["message"] == "stage_done stage=build"
        assert "timestamp" in data

    def test_extra_fields(self):
        data = json.loads(JSONFormatter().format(_record(stage="build", duration_ms=12)))
        assert data["stage"] == "build"
        assert data["duration_ms"] == 12

    def test_run_id_included(self):
        token = run_id_var.set("")
        try:
            rid = set_run_id("abc123")
            assert get_run_id() == rid == "abc123"
            data = json.loads(JSONFormatter().format(_record()))
            assert data["run_id"] == "abc123"
        finally:
            run_id_var.reset(token)

    def test_generated_run_id(self):
        token = run_id_var.set("")
        try:
            assert len(set_run_id()) == 12
        finally:
            run_id_var.reset(token)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_log_file_receives_info(self, tmp_path):
        log_file = tmp_path / "logs" / "setup.log"
        root = logging.getLogger()
        previous = root.handlers[:], root.level
        try:
            setup_logging("WARNING", log_file)
            logging.getLogger("devstack.test").info("written_to_file")
            for handler in root.handlers:
                handler.flush()
            lines = log_file.read_text().strip().splitlines()
            assert json.loads(lines[-1])["message"] == "written_to_file"
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
                handler.close()
            for handler in previous[0]:
                root.addHandler(handler)
            root.setLevel(previous[1])
