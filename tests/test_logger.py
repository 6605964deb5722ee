"""Property-based tests for structured logging."""

import json
from contextlib import redirect_stdout
from datetime import UTC, datetime
from io import StringIO

from hypothesis import given
from hypothesis import strategies as st

from coinboard.models.market_data import SortOrder
from coinboard.utils.logger import StructuredLogger


def capture(callback) -> list[dict]:
    """Run ``callback`` and return the JSON entries it printed."""
    output = StringIO()
    with redirect_stdout(output):
        callback()
    return [json.loads(line) for line in output.getvalue().splitlines() if line.strip()]


class TestLoggerJSONFormat:
    """Tests for JSON log format compliance."""

    @given(
        level=st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
        message=st.text(min_size=1),
        context=st.dictionaries(
            st.text(min_size=1, max_size=20).filter(lambda x: x[0].isalpha()),
            st.one_of(st.text(), st.integers(), st.booleans()),
            max_size=5,
        ),
    )
    def test_log_entries_have_required_fields(self, level, message, context):
        """
        Every entry is one JSON object with timestamp, level, component and
        message, plus the context when one is given.
        """
        logger = StructuredLogger("RefreshScheduler")

        entries = capture(lambda: logger.log(level, message, context or None))

        assert len(entries) == 1
        entry = entries[0]
        assert entry["level"] == level
        assert entry["component"] == "RefreshScheduler"
        assert entry["message"] == message
        assert entry["timestamp"].endswith("Z")
        assert "T" in entry["timestamp"]
        if context:
            assert entry["context"] == context
        else:
            assert "context" not in entry

    def test_unknown_level_logged_as_info(self):
        logger = StructuredLogger("App")

        entries = capture(lambda: logger.log("verbose", "hello"))

        assert entries[0]["level"] == "INFO"

    def test_non_json_context_values_are_stringified(self):
        logger = StructuredLogger("RefreshScheduler")
        armed_at = datetime(2024, 1, 15, 9, 30, tzinfo=UTC)

        entries = capture(lambda: logger.info("Timer armed", context={"next_run_at": armed_at}))

        assert entries[0]["context"]["next_run_at"] == str(armed_at)

    def test_str_enum_context_values_use_their_value(self):
        logger = StructuredLogger("MarketDataClient")

        entries = capture(lambda: logger.info("Fetched", context={"order": SortOrder.VOLUME}))

        assert entries[0]["context"]["order"] == "volume_desc"


class TestLoggerExceptions:
    """Tests for exception details in entries."""

    def test_error_includes_exception_details(self):
        logger = StructuredLogger("EnrichmentPipeline")
        try:
            raise RuntimeError("history fetch blew up")
        except RuntimeError as e:
            error = e

        entries = capture(lambda: logger.error("Unexpected error", exception=error))

        exception = entries[0]["exception"]
        assert exception["type"] == "RuntimeError"
        assert exception["message"] == "history fetch blew up"
        assert "Traceback" in exception["stack_trace"]

    def test_warning_accepts_exception(self):
        logger = StructuredLogger("PreferenceStore")

        entries = capture(lambda: logger.warning("Unreadable", exception=ValueError("bad")))

        assert entries[0]["level"] == "WARNING"
        assert entries[0]["exception"]["type"] == "ValueError"


class TestLoggerLevels:
    """Tests for level filtering and file output."""

    def test_entries_below_min_level_are_dropped(self):
        logger = StructuredLogger("App", min_level="WARNING")

        entries = capture(
            lambda: (logger.debug("d"), logger.info("i"), logger.warning("w"), logger.error("e"))
        )

        assert [e["level"] for e in entries] == ["WARNING", "ERROR"]

    def test_invalid_min_level_falls_back_to_debug(self):
        logger = StructuredLogger("App", min_level="chatty")

        assert logger.is_enabled_for("DEBUG")

    def test_file_output(self, tmp_path):
        log_file = tmp_path / "logs" / "coinboard.log"
        logger = StructuredLogger("App", file_path=str(log_file))

        capture(lambda: logger.info("to file", context={"assets": 10}))

        lines = log_file.read_text().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["context"] == {"assets": 10}
