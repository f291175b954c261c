"""Tests for error formatting and support codes."""

import re

from bloxsetup.errors import (
    EngineUnavailableError,
    SetupError,
    format_diagnostic_bundle,
    format_error,
    format_error_event,
    format_status_failure,
    format_suggestion,
    generate_support_code,
)


class TestFormatting:
    def test_format_error(self):
        assert format_error("engine not found") == "Error: engine not found"

    def test_format_suggestion(self):
        assert (
            format_suggestion("no engine configured", "pass --engine")
            == "Error: no engine configured. Hint: pass --engine"
        )

    def test_status_failure(self):
        assert format_status_failure(1603) == "Action returned status 1603."

    def test_error_event(self):
        assert format_error_event(2, "File in use") == "Error 2: File in use"

    def test_diagnostic_bundle_with_empty_bundle_log(self):
        text = format_diagnostic_bundle("BLX-0123456789", "/tmp/p.log", "", "Error 2: File in use")
        assert text.splitlines() == [
            "Support code: BLX-0123456789",
            "Package log: /tmp/p.log",
            "Bundle log: ",
            "Error 2: File in use",
        ]


class TestSupportCode:
    def test_shape(self):
        assert re.fullmatch(r"BLX-[0-9A-F]{10}", generate_support_code())

    def test_custom_prefix(self):
        assert generate_support_code("BETA").startswith("BETA-")

    def test_fresh_each_time(self):
        codes = {generate_support_code() for _ in range(20)}
        assert len(codes) == 20


def test_engine_unavailable_is_setup_error():
    assert issubclass(EngineUnavailableError, SetupError)
