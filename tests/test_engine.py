"""Tests for engine event parsing and the engine adapters."""

import asyncio
import sys

import pytest

from bloxsetup.config import ConfigError
from bloxsetup.engine import (
    ActionKind,
    ApplyComplete,
    DetectComplete,
    DetectPackageComplete,
    EngineError,
    ExecuteProgress,
    PackageState,
    PlanBegin,
    PlanComplete,
    ProcessEngine,
    ScriptedEngine,
    parse_event,
)
from bloxsetup.engine.process import LOST_ENGINE_CODE
from bloxsetup.errors import EngineUnavailableError


class TestParseEvent:
    def test_snake_case_fields(self):
        event = parse_event({"event": "PlanComplete", "status": 3})
        assert event == PlanComplete(status=3)

    def test_camel_case_fields(self):
        assert parse_event({"event": "PlanBegin", "packageCount": 2}) == PlanBegin(package_count=2)
        assert parse_event({"event": "ExecuteProgress", "overallPercentage": 40}) == ExecuteProgress(
            percent=40
        )
        assert parse_event(
            {"event": "Error", "errorCode": 5, "errorMessage": "Access denied"}
        ) == EngineError(code=5, message="Access denied")

    def test_package_state_is_case_insensitive(self):
        event = parse_event({"event": "DetectPackageComplete", "packageId": "BloxMCMsi", "state": "Present"})
        assert event == DetectPackageComplete(package_id="BloxMCMsi", state=PackageState.PRESENT)

    def test_unknown_package_state_falls_back(self):
        event = parse_event({"event": "DetectPackageComplete", "package_id": "X", "state": "weird"})
        assert event.state == PackageState.UNKNOWN

    def test_detect_complete_defaults_status(self):
        assert parse_event({"event": "DetectComplete"}) == DetectComplete()

    def test_unknown_event(self):
        with pytest.raises(ValueError, match="unknown event"):
            parse_event({"event": "Reboot"})

    def test_bad_fields(self):
        with pytest.raises(ValueError, match="invalid fields for PlanComplete"):
            parse_event({"event": "PlanComplete", "code": 1})

    def test_not_a_mapping(self):
        with pytest.raises(ValueError, match="must be an object"):
            parse_event(["PlanComplete"])

    @pytest.mark.parametrize(
        "payload, message",
        [
            (
                {"event": "DetectPackageComplete", "packageId": None, "state": "Present"},
                "DetectPackageComplete.package_id must be str, got NoneType",
            ),
            (
                {"event": "ExecuteProgress", "percent": "abc"},
                "ExecuteProgress.percent must be int, got str",
            ),
            ({"event": "PlanComplete", "status": "0"}, "PlanComplete.status must be int"),
            ({"event": "ApplyComplete", "status": True}, "ApplyComplete.status must be int"),
            ({"event": "ExecuteProgress", "percent": 12.5}, "ExecuteProgress.percent must be int"),
            ({"event": "Error", "errorCode": 5, "errorMessage": 7}, "Error.message must be str"),
            (
                {"event": "DetectPackageComplete", "packageId": "BloxMCMsi", "state": 2},
                "DetectPackageComplete.state must be PackageState",
            ),
        ],
    )
    def test_wrong_field_types_are_rejected(self, payload, message):
        with pytest.raises(ValueError, match=message):
            parse_event(payload)

    def test_integral_float_is_accepted(self):
        event = parse_event({"event": "ExecuteProgress", "overallPercentage": 40.0})
        assert event == ExecuteProgress(percent=40)
        assert isinstance(event.percent, int)

    def test_missing_state_is_unknown(self):
        event = parse_event({"event": "DetectPackageComplete", "packageId": "BloxMCMsi"})
        assert event.state == PackageState.UNKNOWN

    def test_registered_states(self):
        assert PackageState.PRESENT.is_registered
        assert PackageState.SUPERSEDED.is_registered
        assert not PackageState.ABSENT.is_registered
        assert not PackageState.UNKNOWN.is_registered


class TestScriptedEngine:
    def test_flat_script_replays_every_call(self):
        engine = ScriptedEngine(plan=[PlanComplete(status=0)])
        seen = []
        engine.subscribe(seen.append)

        engine.plan(ActionKind.INSTALL)
        engine.plan(ActionKind.REPAIR)

        assert seen == [PlanComplete(status=0), PlanComplete(status=0)]
        assert engine.calls == [("plan", ActionKind.INSTALL), ("plan", ActionKind.REPAIR)]

    def test_sequence_per_call_last_repeats(self):
        engine = ScriptedEngine(apply=[[ApplyComplete(status=1)], [ApplyComplete(status=0)]])
        seen = []
        engine.subscribe(seen.append)

        for _ in range(3):
            engine.apply(0)

        assert [e.status for e in seen] == [1, 0, 0]

    def test_unsubscribe_stops_delivery(self):
        engine = ScriptedEngine(detect=[DetectComplete()])
        seen = []
        engine.subscribe(seen.append)
        engine.unsubscribe(seen.append)
        engine.detect()
        assert seen == []

    def test_variables_and_quit(self):
        engine = ScriptedEngine(variables={"WixBundleLog": "/tmp/b.log"})
        engine.set_variable("BLOXMCMSILOG", "/tmp/p.log")

        assert engine.get_variable("WixBundleLog") == "/tmp/b.log"
        assert engine.get_variable("BLOXMCMSILOG") == "/tmp/p.log"
        with pytest.raises(KeyError):
            engine.get_variable("Missing")

        engine.quit(7)
        assert engine.quit_code == 7

    def test_from_mapping(self):
        engine = ScriptedEngine.from_mapping(
            {
                "variables": {"WixBundleLog": "/tmp/b.log"},
                "detect": [{"event": "DetectComplete"}],
                "apply": [
                    [{"event": "ApplyComplete", "status": 1603}],
                    [{"event": "ApplyComplete", "status": 0}],
                ],
            }
        )
        seen = []
        engine.subscribe(seen.append)
        engine.detect()
        engine.apply()
        engine.apply()

        assert seen == [DetectComplete(), ApplyComplete(status=1603), ApplyComplete(status=0)]

    def test_from_mapping_rejects_unknown_sections(self):
        with pytest.raises(ConfigError, match="Unknown script section"):
            ScriptedEngine.from_mapping({"install": []})

    def test_from_mapping_rejects_bad_events(self):
        with pytest.raises(ConfigError, match="plan"):
            ScriptedEngine.from_mapping({"plan": [{"event": "Nope"}]})

    def test_from_mapping_rejects_wrong_field_types(self):
        with pytest.raises(ConfigError, match="apply: ApplyComplete.status must be int"):
            ScriptedEngine.from_mapping({"apply": [{"event": "ApplyComplete", "status": "0"}]})

    def test_from_file_yaml(self, tmp_path):
        script = tmp_path / "script.yaml"
        script.write_text(
            "detect:\n"
            "  - {event: DetectPackageComplete, package_id: BloxMCMsi, state: absent}\n"
            "  - {event: DetectComplete}\n"
        )
        engine = ScriptedEngine.from_file(script)
        seen = []
        engine.subscribe(seen.append)
        engine.detect()

        assert seen[0].state == PackageState.ABSENT
        assert seen[1] == DetectComplete()


class TestProcessEngineLines:
    """Line handling without a child process."""

    def make(self):
        engine = ProcessEngine(["engine"])
        seen = []
        engine.subscribe(seen.append)
        return engine, seen

    def test_event_line_is_emitted(self):
        engine, seen = self.make()
        engine._handle_line(b'{"event": "ExecuteProgress", "percent": 30}\n')
        assert seen == [ExecuteProgress(percent=30)]

    def test_variable_line_updates_variables(self):
        engine, seen = self.make()
        engine._handle_line(b'{"event": "Variable", "name": "WixBundleLog", "value": "/b.log"}')
        assert seen == []
        assert engine.get_variable("WixBundleLog") == "/b.log"

    def test_malformed_lines_are_skipped(self):
        engine, seen = self.make()
        engine._handle_line(b"not json")
        engine._handle_line(b'{"event": "Nope"}')
        engine._handle_line(b"   \n")
        engine._handle_line(b'{"event": "ExecuteProgress", "percent": "abc"}')
        engine._handle_line(b'{"event": "DetectPackageComplete", "packageId": null}')
        assert seen == []

    def test_command_without_process_fails_pending(self):
        engine, seen = self.make()
        engine.plan(ActionKind.UNINSTALL)

        assert seen == [
            EngineError(code=LOST_ENGINE_CODE, message="Engine is not running."),
            PlanComplete(status=1),
        ]

    def test_terminal_event_clears_pending(self):
        engine, seen = self.make()
        engine._pending = "apply"
        engine._handle_line(b'{"event": "ApplyComplete", "status": 0}')
        engine._fail_pending("gone")
        assert seen == [ApplyComplete(status=0)]


class TestProcessEngineProcess:
    """Round trips through a real child process."""

    @pytest.mark.asyncio
    async def test_start_failure_raises(self, tmp_path):
        engine = ProcessEngine([str(tmp_path / "missing-engine")])
        with pytest.raises(EngineUnavailableError, match="Cannot start engine"):
            await engine.start()

    @pytest.mark.asyncio
    async def test_commands_and_events(self):
        # Echo engine: answers every detect with DetectComplete.
        script = (
            "import json, sys\n"
            "for line in sys.stdin:\n"
            "    cmd = json.loads(line)\n"
            "    if cmd['command'] == 'detect':\n"
            "        print(json.dumps({'event': 'Variable', 'name': 'WixBundleLog', 'value': '/b.log'}), flush=True)\n"
            "        print(json.dumps({'event': 'DetectComplete', 'status': 0}), flush=True)\n"
        )
        engine = ProcessEngine([sys.executable, "-c", script])
        seen = []
        done = asyncio.Event()

        def listener(event):
            seen.append(event)
            if isinstance(event, DetectComplete):
                done.set()

        engine.subscribe(listener)
        await engine.start()
        engine.detect()
        await asyncio.wait_for(done.wait(), 10)
        engine.quit(0)
        await engine.close()

        assert seen == [DetectComplete(status=0)]
        assert engine.get_variable("WixBundleLog") == "/b.log"

    @pytest.mark.asyncio
    async def test_lost_engine_synthesizes_terminal_event(self):
        engine = ProcessEngine([sys.executable, "-c", "import sys; sys.stdin.readline()"])
        seen = []
        done = asyncio.Event()

        def listener(event):
            seen.append(event)
            if isinstance(event, ApplyComplete):
                done.set()

        engine.subscribe(listener)
        await engine.start()
        engine.apply(0)
        await asyncio.wait_for(done.wait(), 10)
        await engine.close()

        assert seen[0].code == LOST_ENGINE_CODE
        assert seen[-1] == ApplyComplete(status=1)


def test_command_wire_format():
    engine = ProcessEngine(["engine"])
    sent = []
    engine._send = sent.append
    engine.plan(ActionKind.REPAIR)
    engine.apply(42)
    engine.set_variable("A", "b")
    engine.quit(3)

    assert sent == [
        {"command": "plan", "action": "repair"},
        {"command": "apply", "window": 42},
        {"command": "set_variable", "name": "A", "value": "b"},
        {"command": "quit", "code": 3},
    ]
