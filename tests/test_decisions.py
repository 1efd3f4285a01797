"""Tests for decision providers and event delivery."""

import pytest

from nodesync.decisions import ConsoleDecisions, ScriptedDecisions
from nodesync.events import ConsoleEventPrinter, EventEmitter, EventType


def _console(answers):
    answers = iter(answers)
    output = []
    return ConsoleDecisions(input_fn=lambda prompt: next(answers), output_fn=output.append), output


def test_console_ask_repeats_until_yes_or_no() -> None:
    decisions, _ = _console(["maybe", "", "Y"])

    assert decisions.ask("Resolve?") is True


def test_console_choose_by_number_or_text() -> None:
    decisions, output = _console(["3", "2"])

    assert decisions.choose("Pick one", ["Omit", "Include"]) == "Include"
    assert output == ["Pick one", "  [1] Omit", "  [2] Include"]

    decisions, _ = _console(["Omit"])
    assert decisions.choose("Pick one", ["Omit", "Include"]) == "Omit"


def test_console_prompt_strips() -> None:
    decisions, _ = _console(["  rack1 "])

    assert decisions.prompt("loc: ") == "rack1"


def test_scripted_decisions_record_questions() -> None:
    decisions = ScriptedDecisions([True, "Include", 0, 42])

    assert decisions.ask("Resolve?") is True
    assert decisions.choose("Pick", ["Omit", "Include"]) == "Include"
    assert decisions.choose("Pick", ["Omit", "Include"]) == "Omit"
    assert decisions.prompt("owner: ") == "42"
    assert [kind for kind, _, _ in decisions.asked] == ["ask", "choose", "choose", "prompt"]


def test_scripted_decisions_errors() -> None:
    with pytest.raises(ValueError, match="not one of"):
        ScriptedDecisions(["Delete"]).choose("Pick", ["Omit", "Include"])

    with pytest.raises(LookupError, match="no scripted answer"):
        ScriptedDecisions().ask("Resolve?")


def test_emitter_filters_and_survives_listener_errors(caplog) -> None:
    emitter = EventEmitter()
    received = []

    def broken(event):
        raise RuntimeError("listener bug")

    emitter.subscribe(broken)
    emitter.subscribe(received.append, EventType.RECORD_UNDEPLOYED)

    emitter.record_undeployed("SN2")
    emitter.bogey_device("SN3", "10.0.0.2", "sw2")

    assert [e.data["serial"] for e in received] == ["SN2"]
    assert "listener bug" in caplog.text


def test_console_printer(capsys) -> None:
    emitter = EventEmitter()
    emitter.subscribe(ConsoleEventPrinter(verbose=True, color=False).handle_event)

    emitter.discovery_started(2, 20, 30.0)
    emitter.node_active("10.0.0.1", "sw1", ["SNA", "SNB"], "cisco")
    emitter.log("quiet detail", target="10.0.0.1")

    out = capsys.readouterr().out
    assert "Probing 2 nodes (20 workers, 30s per node)..." in out
    assert "OK: 10.0.0.1 (sw1) SNA, SNB" in out
    assert "[10.0.0.1] quiet detail" in out
    assert emitter.stats.stacks == 1
