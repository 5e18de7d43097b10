"""CLI tests. The store factory and config loader are patched per test."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

import apwf.interface.cli.cli as cli_mod
from apwf.application.config_models import EngineConfig
from apwf.domain.errors import TransportError
from apwf.interface.cli.cli import cli

from tests.fakes.builders import approver


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(base_url="http://store.test")


@pytest.fixture
def patched(monkeypatch, two_stage_store, engine_config):
    monkeypatch.setattr(cli_mod, "_load_engine_config", lambda: engine_config, raising=True)
    monkeypatch.setattr(cli_mod, "_make_store", lambda cfg: two_stage_store, raising=True)
    return two_stage_store


def _fail_make_store(cfg):
    raise AssertionError("store must not be built")


def test_list_plain(patched):
    result = CliRunner().invoke(cli, ["list"], prog_name="apwf")

    assert result.exit_code == 0
    assert result.output.splitlines() == ["1\treview\tdoc=100\t01.03.2025 09:00\tPlease review"]


def test_list_json_with_status_filter(patched):
    result = CliRunner().invoke(cli, ["--json", "list", "--status", "approved"], prog_name="apwf")

    assert result.exit_code == 0
    obj = json.loads(result.output)
    assert obj["command"] == "list"
    assert obj["total"] == 0
    assert obj["approvals"] == []
    assert patched.calls[0][0] == "list_approvals"


def test_list_rejects_unknown_status(patched):
    result = CliRunner().invoke(cli, ["list", "--status", "archived"], prog_name="apwf")
    assert result.exit_code == 2


def test_show_plain_marks_actionable_stage(patched):
    result = CliRunner().invoke(cli, ["show", "1"], prog_name="apwf")

    assert result.exit_code == 0
    assert "status=review" in result.output
    assert "initiator=Iris Initiator" in result.output
    assert "* Stage 1: Legal [Pending]" in result.output
    assert "  Stage 2: Security [Locked]" in result.output
    assert "    actions: approve, reject" in result.output
    assert "- Iris Initiator (01.03.2025 09:00): Ready for review" in result.output


def test_show_json_for_explicit_viewer(patched):
    result = CliRunner().invoke(cli, ["--json", "show", "1", "--viewer", "30"], prog_name="apwf")

    assert result.exit_code == 0
    obj = json.loads(result.output)
    assert obj["command"] == "show"
    assert obj["approval_id"] == 1
    assert "actionable_stage" not in obj["approval"]
    assert [s["actions"] for s in obj["approval"]["stages"]] == [[], []]
    assert "current_user" not in patched.call_names()


def test_show_viewer_from_config(patched, engine_config):
    engine_config.viewer_id = 20
    result = CliRunner().invoke(cli, ["--json", "show", "1"], prog_name="apwf")

    obj = json.loads(result.output)
    assert "actionable_stage" not in obj["approval"]
    assert "current_user" not in patched.call_names()


def test_show_degrades_when_directory_is_unavailable(patched):
    patched.failures["list_users"] = TransportError("forbidden", status_code=403)

    result = CliRunner().invoke(cli, ["--json", "show", "1"], prog_name="apwf")

    assert result.exit_code == 0
    obj = json.loads(result.output)
    assert obj["approval"]["initiator"] == "#1"
    assert obj["approval"]["actionable_stage"] == 1


def test_show_store_failure_json(patched):
    patched.failures["fetch_approval"] = TransportError("no such approval", status_code=404)

    result = CliRunner().invoke(cli, ["--json", "show", "1"], prog_name="apwf")

    assert result.exit_code == 1
    obj = json.loads(result.output)
    assert obj["exit_code"] == 1
    assert obj["error"] == "Approval store error: no such approval (HTTP 404)"
    assert "approval" not in obj


def test_show_store_failure_plain(patched):
    patched.failures["fetch_approval"] = TransportError("no such approval", status_code=404)

    result = CliRunner().invoke(cli, ["show", "1"], prog_name="apwf")

    assert result.exit_code == 1
    assert "Error: Approval store error: no such approval (HTTP 404)" in result.output


def test_decide_approve_plain(patched):
    result = CliRunner().invoke(
        cli, ["decide", "1", "--stage", "1", "--approve", "--comment", "Looks fine"], prog_name="apwf"
    )

    assert result.exit_code == 0
    assert result.output.splitlines() == ["decision=approve", "status=review", "current_stage=1"]
    assert ("submit_decision", (1, "approve", "Looks fine")) in patched.calls


def test_decide_last_approval_advances_stage(patched):
    patched.participants[1] = approver(11, 1, "approve")

    result = CliRunner().invoke(
        cli, ["--json", "decide", "1", "--stage", "1", "--approve", "--comment", "ok"], prog_name="apwf"
    )

    assert result.exit_code == 0
    obj = json.loads(result.output)
    assert obj["command"] == "decide"
    assert obj["status"] == "review"
    assert obj["current_stage"] == 2


def test_decide_reject_returns_approval(patched):
    result = CliRunner().invoke(
        cli, ["--json", "decide", "1", "--stage", "1", "--reject", "--comment", "Missing annex"], prog_name="apwf"
    )

    obj = json.loads(result.output)
    assert obj["decision"] == "reject"
    assert obj["status"] == "returned"


def test_decide_blank_comment_fails_before_network(monkeypatch):
    monkeypatch.setattr(cli_mod, "_make_store", _fail_make_store, raising=True)

    result = CliRunner().invoke(
        cli, ["decide", "1", "--stage", "1", "--approve", "--comment", "   "], prog_name="apwf"
    )

    assert result.exit_code == 1
    assert "Error: Invalid request: comment must not be empty" in result.output


def test_decide_requires_a_verdict(monkeypatch):
    monkeypatch.setattr(cli_mod, "_make_store", _fail_make_store, raising=True)

    result = CliRunner().invoke(
        cli, ["--json", "decide", "1", "--stage", "1", "--comment", "ok"], prog_name="apwf"
    )

    assert result.exit_code == 1
    obj = json.loads(result.output)
    assert obj["error"] == "Invalid request: choose --approve or --reject"


def test_decide_wrong_stage_is_rejected_without_submitting(patched):
    result = CliRunner().invoke(
        cli, ["--json", "decide", "1", "--stage", "2", "--approve", "--comment", "ok"], prog_name="apwf"
    )

    assert result.exit_code == 1
    assert "not the active stage" in json.loads(result.output)["error"]
    assert "submit_decision" not in patched.call_names()


def test_decide_store_rejection(patched):
    patched.failures["submit_decision"] = TransportError("already decided", status_code=409)

    result = CliRunner().invoke(
        cli, ["decide", "1", "--stage", "1", "--reject", "--comment", "no"], prog_name="apwf"
    )

    assert result.exit_code == 1
    assert "Error: Approval store error: already decided (HTTP 409)" in result.output


def test_decide_with_events(patched):
    result = CliRunner().invoke(
        cli,
        ["--events", "decide", "1", "--stage", "1", "--approve", "--comment", "ok"],
        prog_name="apwf",
    )

    assert result.exit_code == 0
    assert "[EVENT] approval_opened approval=1 status=review" in result.output
    assert "[EVENT] decision_submitted approval=1 status=review stage=1" in result.output


def test_comment_plain(patched):
    result = CliRunner().invoke(cli, ["comment", "1", "Any update?"], prog_name="apwf")

    assert result.exit_code == 0
    assert result.output.strip() == "comments=2"
    assert patched.call_names() == ["submit_comment", "fetch_comments"]


def test_comment_blank_text(monkeypatch):
    monkeypatch.setattr(cli_mod, "_make_store", _fail_make_store, raising=True)

    result = CliRunner().invoke(cli, ["--json", "comment", "1", "  "], prog_name="apwf")

    assert result.exit_code == 1
    assert json.loads(result.output)["command"] == "comment"


def test_comment_store_failure_plain(patched):
    patched.failures["submit_comment"] = TransportError("locked", status_code=423)

    result = CliRunner().invoke(cli, ["comment", "1", "hello"], prog_name="apwf")

    assert result.exit_code == 1
    assert "Error: Approval store error: locked (HTTP 423)" in result.output


def test_start_from_stages_file(patched):
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("stages.yml").write_text(
            "stages:\n"
            "  - name: Legal\n"
            "    approvers: [10, 11]\n"
            "    observers: [30]\n"
            "    message: ' Check terms '\n"
            "  - name: FYI\n"
            "    observers: [1]\n",
            encoding="utf-8",
        )
        result = runner.invoke(
            cli, ["--json", "start", "100", "--stages-file", "stages.yml"], prog_name="apwf"
        )

    assert result.exit_code == 0
    assert json.loads(result.output)["stages"] == 1
    document_id, plans = patched.started[0]
    assert document_id == 100
    assert plans[0].message == "Check terms"


def test_start_without_approvers(patched):
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("stages.yml").write_text("- name: FYI\n  observers: [1]\n", encoding="utf-8")
        result = runner.invoke(cli, ["start", "100", "--stages-file", "stages.yml"], prog_name="apwf")

    assert result.exit_code == 1
    assert "approval needs at least one approver" in result.output
    assert patched.started == []


def test_missing_base_url(monkeypatch):
    monkeypatch.setattr(cli_mod, "_load_engine_config", lambda: EngineConfig(), raising=True)

    result = CliRunner().invoke(cli, ["--json", "list"], prog_name="apwf")

    assert result.exit_code == 1
    assert "base_url is required" in json.loads(result.output)["error"]
