"""Tests for the run.py entrypoint."""

from __future__ import annotations

from typer.testing import CliRunner

import run
from asset_viewer.bootstrap import BootstrapError


runner = CliRunner()


def _wire(monkeypatch, config, content_service) -> None:
    real_build_services = run.build_services
    monkeypatch.setattr(run, "initialize_app", lambda config_path=None: config)
    monkeypatch.setattr(run, "_prepare_logging", lambda log_root, verbose=False: None)
    monkeypatch.setattr(
        run,
        "build_services",
        lambda cfg: real_build_services(cfg, transport=content_service.transport),
    )


def _topic_bundle():
    return {
        "topic": {"_id": "t1", "title": "Newton's laws"},
        "objectiveQuestionSets": {
            "L2": [{"_id": "s1", "name": "Forces", "totalQuestions": 1, "questions": ["q1"]}]
        },
    }


def test_view_renders_the_bundle(monkeypatch, config, content_service) -> None:
    _wire(monkeypatch, config, content_service)
    content_service.add("GET", "/qrcode/book-data/b1/chapters/c1/topics/t1", json=_topic_bundle())

    result = runner.invoke(
        run.cli, ["view", "/mobile-asset-view/b1/chapters/c1/topics/t1", "--token", "abc"]
    )

    assert result.exit_code == 0, result.output
    assert "Newton's laws" in result.output
    assert "Forces" in result.output
    assert content_service.requests[0].headers["Authorization"] == "Bearer abc"


def test_view_reports_invalid_routes(monkeypatch, config, content_service) -> None:
    _wire(monkeypatch, config, content_service)

    result = runner.invoke(run.cli, ["view", "/mobile-asset-view/b1/topics/t1"])

    assert result.exit_code == 1
    assert "Invalid URL parameters" in result.output
    assert content_service.requests == []


def test_view_reports_aggregation_failures(monkeypatch, config, content_service) -> None:
    _wire(monkeypatch, config, content_service)
    content_service.add("GET", "/qrcode/book-data/b1", status=503, json={"message": "Maintenance"})

    result = runner.invoke(run.cli, ["view", "b1"])

    assert result.exit_code == 1
    assert "Error: Maintenance" in result.output


def test_questions_resolves_the_requested_set(monkeypatch, config, content_service) -> None:
    _wire(monkeypatch, config, content_service)
    content_service.add("GET", "/qrcode/book-data/b1/chapters/c1/topics/t1", json=_topic_bundle())
    content_service.add(
        "GET",
        "/objective-assets/question-sets/s1/questions",
        json=[{"_id": "q1", "question": "Unit of force?", "options": ["Joule", "Newton"], "correctAnswer": 1}],
    )

    result = runner.invoke(
        run.cli,
        ["questions", "/mobile-asset-view/b1/chapters/c1/topics/t1", "--set", "s1", "--tier", "L2"],
    )

    assert result.exit_code == 0, result.output
    assert "Unit of force?" in result.output
    assert "Newton" in result.output


def test_questions_unknown_set_exits_with_error(monkeypatch, config, content_service) -> None:
    _wire(monkeypatch, config, content_service)
    content_service.add("GET", "/qrcode/book-data/b1/chapters/c1/topics/t1", json=_topic_bundle())

    result = runner.invoke(
        run.cli,
        ["questions", "/mobile-asset-view/b1/chapters/c1/topics/t1", "--set", "nope"],
    )

    assert result.exit_code == 1
    assert "No objective set nope in tier L1" in result.output


class _EmptySession:
    error = None
    bundle = None
    open_set_view = None
    toasts = []


def test_view_without_a_bundle_exits_with_error(monkeypatch, config, content_service) -> None:
    _wire(monkeypatch, config, content_service)

    async def empty_view(services, route, token):
        return _EmptySession()

    monkeypatch.setattr(run, "_open_view", empty_view)

    result = runner.invoke(run.cli, ["view", "/mobile-asset-view/b1"])

    assert result.exit_code == 1
    assert "Nothing was loaded" in result.output


def test_questions_without_an_open_set_exits_with_error(monkeypatch, config, content_service) -> None:
    _wire(monkeypatch, config, content_service)

    async def empty_set(services, route, tier, set_id, subjective, token):
        return _EmptySession()

    monkeypatch.setattr(run, "_open_question_set", empty_set)

    result = runner.invoke(run.cli, ["questions", "/mobile-asset-view/b1", "--set", "s1"])

    assert result.exit_code == 1
    assert "Question set s1 was not opened" in result.output


def test_bootstrap_failure_exits_with_code_two(monkeypatch) -> None:
    def fail(config_path=None):
        raise BootstrapError("Could not load configuration: broken")

    monkeypatch.setattr(run, "initialize_app", fail)

    result = runner.invoke(run.cli, ["view", "b1"])

    assert result.exit_code == 2
    assert "Could not load configuration" in result.output


def test_serve_builds_uvicorn_server(monkeypatch, config, content_service) -> None:
    _wire(monkeypatch, config, content_service)
    captured = {}

    class DummyConfig:
        def __init__(self, app, **kwargs):
            captured["app"] = app
            captured["config_kwargs"] = kwargs

    class DummyServer:
        def __init__(self, server_config):
            captured["server_instance"] = self

        def run(self):
            captured["server_run"] = True

    monkeypatch.setattr(run.uvicorn, "Config", DummyConfig)
    monkeypatch.setattr(run.uvicorn, "Server", DummyServer)

    run.serve(host="0.0.0.0", port=9000, config_path=None, verbose=False)

    assert captured["server_run"] is True
    assert captured["config_kwargs"]["host"] == "0.0.0.0"
    assert captured["config_kwargs"]["port"] == 9000
    assert captured["app"].state.server is captured["server_instance"]
    assert captured["app"].state.services.config is config
