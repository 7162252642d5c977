import dataclasses

import pytest

from faro.core.engine import ConvergenceEngine
from faro.core.errors import SupervisionError, ValidationError
from faro.core.recipe import RecipeConfig, resolve_options
from faro.core.recipe.models import Action, ResourceDeclaration, ResourceKind, Subscription
from faro.core.runtime.state import ResourceState
from faro.providers import RunitSupervisor, ServiceProvider

from conftest import BASTION_BINARY


def _states(report):
    return {r.resource_id: r.state for r in report.records}


def test_clean_host_converges(engine, bastion, context, target, host, supervisor):
    report = engine.run(bastion, context, recipe="bastion")

    assert report.summary() == {"unchanged": 0, "changed": 5, "failed": 0}
    assert report.exit_code == 0
    assert [r.resource_id for r in report.records] == [
        "user[bastion]",
        "directory[/opt/bastion]",
        "file[bastion]",
        "file[demo_data.json]",
        "service[bastion]",
    ]
    for name in ("bin", "etc", "srv"):
        path = target / "opt" / "bastion" / name
        assert path.is_dir()
        assert path.stat().st_mode & 0o777 == 0o755
        assert host.owner_of(path, target) == ("bastion", "bastion")
    assert (target / "opt" / "bastion" / "bin" / "bastion").read_bytes() == BASTION_BINARY
    assert (target / "opt" / "bastion" / "etc" / "demo_data.json").is_file()
    assert supervisor.registered["bastion"] == ("/opt/bastion/bin/bastion", "bastion", True)
    assert engine.state_of("service[bastion]") == ResourceState.CHANGED


def test_second_run_is_unchanged(engine, bastion, context, supervisor):
    engine.run(bastion, context)
    report = engine.run(bastion, context)
    assert report.summary() == {"unchanged": 5, "changed": 0, "failed": 0}
    assert report.notifications == []
    assert supervisor.restarts == ["bastion"]


def test_restart_fires_once_per_changed_run(engine, bastion, context, target, supervisor):
    first = engine.run(bastion, context)
    assert [(n.subscriber, n.action, n.source) for n in first.notifications] == [
        ("service[bastion]", "restart", "file[bastion]")
    ]

    (target / "opt" / "bastion" / "bin" / "bastion").write_bytes(b"stale build")
    report = engine.run(bastion, context)
    assert _states(report)["file[bastion]"] == ResourceState.CHANGED
    assert _states(report)["service[bastion]"] == ResourceState.UNCHANGED
    assert len(report.notifications) == 1
    assert supervisor.restarts == ["bastion", "bastion"]


def test_duplicate_subscriptions_restart_once(engine, bastion, context, supervisor):
    service = bastion[-1]
    subscribes = service.subscribes + [Subscription(action="restart", resource="file[demo_data.json]")]
    bastion[-1] = service.model_copy(update={"subscribes": subscribes})
    report = engine.run(bastion, context)
    assert len(report.notifications) == 1
    assert supervisor.restarts == ["bastion"]


def test_failed_restart_fails_the_run(engine, bastion, context, supervisor, monkeypatch):
    def broken(name, context):
        raise SupervisionError(f"sv restart {name}: sin runsv")

    monkeypatch.setattr(supervisor, "restart", broken)
    report = engine.run(bastion, context)
    assert report.summary()["failed"] == 0
    assert report.notifications[0].error_kind == "SupervisionError"
    assert report.failed
    assert report.exit_code == 1


def test_unprivileged_run_aborts(engine, bastion, context, target, host, supervisor):
    unprivileged = dataclasses.replace(context, privileged=False)
    report = engine.run(bastion, unprivileged)

    first, *rest = report.records
    assert first.resource_id == "user[bastion]"
    assert first.error_kind == "PermissionError"
    assert [r.error_kind for r in rest] == ["Aborted"] * 4
    assert report.summary() == {"unchanged": 0, "changed": 0, "failed": 5}
    assert report.exit_code == 1
    assert list(target.iterdir()) == []
    assert host.users == {}
    assert supervisor.registered == {}
    assert report.notifications == []


def test_without_recursive_fails_on_clean_host(engine, bastion_recipe, context, target, supervisor):
    declarations = resolve_options(bastion_recipe, RecipeConfig(asset_source="bastion", recursive=False))
    report = engine.run(declarations, context)

    states = _states(report)
    assert states["user[bastion]"] == ResourceState.CHANGED
    assert report.record_for("directory[/opt/bastion]").error_kind == "PathError"
    for ref in ("file[bastion]", "file[demo_data.json]", "service[bastion]"):
        assert report.record_for(ref).error_kind == "DependencyError"
    assert not (target / "opt").exists()
    assert supervisor.registered == {}
    assert report.notifications == []


def test_without_recursive_succeeds_when_parent_exists(engine, bastion_recipe, context, target):
    (target / "opt" / "bastion").mkdir(parents=True)
    declarations = resolve_options(bastion_recipe, RecipeConfig(asset_source="bastion", recursive=False))
    report = engine.run(declarations, context)
    assert report.summary() == {"unchanged": 0, "changed": 5, "failed": 0}


def test_independent_resources_continue_after_failure(engine, context, target):
    declarations = [
        ResourceDeclaration(kind=ResourceKind.DIRECTORY, identifier="/data/cache"),
        ResourceDeclaration(kind=ResourceKind.FILE, identifier="/data/cache/index", attributes={"content": "{}"}),
        ResourceDeclaration(kind=ResourceKind.DIRECTORY, identifier="/scratch"),
    ]
    report = engine.run(declarations, context)
    assert [r.error_kind for r in report.records] == ["PathError", "DependencyError", None]
    assert report.records[2].state == ResourceState.CHANGED
    assert (target / "scratch").is_dir()


def test_invalid_declarations_mutate_nothing(engine, context, target):
    declarations = [
        ResourceDeclaration(kind=ResourceKind.DIRECTORY, identifier="/scratch"),
        ResourceDeclaration(kind=ResourceKind.FILE, identifier="/scratch/x", requires=["user[ghost]"]),
    ]
    with pytest.raises(ValidationError):
        engine.run(declarations, context)
    assert list(target.iterdir()) == []


def test_missing_provider_is_a_validation_error(bastion, context):
    with pytest.raises(ValidationError, match="Sin provider"):
        ConvergenceEngine({}).run(bastion, context)


def test_why_run_reports_without_mutating(engine, bastion, context, target, host, supervisor):
    why_run = dataclasses.replace(context, why_run=True)
    report = engine.run(bastion, why_run)

    assert report.summary() == {"unchanged": 0, "changed": 5, "failed": 0}
    assert report.why_run
    assert list(target.iterdir()) == []
    assert host.users == {}
    assert supervisor.registered == {}
    assert [n.fired for n in report.notifications] == [False]
    assert supervisor.restarts == []


def test_delete_and_nothing_actions(engine, bastion, context, target):
    engine.run(bastion, context)
    binary = target / "opt" / "bastion" / "bin" / "bastion"
    declarations = [
        ResourceDeclaration(
            kind=ResourceKind.FILE,
            identifier="bastion",
            attributes={"path": "/opt/bastion/bin/bastion"},
            action=Action.DELETE,
        ),
        ResourceDeclaration(kind=ResourceKind.DIRECTORY, identifier="/opt/bastion", action=Action.NOTHING),
    ]
    report = engine.run(declarations, context)
    assert [r.state for r in report.records] == [ResourceState.CHANGED, ResourceState.UNCHANGED]
    assert report.records[0].action == "delete"
    assert not binary.exists()


def test_unreadable_run_script_is_rewritten(engine, context, target):
    engine.providers[ResourceKind.SERVICE] = ServiceProvider(RunitSupervisor())
    run = target / "etc" / "sv" / "bastion" / "run"
    run.parent.mkdir(parents=True)
    run.write_bytes(b"\xff\xfe\x00garbage")
    declarations = [
        ResourceDeclaration(kind=ResourceKind.SERVICE, identifier="bastion"),
        ResourceDeclaration(kind=ResourceKind.DIRECTORY, identifier="/scratch"),
    ]
    report = engine.run(declarations, context)
    assert [r.state for r in report.records] == [ResourceState.CHANGED, ResourceState.CHANGED]
    assert run.read_text().startswith("#!/bin/sh")
    assert (target / "scratch").is_dir()


def test_unexpected_provider_error_is_recorded(engine, context, target, monkeypatch):
    def broken(spec, context, action=Action.CREATE):
        raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

    monkeypatch.setattr(engine.providers[ResourceKind.FILE], "check", broken)
    declarations = [
        ResourceDeclaration(kind=ResourceKind.FILE, identifier="/etc/motd", attributes={"content": "hola"}),
        ResourceDeclaration(kind=ResourceKind.DIRECTORY, identifier="/scratch"),
    ]
    report = engine.run(declarations, context)
    assert report.records[0].error_kind == "ProviderError"
    assert "UnicodeDecodeError" in report.records[0].error_message
    assert report.records[1].state == ResourceState.CHANGED
    assert report.exit_code == 1
