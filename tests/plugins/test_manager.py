"""Tests for PluginManager — registration, hook relay, and event dispatch."""

from __future__ import annotations

from typing import Any

import pytest

from bbservices import Service, ServiceChain
from bbservices.plugins import hookimpl
from bbservices.plugins.manager import (
    PluginManager,
    dispatch_event,
    get_plugin_manager,
    set_plugin_manager,
)


class Ok(Service):
    def on_run(self) -> None:
        pass

    def on_run_unsafe(self) -> None:
        pass


class Fails(Service):
    def on_run(self) -> None:
        raise ValueError("bad")

    def on_run_unsafe(self) -> None:
        raise ValueError("bad")


class _RecordingPlugin:
    def __init__(self) -> None:
        self.runs: list[tuple[Service, bool, bool]] = []
        self.steps: list[tuple[ServiceChain, int, Service]] = []

    @hookimpl
    def post_run(self, service: Service, unsafe: bool) -> None:
        self.runs.append((service, unsafe, service.successful))

    @hookimpl
    def post_chain_step(self, chain: ServiceChain, step_index: int, service: Service) -> None:
        self.steps.append((chain, step_index, service))


class _ExplodingPlugin:
    @hookimpl
    def post_run(self, service: Service, unsafe: bool) -> None:
        raise RuntimeError("plugin bug")


class TestPluginManager:
    def test_hook_relay_accessible(self) -> None:
        pm = PluginManager()
        assert hasattr(pm.hook, "post_run")
        assert hasattr(pm.hook, "post_chain_step")

    def test_register_plugin(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_RecordingPlugin(), name="recorder")
        assert "recorder" in pm.list_plugin_names()

    def test_register_plugin_default_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_RecordingPlugin())
        assert "_RecordingPlugin" in pm.list_plugin_names()

    def test_register_same_name_twice_is_noop(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_RecordingPlugin(), name="recorder")
        pm.register_plugin(_RecordingPlugin(), name="recorder")
        assert pm.list_plugin_names().count("recorder") == 1

    def test_unregister_plugin(self) -> None:
        pm = PluginManager()
        plugin = _RecordingPlugin()
        pm.register_plugin(plugin, name="recorder")
        pm.unregister(plugin)
        assert "recorder" not in pm.list_plugin_names()
        assert pm.get_plugins() == []

    def test_discover_and_load_marks_loaded(self) -> None:
        pm = PluginManager()
        assert not pm.is_loaded
        pm.discover_and_load()
        assert pm.is_loaded

    def test_dispatch_reports_failure(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_ExplodingPlugin())
        assert pm.dispatch("post_run", service=Ok(), unsafe=False) is False

    def test_dispatch_without_plugins(self) -> None:
        assert PluginManager().dispatch("post_run", service=Ok(), unsafe=False) is True


class TestDefaultManager:
    def test_created_lazily_and_reused(self) -> None:
        pm = get_plugin_manager()
        assert get_plugin_manager() is pm

    def test_set_and_reset(self) -> None:
        pm = PluginManager()
        set_plugin_manager(pm)
        assert get_plugin_manager() is pm
        set_plugin_manager(None)
        assert get_plugin_manager() is not pm

    def test_dispatch_event_uses_default(self, plugin_manager: PluginManager) -> None:
        plugin = _RecordingPlugin()
        plugin_manager.register_plugin(plugin)
        service = Ok()
        assert dispatch_event("post_run", service=service, unsafe=True)
        assert plugin.runs == [(service, True, False)]


class TestLifecycleEvents:
    def test_post_run_after_outcome(self, plugin_manager: PluginManager) -> None:
        plugin = _RecordingPlugin()
        plugin_manager.register_plugin(plugin)
        ok = Ok.run()
        failed = Fails.run()
        assert plugin.runs == [(ok, False, True), (failed, False, False)]

    def test_post_run_before_unsafe_reraise(self, plugin_manager: PluginManager) -> None:
        plugin = _RecordingPlugin()
        plugin_manager.register_plugin(plugin)
        with pytest.raises(ValueError):
            Fails.run_unsafe()
        assert len(plugin.runs) == 1
        service, unsafe, successful = plugin.runs[0]
        assert unsafe is True
        assert successful is False
        assert len(service.errors) == 1

    def test_post_run_precedes_completion_callback(self, plugin_manager: PluginManager) -> None:
        plugin = _RecordingPlugin()
        plugin_manager.register_plugin(plugin)
        seen: list[int] = []
        Ok.run(on_complete=lambda _s: seen.append(len(plugin.runs)))
        assert seen == [1]

    def test_plugin_failure_does_not_change_outcome(self, plugin_manager: PluginManager) -> None:
        plugin_manager.register_plugin(_ExplodingPlugin())
        service = Ok.run()
        assert service.successful
        assert service.errors == ()
        assert Ok.run_unsafe().successful

    def test_post_chain_step(self, plugin_manager: PluginManager) -> None:
        plugin = _RecordingPlugin()
        plugin_manager.register_plugin(plugin)
        chain = Ok.run().then(lambda _s: Ok.run()).then(lambda _s: Fails.run())
        indexes = [index for _chain, index, _service in plugin.steps]
        assert indexes == [0, 1]
        assert plugin.steps[-1][0] is chain
        assert plugin.steps[-1][2] is chain.head

    def test_skipped_steps_fire_nothing(self, plugin_manager: PluginManager) -> None:
        plugin = _RecordingPlugin()
        plugin_manager.register_plugin(plugin)
        Fails.run().then(lambda _s: Ok.run())
        assert plugin.steps == []


class TestFailureLogPlugin:
    def test_logs_failed_runs(self, plugin_manager: PluginManager, monkeypatch: Any) -> None:
        from bbservices.plugins.builtins import failure_log

        events: list[dict[str, Any]] = []

        class _Log:
            def warning(self, event: str, **kw: Any) -> None:
                events.append({"event": event, **kw})

        monkeypatch.setattr(failure_log, "log", _Log())
        plugin_manager.register_plugin(failure_log.FailureLogPlugin())

        Ok.run()
        Fails.run()

        assert len(events) == 1
        assert events[0]["event"] == "service.failed"
        assert events[0]["service"] == "Fails"
        assert events[0]["error_type"] == "ValueError"
        assert events[0]["error"] == "bad"
        assert events[0]["unsafe"] is False
