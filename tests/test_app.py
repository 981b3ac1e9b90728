"""Tests for vimimswitch.app — VimIMSwitchApp with a fake OS."""

from __future__ import annotations

import io
import json

import pytest

from vimimswitch.app import VimIMSwitchApp
from vimimswitch.core.events import EventType
from vimimswitch.core.router import IntegrationMode
from vimimswitch.platform.command_runner import CommandResult
from vimimswitch.platform.stream_source import StreamModeSource

from tests.conftest import FakeCommandRunner, IMSimulator


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _write_config(tmp_path, **values) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(values), encoding="utf-8")
    return str(path)


def _make_app(tmp_path, runner=None, legacy_editor=False, **config) -> VimIMSwitchApp:
    values = dict(
        enable=True, default_im="en",
        obtain_im_cmd=IMSimulator.OBTAIN, switch_im_cmd=IMSimulator.SWITCH,
    )
    values.update(config)
    app = VimIMSwitchApp(
        config_path=_write_config(tmp_path, **values),
        legacy_editor=legacy_editor,
        runner=runner if runner is not None else IMSimulator(current="zh"),
        start_threads=False,
    )
    app.load()
    return app


# ------------------------------------------------------------------
# Tests
# ------------------------------------------------------------------

class TestInit:
    def test_components_created_on_load(self, tmp_path):
        app = VimIMSwitchApp(config_path=str(tmp_path / "none.json"), start_threads=False)
        assert app.router is None
        app.load()
        assert app.protocol is not None
        assert app.router is not None
        app.unload()

    def test_default_runner_is_subprocess(self, tmp_path):
        from vimimswitch.platform.subprocess_impl import SubprocessCommandRunner

        app = VimIMSwitchApp(config_path=str(tmp_path / "none.json"), start_threads=False)
        app.load()
        assert isinstance(app.runner, SubprocessCommandRunner)
        app.unload()

    @pytest.mark.parametrize("legacy, expected", [
        (True, IntegrationMode.GLOBAL),
        (False, IntegrationMode.PER_EDITOR),
    ])
    def test_integration_mode_from_flag(self, tmp_path, legacy, expected):
        app = VimIMSwitchApp(config_path=str(tmp_path / "none.json"), legacy_editor=legacy)
        assert app.integration_mode is expected


class TestRun:
    @pytest.mark.parametrize("legacy", [True, False])
    def test_insert_normal_insert(self, tmp_path, legacy):
        system = IMSimulator(current="zh")
        app = _make_app(tmp_path, runner=system, legacy_editor=legacy)
        app.run(io.StringIO("insert\nnormal\ninsert\n"))
        app.unload()
        assert system.commands == ["get-im", "set-im en", "set-im zh"]
        assert system.current == "zh"

    def test_echo_scenario(self, tmp_path):
        runner = FakeCommandRunner()
        runner.responses["echo zh"] = CommandResult("zh\n", "", 0)
        app = _make_app(
            tmp_path, runner=runner,
            obtain_im_cmd="echo zh", switch_im_cmd="echo switch {im}",
        )
        app.run(io.StringIO("insert\nnormal\ninsert\n"))
        app.unload()
        assert runner.commands == ["echo zh", "echo switch en", "echo switch zh"]

    def test_per_editor_binds_each_editor_once(self, tmp_path):
        app = _make_app(tmp_path)
        app.run(io.StringIO("a:insert\nb:insert\na:normal\nb:normal\n"))
        bound = app.router.bound_editors
        assert sorted(e.editor_id for e in bound) == ["a", "b"]
        app.unload()
        assert all(e.handler_count == 0 for e in bound)

    def test_global_mode_binds_no_editors(self, tmp_path):
        app = _make_app(tmp_path, legacy_editor=True)
        app.run(io.StringIO("a:insert\nb:normal\n"))
        assert app.router.bound_editors == []
        app.unload()

    def test_attach_binds_already_known_editors(self, tmp_path):
        app = _make_app(tmp_path)
        source = StreamModeSource()
        existing = source.editor("open-before-load")
        app.attach(source)
        assert app.router.is_bound(existing)
        app.unload()

    def test_disabled_runs_nothing(self, tmp_path):
        system = IMSimulator(current="zh")
        app = _make_app(tmp_path, runner=system, enable=False)
        app.run(io.StringIO("insert\nnormal\ninsert\n"))
        app.unload()
        assert system.commands == []

    @pytest.mark.timeout(10)
    def test_run_with_worker_thread(self, tmp_path):
        system = IMSimulator(current="kana")
        app = VimIMSwitchApp(
            config_path=_write_config(
                tmp_path, enable=True, default_im="en",
                obtain_im_cmd=IMSimulator.OBTAIN, switch_im_cmd=IMSimulator.SWITCH,
            ),
            runner=system,
        )
        try:
            app.run(io.StringIO("insert\nnormal\n"))
        finally:
            app.unload()
        assert system.commands == ["get-im", "set-im en"]


class TestSettings:
    def test_save_settings_applies_live_and_persists(self, tmp_path):
        system = IMSimulator(current="zh")
        app = _make_app(tmp_path, runner=system)
        changed = []
        app.event_bus.subscribe(EventType.CONFIG_CHANGED, changed.append)

        app.save_settings(default_im="jp")
        app.run(io.StringIO("insert\nnormal\n"))
        app.unload()

        assert system.commands[-1] == "set-im jp"
        assert len(changed) == 1
        with open(app.config.config_path, encoding="utf-8") as f:
            assert json.load(f)["default_im"] == "jp"

    def test_invalid_settings_rejected(self, tmp_path):
        app = _make_app(tmp_path)
        with pytest.raises(ValueError):
            app.save_settings(command_timeout=-1)
        assert app.settings.command_timeout == 5.0
        app.unload()

    def test_reload_settings(self, tmp_path):
        app = _make_app(tmp_path)
        with open(app.config.config_path, "w", encoding="utf-8") as f:
            json.dump({"enable": False}, f)
        assert app.reload_settings() is True
        assert app.settings.enable is False
        app.unload()

    def test_reload_invalid_file_keeps_previous_settings(self, tmp_path, caplog):
        app = _make_app(tmp_path)
        changed = []
        app.event_bus.subscribe(EventType.CONFIG_CHANGED, changed.append)
        with open(app.config.config_path, "w", encoding="utf-8") as f:
            json.dump({"enable": True, "command_timeout": "abc"}, f)
        assert app.reload_settings() is False
        assert app.settings.enable is True
        assert app.settings.default_im == "en"
        assert changed == []
        assert "keeping previous settings" in caplog.text
        app.unload()

    def test_save_failure_is_reported(self, tmp_path, monkeypatch, caplog):
        app = _make_app(tmp_path)
        monkeypatch.setattr(app.config, "save", lambda target_path=None: False)
        settings = app.save_settings(default_im="jp")
        assert settings.default_im == "jp"
        assert "not saved" in caplog.text
        app.unload()


class TestUnload:
    def test_unload_twice_is_safe(self, tmp_path):
        app = _make_app(tmp_path)
        quits = []
        app.event_bus.subscribe(EventType.APP_QUIT, quits.append)
        app.unload()
        app.unload()
        assert len(quits) == 1

    def test_unload_before_load_is_noop(self, tmp_path):
        app = VimIMSwitchApp(config_path=str(tmp_path / "none.json"))
        app.unload()
