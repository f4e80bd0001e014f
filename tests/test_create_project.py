"""
Tests for project operations — creation, ad-hoc west commands, deletion.
"""

from __future__ import annotations

import pytest

from rtos_provision.core.models.settings import STARTER_MANIFEST_URL, ProvisionSettings
from rtos_provision.core.services.provisioning.orchestration.pipeline import PipelineError
from rtos_provision.core.services.provisioning.orchestration.project import (
    create_project,
    delete_project_directory,
    run_meta_tool,
)

from tests.fakes import RecordingRunner


@pytest.fixture
def configured_store(store, tmp_path):
    venv = tmp_path / "zephyr-ws" / ".venv"
    store.update(lambda c: c.set_venv_path(venv))
    return store


class TestCreateProject:
    def test_runs_init_then_update(self, tmp_path, sink, configured_store, recording_runner):
        workspace = tmp_path / "demo"
        create_project(
            "demo", workspace, False, sink,
            store=configured_store, runner=recording_runner, family="linux",
        )

        venv = tmp_path / "zephyr-ws" / ".venv"
        west = str(venv / "bin" / "west")
        init, update = recording_runner.specs
        assert init.argv == [west, "init", "-m", STARTER_MANIFEST_URL, "--mr", "main", "demo"]
        assert init.cwd == tmp_path
        assert update.argv == [west, "update"]
        assert update.cwd == workspace

    def test_overlay_and_term(self, tmp_path, sink, configured_store, recording_runner):
        create_project("demo", tmp_path / "demo", store=configured_store,
                       sink=sink, runner=recording_runner, family="linux")
        venv = tmp_path / "zephyr-ws" / ".venv"
        for spec in recording_runner.specs:
            assert spec.env["TERM"] == "xterm"
            assert spec.env["VIRTUAL_ENV"] == str(venv)
            assert spec.env["PATH"].startswith(str(venv / "bin"))

    def test_shallow_uses_depth(self, tmp_path, sink, configured_store, recording_runner):
        settings = ProvisionSettings(shallow_depth=15)
        create_project("demo", tmp_path / "demo", True, sink, store=configured_store,
                       settings=settings, runner=recording_runner, family="linux")
        init, update = recording_runner.argvs
        assert "--clone-opt=--depth=15" in init
        assert init[-1] == "demo"
        assert update[-1] == "--fetch-opt=--depth=15"

    def test_records_history_first(self, tmp_path, sink, configured_store, recording_runner):
        create_project("demo", tmp_path / "demo", store=configured_store,
                       sink=sink, runner=recording_runner, family="linux")
        record = configured_store.load().projects[0]
        assert record.path == str(tmp_path / "demo")
        assert record.name == "demo"
        assert record.project_type == "zephyr"

    def test_history_kept_when_step_fails(self, tmp_path, sink, configured_store):
        runner = RecordingRunner(fail_on=lambda spec: "init" in spec.args)
        with pytest.raises(PipelineError) as exc:
            create_project("demo", tmp_path / "demo", store=configured_store,
                           sink=sink, runner=runner, family="linux")
        assert exc.value.step == "west-init"
        assert len(runner.specs) == 1
        assert configured_store.load().projects[0].name == "demo"

    def test_requires_configured_venv(self, tmp_path, sink, store, recording_runner):
        with pytest.raises(PipelineError) as exc:
            create_project("demo", tmp_path / "demo", store=store, sink=sink, runner=recording_runner)
        assert exc.value.step == "configure"
        assert recording_runner.specs == []
        # still registered
        assert store.load().get_project(str(tmp_path / "demo")) is not None

    def test_missing_parent_directory(self, tmp_path, sink, configured_store, recording_runner):
        with pytest.raises(PipelineError) as exc:
            create_project("demo", tmp_path / "nope" / "demo", store=configured_store,
                           sink=sink, runner=recording_runner)
        assert exc.value.step == "configure"
        assert recording_runner.specs == []

    def test_name_resolver_updates_history(self, tmp_path, sink, configured_store, recording_runner):
        create_project(
            "demo", tmp_path / "demo", store=configured_store, sink=sink,
            runner=recording_runner, family="linux",
            name_resolver=lambda ws: "robot-arm",
        )
        assert configured_store.load().projects[0].name == "robot-arm"

    def test_name_resolver_none_keeps_name(self, tmp_path, sink, configured_store, recording_runner):
        create_project(
            "demo", tmp_path / "demo", store=configured_store, sink=sink,
            runner=recording_runner, family="linux",
            name_resolver=lambda ws: None,
        )
        assert configured_store.load().projects[0].name == "demo"


class TestShellActivation:
    def test_posix_shell_line(self, tmp_path, sink, configured_store, recording_runner):
        settings = ProvisionSettings(activation="shell")
        create_project("demo", tmp_path / "demo", True, sink, store=configured_store,
                       settings=settings, runner=recording_runner, family="linux")
        init = recording_runner.specs[0]
        activate = tmp_path / "zephyr-ws" / ".venv" / "bin" / "activate"
        assert init.executable == "sh"
        assert init.args[0] == "-c"
        assert init.args[1].startswith(f". {activate} && west init -m ")
        assert init.args[1].endswith("--clone-opt=--depth=15 demo")
        assert init.env == {"TERM": "xterm"}

    def test_windows_shell_line(self, tmp_path, sink, configured_store, recording_runner):
        settings = ProvisionSettings(activation="shell")
        create_project("demo", tmp_path / "demo", store=configured_store, sink=sink,
                       settings=settings, runner=recording_runner, family="windows")
        update = recording_runner.specs[1]
        assert update.executable == "cmd"
        assert update.args[0] == "/C"
        assert "activate.bat" in update.args[1]
        assert update.args[1].endswith("&& west update")


class TestRunMetaTool:
    def test_runs_west_in_workspace(self, tmp_path, sink, recording_runner):
        venv = tmp_path / ".venv"
        result = run_meta_tool(
            ["build", "-b", "nrf52840dk/nrf52840", "app"], tmp_path, sink,
            venv=venv, runner=recording_runner, family="linux",
        )
        assert result.ok
        spec, = recording_runner.specs
        assert spec.argv == [str(venv / "bin" / "west"), "build", "-b", "nrf52840dk/nrf52840", "app"]
        assert spec.cwd == tmp_path
        assert spec.env["VIRTUAL_ENV"] == str(venv)
        assert spec.env["TERM"] == "xterm"
        assert "Running: west build" in sink.output
        assert "ran " in sink.output

    def test_failure_names_step_and_tail(self, tmp_path, sink):
        runner = RecordingRunner(fail_on=lambda spec: True, exit_code=2)
        with pytest.raises(PipelineError) as exc:
            run_meta_tool(["flash"], tmp_path, sink, venv=tmp_path / ".venv",
                          runner=runner, family="linux")
        assert exc.value.step == "west"
        assert exc.value.result.exit_code == 2
        assert "simulated failure" in str(exc.value)

    def test_missing_workspace(self, tmp_path, sink, recording_runner):
        with pytest.raises(PipelineError) as exc:
            run_meta_tool(["status"], tmp_path / "nope", sink, venv=tmp_path / ".venv",
                          runner=recording_runner)
        assert exc.value.step == "configure"
        assert recording_runner.specs == []

    def test_empty_command(self, tmp_path, sink, recording_runner):
        with pytest.raises(PipelineError, match="no west command"):
            run_meta_tool([], tmp_path, sink, venv=tmp_path / ".venv", runner=recording_runner)

    def test_shell_activation(self, tmp_path, sink, recording_runner):
        settings = ProvisionSettings(activation="shell")
        run_meta_tool(["list"], tmp_path, sink, venv=tmp_path / ".venv",
                      settings=settings, runner=recording_runner, family="linux")
        spec, = recording_runner.specs
        assert spec.executable == "sh"
        assert spec.args[1].endswith("&& west list")


class TestDeleteProjectDirectory:
    def test_removes_tree(self, tmp_path):
        project = tmp_path / "demo"
        (project / "app" / "src").mkdir(parents=True)
        (project / "app" / "src" / "main.c").write_text("int main(void) { return 0; }\n")
        assert delete_project_directory(project) == project
        assert not project.exists()

    def test_missing_path(self, tmp_path):
        with pytest.raises(PipelineError, match="does not exist") as exc:
            delete_project_directory(tmp_path / "nope")
        assert exc.value.step == "delete-project"

    def test_not_a_directory(self, tmp_path):
        f = tmp_path / "notes.txt"
        f.write_text("x")
        with pytest.raises(PipelineError, match="not a directory"):
            delete_project_directory(f)
        assert f.exists()
