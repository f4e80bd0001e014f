"""
Tests for the dependency inventory — probes run against a fake capture.
"""

from __future__ import annotations

from pathlib import Path

from rtos_provision.core.models.settings import ProvisionSettings
from rtos_provision.core.models.user_config import UserConfig
from rtos_provision.core.services.provisioning.data.catalog import (
    DEPENDENCY_CATALOG,
    CatalogEntry,
    CommandProbe,
    PackageProbe,
    ShellProbe,
)
from rtos_provision.core.services.provisioning.detection.dependencies import (
    check_dependencies,
    check_environment,
    probe_entry,
)
from rtos_provision.core.services.provisioning.execution.overlay import venv_interpreter
from rtos_provision.core.services.provisioning.platform_info import PlatformInfo


class FakeCapture:
    """Maps argv[0] (or the full argv tuple) to ``(rc, stdout)``."""

    def __init__(self, table: dict | None = None, default=(None, "")) -> None:
        self.table = table or {}
        self.default = default
        self.calls: list[list[str]] = []

    def __call__(self, argv, timeout=10):
        self.calls.append(list(argv))
        if tuple(argv) in self.table:
            return self.table[tuple(argv)]
        return self.table.get(argv[0], self.default)


class TestProbeEntry:
    def test_command_installed_with_version(self):
        cap = FakeCapture({"cmake": (0, "\ncmake version 3.28.1\n\nCMake suite\n")})
        dep = probe_entry(CatalogEntry("CMake", CommandProbe(("cmake", "--version"))), cap)
        assert dep.installed is True
        assert dep.version == "cmake version 3.28.1"

    def test_command_absent(self):
        dep = probe_entry(CatalogEntry("Ninja", CommandProbe(("ninja", "--version"))), FakeCapture())
        assert dep.installed is False
        assert dep.version is None

    def test_command_nonzero(self):
        cap = FakeCapture({"dtc": (1, "oops")})
        dep = probe_entry(CatalogEntry("DTC", CommandProbe(("dtc", "--version"))), cap)
        assert dep.installed is False
        assert dep.version is None

    def test_command_without_version_capture(self):
        cap = FakeCapture({"python3": (0, "usage: venv ...")})
        probe = CommandProbe(("python3", "-m", "venv", "--help"), capture_version=False)
        dep = probe_entry(CatalogEntry("python3-venv", probe), cap)
        assert dep.installed is True
        assert dep.version is None

    def test_package_dpkg(self):
        cap = FakeCapture({"dpkg-query": (0, "install ok installed\t3.12.3-0ubuntu1")})
        probe = PackageProbe({"dpkg": "python3-dev", "rpm": "python3-devel"})
        dep = probe_entry(CatalogEntry("python3-dev", probe), cap)
        assert dep.installed is True
        assert dep.version == "3.12.3-0ubuntu1"

    def test_package_falls_back_to_rpm(self):
        cap = FakeCapture({"rpm": (0, "3.12.4")})
        probe = PackageProbe({"dpkg": "python3-dev", "rpm": "python3-devel"})
        dep = probe_entry(CatalogEntry("python3-dev", probe), cap)
        assert dep.installed is True
        assert dep.version == "3.12.4"
        assert cap.calls[0][0] == "dpkg-query"

    def test_package_not_installed(self):
        cap = FakeCapture({"dpkg-query": (1, ""), "rpm": (1, "package x is not installed")})
        dep = probe_entry(CatalogEntry("libmagic1", PackageProbe({"dpkg": "libmagic1", "rpm": "file-libs"})), cap)
        assert dep.installed is False

    def test_shell_probe(self):
        cap = FakeCapture({"sh": (0, "ii  gcc-multilib")})
        dep = probe_entry(CatalogEntry("gcc-multilib", ShellProbe("dpkg -l | grep gcc-multilib")), cap)
        assert dep.installed is True
        assert cap.calls == [["sh", "-c", "dpkg -l | grep gcc-multilib"]]

    def test_probe_exception_is_not_installed(self):
        def boom(argv, timeout=10):
            raise RuntimeError("probe crashed")

        dep = probe_entry(CatalogEntry("Git", CommandProbe(("git", "--version"))), boom)
        assert dep.installed is False

    def test_critical_flag_carried(self):
        dep = probe_entry(CatalogEntry("x", CommandProbe(("x",)), critical=False), FakeCapture())
        assert dep.critical is False


class TestCheckDependencies:
    def test_keeps_catalog_order(self):
        cap = FakeCapture(default=(0, "v1"))
        report = check_dependencies(PlatformInfo("windows"), capture=cap)
        names = [d.name for d in report.dependencies]
        assert names == [e.name for e in DEPENDENCY_CATALOG["windows"]]
        assert report.all_satisfied is True
        assert report.missing == []

    def test_missing_marks_unsatisfied(self):
        cap = FakeCapture({"git": (0, "git version 2.43.0")})
        report = check_dependencies(PlatformInfo("windows"), capture=cap)
        git = next(d for d in report.dependencies if d.name == "Git")
        assert git.installed and git.version == "git version 2.43.0"
        assert report.all_satisfied is False
        assert "CMake" in [d.name for d in report.missing]

    def test_unsupported_os(self):
        report = check_dependencies(PlatformInfo("macos"), capture=FakeCapture())
        assert report.os == "unsupported"
        assert report.supported is False
        assert report.dependencies == []
        assert report.all_satisfied is False

    def test_linux_report_carries_distro(self):
        report = check_dependencies(PlatformInfo("linux", "fedora"), capture=FakeCapture())
        assert report.os == "linux"
        assert report.distro == "fedora"
        assert len(report.dependencies) == len(DEPENDENCY_CATALOG["linux"])

    def test_custom_catalog(self):
        catalog = {"linux": [CatalogEntry("Tool", CommandProbe(("tool", "-V")))]}
        report = check_dependencies(
            PlatformInfo("linux"), capture=FakeCapture({"tool": (0, "1.0")}), catalog=catalog,
        )
        assert [d.model_dump() for d in report.dependencies] == [
            {"name": "Tool", "installed": True, "version": "1.0", "critical": True},
        ]

    def test_serialized_report_has_all_satisfied(self):
        report = check_dependencies(PlatformInfo("windows"), capture=FakeCapture(default=(0, "")))
        assert report.model_dump()["all_satisfied"] is True


class TestCheckEnvironment:
    def test_all_ready_with_sdk_base(self, tmp_path: Path):
        sdk = tmp_path / "zephyr"
        sdk.mkdir()
        config = UserConfig(sdk_base=str(sdk))
        cap = FakeCapture(default=(0, "ok"))
        status = check_environment(config, ProvisionSettings(base_python="python3"), capture=cap, environ={})
        assert status.ready
        assert ["python3", "-m", "west", "--version"] in cap.calls

    def test_uses_venv_interpreter_when_present(self, tmp_path: Path):
        venv = tmp_path / ".venv"
        interpreter = venv_interpreter(venv)
        interpreter.parent.mkdir(parents=True)
        interpreter.write_text("")
        cap = FakeCapture(default=(0, ""))
        check_environment(UserConfig(venv_path=str(venv)), capture=cap, environ={})
        assert [str(interpreter), "-m", "west", "--version"] in cap.calls

    def test_falls_back_to_base_python(self, tmp_path: Path):
        cap = FakeCapture(default=(0, ""))
        config = UserConfig(venv_path=str(tmp_path / "missing-venv"))
        check_environment(config, ProvisionSettings(base_python="py3"), capture=cap, environ={})
        assert ["py3", "--version"] in cap.calls

    def test_sdk_from_zephyr_base_env(self):
        cap = FakeCapture(default=(0, ""))
        status = check_environment(UserConfig(), capture=cap, environ={"ZEPHYR_BASE": "/z"})
        assert status.sdk is True

    def test_nothing_available(self, tmp_path: Path):
        config = UserConfig(sdk_base=str(tmp_path / "gone"))
        status = check_environment(config, capture=FakeCapture(), environ={"ZEPHYR_BASE": "/z"})
        assert status.model_dump() == {"git": False, "python": False, "west": False, "sdk": False}
        assert not status.ready
