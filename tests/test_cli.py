"""Tests for the hosted-app command line."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from marquee import __version__
from marquee.__main__ import _default_name
from marquee.__main__ import app as marquee_app
from marquee.cli.run import create_cli
from marquee.models import StateDirectory
from marquee.runner.core import Runner

from conftest import FakeBrowser, FakeProber, FakeServer

runner: CliRunner = CliRunner()


@pytest.fixture
def created() -> list[Runner]:
    return []


@pytest.fixture
def cli(created: list[Runner]) -> Any:
    def _factory(app: Any, app_name: str, config: Any, **kwargs: Any) -> Runner:
        instance = Runner(
            app,
            app_name,
            config,
            server=FakeServer(),
            prober=FakeProber(),
            browser=FakeBrowser(),
            **kwargs,
        )
        created.append(instance)
        return instance

    return create_cli(object(), "demo", "1.2.3", runner_factory=_factory)


@pytest.fixture
def demo_state(tmp_path: Path) -> StateDirectory:
    directory = StateDirectory(root=tmp_path, app_name="demo")
    directory.ensure()
    return directory


class TestHostedCli:
    def test_version(self, cli: Any) -> None:
        result = runner.invoke(cli, ["--version"], catch_exceptions=False)
        assert result.exit_code == 0
        assert "demo 1.2.3" in result.output
        assert f"marquee {__version__}" in result.output

    def test_kill_without_pid_exits_zero(self, cli: Any, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["--kill", "--root", str(tmp_path)], catch_exceptions=False
        )
        assert result.exit_code == 0
        assert "pid not found at" in result.output

    def test_status_reports_recorded_state(
        self, cli: Any, tmp_path: Path, demo_state: StateDirectory
    ) -> None:
        demo_state.pid_path.write_text("4321")
        demo_state.url_path.write_text("http://0.0.0.0:5678")

        result = runner.invoke(
            cli, ["-S", "--root", str(tmp_path)], catch_exceptions=False
        )

        assert result.exit_code == 0
        assert "demo running" in result.output
        assert "PID 4321" in result.output
        assert "URL http://0.0.0.0:5678" in result.output

    def test_status_uses_root_from_environment(
        self, cli: Any, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MARQUEE_ROOT", str(tmp_path))
        result = runner.invoke(cli, ["--status"], catch_exceptions=False)
        assert result.exit_code == 0
        assert "demo not running!" in result.output

    def test_options_build_the_configuration(
        self, cli: Any, created: list[Runner], tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MARQUEE_ENV", "unset")
        result = runner.invoke(
            cli,
            [
                "-o", "127.0.0.1",
                "-p", "6001",
                "-e", "production",
                "-F",
                "-L",
                "-d",
                "--root", str(tmp_path),
            ],
            catch_exceptions=False,
        )

        assert result.exit_code == 0, result.output
        config = created[0].config
        assert config.host == "127.0.0.1"
        assert config.port == 6001
        assert config.environment == "production"
        assert config.foreground is True
        assert config.skip_launch is True
        assert config.debug is True
        assert created[0].server.calls[0][1:] == ("127.0.0.1", 6001)
        assert created[0].browser.opened == []

    def test_defaults(self, cli: Any, created: list[Runner], tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["--status", "--root", str(tmp_path)], catch_exceptions=False
        )
        assert result.exit_code == 0
        config = created[0].config
        assert config.port is None
        assert config.environment == "development"
        assert config.foreground is False
        assert config.skip_launch is False

    def test_rejects_blank_host(
        self, cli: Any, created: list[Runner], tmp_path: Path
    ) -> None:
        result = runner.invoke(cli, ["-o", "", "-F", "--root", str(tmp_path)])
        assert result.exit_code == 1
        assert "Invalid host" in result.output
        assert created == []
        assert not (tmp_path / "demo" / "demo.url").exists()

    def test_rejects_out_of_range_port(self, cli: Any) -> None:
        result = runner.invoke(cli, ["-p", "70000"])
        assert result.exit_code != 0

    def test_failed_start_exits_one(
        self, created: list[Runner], tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("MARQUEE_ENV", "unset")

        def _factory(app: Any, app_name: str, config: Any, **kwargs: Any) -> Runner:
            instance = Runner(
                app,
                app_name,
                config,
                server=FakeServer(),
                prober=FakeProber(occupied={65535}),
                browser=FakeBrowser(),
                base_port=65535,
                **kwargs,
            )
            created.append(instance)
            return instance

        cli = create_cli(object(), "demo", runner_factory=_factory)
        result = runner.invoke(cli, ["-F", "--root", str(tmp_path)])
        assert result.exit_code == 1
        assert "No free port" in result.output


class TestMarqueeCommand:
    @pytest.fixture(autouse=True)
    def _environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        # serve() exports the environment before importing; make sure it is restored.
        monkeypatch.setenv("MARQUEE_ENV", "unset")

    def test_default_name(self) -> None:
        assert _default_name("mypkg.web_app:app") == "web-app"
        assert _default_name("server:app") == "server"

    def test_unimportable_app(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(sys, "path", list(sys.path))
        result = runner.invoke(
            marquee_app,
            ["does_not_exist_xyz:app", "--app-dir", str(tmp_path), "--root", str(tmp_path)],
        )
        assert result.exit_code == 1
        assert "Could not import" in result.output

    def test_status_skips_import(self, tmp_path: Path) -> None:
        result = runner.invoke(
            marquee_app,
            ["does_not_exist_xyz:app", "-n", "demo", "--status", "--root", str(tmp_path)],
            catch_exceptions=False,
        )
        assert result.exit_code == 0
        assert "demo not running!" in result.output

    def test_imports_app_from_app_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "hosted_sample.py").write_text("app = 'the-app'\n")
        seen: list[Any] = []

        def _execute(hosted_app: Any, app_name: str, **kwargs: Any) -> None:
            seen.append((hosted_app, app_name, kwargs["foreground"]))

        monkeypatch.setattr("marquee.__main__.execute", _execute)
        monkeypatch.setattr(sys, "path", list(sys.path))
        result = runner.invoke(
            marquee_app,
            ["hosted_sample:app", "--app-dir", str(tmp_path), "-F"],
            catch_exceptions=False,
        )
        assert result.exit_code == 0, result.output
        assert seen == [("the-app", "hosted-sample", True)]

    @pytest.mark.parametrize(
        ("args", "expected"),
        [(["-e", "production"], "production"), ([], "development")],
    )
    def test_environment_is_visible_at_import(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        args: list[str],
        expected: str,
    ) -> None:
        module = f"env_sample_{expected}"
        (tmp_path / f"{module}.py").write_text(
            "import os\n"
            "ENV_AT_IMPORT = os.environ.get('MARQUEE_ENV', 'none')\n"
            "app = ENV_AT_IMPORT\n"
        )
        seen: list[Any] = []

        def _execute(hosted_app: Any, app_name: str, **kwargs: Any) -> None:
            seen.append(hosted_app)

        monkeypatch.delenv("MARQUEE_ENV", raising=False)
        monkeypatch.setattr("marquee.__main__.execute", _execute)
        monkeypatch.setattr(sys, "path", list(sys.path))
        monkeypatch.delitem(sys.modules, module, raising=False)
        result = runner.invoke(
            marquee_app,
            [f"{module}:app", "--app-dir", str(tmp_path), "-F", *args],
            catch_exceptions=False,
        )
        assert result.exit_code == 0, result.output
        assert seen == [expected]
