"""Tests for the typer command line."""

import json

import pytest
from typer.testing import CliRunner

from cli.main import app
from core.config import TOKEN_ENV_VAR

from conftest import BAKE_TEMPLATE_TEXT, CI_CONFIG_TEXT, build_cloud_payload

IMAGE = "electron-90.0.4430.212"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_env(monkeypatch, workspace):
    monkeypatch.chdir(workspace)
    monkeypatch.setenv("CI", "true")
    monkeypatch.setenv("COLUMNS", "200")
    monkeypatch.setenv(TOKEN_ENV_VAR, "test-token")
    for name in ("BUILD_CLOUD_ID", "STRICT_LOOKUP", "API_BASE_URL", "IMAGE_PREFIX"):
        monkeypatch.delenv(f"APPVEYOR_PREP_{name}", raising=False)
    return workspace


class TestPrepareCommand:
    def test_image_exists(self, runner, cli_env, mock_api):
        mock_api.get("/build-clouds/682").respond(200, json=build_cloud_payload(IMAGE))

        result = runner.invoke(app, ["prepare", "main"])

        assert result.exit_code == 0, result.output
        assert (cli_env / "appveyor.yml").read_text(encoding="utf-8") == CI_CONFIG_TEXT.replace(
            "__APPVEYOR_IMAGE__", IMAGE
        )
        assert "Image exists" in result.output

    def test_image_missing_bakes(self, runner, cli_env, mock_api):
        mock_api.get("/build-clouds/electron-16-core").respond(200, json=build_cloud_payload())

        result = runner.invoke(app, ["prepare", "main", "--buildCloudId", "electron-16-core"])

        assert result.exit_code == 0, result.output
        assert (cli_env / "appveyor.yml").read_text(encoding="utf-8") == BAKE_TEMPLATE_TEXT.replace(
            "__APPVEYOR_IMAGE__", IMAGE
        )

    def test_provider_error_still_exits_zero(self, runner, cli_env, mock_api):
        mock_api.get("/build-clouds/682").respond(500, text="oops")

        result = runner.invoke(app, ["prepare"])

        assert result.exit_code == 0, result.output
        assert (cli_env / "appveyor.yml").read_text(encoding="utf-8") == BAKE_TEMPLATE_TEXT.replace(
            "__APPVEYOR_IMAGE__", IMAGE
        )

    def test_strict_provider_error_exits_one(self, runner, cli_env, mock_api):
        mock_api.get("/build-clouds/682").respond(500, text="oops")

        result = runner.invoke(app, ["prepare", "--strict"])

        assert result.exit_code == 1
        assert "Error" in result.output
        assert (cli_env / "appveyor.yml").read_text(encoding="utf-8") == CI_CONFIG_TEXT

    def test_missing_manifest_exits_one(self, runner, cli_env, mock_api):
        (cli_env / "DEPS").unlink()
        route = mock_api.get("/build-clouds/682").respond(200, json=build_cloud_payload(IMAGE))

        result = runner.invoke(app, ["prepare"])

        assert result.exit_code == 1
        assert not route.called

    def test_undecodable_manifest_exits_one(self, runner, cli_env, mock_api):
        (cli_env / "DEPS").write_bytes(b"\xff\xfe")

        result = runner.invoke(app, ["prepare"])

        assert result.exit_code == 1
        assert "Could not read dependency manifest" in result.output
        assert not isinstance(result.exception, UnicodeDecodeError)

    def test_missing_token_exits_one(self, runner, cli_env, monkeypatch, mock_api):
        monkeypatch.delenv(TOKEN_ENV_VAR)

        result = runner.invoke(app, ["prepare"])

        assert result.exit_code == 1
        assert TOKEN_ENV_VAR in result.output


class TestTriggerBuildCommand:
    def test_posts_build(self, runner, cli_env, mock_api):
        route = mock_api.post("/builds").respond(200, json={"buildId": 12, "version": "1.0.3"})

        result = runner.invoke(
            app,
            ["trigger-build", "main", "--image-version", "vs2019bt-16.4.0", "--ghRelease", "--commit", "abc"],
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(route.calls.last.request.content)
        assert payload["branch"] == "main"
        assert payload["commitId"] == "abc"
        assert payload["environmentVariables"] == {
            "ELECTRON_RELEASE": "1",
            "APPVEYOR_BUILD_WORKER_CLOUD": "682",
            "APPVEYOR_BUILD_WORKER_IMAGE": "vs2019bt-16.4.0",
        }
        assert "buildId" in result.output

    def test_http_error_exits_one(self, runner, cli_env, mock_api):
        mock_api.post("/builds").respond(401, text="unauthorized")

        result = runner.invoke(app, ["trigger-build", "main", "--bake"])

        assert result.exit_code == 1
        assert "401" in result.output


class TestDoctorCommand:
    def test_run_reports_checks(self, runner, cli_env, mock_api):
        mock_api.get("/build-clouds/682").respond(200, json=build_cloud_payload(IMAGE, "electron-89"))

        result = runner.invoke(app, ["doctor", "run"])

        assert result.exit_code == 0, result.output
        assert "90.0.4430.212" in result.output
        assert "2 image(s)" in result.output

    def test_setup_token_writes_user_env(self, runner, cli_env, monkeypatch, tmp_path):
        captured = {}

        def fake_write(values):
            captured.update(values)
            return tmp_path / "saved.env"

        monkeypatch.setattr("cli.doctor.write_user_env_vars", fake_write)

        result = runner.invoke(app, ["doctor", "setup-token"], input="secret-token\n682\n")

        assert result.exit_code == 0, result.output
        assert captured == {TOKEN_ENV_VAR: "secret-token", "APPVEYOR_PREP_BUILD_CLOUD_ID": "682"}
