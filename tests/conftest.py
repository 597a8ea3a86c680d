"""Shared fixtures: settings pointing at temp files and a mocked AppVeyor API."""

from pathlib import Path

import pytest
import respx

from core.config import AppSettings

API_URL = "https://ci.appveyor.com/api"

DEPS_TEXT = """vars = {
  'build_with_chromium': True,
  'chromium_version':
    '90.0.4430.212',
  'node_version':
    'v14.16.0',
}
"""

CI_CONFIG_TEXT = """version: 1.0.{build}
build_cloud: electron-16-core
image: __APPVEYOR_IMAGE__
environment:
  GIT_CACHE_PATH: C:\\Users\\electron\\libcc_cache
"""

BAKE_TEMPLATE_TEXT = """version: 1.0.{build}
build_cloud: electron-16-core
image: vs2019bt-16.6.2
environment:
  BAKE_IMAGE_NAME: __APPVEYOR_IMAGE__
"""


def build_cloud_payload(*names: str) -> dict:
    return {
        "buildCloudId": 682,
        "name": "electron-16-core",
        "settings": {
            "cloudSettings": {
                "images": [{"name": name, "buildCloudName": "electron-16-core"} for name in names],
            }
        },
    }


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "DEPS").write_text(DEPS_TEXT, encoding="utf-8")
    (tmp_path / "appveyor.yml").write_text(CI_CONFIG_TEXT, encoding="utf-8")
    (tmp_path / "appveyor-bake.yml").write_text(BAKE_TEMPLATE_TEXT, encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(workspace: Path) -> AppSettings:
    return AppSettings(
        _env_file=None,
        appveyor_cloud_token="test-token",
        api_base_url=API_URL,
        deps_path=workspace / "DEPS",
        ci_config_path=workspace / "appveyor.yml",
        bake_template_path=workspace / "appveyor-bake.yml",
    )


@pytest.fixture
def mock_api():
    """Mock the AppVeyor REST API."""
    with respx.mock(base_url=API_URL, assert_all_called=False) as mock:
        yield mock
