"""Tests for the AppVeyor API adapter."""

import asyncio
import json

import pytest

from adapters.appveyor import AppVeyorClient, build_environment, find_image
from adapters.http_client import build_async_client
from core.domain.models import BuildCloud, BuildRequest, ImageRecord
from core.errors import ConfigError

from conftest import build_cloud_payload


def _with_client(settings, call):
    async def go():
        async with build_async_client(settings) as http:
            return await call(AppVeyorClient(settings, http))

    return asyncio.run(go())


class TestFindImage:
    def test_exact_match(self):
        images = [ImageRecord(name="electron-89.0.4389.128"), ImageRecord(name="electron-90.0.4430.212")]

        match = find_image(images, "electron-90.0.4430.212")

        assert match is not None
        assert match.name == "electron-90.0.4430.212"

    def test_no_partial_match(self):
        images = [ImageRecord(name="electron-90.0.4430.2120"), ImageRecord(name="90.0.4430.212")]

        assert find_image(images, "electron-90.0.4430.212") is None

    def test_first_duplicate_wins(self):
        first = ImageRecord(name="electron-90", id=1)
        second = ImageRecord(name="electron-90", id=2)

        assert find_image([first, second], "electron-90") is first

    def test_empty(self):
        assert find_image([], "electron-90") is None


class TestBuildCloudModel:
    def test_decodes_nested_images(self):
        cloud = BuildCloud.model_validate(build_cloud_payload("a", "b"))

        assert [image.name for image in cloud.images] == ["a", "b"]
        assert cloud.images[0].model_extra == {"buildCloudName": "electron-16-core"}

    def test_missing_settings_means_no_images(self):
        assert BuildCloud.model_validate({}).images == []
        assert BuildCloud.model_validate({"settings": {}}).images == []


class TestBuildEnvironment:
    def test_bake_uploads_to_s3(self):
        env = build_environment(build_cloud_id="682", image="electron-90", release=False, gh_release=False)

        assert env == {
            "ELECTRON_RELEASE": "0",
            "APPVEYOR_BUILD_WORKER_CLOUD": "682",
            "APPVEYOR_BUILD_WORKER_IMAGE": "electron-90",
            "UPLOAD_TO_S3": "1",
        }

    def test_gh_release_skips_s3(self):
        env = build_environment(build_cloud_id="682", image="electron-90", release=True, gh_release=True)

        assert env["ELECTRON_RELEASE"] == "1"
        assert "UPLOAD_TO_S3" not in env


class TestBuildRequest:
    def test_payload_uses_api_names_and_omits_unset(self):
        payload = BuildRequest(
            account_name="electron-bot",
            environment_variables={"ELECTRON_RELEASE": "0"},
        ).to_payload()

        assert payload == {
            "accountName": "electron-bot",
            "environmentVariables": {"ELECTRON_RELEASE": "0"},
        }

    def test_payload_with_commit(self):
        payload = BuildRequest(account_name="electron-bot", commit_id="abc123", branch="main").to_payload()

        assert payload["commitId"] == "abc123"
        assert payload["branch"] == "main"


class TestAppVeyorClient:
    def test_get_build_cloud(self, settings, mock_api):
        route = mock_api.get("/build-clouds/682").respond(200, json=build_cloud_payload("electron-90.0.4430.212"))

        cloud = _with_client(settings, lambda client: client.get_build_cloud("682"))

        assert [image.name for image in cloud.images] == ["electron-90.0.4430.212"]
        sent = route.calls.last.request
        assert sent.headers["Authorization"] == "Bearer test-token"
        assert sent.headers["Content-Type"] == "application/json"

    def test_start_build_posts_payload(self, settings, mock_api):
        route = mock_api.post("/builds").respond(200, json={"buildId": 42, "version": "1.0.7"})
        request = BuildRequest(account_name="electron-bot", environment_variables={"ELECTRON_RELEASE": "1"})

        response = _with_client(settings, lambda client: client.start_build(request))

        assert response == {"buildId": 42, "version": "1.0.7"}
        assert json.loads(route.calls.last.request.content) == {
            "accountName": "electron-bot",
            "environmentVariables": {"ELECTRON_RELEASE": "1"},
        }

    def test_missing_token_fails_before_any_request(self, settings, mock_api):
        settings = settings.model_copy(update={"appveyor_cloud_token": None})
        route = mock_api.get("/build-clouds/682").respond(200, json={})

        with pytest.raises(ConfigError):
            _with_client(settings, lambda client: client.get_build_cloud("682"))

        assert not route.called
