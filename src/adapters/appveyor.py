"""Cliente de la API REST de AppVeyor.

Endpoints usados:
- `GET  {api}/build-clouds/{buildCloudId}`: imágenes disponibles en el cloud.
- `POST {api}/builds`: dispara un build (camino heredado, solo bajo demanda).
"""

from __future__ import annotations

from typing import Any

import httpx

from adapters.http_client import make_request
from core.config import AppSettings, require_token
from core.domain.models import (
    BuildCloud,
    BuildRequest,
    ImageRecord,
    RequestAuth,
    RequestOptions,
)


def find_image(images: list[ImageRecord], name: str) -> ImageRecord | None:
    """Primera imagen cuyo nombre coincide exactamente (orden del proveedor)."""

    for image in images:
        if image.name == name:
            return image
    return None


def build_environment(
    *,
    build_cloud_id: str,
    image: str,
    release: bool,
    gh_release: bool,
) -> dict[str, str]:
    """Variables de entorno que AppVeyor recibe al disparar un build."""

    env = {
        "ELECTRON_RELEASE": "1" if release else "0",
        "APPVEYOR_BUILD_WORKER_CLOUD": build_cloud_id,
        "APPVEYOR_BUILD_WORKER_IMAGE": image,
    }
    if not gh_release:
        env["UPLOAD_TO_S3"] = "1"
    return env


class AppVeyorClient:
    """Acceso tipado a la API de AppVeyor sobre un `httpx.AsyncClient`."""

    def __init__(self, settings: AppSettings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    def _options(self, path: str, *, method: str = "GET", body: Any = None) -> RequestOptions:
        return RequestOptions(
            url=f"{self._settings.api_base_url.rstrip('/')}/{path.lstrip('/')}",
            method=method,
            headers={"Content-Type": "application/json"},
            body=body,
            auth=RequestAuth(bearer=require_token(self._settings)),
        )

    async def get_build_cloud(self, build_cloud_id: str) -> BuildCloud:
        data = await make_request(self._options(f"build-clouds/{build_cloud_id}"), client=self._http)
        return BuildCloud.model_validate(data or {})

    async def start_build(self, request: BuildRequest) -> dict[str, Any]:
        data = await make_request(
            self._options("builds", method="POST", body=request.to_payload()),
            client=self._http,
        )
        return data if isinstance(data, dict) else {}
