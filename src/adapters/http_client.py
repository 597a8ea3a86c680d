"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y autenticación para todas las llamadas a la API.
- Facilita testeo: se puede sustituir por un stub/mocked client (respx).
"""

from __future__ import annotations

from typing import Any

import httpx

from core.config import AppSettings
from core.domain.models import RequestOptions
from core.errors import HttpStatusError


def build_async_client(
    settings: AppSettings,
    *,
    extra_headers: dict[str, str] | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers: sin timeout explícito una llamada colgada
      bloquearía todo el proceso.
    """

    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
    )


async def make_request(options: RequestOptions, *, client: httpx.AsyncClient) -> Any:
    """Ejecuta una petición y devuelve el JSON decodificado.

    - Bearer token -> header `Authorization`.
    - Usuario/contraseña -> HTTP basic auth.
    - Status fuera de [200, 300) -> `HttpStatusError` con status y cuerpo crudo.
    - Sin reintentos.
    """

    headers = dict(options.headers)
    auth = options.auth
    if auth and auth.bearer:
        headers["Authorization"] = f"Bearer {auth.bearer}"

    basic_auth: tuple[str, str] | None = None
    if auth and (auth.username or auth.password):
        basic_auth = (auth.username or "", auth.password or "")

    content: str | bytes | None = None
    json_body: Any = None
    if isinstance(options.body, (str, bytes)):
        content = options.body
    elif options.body is not None:
        json_body = options.body

    request_kwargs: dict[str, Any] = {"headers": headers}
    if content is not None:
        request_kwargs["content"] = content
    if json_body is not None:
        request_kwargs["json"] = json_body
    if basic_auth is not None:
        request_kwargs["auth"] = basic_auth

    response = await client.request(options.method.upper(), options.url, **request_kwargs)

    if response.status_code < 200 or response.status_code >= 300:
        raise HttpStatusError(
            status_code=response.status_code,
            body=response.text,
            url=options.url,
        )

    if not response.content:
        return None
    return response.json()
