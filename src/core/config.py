"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- La CLI construye `AppSettings` una sola vez y la pasa explícitamente a
  cada componente: nada del Core lee `os.environ` por su cuenta.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigError

TOKEN_ENV_VAR = "APPVEYOR_CLOUD_TOKEN"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "appveyor-prep"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "appveyor-prep"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "appveyor-prep"
    return Path.home() / ".config" / "appveyor-prep"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# appveyor-prep user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="APPVEYOR_PREP_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    appveyor_cloud_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices(TOKEN_ENV_VAR, "APPVEYOR_PREP_APPVEYOR_CLOUD_TOKEN"),
        description="Bearer token de la API de AppVeyor.",
    )
    api_base_url: str = Field(
        default="https://ci.appveyor.com/api",
        min_length=8,
        description="Base URL de la API REST de AppVeyor.",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="appveyor-prep/0.1",
        min_length=1,
        description="User-Agent para las peticiones a la API.",
    )
    account_name: str = Field(
        default="electron-bot",
        min_length=1,
        description="Cuenta de AppVeyor usada para disparar builds.",
    )

    build_cloud_id: str = Field(
        default="682",
        min_length=1,
        description="Build cloud por defecto donde buscar imágenes.",
    )
    image_prefix: str = Field(
        default="electron-",
        description="Prefijo del nombre de imagen (`<prefijo><versión>`).",
    )

    deps_path: Path = Field(
        default=Path("DEPS"),
        description="Manifest de dependencias con la versión fijada.",
    )
    version_key: str = Field(
        default="chromium_version",
        min_length=1,
        description="Clave del manifest cuyo valor es la versión.",
    )
    ci_config_path: Path = Field(
        default=Path("appveyor.yml"),
        description="Config de CI que se reescribe en sitio.",
    )
    bake_template_path: Path = Field(
        default=Path("appveyor-bake.yml"),
        description="Plantilla de CI que pide hornear una imagen nueva.",
    )
    image_placeholder: str = Field(
        default="__APPVEYOR_IMAGE__",
        min_length=1,
        description="Token literal que se sustituye por el nombre de imagen.",
    )

    strict_lookup: bool = Field(
        default=False,
        description="Si la consulta de imágenes falla, abortar en vez de hornear.",
    )


def is_ci_environment(environ: Mapping[str, str] | None = None) -> bool:
    environ = os.environ if environ is None else environ
    value = (environ.get("CI") or "").strip().lower()
    return value not in ("", "0", "false", "no")


def load_settings(*, ci: bool | None = None, **overrides: object) -> AppSettings:
    """Construye `AppSettings` una vez al arrancar.

    Reglas:
    - En CI no se leen ficheros `.env`: los secretos vienen del entorno.
    - Fuera de CI se leen `.env` (proyecto) y el `.env` global del usuario.
    """

    if ci is None:
        ci = is_ci_environment()
    if ci:
        return AppSettings(_env_file=None, **overrides)  # type: ignore[call-arg]
    return AppSettings(**overrides)  # type: ignore[arg-type]


def require_token(settings: AppSettings) -> str:
    """Devuelve el token o falla como lo haría una variable requerida ausente."""

    token = (settings.appveyor_cloud_token or "").strip()
    if not token:
        raise ConfigError(
            f"{TOKEN_ENV_VAR} is not set. Export it, add it to .env, "
            "or run `appveyor-prep doctor setup-token`."
        )
    return token
