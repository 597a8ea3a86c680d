"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.appveyor import AppVeyorClient
from adapters.http_client import build_async_client
from core.config import TOKEN_ENV_VAR, AppSettings, load_settings, write_user_env_vars
from core.errors import PrepareError
from core.versions import read_manifest_version

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_build_cloud(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as http:
            cloud = await AppVeyorClient(settings, http).get_build_cloud(settings.build_cloud_id)
        return True, f"{len(cloud.images)} image(s) in build cloud {settings.build_cloud_id}"
    except (PrepareError, httpx.HTTPError, ValueError) as exc:
        return False, str(exc)


def _check_placeholder(path: Path, placeholder: str) -> tuple[str, str]:
    """Placeholder present -> OK; file missing or without placeholder -> WARN."""

    if not path.is_file():
        return "WARN", f"{path} does not exist"
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        return "FAIL", str(exc)
    if placeholder not in text:
        return "WARN", f"{placeholder!r} not found in {path}"
    return "OK", str(path)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = load_settings()

    table = Table(title="appveyor-prep Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    has_token = bool((settings.appveyor_cloud_token or "").strip())
    if has_token:
        table.add_row("AppVeyor token", "OK", f"{TOKEN_ENV_VAR} is set")
    else:
        table.add_row("AppVeyor token", "FAIL", f"{TOKEN_ENV_VAR} missing -> run `doctor setup-token`")
    table.add_row("API base_url", "OK", settings.api_base_url)

    try:
        version = read_manifest_version(settings.deps_path, key=settings.version_key)
        table.add_row("Manifest", "OK", f"{settings.version_key} = {version}")
    except PrepareError as exc:
        table.add_row("Manifest", "FAIL", str(exc))

    status, detail = _check_placeholder(settings.ci_config_path, settings.image_placeholder)
    table.add_row("CI config", status, detail)
    status, detail = _check_placeholder(settings.bake_template_path, settings.image_placeholder)
    table.add_row("Bake template", status, detail)

    # Connectivity (best-effort)
    if has_token:
        ok_api, detail_api = asyncio.run(_check_build_cloud(settings))
        table.add_row("AppVeyor API", "OK" if ok_api else "FAIL", detail_api)
    else:
        table.add_row("AppVeyor API", "SKIPPED", "No token")

    _console.print(table)


@app.command(name="setup-token")
def setup_token() -> None:
    """Store the AppVeyor token in the user config .env.

    Local runs only: in CI the token comes from the environment.
    """

    token = typer.prompt("AppVeyor API token", hide_input=True, confirmation_prompt=False).strip()
    if not token:
        raise typer.BadParameter("token is required")

    build_cloud_id = typer.prompt("Default build cloud id", default="", show_default=False).strip()

    values = {TOKEN_ENV_VAR: token}
    if build_cloud_id:
        values["APPVEYOR_PREP_BUILD_CLOUD_ID"] = build_cloud_id
    env_path = write_user_env_vars(values)

    _console.print(f"[green]Saved AppVeyor config to:[/green] {env_path}")
