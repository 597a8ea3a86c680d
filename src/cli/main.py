"""Command line entry-point for appveyor-prep."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import typer
from rich.console import Console
from rich.markup import escape

from adapters.appveyor import AppVeyorClient
from adapters.http_client import build_async_client
from cli import doctor
from cli.ui_components import build_outcome_table, build_trigger_panel
from core.config import AppSettings, load_settings, require_token
from core.domain.models import PrepareOutcome
from core.errors import PrepareError
from core.services.prepare_pipeline import PipelineHooks, PrepareRequest, prepare, trigger_build

app = typer.Typer(
    no_args_is_help=True,
    help="Make sure an AppVeyor worker image exists for the pinned Chromium version.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


def _hooks() -> PipelineHooks:
    return PipelineHooks(
        info=lambda message: _console.print(escape(message)),
        warning=lambda message: _err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}"),
    )


def _fail(exc: Exception) -> typer.Exit:
    _err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
    return typer.Exit(code=1)


async def _run_prepare(settings: AppSettings, request: PrepareRequest) -> PrepareOutcome:
    async with build_async_client(settings) as http:
        registry = AppVeyorClient(settings, http)
        return await prepare(settings=settings, request=request, registry=registry, hooks=_hooks())


async def _run_trigger(
    settings: AppSettings,
    request: PrepareRequest,
    *,
    project_slug: str | None,
    release: bool,
) -> dict[str, Any]:
    async with build_async_client(settings) as http:
        client = AppVeyorClient(settings, http)
        return await trigger_build(
            settings=settings,
            request=request,
            client=client,
            project_slug=project_slug,
            release=release,
            hooks=_hooks(),
        )


@app.command(name="prepare")
def prepare_command(
    target_branch: str | None = typer.Argument(None, help="Branch the CI run is building."),
    build_cloud_id: str | None = typer.Option(
        None, "--build-cloud-id", "--buildCloudId", help="Build cloud to search (overrides config)."
    ),
    image_version: str | None = typer.Option(
        None, "--image-version", "--imageVersion", help="Exact image name to look for (overrides DEPS)."
    ),
    commit: str | None = typer.Option(None, "--commit", help="Commit being built."),
    gh_release: bool = typer.Option(False, "--gh-release", "--ghRelease", help="Release goes to GitHub only."),
    strict: bool | None = typer.Option(
        None, "--strict/--no-strict", help="Fail when the image lookup itself fails."
    ),
) -> None:
    """Look up the image and rewrite the CI config to use it, or to bake it."""

    request = PrepareRequest(
        target_branch=target_branch,
        build_cloud_id=build_cloud_id,
        image_version=image_version,
        commit=commit,
        gh_release=gh_release,
        strict=strict,
    )
    try:
        settings = load_settings()
        require_token(settings)
        outcome = asyncio.run(_run_prepare(settings, request))
    except PrepareError as exc:
        raise _fail(exc) from exc

    _console.print(build_outcome_table(outcome))


@app.command(name="trigger-build")
def trigger_build_command(
    target_branch: str = typer.Argument(..., help="Branch to build."),
    project_slug: str | None = typer.Option(None, "--project-slug", help="AppVeyor project slug."),
    build_cloud_id: str | None = typer.Option(None, "--build-cloud-id", "--buildCloudId"),
    image_version: str | None = typer.Option(None, "--image-version", "--imageVersion"),
    commit: str | None = typer.Option(None, "--commit"),
    gh_release: bool = typer.Option(False, "--gh-release", "--ghRelease"),
    release: bool = typer.Option(True, "--release/--bake", help="Release build or image bake."),
) -> None:
    """Start an AppVeyor build directly through `POST /builds`."""

    request = PrepareRequest(
        target_branch=target_branch,
        build_cloud_id=build_cloud_id,
        image_version=image_version,
        commit=commit,
        gh_release=gh_release,
    )
    try:
        settings = load_settings()
        require_token(settings)
        response = asyncio.run(
            _run_trigger(settings, request, project_slug=project_slug, release=release)
        )
    except (PrepareError, httpx.HTTPError) as exc:
        raise _fail(exc) from exc

    _console.print(build_trigger_panel(response))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
