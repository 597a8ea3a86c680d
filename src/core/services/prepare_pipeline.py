"""AppVeyor image preparation flow.

This module holds the whole decision of a `prepare` run: read the pinned
dependency version, look for a matching worker image on the build cloud and
rewrite the CI configuration accordingly. Side-effects that belong to the UI
(printing, colours) are delegated to `PipelineHooks`, so the same flow can be
driven from the CLI, from tests or from another entry-point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import httpx

from adapters.appveyor import AppVeyorClient, build_environment, find_image
from adapters.config_writer import rewrite_ci_config, write_bake_config
from core.config import AppSettings
from core.domain.models import (
    BuildRequest,
    ImageLookupResult,
    LookupStatus,
    PrepareAction,
    PrepareOutcome,
)
from core.errors import ConfigRewriteError, HttpStatusError, LookupFailedError
from core.interfaces.registry import ImageRegistry
from core.versions import read_manifest_version


@dataclass
class PrepareRequest:
    """Caller-supplied overrides. Anything left as None falls back to settings."""

    target_branch: str | None = None
    build_cloud_id: str | None = None
    image_version: str | None = None
    commit: str | None = None
    gh_release: bool = False
    strict: bool | None = None


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress, warnings)."""

    info: Callable[[str], None] | None = None
    warning: Callable[[str], None] | None = None

    def emit_info(self, message: str) -> None:
        if self.info:
            self.info(message)

    def emit_warning(self, message: str) -> None:
        if self.warning:
            self.warning(message)


def resolve_image_name(settings: AppSettings, request: PrepareRequest, dependency_version: str) -> str:
    if request.image_version:
        return request.image_version
    return f"{settings.image_prefix}{dependency_version}"


def resolve_build_cloud_id(settings: AppSettings, request: PrepareRequest) -> str:
    return request.build_cloud_id or settings.build_cloud_id


async def lookup_image(
    registry: ImageRegistry,
    *,
    build_cloud_id: str,
    image_name: str,
    hooks: PipelineHooks | None = None,
) -> ImageLookupResult:
    """Search the build cloud for an image named exactly `image_name`.

    Never raises for provider trouble: HTTP errors, transport errors and
    undecodable payloads all come back as `QUERY_FAILED`.
    """

    hooks = hooks or PipelineHooks()
    try:
        cloud = await registry.get_build_cloud(build_cloud_id)
    except HttpStatusError as exc:
        hooks.emit_warning(f"AppVeyor returned status {exc.status_code}: {exc.body}")
        return ImageLookupResult.query_failed(str(exc))
    except httpx.HTTPError as exc:
        hooks.emit_warning(f"Could not call AppVeyor: {exc!r}")
        return ImageLookupResult.query_failed(repr(exc))
    except ValueError as exc:
        # JSON inválido o forma inesperada (pydantic.ValidationError es un ValueError).
        hooks.emit_warning(f"Unexpected build cloud payload: {exc}")
        return ImageLookupResult.query_failed(str(exc))

    match = find_image(cloud.images, image_name)
    if match is None:
        return ImageLookupResult.not_found()
    return ImageLookupResult.found(match.name)


async def prepare(
    *,
    settings: AppSettings,
    request: PrepareRequest,
    registry: ImageRegistry,
    hooks: PipelineHooks | None = None,
) -> PrepareOutcome:
    """Extract version, look up the image, then rewrite or bake.

    A failed lookup is treated as a missing image (with a warning) unless
    strict mode is on, in which case `LookupFailedError` is raised.
    """

    hooks = hooks or PipelineHooks()

    dependency_version = read_manifest_version(settings.deps_path, key=settings.version_key)
    build_cloud_id = resolve_build_cloud_id(settings, request)
    image_name = resolve_image_name(settings, request, dependency_version)
    strict = settings.strict_lookup if request.strict is None else request.strict

    lookup = await lookup_image(registry, build_cloud_id=build_cloud_id, image_name=image_name, hooks=hooks)

    if lookup.status is LookupStatus.QUERY_FAILED:
        if strict:
            raise LookupFailedError(f"Could not query build cloud {build_cloud_id}: {lookup.error}")
        hooks.emit_warning(
            f"Image lookup failed for {image_name}; continuing as if no image exists."
        )

    if lookup.is_found:
        image = lookup.image or image_name
        hooks.emit_info(
            f"Image exists for {image}. Continuing AppVeyor jobs using {build_cloud_id}"
        )
        written = _best_effort(
            hooks,
            lambda: rewrite_ci_config(
                settings.ci_config_path,
                placeholder=settings.image_placeholder,
                image=image,
            ),
            missing=f"Placeholder {settings.image_placeholder!r} not found in {settings.ci_config_path}",
        )
        return PrepareOutcome(
            action=PrepareAction.USE_IMAGE,
            dependency_version=dependency_version,
            image=image,
            build_cloud_id=build_cloud_id,
            lookup=lookup,
            written_path=settings.ci_config_path if written else None,
        )

    hooks.emit_info(
        f"No AppVeyor image found for {image_name} in {build_cloud_id}. Creating new image..."
    )
    written = _best_effort(
        hooks,
        lambda: write_bake_config(
            settings.bake_template_path,
            settings.ci_config_path,
            placeholder=settings.image_placeholder,
            image=image_name,
        ),
        missing=f"Placeholder {settings.image_placeholder!r} not found in {settings.bake_template_path}",
    )
    return PrepareOutcome(
        action=PrepareAction.BAKE_IMAGE,
        dependency_version=dependency_version,
        image=image_name,
        build_cloud_id=build_cloud_id,
        lookup=lookup,
        written_path=settings.ci_config_path if written else None,
    )


def _best_effort(hooks: PipelineHooks, write: Callable[[], bool], *, missing: str) -> bool:
    try:
        written = write()
    except ConfigRewriteError as exc:
        hooks.emit_warning(str(exc))
        return False
    if not written:
        hooks.emit_warning(missing)
    return written


async def trigger_build(
    *,
    settings: AppSettings,
    request: PrepareRequest,
    client: AppVeyorClient,
    project_slug: str | None = None,
    release: bool = True,
    hooks: PipelineHooks | None = None,
) -> dict[str, Any]:
    """Ask AppVeyor to start a build directly (`POST /builds`).

    Not part of `prepare`: kept as an explicit command for pipelines that
    still trigger jobs through the API instead of the config rewrite.
    """

    hooks = hooks or PipelineHooks()
    build_cloud_id = resolve_build_cloud_id(settings, request)
    if request.image_version:
        image_name = request.image_version
    else:
        dependency_version = read_manifest_version(settings.deps_path, key=settings.version_key)
        image_name = resolve_image_name(settings, request, dependency_version)

    build = BuildRequest(
        account_name=settings.account_name,
        project_slug=project_slug,
        branch=request.target_branch,
        commit_id=request.commit or None,
        environment_variables=build_environment(
            build_cloud_id=build_cloud_id,
            image=image_name,
            release=release,
            gh_release=request.gh_release,
        ),
    )
    hooks.emit_info(
        f"Triggering AppVeyor build on {build_cloud_id} using image {image_name}"
        + (f" for branch {request.target_branch}" if request.target_branch else "")
    )
    return await client.start_build(build)
