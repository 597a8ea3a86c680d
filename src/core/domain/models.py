"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Decodifica las respuestas de AppVeyor en un único punto: si el proveedor
  cambia la forma del JSON, el fallo aparece aquí y no en el orquestador.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class ImageRecord(BaseModel):
    """Imagen de worker publicada en un build cloud.

    Solo se consume `name`; el resto de campos del proveedor se conserva
    tal cual para trazabilidad.
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(
        ...,
        description="Nombre/versión de la imagen (p.ej. 'electron-90.0.4430.212').",
    )


class CloudSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    images: list[ImageRecord] = Field(
        default_factory=list,
        description="Imágenes disponibles en el build cloud, en el orden del proveedor.",
    )


class BuildCloudSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    cloud_settings: CloudSettings = Field(
        default_factory=CloudSettings,
        alias="cloudSettings",
    )


class BuildCloud(BaseModel):
    """Respuesta de `GET /build-clouds/{buildCloudId}`."""

    model_config = ConfigDict(extra="ignore")

    settings: BuildCloudSettings = Field(default_factory=BuildCloudSettings)

    @property
    def images(self) -> list[ImageRecord]:
        return self.settings.cloud_settings.images


class RequestAuth(BaseModel):
    """Credenciales de una petición: bearer token o usuario/contraseña.

    No se fuerza exclusión mutua: si vienen ambos, se envían ambos.
    """

    bearer: str | None = None
    username: str | None = None
    password: str | None = None


class RequestOptions(BaseModel):
    """Descripción de una única llamada HTTP saliente."""

    url: str = Field(..., min_length=1)
    method: str = Field(default="GET", min_length=1)
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = Field(
        default=None,
        description="str/bytes se envía tal cual; dict/list se serializa a JSON.",
    )
    auth: RequestAuth | None = None


class BuildRequest(BaseModel):
    """Cuerpo de `POST /builds` (camino heredado para disparar builds)."""

    model_config = ConfigDict(populate_by_name=True)

    account_name: str = Field(..., min_length=1, alias="accountName")
    project_slug: str | None = Field(default=None, alias="projectSlug")
    branch: str | None = None
    commit_id: str | None = Field(default=None, alias="commitId")
    environment_variables: dict[str, str] = Field(
        default_factory=dict,
        alias="environmentVariables",
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    QUERY_FAILED = "query_failed"


@dataclass(frozen=True)
class ImageLookupResult:
    """Resultado etiquetado de la búsqueda de imagen.

    Distingue un fallo real del proveedor (`QUERY_FAILED`) de una imagen que
    simplemente no existe (`NOT_FOUND`).
    """

    status: LookupStatus
    image: str | None = None
    error: str | None = None

    @classmethod
    def found(cls, image: str) -> "ImageLookupResult":
        return cls(status=LookupStatus.FOUND, image=image)

    @classmethod
    def not_found(cls) -> "ImageLookupResult":
        return cls(status=LookupStatus.NOT_FOUND)

    @classmethod
    def query_failed(cls, error: str) -> "ImageLookupResult":
        return cls(status=LookupStatus.QUERY_FAILED, error=error)

    @property
    def is_found(self) -> bool:
        return self.status is LookupStatus.FOUND


class PrepareAction(str, Enum):
    USE_IMAGE = "use_image"
    BAKE_IMAGE = "bake_image"


@dataclass(frozen=True)
class PrepareOutcome:
    """Lo que hizo el orquestador en una invocación."""

    action: PrepareAction
    dependency_version: str
    image: str
    build_cloud_id: str
    lookup: ImageLookupResult
    written_path: Path | None = None
