"""Errores del dominio.

Por qué una jerarquía propia:
- La CLI decide el código de salida capturando solo `PrepareError`.
- Cada capa lanza el error que describe *qué* falló, no *dónde*.
"""

from __future__ import annotations


class PrepareError(Exception):
    """Base de todos los errores esperados de la herramienta."""


class ConfigError(PrepareError):
    """Falta configuración obligatoria (p.ej. el token de AppVeyor)."""


class ManifestParseError(PrepareError):
    """El manifest no existe, no se puede leer o no contiene la versión."""


class HttpStatusError(PrepareError):
    """Respuesta HTTP fuera del rango [200, 300)."""

    def __init__(self, *, status_code: int, body: str, url: str) -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"Unexpected status code {status_code} from {url}")


class ConfigRewriteError(PrepareError):
    """No se pudo leer o escribir un fichero de configuración de CI."""


class LookupFailedError(PrepareError):
    """La consulta de imágenes falló y el modo estricto está activo."""
