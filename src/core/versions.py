"""Extracción de la versión fijada en el manifest de dependencias.

El manifest (`DEPS`) es propiedad del repo que nos invoca; aquí solo se lee.
Formato esperado (clave entre comillas, salto de línea, valor indentado):

    'chromium_version':
      '90.0.4430.212',
"""

from __future__ import annotations

import re
from pathlib import Path

from core.errors import ManifestParseError


def _version_pattern(key: str) -> re.Pattern[str]:
    return re.compile(rf"{re.escape(key)}':\n +'(.+?)',", re.MULTILINE)


def extract_dependency_version(text: str, *, key: str = "chromium_version") -> str:
    """Devuelve el primer valor capturado para `key`, sin validar su formato."""

    match = _version_pattern(key).search(text)
    if match is None:
        raise ManifestParseError(f"Could not find a pinned '{key}' in the dependency manifest")
    return match.group(1)


def read_manifest_version(path: Path, *, key: str = "chromium_version") -> str:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestParseError(f"Could not read dependency manifest {path}: {exc}") from exc
    return extract_dependency_version(text, key=key)
