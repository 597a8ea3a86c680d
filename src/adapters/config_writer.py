"""Reescritura de ficheros de configuración de CI.

Por qué en adapters:
- Es I/O puro (disco); el orquestador solo decide *qué* escribir.

Reglas:
- Sustitución literal de la primera aparición del placeholder; el resto del
  fichero queda idéntico byte a byte.
- Escritura atómica: fichero temporal en el mismo directorio + `os.replace`,
  así una interrupción nunca deja la config a medio escribir.
"""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path

from core.errors import ConfigRewriteError


def substitute_placeholder(text: str, placeholder: str, value: str) -> str | None:
    """Devuelve `text` con la primera aparición sustituida, o None si no aparece."""

    if placeholder not in text:
        return None
    return text.replace(placeholder, value, 1)


def _read_text(path: Path) -> str:
    try:
        with path.open("r", encoding="utf-8", newline="") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigRewriteError(f"Could not read {path}: {exc}") from exc


def atomic_write_text(path: Path, text: str) -> Path:
    """Escribe vía temporal + `os.replace`, conservando el modo del fichero destino."""

    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        # mkstemp crea el temporal con 0600.
        if path.is_file():
            os.chmod(tmp_name, stat.S_IMODE(path.stat().st_mode))
        os.replace(tmp_name, path)
    except (OSError, UnicodeEncodeError) as exc:
        raise ConfigRewriteError(f"Could not write {path}: {exc}") from exc
    finally:
        # Tras un `os.replace` correcto el temporal ya no existe.
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
    return path


def rewrite_ci_config(path: Path, *, placeholder: str, image: str) -> bool:
    """Sustituye el placeholder de la config de CI por la imagen existente.

    Devuelve False (sin tocar el fichero) si el placeholder no aparece.
    """

    updated = substitute_placeholder(_read_text(path), placeholder, image)
    if updated is None:
        return False
    atomic_write_text(path, updated)
    return True


def write_bake_config(
    template_path: Path,
    ci_config_path: Path,
    *,
    placeholder: str,
    image: str,
) -> bool:
    """Genera la config de CI a partir de la plantilla de horneado.

    El siguiente run del pipeline hornea `image`; aquí no se espera a que
    termine.
    """

    updated = substitute_placeholder(_read_text(template_path), placeholder, image)
    if updated is None:
        return False
    atomic_write_text(ci_config_path, updated)
    return True
