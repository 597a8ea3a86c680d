"""Contratos del registro de imágenes.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- El orquestador depende de esta abstracción y no del cliente HTTP concreto,
  así los tests pueden pasar un registro en memoria.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import BuildCloud


@runtime_checkable
class ImageRegistry(Protocol):
    """Contrato mínimo para consultar las imágenes de un build cloud.

    Reglas de diseño:
    - `get_build_cloud` es asíncrono porque típicamente hará I/O (HTTP).
    - Los errores del proveedor se propagan; quien llama decide cómo tratarlos.
    """

    async def get_build_cloud(self, build_cloud_id: str) -> BuildCloud:
        """Devuelve la configuración del build cloud con su lista de imágenes."""

        ...
