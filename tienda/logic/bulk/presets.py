"""Import/export configurations offered by the product screen.

Two variants of the product screen exist: one imports spreadsheets into the
'mascotas' and 'bicicletas' collections, the other exports collections for
sharing. Each is expressed here as data for the orchestrators.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from tienda.utilities.constants import BICICLETAS, IMPORT_TIMESTAMP_FIELD, MASCOTAS, PRODUCTOS
from tienda.utilities.validators import BicicletaRow, MascotaRow

__all__ = ["ImportConfig", "ExportConfig", "IMPORT_PRESETS", "export_preset", "map_mascota", "map_bicicleta"]

RowMapper = Callable[[Mapping[str, Any]], Dict[str, Any]]


@dataclass(frozen=True)
class ImportConfig:
    collection: str
    columns: Tuple[str, ...]
    map_row: RowMapper
    label: str = ""
    timestamp_field: Optional[str] = IMPORT_TIMESTAMP_FIELD


@dataclass(frozen=True)
class ExportConfig:
    collections: Tuple[str, ...]
    filename_prefix: str = "datos_export"


def map_mascota(row: Mapping[str, Any]) -> Dict[str, Any]:
    """nombre -> "Sin nombre", edad -> 0, raza -> "Sin raza" when missing."""
    return MascotaRow.model_validate(row).model_dump()


def map_bicicleta(row: Mapping[str, Any]) -> Dict[str, Any]:
    """marca/modelo/color -> "Sin ..." and precio -> 0 when missing."""
    return BicicletaRow.model_validate(row).model_dump()


IMPORT_PRESETS: Dict[str, ImportConfig] = {
    MASCOTAS: ImportConfig(MASCOTAS, ("nombre", "edad", "raza"), map_mascota, "Importar Mascotas"),
    BICICLETAS: ImportConfig(BICICLETAS, ("marca", "modelo", "precio", "color"), map_bicicleta,
                             "Importar Bicicletas"),
}


def export_preset(collections: Sequence[str] = (PRODUCTOS,)) -> ExportConfig:
    return ExportConfig(collections=tuple(collections) or (PRODUCTOS,))
