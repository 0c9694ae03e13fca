"""Producto domain entity: name, unit price and (real-time store only) stock quantity."""
from typing import Any, Dict, Optional

from tienda.utilities.constants import ID_FIELD


class Producto:
    def __init__(self, nombre: str = "", precio: float = 0.0, cantidad: Optional[int] = None,
                 id: Optional[str] = None):
        self.id = id
        self.nombre = nombre
        self.precio = precio
        self.cantidad = cantidad

    def __str__(self) -> str:
        parts = [f"{self.nombre} - {self.precio:.2f}"]
        if self.cantidad is not None:
            parts.append(f"Cantidad: {self.cantidad}")
        return " - ".join(parts)

    __repr__ = __str__

    @staticmethod
    def from_dict(data) -> "Producto":
        '''Creates a Producto from a store record. Ignores unknown keys.'''
        d = dict(data) if isinstance(data, dict) else {}
        try:
            precio = float(d.get("precio") or 0)
        except (TypeError, ValueError):
            precio = 0.0
        cantidad = d.get("cantidad")
        if cantidad is not None:
            try:
                cantidad = int(cantidad)
            except (TypeError, ValueError):
                cantidad = 0
        return Producto(
            nombre=str(d.get("nombre") or ""),
            precio=precio,
            cantidad=cantidad,
            id=d.get(ID_FIELD),
        )

    def to_dict(self) -> Dict[str, Any]:
        '''Record body written to the store (the identifier is never part of it).'''
        data: Dict[str, Any] = {"nombre": self.nombre, "precio": self.precio}
        if self.cantidad is not None:
            data["cantidad"] = self.cantidad
        return data

    def to_form(self) -> Dict[str, str]:
        '''Form field values used when editing this product.'''
        fields = {"nombre": self.nombre, "precio": _number_text(self.precio)}
        if self.cantidad is not None:
            fields["cantidad"] = str(self.cantidad)
        return fields


def _number_text(value: float) -> str:
    # 12.0 -> "12", 12.5 -> "12.5"
    return str(int(value)) if float(value).is_integer() else str(value)
