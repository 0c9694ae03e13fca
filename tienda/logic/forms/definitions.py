"""The concrete forms of the app, as FormDefinitions over FormSession."""
from __future__ import annotations
from typing import Any, Dict

from tienda.domain.Producto import Producto
from tienda.domain.RegistroImc import RegistroImc
from tienda.logic.forms.session import FormDefinition
from tienda.utilities.constants import IMC_REGISTROS, PRODUCTOS
from tienda.utilities.validators import (
    ImcInput, ProductoInput, ProductoRealtimeInput,
    is_filled, is_valid_integer, is_valid_numeric, parse_number,
)

__all__ = ["PRODUCTO_FORM", "PRODUCTO_REALTIME_FORM", "IMC_FORM"]


def _producto_fields(record) -> Dict[str, str]:
    return Producto.from_dict(record).to_form()


# --- productos (document store) ---------------------------------------------------
def _valid_producto(f: Dict[str, Any]) -> bool:
    return is_filled(f["nombre"], f["precio"]) and is_valid_numeric(f["precio"], allow_zero=True)


def _build_producto(f: Dict[str, Any]) -> Dict[str, Any]:
    data = ProductoInput(nombre=f["nombre"], precio=parse_number(f["precio"]))
    return Producto(nombre=data.nombre, precio=data.precio).to_dict()


PRODUCTO_FORM = FormDefinition(
    collection=PRODUCTOS,
    fields=("nombre", "precio"),
    validate=_valid_producto,
    build_record=_build_producto,
    from_record=_producto_fields,
    invalid_message="Complete todos los campos.",
    created_message="Producto guardado",
    updated_message="Producto actualizado",
)


# --- productos (real-time store, with stock) ---------------------------------------
def _valid_producto_realtime(f: Dict[str, Any]) -> bool:
    return (is_filled(f["nombre"], f["precio"], f["cantidad"])
            and is_valid_numeric(f["precio"], allow_zero=True)
            and is_valid_integer(f["cantidad"], allow_zero=True))


def _build_producto_realtime(f: Dict[str, Any]) -> Dict[str, Any]:
    data = ProductoRealtimeInput(
        nombre=f["nombre"], precio=parse_number(f["precio"]), cantidad=int(parse_number(f["cantidad"]))
    )
    return Producto(nombre=data.nombre, precio=data.precio, cantidad=data.cantidad).to_dict()


PRODUCTO_REALTIME_FORM = FormDefinition(
    collection=PRODUCTOS,
    fields=("nombre", "precio", "cantidad"),
    validate=_valid_producto_realtime,
    build_record=_build_producto_realtime,
    from_record=_producto_fields,
    invalid_message="Todos los campos son obligatorios",
    created_message="Producto guardado",
    updated_message="Producto actualizado",
)


# --- IMC calculator (real-time store, create only) -------------------------------------
def _valid_imc(f: Dict[str, Any]) -> bool:
    return is_filled(f["nombre"]) and is_valid_numeric(f["peso"], f["altura"])


def _build_imc(f: Dict[str, Any]) -> Dict[str, Any]:
    data = ImcInput(nombre=f["nombre"], peso=parse_number(f["peso"]), altura=parse_number(f["altura"]))
    return RegistroImc.calcular(data.nombre, data.peso, data.altura).to_dict()


IMC_FORM = FormDefinition(
    collection=IMC_REGISTROS,
    fields=("nombre", "peso", "altura"),
    validate=_valid_imc,
    build_record=_build_imc,
    invalid_message="Complete todos los campos correctamente",
    created_message=lambda r: f"IMC: {r['imc']:.2f} → {r['clasificacion']}",
)
