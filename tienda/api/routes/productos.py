import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

from fastapi import APIRouter, Body, Depends, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from tienda.api.deps import alert_cursor, get_screens, require_session, respond
from tienda.infra.devices import PresetFilePicker
from tienda.utilities.constants import EXCEL_SUFFIXES

router = APIRouter(prefix="/api/productos", dependencies=[Depends(require_session)])
logger = logging.getLogger(__name__)


class ProductoForm(BaseModel):
    nombre: Optional[str] = None
    precio: Optional[Union[str, float]] = None
    cantidad: Optional[Union[str, int, float]] = None


def form_values(form, payload: ProductoForm) -> dict:
    """Only the fields this form knows about and the client actually sent."""
    return {k: v for k, v in payload.model_dump(exclude_none=True).items() if k in form.fields}


@router.get("")
async def listar(request: Request):
    screen = get_screens(request).productos
    since = alert_cursor(request)
    productos = await screen.cargar_datos()
    return respond(request, since, productos=productos, form=screen.form.snapshot(),
                   variant=screen.variant, importaciones=screen.importaciones())


@router.post("")
async def guardar(request: Request, payload: ProductoForm = Body(...)):
    screen = get_screens(request).productos
    since = alert_cursor(request)
    identifier = await screen.guardar(form_values(screen.form, payload))
    if identifier is None:
        return respond(request, since, status_code=400, form=screen.form.snapshot())
    return respond(request, since, id=identifier, productos=screen.productos)


@router.post("/cancel")
def cancelar(request: Request):
    screen = get_screens(request).productos
    screen.cancelar()
    return {'form': screen.form.snapshot()}


@router.post("/{producto_id}/edit")
async def editar(request: Request, producto_id: str):
    screen = get_screens(request).productos
    producto = screen.find(producto_id)
    if producto is None:
        await screen.cargar_datos()
        producto = screen.find(producto_id)
    if producto is None:
        raise HTTPException(status_code=404, detail="Producto no encontrado")
    screen.editar(producto)
    return {'form': screen.form.snapshot()}


@router.delete("/{producto_id}")
async def eliminar(request: Request, producto_id: str):
    screen = get_screens(request).productos
    since = alert_cursor(request)
    ok = await screen.eliminar(producto_id)
    return respond(request, since, status_code=200 if ok else 502, productos=screen.productos)


# === Bulk ===
@router.post("/import/{preset}")
async def importar(request: Request, preset: str, archivo: Optional[UploadFile] = File(None)):
    """The uploaded file plays the part of the file picker; no file means the user cancelled."""
    screens = get_screens(request)
    screen = screens.productos
    since = alert_cursor(request)

    if archivo is None or not archivo.filename:
        await screen.importar(preset, PresetFilePicker(None))
        return respond(request, since, status_code=200 if preset in screen.import_presets else 400,
                       result=None)

    suffix = Path(archivo.filename).suffix.lower()
    if suffix not in EXCEL_SUFFIXES:
        logger.warning(f"Rejected import upload {archivo.filename}")
        screens.context.notifications.error("Error", "Seleccione un archivo de Excel (.xlsx o .xls).")
        return respond(request, since, status_code=400, result=None)

    cache_dir = screens.context.files.cache_dir
    cache_dir.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=cache_dir, prefix="import_", suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as tmp:
            shutil.copyfileobj(archivo.file, tmp)
        result = await screen.importar(preset, PresetFilePicker(Path(tmp_path)))
    finally:
        Path(tmp_path).unlink(missing_ok=True)

    if result is None:
        return respond(request, since, status_code=400, result=None)
    return respond(request, since, result=result.to_dict())


@router.post("/export")
async def exportar(request: Request):
    screens = get_screens(request)
    since = alert_cursor(request)
    result = await screens.productos.exportar()
    if result is None:
        return respond(request, since, status_code=400, export=None)
    return respond(request, since, export=result.to_dict(), text=getattr(screens.context.clipboard, "text", None))
