"""
Input validation for forms and imported rows.

The ``is_*`` helpers are pure predicates used by the form controllers before any
network call; they never raise. The pydantic schemas turn already validated
form values (or loosely typed spreadsheet rows) into typed records.
"""
import math
import re
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
_INT_PREFIX = re.compile(r'^\s*([+-]?\d+)')
_FLOAT_PREFIX = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')
_INT_TEXT = re.compile(r'^\s*[+-]?\d+\s*$')


def is_valid_email(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return bool(EMAIL_PATTERN.match(value))


def is_filled(*values: Any) -> bool:
    """True when every value is present and not blank."""
    for v in values:
        if v is None:
            return False
        if isinstance(v, str) and not v.strip():
            return False
    return True


def parse_number(value: Any) -> Optional[float]:
    """Parse a form value into a finite float, or None. Never coerces junk to 0."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def is_valid_numeric(*values: Any, allow_zero: bool = False) -> bool:
    """True iff every value parses to a finite number.

    Values must be > 0, or >= 0 when ``allow_zero`` is set (quantities, prices).
    """
    if not values:
        return False
    for v in values:
        number = parse_number(v)
        if number is None:
            return False
        if number < 0 or (number == 0 and not allow_zero):
            return False
    return True


def is_valid_integer(*values: Any, allow_zero: bool = True) -> bool:
    """Like is_valid_numeric but only whole numbers are accepted."""
    for v in values:
        if isinstance(v, float) and not v.is_integer():
            return False
        if isinstance(v, str) and not _INT_TEXT.match(v):
            return False
    return is_valid_numeric(*values, allow_zero=allow_zero)


# --- row coercion (spreadsheet cells are whatever the extractor produced) ----
def coerce_text(value: Any, fallback: str) -> str:
    """Stringify and trim a cell; blank or missing cells become ``fallback``."""
    if value is None:
        return fallback
    if isinstance(value, bool):
        text = 'true' if value else 'false'
    elif isinstance(value, float) and value.is_integer():
        text = str(int(value))
    else:
        text = str(value)
    return text.strip() or fallback


def coerce_int(value: Any, fallback: int = 0) -> int:
    """Leading-integer parse ("12 años" -> 12, 3.9 -> 3); anything else is ``fallback``."""
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, float):
        if not math.isfinite(value):
            return fallback
        return int(value) or fallback
    match = _INT_PREFIX.match(str(value))
    if not match:
        return fallback
    return int(match.group(1)) or fallback


def coerce_float(value: Any, fallback: float = 0.0) -> float:
    """Leading-float parse ("12.5 USD" -> 12.5); anything else is ``fallback``."""
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _FLOAT_PREFIX.match(str(value))
        if not match:
            return fallback
        number = float(match.group(1))
    if not math.isfinite(number):
        return fallback
    return number or fallback


# --- form schemas --------------------------------------------------------------
class ProductoInput(BaseModel):
    """Schema for the document-store product form."""
    nombre: str = Field(..., min_length=1, max_length=200)
    precio: float = Field(..., ge=0)

    @field_validator('nombre')
    @classmethod
    def strip_whitespace(cls, v):
        """Remove leading/trailing whitespace."""
        return v.strip()


class ProductoRealtimeInput(ProductoInput):
    """Schema for the real-time product form (adds stock quantity)."""
    cantidad: int = Field(..., ge=0)


class ImcInput(BaseModel):
    """Schema for the IMC calculator form. Height is in centimetres."""
    nombre: str = Field(..., min_length=1, max_length=200)
    peso: float = Field(..., gt=0)
    altura: float = Field(..., gt=0)

    @field_validator('nombre')
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip()


class LoginInput(BaseModel):
    email: str = ""
    password: str = ""

    @field_validator('email')
    @classmethod
    def strip_email(cls, v):
        return v.strip()


# --- import row schemas --------------------------------------------------------
class MascotaRow(BaseModel):
    """One spreadsheet row of the 'mascotas' import. Missing cells get fallbacks."""
    nombre: str = "Sin nombre"
    edad: int = 0
    raza: str = "Sin raza"

    @field_validator('nombre', mode='before')
    @classmethod
    def _nombre(cls, v):
        return coerce_text(v, "Sin nombre")

    @field_validator('edad', mode='before')
    @classmethod
    def _edad(cls, v):
        return coerce_int(v, 0)

    @field_validator('raza', mode='before')
    @classmethod
    def _raza(cls, v):
        return coerce_text(v, "Sin raza")


class BicicletaRow(BaseModel):
    """One spreadsheet row of the 'bicicletas' import."""
    marca: str = "Sin marca"
    modelo: str = "Sin modelo"
    precio: float = 0.0
    color: str = "Sin color"

    @field_validator('marca', mode='before')
    @classmethod
    def _marca(cls, v):
        return coerce_text(v, "Sin marca")

    @field_validator('modelo', mode='before')
    @classmethod
    def _modelo(cls, v):
        return coerce_text(v, "Sin modelo")

    @field_validator('precio', mode='before')
    @classmethod
    def _precio(cls, v):
        return coerce_float(v, 0.0)

    @field_validator('color', mode='before')
    @classmethod
    def _color(cls, v):
        return coerce_text(v, "Sin color")
