from typing import Final

# Collections
PRODUCTOS: Final[str] = "productos"
IMC_REGISTROS: Final[str] = "imc_registros"
MASCOTAS: Final[str] = "mascotas"
BICICLETAS: Final[str] = "bicicletas"

ID_FIELD: Final[str] = "id"

# IMC bands, half-open [lower, upper); the last one has no upper bound.
IMC_BANDS: Final[tuple] = (
    ("Underweight", 0.0, 18.5, "#3498db"),
    ("Normal", 18.5, 25.0, "#27ae60"),
    ("Overweight", 25.0, 30.0, "#f39c12"),
    ("Obese", 30.0, None, "#e74c3c"),
)

# Dates written by older clients (toLocaleString "es-CR") and by the pantry-style exports
LEGACY_DATE_FORMATS: Final[tuple] = (
    "%d/%m/%Y, %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y, %H:%M",
    "%d/%m/%Y",
    "%d-%m-%Y",
)

# Excel import
EXCEL_MIME_TYPES: Final[tuple] = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
)
EXCEL_SUFFIXES: Final[tuple] = (".xlsx", ".xls")
EXTRACTION_PAYLOAD_FIELD: Final[str] = "archivoBase64"
EXTRACTION_ROWS_FIELD: Final[str] = "datos"
IMPORT_TIMESTAMP_FIELD: Final[str] = "fechaImportacion"

# Firebase Auth error code -> message shown to the user
AUTH_MESSAGES: Final[dict[str, str]] = {
    "auth/invalid-email": "El correo no tiene un formato válido.",
    "auth/user-not-found": "No existe una cuenta con este correo.",
    "auth/wrong-password": "Credenciales incorrectas.",
    "auth/invalid-credential": "Credenciales incorrectas.",
    "auth/too-many-requests": "Demasiados intentos. Intenta más tarde.",
    "auth/network-request-failed": "Error de conexión. Revisa tu internet.",
}
AUTH_DEFAULT_MESSAGE: Final[str] = "Error inesperado. Intenta de nuevo."

# Notification ring buffer
MAX_NOTIFICATIONS: Final[int] = 300
