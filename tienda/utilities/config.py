"""Configuration management for the tienda client.

Everything comes from the environment; a ``.env`` file next to the package is
loaded first when present. Nothing else is persisted locally.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Final, Optional

from dotenv import load_dotenv

BASE_DIR: Final[Path] = Path(__file__).parent.parent
ENV_FILE: Final[Path] = BASE_DIR / '.env'

DEFAULT_EXTRACTION_ENDPOINT: Final[str] = "https://thzg0v3rj9.execute-api.us-east-1.amazonaws.com/extraerexcel"
DEFAULT_CACHE_DIR: Final[Path] = Path(os.path.expanduser("~")) / '.cache' / 'tienda'


def _flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved once at process start."""
    backend: str = "memory"  # "firebase" or "memory"
    firebase_api_key: str = ""
    firebase_project_id: str = ""
    firebase_database_url: str = ""
    extraction_endpoint: str = DEFAULT_EXTRACTION_ENDPOINT
    productos_variant: str = "import"  # "import" or "export"
    cache_dir: Path = DEFAULT_CACHE_DIR
    http_timeout: float = 30.0
    poll_interval: float = 2.0
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    debug: bool = False
    export_collections: tuple = field(default=("productos",))
    local_users: str = ""  # "email:password,..." accounts for BACKEND=memory
    require_login: bool = True

    @property
    def uses_firebase(self) -> bool:
        return self.backend == "firebase"


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Build Settings from the environment (after loading ``.env`` if it exists)."""
    env_path = Path(env_file) if env_file else ENV_FILE
    if env_path.exists():
        load_dotenv(env_path)

    export_collections = tuple(
        c.strip() for c in os.getenv('EXPORT_COLLECTIONS', 'productos').split(',') if c.strip()
    )
    return Settings(
        backend=os.getenv('BACKEND', 'memory').strip().lower(),
        firebase_api_key=os.getenv('FIREBASE_API_KEY', ''),
        firebase_project_id=os.getenv('FIREBASE_PROJECT_ID', ''),
        firebase_database_url=os.getenv('FIREBASE_DATABASE_URL', '').rstrip('/'),
        extraction_endpoint=os.getenv('EXTRACTION_ENDPOINT', DEFAULT_EXTRACTION_ENDPOINT),
        productos_variant=os.getenv('PRODUCTOS_VARIANT', 'import').strip().lower(),
        cache_dir=Path(os.getenv('CACHE_DIR', str(DEFAULT_CACHE_DIR))),
        http_timeout=float(os.getenv('HTTP_TIMEOUT', '30')),
        poll_interval=float(os.getenv('POLL_INTERVAL', '2')),
        app_host=os.getenv('APP_HOST', '0.0.0.0'),
        app_port=int(os.getenv('APP_PORT', '8000')),
        log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        debug=_flag(os.getenv('DEBUG')),
        export_collections=export_collections or ('productos',),
        local_users=os.getenv('LOCAL_USERS', ''),
        require_login=_flag(os.getenv('REQUIRE_LOGIN'), default=True),
    )


def parse_local_users(value: str) -> Dict[str, str]:
    """'ana@x.co:secret, luis@x.co:otra' -> {'ana@x.co': 'secret', 'luis@x.co': 'otra'}"""
    users: Dict[str, str] = {}
    for entry in (value or '').split(','):
        email, sep, password = entry.strip().partition(':')
        if sep and email:
            users[email.strip()] = password
    return users
