"""Service context: every external collaborator, built once at process start.

Screens receive the context explicitly instead of importing module-level
service handles.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from tienda.events.notifications import NotificationCenter
from tienda.infra.auth_client import AuthClient, FirebaseAuthClient, MemoryAuthClient
from tienda.infra.devices import (
    Clipboard, FilePicker, FileStore, LocalShare, MemoryClipboard, PresetFilePicker, ShareSink
)
from tienda.infra.extraction_client import ExtractionClient
from tienda.infra.Firestore_Gateway import FirestoreGateway
from tienda.infra.gateway import RemoteGateway
from tienda.infra.Memory_Gateway import MemoryGateway
from tienda.infra.Realtime_Gateway import RealtimeGateway
from tienda.utilities.config import Settings, load_settings, parse_local_users

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    settings: Settings
    auth: AuthClient
    documents: RemoteGateway
    realtime: RemoteGateway
    extraction: ExtractionClient
    files: FileStore
    picker: FilePicker
    clipboard: Clipboard
    share: ShareSink
    notifications: NotificationCenter

    async def aclose(self) -> None:
        for closable in (self.documents, self.realtime, self.extraction, self.auth):
            await closable.aclose()


def build_context(settings: Optional[Settings] = None) -> ServiceContext:
    settings = settings or load_settings()

    if settings.uses_firebase:
        missing = [name for name, value in (
            ('FIREBASE_API_KEY', settings.firebase_api_key),
            ('FIREBASE_PROJECT_ID', settings.firebase_project_id),
            ('FIREBASE_DATABASE_URL', settings.firebase_database_url),
        ) if not value]
        if missing:
            raise ValueError(f"BACKEND=firebase requires {', '.join(missing)}")
        auth = FirebaseAuthClient(settings.firebase_api_key, timeout=settings.http_timeout)
        documents = FirestoreGateway(
            settings.firebase_project_id, token_provider=auth.id_token,
            api_key=settings.firebase_api_key, poll_interval=settings.poll_interval,
            timeout=settings.http_timeout,
        )
        realtime = RealtimeGateway(settings.firebase_database_url, token_provider=auth.id_token,
                                   timeout=settings.http_timeout, on_auth_revoked=auth.invalidate_token)
    else:
        auth = MemoryAuthClient(parse_local_users(settings.local_users))
        documents = MemoryGateway()
        realtime = MemoryGateway()

    logger.info(f"Service context ready (backend={settings.backend})")
    return ServiceContext(
        settings=settings,
        auth=auth,
        documents=documents,
        realtime=realtime,
        extraction=ExtractionClient(settings.extraction_endpoint, timeout=settings.http_timeout),
        files=FileStore(settings.cache_dir),
        picker=PresetFilePicker(None),
        clipboard=MemoryClipboard(),
        share=LocalShare(settings.cache_dir),
        notifications=NotificationCenter(),
    )
