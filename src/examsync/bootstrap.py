"""Composition root: builds the sync object graph explicitly."""
from examsync.config import get_settings
from examsync.db.engine import get_engine
from examsync.hallapi.client import HallApiClient
from examsync.sync.ledger import SyncLedger
from examsync.sync.service import SyncService


def build_sync_service(settings=None, engine=None, client=None) -> SyncService:
    """
    Wire HallApiClient -> SyncLedger -> SyncService.

    Any collaborator passed in is used as-is; the rest come from settings.
    """
    settings = settings or get_settings()
    engine = engine if engine is not None else get_engine()
    client = client or HallApiClient.from_settings(settings)
    return SyncService(client=client, engine=engine, ledger=SyncLedger(engine))
