import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from pawpaw.core.config import get_settings
from pawpaw.models.audit_log import AuditLog
from pawpaw.models.conversation import Conversation
from pawpaw.models.failed_job import FailedJob
from pawpaw.models.gift import Gift
from pawpaw.models.live_stream import LiveStream
from pawpaw.models.match import Match
from pawpaw.models.message import Message
from pawpaw.models.pet_profile import PetProfile
from pawpaw.models.swipe import Swipe
from pawpaw.models.user import User
from pawpaw.models.wallet import Wallet

DOCUMENT_MODELS = [
    User,
    PetProfile,
    Swipe,
    Match,
    Wallet,
    Gift,
    Conversation,
    Message,
    LiveStream,
    AuditLog,
    FailedJob,
]

_client = None


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


def get_client():
    """Client bound by the last init_db call; needed to open sessions."""
    if _client is None:
        raise RuntimeError("init_db() has not been called")
    return _client


async def init_db(client=None) -> None:
    """Connect and register document models. Tests pass an in-process client."""
    global _client
    settings = get_settings()
    if client is None:
        kwargs = {}
        if _use_tls(settings.mongodb_uri):
            kwargs["tlsCAFile"] = certifi.where()
            kwargs["tlsDisableOCSPEndpointCheck"] = True
        client = AsyncIOMotorClient(settings.mongodb_uri, **kwargs)
    _client = client
    database = client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
