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

__all__ = [
    "AuditLog",
    "Conversation",
    "FailedJob",
    "Gift",
    "LiveStream",
    "Match",
    "Message",
    "PetProfile",
    "Swipe",
    "User",
    "Wallet",
]
