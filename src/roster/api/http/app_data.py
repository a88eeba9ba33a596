from dataclasses import dataclass

from src.roster.core.services import UserService
from src.roster.core.storage import RecordStore


@dataclass
class ApplicationDependencies:
    record_store: RecordStore
    user_service: UserService
