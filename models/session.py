from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum


class Role(IntEnum):
    """Access tier, numbered the way the user registry contract reports it"""
    NONE = 0
    USER = 1
    SELLER = 2
    ADMIN = 3


@dataclass(frozen=True)
class Session:
    """In-memory login session, keyed by its opaque token"""
    token: str
    identity_hash: str  # keccak256 of the normalized email, 0x-prefixed hex
    role: Role
    created_at: datetime = field(default_factory=datetime.utcnow)
    account: str = None  # wallet address bound via /web3ConnectData

    @property
    def is_admin(self):
        return self.role == Role.ADMIN
