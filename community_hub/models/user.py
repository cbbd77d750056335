"""User model and the actor value passed into every engine call."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import Column, Integer, String

from .base import Base

class Role(str, Enum):
    """Roles issued by the authentication service."""
    ADMIN = 'Admin'
    ORGANIZER = 'Organizer'
    USER = 'User'

ORGANIZER_ROLES = frozenset({Role.ADMIN, Role.ORGANIZER})

@dataclass(frozen=True)
class Actor:
    """
    The authenticated caller of an engine operation.

    The engine trusts the id and role it is handed; it never reads session
    or token state on its own.
    """
    actor_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_organizer(self) -> bool:
        """True for organizer-class actors (Admin or Organizer)."""
        return self.role in ORGANIZER_ROLES

class User(Base):
    """
    Identity record owned by the authentication service.

    The engine only reads it: to resolve a registered volunteer's name and
    contact, and to show organizer names in the admin console.
    """
    __tablename__ = 'users'

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    email = Column(String, nullable=True, unique=True)
    role = Column(String, nullable=False, default=Role.USER.value)
    whatsapp = Column(String, nullable=True)
    uk_phone = Column(String, nullable=True)

    @property
    def display_name(self) -> str:
        return ' '.join(part for part in (self.first_name, self.last_name) if part)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'role': self.role,
        }

    def __str__(self) -> str:
        return f"User(user_id={self.user_id}, name={self.display_name}, role={self.role})"

def parse_role(value: Optional[str]) -> Role:
    """
    Convert a role string from the auth layer into a Role.

    Raises:
        ValueError: If the role is unknown
    """
    for role in Role:
        if value and value.strip().lower() == role.value.lower():
            return role
    raise ValueError(f"Unknown role: {value}")
