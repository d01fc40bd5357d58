"""
User Model Module

This module defines the User model and UserRole enumeration used for
addressing notifications and for the role-based permission policy.
"""
from enum import Enum
from typing import Optional

from pydantic import EmailStr, Field

from budget_tracker.models.base import EntityModel, UpdateModel, new_id, utc_now


class UserRole(str, Enum):
    """
    Enumeration of user roles defining permission levels.

    Role hierarchy (from least to most privileged):
    - USER: can create projects and record entries on projects they belong to
    - ADMIN: manages budget codes, divisions and units, sees all users
    - SUPER_ADMIN: complete access including user management and settings
    """
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    USER = "user"


def make_initials(name: str) -> str:
    """First letters of the first two words, e.g. "Sarah Chen" -> "SC"."""
    return "".join(part[0] for part in name.split() if part)[:2].upper()


class UserBase(EntityModel):
    name: str = Field(min_length=1)
    email: EmailStr
    role: UserRole = UserRole.USER
    initials: Optional[str] = None


class User(UserBase):
    """
    A person who can act on the data and receive notifications.

    Attributes:
        id: UUID assigned on creation
        name: Display name
        email: Contact address, unique across users
        role: Permission level
        initials: Short avatar label derived from the name unless given
        created_at: ISO timestamp of creation
    """
    id: str = Field(default_factory=new_id)
    initials: str = ""
    created_at: str = Field(default_factory=utc_now)

    @property
    def is_privileged(self) -> bool:
        """Helper to check if user has admin-level roles."""
        return self.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)


class UserCreate(UserBase):
    pass


class UserUpdate(UpdateModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    initials: Optional[str] = None
