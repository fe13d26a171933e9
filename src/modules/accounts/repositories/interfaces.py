"""Account repository interface.

Accounts are Django auth users; the service never touches
``get_user_model()`` directly.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractUser


class IAccountRepository(IRepository["AbstractUser"]):
    @abstractmethod
    def get_by_id(self, id: str) -> Optional[AbstractUser]: ...

    @abstractmethod
    def email_taken(self, email: str, exclude_id: Optional[Any] = None) -> bool:
        """True when another account already uses *email* (case-insensitive)."""

    @abstractmethod
    def create(self, email: str, password: str, **fields: Any) -> AbstractUser:
        """Create an account whose username is its email."""
