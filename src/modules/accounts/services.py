"""Account service layer (Use Cases).

Self-service sign-up, profile edits and password changes.  Passwords go
through Django's ``AUTH_PASSWORD_VALIDATORS`` on top of the DTO checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Tuple

import structlog
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.accounts.exceptions import (
    EmailAlreadyRegistered,
    InvalidAccountData,
    InvalidCurrentPassword,
)

if TYPE_CHECKING:
    from modules.accounts.dtos import (
        ChangePasswordDTO,
        RegisterDTO,
        UpdateProfileDTO,
    )
    from modules.accounts.repositories.interfaces import IAccountRepository

logger = structlog.get_logger(__name__)


def split_name(name: str) -> Tuple[str, str]:
    """``"Maria del Pilar Rojas"`` -> ``("Maria", "del Pilar Rojas")``."""
    first, _, last = name.strip().partition(" ")
    return first, last.strip()


def full_name(user: Any) -> str:
    return f"{user.first_name} {user.last_name}".strip()


class AccountService:
    """Application service for account use-cases.

    Receives its repository via constructor injection (DIP).
    """

    def __init__(self, repository: IAccountRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def register(self, dto: RegisterDTO) -> Any:
        """Create a customer account.  Never grants staff rights.

        Raises:
            EmailAlreadyRegistered: another account uses the email.
            InvalidAccountData: the password fails the password validators.
        """
        log = logger.bind(email=dto.email)
        if self._repo.email_taken(dto.email):
            log.warning("account.register.email_taken")
            raise EmailAlreadyRegistered()

        first_name, last_name = split_name(dto.name)
        self._check_password(dto.password, email=dto.email, first_name=first_name)
        user = self._repo.create(
            dto.email,
            dto.password,
            first_name=first_name,
            last_name=last_name,
        )
        log.info("account.registered", user_id=user.pk)
        return user

    @transaction.atomic
    def update_profile(self, user: Any, dto: UpdateProfileDTO) -> Any:
        """Change name and/or email.

        A username that mirrored the old email follows the new one so
        that token login keeps working with the email.

        Raises:
            EmailAlreadyRegistered: another account uses the new email.
        """
        if dto.name is not None:
            user.first_name, user.last_name = split_name(dto.name)

        if dto.email is not None and dto.email != (user.email or "").lower():
            if self._repo.email_taken(dto.email, exclude_id=user.pk):
                raise EmailAlreadyRegistered()
            if user.get_username().lower() == (user.email or "").lower():
                user.username = dto.email
            user.email = dto.email

        user = self._repo.save(user)
        logger.info("account.profile_updated", user_id=user.pk)
        return user

    @transaction.atomic
    def change_password(self, user: Any, dto: ChangePasswordDTO) -> None:
        """Replace the password after checking the current one.

        Raises:
            InvalidCurrentPassword: ``current_password`` does not match.
            InvalidAccountData: the new password fails the validators.
        """
        if not user.check_password(dto.current_password):
            logger.warning("account.password.wrong_current", user_id=user.pk)
            raise InvalidCurrentPassword()

        self._check_password(dto.new_password, user=user)
        user.set_password(dto.new_password)
        self._repo.save(user)
        logger.info("account.password_changed", user_id=user.pk)

    @staticmethod
    def _check_password(
        password: str, user: Optional[Any] = None, **attributes: str
    ) -> None:
        if user is None:
            # Unsaved user so the similarity validator sees the sign-up fields.
            user = get_user_model()(**attributes)
        try:
            validate_password(password, user=user)
        except ValidationError as exc:
            raise InvalidAccountData(" ".join(exc.messages)) from exc
