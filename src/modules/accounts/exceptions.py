"""Account domain exceptions."""

from __future__ import annotations

from shared.domain.exceptions import Conflict, InvalidInput


class InvalidAccountData(InvalidInput):
    """Missing or malformed registration / profile / password fields."""

    code = "INVALID_ACCOUNT_DATA"


class EmailAlreadyRegistered(Conflict):
    code = "EMAIL_ALREADY_REGISTERED"
    default_message = "An account with this email already exists."


class InvalidCurrentPassword(InvalidInput):
    code = "INVALID_CURRENT_PASSWORD"
    default_message = "Current password is incorrect."
