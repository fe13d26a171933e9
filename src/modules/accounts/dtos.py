"""Account DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``); ``build`` turns a pydantic
``ValidationError`` into ``InvalidAccountData``.

- ``RegisterDTO``: self-service sign-up.
- ``UpdateProfileDTO``: partial update of name / email.
- ``ChangePasswordDTO``: password rotation for the signed-in account.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from modules.accounts.exceptions import InvalidAccountData
from modules.orders.dtos import describe_validation_error

MIN_PASSWORD_LENGTH = 6


class _AccountInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    @classmethod
    def build(cls, data: Mapping[str, Any]) -> Self:
        if not isinstance(data, Mapping):
            raise InvalidAccountData("Request body must be a JSON object.")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise InvalidAccountData(describe_validation_error(exc)) from exc


class RegisterDTO(_AccountInput):
    """Sign-up request.  The email doubles as the login username."""

    name: str = Field(min_length=2, max_length=150)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=128)
    confirm_password: str

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="after")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @model_validator(mode="after")
    def passwords_match(self) -> Self:
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        return self


class UpdateProfileDTO(_AccountInput):
    """Only the supplied fields are changed."""

    name: Optional[str] = Field(default=None, min_length=2, max_length=150)
    email: Optional[EmailStr] = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="after")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

    @model_validator(mode="after")
    def something_to_update(self) -> Self:
        if self.name is None and self.email is None:
            raise ValueError("Provide name or email.")
        return self


class ChangePasswordDTO(_AccountInput):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=128)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> Self:
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        if self.new_password == self.current_password:
            raise ValueError("New password must differ from the current one.")
        return self
