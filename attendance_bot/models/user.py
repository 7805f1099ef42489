"""
Модели данных, связанные с пользователем.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from attendance_bot.models.attendance import join_list, split_list

UNKNOWN_USERNAME = "משתמש לא ידוע"

ACCOUNT_HEADERS = [
    "userId",
    "email",
    "displayName",
    "passwordHash",
    "disabled",
    "createdAt",
]

ROLES_HEADERS = ["userId", "roles", "timestamp"]


class UserIdentity(BaseModel):
    """
    Пользователь, вошедший в систему.

    Атрибуты:
        user_id (str): Идентификатор учетной записи.
        email (str): Адрес электронной почты.
        display_name (str | None): Отображаемое имя, указанное при регистрации.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str
    display_name: str | None = None

    @property
    def username(self) -> str:
        """Имя, которое сохраняется в отметках и показывается в сводке."""
        return self.display_name or self.email or UNKNOWN_USERNAME


class Account(BaseModel):
    """Строка листа accounts."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    email: EmailStr
    display_name: str = Field(default="", alias="displayName")
    password_hash: str = Field(..., alias="passwordHash")
    disabled: bool = False
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )

    @field_validator("user_id", "display_name", mode="before")
    @classmethod
    def _as_str(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("disabled", mode="before")
    @classmethod
    def _parse_disabled(cls, value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().upper() in ("TRUE", "1", "YES")
        return bool(value)

    def to_identity(self) -> UserIdentity:
        return UserIdentity(
            user_id=self.user_id,
            email=self.email,
            display_name=self.display_name or None,
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "email": self.email,
            "displayName": self.display_name,
            "passwordHash": self.password_hash,
            "disabled": "TRUE" if self.disabled else "FALSE",
            "createdAt": self.created_at.isoformat(),
        }


class UserRoles(BaseModel):
    """Команды пользователя. Определяют, чьи отметки он видит в сводке."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    roles: set[str] = Field(default_factory=set)
    timestamp: datetime | None = None

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_user_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("roles", mode="before")
    @classmethod
    def _parse_roles(cls, value: Any) -> set[str]:
        return split_list(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        return value or None

    def to_row(self) -> dict[str, str]:
        return {
            "userId": self.user_id,
            "roles": join_list(self.roles),
            "timestamp": self.timestamp.isoformat() if self.timestamp else "",
        }
