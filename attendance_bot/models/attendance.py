"""
Модели данных, связанные с недельными отметками о сменах.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Status(str, Enum):
    """Статус пользователя на смене. Значения совпадают с тем, что хранится в таблице."""

    PRESENT = "נוכח"
    ABSENT = "נעדר"
    PARTIAL = "חלקי"
    UNKNOWN = "לא ידוע"


DEFAULT_STATUS = Status.PRESENT


class ShiftDefinition(NamedTuple):
    key: str
    label: str


# Неделя начинается и заканчивается субботой, поэтому у двух пар ключей одинаковые подписи
SHIFTS: tuple[ShiftDefinition, ...] = (
    ShiftDefinition("שבת בוקר_1", "שבת בוקר"),
    ShiftDefinition("שבת ערב_1", "שבת ערב"),
    ShiftDefinition("ראשון בוקר", "ראשון בוקר"),
    ShiftDefinition("ראשון ערב", "ראשון ערב"),
    ShiftDefinition("שני בוקר", "שני בוקר"),
    ShiftDefinition("שני ערב", "שני ערב"),
    ShiftDefinition("שלישי בוקר", "שלישי בוקר"),
    ShiftDefinition("שלישי ערב", "שלישי ערב"),
    ShiftDefinition("רביעי בוקר", "רביעי בוקר"),
    ShiftDefinition("רביעי ערב", "רביעי ערב"),
    ShiftDefinition("חמישי בוקר", "חמישי בוקר"),
    ShiftDefinition("חמישי ערב", "חמישי ערב"),
    ShiftDefinition("שישי בוקר", "שישי בוקר"),
    ShiftDefinition("שישי ערב", "שישי ערב"),
    ShiftDefinition("שבת בוקר_2", "שבת בוקר"),
    ShiftDefinition("שבת ערב_2", "שבת ערב"),
)

SHIFT_KEYS: tuple[str, ...] = tuple(shift.key for shift in SHIFTS)

# Порядок колонок в листе attendanceRecords
ATTENDANCE_HEADERS = [
    "key",
    "weekStart",
    "weekEnd",
    "timestamp",
    "userId",
    "username",
    "userRoles",
    "data",
]


class WeekWindow(BaseModel):
    """
    Окно недели: от субботы 00:00:00.000 до субботы через 7 дней 23:59:59.999.

    Атрибуты:
        start_date (datetime): Начало окна.
        end_date (datetime): Конец окна (включительно).
        start_label (str): Начало в формате DD/MM/YYYY.
        end_label (str): Конец в формате DD/MM/YYYY.
    """

    model_config = ConfigDict(frozen=True)

    start_date: datetime
    end_date: datetime
    start_label: str
    end_label: str


def record_key(week_start_label: str, user_id: str) -> str:
    """Ключ документа отметки: одна запись на пару (пользователь, неделя)."""
    return f"{week_start_label.replace('/', '-')}_{user_id}"


def split_list(value: Any) -> set[str]:
    """Разбирает множество, сохраненное в ячейке как строка через запятую."""
    if value is None or value == "":
        return set()
    if isinstance(value, str):
        return {item.strip() for item in value.split(",") if item.strip()}
    return {str(item).strip() for item in value if str(item).strip()}


def join_list(values: set[str]) -> str:
    return ",".join(sorted(values))


class AttendanceRecord(BaseModel):
    """
    Отметка пользователя за одну неделю.

    Поле data хранит "сырые" строки статусов: в таблице могут оказаться
    значения, которых нет в справочнике, и сводка их просто пропускает.
    """

    model_config = ConfigDict(populate_by_name=True)

    week_start: str = Field(..., alias="weekStart")
    week_end: str = Field(..., alias="weekEnd")
    timestamp: datetime | None = None
    user_id: str = Field(..., alias="userId")
    username: str | None = None
    user_roles: set[str] = Field(default_factory=set, alias="userRoles")
    data: dict[str, str] = Field(default_factory=dict)

    @field_validator("user_id", mode="before")
    @classmethod
    def _coerce_user_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("user_roles", mode="before")
    @classmethod
    def _parse_roles(cls, value: Any) -> set[str]:
        return split_list(value)

    @field_validator("data", mode="before")
    @classmethod
    def _parse_data(cls, value: Any) -> dict:
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            return json.loads(value)
        return value

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        return value or None

    @property
    def key(self) -> str:
        return record_key(self.week_start, self.user_id)

    def to_row(self) -> dict[str, str]:
        """Представление записи в виде строки листа attendanceRecords."""
        return {
            "key": self.key,
            "weekStart": self.week_start,
            "weekEnd": self.week_end,
            "timestamp": self.timestamp.isoformat() if self.timestamp else "",
            "userId": self.user_id,
            "username": self.username or "",
            "userRoles": join_list(self.user_roles),
            "data": json.dumps(self.data, ensure_ascii=False),
        }

    @classmethod
    def from_row(cls, row: dict) -> "AttendanceRecord":
        values = {name: value for name, value in row.items() if name != "key"}
        return cls.model_validate(values)
