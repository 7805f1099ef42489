"""
Модуль конфигурации проекта.

Загружает настройки из переменных окружения с помощью Pydantic Settings.
Обеспечивает централизованный и безопасный доступ к конфигурационным данным.
"""

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Основные настройки приложения.

    Атрибуты:
        bot_token (str): Секретный токен для доступа к Telegram Bot API.
        admin_ids_str (str): Список Telegram ID администраторов в виде строки.
        admin_ids (list[int]): Сгенерированный список ID администраторов.
        google_sheet_id (str): ID Google-таблицы с отметками и пользователями.
        teams (list[str]): Команды, в которые может входить пользователь.
        session_timeout_hours (float): Время бездействия до принудительного выхода.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # --- Telegram Bot Settings ---
    bot_token: str = Field(..., description="Telegram Bot API Token")
    admin_ids_str: str = Field(
        default="",
        alias="ADMIN_IDS",
        description="List of admin Telegram IDs, comma-separated",
    )

    @computed_field
    @property
    def admin_ids(self) -> list[int]:
        """Преобразует строку admin_ids_str в список целых чисел."""
        if not self.admin_ids_str:
            return []
        return [int(item.strip()) for item in self.admin_ids_str.split(",")]

    # --- Google API Settings ---
    google_sheet_id: str = Field(..., description="Google Sheet ID for all data")
    credentials_file: str = Field(
        default="credentials.json",
        description="Path to the Google service account credentials",
    )
    backend_retry_attempts: int = Field(
        default=1,
        ge=1,
        description="Attempts per Google API call; 1 disables retrying",
    )

    # --- Business Logic Settings ---
    teams_str: str = Field(
        default="Medical,Firefighting",
        alias="TEAMS",
        description="Comma-separated list of team names",
    )

    display_timezone: str = Field(
        default="Asia/Jerusalem",
        description="Timezone used to compute the current week",
    )
    session_timeout_hours: float = Field(
        default=3, gt=0, description="Inactivity timeout before forced sign-out"
    )
    message_ttl_seconds: float = Field(
        default=3, gt=0, description="Lifetime of transient notifications"
    )
    allow_signup: bool = Field(
        default=True, description="Whether new accounts may be created"
    )

    @computed_field
    @property
    def teams(self) -> list[str]:
        """Преобразует строку teams_str в список строк."""
        if not self.teams_str:
            return []
        return [item.strip() for item in self.teams_str.split(",") if item.strip()]

    @property
    def session_timeout_seconds(self) -> float:
        return self.session_timeout_hours * 3600


# Создаем единственный экземпляр настроек, который будет использоваться во всем приложении
settings = Settings()
