"""
Сервисный модуль для инкапсуляции работы с Google Sheets.

Каждый лист таблицы используется как коллекция документов: первая колонка
содержит ключ документа, первая строка содержит заголовки полей. Запись защищена
блокировкой (asyncio.Lock) для предотвращения состояния гонки.
"""

import asyncio
import logging
from pathlib import Path
from typing import Callable

import gspread
import requests.exceptions
from google.oauth2.service_account import Credentials
from gspread.exceptions import APIError, GSpreadException
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from attendance_bot.core.exceptions import BackendUnavailable

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# Получает текущую строку документа (или None) и возвращает новую
RowBuilder = Callable[[dict | None], dict]


def is_retryable_gspread_error(exception: BaseException) -> bool:
    return isinstance(exception, APIError) and exception.response.status_code >= 500


def build_retry_policy(attempts: int):
    """
    Политика повторных попыток для вызовов Google API.

    При attempts=1 (значение по умолчанию) вызов выполняется ровно один раз.
    """
    return retry(
        retry=(
            retry_if_exception_type(requests.exceptions.RequestException)
            | retry_if_exception(is_retryable_gspread_error)
        ),
        wait=wait_exponential(multiplier=2, min=2, max=30),
        stop=stop_after_attempt(attempts),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


class GoogleAPIService:
    """
    Класс для работы с API Google Sheets.
    """

    def __init__(
        self,
        sheet_id: str,
        credentials_file: str | Path,
        retry_attempts: int = 1,
        client: gspread.Client | None = None,
    ) -> None:
        logger.info("Initializing Google API client...")
        self.sheet_id = sheet_id
        if client is None:
            credentials_path = Path(credentials_file)
            if not credentials_path.exists():
                logger.error(f"Credentials file not found at: {credentials_path}")
                raise FileNotFoundError(
                    f"Google credentials file not found at {credentials_path}"
                )
            creds = Credentials.from_service_account_file(
                str(credentials_path), scopes=SCOPES
            )
            client = gspread.authorize(creds)
        self.client = client
        self.lock = asyncio.Lock()
        self._retry = build_retry_policy(retry_attempts)
        self._schemas: dict[str, list[str]] = {}
        self._checked: set[str] = set()
        logger.info("Google API client initialized successfully.")

    def _call(self, func: Callable, *args, **kwargs):
        """Выполняет вызов gspread, превращая сбои транспорта в BackendUnavailable."""
        try:
            return self._retry(func)(*args, **kwargs)
        except (GSpreadException, requests.exceptions.RequestException) as e:
            name = getattr(func, "__name__", repr(func))
            logger.error(f"Google API call {name} failed: {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e

    def register_worksheet(self, name: str, headers: list[str]) -> None:
        """
        Задает заголовки листа.

        Отсутствующий зарегистрированный лист создается при первом обращении,
        а в пустую первую строку записываются заголовки.
        """
        self._schemas[name] = list(headers)

    def _open_worksheet(self, name: str) -> gspread.Worksheet:
        headers = self._schemas.get(name)
        try:
            spreadsheet = self.client.open_by_key(self.sheet_id)
            worksheet = spreadsheet.worksheet(name)
        except gspread.exceptions.SpreadsheetNotFound:
            logger.error(f"Spreadsheet with ID '{self.sheet_id}' not found.")
            raise
        except gspread.exceptions.WorksheetNotFound:
            if headers is None:
                logger.error(f"Worksheet '{name}' not found in the spreadsheet.")
                raise
            logger.info(f"Worksheet '{name}' not found, creating it.")
            worksheet = spreadsheet.add_worksheet(
                title=name, rows=1000, cols=len(headers)
            )

        if headers is not None and name not in self._checked:
            if not worksheet.row_values(1):
                logger.info(f"Writing header row to worksheet '{name}'.")
                worksheet.update(range_name="A1", values=[headers])
            self._checked.add(name)
        return worksheet

    def get_worksheet(self, name: str) -> gspread.Worksheet:
        """Открывает Google-таблицу и возвращает лист с указанным именем."""
        return self._call(self._open_worksheet, name)

    def get_records(self, worksheet_name: str) -> list[dict]:
        """Возвращает все строки листа в виде словарей (полный просмотр)."""
        worksheet = self.get_worksheet(worksheet_name)
        # Значения не приводятся к числам: ключи и ID должны остаться строками
        records = self._call(worksheet.get_all_records, numericise_ignore=["all"])
        logger.debug(f"Fetched {len(records)} rows from '{worksheet_name}'.")
        return records

    def find_record(self, worksheet_name: str, key: str) -> dict | None:
        """Точечный поиск документа по ключу в первой колонке."""
        worksheet = self.get_worksheet(worksheet_name)
        return self._find_row(worksheet, key)[1]

    def _find_row(
        self, worksheet: gspread.Worksheet, key: str
    ) -> tuple[int | None, dict | None]:
        cell = self._call(worksheet.find, key, in_column=1)
        if not cell:
            return None, None
        headers = self._call(worksheet.row_values, 1)
        values = self._call(worksheet.row_values, cell.row)
        values += [""] * (len(headers) - len(values))
        return cell.row, dict(zip(headers, values))

    async def upsert_row(
        self, worksheet_name: str, key: str, build_row: RowBuilder
    ) -> dict:
        """
        Создает или обновляет документ с ключом key.

        build_row получает текущую строку (или None, если документа нет)
        и возвращает строку, которая будет записана. Чтение и запись
        выполняются под одной блокировкой.
        """
        logger.info(f"Upserting '{key}' in worksheet '{worksheet_name}'.")
        async with self.lock:
            logger.debug(f"Lock acquired for upserting '{key}'.")
            worksheet = self.get_worksheet(worksheet_name)
            headers = self._call(worksheet.row_values, 1)
            if not headers:
                logger.error(f"Worksheet '{worksheet_name}' has no header row.")
                raise BackendUnavailable(
                    f"Worksheet '{worksheet_name}' has no header row"
                )
            row_number, existing = self._find_row(worksheet, key)
            row = build_row(existing)
            row_values = [row.get(header, "") for header in headers]

            if row_number is None:
                self._call(worksheet.append_row, row_values)
                logger.info(f"Document '{key}' created in '{worksheet_name}'.")
            else:
                self._call(
                    worksheet.update,
                    range_name=f"A{row_number}",
                    values=[row_values],
                )
                logger.info(f"Document '{key}' updated in '{worksheet_name}'.")
        logger.debug(f"Lock released for upserting '{key}'.")
        return row
