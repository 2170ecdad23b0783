"""
Google Sheets Key-Value Store

DESIGN DECISION: Google Sheets is offered as a persistent backend because:
1. Non-technical users can see (and back up) their data directly in Sheets
2. No database setup required
3. Easy to export/migrate later

Layout: one worksheet, one row per key -> [key, value, updated_at].
The value column holds the JSON string exactly as the caller wrote it.

TRADEOFFS:
- A cell holds at most 50,000 characters, plenty for a personal ledger
- No transactions (the ledger's rollback contract covers failed writes)
- Lookups scan the sheet (fine for the handful of keys we use)
"""

from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from subsentry.config import GoogleSheetsSettings, get_settings
from subsentry.models.base import utc_now
from subsentry.services.storage.interface import (
    ConnectionError,
    KeyValueStore,
    StorageError,
)


STORE_COLUMNS = [
    "key",
    "value",
    "updated_at",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_store_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.store_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.store_sheet_name,
                rows=100,
                cols=len(STORE_COLUMNS),
            )
            sheet.append_row(STORE_COLUMNS)
        return sheet


class GoogleSheetsKeyValueStore(KeyValueStore):
    """
    Google Sheets implementation of the key-value store.

    Reads and writes are retried with exponential backoff; whatever still fails
    after the last attempt surfaces as StorageError.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _find_row(all_rows: list[list[str]], key: str) -> Optional[int]:
        """1-based sheet row number holding key, skipping the header."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == key:
                return idx
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def get(self, key: str) -> Optional[str]:
        """Read a value by key."""
        try:
            sheet = self._client.get_store_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == key:
                    return row[1] if len(row) > 1 else ""
            return None
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read '{key}': {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def set(self, key: str, value: str) -> None:
        """Insert or overwrite the row for key."""
        try:
            sheet = self._client.get_store_sheet()
            updated_at = utc_now().isoformat()
            row_number = self._find_row(sheet.get_all_values(), key)

            if row_number is None:
                sheet.append_row([key, value, updated_at], value_input_option="RAW")
            else:
                sheet.update_cell(row_number, 2, value)
                sheet.update_cell(row_number, 3, updated_at)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write '{key}': {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def delete(self, key: str) -> None:
        """Delete the row for key, if any."""
        try:
            sheet = self._client.get_store_sheet()
            row_number = self._find_row(sheet.get_all_values(), key)
            if row_number is not None:
                sheet.delete_rows(row_number)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete '{key}': {e}")
