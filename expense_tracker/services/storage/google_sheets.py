"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is a storage backend because:
1. Users can view and fix their records directly in Sheets
2. No database setup required
3. Export is as simple as downloading the spreadsheet

TRADEOFFS:
- Not suitable for high-volume data (fine for a personal tracker)
- No transactions (each write is a single row operation)
- Limited query capabilities (we filter in Python)

Each record kind lives in its own worksheet, one record per row.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_tracker.config import get_settings
from expense_tracker.filters.builder import RecordFilter
from expense_tracker.models.record import Record, RecordKind, record_model_for, utcnow
from expense_tracker.models.summary import SortSpec
from expense_tracker.services.storage.interface import (
    DuplicateError,
    NotFoundError,
    RecordStorageInterface,
    StorageConnectionError,
    StorageError,
    apply_limit,
    apply_sort,
)

logger = structlog.get_logger(__name__)

# Column mappings for the Income and Expenses sheets
RECORD_COLUMNS = [
    "id",
    "owner_id",
    "amount",
    "category",
    "description",
    "date",
    "created_at",
    "updated_at",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

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
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

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
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def sheet_name(self, kind: RecordKind) -> str:
        if kind == RecordKind.INCOME:
            return self._settings.income_sheet_name
        return self._settings.expense_sheet_name

    def get_records_sheet(self, kind: RecordKind) -> gspread.Worksheet:
        """Get or create the worksheet for a record kind."""
        spreadsheet = self.get_spreadsheet()
        title = self.sheet_name(kind)
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(RECORD_COLUMNS),
            )
            sheet.append_row(RECORD_COLUMNS)
        return sheet


class GoogleSheetsRecordStorage(RecordStorageInterface):
    """
    Google Sheets implementation of record storage for one kind.

    Amounts are stored as decimal strings, timestamps as ISO-8601.
    """

    def __init__(self, kind: RecordKind, client: Optional[GoogleSheetsClient] = None):
        self.kind = RecordKind(kind)
        self._model = record_model_for(self.kind)
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_records_sheet(self.kind)

    def _record_to_row(self, record: Record) -> list:
        """Convert a record to a spreadsheet row."""
        return [
            str(record.id),
            record.owner_id,
            str(record.amount),
            record.category.value,
            record.description,
            record.date.isoformat(),
            record.created_at.isoformat(),
            record.updated_at.isoformat(),
        ]

    def _row_to_record(self, row: list) -> Record:
        """Convert a spreadsheet row to a record."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        created_at = safe_get(6)
        updated_at = safe_get(7)
        return self._model(
            id=UUID(safe_get(0)),
            owner_id=safe_get(1),
            amount=Decimal(safe_get(2)),
            category=safe_get(3),
            description=safe_get(4),
            date=datetime.fromisoformat(safe_get(5)),
            created_at=datetime.fromisoformat(created_at) if created_at else utcnow(),
            updated_at=datetime.fromisoformat(updated_at) if updated_at else utcnow(),
        )

    def _load_rows(self) -> list[tuple[int, Record]]:
        """
        All parseable records with their sheet row numbers.

        Malformed rows are skipped and logged; they are never fatal for
        the whole sheet.
        """
        all_rows = self._sheet().get_all_values()[1:]  # Skip header

        loaded = []
        for idx, row in enumerate(all_rows, start=2):  # Row 1 is the header
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                loaded.append((idx, self._row_to_record(row)))
            except Exception as e:
                logger.warning(
                    "malformed_record_row",
                    kind=self.kind.value,
                    row=idx,
                    error=str(e),
                )
        return loaded

    async def save_record(self, record: Record) -> bool:
        """Append a record as a new row."""
        if not isinstance(record, self._model):
            raise StorageError(
                f"Cannot store {type(record).__name__} in {self.kind.value} storage"
            )
        return await self._append(record)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(DuplicateError),
        reraise=True,
    )
    async def _append(self, record: Record) -> bool:
        try:
            sheet = self._sheet()
            existing_ids = sheet.col_values(1)[1:]
            if str(record.id) in existing_ids:
                raise DuplicateError(f"Record already exists: {record.id}")
            sheet.append_row(self._record_to_row(record), value_input_option="RAW")
            return True
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save record: {e}")

    async def get_record(self, owner_id: str, record_id: UUID) -> Optional[Record]:
        try:
            for _, record in self._load_rows():
                if record.id == record_id and record.owner_id == owner_id:
                    return record
            return None
        except Exception as e:
            raise StorageError(f"Failed to get record: {e}")

    async def update_record(self, record: Record) -> bool:
        """Rewrite the row holding the record."""
        try:
            sheet = self._sheet()
            for idx, existing in self._load_rows():
                if existing.id == record.id and existing.owner_id == record.owner_id:
                    new_row = self._record_to_row(record)
                    for col_idx, value in enumerate(new_row, start=1):
                        sheet.update_cell(idx, col_idx, value)
                    return True

            raise NotFoundError(f"Record not found: {record.id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update record: {e}")

    async def delete_record(self, owner_id: str, record_id: UUID) -> bool:
        try:
            sheet = self._sheet()
            for idx, record in self._load_rows():
                if record.id == record_id and record.owner_id == owner_id:
                    sheet.delete_rows(idx)
                    return True
            return False
        except Exception as e:
            raise StorageError(f"Failed to delete record: {e}")

    async def find_by_owner_and_filter(
        self,
        owner_id: str,
        predicate: RecordFilter,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> list[Record]:
        try:
            matches = [
                record
                for _, record in self._load_rows()
                if record.owner_id == owner_id and predicate.matches(record)
            ]
        except Exception as e:
            raise StorageError(f"Failed to list records: {e}")
        return apply_limit(apply_sort(matches, sort), limit)

    async def find_all_by_owner(self, owner_id: str) -> list[Record]:
        try:
            return [r for _, r in self._load_rows() if r.owner_id == owner_id]
        except Exception as e:
            raise StorageError(f"Failed to list records: {e}")
