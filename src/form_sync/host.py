"""
host.py - Boundary to the host system that owns accounts, forms and records.

The orchestrator only needs an Account that can list its active forms
and stream the records of one form. AccountSource resolves an
organization to an Account.

JSONAccountSource reads an organization export of the form

    {"accounts": [{"row_id": 1, "name": "Acme",
                   "forms": [...], "records": [...]}]}

validated with pydantic before anything is synced.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from form_sync.errors import SourceError
from form_sync.model.form import Form
from form_sync.model.record import Record

logger = logging.getLogger("form_sync.host")

RecordCallback = Callable[[Record], Awaitable[None]]


class Account(ABC):
    """Tenant that owns forms and records."""

    row_id: int
    name: str

    @abstractmethod
    async def find_active_forms(self) -> list[Form]:
        pass

    @abstractmethod
    async def find_each_record(
        self, form: Form, filter: dict[str, Any], callback: RecordCallback
    ) -> None:
        """Await callback once per record of form matching filter."""
        pass


class AccountSource(ABC):
    """Resolves organizations to accounts."""

    @abstractmethod
    async def fetch_account(self, org: str) -> Optional[Account]:
        """Return the account for org, or None if there is none."""
        pass


class MemoryAccount(Account):
    """Account holding its forms and records in memory."""

    def __init__(
        self,
        row_id: int,
        name: str,
        forms: list[Form] | None = None,
        records: list[Record] | None = None,
    ):
        self.row_id = row_id
        self.name = name
        self.forms = list(forms or [])
        self.records = list(records or [])

    async def find_active_forms(self) -> list[Form]:
        return [form for form in self.forms if form.status == "active"]

    async def find_each_record(
        self, form: Form, filter: dict[str, Any], callback: RecordCallback
    ) -> None:
        for record in list(self.records):
            if record.form.id != form.id:
                continue
            if any(getattr(record, key, None) != value for key, value in filter.items()):
                continue
            await callback(record)


# =============================================================================
# Export document
# =============================================================================

class FormExport(BaseModel):
    id: str
    row_id: int
    name: str
    status: str = "active"
    elements: list[dict[str, Any]] = Field(default_factory=list)


class RecordExport(BaseModel):
    id: str
    form_id: str
    status: Optional[str] = None
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    form_values: dict[str, Any] = Field(default_factory=dict)


class AccountExport(BaseModel):
    row_id: int
    name: str
    forms: list[FormExport] = Field(default_factory=list)
    records: list[RecordExport] = Field(default_factory=list)

    def to_account(self) -> MemoryAccount:
        forms = {
            item.id: Form(
                id=item.id,
                row_id=item.row_id,
                account_row_id=self.row_id,
                name=item.name,
                elements=item.elements,
                status=item.status,
            )
            for item in self.forms
        }

        records = []
        for item in self.records:
            form = forms.get(item.form_id)
            if form is None:
                logger.warning(f"Skipping record {item.id}: unknown form {item.form_id}")
                continue
            records.append(Record(
                id=item.id,
                form=form,
                form_values=item.form_values,
                status=item.status,
                version=item.version,
                created_at=item.created_at,
                updated_at=item.updated_at,
                latitude=item.latitude,
                longitude=item.longitude,
            ))

        return MemoryAccount(self.row_id, self.name, list(forms.values()), records)


class ExportDocument(BaseModel):
    accounts: list[AccountExport] = Field(default_factory=list)


class JSONAccountSource(AccountSource):
    """
    Accounts read from a JSON export file.

    The file is read and validated on every fetch so a long-running
    process picks up a refreshed export.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> ExportDocument:
        """
        Read and validate the export.

        Raises:
            SourceError: If the file is missing or does not match the layout
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise SourceError("Cannot read export", path=str(self.path), reason=str(e)) from e

        try:
            return ExportDocument.model_validate_json(raw)
        except ValidationError as e:
            raise SourceError(
                "Export does not match the expected layout",
                path=str(self.path),
                reason=f"{e.error_count()} validation errors",
            ) from e

    async def fetch_account(self, org: str) -> Optional[Account]:
        for account in self.load().accounts:
            if org in (account.name, str(account.row_id)):
                return account.to_account()
        return None
