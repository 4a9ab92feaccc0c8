"""Single-user ledger storing receipts, the taxpayer profile and yearly income.

The ledger keeps one JSON document per key (``receipts``, ``profile`` and
``income``) and hands out validated snapshots. Calculations never read the
ledger directly: callers fetch a snapshot, compute, and discard the result.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from pathlib import Path
from threading import Lock
from typing import Any

from cukai.backend.app.models import Receipt, UserProfile, YearIncome

from .calculation_service import calculate_tax

_LOGGER = logging.getLogger(__name__)

RECEIPTS_KEY = "receipts"
PROFILE_KEY = "profile"
INCOME_KEY = "income"


class LedgerRepository:
    """Domain operations shared by the ledger storage backends.

    Subclasses provide ``_read``, ``_write`` and ``_clear_all`` for whole JSON
    documents; each public operation runs under the repository lock so that a
    read-modify-write of one document is atomic.
    """

    def __init__(self) -> None:
        self._lock = Lock()

    def _read(self, key: str) -> Any:
        raise NotImplementedError

    def _write(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def _clear_all(self) -> None:
        raise NotImplementedError

    # Receipts -----------------------------------------------------------

    def _receipts_locked(self) -> list[Receipt]:
        raw = self._read(RECEIPTS_KEY) or []
        return [Receipt.model_validate(entry) for entry in raw]

    def _store_receipts_locked(self, receipts: list[Receipt]) -> None:
        self._write(
            RECEIPTS_KEY, [receipt.model_dump(mode="json") for receipt in receipts]
        )

    def load_receipts(self) -> list[Receipt]:
        with self._lock:
            return self._receipts_locked()

    def get_receipt(self, receipt_id: str) -> Receipt:
        with self._lock:
            for receipt in self._receipts_locked():
                if receipt.id == receipt_id:
                    return receipt
        raise KeyError(receipt_id)

    def save_receipt(self, receipt: Receipt) -> Receipt:
        """Insert ``receipt`` or replace the stored receipt with the same id."""

        with self._lock:
            receipts = self._receipts_locked()
            for index, existing in enumerate(receipts):
                if existing.id == receipt.id:
                    receipts[index] = receipt
                    break
            else:
                receipts.append(receipt)
            self._store_receipts_locked(receipts)
        return receipt

    def delete_receipt(self, receipt_id: str) -> None:
        with self._lock:
            receipts = self._receipts_locked()
            remaining = [receipt for receipt in receipts if receipt.id != receipt_id]
            if len(remaining) == len(receipts):
                raise KeyError(receipt_id)
            self._store_receipts_locked(remaining)

    # Profile ------------------------------------------------------------

    def load_profile(self) -> UserProfile:
        with self._lock:
            raw = self._read(PROFILE_KEY)
        if not raw:
            return UserProfile()
        return UserProfile.model_validate(raw)

    def save_profile(self, profile: UserProfile) -> UserProfile:
        with self._lock:
            self._write(PROFILE_KEY, profile.model_dump(mode="json"))
        return profile

    # Income -------------------------------------------------------------

    def load_income_map(self) -> dict[int, YearIncome]:
        with self._lock:
            raw = self._read(INCOME_KEY) or {}
        return {
            int(year): YearIncome.model_validate(entry) for year, entry in raw.items()
        }

    def load_income(self, year: int) -> YearIncome:
        return self.load_income_map().get(year, YearIncome())

    def save_income(self, year: int, income: YearIncome) -> YearIncome:
        with self._lock:
            raw = dict(self._read(INCOME_KEY) or {})
            raw[str(year)] = income.model_dump(mode="json")
            self._write(INCOME_KEY, raw)
        return income

    def clear(self) -> None:
        with self._lock:
            self._clear_all()


class InMemoryLedgerRepository(LedgerRepository):
    """Process-local ledger, reset whenever the application restarts."""

    def __init__(self) -> None:
        super().__init__()
        self._documents: dict[str, str] = {}

    def _read(self, key: str) -> Any:
        document = self._documents.get(key)
        return json.loads(document) if document is not None else None

    def _write(self, key: str, value: Any) -> None:
        self._documents[key] = json.dumps(value, ensure_ascii=False)

    def _clear_all(self) -> None:
        self._documents.clear()


class SQLiteLedgerRepository(LedgerRepository):
    """SQLite-backed ledger persisting each document as a JSON row."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        super().__init__()
        self._path = str(path)
        self._initialise()

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._path, check_same_thread=False)
        connection.execute("PRAGMA journal_mode=WAL")
        connection.execute("PRAGMA synchronous=NORMAL")
        connection.row_factory = sqlite3.Row
        return connection

    def _initialise(self) -> None:
        with self._connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS ledger (
                    key TEXT PRIMARY KEY,
                    document TEXT NOT NULL
                )
                """
            )

    def _read(self, key: str) -> Any:
        with self._connect() as connection:
            row = connection.execute(
                "SELECT document FROM ledger WHERE key = ?", (key,)
            ).fetchone()
        return json.loads(row["document"]) if row is not None else None

    def _write(self, key: str, value: Any) -> None:
        document = json.dumps(value, ensure_ascii=False)
        with self._connect() as connection:
            connection.execute(
                "INSERT INTO ledger (key, document) VALUES (?, ?)"
                " ON CONFLICT(key) DO UPDATE SET document = excluded.document",
                (key, document),
            )

    def _clear_all(self) -> None:
        with self._connect() as connection:
            connection.execute("DELETE FROM ledger")


def build_repository() -> LedgerRepository:
    """Return the ledger configured through ``CUKAI_LEDGER_DB``.

    Without the variable, or when its directory does not exist, the ledger is
    kept in memory.
    """

    db_path = os.getenv("CUKAI_LEDGER_DB", "").strip()
    if not db_path:
        return InMemoryLedgerRepository()

    path = Path(db_path).expanduser()
    if not path.parent.is_dir():
        _LOGGER.warning(
            "Ignoring CUKAI_LEDGER_DB=%s: directory %s does not exist",
            db_path,
            path.parent,
        )
        return InMemoryLedgerRepository()

    return SQLiteLedgerRepository(path)


def build_dashboard(
    repository: LedgerRepository, year: int, locale: str | None = None
) -> dict[str, Any]:
    """Compute the calculation summary for ``year`` from a ledger snapshot."""

    profile = repository.load_profile()
    income = repository.load_income(year)
    receipts = repository.load_receipts()
    return calculate_tax(
        {
            "year": year,
            "locale": locale or "en",
            "profile": profile.model_dump(),
            "income": income.model_dump(),
            "receipts": [receipt.model_dump() for receipt in receipts],
        }
    )


__all__ = [
    "InMemoryLedgerRepository",
    "LedgerRepository",
    "SQLiteLedgerRepository",
    "build_dashboard",
    "build_repository",
]
