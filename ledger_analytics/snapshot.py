"""Helpers that turn a caller-supplied ledger snapshot into engine records.

Callers hand the engine whatever their store produced: ``Transaction``
models, plain mappings (``{"id": ..., "date": ..., "amount": ...}``), or ORM
objects exposing the same attributes. Nothing here raises for malformed input;
unusable items are skipped and logged at debug level.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from .logging_setup import get_logger
from .models import Account, Transaction

_logger = get_logger("ledger_analytics.snapshot")

# Source field names per tracked attribute (first present wins).
_FIELD_ALIASES: Mapping[str, tuple[str, ...]] = {
    "id": ("id",),
    "date": ("date",),
    "amount": ("amount",),
    "category": ("category",),
    "account_id": ("account_id", "accountId"),
}


def as_list(items: Any) -> list[Any]:
    """Return ``items`` as a list, or ``[]`` when it is not a collection of records.

    Strings, bytes, and single mappings are not treated as collections.
    """

    if items is None or isinstance(items, str | bytes | bytearray | Mapping):
        return []
    if isinstance(items, list):
        return items
    if isinstance(items, Iterable):
        return list(items)
    return []


def field_value(record: Any, name: str) -> Any:
    """Read a tracked field from a model, mapping, or attribute object."""

    for key in _FIELD_ALIASES.get(name, (name,)):
        if isinstance(record, Mapping):
            if key in record:
                return record[key]
        elif hasattr(record, key):
            return getattr(record, key)
    return None


def coerce_transaction(record: Any) -> Transaction | None:
    if isinstance(record, Transaction):
        return record
    try:
        if isinstance(record, Mapping):
            return Transaction.model_validate(dict(record))
        if any(hasattr(record, k) for k in ("amount", "date", "category")):
            return Transaction.model_validate(
                {name: field_value(record, name) for name in _FIELD_ALIASES}
            )
    except ValidationError:
        _logger.debug("snapshot:skip_transaction reason=invalid record=%r", record, exc_info=True)
        return None
    _logger.debug("snapshot:skip_transaction reason=not_a_record record=%r", record)
    return None


def coerce_transactions(records: Any) -> list[Transaction]:
    """Coerce every usable record, preserving input order."""

    out: list[Transaction] = []
    for record in as_list(records):
        tx = coerce_transaction(record)
        if tx is not None:
            out.append(tx)
    return out


def coerce_accounts(records: Any) -> list[Account]:
    out: list[Account] = []
    for record in as_list(records):
        if isinstance(record, Account):
            out.append(record)
            continue
        try:
            if isinstance(record, Mapping):
                out.append(Account.model_validate(dict(record)))
            elif hasattr(record, "balance"):
                out.append(Account.model_validate(record, from_attributes=True))
            else:
                _logger.debug("snapshot:skip_account reason=not_a_record record=%r", record)
        except ValidationError:
            _logger.debug("snapshot:skip_account reason=invalid record=%r", record, exc_info=True)
    return out
