"""Content fingerprint of a transaction collection.

The fingerprint is what lets the memoizing cache notice that the ledger has
changed. It is computed over a canonical serialization of the four tracked
fields of every transaction (``id``, ``amount``, ``date``, ``category``):

- amounts are kept exact but representation-independent when numeric (``-150``
  and ``-150.00`` agree, ``10.001`` and ``10.004`` differ), otherwise kept as
  raw text;
- dates are normalized to ISO-8601 UTC when parseable, otherwise kept as raw
  text so edits between two unparseable values still register;
- rows are sorted before hashing, so the digest does not depend on the order
  in which the store returned them.

The digest is SHA-256 truncated to 16 hex characters (64 bits). An empty
collection fingerprints as ``"empty"``.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from .dates import parse_datetime
from .models import UNCATEGORIZED, Transaction
from .money import canonical_amount, to_decimal
from .snapshot import as_list, field_value

EMPTY_FINGERPRINT = "empty"
_DIGEST_CHARS = 16


def _canonical_amount(raw: Any) -> str | None:
    if raw is None:
        return None
    d = to_decimal(raw)
    if d is None:
        return f"raw:{raw}"
    return canonical_amount(d)


def _canonical_date(raw: Any) -> str | None:
    if raw is None:
        return None
    parsed = parse_datetime(raw)
    if parsed is None:
        return f"raw:{raw}"
    return parsed.isoformat()


def _canonical_row(record: Any) -> list[str | None]:
    if isinstance(record, Transaction):
        # Models have already dropped the raw text of unparseable dates.
        return [
            None if record.id is None else str(record.id),
            canonical_amount(record.amount),
            None if record.date is None else record.date.isoformat(),
            record.category,
        ]
    tx_id = field_value(record, "id")
    category = field_value(record, "category")
    if category is None or (isinstance(category, str) and not category.strip()):
        category = UNCATEGORIZED
    return [
        None if tx_id is None else str(tx_id),
        _canonical_amount(field_value(record, "amount")),
        _canonical_date(field_value(record, "date")),
        str(category),
    ]


def compute_fingerprint(transactions: Any) -> str:
    """Return a short, order-independent digest of ``transactions``.

    Stable for an unchanged collection; changes whenever any transaction's
    ``id``, ``amount``, ``date`` or ``category`` changes, or when the count
    changes.
    """

    items = as_list(transactions)
    if not items:
        return EMPTY_FINGERPRINT

    rows = [_canonical_row(r) for r in items]
    # Sort by id first, then by the full row so duplicate ids stay deterministic.
    rows.sort(key=lambda row: [(v is None, v or "") for v in row])
    data = json.dumps(rows, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()[:_DIGEST_CHARS]


def compute_accounts_fingerprint(accounts: Any) -> str:
    """Digest of account ids and balances, for results that depend on accounts."""

    items = as_list(accounts)
    if not items:
        return EMPTY_FINGERPRINT
    rows = []
    for record in items:
        acc_id = field_value(record, "id")
        balance = to_decimal(field_value(record, "balance"))
        rows.append(
            [
                "" if acc_id is None else str(acc_id),
                "" if balance is None else canonical_amount(balance),
            ]
        )
    rows.sort()
    data = json.dumps(rows, separators=(",", ":"))
    return hashlib.sha256(data.encode("utf-8")).hexdigest()[:_DIGEST_CHARS]
