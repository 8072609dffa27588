"""Income and expense totals over stored transactions."""

from __future__ import annotations

from collections.abc import Iterable

from sms_ledger.application.schemas.transactions import (
    Summary,
    TransactionRecord,
    TransactionType,
)
from sms_ledger.domain.money import ZERO, parse_amount, quantize_money


def summarize(records: Iterable[TransactionRecord]) -> Summary:
    """Fold records into debit, credit and net totals.

    Amounts that do not parse as non-negative decimals count as zero.
    """

    debit = ZERO
    credit = ZERO
    for record in records:
        amount = parse_amount(record.amount)
        if amount is None:
            continue
        if record.type == TransactionType.DEBIT:
            debit += amount
        else:
            credit += amount

    return Summary(
        total=quantize_money(credit - debit),
        debit=quantize_money(debit),
        credit=quantize_money(credit),
    )
