"""Cheap lexical pre-filter for bank notification messages."""

from __future__ import annotations

import re

CURRENCY_MARKERS = ("inr", "rs")
CURRENCY_SYMBOL = "₹"
TRANSACTION_VERBS = ("spent", "debited", "credited", "refund", "refunded")

# Markers may be glued to either side of the amount ("INR2,566", "500Rs"),
# so only neighbouring letters disqualify them.
_CANDIDATE_PATTERN = re.compile(
    r"(?<![a-z])(?:"
    + "|".join(CURRENCY_MARKERS)
    + r")(?![a-z])|"
    + re.escape(CURRENCY_SYMBOL)
    + r"|\b(?:"
    + "|".join(TRANSACTION_VERBS)
    + r")\b",
    re.IGNORECASE,
)


def is_candidate(body: str) -> bool:
    """Return whether a message looks like a transaction notification.

    ``Rs.719.00``, ``500Rs`` and ``₹1,200`` match through the currency
    marker, ``debited by 400.0`` through the verb. OTPs and promotions
    without either token are rejected before paying for an extraction call.
    """

    return _CANDIDATE_PATTERN.search(body) is not None
