"""ORM models for the sms_ledger persistence layer."""

from sms_ledger.db.models.key_value_entry import KeyValueEntry

__all__ = ["KeyValueEntry"]
