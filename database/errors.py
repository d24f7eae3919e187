class StoreError(Exception):
    """Base class for data store failures."""


class StoreUnavailableError(StoreError):
    """A read or write against the database failed."""


class MalformedRecordError(StoreError, ValueError):
    """A stored row violates the data model (e.g. an unparseable amount)."""

    def __init__(self, table: str, row_id, reason: str):
        super().__init__(f"Malformed {table} row {row_id}: {reason}")
        self.table = table
        self.row_id = row_id
        self.reason = reason
