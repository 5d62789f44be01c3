"""
Error taxonomy shared by the store, the ledger service and the HTTP layer.

- ValidationError: malformed or missing input (HTTP 400)
- ConflictError:   duplicate identifier on write (recovered as already-applied)
- NotFoundError:   lookup of a record that does not exist (HTTP 404)
- StorageError:    underlying persistence failure (HTTP 500)
"""


class LedgerError(Exception):
     """Base class for ledger failures."""


class ValidationError(LedgerError, ValueError):
     pass


class ConflictError(LedgerError):
     def __init__(self, message: str, record_id: str = None):
          super().__init__(message)
          self.record_id = record_id


class NotFoundError(LedgerError, LookupError):
     pass


class StorageError(LedgerError):
     pass
