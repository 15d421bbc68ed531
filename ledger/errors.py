# ledger/errors.py

class LedgerError(Exception):
    """Base for errors the chat layer reports back to the caller as-is."""


class ValidationError(LedgerError):
    pass


class NotFoundError(LedgerError):
    def __init__(self, kind: str, key):
        super().__init__(f"{kind} '{key}' not found.")
        self.kind = kind
        self.key = key
