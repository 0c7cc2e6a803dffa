"""Error types raised by the ledger services."""


class LedgerError(Exception):
    """Base class for recoverable ledger failures."""


class ModelCallError(LedgerError):
    """The language model could not be reached or returned an error."""


class ExtractionError(LedgerError):
    """No JSON nutrition object could be read from a model response."""

    def __init__(self, completion: str) -> None:
        super().__init__(f"Unable to extract valid JSON from: {completion[:200]}")
        self.completion = completion


class PersistenceError(LedgerError):
    """Loading or saving ledger state failed."""
