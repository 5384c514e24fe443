"""Exceptions raised by the readout store.

Read-path errors are recoverable and meant to be reported to the caller;
initialization and write errors are loud so an operator notices them.
"""


class MeterstoreError(RuntimeError):
    pass


class InitializationError(MeterstoreError):
    """Backend could not be opened or the schema could not be provisioned."""


class WriteError(MeterstoreError):
    """A reading was rejected by the backend."""

    def __init__(self, message: str, reading=None):
        super().__init__(message)
        self.reading = reading


class QueryError(MeterstoreError):
    """A range query was rejected by the backend."""
