"""
Errors raised by the runtime itself.

Only *configuration* problems are raised here: a schema that does not
declare a requested sub-collection, a sub-collection entry without a
resolver factory, or a constraint/operation value the compiler does not
know.  They are programming mistakes and are raised before any request is
sent.  Errors coming back from Firestore (``google.api_core.exceptions``)
are never caught or wrapped by this package.
"""


class ConfigurationError(RuntimeError):
    """Schema or builder misuse detected before talking to Firestore."""


class UnsupportedConstraintError(ConfigurationError, TypeError):
    """A query builder holds a value that is not a known constraint."""

    def __init__(self, constraint):
        self.constraint = constraint
        super().__init__(
            f"Unsupported query constraint type: {type(constraint).__name__}"
        )


class UnsupportedOperationError(ConfigurationError, TypeError):
    """An update builder holds a value that is not a known operation."""

    def __init__(self, field_path: str, operation):
        self.field_path = field_path
        self.operation = operation
        super().__init__(
            f"Unsupported update operation type for '{field_path}': "
            f"{type(operation).__name__}"
        )
