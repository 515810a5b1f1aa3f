from enum import Enum


class FirestoreOperators(str, Enum):
    LT = "<"
    LTE = "<="
    EQ = "=="
    NE = "!="
    GT = ">"
    GTE = ">="
    IN = "in"
    NOT_IN = "not-in"
    ARRAY_CONTAINS = "array_contains"
    ARRAY_CONTAINS_ANY = "array_contains_any"


class OrderByDirection(str, Enum):
    DESCENDING = "DESCENDING"
    ASCENDING = "ASCENDING"

    def __str__(self):
        return self.value


class CursorKind(str, Enum):
    """Query boundary kinds; values are the SDK method names."""

    START_AT = "start_at"
    START_AFTER = "start_after"
    END_AT = "end_at"
    END_BEFORE = "end_before"

    def __str__(self):
        return self.value


class DefaultDirective(str, Enum):
    SERVER_TIMESTAMP = "serverTimestamp"
