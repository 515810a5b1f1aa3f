import copy
import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Union

from google.cloud.firestore_v1 import transforms

from .exceptions import UnsupportedOperationError
from .operations import (
    ArrayRemove,
    ArrayUnion,
    DeleteField,
    Increment,
    LiteralValue,
    Operation,
    ServerTimestamp,
)

logger = logging.getLogger(__name__)


class UpdateBuilder:
    """
    Immutable accumulator of field updates for one document.

    Keys are dot-delimited field paths (``"address.city"``) so nested
    fields can be changed without touching their siblings.  Setting the same
    path twice keeps only the last operation.  Nothing is written until
    :meth:`commit` is awaited, which sends a single ``update()`` call.
    """

    def __init__(self, document_ref):
        self._document_ref = document_ref
        self._operations: Dict[str, Operation] = {}

    @property
    def document_ref(self):
        return self._document_ref

    @property
    def operations(self) -> Mapping[str, Operation]:
        return MappingProxyType(self._operations)

    # --------------------------------------------------------------------------
    # Accumulation
    # --------------------------------------------------------------------------
    def _set_operation(self, field_path: str, operation: Operation) -> "UpdateBuilder":
        builder = copy.copy(self)
        builder._operations = {**self._operations, field_path: operation}
        return builder

    def set_field(self, field_path: str, value: Any) -> "UpdateBuilder":
        return self._set_operation(field_path, LiteralValue(value=value))

    def increment(self, field_path: str, delta: Union[int, float]) -> "UpdateBuilder":
        return self._set_operation(field_path, Increment(delta=delta))

    def union_array(self, field_path: str, values: Iterable[Any]) -> "UpdateBuilder":
        return self._set_operation(field_path, ArrayUnion(values=tuple(values)))

    def remove_from_array(self, field_path: str, values: Iterable[Any]) -> "UpdateBuilder":
        return self._set_operation(field_path, ArrayRemove(values=tuple(values)))

    def clear_field(self, field_path: str) -> "UpdateBuilder":
        return self._set_operation(field_path, DeleteField())

    def set_server_timestamp(self, field_path: str) -> "UpdateBuilder":
        return self._set_operation(field_path, ServerTimestamp())

    # --------------------------------------------------------------------------
    # Sentinel helpers (override to target another SDK flavour)
    # --------------------------------------------------------------------------
    def _increment_value(self, delta: Union[int, float]):
        return transforms.Increment(delta)

    def _array_union_value(self, values):
        return transforms.ArrayUnion(list(values))

    def _array_remove_value(self, values):
        return transforms.ArrayRemove(list(values))

    def _delete_value(self):
        return transforms.DELETE_FIELD

    def _server_timestamp_value(self):
        return transforms.SERVER_TIMESTAMP

    def _resolve(self, field_path: str, operation: Operation) -> Any:
        if isinstance(operation, LiteralValue):
            return operation.value
        elif isinstance(operation, Increment):
            return self._increment_value(operation.delta)
        elif isinstance(operation, ArrayUnion):
            return self._array_union_value(operation.values)
        elif isinstance(operation, ArrayRemove):
            return self._array_remove_value(operation.values)
        elif isinstance(operation, DeleteField):
            return self._delete_value()
        elif isinstance(operation, ServerTimestamp):
            return self._server_timestamp_value()
        raise UnsupportedOperationError(field_path, operation)

    @staticmethod
    def _is_noop(operation: Operation) -> bool:
        return isinstance(operation, (ArrayUnion, ArrayRemove)) and not operation.values

    def update_data(self) -> Dict[str, Any]:
        """
        The payload ``commit`` would send, with sentinels resolved.

        Array unions and removals with no values change nothing and are left
        out; Firestore rejects empty array transforms.
        """
        return {
            field_path: self._resolve(field_path, operation)
            for field_path, operation in self._operations.items()
            if not self._is_noop(operation)
        }

    # --------------------------------------------------------------------------
    # Commit
    # --------------------------------------------------------------------------
    async def commit(self) -> None:
        """
        Send the accumulated updates in one ``update()`` call.

        A builder with nothing to send (no operations, or only empty array
        unions and removals) sends nothing and only logs a warning.  Errors from
        Firestore (missing document, permissions, ...) propagate unchanged.
        """
        update_data = self.update_data()
        if not update_data:
            logger.warning(
                f"Update commit called with no changes specified for "
                f"{getattr(self._document_ref, 'path', self._document_ref)}"
            )
            return

        logger.debug(f"Update: {getattr(self._document_ref, 'path', '?')} fields={list(update_data)}")
        await self._document_ref.update(update_data)
