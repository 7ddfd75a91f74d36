"""Path-scoped list operations."""

from typing import Any, Protocol


class ListTarget(Protocol):
    """Anything exposing the engine's list primitives."""

    def list_append(self, path: str, row: Any) -> Any: ...

    def list_insert(self, path: str, index: int, row: Any) -> Any: ...

    def list_remove(self, path: str, index: int) -> Any: ...

    def list_move(self, path: str, from_index: int, to_index: int) -> Any: ...

    def list_swap(self, path: str, a: int, b: int) -> Any: ...

    def list_replace(self, path: str, index: int, row: Any) -> Any: ...

    def list_clear(self, path: str) -> Any: ...


class ListOperator:
    """
    Binds one list path so render code does not repeat it on every call.

    Each method forwards its arguments unchanged to ``list_<op>(path, ...)``
    on the target. Bounds checks and change-event shape belong to the engine.
    """

    def __init__(self, target: ListTarget, path: str) -> None:
        self.target = target
        self.path = path

    def append(self, row: Any) -> Any:
        return self.target.list_append(self.path, row)

    def insert(self, index: int, row: Any) -> Any:
        return self.target.list_insert(self.path, index, row)

    def remove(self, index: int) -> Any:
        return self.target.list_remove(self.path, index)

    def move(self, from_index: int, to_index: int) -> Any:
        return self.target.list_move(self.path, from_index, to_index)

    def swap(self, a: int, b: int) -> Any:
        return self.target.list_swap(self.path, a, b)

    def replace(self, index: int, row: Any) -> Any:
        return self.target.list_replace(self.path, index, row)

    def clear(self) -> Any:
        return self.target.list_clear(self.path)

    def __repr__(self) -> str:
        return f"ListOperator(path={self.path!r})"
