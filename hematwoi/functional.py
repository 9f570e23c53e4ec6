from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, Optional, TypeVar

from hematwoi.domain import Account, Category

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):
    """Optional value: ``Some(x)`` or ``Nothing()``."""

    @abstractmethod
    def is_some(self) -> bool:
        ...

    def is_none(self) -> bool:
        return not self.is_some()

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value)) if self.is_some() else Nothing()

    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        return f(self._value) if self.is_some() else Nothing()

    def get_or_else(self, default: T) -> T:
        return self._value if self.is_some() else default


class Some(Maybe[T]):
    __slots__ = ("_value",)

    def __init__(self, value: T):
        self._value = value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):
    __slots__ = ()

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):
    """Result of a fallible step: ``Right(value)`` or ``Left(error)``."""

    @abstractmethod
    def is_right(self) -> bool:
        ...

    def is_left(self) -> bool:
        return not self.is_right()

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value)) if self.is_right() else self

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value) if self.is_right() else self

    def get_or_else(self, default: T) -> T:
        return self._value if self.is_right() else default

    def get_error(self) -> E:
        if self.is_right():
            raise ValueError("Right has no error")
        return self._error


class Right(Either[E, T]):
    __slots__ = ("_value",)

    def __init__(self, value: T):
        self._value = value

    def is_right(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):
    __slots__ = ("_error",)

    def __init__(self, error: E):
        self._error = error

    def is_right(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def safe_account(accounts: Iterable[Account], account_id: Optional[str]) -> Maybe[Account]:
    for acc in accounts:
        if account_id and acc.id == account_id:
            return Some(acc)
    return Nothing()


def safe_category(cats: Iterable[Category], cat_id: Optional[str]) -> Maybe[Category]:
    for cat in cats:
        if cat_id and cat.id == cat_id:
            return Some(cat)
    return Nothing()


def compose(*funcs):
    """compose(f, g, h)(x) == f(g(h(x)))"""
    def _composed(x):
        for f in reversed(funcs):
            x = f(x)
        return x
    return _composed


def pipe(x, *funcs):
    """pipe(x, f, g, h) == h(g(f(x)))"""
    for f in funcs:
        x = f(x)
    return x
