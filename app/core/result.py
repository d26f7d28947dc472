import functools
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar, Union

from app.core.errors import AppError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: AppError

    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error


Result = Union[Ok[T], Err]


def as_result(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[Result]]:
    """Turn an async function raising AppError into one returning Ok / Err."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs) -> Result:
        try:
            return Ok(await func(*args, **kwargs))
        except AppError as e:
            return Err(e)

    return wrapper
