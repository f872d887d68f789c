"""Tagged success/failure container used for every fallible operation.

A ``Result`` is either ``Success(value)`` or ``Failure(error)``. Pipelines of
dependent steps are expressed with ``bind``/``abind``: the first failure
short-circuits the rest and is returned unchanged.

    result = await (await get_admin_token()).abind(create_user)
    match result:
        case Success(value=ref): ...
        case Failure(error=error): ...
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar, Union

from identity_broker.models.errors import BrokerError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return False

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        """Transform the carried value."""
        return Success(fn(self.value))

    def bind(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        """Continue the pipeline with a step that may itself fail."""
        return fn(self.value)

    async def abind(self, fn: Callable[[T], Awaitable["Result[U]"]]) -> "Result[U]":
        """Continue the pipeline with an awaitable step."""
        return await fn(self.value)


@dataclass(frozen=True)
class Failure:
    """Failed outcome carrying a typed error."""

    error: BrokerError

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_failure(self) -> bool:
        return True

    @property
    def message(self) -> str:
        return self.error.message

    def map(self, fn: Callable) -> "Failure":
        return self

    def bind(self, fn: Callable) -> "Failure":
        return self

    async def abind(self, fn: Callable) -> "Failure":
        return self


Result = Union[Success[T], Failure]
