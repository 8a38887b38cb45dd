"""Base protocol for pipeline handlers."""

from typing import Protocol, TypeVar

from eznote.core.exceptions import EznoteError
from eznote.core.types import Result

# Contravariant input (handlers can accept supertypes), invariant output
T_In = TypeVar("T_In", contravariant=True)
T_Out = TypeVar("T_Out")
T_Error = TypeVar("T_Error", bound=EznoteError)


class BaseAsyncHandler(Protocol[T_In, T_Out, T_Error]):
    """Protocol for asynchronous insertion stages.

    Each stage moves an attempt one step along the state machine and
    returns the advanced attempt, or the error that stopped it.
    """

    async def handle(self, command: T_In) -> Result[T_Out, T_Error]:
        """Process an attempt.

        Args:
            command: The attempt as left by the previous stage.

        Returns:
            A Result object containing either the advanced attempt or an error.
        """
        ...
