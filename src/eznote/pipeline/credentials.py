"""Single-attempt credential policy for remote call sequences.

`CredentialedExecutor.run` fetches the stored credential, runs the operation
once, and on an authentication rejection forgets that credential and raises
`SessionExpired`. It never acquires a different credential on its own:
picking an account happens only in the host's interactive sign-in flow.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, TypeVar

from eznote.core.exceptions import AuthExpiredError, SessionExpired, SignInRequired
from eznote.telemetry import TelemetryContext

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from eznote.core.types import Credential
    from eznote.services.base import CredentialProvider
    from eznote.telemetry import TelemetryContextProtocol

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CredentialedExecutor:
    """Runs credential-parameterized operations under the sign-in policy."""

    def __init__(
        self,
        provider: CredentialProvider,
        *,
        on_reauth_required: Callable[[], object] | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            provider: Source of the stored credential.
            on_reauth_required: Called once when a credential was rejected, so
                the host can flip its UI to the signed-out state. May be async.
            telemetry: Optional telemetry context for counters.
        """
        self._provider = provider
        self._on_reauth_required = on_reauth_required
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()

    async def run(self, operation: Callable[[Credential], Awaitable[T]]) -> T:
        """Run ``operation`` exactly once with the current credential.

        Raises:
            SignInRequired: No credential is stored.
            SessionExpired: The operation's remote call rejected the credential.
        """
        credential = await self._provider.get_valid_credential()
        if credential is None:
            raise SignInRequired("Sign in required")
        try:
            return await operation(credential)
        except AuthExpiredError as e:
            await self._provider.invalidate(credential)
            self._telemetry.count("credentials.invalidated")
            logger.warning("Credential rejected (HTTP %s); re-authentication required", e.status)
            if self._on_reauth_required is not None:
                try:
                    signal = self._on_reauth_required()
                    if inspect.isawaitable(signal):
                        await signal
                except Exception:
                    # The hook only updates host UI; the caller still sees SessionExpired
                    logger.exception("Re-authentication hook failed")
            raise SessionExpired("Session expired. Please sign in again.") from e
