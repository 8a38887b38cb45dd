"""The entry point that turns one captured selection into one document edit.

An attempt moves through ``IDLE -> ASSET_PENDING (image only) ->
INDEX_RESOLVED -> SUBMITTED -> STYLED -> DONE``; any stage may end it in
``FAILED``. All stages run inside a single `CredentialedExecutor.run`, so an
authentication rejection anywhere invalidates the credential once and ends
the attempt with `SessionExpired`.

Remote documents offer no transaction spanning several calls. When a call
fails after the body was submitted, the text stays in the document and the
attempt fails with `PartialInsertion`; nothing is rolled back.
"""

from __future__ import annotations

import dataclasses
import logging
from time import perf_counter
from typing import TYPE_CHECKING, Any

from eznote.core.exceptions import (
    AuthExpiredError,
    EznoteError,
    InvariantViolationError,
    NoDocumentSelected,
    PartialInsertion,
    SessionExpired,
)
from eznote.core.types import (
    DocumentAnchor,
    Failure,
    InsertionAttempt,
    InsertionOutcome,
    InsertionState,
    Success,
)
from eznote.formatting.formatter import format_caption, format_selection
from eznote.notifications import LoggingNotifier, describe_failure, describe_success
from eznote.pipeline.stages import (
    AssetStage,
    IndexResolutionStage,
    LinkStyleStage,
    ListStyleStage,
    StartRecoveryStage,
    SubmitStage,
)
from eznote.telemetry import TelemetryContext

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from eznote.config import FrozenConfig
    from eznote.core.types import Credential, InsertionCommand, InsertionTransaction
    from eznote.notifications import Notifier
    from eznote.pipeline.base import BaseAsyncHandler
    from eznote.pipeline.credentials import CredentialedExecutor
    from eznote.pipeline.staging import AssetStager
    from eznote.services.base import DocumentService
    from eznote.telemetry import TelemetryContextProtocol

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class _AttemptProgress:
    """How far the current attempt got; survives the exception that ends it."""

    reached: InsertionState = InsertionState.IDLE
    start_index: int | None = None
    durations: dict[str, float] = dataclasses.field(default_factory=dict)


class InsertionOrchestrator:
    """Sequences staging, submission and styling for one insertion at a time.

    The orchestrator keeps no state between attempts; the only thing shared
    across attempts is the snips container id, which lives in the settings
    store behind `AssetStager`.
    """

    def __init__(
        self,
        *,
        executor: CredentialedExecutor,
        docs_factory: Callable[[Credential], DocumentService],
        stager: AssetStager,
        config: FrozenConfig,
        notifier: Notifier | None = None,
        telemetry: TelemetryContextProtocol | None = None,
        stages: Iterable[BaseAsyncHandler[InsertionAttempt, InsertionAttempt, EznoteError]]
        | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            executor: Credential policy wrapping every remote call sequence.
            docs_factory: Builds a document service bound to a credential.
            stager: Uploads screenshots before insertion.
            config: Frozen configuration.
            notifier: Receives exactly one notification per attempt.
            telemetry: Optional telemetry context for stage timings.
            stages: Override the default stage list (tests, introspection).
        """
        self.config = config
        self._executor = executor
        self._notifier: Notifier = notifier or LoggingNotifier()
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()
        self._stages: list[Any] = list(
            stages or self._build_default_stages(docs_factory, stager, config)
        )
        if not self._stages:
            raise ValueError("Stage list may not be empty")

    @staticmethod
    def _build_default_stages(
        docs_factory: Callable[[Credential], DocumentService],
        stager: AssetStager,
        config: FrozenConfig,
    ) -> list[Any]:
        return [
            AssetStage(stager, config),
            IndexResolutionStage(),
            SubmitStage(docs_factory),
            StartRecoveryStage(docs_factory),
            ListStyleStage(docs_factory),
            LinkStyleStage(docs_factory),
        ]

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(type(s).__name__ for s in self._stages)

    async def execute(self, command: InsertionCommand) -> InsertionOutcome:
        """Run one insertion attempt to completion or failure.

        Never raises for taxonomy errors: every terminal state is returned as
        an `InsertionOutcome` and reported through the notifier exactly once.
        """
        progress = _AttemptProgress()
        try:
            anchor = self._resolve_anchor(command)
            transaction = self._format(command)

            async def _operation(credential: Credential) -> InsertionAttempt:
                attempt = InsertionAttempt(
                    command=command,
                    anchor=anchor,
                    transaction=transaction,
                    credential=credential,
                )
                return await self._run_stages(attempt, progress)

            final = await self._executor.run(_operation)
        except EznoteError as e:
            return self._fail(command, progress, e)

        logger.info(
            "Inserted %d characters into %s at index %s",
            final.transaction.length,
            final.anchor.document_id,
            final.start_index,
        )
        self._notifier.notify(*describe_success(image=command.is_image))
        return InsertionOutcome(
            state=InsertionState.DONE,
            reached=InsertionState.STYLED,
            document_id=final.anchor.document_id,
            start_index=final.start_index,
            durations=dict(progress.durations),
        )

    async def _run_stages(
        self, attempt: InsertionAttempt, progress: _AttemptProgress
    ) -> InsertionAttempt:
        current = attempt
        for handler in self._stages:
            stage_name = type(handler).__name__
            with self._telemetry("insertion.stage", stage=stage_name):
                start = perf_counter()
                result = await handler.handle(current)
                progress.durations[stage_name] = perf_counter() - start

            # Guard: handlers must return Success|Failure
            if not isinstance(result, Success | Failure):
                self._telemetry.count("insertion.invariant_violation", stage=stage_name)
                raise InvariantViolationError(
                    "Stage returned a non-Result value; expected Success|Failure.",
                    stage_name=stage_name,
                )

            if isinstance(result, Failure):
                self._telemetry.count("insertion.error", stage=stage_name)
                raise self._classify(result.error, stage_name, progress)

            current = result.value
            if current.state is not progress.reached:
                logger.debug("Attempt %s -> %s", progress.reached.name, current.state.name)
            progress.reached = current.state
            progress.start_index = current.start_index
        return current

    @staticmethod
    def _classify(
        error: Exception, stage_name: str, progress: _AttemptProgress
    ) -> Exception:
        # Auth rejections go back to the executor, which owns the session policy
        if isinstance(error, AuthExpiredError):
            return error
        if progress.reached >= InsertionState.SUBMITTED:
            partial = PartialInsertion(
                f"Content was inserted but {stage_name} failed: {error}",
                reached=progress.reached,
                cause=error,
            )
            partial.__cause__ = error
            return partial
        return error

    @staticmethod
    def _resolve_anchor(command: InsertionCommand) -> DocumentAnchor:
        document_id = command.document_id
        # Host settings stores may hand back ids of any JSON type
        if not isinstance(document_id, str) or not document_id.strip():
            raise NoDocumentSelected("No document selected")
        try:
            return DocumentAnchor(document_id.strip(), command.insertion_index)
        except ValueError as e:
            raise InvariantViolationError(
                f"Invalid insertion anchor: {e}", stage_name="anchor"
            ) from e

    @staticmethod
    def _format(command: InsertionCommand) -> InsertionTransaction:
        payload = command.payload
        if command.is_image:
            return format_caption(payload.page_title, payload.timestamp)
        return format_selection(payload)

    def _fail(
        self, command: InsertionCommand, progress: _AttemptProgress, error: EznoteError
    ) -> InsertionOutcome:
        if isinstance(error, SessionExpired):
            self._telemetry.count("insertion.session_expired")
            logger.warning(
                "Insertion aborted by expired session after %s", progress.reached.name
            )
        else:
            logger.warning(
                "Insertion failed after %s: %s", progress.reached.name, error
            )
        self._notifier.notify(*describe_failure(error, image=command.is_image))
        return InsertionOutcome(
            state=InsertionState.FAILED,
            reached=progress.reached,
            document_id=command.document_id,
            start_index=progress.start_index,
            error=error,
            durations=dict(progress.durations),
        )
