"""Insertion orchestrator: offsets, call sequence and failure classification."""

from typing import Any

import pytest

from eznote.core.exceptions import (
    AuthExpiredError,
    EznoteError,
    InvariantViolationError,
    NoDocumentSelected,
    PartialInsertion,
    RemoteServiceError,
    SessionExpired,
    SignInRequired,
)
from eznote.core.types import (
    CapturedAsset,
    InsertionCommand,
    InsertionState,
    ListKind,
    Result,
    SelectionPayload,
    Success,
    TextRange,
)
from eznote.pipeline.base import BaseAsyncHandler
from eznote.pipeline.credentials import CredentialedExecutor
from eznote.pipeline.orchestrator import InsertionOrchestrator
from eznote.pipeline.staging import AssetStager
from tests.fakes import FakeCredentialProvider

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]

TS = "2024-01-01T00:00:00Z"
URL = "https://example.com/article"


def _payload(text: str = "- first\n- second", url: str = URL) -> SelectionPayload:
    return SelectionPayload(text=text, page_url=url, page_title="Doc", timestamp=TS)


def _asset() -> CapturedAsset:
    return CapturedAsset(data=b"\x89PNG fake", width=400, height=300)


@pytest.fixture
def build(docs, storage, provider, settings, frozen_config, notifier):
    def _build(*, provider_override=None, stages=None) -> InsertionOrchestrator:
        executor = CredentialedExecutor(provider_override or provider)
        stager = AssetStager(storage.bind, settings, frozen_config)
        return InsertionOrchestrator(
            executor=executor,
            docs_factory=docs.bind,
            stager=stager,
            config=frozen_config,
            notifier=notifier,
            stages=stages,
        )

    return _build


# --- Text highlights ---


async def test_append_recovers_start_from_new_end_index(build, docs, notifier):
    outcome = await build().execute(InsertionCommand(_payload(), "doc-1"))

    body = "\nfirst\nsecond\nSource: Doc 2024-01-01T00:00:00Z"
    assert outcome.ok
    assert outcome.state is InsertionState.DONE
    assert outcome.start_index == 50
    assert docs.method_names == [
        "insert_at",
        "get_end_index",
        "apply_list_style",
        "apply_link_style",
    ]
    assert docs.calls_to("insert_at") == [("doc-1", None, body, None)]
    # Both bullets form one span, offset by the recovered start
    assert docs.calls_to("apply_list_style") == [
        ("doc-1", [(TextRange(51, 64), ListKind.BULLET)])
    ]
    assert docs.calls_to("apply_link_style") == [("doc-1", TextRange(72, 75), URL)]
    assert notifier.messages == [
        ("Plugged in", "Highlight was added to your connected Google Doc.")
    ]


async def test_explicit_anchor_uses_index_without_end_lookup(build, docs):
    outcome = await build().execute(
        InsertionCommand(_payload(), "doc-1", insertion_index=49)
    )

    assert outcome.start_index == 49
    assert "get_end_index" not in docs.method_names
    assert docs.calls_to("insert_at")[0][1] == 49
    assert docs.calls_to("apply_list_style")[0][1] == [
        (TextRange(50, 63), ListKind.BULLET)
    ]
    assert docs.calls_to("apply_link_style")[0][1] == TextRange(71, 74)


async def test_list_call_is_skipped_without_list_lines(build, docs):
    await build().execute(InsertionCommand(_payload("just a quote"), "doc-1"))

    assert docs.method_names == ["insert_at", "get_end_index", "apply_link_style"]


async def test_bullet_and_numbered_spans_in_one_call(build, docs):
    await build().execute(
        InsertionCommand(_payload("- a\n- b\n1. c\n2. d"), "doc-1", insertion_index=1)
    )

    (call,) = docs.calls_to("apply_list_style")
    assert call[1] == [
        (TextRange(2, 6), ListKind.BULLET),
        (TextRange(6, 10), ListKind.NUMBERED),
    ]


async def test_emoji_before_a_bullet_keeps_append_offsets(build, docs):
    outcome = await build().execute(
        InsertionCommand(_payload("Great \N{GRINNING FACE}\n- item"), "doc-1")
    )

    # The emoji takes two document indices
    assert docs.end_index == 50 + 1 + 13 + len("\nSource: Doc ") + len(TS)
    assert outcome.start_index == 50
    assert docs.calls_to("apply_list_style") == [
        ("doc-1", [(TextRange(60, 65), ListKind.BULLET)])
    ]
    assert docs.calls_to("apply_link_style") == [("doc-1", TextRange(73, 76), URL)]


async def test_emoji_inside_a_bullet_line(build, docs):
    await build().execute(
        InsertionCommand(_payload("- \N{GRINNING FACE} item\n- next"), "doc-1")
    )

    assert docs.calls_to("apply_list_style") == [
        ("doc-1", [(TextRange(51, 64), ListKind.BULLET)])
    ]
    assert docs.calls_to("apply_link_style") == [("doc-1", TextRange(72, 75), URL)]


async def test_missing_page_url_links_to_placeholder(build, docs):
    await build().execute(InsertionCommand(_payload(url=""), "doc-1"))

    assert docs.calls_to("apply_link_style")[0][2] == "#"


# --- Preconditions ---


@pytest.mark.parametrize("document_id", [None, "", "   ", 42, {"id": "doc-1"}])
async def test_no_document_selected(build, docs, notifier, document_id):
    outcome = await build().execute(InsertionCommand(_payload(), document_id))

    assert isinstance(outcome.error, NoDocumentSelected)
    assert outcome.reached is InsertionState.IDLE
    assert docs.calls == []
    assert [t for t, _ in notifier.messages] == ["No document selected"]


async def test_signed_out_user_gets_sign_in_required(build, docs, notifier):
    outcome = await build(provider_override=FakeCredentialProvider(None)).execute(
        InsertionCommand(_payload(), "doc-1")
    )

    assert isinstance(outcome.error, SignInRequired)
    assert docs.calls == []
    assert [t for t, _ in notifier.messages] == ["Sign in required"]


# --- Session expiry ---


async def test_auth_failure_on_insert_ends_in_session_expired(
    build, docs, provider, credential, notifier
):
    docs.fail_on("insert_at", AuthExpiredError())

    outcome = await build().execute(InsertionCommand(_payload(), "doc-1"))

    assert outcome.state is InsertionState.FAILED
    assert isinstance(outcome.error, SessionExpired)
    assert outcome.reached is InsertionState.INDEX_RESOLVED
    # Exactly one invalidation and no second attempt with another credential
    assert provider.invalidated == [credential]
    assert docs.method_names == ["insert_at"]
    assert docs.credentials == [credential]
    assert [t for t, _ in notifier.messages] == ["Session expired"]


async def test_auth_failure_after_submit_is_session_expired_not_partial(
    build, docs, provider, notifier
):
    docs.fail_on("apply_link_style", AuthExpiredError())

    outcome = await build().execute(InsertionCommand(_payload(), "doc-1"))

    assert isinstance(outcome.error, SessionExpired)
    assert outcome.reached is InsertionState.SUBMITTED
    assert len(provider.invalidated) == 1
    assert len(notifier.messages) == 1


# --- Partial insertion ---


async def test_list_style_failure_is_partial_insertion(build, docs, notifier):
    cause = RemoteServiceError("Invalid range", status=400)
    docs.fail_on("apply_list_style", cause)

    outcome = await build().execute(InsertionCommand(_payload(), "doc-1"))

    assert isinstance(outcome.error, PartialInsertion)
    assert outcome.error.cause is cause
    assert outcome.error.reached is InsertionState.SUBMITTED
    assert outcome.start_index == 50
    # The link call is not attempted once the sequence broke
    assert "apply_link_style" not in docs.method_names
    (title, message), = notifier.messages
    assert title == "Partially added"
    assert "Invalid range" in message


async def test_end_index_failure_after_insert_is_partial(build, docs):
    docs.fail_on("get_end_index", RemoteServiceError("backend error", status=500))

    outcome = await build().execute(InsertionCommand(_payload(), "doc-1"))

    assert isinstance(outcome.error, PartialInsertion)
    assert outcome.start_index is None


async def test_insert_failure_is_not_partial(build, docs, notifier):
    docs.fail_on("insert_at", RemoteServiceError("Document not found", status=404))

    outcome = await build().execute(InsertionCommand(_payload(), "doc-1"))

    assert type(outcome.error) is RemoteServiceError
    assert outcome.reached is InsertionState.INDEX_RESOLVED
    assert notifier.messages == [("Could not plug in", "Document not found")]


# --- Images ---


async def test_image_is_staged_then_inserted_with_caption(build, docs, storage, notifier):
    outcome = await build().execute(
        InsertionCommand(_payload(""), "doc-1", asset=_asset())
    )

    caption = f"\nSource: Doc {TS}"
    assert outcome.ok
    (upload,) = storage.calls_to("upload")
    assert upload[0]["name"].startswith("eznote-snip-")
    assert upload[0]["name"].endswith(".png")
    (insert,) = docs.calls_to("insert_at")
    assert insert[:3] == ("doc-1", None, caption)
    image = insert[3]
    assert image.uri == "https://drive.example/direct"
    assert (image.width_pt, image.height_pt) == (225, 169)
    # 50 + caption + one index for the image, minus the caption
    assert outcome.start_index == 51
    assert docs.calls_to("apply_link_style") == [("doc-1", TextRange(60, 63), URL)]
    assert "apply_list_style" not in docs.method_names
    assert notifier.messages == [
        ("Snip and Plug", "Screenshot was added to your Google Doc.")
    ]


async def test_image_at_explicit_index_puts_caption_after_image(build, docs):
    outcome = await build().execute(
        InsertionCommand(_payload(""), "doc-1", insertion_index=10, asset=_asset())
    )

    assert docs.calls_to("insert_at")[0][1] == 10
    assert outcome.start_index == 11
    assert docs.calls_to("apply_link_style")[0][1] == TextRange(20, 23)


async def test_staging_auth_failure_stops_before_insert(build, docs, storage, provider):
    storage.fail_on("upload", AuthExpiredError())

    outcome = await build().execute(
        InsertionCommand(_payload(""), "doc-1", asset=_asset())
    )

    assert isinstance(outcome.error, SessionExpired)
    assert outcome.reached is InsertionState.IDLE
    assert docs.calls == []
    assert len(provider.invalidated) == 1


async def test_unfetchable_image_gets_friendly_message(build, docs, notifier):
    docs.fail_on(
        "insert_at",
        RemoteServiceError(
            "Invalid requests[0].insertInlineImage: Unable to download all specified images.",
            status=400,
        ),
    )

    outcome = await build().execute(
        InsertionCommand(_payload(""), "doc-1", asset=_asset())
    )

    assert outcome.reached is InsertionState.INDEX_RESOLVED
    assert notifier.messages == [
        (
            "Snip and Plug failed",
            "Google Docs could not use the image link. "
            "Try again in a moment or use a smaller selection.",
        )
    ]


# --- Pipeline invariants ---


class NotAResultStage(BaseAsyncHandler[Any, Any, EznoteError]):
    async def handle(self, command: Any) -> Result[Any, EznoteError]:
        return command  # type: ignore[return-value]


class PassThroughStage(BaseAsyncHandler[Any, Any, EznoteError]):
    async def handle(self, command: Any) -> Result[Any, EznoteError]:
        return Success(command)


async def test_stage_returning_non_result_is_an_invariant_violation(build, notifier):
    orchestrator = build(stages=[PassThroughStage(), NotAResultStage()])

    outcome = await orchestrator.execute(InsertionCommand(_payload(), "doc-1"))

    assert isinstance(outcome.error, InvariantViolationError)
    assert outcome.error.stage_name == "NotAResultStage"
    assert len(notifier.messages) == 1


async def test_default_stage_order_and_durations(build):
    orchestrator = build()

    outcome = await orchestrator.execute(InsertionCommand(_payload(), "doc-1"))

    assert orchestrator.stage_names == (
        "AssetStage",
        "IndexResolutionStage",
        "SubmitStage",
        "StartRecoveryStage",
        "ListStyleStage",
        "LinkStyleStage",
    )
    assert set(outcome.durations) == set(orchestrator.stage_names)
