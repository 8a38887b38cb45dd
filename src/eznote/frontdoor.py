"""Convenience wiring for hosts.

`create_services` builds the full object graph (adapters, credential policy,
stager, indexer, orchestrator, hub) over one shared httpx client. Hosts that
need finer control can construct the components directly.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from eznote.capture.session import SnipSession
from eznote.config import FrozenConfig, resolve_config
from eznote.core.types import InsertionCommand, InsertionOutcome, SelectionPayload
from eznote.formatting.formatter import timestamp_now
from eznote.hub import MessageHub
from eznote.notifications import LoggingNotifier
from eznote.pipeline.credentials import CredentialedExecutor
from eznote.pipeline.orchestrator import InsertionOrchestrator
from eznote.pipeline.staging import AssetStager
from eznote.pipeline.structure import DocumentStructureIndexer
from eznote.services.google_docs import GoogleDocsService
from eznote.services.google_drive import GoogleDriveStorage
from eznote.services.identity import StoredCredentialProvider
from eznote.services.settings import SettingsKeys
from eznote.telemetry import TelemetryContext

if TYPE_CHECKING:
    import httpx

    from eznote.capture.session import Overlay, ViewportCapturer
    from eznote.core.types import Credential
    from eznote.notifications import Notifier
    from eznote.services.base import SettingsStore
    from eznote.telemetry import TelemetryReporter


@dataclasses.dataclass(frozen=True)
class EznoteServices:
    config: FrozenConfig
    settings: SettingsStore
    credentials: StoredCredentialProvider
    executor: CredentialedExecutor
    stager: AssetStager
    indexer: DocumentStructureIndexer
    orchestrator: InsertionOrchestrator
    hub: MessageHub


def create_services(
    client: httpx.AsyncClient,
    settings: SettingsStore,
    *,
    cfg: FrozenConfig | None = None,
    notifier: Notifier | None = None,
    reporters: tuple[TelemetryReporter, ...] = (),
    overlay: Overlay | None = None,
    capturer: ViewportCapturer | None = None,
) -> EznoteServices:
    """Wire the pipeline over ``client`` and ``settings``.

    Args:
        client: Shared async HTTP client (see `build_http_client`).
        settings: The host's persistent settings store.
        cfg: Optional frozen configuration. If omitted, `resolve_config()` is used.
        notifier: Receives user-facing notifications; logs them by default.
        reporters: Telemetry reporters, active when telemetry is enabled.
        overlay: Host overlay; together with ``capturer`` enables snipping.
        capturer: Host viewport capture.

    Returns:
        The wired components.
    """
    # This is the only place where ambient configuration is resolved.
    config = cfg if cfg is not None else resolve_config().to_frozen()
    telemetry = TelemetryContext(*reporters, enabled=config.telemetry_enabled or None)
    notifier = notifier or LoggingNotifier()

    def docs_factory(credential: Credential) -> GoogleDocsService:
        return GoogleDocsService(client, credential, config, telemetry)

    def drive_factory(credential: Credential) -> GoogleDriveStorage:
        return GoogleDriveStorage(client, credential, config, telemetry)

    credentials = StoredCredentialProvider(settings)
    executor = CredentialedExecutor(credentials, telemetry=telemetry)
    stager = AssetStager(drive_factory, settings, config, telemetry)
    indexer = DocumentStructureIndexer(docs_factory, config)
    orchestrator = InsertionOrchestrator(
        executor=executor,
        docs_factory=docs_factory,
        stager=stager,
        config=config,
        notifier=notifier,
        telemetry=telemetry,
    )

    snips = None
    if overlay is not None and capturer is not None:
        snips = SnipSession(
            overlay=overlay,
            capturer=capturer,
            orchestrator=orchestrator,
            settings=settings,
            config=config,
            notifier=notifier,
        )

    hub = MessageHub(
        settings=settings,
        credentials=credentials,
        executor=executor,
        orchestrator=orchestrator,
        indexer=indexer,
        docs_factory=docs_factory,
        drive_factory=drive_factory,
        snips=snips,
    )
    return EznoteServices(
        config=config,
        settings=settings,
        credentials=credentials,
        executor=executor,
        stager=stager,
        indexer=indexer,
        orchestrator=orchestrator,
        hub=hub,
    )


async def plug_highlight(
    services: EznoteServices,
    text: str,
    *,
    page_url: str = "",
    page_title: str = "",
    insertion_index: int | None = None,
) -> InsertionOutcome:
    """Insert a text highlight into the selected document.

    Example:
        ```python
        async with build_http_client(cfg) as client:
            services = create_services(client, JSONSettingsStore("settings.json"))
            outcome = await plug_highlight(
                services, "- first\\n- second", page_title="Doc"
            )
        ```
    """
    document_id = await services.settings.get(SettingsKeys.SELECTED_DOC_ID)
    payload = SelectionPayload(
        text=text, page_url=page_url, page_title=page_title, timestamp=timestamp_now()
    )
    return await services.orchestrator.execute(
        InsertionCommand(
            payload=payload, document_id=document_id, insertion_index=insertion_index
        )
    )
