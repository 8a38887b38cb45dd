"""Asset staging: container memoization, access policy and URL fallbacks."""

import pytest

from eznote.core.exceptions import AuthExpiredError
from eznote.pipeline.staging import AssetStager
from eznote.services.settings import InMemorySettingsStore, SettingsKeys
from tests.fakes import FakeObjectStorage

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


@pytest.fixture
def store() -> InMemorySettingsStore:
    return InMemorySettingsStore()


async def test_container_is_created_once_then_reused(store, frozen_config, credential, png_factory):
    storage = FakeObjectStorage()
    stager = AssetStager(storage.bind, store, frozen_config)
    png = png_factory(4, 4)

    await stager.stage(credential, png, "a.png")
    await stager.stage(credential, png, "b.png")

    assert storage.calls_to("create_container") == [("Research Snips",)]
    assert await store.get(SettingsKeys.SNIPS_FOLDER_ID) == "folder-research-snips"
    assert [c for _, _, c in storage.uploads] == ["folder-research-snips"] * 2


async def test_stored_container_id_skips_creation(store, frozen_config, credential):
    await store.set(SettingsKeys.SNIPS_FOLDER_ID, "existing-folder")
    storage = FakeObjectStorage()

    await AssetStager(storage.bind, store, frozen_config).stage(credential, b"png", "a.png")

    assert "create_container" not in storage.method_names
    assert storage.uploads[0][2] == "existing-folder"


async def test_explicit_container_bypasses_memoized_lookup(store, frozen_config, credential):
    storage = FakeObjectStorage()

    await AssetStager(storage.bind, store, frozen_config).stage(
        credential, b"png", "a.png", "explicit"
    )

    assert "create_container" not in storage.method_names
    assert await store.get(SettingsKeys.SNIPS_FOLDER_ID) is None
    assert storage.uploads[0][2] == "explicit"


async def test_steps_run_in_order_with_public_read(store, frozen_config, credential):
    storage = FakeObjectStorage()

    staged = await AssetStager(storage.bind, store, frozen_config).stage(
        credential, b"png", "snip.png"
    )

    assert storage.method_names == ["create_container", "upload", "set_public_readable"]
    assert storage.calls_to("upload")[0][0] == {"name": "snip.png", "mimeType": "image/png"}
    assert staged.asset_id == "file-1"
    assert staged.fetchable_url == "https://drive.example/direct"


async def test_missing_upload_link_falls_back_to_lookup(store, frozen_config, credential):
    storage = FakeObjectStorage(upload_url=None, direct_url="https://drive.example/looked-up")

    staged = await AssetStager(storage.bind, store, frozen_config).stage(
        credential, b"png", "a.png"
    )

    assert storage.calls_to("get_direct_url") == [("file-1",)]
    assert staged.fetchable_url == "https://drive.example/looked-up"


async def test_missing_links_fall_back_to_canonical_url(store, frozen_config, credential):
    storage = FakeObjectStorage(upload_url=None, direct_url=None)

    staged = await AssetStager(storage.bind, store, frozen_config).stage(
        credential, b"png", "a.png"
    )

    assert staged.fetchable_url == "https://drive.google.com/uc?export=view&id=file-1"


async def test_auth_failure_propagates_as_auth_expired(store, frozen_config, credential):
    storage = FakeObjectStorage()
    storage.fail_on("set_public_readable", AuthExpiredError())

    with pytest.raises(AuthExpiredError):
        await AssetStager(storage.bind, store, frozen_config).stage(
            credential, b"png", "a.png"
        )


async def test_no_container_when_disabled(store, frozen_config, credential):
    storage = FakeObjectStorage()

    await AssetStager(storage.bind, store, frozen_config).stage(
        credential, b"png", "a.png", use_container=False
    )

    assert storage.uploads[0][2] is None
    assert "create_container" not in storage.method_names
