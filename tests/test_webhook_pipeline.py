from __future__ import annotations

import pytest

from app.clients.sqlite_store import SQLiteStore
from app.core.errors import PersistenceError
from app.schemas import DeliveryOutcome, DeliveryReport, PushPayload
from app.services import DeviceDirectory, EventClassifier, NotificationPipeline, NotificationStore

pytestmark = pytest.mark.anyio("asyncio")

EVENT = {"event": "media_created", "data": {"media_id": "m1", "title": "Clip A"}}


class FlakyLinkStore(NotificationStore):
    """Notification store whose link writes fail for chosen devices."""

    def __init__(self, store: SQLiteStore, failing_device_ids: set[str]) -> None:
        super().__init__(store)
        self.failing_device_ids = failing_device_ids

    async def link_device(self, notification_id: str, device_internal_id: str):
        if device_internal_id in self.failing_device_ids:
            raise PersistenceError("database is locked")
        return await super().link_device(notification_id, device_internal_id)


class RecordingDispatcher:
    def __init__(self) -> None:
        self.calls: list[tuple[list[str], PushPayload]] = []

    async def dispatch(self, tokens, payload: PushPayload) -> DeliveryReport:
        tokens = list(tokens)
        self.calls.append((tokens, payload))
        return DeliveryReport.from_outcomes(
            [DeliveryOutcome(token=token, success=True, status_code=200) for token in tokens]
        )


@pytest.fixture()
def sqlite_store(tmp_path) -> SQLiteStore:
    return SQLiteStore(str(tmp_path / "pipeline.db"))


async def _register(directory: DeviceDirectory, count: int) -> list[str]:
    devices = [
        await directory.register(f"dev-{index}", f"tok-{index}", "ios") for index in range(count)
    ]
    return [device.id for device in devices]


async def test_one_failed_link_does_not_block_siblings_or_dispatch(sqlite_store) -> None:
    directory = DeviceDirectory(sqlite_store)
    internal_ids = await _register(directory, 3)
    notifications = FlakyLinkStore(sqlite_store, failing_device_ids={internal_ids[1]})
    dispatcher = RecordingDispatcher()
    pipeline = NotificationPipeline(
        classifier=EventClassifier(),
        notification_store=notifications,
        device_directory=directory,
        dispatcher=dispatcher,
    )

    result = await pipeline.handle_event(EVENT)

    assert result.links_created == 2
    assert result.links_failed == 1
    assert result.targeted == 3
    assert sorted(dispatcher.calls[0][0]) == ["tok-0", "tok-1", "tok-2"]
    assert dispatcher.calls[0][1].title == "New Video Uploaded"

    assert await notifications.list_for_device("dev-1") == []
    history = await notifications.list_for_device("dev-0")
    assert [item.notification.id for item in history] == [result.notification.id]


async def test_every_link_failing_still_dispatches(sqlite_store) -> None:
    directory = DeviceDirectory(sqlite_store)
    internal_ids = await _register(directory, 2)
    dispatcher = RecordingDispatcher()
    pipeline = NotificationPipeline(
        classifier=EventClassifier(),
        notification_store=FlakyLinkStore(sqlite_store, failing_device_ids=set(internal_ids)),
        device_directory=directory,
        dispatcher=dispatcher,
    )

    result = await pipeline.handle_event(EVENT)

    assert (result.links_created, result.links_failed) == (0, 2)
    assert result.delivery.sent == 2
    assert len(dispatcher.calls) == 1


async def test_ignored_event_touches_nothing(sqlite_store) -> None:
    dispatcher = RecordingDispatcher()
    pipeline = NotificationPipeline(
        classifier=EventClassifier(),
        notification_store=NotificationStore(sqlite_store),
        device_directory=DeviceDirectory(sqlite_store),
        dispatcher=dispatcher,
    )

    result = await pipeline.handle_event({"event": "playlist_updated"})

    assert result.ignored is True
    assert result.notification is None
    assert dispatcher.calls == []
