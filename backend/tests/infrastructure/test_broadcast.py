"""Band Channel Hub — per-band fan-out to subscriber queues.

Tests cover:
    - subscribers of a band receive its events in publish order
    - other bands' subscribers receive nothing
    - full queues drop events for that subscriber only
    - leaving the subscription removes the queue
"""

from uuid import uuid4

from scheduler.infrastructure.broadcast import BandChannelHub


async def test_events_delivered_in_order():
    hub, band = BandChannelHub(), uuid4()
    async with hub.subscribe(band) as queue:
        hub.publish(band, {"type": "a"})
        hub.publish(band, {"type": "b"})
        assert [queue.get_nowait()["type"], queue.get_nowait()["type"]] == ["a", "b"]


async def test_other_bands_are_isolated():
    hub, band, other = BandChannelHub(), uuid4(), uuid4()
    async with hub.subscribe(other) as queue:
        hub.publish(band, {"type": "a"})
        assert queue.empty()


async def test_full_queue_drops_for_that_subscriber_only():
    hub, band = BandChannelHub(queue_size=1), uuid4()
    async with hub.subscribe(band) as slow, hub.subscribe(band) as fast:
        hub.publish(band, {"type": "first"})
        fast.get_nowait()
        hub.publish(band, {"type": "second"})
        assert slow.qsize() == 1
        assert slow.get_nowait()["type"] == "first"
        assert fast.get_nowait()["type"] == "second"


async def test_publish_without_subscribers_is_noop():
    BandChannelHub().publish(uuid4(), {"type": "a"})


async def test_unsubscribe_on_exit():
    hub, band = BandChannelHub(), uuid4()
    async with hub.subscribe(band):
        assert hub.subscriber_count(band) == 1
    assert hub.subscriber_count(band) == 0
