import logging
import threading

from fractal_engine.rendering.dispatch import EventChannel
from fractal_engine.rendering.events import (ErrorOccurred, EventHandler, RegionRendered,
                                             RenderingBegun, RenderingEnded, StatsGenerated)
from fractal_engine.rendering.partition import Tile
from fractal_engine.rendering.stats import Statistics


def test_events_delivered_in_post_order_on_one_thread(handler):
    channel = EventChannel(handler)
    try:
        channel.post(RenderingBegun(1))
        for x in range(50):
            channel.post(RegionRendered(Tile(x, 0, 1, 1), 1))
        channel.post(ErrorOccurred(ValueError("x"), 1))
        channel.post(RenderingEnded(1))
        channel.post(StatsGenerated(Statistics(), 1))
        assert channel.flush(timeout=10)
    finally:
        channel.close()
    names = handler.names()
    assert names[0] == "begun" and names[-3:] == ["error", "ended", "stats"]
    assert [t.x for t in handler.payloads("region")] == list(range(50))
    assert {c[2] for c in handler.calls} == {"render-events"}


def test_concurrent_posters(handler):
    channel = EventChannel(handler)

    def poster(base):
        for i in range(100):
            channel.post(RegionRendered(Tile(base + i, 0, 1, 1), 1))

    threads = [threading.Thread(target=poster, args=(k * 100,)) for k in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert channel.flush(timeout=10)
    channel.close()
    assert sorted(t.x for t in handler.payloads("region")) == list(range(400))


def test_post_wait_blocks_until_delivered():
    seen = threading.Event()

    class Slow(EventHandler):
        def rendering_begun(self):
            seen.set()

    channel = EventChannel(Slow())
    channel.post(RenderingBegun(1), wait=True)
    assert seen.is_set()
    channel.close()


def test_handler_may_post_and_flush_without_deadlock(handler):
    class Reentrant(EventHandler):
        def rendering_begun(self):
            channel.post(RenderingEnded(1), wait=True)
            assert channel.flush()

        def rendering_ended(self):
            handler.rendering_ended()

    channel = EventChannel(Reentrant())
    channel.post(RenderingBegun(1))
    assert channel.flush(timeout=10)
    channel.close()
    assert handler.names() == ["ended"]


def test_handler_exceptions_are_logged_and_dispatch_continues(handler, caplog):
    class Broken(EventHandler):
        def rendering_begun(self):
            raise RuntimeError("ui bug")

        def rendering_ended(self):
            handler.rendering_ended()

    channel = EventChannel(Broken())
    with caplog.at_level(logging.ERROR, logger="fractal_engine.rendering.dispatch"):
        channel.post(RenderingBegun(1))
        channel.post(RenderingEnded(1))
        assert channel.flush(timeout=10)
    channel.close()
    assert handler.names() == ["ended"]
    assert "Event handler failed" in caplog.text


def test_close_drains_then_drops_later_events(handler):
    channel = EventChannel(handler)
    channel.post(RenderingBegun(1))
    channel.close(timeout=10)
    assert channel.closed
    channel.post(RenderingEnded(1))
    assert channel.flush(timeout=1)
    assert handler.names() == ["begun"]
