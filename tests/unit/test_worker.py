from threading import Event

from ipam_reconciler.models import ServiceSnapshot
from service_events import EventWorker, HandlerRegistry, ServiceDelete, ServiceUpsert


class RecordingHandler:
    def __init__(self, fail_on=None):
        self.events = []
        self._fail_on = fail_on

    def on_service_upsert(self, snapshot):
        if snapshot.name == self._fail_on:
            raise RuntimeError("boom")
        self.events.append(("upsert", snapshot.key))

    def on_service_delete(self, owner_hint):
        self.events.append(("delete", owner_hint))


def test_worker_dispatches_in_order():
    handlers = HandlerRegistry()
    recorder = RecordingHandler()
    handlers.register("recorder", recorder)  # type: ignore[arg-type]
    worker = EventWorker(handlers, Event())

    worker.handle(ServiceUpsert(ServiceSnapshot("default", "web")))
    worker.handle(ServiceDelete("default/web"))

    assert worker.pending == 2
    assert worker.process_pending() == 2
    assert recorder.events == [("upsert", "default/web"), ("delete", "default/web")]


def test_worker_survives_handler_errors():
    handlers = HandlerRegistry()
    recorder = RecordingHandler(fail_on="bad")
    handlers.register("recorder", recorder)  # type: ignore[arg-type]
    worker = EventWorker(handlers, Event())

    worker.handle(ServiceUpsert(ServiceSnapshot("default", "bad")))
    worker.handle(ServiceUpsert(ServiceSnapshot("default", "good")))
    worker.process_pending()

    assert recorder.events == [("upsert", "default/good")]


def test_worker_thread_stops_on_event():
    handlers = HandlerRegistry()
    recorder = RecordingHandler()
    handlers.register("recorder", recorder)  # type: ignore[arg-type]
    stop = Event()
    worker = EventWorker(handlers, stop, poll_interval=0.05)

    worker.start()
    worker.handle(ServiceUpsert(ServiceSnapshot("default", "web")))
    worker._queue.join()  # type: ignore[attr-defined]
    stop.set()
    worker.join(timeout=2.0)

    assert not worker.is_alive()
    assert recorder.events == [("upsert", "default/web")]
