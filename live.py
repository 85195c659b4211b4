# live.py
# Push-based live queries.
#
# Writers call ChangeNotifier.changed(topic); every LiveQuery on that topic
# re-runs its fetch and pushes the new snapshot to its subscribers. A
# ChangeStreamWatcher can feed the notifier from a MongoDB change stream so
# writes made by other processes show up as well.
import logging
import threading

from pymongo.errors import OperationFailure, PyMongoError

logger = logging.getLogger(__name__)


class ChangeNotifier:
    def __init__(self):
        self._listeners = {}
        self._lock = threading.Lock()

    def listen(self, topic, callback):
        with self._lock:
            self._listeners.setdefault(topic, []).append(callback)

        def remove():
            with self._lock:
                callbacks = self._listeners.get(topic, [])
                if callback in callbacks:
                    callbacks.remove(callback)
        return remove

    def changed(self, topic):
        with self._lock:
            callbacks = list(self._listeners.get(topic, []))
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("live query refresh failed for %s", topic)

    def listener_count(self, topic):
        with self._lock:
            return len(self._listeners.get(topic, []))


class Subscription:
    """Handle returned by LiveQuery.subscribe(). Release it with close()."""

    def __init__(self, remove):
        self._remove = remove
        self.closed = False

    def close(self):
        if not self.closed:
            self.closed = True
            self._remove()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class LiveQuery:
    def __init__(self, fetch, notifier, topic):
        self.fetch = fetch
        self.notifier = notifier
        self.topic = topic

    def subscribe(self, listener):
        """Push the current snapshot to listener now, and again after every change."""
        state = {"last": None}
        # fetch and push as one step, so a slow fetch can never land after a newer one
        lock = threading.Lock()

        def refresh():
            with lock:
                snapshot = self.fetch()
                if snapshot == state["last"]:
                    return
                state["last"] = snapshot
                listener(snapshot)

        subscription = Subscription(self.notifier.listen(self.topic, refresh))
        try:
            refresh()
        except Exception:
            subscription.close()
            raise
        return subscription


class ChangeStreamWatcher:
    """Forwards MongoDB change stream events on a collection to the notifier.

    Change streams need a replica set; on a standalone server the watcher logs
    a warning and stops, leaving in-process notifications as the only source.
    """

    def __init__(self, collection, notifier, topic):
        self.collection = collection
        self.notifier = notifier
        self.topic = topic
        self._stop = threading.Event()
        self._thread = None

    def start(self):
        self._thread = threading.Thread(target=self._run, name=f"watch-{self.topic}", daemon=True)
        self._thread.start()
        return self

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)

    def _run(self):
        try:
            with self.collection.watch(max_await_time_ms=1000) as stream:
                while not self._stop.is_set() and stream.alive:
                    if stream.try_next() is not None:
                        self.notifier.changed(self.topic)
        except OperationFailure as e:
            logger.warning("change streams unavailable for %s: %s", self.topic, e)
        except PyMongoError:
            logger.exception("change stream on %s stopped", self.topic)
