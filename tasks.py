# tasks.py
# Background queue for best-effort writes (points, history, profile bootstrap).
# Nothing submitted here reports back to the caller; failures are logged.
import logging
import queue
import threading

logger = logging.getLogger(__name__)

_STOP = object()


class WriteQueue:
    def __init__(self, sync=False, name="write-queue"):
        self.sync = sync
        self.name = name
        self.failures = 0
        self._queue = queue.Queue()
        self._worker = None
        self._lock = threading.Lock()

    def submit(self, name, fn, *args, **kwargs):
        """Schedule fn(*args, **kwargs). Returns immediately (or after running, in sync mode)."""
        if self.sync:
            self._run(name, fn, args, kwargs)
            return
        self._ensure_worker()
        self._queue.put((name, fn, args, kwargs))

    def join(self):
        """Block until every task submitted so far has run."""
        if not self.sync:
            self._queue.join()

    def shutdown(self):
        with self._lock:
            worker, self._worker = self._worker, None
        if worker is not None:
            self._queue.put(_STOP)
            worker.join(timeout=5)

    def _ensure_worker(self):
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(target=self._drain, name=self.name, daemon=True)
                self._worker.start()

    def _drain(self):
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                name, fn, args, kwargs = item
                self._run(name, fn, args, kwargs)
            finally:
                self._queue.task_done()

    def _run(self, name, fn, args, kwargs):
        try:
            fn(*args, **kwargs)
        except Exception:
            with self._lock:
                self.failures += 1
            logger.exception("PersistenceFailure: background task %r failed", name)
