import logging
import threading

from tasks import WriteQueue


def test_tasks_run_in_order_in_background():
    seen = []
    queue = WriteQueue()
    for i in range(5):
        queue.submit(f"task-{i}", seen.append, i)
    queue.join()
    queue.shutdown()
    assert seen == [0, 1, 2, 3, 4]


def test_failing_task_is_logged_and_queue_keeps_going(caplog):
    seen = []

    def boom():
        raise RuntimeError("boom")

    queue = WriteQueue()
    with caplog.at_level(logging.ERROR, logger="tasks"):
        queue.submit("boom", boom)
        queue.submit("after", seen.append, "ok")
        queue.join()
    queue.shutdown()

    assert seen == ["ok"]
    assert queue.failures == 1
    assert "PersistenceFailure" in caplog.text
    assert "'boom'" in caplog.text


def test_sync_mode_runs_inline():
    seen = []
    queue = WriteQueue(sync=True)
    queue.submit("inline", seen.append, 1)
    assert seen == [1]


def test_failures_are_counted_across_threads():
    def boom():
        raise RuntimeError("boom")

    queue = WriteQueue()
    workers = [threading.Thread(target=queue.submit, args=("boom", boom)) for _ in range(20)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    queue.join()
    queue.shutdown()
    assert queue.failures == 20
