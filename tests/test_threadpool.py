import threading
import time

import pytest

from optchains.threadpool import VariadicThreadPool


def test_post_returns_result():
    with VariadicThreadPool(2) as pool:
        future = pool.post(lambda a, b: a + b, 2, 3)
        assert future.result(timeout=5) == 5


def test_post_with_kwargs():
    with VariadicThreadPool(2) as pool:
        future = pool.post(lambda text, sep: sep.join(text), ["a", "b"], sep="-")
        assert future.result(timeout=5) == "a-b"


def test_join_waits_for_all_jobs():
    done = []
    lock = threading.Lock()

    def job(i):
        time.sleep(i * 0.01)
        with lock:
            done.append(i)
        return i

    pool = VariadicThreadPool(10)
    futures = [pool.post(job, i) for i in range(10)]
    pool.join()
    assert all(f.done() for f in futures)
    assert [f.result(timeout=0) for f in futures] == list(range(10))
    assert sorted(done) == list(range(10))


def test_exception_reaches_future():
    def fail():
        raise KeyError("missing")

    with VariadicThreadPool(1) as pool:
        future = pool.post(fail)
        with pytest.raises(KeyError):
            future.result(timeout=5)


def test_post_no_future_runs_job():
    event = threading.Event()
    with VariadicThreadPool(1) as pool:
        assert pool.post_no_future(event.set) is None
    assert event.is_set()


def test_post_no_future_failure_does_not_stop_pool():
    def fail():
        raise RuntimeError("boom")

    with VariadicThreadPool(1) as pool:
        pool.post_no_future(fail)
        assert pool.post(lambda: 7).result(timeout=5) == 7


def test_post_after_join_rejected():
    pool = VariadicThreadPool(1)
    pool.join()
    with pytest.raises(RuntimeError):
        pool.post(lambda: None)


def test_zero_threads_rejected():
    with pytest.raises(ValueError):
        VariadicThreadPool(0)


def test_many_results_in_order_of_futures():
    with VariadicThreadPool(4) as pool:
        futures = [pool.post(lambda x: x * x, i) for i in range(20)]
        assert [f.result(timeout=5) for f in futures] == [i * i for i in range(20)]