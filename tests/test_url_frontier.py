import threading

import pytest

from minisearch.crawler.url_frontier import URLFrontier


def test_enqueue_and_dequeue_fifo():
    frontier = URLFrontier(max_pages=10, max_depth=3)
    assert frontier.try_enqueue("http://a.test/1", 0)
    assert frontier.try_enqueue("http://a.test/2", 1)
    assert frontier.try_enqueue("http://a.test/3", 1)

    assert [frontier.dequeue().url for _ in range(3)] == [
        "http://a.test/1", "http://a.test/2", "http://a.test/3"
    ]
    assert frontier.dequeue() is None


def test_duplicate_is_rejected_even_after_dequeue():
    frontier = URLFrontier(max_pages=10, max_depth=3)
    assert frontier.try_enqueue("http://a.test/", 0)
    entry = frontier.dequeue()
    frontier.task_done(entry)

    assert not frontier.try_enqueue("http://a.test/", 1)
    assert frontier.get_stats()['rejected_duplicate'] == 1


def test_depth_limit():
    frontier = URLFrontier(max_pages=10, max_depth=1)
    assert frontier.try_enqueue("http://a.test/1", 1)
    assert not frontier.try_enqueue("http://a.test/2", 2)
    # A rejected URL is not marked as visited
    assert not frontier.is_visited("http://a.test/2")
    assert frontier.try_enqueue("http://a.test/2", 0)


def test_page_limit_counts_enqueued_urls():
    frontier = URLFrontier(max_pages=2, max_depth=5)
    assert frontier.try_enqueue("http://a.test/1", 0)
    assert frontier.try_enqueue("http://a.test/2", 1)
    assert not frontier.try_enqueue("http://a.test/3", 1)
    assert frontier.enqueued_count == 2


def test_exhausted_only_when_nothing_in_flight():
    frontier = URLFrontier(max_pages=10, max_depth=3)
    assert frontier.is_exhausted()

    frontier.try_enqueue("http://a.test/", 0)
    assert not frontier.is_exhausted()

    entry = frontier.dequeue()
    assert not frontier.is_exhausted()
    assert frontier.get_stats()['in_flight'] == 1

    frontier.task_done(entry)
    assert frontier.is_exhausted()


def test_closed_once_budget_dispatched():
    frontier = URLFrontier(max_pages=1, max_depth=3)
    frontier.try_enqueue("http://a.test/", 0)
    assert not frontier.is_closed()

    entry = frontier.dequeue()
    assert frontier.is_closed()
    assert not frontier.is_exhausted()
    frontier.task_done(entry)


def test_task_done_without_dequeue_raises():
    frontier = URLFrontier(max_pages=1, max_depth=0)
    frontier.try_enqueue("http://a.test/", 0)
    entry = frontier.dequeue()
    frontier.task_done(entry)
    with pytest.raises(RuntimeError):
        frontier.task_done(entry)


@pytest.mark.parametrize("max_pages,max_depth", [(0, 1), (1, -1)])
def test_invalid_limits(max_pages, max_depth):
    with pytest.raises(ValueError):
        URLFrontier(max_pages=max_pages, max_depth=max_depth)


def test_racing_threads_claim_a_url_once():
    frontier = URLFrontier(max_pages=1000, max_depth=3)
    barrier = threading.Barrier(8)
    successes = []

    def worker():
        barrier.wait()
        for i in range(200):
            if frontier.try_enqueue(f"http://a.test/{i}", 1):
                successes.append(i)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(successes) == list(range(200))
    assert frontier.get_stats()['total_queued'] == 200


def test_racing_threads_respect_page_limit():
    frontier = URLFrontier(max_pages=50, max_depth=3)
    barrier = threading.Barrier(4)

    def worker(offset):
        barrier.wait()
        for i in range(100):
            frontier.try_enqueue(f"http://a.test/{offset}/{i}", 1)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert frontier.enqueued_count == 50
    assert frontier.get_stats()['total_visited'] == 50
