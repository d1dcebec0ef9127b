"""
Unit tests for the readers-writer lock.
"""
import threading

import pytest

from template_composer.templates.locking import ReaderWriterLock


def test_readers_share_the_lock():
    """Test that several readers hold the lock at the same time."""
    lock = ReaderWriterLock()
    barrier = threading.Barrier(3, timeout=5)
    passed = []

    def reader():
        with lock.read_lock():
            barrier.wait()
            passed.append(True)

    threads = [threading.Thread(target=reader) for _ in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(passed) == 3


def test_writer_excludes_readers():
    """Test that a reader waits for an active writer."""
    lock = ReaderWriterLock()
    events = []
    reader_started = threading.Event()

    def reader():
        reader_started.set()
        with lock.read_lock():
            events.append("read")

    with lock.write_lock():
        thread = threading.Thread(target=reader)
        thread.start()
        reader_started.wait(timeout=5)
        thread.join(timeout=0.1)
        events.append("write done")

    thread.join(timeout=5)
    assert events == ["write done", "read"]


def test_writer_waits_for_readers():
    """Test that a writer waits until readers release."""
    lock = ReaderWriterLock()
    events = []
    writer_started = threading.Event()

    def writer():
        writer_started.set()
        with lock.write_lock():
            events.append("write")

    with lock.read_lock():
        thread = threading.Thread(target=writer)
        thread.start()
        writer_started.wait(timeout=5)
        thread.join(timeout=0.1)
        events.append("read done")

    thread.join(timeout=5)
    assert events == ["read done", "write"]


def test_lock_released_on_error():
    """Test that context managers release the lock when the block raises."""
    lock = ReaderWriterLock()

    with pytest.raises(ValueError):
        with lock.write_lock():
            raise ValueError("boom")

    with lock.read_lock():
        pass


def test_unbalanced_release_raises():
    lock = ReaderWriterLock()

    with pytest.raises(RuntimeError):
        lock.release_read()
    with pytest.raises(RuntimeError):
        lock.release_write()
