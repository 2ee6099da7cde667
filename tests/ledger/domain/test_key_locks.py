"""Tests for the keyed lock registry."""

import threading

import pytest
from ledger.errors import LedgerBusy
from ledger.transaction import KeyedLocks, document_key, sequence_key, stock_key


class TestKeys:
    def test_keys_are_namespaced(self):
        assert stock_key("p", "l") == ("stock", "p", "l")
        assert document_key("d") == ("document", "d")
        assert sequence_key("receipt") == ("sequence", "receipt")


class TestKeyedLocks:
    def test_hold_is_reentrant(self):
        locks = KeyedLocks()
        with locks.hold([stock_key("p", "l")]):
            with locks.hold([stock_key("p", "l")]):
                pass

    def test_contended_key_times_out(self):
        locks = KeyedLocks()
        held = threading.Event()
        release = threading.Event()

        def holder():
            with locks.hold([stock_key("p", "l")]):
                held.set()
                release.wait(5)

        thread = threading.Thread(target=holder)
        thread.start()
        held.wait(5)
        try:
            with pytest.raises(LedgerBusy) as exc:
                with locks.hold([stock_key("p", "l")], timeout=0.05):
                    pass
            assert exc.value.retryable is True
        finally:
            release.set()
            thread.join()

    def test_timeout_releases_locks_already_taken(self):
        locks = KeyedLocks()
        held = threading.Event()
        release = threading.Event()

        def holder():
            with locks.hold([stock_key("p", "z")]):
                held.set()
                release.wait(5)

        thread = threading.Thread(target=holder)
        thread.start()
        held.wait(5)
        try:
            with pytest.raises(LedgerBusy):
                with locks.hold([stock_key("p", "a"), stock_key("p", "z")], timeout=0.05):
                    pass
        finally:
            release.set()
            thread.join()

        # "a" was acquired first and must have been released on failure
        acquired = []

        def other():
            with locks.hold([stock_key("p", "a")], timeout=1):
                acquired.append(True)

        worker = threading.Thread(target=other)
        worker.start()
        worker.join()
        assert acquired == [True]

    def test_disjoint_keys_do_not_wait(self):
        locks = KeyedLocks()
        results = []

        with locks.hold([stock_key("p", "l1")]):

            def other():
                with locks.hold([stock_key("p", "l2")], timeout=0.5):
                    results.append("l2")

            worker = threading.Thread(target=other)
            worker.start()
            worker.join()

        assert results == ["l2"]


class TestRegistrySize:
    def test_released_keys_are_forgotten(self):
        locks = KeyedLocks()
        for n in range(50):
            with locks.hold([document_key(f"doc-{n}"), stock_key("p", "l")]):
                assert locks.size() == 2
        assert locks.size() == 0

    def test_reentrant_hold_keeps_key_until_outermost_release(self):
        locks = KeyedLocks()
        with locks.hold([stock_key("p", "l")]):
            with locks.hold([stock_key("p", "l")]):
                pass
            assert locks.size() == 1
        assert locks.size() == 0

    def test_timed_out_waiter_does_not_leak(self):
        locks = KeyedLocks()
        held = threading.Event()
        release = threading.Event()

        def holder():
            with locks.hold([stock_key("p", "l")]):
                held.set()
                release.wait(5)

        thread = threading.Thread(target=holder)
        thread.start()
        held.wait(5)
        try:
            with pytest.raises(LedgerBusy):
                with locks.hold([stock_key("p", "a"), stock_key("p", "l")], timeout=0.05):
                    pass
            assert locks.size() == 1
        finally:
            release.set()
            thread.join()
        assert locks.size() == 0
