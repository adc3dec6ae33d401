import threading
import unittest
from unittest.mock import Mock

import timeout_decorator
from hamcrest import assert_that, is_, none

from ircon.protocol.background import AsyncLoop


class AsyncLoopTest(unittest.TestCase):

    @timeout_decorator.timeout(10)
    def test_runs_function_until_stopped(self):
        called = threading.Event()
        fn = Mock(side_effect=lambda *args: called.set())
        sut = AsyncLoop(fn, (1, 2))
        sut.start()
        called.wait(5)
        sut.stop()
        fn.assert_called_with(1, 2)
        assert_that(sut.running(), is_(False))
        assert_that(sut.background_thread, is_(none()))

    @timeout_decorator.timeout(10)
    def test_exceptions_are_logged(self):
        called = threading.Event()
        error = ValueError("boom")

        def fail():
            called.set()
            raise error

        log = Mock()
        sut = AsyncLoop(fail, log=log)
        sut.start()
        called.wait(5)
        sut.stop()
        log.exception.assert_called_with(error)

    @timeout_decorator.timeout(10)
    def test_start_twice_starts_one_thread(self):
        sut = AsyncLoop(lambda: sut.stop_event.wait(0.01))
        sut.start()
        thread = sut.background_thread
        sut.start()
        assert_that(sut.background_thread, is_(thread))
        sut.stop()

    @timeout_decorator.timeout(10)
    def test_startup_and_shutdown_called(self):
        sut = AsyncLoop(lambda: sut.stop_event.wait(0.01))
        sut.startup = Mock()
        sut.shutdown = Mock()
        sut.start()
        sut.stop()
        sut.startup.assert_called_once_with()
        sut.shutdown.assert_called_once_with()

    def test_stop_without_start(self):
        sut = AsyncLoop(Mock())
        sut.stop()
        assert_that(sut.running(), is_(False))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
