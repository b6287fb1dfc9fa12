import sys
import threading
import time
import unittest
from unittest.mock import Mock, call, patch

import timeout_decorator
from hamcrest import assert_that, instance_of, is_, is_not

from commlink.support.async_loop import AsyncLoop


def debug_timeout(value):
    """
    Replaces the timeout value with a very large one if the tests are running under a debugger.
    This prevents the main thread from throwing an exception and exiting when the test times out
    due to a breakpoint.
    """
    return value if sys.gettrace() is None else 100000


class NastyException(Exception):
    def __eq__(self, other):
        return type(other) is type(self)

    def __hash__(self):
        return hash(type(self))


class AsyncLoopTest(unittest.TestCase):
    @timeout_decorator.timeout(debug_timeout(2))
    def test_real_thread(self):
        thread = None
        sut = None
        loopThread = None

        def fn():
            nonlocal thread, loopThread
            thread = threading.current_thread()
            loopThread = sut.background_thread
        loop = Mock(side_effect=fn)
        sut = AsyncLoop(loop, name='test-loop')
        sut.startup = Mock()
        sut.shutdown = Mock()
        sut.start()
        while not loop.call_count:
            time.sleep(0)

        running = sut.running()
        assert_that(thread, is_not(None))
        assert_that(thread, is_(loopThread))
        assert_that(thread.name, is_('test-loop'))
        assert_that(running, is_(True))
        assert_that(sut.alive, is_(True))
        sut.stop()
        stopped = not sut.running()
        assert_that(stopped, is_(True))
        assert_that(sut.background_thread, is_(None))
        assert_that(sut.alive, is_(False))
        assert_that(thread.is_alive(), is_(False))
        sut.shutdown.assert_called_once()
        sut.startup.assert_called_once()

    @timeout_decorator.timeout(debug_timeout(1))
    def test_run_invokes_startup_shutdown_around_loop(self):
        running = Mock(return_value=True)

        def fn():
            if running.call_count > 1:
                running.return_value = False

        loop = Mock(side_effect=fn)
        sut = AsyncLoop(loop)
        sut.shutdown = Mock()
        sut.startup = Mock()
        sut.running = running
        manager = Mock()
        manager.attach_mock(sut.startup, 'startup')
        manager.attach_mock(sut.shutdown, 'shutdown')
        manager.attach_mock(loop, 'loop')
        sut._run()
        self.assertEqual(manager.mock_calls, [call.startup(), call.loop(), call.loop(), call.shutdown()])

    @timeout_decorator.timeout(debug_timeout(1))
    def test_an_exception_does_not_stop_the_loop(self):
        running = Mock(return_value=True)

        def fn():
            if running.call_count == 10:
                running.return_value = False
            raise NastyException()

        loop = Mock(side_effect=fn)
        sut = AsyncLoop(loop)
        sut.running = running
        sut.exception_handler = Mock()
        sut._run()
        self.assertEqual(loop.call_count, 10)
        self.assertEqual(sut.exception_handler.call_count, 10)
        sut.exception_handler.assert_called_with(NastyException())

    @patch('threading.Thread')
    def test_starting_an_already_started_loop(self, thread):
        sut = AsyncLoop([])
        the_thread = Mock()
        thread.return_value = the_thread
        sut.start()
        thread.assert_called_once_with(target=sut._run, name=None, daemon=True)
        assert_that(sut.background_thread, is_(the_thread))
        assert_that(sut.stop_event, is_(instance_of(threading.Event)))
        the_thread.start.assert_called_once()
        thread.reset_mock()
        sut.start()
        thread.assert_not_called()

    def test_stop_when_not_started_is_harmless(self):
        sut = AsyncLoop()
        sut.stop()
        sut.stop()
        assert_that(sut.running(), is_(False))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_stop_from_the_loop_thread_does_not_join_itself(self):
        sut = None

        def fn():
            sut.stop()

        sut = AsyncLoop(fn)
        sut.start()
        sut.stop_event.wait()
        assert_that(sut.running(), is_(False))

    @timeout_decorator.timeout(debug_timeout(2))
    def test_thread_exception(self):
        expected = NastyException()
        exception = None

        def fn():
            raise expected

        def capture_exception(e):
            nonlocal exception
            exception = e
            sut.stop_event.set()

        sut = AsyncLoop(fn)
        sut.exception_handler = capture_exception
        sut.start()
        sut.stop_event.wait()
        sut.stop()
        assert_that(exception, is_(expected))


if __name__ == '__main__':  # pragma: no cover
    unittest.main()
