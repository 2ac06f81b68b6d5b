"""Cancellation handles and background scheduling for watcher loops."""

import threading
from concurrent.futures import Executor, Future
from typing import Any, Callable, Optional, Protocol


class Cancellable(Protocol):
    """Something that can be cancelled."""

    def cancel(self) -> None:
        ...


class WatchHandle:
    """
    Handle to a watcher loop running in the background.

    cancel() stops the loop; wait() blocks until it has released its
    resources and re-raises whatever ended it abnormally.
    """

    def __init__(self, future: Future, stop: Callable[[], None]):
        """
        Initialize the handle.

        Args:
            future: Future completed when the loop returns
            stop: Function that signals the loop to stop
        """
        self._future = future
        self._stop = stop
        self._cancelled = False
        self._lock = threading.Lock()

    def cancel(self) -> None:
        """Stop the watcher loop. Safe to call more than once."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True

        # Drops the task if an executor has not started it yet.
        self._future.cancel()
        self._stop()

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._cancelled

    def done(self) -> bool:
        """Whether the loop has exited."""
        return self._future.done()

    def wait(self, timeout: Optional[float] = None) -> None:
        """
        Wait for the loop to exit.

        Args:
            timeout: Seconds to wait, or None to wait forever

        Raises:
            concurrent.futures.TimeoutError: If the loop is still running
            Exception: Whatever terminated the loop
        """
        if self._future.cancelled():
            return
        self._future.result(timeout=timeout)

    def exception(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """
        Get the exception that terminated the loop.

        Args:
            timeout: Seconds to wait for the loop to exit

        Returns:
            The exception, or None if the loop exited normally
        """
        if self._future.cancelled():
            return None
        return self._future.exception(timeout=timeout)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cancel()
        return False


def spawn(
    run: Callable[[], Any],
    stop: Callable[[], None],
    executor: Optional[Executor] = None,
    name: Optional[str] = None,
) -> WatchHandle:
    """
    Run a blocking loop in the background.

    Args:
        run: Blocking function running the loop
        stop: Function that makes run() return
        executor: Executor to submit run() to; a daemon thread is used if None
        name: Thread name when no executor is given

    Returns:
        Handle for cancelling and awaiting the loop
    """
    if executor is not None:
        return WatchHandle(executor.submit(run), stop)

    future: Future = Future()

    def target() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = run()
        except BaseException as e:
            future.set_exception(e)
        else:
            future.set_result(result)

    thread = threading.Thread(target=target, name=name)
    thread.daemon = True
    thread.start()
    return WatchHandle(future, stop)
