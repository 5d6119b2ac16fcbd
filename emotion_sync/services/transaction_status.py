"""
Transaction status reporter: the progress state machine shown to the user.

Transitions always run idle -> pending -> success|error -> idle. Finished states
return to idle on their own after a display delay; there is no cancel transition.
"""

import asyncio
from typing import Callable, List, Optional

from ..models.core import ReporterEvent, TransactionState
from ..utils.config import config
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

ReporterListener = Callable[[ReporterEvent], None]


class TransactionInProgressError(Exception):
    """Raised when an operation starts while another one is still pending."""
    pass


class InvalidTransitionError(Exception):
    """Raised when a finish is reported without a pending operation."""
    pass


class TransactionStatusReporter:
    """Single-flight status machine with timed return to idle."""

    def __init__(self, success_delay: Optional[float] = None, error_delay: Optional[float] = None):
        """
        Initialize the reporter in the idle state.

        Args:
            success_delay: Seconds a success stays visible (config default if None)
            error_delay: Seconds an error stays visible (config default if None)
        """
        self.success_delay = config.reporter.success_delay if success_delay is None else success_delay
        self.error_delay = config.reporter.error_delay if error_delay is None else error_delay

        self._state = TransactionState.IDLE
        self._message = ''
        self._listeners: List[ReporterListener] = []
        self._reset_handle: Optional[asyncio.TimerHandle] = None
        self._idle_waiters: List[asyncio.Future] = []

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def message(self) -> str:
        return self._message

    @property
    def event(self) -> ReporterEvent:
        if self._state is TransactionState.IDLE:
            return ReporterEvent(state=self._state, visible=False, status='pending', message='')
        return ReporterEvent(state=self._state, visible=True, status=self._state.value, message=self._message)

    def subscribe(self, listener: ReporterListener) -> Callable[[], None]:
        """
        Register a listener for every transition.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def begin(self, message: str) -> None:
        """
        Enter pending.

        A success or error still on display is cleared first so listeners always
        observe the idle transition before the next pending one.

        Raises:
            TransactionInProgressError: If an operation is already pending
        """
        if self._state is TransactionState.PENDING:
            raise TransactionInProgressError(f'Operation already in progress: {self._message}')
        if not message:
            raise ValueError('A pending status needs a message')

        if self._state is not TransactionState.IDLE:
            self._cancel_reset()
            self._to_idle()

        self._transition(TransactionState.PENDING, message)

    def succeed(self, message: str, auto_reset: bool = True) -> None:
        self._finish(TransactionState.SUCCESS, message, auto_reset)

    def fail(self, message: str, auto_reset: bool = True) -> None:
        self._finish(TransactionState.ERROR, message, auto_reset)

    def schedule_reset(self) -> None:
        """
        Start the display timer of a finished operation.

        Callers that finish with ``auto_reset=False`` call this once their follow-up
        work is done, so the outcome stays visible for the full delay afterwards.

        Raises:
            InvalidTransitionError: If no success or error is on display
        """
        if self._state is TransactionState.SUCCESS:
            delay = self.success_delay
        elif self._state is TransactionState.ERROR:
            delay = self.error_delay
        else:
            raise InvalidTransitionError(f'Nothing to reset from {self._state.value}')

        self._cancel_reset()
        self._reset_handle = asyncio.get_running_loop().call_later(delay, self._on_reset_timer)

    async def wait_idle(self) -> None:
        """Wait until the reporter is back in idle."""
        if self._state is TransactionState.IDLE:
            return
        waiter = asyncio.get_running_loop().create_future()
        self._idle_waiters.append(waiter)
        await waiter

    def _finish(self, state: TransactionState, message: str, auto_reset: bool) -> None:
        if self._state is not TransactionState.PENDING:
            raise InvalidTransitionError(f'Cannot move from {self._state.value} to {state.value}')
        if not message:
            raise ValueError(f'A {state.value} status needs a message')

        self._transition(state, message)
        if auto_reset:
            self.schedule_reset()

    def _on_reset_timer(self) -> None:
        self._reset_handle = None
        self._to_idle()

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _to_idle(self) -> None:
        self._transition(TransactionState.IDLE, '')
        waiters, self._idle_waiters = self._idle_waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    def _transition(self, state: TransactionState, message: str) -> None:
        self._state = state
        self._message = message
        event = self.event
        logger.debug(f'Transaction status -> {state.value}: {message}')

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f'Transaction status listener failed: {e}')
