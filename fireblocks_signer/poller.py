"""
Transaction status polling.

The poller repeatedly fetches a transaction until it reaches a terminal
status or the overall deadline passes. It never retries a failed status
call: transport and server errors end the poll immediately.

Each status call runs on a worker thread and is waited on against the
deadline. The ``timeout`` given to ``requests`` bounds a single connect or
socket read, so a slowly trickling response would otherwise keep the loop
alive long after the deadline.
"""
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TYPE_CHECKING, Callable, Optional, Tuple

from ._rate_limited_log import rate_limited_log
from .exceptions import FireblocksTimeoutError
from .models import TransactionResponse

if TYPE_CHECKING:
    from .client import Client

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[TransactionResponse], None]
StatusResult = Tuple[TransactionResponse, Optional[str]]

# Minimum seconds between two log lines for an unchanged status
STATUS_LOG_INTERVAL = 30


class StatusPoller:
    """
    Sequential poller over ``Client.get_transaction``.

    Holds no state between calls to ``poll``; the deadline and last-seen
    status are local to each call.

    Args:
        client: Client used for status lookups
        clock: Monotonic clock in seconds
        sleep: Sleep function in seconds
    """

    def __init__(
        self,
        client: "Client",
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.client = client
        self.clock = clock or time.monotonic
        self.sleep = sleep or time.sleep

    def poll(
        self,
        tx_id: str,
        timeout: float,
        interval: float,
        callback: Optional[ProgressCallback] = None,
    ) -> StatusResult:
        """
        Poll until the transaction is terminal.

        Args:
            tx_id: Fireblocks transaction id
            timeout: Overall deadline in seconds
            interval: Delay between polls in seconds, must be less than ``timeout``
            callback: Called with every observed response, repeats included

        Returns:
            (final response, signature); the signature is None unless the
            transaction completed successfully

        Raises:
            ValueError: If timeout/interval are not positive or interval >= timeout
            FireblocksTimeoutError: If no terminal status is seen before the deadline
            FireblocksError: Any error from ``get_transaction``, unretried
        """
        if timeout <= 0 or interval <= 0:
            raise ValueError(f"timeout and interval must be positive (got: {timeout}, {interval})")
        if interval >= timeout:
            raise ValueError(f"poll interval ({interval}s) must be less than the timeout ({timeout}s)")

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"poll-{tx_id}")
        try:
            return self._loop(executor, tx_id, timeout, interval, callback)
        finally:
            # an abandoned call finishes on its own; don't block on it
            executor.shutdown(wait=False)

    def _loop(
        self,
        executor: ThreadPoolExecutor,
        tx_id: str,
        timeout: float,
        interval: float,
        callback: Optional[ProgressCallback],
    ) -> StatusResult:
        deadline = self.clock() + timeout
        last_status = None
        polls = 0

        while True:
            remaining = deadline - self.clock()
            if remaining <= 0:
                raise self._timeout(tx_id, timeout, last_status)

            call_timeout = min(self.client.timeout, remaining)
            future = executor.submit(self.client.get_transaction, tx_id, timeout=call_timeout)
            try:
                response, signature = self._await(future, deadline)
            except FutureTimeoutError:
                future.cancel()
                logger.warning(f"Status call for {tx_id} still in flight at the deadline, abandoning it")
                raise self._timeout(tx_id, timeout, last_status) from None
            except FireblocksTimeoutError as e:
                if call_timeout < self.client.timeout:
                    # the call was cut short by the overall deadline
                    raise self._timeout(tx_id, timeout, last_status) from e
                raise
            polls += 1

            if callback is not None:
                callback(response)

            if response.status != last_status:
                logger.info(f"Transaction {tx_id} status {response}")
                last_status = response.status
            else:
                rate_limited_log(
                    f"Transaction {tx_id} still {response.status} after {polls} polls",
                    level="debug",
                    interval=STATUS_LOG_INTERVAL,
                    logger_instance=logger,
                    key=f"poll:{tx_id}:{response.status}",
                )

            if response.status.is_terminal:
                if response.status.is_success:
                    return response, signature
                logger.warning(f"Transaction {tx_id} ended {response.status}: {response.sub_status}")
                return response, None

            remaining = deadline - self.clock()
            if remaining <= 0:
                raise self._timeout(tx_id, timeout, last_status)
            self.sleep(min(interval, remaining))

    def _await(self, future: Future, deadline: float) -> StatusResult:
        """
        Wait for a status call until ``deadline`` on ``self.clock``.

        Raises:
            concurrent.futures.TimeoutError: If the deadline passes first
        """
        while True:
            try:
                return future.result(timeout=max(deadline - self.clock(), 0))
            except FutureTimeoutError:
                if self.clock() >= deadline:
                    raise

    @staticmethod
    def _timeout(tx_id: str, timeout: float, last_status) -> FireblocksTimeoutError:
        logger.error(f"Transaction {tx_id} not terminal after {timeout}s (last status {last_status})")
        return FireblocksTimeoutError(
            f"Transaction {tx_id} did not reach a terminal status within {timeout}s "
            f"(last status: {last_status})",
            FireblocksTimeoutError.POLL,
        )
