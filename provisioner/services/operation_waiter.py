from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from provisioner.models.gcp import Operation
from provisioner.services.errors import ProvisionerError


logger = logging.getLogger(__name__)

OperationFetcher = Callable[[str], Awaitable[Operation]]
Sleep = Callable[[float], Awaitable[None]]


class OperationPollError(ProvisionerError):
    pass


class OperationFailed(ProvisionerError):
    def __init__(self, operation: Operation) -> None:
        error = operation.error
        code = error.code if error else 0
        message = error.message if error else ""
        super().__init__(f"Operation {operation.name} failed: code={code} {message}".strip())
        self.operation = operation
        self.code = code
        self.remote_message = message


class OperationWaiter:
    """Wait for a long-running operation to reach a terminal state.

    Polls at a fixed interval until ``done`` is set. There is no deadline: a stuck
    operation blocks the run.
    """

    _DEFAULT_POLL_INTERVAL_SECONDS: float = 2.0

    def __init__(
        self,
        *,
        poll_interval: float = _DEFAULT_POLL_INTERVAL_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._poll_interval = poll_interval
        self._sleep = sleep

    async def wait(self, operation: Operation, *, fetch: OperationFetcher) -> Operation:
        """Return the finished operation, or raise.

        Raises:
            OperationPollError: if fetching the operation state fails.
            OperationFailed: if the operation finished with an error payload.
        """

        polls = 0
        while not operation.done:
            if not operation.name:
                raise OperationPollError("Operation has no name and is not done; cannot poll it")

            name = operation.name
            await self._sleep(self._poll_interval)
            polls += 1
            try:
                operation = await fetch(name)
            except ProvisionerError as exc:
                raise OperationPollError(f"Failed polling operation {name}: {exc}") from exc
            if not operation.name:
                operation = operation.model_copy(update={"name": name})
            logger.debug("Polled operation %s (poll=%d, done=%s)", operation.name, polls, operation.done)

        if operation.error is not None:
            raise OperationFailed(operation)
        return operation
