import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum

from fazuh.chalk.core.notifier import LogCallback
from fazuh.chalk.core.notifier import loguru_log

Action = Callable[[], Awaitable[None]]


class QueueId(StrEnum):
    BROWSER = "browser"
    API = "api"

    @property
    def label(self) -> str:
        return "Browser" if self is QueueId.BROWSER else "API"


class QueueState(StrEnum):
    IDLE = "idle"
    DRAINING = "draining"


@dataclass
class ActionQueue:
    """FIFO of pending actions behind a one-way gate."""

    queue_id: QueueId
    actions: deque[Action] = field(default_factory=deque)
    gate_open: bool = False
    state: QueueState = QueueState.IDLE
    drain_task: asyncio.Task | None = None


class ActionCoordinator:
    """Runs queued actions once their queue's gate opens.

    There are two independent queues. The browser queue waits for the page
    session to be ready, the API queue waits for harvested credentials. Each
    queue is drained strictly in enqueue order by at most one drain loop at a
    time, and a failing action is logged and skipped without stopping the drain.

    Gates only ever open. Actions are never retried, re-queued or cancelled.
    """

    def __init__(self, log: LogCallback | None = None):
        self._log = log or loguru_log
        self._queues = {queue_id: ActionQueue(queue_id) for queue_id in QueueId}

    def enqueue(self, queue_id: QueueId, action: Action) -> asyncio.Task | None:
        """Appends `action` to the queue and starts a drain if the gate allows it.

        Returns the drain task that will run the action, or None while the gate is
        closed. A closed queue accepts actions without an event loop. An open one
        needs a running loop and raises RuntimeError, leaving the queue unchanged,
        when there is none.
        """
        queue = self._queues[queue_id]
        loop = asyncio.get_running_loop() if queue.gate_open else None
        queue.actions.append(action)
        return self._schedule_drain(queue, loop)

    def open_gate(self, queue_id: QueueId) -> asyncio.Task | None:
        """Opens the queue's gate and drains whatever is pending. Idempotent.

        Raises:
            RuntimeError: If called outside a running event loop. The gate stays closed.
        """
        queue = self._queues[queue_id]
        if queue.gate_open:
            return None

        loop = asyncio.get_running_loop()
        queue.gate_open = True
        self._log("INFO", f"{queue_id.label} queue is now ready.")
        return self._schedule_drain(queue, loop)

    async def try_drain(self, queue_id: QueueId) -> None:
        """Runs pending actions until the queue is empty.

        No-op if the gate is closed or a drain is already running on this queue.
        """
        queue = self._queues[queue_id]
        # NOTE: No await between the check and the state change.
        if not queue.gate_open or queue.state is QueueState.DRAINING:
            return

        queue.state = QueueState.DRAINING
        try:
            # Length is re-checked after every action, so actions enqueued
            # while an earlier one is awaited are picked up by this same loop.
            while queue.actions:
                action = queue.actions.popleft()
                try:
                    await action()
                except Exception as e:
                    self._log("ERROR", f"{queue_id.label} action failed: {e}")
        finally:
            queue.state = QueueState.IDLE

    async def wait_idle(self) -> None:
        """Waits until no drain task is in flight on either queue."""
        while tasks := [
            q.drain_task for q in self._queues.values() if q.drain_task and not q.drain_task.done()
        ]:
            await asyncio.gather(*tasks, return_exceptions=True)

    def is_open(self, queue_id: QueueId) -> bool:
        return self._queues[queue_id].gate_open

    def state(self, queue_id: QueueId) -> QueueState:
        return self._queues[queue_id].state

    def pending(self, queue_id: QueueId) -> int:
        return len(self._queues[queue_id].actions)

    def _schedule_drain(
        self, queue: ActionQueue, loop: asyncio.AbstractEventLoop | None
    ) -> asyncio.Task | None:
        if not queue.gate_open or loop is None:
            return None

        # A drain task that has not finished yet will reach the new action.
        if queue.drain_task is not None and not queue.drain_task.done():
            return queue.drain_task

        queue.drain_task = loop.create_task(
            self.try_drain(queue.queue_id), name=f"chalk-drain-{queue.queue_id}"
        )
        return queue.drain_task
