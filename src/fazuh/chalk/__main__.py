"""Main entry point for the Chalk application.

Handles command-line argument parsing, signs into Blackboard, and requests the
selected data (courses, activities, or both).
"""

import argparse
import asyncio
import json
from typing import Any

from loguru import logger

from fazuh.chalk.config import Config
from fazuh.chalk.core.notifier import FETCH_ASSIGNMENTS
from fazuh.chalk.core.notifier import FETCH_COURSES
from fazuh.chalk.engine import Engine
from fazuh.chalk.error import ChalkError
from fazuh.chalk.error import ConfigError

EVENTS = {
    "courses": [FETCH_COURSES],
    "activities": [FETCH_ASSIGNMENTS],
    "all": [FETCH_COURSES, FETCH_ASSIGNMENTS],
}


class Collector:
    """Waits for the requested notifications and forwards them to the webhook."""

    def __init__(self, events: list[str], webhook_url: str | None = None):
        self.received: dict[str, asyncio.Event] = {event: asyncio.Event() for event in events}
        self.webhook_url = webhook_url
        self._deliveries: set[asyncio.Task] = set()

    def attach(self, engine: Engine):
        for event in self.received:
            engine.on(event, lambda payload, event=event: self.handle(event, payload))

    def handle(self, event: str, payload: Any):
        logger.info(f"{event}\n{json.dumps(payload, indent=2)}")
        if self.webhook_url:
            task = asyncio.get_running_loop().create_task(self._deliver(event, payload))
            self._deliveries.add(task)
            task.add_done_callback(self._deliveries.discard)
        self.received[event].set()

    async def _deliver(self, event: str, payload: Any):
        from fazuh.chalk.webhook import send_activities
        from fazuh.chalk.webhook import send_courses

        if event == FETCH_COURSES:
            await send_courses(self.webhook_url or "", payload)
        else:
            await send_activities(self.webhook_url or "", payload)

    async def wait(self, timeout: float) -> bool:
        """Returns False if some notification did not arrive within `timeout` seconds."""
        try:
            await asyncio.wait_for(
                asyncio.gather(*(e.wait() for e in self.received.values())), timeout
            )
        except asyncio.TimeoutError:
            for event, received in self.received.items():
                if not received.is_set():
                    logger.error(f"Timed out waiting for {event}.")
            return False
        finally:
            if self._deliveries:
                await asyncio.gather(*self._deliveries, return_exceptions=True)
        return True


async def main():
    """Async entry point.

    Parses arguments, initializes configuration and logging, signs in, and
    requests the selected module's data.
    """
    parser = argparse.ArgumentParser(description="Chalk Blackboard Engine")
    parser.add_argument(
        "module",
        choices=list(EVENTS),
        help="Data to fetch (courses, activities, or all).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show the browser window.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60,
        help="Seconds to wait for the requested data.",
    )
    args = parser.parse_args()

    conf = Config()
    conf.debug = conf.debug or args.debug

    logger.add("log/{time}.log", rotation="1 day")

    try:
        engine = Engine.from_config(conf)
    except ConfigError as e:
        logger.error(e)
        return

    collector = Collector(EVENTS[args.module], conf.discord_webhook_url)
    collector.attach(engine)

    try:
        await engine.initialize()

        if FETCH_COURSES in collector.received:
            engine.request_courses()
        if FETCH_ASSIGNMENTS in collector.received:
            engine.request_activities()

        if await collector.wait(args.timeout):
            logger.success("All requested data received.")
    except ChalkError as e:
        logger.error(e)
    finally:
        await engine.close()


def main_sync():
    """Synchronous wrapper for the async main function."""
    asyncio.run(main())


if __name__ == "__main__":
    main_sync()
