import asyncio

import pytest

from fazuh.chalk.engine import Engine


@pytest.mark.manual
@pytest.mark.asyncio
async def test_engine_manual(config):
    received: dict[str, dict] = {}
    done = asyncio.Event()

    def store(event):
        def listener(payload):
            received[event] = payload
            if len(received) == 2:
                done.set()

        return listener

    engine = Engine.from_config(config)
    engine.on("fetch:courses", store("fetch:courses"))
    engine.on("fetch:assignments", store("fetch:assignments"))

    async with engine:
        engine.request_courses()
        engine.request_activities()
        await asyncio.wait_for(done.wait(), timeout=90)

    assert received["fetch:courses"]["courses"]
    assert "activities" in received["fetch:assignments"]
