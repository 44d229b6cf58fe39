from unittest.mock import AsyncMock
from unittest.mock import MagicMock
from unittest.mock import patch

import discord
import pytest

from fazuh.chalk.webhook import _format_date
from fazuh.chalk.webhook import _messages
from fazuh.chalk.webhook import build_activity_embeds
from fazuh.chalk.webhook import build_course_embeds
from fazuh.chalk.webhook import send_activities
from fazuh.chalk.webhook import send_courses


def activity(name: str, type_: str = "Assignment"):
    return {
        "activityName": name,
        "courseName": "Web Development",
        "type": type_,
        "dueDate": "2025-09-12T15:59:59.000Z",
        "givenDate": None,
    }


def test_format_date():
    assert _format_date("2025-09-12T15:59:59.000Z") == "<t:1757692799:f>"
    assert _format_date(None) == "-"
    assert _format_date("tomorrow") == "tomorrow"


def test_build_activity_embeds():
    embeds = build_activity_embeds({"activities": [activity("Lab 1"), activity("Quiz", "Test")]})

    assert embeds[0].title == "[ASSIGNMENT] Lab 1"
    assert embeds[1].title == "[TEST] Quiz"
    assert [f.name for f in embeds[0].fields] == ["Course", "Given", "Due"]
    assert embeds[0].fields[1].value == "-"


def test_build_course_embeds():
    embeds = build_course_embeds(
        {"courses": [{"courseId": "A-1", "courseName": "Intro", "id": "_1_1"}]}
    )

    assert embeds[0].title == "Intro"
    assert embeds[0].fields[0].value == "A-1"


@pytest.mark.asyncio
async def test_send_activities_chunks_embeds():
    payload = {"activities": [activity(f"Lab {i}") for i in range(15)]}

    with patch("aiohttp.ClientSession") as mock_session_cls:
        mock_session = AsyncMock()
        mock_session_cls.return_value.__aenter__.return_value = mock_session

        with patch("discord.Webhook.from_url") as mock_webhook_cls:
            mock_webhook = AsyncMock()
            mock_webhook_cls.return_value = mock_webhook

            assert await send_activities("http://webhook", payload) is True

            assert mock_webhook.send.call_count == 2
            first = mock_webhook.send.call_args_list[0].kwargs
            second = mock_webhook.send.call_args_list[1].kwargs
            assert len(first["embeds"]) == 10
            assert "Blackboard Activities (15)" in first["content"]
            assert len(second["embeds"]) == 5
            assert "content" not in second


@pytest.mark.asyncio
async def test_send_courses_without_courses_sends_nothing():
    with patch("discord.Webhook.from_url") as mock_webhook_cls:
        assert await send_courses("http://webhook", {"courses": []}) is False

        mock_webhook_cls.assert_not_called()


def test_messages_split_embeds():
    embeds = [discord.Embed(title=str(i)) for i in range(21)]

    messages = _messages(embeds, "## Header")

    assert [len(m["embeds"]) for m in messages] == [10, 10, 1]
    assert messages[0]["content"] == "## Header"
    assert all("content" not in m for m in messages[1:])
    assert _messages([], "## Header") == []


@pytest.mark.asyncio
async def test_rejected_webhook_message_stops_sending():
    payload = {"activities": [activity(f"Lab {i}") for i in range(15)]}
    rejected = discord.HTTPException(MagicMock(status=400, reason="Bad Request"), "invalid")

    with patch("aiohttp.ClientSession") as mock_session_cls:
        mock_session_cls.return_value.__aenter__.return_value = AsyncMock()

        with patch("discord.Webhook.from_url") as mock_webhook_cls:
            mock_webhook = AsyncMock()
            mock_webhook.send.side_effect = rejected
            mock_webhook_cls.return_value = mock_webhook

            assert await send_activities("http://webhook", payload) is False

            assert mock_webhook.send.call_count == 1
