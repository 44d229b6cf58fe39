from datetime import datetime
from typing import List

import aiohttp
import discord
from loguru import logger

from fazuh.chalk.transform.activities import ActivitiesPayload
from fazuh.chalk.transform.activities import Activity
from fazuh.chalk.transform.courses import CoursesPayload

ASSIGNMENT_COLOR = 0x5865F2  # Blurple
TEST_COLOR = 0xED4245  # Red
COURSE_COLOR = 0x57F287  # Green

MAX_EMBEDS_PER_MESSAGE = 10
WEBHOOK_USERNAME = "Chalk"
AVATAR_URL = "https://mcl.blackboard.com/favicon.ico"


def _format_date(value: str | None) -> str:
    """'2025-09-12T15:59:59.000Z' -> '<t:1757692799:f>'. Falls back to the raw value."""
    if not value:
        return "-"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return f"<t:{int(parsed.timestamp())}:f>"


def _activity_embed(activity: Activity) -> discord.Embed:
    color = ASSIGNMENT_COLOR if activity["type"] == "Assignment" else TEST_COLOR
    title = f"[{activity['type'].upper()}] {activity['activityName']}"
    embed = discord.Embed(title=title, color=color)
    embed.add_field(name="Course", value=activity["courseName"], inline=False)
    embed.add_field(name="Given", value=_format_date(activity["givenDate"]), inline=True)
    embed.add_field(name="Due", value=_format_date(activity["dueDate"]), inline=True)
    return embed


def build_activity_embeds(payload: ActivitiesPayload) -> List[discord.Embed]:
    return [_activity_embed(activity) for activity in payload["activities"]]


def build_course_embeds(payload: CoursesPayload) -> List[discord.Embed]:
    embeds = []
    for course in payload["courses"]:
        embed = discord.Embed(title=course["courseName"], color=COURSE_COLOR)
        embed.add_field(name="Course ID", value=course["courseId"], inline=True)
        embed.add_field(name="ID", value=course["id"], inline=True)
        embeds.append(embed)
    return embeds


def _messages(embeds: List[discord.Embed], content: str) -> List[dict]:
    """Splits embeds into webhook messages. Only the first message carries `content`."""
    messages = []
    for start in range(0, len(embeds), MAX_EMBEDS_PER_MESSAGE):
        message = {"embeds": embeds[start : start + MAX_EMBEDS_PER_MESSAGE]}
        if not messages:
            message["content"] = content
        messages.append(message)
    return messages


async def send_embeds(webhook_url: str, embeds: List[discord.Embed], content: str) -> bool:
    """
    Posts embeds to a Discord webhook, at most 10 per message.

    Args:
        webhook_url: The Discord webhook URL.
        embeds: The embeds to send.
        content: The header text of the first message.

    Returns:
        True if every message was accepted.
    """
    messages = _messages(embeds, content)
    if not messages:
        logger.warning("No embeds to send.")
        return False

    try:
        async with aiohttp.ClientSession() as session:
            webhook = discord.Webhook.from_url(webhook_url, session=session)
            for number, message in enumerate(messages, start=1):
                await webhook.send(
                    username=WEBHOOK_USERNAME, avatar_url=AVATAR_URL, wait=True, **message
                )
                logger.debug(f"Webhook message {number}/{len(messages)} accepted.")
    except discord.HTTPException as e:
        logger.error(f"Discord rejected the webhook message: {e}")
        return False
    except aiohttp.ClientError as e:
        logger.error(f"Could not reach the webhook: {e}")
        return False

    logger.info(f"Sent {len(embeds)} embeds in {len(messages)} webhook messages.")
    return True


async def send_courses(webhook_url: str, payload: CoursesPayload) -> bool:
    content = f"## Enrolled Courses ({len(payload['courses'])})"
    return await send_embeds(webhook_url, build_course_embeds(payload), content)


async def send_activities(webhook_url: str, payload: ActivitiesPayload) -> bool:
    content = f"## Blackboard Activities ({len(payload['activities'])})"
    return await send_embeds(webhook_url, build_activity_embeds(payload), content)
