import logging
import os
from typing import Optional

import discord
from dotenv import load_dotenv

from .config import WORLD
from .core import NewsService
from .exceptions import InvalidCategoryError, NewsUnavailableError
from .models import NewsResult

logger = logging.getLogger(__name__)

COMMAND = "!news"
# Discord rejects messages longer than this
MAX_MESSAGE_LEN = 2000


def parse_category(content: str) -> Optional[str]:
    """
    Return the category requested by a ``!news`` message, or None if the message
    is not a news command. ``!news`` alone means the world digest.
    """
    parts = content.strip().split()
    if not parts or parts[0] != COMMAND:
        return None
    return parts[1].lower() if len(parts) > 1 else WORLD


def format_digest(category: str, result: NewsResult) -> str:
    if not result.articles:
        return f"No {category} news found right now."

    header = f"📰 Top {len(result.articles)} {category} stories"
    if result.stale:
        header += " (could not refresh, showing the last digest)"
    response = header + "\n\n"
    for article in result.articles:
        response += f"**{article.title}**\n"
        response += f"*{article.source}*\n"
        response += f"<{article.url}>\n\n"

    if len(response) > MAX_MESSAGE_LEN:
        response = response[:MAX_MESSAGE_LEN - 3] + "..."
    return response


async def handle_message(service: NewsService, content: str) -> Optional[str]:
    """Build the reply for a chat message, or None when there is nothing to say."""
    category = parse_category(content)
    if category is None:
        return None

    try:
        result = await service.get_news(category)
    except InvalidCategoryError:
        return f"Usage: {COMMAND} [{' | '.join(service.categories)}]"
    except NewsUnavailableError as e:
        logger.error("News unavailable for %s: %s", category, e)
        return "Sorry, the news could not be fetched. Please try again later."
    return format_digest(category, result)


def build_client(service: NewsService) -> discord.Client:
    intents = discord.Intents.default()
    intents.message_content = True  # needed to read commands

    client = discord.Client(intents=intents)

    @client.event
    async def on_ready():
        logger.info("Logged in as %s", client.user)

    @client.event
    async def on_message(message):
        if message.author == client.user:
            return
        reply = await handle_message(service, message.content)
        if reply:
            await message.channel.send(reply)

    return client


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("BRIEFING_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Store the token in .env as DISCORD_BOT_TOKEN="YOUR_BOT_TOKEN"
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        raise SystemExit("DISCORD_BOT_TOKEN is not set. Check your .env file.")

    # Settings and cache are built after load_dotenv so .env overrides apply
    client = build_client(NewsService())
    client.run(token, log_handler=None)


if __name__ == "__main__":
    main()
