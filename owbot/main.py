"""
owbot Discord Bot - Entry point.

A Discord bot that shows Overwatch profile summaries via "!ow" commands.
"""

import asyncio
import os
import sys
import logging

# Load environment variables BEFORE other imports
from dotenv import load_dotenv

load_dotenv()

# Set up JSON logging
from pythonjsonlogger import jsonlogger

log_level = os.getenv("LOG_LEVEL", "INFO").upper()
handler = logging.StreamHandler()
handler.setFormatter(
    jsonlogger.JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")
)
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    handlers=[handler],
)
logger = logging.getLogger(__name__)

import discord

from owbot.commands import ChatMessage, CommandHandler
from owbot.config import Config
from owbot.owapi import AdmissionGate, StatsCache, StatsClient
from owbot.users import UserSource, UserStoreError, create_user_source

# Status shown when the bot is first ready, and for how long
STATUS_HELLO = "Hello!"
STATUS_HELLO_SECONDS = 5 * 60

# Default status, displayed as the "game playing" in Discord
STATUS_DEFAULT = "!ow help"


def create_stats_client(config: Config) -> StatsClient:
    return StatsClient(
        config.owapi_base_url,
        cache=StatsCache(maxsize=config.stats_cache_size, ttl=config.stats_cache_ttl),
        gate=AdmissionGate(config.owapi_max_concurrency),
        http_timeout=config.owapi_http_timeout,
        retry_after_unit=config.owapi_retry_after_unit,
        default_retry_after=config.owapi_default_retry_after,
    )


class OwBot(discord.Client):
    """Discord bot answering "!ow" commands."""

    def __init__(
        self, config: Config, stats_client: StatsClient, user_source: UserSource
    ):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(intents=intents)

        self.config = config
        self.stats_client = stats_client
        self.user_source = user_source
        self.command_handler = CommandHandler(
            stats_client, user_source, command_timeout=config.command_timeout
        )
        self._status_task: asyncio.Task | None = None

    async def setup_hook(self):
        """Called when the bot is starting up."""
        await self.stats_client.start()
        logger.info("Bot setup complete")

    async def close(self):
        """Called when the bot is shutting down."""
        if self._status_task:
            self._status_task.cancel()
        await self.stats_client.close()
        self.user_source.close()
        await super().close()

    async def on_ready(self):
        """Called when the bot has connected to Discord."""
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        if self._status_task is None or self._status_task.done():
            self._status_task = asyncio.create_task(self._cycle_status())

    async def _cycle_status(self):
        logger.info("On ready, setting hello status message")
        await self.change_presence(activity=discord.Game(STATUS_HELLO))
        await asyncio.sleep(STATUS_HELLO_SECONDS)
        logger.info("Setting default status message")
        await self.change_presence(activity=discord.Game(STATUS_DEFAULT))

    async def on_message(self, message: discord.Message):
        """Handle new messages. Each message is handled in its own task."""
        if message.author.bot:
            return

        chat_message = ChatMessage(
            channel_id=str(message.channel.id),
            author_id=str(message.author.id),
            content=message.content,
            mention_ids=tuple(str(user.id) for user in message.mentions),
        )
        try:
            reply = await self.command_handler.handle(chat_message)
            if reply is None:
                return
            await message.channel.send(reply)
            logger.debug(f"Sent message to channel {chat_message.channel_id}")
        except Exception as e:
            logger.error(f"Error handling message: {e}", exc_info=True)


def main():
    """Main entry point."""
    try:
        config = Config.from_env()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    try:
        user_source = create_user_source(config.user_db_path)
    except UserStoreError as e:
        logger.error(f"Could not create user source: {e}")
        sys.exit(1)

    logger.info("Starting owbot Discord bot...")
    logger.info(f"OWAPI URL: {config.owapi_base_url}")
    logger.info(
        f"Stats cache: {config.stats_cache_size} entries, {config.stats_cache_ttl}s"
    )
    logger.info(f"OWAPI max concurrency: {config.owapi_max_concurrency}")

    bot = OwBot(config, create_stats_client(config), user_source)
    bot.run(config.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
