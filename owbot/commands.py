"""Parsing and handling of ``!ow`` chat commands."""

import logging
import re
from dataclasses import dataclass

from owbot import __version__
from owbot.owapi import OwApiError, StatsClient, UserStats
from owbot.users import User, UserSource, UserStoreError

logger = logging.getLogger(__name__)

COMMAND_PREFIX = "!ow"

# A BattleTag is 3-12 characters, followed by "#", followed by digits
BATTLE_TAG_RE = re.compile(r"^\w{3,12}#\d+$")

# A mention is either "<@USER_ID>" or "<@!USER_ID>"
MENTION_RE = re.compile(r"^<@!?(\d+)>$")

MSG_USAGE = f"""\
__**ow-bot ({__version__})**__
- **!ow profile <DiscordUser>** - Shows Overwatch profile summary
- **!ow profile <BattleTag>** - Shows Overwatch profile summary
- **!ow set <BattleTag>** - Sets your BattleTag
- **!ow set <DiscordUser> <BattleTag>** - Sets the BattleTag of a user
- **!ow help** - Shows this message

**<DiscordUser>**: A Discord user mention (@username)
**<BattleTag>**: A Battle.net BattleTag (username#12345)"""

MSG_UNKNOWN_COMMAND = (
    "Sorry, but I don't know what you want. "
    'Type "!ow help" to show usage help.'
)

TMPL_INVALID_BATTLE_TAG = '<@{mention_id}>: "{battle_tag}" is not a valid BattleTag'

TMPL_UNKNOWN_DISCORD_USER = (
    "No BattleTag for <@{mention_id}>, "
    'use "!ow set <@{mention_id}> <BattleTag>" to set one'
)

TMPL_FETCH_ERROR = 'Unable to fetch competitive stats for "{battle_tag}"'

TMPL_BATTLE_TAG_UPDATED = 'BattleTag for <@{mention_id}> is now "{battle_tag}"'

TMPL_PROFILE = """\
__**{s.battle_tag} (competitive, {s.region})**__
**Level:** {o.level} +{o.prestige}
**Rank:** {o.comprank}
**K/D:** {g.eliminations:g}/{g.deaths:g}  ({g.kpd:g} KPD)
**Matches W/L:** {o.wins}/{o.losses} ({o.games} total)
**Medals G/S/B:** {g.medals_gold:g}/{g.medals_silver:g}/{g.medals_bronze:g} ({g.medals:g} total)
**Time Played:** {g.time_played:g} hours"""


def format_profile(stats: UserStats) -> str:
    return TMPL_PROFILE.format(s=stats, o=stats.overall_stats, g=stats.game_stats)


@dataclass(frozen=True)
class ChatMessage:
    """The parts of a chat message that commands look at."""

    channel_id: str
    author_id: str
    content: str
    mention_ids: tuple[str, ...] = ()


class CommandHandler:
    """Turns ``!ow`` messages into replies.

    Returns ``None`` for messages that are not commands, and for commands
    that fail for reasons the channel should not hear about (those are logged).
    """

    def __init__(
        self,
        stats_client: StatsClient,
        user_source: UserSource,
        command_timeout: float = 15.0,
    ):
        self.stats_client = stats_client
        self.user_source = user_source
        self.command_timeout = command_timeout

    async def handle(self, message: ChatMessage) -> str | None:
        args = message.content.split()
        if not args or args[0] != COMMAND_PREFIX:
            return None

        logger.info(
            f"Processing command from {message.author_id} in {message.channel_id}: "
            f"{message.content[:100]}"
        )

        # "!ow" -> "!ow profile"
        if len(args) == 1:
            args.append("profile")

        if args[1] == "set":
            return self.set_battle_tag(args[2:], message)
        if args[1] == "help":
            return MSG_USAGE
        if args[1] == "profile":
            return await self.show_profile(args[2:], message)
        return await self.show_profile(args[1:], message)

    async def show_profile(self, args: list[str], message: ChatMessage) -> str | None:
        if len(args) == 1 and BATTLE_TAG_RE.match(args[0]):
            # !ow profile <BattleTag>
            battle_tag = args[0]
        else:
            if not args:
                # !ow profile
                discord_id = message.author_id
            elif len(args) == 1 and MENTION_RE.match(args[0]):
                # !ow profile @username
                discord_id = MENTION_RE.match(args[0]).group(1)
            else:
                return MSG_UNKNOWN_COMMAND

            try:
                user = self.user_source.get(discord_id)
            except UserStoreError as e:
                logger.error(f"Failed getting user from source: {e}")
                return None
            if user is None:
                return TMPL_UNKNOWN_DISCORD_USER.format(mention_id=discord_id)
            battle_tag = user.battle_tag

        try:
            stats = await self.stats_client.get_stats(
                battle_tag, timeout=self.command_timeout
            )
        except OwApiError as e:
            logger.warning(
                f"Could not get Overwatch stats for {battle_tag}: "
                f"{type(e).__name__}: {e}"
            )
            return TMPL_FETCH_ERROR.format(battle_tag=battle_tag)

        logger.debug(f"Successfully got Overwatch stats for {battle_tag}")
        return format_profile(stats)

    def set_battle_tag(self, args: list[str], message: ChatMessage) -> str | None:
        if not args:
            return MSG_UNKNOWN_COMMAND

        if len(args) >= 2:
            # !ow set @user Name#123, the mentioned id must also be among
            # the message's mentions
            user_mention, args = args[0], args[1:]
            match = MENTION_RE.match(user_mention)
            if not match or match.group(1) not in message.mention_ids:
                return MSG_UNKNOWN_COMMAND
            user_id = match.group(1)
        else:
            user_id = message.author_id

        if len(args) > 1:
            return MSG_UNKNOWN_COMMAND

        battle_tag = args[0]
        if not BATTLE_TAG_RE.match(battle_tag):
            return TMPL_INVALID_BATTLE_TAG.format(
                mention_id=message.author_id, battle_tag=battle_tag
            )

        try:
            current = self.user_source.get(user_id)
            # Only the owner may change a BattleTag the owner has set
            if (
                current is not None
                and current.id != message.author_id
                and current.set_by_owner
            ):
                logger.debug(
                    f"{message.author_id} may not change the BattleTag set by "
                    f"its owner {user_id}"
                )
                return None
            self.user_source.save(
                User(id=user_id, battle_tag=battle_tag, created_by=message.author_id)
            )
        except UserStoreError as e:
            logger.error(f"Failed updating user {user_id}: {e}")
            return None

        return TMPL_BATTLE_TAG_UPDATED.format(mention_id=user_id, battle_tag=battle_tag)
