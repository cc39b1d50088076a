"""
Kymera Bot
discord.py 2.x, "!" prefix commands
"""

import asyncio
import logging

import discord
from discord.ext import commands
from dotenv import load_dotenv

from .config import BOT_NAME, COGS_PACKAGE, COMMAND_PREFIX, PROJECT_DIR, BotSettings, get_settings
from .core import HealthCheckServer, setup_logging
from .database import CountersRepository, WarningRepository
from .services import (
    AuditLog,
    ModerationService,
    MusicManager,
    ReactionRoleManager,
    StreamWatcher,
    TwitchAPIClient,
)

logger = logging.getLogger(__name__)

INITIAL_EXTENSIONS = [
    "community",
    "moderation",
    "music",
    "roles",
    "stream_alerts",
    "utility",
]


class KymeraBot(commands.Bot):
    """Kymera Bot Discord client"""

    def __init__(self, settings: BotSettings):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.reactions = True
        intents.voice_states = True

        super().__init__(
            command_prefix=COMMAND_PREFIX,
            case_insensitive=True,
            intents=intents,
            help_command=None,
        )

        self.settings = settings

        # Process-scoped state shared by the cogs
        self.counters = CountersRepository.in_dir(settings.data_dir)
        self.warnings = WarningRepository.in_dir(settings.data_dir)
        self.moderation = ModerationService(self.warnings, self.counters)
        self.audit_log = AuditLog(self._audit_channel)
        self.reaction_roles = ReactionRoleManager()
        self.music = MusicManager()

        self.twitch: TwitchAPIClient | None = None
        self.stream_watcher: StreamWatcher | None = None
        if settings.twitch_enabled:
            self.twitch = TwitchAPIClient(settings.twitch_client_id, settings.twitch_client_secret)
            self.stream_watcher = StreamWatcher(self.twitch, settings.twitch_channel, self.counters)

        self.health_server: HealthCheckServer | None = None
        if settings.health_server_enabled:
            self.health_server = HealthCheckServer(self, port=settings.port)

    def _audit_channel(self) -> discord.abc.Messageable | None:
        channel_id = self.settings.audit_channel_id
        if channel_id is None:
            return None
        channel = self.get_channel(channel_id)
        return channel if isinstance(channel, discord.abc.Messageable) else None

    async def setup_hook(self) -> None:
        loaded = []
        failed = []

        for extension in INITIAL_EXTENSIONS:
            try:
                await self.load_extension(f"{COGS_PACKAGE}.{extension}")
                loaded.append(extension)
            except Exception as e:
                failed.append(f"{extension} ({e})")
                logger.exception(f"Failed to load {extension}")

        if loaded:
            logger.info(f"[green]Loaded cogs:[/green] {', '.join(loaded)}")
        if failed:
            logger.error(f"[red]Failed to load:[/red] {', '.join(failed)}")

        if self.health_server:
            await self.health_server.start()

        logger.info("[yellow]Connecting to Discord...[/yellow]")

    async def on_ready(self) -> None:
        await self.change_presence(
            status=self.settings.get_status(), activity=self.settings.get_activity()
        )
        logger.info(f"[bold green]{BOT_NAME} ready:[/bold green] {self.user} [dim](ID: {self.user.id})[/dim]")
        logger.info(f"[cyan]Guilds:[/cyan] {len(self.guilds)} | discord.py {discord.__version__}")

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        """Handle prefix command errors"""
        if isinstance(error, commands.CommandNotFound):
            # Plenty of "!" chatter is not meant for the bot
            return

        if isinstance(error, commands.NoPrivateMessage):
            await ctx.reply("This command only works in a server.")
            return

        if isinstance(error, commands.CheckFailure):
            await ctx.reply("❌ You don't have permission to use this command.")
            return

        if isinstance(error, commands.MissingRequiredArgument):
            await ctx.reply(f"Missing argument: `{error.param.name}`")
            return

        if isinstance(error, commands.BadArgument):
            await ctx.reply(f"Invalid argument: {error}")
            return

        logger.error(f"Command error in !{ctx.command}: {error}", exc_info=error)
        await ctx.reply("Something went wrong while running that command.")

    async def close(self) -> None:
        if self.health_server:
            await self.health_server.stop()
        if self.twitch:
            await self.twitch.close()
        await super().close()


async def main() -> None:
    """Bot entry point"""
    settings = get_settings()

    async with KymeraBot(settings) as bot:
        try:
            await bot.start(settings.discord_token)
        except (KeyboardInterrupt, asyncio.CancelledError):
            if not bot.is_closed():
                await bot.close()


def run() -> None:
    load_dotenv(dotenv_path=PROJECT_DIR / ".env", encoding="utf-8")
    try:
        settings = get_settings()
    except Exception as e:
        setup_logging()
        logger.error(f"[bold red]Invalid configuration:[/bold red] {e}")
        logger.error("Set DISCORD_TOKEN in the environment or in .env")
        raise SystemExit(1) from e

    setup_logging(settings.log_level)
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("[yellow]Bot stopped[/yellow]")


if __name__ == "__main__":
    run()
