import asyncio
import logging
import sys
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

import config
from logger import quiet_library_loggers, setup_logger
from app.discord_ui import DiscordResponder, action_from_interaction, command_action
from app.errors import ConfigurationError
from app.health import create_app, serve
from app.ranking import RankingCommands
from app.router import InteractionRouter
from app.session_store import SessionStore
from app.summary import DiscordSummaryPublisher
from app.teasing import TeaseSelector
from app.workflow import GameEntryWorkflow
from storage.sheets import SheetsManager


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)

quiet_library_loggers()
logging.getLogger("discord.ext.commands").setLevel(logging.WARNING)


class ScoreBot(commands.Bot):
    """commands.Bot that hands its start/stop hooks to the runtime."""

    def __init__(self, runtime: "BotRuntime", **kwargs):
        super().__init__(**kwargs)
        self.runtime = runtime

    async def setup_hook(self) -> None:
        self.runtime.start_background_tasks()

    async def close(self) -> None:
        await self.runtime.stop_background_tasks()
        await super().close()


class BotRuntime:
    """
    Discord bot wiring (인프라 레이어).
    세션 저장소/워크플로/라우터를 만들고 slash command 와 interaction 이벤트에 연결합니다.
    """

    def __init__(self):
        intents = discord.Intents.default()
        intents.members = True  # member select resolves guild members

        self.bot = ScoreBot(self, command_prefix=config.COMMAND_PREFIX, intents=intents)
        self.store = SessionStore()

        self.sheets: Optional[SheetsManager] = None
        try:
            self.sheets = SheetsManager.from_config()
            logger.info("[Sheets] backend configured")
        except ConfigurationError as e:
            # Score entry still runs; saving / rankings report "unavailable".
            logger.error(f"[Sheets] disabled: {e}")

        self.workflow = GameEntryWorkflow(
            store=self.store,
            persister=self.sheets,
            publisher=DiscordSummaryPublisher(self.bot, config.LEADERBOARD_CHANNEL_ID),
        )
        self.router = InteractionRouter(
            self.workflow,
            ranking=RankingCommands(self.sheets),
            teasing=TeaseSelector(self.sheets),
        )

        self._guild: Optional[discord.Object] = discord.Object(id=config.GUILD_ID) if config.GUILD_ID else None
        # lifecycle
        self._shutdown = False
        self._commands_synced = False
        self._sweep_task: Optional[asyncio.Task] = None
        self._health_task: Optional[asyncio.Task] = None

        self._register_commands()
        self._register_handlers()

    def _register_commands(self):
        tree = self.bot.tree
        scope = {"guild": self._guild} if self._guild else {}

        @tree.command(name="endgame", description="Record Catan game scores", **scope)
        async def endgame(interaction: discord.Interaction):
            await self.router.handle(command_action(interaction, "endgame"), DiscordResponder(interaction))

        @tree.command(name="myrank", description="Check your current ranking and stats", **scope)
        async def myrank(interaction: discord.Interaction):
            await self.router.handle(command_action(interaction, "myrank"), DiscordResponder(interaction))

        @tree.command(name="ladder", description="View the top 5 players on the leaderboard", **scope)
        async def ladder(interaction: discord.Interaction):
            await self.router.handle(command_action(interaction, "ladder"), DiscordResponder(interaction))

        @tree.command(name="roast", description="Generate a playful Catan-themed teasing message", **scope)
        @app_commands.describe(target="The player to playfully tease")
        async def roast(interaction: discord.Interaction, target: discord.User):
            action = command_action(
                interaction,
                "roast",
                target_id=str(target.id),
                target_mention=target.mention,
            )
            await self.router.handle(action, DiscordResponder(interaction))

    def _register_handlers(self):
        @self.bot.event
        async def on_ready():
            logger.info(f"Bot started: {self.bot.user}")

            if not self._commands_synced:
                try:
                    synced = await self.bot.tree.sync(guild=self._guild)
                    self._commands_synced = True
                    logger.info(f"Slash commands registered: {', '.join(c.name for c in synced)}")
                except discord.DiscordException as e:
                    logger.error(f"Error registering commands: {e}")

        @self.bot.event
        async def on_interaction(interaction: discord.Interaction):
            # Slash commands go through the command tree; we only take
            # buttons / selects / modals here.
            if interaction.type not in (
                discord.InteractionType.component,
                discord.InteractionType.modal_submit,
            ):
                return
            action = action_from_interaction(interaction)
            if action is None or not self.router.handles(action):
                return
            await self.router.handle(action, DiscordResponder(interaction))

    def start_background_tasks(self) -> None:
        """Session sweeper + health server. Called once from setup_hook."""
        self._shutdown = False
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._session_sweep_loop())

        if getattr(config, "HEALTH_ENABLED", True):
            if self._health_task is None or self._health_task.done():
                self._health_task = asyncio.create_task(
                    serve(create_app(self.store), config.HEALTH_HOST, int(config.PORT))
                )

    async def stop_background_tasks(self) -> None:
        self._shutdown = True
        tasks = [t for t in (self._sweep_task, self._health_task) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Stopped {len(tasks)} background task(s)")
        self._sweep_task = None
        self._health_task = None

    async def _session_sweep_loop(self) -> None:
        interval = float(getattr(config, "SESSION_SWEEP_INTERVAL_SECONDS", 60.0))

        logger.info(f"Session sweeper started (interval={interval:.1f}s)")
        while not self._shutdown and not self.bot.is_closed():
            await asyncio.sleep(interval)
            if self._shutdown:
                break
            try:
                self.store.sweep()
            except Exception as e:
                logger.error(f"Session sweep failed: {e}")

    def run(self):
        token = config.DISCORD_TOKEN
        if not token:
            logger.error("DISCORD_TOKEN not found")
            sys.exit(1)

        try:
            self.bot.run(token, log_handler=None)
        except KeyboardInterrupt:
            pass
        finally:
            self._shutdown = True
            logger.info("Shutting down...")


def run_bot():
    runtime = BotRuntime()
    runtime.run()
