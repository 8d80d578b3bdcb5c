import discord
from discord.ext import commands
import logging
import asyncio
from typing import Any, Dict, Optional, Tuple
import os

from .config_manager import ConfigManager
from .game_controller import GameController, GameRegistry
from .models import Difficulty, Screen

logger = logging.getLogger(__name__)

COLOR_MENU = 0x6699ff
COLOR_GAME = 0x00ff00
COLOR_RESULT = 0xffaa00
COLOR_SETTINGS = 0x888888
COLOR_ERROR = 0xff0000

TIME_CHOICES = tuple(range(ConfigManager.MIN_TIME_PER_ROUND, ConfigManager.MAX_TIME_PER_ROUND + 1, 5))


def progress_bar(time_left: int, total: int, width: int = 20) -> str:
    """Render the remaining time as a text bar."""
    if total <= 0:
        ratio = 0.0
    else:
        ratio = max(0.0, min(1.0, time_left / total))
    filled = round(ratio * width)
    return "█" * filled + "░" * (width - filled)


def build_menu_embed(progress: Dict[str, Any]) -> discord.Embed:
    embed = discord.Embed(
        title="🎯 Trivia",
        description="Press **Start Game** to play or **Settings** to change the game.",
        color=COLOR_MENU
    )
    embed.add_field(
        name="📊 Current Settings",
        value=(
            f"Difficulty: {progress['difficulty']}\n"
            f"Rounds: {progress['total_rounds']}\n"
            f"Timer: {progress['time_per_round']} seconds per round"
        ),
        inline=False
    )
    return embed


def build_game_embed(progress: Dict[str, Any]) -> discord.Embed:
    question = progress['question']
    embed = discord.Embed(
        title=f"Round {progress['current_round']} of {progress['total_rounds']}",
        description=question.text if question else "No question available",
        color=COLOR_GAME
    )
    embed.add_field(
        name="⏱️ Time Left",
        value=f"{progress['time_left']}s\n`{progress_bar(progress['time_left'], progress['time_per_round'])}`",
        inline=True
    )
    embed.add_field(name="🏆 Score", value=str(progress['score']), inline=True)
    return embed


def build_result_embed(progress: Dict[str, Any]) -> discord.Embed:
    embed = discord.Embed(
        title="🏁 Game Over",
        description=f"Your Score: **{progress['score']}** / {progress['total_rounds']}",
        color=COLOR_RESULT
    )
    embed.set_footer(text=f"Difficulty: {progress['difficulty']}")
    return embed


def build_settings_embed(pending: Dict[str, Any]) -> discord.Embed:
    """Settings screen showing the values picked so far, before saving."""
    embed = discord.Embed(
        title="⚙️ Settings",
        description="Pick the values below, then press **Save**.",
        color=COLOR_SETTINGS
    )
    embed.add_field(name="Difficulty", value=str(pending['difficulty']), inline=True)
    embed.add_field(name="Rounds", value=str(pending['rounds']), inline=True)
    embed.add_field(name="Time Per Round", value=f"{pending['time_per_round']} sec", inline=True)
    return embed


def build_error_embed(message: str, title: str = "❌ Error") -> discord.Embed:
    return discord.Embed(title=title, description=message, color=COLOR_ERROR)


def render_screen(game: GameController) -> Tuple[discord.Embed, "ScreenView"]:
    """Build the embed and view for the screen the game is on."""
    progress = game.get_progress()
    screen = progress['screen']

    if screen == Screen.GAME:
        return build_game_embed(progress), GameView(game)
    if screen == Screen.RESULT:
        return build_result_embed(progress), ResultView(game)
    if screen == Screen.SETTINGS:
        view = SettingsView(game)
        return build_settings_embed(view.pending), view
    return build_menu_embed(progress), MenuView(game)


class ScreenView(discord.ui.View):
    """Base view bound to one game."""

    def __init__(self, game: GameController):
        super().__init__(timeout=None)
        self.game = game
        self.message: Optional[discord.Message] = None

    async def show_current_screen(self, interaction: discord.Interaction) -> None:
        """Replace this view with the one for the game's current screen."""
        self.stop()
        embed, view = render_screen(self.game)
        view.message = interaction.message
        await interaction.response.edit_message(embed=embed, view=view)

    async def respond_to(self, interaction: discord.Interaction, result: Dict[str, Any]) -> None:
        if not result['success']:
            await interaction.response.send_message(
                embed=build_error_embed(result['user_message']),
                ephemeral=True
            )
            return
        await self.show_current_screen(interaction)

    async def on_error(self, interaction: discord.Interaction, error: Exception, item: discord.ui.Item) -> None:
        logger.error(f"Error handling {type(item).__name__} in game {self.game.game_id}: {error}", exc_info=error)
        try:
            embed = build_error_embed("Something went wrong. Please try again.")
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.error("Failed to send error response to user")


class MenuView(ScreenView):
    """Menu screen: start a game or open settings."""

    @discord.ui.button(label="Start Game", style=discord.ButtonStyle.success)
    async def start_game(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self.respond_to(interaction, self.game.start_game())

    @discord.ui.button(label="Settings", style=discord.ButtonStyle.secondary)
    async def settings(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self.respond_to(interaction, self.game.open_settings())


class AnswerButton(discord.ui.Button):
    def __init__(self, option: str):
        super().__init__(label=option, style=discord.ButtonStyle.primary)
        self.option = option

    async def callback(self, interaction: discord.Interaction):
        await self.view.handle_answer(interaction, self.option)


class GameView(ScreenView):
    """
    Game screen: one button per option.

    The embed follows the engine through change notifications, so the
    countdown is redrawn on every timer tick. When the game leaves the game
    screen the view hands the message over to the next screen's view.
    """

    def __init__(self, game: GameController):
        super().__init__(game)
        self._question_index: Optional[int] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._dirty = False
        self._in_interaction = False
        self._detached = False
        self._build_buttons()
        self._unsubscribe = game.subscribe(self._on_engine_change)

    def _build_buttons(self) -> None:
        self.clear_items()
        self._question_index = self.game.engine.current_question_index
        question = self.game.engine.current_question
        if question is None:
            return
        for option in question.options:
            self.add_item(AnswerButton(option))

    def _on_engine_change(self, engine) -> None:
        if self._in_interaction or self._detached or self.message is None:
            return
        # Changes arriving during an edit are redrawn once that edit finishes.
        self._dirty = True
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.get_running_loop().create_task(self._refresh_until_clean())

    async def _refresh_until_clean(self) -> None:
        while self._dirty and not self._detached:
            self._dirty = False
            await self.refresh()

    async def refresh(self) -> None:
        """Redraw the message from the current game state."""
        if self._detached or self.message is None:
            return
        try:
            if self.game.screen != Screen.GAME:
                await self._hand_off(self.message.edit)
            elif self._question_index != self.game.engine.current_question_index:
                self._build_buttons()
                await self.message.edit(embed=build_game_embed(self.game.get_progress()), view=self)
            else:
                await self.message.edit(embed=build_game_embed(self.game.get_progress()))
        except discord.HTTPException as e:
            logger.warning(f"Failed to refresh game {self.game.game_id}: {e}")

    async def handle_answer(self, interaction: discord.Interaction, option: str) -> None:
        self._in_interaction = True
        try:
            result = self.game.answer(option)
        finally:
            self._in_interaction = False

        if not result['success']:
            await interaction.response.send_message(
                embed=build_error_embed(result['user_message']),
                ephemeral=True
            )
            return

        self.message = interaction.message
        if self.game.screen != Screen.GAME:
            await self._hand_off(interaction.response.edit_message)
        else:
            self._build_buttons()
            await interaction.response.edit_message(embed=build_game_embed(result['progress']), view=self)

    async def show_current_screen(self, interaction: discord.Interaction) -> None:
        self.detach()
        await super().show_current_screen(interaction)

    async def _hand_off(self, edit) -> None:
        self.detach()
        embed, view = render_screen(self.game)
        view.message = self.message
        await edit(embed=embed, view=view)

    def detach(self) -> None:
        """Stop following the engine."""
        if not self._detached:
            self._detached = True
            self._unsubscribe()
            self.stop()


class ResultView(ScreenView):
    """Result screen: final score and the way back to the menu."""

    @discord.ui.button(label="Back to Menu", style=discord.ButtonStyle.primary)
    async def back_to_menu(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self.respond_to(interaction, self.game.back_to_menu())


class SettingSelect(discord.ui.Select):
    def __init__(self, field: str, placeholder: str, choices, current: Any, row: int):
        options = [
            discord.SelectOption(
                label=str(choice),
                value=str(choice),
                default=str(choice) == str(current)
            )
            for choice in choices
        ]
        super().__init__(placeholder=placeholder, options=options, row=row)
        self.field = field

    async def callback(self, interaction: discord.Interaction):
        self.view.pending[self.field] = self.values[0]
        for option in self.options:
            option.default = option.value == self.values[0]
        await interaction.response.edit_message(embed=build_settings_embed(self.view.pending), view=self.view)


class SettingsView(ScreenView):
    """Settings screen holding unsaved picks until Save is pressed."""

    def __init__(self, game: GameController):
        super().__init__(game)
        settings = game.engine.settings
        difficulty = settings.difficulty
        if isinstance(difficulty, Difficulty):
            difficulty = difficulty.value

        self.pending: Dict[str, Any] = {
            'difficulty': difficulty,
            'rounds': settings.rounds,
            'time_per_round': settings.time_per_round
        }
        time_choices = sorted(set(TIME_CHOICES) | {settings.time_per_round})

        self.add_item(SettingSelect(
            'difficulty', "Difficulty", [d.value for d in Difficulty], difficulty, row=0
        ))
        self.add_item(SettingSelect(
            'rounds', "Rounds", ConfigManager.ROUND_CHOICES, settings.rounds, row=1
        ))
        self.add_item(SettingSelect(
            'time_per_round', "Time per round (seconds)", time_choices, settings.time_per_round, row=2
        ))

    @discord.ui.button(label="Save", style=discord.ButtonStyle.success, row=3)
    async def save(self, interaction: discord.Interaction, button: discord.ui.Button):
        result = self.game.save_settings(
            self.pending['difficulty'],
            self.pending['rounds'],
            self.pending['time_per_round']
        )
        await self.respond_to(interaction, result)

    @discord.ui.button(label="Back", style=discord.ButtonStyle.secondary, row=3)
    async def back(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self.respond_to(interaction, self.game.back_to_menu())


class TriviaBot(commands.Bot):
    """Discord bot hosting one trivia game per channel"""

    def __init__(self, config=None):
        # Slash commands only need the guilds intent
        intents = discord.Intents.none()
        intents.guilds = True

        command_prefix = '!'
        if config and 'bot' in config:
            command_prefix = config['bot'].get('command_prefix', '!')

        super().__init__(
            command_prefix=command_prefix,
            intents=intents,
            help_command=None
        )

        self.app_config = config or {}
        self.config_manager: Optional[ConfigManager] = None
        self.games: Optional[GameRegistry] = None

    async def setup_hook(self):
        """Called when the bot is starting up"""
        try:
            logger.info("Setting up bot components...")

            self.config_manager = ConfigManager()
            if self.app_config:
                result = self.config_manager.apply_config(self.app_config)
                for error in result['errors']:
                    logger.warning(f"Configuration error: {error}")

            self.games = GameRegistry(self.config_manager)

            await self.setup_commands()

            logger.info("Bot setup completed successfully")

        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    async def setup_commands(self):
        """Register all slash commands"""
        @self.tree.command(name="trivia", description="Open the trivia menu in this channel")
        async def trivia_command(interaction: discord.Interaction):
            await self.handle_trivia(interaction)

        @self.tree.command(name="trivia_stop", description="Stop the trivia game in this channel")
        async def trivia_stop_command(interaction: discord.Interaction):
            await self.handle_stop(interaction)

        logger.info("Slash commands registered")

    async def on_ready(self):
        """Called when the bot has successfully connected to Discord"""
        logger.info(f"Bot is ready! Logged in as {self.user}")
        logger.info(f"Bot is in {len(self.guilds)} guilds")
        print(f"🤖 {self.user} is Ready and Online!")

        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} slash commands")
        except discord.HTTPException as e:
            logger.error(f"Failed to sync slash commands: {e}")

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors"""
        logger.error(f"An error occurred in event {event}", exc_info=True)

    async def handle_trivia(self, interaction: discord.Interaction):
        """Handle /trivia: show the menu for this channel's game"""
        try:
            game = self.games.get_or_create(interaction.channel_id)
            if game.screen == Screen.GAME:
                await self.send_warning_response(
                    interaction,
                    "A game is already running in this channel. Use `/trivia_stop` to end it."
                )
                return

            if game.screen != Screen.MENU:
                game.stop()

            embed, view = render_screen(game)
            await interaction.response.send_message(embed=embed, view=view)
            view.message = await interaction.original_response()

        except discord.HTTPException as e:
            logger.error(f"Discord API error in trivia command: {e}")
        except Exception as e:
            logger.error(f"Error in trivia command: {e}", exc_info=True)
            await self.send_error_response(interaction, "Failed to open the trivia menu")

    async def handle_stop(self, interaction: discord.Interaction):
        """Handle /trivia_stop"""
        try:
            if self.games.remove(interaction.channel_id):
                await self.send_info_response(interaction, "The trivia game in this channel was stopped.")
            else:
                await self.send_info_response(interaction, "No trivia game found in this channel.")
        except Exception as e:
            logger.error(f"Error in stop command: {e}", exc_info=True)
            await self.send_error_response(interaction, "Failed to stop the game")

    async def close(self):
        if self.games is not None:
            self.games.stop_all()
        await super().close()

    async def send_error_response(self, interaction: discord.Interaction, message: str, title: str = "❌ Error"):
        """Send formatted error response to user"""
        await self._send_ephemeral(interaction, build_error_embed(message, title))

    async def send_info_response(self, interaction: discord.Interaction, message: str, title: str = "ℹ️ Information"):
        await self._send_ephemeral(interaction, discord.Embed(title=title, description=message, color=COLOR_MENU))

    async def send_warning_response(self, interaction: discord.Interaction, message: str, title: str = "⚠️ Warning"):
        await self._send_ephemeral(interaction, discord.Embed(title=title, description=message, color=COLOR_RESULT))

    async def _send_ephemeral(self, interaction: discord.Interaction, embed: discord.Embed):
        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.error("Failed to send response to user")


async def run_bot(token=None, config=None):
    """Run the bot with proper error handling"""
    if not token:
        token = os.getenv('DISCORD_BOT_TOKEN')

    if not token:
        logger.error("No Discord bot token provided")
        return

    bot = TriviaBot(config)

    try:
        logger.info("Starting Discord Trivia Bot...")
        await bot.start(token)
    except discord.LoginFailure:
        logger.error("Invalid bot token provided")
    except discord.HTTPException as e:
        logger.error(f"HTTP error occurred: {e}")
    finally:
        if not bot.is_closed():
            await bot.close()
