import discord
from discord import app_commands
from discord.ext import commands
import logging
import os
from typing import Optional

from .config_manager import ConfigManager
from .question_source import QuestionSource
from .quiz_controller import QuizController
from .views import (
    COLOR_ERROR,
    COLOR_INFO,
    COLOR_QUESTION,
    QuizView,
    build_loading_embed,
    build_session_embed,
    build_superseded_embed,
)

logger = logging.getLogger(__name__)


class QuizBot(commands.Bot):
    """Discord bot for running trivia quizzes"""

    def __init__(self, config=None):
        # Slash commands and components only need guild access
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
        self.question_source: Optional[QuestionSource] = None
        self.quiz_controller: Optional[QuizController] = None

    async def setup_hook(self):
        """Called when the bot is starting up"""
        try:
            logger.info("Setting up bot components...")

            self.config_manager = ConfigManager()
            self.apply_configuration()

            settings = self.config_manager.get_quiz_settings()
            self.question_source = QuestionSource(
                api_url=settings.api_url,
                timeout=settings.request_timeout
            )
            self.quiz_controller = QuizController(self.question_source, self.config_manager)

            self.setup_commands()

            logger.info("Bot setup completed successfully")

        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    def apply_configuration(self):
        """Apply the trivia section of the configuration file."""
        trivia_config = self.app_config.get('trivia', {})
        errors = self.config_manager.apply_config(trivia_config)
        for error in errors:
            logger.warning(f"Invalid trivia setting ignored: {error}")
        logger.info("Configuration applied")

    def setup_commands(self):
        """Register all slash commands"""

        @self.tree.command(name="help", description="Display available commands and their descriptions")
        async def help_command(interaction: discord.Interaction):
            await self.handle_help(interaction)

        @self.tree.command(name="trivia", description="Start a new trivia quiz in this channel")
        async def trivia_command(interaction: discord.Interaction):
            await self.handle_trivia(interaction)

        @self.tree.command(name="stop", description="Stop the trivia quiz in this channel")
        async def stop_command(interaction: discord.Interaction):
            await self.handle_stop(interaction)

        @self.tree.command(name="status", description="Show the current quiz progress")
        async def status_command(interaction: discord.Interaction):
            await self.handle_status(interaction)

        @self.tree.command(name="set_questions", description="Set how many questions the next quiz fetches")
        @app_commands.describe(number="Number of questions (1-50)")
        async def set_questions_command(interaction: discord.Interaction, number: int):
            await self.handle_set_questions(interaction, number)

        logger.info("Slash commands registered successfully")

    async def on_ready(self):
        """Called when the bot has successfully connected to Discord"""
        logger.info(f"Bot is ready! Logged in as {self.user}")
        logger.info(f"Bot is in {len(self.guilds)} guilds")

        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} slash commands")
        except discord.HTTPException as e:
            logger.error(f"Failed to sync slash commands: {e}")

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors"""
        logger.error(f"An error occurred in event {event}", exc_info=True)

    async def close(self):
        if self.question_source is not None:
            await self.question_source.close()
        await super().close()

    async def handle_help(self, interaction: discord.Interaction):
        """Handle /help command"""
        try:
            help_embed = discord.Embed(
                title="🎯 Trivia Bot Commands",
                description="Answer multiple-choice trivia questions from Open Trivia DB",
                color=COLOR_QUESTION
            )

            help_embed.add_field(
                name="🎮 Quiz Commands",
                value=(
                    "`/trivia` - Start a new quiz in this channel\n"
                    "`/stop` - Stop the quiz in this channel\n"
                    "`/status` - Show the current quiz progress"
                ),
                inline=False
            )

            help_embed.add_field(
                name="📋 Settings",
                value="`/set_questions <number>` - Set how many questions the next quiz fetches",
                inline=False
            )

            help_embed.add_field(
                name="⚙️ Current Settings",
                value=f"```\n{self.config_manager.get_settings_summary()}\n```",
                inline=False
            )

            help_embed.set_footer(text="Pick an answer with the buttons under each question")

            await interaction.response.send_message(embed=help_embed)

        except discord.HTTPException as e:
            logger.error(f"Error in help command: {e}")
            await self.send_error_response(interaction, "Failed to display help information")

    async def handle_trivia(self, interaction: discord.Interaction):
        """Handle /trivia command"""
        channel_id = interaction.channel_id
        try:
            await interaction.response.send_message(embed=build_loading_embed())
        except discord.HTTPException as e:
            logger.error(f"Failed to acknowledge /trivia in channel {channel_id}: {e}")
            return

        result = await self.quiz_controller.start_quiz(channel_id)
        session = self.quiz_controller.get_session(channel_id)
        try:
            if not result['applied']:
                logger.debug(f"Start result for channel {channel_id} superseded by a newer request")
                await interaction.edit_original_response(embed=build_superseded_embed(), view=None)
                return

            await interaction.edit_original_response(
                embed=build_session_embed(session),
                view=QuizView(self.quiz_controller, channel_id, session)
            )
        except discord.HTTPException as e:
            logger.error(f"Failed to present quiz in channel {channel_id}: {e}")

    async def handle_stop(self, interaction: discord.Interaction):
        """Handle /stop command"""
        result = self.quiz_controller.stop_quiz(interaction.channel_id)

        if not result['success']:
            await self.send_info_response(interaction, result['user_message'], "ℹ️ No Active Quiz")
            return

        embed = discord.Embed(
            title="🛑 Quiz Stopped",
            description=result['user_message'],
            color=COLOR_ERROR
        )
        try:
            await interaction.response.send_message(embed=embed)
        except discord.HTTPException as e:
            logger.error(f"Failed to send stop confirmation: {e}")

    async def handle_status(self, interaction: discord.Interaction):
        """Handle /status command"""
        summary = self.quiz_controller.get_session_status_summary(interaction.channel_id)
        await self.send_info_response(interaction, summary, "📊 Quiz Status")

    async def handle_set_questions(self, interaction: discord.Interaction, number: int):
        """Handle /set_questions command"""
        result = self.config_manager.set_batch_size(number)

        if result['success']:
            await self.send_info_response(interaction, result['user_message'], "✅ Settings Updated")
        else:
            await self.send_error_response(interaction, result['user_message'], "❌ Invalid Question Count")

    async def send_error_response(self, interaction: discord.Interaction, message: str, title: str = "❌ Error"):
        """Send formatted error response to user"""
        try:
            embed = discord.Embed(
                title=title,
                description=message,
                color=COLOR_ERROR
            )
            embed.set_footer(text="If this error persists, try using /help for available commands")

            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.error("Failed to send error response to user")

    async def send_info_response(self, interaction: discord.Interaction, message: str, title: str = "ℹ️ Information"):
        """Send formatted info response to user"""
        try:
            embed = discord.Embed(
                title=title,
                description=message,
                color=COLOR_INFO
            )

            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.error("Failed to send info response to user")


async def run_bot(token=None, config=None):
    """Run the bot with proper error handling"""
    if not token:
        token = os.getenv('DISCORD_BOT_TOKEN')

    if not token:
        logger.error("No Discord bot token provided")
        return

    bot = QuizBot(config)

    try:
        logger.info("Starting Trivia Quiz Bot...")
        await bot.start(token)
    except discord.LoginFailure:
        logger.error("Invalid bot token provided")
    except discord.HTTPException as e:
        logger.error(f"HTTP error occurred: {e}")
    finally:
        if not bot.is_closed():
            await bot.close()
