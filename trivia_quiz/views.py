"""
Discord embeds and message components for presenting a trivia session.
"""
import logging
from typing import Optional

import discord

from .quiz_session import QuizPhase, QuizSession

logger = logging.getLogger(__name__)

COLOR_INFO = 0x6699ff
COLOR_QUESTION = 0x00ff00
COLOR_ERROR = 0xff0000

MAX_BUTTON_LABEL = 80
STALE_MESSAGE = "This quiz message is no longer active. Use the latest one or start again with `/trivia`."


def _button_label(option: str) -> str:
    if len(option) <= MAX_BUTTON_LABEL:
        return option
    return option[:MAX_BUTTON_LABEL - 1] + "…"


def build_loading_embed() -> discord.Embed:
    return discord.Embed(
        title="⏳ Loading quiz…",
        description="Fetching fresh trivia questions.",
        color=COLOR_INFO
    )


def build_superseded_embed() -> discord.Embed:
    return discord.Embed(
        title="⏹️ Quiz Replaced",
        description="This quiz was replaced by a newer one or stopped.",
        color=COLOR_INFO
    )


def build_error_embed(session: QuizSession) -> discord.Embed:
    embed = discord.Embed(
        title="❌ Error",
        description=session.error_message or "Failed to load questions.",
        color=COLOR_ERROR
    )
    embed.set_footer(text="Press Retry to fetch a new set of questions")
    return embed


def build_question_embed(session: QuizSession) -> discord.Embed:
    """
    Render the current question, including feedback once it has been answered.

    Args:
        session: Session in the IN_PROGRESS phase

    Returns:
        Embed for the question message
    """
    question = session.current_question
    embed = discord.Embed(
        title=f"🎯 Question {session.current_index + 1} of {session.total_questions}",
        description=question.text,
        color=COLOR_QUESTION
    )

    if session.is_answered:
        if session.is_correct_selection:
            feedback = "🎉 Correct!"
        else:
            feedback = f"❌ Wrong! The correct answer is **{question.correct_answer}**"
        embed.add_field(name="Result", value=feedback, inline=False)

    embed.set_footer(text=f"Score: {session.score}")
    return embed


def build_results_embed(session: QuizSession) -> discord.Embed:
    embed = discord.Embed(
        title="🏁 Quiz Finished 🎉",
        description=f"You scored {session.result_summary()}",
        color=COLOR_QUESTION
    )
    embed.set_footer(text="Press Restart for a new set of questions")
    return embed


def build_session_embed(session: QuizSession) -> discord.Embed:
    """Render whichever screen matches the session phase."""
    if session.phase == QuizPhase.ERROR:
        return build_error_embed(session)
    if session.phase == QuizPhase.IN_PROGRESS:
        return build_question_embed(session)
    if session.phase == QuizPhase.FINISHED:
        return build_results_embed(session)
    return build_loading_embed()


class OptionButton(discord.ui.Button):
    """Button for one answer option."""

    def __init__(self, option: str, style: discord.ButtonStyle, disabled: bool, row: int):
        super().__init__(label=_button_label(option), style=style, disabled=disabled, row=row)
        self.option = option

    async def callback(self, interaction: discord.Interaction):
        await self.view.handle_answer(interaction, self.option)


class NextButton(discord.ui.Button):
    """Button that advances to the next question or the results."""

    def __init__(self, is_last: bool, row: int):
        label = "Finish Quiz 🎯" if is_last else "Next Question →"
        super().__init__(label=label, style=discord.ButtonStyle.primary, row=row)

    async def callback(self, interaction: discord.Interaction):
        await self.view.handle_next(interaction)


class ReloadButton(discord.ui.Button):
    """Button that fetches a new batch, as Restart after finishing or Retry after an error."""

    def __init__(self, retry: bool):
        label = "Retry" if retry else "Restart Quiz 🔄"
        super().__init__(label=label, style=discord.ButtonStyle.primary)
        self.retry = retry

    async def callback(self, interaction: discord.Interaction):
        await self.view.handle_reload(interaction, self.retry)


class QuizView(discord.ui.View):
    """
    Components for one rendering of a session.

    The view remembers the session generation and question index it was
    built for, and ignores clicks once the session has moved on. A view
    stops listening once its message shows a newer rendering or it goes stale.
    """

    def __init__(self, controller, channel_id: int, session: QuizSession):
        super().__init__(timeout=None)
        self.controller = controller
        self.channel_id = channel_id
        self.generation = session.generation
        self.question_index = session.current_index
        self.phase = session.phase

        if session.phase == QuizPhase.IN_PROGRESS:
            self._add_question_items(session)
        elif session.phase == QuizPhase.FINISHED:
            self.add_item(ReloadButton(retry=False))
        elif session.phase == QuizPhase.ERROR:
            self.add_item(ReloadButton(retry=True))

    def _add_question_items(self, session: QuizSession) -> None:
        question = session.current_question
        for index, option in enumerate(question.options):
            style = discord.ButtonStyle.secondary
            if session.is_answered:
                if question.is_correct(option):
                    style = discord.ButtonStyle.success
                elif option == session.selected_answer:
                    style = discord.ButtonStyle.danger
            self.add_item(OptionButton(option, style, disabled=session.is_answered, row=index // 5))

        if session.is_answered:
            option_rows = (len(question.options) + 4) // 5
            self.add_item(NextButton(session.is_last_question, row=option_rows))

    def is_current(self, session: Optional[QuizSession]) -> bool:
        return (
            session is not None
            and session.generation == self.generation
            and session.phase == self.phase
            and session.current_index == self.question_index
        )

    async def _render(self, interaction: discord.Interaction, session: QuizSession) -> None:
        await interaction.response.edit_message(
            embed=build_session_embed(session),
            view=QuizView(self.controller, self.channel_id, session)
        )
        self.stop()

    async def _reject(self, interaction: discord.Interaction, message: str) -> None:
        await interaction.response.send_message(message, ephemeral=True)

    async def _reject_stale(self, interaction: discord.Interaction) -> None:
        self.stop()
        await self._reject(interaction, STALE_MESSAGE)

    async def handle_answer(self, interaction: discord.Interaction, option: str) -> None:
        session = self.controller.get_session(self.channel_id)
        if not self.is_current(session):
            await self._reject_stale(interaction)
            return

        result = self.controller.submit_answer(self.channel_id, option)
        if not result['success']:
            await self._reject(interaction, result['user_message'])
            return

        await self._render(interaction, session)

    async def handle_next(self, interaction: discord.Interaction) -> None:
        session = self.controller.get_session(self.channel_id)
        if not self.is_current(session):
            await self._reject_stale(interaction)
            return

        result = self.controller.advance_question(self.channel_id)
        if not result['success']:
            await self._reject(interaction, result['user_message'])
            return

        await self._render(interaction, session)

    async def handle_reload(self, interaction: discord.Interaction, retry: bool) -> None:
        session = self.controller.get_session(self.channel_id)
        if not self.is_current(session):
            await self._reject_stale(interaction)
            return

        await interaction.response.edit_message(embed=build_loading_embed(), view=None)
        self.stop()

        if retry:
            result = await self.controller.retry_quiz(self.channel_id)
        else:
            result = await self.controller.restart_quiz(self.channel_id)

        try:
            if not result['applied']:
                # A newer fetch or a /stop owns the session now
                logger.debug(f"Reload result for channel {self.channel_id} was not applied")
                await interaction.edit_original_response(embed=build_superseded_embed(), view=None)
                return

            await interaction.edit_original_response(
                embed=build_session_embed(session),
                view=QuizView(self.controller, self.channel_id, session)
            )
        except discord.HTTPException as e:
            logger.error(f"Failed to render reloaded quiz for channel {self.channel_id}: {e}")
