"""
Unit tests for Discord embeds and quiz views.
"""
import asyncio
import logging
import unittest
from unittest.mock import AsyncMock, Mock

import discord
from discord.ui.view import ViewStore

from trivia_quiz.config_manager import ConfigManager
from trivia_quiz.models import Question
from trivia_quiz.question_source import NetworkError, QuestionSource
from trivia_quiz.quiz_controller import QuizController
from trivia_quiz.quiz_session import QuizPhase, QuizSession
from trivia_quiz.views import (
    NextButton,
    OptionButton,
    QuizView,
    ReloadButton,
    STALE_MESSAGE,
    build_session_embed,
)
from tests.test_fixtures import MockDiscordObjects, TestFixtures


class TestSessionEmbeds(unittest.TestCase):
    """Test cases for rendering each session phase."""

    def setUp(self):
        logging.disable(logging.CRITICAL)

    def tearDown(self):
        logging.disable(logging.NOTSET)

    def test_loading_embed(self):
        embed = build_session_embed(QuizSession())
        self.assertIn("Loading", embed.title)

    def test_error_embed(self):
        session = QuizSession()
        session.fail("No questions returned. Please try again.")

        embed = build_session_embed(session)

        self.assertEqual(embed.title, "❌ Error")
        self.assertEqual(embed.description, "No questions returned. Please try again.")

    def test_question_embed_before_answer(self):
        session = TestFixtures.create_loaded_session()

        embed = build_session_embed(session)

        self.assertEqual(embed.title, "🎯 Question 1 of 3")
        self.assertEqual(embed.description, "What is 2+2?")
        self.assertEqual(len(embed.fields), 0)

    def test_question_embed_correct_feedback(self):
        session = TestFixtures.create_loaded_session()
        session.submit_answer("4")

        embed = build_session_embed(session)

        self.assertEqual(embed.fields[0].value, "🎉 Correct!")
        self.assertEqual(embed.footer.text, "Score: 1")

    def test_question_embed_wrong_feedback(self):
        session = TestFixtures.create_loaded_session()
        session.submit_answer("5")

        embed = build_session_embed(session)

        self.assertIn("The correct answer is **4**", embed.fields[0].value)

    def test_results_embed(self):
        session = TestFixtures.create_loaded_session()
        for answer in ["4", "Paris", "Jupiter"]:
            session.submit_answer(answer)
            session.advance()

        embed = build_session_embed(session)

        self.assertEqual(session.phase, QuizPhase.FINISHED)
        self.assertEqual(embed.description, "You scored 3 out of 3")


class TestQuizView(unittest.IsolatedAsyncioTestCase):
    """Test cases for QuizView components and callbacks."""

    async def asyncSetUp(self):
        logging.disable(logging.CRITICAL)
        self.channel_id = 12345
        self.mock_source = Mock(spec=QuestionSource)
        self.mock_source.fetch = AsyncMock(return_value=TestFixtures.create_sample_questions())
        self.controller = QuizController(self.mock_source, ConfigManager())
        await self.controller.start_quiz(self.channel_id)
        self.session = self.controller.get_session(self.channel_id)
        self.interaction = MockDiscordObjects.create_mock_interaction(self.channel_id)

    async def asyncTearDown(self):
        logging.disable(logging.NOTSET)

    def make_view(self):
        return QuizView(self.controller, self.channel_id, self.session)

    def edited_view(self) -> QuizView:
        return self.interaction.response.edit_message.await_args.kwargs['view']

    async def test_unanswered_question_has_option_buttons(self):
        view = self.make_view()

        option_buttons = [item for item in view.children if isinstance(item, OptionButton)]
        self.assertEqual([button.option for button in option_buttons], ["3", "4", "5", "22"])
        self.assertTrue(all(not button.disabled for button in option_buttons))
        self.assertFalse(any(isinstance(item, NextButton) for item in view.children))

    async def test_answered_question_styles(self):
        self.session.submit_answer("5")
        view = self.make_view()

        styles = {item.option: item.style for item in view.children if isinstance(item, OptionButton)}
        self.assertEqual(styles["4"], discord.ButtonStyle.success)
        self.assertEqual(styles["5"], discord.ButtonStyle.danger)
        self.assertEqual(styles["3"], discord.ButtonStyle.secondary)
        self.assertTrue(all(item.disabled for item in view.children if isinstance(item, OptionButton)))
        self.assertTrue(any(isinstance(item, NextButton) for item in view.children))

    async def test_long_option_label_is_truncated(self):
        long_option = "x" * 120
        session = TestFixtures.create_loaded_session([Question("Long?", (long_option, "short"), "short")])
        view = QuizView(self.controller, self.channel_id, session)

        labels = [item.label for item in view.children if isinstance(item, OptionButton)]
        self.assertEqual(len(labels[0]), 80)
        self.assertEqual(view.children[0].option, long_option)

    async def test_handle_answer_records_and_rerenders(self):
        view = self.make_view()

        await view.handle_answer(self.interaction, "4")

        self.assertEqual(self.session.score, 1)
        self.interaction.response.edit_message.assert_awaited_once()
        kwargs = self.interaction.response.edit_message.await_args.kwargs
        self.assertEqual(kwargs['embed'].fields[0].value, "🎉 Correct!")
        self.assertIsInstance(kwargs['view'], QuizView)
        self.assertTrue(view.is_finished())
        self.assertFalse(kwargs['view'].is_finished())

    async def test_handle_answer_on_stale_view(self):
        """Test that clicks on an outdated message do not change the session."""
        view = self.make_view()
        self.session.submit_answer("3")
        self.session.advance()

        await view.handle_answer(self.interaction, "4")

        self.assertEqual(self.session.score, 0)
        self.assertFalse(self.session.is_answered)
        self.interaction.response.send_message.assert_awaited_once_with(STALE_MESSAGE, ephemeral=True)

    async def test_handle_next_moves_forward(self):
        self.session.submit_answer("4")
        view = self.make_view()

        await view.handle_next(self.interaction)

        self.assertEqual(self.session.current_index, 1)
        self.assertEqual(self.edited_view().question_index, 1)

    async def test_finish_shows_restart(self):
        for answer in ["4", "Paris"]:
            self.session.submit_answer(answer)
            self.session.advance()
        self.session.submit_answer("Jupiter")

        await self.make_view().handle_next(self.interaction)

        view = self.edited_view()
        self.assertEqual(self.session.phase, QuizPhase.FINISHED)
        self.assertEqual(len(view.children), 1)
        self.assertIsInstance(view.children[0], ReloadButton)
        self.assertFalse(view.children[0].retry)

    async def test_restart_from_results(self):
        for answer in ["4", "Paris", "Jupiter"]:
            self.session.submit_answer(answer)
            self.session.advance()
        view = self.make_view()

        await view.handle_reload(self.interaction, retry=False)

        self.assertEqual(self.session.phase, QuizPhase.IN_PROGRESS)
        self.assertEqual(self.session.score, 0)
        self.assertEqual(self.session.generation, 1)
        self.interaction.edit_original_response.assert_awaited_once()

    async def test_retry_from_error(self):
        self.mock_source.fetch.side_effect = NetworkError("down")
        await self.controller.restart_quiz(self.channel_id)
        view = self.make_view()
        self.assertIsInstance(view.children[0], ReloadButton)
        self.assertTrue(view.children[0].retry)

        self.mock_source.fetch.side_effect = None
        await view.handle_reload(self.interaction, retry=True)

        self.assertEqual(self.session.phase, QuizPhase.IN_PROGRESS)
        self.interaction.edit_original_response.assert_awaited_once()

    async def test_reload_on_stale_view(self):
        view = self.make_view()
        await self.controller.restart_quiz(self.channel_id)

        await view.handle_reload(self.interaction, retry=False)

        self.assertEqual(self.mock_source.fetch.await_count, 2)
        self.interaction.response.send_message.assert_awaited_once_with(STALE_MESSAGE, ephemeral=True)

    async def test_stale_click_stops_view(self):
        view = self.make_view()
        await self.controller.restart_quiz(self.channel_id)

        await view.handle_answer(self.interaction, "4")

        self.assertTrue(view.is_finished())

    async def test_superseded_reload_shows_notice(self):
        """Test that a restart overtaken by a newer one leaves a replacement notice."""
        for answer in ["4", "Paris", "Jupiter"]:
            self.session.submit_answer(answer)
            self.session.advance()
        view = self.make_view()
        release = asyncio.Event()
        calls = []

        async def fetch(batch_size, question_type, **kwargs):
            calls.append(batch_size)
            if len(calls) == 1:
                await release.wait()
            return TestFixtures.create_sample_questions()

        self.mock_source.fetch.side_effect = fetch

        pending = asyncio.create_task(view.handle_reload(self.interaction, retry=False))
        await asyncio.sleep(0)
        await self.controller.restart_quiz(self.channel_id)
        release.set()
        await pending

        kwargs = self.interaction.edit_original_response.await_args.kwargs
        self.assertEqual(kwargs['embed'].title, "⏹️ Quiz Replaced")
        self.assertIsNone(kwargs['view'])
        self.assertEqual(self.session.phase, QuizPhase.IN_PROGRESS)


class TestQuizViewStore(unittest.IsolatedAsyncioTestCase):
    """Test that re-rendered views do not pile up in discord.py's view store."""

    MESSAGE_ID = 987654321

    async def asyncSetUp(self):
        logging.disable(logging.CRITICAL)
        self.channel_id = 12345
        self.mock_source = Mock(spec=QuestionSource)
        self.mock_source.fetch = AsyncMock(return_value=TestFixtures.create_sample_questions())
        self.controller = QuizController(self.mock_source, ConfigManager())
        await self.controller.start_quiz(self.channel_id)
        self.session = self.controller.get_session(self.channel_id)

        self.store = ViewStore(Mock())
        self.rendered = []
        self.interaction = MockDiscordObjects.create_mock_interaction(self.channel_id)
        self.interaction.response.edit_message = AsyncMock(side_effect=self.install_view)
        self.interaction.edit_original_response = AsyncMock(side_effect=self.install_view)

    async def asyncTearDown(self):
        logging.disable(logging.NOTSET)

    async def install_view(self, embed=None, view=None):
        if view is not None:
            self.store.add_view(view, self.MESSAGE_ID)
            self.rendered.append(view)

    def dispatch_entries(self) -> int:
        return len(self.store._views.get(self.MESSAGE_ID, {}))

    async def test_full_quiz_keeps_only_latest_view(self):
        view = QuizView(self.controller, self.channel_id, self.session)
        await self.install_view(view=view)

        while self.session.phase == QuizPhase.IN_PROGRESS:
            await self.rendered[-1].handle_answer(self.interaction, self.session.current_question.correct_answer)
            await self.rendered[-1].handle_next(self.interaction)

        final_view = self.rendered[-1]
        self.assertEqual(self.session.result_summary(), "3 out of 3")
        self.assertEqual(self.dispatch_entries(), len(final_view.children))
        self.assertTrue(all(old.is_finished() for old in self.rendered[:-1]))
        self.assertFalse(final_view.is_finished())

    async def test_restart_keeps_only_latest_view(self):
        for answer in ["4", "Paris", "Jupiter"]:
            self.session.submit_answer(answer)
            self.session.advance()
        view = QuizView(self.controller, self.channel_id, self.session)
        await self.install_view(view=view)

        await view.handle_reload(self.interaction, retry=False)

        self.assertTrue(view.is_finished())
        self.assertEqual(self.dispatch_entries(), len(self.rendered[-1].children))
        self.assertEqual(self.rendered[-1].phase, QuizPhase.IN_PROGRESS)


if __name__ == '__main__':
    unittest.main()
