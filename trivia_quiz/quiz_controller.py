"""
Quiz session controller for the Trivia Quiz Bot.
Manages one quiz session per Discord channel and routes fetch results into it.
"""
import logging
import time
from typing import Any, Dict, Optional

from .config_manager import ConfigManager
from .question_source import (
    DecodeError,
    EmptyResultError,
    NetworkError,
    QuestionSource,
    QuestionSourceError,
)
from .quiz_session import QuizPhase, QuizSession

NO_SESSION_MESSAGE = "❌ No trivia quiz is running in this channel. Start one with `/trivia`."


class QuizController:
    """
    Orchestrates trivia sessions across Discord channels.

    Each channel has at most one session. Fetches are tagged with the
    session generation that issued them, so a result arriving after a
    restart, retry or stop is dropped instead of overwriting newer state.
    """

    def __init__(self, question_source: QuestionSource, config_manager: ConfigManager):
        """
        Initialize the quiz controller.

        Args:
            question_source: Source used to fetch question batches
            config_manager: Instance for reading fetch settings
        """
        self.logger = logging.getLogger(__name__)
        self.question_source = question_source
        self.config_manager = config_manager

        # Sessions mapped by channel ID
        self._sessions: Dict[int, QuizSession] = {}

        self.logger.info("QuizController initialized")

    def get_session(self, channel_id: int) -> Optional[QuizSession]:
        return self._sessions.get(channel_id)

    def has_session(self, channel_id: int) -> bool:
        return channel_id in self._sessions

    async def start_quiz(self, channel_id: int) -> Dict[str, Any]:
        """
        Start a quiz in a channel, restarting any quiz already running there.

        Args:
            channel_id: Discord channel identifier

        Returns:
            Dictionary describing the outcome of the fetch
        """
        session = self._sessions.get(channel_id)
        if session is None:
            session = QuizSession()
            self._sessions[channel_id] = session
            generation = session.generation
            self.logger.info(f"Created trivia session for channel {channel_id}")
        else:
            generation = session.restart()
            self.logger.info(f"Restarted existing trivia session for channel {channel_id}")

        return await self._fetch_into_session(channel_id, session, generation)

    async def restart_quiz(self, channel_id: int) -> Dict[str, Any]:
        """
        Discard the channel's quiz and fetch a new batch.

        Args:
            channel_id: Discord channel identifier

        Returns:
            Dictionary describing the outcome of the fetch
        """
        session = self._sessions.get(channel_id)
        if session is None:
            return {'success': False, 'applied': False, 'user_message': NO_SESSION_MESSAGE}

        generation = session.restart()
        return await self._fetch_into_session(channel_id, session, generation)

    async def retry_quiz(self, channel_id: int) -> Dict[str, Any]:
        """
        Fetch again after a failed load.

        Args:
            channel_id: Discord channel identifier

        Returns:
            Dictionary describing the outcome of the fetch
        """
        session = self._sessions.get(channel_id)
        if session is None:
            return {'success': False, 'applied': False, 'user_message': NO_SESSION_MESSAGE}

        generation = session.retry()
        if generation is None:
            return {
                'success': False,
                'applied': False,
                'phase': session.phase.value,
                'user_message': "❌ There is nothing to retry right now."
            }

        return await self._fetch_into_session(channel_id, session, generation)

    async def load_questions(self, channel_id: int, generation: int) -> bool:
        """
        Fetch questions for a specific session generation.

        Args:
            channel_id: Discord channel identifier
            generation: Generation the fetch belongs to

        Returns:
            True if the result was applied to the session
        """
        session = self._sessions.get(channel_id)
        if session is None:
            return False

        result = await self._fetch_into_session(channel_id, session, generation)
        return result['applied']

    async def _fetch_into_session(self, channel_id: int, session: QuizSession, generation: int) -> Dict[str, Any]:
        settings = self.config_manager.get_quiz_settings()
        start_time = time.time()

        questions = None
        error_message = None
        try:
            questions = await self.question_source.fetch(
                settings.batch_size,
                settings.question_type,
                api_url=settings.api_url,
                timeout=settings.request_timeout
            )
        except QuestionSourceError as e:
            self.logger.error(
                f"Question fetch failed for channel {channel_id}: {e}",
                extra={
                    'event_type': 'question_fetch_failed',
                    'channel_id': channel_id,
                    'generation': generation,
                    'error_type': type(e).__name__,
                    'timestamp': time.time()
                }
            )
            error_message = self._get_user_friendly_error_message(e)
        except Exception as e:
            self.logger.error(f"Unexpected error fetching questions for channel {channel_id}: {e}", exc_info=True)
            error_message = self._get_user_friendly_error_message(e)

        if self._sessions.get(channel_id) is not session:
            self.logger.info(
                f"Discarding fetch result for channel {channel_id}: session was stopped or replaced",
                extra={
                    'event_type': 'orphaned_fetch_discarded',
                    'channel_id': channel_id,
                    'generation': generation,
                    'timestamp': time.time()
                }
            )
            return {'success': False, 'applied': False, 'generation': generation, 'user_message': NO_SESSION_MESSAGE}

        if error_message is None:
            applied = session.load(questions, generation)
        else:
            applied = session.fail(error_message, generation)

        self.logger.info(
            f"Fetch for channel {channel_id} generation {generation} finished in "
            f"{time.time() - start_time:.3f}s, applied: {applied}, phase: {session.phase.value}"
        )

        return {
            'success': applied and session.phase == QuizPhase.IN_PROGRESS,
            'applied': applied,
            'generation': generation,
            'phase': session.phase.value,
            'user_message': session.error_message if session.phase == QuizPhase.ERROR else None
        }

    def submit_answer(self, channel_id: int, option: str) -> Dict[str, Any]:
        """
        Record an answer for the channel's current question.

        Args:
            channel_id: Discord channel identifier
            option: The option the user selected

        Returns:
            Dictionary with success status, correctness and score
        """
        session = self._sessions.get(channel_id)
        if session is None:
            return {'success': False, 'user_message': NO_SESSION_MESSAGE}

        question = session.current_question
        if not session.submit_answer(option):
            return {
                'success': False,
                'user_message': "❌ This question has already been answered."
                if session.is_answered else "❌ There is no question to answer right now."
            }

        self.logger.info(
            f"Answer recorded for channel {channel_id}: question {session.current_index + 1}, "
            f"correct: {question.is_correct(option)}, score: {session.score}"
        )
        return {
            'success': True,
            'is_correct': question.is_correct(option),
            'correct_answer': question.correct_answer,
            'score': session.score
        }

    def advance_question(self, channel_id: int) -> Dict[str, Any]:
        """
        Move the channel's quiz to the next question or finish it.

        Args:
            channel_id: Discord channel identifier

        Returns:
            Dictionary with success status and whether the quiz finished
        """
        session = self._sessions.get(channel_id)
        if session is None:
            return {'success': False, 'finished': False, 'user_message': NO_SESSION_MESSAGE}

        if not session.advance():
            return {
                'success': False,
                'finished': session.phase == QuizPhase.FINISHED,
                'user_message': "❌ Answer the current question first."
            }

        finished = session.phase == QuizPhase.FINISHED
        if finished:
            self.logger.info(f"Quiz finished for channel {channel_id}: {session.result_summary()}")

        return {
            'success': True,
            'finished': finished,
            'score': session.score,
            'total_questions': session.total_questions
        }

    def stop_quiz(self, channel_id: int) -> Dict[str, Any]:
        """
        Remove the channel's quiz. Any fetch still running for it is discarded.

        Args:
            channel_id: Discord channel identifier

        Returns:
            Dictionary with success status and final progress
        """
        session = self._sessions.pop(channel_id, None)
        if session is None:
            return {'success': False, 'user_message': NO_SESSION_MESSAGE}

        self.logger.info(f"Stopped trivia session for channel {channel_id}")
        return {
            'success': True,
            'progress': session.get_progress(),
            'user_message': f"🛑 Quiz stopped. Final score: {session.result_summary()}"
        }

    def get_session_progress(self, channel_id: int) -> Optional[Dict[str, Any]]:
        session = self._sessions.get(channel_id)
        if session is None:
            return None
        return session.get_progress()

    def get_session_status_summary(self, channel_id: int) -> str:
        """
        Get a human-readable status line for the channel's quiz.

        Args:
            channel_id: Discord channel identifier

        Returns:
            Status description
        """
        session = self._sessions.get(channel_id)
        if session is None:
            return "No trivia quiz in this channel."

        if session.phase == QuizPhase.LOADING:
            return "⏳ Loading questions..."
        if session.phase == QuizPhase.ERROR:
            return f"❌ Failed to load questions: {session.error_message}"
        if session.phase == QuizPhase.FINISHED:
            return f"🏁 Quiz finished. Score: {session.result_summary()}"

        return (
            f"🎯 Question {session.current_index + 1}/{session.total_questions}, "
            f"score {session.score}"
        )

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """
        Generate user-friendly error messages.

        Args:
            error: The exception raised while fetching

        Returns:
            User-friendly error message
        """
        if isinstance(error, EmptyResultError):
            return "No questions returned. Please try again."
        if isinstance(error, NetworkError):
            return "Could not reach the trivia service. Please try again."
        if isinstance(error, DecodeError):
            return "The trivia service sent questions that could not be read. Please try again."
        return "Failed to load questions. Please try again."
