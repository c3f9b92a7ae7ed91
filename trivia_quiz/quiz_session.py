"""
Quiz session state machine for the Trivia Quiz Bot.
Tracks progress through a question batch, answer state, scoring and fetch generations.
"""
import logging
import time
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from .models import Question

logger = logging.getLogger(__name__)

NO_QUESTIONS_MESSAGE = "No questions returned"


class QuizPhase(Enum):
    """Enumeration of quiz session phases."""
    LOADING = "loading"
    ERROR = "error"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class SessionLifecycleLogger:
    """Structured logging for session lifecycle events."""

    @staticmethod
    def log_transition(generation: int, from_phase: QuizPhase, to_phase: QuizPhase, reason: str = None) -> None:
        """Log a phase transition."""
        logger.info(
            f"Session lifecycle: TRANSITION - Generation {generation}, {from_phase.value} -> {to_phase.value}" +
            (f" ({reason})" if reason else ""),
            extra={
                'event_type': 'session_transition',
                'generation': generation,
                'from_phase': from_phase.value,
                'to_phase': to_phase.value,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_stale_result(current_generation: int, result_generation: int, operation: str) -> None:
        """Log a fetch result discarded because a newer fetch was issued."""
        logger.warning(
            f"Session lifecycle: STALE_RESULT - {operation} for generation {result_generation} "
            f"discarded, current generation is {current_generation}",
            extra={
                'event_type': 'stale_fetch_discarded',
                'current_generation': current_generation,
                'result_generation': result_generation,
                'operation': operation,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_rejected_operation(generation: int, operation: str, phase: QuizPhase, reason: str) -> None:
        """Log an operation ignored because the session is in the wrong state."""
        logger.debug(
            f"Session lifecycle: REJECTED - {operation} in phase {phase.value}: {reason}",
            extra={
                'event_type': 'session_operation_rejected',
                'generation': generation,
                'operation': operation,
                'phase': phase.value,
                'reason': reason,
                'timestamp': time.time()
            }
        )


class QuizSession:
    """
    State machine owning the progress of one quiz.

    Phases move LOADING -> IN_PROGRESS | ERROR, IN_PROGRESS -> FINISHED, and
    back to LOADING through restart() or retry(). Each restart bumps the
    generation; load() and fail() only apply results for the current one.

    Invalid operations are ignored and reported through the return value.
    """

    def __init__(self):
        self._generation = 0
        self._clear()

    def _clear(self) -> None:
        self._questions: Tuple[Question, ...] = ()
        self._phase = QuizPhase.LOADING
        self._error_message: Optional[str] = None
        self._current_index = 0
        self._selected_answer: Optional[str] = None
        self._is_answered = False
        self._score = 0

    def _set_phase(self, phase: QuizPhase, reason: str = None) -> None:
        previous = self._phase
        self._phase = phase
        SessionLifecycleLogger.log_transition(self._generation, previous, phase, reason)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def phase(self) -> QuizPhase:
        return self._phase

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def questions(self) -> Tuple[Question, ...]:
        return self._questions

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def selected_answer(self) -> Optional[str]:
        return self._selected_answer

    @property
    def is_answered(self) -> bool:
        return self._is_answered

    @property
    def score(self) -> int:
        return self._score

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    @property
    def current_question(self) -> Optional[Question]:
        """The question being asked, or None outside IN_PROGRESS."""
        if self._phase != QuizPhase.IN_PROGRESS or not self._questions:
            return None
        return self._questions[self._current_index]

    @property
    def is_last_question(self) -> bool:
        return bool(self._questions) and self._current_index == len(self._questions) - 1

    @property
    def is_correct_selection(self) -> Optional[bool]:
        """Whether the selected answer is correct, or None if nothing was selected."""
        question = self.current_question
        if question is None or not self._is_answered:
            return None
        return question.is_correct(self._selected_answer)

    def _accepts_result(self, generation: Optional[int], operation: str) -> bool:
        if generation is not None and generation != self._generation:
            SessionLifecycleLogger.log_stale_result(self._generation, generation, operation)
            return False
        if self._phase != QuizPhase.LOADING:
            SessionLifecycleLogger.log_rejected_operation(
                self._generation, operation, self._phase, "session is not loading"
            )
            return False
        return True

    def load(self, questions: Sequence[Question], generation: Optional[int] = None) -> bool:
        """
        Load a fetched question batch and begin the quiz.

        An empty batch moves the session to ERROR instead.

        Args:
            questions: Decoded questions in presentation order
            generation: Generation the batch was fetched for, None to skip the check

        Returns:
            True if the batch was applied, False if it was stale or out of phase
        """
        if not self._accepts_result(generation, 'load'):
            return False

        if not questions:
            self._error_message = NO_QUESTIONS_MESSAGE
            self._set_phase(QuizPhase.ERROR, "empty batch")
            return True

        self._questions = tuple(questions)
        self._current_index = 0
        self._score = 0
        self._selected_answer = None
        self._is_answered = False
        self._error_message = None
        self._set_phase(QuizPhase.IN_PROGRESS, f"{len(self._questions)} questions loaded")
        return True

    def fail(self, message: str, generation: Optional[int] = None) -> bool:
        """
        Record a failed fetch.

        Returns:
            True if the failure was applied, False if it was stale or out of phase
        """
        if not self._accepts_result(generation, 'fail'):
            return False

        self._error_message = message
        self._set_phase(QuizPhase.ERROR, message)
        return True

    def submit_answer(self, option: str) -> bool:
        """
        Select an answer for the current question.

        Only the first selection per question counts.

        Returns:
            True if the answer was recorded
        """
        if self._phase != QuizPhase.IN_PROGRESS:
            SessionLifecycleLogger.log_rejected_operation(
                self._generation, 'submit_answer', self._phase, "quiz is not in progress"
            )
            return False

        if self._is_answered:
            SessionLifecycleLogger.log_rejected_operation(
                self._generation, 'submit_answer', self._phase, "question already answered"
            )
            return False

        self._selected_answer = option
        self._is_answered = True

        if self._questions[self._current_index].is_correct(option):
            self._score += 1

        return True

    def advance(self) -> bool:
        """
        Move past the answered question, finishing the quiz after the last one.

        Returns:
            True if the session moved forward
        """
        if not self._questions:
            return False

        if self._phase != QuizPhase.IN_PROGRESS or not self._is_answered:
            SessionLifecycleLogger.log_rejected_operation(
                self._generation, 'advance', self._phase, "current question not answered"
            )
            return False

        if self.is_last_question:
            self._set_phase(QuizPhase.FINISHED, f"score {self._score}/{len(self._questions)}")
            return True

        self._current_index += 1
        self._selected_answer = None
        self._is_answered = False
        return True

    def restart(self) -> int:
        """
        Discard all state and return to LOADING for a new fetch.

        Returns:
            The new generation; pass it to load() or fail() with the fetch result
        """
        previous = self._phase
        self._generation += 1
        self._clear()
        SessionLifecycleLogger.log_transition(self._generation, previous, QuizPhase.LOADING, "restart")
        return self._generation

    def retry(self) -> Optional[int]:
        """
        Restart after a failed fetch.

        Returns:
            The new generation, or None if the session is not in ERROR
        """
        if self._phase != QuizPhase.ERROR:
            SessionLifecycleLogger.log_rejected_operation(
                self._generation, 'retry', self._phase, "session has not failed"
            )
            return None
        return self.restart()

    def result_summary(self) -> str:
        return f"{self._score} out of {len(self._questions)}"

    def get_progress(self) -> Dict[str, Any]:
        """
        Get a snapshot of the session for rendering and status reports.

        Returns:
            Dictionary describing phase, position and score
        """
        return {
            'phase': self._phase.value,
            'generation': self._generation,
            'current_question': self._current_index + 1 if self._questions else 0,
            'total_questions': len(self._questions),
            'score': self._score,
            'is_answered': self._is_answered,
            'selected_answer': self._selected_answer,
            'error_message': self._error_message
        }
