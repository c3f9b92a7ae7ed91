"""
Core data models for the Trivia Quiz Bot.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class QuestionType(Enum):
    """Question formats offered by the trivia API."""
    MULTIPLE = "multiple"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class Question:
    """Represents a single decoded trivia question with its display options."""
    text: str
    options: Tuple[str, ...]
    correct_answer: str

    def __post_init__(self):
        options = tuple(self.options)
        object.__setattr__(self, 'options', options)

        if len(set(options)) != len(options):
            raise ValueError(f"Question options contain duplicates: {options}")
        if self.correct_answer not in options:
            raise ValueError(f"Correct answer {self.correct_answer!r} is not one of the options")

    def is_correct(self, option: str) -> bool:
        return option == self.correct_answer


@dataclass
class QuizSettings:
    """Configuration settings used when fetching a question batch."""
    batch_size: int = 3
    question_type: QuestionType = QuestionType.MULTIPLE
    api_url: str = "https://opentdb.com/api.php"
    request_timeout: float = 10.0
