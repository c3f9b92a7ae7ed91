"""
Unit tests for core data models.
"""
import dataclasses
import unittest

from trivia_quiz.models import Question, QuestionType, QuizSettings


class TestQuestion(unittest.TestCase):
    """Test cases for Question construction and invariants."""

    def test_valid_question(self):
        question = Question("Capital of Italy?", ["Rome", "Milan", "Turin", "Naples"], "Rome")
        self.assertEqual(question.options, ("Rome", "Milan", "Turin", "Naples"))
        self.assertIsInstance(question.options, tuple)
        self.assertTrue(question.is_correct("Rome"))
        self.assertFalse(question.is_correct("Milan"))

    def test_correct_answer_must_be_an_option(self):
        with self.assertRaises(ValueError):
            Question("Capital of Italy?", ("Milan", "Turin"), "Rome")

    def test_duplicate_options_rejected(self):
        with self.assertRaises(ValueError):
            Question("Pick one", ("A", "B", "A"), "A")

    def test_question_is_immutable(self):
        question = Question("Q?", ("A", "B"), "A")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            question.correct_answer = "B"


class TestQuizSettings(unittest.TestCase):
    """Test cases for QuizSettings defaults."""

    def test_defaults(self):
        settings = QuizSettings()
        self.assertEqual(settings.batch_size, 3)
        self.assertEqual(settings.question_type, QuestionType.MULTIPLE)
        self.assertEqual(settings.api_url, "https://opentdb.com/api.php")
        self.assertEqual(settings.request_timeout, 10.0)

    def test_question_type_values(self):
        self.assertEqual(QuestionType("multiple"), QuestionType.MULTIPLE)
        self.assertEqual(QuestionType.BOOLEAN.value, "boolean")


if __name__ == '__main__':
    unittest.main()
