"""
Configuration manager for Trivia Quiz Bot settings.
"""
import logging
from typing import Any, Dict, List, Union
from urllib.parse import urlparse

from .models import QuestionType, QuizSettings


class ConfigManager:
    """Manages question fetch settings with validation."""

    # Default configuration values
    DEFAULT_BATCH_SIZE = 3
    DEFAULT_QUESTION_TYPE = QuestionType.MULTIPLE
    DEFAULT_API_URL = "https://opentdb.com/api.php"
    DEFAULT_REQUEST_TIMEOUT = 10.0

    # Validation limits
    MIN_BATCH_SIZE = 1
    MAX_BATCH_SIZE = 50  # Open Trivia DB limit per request
    MIN_REQUEST_TIMEOUT = 1.0
    MAX_REQUEST_TIMEOUT = 60.0

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._settings = QuizSettings()

    def get_quiz_settings(self) -> QuizSettings:
        """
        Get current quiz settings.

        Returns:
            Copy of the current QuizSettings
        """
        return QuizSettings(
            batch_size=self._settings.batch_size,
            question_type=self._settings.question_type,
            api_url=self._settings.api_url,
            request_timeout=self._settings.request_timeout
        )

    def set_batch_size(self, count: int) -> Dict[str, Any]:
        """
        Set the number of questions fetched per quiz.

        Args:
            count: Number of questions

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(count, bool) or not isinstance(count, int):
            error_msg = f"Batch size must be an integer, got {type(count).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(count).__name__}"
            }

        if count < self.MIN_BATCH_SIZE:
            error_msg = f"Batch size must be at least {self.MIN_BATCH_SIZE}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Too few questions: Minimum is {self.MIN_BATCH_SIZE}"
            }

        if count > self.MAX_BATCH_SIZE:
            error_msg = f"Batch size cannot exceed {self.MAX_BATCH_SIZE}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Too many questions: Maximum is {self.MAX_BATCH_SIZE}"
            }

        self._settings.batch_size = count
        self.logger.info(f"Batch size set to {count}")
        return {
            'success': True,
            'message': f"Batch size set to {count}",
            'user_message': f"✅ Each quiz will have {count} questions"
        }

    def get_batch_size(self) -> int:
        return self._settings.batch_size

    def set_question_type(self, question_type: Union[QuestionType, str]) -> Dict[str, Any]:
        """
        Set the question format requested from the API.

        Args:
            question_type: QuestionType member or its string value

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        try:
            resolved = QuestionType(question_type)
        except ValueError:
            valid = ", ".join(member.value for member in QuestionType)
            error_msg = f"Unknown question type: {question_type!r}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Unknown question type. Choose one of: {valid}"
            }

        self._settings.question_type = resolved
        self.logger.info(f"Question type set to {resolved.value}")
        return {
            'success': True,
            'message': f"Question type set to {resolved.value}",
            'user_message': f"✅ Questions will be {resolved.value} choice"
        }

    def get_question_type(self) -> QuestionType:
        return self._settings.question_type

    def set_api_url(self, url: str) -> Dict[str, Any]:
        """
        Set the trivia API endpoint.

        Args:
            url: Absolute http(s) URL

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(url, str) or not url.strip():
            error_msg = "API URL cannot be empty"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': "❌ API URL cannot be empty"
            }

        parsed = urlparse(url.strip())
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            error_msg = f"API URL must be an absolute http(s) URL: {url}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid API URL: {url}"
            }

        self._settings.api_url = url.strip()
        self.logger.info(f"API URL set to {self._settings.api_url}")
        return {
            'success': True,
            'message': f"API URL set to {self._settings.api_url}",
            'user_message': f"✅ Questions will be fetched from {self._settings.api_url}"
        }

    def get_api_url(self) -> str:
        return self._settings.api_url

    def set_request_timeout(self, seconds: Union[int, float]) -> Dict[str, Any]:
        """
        Set the HTTP request timeout.

        Args:
            seconds: Timeout in seconds

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
            error_msg = f"Request timeout must be a number, got {type(seconds).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(seconds).__name__}"
            }

        if not self.MIN_REQUEST_TIMEOUT <= seconds <= self.MAX_REQUEST_TIMEOUT:
            error_msg = (
                f"Request timeout must be between {self.MIN_REQUEST_TIMEOUT} "
                f"and {self.MAX_REQUEST_TIMEOUT} seconds"
            )
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ {error_msg}"
            }

        self._settings.request_timeout = float(seconds)
        self.logger.info(f"Request timeout set to {seconds} seconds")
        return {
            'success': True,
            'message': f"Request timeout set to {seconds} seconds",
            'user_message': f"✅ Request timeout set to {seconds} seconds"
        }

    def get_request_timeout(self) -> float:
        return self._settings.request_timeout

    def apply_config(self, trivia_config: Dict[str, Any]) -> List[str]:
        """
        Apply the 'trivia' section of config.json.

        Invalid entries are skipped and keep their current value.

        Args:
            trivia_config: Mapping read from config.json

        Returns:
            List of error messages for entries that were rejected
        """
        setters = {
            'batch_size': self.set_batch_size,
            'question_type': self.set_question_type,
            'api_url': self.set_api_url,
            'request_timeout': self.set_request_timeout,
        }

        errors = []
        for key, setter in setters.items():
            if key not in trivia_config:
                continue
            result = setter(trivia_config[key])
            if not result['success']:
                errors.append(result['error'])

        unknown = set(trivia_config) - set(setters)
        for key in sorted(unknown):
            self.logger.warning(f"Ignoring unknown trivia setting: {key}")

        return errors

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._settings = QuizSettings(
            batch_size=self.DEFAULT_BATCH_SIZE,
            question_type=self.DEFAULT_QUESTION_TYPE,
            api_url=self.DEFAULT_API_URL,
            request_timeout=self.DEFAULT_REQUEST_TIMEOUT
        )
        self.logger.info("All settings reset to default values")

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        return (
            f"Quiz Settings:\n"
            f"• Questions: {self._settings.batch_size}\n"
            f"• Type: {self._settings.question_type.value}\n"
            f"• Source: {self._settings.api_url}\n"
            f"• Timeout: {self._settings.request_timeout:g} seconds"
        )
