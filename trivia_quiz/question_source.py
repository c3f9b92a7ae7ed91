"""
Question source for the Trivia Quiz Bot.
Fetches question batches from the Open Trivia DB API and maps them into Question objects.
"""
import logging
import random
import time
from typing import Any, Dict, List, Optional

import httpx

from .models import Question, QuestionType
from .shuffler import shuffle
from .text import decode_entities

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://opentdb.com/api.php"

# Open Trivia DB response codes
RESPONSE_SUCCESS = 0
RESPONSE_NO_RESULTS = 1


class QuestionSourceError(Exception):
    """Base exception for question fetch errors."""
    pass


class NetworkError(QuestionSourceError):
    """Raised when the request fails or the API answers with an unsuccessful response."""
    pass


class EmptyResultError(QuestionSourceError):
    """Raised when a well-formed response contains no questions."""
    pass


class DecodeError(QuestionSourceError):
    """Raised when a question record cannot be turned into a valid Question."""
    pass


class QuestionSource:
    """
    Fetches trivia questions over HTTP.

    A single httpx.AsyncClient is shared across fetches. Pass a client to
    reuse an existing one (it will not be closed by this object).
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        rng: Optional[random.Random] = None
    ):
        self.api_url = api_url
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._rng = rng

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this source created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(
        self,
        batch_size: int,
        question_type: QuestionType = QuestionType.MULTIPLE,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> List[Question]:
        """
        Fetch and decode a batch of questions.

        Args:
            batch_size: Number of questions to request
            question_type: Question format to request
            api_url: Endpoint for this request, defaults to the source's URL
            timeout: Timeout in seconds for this request, defaults to the source's timeout

        Returns:
            List of fully decoded questions with shuffled options

        Raises:
            ValueError: If batch_size is less than 1
            NetworkError: If the request fails or the response is unusable
            EmptyResultError: If the response contains no questions
            DecodeError: If any question record is malformed
        """
        if batch_size < 1:
            raise ValueError(f"Batch size must be at least 1, got {batch_size}")

        url = api_url or self.api_url
        request_timeout = self.timeout if timeout is None else timeout
        params = {'amount': batch_size, 'type': question_type.value}
        start_time = time.time()

        logger.info(
            f"Fetching {batch_size} {question_type.value} questions from {url}",
            extra={
                'event_type': 'question_fetch_start',
                'batch_size': batch_size,
                'question_type': question_type.value,
                'timestamp': start_time
            }
        )

        payload = await self._request(url, params, request_timeout)
        records = self._extract_records(payload)
        questions = self._build_questions(records)

        logger.info(
            f"Fetched {len(questions)} questions in {time.time() - start_time:.3f}s",
            extra={
                'event_type': 'question_fetch_complete',
                'question_count': len(questions),
                'duration': time.time() - start_time,
                'timestamp': time.time()
            }
        )
        return questions

    async def _request(self, url: str, params: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        try:
            response = await self._get_client().get(url, params=params, timeout=timeout)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Question request timed out after {timeout}s: {e}")
            raise NetworkError(f"Request timed out after {timeout} seconds") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"Question request failed with status {e.response.status_code}")
            raise NetworkError(f"Trivia API returned status {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Question request failed: {e}")
            raise NetworkError(f"Request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise NetworkError("Trivia API returned malformed JSON") from e

        if not isinstance(payload, dict):
            raise NetworkError(f"Expected a JSON object, got {type(payload).__name__}")

        return payload

    def _extract_records(self, payload: Dict[str, Any]) -> List[Any]:
        response_code = payload.get('response_code', RESPONSE_SUCCESS)
        if response_code == RESPONSE_NO_RESULTS:
            raise EmptyResultError("No questions returned")
        if response_code != RESPONSE_SUCCESS:
            raise NetworkError(f"Trivia API returned response code {response_code}")

        records = payload.get('results')
        if records is None or (isinstance(records, list) and not records):
            raise EmptyResultError("No questions returned")
        if not isinstance(records, list):
            raise DecodeError(f"Expected 'results' to be a list, got {type(records).__name__}")

        return records

    def _build_questions(self, records: List[Any]) -> List[Question]:
        questions = []
        for index, record in enumerate(records):
            try:
                questions.append(self._build_question(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Failed to decode question record {index}: {e}")
                raise DecodeError(f"Question {index + 1} could not be decoded: {e}") from e

        option_counts = {len(question.options) for question in questions}
        if len(option_counts) > 1:
            raise DecodeError(f"Questions in batch have differing option counts: {sorted(option_counts)}")

        return questions

    def _build_question(self, record: Dict[str, Any]) -> Question:
        text = decode_entities(record['question'])
        correct = decode_entities(record['correct_answer'])

        incorrect_answers = record['incorrect_answers']
        if not isinstance(incorrect_answers, list):
            raise TypeError(f"'incorrect_answers' must be a list, got {type(incorrect_answers).__name__}")
        incorrect = [decode_entities(answer) for answer in incorrect_answers]

        options = shuffle([correct] + incorrect, self._rng)
        return Question(text=text, options=tuple(options), correct_answer=correct)
