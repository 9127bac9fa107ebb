"""
HTTP client for the hosted open-ended grading function.

POSTs the batch as a JSON array and expects `{"graded": [...], "metadata": {...}}`.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import requests

from ..config import config
from ..errors import GradingUnavailable
from .grading_agent import (
    GradingRequestItem,
    GradingResponse,
    GradingResult,
    LLMGradingAgent,
    OpenEndedGrader,
)

logger = logging.getLogger(__name__)


class HttpGradingClient(OpenEndedGrader):
    """
    Grades open-ended answers through the backend's grading function.

    Usage:
        client = HttpGradingClient(access_token=session_token)
        response = client.grade_batch(items)
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize grading client.

        Args:
            endpoint: Full URL of the grading function (default: from config)
            api_key: Anonymous API key, used when there is no access token
            access_token: Signed-in user's bearer token
            timeout: Request timeout in seconds
            session: Optional requests session (connection reuse, testing)

        Raises:
            ValueError: If no endpoint is configured
        """
        if endpoint is None:
            if not config.grading.api_url:
                raise ValueError("GRADING_API_URL is not configured")
            endpoint = config.grading.endpoint

        self.endpoint = endpoint
        self.api_key = api_key if api_key is not None else config.grading.api_key
        self.access_token = access_token
        self.timeout = timeout or config.grading.timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.access_token or self.api_key}",
        }

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Best available error message from a failed response."""
        message = f"HTTP {response.status_code}: {response.reason}"
        try:
            body = response.json()
            if isinstance(body, dict) and body.get("error"):
                return str(body["error"])
        except ValueError:
            if response.text:
                return response.text
        return message

    def grade_batch(self, items: List[GradingRequestItem]) -> GradingResponse:
        """
        Grade a batch of open-ended answers with one request.

        Raises:
            ValueError: If items is empty
            GradingUnavailable: On network errors, timeouts, error statuses or
                malformed responses
        """
        if not items:
            raise ValueError("Input must be a non-empty list of questions")

        try:
            response = self.session.post(
                self.endpoint,
                json=[item.to_dict() for item in items],
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise GradingUnavailable(f"Grading request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise GradingUnavailable(f"Grading request failed: {e}") from e

        if not response.ok:
            raise GradingUnavailable(self._error_message(response))

        try:
            data = response.json()
        except ValueError as e:
            raise GradingUnavailable("Invalid response format: body is not JSON") from e

        if not isinstance(data, dict) or not isinstance(data.get("graded"), list):
            raise GradingUnavailable("Invalid response format: missing graded array")

        try:
            graded = [GradingResult.from_dict(entry) for entry in data["graded"]]
        except ValueError as e:
            raise GradingUnavailable(f"Invalid grading result: {e}") from e

        if len(graded) != len(items):
            raise GradingUnavailable(
                f"Grader returned {len(graded)} results for {len(items)} answers"
            )

        logger.debug("Grading function graded %d answers", len(graded))
        metadata = data.get("metadata")
        if isinstance(metadata, dict):
            return GradingResponse(graded=graded, metadata=metadata)
        return GradingResponse.from_results(graded)


def create_grader(access_token: Optional[str] = None) -> OpenEndedGrader:
    """Build the grader selected by `config.grading.backend`."""
    if config.grading.backend == "llm":
        return LLMGradingAgent()
    return HttpGradingClient(access_token=access_token)
