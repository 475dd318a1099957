"""httpx client for the submissions API.

Implements ReviewBackendProtocol over the REST endpoints used by the review
screen. All requests carry the configured bearer token.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from gradeline.backend.errors import BackendError
from gradeline.backend.models import AnalysisResult, SubmissionPayload

if TYPE_CHECKING:
    from types import TracebackType

    from gradeline.backend.models import ReviewPayload

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract the API's ``message`` field, falling back to the status code."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"Error {response.status_code}"


class HttpReviewBackend:
    """Async client for the submissions and AI endpoints.

    Use as an async context manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``http://localhost:5000/api``.
            token: Bearer token for the Authorization header.
            timeout: Request timeout in seconds.
            transport: Optional transport override (tests use MockTransport).
        """
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self) -> HttpReviewBackend:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise BackendError(None, f"Could not connect to the server: {e}") from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "%s %s returned %d: %s", method, path, response.status_code, message
            )
            raise BackendError(response.status_code, message)

        try:
            return response.json()
        except ValueError as e:
            raise BackendError(response.status_code, "Invalid JSON in response") from e

    async def fetch_submission(self, submission_id: str) -> SubmissionPayload:
        data = await self._request("GET", f"/submissions/{submission_id}")
        return SubmissionPayload.model_validate(data)

    async def save_review(
        self, submission_id: str, review: ReviewPayload
    ) -> SubmissionPayload:
        data = await self._request(
            "PUT", f"/submissions/{submission_id}", review.to_wire()
        )
        saved = data.get("submission") if isinstance(data, dict) else None
        if saved is None:
            # Response did not echo the submission; read it back instead
            logger.debug("Save response had no submission, refetching")
            return await self.fetch_submission(submission_id)
        return SubmissionPayload.model_validate(saved)

    async def suggest_comment(self, text: str) -> str:
        data = await self._request(
            "POST", "/assignment/suggest-comment", {"text": text}
        )
        suggestion = data.get("suggestion") if isinstance(data, dict) else None
        if not suggestion:
            raise BackendError(None, "Suggestion not found in response.")
        return str(suggestion)

    async def analyze_submission(
        self, submission_id: str | None, content: str
    ) -> AnalysisResult:
        data = await self._request(
            "POST",
            "/ai/analyze-submission",
            {"submissionContent": content, "submissionId": submission_id},
        )
        return AnalysisResult.model_validate(data)
