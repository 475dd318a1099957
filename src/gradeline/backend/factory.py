"""Review backend factory.

Provides a factory function to get the appropriate backend
based on configuration (real API or mock for testing).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from gradeline.config import get_settings

if TYPE_CHECKING:
    from gradeline.backend.protocol import ReviewBackendProtocol


# Cached mock instance so saved reviews survive across calls
_mock_backend_instance: ReviewBackendProtocol | None = None


def get_review_backend() -> ReviewBackendProtocol:
    """Get the review backend for the current configuration.

    If DEV__BACKEND_MOCK=true, returns MockReviewBackend (singleton).
    Otherwise, returns HttpReviewBackend for API__BASE_URL.

    Raises:
        ValueError: If api.token is empty and mock mode is disabled.
    """
    global _mock_backend_instance  # noqa: PLW0603
    settings = get_settings()

    if settings.dev.backend_mock:
        if _mock_backend_instance is None:
            from gradeline.backend.mock import MockReviewBackend

            _mock_backend_instance = MockReviewBackend()
        return _mock_backend_instance

    api = settings.api
    if not api.token.get_secret_value():
        msg = (
            "API__TOKEN is required when DEV__BACKEND_MOCK is not enabled. "
            "Set API__TOKEN in your .env file."
        )
        raise ValueError(msg)

    from gradeline.backend.client import HttpReviewBackend

    return HttpReviewBackend(
        api.base_url,
        api.token.get_secret_value(),
        timeout=api.timeout,
    )


def clear_config_cache() -> None:
    """Clear the configuration and mock backend caches."""
    global _mock_backend_instance  # noqa: PLW0603
    get_settings.cache_clear()
    _mock_backend_instance = None
