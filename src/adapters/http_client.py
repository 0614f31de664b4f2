"""JSON-over-HTTP helpers shared by the language-model adapters."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any, Optional

from adapters.providers import provider_label

LOGGER = logging.getLogger(__name__)


class ProviderAPIError(RuntimeError):
    """Raised for HTTP, network, and empty-response failures."""

    provider = ""

    def __init__(self, message: str, status: int = 0) -> None:
        super().__init__(message)
        self.status = status


def describe_error(error: ProviderAPIError) -> str:
    """Return a user-facing explanation for an API failure."""

    label = provider_label(error.provider) if error.provider else "provider"
    messages = {
        401: f"Invalid {label} API key. Please check your credentials in settings.",
        403: f"Access forbidden. Please check your {label} API key permissions.",
        429: "Rate limit exceeded. Please wait a moment and try again.",
        500: "Server error. Please try again later.",
    }
    return messages.get(error.status) or str(error) or "Failed to send message. Please try again."


def post_json(
    url: str,
    body: dict[str, Any],
    *,
    error_type: type[ProviderAPIError],
    headers: Optional[dict[str, str]] = None,
    timeout: float = 60,
) -> dict[str, Any]:
    """POST ``body`` as JSON and return the decoded JSON response.

    HTTP errors carry the API's own ``error.message`` when the body has one.
    """

    data = json.dumps(body).encode("utf-8")
    request = urllib.request.Request(url, data=data, method="POST")
    request.add_header("Content-Type", "application/json")
    for name, value in (headers or {}).items():
        request.add_header(name, value)
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return json.loads(response.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        body_text = e.read().decode("utf-8", errors="replace")
        try:
            message = json.loads(body_text)["error"]["message"]
        except (ValueError, KeyError, TypeError):
            message = f"HTTP {e.code}"
        LOGGER.warning("%s request failed with HTTP %s", error_type.provider or "API", e.code)
        raise error_type(message, e.code) from e
    except urllib.error.URLError as e:
        raise error_type(f"Network error: {e.reason}", 0) from e
