"""Anthropic Messages API client shared by the AI collaborators.

One client serves categorization, insights and receipt scanning, so the
per-run budget and the rate limit cover all three.
"""

import json
import os
import time
from dataclasses import dataclass, field
from typing import Any, Union

from rich.console import Console

from sheet_finance.processing.ai.cost_estimator import IMAGE_TOKEN_ESTIMATE, CostEstimator
from sheet_finance.processing.ai.models import AIUsageStats
from sheet_finance.utils.logging_config import get_logger

logger = get_logger(__name__)
_console = Console(stderr=True)

# A user turn is either plain text or a list of Messages API content blocks
UserContent = Union[str, list[dict[str, Any]]]

REQUEST_TIMEOUT = 60.0

# HTTP statuses worth retrying; other statuses fail on the first attempt
RATE_LIMIT_STATUS = 429
OVERLOADED_STATUSES = {500, 502, 503, 529}


class AIClientError(Exception):
    """Base exception for AI client errors."""

    pass


class APIKeyNotFoundError(AIClientError):
    """Raised when API key is not found."""

    pass


class RateLimitError(AIClientError):
    """Raised when the API keeps rate limiting after all retries."""

    pass


class BudgetExceededError(AIClientError):
    """Raised when a request would go over the per-run budget."""

    pass


@dataclass
class AIClientConfig:
    """Configuration for the AI client.

    Attributes:
        api_key_env: Environment variable name for API key.
        model: Model to use for requests.
        max_tokens: Default maximum tokens for a response.
        requests_per_minute: Rate limit.
        retry_attempts: Number of attempts per request.
        retry_delay: Initial delay between retries (doubles each time).
        budget_limit: Maximum spend in USD (None for unlimited).
    """

    api_key_env: str = "ANTHROPIC_API_KEY"
    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 1024
    requests_per_minute: int = 20
    retry_attempts: int = 3
    retry_delay: float = 1.0
    budget_limit: float | None = 5.00


def estimate_prompt_tokens(system_prompt: str, user_content: UserContent) -> int:
    """Rough input token count: 4 characters per token, images at a flat rate."""
    if isinstance(user_content, str):
        return len(system_prompt + user_content) // 4

    tokens = len(system_prompt) // 4
    for block in user_content:
        if block.get("type") == "image":
            tokens += IMAGE_TOKEN_ESTIMATE
        else:
            tokens += len(str(block.get("text", ""))) // 4
    return tokens


def _error_kind(error: Exception) -> str:
    """Classify an API error as "rate_limit", "overloaded", "connection" or "other".

    SDK status errors carry ``status_code``; anything else is matched on its
    text. Only "other" is not worth retrying.
    """
    status = getattr(error, "status_code", None)
    if status == RATE_LIMIT_STATUS:
        return "rate_limit"
    if status in OVERLOADED_STATUSES:
        return "overloaded"
    if status is not None:
        return "other"

    if isinstance(error, (ConnectionError, TimeoutError)):
        return "connection"

    message = str(error).lower()
    if "rate limit" in message or "429" in message:
        return "rate_limit"
    if "overloaded" in message or "529" in message:
        return "overloaded"
    if "connection" in message or "timed out" in message:
        return "connection"
    return "other"


def _json_span(text: str, start: int) -> str | None:
    """Balanced JSON object/array starting at ``start``, skipping string contents."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


@dataclass
class AIClient:
    """Messages API wrapper with rate limiting, retries and cost tracking.

    The SDK client is created on first use, so building an AIClient without
    an API key is fine as long as nothing is sent.
    """

    config: AIClientConfig = field(default_factory=AIClientConfig)
    _client: Any = field(default=None, init=False, repr=False)
    _request_count: int = field(default=0, init=False)
    _request_window_start: float = field(default=0.0, init=False)
    _initialized: bool = field(default=False, init=False)

    cost_estimator: CostEstimator = field(init=False)
    usage_stats: AIUsageStats = field(default_factory=AIUsageStats)

    def __post_init__(self) -> None:
        self.cost_estimator = CostEstimator(
            model=self.config.model,
            budget_limit=self.config.budget_limit,
        )

    @property
    def is_available(self) -> bool:
        """Whether the API key environment variable is set."""
        return bool(os.environ.get(self.config.api_key_env))

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return

        api_key = os.environ.get(self.config.api_key_env)
        if not api_key:
            raise APIKeyNotFoundError(
                f"API key not found in environment variable: {self.config.api_key_env}"
            )

        import anthropic

        self._client = anthropic.Anthropic(api_key=api_key)
        self._initialized = True
        logger.info(f"AI client initialized with model: {self.config.model}")

    def _wait_for_rate_limit(self) -> None:
        now = time.time()
        if now - self._request_window_start > 60:
            self._request_count = 0
            self._request_window_start = now
            return

        if self._request_count < self.config.requests_per_minute:
            return

        wait_time = 60 - (now - self._request_window_start)
        if wait_time > 0:
            _console.print(f"[yellow]Rate limit reached, waiting {wait_time:.0f}s...[/yellow]")
            logger.info(f"Rate limit reached, waiting {wait_time:.1f}s")
            time.sleep(wait_time)
        self._request_count = 0
        self._request_window_start = time.time()

    def _record_usage(self, response: Any) -> tuple[str, int, int]:
        text = "".join(getattr(block, "text", "") for block in (response.content or []))
        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens

        cost = self.cost_estimator.estimate_cost(input_tokens, output_tokens)
        self.cost_estimator.record_spend(cost)
        self.usage_stats.add_request(input_tokens, output_tokens, cost)
        logger.debug(f"Request completed: {input_tokens} in, {output_tokens} out, ${cost:.4f}")

        return text, input_tokens, output_tokens

    def _make_request(
        self,
        system_prompt: str,
        user_content: UserContent,
        max_tokens: int,
    ) -> tuple[str, int, int]:
        """Send one request, retrying transient failures with backoff.

        Raises:
            RateLimitError: If still rate limited on the last attempt.
            AIClientError: If the request fails with a non-transient error,
                or with a transient one on the last attempt.
        """
        self._ensure_initialized()
        self._wait_for_rate_limit()

        delay = self.config.retry_delay
        attempts = max(1, self.config.retry_attempts)

        for attempt in range(1, attempts + 1):
            try:
                response = self._client.messages.create(
                    model=self.config.model,
                    max_tokens=max_tokens,
                    system=system_prompt,
                    messages=[{"role": "user", "content": user_content}],
                    timeout=REQUEST_TIMEOUT,
                )
            except Exception as e:
                kind = _error_kind(e)
                if kind == "other":
                    raise AIClientError(f"Request failed: {e}") from e
                if attempt == attempts:
                    if kind == "rate_limit":
                        raise RateLimitError(f"Rate limited after {attempt} attempts: {e}") from e
                    raise AIClientError(f"Request failed after {attempt} attempts: {e}") from e

                logger.warning(f"Request failed ({kind}): {e}, retrying in {delay}s")
                time.sleep(delay)
                delay *= 2
                continue

            self._request_count += 1
            return self._record_usage(response)

        raise AIClientError("Request was not attempted")

    def send_message(
        self,
        system_prompt: str,
        user_content: UserContent,
        max_tokens: int | None = None,
    ) -> tuple[str, int, int]:
        """Send a message to the model and get the text reply.

        The estimated cost is checked against the budget before anything is
        sent.

        Args:
            system_prompt: The system prompt.
            user_content: The user turn (text or content blocks).
            max_tokens: Response token limit (defaults to the client config).

        Returns:
            Tuple of (response_text, input_tokens, output_tokens).

        Raises:
            BudgetExceededError: If budget would be exceeded.
            AIClientError: If request fails.
        """
        max_tokens = max_tokens or self.config.max_tokens

        estimated_cost = self.cost_estimator.estimate_cost(
            estimate_prompt_tokens(system_prompt, user_content), max_tokens
        )
        within_budget, msg = self.cost_estimator.check_budget(estimated_cost)
        if not within_budget:
            raise BudgetExceededError(msg)

        return self._make_request(system_prompt, user_content, max_tokens)

    def parse_json_response(self, response: str) -> dict[str, Any] | list[Any]:
        """Parse a JSON reply, tolerating code fences or surrounding prose.

        Args:
            response: The reply text.

        Returns:
            Parsed JSON object or array.

        Raises:
            ValueError: If no JSON object or array can be found.
        """
        try:
            result = json.loads(response)
        except json.JSONDecodeError:
            result = None
        if isinstance(result, (dict, list)):
            return result

        starts = [i for i in (response.find("{"), response.find("[")) if i != -1]
        if not starts:
            raise ValueError(f"No JSON found in response: {response[:100]}")

        span = _json_span(response, min(starts))
        if span is not None:
            try:
                result = json.loads(span)
            except json.JSONDecodeError:
                result = None
            if isinstance(result, (dict, list)):
                return result

        raise ValueError(f"Could not parse JSON from response: {response[:200]}")

    def usage_summary(self) -> str:
        """One-line summary of requests, tokens and spend."""
        stats = self.usage_stats
        return (
            f"AI usage: {stats.total_requests} requests, "
            f"{stats.total_input_tokens:,} in / {stats.total_output_tokens:,} out tokens, "
            f"${stats.total_cost:.4f} "
            f"(categorized {stats.categorizations_performed}, "
            f"insights {stats.insights_generated}, receipts {stats.receipts_scanned})"
        )
