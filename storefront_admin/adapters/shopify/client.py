"""Shopify Admin GraphQL client with bounded retry on rate limiting."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Mapping

import httpx
from pydantic import ValidationError

from storefront_admin.adapters.shopify.backoff import (
    DEFAULT_RETRY_DELAY_MS,
    MAX_JITTER_MS,
    MAX_RETRIES,
    AttemptOutcome,
    RetryAttempt,
    compute_backoff_ms,
    parse_retry_after_ms,
)
from storefront_admin.adapters.shopify.base import AbstractGraphQLClient, ModelT
from storefront_admin.core.errors import (
    ConfigurationError,
    GraphQLError,
    HttpError,
    NoDataError,
    RateLimitExhaustedError,
    TransportError,
)
from storefront_admin.schemas.graphql import GraphQLEnvelope

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2024-10"
ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"


class ShopifyGraphQLClient(AbstractGraphQLClient):
    """Client for the Shopify Admin GraphQL endpoint.

    Only HTTP 429 responses are retried: the client waits
    ``base * 2 ** attempt + jitter`` milliseconds, where ``base`` comes from
    the response's ``Retry-After`` header (seconds) or the configured default,
    and gives up after ``max_retries`` additional attempts. Transport failures
    and every other status surface immediately as typed errors.

    Configuration is checked on every call rather than at construction so the
    application can start without Shopify credentials.
    """

    def __init__(
        self,
        access_token: str | None,
        store_domain: str | None,
        *,
        api_version: str = DEFAULT_API_VERSION,
        timeout_seconds: float = 30.0,
        max_retries: int = MAX_RETRIES,
        default_retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS,
        max_jitter_ms: int = MAX_JITTER_MS,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        random_fn: Callable[[], float] = random.random,
    ) -> None:
        """Initialize the client.

        Args:
            access_token: Admin API access token.
            store_domain: Store host, e.g. ``my-store.myshopify.com``.
            api_version: Admin API version segment of the endpoint path.
            timeout_seconds: Timeout applied to each HTTP attempt.
            max_retries: Additional attempts allowed after a 429.
            default_retry_delay_ms: Backoff base when Retry-After is absent.
            max_jitter_ms: Exclusive upper bound of the per-retry jitter.
            transport: Optional httpx transport (tests pass a MockTransport).
            sleep: Awaitable sleep taking seconds.
            random_fn: Source of uniform floats in ``[0, 1)`` for jitter.
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        self.access_token = access_token
        self.store_domain = store_domain
        self.api_version = api_version
        self.max_retries = max_retries
        self.default_retry_delay_ms = default_retry_delay_ms
        self.max_jitter_ms = max_jitter_ms
        self._sleep = sleep
        self._random = random_fn
        self.client = httpx.AsyncClient(timeout=timeout_seconds, transport=transport)

    async def __aenter__(self) -> "ShopifyGraphQLClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    @property
    def is_configured(self) -> bool:
        return bool(self.access_token) and bool(self.store_domain)

    def build_endpoint(self, store_domain: str) -> str:
        return f"https://{store_domain}/admin/api/{self.api_version}/graphql.json"

    def _require_configuration(self) -> tuple[str, str]:
        missing = []
        if not self.access_token:
            missing.append("SHOPIFY_ACCESS_TOKEN")
        if not self.store_domain:
            missing.append("SHOPIFY_STORE_DOMAIN")

        if missing:
            raise ConfigurationError(
                code="shopify_not_configured",
                message=f"{', '.join(missing)} is not configured",
                details={"missing": missing},
            )
        return self.access_token, self.store_domain  # type: ignore[return-value]

    async def execute(
        self,
        query: str,
        variables: Mapping[str, Any] | None = None,
        *,
        data_model: type[ModelT] | None = None,
    ) -> ModelT | dict[str, Any]:
        """Run a GraphQL operation and return its validated ``data``.

        Args:
            query: GraphQL document.
            variables: Optional operation variables.
            data_model: Pydantic model used to validate ``data``.

        Returns:
            ``data`` as ``data_model`` or, when no model is given, a dict.

        Raises:
            ConfigurationError: Token or store domain missing (no request sent).
            TransportError: The request never produced a response.
            RateLimitExhaustedError: Still throttled after every retry.
            HttpError: Any other non-2xx status.
            GraphQLError: 2xx response carrying ``errors``.
            NoDataError: 2xx response without usable ``data``.
        """
        access_token, store_domain = self._require_configuration()

        url = self.build_endpoint(store_domain)
        headers = {
            "Content-Type": "application/json",
            ACCESS_TOKEN_HEADER: access_token,
        }
        payload: dict[str, Any] = {"query": query}
        if variables is not None:
            payload["variables"] = dict(variables)

        response = await self._post_with_backoff(url, headers, payload)

        if not response.is_success:
            logger.warning(
                "shopify.http_error",
                extra={"status_code": response.status_code, "endpoint": url},
            )
            raise HttpError(
                code="shopify_http_error",
                message=f"Shopify API error: {response.status_code} {response.reason_phrase}",
                details={
                    "http_status": response.status_code,
                    "status_text": response.reason_phrase,
                },
                status_code=response.status_code,
                status_text=response.reason_phrase,
            )

        return self._parse_envelope(response, data_model)

    async def _post_with_backoff(
        self,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any],
    ) -> httpx.Response:
        history: list[RetryAttempt] = []

        for attempt in range(self.max_retries):
            response = await self._send(url, headers, payload, attempt=attempt)
            if response.status_code != httpx.codes.TOO_MANY_REQUESTS:
                history.append(RetryAttempt(attempt, 0, self._outcome_of(response)))
                self._log_completed(response, history)
                return response

            retry = self._plan_retry(attempt, response)
            history.append(retry)
            logger.warning(
                "shopify.rate_limited",
                extra={
                    "attempt": attempt + 1,
                    "max_retries": self.max_retries,
                    "wait_ms": round(retry.delay_ms),
                },
            )
            await self._sleep(retry.delay_ms / 1000)

        response = await self._send(url, headers, payload, attempt=self.max_retries)
        if response.status_code != httpx.codes.TOO_MANY_REQUESTS:
            history.append(RetryAttempt(self.max_retries, 0, self._outcome_of(response)))
            self._log_completed(response, history)
            return response

        history.append(RetryAttempt(self.max_retries, 0, AttemptOutcome.RATE_LIMITED))
        logger.error(
            "shopify.retries_exhausted",
            extra={"attempts": len(history), "max_retries": self.max_retries},
        )
        raise RateLimitExhaustedError(
            code="shopify_rate_limited",
            message=(
                f"Shopify API rate limit exceeded after {len(history)} attempts "
                f"({response.status_code} {response.reason_phrase})"
            ),
            details={
                "http_status": response.status_code,
                "attempts": len(history),
                "retry_after": parse_retry_after_ms(
                    response.headers.get("Retry-After"), self.default_retry_delay_ms
                )
                / 1000,
            },
            status_code=response.status_code,
            attempts=len(history),
        )

    async def _send(
        self,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any],
        *,
        attempt: int,
    ) -> httpx.Response:
        try:
            return await self.client.post(url, json=payload, headers=headers)
        except httpx.RequestError as exc:
            logger.error(
                "shopify.transport_error",
                extra={"error_type": type(exc).__name__, "attempt": attempt + 1},
            )
            raise TransportError(
                code="shopify_transport_error",
                message=f"Shopify request failed: {type(exc).__name__}",
                details={"error_type": type(exc).__name__, "attempts": attempt + 1},
            ) from exc

    def _plan_retry(self, attempt: int, response: httpx.Response) -> RetryAttempt:
        base_delay_ms = parse_retry_after_ms(
            response.headers.get("Retry-After"), self.default_retry_delay_ms
        )
        jitter_ms = self._random() * self.max_jitter_ms
        return RetryAttempt(
            attempt=attempt,
            delay_ms=compute_backoff_ms(attempt, base_delay_ms, jitter_ms),
            outcome=AttemptOutcome.RATE_LIMITED,
        )

    @staticmethod
    def _log_completed(response: httpx.Response, history: list[RetryAttempt]) -> None:
        logger.debug(
            "shopify.request_completed",
            extra={
                "status_code": response.status_code,
                "attempts": len(history),
                "outcome": history[-1].outcome.value,
                "waited_ms": round(sum(item.delay_ms for item in history)),
            },
        )

    @staticmethod
    def _outcome_of(response: httpx.Response) -> AttemptOutcome:
        if response.is_success:
            return AttemptOutcome.SUCCESS
        return AttemptOutcome.TERMINAL_ERROR

    @staticmethod
    def _parse_envelope(
        response: httpx.Response,
        data_model: type[ModelT] | None,
    ) -> ModelT | dict[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            raise NoDataError(
                code="shopify_no_data",
                message="Shopify returned a response body that is not JSON",
            ) from exc

        try:
            envelope = GraphQLEnvelope[Any].model_validate(body)
        except ValidationError as exc:
            raise NoDataError(
                code="shopify_no_data",
                message="Shopify response is not a GraphQL envelope",
                details={"hint": f"{exc.error_count()} validation error(s)"},
            ) from exc

        if envelope.errors:
            messages = [error.message for error in envelope.errors]
            logger.warning("shopify.graphql_errors", extra={"error_count": len(messages)})
            raise GraphQLError(
                code="shopify_graphql_error",
                message=f"Shopify GraphQL error: {', '.join(messages)}",
                details={"messages": messages},
                messages=messages,
            )

        if envelope.data is None:
            raise NoDataError(
                code="shopify_no_data",
                message="No data returned from Shopify",
            )

        if data_model is None:
            if not isinstance(envelope.data, dict):
                raise NoDataError(
                    code="shopify_no_data",
                    message="Shopify returned data that is not an object",
                )
            return envelope.data

        try:
            return data_model.model_validate(envelope.data)
        except ValidationError as exc:
            raise NoDataError(
                code="shopify_no_data",
                message=f"Shopify data does not match {data_model.__name__}",
                details={"hint": f"{exc.error_count()} validation error(s)"},
            ) from exc
