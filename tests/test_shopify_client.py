"""Tests for the Shopify GraphQL client using httpx.MockTransport."""

import json

import httpx
import pytest
from pydantic import BaseModel

from fakes import RecordingHandler, RecordingSleep, graphql_response, throttled_response
from storefront_admin.adapters.shopify import MAX_RETRIES, ShopifyGraphQLClient
from storefront_admin.core.errors import (
    ConfigurationError,
    GraphQLError,
    HttpError,
    NoDataError,
    RateLimitExhaustedError,
    ShopifyAppError,
    TransportError,
)

QUERY = "query { shop { name } }"


class ShopData(BaseModel):
    shop: dict[str, str]


def make_client(
    handler: RecordingHandler,
    sleep: RecordingSleep,
    *,
    access_token: str | None = "shpat_test",
    store_domain: str | None = "demo.myshopify.com",
    jitter: float = 0.0,
) -> ShopifyGraphQLClient:
    return ShopifyGraphQLClient(
        access_token=access_token,
        store_domain=store_domain,
        transport=httpx.MockTransport(handler),
        sleep=sleep,
        random_fn=lambda: jitter,
    )


class TestSuccessfulRequests:
    @pytest.mark.asyncio
    async def test_returns_data_dict(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler([graphql_response({"shop": {"name": "Herbarium"}})])
        client = make_client(handler, recording_sleep)

        result = await client.execute(QUERY)

        assert result == {"shop": {"name": "Herbarium"}}
        assert handler.call_count == 1
        assert recording_sleep.calls == []

    @pytest.mark.asyncio
    async def test_validates_data_against_model(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler([graphql_response({"shop": {"name": "Herbarium"}})])
        client = make_client(handler, recording_sleep)

        result = await client.execute(QUERY, data_model=ShopData)

        assert isinstance(result, ShopData)
        assert result.shop["name"] == "Herbarium"

    @pytest.mark.asyncio
    async def test_request_shape(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler([graphql_response({"ok": True})])
        client = make_client(handler, recording_sleep)

        await client.execute(QUERY, {"cursor": None})

        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://demo.myshopify.com/admin/api/2024-10/graphql.json"
        assert request.headers["X-Shopify-Access-Token"] == "shpat_test"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"query": QUERY, "variables": {"cursor": None}}

    @pytest.mark.asyncio
    async def test_variables_omitted_when_not_given(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler([graphql_response({"ok": True})])
        client = make_client(handler, recording_sleep)

        await client.execute(QUERY)

        assert handler.json_bodies() == [{"query": QUERY}]


class TestRateLimitRetries:
    @pytest.mark.asyncio
    async def test_exhausts_after_max_retries_plus_one_attempts(
        self, recording_sleep: RecordingSleep
    ) -> None:
        handler = RecordingHandler([throttled_response()])
        client = make_client(handler, recording_sleep)

        with pytest.raises(RateLimitExhaustedError) as exc:
            await client.execute(QUERY)

        assert handler.call_count == MAX_RETRIES + 1 == 4
        assert exc.value.status_code == 429
        assert exc.value.attempts == 4
        assert exc.value.code == "shopify_rate_limited"
        assert len(recording_sleep.calls) == MAX_RETRIES

    @pytest.mark.asyncio
    async def test_default_backoff_doubles_each_retry(
        self, recording_sleep: RecordingSleep
    ) -> None:
        handler = RecordingHandler([throttled_response()])
        client = make_client(handler, recording_sleep, jitter=0.0)

        with pytest.raises(RateLimitExhaustedError):
            await client.execute(QUERY)

        assert recording_sleep.calls == [2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("retry_after", ["inf", "nan", "1e400"])
    async def test_non_finite_retry_after_uses_default_delay(
        self, recording_sleep: RecordingSleep, retry_after: str
    ) -> None:
        handler = RecordingHandler([throttled_response(retry_after)])
        client = make_client(handler, recording_sleep, jitter=0.0)

        with pytest.raises(RateLimitExhaustedError) as exc:
            await client.execute(QUERY)

        assert recording_sleep.calls == [2.0, 4.0, 8.0]
        assert exc.value.details["retry_after"] == 2.0

    @pytest.mark.asyncio
    async def test_retry_after_header_sets_base_delay(
        self, recording_sleep: RecordingSleep
    ) -> None:
        handler = RecordingHandler(
            [throttled_response("5"), graphql_response({"shop": {"name": "x"}})]
        )
        client = make_client(handler, recording_sleep, jitter=0.0)

        await client.execute(QUERY)

        assert recording_sleep.calls == [5.0]

    @pytest.mark.asyncio
    async def test_jitter_added_once_per_attempt(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler(
            [
                throttled_response("5"),
                throttled_response("5"),
                graphql_response({"ok": True}),
            ]
        )
        client = make_client(handler, recording_sleep, jitter=0.5)

        await client.execute(QUERY)

        # 5000 * 2**a + 0.5 * 1000
        assert recording_sleep.calls == [5.5, 10.5]

    @pytest.mark.asyncio
    async def test_real_jitter_stays_within_bounds(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler([throttled_response("5"), graphql_response({"ok": True})])
        client = ShopifyGraphQLClient(
            access_token="t",
            store_domain="demo.myshopify.com",
            transport=httpx.MockTransport(handler),
            sleep=recording_sleep,
        )

        await client.execute(QUERY)

        assert 5.0 <= recording_sleep.calls[0] < 6.0

    @pytest.mark.asyncio
    async def test_recovers_after_throttling(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler(
            [throttled_response(), throttled_response(), graphql_response({"ok": True})]
        )
        client = make_client(handler, recording_sleep)

        result = await client.execute(QUERY, {"a": 1})

        assert result == {"ok": True}
        assert handler.call_count == 3
        bodies = handler.json_bodies()
        assert bodies[0] == bodies[1] == bodies[2]

    @pytest.mark.asyncio
    async def test_success_on_final_attempt(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler(
            [throttled_response()] * MAX_RETRIES + [graphql_response({"ok": True})]
        )
        client = make_client(handler, recording_sleep)

        assert await client.execute(QUERY) == {"ok": True}
        assert handler.call_count == MAX_RETRIES + 1

    @pytest.mark.asyncio
    async def test_zero_retries_fails_on_first_throttle(
        self, recording_sleep: RecordingSleep
    ) -> None:
        handler = RecordingHandler([throttled_response()])
        client = ShopifyGraphQLClient(
            access_token="t",
            store_domain="demo.myshopify.com",
            max_retries=0,
            transport=httpx.MockTransport(handler),
            sleep=recording_sleep,
        )

        with pytest.raises(RateLimitExhaustedError) as exc:
            await client.execute(QUERY)

        assert handler.call_count == 1
        assert exc.value.attempts == 1
        assert recording_sleep.calls == []


class TestTerminalErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("token", "domain", "missing"),
        [
            (None, "demo.myshopify.com", ["SHOPIFY_ACCESS_TOKEN"]),
            ("t", None, ["SHOPIFY_STORE_DOMAIN"]),
            ("", "", ["SHOPIFY_ACCESS_TOKEN", "SHOPIFY_STORE_DOMAIN"]),
        ],
    )
    async def test_missing_configuration_makes_no_request(
        self,
        recording_sleep: RecordingSleep,
        token: str | None,
        domain: str | None,
        missing: list[str],
    ) -> None:
        handler = RecordingHandler([graphql_response({"ok": True})])
        client = make_client(handler, recording_sleep, access_token=token, store_domain=domain)

        with pytest.raises(ConfigurationError) as exc:
            await client.execute(QUERY)

        assert handler.call_count == 0
        assert exc.value.details == {"missing": missing}
        assert client.is_configured is False

    @pytest.mark.asyncio
    async def test_transport_error_not_retried(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler([httpx.ConnectError("connection refused")])
        client = make_client(handler, recording_sleep)

        with pytest.raises(TransportError) as exc:
            await client.execute(QUERY)

        assert handler.call_count == 1
        assert recording_sleep.calls == []
        assert isinstance(exc.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler([httpx.ReadTimeout("timed out")])
        client = make_client(handler, recording_sleep)

        with pytest.raises(TransportError):
            await client.execute(QUERY)

    @pytest.mark.asyncio
    async def test_transport_error_after_throttle(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler([throttled_response(), httpx.ConnectError("down")])
        client = make_client(handler, recording_sleep)

        with pytest.raises(TransportError):
            await client.execute(QUERY)

        assert handler.call_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 401, 404, 500, 503])
    async def test_http_error_not_retried(
        self, recording_sleep: RecordingSleep, status_code: int
    ) -> None:
        handler = RecordingHandler([httpx.Response(status_code, text="nope")])
        client = make_client(handler, recording_sleep)

        with pytest.raises(HttpError) as exc:
            await client.execute(QUERY)

        assert handler.call_count == 1
        assert exc.value.status_code == status_code
        assert exc.value.status_text == httpx.codes.get_reason_phrase(status_code)
        assert str(status_code) in exc.value.message

    @pytest.mark.asyncio
    async def test_graphql_errors_on_2xx(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler(
            [
                graphql_response(
                    data={"shop": None},
                    errors=[{"message": "Field 'x' doesn't exist"}, {"message": "Throttled"}],
                )
            ]
        )
        client = make_client(handler, recording_sleep)

        with pytest.raises(GraphQLError) as exc:
            await client.execute(QUERY)

        assert exc.value.messages == ["Field 'x' doesn't exist", "Throttled"]
        assert exc.value.message == "Shopify GraphQL error: Field 'x' doesn't exist, Throttled"
        assert handler.call_count == 1

    @pytest.mark.asyncio
    async def test_empty_errors_array_is_not_an_error(
        self, recording_sleep: RecordingSleep
    ) -> None:
        handler = RecordingHandler([graphql_response(data={"ok": True}, errors=[])])
        client = make_client(handler, recording_sleep)

        assert await client.execute(QUERY) == {"ok": True}

    @pytest.mark.asyncio
    async def test_missing_data_raises_no_data(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler([httpx.Response(200, json={})])
        client = make_client(handler, recording_sleep)

        with pytest.raises(NoDataError, match="No data returned from Shopify"):
            await client.execute(QUERY)

    @pytest.mark.asyncio
    async def test_non_json_body_raises_no_data(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler([httpx.Response(200, text="<html>maintenance</html>")])
        client = make_client(handler, recording_sleep)

        with pytest.raises(NoDataError):
            await client.execute(QUERY)

    @pytest.mark.asyncio
    async def test_unexpected_envelope_shape_raises_no_data(
        self, recording_sleep: RecordingSleep
    ) -> None:
        handler = RecordingHandler([httpx.Response(200, json=["not", "an", "object"])])
        client = make_client(handler, recording_sleep)

        with pytest.raises(NoDataError):
            await client.execute(QUERY)

    @pytest.mark.asyncio
    async def test_data_not_matching_model_raises_no_data(
        self, recording_sleep: RecordingSleep
    ) -> None:
        handler = RecordingHandler([graphql_response({"unexpected": 1})])
        client = make_client(handler, recording_sleep)

        with pytest.raises(NoDataError, match="ShopData"):
            await client.execute(QUERY, data_model=ShopData)

    @pytest.mark.asyncio
    async def test_all_errors_share_base_class(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler([httpx.Response(502)])
        client = make_client(handler, recording_sleep)

        with pytest.raises(ShopifyAppError):
            await client.execute(QUERY)


@pytest.mark.asyncio
async def test_async_context_manager_closes_http_client(
    recording_sleep: RecordingSleep,
) -> None:
    handler = RecordingHandler([graphql_response({"ok": True})])

    async with make_client(handler, recording_sleep) as client:
        await client.execute(QUERY)

    assert client.client.is_closed


def test_negative_max_retries_rejected() -> None:
    with pytest.raises(ValueError):
        ShopifyGraphQLClient("t", "demo.myshopify.com", max_retries=-1)


class TestEnvelopeLeniency:
    @pytest.mark.asyncio
    async def test_null_errors_with_data_returns_data(
        self, recording_sleep: RecordingSleep
    ) -> None:
        handler = RecordingHandler(
            [httpx.Response(200, json={"data": {"ok": True}, "errors": None})]
        )
        client = make_client(handler, recording_sleep)

        assert await client.execute(QUERY) == {"ok": True}

    @pytest.mark.asyncio
    async def test_error_entry_without_message(self, recording_sleep: RecordingSleep) -> None:
        handler = RecordingHandler(
            [httpx.Response(200, json={"data": None, "errors": [{"path": ["products"]}]})]
        )
        client = make_client(handler, recording_sleep)

        with pytest.raises(GraphQLError) as exc:
            await client.execute(QUERY)

        assert exc.value.messages == ["Unknown GraphQL error"]
