"""Unit tests for the ApiRequest builder"""
import json
import pytest
from pydantic import BaseModel
from yarl import URL

from core.exceptions import (
    DecodeError,
    InvalidURLError,
    RequestCancelledError,
    RequestError,
    ResponseStatusError,
    TransportError,
)
from request_execution.context import CallContext
from request_execution.executor import RequestExecutor, set_default_executor
from request_execution.models import TransportResponse
from request_execution.request import ApiRequest
from tests.fixtures.request_execution import (
    FakeTransportEngine,
    json_response,
    text_response,
)


URL_BASE = "http://api.example.com/items"


class Item(BaseModel):
    id: int
    name: str


def executor_for(*outcomes) -> tuple[RequestExecutor, FakeTransportEngine]:
    transport = FakeTransportEngine(*outcomes)
    return RequestExecutor(transport), transport


@pytest.mark.unit
class TestApiRequestBuild:

    def test_defaults(self):
        req = ApiRequest()

        assert req.method == "GET"
        assert req.headers == {"Content-Type": "application/json"}
        assert req.query_parameters == {}

    def test_query_parameters_are_comma_joined_for_get(self):
        request = (
            ApiRequest.get(URL_BASE)
            .with_query_parameters({"ids": ["1", "2"], "sort": "name"})
            .build()
        )

        query = URL(request.url).query
        assert query["ids"] == "1,2"
        assert query["sort"] == "name"

    def test_query_parameters_are_ignored_for_post(self):
        request = (
            ApiRequest.post(URL_BASE, {"a": 1})
            .with_query_parameters({"ids": ["1"]})
            .build()
        )

        assert request.url == URL_BASE

    def test_empty_query_parameters_are_a_no_op(self):
        req = ApiRequest.get(URL_BASE).with_query_parameters({"a": "1"}).with_query_parameters({})

        assert req.query_parameters == {"a": ["1"]}

    def test_method_string_is_upper_cased(self):
        assert ApiRequest().with_method("patch").method == "PATCH"

    def test_dict_payload_is_json_encoded(self):
        request = ApiRequest.post(URL_BASE, {"name": "widget", "tags": ["a", "b"]}).build()

        assert json.loads(request.body) == {"name": "widget", "tags": ["a", "b"]}
        assert request.method == "POST"

    def test_model_payload_is_json_encoded(self):
        request = ApiRequest.put(URL_BASE, Item(id=3, name="bolt")).build()

        assert json.loads(request.body) == {"id": 3, "name": "bolt"}

    def test_bytes_and_str_payloads_pass_through(self):
        assert ApiRequest.post(URL_BASE, b"raw").build().body == b"raw"
        assert ApiRequest.post(URL_BASE, "text").build().body == b"text"

    def test_no_payload_means_no_body(self):
        assert ApiRequest.delete(URL_BASE).build().body is None

    def test_with_headers_replaces_default_content_type(self):
        request = ApiRequest.get(URL_BASE).with_headers({"Accept": "text/plain"}).build()

        assert dict(request.headers) == {"Accept": "text/plain"}

    @pytest.mark.parametrize("url", ["", "not a url", "/relative/path", "http://"])
    def test_invalid_url_is_rejected(self, url):
        with pytest.raises(InvalidURLError):
            ApiRequest.get(url).build_url()


@pytest.mark.unit
@pytest.mark.asyncio
class TestApiRequestSend:

    async def test_decodes_json_into_model(self):
        executor, transport = executor_for(json_response({"id": 7, "name": "mock"}))

        item = await ApiRequest.get(f"{URL_BASE}/7", Item).with_executor(executor).send()

        assert item == Item(id=7, name="mock")
        assert transport.last_request.url == f"{URL_BASE}/7"

    async def test_invalid_url_never_reaches_transport(self):
        executor, transport = executor_for()

        with pytest.raises(InvalidURLError):
            await ApiRequest.get("not a url").with_executor(executor).send()

        assert transport.calls == 0

    async def test_error_status_raises_with_body(self):
        """
        GIVEN an endpoint answering 400 with an error body
        WHEN the request is sent
        THEN a ResponseStatusError carries the status and the body text
        """
        executor, _ = executor_for(json_response({"error": "custom endpoint error"}, status=400))

        with pytest.raises(ResponseStatusError) as exc_info:
            await ApiRequest.get(URL_BASE).with_executor(executor).send()

        assert exc_info.value.status_code == 400
        assert "custom endpoint error" in exc_info.value.message
        assert b"custom endpoint error" in exc_info.value.body

    async def test_pipeline_failure_is_wrapped(self):
        cause = TransportError("connection refused")
        executor, _ = executor_for(cause)

        with pytest.raises(RequestError) as exc_info:
            await ApiRequest.get(URL_BASE).with_executor(executor).send()

        assert exc_info.value.message == f"failed to make request {URL_BASE}"
        assert exc_info.value.cause is cause

    async def test_cancellation_is_not_wrapped(self):
        executor, transport = executor_for()
        ctx = CallContext()
        ctx.cancel()

        with pytest.raises(RequestCancelledError):
            await ApiRequest.get(URL_BASE).with_executor(executor).send(ctx)

        assert transport.calls == 0

    async def test_undecodable_body_raises_decode_error(self):
        executor, _ = executor_for(json_response({"unexpected": True}))

        with pytest.raises(DecodeError) as exc_info:
            await ApiRequest.get(URL_BASE, Item).with_executor(executor).send()

        assert not isinstance(exc_info.value, ResponseStatusError)
        assert exc_info.value.status_code == 200

    async def test_plain_text_decodes_to_scalar(self):
        executor, _ = executor_for(text_response("42"))

        assert await ApiRequest.get(URL_BASE, int).with_executor(executor).send() == 42

    async def test_plain_text_decodes_to_str(self):
        executor, _ = executor_for(text_response("hello"))

        assert await ApiRequest.get(URL_BASE, str).with_executor(executor).send() == "hello"

    async def test_empty_json_body_decodes_to_none(self):
        executor, _ = executor_for(
            TransportResponse.build(status=204, headers={"Content-Type": "application/json"})
        )

        assert await ApiRequest.delete(URL_BASE, None).with_executor(executor).send() is None

    async def test_falls_back_to_default_executor(self):
        replacement, transport = executor_for(json_response({"id": 1, "name": "default"}))
        previous = set_default_executor(replacement)
        try:
            item = await ApiRequest.get(URL_BASE, Item).send()
        finally:
            set_default_executor(previous)

        assert item.name == "default"
        assert transport.calls == 1
