import logging
from typing import Any, Generic, Mapping, Sequence, TypeVar
from typing_extensions import Self

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError
from yarl import URL

from core.exceptions import (
    DecodeError,
    InvalidURLError,
    RequestCancelledError,
    RequestError,
    ResponseStatusError,
)
from request_execution.context import CallContext
from request_execution.executor import RequestExecutor, default_executor
from request_execution.models import RequestType, TransportRequest, TransportResponse


T = TypeVar("T")

JSON_CONTENT_TYPE = "application/json"

_payload_adapter: TypeAdapter[Any] = TypeAdapter(Any)


class ApiRequest(Generic[T]):
    """
    Fluent builder for one API call whose response body is decoded into T.

    The builder is the only place where request bodies are encoded and
    response bodies decoded; the pipeline underneath sees raw bytes.
    • Query parameters are applied to GET requests only. Several values
      for one name are joined with commas.
    • The payload is JSON-encoded with pydantic, so models, dataclasses and
      plain containers all work.
    • JSON responses are validated into response_type. Other content types
      are validated from the body text, which lets str, int and float
      responses decode from plain text.

    Example:
        item = await ApiRequest.get(url, Item).with_executor(executor).send()
    """

    def __init__(
        self,
        response_type: Any = Any,
        executor: RequestExecutor | None = None,
    ) -> None:
        self.response_type = response_type
        self._adapter: TypeAdapter[T] = TypeAdapter(response_type)
        self._executor = executor
        self._logger = logging.getLogger(self.__class__.__name__)

        self.method: str = RequestType.GET.value
        self.url: str = ""
        self.payload: Any = None
        self.headers: dict[str, str] = {"Content-Type": JSON_CONTENT_TYPE}
        self.query_parameters: dict[str, list[str]] = {}

    @classmethod
    def get(cls, url: str, response_type: Any = Any) -> "ApiRequest[Any]":
        return cls(response_type).with_method(RequestType.GET).with_url(url)

    @classmethod
    def post(cls, url: str, payload: Any, response_type: Any = Any) -> "ApiRequest[Any]":
        return cls(response_type).with_method(RequestType.POST).with_url(url).with_payload(payload)

    @classmethod
    def put(cls, url: str, payload: Any, response_type: Any = Any) -> "ApiRequest[Any]":
        return cls(response_type).with_method(RequestType.PUT).with_url(url).with_payload(payload)

    @classmethod
    def delete(cls, url: str, response_type: Any = Any) -> "ApiRequest[Any]":
        return cls(response_type).with_method(RequestType.DELETE).with_url(url)

    @property
    def executor(self) -> RequestExecutor:
        return self._executor if self._executor is not None else default_executor()

    def with_method(self, method: RequestType | str) -> Self:
        self.method = RequestType(method).value if isinstance(method, RequestType) else method.upper()
        return self

    def with_url(self, url: str) -> Self:
        self.url = url
        return self

    def with_payload(self, payload: Any) -> Self:
        self.payload = payload
        return self

    def with_executor(self, executor: RequestExecutor) -> Self:
        self._executor = executor
        return self

    def with_headers(self, headers: Mapping[str, str]) -> Self:
        """Replace the header set, including the default Content-Type."""
        self.headers = dict(headers)
        return self

    def with_query_parameters(self, params: Mapping[str, str | Sequence[str]]) -> Self:
        if not params:
            return self

        self.query_parameters = {
            k: [v] if isinstance(v, str) else [str(x) for x in v]
            for k, v in params.items()
        }
        return self

    def build_url(self) -> str:
        try:
            url = URL(self.url)
        except (TypeError, ValueError) as e:
            raise InvalidURLError(f"could not parse url {self.url}", cause=e) from e

        if not url.absolute or not url.host:
            raise InvalidURLError(f"invalid url host {self.url}")

        if self.method == RequestType.GET.value and self.query_parameters:
            url = url.update_query(
                {k: ",".join(v) for k, v in self.query_parameters.items()}
            )

        return str(url)

    def encode_payload(self) -> bytes | None:
        if self.payload is None:
            return None
        if isinstance(self.payload, bytes):
            return self.payload
        if isinstance(self.payload, str):
            return self.payload.encode("utf-8")

        try:
            return _payload_adapter.dump_json(self.payload)
        except PydanticSerializationError as e:
            raise RequestError(
                f"could not marshal body for request {self.url}. Body:\n {self.payload!r}",
                cause=e,
            ) from e

    def build(self, context: CallContext | None = None) -> TransportRequest:
        return TransportRequest(
            method=self.method,
            url=self.build_url(),
            headers=dict(self.headers),
            body=self.encode_payload(),
            context=context if context is not None else CallContext.background(),
        )

    async def send(self, context: CallContext | None = None) -> T:
        """
        Send the request through the executor's pipeline and decode the
        response body.

        Raises:
            InvalidURLError: the URL has no host or cannot be parsed
            RequestCancelledError: the context was cancelled or its deadline passed
            RequestError: the pipeline failed ("failed to make request ..."),
                the original failure is the cause
            ResponseStatusError: the response status is >= 400
            DecodeError: the status was fine but the body did not validate
        """
        request = self.build(context)
        self._logger.debug(f"{request.method} {request.url}")

        try:
            response = await self.executor.send(request)
        except RequestCancelledError:
            raise
        except RequestError as e:
            raise RequestError(f"failed to make request {self.url}", cause=e) from e

        if response.status >= 400:
            raise ResponseStatusError(
                f"error calling {request.url}: {response.text()}",
                status_code=response.status,
                body=response.body,
            )

        return self.decode(response)

    def decode(self, response: TransportResponse) -> T:
        try:
            if response.content_type == JSON_CONTENT_TYPE:
                if not response.body:
                    return self._adapter.validate_python(None)
                return self._adapter.validate_json(response.body)

            return self._adapter.validate_python(response.text())
        except ValidationError as e:
            raise DecodeError(
                f"error converting response for request {self.url}",
                cause=e,
                status_code=response.status,
            ) from e
