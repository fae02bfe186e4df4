from abc import ABC
from enum import Enum
from typing import Annotated, Union, Any, Literal, TypeVar, Generic
from pydantic import Field, BaseModel, model_validator


class AuthType(str, Enum):
    STATIC = "static"
    OAUTH2_PASSWORD = "oauth2_password"
    OAUTH2_CLIENT_CREDENTIALS = "oauth2_client_credentials"


T = TypeVar("T", bound=AuthType)


class AuthConfigModel(BaseModel, ABC, Generic[T]):
    """
    Base config for all auth types. Every type feeds a TokenRefresher:
    schema is the Authorization header prefix, safety_margin the seconds
    subtracted from the token lifespan to schedule the refresh.
    """

    type: T
    schema_: str = Field(default="Bearer", alias="schema")
    safety_margin: float = Field(default=1.0, ge=0)

    model_config = {"frozen": True, "populate_by_name": True}

    def to_runtime_args(self) -> dict[str, Any]:
        return {}


class StaticTokenConfig(AuthConfigModel):
    type: Literal[AuthType.STATIC] = AuthType.STATIC
    token: str
    lifespan: float = Field(default=3600.0, gt=0)

    def to_runtime_args(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "lifespan": self.lifespan,
        }


class OAuth2Config(AuthConfigModel):
    type: Literal[AuthType.OAUTH2_PASSWORD, AuthType.OAUTH2_CLIENT_CREDENTIALS] = (
        AuthType.OAUTH2_CLIENT_CREDENTIALS
    )
    token_url: str
    client_id: str
    client_secret: str
    username: str | None = None
    password: str | None = None
    default_expiration: int = 300
    timeout: float = 10.0

    @model_validator(mode="after")
    def _check_password_grant(self) -> "OAuth2Config":
        if self.type == AuthType.OAUTH2_PASSWORD and (self.username is None or self.password is None):
            raise ValueError("oauth2_password requires username and password")
        return self

    def to_runtime_args(self) -> dict[str, Any]:
        args = {
            "token_url": self.token_url,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "default_expiration": self.default_expiration,
            "timeout": self.timeout,
        }
        if self.type == AuthType.OAUTH2_PASSWORD:
            args["username"] = self.username
            args["password"] = self.password
        return args


AuthConfigUnion = Annotated[
    Union[
        StaticTokenConfig,
        OAuth2Config,
    ],
    Field(discriminator="type"),
]
