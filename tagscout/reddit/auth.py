"""Reddit OAuth token acquisition.

Reddit issues tokens through several incompatible grant flows depending on how
the application is registered. ``CredentialResolver`` walks an ordered table
of grant strategies and returns the first token any of them yields:

1. ``client_credentials`` - confidential (script/web) app, needs id + secret
2. ``installed_client``  - installed app, needs only the id
3. ``password``          - resource-owner password grant, needs everything

Docs: https://github.com/reddit-archive/reddit/wiki/OAuth2
"""

from dataclasses import dataclass
from typing import Callable, Optional, Union

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, field_validator

from ..events import EventEmitter, EventSink, as_sinks
from ..errors import PlatformAPIError

logger = structlog.get_logger()

TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
INSTALLED_CLIENT_GRANT = "https://oauth.reddit.com/grants/installed_client"
DEVICE_ID = "DO_NOT_TRACK_THIS_DEVICE"
SCOPE = "read"


class RedditCredentials(BaseModel):
    """Credential material for the Reddit API. Empty string means absent."""

    model_config = ConfigDict(frozen=True)

    client_id: str = ""
    client_secret: str = ""
    username: str = ""
    password: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _blank_if_none(cls, value):
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @property
    def has_any(self) -> bool:
        return any((self.client_id, self.client_secret, self.username, self.password))


class Token(BaseModel):
    """A bearer token and the grant that produced it."""

    model_config = ConfigDict(frozen=True)

    value: str
    strategy: str


class Unavailable(BaseModel):
    """No grant produced a token."""

    model_config = ConfigDict(frozen=True)

    reason: str


TokenResult = Union[Token, Unavailable]


@dataclass(frozen=True)
class GrantStrategy:
    """One token grant flow.

    Attributes:
        name: Grant name used in logs and events.
        requires: Credential fields that must be non-empty, else the grant is skipped.
        form: Builds the form body from the credentials.
        send_secret: Whether Basic auth carries the secret or an empty password.
    """

    name: str
    requires: tuple[str, ...]
    form: Callable[[RedditCredentials], dict[str, str]]
    send_secret: bool = True

    def applies(self, credentials: RedditCredentials) -> bool:
        return all(getattr(credentials, field) for field in self.requires)

    def basic_auth(self, credentials: RedditCredentials) -> httpx.BasicAuth:
        secret = credentials.client_secret if self.send_secret else ""
        return httpx.BasicAuth(credentials.client_id, secret)


DEFAULT_GRANTS: tuple[GrantStrategy, ...] = (
    GrantStrategy(
        name="client_credentials",
        requires=("client_id", "client_secret"),
        form=lambda c: {"grant_type": "client_credentials", "scope": SCOPE},
    ),
    GrantStrategy(
        name="installed_client",
        requires=("client_id",),
        form=lambda c: {
            "grant_type": INSTALLED_CLIENT_GRANT,
            "device_id": DEVICE_ID,
            "scope": SCOPE,
        },
        send_secret=False,
    ),
    GrantStrategy(
        name="password",
        requires=("client_id", "client_secret", "username", "password"),
        form=lambda c: {
            "grant_type": "password",
            "username": c.username,
            "password": c.password,
            "scope": SCOPE,
        },
    ),
)


class CredentialResolver:
    """Resolve Reddit credentials into a bearer token.

    Each call re-authenticates from scratch; tokens are never cached.

    Usage:
        async with httpx.AsyncClient() as client:
            resolver = CredentialResolver(client, user_agent="my-app/1.0")
            result = await resolver.resolve(credentials)
            if isinstance(result, Token):
                ...
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str,
        strategies: tuple[GrantStrategy, ...] = DEFAULT_GRANTS,
        token_url: str = TOKEN_URL,
        on_event: Union[EventSink, list[EventSink], None] = None,
    ):
        self._client = client
        self.user_agent = user_agent
        self.strategies = strategies
        self.token_url = token_url
        self._events = EventEmitter("reddit", as_sinks(on_event))

    async def resolve(self, credentials: Optional[RedditCredentials]) -> TokenResult:
        """Try each grant in order and return the first token obtained.

        Never raises; failed grants are logged and the next one is tried.
        """
        if credentials is None or not credentials.has_any:
            return Unavailable(reason="no credentials configured")

        attempted: list[str] = []
        for strategy in self.strategies:
            if not strategy.applies(credentials):
                self._events.emit("token", strategy.name, "skipped", detail="missing credentials")
                continue

            attempted.append(strategy.name)
            try:
                value = await self._request_token(strategy, credentials)
            except (PlatformAPIError, httpx.HTTPError, ValueError) as exc:
                status_code = getattr(exc, "status_code", None)
                logger.warning(
                    "reddit_token_request_failed",
                    strategy=strategy.name,
                    status_code=status_code,
                    body=getattr(exc, "body", None),
                    error=str(exc),
                )
                self._events.emit(
                    "token", strategy.name, "failure", status_code=status_code, detail=str(exc)
                )
                continue

            self._events.emit("token", strategy.name, "success", status_code=200)
            logger.info("reddit_token_acquired", strategy=strategy.name)
            return Token(value=value, strategy=strategy.name)

        if not attempted:
            return Unavailable(reason="no grant applicable to the configured credentials")
        return Unavailable(reason=f"all grants failed: {', '.join(attempted)}")

    async def _request_token(
        self, strategy: GrantStrategy, credentials: RedditCredentials
    ) -> str:
        """POST one grant to the token endpoint and return the access token."""
        logger.debug("reddit_token_request", strategy=strategy.name)

        response = await self._client.post(
            self.token_url,
            data=strategy.form(credentials),
            auth=strategy.basic_auth(credentials),
            headers={"User-Agent": self.user_agent},
        )
        if not response.is_success:
            raise PlatformAPIError(
                f"token request failed: HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError:
            raise PlatformAPIError(
                "token response is not JSON",
                status_code=response.status_code,
                body=response.text,
            ) from None

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token.strip():
            raise PlatformAPIError(
                "token response has no access_token",
                status_code=response.status_code,
                body=response.text,
            )
        return token
