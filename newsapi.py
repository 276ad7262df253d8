"""newsapi

Small client for the NewsAPI HTTP service (https://newsapi.org).

It supports two endpoints:
  - ``top-headlines``: headlines for one country
  - ``everything``: full-text search, a query is mandatory

A client is configured fluently and then fetched either blocking (``requests``)
or from a coroutine (``httpx``). Both paths share URL building, response
decoding and error mapping; only the transport differs.

Every failure surfaces as a subclass of :class:`NewsApiError`. Nothing is
retried and nothing is logged here; that belongs to the caller.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import quote, urlsplit, urlunsplit

import httpx
import requests

BASE_URL = "https://newsapi.org/v2"
USER_AGENT = "clinews-app"
DEFAULT_TIMEOUT_S = 25


class NewsApiError(Exception):
    """Base class for every error raised by this module."""

    summary = "NewsAPI request failed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(f"{self.summary}: {detail}" if detail else self.summary)


class RequestFailed(NewsApiError):
    """The HTTP transport failed (connection, timeout, error status)."""

    summary = "Failed fetching articles"


class ResponseReadFailed(NewsApiError):
    """The response body could not be read to completion."""

    summary = "Failed converting response to string"


class ArticleParseFailed(NewsApiError):
    """The body is not JSON or does not have the envelope shape."""

    summary = "Article Parsing failed"


class UrlParsingFailed(NewsApiError):
    summary = "Url parsing failed"


class BadRequest(NewsApiError):
    """Semantic failure: invalid input or an error reported by the service.

    ``message`` is one of a fixed set of texts. When the error was mapped from a
    response, ``code`` and ``detail`` hold what the service sent.
    """

    def __init__(self, message: str, *, code: Optional[str] = None, detail: Optional[str] = None):
        self.message = message
        self.code = code
        self.detail = detail
        Exception.__init__(self, f"Request failed: {message}")


class Endpoint(Enum):
    TOP_HEADLINES = "top-headlines"
    EVERYTHING = "everything"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_str(cls, s: str) -> "Endpoint":
        for member in cls:
            if member.value == s:
                return member
        raise BadRequest("Invalid endpoint")


class Country(Enum):
    US = "us"
    GB = "gb"
    CA = "ca"
    AU = "au"
    IN = "in"
    JP = "jp"
    CN = "cn"
    DE = "de"
    FR = "fr"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_str(cls, s: str) -> "Country":
        for member in cls:
            if member.value == s:
                return member
        raise BadRequest("Invalid country")


@dataclass(frozen=True)
class Article:
    title: str
    url: str

    @classmethod
    def from_payload(cls, payload: Any) -> "Article":
        """Build an article from one JSON object; extra fields are ignored."""
        if not isinstance(payload, Mapping):
            raise ArticleParseFailed("article is not an object")
        title = payload.get("title")
        url = payload.get("url")
        if not isinstance(title, str) or not isinstance(url, str):
            raise ArticleParseFailed("article needs string 'title' and 'url'")
        return cls(title=title, url=url)


@dataclass(frozen=True)
class NewsAPIResponse:
    """Decoded response envelope ``{status, articles, code, message}``."""

    status: str
    articles: Tuple[Article, ...] = ()
    code: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_json(cls, body: Any) -> "NewsAPIResponse":
        try:
            payload = json.loads(body)
        except (ValueError, RecursionError) as e:
            raise ArticleParseFailed(f"invalid JSON ({e})") from e
        return cls.from_payload(payload)

    @classmethod
    def from_payload(cls, payload: Any) -> "NewsAPIResponse":
        if not isinstance(payload, Mapping):
            raise ArticleParseFailed("response is not an object")

        status = payload.get("status")
        if not isinstance(status, str):
            raise ArticleParseFailed("response has no string 'status'")

        # error bodies from the live service carry no article list
        raw_articles = payload.get("articles")
        if raw_articles is None and status != "ok":
            raw_articles = []
        if not isinstance(raw_articles, list):
            raise ArticleParseFailed("'articles' is not a list")

        code = payload.get("code")
        message = payload.get("message")
        if code is not None and not isinstance(code, str):
            raise ArticleParseFailed("'code' is not a string")
        if message is not None and not isinstance(message, str):
            message = None

        return cls(
            status=status,
            articles=tuple(Article.from_payload(a) for a in raw_articles),
            code=code,
            message=message,
        )

    @property
    def ok(self) -> bool:
        return self.status == "ok"


ERROR_MESSAGES: Dict[str, str] = {
    "apiKeyDisabled": "Your API key has been disabled",
    "apiKeyExhausted": "Your API key has no more requests available",
    "apiKeyInvalid": "Your API key hasn't been entered correctly",
    "apiKeyMissing": "Your API key is missing from the request",
    "parameterInvalid": "You've included a parameter in your request which is currently not supported",
    "parametersMissing": "Required parameters are missing from the request",
    "rateLimited": "You have been rate limited",
    "sourcesTooMany": "You have requested too many sources in a single request",
    "sourceDoesNotExist": "You have requested a source which does not exist",
}


def map_response_error(code: Optional[str], detail: Optional[str] = None) -> BadRequest:
    """Translate an application-level error code into a :class:`BadRequest`."""
    message = ERROR_MESSAGES.get(code, "Unknown error") if code is not None else "Unknown error"
    return BadRequest(message, code=code, detail=detail)


@dataclass(frozen=True)
class RequestConfig:
    """What to ask for. Validation happens when the URL is built."""

    endpoint: Endpoint = Endpoint.TOP_HEADLINES
    country: Country = Country.US
    query: Optional[str] = None


def prepare_url(config: RequestConfig, base_url: str = BASE_URL) -> str:
    """Build the full request URL for ``config``."""
    try:
        parts = urlsplit(base_url)
    except ValueError as e:
        raise UrlParsingFailed(f"{base_url!r} ({e})") from e
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise UrlParsingFailed(repr(base_url))

    path = f"{parts.path.rstrip('/')}/{quote(str(config.endpoint), safe='')}"

    pairs = []
    if config.endpoint is Endpoint.TOP_HEADLINES:
        pairs.append(f"country={config.country}")
    elif config.endpoint is Endpoint.EVERYTHING:
        if config.query is None:
            raise BadRequest("Query is required for 'everything' endpoint")
        pairs.append(f"q={quote(config.query, safe='')}")

    return urlunsplit((parts.scheme, parts.netloc, path, "&".join(pairs), ""))


def _decode(status_code: int, body: bytes) -> NewsAPIResponse:
    try:
        response = NewsAPIResponse.from_json(body)
    except ArticleParseFailed as e:
        if status_code >= 400:
            raise RequestFailed(f"HTTP {status_code}") from e
        raise

    if response.ok:
        return response
    raise map_response_error(response.code, response.message)


class NewsAPI:
    """Fluent NewsAPI client (easy to mock: one request per fetch)."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = BASE_URL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout_s = timeout_s
        self.async_transport = async_transport
        self.config = RequestConfig()

    def set_endpoint(self, endpoint: Endpoint) -> "NewsAPI":
        self.config = replace(self.config, endpoint=endpoint)
        return self

    def set_country(self, country: Country) -> "NewsAPI":
        self.config = replace(self.config, country=country)
        return self

    def set_query(self, query: str) -> "NewsAPI":
        self.config = replace(self.config, query=query)
        return self

    def prepare_url(self) -> str:
        return prepare_url(self.config, self.base_url)

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": self.api_key, "User-Agent": USER_AGENT}

    def fetch(self) -> NewsAPIResponse:
        url = self.prepare_url()

        try:
            resp = requests.get(url, headers=self._headers(), timeout=self.timeout_s, stream=True)
        except (requests.RequestException, ValueError) as e:
            raise RequestFailed(str(e)) from e

        try:
            body = resp.content
        except requests.RequestException as e:
            raise ResponseReadFailed(str(e)) from e
        finally:
            resp.close()

        return _decode(resp.status_code, body)

    async def fetch_async(self) -> NewsAPIResponse:
        url = self.prepare_url()

        async with httpx.AsyncClient(
            timeout=self.timeout_s, transport=self.async_transport, follow_redirects=True
        ) as client:
            try:
                async with client.stream("GET", url, headers=self._headers()) as resp:
                    try:
                        body = await resp.aread()
                    except httpx.HTTPError as e:
                        raise ResponseReadFailed(str(e)) from e
            except (httpx.HTTPError, ValueError) as e:
                raise RequestFailed(str(e)) from e

        return _decode(resp.status_code, body)
