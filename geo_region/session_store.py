from typing import Protocol

from fastapi import Request, Response


class SessionStore(Protocol):
    """Per-client key/value storage that lives as long as the browser session."""

    def has(self, key: str) -> bool: ...

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, path: str = "/") -> None: ...


class InMemorySessionStore:
    """Dict-backed store for callers that are not behind HTTP, and for tests."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(values or {})

    def has(self, key: str) -> bool:
        return key in self._values

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str, path: str = "/") -> None:
        self._values[key] = value


class CookieSessionStore:
    """Session store backed by the request's cookies.

    Writes go out as session cookies (no max-age, no expires) on the response.
    Values set during the request are also visible to later reads through the
    same store.
    """

    def __init__(self, request: Request, response: Response) -> None:
        self._request = request
        self._response = response
        self._pending: dict[str, str] = {}

    def has(self, key: str) -> bool:
        return key in self._pending or key in self._request.cookies

    def get(self, key: str) -> str | None:
        if key in self._pending:
            return self._pending[key]
        return self._request.cookies.get(key)

    def set(self, key: str, value: str, path: str = "/") -> None:
        self._response.set_cookie(key=key, value=value, path=path)
        self._pending[key] = value
