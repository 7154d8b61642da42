"""Cookie parsing, SetCookie serialization, and outgoing cookie materialization.

The read side (``parse_cookies``) is used when building a ``Request``.
The write side turns the cookies a request accumulated during dispatch into
``SetCookie`` directives on the final response.

Outgoing cookie values follow a small contract::

    cookies["theme"] = "dark"                      # set, path "/", expires in 7 days
    cookies["theme"] = None                        # delete (expiry in the past)
    cookies["theme"] = {"value": "dark", "path": "/admin"}   # explicit overrides
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from email.utils import format_datetime
from typing import Any

# Keys a cookie override mapping may carry, besides "value".
_OVERRIDE_KEYS = frozenset(
    {"value", "path", "expires", "max_age", "domain", "secure", "httponly", "samesite"}
)


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Returns an empty dict for empty or missing headers.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        pair = pair.strip()
        if "=" in pair:
            key, _, value = pair.partition("=")
            cookies[key.strip()] = value.strip()
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive attached to a Response."""

    name: str
    value: str
    expires: datetime | None = None
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = False
    samesite: str | None = None

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        parts = [f"{self.name}={self.value}"]
        if self.path:
            parts.append(f"Path={self.path}")
        if self.domain:
            parts.append(f"Domain={self.domain}")
        if self.expires is not None:
            parts.append(f"Expires={format_datetime(self.expires, usegmt=True)}")
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.secure:
            parts.append("Secure")
        if self.httponly:
            parts.append("HttpOnly")
        if self.samesite:
            parts.append(f"SameSite={self.samesite}")
        return "; ".join(parts)


def materialize_cookie(
    name: str,
    value: Any,
    *,
    now: datetime,
    path: str = "/",
    lifetime: int = 604800,
) -> SetCookie:
    """Turn one outgoing cookie entry into a ``SetCookie``.

    ``None`` and empty values delete the cookie: the expiry is set one
    *lifetime* in the past. Mappings may override any ``SetCookie`` field;
    unknown keys raise ``ValueError``.
    """
    if isinstance(value, Mapping):
        unknown = set(value) - _OVERRIDE_KEYS
        if unknown:
            msg = f"Unknown cookie option(s) for {name!r}: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        options: dict[str, Any] = {"path": path, **value}
        raw = options.pop("value", "")
        if raw is None or raw == "":
            options.setdefault("expires", now - timedelta(seconds=lifetime))
            return SetCookie(name=name, value="", **_expiry_options(options, now))
        options.setdefault("expires", now + timedelta(seconds=lifetime))
        return SetCookie(name=name, value=str(raw), **_expiry_options(options, now))

    if value is None or value == "":
        return SetCookie(name=name, value="", path=path, expires=now - timedelta(seconds=lifetime))

    return SetCookie(
        name=name,
        value=str(value),
        path=path,
        expires=now + timedelta(seconds=lifetime),
    )


def _expiry_options(options: dict[str, Any], now: datetime) -> dict[str, Any]:
    """Accept ``expires`` as a datetime or as seconds relative to *now*."""
    expires = options.get("expires")
    if isinstance(expires, int | float) and not isinstance(expires, bool):
        options["expires"] = now + timedelta(seconds=expires)
    return options


def materialize_cookies(
    cookies: Mapping[str, Any],
    *,
    path: str = "/",
    lifetime: int = 604800,
    now: datetime | None = None,
) -> tuple[SetCookie, ...]:
    """Materialize every outgoing cookie, preserving insertion order."""
    moment = now or datetime.now(UTC)
    return tuple(
        materialize_cookie(name, value, now=moment, path=path, lifetime=lifetime)
        for name, value in cookies.items()
    )
