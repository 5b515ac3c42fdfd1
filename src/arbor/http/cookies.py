"""Cookies in both directions.

``parse_cookies`` reads the ``Cookie`` request header into
``Request.cookies``. ``SetCookie`` records one ``Response.set_cookie``
call until the sender renders it as a ``Set-Cookie`` header.
"""

from dataclasses import dataclass

SAMESITE_VALUES = ("lax", "strict", "none")


def parse_cookies(header: str) -> dict[str, str]:
    """Parse ``"a=1; b=2"`` into ``{"a": "1", "b": "2"}``. Malformed pairs are skipped."""
    jar: dict[str, str] = {}
    for chunk in header.split(";"):
        name, has_value, value = chunk.partition("=")
        name = name.strip()
        if has_value and name:
            jar[name] = value.strip()
    return jar


@dataclass(frozen=True, slots=True)
class SetCookie:
    """One cookie the response asks the client to store (or expire)."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    def __post_init__(self) -> None:
        if self.samesite and self.samesite.lower() not in SAMESITE_VALUES:
            msg = f"samesite must be one of {SAMESITE_VALUES}, got {self.samesite!r}"
            raise ValueError(msg)

    def to_header_value(self) -> str:
        attributes: list[str | None] = [
            f"Max-Age={self.max_age}" if self.max_age is not None else None,
            f"Path={self.path}" if self.path else None,
            f"Domain={self.domain}" if self.domain else None,
            "Secure" if self.secure else None,
            "HttpOnly" if self.httponly else None,
            f"SameSite={self.samesite}" if self.samesite else None,
        ]
        return "; ".join([f"{self.name}={self.value}", *filter(None, attributes)])
