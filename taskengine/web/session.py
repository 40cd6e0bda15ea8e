"""
Session resolution.

Authentication happens at the gateway in front of this service; the
gateway forwards the authenticated member id in a trusted header.
"""

from typing import Protocol

from aiohttp import web

USER_ID_HEADER = "X-User-Id"


class SessionResolver(Protocol):
    """Maps a request to the authenticated member id."""

    def resolve(self, request: web.Request) -> int | None: ...


class HeaderSessionResolver:
    """Reads the member id from a gateway-set header."""

    def __init__(self, header: str = USER_ID_HEADER) -> None:
        self.header = header

    def resolve(self, request: web.Request) -> int | None:
        raw = request.headers.get(self.header, "").strip()
        if not raw.isascii() or not raw.isdecimal():
            return None
        user_id = int(raw)
        return user_id if user_id > 0 else None
