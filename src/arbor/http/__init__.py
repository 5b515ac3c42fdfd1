"""HTTP request and response types used by handlers and middleware."""

from arbor.http.request import Request
from arbor.http.response import Response

__all__ = ["Request", "Response"]
