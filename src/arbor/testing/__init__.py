"""Test utilities for arbor servers.

    from arbor.testing import TestClient
"""

from arbor.testing.client import TestClient, TestResponse

__all__ = ["TestClient", "TestResponse"]
