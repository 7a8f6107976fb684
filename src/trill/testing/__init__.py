"""Testing utilities for trill applications.

Usage::

    from trill.testing import TestClient

    async def test_index():
        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
"""

from trill.testing.client import TestClient

__all__ = ["TestClient"]
