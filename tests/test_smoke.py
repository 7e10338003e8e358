"""
Smoke tests to verify the test infrastructure is working correctly.

These tests verify:
- pytest is properly configured
- asyncio support works
- fixtures are accessible
- the package imports and exposes its version
"""

from pathlib import Path

import pytest


class TestInfrastructure:
    """Tests to verify the testing infrastructure itself."""

    def test_project_root_fixture(self, project_root: Path):
        """Verify project root fixture returns correct path."""
        assert project_root.exists()
        assert (project_root / "pyproject.toml").exists()

    def test_fake_client_fixture(self, fake_client):
        """Verify the fake ticket client starts empty."""
        assert fake_client.tickets == []
        assert fake_client.calls == []


class TestAsyncSupport:
    """Tests to verify async test support."""

    @pytest.mark.asyncio
    async def test_async_function(self):
        """Verify async test functions work."""
        import asyncio

        await asyncio.sleep(0.001)

    @pytest.mark.asyncio
    async def test_async_fixture_usage(self, store):
        """Verify async code can use the store fixture."""
        assert await store.list_records() == []


class TestPackage:
    def test_version(self):
        import issuekeeper

        assert issuekeeper.__version__

    def test_public_modules_import(self):
        """Verify the main subpackages import cleanly."""
        import issuekeeper.admission  # noqa: F401
        import issuekeeper.cli  # noqa: F401
        import issuekeeper.config  # noqa: F401
        import issuekeeper.reconciler  # noqa: F401
        import issuekeeper.store  # noqa: F401
        import issuekeeper.tracker  # noqa: F401
