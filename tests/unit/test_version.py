"""Tests for version module."""

from __future__ import annotations

import pytest

from application_operator import __version__
from application_operator.__version__ import __version__ as version_string


class TestVersion:
    """Test version information."""

    @pytest.mark.unit
    def test_version_format(self) -> None:
        """Version follows major.minor.patch."""
        parts = __version__.split(".")
        assert len(parts) == 3
        assert all(part.isdigit() for part in parts)

    @pytest.mark.unit
    def test_version_importable(self) -> None:
        """Package and module expose the same version."""
        assert __version__ == version_string
