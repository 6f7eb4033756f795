"""Shared fixtures for the slide source tests."""

import pytest

from slidesource import CandidateSlide, SourceRegistry


@pytest.fixture
def registry(tmp_path):
    """Slide source registry backed by a temporary database."""
    registry = SourceRegistry(str(tmp_path / "sources.sqlite"))
    yield registry
    registry.close()


@pytest.fixture
def make_slides():
    """Create candidate slides from (body, duplicate) pairs."""
    def _make(*pairs):
        return [ CandidateSlide(body, duplicate) for body, duplicate in pairs ]
    return _make
