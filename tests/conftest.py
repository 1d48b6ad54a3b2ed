"""Shared pytest fixtures for diforge tests."""

import pytest

from diforge import Container, SignatureIntrospector


@pytest.fixture()
def container() -> Container:
    """Default container with cycle detection enabled."""
    return Container()


@pytest.fixture()
def container_without_cycle_detection() -> Container:
    """Container that lets dependency cycles recurse."""
    return Container(detect_cycles=False)


@pytest.fixture()
def introspector() -> SignatureIntrospector:
    """SignatureIntrospector instance."""
    return SignatureIntrospector()
