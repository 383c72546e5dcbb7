"""Shared pytest fixtures for wiregraph tests."""

import pytest

from tests.helpers import RecordingAdapter
from wiregraph.application import Application
from wiregraph.container import Container
from wiregraph.declarations import Declarations
from wiregraph.registry import DescriptorRegistry
from wiregraph.types import Lifecycle


@pytest.fixture()
def application() -> Application:
    """Fresh application with the default configuration."""
    return Application()


@pytest.fixture()
def application_autodeclare() -> Application:
    """Application declaring plain classes on demand."""
    return Application(autodeclare=True)


@pytest.fixture()
def application_prototype() -> Application:
    """Application with prototype as the default lifecycle."""
    return Application(default_lifecycle=Lifecycle.PROTOTYPE)


@pytest.fixture()
def registry() -> DescriptorRegistry:
    return DescriptorRegistry()


@pytest.fixture()
def declarations(registry: DescriptorRegistry) -> Declarations:
    return Declarations(registry)


@pytest.fixture()
def recording_adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture()
def container() -> Container:
    return Container()
