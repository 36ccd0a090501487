import pytest

from api.config import ServiceConfig
from tests.fakes import FakeModelClient, FakeRepositoryHost, make_payload


@pytest.fixture
def service_settings() -> ServiceConfig:
    return ServiceConfig(github_webhook_secret=None)


@pytest.fixture
def payload() -> dict:
    return make_payload()


@pytest.fixture
def host() -> FakeRepositoryHost:
    return FakeRepositoryHost()


@pytest.fixture
def model() -> FakeModelClient:
    return FakeModelClient()
