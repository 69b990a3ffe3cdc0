"""
Integration test fixtures: a real HttpRequester wired to FakeNimbusService.
"""

import httpx
import pytest
from fake_service import FakeNimbusService

from nimbusio_sdk.config import ServiceSettings
from nimbusio_sdk.credentials import Credentials
from nimbusio_sdk.requester import HttpRequester

COLLECTION = "test-00001"


@pytest.fixture
def credentials():
    """Credentials shared by client and fake service."""
    return Credentials(name="alice", auth_key_id="17", auth_key="deadbeefcafe")


@pytest.fixture
def settings():
    """Settings pointing at a test domain."""
    return ServiceSettings(service_domain="nimbus.test", service_port=443, use_ssl=True)


@pytest.fixture
def service(credentials):
    """Fresh in-memory service."""
    return FakeNimbusService(credentials)


@pytest.fixture
def requester(credentials, settings, service):
    """HttpRequester whose transport is the fake service."""
    client = httpx.Client(transport=httpx.MockTransport(service.handle))
    with HttpRequester(credentials, settings=settings, client=client) as req:
        yield req
    client.close()


@pytest.fixture
def collection():
    return COLLECTION
