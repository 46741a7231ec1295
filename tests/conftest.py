"""
Shared fixtures for the Chef SDK test suite
"""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

from chef_sdk import ChefClient, ClientConfig

FIXTURES = Path(__file__).parent / "fixtures"

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
BASE_URL = "https://chef.example.com/"


def read_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


def make_response(request, status_code=200, body=b"", content_type="application/json"):
    """Build a requests.Response as the session would return it."""
    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response._content_consumed = True
    if content_type is not None:
        response.headers["Content-Type"] = content_type
    response.request = request
    response.url = request.url
    return response


@pytest.fixture
def rsa_pem():
    """PKCS#1 PEM test key"""
    return read_fixture("rsa_pkcs1.pem")


@pytest.fixture
def rsa_pkcs8_pem():
    """Same key as rsa_pem, PKCS#8 wrapped"""
    return read_fixture("rsa_pkcs8.pem")


@pytest.fixture
def ec_pem():
    """PKCS#8 wrapped P-256 key"""
    return read_fixture("ec_pkcs8.pem")


@pytest.fixture
def session():
    """Real requests session whose send() is mocked out."""
    session = requests.Session()
    session.send = Mock()
    return session


@pytest.fixture
def make_client(rsa_pem, session):
    """Factory for clients bound to the mocked session and a fixed clock."""
    def factory(version="1.0", **options):
        config = ClientConfig(
            name=options.pop("name", "tester"),
            key=rsa_pem,
            base_url=options.pop("base_url", BASE_URL),
            authentication_version=version,
            **options
        )
        return ChefClient(config, session=session, clock=lambda: FIXED_TIME)
    return factory


@pytest.fixture
def respond(session):
    """Make the mocked session answer the next request with the given response."""
    def configure(status_code=200, body=b"", content_type="application/json"):
        session.send.side_effect = lambda request, **kwargs: make_response(
            request, status_code, body, content_type
        )
        return session.send
    return configure


@pytest.fixture
def load_fixture():
    """Read a text fixture from tests/fixtures"""
    return read_fixture


@pytest.fixture
def fixed_time():
    return FIXED_TIME


@pytest.fixture
def response_factory():
    """Build requests.Response objects for a given request"""
    return make_response
