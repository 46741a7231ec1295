"""
Test suite for Chef Server request signing

Golden canonical strings and signatures under tests/fixtures were produced
once with OpenSSL from the fixture key and are pinned here.
"""

import base64
import dataclasses
from datetime import datetime, timedelta, timezone

import pytest
import requests
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from chef_sdk.crypto import parse_private_key
from chef_sdk.exceptions import SigningError
from chef_sdk.signing import (
    AuthConfig,
    ChefSigner,
    REQUEST_HEADERS,
    SIGNED_HEADERS,
    build_header_values,
    canonical_string,
    clean_path,
    format_timestamp,
    normalize_version,
    request_headers,
)

EMPTY_SHA1 = "2jmj7l5rSw0yVb/vlWAYkK/YBwk="
EMPTY_SHA256 = "47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU="
NODES_PATH = "/organizations/acme/nodes"
TIMESTAMP = "2024-01-02T03:04:05Z"


@pytest.fixture
def private_key(rsa_pem):
    return parse_private_key(rsa_pem)


@pytest.fixture
def make_signer(private_key, fixed_time):
    def factory(version="1.0", name="tester"):
        auth = AuthConfig(private_key=private_key, client_name=name, authentication_version=version)
        return ChefSigner(auth, clock=lambda: fixed_time)
    return factory


def prepared_get(url, content_hash=EMPTY_SHA1, **headers):
    request = requests.Request("GET", url).prepare()
    request.headers["X-Ops-Content-Hash"] = content_hash
    request.headers.update(headers)
    return request


class TestVersionNormalization:
    """Test protocol version handling"""

    @pytest.mark.parametrize("value,expected", [
        ("1.3", "1.3"),
        ("1.0", "1.0"),
        ("", "1.0"),
        (None, "1.0"),
        ("1.1", "1.0"),
        ("2", "1.0"),
    ])
    def test_normalize_version(self, value, expected):
        assert normalize_version(value) == expected

    def test_auth_config_normalizes(self, private_key):
        auth = AuthConfig(private_key=private_key, client_name="tester", authentication_version="9.9")
        assert auth.authentication_version == "1.0"

    def test_auth_config_is_frozen(self, private_key):
        auth = AuthConfig(private_key=private_key, client_name="tester")
        with pytest.raises(dataclasses.FrozenInstanceError):
            auth.client_name = "other"

    def test_auth_config_repr_hides_key(self, private_key):
        assert "private_key" not in repr(AuthConfig(private_key=private_key, client_name="tester"))


class TestCanonicalHelpers:
    """Test path cleaning and timestamp formatting"""

    @pytest.mark.parametrize("path,expected", [
        ("/organizations/acme/nodes", "/organizations/acme/nodes"),
        ("/organizations//acme///nodes", "/organizations/acme/nodes"),
        ("/organizations/acme/nodes/", "/organizations/acme/nodes"),
        ("/organizations/./acme/roles/../nodes", "/organizations/acme/nodes"),
        ("/../nodes", "/nodes"),
        ("/", "/"),
        ("//", "/"),
        ("nodes/../..", ".."),
        ("", ""),
    ])
    def test_clean_path(self, path, expected):
        assert clean_path(path) == expected

    def test_format_timestamp_utc(self):
        moment = datetime(2024, 1, 2, 3, 4, 5, 678, tzinfo=timezone.utc)
        assert format_timestamp(moment) == TIMESTAMP

    def test_format_timestamp_converts_offsets(self):
        moment = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(moment) == TIMESTAMP


class TestCanonicalString:
    """Test the canonical string against recorded known-good values"""

    def test_v10_golden(self, load_fixture):
        values = build_header_values("GET", NODES_PATH, "tester", EMPTY_SHA1, TIMESTAMP, "1.0")
        assert canonical_string(values, "1.0") == load_fixture("canonical_v10.txt")

    def test_v13_golden(self, load_fixture):
        values = build_header_values("GET", NODES_PATH, "tester", EMPTY_SHA256, TIMESTAMP, "1.3")
        assert canonical_string(values, "1.3") == load_fixture("canonical_v13.txt")

    def test_order_independent_of_mapping_order(self, load_fixture):
        """Shuffling the value table does not change the canonical string"""
        values = build_header_values("GET", NODES_PATH, "tester", EMPTY_SHA1, TIMESTAMP, "1.0")
        reversed_values = dict(reversed(list(values.items())))
        assert canonical_string(reversed_values, "1.0") == load_fixture("canonical_v10.txt")

    def test_no_trailing_newline(self):
        values = build_header_values("GET", NODES_PATH, "tester", EMPTY_SHA1, TIMESTAMP, "1.0")
        assert not canonical_string(values, "1.0").endswith("\n")

    def test_v10_hashes_path(self):
        values = build_header_values("GET", NODES_PATH, "tester", EMPTY_SHA1, TIMESTAMP, "1.0")
        assert values["Hashed Path"] == "K3HFRr5hi/qQPNFKkqbN7+hLbEA="
        assert "Path" not in values
        assert values["X-Ops-Sign"] == "algorithm=sha1;version=1.0"

    def test_v13_keeps_path(self):
        values = build_header_values("GET", NODES_PATH, "tester", EMPTY_SHA256, TIMESTAMP, "1.3")
        assert values["Path"] == NODES_PATH
        assert "Hashed Path" not in values
        assert values["X-Ops-Sign"] == "version=1.3"

    def test_signed_header_lists(self):
        assert SIGNED_HEADERS["1.0"] == (
            "Method", "Hashed Path", "X-Ops-Content-Hash", "X-Ops-Timestamp", "X-Ops-UserId",
        )
        assert SIGNED_HEADERS["1.3"] == (
            "Method", "Path", "X-Ops-Content-Hash", "X-Ops-Sign", "X-Ops-Timestamp",
            "X-Ops-UserId", "X-Ops-Server-API-Version",
        )


class TestRequestHeaders:
    """Test outgoing protocol header order"""

    def test_v10_order(self):
        values = build_header_values("GET", NODES_PATH, "tester", EMPTY_SHA1, TIMESTAMP, "1.0", "web")
        assert list(request_headers(values, "1.0")) == list(REQUEST_HEADERS["1.0"])
        assert "Path" not in request_headers(values, "1.0")

    def test_v13_order(self):
        values = build_header_values("GET", NODES_PATH, "tester", EMPTY_SHA256, TIMESTAMP, "1.3", "web")
        assert list(request_headers(values, "1.3")) == [
            "Method", "Path", "Accept", "X-Chef-Version", "X-Ops-Server-API-Version",
            "X-Ops-Timestamp", "X-Ops-UserId", "X-Ops-Sign", "X-Ops-Request-Source",
        ]

    def test_empty_request_source_omitted(self):
        values = build_header_values("GET", NODES_PATH, "tester", EMPTY_SHA1, TIMESTAMP, "1.0")
        assert "X-Ops-Request-Source" not in request_headers(values, "1.0")

    def test_fixed_values(self):
        values = build_header_values("GET", NODES_PATH, "tester", EMPTY_SHA1, TIMESTAMP, "1.0")
        headers = request_headers(values, "1.0")
        assert headers["Accept"] == "application/json"
        assert headers["X-Chef-Version"] == "14.0.0"
        assert headers["X-Ops-Server-API-Version"] == "1"
        assert headers["X-Ops-UserId"] == "tester"
        assert headers["X-Ops-Timestamp"] == TIMESTAMP


class TestChefSigner:
    """Test signing of prepared requests"""

    def test_v10_golden_authorization(self, make_signer, load_fixture):
        """GET of /organizations/acme/nodes reproduces the pinned signature"""
        request = prepared_get("https://chef.example.com" + NODES_PATH)
        signed = make_signer("1.0").sign_request(request)

        golden = load_fixture("sig_v10.b64").strip()
        assert request.headers["X-Ops-Authorization-1"] == golden[:60]
        assert request.headers["X-Ops-Authorization-1"] == \
            "bhzQJTOnLOy6y+iAZgG7CsG1Iputq4vSsd937kQzG3DOmufb1VVHNoiowpXN"
        assert "".join(signed.authorization) == golden
        assert signed.canonical_string == load_fixture("canonical_v10.txt")

    def test_v13_golden_authorization(self, make_signer, load_fixture):
        request = prepared_get("https://chef.example.com" + NODES_PATH, EMPTY_SHA256)
        signed = make_signer("1.3").sign_request(request)

        assert "".join(signed.authorization) == load_fixture("sig_v13.b64").strip()
        assert request.headers["Path"] == NODES_PATH
        assert request.headers["X-Ops-Sign"] == "version=1.3"

    def test_authorization_headers_contiguous(self, make_signer):
        """2048-bit signatures span ceil(344/60) = 6 headers numbered from 1"""
        request = prepared_get("https://chef.example.com" + NODES_PATH)
        make_signer().sign_request(request)

        names = [h for h in request.headers if h.startswith("X-Ops-Authorization-")]
        assert names == [f"X-Ops-Authorization-{i}" for i in range(1, 7)]
        assert all(len(request.headers[n]) == 60 for n in names[:-1])
        assert len(request.headers["X-Ops-Authorization-6"]) == 344 - 5 * 60

    def test_v10_does_not_send_path(self, make_signer):
        request = prepared_get("https://chef.example.com" + NODES_PATH)
        make_signer("1.0").sign_request(request)

        assert "Path" not in request.headers
        assert "Hashed Path" not in request.headers
        assert request.headers["Method"] == "GET"
        assert request.headers["X-Ops-Sign"] == "algorithm=sha1;version=1.0"

    def test_signature_verifies_with_public_key(self, make_signer, private_key):
        request = prepared_get("https://chef.example.com" + NODES_PATH, EMPTY_SHA256)
        signed = make_signer("1.3").sign_request(request)

        signature = base64.b64decode("".join(signed.authorization))
        private_key.public_key().verify(
            signature, signed.canonical_string.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256()
        )

    def test_path_is_cleaned(self, make_signer, load_fixture):
        request = prepared_get("https://chef.example.com/organizations//acme/nodes/?q=1")
        signed = make_signer("1.0").sign_request(request)

        assert request.url == "https://chef.example.com/organizations/acme/nodes?q=1"
        assert signed.canonical_string == load_fixture("canonical_v10.txt")

    def test_request_source_is_sent_not_signed(self, make_signer, load_fixture):
        request = prepared_get("https://chef.example.com" + NODES_PATH, **{"X-Ops-Request-Source": "web"})
        signed = make_signer("1.0").sign_request(request)

        assert request.headers["X-Ops-Request-Source"] == "web"
        assert signed.canonical_string == load_fixture("canonical_v10.txt")

    def test_resign_replaces_authorization(self, make_signer):
        """Stale authorization headers from an earlier signature are removed"""
        request = prepared_get("https://chef.example.com" + NODES_PATH)
        request.headers["X-Ops-Authorization-7"] = "stale"
        make_signer().sign_request(request)

        assert "X-Ops-Authorization-7" not in request.headers
        assert "X-Ops-Authorization-6" in request.headers

    def test_failure_leaves_request_unsigned(self, private_key, fixed_time):
        """A signing failure writes no protocol headers"""
        class BrokenKey:
            def sign(self, *args):
                raise ValueError("broken")

        auth = AuthConfig(private_key=BrokenKey(), client_name="tester")
        signer = ChefSigner(auth, clock=lambda: fixed_time)
        request = prepared_get("https://chef.example.com" + NODES_PATH)

        with pytest.raises(SigningError):
            signer.sign_request(request)

        assert "X-Ops-Authorization-1" not in request.headers
        assert "X-Ops-Sign" not in request.headers

    def test_existing_headers_reordered(self, make_signer):
        """Protocol headers already on the request end up in protocol order"""
        request = prepared_get("https://chef.example.com" + NODES_PATH, EMPTY_SHA256,
                               Accept="*/*", **{"X-Ops-Request-Source": "web"})
        make_signer("1.3").sign_request(request)

        protocol = [h for h in request.headers if h in REQUEST_HEADERS["1.3"]]
        assert protocol == list(REQUEST_HEADERS["1.3"])
        assert request.headers["Accept"] == "application/json"

    def test_requires_url(self, make_signer):
        request = requests.models.PreparedRequest()
        with pytest.raises(SigningError):
            make_signer().sign_request(request)

    def test_timestamp_uses_clock(self, make_signer):
        request = prepared_get("https://chef.example.com" + NODES_PATH)
        make_signer().sign_request(request)
        assert request.headers["X-Ops-Timestamp"] == TIMESTAMP
