#!/usr/bin/env python3
"""
Chef Python SDK - Request Signing Example

Signs Chef Server API requests with authentication protocol 1.0 and 1.3 and
prints the resulting headers. When CHEF_SERVER_URL, CHEF_CLIENT_NAME and
CHEF_CLIENT_KEY (path to a PEM file) are set, the node list is fetched from
that server as well.
"""

import logging
import os

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from chef_sdk import ChefClient, ClientConfig, ServerError, TransportError


def generate_pem() -> str:
    """Throwaway RSA key in PKCS#1 PEM form"""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def offline_signing_example():
    """Build signed requests without sending them"""
    print("=== Offline Request Signing Example ===")
    pem = generate_pem()

    for version in ("1.0", "1.3"):
        config = ClientConfig(
            name="example-client",
            key=pem,
            base_url="https://chef.example.com/organizations/acme",
            authentication_version=version,
        )
        with ChefClient(config) as client:
            request = client.new_request("POST", "nodes", b'{"name":"web01"}')

        print(f"\nProtocol {version}: {request.method} {request.url}")
        for name, value in request.headers.items():
            if name.startswith("X-Ops-") or name in ("Method", "Path", "Content-Type"):
                print(f"   {name}: {value}")


def server_example():
    """List nodes from a real Chef server"""
    server_url = os.environ.get("CHEF_SERVER_URL")
    client_name = os.environ.get("CHEF_CLIENT_NAME")
    key_path = os.environ.get("CHEF_CLIENT_KEY")
    if not (server_url and client_name and key_path):
        print("\nSet CHEF_SERVER_URL, CHEF_CLIENT_NAME and CHEF_CLIENT_KEY to query a server.")
        return

    with open(key_path, "r", encoding="utf-8") as fh:
        pem = fh.read()

    print(f"\n=== Listing nodes on {server_url} ===")
    config = ClientConfig(name=client_name, key=pem, base_url=server_url,
                          authentication_version="1.3", timeout=30)
    with ChefClient(config) as client:
        try:
            nodes = client.request_decoder("GET", "nodes", target={})
        except ServerError as e:
            print(f"Server refused the request: {e} {e.status_msg}")
            return
        except TransportError as e:
            print(f"Could not reach the server: {e}")
            return

    for name, url in sorted(nodes.items()):
        print(f"   {name}: {url}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    offline_signing_example()
    server_example()
