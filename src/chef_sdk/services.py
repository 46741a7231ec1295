"""
Base class for Chef server resource services

Resource wrappers (nodes, roles, users...) receive the transport they use
explicitly at construction instead of reaching for a shared client.
"""

import io
import json
from typing import Any, Optional, Protocol

from requests.models import PreparedRequest

from .exceptions import ServerError
from .response import ChefResponse


class SignedTransport(Protocol):
    """Operations a resource service needs from the client"""

    def new_request(self, method: str, path: str, body: Any = None) -> PreparedRequest:
        ...

    def no_auth_new_request(self, method: str, path: str, body: Any = None) -> PreparedRequest:
        ...

    def do(self, request: PreparedRequest, target: Any = None) -> ChefResponse:
        ...


def json_body(document: Any) -> io.BytesIO:
    """Encode a document as a seekable JSON request body."""
    return io.BytesIO(json.dumps(document).encode('utf-8'))


class BaseService:
    """
    Common request helpers for resource services.

    Attributes:
        transport: Client used to build and send requests
    """

    def __init__(self, transport: SignedTransport):
        self.transport = transport

    def request(self, method: str, path: str, body: Any = None, target: Any = dict) -> Any:
        """Send a signed request and return the decoded value."""
        request = self.transport.new_request(method, path, body)
        with self.transport.do(request, target) as response:
            return response.value

    def get(self, path: str, target: Any = dict) -> Any:
        return self.request("GET", path, target=target)

    def post(self, path: str, document: Any, target: Any = dict) -> Any:
        return self.request("POST", path, json_body(document), target)

    def put(self, path: str, document: Any, target: Any = dict) -> Any:
        return self.request("PUT", path, json_body(document), target)

    def delete(self, path: str, target: Any = dict) -> Any:
        return self.request("DELETE", path, target=target)

    def find(self, path: str, target: Any = dict) -> Optional[Any]:
        """
        Fetch a resource, returning None when the server answers 404.

        Other server errors are raised unchanged.
        """
        try:
            return self.get(path, target)
        except ServerError as e:
            if e.status_code == 404:
                return None
            raise
