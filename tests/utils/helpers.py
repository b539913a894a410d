"""Test helper functions."""

import json
from unittest.mock import MagicMock
from typing import Any, Dict, Optional


def create_api_request(
    method: str = "GET",
    path: str = "/api/v1/tasks",
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    query: Optional[Dict[str, Any]] = None,
    client_ip: str = "127.0.0.1",
) -> Dict[str, Any]:
    """Create a request dict in the shape TaskAPI.dispatch expects."""
    if headers is None:
        headers = {
            "content-type": "application/json"
        }

    return {
        "method": method,
        "path": path,
        "headers": headers,
        "body": json.dumps(body) if isinstance(body, (dict, list)) else body,
        "query": query if query is not None else {},
        "client_ip": client_ip,
    }


def response_json(response: Dict[str, Any]) -> Any:
    """Decode the JSON body of a response dict."""
    return json.loads(response["body"])


QUERY_BUILDER_METHODS = (
    "select", "insert", "update", "delete",
    "eq", "gte", "lte", "lt", "order", "range", "limit",
)


def make_query_builder(data=None, count=None):
    """Chainable stand-in for a postgrest request builder."""
    builder = MagicMock()
    for method in QUERY_BUILDER_METHODS:
        getattr(builder, method).return_value = builder
    builder.execute.return_value = MagicMock(data=data, count=count)
    return builder
