"""Request dispatch for the task API.

Requests and responses are plain dicts in the serverless shape used by the
``api/`` handlers::

    request  = {"method", "path", "headers", "body", "query", "client_ip"}
    response = {"statusCode", "headers", "body"}

Every failure is converted here into a JSON error body; nothing is retried.
"""

import asyncio
import json
import re
import time
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from urllib.parse import parse_qs, unquote, urlsplit

from src.services.openapi import build_openapi_document
from src.services.rate_limiter import RateLimiter
from src.services.task_mutations import TaskMutationService
from src.services.task_queries import TaskQueryService
from src.services.task_validation import validate_task_payload, validate_task_update
from src.utils.config import AppConfig
from src.utils.errors import (
    PayloadTooLargeError,
    PersistenceError,
    RateLimitError,
    TaskAPIError,
    ValidationError,
)
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

INVALID_JSON = "InvalidJSON"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": AppConfig.FRONTEND_URL,
        "Access-Control-Allow-Methods": "GET, POST, PATCH, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
        "Vary": "Origin",
    }


def json_response(status_code: int, body: Optional[Any] = None, headers: Optional[dict] = None) -> dict:
    """Build a response dict; ``body=None`` yields an empty body."""
    response_headers = {**cors_headers(), **SECURITY_HEADERS}
    if body is not None:
        response_headers["Content-Type"] = "application/json"
    if headers:
        response_headers.update(headers)
    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": json.dumps(body) if body is not None else "",
    }


def error_response(error: TaskAPIError) -> dict:
    headers = {}
    if isinstance(error, RateLimitError):
        headers.update(error.headers)
        headers["Retry-After"] = str(error.retry_after)
    return json_response(error.status_code, error.to_dict(AppConfig.is_development()), headers)


def parse_query(request: Mapping[str, Any]) -> dict[str, str]:
    """Flatten query parameters to single string values (first one wins)."""
    query = request.get("query")
    if query is None:
        query = parse_qs(urlsplit(request.get("path", "")).query)
    flat = {}
    for key, value in query.items():
        if isinstance(value, (list, tuple)):
            value = value[0] if value else ""
        flat[key] = value
    return flat


def parse_json_body(raw: Any) -> Any:
    """Decode a JSON request body. An empty body decodes to an empty object."""
    if raw is None or raw == "" or raw == b"":
        return {}
    if isinstance(raw, (dict, list)):
        return raw

    size = len(raw) if isinstance(raw, bytes) else len(raw.encode("utf-8"))
    if size > AppConfig.MAX_BODY_BYTES:
        raise PayloadTooLargeError("Request body too large")

    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Malformed JSON body", kind=INVALID_JSON, field="body") from None


def _client_key(request: Mapping[str, Any], headers: Mapping[str, str]) -> str:
    """Rate-limit key: the peer address, or the first forwarded hop behind a trusted proxy."""
    forwarded = headers.get("x-forwarded-for", "") if AppConfig.TRUST_PROXY else ""
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.get("client_ip") or "unknown"


class TaskAPI:
    """Routes requests to the task services.

    The store is built once by the caller and injected here; the query and
    mutation services share it.
    """

    def __init__(self, store, rate_limiter: Optional[RateLimiter] = None):
        self.store = store
        self.queries = TaskQueryService(store)
        self.mutations = TaskMutationService(store)
        self.rate_limiter = rate_limiter
        self.started_at = time.monotonic()

        # Serverless functions see their own paths (/api/tasks, /api/docs) as well as the public ones
        base = re.escape(AppConfig.API_BASE_PATH)
        tasks = rf"(?:{base}|/api)/tasks"
        docs = rf"(?:{re.escape(AppConfig.API_DOCS_PATH)}|/api/docs)"
        self._routes = [
            (re.compile(rf"^{tasks}/?$"), {"GET": self._list_tasks, "POST": self._create_task}),
            (re.compile(rf"^{tasks}/(?P<task_id>[^/]+)/?$"), {"PATCH": self._update_task, "DELETE": self._delete_task}),
            (re.compile(rf"^(?:{base}|/api)?/health/?$"), {"GET": self._health}),
            (re.compile(rf"^{docs}(?:/openapi\.json)?/?$"), {"GET": self._docs}),
        ]

    def handle(self, request: Mapping[str, Any]) -> dict:
        """Synchronous entry point for thread-per-request servers."""
        return asyncio.run(self.dispatch(request))

    async def dispatch(self, request: Mapping[str, Any]) -> dict:
        headers = {str(k).lower(): v for k, v in (request.get("headers") or {}).items()}
        method = str(request.get("method", "GET")).upper()
        path = urlsplit(request.get("path", "/")).path

        with correlation_context(headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER.lower())) as correlation_id:
            started = time.perf_counter()
            response = await self._dispatch(request, method, path, headers)
            response["headers"][LoggingConfig.LOG_CORRELATION_ID_HEADER] = correlation_id
            logger.info(
                "Request handled",
                method=method,
                path=path,
                status_code=response["statusCode"],
                processing_time_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return response

    async def _dispatch(self, request, method: str, path: str, headers: Mapping[str, str]) -> dict:
        if method == "OPTIONS":
            return json_response(204)

        rate_headers: dict[str, str] = {}
        try:
            if self.rate_limiter is not None:
                rate_headers = self.rate_limiter.hit(_client_key(request, headers)).headers()

            for pattern, handlers in self._routes:
                match = pattern.match(path)
                if not match:
                    continue
                route_handler = handlers.get(method)
                if route_handler is None:
                    return json_response(405, {
                        "success": False,
                        "error": "Method Not Allowed",
                        "message": f"Route {method} {path} not allowed",
                    }, {"Allow": ", ".join(sorted(handlers)), **rate_headers})
                params = {key: unquote(value) for key, value in match.groupdict().items()}
                response = await route_handler(request, **params)
                response["headers"].update(rate_headers)
                return response

            return json_response(404, {
                "success": False,
                "error": "Not Found",
                "message": f"Route {method} {path} not found",
            }, rate_headers)

        except TaskAPIError as e:
            if isinstance(e, PersistenceError):
                logger.error("Store operation failed", error=e.message, details=e.details, path=path)
            else:
                logger.info("Request rejected", error=e.message, status_code=e.status_code, path=path)
            response = error_response(e)
            response["headers"].update(rate_headers)
            return response
        except Exception as e:
            logger.exception("Unhandled error processing request", path=path, error=str(e))
            body = {"success": False, "error": "Internal Server Error"}
            if AppConfig.is_development():
                body["details"] = str(e)
            return json_response(500, body)

    async def _list_tasks(self, request) -> dict:
        page = await self.queries.list_tasks(parse_query(request))
        return json_response(200, page.to_response())

    async def _create_task(self, request) -> dict:
        data = validate_task_payload(parse_json_body(request.get("body")))
        task = await self.mutations.create_task(data)
        return json_response(201, {"success": True, "data": task.to_response()})

    async def _update_task(self, request, task_id: str) -> dict:
        data = validate_task_update(parse_json_body(request.get("body")))
        task = await self.mutations.update_task(task_id, data)
        return json_response(200, {"success": True, "data": task.to_response()})

    async def _delete_task(self, request, task_id: str) -> dict:
        await self.mutations.delete_task(task_id)
        return json_response(204)

    async def _health(self, request) -> dict:
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            await self.store.ping()
            database = {"status": "healthy", "timestamp": timestamp}
        except PersistenceError as e:
            logger.warning("Health check failed", error=e.message, details=e.details)
            database = {"status": "unhealthy", "error": e.message, "timestamp": timestamp}

        healthy = database["status"] == "healthy"
        return json_response(200 if healthy else 503, {
            "status": database["status"],
            "version": AppConfig.API_VERSION,
            "timestamp": timestamp,
            "uptime": round(time.monotonic() - self.started_at, 3),
            "database": database,
        })

    async def _docs(self, request) -> dict:
        return json_response(200, build_openapi_document())
