"""OpenAPI document for the task API, generated from the pydantic models."""

from functools import lru_cache
from typing import Any

from pydantic import BaseModel

from src.models.enums import DateFilter, TaskPriority, TaskStatus
from src.models.task import Pagination, Task, TaskCreate, TaskUpdate
from src.utils.config import AppConfig

REF_TEMPLATE = "#/components/schemas/{model}"


def _ref(name: str) -> dict[str, str]:
    return {"$ref": REF_TEMPLATE.format(model=name)}


def _model_schemas(models: dict[str, tuple[type[BaseModel], str]]) -> dict[str, Any]:
    """JSON schemas for each model, with nested $defs hoisted into components."""
    schemas: dict[str, Any] = {}
    for name, (model, mode) in models.items():
        schema = model.model_json_schema(by_alias=True, mode=mode, ref_template=REF_TEMPLATE)
        schemas.update(schema.pop("$defs", {}))
        schema["title"] = name
        schemas[name] = schema
    return schemas


def _error_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "success": {"type": "boolean", "example": False},
            "error": {"type": "string", "example": "Title is required and must be a non-empty string"},
            "field": {"type": "string", "nullable": True, "example": "title"},
            "validOptions": {"type": "array", "items": {"type": "string"}, "nullable": True},
            "receivedValue": {"nullable": True},
            "details": {"type": "string", "nullable": True},
        },
    }


def _query_param(name: str, description: str, schema: dict[str, Any]) -> dict[str, Any]:
    return {"in": "query", "name": name, "required": False, "description": description, "schema": schema}


def _json_response(description: str, schema: dict[str, Any]) -> dict[str, Any]:
    return {"description": description, "content": {"application/json": {"schema": schema}}}


def _error_response(description: str) -> dict[str, Any]:
    return _json_response(description, _ref("ErrorResponse"))


def _paths() -> dict[str, Any]:
    task_envelope = {
        "type": "object",
        "properties": {"success": {"type": "boolean"}, "data": _ref("Task")},
    }
    list_envelope = {
        "type": "object",
        "properties": {
            "success": {"type": "boolean"},
            "data": {"type": "array", "items": _ref("Task")},
            "pagination": _ref("Pagination"),
        },
    }
    id_param = {"in": "path", "name": "id", "required": True, "schema": {"type": "string"}, "description": "Task ID"}
    security = [{"bearerAuth": []}]

    return {
        "/tasks": {
            "get": {
                "summary": "Get filtered tasks with pagination",
                "tags": ["Tasks"],
                "security": security,
                "parameters": [
                    _query_param("status", "Filter by task status", {"type": "string", "enum": TaskStatus.values()}),
                    _query_param("priority", "Filter by task priority", {"type": "string", "enum": TaskPriority.values()}),
                    _query_param("dateFilter", "Filter by due date window", {"type": "string", "enum": DateFilter.values()}),
                    _query_param("page", "Page number", {"type": "integer", "minimum": 1, "default": AppConfig.DEFAULT_PAGE}),
                    _query_param("limit", "Items per page", {"type": "integer", "minimum": 1, "default": AppConfig.DEFAULT_LIMIT}),
                ],
                "responses": {
                    "200": _json_response("Paginated list of tasks", list_envelope),
                    "400": _error_response("Invalid filter or pagination parameters"),
                    "429": _error_response("Too many requests"),
                },
            },
            "post": {
                "summary": "Create a new task",
                "tags": ["Tasks"],
                "security": security,
                "requestBody": {
                    "required": True,
                    "content": {"application/json": {"schema": _ref("TaskInput")}},
                },
                "responses": {
                    "201": _json_response("Task created", task_envelope),
                    "400": _error_response("Validation error"),
                },
            },
        },
        "/tasks/{id}": {
            "patch": {
                "summary": "Update an existing task",
                "tags": ["Tasks"],
                "security": security,
                "parameters": [id_param],
                "requestBody": {
                    "required": True,
                    "content": {"application/json": {"schema": _ref("TaskUpdate")}},
                },
                "responses": {
                    "200": _json_response("Task updated", task_envelope),
                    "400": _error_response("Validation error"),
                    "404": _error_response("Task not found"),
                },
            },
            "delete": {
                "summary": "Delete a task",
                "tags": ["Tasks"],
                "security": security,
                "parameters": [id_param],
                "responses": {
                    "204": {"description": "Task deleted"},
                    "404": _error_response("Task not found"),
                },
            },
        },
        "/health": {
            "get": {
                "summary": "Service and database health",
                "tags": ["Health"],
                "responses": {
                    "200": {"description": "Service healthy"},
                    "503": {"description": "Database unreachable"},
                },
            },
        },
    }


@lru_cache(maxsize=1)
def build_openapi_document() -> dict[str, Any]:
    """Build the OpenAPI 3.0 document.

    The bearer scheme is documented for clients but no endpoint enforces it.
    """
    schemas = _model_schemas({
        "Task": (Task, "serialization"),
        "TaskInput": (TaskCreate, "validation"),
        "TaskUpdate": (TaskUpdate, "validation"),
        "Pagination": (Pagination, "serialization"),
    })
    schemas["ErrorResponse"] = _error_schema()

    return {
        "openapi": "3.0.0",
        "info": {
            "title": "GradTrack Todo API",
            "version": AppConfig.API_VERSION,
            "description": "API for managing tasks in the GradTrack application",
        },
        "servers": [
            {"url": f"http://localhost:{AppConfig.PORT}{AppConfig.API_BASE_PATH}", "description": "Development server"},
        ],
        "tags": [
            {"name": "Tasks", "description": "Task management endpoints"},
            {"name": "Health", "description": "Service health"},
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
            },
            "schemas": schemas,
        },
        "paths": _paths(),
    }
