"""OpenAPI 3.0 document for the custom buttons collection."""
from __future__ import annotations

from typing import Any

from .api_catalog import CUSTOM_BUTTONS
from .custom_button_service import EDITABLE_ATTRIBUTES
from .metadata_catalog import CUSTOM_BUTTON_TYPES

API_VERSION = "1.0.0"


def _problem_refs(codes: list[str]) -> dict[str, Any]:
    return {code: {"$ref": f"#/components/responses/Problem{code}"} for code in codes}


def _json_content(schema: dict[str, Any]) -> dict[str, Any]:
    return {"application/json": {"schema": schema}}


def _ref(name: str) -> dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


def build_spec(prefix: str = "/api") -> dict[str, Any]:
    problem_details_schema = {
        "type": "object",
        "required": ["type", "title", "status", "detail"],
        "properties": {
            "type": {"type": "string", "format": "uri"},
            "title": {"type": "string"},
            "status": {"type": "integer"},
            "detail": {"type": "string"},
            "request_id": {
                "type": "string",
                "description": "Correlation id echoed as X-Request-Id header",
            },
            "incident_id": {
                "type": "string",
                "description": "Present only for 500 errors to correlate logs",
                "nullable": True,
            },
            "errors": {
                "type": "array",
                "items": {"type": "object"},
                "description": "Validation issues (422)",
            },
            "required_capability": {
                "type": "string",
                "description": "Capability identifier the caller lacks (403)",
            },
        },
    }
    button_fields = {
        "name": {"type": "string"},
        "description": {"type": "string", "nullable": True},
        "applies_to_class": {"type": "string", "nullable": True},
        "applies_to_id": {"type": "integer", "nullable": True},
        "options": {"type": "object", "additionalProperties": True},
    }
    button_schema = {
        "type": "object",
        "properties": {
            "href": {"type": "string", "format": "uri", "readOnly": True},
            "id": {"type": "string", "readOnly": True},
            "guid": {"type": "string", "readOnly": True},
            **button_fields,
            "userid": {"type": "string", "nullable": True, "readOnly": True},
            "created_on": {"type": "string", "format": "date-time", "readOnly": True},
            "updated_on": {"type": "string", "format": "date-time", "readOnly": True},
        },
    }
    action_result = {
        "type": "object",
        "required": ["success", "message"],
        "properties": {
            "success": {"type": "boolean"},
            "message": {"type": "string"},
            "href": {"type": "string", "format": "uri"},
        },
    }
    collection_post = {
        "type": "object",
        "description": "Without action (or action=create) the body is one button, or `resources` holds several. "
        "action=edit takes `resources` of {id, ...fields}; action=delete takes `resources` of {id}.",
        "properties": {
            "action": {"type": "string", "enum": ["create", "edit", "delete"]},
            "resources": {"type": "array", "items": {"type": "object"}},
            **button_fields,
        },
    }
    resource_post = {
        "type": "object",
        "required": ["action"],
        "properties": {"action": {"type": "string", "enum": ["edit", "delete"]}, **button_fields},
    }
    patch_op = {
        "type": "object",
        "required": ["action", "path"],
        "properties": {
            "action": {"type": "string", "enum": ["edit", "add", "remove"]},
            "path": {
                "type": "string",
                "description": "One of " + ", ".join(EDITABLE_ATTRIBUTES) + "; or options/<key>",
            },
            "value": {},
        },
    }
    options_doc = {
        "type": "object",
        "required": [
            "custom_button_types",
            "service_dialogs",
            "distinct_instances_across_domains",
            "user_roles",
        ],
        "properties": {
            "custom_button_types": {
                "type": "object",
                "additionalProperties": {"type": "string"},
                "example": CUSTOM_BUTTON_TYPES,
            },
            "service_dialogs": {
                "type": "array",
                "items": {"type": "array", "items": {}, "minItems": 2, "maxItems": 2},
            },
            "distinct_instances_across_domains": {"type": "array", "items": {"type": "string"}},
            "user_roles": {"type": "array", "items": {"type": "string"}},
        },
    }
    list_envelope = {
        "type": "object",
        "required": ["name", "count", "subcount", "resources"],
        "properties": {
            "name": {"type": "string"},
            "count": {"type": "integer"},
            "subcount": {"type": "integer"},
            "resources": {"type": "array", "items": _ref("CustomButton")},
        },
    }
    results_envelope = {
        "type": "object",
        "required": ["results"],
        "properties": {
            "results": {
                "type": "array",
                "items": {"oneOf": [_ref("CustomButton"), _ref("ActionResult")]},
            }
        },
    }

    id_param = {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}
    collection_path = f"{prefix}/{CUSTOM_BUTTONS.name}"
    paths: dict[str, Any] = {
        collection_path: {
            "get": {
                "tags": ["custom_buttons"],
                "summary": "List custom buttons",
                "parameters": [
                    {"name": "expand", "in": "query", "required": False, "schema": {"type": "string", "enum": ["resources"]}},
                    {"name": "attributes", "in": "query", "required": False, "schema": {"type": "string"}},
                ],
                "responses": {
                    "200": {"description": "Collection envelope", "content": _json_content(_ref("ListEnvelope"))},
                    **_problem_refs(["400", "401", "403"]),
                },
            },
            "post": {
                "tags": ["custom_buttons"],
                "summary": "Create, bulk edit or bulk delete custom buttons",
                "requestBody": {"required": True, "content": _json_content(_ref("CollectionPost"))},
                "responses": {
                    "200": {"description": "Per-item results", "content": _json_content(_ref("ResultsEnvelope"))},
                    **_problem_refs(["400", "401", "403", "422"]),
                },
            },
            "options": {
                "tags": ["custom_buttons"],
                "summary": "Allowed values for button fields",
                "security": [],
                "responses": {"200": {"description": "Metadata", "content": _json_content(_ref("OptionsDocument"))}},
            },
        },
        f"{collection_path}/{{id}}": {
            "parameters": [id_param],
            "get": {
                "tags": ["custom_buttons"],
                "summary": "Get a custom button",
                "responses": {
                    "200": {"description": "Custom button", "content": _json_content(_ref("CustomButton"))},
                    **_problem_refs(["400", "401", "403", "404"]),
                },
            },
            "post": {
                "tags": ["custom_buttons"],
                "summary": "Edit or delete a custom button via action",
                "requestBody": {"required": True, "content": _json_content(_ref("ResourcePost"))},
                "responses": {
                    "200": {"description": "Updated button or action result"},
                    **_problem_refs(["400", "401", "403", "404", "422"]),
                },
            },
            "put": {
                "tags": ["custom_buttons"],
                "summary": "Replace a custom button",
                "requestBody": {"required": True, "content": _json_content(_ref("CustomButton"))},
                "responses": {
                    "200": {"description": "Replaced button", "content": _json_content(_ref("CustomButton"))},
                    **_problem_refs(["400", "401", "403", "404", "422"]),
                },
            },
            "patch": {
                "tags": ["custom_buttons"],
                "summary": "Apply ordered edit operations",
                "requestBody": {
                    "required": True,
                    "content": _json_content({"type": "array", "items": _ref("PatchOperation")}),
                },
                "responses": {
                    "200": {"description": "Patched button", "content": _json_content(_ref("CustomButton"))},
                    **_problem_refs(["400", "401", "403", "404", "422"]),
                },
            },
            "delete": {
                "tags": ["custom_buttons"],
                "summary": "Delete a custom button",
                "responses": {
                    "204": {"description": "Deleted"},
                    **_problem_refs(["401", "403", "404"]),
                },
            },
        },
    }

    problem_responses = {
        f"Problem{code}": {
            "description": title,
            "content": {"application/problem+json": {"schema": _ref("ProblemDetails")}},
        }
        for code, title in (
            ("400", "Bad Request"),
            ("401", "Unauthorized"),
            ("403", "Forbidden"),
            ("404", "Not Found"),
            ("422", "Unprocessable Entity"),
        )
    }
    return {
        "openapi": "3.0.3",
        "info": {
            "title": "Custom Buttons API",
            "version": API_VERSION,
            "description": "Problem Details (RFC7807) errors. Every operation except OPTIONS requires the capability identifier declared for it.",
        },
        "servers": [{"url": "/"}],
        "tags": [{"name": "custom_buttons"}],
        "components": {
            "securitySchemes": {"BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}},
            "schemas": {
                "ProblemDetails": problem_details_schema,
                "CustomButton": button_schema,
                "ActionResult": action_result,
                "CollectionPost": collection_post,
                "ResourcePost": resource_post,
                "PatchOperation": patch_op,
                "OptionsDocument": options_doc,
                "ListEnvelope": list_envelope,
                "ResultsEnvelope": results_envelope,
            },
            "responses": problem_responses,
        },
        "security": [{"BearerAuth": []}],
        "paths": paths,
    }


__all__ = ["build_spec", "API_VERSION"]
