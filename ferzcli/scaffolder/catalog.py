"""Template catalog -- maps ``(kind, stack)`` pairs to rendered artifacts.

The catalog is pure.  It holds only immutable lookup tables and a Jinja2
renderer over the templates shipped with the package, and it never touches
the target project.  Given the same feature request and profile it always
returns the same artifacts; the one exception is the ``generated_at``
timestamp that migrations and seeders carry in their filename or header.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, NamedTuple

from ferzcli.config import ApiConfig
from ferzcli.errors import UnsupportedStack
from ferzcli.profiler import FrameworkTag, ProjectProfile

from .models import (
    ArtifactKind,
    Endpoint,
    FeatureNames,
    FeatureRequest,
    GeneratedArtifact,
    Operation,
)
from .templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Layout table
# ---------------------------------------------------------------------------


class Layout(NamedTuple):
    template: str | None  # None for artifacts assembled in Python (Swagger)
    path: str


SUPPORTED_STACKS: tuple[FrameworkTag, ...] = (FrameworkTag.LARAVEL, FrameworkTag.NODE)

MIGRATION_TIMESTAMP_FORMAT = "%Y_%m_%d_%H%M%S"

LAYOUTS: Mapping[tuple[ArtifactKind, FrameworkTag], Layout] = MappingProxyType(
    {
        (ArtifactKind.MODEL, FrameworkTag.LARAVEL): Layout(
            "laravel/model.php.j2", "app/Models/{model}.php"
        ),
        (ArtifactKind.CONTROLLER, FrameworkTag.LARAVEL): Layout(
            "laravel/controller.php.j2", "app/Http/Controllers/{controller}.php"
        ),
        (ArtifactKind.ROUTE, FrameworkTag.LARAVEL): Layout(
            "laravel/routes.php.j2", "routes/api_{route}.php"
        ),
        (ArtifactKind.DOC, FrameworkTag.LARAVEL): Layout(None, "docs/swagger/{route}.json"),
        (ArtifactKind.TEST, FrameworkTag.LARAVEL): Layout(
            "laravel/test.php.j2", "tests/Feature/{model}{endpoint_pascal}Test.php"
        ),
        (ArtifactKind.VALIDATION, FrameworkTag.LARAVEL): Layout(
            "laravel/request.php.j2", "app/Http/Requests/{model}Request.php"
        ),
        (ArtifactKind.MIGRATION, FrameworkTag.LARAVEL): Layout(
            "laravel/migration.php.j2",
            "database/migrations/{timestamp}_create_{table}_table.php",
        ),
        (ArtifactKind.SEEDER, FrameworkTag.LARAVEL): Layout(
            "laravel/seeder.php.j2", "database/seeders/{model}Seeder.php"
        ),
        (ArtifactKind.MODEL, FrameworkTag.NODE): Layout(
            "node/model.js.j2", "models/{route}.js"
        ),
        (ArtifactKind.CONTROLLER, FrameworkTag.NODE): Layout(
            "node/controller.js.j2", "controllers/{route}controller.js"
        ),
        (ArtifactKind.ROUTE, FrameworkTag.NODE): Layout(
            "node/routes.js.j2", "routes/{route}.js"
        ),
        (ArtifactKind.DOC, FrameworkTag.NODE): Layout(None, "docs/swagger/{route}.json"),
        (ArtifactKind.TEST, FrameworkTag.NODE): Layout(
            "node/test.test.js.j2", "tests/api/{route}_{endpoint}_test.test.js"
        ),
        (ArtifactKind.MIGRATION, FrameworkTag.NODE): Layout(
            "node/migration.sql.j2", "migrations/{timestamp}_create_{table}_table.sql"
        ),
        (ArtifactKind.SEEDER, FrameworkTag.NODE): Layout(
            "node/seeder.js.j2", "seeders/{route}.seed.js"
        ),
    }
)

# Validation rules for the generated Laravel FormRequest
_CREATE_RULES: Mapping[str, str] = MappingProxyType(
    {
        "name": "required|string|max:255",
        "description": "nullable|string",
        "is_active": "boolean",
    }
)
_UPDATE_RULES: Mapping[str, str] = MappingProxyType(
    {
        "name": "sometimes|required|string|max:255",
        "description": "nullable|string",
        "is_active": "boolean",
    }
)

# Swagger response codes per endpoint
_RESPONSES: Mapping[Endpoint, tuple[int, ...]] = MappingProxyType(
    {
        Endpoint.INDEX: (200,),
        Endpoint.SHOW: (200, 404),
        Endpoint.STORE: (201, 422),
        Endpoint.UPDATE: (200, 404, 422),
        Endpoint.DESTROY: (200, 404),
    }
)

_STATUS_TEXT: Mapping[int, str] = MappingProxyType(
    {
        200: "Successful operation",
        201: "Resource created",
        404: "Resource not found",
        422: "Validation error",
    }
)


# ---------------------------------------------------------------------------
# TemplateCatalog
# ---------------------------------------------------------------------------


class TemplateCatalog:
    """Selects and renders the template for an artifact kind and stack.

    ``render`` returns a single :class:`GeneratedArtifact` for every kind
    except ``test``, which fans out into one artifact per endpoint.
    """

    def __init__(
        self,
        api: ApiConfig | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.api = api or ApiConfig()
        self.renderer = renderer or TemplateRenderer()

    # -- Public API --------------------------------------------------------

    def supports(self, kind: ArtifactKind, stack: FrameworkTag) -> bool:
        return (ArtifactKind(kind), stack) in LAYOUTS

    def layout(self, kind: ArtifactKind | str, stack: FrameworkTag | str) -> Layout:
        """Return the layout row for ``(kind, stack)``.

        Raises:
            UnsupportedStack: When the stack is unknown, has no template
                for *kind*, or the template file is missing from the
                renderer's directory.
        """
        stack_tag = _stack_tag(stack)
        kind = ArtifactKind(kind)
        try:
            row = LAYOUTS[(kind, stack_tag)]
        except KeyError:
            raise UnsupportedStack(stack_tag.value, kind.value) from None
        if row.template is not None and not self.renderer.has_template(row.template):
            raise UnsupportedStack(stack_tag.value, kind.value)
        return row

    def render(
        self,
        kind: ArtifactKind | str,
        feature: FeatureRequest,
        profile: ProjectProfile,
        *,
        generated_at: datetime | None = None,
    ) -> GeneratedArtifact | list[GeneratedArtifact]:
        """Render the artifact(s) of *kind* for *feature* on *profile*'s stack.

        Args:
            kind: Artifact kind to produce.
            feature: Validated feature request (name and endpoints).
            profile: Detected project profile; its ``framework`` selects the
                template family.
            generated_at: Timestamp for migrations and seeders.  Defaults to
                the current UTC time.

        Returns:
            A list of artifacts for ``test``, a single artifact otherwise.

        Raises:
            UnsupportedStack: For unknown stacks or ``(kind, stack)`` pairs
                without a template.
        """
        kind = ArtifactKind(kind)
        stack = profile.framework
        layout = self.layout(kind, stack)
        names = feature.names
        operations = feature.operations()
        context = self._base_context(names, operations, profile, generated_at)

        if kind is ArtifactKind.TEST:
            return [
                self._artifact(
                    kind,
                    stack,
                    layout,
                    names,
                    {**context, "op": _operation_context(op)},
                    operations=(op,),
                    endpoint=op.endpoint,
                )
                for op in operations
            ]

        if kind is ArtifactKind.DOC:
            content = json.dumps(self.swagger_document(names, operations), indent=2) + "\n"
            return GeneratedArtifact(
                kind=kind,
                stack=stack.value,
                path=_format_path(layout.path, names),
                content=content,
                operations=operations,
            )

        carries_operations = kind in (ArtifactKind.CONTROLLER, ArtifactKind.ROUTE)
        return self._artifact(
            kind,
            stack,
            layout,
            names,
            context,
            operations=operations if carries_operations else (),
            timestamp=context["timestamp"],
        )

    def swagger_document(
        self, names: FeatureNames, operations: tuple[Operation, ...]
    ) -> dict[str, Any]:
        """Build the OpenAPI 3.0 document for one feature.

        Operations sharing a path are grouped under one path item, so
        ``GET /post`` and ``POST /post`` sit side by side.
        """
        model = names.model_name
        paths: dict[str, dict[str, Any]] = {}
        for op in operations:
            paths.setdefault(op.path, {})[op.verb.lower()] = self._swagger_operation(
                names, op
            )

        return {
            "openapi": "3.0.0",
            "info": {
                "title": f"{model} API",
                "version": self.api.version,
                "description": f"API documentation for {model} endpoints",
            },
            "servers": [
                {
                    "url": f"{self.api.server_url.rstrip('/')}/api/{self.api.version}",
                    "description": "Development server",
                }
            ],
            "paths": paths,
            "components": {
                "schemas": {
                    model: {
                        "type": "object",
                        "properties": {
                            "id": {"type": "integer", "example": 1},
                            "name": {"type": "string", "example": f"Sample {model}"},
                            "description": {"type": "string", "nullable": True},
                            "is_active": {"type": "boolean", "example": True},
                            "created_at": {"type": "string", "format": "date-time"},
                            "updated_at": {"type": "string", "format": "date-time"},
                        },
                    },
                    f"{model}Input": {
                        "type": "object",
                        "required": ["name"],
                        "properties": {
                            "name": {"type": "string", "maxLength": 255},
                            "description": {"type": "string", "nullable": True},
                            "is_active": {"type": "boolean"},
                        },
                    },
                },
                "securitySchemes": {
                    "bearerAuth": {
                        "type": "http",
                        "scheme": "bearer",
                        "bearerFormat": "JWT",
                    }
                },
            },
            "security": [{"bearerAuth": []}],
        }

    # -- Internal helpers --------------------------------------------------

    def _base_context(
        self,
        names: FeatureNames,
        operations: tuple[Operation, ...],
        profile: ProjectProfile,
        generated_at: datetime | None,
    ) -> dict[str, Any]:
        when = generated_at or datetime.now(timezone.utc)
        endpoints = {op.endpoint for op in operations}
        return {
            "feature": names.feature,
            "model_name": names.model_name,
            "controller_name": names.controller_name,
            "route_name": names.route_name,
            "table_name": names.table_name,
            "variable": names.variable,
            "operations": [_operation_context(op) for op in operations],
            "needs_request": bool(endpoints & {Endpoint.STORE, Endpoint.UPDATE}),
            "create_rules": dict(_CREATE_RULES),
            "update_rules": dict(_UPDATE_RULES),
            "database": profile.database.value,
            "api_version": self.api.version,
            "generated_at": when.isoformat(),
            "timestamp": when.strftime(MIGRATION_TIMESTAMP_FORMAT),
        }

    def _artifact(
        self,
        kind: ArtifactKind,
        stack: FrameworkTag,
        layout: Layout,
        names: FeatureNames,
        context: dict[str, Any],
        *,
        operations: tuple[Operation, ...] = (),
        endpoint: Endpoint | None = None,
        timestamp: str = "",
    ) -> GeneratedArtifact:
        assert layout.template is not None
        content = self.renderer.render(layout.template, context)
        return GeneratedArtifact(
            kind=kind,
            stack=stack.value,
            path=_format_path(layout.path, names, endpoint=endpoint, timestamp=timestamp),
            content=content,
            operations=operations,
        )

    def _swagger_operation(self, names: FeatureNames, op: Operation) -> dict[str, Any]:
        model = names.model_name
        summaries = {
            Endpoint.INDEX: f"Get all {names.table_name}",
            Endpoint.SHOW: f"Get {model} by ID",
            Endpoint.STORE: f"Create new {model}",
            Endpoint.UPDATE: f"Update {model}",
            Endpoint.DESTROY: f"Delete {model}",
        }
        item_ref = {"$ref": f"#/components/schemas/{model}"}

        responses: dict[str, Any] = {}
        for status in _RESPONSES[op.endpoint]:
            response: dict[str, Any] = {"description": _STATUS_TEXT[status]}
            if status in (200, 201) and op.endpoint is not Endpoint.DESTROY:
                schema: dict[str, Any] = item_ref
                if op.endpoint is Endpoint.INDEX:
                    schema = {"type": "array", "items": item_ref}
                response["content"] = {"application/json": {"schema": schema}}
            responses[str(status)] = response

        operation: dict[str, Any] = {
            "tags": [model],
            "summary": summaries[op.endpoint],
            "operationId": f"{op.endpoint.value}{model}",
        }
        if "{id}" in op.path:
            operation["parameters"] = [
                {
                    "name": "id",
                    "in": "path",
                    "required": True,
                    "schema": {"type": "integer"},
                }
            ]
        if op.endpoint in (Endpoint.STORE, Endpoint.UPDATE):
            operation["requestBody"] = {
                "required": True,
                "content": {
                    "application/json": {
                        "schema": {"$ref": f"#/components/schemas/{model}Input"}
                    }
                },
            }
        operation["responses"] = responses
        return operation


# ---------------------------------------------------------------------------
# Module helpers
# ---------------------------------------------------------------------------


def _stack_tag(stack: FrameworkTag | str) -> FrameworkTag:
    try:
        tag = FrameworkTag(stack)
    except ValueError:
        raise UnsupportedStack(str(stack)) from None
    if tag not in SUPPORTED_STACKS:
        raise UnsupportedStack(tag.value)
    return tag


def _operation_context(op: Operation) -> dict[str, str]:
    member = "{id}" in op.path
    return {
        "endpoint": op.endpoint.value,
        "verb": op.verb,
        "verb_lower": op.verb.lower(),
        "path": op.path,
        "laravel_path": op.path.lstrip("/"),
        "express_path": "/:id" if member else "/",
    }


def _format_path(
    pattern: str,
    names: FeatureNames,
    *,
    endpoint: Endpoint | None = None,
    timestamp: str = "",
) -> str:
    endpoint_value = endpoint.value if endpoint else ""
    return pattern.format(
        model=names.model_name,
        controller=names.controller_name,
        route=names.route_name,
        table=names.table_name,
        endpoint=endpoint_value,
        endpoint_pascal=endpoint_value[:1].upper() + endpoint_value[1:],
        timestamp=timestamp,
    )
