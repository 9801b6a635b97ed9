"""Data models for scaffolding: feature requests, artifacts and manifests.

Every model here is immutable once built.  The naming derived from a
feature string lives in :class:`FeatureNames` and is computed exactly once
per request, so a model named ``Post`` and a controller named
``PostController`` can never disagree.
"""

from __future__ import annotations

import re
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ferzcli.errors import UnsupportedEndpoint
from ferzcli.profiler import ProjectProfile


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ArtifactKind(str, Enum):
    MODEL = "model"
    CONTROLLER = "controller"
    ROUTE = "route"
    DOC = "doc"
    TEST = "test"
    VALIDATION = "validation"
    MIGRATION = "migration"
    SEEDER = "seeder"
    TEST_CONFIG = "test_config"


class Endpoint(str, Enum):
    INDEX = "index"
    SHOW = "show"
    STORE = "store"
    UPDATE = "update"
    DESTROY = "destroy"


# ---------------------------------------------------------------------------
# Endpoint table
# ---------------------------------------------------------------------------


class EndpointSpec(NamedTuple):
    verb: str
    member: bool  # True when the path carries an ``{id}`` segment


ENDPOINT_TABLE: Mapping[Endpoint, EndpointSpec] = MappingProxyType(
    {
        Endpoint.INDEX: EndpointSpec("GET", False),
        Endpoint.SHOW: EndpointSpec("GET", True),
        Endpoint.STORE: EndpointSpec("POST", False),
        Endpoint.UPDATE: EndpointSpec("PUT", True),
        Endpoint.DESTROY: EndpointSpec("DELETE", True),
    }
)

ALL_ENDPOINTS: tuple[Endpoint, ...] = tuple(ENDPOINT_TABLE)


def parse_endpoints(tokens: Iterable[str | Endpoint] | None) -> tuple[Endpoint, ...]:
    """Turn user-supplied endpoint tokens into an ordered endpoint tuple.

    An empty or missing list means all five endpoints.  Duplicates collapse
    onto their first occurrence.

    Raises:
        UnsupportedEndpoint: For any token outside the endpoint table.
    """
    if not tokens:
        return ALL_ENDPOINTS
    result: list[Endpoint] = []
    for token in tokens:
        if isinstance(token, Endpoint):
            endpoint = token
        else:
            cleaned = str(token).strip().lower()
            try:
                endpoint = Endpoint(cleaned)
            except ValueError:
                raise UnsupportedEndpoint(str(token)) from None
        if endpoint not in result:
            result.append(endpoint)
    return tuple(result)


class Operation(BaseModel):
    """One endpoint mapped to its HTTP verb and path."""

    model_config = ConfigDict(frozen=True)

    endpoint: Endpoint
    verb: str
    path: str

    @classmethod
    def for_endpoint(cls, endpoint: Endpoint, route_name: str) -> "Operation":
        route = ENDPOINT_TABLE[endpoint]
        path = f"/{route_name}/{{id}}" if route.member else f"/{route_name}"
        return cls(endpoint=endpoint, verb=route.verb, path=path)


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def to_pascal(name: str) -> str:
    """Upper-case the first letter of every word and join them.

    ``post`` -> ``Post``, ``blog post`` -> ``BlogPost``, ``blogPost`` ->
    ``BlogPost``.  Letters after the first of each word are left alone.
    """
    parts = re.split(r"[-_\s]+", name.strip())
    return "".join(part[:1].upper() + part[1:] for part in parts if part)


def pluralize(word: str) -> str:
    """Naive English plural used for table names."""
    if not word:
        return word
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    return word + "s"


class FeatureNames(BaseModel):
    """Every identifier derived from one feature string."""

    model_config = ConfigDict(frozen=True)

    feature: str
    model_name: str
    controller_name: str
    route_name: str
    table_name: str

    @property
    def variable(self) -> str:
        return self.route_name

    @classmethod
    def from_feature(cls, feature: str) -> "FeatureNames":
        cleaned = re.sub(r"[^A-Za-z0-9_\-\s]", "", feature)
        dropped = sorted({ch for ch in feature if ch.isalpha() and ch not in cleaned})
        if dropped:
            raise ValueError(
                f"Feature name '{feature}' contains letters outside A-Z: {''.join(dropped)}"
            )
        model_name = to_pascal(cleaned)
        if not model_name:
            raise ValueError(f"Feature name '{feature}' yields no usable identifier")
        if not ("A" <= model_name[0] <= "Z"):
            raise ValueError(
                f"Feature name '{feature}' must start with a letter, got '{model_name}'"
            )
        route_name = model_name.lower()
        return cls(
            feature=feature.strip(),
            model_name=model_name,
            controller_name=f"{model_name}Controller",
            route_name=route_name,
            table_name=pluralize(route_name),
        )


# ---------------------------------------------------------------------------
# Requests, artifacts, manifests
# ---------------------------------------------------------------------------


class FeatureRequest(BaseModel):
    """A feature to scaffold, with the endpoints it should expose."""

    model_config = ConfigDict(frozen=True)

    feature_name: str = Field(..., min_length=1)
    endpoints: tuple[Endpoint, ...] = Field(default=ALL_ENDPOINTS)

    @field_validator("feature_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("feature_name must not be blank")
        FeatureNames.from_feature(value)
        return value

    @field_validator("endpoints", mode="before")
    @classmethod
    def _parse_endpoints(cls, value: object) -> tuple[Endpoint, ...]:
        return parse_endpoints(value)  # type: ignore[arg-type]

    @property
    def names(self) -> FeatureNames:
        return FeatureNames.from_feature(self.feature_name)

    def operations(self) -> tuple[Operation, ...]:
        route_name = self.names.route_name
        return tuple(Operation.for_endpoint(e, route_name) for e in self.endpoints)


class GeneratedArtifact(BaseModel):
    """One rendered file, ready to be written below the project root."""

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    stack: str
    path: str = Field(..., description="Path relative to the project root")
    content: str
    operations: tuple[Operation, ...] = Field(default=())


class ManifestEntry(BaseModel):
    """A written or explicitly skipped artifact in a scaffold run."""

    kind: ArtifactKind
    stack: str
    path: str | None = None
    operations: tuple[Operation, ...] = Field(default=())
    skipped: bool = False
    reason: str | None = None


class Manifest(BaseModel):
    """Ordered record of one scaffold run."""

    project_path: str
    feature: str
    profile: ProjectProfile
    entries: list[ManifestEntry] = Field(default_factory=list)

    def of_kind(self, kind: ArtifactKind) -> list[ManifestEntry]:
        return [e for e in self.entries if e.kind == kind]

    @property
    def written(self) -> list[ManifestEntry]:
        return [e for e in self.entries if not e.skipped]

    @property
    def skipped(self) -> list[ManifestEntry]:
        return [e for e in self.entries if e.skipped]
