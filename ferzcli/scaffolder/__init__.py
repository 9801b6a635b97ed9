"""ferzcli scaffolder -- renders stack-specific API boilerplate.

Quick usage::

    from ferzcli.scaffolder import ScaffoldOrchestrator

    manifest = await ScaffoldOrchestrator().scaffold(
        "/path/to/project", "post", ["index", "store"]
    )
    for entry in manifest.written:
        print(entry.kind, entry.path)
"""

from ferzcli.scaffolder.catalog import TemplateCatalog
from ferzcli.scaffolder.models import (
    ArtifactKind,
    Endpoint,
    FeatureNames,
    FeatureRequest,
    GeneratedArtifact,
    Manifest,
    ManifestEntry,
    Operation,
)
from ferzcli.scaffolder.orchestrator import ScaffoldOrchestrator
from ferzcli.scaffolder.templates import TemplateRenderer

__all__ = [
    "ArtifactKind",
    "Endpoint",
    "FeatureNames",
    "FeatureRequest",
    "GeneratedArtifact",
    "Manifest",
    "ManifestEntry",
    "Operation",
    "ScaffoldOrchestrator",
    "TemplateCatalog",
    "TemplateRenderer",
]
