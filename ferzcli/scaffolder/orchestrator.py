"""Scaffold orchestrator.

Profiles a project, renders every artifact kind of a feature through the
:class:`~ferzcli.scaffolder.catalog.TemplateCatalog` and writes the results
beneath the project root, returning a :class:`Manifest` of what happened.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable

from ferzcli.config import ApiConfig, ProfileDefaults
from ferzcli.errors import FileSystemError
from ferzcli.profiler import FrameworkTag, ProjectProfile, detect
from ferzcli.utils import write_file

from .catalog import TemplateCatalog
from .models import (
    ArtifactKind,
    Endpoint,
    FeatureRequest,
    GeneratedArtifact,
    Manifest,
    ManifestEntry,
)

logger = logging.getLogger(__name__)


# Kinds produced by one scaffold run, in write order
SCAFFOLD_ORDER: tuple[ArtifactKind, ...] = (
    ArtifactKind.MODEL,
    ArtifactKind.CONTROLLER,
    ArtifactKind.ROUTE,
    ArtifactKind.DOC,
    ArtifactKind.TEST,
    ArtifactKind.VALIDATION,
)


class ScaffoldOrchestrator:
    """Generates the full API surface for one feature.

    Writes happen sequentially in :data:`SCAFFOLD_ORDER`.  When a write
    fails the run stops: files already written stay on disk and the error
    is raised as :class:`FileSystemError`.
    """

    def __init__(
        self,
        catalog: TemplateCatalog | None = None,
        defaults: ProfileDefaults | None = None,
        api: ApiConfig | None = None,
    ) -> None:
        self.catalog = catalog or TemplateCatalog(api=api)
        self.defaults = defaults or ProfileDefaults()

    # -- Public API --------------------------------------------------------

    async def scaffold(
        self,
        project_path: str | Path,
        feature_name: str,
        endpoints: Iterable[str | Endpoint] | None = None,
        *,
        profile: ProjectProfile | None = None,
        generated_at: datetime | None = None,
    ) -> Manifest:
        """Scaffold *feature_name* into the project at *project_path*.

        Args:
            project_path: Project root; artifacts are written beneath it.
            feature_name: Feature string such as ``"post"`` or ``"blog post"``.
            endpoints: Endpoint tokens; empty or ``None`` means all five.
            profile: Pre-computed profile.  Detected when omitted.
            generated_at: Timestamp forwarded to the catalog.

        Returns:
            The manifest listing every written or skipped artifact in order.

        Raises:
            UnsupportedEndpoint: For an unknown endpoint token.
            UnsupportedStack: When the profile names no supported stack.
            FileSystemError: When writing an artifact fails.
        """
        root = Path(project_path)
        feature = FeatureRequest(feature_name=feature_name, endpoints=tuple(endpoints or ()))
        if profile is None:
            profile = await asyncio.to_thread(detect, root, self.defaults)

        manifest = Manifest(
            project_path=str(root),
            feature=feature.feature_name,
            profile=profile,
        )
        logger.info(
            "Scaffolding %s (%s) for %s stack",
            feature.feature_name,
            ", ".join(e.value for e in feature.endpoints),
            profile.framework.value,
        )

        for kind in SCAFFOLD_ORDER:
            if not self.catalog.supports(kind, profile.framework) and self._is_skippable(
                kind, profile
            ):
                manifest.entries.append(
                    ManifestEntry(
                        kind=kind,
                        stack=profile.framework.value,
                        skipped=True,
                        reason=f"not applicable for {profile.framework.value} stack",
                    )
                )
                logger.info("Skipped %s: not applicable for %s", kind.value, profile.framework.value)
                continue

            rendered = self.catalog.render(
                kind, feature, profile, generated_at=generated_at
            )
            artifacts = rendered if isinstance(rendered, list) else [rendered]
            for artifact in artifacts:
                await self._write(root, artifact)
                manifest.entries.append(
                    ManifestEntry(
                        kind=artifact.kind,
                        stack=artifact.stack,
                        path=artifact.path,
                        operations=artifact.operations,
                    )
                )

        return manifest

    # -- Internal helpers --------------------------------------------------

    @staticmethod
    def _is_skippable(kind: ArtifactKind, profile: ProjectProfile) -> bool:
        return kind is ArtifactKind.VALIDATION and profile.framework is FrameworkTag.NODE

    @staticmethod
    async def _write(root: Path, artifact: GeneratedArtifact) -> None:
        target = root / artifact.path
        try:
            await asyncio.to_thread(write_file, target, artifact.content)
        except OSError as exc:
            logger.error("Writing %s to %s failed: %s", artifact.kind.value, target, exc)
            raise FileSystemError(artifact.kind.value, target, exc) from exc
        logger.debug("Wrote %s", target)
