"""Tests for the ScaffoldOrchestrator.

Covers:
- Node run with a subset of endpoints (validation skipped)
- Laravel run with every endpoint
- Re-running overwrites with identical content
- Write failures abort the run as FileSystemError
- Endpoint errors raised before anything is written
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from ferzcli.errors import FileSystemError, UnsupportedEndpoint, UnsupportedStack
from ferzcli.profiler import FrameworkTag, ProjectProfile
from ferzcli.scaffolder.models import ArtifactKind
from ferzcli.scaffolder.orchestrator import SCAFFOLD_ORDER, ScaffoldOrchestrator

pytestmark = pytest.mark.unit


def _snapshot(root: Path) -> dict[str, str]:
    return {
        str(p.relative_to(root)): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------


class TestNodeScaffold:
    @pytest.mark.asyncio
    async def test_subset_of_endpoints(self, node_project: Path, fixed_now: datetime):
        manifest = await ScaffoldOrchestrator().scaffold(
            node_project, "Post", ["index", "store"], generated_at=fixed_now
        )

        assert manifest.profile.framework == FrameworkTag.NODE
        assert manifest.feature == "Post"

        controller = manifest.of_kind(ArtifactKind.CONTROLLER)[0]
        assert [(op.verb, op.path) for op in controller.operations] == [
            ("GET", "/post"),
            ("POST", "/post"),
        ]

        docs = manifest.of_kind(ArtifactKind.DOC)
        assert len(docs) == 1
        assert len(docs[0].operations) == 2

        tests = manifest.of_kind(ArtifactKind.TEST)
        assert [t.path for t in tests] == [
            "tests/api/post_index_test.test.js",
            "tests/api/post_store_test.test.js",
        ]

        validation = manifest.of_kind(ArtifactKind.VALIDATION)
        assert len(validation) == 1
        assert validation[0].skipped is True
        assert validation[0].path is None
        assert validation[0].reason == "not applicable for node stack"

    @pytest.mark.asyncio
    async def test_files_written(self, node_project: Path):
        manifest = await ScaffoldOrchestrator().scaffold(node_project, "post", ["index", "store"])

        for entry in manifest.written:
            assert (node_project / entry.path).is_file(), entry.path

        doc = json.loads((node_project / "docs/swagger/post.json").read_text())
        assert set(doc["paths"]["/post"]) == {"get", "post"}

        routes = (node_project / "routes/post.js").read_text()
        assert "controller.index" in routes
        assert "controller.show" not in routes

    @pytest.mark.asyncio
    async def test_entries_follow_scaffold_order(self, node_project: Path):
        manifest = await ScaffoldOrchestrator().scaffold(node_project, "post")

        kinds = []
        for entry in manifest.entries:
            if not kinds or kinds[-1] != entry.kind:
                kinds.append(entry.kind)
        assert tuple(kinds) == SCAFFOLD_ORDER

    @pytest.mark.asyncio
    async def test_rerun_is_identical(self, node_project: Path, fixed_now: datetime):
        orchestrator = ScaffoldOrchestrator()
        first = await orchestrator.scaffold(node_project, "post", generated_at=fixed_now)
        before = _snapshot(node_project)

        second = await orchestrator.scaffold(node_project, "post", generated_at=fixed_now)

        assert _snapshot(node_project) == before
        assert first.entries == second.entries


# ---------------------------------------------------------------------------
# Laravel
# ---------------------------------------------------------------------------


class TestLaravelScaffold:
    @pytest.mark.asyncio
    async def test_full_run(self, laravel_project: Path):
        manifest = await ScaffoldOrchestrator().scaffold(laravel_project, "blog post")

        assert manifest.skipped == []
        paths = [e.path for e in manifest.written]
        assert paths[:4] == [
            "app/Models/BlogPost.php",
            "app/Http/Controllers/BlogPostController.php",
            "routes/api_blogpost.php",
            "docs/swagger/blogpost.json",
        ]
        assert len(manifest.of_kind(ArtifactKind.TEST)) == 5
        assert paths[-1] == "app/Http/Requests/BlogPostRequest.php"
        assert (laravel_project / "app/Http/Requests/BlogPostRequest.php").is_file()

    @pytest.mark.asyncio
    async def test_explicit_profile_skips_detection(self, tmp_project_dir: Path):
        profile = ProjectProfile(framework=FrameworkTag.LARAVEL)
        with patch("ferzcli.scaffolder.orchestrator.detect") as mock_detect:
            manifest = await ScaffoldOrchestrator().scaffold(
                tmp_project_dir, "post", ["show"], profile=profile
            )

        mock_detect.assert_not_called()
        assert manifest.of_kind(ArtifactKind.MODEL)[0].path == "app/Models/Post.php"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestScaffoldFailures:
    @pytest.mark.asyncio
    async def test_write_failure_aborts(self, node_project: Path):
        with patch(
            "ferzcli.scaffolder.orchestrator.write_file",
            side_effect=PermissionError("read-only file system"),
        ) as mock_write:
            with pytest.raises(FileSystemError) as exc_info:
                await ScaffoldOrchestrator().scaffold(node_project, "post")

        assert exc_info.value.kind == "model"
        assert isinstance(exc_info.value.cause, PermissionError)
        assert mock_write.call_count == 1

    @pytest.mark.asyncio
    async def test_failure_midway_keeps_earlier_files(self, node_project: Path):
        from ferzcli.utils import write_file as real_write

        def flaky(path: Path, content: str) -> None:
            if "routes" in path.parts:
                raise OSError("disk full")
            real_write(path, content)

        with patch("ferzcli.scaffolder.orchestrator.write_file", side_effect=flaky):
            with pytest.raises(FileSystemError) as exc_info:
                await ScaffoldOrchestrator().scaffold(node_project, "post")

        assert exc_info.value.kind == "route"
        assert (node_project / "models/post.js").is_file()
        assert (node_project / "controllers/postcontroller.js").is_file()
        assert not (node_project / "docs").exists()

    @pytest.mark.asyncio
    async def test_unknown_endpoint_writes_nothing(self, node_project: Path):
        with pytest.raises(UnsupportedEndpoint):
            await ScaffoldOrchestrator().scaffold(node_project, "post", ["index", "patch"])
        assert not (node_project / "models").exists()

    @pytest.mark.asyncio
    async def test_unknown_stack(self, tmp_project_dir: Path):
        with pytest.raises(UnsupportedStack):
            await ScaffoldOrchestrator().scaffold(
                tmp_project_dir, "post", profile=ProjectProfile(framework=FrameworkTag.UNKNOWN)
            )
