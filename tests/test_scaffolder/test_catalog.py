"""Tests for the TemplateCatalog.

Covers:
- (kind, stack) layout lookup and unsupported pairs
- Per-kind rendering for Laravel and Node
- Test fan-out, one artifact per endpoint
- Swagger document structure and verb grouping
- Determinism for identical inputs
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from ferzcli.config import ApiConfig
from ferzcli.errors import UnsupportedStack
from ferzcli.profiler import DatabaseEngine, FrameworkTag, ProjectProfile
from ferzcli.scaffolder.catalog import LAYOUTS, SUPPORTED_STACKS, TemplateCatalog
from ferzcli.scaffolder.models import ArtifactKind, Endpoint, FeatureRequest
from ferzcli.scaffolder.templates import TemplateRenderer

pytestmark = pytest.mark.unit

WHEN = datetime(2024, 3, 5, 14, 30, 15, tzinfo=timezone.utc)


@pytest.fixture
def catalog() -> TemplateCatalog:
    return TemplateCatalog()


@pytest.fixture
def laravel() -> ProjectProfile:
    return ProjectProfile(framework=FrameworkTag.LARAVEL, database=DatabaseEngine.MYSQL)


@pytest.fixture
def node() -> ProjectProfile:
    return ProjectProfile(framework=FrameworkTag.NODE)


@pytest.fixture
def post() -> FeatureRequest:
    return FeatureRequest(feature_name="post")


# ---------------------------------------------------------------------------
# Layout lookup
# ---------------------------------------------------------------------------


class TestLayout:
    def test_every_layout_template_exists(self, catalog: TemplateCatalog):
        for layout in LAYOUTS.values():
            if layout.template is not None:
                assert catalog.renderer.has_template(layout.template), layout.template

    def test_supported_stacks(self):
        assert SUPPORTED_STACKS == (FrameworkTag.LARAVEL, FrameworkTag.NODE)

    def test_node_has_no_validation(self, catalog: TemplateCatalog):
        assert not catalog.supports(ArtifactKind.VALIDATION, FrameworkTag.NODE)
        with pytest.raises(UnsupportedStack, match="No validation template for stack 'node'"):
            catalog.layout(ArtifactKind.VALIDATION, FrameworkTag.NODE)

    def test_unknown_stack(self, catalog: TemplateCatalog):
        with pytest.raises(UnsupportedStack, match="Unsupported stack: 'unknown'"):
            catalog.layout(ArtifactKind.MODEL, FrameworkTag.UNKNOWN)

    def test_missing_template_file(self, tmp_path):
        bare = TemplateCatalog(renderer=TemplateRenderer(tmp_path))
        with pytest.raises(UnsupportedStack, match="No model template for stack 'laravel'"):
            bare.layout(ArtifactKind.MODEL, FrameworkTag.LARAVEL)
        assert bare.layout(ArtifactKind.DOC, FrameworkTag.LARAVEL).template is None

    def test_unrecognised_stack_string(self, catalog: TemplateCatalog):
        with pytest.raises(UnsupportedStack) as exc_info:
            catalog.layout("model", "django")
        assert exc_info.value.stack == "django"

    def test_render_unknown_stack(self, catalog: TemplateCatalog, post: FeatureRequest):
        with pytest.raises(UnsupportedStack):
            catalog.render(ArtifactKind.MODEL, post, ProjectProfile(framework=FrameworkTag.UNKNOWN))


# ---------------------------------------------------------------------------
# Laravel rendering
# ---------------------------------------------------------------------------


class TestLaravelRendering:
    def test_model(self, catalog, post, laravel):
        artifact = catalog.render(ArtifactKind.MODEL, post, laravel)
        assert artifact.path == "app/Models/Post.php"
        assert "class Post extends Model" in artifact.content
        assert "protected $table = 'posts';" in artifact.content
        assert artifact.operations == ()

    def test_controller_only_has_requested_methods(self, catalog, laravel):
        feature = FeatureRequest(feature_name="post", endpoints=["index", "show"])
        artifact = catalog.render(ArtifactKind.CONTROLLER, feature, laravel)

        assert artifact.path == "app/Http/Controllers/PostController.php"
        assert "public function index(Request $request)" in artifact.content
        assert "public function show(string $id)" in artifact.content
        assert "function store" not in artifact.content
        assert "PostRequest" not in artifact.content
        assert [op.endpoint for op in artifact.operations] == [Endpoint.INDEX, Endpoint.SHOW]

    def test_controller_imports_request_for_writes(self, catalog, post, laravel):
        content = catalog.render(ArtifactKind.CONTROLLER, post, laravel).content
        assert "use App\\Http\\Requests\\PostRequest;" in content
        assert "$post = Post::findOrFail($id);" in content

    def test_routes(self, catalog, post, laravel):
        artifact = catalog.render(ArtifactKind.ROUTE, post, laravel)
        assert artifact.path == "routes/api_post.php"
        assert "Route::get('post', [PostController::class, 'index'])->name('post.index');" in artifact.content
        assert "Route::put('post/{id}', [PostController::class, 'update'])" in artifact.content
        assert "Route::delete('post/{id}', [PostController::class, 'destroy'])" in artifact.content
        assert len(artifact.operations) == 5

    def test_validation(self, catalog, post, laravel):
        artifact = catalog.render(ArtifactKind.VALIDATION, post, laravel)
        assert artifact.path == "app/Http/Requests/PostRequest.php"
        assert "'name' => 'required|string|max:255'," in artifact.content
        assert "'name' => 'sometimes|required|string|max:255'," in artifact.content

    def test_tests_fan_out(self, catalog, laravel):
        feature = FeatureRequest(feature_name="post", endpoints=["index", "store"])
        artifacts = catalog.render(ArtifactKind.TEST, feature, laravel)

        assert [a.path for a in artifacts] == [
            "tests/Feature/PostIndexTest.php",
            "tests/Feature/PostStoreTest.php",
        ]
        assert "class PostIndexTest extends TestCase" in artifacts[0].content
        assert "$this->postJson('/api/post', $payload);" in artifacts[1].content
        assert [a.operations[0].endpoint for a in artifacts] == [Endpoint.INDEX, Endpoint.STORE]

    def test_migration_uses_timestamp(self, catalog, post, laravel):
        artifact = catalog.render(ArtifactKind.MIGRATION, post, laravel, generated_at=WHEN)
        assert artifact.path == "database/migrations/2024_03_05_143015_create_posts_table.php"
        assert "Schema::create('posts'" in artifact.content

    def test_seeder(self, catalog, post, laravel):
        artifact = catalog.render(ArtifactKind.SEEDER, post, laravel, generated_at=WHEN)
        assert artifact.path == "database/seeders/PostSeeder.php"
        assert "class PostSeeder extends Seeder" in artifact.content
        assert WHEN.isoformat() in artifact.content


# ---------------------------------------------------------------------------
# Node rendering
# ---------------------------------------------------------------------------


class TestNodeRendering:
    def test_model(self, catalog, post, node):
        artifact = catalog.render(ArtifactKind.MODEL, post, node)
        assert artifact.path == "models/post.js"
        assert "mongoose.model('Post', postSchema)" in artifact.content

    def test_controller(self, catalog, node):
        feature = FeatureRequest(feature_name="post", endpoints=["destroy"])
        artifact = catalog.render(ArtifactKind.CONTROLLER, feature, node)
        assert artifact.path == "controllers/postcontroller.js"
        assert "exports.destroy = async" in artifact.content
        assert "exports.index" not in artifact.content

    def test_routes(self, catalog, post, node):
        artifact = catalog.render(ArtifactKind.ROUTE, post, node)
        assert artifact.path == "routes/post.js"
        assert "router.get('/', auth, controller.index);" in artifact.content
        assert "router.get('/:id', auth, controller.show);" in artifact.content
        assert "router.post('/', auth, controller.store);" in artifact.content

    def test_tests_fan_out(self, catalog, post, node):
        artifacts = catalog.render(ArtifactKind.TEST, post, node)
        assert len(artifacts) == 5
        assert artifacts[0].path == "tests/api/post_index_test.test.js"
        assert "describe('GET /post'" in artifacts[0].content
        assert "describe('DELETE /post/{id}'" in artifacts[4].content

    @pytest.mark.parametrize(
        "engine, id_column",
        [
            (DatabaseEngine.POSTGRESQL, "id SERIAL PRIMARY KEY"),
            (DatabaseEngine.SQLITE, "id INTEGER PRIMARY KEY AUTOINCREMENT"),
            (DatabaseEngine.MYSQL, "id INT AUTO_INCREMENT PRIMARY KEY"),
        ],
    )
    def test_migration_per_engine(self, catalog, post, engine, id_column):
        profile = ProjectProfile(framework=FrameworkTag.NODE, database=engine)
        artifact = catalog.render(ArtifactKind.MIGRATION, post, profile, generated_at=WHEN)
        assert artifact.path == "migrations/2024_03_05_143015_create_posts_table.sql"
        assert id_column in artifact.content

    def test_validation_unsupported(self, catalog, post, node):
        with pytest.raises(UnsupportedStack):
            catalog.render(ArtifactKind.VALIDATION, post, node)


# ---------------------------------------------------------------------------
# Swagger
# ---------------------------------------------------------------------------


class TestSwagger:
    def test_document_is_json(self, catalog, post, node):
        artifact = catalog.render(ArtifactKind.DOC, post, node)
        assert artifact.path == "docs/swagger/post.json"
        doc = json.loads(artifact.content)
        assert doc["openapi"] == "3.0.0"
        assert doc["info"]["title"] == "Post API"
        assert doc["servers"][0]["url"] == "http://localhost:8000/api/v1"
        assert len(artifact.operations) == 5

    def test_verbs_grouped_by_path(self, catalog, post, laravel):
        doc = catalog.swagger_document(post.names, post.operations())
        assert set(doc["paths"]) == {"/post", "/post/{id}"}
        assert set(doc["paths"]["/post"]) == {"get", "post"}
        assert set(doc["paths"]["/post/{id}"]) == {"get", "put", "delete"}

    def test_operation_details(self, catalog, post):
        doc = catalog.swagger_document(post.names, post.operations())
        store = doc["paths"]["/post"]["post"]
        assert store["operationId"] == "storePost"
        assert store["requestBody"]["content"]["application/json"]["schema"] == {
            "$ref": "#/components/schemas/PostInput"
        }
        assert set(store["responses"]) == {"201", "422"}

        show = doc["paths"]["/post/{id}"]["get"]
        assert show["parameters"][0]["name"] == "id"
        assert "requestBody" not in show

        index = doc["paths"]["/post"]["get"]
        assert index["responses"]["200"]["content"]["application/json"]["schema"]["type"] == "array"

    def test_components(self, catalog, post):
        doc = catalog.swagger_document(post.names, post.operations())
        assert set(doc["components"]["schemas"]) == {"Post", "PostInput"}
        assert doc["security"] == [{"bearerAuth": []}]

    def test_api_config_feeds_document(self, post):
        catalog = TemplateCatalog(api=ApiConfig(version="v2", server_url="https://api.example.test/"))
        doc = catalog.swagger_document(post.names, post.operations())
        assert doc["info"]["version"] == "v2"
        assert doc["servers"][0]["url"] == "https://api.example.test/api/v2"

    def test_subset_of_endpoints(self, catalog):
        feature = FeatureRequest(feature_name="post", endpoints=["index", "store"])
        doc = catalog.swagger_document(feature.names, feature.operations())
        assert list(doc["paths"]) == ["/post"]


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------


class TestDeterminism:
    @pytest.mark.parametrize("kind", [k for k in ArtifactKind if (k, FrameworkTag.LARAVEL) in LAYOUTS])
    def test_same_input_same_output(self, catalog, post, laravel, kind):
        first = catalog.render(kind, post, laravel, generated_at=WHEN)
        second = catalog.render(kind, post, laravel, generated_at=WHEN)
        assert first == second
