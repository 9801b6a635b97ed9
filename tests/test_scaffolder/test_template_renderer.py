"""Tests for the Jinja2 TemplateRenderer and its filters."""

from __future__ import annotations

from pathlib import Path

import pytest
from jinja2 import UndefinedError

from ferzcli.scaffolder.templates import (
    TemplateRenderer,
    _camel_case_filter,
    _pascal_case_filter,
    _snake_case_filter,
)

pytestmark = pytest.mark.unit


class TestFilters:
    @pytest.mark.parametrize(
        "value, expected",
        [("blog-post", "BlogPost"), ("blog_post", "BlogPost"), ("store", "Store")],
    )
    def test_pascal_case(self, value, expected):
        assert _pascal_case_filter(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [("BlogPost", "blog_post"), ("blog-post", "blog_post"), ("posts", "posts")],
    )
    def test_snake_case(self, value, expected):
        assert _snake_case_filter(value) == expected

    def test_camel_case(self):
        assert _camel_case_filter("blog_post") == "blogPost"
        assert _camel_case_filter("") == ""


class TestTemplateRenderer:
    def test_bundled_templates_present(self):
        renderer = TemplateRenderer()
        assert renderer.has_template("laravel/model.php.j2")
        assert renderer.has_template("node/routes.js.j2")
        assert not renderer.has_template("node/request.php.j2")

    def test_undefined_variable_raises(self, tmp_path: Path):
        (tmp_path / "broken.txt.j2").write_text("{{ missing }}")
        with pytest.raises(UndefinedError):
            TemplateRenderer(tmp_path).render("broken.txt.j2", {})

    def test_render_from_custom_dir(self, tmp_path: Path):
        (tmp_path / "hello.txt.j2").write_text("Hello {{ name | pascal_case }}\n")
        renderer = TemplateRenderer(tmp_path)
        assert renderer.render("hello.txt.j2", {"name": "blog-post"}) == "Hello BlogPost\n"

    def test_autoescape_html_only_when_enabled(self, tmp_path: Path):
        (tmp_path / "page.html.j2").write_text("{{ value }}")
        assert TemplateRenderer(tmp_path).render("page.html.j2", {"value": "<b>"}) == "<b>"
        escaped = TemplateRenderer(tmp_path, autoescape=True).render("page.html.j2", {"value": "<b>"})
        assert escaped == "&lt;b&gt;"
