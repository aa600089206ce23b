"""Tests for flowcms.services.normalizer."""

from flowcms.services.normalizer import (
    is_external_link,
    normalize_asset_path,
    normalize_image_path,
    normalize_route,
    page_id_from_path,
    route_for_page,
)


class TestPageIds:
    def test_strips_html_extension(self):
        assert page_id_from_path("index.html") == "index"

    def test_keeps_nested_folders(self):
        assert page_id_from_path("press-release/article.html") == "press-release/article"

    def test_windows_separators(self):
        assert page_id_from_path("blog\\post.htm") == "blog/post"

    def test_index_routes_to_root(self):
        assert route_for_page("index") == "/"

    def test_nested_page_route(self):
        assert route_for_page("press-release/article") == "/press-release/article"


class TestExternalLinks:
    def test_remote_and_special_schemes_are_external(self):
        for href in (
            "https://example.com",
            "http://example.com/a",
            "//cdn.example.com/x.js",
            "#top",
            "mailto:team@example.com",
            "tel:+15550100",
            "javascript:void(0)",
        ):
            assert is_external_link(href), href

    def test_relative_page_is_internal(self):
        assert not is_external_link("about.html")

    def test_case_insensitive(self):
        assert is_external_link("HTTPS://EXAMPLE.COM")


class TestNormalizeRoute:
    def test_simple_page(self):
        assert normalize_route("about.html") == "/about"

    def test_parent_index(self):
        assert normalize_route("../index.html") == "/"

    def test_nested_page(self):
        assert normalize_route("press-release/article.html") == "/press-release/article"

    def test_folder_index_keeps_fragment(self):
        assert normalize_route("blog/index.html#latest") == "/blog#latest"

    def test_keeps_query(self):
        assert normalize_route("search.html?q=cms") == "/search?q=cms"

    def test_query_only_link_unchanged(self):
        assert normalize_route("?page=2") == "?page=2"

    def test_fragment_only_link_unchanged(self):
        assert normalize_route("#pricing") == "#pricing"

    def test_cannot_climb_above_root(self):
        assert normalize_route("../../../team.html") == "/team"

    def test_root(self):
        assert normalize_route("/") == "/"

    def test_idempotent(self):
        once = normalize_route("blog/index.html#latest")
        assert normalize_route(once) == once


class TestNormalizeAssetPath:
    def test_relative_asset(self):
        assert normalize_asset_path("images/logo.svg") == "/assets/images/logo.svg"

    def test_parent_relative_asset(self):
        assert normalize_asset_path("../images/logo.svg") == "/assets/images/logo.svg"

    def test_root_relative_asset(self):
        assert normalize_asset_path("/images/logo.svg") == "/assets/images/logo.svg"

    def test_collapses_parent_segments_under_prefix(self):
        assert normalize_asset_path("/assets/../images/logo.svg") == "/assets/images/logo.svg"

    def test_already_normalized_is_unchanged(self):
        assert normalize_asset_path("/assets/images/logo.svg") == "/assets/images/logo.svg"

    def test_remote_unchanged(self):
        src = "https://cdn.example.com/a.png"
        assert normalize_asset_path(src) == src

    def test_data_uri_unchanged(self):
        src = "data:image/png;base64,iVBORw0KGgo="
        assert normalize_asset_path(src) == src

    def test_custom_prefix(self):
        assert normalize_asset_path("images/logo.svg", prefix="/static/") == "/static/images/logo.svg"

    def test_empty(self):
        assert normalize_asset_path("") == ""


class TestNormalizeImagePath:
    def test_images_folder(self):
        assert normalize_image_path("images/team.jpg") == "/images/team.jpg"

    def test_parent_images_folder(self):
        assert normalize_image_path("../images/team.jpg") == "/images/team.jpg"

    def test_other_folder_maps_to_root(self):
        assert normalize_image_path("media/team.jpg") == "/team.jpg"

    def test_root_relative_kept(self):
        assert normalize_image_path("/uploads/team.jpg") == "/uploads/team.jpg"

    def test_remote_kept(self):
        src = "https://cdn.example.com/team.jpg"
        assert normalize_image_path(src) == src

    def test_empty(self):
        assert normalize_image_path("") == ""
