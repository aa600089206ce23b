"""Tests for flowcms.services.manifest."""

import json

import pytest

from flowcms.errors import ManifestNotLoaded
from flowcms.models.manifest import FieldMapping, FieldType, ManifestOverrides
from flowcms.services.detector import detect
from flowcms.services.manifest import ManifestStore, build_manifest, separate_namespaces
from flowcms.services.parser import parse

_INDEX = """
<html><head><title>Home</title></head><body>
  <h1 class="hero-title">Welcome home</h1>
  <div class="team-card"><h3>Ada</h3></div>
  <div class="team-card"><h3>Grace</h3></div>
</body></html>
"""

_ARTICLE = """
<html><head><title>Press</title></head><body>
  <h1 class="article-title">We launched</h1>
  <p class="article-body">Today we are happy to announce our launch.</p>
</body></html>
"""


def _detections():
    pages = {"index": _INDEX, "press-release/article": _ARTICLE}
    return {page_id: detect(parse(html, page_id).tree, page_id) for page_id, html in pages.items()}


class TestBuildManifest:
    def test_routes(self):
        manifest = build_manifest(_detections())
        assert manifest.pages["index"].meta.route == "/"
        assert manifest.pages["press-release/article"].meta.route == "/press-release/article"

    def test_pages_sorted_by_id(self):
        detections = _detections()
        reversed_input = dict(reversed(list(detections.items())))
        assert list(build_manifest(reversed_input).pages) == ["index", "press-release/article"]

    def test_titles(self):
        manifest = build_manifest(_detections(), titles={"index": "Home"})
        assert manifest.pages["index"].meta.title == "Home"
        assert manifest.pages["press-release/article"].meta.title is None

    def test_fields_and_collections(self):
        index = build_manifest(_detections()).pages["index"]
        assert list(index.fields) == ["hero_title"]
        assert list(index.collections) == ["team_cards"]

    def test_default_version(self):
        assert build_manifest({}).version == "1.0"

    def test_explicit_version(self):
        assert build_manifest({}, version="2.0").version == "2.0"

    def test_exclude_pages(self):
        overrides = ManifestOverrides(exclude_pages=["index"])
        assert list(build_manifest(_detections(), overrides).pages) == ["press-release/article"]

    def test_custom_fields_replace_detected(self):
        custom = FieldMapping(selector="h1", type=FieldType.RICH, required=True)
        overrides = ManifestOverrides(
            custom_fields={"index": {"hero_title": custom, "tagline": FieldMapping(selector="h2", type=FieldType.PLAIN)}}
        )
        fields = build_manifest(_detections(), overrides).pages["index"].fields
        assert fields["hero_title"] == custom
        assert "tagline" in fields


class TestManifestStore:
    def test_empty_store_raises(self):
        store = ManifestStore()
        assert store.loaded is False
        with pytest.raises(ManifestNotLoaded):
            store.manifest

    def test_page_before_build_raises(self):
        with pytest.raises(ManifestNotLoaded):
            ManifestStore().page("index")

    def test_build_then_read(self):
        store = ManifestStore()
        manifest = store.build(_detections())
        assert store.loaded is True
        assert store.manifest is manifest
        assert store.page("index").meta.route == "/"

    def test_unknown_page(self):
        store = ManifestStore()
        store.build(_detections())
        with pytest.raises(KeyError):
            store.page("missing")

    def test_dump_and_load_round_trip(self):
        store = ManifestStore()
        manifest = store.build(_detections())
        document = store.dump()

        other = ManifestStore()
        assert other.load(document) == manifest
        assert other.dump() == document

    def test_dump_layout(self):
        store = ManifestStore()
        store.build(_detections(), titles={"index": "Home"})
        document = json.loads(store.dump())
        assert document["version"] == "1.0"
        index = document["pages"]["index"]
        assert index["meta"] == {"route": "/", "title": "Home"}
        assert index["fields"]["hero_title"] == {"selector": ".hero-title", "type": "plain"}
        assert index["collections"]["team_cards"]["selector"] == ".team-card"

    def test_build_replaces_previous(self):
        store = ManifestStore()
        store.build(_detections())
        store.build({})
        assert store.manifest.pages == {}


class TestSeparateNamespaces:
    def test_no_clash_leaves_detections_alone(self):
        detections = _detections()
        separated, issues = separate_namespaces(detections)
        assert separated == detections
        assert issues == []

    def test_collection_named_like_page_is_renamed(self):
        detections = _detections()
        detections["team_cards"] = detect(parse(_ARTICLE, "team_cards").tree, "team_cards")
        separated, issues = separate_namespaces(detections)

        assert list(separated["index"].collections) == ["team_cards_items"]
        assert separated["index"].collections["team_cards_items"] == detections["index"].collections["team_cards"]
        assert [(issue.page_id, issue.kind) for issue in issues] == [("index", "SchemaNameCollision")]

    def test_renamed_name_avoids_existing_names(self):
        detections = _detections()
        detections["team_cards"] = detect(parse(_ARTICLE, "team_cards").tree, "team_cards")
        detections["team_cards_items"] = detect(parse(_ARTICLE, "team_cards_items").tree, "team_cards_items")
        separated, _ = separate_namespaces(detections)
        assert list(separated["index"].collections) == ["team_cards_items_2"]
