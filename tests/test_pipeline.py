"""Tests for flowcms.services.pipeline.convert_site."""

from unittest.mock import patch

from flowcms.models.manifest import ManifestOverrides
from flowcms.services import pipeline
from flowcms.services.pipeline import convert_site

# ---------------------------------------------------------------------------
# Shared HTML fixtures
# ---------------------------------------------------------------------------

_FONTS = "@font-face { font-family: Inter; src: url(fonts/inter.woff2); }"

_INDEX = f"""
<!DOCTYPE html>
<html>
<head>
  <title>Studio</title>
  <link rel="stylesheet" href="css/site.webflow.css">
</head>
<body>
  <div class="global-embed w-embed"><style>{_FONTS}</style></div>
  <div class="hero-section">
    <h1 class="hero-title">Welcome to our studio</h1>
    <a href="about.html" class="button">Meet the team</a>
  </div>
  <div class="story-card"><h3>First story</h3><p>The first story description.</p></div>
  <div class="story-card"><h3>Second story</h3><p>The second story description.</p></div>
</body>
</html>
"""

_ABOUT = f"""
<!DOCTYPE html>
<html>
<head>
  <title>About</title>
  <link rel="stylesheet" href="css/site.webflow.css">
</head>
<body>
  <div class="global-embed w-embed"><style>{_FONTS}</style></div>
  <h1 class="about-title">About our team</h1>
  <p class="about-paragraph">We are a small team of designers and developers.</p>
  <a href="index.html">Back home</a>
</body>
</html>
"""

_PAGES = {"index": _INDEX, "about": _ABOUT}


class TestConvertSite:
    def test_every_artifact_covers_every_page(self):
        result = convert_site(_PAGES)
        assert list(result.manifest.pages) == ["about", "index"]
        assert set(result.templates) == {"about", "index"}
        assert set(result.schemas) == {"about", "index", "story_cards"}
        assert set(result.seed) == {"about", "index", "story_cards"}
        assert result.issues == []
        assert result.failed_pages == []

    def test_names_agree_across_artifacts(self):
        result = convert_site(_PAGES)
        for page_id, schema in result.manifest.pages.items():
            assert set(result.schemas[page_id].attributes) == set(schema.fields)
            assert set(result.seed[page_id]) == set(schema.fields)
            for name in schema.fields:
                assert "content." + name in result.templates[page_id].markup

    def test_titles_and_routes(self):
        meta = convert_site(_PAGES).manifest.pages["about"].meta
        assert meta.route == "/about"
        assert meta.title == "About"

    def test_seed_values(self):
        seed = convert_site(_PAGES).seed
        assert seed["index"]["hero_title"] == "Welcome to our studio"
        assert [item["title"] for item in seed["story_cards"]] == ["First story", "Second story"]

    def test_embedded_styles_deduplicated(self):
        result = convert_site(_PAGES)
        assert result.styles == _FONTS

    def test_css_files_listed_once(self):
        assert convert_site(_PAGES).css_files == ["css/site.webflow.css"]

    def test_links_rewritten(self):
        templates = convert_site(_PAGES).templates
        assert 'href="/about"' in templates["index"].markup
        assert 'href="/"' in templates["about"].markup

    def test_asset_prefix_passed_through(self):
        html = '<html><body><nav><img src="images/logo.svg" class="logo"></nav></body></html>'
        result = convert_site({"index": html}, asset_prefix="/static")
        assert 'src="/static/images/logo.svg"' in result.templates["index"].markup

    def test_deterministic(self):
        first = convert_site(_PAGES)
        second = convert_site(dict(reversed(list(_PAGES.items()))))
        assert first.model_dump() == second.model_dump()


class TestOverrides:
    def test_excluded_page_left_out(self):
        result = convert_site(_PAGES, overrides=ManifestOverrides(exclude_pages=["about"]))
        assert list(result.manifest.pages) == ["index"]
        assert "about" not in result.templates
        assert "about" not in result.seed

    def test_ignored_selectors(self):
        overrides = ManifestOverrides(ignore_selectors=[".hero-section"])
        fields = convert_site(_PAGES, overrides=overrides).manifest.pages["index"].fields
        assert "hero_title" not in fields


class TestFailureIsolation:
    def test_detection_failure_skips_page(self):
        real_detect = pipeline.detect

        def flaky(tree, page_id, **kwargs):
            if page_id == "about":
                raise RuntimeError("boom")
            return real_detect(tree, page_id, **kwargs)

        with patch("flowcms.services.pipeline.detect", side_effect=flaky):
            result = convert_site(_PAGES)

        assert result.failed_pages == ["about"]
        assert list(result.manifest.pages) == ["index"]
        assert set(result.templates) == {"index"}
        assert "about" not in result.seed
        assert "boom" in result.issues[0].detail

    def test_generation_failure_removes_page_everywhere(self):
        real_rewrite = pipeline.rewrite_with_issues

        def flaky(page, schema, asset_prefix=None):
            if page.page_id == "index":
                raise RuntimeError("boom")
            return real_rewrite(page, schema, asset_prefix)

        with patch("flowcms.services.pipeline.rewrite_with_issues", side_effect=flaky):
            result = convert_site(_PAGES)

        assert result.failed_pages == ["index"]
        assert list(result.manifest.pages) == ["about"]
        assert set(result.templates) == {"about"}
        assert set(result.schemas) == {"about"}
        assert set(result.seed) == {"about"}

    def test_malformed_page_is_recovered_not_failed(self):
        result = convert_site({"broken": "<div><h1 class='broken-title'>Still here"})
        assert result.failed_pages == []
        assert "broken_title" in result.manifest.pages["broken"].fields


# ---------------------------------------------------------------------------
# Manifest, templates, schemas and seed name the same things
# ---------------------------------------------------------------------------

_FEATURE = '<div class="feature-card"><h3>{title}</h3><p>The {title} feature description.</p></div>'


class TestArtifactAgreement:
    def test_same_class_on_other_tag_is_not_a_repetition(self):
        html = (
            "<html><body>"
            + _FEATURE.format(title="Speed")
            + _FEATURE.format(title="Safety")
            + '<section class="feature-card"><h2 class="promo-title">Spring promo headline</h2></section>'
            + "</body></html>"
        )
        result = convert_site({"index": html})
        markup = result.templates["index"].markup

        assert list(result.manifest.pages["index"].fields) == ["promo_title"]
        assert "{{ content.promo_title }}" in markup
        assert '<section class="feature-card">' in markup
        assert set(result.schemas["index"].attributes) == {"promo_title"}
        assert result.seed["index"] == {"promo_title": "Spring promo headline"}
        assert [item["title"] for item in result.seed["feature_cards"]] == ["Speed", "Safety"]
        assert result.issues == []

    def test_nested_same_class_stays_in_the_loop_template(self):
        html = (
            "<html><body>"
            '<div class="feature-card"><h3>Outer one</h3>'
            '<div class="feature-card"><p>Nested note inside the first card.</p></div></div>'
            '<div class="feature-card"><h3>Outer two</h3></div>'
            "</body></html>"
        )
        result = convert_site({"index": html})
        markup = result.templates["index"].markup

        assert "{{ item.title }}" in markup
        assert "{{ item.description }}" in markup
        assert markup.count('v-for="') == 1
        assert result.seed["feature_cards"] == [
            {"title": "Outer one", "description": "Nested note inside the first card."},
            {"title": "Outer two"},
        ]

    def test_collection_named_like_a_page_is_renamed_everywhere(self):
        items = "".join(f'<div class="feature"><h3>{title}</h3></div>' for title in ("One", "Two"))
        pages = {
            "features": '<html><body><h1 class="features-title">All our features</h1></body></html>',
            "index": f"<html><body>{items}</body></html>",
        }
        result = convert_site(pages)

        assert list(result.manifest.pages["index"].collections) == ["features_items"]
        assert 'v-for="(item, index) in content.features_items"' in result.templates["index"].markup
        assert result.schemas["features"].kind == "singleType"
        assert result.schemas["features_items"].kind == "collectionType"
        assert result.seed["features"] == {"features_title": "All our features"}
        assert result.seed["features_items"] == [{"title": "One"}, {"title": "Two"}]
        assert [(issue.page_id, issue.kind, issue.name) for issue in result.issues] == [
            ("index", "SchemaNameCollision", "features_items")
        ]
