"""Batch orchestration: raw pages in, manifest plus generated artifacts out."""

import logging
from typing import Dict, List, Mapping, Optional

from flowcms.errors import PageFailed
from flowcms.models.content import ExtractedContent
from flowcms.models.conversion import ConversionResult
from flowcms.models.issue import Issue
from flowcms.models.manifest import ManifestOverrides
from flowcms.models.page import ParsedPage
from flowcms.models.template import PortableTemplate
from flowcms.services.compiler import compile_schemas
from flowcms.services.deduplicator import deduplicate_styles
from flowcms.services.detector import Detection, detect
from flowcms.services.extractor import extract_with_issues, to_seed
from flowcms.services.manifest import ManifestStore, separate_namespaces
from flowcms.services.parser import parse_with_issues
from flowcms.services.rewriter import rewrite_with_issues

logger = logging.getLogger(__name__)


def _failed(page_id: str, stage: str, exc: Exception) -> Issue:
    logger.warning("Pipeline: %s failed for %s – %s", stage, page_id, exc)
    return Issue(
        page_id=page_id,
        kind=PageFailed.__name__,
        detail=f"{stage} failed: {type(exc).__name__}: {exc}",
    )


def convert_site(
    pages: Mapping[str, str],
    overrides: Optional[ManifestOverrides] = None,
    asset_prefix: Optional[str] = None,
) -> ConversionResult:
    """Convert a batch of exported pages.

    Pages are processed independently.  A page that raises is reported as a
    ``PageFailed`` issue and left out of every artifact; the rest of the
    batch still completes.

    Args:
        pages:        Mapping of page id to raw markup.
        overrides:    Developer corrections applied to detection and manifest.
        asset_prefix: Public root for rewritten asset references.

    Returns:
        A :class:`ConversionResult` with the manifest, one template per page,
        backend schemas, seed data, lifted styles and every issue found.
    """
    overrides = overrides or ManifestOverrides()
    excluded = set(overrides.exclude_pages)
    issues: List[Issue] = []

    # ── 1. parse + detect, page by page ───────────────────────────────────
    parsed: Dict[str, ParsedPage] = {}
    detections: Dict[str, Detection] = {}
    for page_id in sorted(pages):
        if page_id in excluded:
            continue
        try:
            page, parse_issues = parse_with_issues(pages[page_id], page_id)
            detection = detect(page.tree, page_id, ignore_selectors=overrides.ignore_selectors)
        except Exception as exc:
            issues.append(_failed(page_id, "detection", exc))
            continue
        issues.extend(parse_issues)
        issues.extend(detection.issues)
        parsed[page_id] = page
        detections[page_id] = detection

    # ── 2. manifest ───────────────────────────────────────────────────────
    detections, clash_issues = separate_namespaces(detections)
    issues.extend(clash_issues)
    store = ManifestStore()
    manifest = store.build(
        detections,
        overrides,
        titles={page_id: page.title for page_id, page in parsed.items()},
    )

    # ── 3. templates + content, from the one manifest ─────────────────────
    templates: Dict[str, PortableTemplate] = {}
    extracted: ExtractedContent = {}
    failed: List[str] = []
    for page_id, schema in manifest.pages.items():
        page = parsed[page_id]
        try:
            template, rewrite_issues = rewrite_with_issues(page, schema, asset_prefix)
            content, extract_issues = extract_with_issues(page, schema)
        except Exception as exc:
            issues.append(_failed(page_id, "generation", exc))
            failed.append(page_id)
            continue
        templates[page_id] = template
        extracted[page_id] = content
        issues.extend(rewrite_issues)
        issues.extend(extract_issues)

    if failed:
        # A page is either fully present in every artifact or absent from all
        for page_id in failed:
            detections.pop(page_id)
            parsed.pop(page_id)
        manifest = store.build(
            detections,
            overrides,
            titles={page_id: page.title for page_id, page in parsed.items()},
        )

    # ── 4. backend schemas, seed data, lifted styles ──────────────────────
    styles, duplicates = deduplicate_styles([parsed[p].embedded_styles for p in parsed])
    if duplicates:
        logger.info("Pipeline: dropped duplicate embedded style blocks")

    css_files: List[str] = []
    for page in parsed.values():
        for href in page.css_files:
            if href not in css_files:
                css_files.append(href)

    result = ConversionResult(
        manifest=manifest,
        templates=templates,
        schemas=compile_schemas(manifest),
        seed=to_seed(extracted),
        styles=styles,
        css_files=css_files,
        issues=issues,
    )
    logger.info(
        "Pipeline: converted %d of %d pages (%d issues)",
        len(templates),
        len(pages),
        len(issues),
    )
    return result
