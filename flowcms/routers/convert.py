"""Conversion endpoints: exported pages in, manifest, templates, schemas and seed data out."""

import io
import json
import logging
import zipfile

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from flowcms.models.conversion import ConversionResult
from flowcms.models.convert_request import ConvertRequest, DetectRequest
from flowcms.models.detect_response import DetectResponse
from flowcms.services.detector import detect
from flowcms.services.naming import kebab_case
from flowcms.services.normalizer import route_for_page
from flowcms.services.parser import parse_with_issues
from flowcms.services.pipeline import convert_site

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


def _check_page_id(page_id: str) -> None:
    """Reject page ids that would escape the generated project layout."""
    segments = page_id.split("/")
    if page_id.startswith("/") or any(seg in ("", ".", "..") for seg in segments):
        logger.warning("Invalid page id: %s", page_id)
        raise HTTPException(status_code=400, detail=f"Invalid page id: {page_id!r}")


@router.post(
    "/convert",
    response_model=ConversionResult,
    summary="Convert exported pages into CMS-ready artifacts",
    description=(
        "Detects editable fields and repeating collections on every page, "
        "builds one content manifest and generates, from that manifest alone, "
        "a bound template per page, backend content-type schemas and seed data.\n\n"
        "Pass `?format=zip` to download the artifacts as an archive laid out "
        "the way the target project expects them."
    ),
)
@limiter.limit("10/minute")
async def convert_pages(
    request: Request,
    body: ConvertRequest,
    format: str = Query(default="json", description="Output format: 'json' or 'zip'."),
) -> ConversionResult | StreamingResponse:
    """Run the full conversion pipeline over *body.pages*."""
    logger.info(
        "Convert request received",
        extra={"pages": len(body.pages), "format": format},
    )
    for page_id in body.pages:
        _check_page_id(page_id)

    result = convert_site(body.pages, overrides=body.overrides, asset_prefix=body.asset_prefix)
    if result.failed_pages:
        logger.warning("Pages left out of the conversion: %s", ", ".join(result.failed_pages))

    if format == "zip":
        return _build_zip_response(result)
    return result


@router.post(
    "/detect",
    response_model=DetectResponse,
    summary="Preview the detected schema of a single page",
)
@limiter.limit("30/minute")
async def detect_page(request: Request, body: DetectRequest) -> DetectResponse:
    _check_page_id(body.page_id)
    page, issues = parse_with_issues(body.html, body.page_id)
    detection = detect(page.tree, body.page_id, ignore_selectors=body.ignore_selectors)
    return DetectResponse(
        page_id=body.page_id,
        title=page.title,
        route=route_for_page(body.page_id),
        fields=detection.fields,
        collections=detection.collections,
        issues=issues + detection.issues,
    )


def _schema_filename(name: str) -> str:
    return kebab_case(name) or "schema"


def _build_zip_response(result: ConversionResult) -> StreamingResponse:
    """Return a :class:`StreamingResponse` containing a ZIP archive.

    The archive holds:
    - ``cms-manifest.json`` – the content manifest.
    - ``cms-schemas/<name>.json`` – one backend content-type per schema.
    - ``cms-seed/seed-data.json`` – initial content for every schema.
    - ``pages/<page_id>.vue`` – one bound component per page.
    - ``assets/css/embedded.css`` – embedded styles lifted out of the pages.
    - ``issues.json`` – every non-fatal problem found.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(
            "cms-manifest.json",
            json.dumps(result.manifest.model_dump(mode="json", exclude_none=True), ensure_ascii=False, indent=2),
        )
        for name, schema in result.schemas.items():
            zf.writestr(
                f"cms-schemas/{_schema_filename(name)}.json",
                json.dumps(schema.to_document(), ensure_ascii=False, indent=2),
            )
        zf.writestr("cms-seed/seed-data.json", json.dumps(result.seed, ensure_ascii=False, indent=2))

        for page_id, template in result.templates.items():
            zf.writestr(f"pages/{page_id}.vue", template.to_component())

        if result.styles:
            zf.writestr("assets/css/embedded.css", result.styles)
        zf.writestr(
            "issues.json",
            json.dumps([issue.model_dump(exclude_none=True) for issue in result.issues], ensure_ascii=False, indent=2),
        )

    buffer.seek(0)
    return StreamingResponse(
        buffer,
        media_type="application/zip",
        headers={"Content-Disposition": 'attachment; filename="cms-export.zip"'},
    )
