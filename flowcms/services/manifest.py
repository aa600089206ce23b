"""Manifest store: merges per-page detections into one versioned document."""

import json
import logging
from typing import Dict, List, Mapping, Optional, Set, Tuple

from flowcms.config import config
from flowcms.errors import ManifestNotLoaded, SchemaNameCollision
from flowcms.models.issue import Issue
from flowcms.models.manifest import ContentManifest, ManifestOverrides, PageMeta, PageSchema
from flowcms.services.detector import Detection
from flowcms.services.normalizer import route_for_page

logger = logging.getLogger(__name__)


def _free_collection_name(name: str, taken: Set[str]) -> str:
    candidate = f"{name}_items"
    suffix = 2
    while candidate in taken:
        candidate = f"{name}_items_{suffix}"
        suffix += 1
    return candidate


def separate_namespaces(
    detections: Mapping[str, Detection],
) -> Tuple[Dict[str, Detection], List[Issue]]:
    """Rename collections whose identifier equals a page id.

    Page schemas and collection schemas are keyed side by side in the backend
    schemas and the seed document, so the two sets of names must not meet.
    The page keeps its id; the collection is renamed to ``<name>_items`` on
    every page that declares it and a ``SchemaNameCollision`` issue is
    recorded per page.
    """
    page_ids = set(detections)
    taken = set(page_ids)
    for detection in detections.values():
        taken.update(detection.collections)

    renames: Dict[str, str] = {}
    for page_id in sorted(detections):
        for name in detections[page_id].collections:
            if name in page_ids and name not in renames:
                renames[name] = _free_collection_name(name, taken)
                taken.add(renames[name])

    separated: Dict[str, Detection] = {}
    issues: List[Issue] = []
    for page_id, detection in detections.items():
        if not any(name in renames for name in detection.collections):
            separated[page_id] = detection
            continue
        collections = {}
        for name, collection in detection.collections.items():
            new_name = renames.get(name, name)
            if new_name != name:
                detail = f"collection {name} shares its name with page {name}; renamed to {new_name}"
                logger.warning("Manifest [%s]: %s", page_id, detail)
                issues.append(
                    Issue(
                        page_id=page_id,
                        kind=SchemaNameCollision.__name__,
                        detail=detail,
                        name=new_name,
                    )
                )
            collections[new_name] = collection
        separated[page_id] = detection._replace(collections=collections)
    return separated, issues


def build_manifest(
    detections: Mapping[str, Detection],
    overrides: Optional[ManifestOverrides] = None,
    titles: Optional[Mapping[str, str]] = None,
    version: Optional[str] = None,
) -> ContentManifest:
    """Merge per-page detections into a :class:`ContentManifest`.

    Pages are ordered by id so the same input always produces the same
    document.  Excluded pages are dropped and custom fields from *overrides*
    replace detected fields of the same name.
    """
    overrides = overrides or ManifestOverrides()
    titles = titles or {}
    excluded = set(overrides.exclude_pages)

    pages: Dict[str, PageSchema] = {}
    for page_id in sorted(detections):
        if page_id in excluded:
            logger.info("Manifest: excluding page %s", page_id)
            continue
        detection = detections[page_id]
        fields = dict(detection.fields)
        fields.update(overrides.custom_fields.get(page_id, {}))
        pages[page_id] = PageSchema(
            fields=fields,
            collections=dict(detection.collections),
            meta=PageMeta(route=route_for_page(page_id), title=titles.get(page_id)),
        )

    return ContentManifest(version=version or config.MANIFEST_VERSION, pages=pages)


class ManifestStore:
    """Holds the manifest of one run.

    The store starts empty: :meth:`build` or :meth:`load` must be called
    before the manifest can be read.  Both replace whatever was held before;
    there is no incremental merge.
    """

    def __init__(self) -> None:
        self._manifest: Optional[ContentManifest] = None

    @property
    def loaded(self) -> bool:
        return self._manifest is not None

    @property
    def manifest(self) -> ContentManifest:
        if self._manifest is None:
            raise ManifestNotLoaded("manifest accessed before build() or load()")
        return self._manifest

    def page(self, page_id: str) -> PageSchema:
        """Return the schema of *page_id*; raises KeyError for unknown pages."""
        return self.manifest.pages[page_id]

    def build(
        self,
        detections: Mapping[str, Detection],
        overrides: Optional[ManifestOverrides] = None,
        titles: Optional[Mapping[str, str]] = None,
    ) -> ContentManifest:
        self._manifest = build_manifest(detections, overrides, titles)
        logger.info("Manifest: built with %d pages", len(self._manifest.pages))
        return self._manifest

    def load(self, document: str) -> ContentManifest:
        """Replace the held manifest with one parsed from JSON *document*."""
        self._manifest = ContentManifest.model_validate_json(document)
        return self._manifest

    def to_document(self) -> dict:
        return self.manifest.model_dump(mode="json", exclude_none=True)

    def dump(self) -> str:
        """Serialise the manifest as canonical, indented JSON."""
        return json.dumps(self.to_document(), ensure_ascii=False, indent=2)
