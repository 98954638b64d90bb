"""Listing report generation utilities."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..config import CollectionConfig
from ..s3.resource import ObjectResource

LOGGER = logging.getLogger(__name__)


class ListingReportGenerator:
    """Produces human-readable and JSON reports of an enumerated collection."""

    def generate(
        self,
        collection: CollectionConfig,
        resources: Sequence[ObjectResource],
        output_config: Dict[str, Any],
        config_path: Optional[str] = None,
    ) -> Dict[str, Path]:
        output_dir = Path(output_config.get("base_dir", "./listings")).resolve()
        output_dir.mkdir(parents=True, exist_ok=True)
        formats = output_config.get("formats") or ["text", "json"]
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        base_name = f"listing_{collection.name}_{timestamp}"

        written: Dict[str, Path] = {}
        if "text" in formats:
            text_path = output_dir / f"{base_name}.txt"
            text_path.write_text(self.build_text_report(collection, resources, config_path), encoding="utf-8")
            written["text"] = text_path
        if "json" in formats:
            json_path = output_dir / f"{base_name}.json"
            json_path.write_text(
                self.dumps(self.build_json_report(collection, resources, config_path)),
                encoding="utf-8",
            )
            written["json"] = json_path

        LOGGER.info("Generated reports: %s", ", ".join(str(path) for path in written.values()))
        return written

    def build_text_report(
        self,
        collection: CollectionConfig,
        resources: Sequence[ObjectResource],
        config_path: Optional[str] = None,
    ) -> str:
        lines: List[str] = []
        now_str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        lines.append("=" * 80)
        lines.append("S3 Resource Listing Report")
        lines.append("=" * 80)
        lines.append("")
        lines.append(f"Generated At: {now_str}")
        if config_path:
            lines.append(f"Configuration File: {config_path}")
        lines.append(f"Collection: {collection.name}")
        lines.append(f"Bucket: {collection.get_s3_path()}")
        lines.append(f"Precision: {collection.precision.value}")
        lines.append(f"Delimiter: {collection.delimiter}")
        lines.append(f"Case Sensitive: {collection.case_sensitive}")
        lines.append(f"Includes: {', '.join(collection.includes) or '(all)'}")
        lines.append(f"Excludes: {', '.join(collection.excludes) or '(none)'}")
        lines.append("")

        lines.append("Summary")
        lines.append("-" * 80)
        lines.append(f"Resource Count: {len(resources)}")
        lines.append(f"Delete Markers: {sum(1 for r in resources if r.is_delete_marker)}")
        lines.append(f"Total Size (MB): {sum(r.get_size_mb() for r in resources):.2f}")
        lines.append("")

        lines.append("Resources")
        lines.append("-" * 80)
        for idx, resource in enumerate(resources, start=1):
            marker = " [delete marker]" if resource.is_delete_marker else ""
            size = "-" if resource.size is None else f"{resource.get_size_mb():.2f} MB"
            lines.append(f"  {idx}. {resource} ({size}){marker}")
        lines.append("")

        return "\n".join(lines)

    def build_json_report(
        self,
        collection: CollectionConfig,
        resources: Sequence[ObjectResource],
        config_path: Optional[str] = None,
    ) -> Dict[str, object]:
        return {
            "generated_at": datetime.now(timezone.utc),
            "config_file": config_path,
            "collection": {
                "name": collection.name,
                "bucket": collection.bucket,
                "precision": collection.precision.value,
                "delimiter": collection.delimiter,
                "case_sensitive": collection.case_sensitive,
                "includes": list(collection.includes),
                "excludes": list(collection.excludes),
            },
            "summary": {
                "resource_count": len(resources),
                "delete_markers": sum(1 for r in resources if r.is_delete_marker),
                "total_size_mb": sum(r.get_size_mb() for r in resources),
            },
            "resources": [resource.to_dict() for resource in resources],
        }

    def dumps(self, document: Any) -> str:
        return json.dumps(document, default=self._json_serializer, indent=2)

    @staticmethod
    def _json_serializer(value):
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc).isoformat()
            return value.isoformat()
        if isinstance(value, Path):
            return str(value)
        raise TypeError(f"Object of type {type(value)!r} is not JSON serialisable")
