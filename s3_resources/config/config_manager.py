"""Configuration management utilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..exceptions import ConfigurationError, ValidationError
from ..s3.listing import MAX_PAGE_SIZE
from ..s3.patterns import DEFAULT_DELIMITER, split_patterns
from ..s3.resource import Precision

REPORT_FORMATS = ("text", "json")


@dataclass
class CollectionConfig:
    """Represents a single named resource collection."""

    name: str
    bucket: str
    precision: Precision = Precision.OBJECT
    delimiter: str = DEFAULT_DELIMITER
    includes: List[str] = field(default_factory=list)
    excludes: List[str] = field(default_factory=list)
    includes_file: Optional[str] = None
    excludes_file: Optional[str] = None
    case_sensitive: bool = True
    cache: bool = True
    page_size: Optional[int] = None
    selectors: List[Dict[str, Any]] = field(default_factory=list)

    def get_s3_path(self) -> str:
        """Return the bucket URI of the collection."""
        return f"s3://{self.bucket}/"

    def has_patterns(self) -> bool:
        return bool(self.includes or self.excludes or self.includes_file or self.excludes_file)


def _as_pattern_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return split_patterns(value)
    return list(value)


class ConfigManager:
    """Handles loading and validation of the YAML configuration file."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.config: Dict[str, Any] = {}
        self._collections: Optional[List[CollectionConfig]] = None
        self._collection_map: Optional[Dict[str, CollectionConfig]] = None

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "ConfigManager":
        """Build a validated configuration from an in-memory mapping."""
        manager = cls()
        manager.config = data
        manager.validate()
        return manager

    def load(self) -> Dict[str, Any]:
        """Load and validate the configuration file."""
        if self.config_path is None or not self.config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        try:
            with self.config_path.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:  # pragma: no cover - passthrough
            raise ConfigurationError(f"Failed to parse configuration: {exc}") from exc

        self.config = data
        self.validate()
        self._collections = None  # reset cache after reloading
        self._collection_map = None
        return self.config

    def validate(self) -> bool:
        """Validate the loaded configuration contents."""
        if not isinstance(self.config, dict):
            raise ValidationError("Configuration must be a mapping.")

        aws_cfg = self.config.get("aws", {})
        if not isinstance(aws_cfg, dict):
            raise ValidationError("The aws section must be a mapping.")
        for key in ("region", "profile", "endpoint_url"):
            value = aws_cfg.get(key)
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"aws.{key} must be a string if specified.")

        collections_cfg = self.config.get("collections")
        if not isinstance(collections_cfg, list) or not collections_cfg:
            raise ValidationError("At least one collection must be defined under collections.")

        seen = set()
        for index, collection in enumerate(collections_cfg):
            self._validate_collection(index, collection)
            if collection["name"] in seen:
                raise ValidationError(f"Collection '{collection['name']}' is defined more than once.")
            seen.add(collection["name"])

        output_cfg = self.config.get("output", {})
        if not isinstance(output_cfg, dict):
            raise ValidationError("The output section must be a mapping.")
        formats = output_cfg.get("formats")
        if formats is not None:
            if not isinstance(formats, list) or not formats:
                raise ValidationError("output.formats must be a non-empty list if specified.")
            for fmt in formats:
                if fmt not in REPORT_FORMATS:
                    raise ValidationError(
                        f"Unsupported report format '{fmt}'; expected one of: {', '.join(REPORT_FORMATS)}."
                    )

        return True

    @staticmethod
    def _validate_collection(index: int, collection: Any) -> None:
        if not isinstance(collection, dict):
            raise ValidationError(f"Collection entry at index {index} must be a mapping.")

        for key in ("name", "bucket"):
            if not collection.get(key) or not isinstance(collection.get(key), str):
                raise ValidationError(
                    f"Collection '{collection.get('name', f'index {index}')}' is missing required key '{key}'."
                )
        name = collection["name"]

        precision = collection.get("precision", Precision.OBJECT.value)
        if str(precision).lower() not in {member.value for member in Precision}:
            raise ValidationError(f"Collection '{name}' precision must be 'object' or 'version'.")

        delimiter = collection.get("delimiter", DEFAULT_DELIMITER)
        if not isinstance(delimiter, str) or not delimiter:
            raise ValidationError(f"Collection '{name}' delimiter must be a non-empty string.")

        for key in ("includes", "excludes"):
            patterns = collection.get(key)
            if patterns is None or isinstance(patterns, str):
                continue
            if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
                raise ValidationError(f"Collection '{name}' {key} must be a string or a list of strings.")

        for key in ("includes_file", "excludes_file"):
            value = collection.get(key)
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"Collection '{name}' {key} must be a string if specified.")

        for key in ("case_sensitive", "cache"):
            flag = collection.get(key, True)
            if not isinstance(flag, bool):
                raise ValidationError(f"Collection '{name}' {key} must be boolean if specified.")

        page_size = collection.get("page_size")
        if page_size is not None:
            if isinstance(page_size, bool) or not isinstance(page_size, int) or not 0 < page_size <= MAX_PAGE_SIZE:
                raise ValidationError(
                    f"Collection '{name}' page_size must be an integer between 1 and {MAX_PAGE_SIZE}."
                )

        selectors = collection.get("selectors", [])
        if not isinstance(selectors, list):
            raise ValidationError(f"Collection '{name}' selectors must be a list if specified.")
        for selector in selectors:
            if not isinstance(selector, dict) or not selector.get("attribute"):
                raise ValidationError(f"Collection '{name}' selectors entries must be mappings with an attribute.")

    def get_collections(self) -> List[CollectionConfig]:
        """Return the configured collections as CollectionConfig instances."""
        if self._collections is None:
            collection_objects: List[CollectionConfig] = []
            for collection in self.config.get("collections", []):
                collection_objects.append(
                    CollectionConfig(
                        name=collection["name"],
                        bucket=collection["bucket"].strip(),
                        precision=Precision.parse(collection.get("precision", Precision.OBJECT.value)),
                        delimiter=collection.get("delimiter", DEFAULT_DELIMITER),
                        includes=_as_pattern_list(collection.get("includes")),
                        excludes=_as_pattern_list(collection.get("excludes")),
                        includes_file=collection.get("includes_file"),
                        excludes_file=collection.get("excludes_file"),
                        case_sensitive=bool(collection.get("case_sensitive", True)),
                        cache=bool(collection.get("cache", True)),
                        page_size=collection.get("page_size"),
                        selectors=list(collection.get("selectors") or []),
                    )
                )
            self._collections = collection_objects
            self._collection_map = {collection.name: collection for collection in collection_objects}
        return list(self._collections)

    def get_collection_by_name(self, name: str) -> Optional[CollectionConfig]:
        """Return a single collection configuration by name, if present."""
        if self._collections is None:
            self.get_collections()
        if self._collection_map is None:
            return None
        return self._collection_map.get(name)

    def get_aws_config(self) -> Dict[str, str]:
        """Return the AWS session configuration section."""
        aws_cfg = self.config.get("aws", {})
        result: Dict[str, str] = {}
        if aws_cfg.get("region"):
            result["region_name"] = aws_cfg["region"]
        if aws_cfg.get("profile"):
            result["profile_name"] = aws_cfg["profile"]
        return result

    def get_endpoint_url(self) -> Optional[str]:
        return self.config.get("aws", {}).get("endpoint_url") or None

    def get_output_config(self) -> Dict[str, Any]:
        """Return report output configuration values with defaults."""
        defaults = {
            "base_dir": "./listings",
            "formats": list(REPORT_FORMATS),
        }
        output_cfg = self.config.get("output", {})
        merged = {**defaults, **output_cfg}
        return merged

    def get_logging_config(self) -> Dict[str, Any]:
        """Return logging configuration values with defaults."""
        defaults = {
            "level": "INFO",
            "file": None,
            "console": True,
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        }
        logging_cfg = self.config.get("logging", {})
        merged = {**defaults, **logging_cfg}
        return merged
