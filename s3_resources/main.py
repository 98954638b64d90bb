"""Core application entry point."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import CollectionConfig, ConfigManager
from .config.validator import ensure_collection_exists
from .exceptions import ConfigurationError
from .s3 import ObjectResource, ObjectResources, selector_from_config
from .utils import ListingReportGenerator, configure_logging

LOGGER = logging.getLogger(__name__)


class S3ResourcesApp:
    """Builds configured resource collections and runs enumerations over them."""

    def __init__(
        self,
        config: ConfigManager,
        config_path: Optional[str] = None,
        s3_client=None,
        log_level: Optional[str] = None,
    ):
        self.config = config
        self.config_path = config_path

        configure_logging(self.config.get_logging_config(), log_level)

        if s3_client is None:
            session = self._create_session(self.config.get_aws_config())
            s3_client = self._create_client(session, self.config.get_endpoint_url())
        self.s3_client = s3_client
        self.report_generator = ListingReportGenerator()
        self._collections: Dict[str, ObjectResources] = {}

    @classmethod
    def from_file(cls, config_path: str, s3_client=None, log_level: Optional[str] = None) -> "S3ResourcesApp":
        config = ConfigManager(config_path)
        config.load()
        return cls(config, config_path=str(Path(config_path)), s3_client=s3_client, log_level=log_level)

    @classmethod
    def from_mapping(
        cls, data: Dict[str, Any], s3_client=None, log_level: Optional[str] = None
    ) -> "S3ResourcesApp":
        return cls(ConfigManager.from_mapping(data), s3_client=s3_client, log_level=log_level)

    def get_collection(self, name: str) -> ObjectResources:
        """Return the named collection, building it on first use."""
        if name not in self._collections:
            collection_config = ensure_collection_exists(self.config, name)
            self._collections[name] = self._build_collection(collection_config)
        return self._collections[name]

    def list_collection(self, name: str, *, report: bool = False) -> List[ObjectResource]:
        """Enumerate the named collection, optionally writing listing reports."""
        collection_config = ensure_collection_exists(self.config, name)
        collection = self.get_collection(name)
        LOGGER.info("Listing collection '%s' from %s", name, collection_config.get_s3_path())
        resources = list(collection)
        LOGGER.info("Collection '%s' holds %s resources", name, len(resources))
        if report:
            self._generate_report(collection_config, resources)
        return resources

    def count_collection(self, name: str) -> int:
        collection = self.get_collection(name)
        count = collection.size()
        LOGGER.info("Collection '%s' holds %s resources", name, count)
        return count

    def _build_collection(self, collection_config: CollectionConfig) -> ObjectResources:
        collection = ObjectResources(
            self.s3_client,
            collection_config.bucket,
            precision=collection_config.precision,
            delimiter=collection_config.delimiter,
            includes=collection_config.includes,
            excludes=collection_config.excludes,
            case_sensitive=collection_config.case_sensitive,
            cache=collection_config.cache,
            page_size=collection_config.page_size,
        )
        if collection_config.includes_file:
            collection.include_from_file(self._resolve_path(collection_config.includes_file))
        if collection_config.excludes_file:
            collection.exclude_from_file(self._resolve_path(collection_config.excludes_file))
        for selector_config in collection_config.selectors:
            collection.add_selector(selector_from_config(selector_config))
        LOGGER.debug("Built %r for collection '%s'", collection, collection_config.name)
        return collection

    def _resolve_path(self, value: str) -> Path:
        path = Path(value).expanduser()
        if not path.is_absolute() and self.config_path:
            path = Path(self.config_path).parent / path
        return path

    def _generate_report(self, collection_config: CollectionConfig, resources: List[ObjectResource]) -> None:
        try:
            self.report_generator.generate(
                collection_config,
                resources,
                self.config.get_output_config(),
                self.config_path,
            )
        except OSError as exc:
            LOGGER.warning("Failed to generate report: %s", exc)

    @staticmethod
    def _create_session(aws_config: Dict[str, str]) -> boto3.session.Session:
        try:
            return boto3.session.Session(**aws_config)
        except (BotoCoreError, ClientError) as exc:  # pragma: no cover - depends on AWS
            raise ConfigurationError(f"Unable to create AWS session: {exc}") from exc

    @staticmethod
    def _create_client(session: boto3.session.Session, endpoint_url: Optional[str]):
        try:
            if endpoint_url:
                return session.client("s3", endpoint_url=endpoint_url)
            return session.client("s3")
        except (BotoCoreError, ClientError) as exc:  # pragma: no cover - depends on AWS
            raise ConfigurationError(f"Unable to create S3 client: {exc}") from exc
