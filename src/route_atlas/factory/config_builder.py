from typing import List, Set

from route_atlas.models.analyzer_config import ExtractorConfig


class ExtractorConfigBuilder:
    """Builder pattern for creating extractor configuration."""

    def __init__(self):
        self.config_data = {}

    def with_sentinel_root_types(self, root_types: Set[str]) -> 'ExtractorConfigBuilder':
        self.config_data['sentinel_root_types'] = set(root_types)
        return self

    def with_http_methods(self, methods: List[str]) -> 'ExtractorConfigBuilder':
        self.config_data['http_methods'] = [method.upper() for method in methods]
        return self

    def with_ignored_param_types(self, types: Set[str]) -> 'ExtractorConfigBuilder':
        self.config_data['ignored_param_types'] = set(types)
        return self

    def with_missing_nullability_required(self, required: bool) -> 'ExtractorConfigBuilder':
        self.config_data['missing_nullability_required'] = required
        return self

    def with_default_content_type(self, content_type: str) -> 'ExtractorConfigBuilder':
        self.config_data['default_content_type'] = content_type
        return self

    def with_multipart_content_type(self, content_type: str) -> 'ExtractorConfigBuilder':
        self.config_data['multipart_content_type'] = content_type
        return self

    def with_continuation_type(self, type_name: str) -> 'ExtractorConfigBuilder':
        self.config_data['continuation_type'] = type_name
        return self

    def with_primitive_types(self, types: Set[str]) -> 'ExtractorConfigBuilder':
        self.config_data['primitive_types'] = set(types)
        return self

    def build(self) -> ExtractorConfig:
        return ExtractorConfig(**self.config_data)
