from dataclasses import dataclass, field
from typing import List, Set


@dataclass(frozen=True)
class ExtractorConfig:
    """Configuration for the route extractor."""
    # Superclass walks stop here; these types never declare routes.
    sentinel_root_types: Set[str] = field(default_factory=lambda: {
        'java.lang.Object'
    })
    http_methods: List[str] = field(default_factory=lambda: [
        'GET', 'POST', 'PUT', 'DELETE', 'PATCH', 'HEAD', 'OPTIONS', 'TRACE'
    ])
    continuation_type: str = 'kotlin.coroutines.Continuation'
    # Parameter types supplied by the runtime, never by the HTTP client.
    ignored_param_types: Set[str] = field(default_factory=lambda: {
        'io.jooby.Context',
        'io.jooby.Session',
        'java.util.Optional<io.jooby.Session>',
        'kotlin.coroutines.Continuation'
    })
    primitive_types: Set[str] = field(default_factory=lambda: {
        'boolean', 'byte', 'char', 'short', 'int', 'float', 'double', 'long'
    })
    # Required flag for parameters without any nullability marker. The
    # observed behaviour is ambiguous, so this is a deliberate default.
    missing_nullability_required: bool = True
    default_content_type: str = 'application/json'
    multipart_content_type: str = 'multipart/form-data'
