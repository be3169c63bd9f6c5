"""Fixed catalog of recognized marker annotations.

Every semantic role (HTTP verb, path, parameter source, deprecation,
nullability, media type) is plain data: a set of annotation type names.
Source kinds are looked up by matching, never by subclassing.
"""
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Tuple

from route_atlas.models.domain_models import AnnotationNode, SourceKind

JOOBY_PACKAGE = 'io.jooby.annotations'
JAXRS_PACKAGES = ('javax.ws.rs', 'jakarta.ws.rs')
VERB_PACKAGES = (JOOBY_PACKAGE,) + JAXRS_PACKAGES

PATH = 'Path'
DEFAULT_METHOD = 'GET'


def vocabulary(simple_name: str, packages: Iterable[str] = VERB_PACKAGES) -> FrozenSet[str]:
    return frozenset(f"{package}.{simple_name}" for package in packages)


GENERIC_PATH_MARKERS = vocabulary(PATH, (JOOBY_PACKAGE,))
NEUTRAL_PATH_MARKERS = vocabulary(PATH, JAXRS_PACKAGES)
PATH_MARKERS = GENERIC_PATH_MARKERS | NEUTRAL_PATH_MARKERS

NAMED_MARKERS = frozenset({'javax.inject.Named', 'jakarta.inject.Named'})

DEPRECATION_MARKERS = frozenset({'java.lang.Deprecated', 'kotlin.Deprecated'})

NULLABLE_MARKERS = frozenset({
    'org.jetbrains.annotations.Nullable',
    'javax.annotation.Nullable',
    'jakarta.annotation.Nullable',
    'androidx.annotation.Nullable',
    'org.springframework.lang.Nullable',
    'edu.umd.cs.findbugs.annotations.Nullable',
    'org.checkerframework.checker.nullness.qual.Nullable'
})

NON_NULL_MARKERS = frozenset({
    'org.jetbrains.annotations.NotNull',
    'javax.annotation.Nonnull',
    'jakarta.annotation.Nonnull',
    'androidx.annotation.NonNull',
    'org.springframework.lang.NonNull',
    'lombok.NonNull',
    'edu.umd.cs.findbugs.annotations.NonNull',
    'org.checkerframework.checker.nullness.qual.NonNull'
})

PRODUCES_MARKERS = vocabulary('Produces')
CONSUMES_MARKERS = vocabulary('Consumes')


def verb_markers(http_methods: Iterable[str]) -> FrozenSet[str]:
    """Annotation types that make a method a route: every verb plus the path markers."""
    markers = set(PATH_MARKERS)
    for method in http_methods:
        markers |= vocabulary(method)
    return frozenset(markers)


@dataclass(frozen=True)
class SourceKindSpec:
    kind: SourceKind
    markers: FrozenSet[str]
    always_required: bool = False
    excluded: bool = False

    def matches(self, annotation: AnnotationNode) -> bool:
        return annotation.type_name in self.markers

    @property
    def name_markers(self) -> FrozenSet[str]:
        """Markers whose ``value`` may rename the parameter."""
        return self.markers | NAMED_MARKERS


SOURCE_KINDS: Tuple[SourceKindSpec, ...] = (
    SourceKindSpec(SourceKind.CONTEXT, vocabulary('ContextParam', (JOOBY_PACKAGE,)), excluded=True),
    SourceKindSpec(SourceKind.HEADER, vocabulary('HeaderParam')),
    SourceKindSpec(SourceKind.COOKIE, vocabulary('CookieParam')),
    SourceKindSpec(SourceKind.PATH, vocabulary('PathParam'), always_required=True),
    SourceKindSpec(SourceKind.QUERY, vocabulary('QueryParam')),
    SourceKindSpec(SourceKind.FORM, vocabulary('FormParam')),
)

BODY = SourceKindSpec(SourceKind.BODY, frozenset())


def find_source_kind(annotations: Iterable[AnnotationNode]) -> SourceKindSpec:
    """First annotation matching a source kind decides; BODY when none does."""
    for annotation in annotations:
        for spec in SOURCE_KINDS:
            if spec.matches(annotation):
                return spec
    return BODY
