import pytest

from route_atlas.models.analyzer_config import ExtractorConfig
from route_atlas.services.annotation_resolver import AnnotationResolver
from route_atlas.services.class_repository import ClassRepository, InMemoryClassSource
from route_atlas.services.parameter_classifier import ParameterClassifier
from route_atlas.services.schema_resolver import SchemaResolver
from route_atlas.services.signature_decoder import JvmSignatureDecoder


@pytest.fixture
def config():
    return ExtractorConfig()


@pytest.fixture
def decoder(config):
    return JvmSignatureDecoder(config)


@pytest.fixture
def resolver(config):
    return AnnotationResolver(config)


@pytest.fixture
def classifier(config, decoder, resolver):
    return ParameterClassifier(config, decoder, resolver, SchemaResolver())


@pytest.fixture
def make_repository(config):
    """Build a pass-scoped repository over in-memory classes."""
    def _make(*classes):
        return ClassRepository(InMemoryClassSource(classes), config)
    return _make
