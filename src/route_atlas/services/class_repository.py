import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional

import networkx as nx
from loguru import logger

from route_atlas.models.analyzer_config import ExtractorConfig
from route_atlas.models.domain_models import CompiledClass
from route_atlas.models.errors import HierarchyCycle, TypeNotFound
from route_atlas.processors.class_file_processor import ClassFileProcessor


def dotted_name(type_name: str) -> str:
    return type_name.replace('/', '.')


def internal_name(type_name: str) -> str:
    return type_name.replace('.', '/')


class ClassSource(ABC):
    """Supplies compiled classes by fully-qualified name."""

    @abstractmethod
    def find_class(self, type_name: str) -> Optional[CompiledClass]:
        """Return the compiled class, or None when it is not available."""
        pass


class InMemoryClassSource(ClassSource):
    """Serves already-decoded classes, keyed by their dotted name."""

    def __init__(self, classes: Iterable[CompiledClass] = ()):
        self.classes: Dict[str, CompiledClass] = {c.name: c for c in classes}

    def add(self, compiled_class: CompiledClass) -> None:
        self.classes[compiled_class.name] = compiled_class

    def find_class(self, type_name: str) -> Optional[CompiledClass]:
        return self.classes.get(dotted_name(type_name))


class ClasspathSource(ClassSource):
    """Reads ``.class`` files from directories and jar/zip archives.

    Each archive is listed once; it is reopened only to read a class it holds.
    """

    def __init__(self, entries: Iterable[Path], processor: Optional[ClassFileProcessor] = None):
        self.entries: List[Path] = [Path(entry) for entry in entries]
        self.processor = processor or ClassFileProcessor()
        self._archives: Dict[Path, Optional[FrozenSet[str]]] = {}

    def find_class(self, type_name: str) -> Optional[CompiledClass]:
        resource = internal_name(type_name) + '.class'
        for entry in self.entries:
            if entry.is_dir():
                candidate = entry / resource
                if candidate.is_file():
                    return self.processor.process_file(candidate)
                continue
            names = self._archive_names(entry)
            if names and resource in names:
                with zipfile.ZipFile(entry) as archive:
                    data = archive.read(resource)
                return self.processor.process_bytes(data, f"{entry}!/{resource}")
        return None

    def _archive_names(self, entry: Path) -> Optional[FrozenSet[str]]:
        if entry not in self._archives:
            names = None
            if entry.is_file() and zipfile.is_zipfile(entry):
                with zipfile.ZipFile(entry) as archive:
                    names = frozenset(archive.namelist())
                logger.debug(f"Indexed {len(names)} entries of {entry}")
            self._archives[entry] = names
        return self._archives[entry]


class ClassRepository:
    """Pass-scoped, memoizing resolver of compiled classes.

    Superclass links are recorded in ``hierarchy`` (a directed graph from
    subclass to superclass) so cyclic hierarchies surface as errors.
    """

    def __init__(self, source: ClassSource, config: ExtractorConfig):
        self.source = source
        self.config = config
        self.hierarchy = nx.DiGraph()
        self._cache: Dict[str, CompiledClass] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, type_name: str) -> bool:
        return dotted_name(type_name) in self._cache

    def resolve(self, type_name: str) -> CompiledClass:
        compiled_class = self.find(type_name)
        if compiled_class is None:
            raise TypeNotFound(dotted_name(type_name))
        return compiled_class

    def find(self, type_name: str) -> Optional[CompiledClass]:
        """Like ``resolve`` but None when the source does not have the type."""
        name = dotted_name(type_name)
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        logger.debug(f"Loading class {name}")
        compiled_class = self.source.find_class(name)
        if compiled_class is None:
            return None

        self._link(name, compiled_class.superclass)
        self._cache[name] = compiled_class
        return compiled_class

    def superclass_chain(self, compiled_class: CompiledClass) -> Iterator[CompiledClass]:
        """The class itself, then each ancestor up to the sentinel root type."""
        current = compiled_class
        while current is not None:
            yield current
            superclass = current.superclass
            if not superclass or dotted_name(superclass) in self.config.sentinel_root_types:
                return
            current = self.resolve(superclass)

    def _link(self, name: str, superclass: Optional[str]) -> None:
        self.hierarchy.add_node(name)
        if not superclass:
            return
        superclass = dotted_name(superclass)
        if superclass in self.hierarchy and nx.has_path(self.hierarchy, superclass, name):
            raise HierarchyCycle(name, superclass)
        self.hierarchy.add_edge(name, superclass)
