import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from route_atlas.factory.analyzer_factory import AnalyzerFactory
from route_atlas.factory.config_builder import ExtractorConfigBuilder
from route_atlas.models.domain_models import MountReference
from route_atlas.models.errors import RouteAtlasError


def parse_mount(text: str) -> MountReference:
    """``com.example.UserController=/api`` -> mount with prefix ``/api``."""
    controller_type, _, prefix = text.partition('=')
    return MountReference(controller_type=controller_type.strip(), path_prefix=prefix.strip() or None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='route-atlas',
        description='Extract HTTP route metadata from compiled controller classes.'
    )
    parser.add_argument('--classpath', '-cp', required=True,
                        help=f"Class directories and jars, separated by '{os.pathsep}'")
    parser.add_argument('--mount', '-m', action='append', required=True, type=parse_mount,
                        help='Controller type, optionally followed by =PREFIX. Repeatable.')
    parser.add_argument('--output', '-o', help='Directory for operations.json, statistics.json and routes.html')
    parser.add_argument('--missing-nullable-optional', action='store_true',
                        help='Treat parameters without nullability metadata as optional')
    parser.add_argument('--verbose', '-v', action='store_true')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "INFO")

    classpath = [Path(entry) for entry in args.classpath.split(os.pathsep) if entry]
    missing = [entry for entry in classpath if not entry.exists()]
    if missing:
        logger.error(f"Classpath entries do not exist: {', '.join(str(entry) for entry in missing)}")
        return 1

    try:
        config = ExtractorConfigBuilder() \
            .with_missing_nullability_required(not args.missing_nullable_optional) \
            .build()
        analyzer = AnalyzerFactory.create_analyzer('jvm', classpath, config)
        operations = analyzer.parse_mounts(args.mount)

        for operation in operations:
            logger.info(f"{operation.method:7} {operation.pattern} -> {operation.controller}.{operation.operation_id}")

        if args.output:
            analyzer.export_results(operations, Path(args.output))

        stats = analyzer.generate_statistics(operations)
        logger.info(f"Total operations: {stats['total_operations']}")
        logger.info(f"Total controllers: {stats['total_controllers']}")
        return 0

    except RouteAtlasError as e:
        logger.error(f"Route extraction failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
