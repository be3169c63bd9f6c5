from typing import Any, Dict, List

from route_atlas.models.domain_models import Operation


class StatisticsGenerator:
    """Generates summary statistics over extracted operations."""

    def generate_statistics(self, operations: List[Operation]) -> Dict:
        """Generate summary statistics."""
        stats = {
            'total_operations': len(operations),
            'total_controllers': len({operation.controller for operation in operations}),
            'http_methods': self._count_http_methods(operations),
            'controllers': self._count_controllers(operations),
            'parameter_locations': self._count_parameter_locations(operations),
            'request_bodies': self._count_request_bodies(operations),
            'deprecated_operations': sum(1 for operation in operations if operation.deprecated)
        }
        return stats

    def _count_http_methods(self, operations: List[Operation]) -> Dict[str, int]:
        methods = {}
        for operation in operations:
            methods[operation.method] = methods.get(operation.method, 0) + 1
        return methods

    def _count_controllers(self, operations: List[Operation]) -> Dict[str, int]:
        controllers = {}
        for operation in operations:
            controllers[operation.controller] = controllers.get(operation.controller, 0) + 1
        return controllers

    def _count_parameter_locations(self, operations: List[Operation]) -> Dict[str, int]:
        locations = {}
        for operation in operations:
            for parameter in operation.parameters:
                locations[parameter.in_] = locations.get(parameter.in_, 0) + 1
        return locations

    def _count_request_bodies(self, operations: List[Operation]) -> Dict[str, Any]:
        content_types = {}
        for operation in operations:
            if operation.request_body:
                content_type = operation.request_body.content_type
                content_types[content_type] = content_types.get(content_type, 0) + 1
        return {
            'total_request_bodies': sum(content_types.values()),
            'content_types': content_types
        }
