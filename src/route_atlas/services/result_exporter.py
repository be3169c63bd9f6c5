import json
from pathlib import Path
from typing import Dict, List

from loguru import logger
from pyvis.network import Network

from route_atlas.models.domain_models import Operation, operations_to_dicts
from route_atlas.services.statistics_generator import StatisticsGenerator

METHOD_COLORS = {
    "GET": "#3b82f6", "POST": "#10b981", "PUT": "#f59e0b", "PATCH": "#8b5cf6",
    "DELETE": "#ef4444", "default": "#6b7280"
}
CONTROLLER_COLOR = "#374151"


class ResultExporter:
    """Exports extracted operations to JSON files and an HTML route graph."""

    def export_results(self, operations: List[Operation], output_path: Path) -> None:
        """Export operations, statistics and the route graph."""
        output_path.mkdir(parents=True, exist_ok=True)
        self._export_operations(operations, output_path)
        stats_generator = StatisticsGenerator()
        stats = stats_generator.generate_statistics(operations)
        self._export_statistics(stats, output_path)
        self.export_route_graph(operations, output_path / 'routes.html')

    def _export_operations(self, operations: List[Operation], output_path: Path) -> None:
        with open(output_path / 'operations.json', 'w', encoding='utf-8') as f:
            json.dump(operations_to_dicts(operations), f, indent=2, ensure_ascii=False)
        logger.info(f"Exported {len(operations)} operations to {output_path / 'operations.json'}")

    def _export_statistics(self, stats: Dict, output_path: Path) -> None:
        with open(output_path / 'statistics.json', 'w', encoding='utf-8') as f:
            json.dump(stats, f, indent=2, ensure_ascii=False)

    def export_route_graph(self, operations: List[Operation], output_html_path: Path) -> None:
        """Interactive controller -> route graph."""
        net = self.build_route_graph(operations)
        net.write_html(str(output_html_path))
        logger.info(f"Exported route graph to {output_html_path}")

    def build_route_graph(self, operations: List[Operation]) -> Network:
        net = Network(height="900px", width="100%", directed=True, notebook=False, cdn_resources="remote")
        net.barnes_hut()

        for operation in operations:
            if operation.controller not in net.get_nodes():
                net.add_node(operation.controller, label=operation.controller.rsplit('.', 1)[-1],
                             color=CONTROLLER_COLOR, title=operation.controller, shape="box")
            # one node per (controller, verb, pattern)
            label = f"{operation.method} {operation.pattern}"
            node_id = f"{operation.controller} {label}"
            title = f"{operation.controller}.{operation.operation_id}"
            if operation.deprecated:
                title += " (deprecated)"
            net.add_node(node_id, label=label, title=title, group=operation.controller,
                         color=METHOD_COLORS.get(operation.method, METHOD_COLORS["default"]))
            net.add_edge(operation.controller, node_id, title=operation.operation_id)
        return net
