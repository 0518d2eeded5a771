"""
Intra-document dependency analysis.

Scans every node's property bag for file, database, variable and
sub-workflow references, and re-derives hops with a broader pattern set than
the connection extractor. All matching here is heuristic: a missing or
unmatched property is simply absent from the result.
"""
import logging
import re
from pathlib import PureWindowsPath
from typing import Any, Dict, List, Optional, Sequence, Tuple

from models import (
    Dependency,
    DependencyCategory,
    DependencySet,
    DocumentKind,
    WorkflowEdge,
    WorkflowNode,
)
from .connection_extractor import drop_dangling_edges, hop_to_edge
from .property_tree import child_list, first, get_text, iter_strings, resolve_path
from .dependency_rules import DEFAULT_RULES, DependencyRules

logger = logging.getLogger(__name__)


def strip_workflow_path(value: str, extensions: Sequence[str] = ('.ktr', '.kjb')) -> str:
    """Reduce a file reference to its base name without a workflow extension."""
    # PureWindowsPath splits on both '/' and '\'
    name = PureWindowsPath(value.strip()).name
    lowered = name.lower()
    for extension in extensions:
        if lowered.endswith(extension.lower()):
            return name[:-len(extension)]
    return name


class DependencyAnalyzer:
    """Extracts the per-document DependencySet."""

    def __init__(self, rules: Optional[DependencyRules] = None):
        self.rules = rules or DEFAULT_RULES
        self._variable_pattern = re.compile(self.rules.variable_pattern)
        self._file_rules = [
            (rule, [re.compile(re.escape(ext) + r'(?![a-z0-9])', re.IGNORECASE) for ext in rule.extensions])
            for rule in self.rules.file_rules
        ]

    def analyze(self, tree: Dict[str, Any], kind: DocumentKind,
                nodes: List[WorkflowNode]) -> DependencySet:
        """
        Analyze all dependency families for one document.

        Args:
            tree: Root property tree (used for hop re-derivation)
            kind: Document kind
            nodes: Extracted nodes with their property bags

        Returns:
            DependencySet with dependency ids numbered in discovery order
        """
        node_ids = {node.id for node in nodes}
        step_connections = drop_dangling_edges(self.derive_step_connections(tree, kind), node_ids)

        counter = _IdCounter()
        file_deps = []
        db_deps = []
        variable_deps = []
        workflow_deps = []

        for node in nodes:
            file_deps.extend(self._file_dependencies(node, counter))

        for node in nodes:
            dependency = self._database_dependency(node, counter)
            if dependency:
                db_deps.append(dependency)

        for node in nodes:
            dependency = self._workflow_dependency(node, counter)
            if dependency:
                workflow_deps.append(dependency)

        for node in nodes:
            variable_deps.extend(self._variable_setters(node, counter))
            variable_deps.extend(self._variable_users(node, counter))

        logger.debug(
            f"Dependencies: {len(step_connections)} step connection(s), {len(file_deps)} file, "
            f"{len(db_deps)} database, {len(variable_deps)} variable, {len(workflow_deps)} sub-workflow"
        )

        return DependencySet(
            step_connections=step_connections,
            file_dependencies=file_deps,
            database_dependencies=db_deps,
            variable_dependencies=variable_deps,
            sub_workflow_dependencies=workflow_deps
        )

    def derive_step_connections(self, tree: Dict[str, Any], kind: DocumentKind) -> List[WorkflowEdge]:
        """
        Re-derive hops from every <order> block and any root-level <hop> list.

        Unlike the connection extractor this does not stop at the first layout:
        all <order> blocks are read, each either wrapping <hop> elements or
        being a hop itself.
        """
        edges = []

        for index, order in enumerate(child_list(tree, 'order')):
            if not isinstance(order, dict):
                continue
            if 'hop' in order:
                for hop_index, hop in enumerate(child_list(order, 'hop')):
                    if isinstance(hop, dict):
                        edges.append(hop_to_edge(hop, f"hop_{index}_{hop_index}", kind))
            else:
                edges.append(hop_to_edge(order, f"hop_{index}", kind))

        for index, hop in enumerate(child_list(tree, 'hop')):
            if isinstance(hop, dict):
                edges.append(hop_to_edge(hop, f"direct_hop_{index}", kind))

        return [edge for edge in edges if edge is not None]

    def _file_dependencies(self, node: WorkflowNode, counter: '_IdCounter') -> List[Dependency]:
        dependencies = []
        for rule, patterns in self._file_rules:
            if not rule.matches(node.step_type):
                continue
            path = self._first_value(node.properties, rule.keys,
                               accept=lambda v: not patterns or any(p.search(v) for p in patterns))
            if path:
                dependencies.append(self._dependency(counter, node, path, rule.category, node.step_type))
        return dependencies

    def _database_dependency(self, node: WorkflowNode, counter: '_IdCounter') -> Optional[Dependency]:
        lowered = node.step_type.lower()
        if not any(marker.lower() in lowered for marker in self.rules.database_type_markers):
            return None
        connection = self._first_value(node.properties, self.rules.database_keys)
        if not connection:
            return None
        return self._dependency(counter, node, connection, DependencyCategory.DATABASE_CONNECTION, node.step_type)

    def _workflow_dependency(self, node: WorkflowNode, counter: '_IdCounter') -> Optional[Dependency]:
        for rule in self.rules.workflow_call_rules:
            if rule.matches(node.step_type):
                reference = self.workflow_reference(node.properties)
                if not reference:
                    return None
                return self._dependency(counter, node, reference, rule.category, node.step_type)
        return None

    def workflow_reference(self, properties: Dict[str, Any]) -> Optional[str]:
        """Name of the transformation/job a node invokes, from the first key that has one."""
        for key in self.rules.workflow_reference_keys:
            value = resolve_path(properties, key)
            if not value:
                continue
            if key in self.rules.basename_keys:
                value = strip_workflow_path(value, self.rules.workflow_extensions)
            if value:
                return value
        return None

    def _variable_setters(self, node: WorkflowNode, counter: '_IdCounter') -> List[Dependency]:
        lowered = node.step_type.lower()
        if not any(marker.lower() in lowered for marker in self.rules.variable_type_markers):
            return []

        dependencies = []
        for name, value in self.extract_variable_definitions(node.properties):
            dependencies.append(self._dependency(counter, node, name, DependencyCategory.VARIABLE_SETTER, value))
        return dependencies

    def extract_variable_definitions(self, properties: Dict[str, Any]) -> List[Tuple[str, str]]:
        """(name, value) pairs from the configured <field> containers; both must be present."""
        definitions = []
        for container in self.rules.setter_containers:
            for field in self._container_records(properties, container):
                name = self._first_key(field, self.rules.setter_name_keys)
                if not name:
                    continue
                value = self._first_key(field, self.rules.setter_value_keys)
                if not value:
                    continue
                definitions.append((name, value))
        return definitions

    def _variable_users(self, node: WorkflowNode, counter: '_IdCounter') -> List[Dependency]:
        return [
            self._dependency(counter, node, name, DependencyCategory.VARIABLE_USER, node.step_type)
            for name in self.find_variable_references(node.properties)
        ]

    def find_variable_references(self, properties: Any) -> List[str]:
        """Distinct ${name} references anywhere in the bag, sorted."""
        names = set()
        for text in iter_strings(properties):
            for match in self._variable_pattern.finditer(text):
                names.add(match.group(1))
        return sorted(names)

    def _first_value(self, properties: Dict[str, Any], keys: Sequence[str], accept=None) -> Optional[str]:
        for key in keys:
            value = resolve_path(properties, key)
            if value and (accept is None or accept(value)):
                return value
        return None

    def _container_records(self, properties: Dict[str, Any], path: str) -> List[Dict[str, Any]]:
        *parents, leaf = path.split('.')
        current: Any = properties
        for segment in parents:
            current = first(current)
            if not isinstance(current, dict):
                return []
            current = current.get(segment)
        return [r for r in child_list(first(current) if parents else current, leaf) if isinstance(r, dict)]

    def _first_key(self, record: Dict[str, Any], keys: Sequence[str]) -> Optional[str]:
        for key in keys:
            if key in record:
                value = get_text(record, key)
                if value:
                    return value
        return None

    def _dependency(self, counter: '_IdCounter', node: WorkflowNode, target: str,
                    category: DependencyCategory, detail: str) -> Dependency:
        return Dependency(
            id=counter.next(category),
            origin=node.id,
            target=target,
            category=category,
            detail=detail or '',
            node_name=node.name,
            step_type=node.step_type
        )


class _IdCounter:
    def __init__(self):
        self.count = 0

    def next(self, category: DependencyCategory) -> str:
        dependency_id = f"{DependencyCategory(category).value}_{self.count}"
        self.count += 1
        return dependency_id
