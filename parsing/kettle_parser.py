"""
Kettle Parser

Parses a single Pentaho Kettle document (.ktr transformation, .kjb job, or an
.xml file holding either) into a WorkflowDocument:
- Nodes (steps / job entries) with their complete property bags
- Edges (hops), extracted with ordered structural fallbacks
- Declared database connections, parameters and metadata
- Per-document dependencies (files, databases, variables, sub-workflows)
"""
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from exceptions import MalformedDocumentError
from models import (
    DatabaseConnection,
    DocumentKind,
    WorkflowDocument,
    WorkflowEdge,
    WorkflowMetadata,
    WorkflowParameter,
)
from .dependency_analyzer import DependencyAnalyzer
from .dependency_rules import DependencyRules
from .connection_extractor import ConnectionExtractor
from .document_reader import DocumentReader
from .node_extractor import NodeExtractor
from .property_tree import child_list, first, get_text

logger = logging.getLogger(__name__)


class KettleParser:
    """Parses Kettle transformations and jobs into workflow graphs."""

    def __init__(self, rules: Optional[DependencyRules] = None, default_position: int = 100):
        self.reader = DocumentReader()
        self.node_extractor = NodeExtractor(default_position=default_position)
        self.connection_extractor = ConnectionExtractor()
        self.dependency_analyzer = DependencyAnalyzer(rules)

    def parse(self, file_name: str, content: Union[bytes, str]) -> WorkflowDocument:
        """
        Parse one document.

        Args:
            file_name: Original file name (extension drives kind detection)
            content: Document content already read into memory

        Returns:
            WorkflowDocument

        Raises:
            MalformedDocumentError: If the markup cannot be parsed or its
                structure cannot be represented
            UnrecognizedFormatError: If the kind cannot be determined
        """
        logger.info(f"Parsing file: {file_name}")
        kind, tree = self.reader.read(file_name, content)

        try:
            document = self._build_document(file_name, kind, tree)
        except (RecursionError, ValidationError) as e:
            logger.warning(f"Unsupported document structure in {file_name}: {e}")
            raise MalformedDocumentError(f"Unsupported document structure: {e}", file_name) from e

        unit = 'steps' if kind == DocumentKind.TRANSFORMATION else 'entries'
        logger.info(f"Parsed {kind.value}: {document.name} ({len(document.nodes)} {unit}, {len(document.edges)} hops)")
        return document

    def _build_document(self, file_name: str, kind: DocumentKind, tree: Dict[str, Any]) -> WorkflowDocument:
        nodes = self.node_extractor.extract(tree, kind)
        node_ids = {node.id for node in nodes}
        edges = self.connection_extractor.extract(tree, kind, node_ids)

        dependencies = self.dependency_analyzer.analyze(tree, kind, nodes)
        edges = self._reconcile_edges(edges, dependencies.step_connections)

        if kind == DocumentKind.TRANSFORMATION:
            info = first(tree.get('info'))
            name = get_text(info, 'name') or file_name
            description = get_text(info, 'description')
            parameters = self._extract_parameters(info)
            metadata = self._extract_metadata(info, 'trans_version')
        else:
            name = get_text(tree, 'name') or file_name
            description = get_text(tree, 'description')
            parameters = self._extract_parameters(tree)
            metadata = self._extract_metadata(tree, 'job_version')

        return WorkflowDocument(
            name=name,
            kind=kind,
            file_name=file_name,
            description=description,
            nodes=nodes,
            edges=edges,
            database_connections=self._extract_database_connections(tree),
            parameters=parameters,
            metadata=metadata,
            dependencies=dependencies
        )

    def _reconcile_edges(self, edges: List[WorkflowEdge],
                         step_connections: List[WorkflowEdge]) -> List[WorkflowEdge]:
        """Prefer the broader re-derivation when it finds strictly more hops."""
        if len(step_connections) > len(edges):
            logger.info(f"Using enhanced connection parsing (found {len(step_connections)} vs {len(edges)})")
            return list(step_connections)
        return edges

    def _extract_database_connections(self, tree: Dict[str, Any]) -> List[DatabaseConnection]:
        connections = []
        for conn in child_list(tree, 'connection'):
            if not isinstance(conn, dict):
                continue
            name = get_text(conn, 'name')
            if not name:
                continue
            connections.append(DatabaseConnection(
                name=name,
                type=get_text(conn, 'type'),
                server=get_text(conn, 'server') or None,
                database=get_text(conn, 'database') or None,
                port=get_text(conn, 'port') or None,
                username=get_text(conn, 'username') or None
            ))
        return connections

    def _extract_parameters(self, holder: Any) -> Dict[str, WorkflowParameter]:
        parameters = {}
        for param in child_list(first(child_list(holder, 'parameters')), 'parameter'):
            name = get_text(param, 'name')
            if name:
                parameters[name] = WorkflowParameter(
                    name=name,
                    default_value=get_text(param, 'default_value'),
                    description=get_text(param, 'description')
                )
        return parameters

    def _extract_metadata(self, holder: Any, version_key: str) -> WorkflowMetadata:
        return WorkflowMetadata(
            created=get_text(holder, 'created_date') or None,
            modified=get_text(holder, 'modified_date') or None,
            version=get_text(holder, version_key) or None,
            author=get_text(holder, 'created_user') or None
        )
