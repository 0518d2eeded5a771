"""
Node extraction for transformation steps and job entries.
"""
import logging
from typing import Any, Dict, List, Optional

from models import DocumentKind, NodeKind, Position, WorkflowNode
from .property_tree import child_list, first, get_text

logger = logging.getLogger(__name__)


class NodeExtractor:
    """Builds uniform WorkflowNode records from steps and job entries."""

    def __init__(self, default_position: int = 100):
        self.default_position = default_position

    def extract(self, tree: Dict[str, Any], kind: DocumentKind) -> List[WorkflowNode]:
        if kind == DocumentKind.TRANSFORMATION:
            return self._extract_steps(tree)
        return self._extract_entries(tree)

    def _extract_steps(self, tree: Dict[str, Any]) -> List[WorkflowNode]:
        """Transformation steps are a flat list under the root."""
        nodes = []
        for index, step in enumerate(child_list(tree, 'step')):
            if not isinstance(step, dict):
                continue
            name = get_text(step, 'name')
            gui = first(step.get('GUI'))
            nodes.append(WorkflowNode(
                id=name or f"step_{index}",
                name=name or f"Step {index + 1}",
                type=NodeKind.STEP,
                step_type=get_text(step, 'type', 'unknown'),
                position=self._extract_position(gui),
                properties=step
            ))
        return nodes

    def _extract_entries(self, tree: Dict[str, Any]) -> List[WorkflowNode]:
        """Job entries are nested one level under <entries>."""
        nodes = []
        entries = first(tree.get('entries'))
        for index, entry in enumerate(child_list(entries, 'entry')):
            if not isinstance(entry, dict):
                continue
            name = get_text(entry, 'name')
            step_type = get_text(entry, 'type', 'unknown')
            nodes.append(WorkflowNode(
                id=name or f"entry_{index}",
                name=name or f"Entry {index + 1}",
                type=self._job_node_kind(entry, step_type),
                step_type=step_type,
                position=self._extract_position(entry),
                properties=entry
            ))
        return nodes

    def _job_node_kind(self, entry: Dict[str, Any], step_type: str) -> NodeKind:
        if step_type == 'SPECIAL' and get_text(entry, 'start').upper() == 'Y':
            return NodeKind.START
        if step_type == 'SUCCESS':
            return NodeKind.END
        return NodeKind.JOB_ENTRY

    def _extract_position(self, holder: Optional[Any]) -> Position:
        return Position(
            x=self._parse_coordinate(get_text(holder, 'xloc')),
            y=self._parse_coordinate(get_text(holder, 'yloc'))
        )

    def _parse_coordinate(self, value: str) -> int:
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return self.default_position
