"""
Workflow chunking for summarization.

Large workflows are handed to summarizers in pieces: nodes are grouped into
connected components and oversized components are sliced sequentially.
"""
import logging
from collections import deque
from typing import Dict, List, Optional

from config import settings
from models import WorkflowChunk, WorkflowDocument, WorkflowNode

logger = logging.getLogger(__name__)


def group_connected_nodes(document: WorkflowDocument) -> List[List[WorkflowNode]]:
    """Connected components over edges taken as undirected, in node order."""
    adjacency: Dict[str, List[str]] = {}
    for edge in document.edges:
        adjacency.setdefault(edge.source, []).append(edge.target)
        adjacency.setdefault(edge.target, []).append(edge.source)

    # Duplicate ids all join the component of their id
    nodes_by_id: Dict[str, List[WorkflowNode]] = {}
    for node in document.nodes:
        nodes_by_id.setdefault(node.id, []).append(node)

    visited = set()
    groups = []
    for node in document.nodes:
        if node.id in visited:
            continue
        group = []
        queue = deque([node.id])
        visited.add(node.id)
        while queue:
            current = queue.popleft()
            group.extend(nodes_by_id.get(current, []))
            for neighbor in adjacency.get(current, []):
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        groups.append(group)

    return groups


def create_workflow_chunks(document: WorkflowDocument,
                           max_nodes_per_chunk: Optional[int] = None) -> List[WorkflowChunk]:
    """
    Split a workflow into chunks of at most max_nodes_per_chunk nodes.

    Each chunk carries only the edges with both endpoints inside it. The size
    defaults to settings.max_nodes_per_chunk.
    """
    if max_nodes_per_chunk is None:
        max_nodes_per_chunk = settings.max_nodes_per_chunk
    if max_nodes_per_chunk < 1:
        raise ValueError("max_nodes_per_chunk must be at least 1")

    chunks = []
    for group in group_connected_nodes(document):
        for start in range(0, len(group), max_nodes_per_chunk):
            members = group[start:start + max_nodes_per_chunk]
            member_ids = {node.id for node in members}
            chunks.append(WorkflowChunk(
                id=f"chunk_{len(chunks) + 1}",
                nodes=members,
                edges=[e for e in document.edges if e.source in member_ids and e.target in member_ids]
            ))

    logger.debug(f"Created {len(chunks)} chunk(s) for {document.name}")
    return chunks
