"""
Hop extraction with ordered structural fallbacks.

The same logical hop list shows up in differently nested trees depending on
the tool that wrote the file. Each layout is a HopStrategy; strategies are
tried in a fixed priority order per document kind and the first one that
yields at least one hop wins.
"""
import logging
from enum import Enum
from typing import Any, Collection, Dict, List, Optional, Tuple

from models import DocumentKind, WorkflowEdge
from .property_tree import child_list, first, get_text

logger = logging.getLogger(__name__)

DISABLED_MARKER = 'N'


class HopStrategy(str, Enum):
    """Known hop layouts."""
    DIRECT_ORDER = "direct_order"    # <order> elements are hops themselves
    ORDER_NESTED = "order_nested"    # <order><hop/>...</order>
    HOPS_NESTED = "hops_nested"      # <hops><hop/>...</hops>
    DIRECT_HOPS = "direct_hops"      # <hops> elements are hops themselves


HOP_STRATEGIES: Dict[DocumentKind, Tuple[HopStrategy, ...]] = {
    DocumentKind.TRANSFORMATION: (
        HopStrategy.DIRECT_ORDER,
        HopStrategy.ORDER_NESTED,
        HopStrategy.HOPS_NESTED,
    ),
    DocumentKind.JOB: (
        HopStrategy.HOPS_NESTED,
        HopStrategy.DIRECT_HOPS,
        HopStrategy.DIRECT_ORDER,
    ),
}


def candidate_hops(tree: Dict[str, Any], strategy: HopStrategy) -> List[Dict[str, Any]]:
    """Return the raw hop records a strategy finds in the tree."""
    if strategy == HopStrategy.DIRECT_ORDER:
        return _direct_records(child_list(tree, 'order'))
    elif strategy == HopStrategy.ORDER_NESTED:
        return _nested_records(tree, 'order')
    elif strategy == HopStrategy.HOPS_NESTED:
        return _nested_records(tree, 'hops')
    elif strategy == HopStrategy.DIRECT_HOPS:
        return _direct_records(child_list(tree, 'hops'))
    raise ValueError(f"Unknown hop strategy: {strategy}")


def _direct_records(records: List[Any]) -> List[Dict[str, Any]]:
    return [r for r in records if isinstance(r, dict) and ('from' in r or 'to' in r)]


def _nested_records(tree: Dict[str, Any], container: str) -> List[Dict[str, Any]]:
    wrapper = first(tree.get(container))
    return [h for h in child_list(wrapper, 'hop') if isinstance(h, dict)]


def hop_to_edge(hop: Dict[str, Any], edge_id: str, kind: DocumentKind) -> Optional[WorkflowEdge]:
    """Build an edge from a raw hop record; None when an endpoint is missing."""
    source = get_text(hop, 'from')
    target = get_text(hop, 'to')
    if not source or not target:
        return None

    return WorkflowEdge(
        id=edge_id,
        source=source,
        target=target,
        enabled=get_text(hop, 'enabled') != DISABLED_MARKER,
        condition=_hop_condition(hop) if kind == DocumentKind.JOB else None
    )


def _hop_condition(hop: Dict[str, Any]) -> Optional[str]:
    """Job hops follow the previous entry's result unless unconditional."""
    if get_text(hop, 'unconditional').upper() == 'Y':
        return 'unconditional'
    evaluation = get_text(hop, 'evaluation').upper()
    if evaluation == 'Y':
        return 'success'
    if evaluation == 'N':
        return 'failure'
    return None


def drop_dangling_edges(edges: List[WorkflowEdge], node_ids: Collection[str]) -> List[WorkflowEdge]:
    """Keep only edges whose endpoints are known node ids."""
    kept = [e for e in edges if e.source in node_ids and e.target in node_ids]
    if len(kept) != len(edges):
        logger.debug(f"Dropped {len(edges) - len(kept)} hop(s) with unknown endpoints")
    return kept


class ConnectionExtractor:
    """Extracts hops using the per-kind strategy priority list."""

    def __init__(self, strategies: Optional[Dict[DocumentKind, Tuple[HopStrategy, ...]]] = None):
        self.strategies = strategies or HOP_STRATEGIES

    def extract(self, tree: Dict[str, Any], kind: DocumentKind,
                node_ids: Optional[Collection[str]] = None) -> List[WorkflowEdge]:
        """
        Extract hops from the first strategy that yields any.

        Args:
            tree: Root property tree
            kind: Document kind, selects the strategy priority list
            node_ids: When given, hops with unknown endpoints are dropped

        Returns:
            List of edges (empty when no strategy matches)
        """
        strategy, edges = self.extract_with_strategy(tree, kind)
        if strategy is not None:
            logger.debug(f"Hops extracted with {strategy.value} ({len(edges)} edge(s))")
        if node_ids is not None:
            edges = drop_dangling_edges(edges, set(node_ids))
        return edges

    def extract_with_strategy(self, tree: Dict[str, Any],
                              kind: DocumentKind) -> Tuple[Optional[HopStrategy], List[WorkflowEdge]]:
        """Return the winning strategy (or None) and its edges, unfiltered."""
        for strategy in self.strategies[DocumentKind(kind)]:
            edges = []
            for hop in candidate_hops(tree, strategy):
                edge = hop_to_edge(hop, f"hop_{len(edges)}", kind)
                if edge is not None:
                    edges.append(edge)
            if edges:
                return strategy, edges
        return None, []
