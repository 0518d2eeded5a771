"""
Folder Analysis Module.

Resolves cross-file dependencies within a batch of parsed documents, builds
the folder graph with its statistics, and chunks workflows for summarizers.

Usage:
    from analysis.graph_assembler import parse_folder

    graph = parse_folder('etl', [('main.kjb', job_content), ('load.ktr', trans_content)])
"""

from .chunking import create_workflow_chunks, group_connected_nodes
from .folder_resolver import FolderDependencyResolver
from .graph_assembler import analyze_folder_structure, analyze_workflow, assemble_folder_graph, parse_folder

__all__ = [
    "FolderDependencyResolver",
    "parse_folder",
    "assemble_folder_graph",
    "analyze_workflow",
    "analyze_folder_structure",
    "create_workflow_chunks",
    "group_connected_nodes",
]
