"""
Graph assembly.

Parses a batch of documents, resolves their cross-file dependencies and
builds the FolderGraph with its statistics. Statistics functions are pure
and never mutate their input.
"""
import logging
from concurrent.futures import Future, ProcessPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from config import settings
from models import (
    DocumentKind,
    FileDependency,
    FolderGraph,
    FolderMetadata,
    FolderStatistics,
    ParseFailure,
    WorkflowDocument,
    WorkflowFile,
    WorkflowStatistics,
)
from exceptions import DocumentParseError
from parsing.dependency_rules import DependencyRules
from parsing.kettle_parser import KettleParser
from .folder_resolver import FolderDependencyResolver

logger = logging.getLogger(__name__)

Content = Union[bytes, str]


def analyze_workflow(document: WorkflowDocument) -> WorkflowStatistics:
    """Entry points, end points, isolated nodes and type counts for one document."""
    node_types: Dict[str, int] = {}
    edge_types: Dict[str, int] = {}
    incoming = set()
    outgoing = set()

    for node in document.nodes:
        node_type = node.step_type or node.type
        node_types[node_type] = node_types.get(node_type, 0) + 1

    for edge in document.edges:
        edge_types[edge.type] = edge_types.get(edge.type, 0) + 1
        incoming.add(edge.target)
        outgoing.add(edge.source)

    node_ids = list(dict.fromkeys(node.id for node in document.nodes))
    connected = incoming | outgoing

    return WorkflowStatistics(
        total_nodes=len(document.nodes),
        total_edges=len(document.edges),
        node_types=node_types,
        edge_types=edge_types,
        entry_points=[n for n in node_ids if n not in incoming],
        end_points=[n for n in node_ids if n not in outgoing],
        isolated_nodes=[n for n in node_ids if n not in connected]
    )


def analyze_folder_structure(file_names: Sequence[str],
                             dependencies: Sequence[FileDependency]) -> FolderStatistics:
    """Entry, end and intermediate files of the file-level dependency graph."""
    incoming = {d.target_file for d in dependencies}
    outgoing = {d.source_file for d in dependencies}

    return FolderStatistics(
        entry_points=[f for f in file_names if f not in incoming],
        end_points=[f for f in file_names if f not in outgoing],
        intermediate_files=[f for f in file_names if f in incoming and f in outgoing]
    )


def assemble_folder_graph(folder_name: str,
                          files: Sequence[WorkflowFile],
                          dependencies: Sequence[FileDependency],
                          failures: Sequence[ParseFailure] = ()) -> FolderGraph:
    """Build the FolderGraph snapshot with aggregate counts."""
    dependency_types: Dict[str, int] = {}
    for dependency in dependencies:
        category = str(getattr(dependency.category, 'value', dependency.category))
        dependency_types[category] = dependency_types.get(category, 0) + 1

    file_names = [f.file_name for f in files]

    return FolderGraph(
        folder_name=folder_name,
        files=list(files),
        dependencies=list(dependencies),
        failures=list(failures),
        metadata=FolderMetadata(
            total_files=len(files),
            transformations=sum(1 for f in files if f.kind == DocumentKind.TRANSFORMATION),
            jobs=sum(1 for f in files if f.kind == DocumentKind.JOB),
            dependencies=len(dependencies),
            failed_files=len(failures),
            dependency_types=dependency_types,
            parsed=datetime.now().isoformat()
        ),
        statistics=analyze_folder_structure(file_names, dependencies)
    )


def _parse_one(file_name: str, content: Content, rules: Optional[DependencyRules],
               default_position: int) -> Tuple[str, Any]:
    """Parse a single file; failures are returned, not raised."""
    try:
        return 'ok', KettleParser(rules, default_position=default_position).parse(file_name, content)
    except DocumentParseError as e:
        logger.warning(f"Failed to parse: {file_name} - {e}")
        return 'error', ParseFailure(file_name=file_name, error_kind=e.error_kind, message=str(e))
    except Exception as e:
        logger.error(f"Unexpected error parsing {file_name}: {e}")
        return 'error', _unexpected_failure(file_name, e)


def _unexpected_failure(file_name: str, error: Exception) -> ParseFailure:
    return ParseFailure(
        file_name=file_name,
        error_kind=DocumentParseError.error_kind,
        message=f"{file_name}: {type(error).__name__}: {error}"
    )


def _collect(future: Future, file_name: str) -> Tuple[str, Any]:
    """Result of a pooled parse; a worker that dies still yields a failure."""
    try:
        return future.result()
    except Exception as e:
        logger.error(f"Worker failed on {file_name}: {e}")
        return 'error', _unexpected_failure(file_name, e)


def parse_folder(folder_name: str,
                 files: Sequence[Tuple[str, Content]],
                 rules: Optional[DependencyRules] = None,
                 max_workers: int = 0,
                 sort_by_name: bool = False,
                 default_position: Optional[int] = None) -> FolderGraph:
    """
    Parse a batch of files and build their FolderGraph.

    Args:
        folder_name: Name of the folder / upload batch
        files: (file_name, content) pairs, content already in memory
        rules: Dependency rules (defaults when None)
        max_workers: 0 or 1 parses sequentially, more uses a process pool
        sort_by_name: Process files sorted by name; False keeps the given order
        default_position: Node coordinate used when a position is missing
            (settings.default_position when None)

    Returns:
        FolderGraph holding the documents that parsed plus a failure list
    """
    if default_position is None:
        default_position = settings.default_position

    ordered = sorted(files, key=lambda item: item[0]) if sort_by_name else list(files)
    logger.info(f"Parsing folder: {folder_name} ({len(ordered)} file(s))")

    if max_workers > 1 and len(ordered) > 1:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(_parse_one, name, content, rules, default_position)
                       for name, content in ordered]
            outcomes = [_collect(future, name) for future, (name, _) in zip(futures, ordered)]
    else:
        outcomes = [_parse_one(name, content, rules, default_position) for name, content in ordered]

    workflow_files: List[WorkflowFile] = []
    failures: List[ParseFailure] = []
    for (file_name, content), (status, result) in zip(ordered, outcomes):
        if status == 'ok':
            workflow_files.append(WorkflowFile(
                file_name=file_name,
                kind=result.kind,
                size=len(content),
                document=result
            ))
        else:
            failures.append(result)

    if not workflow_files:
        logger.warning(f"No valid Pentaho files found in folder: {folder_name}")

    resolver = FolderDependencyResolver(rules)
    dependencies = resolver.resolve([(f.file_name, f.document) for f in workflow_files])

    graph = assemble_folder_graph(folder_name, workflow_files, dependencies, failures)
    logger.info(f"Successfully parsed {len(workflow_files)} files from folder: {folder_name} "
                f"({len(failures)} failed, {len(dependencies)} dependencies)")
    return graph
