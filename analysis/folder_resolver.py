"""
Folder dependency resolution.

Matches the free-text workflow references found inside each document against
the names of the other files of the same batch and emits file-level
dependencies.
"""
import logging
import re
from pathlib import PurePath
from typing import Dict, List, Optional, Sequence, Tuple

from models import (
    WORKFLOW_CALL_CATEGORIES,
    DependencyCategory,
    FileDependency,
    WorkflowDocument,
)
from parsing.dependency_analyzer import strip_workflow_path
from parsing.dependency_rules import DEFAULT_RULES, DependencyRules

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r'[^0-9a-z]+')


def base_name(file_name: str) -> str:
    """Lower-cased file name without its extension."""
    return PurePath(file_name).stem.lower()


def normalize_name(name: str) -> str:
    """Lower-case and drop separators so 'My_Job-v2' compares as 'myjobv2'."""
    return _SEPARATORS.sub('', name.lower())


class FolderDependencyResolver:
    """Resolves cross-file references within one batch of documents."""

    def __init__(self, rules: Optional[DependencyRules] = None):
        self.rules = rules or DEFAULT_RULES

    def build_lookup(self, file_names: Sequence[str]) -> Dict[str, List[str]]:
        """Map each base name to the file names sharing it, sorted."""
        lookup: Dict[str, List[str]] = {}
        for file_name in file_names:
            lookup.setdefault(base_name(file_name), []).append(file_name)
        for names in lookup.values():
            names.sort()
        return lookup

    def resolve(self, documents: Sequence[Tuple[str, WorkflowDocument]]) -> List[FileDependency]:
        """
        Emit one FileDependency per reference that resolves to a sibling file.

        Args:
            documents: (file_name, document) pairs in the order to process them

        Returns:
            File dependencies in processing order; unresolved references are dropped
        """
        lookup = self.build_lookup([file_name for file_name, _ in documents])
        dependencies: List[FileDependency] = []
        seen_ids: Dict[str, int] = {}

        for file_name, document in documents:
            for category, reference, source_step in self._references(document):
                expected_extension = self.rules.expected_extension(category)
                match = self.find_matching_file(reference, lookup, expected_extension, exclude=file_name)
                if match is None:
                    logger.debug(f"Unresolved reference in {file_name}: {reference}")
                    continue

                target_file, match_kind = match
                dependency_id = f"{file_name}_to_{target_file}"
                if dependency_id in seen_ids:
                    seen_ids[dependency_id] += 1
                    dependency_id = f"{dependency_id}_{seen_ids[dependency_id]}"
                else:
                    seen_ids[dependency_id] = 0

                dependencies.append(FileDependency(
                    id=dependency_id,
                    source_file=file_name,
                    target_file=target_file,
                    category=category,
                    source_step=source_step,
                    reference=reference,
                    match=match_kind
                ))

        logger.info(f"Found {len(dependencies)} dependencies between files")
        return dependencies

    def _references(self, document: WorkflowDocument) -> List[Tuple[DependencyCategory, str, Optional[str]]]:
        """(category, reference, node name) triples worth resolving."""
        references = []
        for dependency in document.dependencies.sub_workflow_dependencies:
            if dependency.category in WORKFLOW_CALL_CATEGORIES:
                references.append((DependencyCategory(dependency.category), dependency.target, dependency.node_name))

        extensions = tuple(ext.lower() for ext in self.rules.workflow_extensions)
        for dependency in document.dependencies.file_dependencies:
            if dependency.target.lower().endswith(extensions):
                reference = strip_workflow_path(dependency.target, self.rules.workflow_extensions)
                references.append((DependencyCategory.FILE_REFERENCE, reference, dependency.node_name))
        return references

    def find_matching_file(self, reference: str, lookup: Dict[str, List[str]],
                           expected_extension: str = '',
                           exclude: Optional[str] = None) -> Optional[Tuple[str, str]]:
        """
        Resolve a reference against the lookup.

        1. Exact case-insensitive base-name match, preferring the expected
           extension when several files share the base name.
        2. Substring match in either direction over separator-free names,
           skipping the excluded (calling) file. Ties go to the closest name
           length, then the expected extension, then alphabetical order.

        Returns:
            (file_name, 'exact' | 'substring') or None
        """
        key = reference.strip().lower()
        if not key:
            return None

        exact = lookup.get(key)
        if exact:
            return self._prefer_extension(exact, expected_extension), 'exact'

        wanted = normalize_name(key)
        if not wanted:
            return None

        candidates = []
        for candidate_key, file_names in lookup.items():
            normalized = normalize_name(candidate_key)
            if not normalized or not (wanted in normalized or normalized in wanted):
                continue
            for file_name in file_names:
                if file_name == exclude:
                    continue
                has_extension = bool(expected_extension) and file_name.lower().endswith(expected_extension)
                candidates.append((abs(len(normalized) - len(wanted)), not has_extension, file_name))

        if not candidates:
            return None
        return min(candidates)[2], 'substring'

    def _prefer_extension(self, file_names: List[str], expected_extension: str) -> str:
        if expected_extension:
            for file_name in file_names:
                if file_name.lower().endswith(expected_extension):
                    return file_name
        return file_names[0]
