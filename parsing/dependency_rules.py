"""
Dependency rule tables.

Which step types are inspected and which property keys are read is data,
not control flow. The defaults below cover the stock Kettle steps and job
entries; a JSON file with the same shape can replace them so new tool
variants only need a rules update.
"""
import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from models import DependencyCategory
from exceptions import DependencyRulesError

logger = logging.getLogger(__name__)


class FileRule(BaseModel):
    """Emits a file dependency for step types carrying any marker."""
    category: DependencyCategory
    type_markers: List[str]                         # case-insensitive substrings
    exclude_markers: List[str] = Field(default_factory=list)
    keys: List[str]                                 # dotted paths, tried in order
    extensions: List[str] = Field(default_factory=list)  # value must contain one

    def matches(self, step_type: str) -> bool:
        lowered = step_type.lower()
        if any(marker.lower() in lowered for marker in self.exclude_markers):
            return False
        return any(marker.lower() in lowered for marker in self.type_markers)


class WorkflowCallRule(BaseModel):
    """Classifies steps/entries that run another transformation or job."""
    category: DependencyCategory
    exact_types: List[str] = Field(default_factory=list)
    type_substrings: List[str] = Field(default_factory=list)  # case-sensitive
    expected_extension: str = ""

    def matches(self, step_type: str) -> bool:
        if step_type in self.exact_types:
            return True
        return any(fragment in step_type for fragment in self.type_substrings)


class DependencyRules(BaseModel):
    """All key and marker tables used by the dependency analyzer."""

    file_rules: List[FileRule] = Field(default_factory=lambda: [
        FileRule(
            category=DependencyCategory.FILE_INPUT,
            type_markers=['input', 'file'],
            exclude_markers=['output', 'writer'],
            keys=['filename', 'file', 'filepath', 'inputfile', 'outputfile',
                  'file_name', 'input_file', 'output_file', 'file.name'],
        ),
        FileRule(
            category=DependencyCategory.FILE_OUTPUT,
            type_markers=['output', 'writer'],
            keys=['filename', 'file', 'filepath', 'inputfile', 'outputfile',
                  'file_name', 'input_file', 'output_file', 'file.name'],
        ),
        FileRule(
            category=DependencyCategory.EXCEL_FILE,
            type_markers=['excel'],
            keys=['filename', 'file', 'filepath', 'inputfile', 'outputfile',
                  'file_name', 'input_file', 'output_file', 'file.name'],
        ),
        FileRule(
            category=DependencyCategory.SCRIPT_FILE,
            type_markers=['script', 'execute', 'shell'],
            keys=['script', 'scriptfile', 'script_file', 'filename', 'file'],
            extensions=['.js', '.py', '.sh', '.bat', '.cmd', '.ps1', '.sql'],
        ),
    ])

    database_type_markers: List[str] = Field(default_factory=lambda: ['table', 'database', 'sql'])
    database_keys: List[str] = Field(default_factory=lambda: [
        'connection', 'database', 'db_connection', 'connection_name'
    ])

    # First matching rule wins
    workflow_call_rules: List[WorkflowCallRule] = Field(default_factory=lambda: [
        WorkflowCallRule(
            category=DependencyCategory.SUB_TRANSFORMATION,
            exact_types=['Mapping', 'SubTrans', 'MappingInput', 'MappingOutput', 'SimpleMapping'],
            type_substrings=['Sub'],
            expected_extension='.ktr',
        ),
        WorkflowCallRule(
            category=DependencyCategory.JOB_CALL,
            exact_types=['JobExecutor', 'JOB', 'JOB_EXECUTOR'],
            type_substrings=['Job'],
            expected_extension='.kjb',
        ),
        WorkflowCallRule(
            category=DependencyCategory.TRANSFORMATION_CALL,
            exact_types=['TRANS', 'TRANSFORMATION', 'TransExecutor'],
            expected_extension='.ktr',
        ),
    ])
    workflow_reference_keys: List[str] = Field(default_factory=lambda: [
        'trans_name', 'filename', 'specification', 'trans_object_id', 'job_object_id', 'jobname',
        'transname'
    ])
    # Keys holding a path; reduced to the base name without extension
    basename_keys: List[str] = Field(default_factory=lambda: ['filename'])
    workflow_extensions: List[str] = Field(default_factory=lambda: ['.ktr', '.kjb'])

    variable_type_markers: List[str] = Field(default_factory=lambda: ['variable', 'parameter'])
    setter_containers: List[str] = Field(default_factory=lambda: ['field', 'fields.field'])
    setter_name_keys: List[str] = Field(default_factory=lambda: ['name', 'variable_name'])
    setter_value_keys: List[str] = Field(default_factory=lambda: [
        'value', 'variable_value', 'default_value', 'field_name'
    ])
    variable_pattern: str = r"\$\{([^}]+)\}"

    def expected_extension(self, category: DependencyCategory) -> str:
        for rule in self.workflow_call_rules:
            if rule.category == category and rule.expected_extension:
                return rule.expected_extension
        return ""


DEFAULT_RULES = DependencyRules()


def load_rules(file_path: Optional[str] = None) -> DependencyRules:
    """
    Load dependency rules from a JSON file.

    Keys missing from the file keep their defaults. With no path the
    built-in defaults are returned.

    Raises:
        DependencyRulesError: If the file is missing, not JSON, or invalid
    """
    if not file_path:
        return DEFAULT_RULES

    rules_path = Path(file_path)
    if not rules_path.exists():
        raise DependencyRulesError(f"Dependency rules file not found: {file_path}")

    try:
        with open(rules_path, 'r', encoding='utf-8') as f:
            rules_data = json.load(f)
        rules = DependencyRules(**rules_data)
    except json.JSONDecodeError as e:
        raise DependencyRulesError(f"Invalid JSON in dependency rules file: {e}") from e
    except (TypeError, ValidationError) as e:
        raise DependencyRulesError(f"Invalid dependency rules in {file_path}: {e}") from e

    logger.info(f"Dependency rules loaded from {file_path}: "
                f"{len(rules.file_rules)} file rule(s), {len(rules.workflow_call_rules)} workflow call rule(s)")
    return rules
