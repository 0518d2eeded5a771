"""
Data models for the Kettle workflow graph.
"""
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field, JsonValue
from enum import Enum


class DocumentKind(str, Enum):
    """Kettle document kinds."""
    TRANSFORMATION = "transformation"
    JOB = "job"


class NodeKind(str, Enum):
    """Coarse node kinds."""
    STEP = "step"
    JOB_ENTRY = "job-entry"
    START = "start"
    END = "end"


class DependencyCategory(str, Enum):
    """Dependency categories discovered by inference."""
    STEP_HOP = "step_hop"
    FILE_INPUT = "file_input"
    FILE_OUTPUT = "file_output"
    SCRIPT_FILE = "script_file"
    EXCEL_FILE = "excel_file"
    DATABASE_CONNECTION = "database_connection"
    SUB_TRANSFORMATION = "sub_transformation"
    JOB_CALL = "job_call"
    TRANSFORMATION_CALL = "transformation_call"
    VARIABLE_SETTER = "variable_setter"
    VARIABLE_USER = "variable_user"
    FILE_REFERENCE = "file_reference"


WORKFLOW_CALL_CATEGORIES = (
    DependencyCategory.SUB_TRANSFORMATION,
    DependencyCategory.JOB_CALL,
    DependencyCategory.TRANSFORMATION_CALL,
)


class GraphModel(BaseModel):
    """Base for all graph records: immutable, serializable by alias."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True)


class Position(GraphModel):
    x: int = 100
    y: int = 100


class WorkflowNode(GraphModel):
    """A step (transformation) or an entry (job)."""
    id: str
    name: str
    type: NodeKind = NodeKind.STEP
    step_type: str = "unknown"
    position: Position = Field(default_factory=Position)
    properties: Dict[str, JsonValue] = Field(default_factory=dict)


class WorkflowEdge(GraphModel):
    """A hop between two nodes of the same document."""
    id: str
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    enabled: bool = True
    condition: Optional[str] = None
    type: str = "hop"


class DatabaseConnection(GraphModel):
    name: str
    type: str = ""
    server: Optional[str] = None
    database: Optional[str] = None
    port: Optional[str] = None
    username: Optional[str] = None


class WorkflowParameter(GraphModel):
    name: str
    default_value: str = ""
    description: str = ""


class WorkflowMetadata(GraphModel):
    created: Optional[str] = None
    modified: Optional[str] = None
    version: Optional[str] = None
    author: Optional[str] = None


class Dependency(GraphModel):
    """A reference discovered heuristically inside one document."""
    id: str
    origin: str
    target: str
    category: DependencyCategory
    detail: str = ""
    node_name: Optional[str] = None
    step_type: Optional[str] = None


class DependencySet(GraphModel):
    """Per-document dependencies grouped by family."""
    step_connections: List[WorkflowEdge] = Field(default_factory=list)
    file_dependencies: List[Dependency] = Field(default_factory=list)
    database_dependencies: List[Dependency] = Field(default_factory=list)
    variable_dependencies: List[Dependency] = Field(default_factory=list)
    sub_workflow_dependencies: List[Dependency] = Field(default_factory=list)

    def all_dependencies(self) -> List[Dependency]:
        return (
            list(self.file_dependencies)
            + list(self.database_dependencies)
            + list(self.variable_dependencies)
            + list(self.sub_workflow_dependencies)
        )


class WorkflowDocument(GraphModel):
    """A parsed transformation or job."""
    name: str
    kind: DocumentKind
    file_name: str = ""
    description: str = ""
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    database_connections: List[DatabaseConnection] = Field(default_factory=list)
    parameters: Dict[str, WorkflowParameter] = Field(default_factory=dict)
    metadata: WorkflowMetadata = Field(default_factory=WorkflowMetadata)
    dependencies: DependencySet = Field(default_factory=DependencySet)


class WorkflowStatistics(GraphModel):
    """Structural statistics for one document."""
    total_nodes: int = 0
    total_edges: int = 0
    node_types: Dict[str, int] = Field(default_factory=dict)
    edge_types: Dict[str, int] = Field(default_factory=dict)
    entry_points: List[str] = Field(default_factory=list)
    end_points: List[str] = Field(default_factory=list)
    isolated_nodes: List[str] = Field(default_factory=list)


class WorkflowChunk(GraphModel):
    """A connected slice of a workflow handed to summarizers."""
    id: str
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)


class FileDependency(GraphModel):
    """A resolved dependency between two files of the same batch."""
    id: str
    source_file: str = Field(alias="from")
    target_file: str = Field(alias="to")
    category: DependencyCategory
    source_step: Optional[str] = None
    reference: str = ""
    match: str = "exact"


class WorkflowFile(GraphModel):
    file_name: str
    kind: DocumentKind
    size: int = 0
    document: WorkflowDocument


class ParseFailure(GraphModel):
    file_name: str
    error_kind: str
    message: str


class FolderMetadata(GraphModel):
    total_files: int = 0
    transformations: int = 0
    jobs: int = 0
    dependencies: int = 0
    failed_files: int = 0
    dependency_types: Dict[str, int] = Field(default_factory=dict)
    parsed: str = ""


class FolderStatistics(GraphModel):
    """File-level structure of a folder graph."""
    entry_points: List[str] = Field(default_factory=list)
    end_points: List[str] = Field(default_factory=list)
    intermediate_files: List[str] = Field(default_factory=list)


class FolderGraph(GraphModel):
    """All documents of one upload batch plus their file-level dependencies."""
    folder_name: str
    files: List[WorkflowFile] = Field(default_factory=list)
    dependencies: List[FileDependency] = Field(default_factory=list)
    failures: List[ParseFailure] = Field(default_factory=list)
    metadata: FolderMetadata = Field(default_factory=FolderMetadata)
    statistics: FolderStatistics = Field(default_factory=FolderStatistics)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
