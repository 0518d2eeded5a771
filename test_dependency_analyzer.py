"""
Tests for intra-document dependency analysis.
"""
from models import DependencyCategory, DocumentKind, WorkflowNode
from parsing.dependency_analyzer import DependencyAnalyzer, _IdCounter, strip_workflow_path
from parsing.document_reader import DocumentReader
from parsing.node_extractor import NodeExtractor


def _analyze(file_name, content, analyzer=None):
    kind, tree = DocumentReader().read(file_name, content)
    nodes = NodeExtractor().extract(tree, kind)
    return (analyzer or DependencyAnalyzer()).analyze(tree, kind, nodes)


def _node(step_type, properties, name='Node'):
    return WorkflowNode(id=name, name=name, step_type=step_type, properties=properties)


def test_transformation_dependencies(transformation_xml):
    dependencies = _analyze('load_customers.ktr', transformation_xml)

    assert [(d.origin, d.target, d.category) for d in dependencies.file_dependencies] == [
        ('Read CSV', '${INPUT_DIR}/customers.csv', DependencyCategory.FILE_INPUT),
    ]
    assert [(d.origin, d.target) for d in dependencies.database_dependencies] == [('Write DB', 'warehouse')]
    assert [(d.origin, d.target, d.category) for d in dependencies.variable_dependencies] == [
        ('Read CSV', 'INPUT_DIR', DependencyCategory.VARIABLE_USER),
    ]
    assert dependencies.sub_workflow_dependencies == []


def test_job_workflow_calls(job_xml):
    dependencies = _analyze('main_job.kjb', job_xml)

    assert [(d.origin, d.target, d.category) for d in dependencies.sub_workflow_dependencies] == [
        ('Load customers', 'load_customers', DependencyCategory.TRANSFORMATION_CALL),
        ('Run cleanup', 'cleanup_job', DependencyCategory.JOB_CALL),
    ]


def test_dependency_ids_are_unique(transformation_xml):
    dependencies = _analyze('load_customers.ktr', transformation_xml)
    ids = [d.id for d in dependencies.all_dependencies()]

    assert len(ids) == len(set(ids))
    assert ids[0] == 'file_input_0'


def test_variable_reference_in_any_property():
    """A ${name} inside free text yields one variable_user dependency."""
    analyzer = DependencyAnalyzer()
    node = _node('Dummy', {'description': ['Load to ${target_schema}.orders']})

    assert analyzer.find_variable_references(node.properties) == ['target_schema']

    content = b"""<transformation>
      <step><name>Load</name><type>Dummy</type><description>Load to ${target_schema}.orders</description></step>
    </transformation>"""
    variables = _analyze('vars.ktr', content).variable_dependencies
    assert [(d.target, d.category) for d in variables] == [('target_schema', DependencyCategory.VARIABLE_USER)]


def test_variable_scan_is_order_independent():
    analyzer = DependencyAnalyzer()
    forward = {'a': ['${B} and ${A}'], 'nested': [{'deep': ['${C}', '${A}']}]}
    backward = {'nested': [{'deep': ['${A}', '${C}']}], 'a': ['${A} and ${B}']}

    first_scan = analyzer.find_variable_references(forward)
    assert first_scan == ['A', 'B', 'C']
    assert analyzer.find_variable_references(forward) == first_scan
    assert analyzer.find_variable_references(backward) == first_scan


def test_variable_setters():
    content = b"""<transformation>
      <step>
        <name>Set vars</name>
        <type>SetVariable</type>
        <fields>
          <field><field_name>target</field_name><variable_name>TARGET_SCHEMA</variable_name></field>
          <field><variable_name></variable_name><field_name>ignored</field_name></field>
        </fields>
      </step>
    </transformation>"""
    variables = _analyze('set.ktr', content).variable_dependencies

    assert [(d.target, d.category, d.detail) for d in variables] == [
        ('TARGET_SCHEMA', DependencyCategory.VARIABLE_SETTER, 'target'),
    ]


def test_script_file_requires_known_extension():
    analyzer = DependencyAnalyzer()

    node = _node('ShellExecute', {'filename': ['/opt/etl/run.sh']})
    assert [d.category for d in analyzer._file_dependencies(node, _IdCounter())] == [DependencyCategory.SCRIPT_FILE]

    node = _node('ShellExecute', {'filename': ['/opt/etl/run.shell_notes']})
    assert analyzer._file_dependencies(node, _IdCounter()) == []


def test_excel_steps_keep_direction_and_excel_category():
    analyzer = DependencyAnalyzer()

    reader = _node('ExcelInput', {'filename': ['report.xlsx']})
    categories = [d.category for d in analyzer._file_dependencies(reader, _IdCounter())]
    assert categories == [DependencyCategory.FILE_INPUT, DependencyCategory.EXCEL_FILE]

    writer = _node('ExcelOutput', {'filename': ['summary.xlsx']})
    categories = [d.category for d in analyzer._file_dependencies(writer, _IdCounter())]
    assert categories == [DependencyCategory.FILE_OUTPUT, DependencyCategory.EXCEL_FILE]


def test_text_file_output_is_not_an_input():
    node = _node('TextFileOutput', {'file': [{'name': ['/out/customers']}]})
    categories = [d.category for d in DependencyAnalyzer()._file_dependencies(node, _IdCounter())]
    assert categories == [DependencyCategory.FILE_OUTPUT]


def test_first_workflow_rule_wins():
    """SubJob matches both the 'Sub' and 'Job' markers; the first rule decides."""
    analyzer = DependencyAnalyzer()
    content = b"""<job>
      <entries><entry><name>Child</name><type>SubJob</type><jobname>child</jobname></entry></entries>
    </job>"""
    calls = _analyze('parent.kjb', content, analyzer).sub_workflow_dependencies
    assert [d.category for d in calls] == [DependencyCategory.SUB_TRANSFORMATION]


def test_workflow_reference_key_priority():
    analyzer = DependencyAnalyzer()

    assert analyzer.workflow_reference({'filename': ['C:\\etl\\ETL_Orders.ktr'], 'jobname': ['x']}) == 'ETL_Orders'
    assert analyzer.workflow_reference({'trans_name': ['named'], 'filename': ['other.ktr']}) == 'named'
    assert analyzer.workflow_reference({'jobname': ['']}) is None


def test_strip_workflow_path():
    assert strip_workflow_path('${DIR}/sub/Load.KTR') == 'Load'
    assert strip_workflow_path('jobs\\nightly.kjb') == 'nightly'
    assert strip_workflow_path('plain') == 'plain'


def test_derive_step_connections_reads_every_block():
    content = b"""<transformation>
      <step><name>A</name></step><step><name>B</name></step><step><name>C</name></step>
      <order><hop><from>A</from><to>B</to></hop></order>
      <order><hop><from>B</from><to>C</to></hop></order>
      <hop><from>A</from><to>C</to></hop>
    </transformation>"""
    kind, tree = DocumentReader().read('blocks.ktr', content)
    edges = DependencyAnalyzer().derive_step_connections(tree, kind)

    assert [(e.id, e.source, e.target) for e in edges] == [
        ('hop_0_0', 'A', 'B'),
        ('hop_1_0', 'B', 'C'),
        ('direct_hop_0', 'A', 'C'),
    ]


def test_heuristics_never_fail_on_odd_shapes():
    node = _node('TextFileInput', {'file': [{'$': {'a': '1'}}], 'filename': [''], 'x': [[], {}]})
    dependencies = DependencyAnalyzer().analyze({}, DocumentKind.TRANSFORMATION, [node])
    assert dependencies.all_dependencies() == []


def test_get_variable_fields_are_not_setters():
    """Reading variables into fields only uses them."""
    content = b"""<transformation>
      <step>
        <name>Get vars</name>
        <type>GetVariable</type>
        <fields>
          <field><name>schema</name><variable>${TARGET_SCHEMA}</variable><type>String</type></field>
        </fields>
      </step>
    </transformation>"""
    variables = _analyze('get.ktr', content).variable_dependencies

    assert [(d.target, d.category) for d in variables] == [
        ('TARGET_SCHEMA', DependencyCategory.VARIABLE_USER),
    ]


def test_setter_needs_a_value():
    analyzer = DependencyAnalyzer()
    properties = {'field': [{'name': ['LOAD_DATE'], 'value': ['2024-01-01']}, {'name': ['EMPTY']}]}
    assert analyzer.extract_variable_definitions(properties) == [('LOAD_DATE', '2024-01-01')]
