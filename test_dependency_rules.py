"""
Tests for loading dependency rule tables from JSON.
"""
import json

import pytest

from exceptions import DependencyRulesError
from models import DependencyCategory, WorkflowNode
from parsing.dependency_analyzer import DependencyAnalyzer, _IdCounter
from parsing.dependency_rules import DEFAULT_RULES, load_rules


def test_no_path_returns_defaults():
    assert load_rules(None) is DEFAULT_RULES


def test_partial_file_keeps_other_defaults(tmp_path):
    rules_file = tmp_path / 'rules.json'
    rules_file.write_text(json.dumps({'database_keys': ['datasource']}))

    rules = load_rules(str(rules_file))
    assert rules.database_keys == ['datasource']
    assert rules.workflow_reference_keys == DEFAULT_RULES.workflow_reference_keys


def test_custom_rules_change_matching(tmp_path):
    """New tool variants only need a rules update."""
    rules_file = tmp_path / 'rules.json'
    rules_file.write_text(json.dumps({
        'file_rules': [{
            'category': 'file_input',
            'type_markers': ['parquet'],
            'keys': ['location'],
        }]
    }))
    analyzer = DependencyAnalyzer(load_rules(str(rules_file)))
    node = WorkflowNode(id='P', name='P', step_type='ParquetReader', properties={'location': ['s3://bucket/x']})

    dependencies = analyzer._file_dependencies(node, _IdCounter())
    assert [(d.target, d.category) for d in dependencies] == [('s3://bucket/x', DependencyCategory.FILE_INPUT)]


def test_expected_extension_per_category():
    assert DEFAULT_RULES.expected_extension(DependencyCategory.JOB_CALL) == '.kjb'
    assert DEFAULT_RULES.expected_extension(DependencyCategory.TRANSFORMATION_CALL) == '.ktr'
    assert DEFAULT_RULES.expected_extension(DependencyCategory.FILE_REFERENCE) == ''


def test_missing_file_raises(tmp_path):
    with pytest.raises(DependencyRulesError):
        load_rules(str(tmp_path / 'missing.json'))


def test_invalid_json_raises(tmp_path):
    rules_file = tmp_path / 'rules.json'
    rules_file.write_text('{not json')
    with pytest.raises(DependencyRulesError):
        load_rules(str(rules_file))


def test_invalid_structure_raises(tmp_path):
    rules_file = tmp_path / 'rules.json'
    rules_file.write_text(json.dumps({'file_rules': [{'category': 'nonsense'}]}))
    with pytest.raises(DependencyRulesError):
        load_rules(str(rules_file))
