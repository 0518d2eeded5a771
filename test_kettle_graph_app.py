"""
Tests for the command line driver.
"""
import json

from kettle_graph_app import main


def _write_folder(folder, files):
    folder.mkdir()
    for name, content in files:
        (folder / name).write_bytes(content)
    return folder


def test_single_file(tmp_path, transformation_xml):
    source = tmp_path / 'load_customers.ktr'
    source.write_bytes(transformation_xml)
    output = tmp_path / 'out'

    assert main([str(source), '--output', str(output)]) == 0

    data = json.loads((output / 'load_customers_graph.json').read_text())
    assert data['workflow']['name'] == 'load_customers'
    assert data['statistics']['entry_points'] == ['Read CSV']


def test_folder(tmp_path, folder_files):
    folder = _write_folder(tmp_path / 'etl', folder_files + [('README.md', b'# not kettle')])
    output = tmp_path / 'out'

    assert main([str(folder), '--output', str(output)]) == 0

    data = json.loads((output / 'etl_folder_graph.json').read_text())
    assert data['metadata']['total_files'] == 3
    assert data['metadata']['dependencies'] == 2


def test_folder_with_failures_exits_nonzero(tmp_path, folder_files):
    folder = _write_folder(tmp_path / 'etl', folder_files + [('broken.ktr', b'<transformation>')])
    output = tmp_path / 'out'

    assert main([str(folder), '--output', str(output)]) == 1

    data = json.loads((output / 'etl_folder_graph.json').read_text())
    assert data['failures'][0]['file_name'] == 'broken.ktr'


def test_malformed_single_file_exits_nonzero(tmp_path):
    source = tmp_path / 'broken.kjb'
    source.write_bytes(b'<job>')
    assert main([str(source), '--output', str(tmp_path / 'out')]) == 1


def test_missing_rules_file_exits_nonzero(tmp_path, transformation_xml):
    source = tmp_path / 'load_customers.ktr'
    source.write_bytes(transformation_xml)
    assert main([str(source), '--rules', str(tmp_path / 'missing.json'), '--output', str(tmp_path / 'out')]) == 1


def test_missing_input_exits_nonzero(tmp_path):
    assert main([str(tmp_path / 'nowhere'), '--output', str(tmp_path / 'out')]) == 1
