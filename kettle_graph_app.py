#!/usr/bin/env python3
"""
Kettle Graph Parser - Main Application
Command line driver that turns Pentaho Kettle files into workflow graphs.

Reads a single .ktr/.kjb file or a whole folder, runs the parsing engine and
writes the resulting graph as JSON into the output directory.
"""

import sys
import json
import argparse
from pathlib import Path
from typing import List, Optional, Tuple
import logging

from config import settings, ensure_directories
from exceptions import DocumentParseError, KettleParserError
from parsing.dependency_rules import DependencyRules, load_rules
from parsing.document_reader import SUPPORTED_EXTENSIONS
from parsing.kettle_parser import KettleParser
from analysis.graph_assembler import analyze_workflow, parse_folder

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('kettle_graph.log'),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)


class KettleGraphApp:
    """Main application class for Kettle graph extraction."""

    def __init__(self, rules: Optional[DependencyRules] = None, max_workers: int = 0,
                 output_directory: Optional[str] = None):
        self.rules = rules
        self.max_workers = max_workers
        self.parser = KettleParser(rules, default_position=settings.default_position)
        if output_directory:
            self.output_base = Path(output_directory)
            self.output_base.mkdir(parents=True, exist_ok=True)
        else:
            self.output_base = Path(settings.output_directory)
            ensure_directories()

    def parse_single_file(self, file_path: str) -> dict:
        """
        Parse one Kettle file and save its workflow graph.

        Args:
            file_path: Path to the .ktr/.kjb/.xml file

        Returns:
            Dictionary with the parse summary
        """
        kettle_file = Path(file_path)

        if not kettle_file.exists():
            raise FileNotFoundError(f"Kettle file not found: {file_path}")

        document = self.parser.parse(kettle_file.name, kettle_file.read_bytes())
        stats = analyze_workflow(document)

        logger.info(f"  [OK] {document.kind}: {document.name}")
        logger.info(f"       - Nodes: {stats.total_nodes}")
        logger.info(f"       - Hops: {stats.total_edges}")
        logger.info(f"       - Dependencies: {len(document.dependencies.all_dependencies())}")

        output_path = self.output_base / (kettle_file.stem + "_graph.json")
        payload = {
            'workflow': document.model_dump(by_alias=True),
            'statistics': stats.model_dump()
        }
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2)
        logger.info(f"  [SAVED] Workflow graph: {output_path}")

        return {
            'success': True,
            'file': kettle_file.name,
            'output': str(output_path),
            'failures': 0
        }

    def parse_folder(self, folder_path: str) -> dict:
        """
        Parse every Kettle file in a folder and save the folder graph.

        Args:
            folder_path: Path to folder containing .ktr/.kjb/.xml files

        Returns:
            Dictionary with the parse summary
        """
        folder = Path(folder_path)

        if not folder.exists() or not folder.is_dir():
            raise NotADirectoryError(f"Folder not found: {folder_path}")

        files = self._read_folder(folder)
        if not files:
            logger.warning(f"No Kettle files found in: {folder_path}")

        logger.info(f"Found {len(files)} Kettle file(s) in: {folder_path}")
        logger.info("=" * 60)

        graph = parse_folder(folder.name, files, rules=self.rules, max_workers=self.max_workers,
                             default_position=settings.default_position)

        for failure in graph.failures:
            logger.error(f"[FAILED] {failure.file_name} - {failure.message}")

        output_path = self.output_base / (folder.name + "_folder_graph.json")
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(graph.to_dict(), f, indent=2)
        logger.info(f"[SAVED] Folder graph: {output_path}")

        metadata = graph.metadata
        logger.info("=" * 60)
        logger.info(f"Files parsed: {metadata.total_files} "
                    f"({metadata.transformations} transformation(s), {metadata.jobs} job(s))")
        logger.info(f"Dependencies: {metadata.dependencies}")
        for category, count in sorted(metadata.dependency_types.items()):
            logger.info(f"  - {category}: {count}")
        logger.info(f"Failed files: {metadata.failed_files}")

        return {
            'success': metadata.failed_files == 0,
            'folder': folder.name,
            'output': str(output_path),
            'failures': metadata.failed_files
        }

    def _read_folder(self, folder: Path) -> List[Tuple[str, bytes]]:
        """Read supported files, sorted by name."""
        paths = sorted(
            (p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS),
            key=lambda p: p.name
        )
        return [(p.name, p.read_bytes()) for p in paths]


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parser = argparse.ArgumentParser(
        description='Extract workflow graphs from Pentaho Kettle files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Parse a single transformation
  kettle-graph input/load_customers.ktr

  # Parse all files in a folder and resolve their dependencies
  kettle-graph input/

  # Use four worker processes and custom dependency rules
  kettle-graph input/ --workers 4 --rules rules.json
        '''
    )

    parser.add_argument(
        'input',
        help='Path to a .ktr/.kjb file or a folder containing them'
    )

    parser.add_argument(
        '--output',
        default=None,
        help=f'Output directory for graph files (default: {settings.output_directory})'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    parser.add_argument(
        '--workers',
        type=int,
        default=settings.max_workers,
        help='Worker processes for folder parsing (0 or 1 parses sequentially)'
    )

    parser.add_argument(
        '--rules',
        type=str,
        default=settings.dependency_rules_file,
        help='Path to a dependency rules JSON file'
    )

    args = parser.parse_args(argv)

    # Set logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        rules = load_rules(args.rules)
        app = KettleGraphApp(rules=rules, max_workers=args.workers, output_directory=args.output)

        input_path = Path(args.input)

        if input_path.is_file():
            logger.info("Mode: Single file")
            result = app.parse_single_file(str(input_path))
        elif input_path.is_dir():
            logger.info("Mode: Folder")
            result = app.parse_folder(str(input_path))
        else:
            logger.error(f"Input not found: {args.input}")
            return 1

    except DocumentParseError as e:
        logger.error(f"[FAILED] {e}")
        return 1
    except KettleParserError as e:
        logger.error(f"Error: {e}")
        return 1

    return 0 if result['success'] else 1


if __name__ == '__main__':
    sys.exit(main())
