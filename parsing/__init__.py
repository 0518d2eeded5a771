"""
Kettle Document Parsing Module.

This module parses Pentaho Kettle transformations (.ktr) and jobs (.kjb) into
workflow graphs: nodes, hops, declared connections and parameters, and the
dependencies each document carries.

Usage:
    from parsing.kettle_parser import KettleParser

    parser = KettleParser()
    document = parser.parse('load_customers.ktr', content)
"""

from .kettle_parser import KettleParser
from .dependency_analyzer import DependencyAnalyzer
from .dependency_rules import DEFAULT_RULES, DependencyRules, load_rules

__all__ = ["KettleParser", "DependencyAnalyzer", "DependencyRules", "DEFAULT_RULES", "load_rules"]

# Version info
__version__ = "1.0.0"
