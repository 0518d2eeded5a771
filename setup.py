"""
Setup script for Kettle Graph Parser.
"""
from setuptools import setup, find_packages
import os

# Read the README file
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Kettle Graph Parser - Turn Pentaho Kettle transformations and jobs into dependency graphs"

# Read requirements
def read_requirements():
    requirements_path = os.path.join(os.path.dirname(__file__), 'requirements.txt')
    if os.path.exists(requirements_path):
        with open(requirements_path, 'r', encoding='utf-8') as f:
            return [line.strip() for line in f if line.strip() and not line.startswith('#')]
    return []

setup(
    name="kettle-graph-parser",
    version="1.0.0",
    description="Parse Pentaho Kettle files (.ktr/.kjb) into workflow and cross-file dependency graphs",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=["parsing", "parsing.*", "analysis", "analysis.*"]),
    py_modules=["models", "config", "exceptions", "kettle_graph_app"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Database",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "kettle-graph=kettle_graph_app:main",
        ],
    },
    include_package_data=True,
    keywords="pentaho, kettle, pdi, etl, data-engineering, lineage, dependency-graph",
)
