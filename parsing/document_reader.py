"""
Document reader for Kettle files.

Turns raw content into a (DocumentKind, property tree) pair. Works purely on
in-memory content; reading files is the caller's job.
"""
import xml.etree.ElementTree as ET
import logging
from pathlib import PurePath
from typing import Any, Dict, Tuple, Union

from models import DocumentKind
from exceptions import MalformedDocumentError, UnrecognizedFormatError
from .property_tree import element_to_tree

logger = logging.getLogger(__name__)

EXTENSION_KINDS = {
    '.ktr': DocumentKind.TRANSFORMATION,
    '.kjb': DocumentKind.JOB,
}

ROOT_TAG_KINDS = {
    'transformation': DocumentKind.TRANSFORMATION,
    'job': DocumentKind.JOB,
}

SUPPORTED_EXTENSIONS = ('.ktr', '.kjb', '.xml')


class DocumentReader:
    """Detects the document kind and projects the XML into a property tree."""

    def read(self, file_name: str, content: Union[bytes, str]) -> Tuple[DocumentKind, Dict[str, Any]]:
        """
        Parse document content.

        Args:
            file_name: Original file name, used for extension-based detection
            content: Raw document content

        Returns:
            (kind, tree) where tree is the root element's property tree

        Raises:
            MalformedDocumentError: If the markup cannot be parsed
            UnrecognizedFormatError: If the kind cannot be determined
        """
        extension = PurePath(file_name).suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise UnrecognizedFormatError(f"Unsupported file type: {extension or '(none)'}", file_name)

        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            logger.warning(f"Malformed XML in {file_name}: {e}")
            raise MalformedDocumentError(f"XML parsing error: {e}", file_name) from e

        root_kind = ROOT_TAG_KINDS.get(root.tag)
        expected_kind = EXTENSION_KINDS.get(extension)

        if root_kind is None:
            if expected_kind is not None:
                raise UnrecognizedFormatError(f"Invalid {expected_kind.value} format: root element is <{root.tag}>", file_name)
            raise UnrecognizedFormatError("Unknown XML format - not a Pentaho transformation or job", file_name)

        if expected_kind is not None and expected_kind != root_kind:
            raise UnrecognizedFormatError(
                f"Extension {extension} expects a {expected_kind.value} but root element is <{root.tag}>",
                file_name
            )

        tree = element_to_tree(root)
        if not isinstance(tree, dict):
            # <transformation/> or text-only root
            tree = {}

        logger.debug(f"Read {file_name} as {root_kind.value}")
        return root_kind, tree
