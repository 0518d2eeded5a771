"""
Property tree helpers.

Kettle XML is projected into a plain nested structure the way xml2js does it:

- an element with no attributes and no child elements becomes its text
  ('' when empty)
- any other element becomes a dict: child elements grouped by tag into
  ordered lists, attributes under '$', non-blank text under '_'

Every value in the tree is therefore a str, a list or a dict, which keeps the
structure JSON-serializable and lets recursive scans stay total.
"""
import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterator, List, Optional, Union

PropertyTree = Union[str, List[Any], Dict[str, Any]]

ATTRIBUTES_KEY = '$'
TEXT_KEY = '_'


def element_to_tree(element: ET.Element) -> PropertyTree:
    """Convert an ElementTree element into a property tree.

    Walks the element with an explicit stack so nesting depth is not bounded
    by the interpreter's recursion limit.
    """
    converted: Dict[int, PropertyTree] = {}
    stack = [(element, False)]
    while stack:
        current, expanded = stack.pop()
        children = list(current)
        if children and not expanded:
            stack.append((current, True))
            stack.extend((child, False) for child in reversed(children))
            continue
        converted[id(current)] = _build_node(current, children, converted)
    return converted[id(element)]


def _build_node(element: ET.Element, children: List[ET.Element],
                converted: Dict[int, PropertyTree]) -> PropertyTree:
    text = element.text or ''

    if not element.attrib and not children:
        return text

    node: Dict[str, Any] = {}
    if element.attrib:
        node[ATTRIBUTES_KEY] = dict(element.attrib)

    for child in children:
        node.setdefault(child.tag, []).append(converted.pop(id(child)))

    # Mixed content: keep the element's own text alongside its children
    mixed_text = text + ''.join(child.tail or '' for child in children)
    if mixed_text.strip():
        node[TEXT_KEY] = mixed_text.strip()

    return node


def first(value: Any) -> Any:
    """Unwrap the first element of a list value; other values pass through."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def text_of(value: Any) -> Optional[str]:
    """Return the text carried by a tree value, or None if it is not textual."""
    value = first(value)
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get(TEXT_KEY), str):
        return value[TEXT_KEY]
    return None


def get_text(tree: Any, key: str, default: str = '') -> str:
    """Text of tree[key] stripped, or default when absent/not textual/blank."""
    if not isinstance(tree, dict):
        return default
    text = text_of(tree.get(key))
    if text is None or not text.strip():
        return default
    return text.strip()


def resolve_path(tree: Any, path: str) -> Optional[str]:
    """
    Resolve a dotted key path (e.g. 'file.name') to a non-empty text value.

    Each segment descends into the first element of a list value.
    """
    current = tree
    for segment in path.split('.'):
        current = first(current)
        if not isinstance(current, dict) or segment not in current:
            return None
        current = current[segment]

    text = text_of(current)
    if text is None or not text.strip():
        return None
    return text.strip()


def child_list(tree: Any, key: str) -> List[Any]:
    """Return tree[key] as a list (empty when missing)."""
    if not isinstance(tree, dict):
        return []
    value = tree.get(key)
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def iter_strings(tree: Any) -> Iterator[str]:
    """Yield every string value in the tree (dict keys are not yielded)."""
    stack = [tree]
    while stack:
        current = stack.pop()
        if isinstance(current, str):
            yield current
        elif isinstance(current, dict):
            stack.extend(reversed(list(current.values())))
        elif isinstance(current, (list, tuple)):
            stack.extend(reversed(current))
