import copy
import logging
from typing import List

from translation_reviewer.document import Leaf, Node

logger = logging.getLogger(__name__)


def set_at_path(document: Node, path: List[str], value: str) -> Node:
    """
    Return a copy of ``document`` with the value at ``path`` replaced by ``value``.

    The caller's document is never modified. When the path does not resolve
    (a segment is missing or is not a mapping, or the final key is absent) the
    condition is logged and the unmodified copy is returned instead of raising.

    Args:
        document: The document to patch.
        path: Key path of the value to replace.
        value: The new string value.

    Returns:
        Node: The patched copy.
    """
    new_document = copy.deepcopy(document)
    if not path:
        logger.error("Cannot update modified data with an empty path.")
        return new_document

    current = new_document
    for segment in path[:-1]:
        child = current.children.get(segment)
        if not isinstance(child, Node):
            logger.error("Path segment '%s' not found in modified data.", segment)
            return new_document
        current = child

    last_key = path[-1]
    if last_key in current:
        current.children[last_key] = Leaf(value)
        logger.debug("Updated value at path: %s", " > ".join(path))
    else:
        logger.error("Last key '%s' not found in modified data.", last_key)

    return new_document
