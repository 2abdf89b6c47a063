from dataclasses import dataclass, field
from typing import List, Optional

from translation_reviewer.document import Node


@dataclass
class MissingKeys:
    """Dotted key paths present in only one of the two documents."""
    missing_in_source: List[str] = field(default_factory=list)
    missing_in_target: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.missing_in_source) + len(self.missing_in_target)


def find_missing_keys(source: Node, target: Node, path: Optional[List[str]] = None) -> MissingKeys:
    """
    Compares the keys of a target document against a source document, at any depth.

    A key holding a mapping on one side and a leaf on the other counts as present
    on both sides: it is neither reported nor descended into.

    Args:
        source: The source-language document.
        target: The target-language document.
        path: Ancestor keys of the two nodes being compared.

    Returns:
        MissingKeys: Paths missing in the source and paths missing in the target,
        in traversal order.
    """
    path = path or []
    result = MissingKeys()

    for key, source_value in source.children.items():
        key_path = ".".join(path + [key])
        if key not in target:
            result.missing_in_target.append(key_path)
            continue
        target_value = target[key]
        if isinstance(source_value, Node) and isinstance(target_value, Node):
            nested = find_missing_keys(source_value, target_value, path + [key])
            result.missing_in_source.extend(nested.missing_in_source)
            result.missing_in_target.extend(nested.missing_in_target)

    # Shared nested keys were already walked above.
    for key in target.children:
        if key not in source:
            result.missing_in_source.append(".".join(path + [key]))

    return result
