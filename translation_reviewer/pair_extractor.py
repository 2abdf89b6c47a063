import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from translation_reviewer.document import Leaf, Node
from translation_reviewer.errors import NoMatchingPairsError

logger = logging.getLogger(__name__)


class PairStatus(str, Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


@dataclass
class TranslationPair:
    """One reviewable source/target string pair."""
    # Key path inside the modified document, starting with the target language tag.
    path: List[str]
    source_text: str
    target_text: str
    section: str
    status: PairStatus = PairStatus.PENDING
    correction: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the field names of stored sessions."""
        data = {
            'path': list(self.path),
            'english': self.source_text,
            'targetText': self.target_text,
            'status': self.status.value,
            'section': self.section,
        }
        if self.correction is not None:
            data['correction'] = self.correction
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranslationPair":
        return cls(
            path=list(data['path']),
            source_text=data['english'],
            target_text=data['targetText'],
            section=data['section'],
            status=PairStatus(data['status']),
            correction=data.get('correction'),
        )


def extract_pairs(
        source: Node,
        target: Node,
        target_language: str
) -> Tuple[List[TranslationPair], List[str]]:
    """
    Walks both documents in lock-step and collects every matching string pair.

    Keys missing from the target are skipped, as is any key whose values are not
    both strings or both mappings.

    Args:
        source: The source-language document.
        target: The target-language document.
        target_language: Tag prefixed to every pair path.

    Returns:
        A tuple of the pairs in source traversal order and the sorted distinct sections.

    Raises:
        NoMatchingPairsError: If no pair was found.
    """
    pairs: List[TranslationPair] = []
    sections = set()

    def walk(source_node: Node, target_node: Node, ancestors: List[str]):
        for key, source_value in source_node.children.items():
            if key not in target_node:
                continue
            target_value = target_node[key]
            section = key if not ancestors else ancestors[0]

            if isinstance(source_value, Leaf) and isinstance(target_value, Leaf):
                pairs.append(TranslationPair(
                    path=[target_language] + ancestors + [key],
                    source_text=source_value.text,
                    target_text=target_value.text,
                    section=section,
                ))
                sections.add(section)
            elif isinstance(source_value, Node) and isinstance(target_value, Node):
                walk(source_value, target_value, ancestors + [key])

    walk(source, target, [])

    if not pairs:
        raise NoMatchingPairsError()

    logger.info("Extracted %d text pairs across %d sections.", len(pairs), len(sections))
    return pairs, sorted(sections)
