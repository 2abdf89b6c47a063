"""
Review session state machine.

A session owns the ordered translation pairs, the cursor, the linear undo
history and the modified document corrections are written into. Every
operation runs to completion on the single session object; callers persist
the session afterwards.
"""
import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from translation_reviewer.document import Node
from translation_reviewer.document_patcher import set_at_path
from translation_reviewer.errors import ReviewError
from translation_reviewer.pair_extractor import PairStatus, TranslationPair, extract_pairs
from translation_reviewer.tree_compare import MissingKeys, find_missing_keys

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_LANGUAGE = "en"
ALL_SECTIONS = "all"
NOT_FOUND = -1


@dataclass
class HistoryEntry:
    """State of one pair immediately before a mutating action on it."""
    index: int
    previous_status: PairStatus
    previous_correction: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'index': self.index, 'status': self.previous_status.value}
        if self.previous_correction is not None:
            data['correction'] = self.previous_correction
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            index=int(data['index']),
            previous_status=PairStatus(data['status']),
            previous_correction=data.get('correction'),
        )


@dataclass
class SectionStats:
    total: int
    reviewed: int
    passed: int

    @property
    def percent(self) -> int:
        return round(100 * self.reviewed / self.total) if self.total else 0

    @property
    def status(self) -> str:
        if self.reviewed == self.total and self.passed == self.total:
            return "complete"
        if self.reviewed > 0:
            return "in-progress"
        return "not-started"


@dataclass
class ReviewSession:
    pairs: List[TranslationPair]
    modified_document: Node
    target_language: str
    source_language: str = DEFAULT_SOURCE_LANGUAGE
    cursor: int = 0
    history: List[HistoryEntry] = field(default_factory=list)
    sections: List[str] = field(default_factory=list)
    section_filter: str = ALL_SECTIONS
    missing_keys: MissingKeys = field(default_factory=MissingKeys)
    # Correction edit buffer
    editing: bool = False
    edit_buffer: str = ""
    edit_index: Optional[int] = None

    # --- Derived state ---

    @property
    def current_pair(self) -> TranslationPair:
        return self.pairs[self.cursor]

    @property
    def is_last_pair(self) -> bool:
        return self.cursor == len(self.pairs) - 1

    @property
    def total_count(self) -> int:
        return len(self.pairs)

    @property
    def reviewed_count(self) -> int:
        return sum(1 for pair in self.pairs if pair.status != PairStatus.PENDING)

    @property
    def progress_percent(self) -> float:
        if not self.pairs:
            return 0.0
        return 100 * self.reviewed_count / self.total_count

    def section_stats(self) -> Dict[str, SectionStats]:
        """Per-section review counts, keyed by section in sorted order."""
        stats: Dict[str, SectionStats] = {}
        for section in self.sections:
            section_pairs = [pair for pair in self.pairs if pair.section == section]
            stats[section] = SectionStats(
                total=len(section_pairs),
                reviewed=sum(1 for pair in section_pairs if pair.status != PairStatus.PENDING),
                passed=sum(1 for pair in section_pairs if pair.status == PairStatus.PASSED),
            )
        return stats

    def corrected_pairs(self, needs_review_only: bool = False) -> Dict[str, List[int]]:
        """
        Indices of pairs carrying a correction, grouped by section.

        Args:
            needs_review_only: Keep only pairs that are not yet approved.

        Returns:
            Dict[str, List[int]]: Section to pair indices; sections without a
            matching pair are left out.
        """
        grouped: Dict[str, List[int]] = {}
        for index, pair in enumerate(self.pairs):
            if pair.correction is None:
                continue
            if needs_review_only and pair.status == PairStatus.PASSED:
                continue
            grouped.setdefault(pair.section, []).append(index)
        return {section: grouped[section] for section in sorted(grouped)}

    # --- Navigation ---

    def advance(self):
        if self.cursor < len(self.pairs) - 1:
            self.cursor += 1

    def rewind(self):
        if self.cursor > 0:
            self.cursor -= 1

    def jump_to_section(self, section: str):
        """Set the section filter and move to the first pair of that section."""
        if section != ALL_SECTIONS and section not in self.sections:
            raise ReviewError(f"Unknown section '{section}'.")
        self.section_filter = section
        if section == ALL_SECTIONS:
            return
        for index, pair in enumerate(self.pairs):
            if pair.section == section:
                self.cursor = index
                return

    def find_next_pending(self, from_index: Optional[int] = None, section_filter: Optional[str] = None) -> int:
        """
        Find the first pending pair after ``from_index``, without wrapping around.

        Args:
            from_index: Index to search after; defaults to the cursor.
            section_filter: Section to restrict to; defaults to the active filter.

        Returns:
            int: The pair index, or NOT_FOUND.
        """
        if from_index is None:
            from_index = self.cursor
        if section_filter is None:
            section_filter = self.section_filter

        for index in range(from_index + 1, len(self.pairs)):
            pair = self.pairs[index]
            if pair.status != PairStatus.PENDING:
                continue
            if section_filter != ALL_SECTIONS and pair.section != section_filter:
                continue
            return index
        return NOT_FOUND

    def jump_to_next_pending(self) -> bool:
        next_index = self.find_next_pending()
        if next_index == NOT_FOUND:
            return False
        self.cursor = next_index
        return True

    def find_pair_index_by_path(self, path: List[str]) -> int:
        for index, pair in enumerate(self.pairs):
            if pair.path == list(path):
                return index
        return NOT_FOUND

    def jump_to_path(self, path: List[str]) -> bool:
        index = self.find_pair_index_by_path(path)
        if index == NOT_FOUND:
            return False
        self.cursor = index
        return True

    # --- Review decisions ---

    def pass_pair(self, index: Optional[int] = None):
        """Approve a pair, keeping any correction it already carries."""
        index = self._resolve_index(index)
        pair = self.pairs[index]
        self._record(index, pair)

        # The correction may never have reached the document if it was undone.
        if pair.correction is not None:
            self._patch(pair.path, pair.correction)
        pair.status = PairStatus.PASSED

        if index == self.cursor:
            self.advance()

    def enter_correction(self, index: Optional[int] = None) -> str:
        """Open the edit buffer with the current correction or the original text."""
        index = self._resolve_index(index)
        pair = self.pairs[index]
        self.editing = True
        self.edit_index = index
        self.edit_buffer = pair.correction if pair.correction is not None else pair.target_text
        return self.edit_buffer

    def submit_correction(self, new_text: str, index: Optional[int] = None):
        """
        Replace a pair's translation.

        Text identical to the original translation counts as an approval and
        leaves the document untouched.
        """
        index = self._resolve_edit_index(index)
        pair = self.pairs[index]
        self._record(index, pair)

        if new_text == pair.target_text:
            pair.status = PairStatus.PASSED
            pair.correction = None
        else:
            pair.status = PairStatus.FAILED
            pair.correction = new_text
            self._patch(pair.path, new_text)
            logger.info("Applied correction at %s.", " > ".join(pair.path))

        self._close_edit()
        if index == self.cursor:
            self.advance()

    def cancel_correction(self, index: Optional[int] = None):
        """Close the edit buffer and approve the pair as it stands."""
        index = self._resolve_edit_index(index)
        pair = self.pairs[index]
        self._record(index, pair)

        pair.status = PairStatus.PASSED
        if pair.correction is not None:
            self._patch(pair.path, pair.correction)

        self._close_edit()
        if index == self.cursor:
            self.advance()

    def undo(self) -> Optional[HistoryEntry]:
        """Revert the most recent decision. Returns the popped entry, if any."""
        if not self.history:
            return None

        entry = self.history.pop()
        pair = self.pairs[entry.index]

        # The document only holds the live correction, so roll that slot back
        # to the original text first, then forward to the earlier correction.
        if pair.status == PairStatus.FAILED and pair.correction is not None:
            self._patch(pair.path, pair.target_text)
        if entry.previous_status == PairStatus.FAILED and entry.previous_correction is not None:
            self._patch(pair.path, entry.previous_correction)

        pair.status = entry.previous_status
        pair.correction = entry.previous_correction
        self.cursor = entry.index
        self._close_edit()
        logger.info("Undid last decision on pair %d.", entry.index)
        return entry

    # --- Helpers ---

    def _resolve_index(self, index: Optional[int]) -> int:
        if index is None:
            return self.cursor
        if not 0 <= index < len(self.pairs):
            raise ReviewError(f"Pair index {index} is out of range (0-{len(self.pairs) - 1}).")
        return index

    def _resolve_edit_index(self, index: Optional[int]) -> int:
        # An open edit buffer belongs to the pair it was opened on.
        if index is None and self.editing and self.edit_index is not None:
            return self.edit_index
        return self._resolve_index(index)

    def _record(self, index: int, pair: TranslationPair):
        self.history.append(HistoryEntry(index, pair.status, pair.correction))

    def _patch(self, path: List[str], value: str):
        self.modified_document = set_at_path(self.modified_document, path, value)

    def _close_edit(self):
        self.editing = False
        self.edit_buffer = ""
        self.edit_index = None


def create_session(
        source: Node,
        target: Node,
        target_language: str,
        source_language: str = DEFAULT_SOURCE_LANGUAGE
) -> ReviewSession:
    """
    Build a fresh review session from the two uploaded documents.

    Raises:
        ReviewError: If the target language tag is empty or equals the source tag.
        NoMatchingPairsError: If the documents share no translatable string.
    """
    target_language = target_language.strip()
    if not target_language:
        raise ReviewError("Please enter a target language.")
    if target_language == source_language:
        raise ReviewError(f"Target language must differ from the source language '{source_language}'.")

    missing_keys = find_missing_keys(source, target)
    if missing_keys.total:
        logger.warning(
            "Found %d keys that don't match between files (%d missing in source, %d missing in target).",
            missing_keys.total,
            len(missing_keys.missing_in_source),
            len(missing_keys.missing_in_target)
        )

    pairs, sections = extract_pairs(source, target, target_language)

    combined = Node({source_language: source, target_language: target})
    return ReviewSession(
        pairs=pairs,
        modified_document=copy.deepcopy(combined),
        target_language=target_language,
        source_language=source_language,
        sections=sections,
        missing_keys=missing_keys,
    )
