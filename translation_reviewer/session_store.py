"""
Durable local storage for the review session.

The store is a single JSON file used as a string key-value map, mirroring
browser local storage: each of the five session values is kept as text under
a fixed key. The key names are part of the on-disk format and must not change.
"""
import json
import logging
import os
from typing import Dict, Optional

import jsonschema

from translation_reviewer.document import Node, from_json, to_json
from translation_reviewer.export_builder import build_export
from translation_reviewer.pair_extractor import TranslationPair
from translation_reviewer.review_session import DEFAULT_SOURCE_LANGUAGE, HistoryEntry, ReviewSession

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    'MODIFIED_DATA': "translation-reviewer-modified-data",
    'CURRENT_PAIRS': "translation-reviewer-current-pairs",
    'CURRENT_INDEX': "translation-reviewer-current-index",
    'HISTORY': "translation-reviewer-history",
    'TARGET_LANGUAGE': "translation-reviewer-target-language",
}

STATUS_SCHEMA = {"enum": ["pending", "passed", "failed"]}

PAIRS_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "path": {"type": "array", "items": {"type": "string"}, "minItems": 1},
            "english": {"type": "string"},
            "targetText": {"type": "string"},
            "status": STATUS_SCHEMA,
            "correction": {"type": "string"},
            "section": {"type": "string"},
        },
        "required": ["path", "english", "targetText", "status", "section"],
    },
}

HISTORY_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "index": {"type": "integer", "minimum": 0},
            "status": STATUS_SCHEMA,
            "correction": {"type": "string"},
        },
        "required": ["index", "status"],
    },
}


class SessionStore:
    """Reads and writes the five session entries in a local JSON file."""

    def __init__(self, storage_file_path: str):
        self.storage_file_path = storage_file_path

    # --- Raw key-value access ---

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.storage_file_path):
            return {}
        try:
            with open(self.storage_file_path, 'r', encoding='utf-8') as f:
                entries = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as read_exc:
            logger.error("Could not read storage file '%s': %s", self.storage_file_path, read_exc)
            return {}
        if not isinstance(entries, dict):
            logger.error("Storage file '%s' does not hold a key-value map.", self.storage_file_path)
            return {}
        return entries

    def _write_all(self, entries: Dict[str, str]):
        storage_dir = os.path.dirname(self.storage_file_path)
        if storage_dir:
            os.makedirs(storage_dir, exist_ok=True)
        with open(self.storage_file_path, 'w', encoding='utf-8') as f:
            json.dump(entries, f, ensure_ascii=False, indent=2)

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    # --- Session access ---

    def has_session(self) -> bool:
        return bool(self.get_item(STORAGE_KEYS['MODIFIED_DATA']) and self.get_item(STORAGE_KEYS['CURRENT_PAIRS']))

    def save(self, session: ReviewSession):
        """Write all five session entries."""
        entries = self._read_all()
        entries[STORAGE_KEYS['MODIFIED_DATA']] = json.dumps(to_json(session.modified_document), ensure_ascii=False)
        entries[STORAGE_KEYS['CURRENT_PAIRS']] = json.dumps(
            [pair.to_dict() for pair in session.pairs], ensure_ascii=False
        )
        entries[STORAGE_KEYS['CURRENT_INDEX']] = str(session.cursor)
        entries[STORAGE_KEYS['HISTORY']] = json.dumps(
            [entry.to_dict() for entry in session.history], ensure_ascii=False
        )
        entries[STORAGE_KEYS['TARGET_LANGUAGE']] = session.target_language
        self._write_all(entries)
        logger.debug("Saved session to '%s'.", self.storage_file_path)

    def save_now(self, session: ReviewSession):
        """Fold every correction into the modified document, then save."""
        session.modified_document = build_export(session.modified_document, session.pairs)
        self.save(session)
        logger.info("Progress saved to '%s'.", self.storage_file_path)

    def load(self, source_language: str = DEFAULT_SOURCE_LANGUAGE) -> Optional[ReviewSession]:
        """
        Restore the stored session.

        Returns:
            Optional[ReviewSession]: The restored session, or None when nothing is
            stored or the stored content is malformed.
        """
        entries = self._read_all()
        stored_modified_data = entries.get(STORAGE_KEYS['MODIFIED_DATA'])
        stored_pairs = entries.get(STORAGE_KEYS['CURRENT_PAIRS'])
        if not stored_modified_data or not stored_pairs:
            return None

        try:
            modified_document = from_json(json.loads(stored_modified_data))
            if not isinstance(modified_document, Node):
                raise ValueError("modified data is not a JSON object")

            parsed_pairs = json.loads(stored_pairs)
            jsonschema.validate(instance=parsed_pairs, schema=PAIRS_SCHEMA)
            pairs = [TranslationPair.from_dict(item) for item in parsed_pairs]
            if not pairs:
                raise ValueError("no stored pairs")

            stored_index = entries.get(STORAGE_KEYS['CURRENT_INDEX'])
            cursor = int(stored_index) if stored_index else 0
            if not 0 <= cursor < len(pairs):
                raise ValueError(f"stored index {cursor} is out of range")

            stored_history = entries.get(STORAGE_KEYS['HISTORY'])
            parsed_history = json.loads(stored_history) if stored_history else []
            jsonschema.validate(instance=parsed_history, schema=HISTORY_SCHEMA)
            history = [HistoryEntry.from_dict(item) for item in parsed_history]
            if any(entry.index >= len(pairs) for entry in history):
                raise ValueError("history refers to a pair that does not exist")

            stored_target_language = entries.get(STORAGE_KEYS['TARGET_LANGUAGE'])
            if stored_target_language is not None and not isinstance(stored_target_language, str):
                raise ValueError("stored target language is not text")
            target_language = stored_target_language or pairs[0].path[0]
        except (ValueError, TypeError, jsonschema.ValidationError) as load_exc:
            # json.JSONDecodeError is a ValueError.
            logger.error("Error loading session from local storage: %s", load_exc)
            return None

        logger.info("Restored session with %d pairs from '%s'.", len(pairs), self.storage_file_path)
        return ReviewSession(
            pairs=pairs,
            modified_document=modified_document,
            target_language=target_language,
            source_language=source_language,
            cursor=cursor,
            history=history,
            sections=sorted({pair.section for pair in pairs}),
        )

    def clear(self):
        """Remove all five session entries, keeping any unrelated keys."""
        entries = self._read_all()
        for key in STORAGE_KEYS.values():
            entries.pop(key, None)
        if entries:
            self._write_all(entries)
        elif os.path.exists(self.storage_file_path):
            os.remove(self.storage_file_path)
        logger.info("Cleared stored session.")
