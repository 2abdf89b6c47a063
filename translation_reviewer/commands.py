"""
Dispatch of user actions onto the review session.

Each user action maps to exactly one operation in the dispatch table. The
controller owns the session, the durable store and the overlay flags the
presentation layer renders; operations themselves know nothing about how
they are displayed.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from translation_reviewer.document import load_document
from translation_reviewer.errors import ReviewError
from translation_reviewer.export_builder import build_export, write_export
from translation_reviewer.review_session import DEFAULT_SOURCE_LANGUAGE, ReviewSession, create_session
from translation_reviewer.session_store import SessionStore
from translation_reviewer.tree_compare import MissingKeys

logger = logging.getLogger(__name__)


class Action(str, Enum):
    ADVANCE = "advance"
    REWIND = "rewind"
    PASS = "pass"
    ENTER_CORRECTION = "enter_correction"
    SUBMIT_CORRECTION = "submit_correction"
    CANCEL_CORRECTION = "cancel_correction"
    UNDO = "undo"
    JUMP_TO_SECTION = "jump_to_section"
    JUMP_TO_NEXT_PENDING = "jump_to_next_pending"
    JUMP_TO_PATH = "jump_to_path"
    TOGGLE_PREVIEW = "toggle_preview"
    CLOSE_PREVIEW = "close_preview"
    CLOSE_MISSING_KEYS = "close_missing_keys"
    SAVE = "save"
    EXPORT = "export"
    RESET = "reset"


# Actions after which the session is mirrored to durable storage.
PERSISTED_ACTIONS = {
    Action.ADVANCE,
    Action.REWIND,
    Action.PASS,
    Action.SUBMIT_CORRECTION,
    Action.CANCEL_CORRECTION,
    Action.UNDO,
    Action.JUMP_TO_SECTION,
    Action.JUMP_TO_NEXT_PENDING,
    Action.JUMP_TO_PATH,
}

KEY_BINDINGS = {
    "ArrowRight": Action.ADVANCE,
    "ArrowLeft": Action.REWIND,
    "ArrowUp": Action.ENTER_CORRECTION,
    "ArrowDown": Action.PASS,
}


class ReviewController:
    """Owns one review session and routes user actions to it."""

    def __init__(self, store: SessionStore, source_language: str = DEFAULT_SOURCE_LANGUAGE):
        self.store = store
        self.source_language = source_language
        self.session: Optional[ReviewSession] = None
        self.preview_open = False
        self.missing_keys_open = False

        self._handlers: Dict[Action, Callable[..., Any]] = {
            Action.ADVANCE: lambda: self._require_session().advance(),
            Action.REWIND: lambda: self._require_session().rewind(),
            Action.PASS: lambda index=None: self._require_session().pass_pair(index),
            Action.ENTER_CORRECTION: lambda index=None: self._require_session().enter_correction(index),
            Action.SUBMIT_CORRECTION: self._submit_correction,
            Action.CANCEL_CORRECTION: lambda index=None: self._require_session().cancel_correction(index),
            Action.UNDO: lambda: self._require_session().undo(),
            Action.JUMP_TO_SECTION: lambda section: self._require_session().jump_to_section(section),
            Action.JUMP_TO_NEXT_PENDING: lambda: self._require_session().jump_to_next_pending(),
            Action.JUMP_TO_PATH: self._jump_to_path,
            Action.TOGGLE_PREVIEW: self._toggle_preview,
            Action.CLOSE_PREVIEW: self._close_preview,
            Action.CLOSE_MISSING_KEYS: self._close_missing_keys,
            Action.SAVE: lambda: self.store.save_now(self._require_session()),
            Action.EXPORT: self._export,
            Action.RESET: self.reset,
        }

    @property
    def has_session(self) -> bool:
        return self.session is not None

    def restore(self) -> bool:
        """Load the stored session, if any. Malformed storage starts fresh."""
        self.session = self.store.load(self.source_language)
        return self.session is not None

    def process_files(self, source_path: str, target_path: str, target_language: str) -> MissingKeys:
        """
        Load both documents and start a new session from them.

        Nothing is changed when loading or pair extraction fails.

        Returns:
            MissingKeys: The keys present in only one of the documents.
        """
        source = load_document(source_path)
        target = load_document(target_path)
        session = create_session(source, target, target_language, self.source_language)

        self.session = session
        self.preview_open = False
        self.missing_keys_open = session.missing_keys.total > 0
        self.store.save(session)
        logger.info(
            "Files processed: %d text pairs across %d sections.",
            session.total_count,
            len(session.sections)
        )
        return session.missing_keys

    def dispatch(self, action: Action, **kwargs) -> Any:
        """Run the operation bound to ``action`` and persist the session if it changed."""
        handler = self._handlers[Action(action)]
        result = handler(**kwargs)
        if Action(action) in PERSISTED_ACTIONS and self.session is not None:
            self.store.save(self.session)
        return result

    def handle_key(self, key: str, ctrl: bool = False) -> Optional[Action]:
        """
        Translate one key press into an action and dispatch it.

        Returns:
            Optional[Action]: The dispatched action, or None if the key was ignored.
        """
        if self.session is None or self.missing_keys_open:
            return None

        if self.preview_open:
            if key == "Escape":
                self.dispatch(Action.CLOSE_PREVIEW)
                return Action.CLOSE_PREVIEW
            return None

        if self.session.editing:
            if key == "Enter":
                self.dispatch(Action.SUBMIT_CORRECTION)
                return Action.SUBMIT_CORRECTION
            return None

        if ctrl and key.lower() == "z":
            self.dispatch(Action.UNDO)
            return Action.UNDO

        action = KEY_BINDINGS.get(key)
        if action is not None:
            self.dispatch(action)
        return action

    def reset(self):
        """Clear durable storage and all in-memory state."""
        self.store.clear()
        self.session = None
        self.preview_open = False
        self.missing_keys_open = False

    # --- Handlers ---

    def _require_session(self) -> ReviewSession:
        if self.session is None:
            raise ReviewError("No active review session. Process a source and a target file first.")
        return self.session

    def _submit_correction(self, new_text: Optional[str] = None, index: Optional[int] = None):
        session = self._require_session()
        if new_text is None:
            new_text = session.edit_buffer
        session.submit_correction(new_text, index)

    def _jump_to_path(self, path) -> bool:
        found = self._require_session().jump_to_path(path)
        if found:
            self.preview_open = False
        return found

    def _toggle_preview(self):
        self._require_session()
        self.preview_open = not self.preview_open

    def _close_preview(self):
        self.preview_open = False

    def _close_missing_keys(self):
        self.missing_keys_open = False

    def _export(self, output_path: str) -> str:
        session = self._require_session()
        final_document = build_export(session.modified_document, session.pairs)
        return write_export(final_document, output_path)
