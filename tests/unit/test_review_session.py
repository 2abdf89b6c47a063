import pytest

from translation_reviewer.document import Leaf, from_json, to_json
from translation_reviewer.errors import NoMatchingPairsError, ReviewError
from translation_reviewer.export_builder import build_export
from translation_reviewer.pair_extractor import PairStatus
from translation_reviewer.review_session import ALL_SECTIONS, NOT_FOUND, create_session


def _greeting_session():
    return create_session(from_json({"greeting": "Hello"}), from_json({"greeting": "Hola"}), "es")


def _document_value(session, path):
    node = session.modified_document
    for key in path:
        node = node[key]
    return node


# --- Session creation ---

def test_create_session_builds_combined_document(review_session):
    document = to_json(review_session.modified_document)

    assert list(document.keys()) == ["en", "es"]
    assert document["en"]["common"]["save"] == "Save"
    assert document["es"]["common"]["save"] == "Guardar"
    assert review_session.cursor == 0
    assert review_session.history == []
    assert review_session.section_filter == ALL_SECTIONS
    assert review_session.total_count == 5


def test_create_session_reports_missing_keys(review_session):
    assert review_session.missing_keys.missing_in_target == ["home.menu.contact"]
    assert review_session.missing_keys.missing_in_source == ["extra"]


def test_create_session_does_not_share_state_with_inputs(english_document, spanish_document):
    session = create_session(english_document, spanish_document, "es")

    session.submit_correction("Guardar cambios")

    assert spanish_document["common"]["save"] == Leaf("Guardar")


@pytest.mark.parametrize("language", ["", "   ", "en"])
def test_create_session_rejects_bad_target_language(english_document, spanish_document, language):
    with pytest.raises(ReviewError):
        create_session(english_document, spanish_document, language)


def test_create_session_with_no_pairs_fails():
    with pytest.raises(NoMatchingPairsError):
        create_session(from_json({"a": "1"}), from_json({"b": "2"}), "es")


# --- Navigation ---

def test_advance_and_rewind_are_clamped(review_session):
    review_session.rewind()
    assert review_session.cursor == 0

    for _ in range(10):
        review_session.advance()
    assert review_session.cursor == 4
    assert review_session.is_last_pair

    review_session.rewind()
    assert review_session.cursor == 3
    assert review_session.history == []


def test_jump_to_section_moves_to_first_pair(review_session):
    review_session.jump_to_section("home")

    assert review_session.section_filter == "home"
    assert review_session.cursor == 2

    review_session.jump_to_section(ALL_SECTIONS)
    assert review_session.section_filter == ALL_SECTIONS
    assert review_session.cursor == 2


def test_jump_to_unknown_section_is_rejected(review_session):
    with pytest.raises(ReviewError):
        review_session.jump_to_section("settings")
    assert review_session.section_filter == ALL_SECTIONS


def test_find_next_pending_skips_reviewed_pairs(review_session):
    review_session.pass_pair(1)

    assert review_session.find_next_pending() == 2
    assert review_session.find_next_pending(from_index=2) == 3


def test_find_next_pending_never_returns_current_or_earlier(review_session):
    review_session.cursor = 3

    assert review_session.find_next_pending() == 4

    review_session.cursor = 4
    assert review_session.find_next_pending() == NOT_FOUND


def test_find_next_pending_does_not_wrap(review_session):
    review_session.cursor = 2
    review_session.pass_pair(3)
    review_session.pass_pair(4)

    assert review_session.find_next_pending() == NOT_FOUND
    assert review_session.pairs[0].status == PairStatus.PENDING


def test_find_next_pending_respects_section_filter(review_session):
    assert review_session.find_next_pending(0, "home") == 2
    assert review_session.find_next_pending(0, "footer") == 4

    review_session.pass_pair(4)
    assert review_session.find_next_pending(0, "footer") == NOT_FOUND


def test_jump_to_next_pending(review_session):
    review_session.jump_to_section("common")
    review_session.pass_pair(1)

    assert review_session.jump_to_next_pending() is False
    assert review_session.cursor == 0

    review_session.jump_to_section(ALL_SECTIONS)
    assert review_session.jump_to_next_pending() is True
    assert review_session.cursor == 2


def test_jump_to_path(review_session):
    assert review_session.jump_to_path(["es", "home", "menu", "about"]) is True
    assert review_session.cursor == 3

    assert review_session.jump_to_path(["es", "home", "menu", "contact"]) is False
    assert review_session.cursor == 3


# --- Decisions ---

def test_basic_approve_scenario():
    session = _greeting_session()

    session.pass_pair()

    pair = session.pairs[0]
    assert pair.status == PairStatus.PASSED
    assert pair.correction is None
    exported = to_json(build_export(session.modified_document, session.pairs))
    assert exported == {"en": {"greeting": "Hello"}, "es": {"greeting": "Hola"}}


def test_pass_auto_advances_on_current_pair(review_session):
    review_session.pass_pair()
    assert review_session.cursor == 1


def test_pass_by_index_does_not_move_cursor(review_session):
    review_session.pass_pair(3)

    assert review_session.cursor == 0
    assert review_session.pairs[3].status == PairStatus.PASSED


def test_pass_at_last_pair_stays(review_session):
    review_session.cursor = 4

    review_session.pass_pair()

    assert review_session.cursor == 4


def test_pass_twice_is_idempotent_on_pair_state(review_session):
    review_session.pass_pair(2)
    once = (review_session.pairs[2].status, review_session.pairs[2].correction)

    review_session.pass_pair(2)

    assert (review_session.pairs[2].status, review_session.pairs[2].correction) == once
    assert once == (PairStatus.PASSED, None)


def test_pass_out_of_range_index(review_session):
    with pytest.raises(ReviewError):
        review_session.pass_pair(5)


def test_enter_correction_prefills_buffer(review_session):
    assert review_session.enter_correction() == "Guardar"
    assert review_session.editing is True
    assert review_session.pairs[0].status == PairStatus.PENDING
    assert review_session.history == []

    review_session.submit_correction("Guardar todo", index=0)
    assert review_session.enter_correction(0) == "Guardar todo"


def test_correction_then_undo_scenario():
    session = _greeting_session()

    session.submit_correction("Buenos días", index=0)

    pair = session.pairs[0]
    assert pair.status == PairStatus.FAILED
    assert pair.correction == "Buenos días"
    assert _document_value(session, ["es", "greeting"]) == Leaf("Buenos días")

    session.undo()

    assert pair.status == PairStatus.PENDING
    assert pair.correction is None
    assert _document_value(session, ["es", "greeting"]) == Leaf("Hola")
    assert session.cursor == 0


def test_unchanged_correction_becomes_a_pass():
    session = _greeting_session()
    before = to_json(session.modified_document)

    session.submit_correction("Hola", index=0)

    pair = session.pairs[0]
    assert pair.status == PairStatus.PASSED
    assert pair.correction is None
    assert to_json(session.modified_document) == before


def test_submit_correction_closes_editor_and_advances(review_session):
    review_session.enter_correction()

    review_session.submit_correction("Guardar ahora")

    assert review_session.editing is False
    assert review_session.edit_buffer == ""
    assert review_session.cursor == 1


def test_cancel_correction_approves_pending_pair(review_session):
    review_session.enter_correction()

    review_session.cancel_correction()

    assert review_session.pairs[0].status == PairStatus.PASSED
    assert review_session.pairs[0].correction is None
    assert review_session.editing is False
    assert review_session.cursor == 1


def test_cancel_correction_on_failed_pair_keeps_correction(review_session):
    review_session.submit_correction("Guardar cambios", index=0)
    review_session.cursor = 0
    review_session.enter_correction()

    review_session.cancel_correction()

    pair = review_session.pairs[0]
    assert pair.status == PairStatus.PASSED
    assert pair.correction == "Guardar cambios"
    assert _document_value(review_session, ["es", "common", "save"]) == Leaf("Guardar cambios")


def test_pass_on_failed_pair_keeps_correction(review_session):
    review_session.submit_correction("Salvar", index=0)

    review_session.pass_pair(0)

    assert review_session.pairs[0].status == PairStatus.PASSED
    assert review_session.pairs[0].correction == "Salvar"
    assert _document_value(review_session, ["es", "common", "save"]) == Leaf("Salvar")


# --- Undo ---

def test_undo_with_empty_history_is_a_no_op(review_session):
    assert review_session.undo() is None
    assert review_session.cursor == 0


@pytest.mark.parametrize("operation", [
    lambda s: s.pass_pair(),
    lambda s: s.submit_correction("Cancelar todo"),
    lambda s: s.submit_correction("Cancelar"),
    lambda s: s.cancel_correction(),
])
def test_undo_restores_pair_and_cursor(review_session, operation):
    review_session.cursor = 1
    pair = review_session.pairs[1]
    before = (pair.status, pair.correction)
    document_before = to_json(review_session.modified_document)

    operation(review_session)
    review_session.cursor = 4
    review_session.undo()

    assert (pair.status, pair.correction) == before
    assert review_session.cursor == 1
    assert to_json(review_session.modified_document) == document_before


def test_undo_rolls_document_back_through_one_prior_correction(review_session):
    review_session.submit_correction("Primero", index=2)
    review_session.submit_correction("Segundo", index=2)
    assert _document_value(review_session, ["es", "home", "title"]) == Leaf("Segundo")

    review_session.undo()

    pair = review_session.pairs[2]
    assert pair.status == PairStatus.FAILED
    assert pair.correction == "Primero"
    assert _document_value(review_session, ["es", "home", "title"]) == Leaf("Primero")

    review_session.undo()

    assert pair.status == PairStatus.PENDING
    assert pair.correction is None
    assert _document_value(review_session, ["es", "home", "title"]) == Leaf("Bienvenido")


def test_undo_of_approval_restores_failed_state(review_session):
    review_session.submit_correction("Pie", index=4)
    review_session.pass_pair(4)

    review_session.undo()

    pair = review_session.pairs[4]
    assert pair.status == PairStatus.FAILED
    assert pair.correction == "Pie"
    assert _document_value(review_session, ["es", "footer"]) == Leaf("Pie")


def test_undo_closes_editor(review_session):
    review_session.pass_pair()
    review_session.enter_correction()

    review_session.undo()

    assert review_session.editing is False


# --- Derived state ---

def test_progress_is_derived_from_statuses(review_session):
    assert review_session.progress_percent == 0

    review_session.pass_pair(0)
    review_session.submit_correction("Cancelar ya", index=1)

    assert review_session.reviewed_count == 2
    assert review_session.progress_percent == pytest.approx(40.0)


def test_section_stats(review_session):
    review_session.pass_pair(0)
    review_session.pass_pair(1)
    review_session.submit_correction("Bienvenido", index=2)
    review_session.submit_correction("Acerca de", index=3)

    stats = review_session.section_stats()

    assert list(stats.keys()) == ["common", "footer", "home"]
    assert stats["common"].status == "complete"
    assert stats["common"].percent == 100
    assert stats["home"].reviewed == 2
    assert stats["home"].passed == 1
    assert stats["home"].status == "in-progress"
    assert stats["footer"].status == "not-started"
    assert stats["footer"].percent == 0


def test_corrected_pairs_grouped_by_section(review_session):
    review_session.submit_correction("Pie de página", index=4)
    review_session.submit_correction("Guardar cambios", index=0)
    review_session.submit_correction("Acerca", index=3)
    review_session.pass_pair(3)

    assert review_session.corrected_pairs() == {"common": [0], "footer": [4], "home": [3]}
    assert review_session.corrected_pairs(needs_review_only=True) == {"common": [0], "footer": [4]}


def test_submit_applies_to_the_pair_being_edited(review_session):
    review_session.enter_correction(3)

    review_session.submit_correction("Acerca de nosotros")

    assert review_session.pairs[3].status == PairStatus.FAILED
    assert review_session.pairs[3].correction == "Acerca de nosotros"
    assert review_session.pairs[0].status == PairStatus.PENDING
    assert _document_value(review_session, ["es", "common", "save"]) == Leaf("Guardar")
    assert review_session.edit_index is None
    assert review_session.cursor == 0


def test_unchanged_buffer_approves_the_pair_being_edited(review_session):
    review_session.submit_correction(review_session.enter_correction(1))

    assert review_session.pairs[1].status == PairStatus.PASSED
    assert review_session.pairs[0].status == PairStatus.PENDING


def test_cancel_applies_to_the_pair_being_edited(review_session):
    review_session.enter_correction(4)

    review_session.cancel_correction()

    assert review_session.pairs[4].status == PairStatus.PASSED
    assert review_session.pairs[0].status == PairStatus.PENDING
    assert review_session.editing is False
