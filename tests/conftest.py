import json
import logging
import os

import pytest

from translation_reviewer.document import from_json
from translation_reviewer.review_session import create_session
from translation_reviewer.session_store import SessionStore


ENGLISH_DOCUMENT = {
    "common": {
        "save": "Save",
        "cancel": "Cancel",
    },
    "home": {
        "title": "Welcome",
        "menu": {
            "about": "About us",
            "contact": "Contact",
        },
        "count": 3,
    },
    "footer": "All rights reserved",
}

SPANISH_DOCUMENT = {
    "common": {
        "save": "Guardar",
        "cancel": "Cancelar",
    },
    "home": {
        "title": "Bienvenido",
        "menu": {
            "about": "Sobre nosotros",
        },
        "count": 3,
    },
    "footer": "Todos los derechos reservados",
    "extra": "Solo en español",
}


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo logger setup done by the CLI so caplog sees package records in every test."""
    yield
    logger = logging.getLogger("translation_reviewer")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def english_document():
    return from_json(ENGLISH_DOCUMENT)


@pytest.fixture
def spanish_document():
    return from_json(SPANISH_DOCUMENT)


@pytest.fixture
def review_session(english_document, spanish_document):
    """A fresh session over the sample documents (5 pairs, sections: common, footer, home)."""
    return create_session(english_document, spanish_document, "es")


@pytest.fixture
def session_store(tmp_path):
    return SessionStore(str(tmp_path / "storage" / "storage.json"))


@pytest.fixture
def json_files(tmp_path):
    """Write the sample documents to disk and return their paths."""
    english_path = tmp_path / "en.json"
    spanish_path = tmp_path / "es.json"
    with open(english_path, 'w', encoding='utf-8') as f:
        json.dump(ENGLISH_DOCUMENT, f, ensure_ascii=False, indent=2)
    with open(spanish_path, 'w', encoding='utf-8') as f:
        json.dump(SPANISH_DOCUMENT, f, ensure_ascii=False, indent=2)
    return {"english": str(english_path), "spanish": str(spanish_path)}


@pytest.fixture
def cli_environment(tmp_path, monkeypatch):
    """Point the CLI at a temporary storage file and disable file logging."""
    storage_path = tmp_path / "cli-storage.json"
    monkeypatch.setenv("TRANSLATION_REVIEWER_STORAGE", str(storage_path))
    monkeypatch.setenv("TRANSLATION_REVIEWER_LOG_FILE", "")
    monkeypatch.setenv("TRANSLATION_REVIEWER_LOG_LEVEL", "ERROR")
    monkeypatch.chdir(tmp_path)
    yield {"storage_path": str(storage_path), "work_dir": str(tmp_path)}
    if os.path.exists(storage_path):
        os.remove(storage_path)
