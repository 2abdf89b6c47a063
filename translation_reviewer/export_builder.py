"""Builds the merged, corrected document offered for download."""
import copy
import json
import logging
import os
from typing import Iterable

from translation_reviewer.document import Node, to_json
from translation_reviewer.document_patcher import set_at_path
from translation_reviewer.errors import ExportError
from translation_reviewer.pair_extractor import TranslationPair

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_FILE_NAME = "translations.json"


def build_export(modified_document: Node, pairs: Iterable[TranslationPair]) -> Node:
    """
    Re-apply every pair's correction onto the modified document.

    The per-pair corrections are authoritative: whatever state undo left the
    modified document in, each correction is written back at its path.
    """
    final_document = copy.deepcopy(modified_document)
    for pair in pairs:
        if pair.correction is not None:
            final_document = set_at_path(final_document, pair.path, pair.correction)
    return final_document


def serialize_export(document: Node) -> str:
    """Serialize a document as pretty-printed JSON, keeping non-ASCII text as-is."""
    return json.dumps(to_json(document), ensure_ascii=False, indent=2)


def write_export(document: Node, output_path: str) -> str:
    """
    Write the exported document to ``output_path``.

    Returns:
        str: The path written to.

    Raises:
        ExportError: If the file or its directory cannot be written.
    """
    try:
        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(serialize_export(document))
            f.write("\n")
    except OSError as write_exc:
        logger.error("Error writing export file '%s': %s", output_path, write_exc)
        raise ExportError(output_path, str(write_exc)) from write_exc
    logger.info("Exported translations to '%s'.", output_path)
    return output_path
