"""Typed representation of the nested JSON documents under review."""
import json
import logging
import mimetypes
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Union

import jsonschema

from translation_reviewer.errors import DocumentParseError, InvalidFileTypeError

logger = logging.getLogger(__name__)

# Uploaded documents must be a JSON object at the top level. Anything nested
# below is accepted as-is: non-string leaves are carried along untouched.
DOCUMENT_SCHEMA = {
    "type": "object",
}

JSON_MIME_TYPE = "application/json"


@dataclass
class Leaf:
    """A translatable string value."""
    text: str


@dataclass
class Node:
    """A nested mapping of keys to values, in document order."""
    children: Dict[str, "Value"] = field(default_factory=dict)

    def __contains__(self, key: str) -> bool:
        return key in self.children

    def __getitem__(self, key: str) -> "Value":
        return self.children[key]

    def keys(self):
        return self.children.keys()


@dataclass
class Opaque:
    """Any other JSON value (number, boolean, null, array), never reviewed."""
    value: Any


Value = Union[Leaf, Node, Opaque]


def from_json(obj: Any) -> Value:
    """Convert a decoded JSON value into its typed form."""
    if isinstance(obj, str):
        return Leaf(obj)
    if isinstance(obj, dict):
        return Node({str(key): from_json(child) for key, child in obj.items()})
    return Opaque(obj)


def to_json(value: Value) -> Any:
    """Convert a typed value back into plain JSON-compatible Python objects."""
    if isinstance(value, Leaf):
        return value.text
    if isinstance(value, Node):
        return {key: to_json(child) for key, child in value.children.items()}
    return value.value


def is_json_file(file_path: str) -> bool:
    """Check whether a path looks like a JSON artifact by its guessed MIME type."""
    mime_type, _ = mimetypes.guess_type(file_path)
    return mime_type == JSON_MIME_TYPE


def parse_document(content: str, file_name: str) -> Node:
    """
    Parse JSON text into a document node.

    Args:
        content: The raw JSON text.
        file_name: Name used to identify the artifact in error messages.

    Returns:
        Node: The parsed document.

    Raises:
        DocumentParseError: If the text is not valid JSON or not a JSON object.
    """
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as json_exc:
        raise DocumentParseError(file_name, str(json_exc)) from json_exc

    try:
        jsonschema.validate(instance=parsed, schema=DOCUMENT_SCHEMA)
    except jsonschema.ValidationError as schema_exc:
        raise DocumentParseError(file_name, "top-level value must be a JSON object") from schema_exc

    return from_json(parsed)


def load_document(file_path: str) -> Node:
    """
    Load one uploaded document from disk.

    Raises:
        InvalidFileTypeError: If the file is not a JSON file.
        DocumentParseError: If the file cannot be read or parsed.
    """
    file_name = os.path.basename(file_path)
    if not is_json_file(file_path):
        logger.warning("Rejected '%s': not a JSON file.", file_path)
        raise InvalidFileTypeError(file_name)

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as read_exc:
        raise DocumentParseError(file_name, f"Error reading file: {read_exc}") from read_exc

    document = parse_document(content, file_name)
    logger.info("Loaded document '%s' with %d top-level keys.", file_path, len(document.children))
    return document
