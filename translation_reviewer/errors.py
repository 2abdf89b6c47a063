"""Exception types surfaced to the reviewer."""


class TranslationReviewError(Exception):
    """Base class for all errors the reviewer can recover from by resetting."""


class InvalidFileTypeError(TranslationReviewError):
    """Raised when an uploaded artifact is not a JSON file."""

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"Invalid file type for '{file_name}'. Please upload a JSON file.")


class DocumentParseError(TranslationReviewError):
    """Raised when an uploaded artifact cannot be read as a JSON object."""

    def __init__(self, file_name: str, reason: str):
        self.file_name = file_name
        self.reason = reason
        super().__init__(f"Invalid JSON in file {file_name}: {reason}")


class NoMatchingPairsError(TranslationReviewError):
    """Raised when the two documents share no translatable string."""

    def __init__(self):
        super().__init__("No matching text pairs found in the uploaded files")


class ReviewError(TranslationReviewError):
    """Raised for review operations that cannot be applied to the session."""


class ExportError(TranslationReviewError):
    """Raised when the exported document cannot be written."""

    def __init__(self, output_path: str, reason: str):
        self.output_path = output_path
        self.reason = reason
        super().__init__(f"Could not write export file {output_path}: {reason}")
