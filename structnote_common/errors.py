from __future__ import annotations


class StructNoteError(Exception):
    """Base class for user-facing extraction and export failures."""


class ConfigError(StructNoteError, ValueError):
    """Raised when the YAML configuration or an override is invalid."""


class NoInputError(StructNoteError):
    """Raised when a batch contains no XML documents."""

    def __init__(self, message: str = "Please select at least one XML file.") -> None:
        super().__init__(message)


class MalformedDocumentError(StructNoteError):
    """Raised when a document cannot be parsed; aborts the whole batch."""

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(f"Error: The file {file_name} is corrupt or not a valid XML.")


class EmptyExportError(StructNoteError):
    """Raised when the filtered view has no rows to export."""

    def __init__(self, message: str = "There is no data to export.") -> None:
        super().__init__(message)


class InputReadError(StructNoteError):
    """Raised when an input file cannot be read; aborts the whole batch."""

    def __init__(self, file_name: str, reason: str) -> None:
        self.file_name = file_name
        super().__init__(f"Error: The file {file_name} could not be read ({reason}).")
