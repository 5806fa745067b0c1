"""
dashboard/errors.py

Exception taxonomy for the analysis pipeline.

Batch-fatal errors (``PatternDetectionError``, ``EmptyDatasetError``) abort
the run before any report is produced. File-local (``ParseError``) and
record-local (``ValidationError``) errors are collected as warnings unless
the caller asks for abort-on-parse-error.
"""

from __future__ import annotations

from typing import Any

from dashboard import failure_codes


class PipelineError(Exception):
    """
    Base class for every error raised by the analysis pipeline.

    Carries enough source context (file, row, column) for a user to locate
    the offending data.
    """

    code: str = "pipeline_error"

    def __init__(
        self,
        message: str,
        *,
        file_name: str | None = None,
        row_number: int | None = None,
        column: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.file_name = file_name
        self.row_number = row_number
        self.column = column
        self.context = context

    @property
    def is_critical(self) -> bool:
        return self.code in failure_codes.CRITICAL_FAILURES

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "file_name": self.file_name,
            "row_number": self.row_number,
            "column": self.column,
            "context": self.context,
        }


class PatternDetectionError(PipelineError):
    """
    Raised when a batch file name does not follow ``Customer_Type_Period.ext``
    or names a different customer than the rest of the batch.
    """

    code = failure_codes.PATTERN_DETECTION


class ParseError(PipelineError):
    """
    Raised when one file's bytes cannot be read as a workbook or delimited text.
    """

    code = failure_codes.PARSE_ERROR


class FileSizeError(ParseError):
    """
    Raised when a file falls outside the configured size window.
    """

    code = failure_codes.FILE_SIZE


class ValidationError(PipelineError):
    """
    Raised when a record is missing a value that cannot be defaulted.
    """

    code = failure_codes.VALIDATION_ERROR


class EmptyDatasetError(PipelineError):
    """
    Raised when every file in a batch yields zero records.
    """

    code = failure_codes.EMPTY_DATASET
