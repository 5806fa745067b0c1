"""Shared failure code constants for pipeline error handling."""

PATTERN_DETECTION = "pattern_detection"
EMPTY_DATASET = "empty_dataset"
PARSE_ERROR = "parse_error"
FILE_SIZE = "file_size"
VALIDATION_ERROR = "validation_error"
VALUE_COERCED = "value_coerced"

CRITICAL_FAILURES = [
    PATTERN_DETECTION,
    EMPTY_DATASET,
]

OPTIONAL_FAILURES = [
    PARSE_ERROR,
    FILE_SIZE,
    VALIDATION_ERROR,
    VALUE_COERCED,
]
