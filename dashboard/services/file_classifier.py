"""
dashboard/services/file_classifier.py

Recovers customer, period and file format from upload file names.

Primary files must follow ``CustomerName_Type_Period.ext``. The whole batch
must belong to one customer; the first mismatch rejects the batch before any
file is read.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from dashboard.domain.records import AUXILIARY_ROLES, PRIMARY_TABLE_KINDS, FileDescriptor, FileFormat, FileRole
from dashboard.domain.sources import FileSource, UploadBatch
from dashboard.errors import PatternDetectionError

FILE_NAME_PATTERN = re.compile(
    r"^(?P<customer>.+)_(?P<file_type>[^_]+)_(?P<period>\d{6,8})\.(?P<extension>xlsx|xls|xlsm|csv)$",
    re.IGNORECASE,
)

# A Type token naming a table kind may itself contain underscores; longest first.
TABLE_KIND_NAME_PATTERN = re.compile(
    r"^(?P<customer>.+?)_(?P<file_type>"
    + "|".join(re.escape(kind) for kind in sorted(PRIMARY_TABLE_KINDS, key=len, reverse=True))
    + r")_(?P<period>\d{6,8})\.(?P<extension>xlsx|xls|xlsm|csv)$",
    re.IGNORECASE,
)

SPREADSHEET_EXTENSIONS = frozenset({"xlsx", "xls", "xlsm"})
DELIMITED_EXTENSIONS = frozenset({"csv", "txt", "tsv"})


@dataclass(frozen=True)
class FileNameMatch:
    customer: str
    file_type: str
    period: str
    file_format: str
    extension: str


def match_file_name(file_name: str) -> FileNameMatch:
    """
    Parse one primary file name.

    Raises
    ------
    PatternDetectionError
        If the name does not follow the canonical scheme or the period is
        not a real calendar month.
    """

    base_name = file_name.replace("\\", "/").rsplit("/", 1)[-1].strip()
    match = TABLE_KIND_NAME_PATTERN.match(base_name) or FILE_NAME_PATTERN.match(base_name)
    if match is None:
        raise PatternDetectionError(
            "File name does not match 'CustomerName_Type_YYYYMM.(xlsx|xls|xlsm|csv)'.",
            file_name=file_name,
        )

    digits = match.group("period")
    year, month = int(digits[:4]), int(digits[4:6])
    if not 1 <= month <= 12 or year < 1900:
        raise PatternDetectionError(
            f"File name period '{digits}' is not a valid YYYYMM value.",
            file_name=file_name,
        )

    extension = match.group("extension").lower()
    return FileNameMatch(
        customer=match.group("customer").strip(),
        file_type=match.group("file_type"),
        period=digits[:6],
        file_format=format_for_extension(extension),
        extension=extension,
    )


def format_for_extension(extension: str) -> str:
    return FileFormat.DELIMITED if extension.lower() in DELIMITED_EXTENSIONS else FileFormat.SPREADSHEET


def extension_of(file_name: str) -> str:
    if "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[-1].strip().lower()


class FileClassifier:
    """
    Pure classification of an upload batch; reads no file content.
    """

    def classify_primary(self, sources: Sequence[FileSource]) -> list[FileDescriptor]:
        """
        Classify primary files in order, failing fast on the first bad name
        or customer mismatch.
        """

        if not sources:
            raise PatternDetectionError("Upload batch contains no primary files.")

        descriptors: list[FileDescriptor] = []
        expected_customer: str | None = None
        for source in sources:
            matched = match_file_name(source.name)
            if expected_customer is None:
                expected_customer = matched.customer
            elif matched.customer.casefold() != expected_customer.casefold():
                raise PatternDetectionError(
                    f"File belongs to customer '{matched.customer}' but the batch "
                    f"was detected as '{expected_customer}'.",
                    file_name=source.name,
                    context={"expected_customer": expected_customer, "detected_customer": matched.customer},
                )
            descriptors.append(
                FileDescriptor(
                    name=source.name,
                    byte_size=source.byte_size or 0,
                    detected_customer=matched.customer,
                    detected_period=matched.period,
                    kind=matched.file_format,
                    role=FileRole.PRIMARY,
                    file_type=matched.file_type,
                    extension=matched.extension,
                )
            )
        return descriptors

    def classify_auxiliary(self, role: str, source: FileSource) -> FileDescriptor:
        """
        Classify an auxiliary file by its declared role.
        """

        if role not in AUXILIARY_ROLES:
            raise ValueError(f"Unsupported auxiliary file role '{role}'. Supported: {', '.join(AUXILIARY_ROLES)}.")
        extension = extension_of(source.name)
        return FileDescriptor(
            name=source.name,
            byte_size=source.byte_size or 0,
            detected_customer=None,
            detected_period=None,
            kind=format_for_extension(extension),
            role=role,
            extension=extension,
        )

    def classify_batch(self, batch: UploadBatch) -> tuple[list[FileDescriptor], dict[str, FileDescriptor]]:
        primary = self.classify_primary(batch.primary)
        auxiliary = {role: self.classify_auxiliary(role, source) for role, source in batch.auxiliary.items()}
        return primary, auxiliary

    @staticmethod
    def customer_of(descriptors: Sequence[FileDescriptor]) -> str | None:
        return descriptors[0].detected_customer if descriptors else None
