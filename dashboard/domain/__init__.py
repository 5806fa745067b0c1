"""
dashboard/domain package marker.
"""

from dashboard.domain.records import (
    AUXILIARY_ROLES,
    ENTITY_TABLE_KINDS,
    PRIMARY_TABLE_KINDS,
    TP_DOC_SEPARATOR,
    Cell,
    CrossReferenceEntry,
    FileDescriptor,
    FileFormat,
    FileRole,
    MapConfigEntry,
    NormalizedRecord,
    PartnerReportEntry,
    PipelineWarning,
    RawTable,
    TableKind,
)
from dashboard.domain.cross_reference import CrossReferenceIndex
from dashboard.domain.sources import FileSource, InMemorySource, PathSource, UploadBatch

__all__ = [
    "AUXILIARY_ROLES",
    "Cell",
    "CrossReferenceIndex",
    "CrossReferenceEntry",
    "ENTITY_TABLE_KINDS",
    "FileDescriptor",
    "FileFormat",
    "FileRole",
    "FileSource",
    "InMemorySource",
    "MapConfigEntry",
    "NormalizedRecord",
    "PRIMARY_TABLE_KINDS",
    "PartnerReportEntry",
    "PathSource",
    "PipelineWarning",
    "RawTable",
    "TP_DOC_SEPARATOR",
    "TableKind",
    "UploadBatch",
]
