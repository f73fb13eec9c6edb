"""Application services of the PII protection layer."""

from clinic_pii.application.services.blob_pipeline import BlobHandle, BlobMetadata, BlobPipeline
from clinic_pii.application.services.duplicate_detector import DuplicateCheckResult, DuplicateDetector
from clinic_pii.application.services.pii_record_service import PIIRecordService

__all__ = [
    "BlobHandle",
    "BlobMetadata",
    "BlobPipeline",
    "DuplicateCheckResult",
    "DuplicateDetector",
    "PIIRecordService",
]
