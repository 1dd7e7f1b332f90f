"""
Ingestion component: text extraction, the upload pipeline and background
task workers.
"""

__version__ = "1.0.0"

from .exceptions import ExtractionError, IngestionError, UnsupportedFileError, UploadError
from .extractors import ExtractedText, extract_document, extract_pdf, extract_text_file
from .logging_config import setup_logging
from .pipeline import PartialUpload, UploadPipeline, UploadResult
from .workers import MessageType, TaskDispatcher, TaskHandle, TaskMessage, TaskRequest

__all__ = [
    "__version__",
    "ExtractionError",
    "IngestionError",
    "UnsupportedFileError",
    "UploadError",
    "ExtractedText",
    "extract_document",
    "extract_pdf",
    "extract_text_file",
    "setup_logging",
    "PartialUpload",
    "UploadPipeline",
    "UploadResult",
    "MessageType",
    "TaskDispatcher",
    "TaskHandle",
    "TaskMessage",
    "TaskRequest",
]
