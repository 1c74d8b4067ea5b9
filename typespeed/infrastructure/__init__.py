"""Infrastructure layer components."""

from .dynamodb_statistics_repository import DynamoDBStatisticsRepository
from .local_code_file_repository import LocalCodeFileRepository
from .local_session_repository import LocalSessionRepository
from .local_statistics_repository import LocalStatisticsRepository
from .project_scanner import ProjectScanner, ScanResult
from .upload_loader import UploadLoader, UploadResult

__all__ = [
    "DynamoDBStatisticsRepository",
    "LocalCodeFileRepository",
    "LocalSessionRepository",
    "LocalStatisticsRepository",
    "ProjectScanner",
    "ScanResult",
    "UploadLoader",
    "UploadResult",
]
