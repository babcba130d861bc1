from .import_jobs import ImportJobManager
from .import_service import FULL_IMPORT_SOURCE, ImportService

__all__ = [
    'ImportService',
    'ImportJobManager',
    'FULL_IMPORT_SOURCE',
]
