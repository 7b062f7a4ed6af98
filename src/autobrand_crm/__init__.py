"""
AutoBrand CRM core

Lead import and sales-pipeline rules for a small automation-services
business: scraper CSV exports become scored leads, leads become deals, and
won deals become clients with onboarding tasks. All state lives in one
Store persisted as a single JSON document in a key-value backend.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .pipeline import (
    LeadImporter,
    ImportPreview,
    ImportResult,
    PipelineEngine,
    DealTransition,
)
from .repository import CrmRepository
from .store import Store, open_store
from .storage import KeyValueStorage, JsonFileStorage, MemoryStorage
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    PipelineTimer,
)
from .errors import (
    CRMError,
    NotFoundError,
    LeadNotFoundError,
    DealNotFoundError,
    ClientNotFoundError,
    ServiceNotFoundError,
    TaskNotFoundError,
    ValidationError,
    InvalidStageError,
    LeadImportError,
    NotCSVError,
    EmptyFileError,
    NoValidRowsError,
    PersistenceError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    # Version
    '__version__',
    # Store
    'Store',
    'open_store',
    'KeyValueStorage',
    'JsonFileStorage',
    'MemoryStorage',
    # Pipelines
    'LeadImporter',
    'ImportPreview',
    'ImportResult',
    'PipelineEngine',
    'DealTransition',
    # Repository
    'CrmRepository',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'PipelineTimer',
    # Errors
    'CRMError',
    'NotFoundError',
    'LeadNotFoundError',
    'DealNotFoundError',
    'ClientNotFoundError',
    'ServiceNotFoundError',
    'TaskNotFoundError',
    'ValidationError',
    'InvalidStageError',
    'LeadImportError',
    'NotCSVError',
    'EmptyFileError',
    'NoValidRowsError',
    'PersistenceError',
    'StorageReadError',
    'StorageWriteError',
]
