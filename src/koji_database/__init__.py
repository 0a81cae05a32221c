"""Client for the Koji hosted document store and object store."""

from koji_database._config import (
    Config,
    ConfigProvider,
    EnvConfigProvider,
    StaticConfigProvider,
    resolve_base_url,
    resolve_config,
)
from koji_database._database import Database
from koji_database._dispatch import Dispatcher, DispatchMode, ImmediateDispatcher, QueueingDispatcher
from koji_database._errors import (
    ConfigurationMissing,
    DocumentNotFound,
    KojiDatabaseError,
    NotInTransaction,
    ServiceError,
    UnavailableInTransaction,
)
from koji_database._models import (
    PendingRequest,
    SignedRequest,
    SignedUploadRequest,
    TranscodeJob,
    TranscodeStatus,
)
from koji_database._transport import HttpTransport
from koji_database._values import ValueTypes, value_types

__version__ = "0.1.0"

__all__ = [
    # Core
    "Database",
    "HttpTransport",
    # Dispatch
    "Dispatcher",
    "DispatchMode",
    "ImmediateDispatcher",
    "QueueingDispatcher",
    # Models
    "PendingRequest",
    "SignedRequest",
    "SignedUploadRequest",
    "TranscodeJob",
    "TranscodeStatus",
    # Values
    "ValueTypes",
    "value_types",
    # Config
    "Config",
    "ConfigProvider",
    "EnvConfigProvider",
    "StaticConfigProvider",
    "resolve_config",
    "resolve_base_url",
    # Errors
    "KojiDatabaseError",
    "ConfigurationMissing",
    "DocumentNotFound",
    "ServiceError",
    "NotInTransaction",
    "UnavailableInTransaction",
    # Version
    "__version__",
]
