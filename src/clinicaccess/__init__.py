from .config import AccessConfig, LogLevel, load_config_from_env
from .exceptions import (
    AccessControlError,
    AuthenticationError,
    ConfigurationError,
    ConfirmationRequiredError,
    ConflictError,
    DuplicateRoleError,
    NotFoundError,
    PermissionDeniedError,
    SelfModificationError,
    StorageError,
    UnmappedRoleWarning,
    UnmappedTabWarning,
    ValidationError,
)
from .results import OperationResult

# permissions must load before models (roles <-> models import cycle)
from .permissions import (
    DEFAULT_TAB_PERMISSIONS,
    TAB_REGISTRY,
    AccessGate,
    AccessLevel,
    RoleKind,
    RoleRegistry,
    Roles,
    Tab,
    Tabs,
    effective_matrix,
    resolve,
    slugify_role_name,
)
from .models import ChangeEntry, FieldChange, Role, User
from .store import InMemoryRecordStore, RecordStore, RedisRecordStore
from .admin import RoleAdministration, RoleChange, RoleDeletion
from .editor import UserPermissionEditor
from .identity import AuthContext, AuthEvent, IdentityProvider, Session
from .logging import (
    AccessLogFormatter,
    AccessLoggerAdapter,
    get_access_logger,
    redact_secrets,
    safe_log_value,
    safe_preview,
    setup_logging,
)

__all__ = [
    'AccessConfig',
    'LogLevel',
    'load_config_from_env',
    'AccessControlError',
    'AuthenticationError',
    'ConfigurationError',
    'ConfirmationRequiredError',
    'ConflictError',
    'DuplicateRoleError',
    'NotFoundError',
    'PermissionDeniedError',
    'SelfModificationError',
    'StorageError',
    'UnmappedRoleWarning',
    'UnmappedTabWarning',
    'ValidationError',
    'OperationResult',
    'DEFAULT_TAB_PERMISSIONS',
    'TAB_REGISTRY',
    'AccessGate',
    'AccessLevel',
    'RoleKind',
    'RoleRegistry',
    'Roles',
    'Tab',
    'Tabs',
    'effective_matrix',
    'resolve',
    'slugify_role_name',
    'ChangeEntry',
    'FieldChange',
    'Role',
    'User',
    'InMemoryRecordStore',
    'RecordStore',
    'RedisRecordStore',
    'RoleAdministration',
    'RoleChange',
    'RoleDeletion',
    'UserPermissionEditor',
    'AuthContext',
    'AuthEvent',
    'IdentityProvider',
    'Session',
    'AccessLogFormatter',
    'AccessLoggerAdapter',
    'get_access_logger',
    'redact_secrets',
    'safe_log_value',
    'safe_preview',
    'setup_logging',
]
