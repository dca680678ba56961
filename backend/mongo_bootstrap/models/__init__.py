"""
Spec and result models.
"""
from mongo_bootstrap.models.specs import (
    ApplyResult,
    BootstrapManifest,
    CollectionSpec,
    ErrorKind,
    IndexSpec,
    Outcome,
    PasswordRef,
    RoleGrant,
    Spec,
    SpecKind,
    UserSpec,
)

__all__ = [
    "ApplyResult",
    "BootstrapManifest",
    "CollectionSpec",
    "ErrorKind",
    "IndexSpec",
    "Outcome",
    "PasswordRef",
    "RoleGrant",
    "Spec",
    "SpecKind",
    "UserSpec",
]
