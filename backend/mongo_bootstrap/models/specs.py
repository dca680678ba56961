"""
Declarative spec models for users, collections and indexes.

Specs are frozen: they are loaded once at start-up and never mutated
during a run.
"""
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SpecKind(str, Enum):
    """Kinds of database objects, in the order they are applied."""
    USER = "user"
    COLLECTION = "collection"
    INDEX = "index"


class Outcome(str, Enum):
    """Terminal state of a single apply."""
    CREATED = "created"
    ALREADY_EXISTS = "already-exists"
    CONFLICT = "conflict"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Why an apply ended in the failed state."""
    VALIDATION = "validation"
    TIMEOUT = "timeout"
    PASSWORD = "password"
    OPERATION = "operation"


# Index-type tokens accepted in place of a 1 / -1 direction
INDEX_TYPE_TOKENS = ("text", "hashed", "2dsphere", "2d")

IndexDirection = Union[Literal[1, -1], Literal["text", "hashed", "2dsphere", "2d"]]


class PasswordRef(BaseModel):
    """
    Reference to a password, resolved at apply time.

    The password itself is never stored in a spec.
    """
    model_config = ConfigDict(frozen=True)

    env: Optional[str] = Field(None, description="Environment variable holding the password")
    secret: Optional[str] = Field(None, description="Secret file name under the secrets directory")
    allow_insecure_default: bool = Field(
        default=False,
        description="Fall back to the insecure development default when unresolved",
    )

    @model_validator(mode="after")
    def _require_source(self) -> "PasswordRef":
        if not self.env and not self.secret:
            raise ValueError("password reference needs an env var or a secret name")
        return self


class RoleGrant(BaseModel):
    """A role granted on a database."""
    model_config = ConfigDict(frozen=True)

    role: str = Field(..., min_length=1)
    db: str = Field(..., min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return {"role": value[0], "db": value[1]}
        return value

    def as_document(self) -> dict[str, str]:
        return {"role": self.role, "db": self.db}


class UserSpec(BaseModel):
    """A database user and its ordered roles."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    database: str = Field(default="admin", min_length=1, description="Database the user is created in")
    password: PasswordRef
    roles: tuple[RoleGrant, ...] = ()

    @property
    def kind(self) -> SpecKind:
        return SpecKind.USER

    @property
    def qualified_name(self) -> str:
        return f"{self.database}.{self.name}"

    def role_set(self) -> frozenset[tuple[str, str]]:
        """Roles as an order-insensitive set of (role, db) pairs."""
        return frozenset((grant.role, grant.db) for grant in self.roles)


class CollectionSpec(BaseModel):
    """A collection with an optional schema validator."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    database: str = Field(..., min_length=1)
    validator: Optional[dict[str, Any]] = None
    validation_level: Literal["off", "strict", "moderate"] = "strict"
    validation_action: Literal["error", "warn"] = "error"

    @property
    def kind(self) -> SpecKind:
        return SpecKind.COLLECTION

    @property
    def qualified_name(self) -> str:
        return f"{self.database}.{self.name}"

    def create_options(self) -> dict[str, Any]:
        """Options passed to the create command."""
        if self.validator is None:
            return {}
        return {
            "validator": self.validator,
            "validationLevel": self.validation_level,
            "validationAction": self.validation_action,
        }


class IndexSpec(BaseModel):
    """
    An index on a collection.

    An index is identified by its key pattern plus options. `replace`
    allows an incompatible existing index to be dropped and recreated.
    """
    model_config = ConfigDict(frozen=True)

    database: str = Field(..., min_length=1)
    collection: str = Field(..., min_length=1)
    keys: tuple[tuple[str, IndexDirection], ...]
    unique: bool = False
    expire_after_seconds: Optional[int] = Field(None, ge=0)
    name: Optional[str] = None
    replace: bool = False

    @field_validator("keys", mode="before")
    @classmethod
    def _keys_from_mapping(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return list(value.items())
        return value

    @field_validator("keys")
    @classmethod
    def _keys_not_empty(cls, value: tuple) -> tuple:
        if not value:
            raise ValueError("index key pattern must not be empty")
        fields = [field for field, _ in value]
        if len(set(fields)) != len(fields):
            raise ValueError("index key pattern repeats a field")
        return value

    @model_validator(mode="after")
    def _check_ttl(self) -> "IndexSpec":
        if self.expire_after_seconds is not None:
            if len(self.keys) != 1 or self.keys[0][1] not in (1, -1):
                raise ValueError("TTL indexes must be single-field ascending/descending indexes")
        return self

    @property
    def kind(self) -> SpecKind:
        return SpecKind.INDEX

    @property
    def effective_name(self) -> str:
        """Declared name, or the name MongoDB generates for the key pattern."""
        if self.name:
            return self.name
        return "_".join(f"{field}_{direction}" for field, direction in self.keys)

    @property
    def qualified_name(self) -> str:
        return f"{self.database}.{self.collection}.{self.effective_name}"

    def key_list(self) -> list[tuple[str, Union[int, str]]]:
        return [(field, direction) for field, direction in self.keys]

    def create_options(self) -> dict[str, Any]:
        """Options passed to create_index."""
        options: dict[str, Any] = {"name": self.effective_name}
        if self.unique:
            options["unique"] = True
        if self.expire_after_seconds is not None:
            options["expireAfterSeconds"] = self.expire_after_seconds
        return options


Spec = Union[UserSpec, CollectionSpec, IndexSpec]


class ApplyResult(BaseModel):
    """Outcome of applying one spec. Not persisted."""
    kind: SpecKind
    name: str
    outcome: Outcome
    error_kind: Optional[ErrorKind] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.CREATED, Outcome.ALREADY_EXISTS)


class BootstrapManifest(BaseModel):
    """Every object a bootstrap run should ensure is present."""
    model_config = ConfigDict(frozen=True)

    users: tuple[UserSpec, ...] = ()
    collections: tuple[CollectionSpec, ...] = ()
    indexes: tuple[IndexSpec, ...] = ()

    @model_validator(mode="after")
    def _unique_collections(self) -> "BootstrapManifest":
        seen: set[str] = set()
        for spec in self.collections:
            if spec.qualified_name in seen:
                raise ValueError(f"collection {spec.qualified_name} declared twice")
            seen.add(spec.qualified_name)
        return self

    def specs(self) -> list[Spec]:
        """All specs in declaration order."""
        return [*self.users, *self.collections, *self.indexes]
