"""
Bootstrap engine.

Applies user, collection and index specs to a live database through an
AdminHandle. Existence is always decided from the database's own metadata
(usersInfo, listCollections, index_information) so that "exists and
compatible" and "exists but incompatible" produce different outcomes.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

from bson.errors import BSONError
from pymongo.errors import OperationFailure, PyMongoError

from mongo_bootstrap.core.errors import (
    ApplyTimeoutError,
    PasswordResolutionError,
    SpecConflictError,
    SpecValidationError,
)
from mongo_bootstrap.core.secrets import PasswordResolver
from mongo_bootstrap.database.connections import AdminHandle
from mongo_bootstrap.models.specs import (
    ApplyResult,
    CollectionSpec,
    ErrorKind,
    IndexSpec,
    Outcome,
    Spec,
    SpecKind,
    UserSpec,
)

logger = logging.getLogger("mongo_bootstrap.engine")

# Users first, then collections, then the indexes built on them
KIND_ORDER = {
    SpecKind.USER: 0,
    SpecKind.COLLECTION: 1,
    SpecKind.INDEX: 2,
}

# Server error codes meaning the submitted document was malformed
VALIDATION_ERROR_CODES = frozenset({2, 9, 14})  # BadValue, FailedToParse, TypeMismatch


def order_specs(specs: Iterable[Spec]) -> list[Spec]:
    """Group specs by kind in apply order, keeping declaration order within a kind."""
    return sorted(specs, key=lambda spec: KIND_ORDER[spec.kind])


def _direction(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _existing_key(info: dict[str, Any]) -> tuple:
    """Key pattern of an existing index, with text indexes expanded to their fields."""
    pairs = [(field, _direction(direction)) for field, direction in info.get("key", [])]
    if any(field == "_fts" for field, _ in pairs):
        plain = [(f, d) for f, d in pairs if f not in ("_fts", "_ftsx")]
        text = [(f, "text") for f in sorted(info.get("weights", {}))]
        pairs = plain + text
    return tuple(pairs)


def _declared_key(spec: IndexSpec) -> tuple:
    text = sorted(field for field, direction in spec.keys if direction == "text")
    if not text:
        return tuple(spec.keys)
    plain = [(f, d) for f, d in spec.keys if d != "text"]
    return tuple(plain + [(f, "text") for f in text])


def _same_options(info: dict[str, Any], spec: IndexSpec) -> bool:
    ttl = info.get("expireAfterSeconds")
    if ttl is not None:
        ttl = int(ttl)
    return bool(info.get("unique", False)) == spec.unique and ttl == spec.expire_after_seconds


def _describe_index(info: dict[str, Any]) -> str:
    parts = [f"key={list(_existing_key(info))}"]
    if info.get("unique"):
        parts.append("unique")
    if info.get("expireAfterSeconds") is not None:
        parts.append(f"expireAfterSeconds={info['expireAfterSeconds']}")
    return " ".join(parts)


class BootstrapService:
    """Service for applying declarative specs to a database."""

    def __init__(
        self,
        handle: AdminHandle,
        resolver: PasswordResolver,
        apply_timeout: float = 5.0,
    ):
        """Initialize with an admin handle and a password resolver."""
        self.handle = handle
        self.resolver = resolver
        self.apply_timeout = apply_timeout
        # Index drop+create in flight, finished even when the apply times out
        self._replacement: Optional[asyncio.Task] = None

    # ==================== Public API ====================

    async def run(self, specs: Iterable[Spec]) -> list[ApplyResult]:
        """
        Apply every spec, users then collections then indexes.

        Per-object failures never stop the run; the caller decides what to
        do with conflict or failed results.
        """
        results = []
        for spec in order_specs(specs):
            results.append(await self.apply(spec))
        return results

    async def apply(self, spec: Spec) -> ApplyResult:
        if spec.kind == SpecKind.USER:
            return await self.apply_user(spec)
        if spec.kind == SpecKind.COLLECTION:
            return await self.apply_collection(spec)
        return await self.apply_index(spec)

    async def apply_user(self, spec: UserSpec) -> ApplyResult:
        return await self._apply(spec, self._ensure_user)

    async def apply_collection(self, spec: CollectionSpec) -> ApplyResult:
        return await self._apply(spec, self._ensure_collection)

    async def apply_index(self, spec: IndexSpec) -> ApplyResult:
        return await self._apply(spec, self._ensure_index)

    # ==================== Outcome handling ====================

    async def _apply(
        self,
        spec: Spec,
        ensure: Callable[[Any], Awaitable[Outcome]],
    ) -> ApplyResult:
        name = spec.qualified_name
        error_kind: Optional[ErrorKind] = None
        detail: Optional[str] = None
        self._replacement = None

        try:
            outcome = await self._bounded(ensure(spec))
        except ApplyTimeoutError as e:
            outcome, error_kind = Outcome.FAILED, ErrorKind.TIMEOUT
            detail = await self._finish_replacement(str(e))
        except SpecConflictError as e:
            outcome, detail = Outcome.CONFLICT, str(e)
        except SpecValidationError as e:
            outcome, error_kind, detail = Outcome.FAILED, ErrorKind.VALIDATION, str(e)
        except PasswordResolutionError as e:
            outcome, error_kind, detail = Outcome.FAILED, ErrorKind.PASSWORD, str(e)
        except (PyMongoError, BSONError) as e:
            outcome, error_kind, detail = Outcome.FAILED, ErrorKind.OPERATION, str(e)

        if outcome == Outcome.FAILED:
            logger.error(f"{spec.kind.value} {name} failed ({error_kind.value}): {detail}")
        elif outcome == Outcome.CONFLICT:
            logger.warning(f"{spec.kind.value} {name} conflicts: {detail}")
        else:
            logger.info(f"{spec.kind.value} {name}: {outcome.value}")

        return ApplyResult(
            kind=spec.kind,
            name=name,
            outcome=outcome,
            error_kind=error_kind,
            detail=detail,
        )

    async def _bounded(self, operation: Awaitable[Outcome]) -> Outcome:
        try:
            return await asyncio.wait_for(operation, timeout=self.apply_timeout)
        except asyncio.TimeoutError as e:
            raise ApplyTimeoutError(f"timed out after {self.apply_timeout}s") from e

    async def _finish_replacement(self, detail: str) -> str:
        """Wait for an index replacement cut off by the timeout so the drop is never left alone."""
        task, self._replacement = self._replacement, None
        if task is None:
            return detail
        try:
            await task
        except (PyMongoError, BSONError) as e:
            return f"{detail}; index replacement failed after drop: {e}"
        return f"{detail}; index replacement completed"

    # ==================== Users ====================

    async def _ensure_user(self, spec: UserSpec) -> Outcome:
        password = self.resolver.resolve(spec.password)

        existing = await self.handle.get_user(spec.database, spec.name)
        if existing is None:
            await self.handle.create_user(
                spec.database,
                spec.name,
                password,
                [grant.as_document() for grant in spec.roles],
            )
            return Outcome.CREATED

        existing_roles = frozenset(
            (role["role"], role["db"]) for role in existing.get("roles", [])
        )
        if existing_roles != spec.role_set():
            raise SpecConflictError(
                f"existing roles {sorted(existing_roles)} differ from declared {sorted(spec.role_set())}"
            )
        return Outcome.ALREADY_EXISTS

    # ==================== Collections ====================

    async def _ensure_collection(self, spec: CollectionSpec) -> Outcome:
        info = await self.handle.get_collection_info(spec.database, spec.name)
        if info is None:
            try:
                await self.handle.create_collection(
                    spec.database, spec.name, **spec.create_options()
                )
            except OperationFailure as e:
                if spec.validator is not None and e.code in VALIDATION_ERROR_CODES:
                    raise SpecValidationError(f"validator rejected: {e}") from e
                raise
            return Outcome.CREATED

        if info.get("type", "collection") != "collection":
            raise SpecConflictError(f"existing object is a {info['type']}, not a collection")

        if spec.validator is not None:
            options = info.get("options", {})
            if options.get("validator") != spec.validator:
                raise SpecConflictError("existing validator differs from the declared one")
            if options.get("validationLevel", "strict") != spec.validation_level:
                raise SpecConflictError(
                    f"existing validationLevel {options.get('validationLevel')} != {spec.validation_level}"
                )
            if options.get("validationAction", "error") != spec.validation_action:
                raise SpecConflictError(
                    f"existing validationAction {options.get('validationAction')} != {spec.validation_action}"
                )
        return Outcome.ALREADY_EXISTS

    # ==================== Indexes ====================

    async def _ensure_index(self, spec: IndexSpec) -> Outcome:
        existing = await self.handle.index_information(spec.database, spec.collection)
        name = spec.effective_name
        declared_key = _declared_key(spec)

        same_name = existing.get(name)
        if same_name is not None:
            if _existing_key(same_name) == declared_key and _same_options(same_name, spec):
                return Outcome.ALREADY_EXISTS
            return await self._replace_or_conflict(
                spec, name, f"index {name} exists with {_describe_index(same_name)}"
            )

        for other_name, info in existing.items():
            if _existing_key(info) != declared_key:
                continue
            if _same_options(info, spec):
                logger.debug(f"Index {spec.qualified_name} already present as {other_name}")
                return Outcome.ALREADY_EXISTS
            return await self._replace_or_conflict(
                spec, other_name, f"same key exists as {other_name} with {_describe_index(info)}"
            )

        try:
            await self.handle.create_index(
                spec.database, spec.collection, spec.key_list(), **spec.create_options()
            )
        except OperationFailure as e:
            if e.code in VALIDATION_ERROR_CODES:
                raise SpecValidationError(f"index rejected: {e}") from e
            raise
        return Outcome.CREATED

    async def _replace_or_conflict(self, spec: IndexSpec, existing_name: str, detail: str) -> Outcome:
        if not spec.replace:
            raise SpecConflictError(detail)

        logger.warning(f"Replacing index {existing_name} on {spec.database}.{spec.collection}: {detail}")
        task = asyncio.ensure_future(self._replace_index(spec, existing_name))
        self._replacement = task
        await asyncio.shield(task)
        self._replacement = None
        return Outcome.CREATED

    async def _replace_index(self, spec: IndexSpec, existing_name: str) -> None:
        await self.handle.drop_index(spec.database, spec.collection, existing_name)
        await self.handle.create_index(
            spec.database, spec.collection, spec.key_list(), **spec.create_options()
        )
