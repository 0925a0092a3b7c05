"""Optimistic mutation lifecycle: apply, execute, then reconcile or roll back.

A mutation runs in four phases:

1. ``on_mutate`` writes the optimistic state through an :class:`OptimisticScope`,
   which cancels in-flight reads and snapshots each key before its first write.
2. ``execute`` performs the remote call, bounded by the executor timeout.
3. On failure the executor restores every snapshot, calls ``on_error``,
   releases held resources and reports the failure to the notifier.
4. On success ``on_success`` swaps placeholders for server entities and the
   held resources are released.

Exactly one of the last two phases runs per invocation. Overlapping mutations
on the same key are not serialized: each one snapshots whatever the cache holds
when it starts, and the last write wins.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, ClassVar, Literal, Protocol

from claimdesk.domain.errors import UserFacingError

if TYPE_CHECKING:
    from claimdesk.domain.cache import QueryCache, QueryKey, Snapshot
    from claimdesk.domain.model import Identified
    from claimdesk.domain.ports.notifications import Notifier, ResourceReleaser

log = getLogger(__name__)

DEFAULT_MUTATION_TIMEOUT_SECONDS = 90.0


@dataclass(slots=True)
class MutationContext:
    """Per-invocation state threaded from ``on_mutate`` to the settle phase."""

    mutation: str
    snapshots: dict[QueryKey, Snapshot] = field(default_factory=dict)
    temporaries: list[Identified] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    extras: dict[str, Any] = field(default_factory=dict)

    def temporary_ids(self) -> tuple[str, ...]:
        return tuple(entity.id for entity in self.temporaries)


class OptimisticScope:
    """The only way ``on_mutate`` touches the cache."""

    def __init__(self, cache: QueryCache, context: MutationContext) -> None:
        self._cache = cache
        self._context = context

    @property
    def context(self) -> MutationContext:
        return self._context

    def read(self, key: QueryKey) -> Any:
        return self._cache.get(key)

    def apply(self, key: QueryKey, update: Any, *, default: Any = None) -> Any:
        """Cancel reads for ``key``, snapshot it once, then write ``update``."""

        self._cache.cancel_in_flight(key)
        if key not in self._context.snapshots:
            self._context.snapshots[key] = self._cache.snapshot(key)
        return self._cache.set(key, update, default=default)

    def track[E: Identified](self, entity: E) -> E:
        self._context.temporaries.append(entity)
        return entity

    def hold(self, resource: str) -> str:
        self._context.resources.append(resource)
        return resource


class Mutation[TInput, TResult](Protocol):
    name: str

    def on_mutate(self, variables: TInput, scope: OptimisticScope) -> None: ...

    async def execute(self, variables: TInput) -> TResult: ...

    def on_success(self, result: TResult, variables: TInput, context: MutationContext) -> None: ...

    def on_error(self, error: Exception, variables: TInput, context: MutationContext) -> None: ...

    def describe_failure(self, error: Exception, variables: TInput) -> str: ...

    def success_message(self, result: TResult, variables: TInput) -> str | None: ...


class BaseMutation[TInput, TResult](ABC):
    """Defaults for the optional hooks; subclasses implement ``execute``."""

    name: ClassVar[str] = "mutation"
    failure_message: ClassVar[str] = "Something went wrong"

    def on_mutate(self, variables: TInput, scope: OptimisticScope) -> None:
        return None

    @abstractmethod
    async def execute(self, variables: TInput) -> TResult: ...

    def on_success(self, result: TResult, variables: TInput, context: MutationContext) -> None:
        return None

    def on_error(self, error: Exception, variables: TInput, context: MutationContext) -> None:
        return None

    def describe_failure(self, error: Exception, variables: TInput) -> str:  # noqa: ARG002
        if isinstance(error, UserFacingError) and str(error):
            return str(error)
        if isinstance(error, TimeoutError):
            return f"{self.failure_message} (timed out)"
        return self.failure_message

    def success_message(self, result: TResult, variables: TInput) -> str | None:  # noqa: ARG002
        return None


@dataclass(frozen=True, slots=True)
class MutationSuccess[T]:
    value: T
    ok: Literal[True] = True


@dataclass(frozen=True, slots=True)
class MutationFailure:
    error: Exception
    message: str
    ok: Literal[False] = False


type MutationResult[T] = MutationSuccess[T] | MutationFailure


@dataclass(slots=True)
class MutationExecutor:
    """Runs mutations against a shared :class:`QueryCache`."""

    cache: QueryCache
    notifier: Notifier
    release: ResourceReleaser
    timeout_seconds: float | None = DEFAULT_MUTATION_TIMEOUT_SECONDS

    async def run[TInput, TResult](
        self,
        mutation: Mutation[TInput, TResult],
        variables: TInput,
    ) -> MutationResult[TResult]:
        context = MutationContext(mutation=mutation.name)
        scope = OptimisticScope(self.cache, context)
        log.debug("Starting mutation %s", mutation.name)

        try:
            mutation.on_mutate(variables, scope)
            async with asyncio.timeout(self.timeout_seconds):
                result = await mutation.execute(variables)
        except asyncio.CancelledError:
            self._rollback(context)
            self._release_resources(context)
            raise
        except Exception as exc:  # noqa: BLE001
            return self._settle_failure(mutation, variables, context, exc)

        return self._settle_success(mutation, variables, context, result)

    def _settle_failure[TInput, TResult](
        self,
        mutation: Mutation[TInput, TResult],
        variables: TInput,
        context: MutationContext,
        error: Exception,
    ) -> MutationFailure:
        self._rollback(context)
        try:
            mutation.on_error(error, variables, context)
        except Exception:
            log.exception("on_error hook of %s raised", mutation.name)
        self._release_resources(context)

        message = mutation.describe_failure(error, variables)
        log.warning(
            "Mutation %s failed, rolled back %s key(s): %s",
            mutation.name,
            len(context.snapshots),
            error,
        )
        self.notifier.error(message)
        return MutationFailure(error=error, message=message)

    def _settle_success[TInput, TResult](
        self,
        mutation: Mutation[TInput, TResult],
        variables: TInput,
        context: MutationContext,
        result: TResult,
    ) -> MutationSuccess[TResult]:
        try:
            mutation.on_success(result, variables, context)
        except Exception:
            # the server accepted the write; refetch instead of rolling back
            log.exception("on_success hook of %s raised", mutation.name)
            for key in context.snapshots:
                self.cache.invalidate(key, exact=True)
        self._release_resources(context)

        message = mutation.success_message(result, variables)
        if message is not None:
            self.notifier.success(message)
        log.debug("Mutation %s confirmed", mutation.name)
        return MutationSuccess(value=result)

    def _rollback(self, context: MutationContext) -> None:
        for snapshot in reversed(tuple(context.snapshots.values())):
            self.cache.restore(snapshot)

    def _release_resources(self, context: MutationContext) -> None:
        while context.resources:
            resource = context.resources.pop()
            try:
                self.release(resource)
            except Exception:
                log.exception("Failed to release %s", resource)
