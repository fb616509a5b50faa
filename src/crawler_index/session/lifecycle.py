"""Index lifecycle: creation, probing, health waits and refresh."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from crawler_index.domain import Acknowledgement, HealthState, IndexDescriptor
from crawler_index.errors import EngineReportedError, HealthTimeoutError, IndexAlreadyExistsError

if TYPE_CHECKING:
    from crawler_index.engine.protocols import EngineBackend

# Error type names used by the engine across generations (1.x answers a bare string).
_ALREADY_EXISTS_ERRORS = frozenset(
    {
        "resource_already_exists_exception",
        "index_already_exists_exception",
        "IndexAlreadyExistsException",
    },
)
_HEALTH_UNAVAILABLE_STATUSES = frozenset({404, 408})
_HTTP_NOT_FOUND = 404
_logger = logging.getLogger(__name__)


def _duration(seconds: float | None) -> str | None:
    if seconds is None:
        return None
    return f"{max(int(seconds * 1000), 1)}ms"


def settings_body(settings_and_mappings: Mapping[str, Any] | str | None) -> dict[str, Any] | None:
    """Normalize index settings given as a mapping or a JSON document.

    Args:
        settings_and_mappings (Mapping[str, Any] | str | None): Raw settings.

    Returns:
        dict[str, Any] | None: Settings payload, or None when nothing was supplied.

    """
    if settings_and_mappings is None:
        return None
    if isinstance(settings_and_mappings, str):
        if not settings_and_mappings.strip():
            return None
        return json.loads(settings_and_mappings)
    return dict(settings_and_mappings)


class IndexLifecycleManager:
    """Create, probe, wait for and refresh indices."""

    def __init__(  # noqa: PLR0913
        self,
        backend: EngineBackend,
        *,
        health_timeout_s: float = 30.0,
        poll_initial_s: float = 0.1,
        poll_max_s: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._backend = backend
        self._health_timeout_s = health_timeout_s
        self._poll_initial_s = poll_initial_s
        self._poll_max_s = poll_max_s
        self._clock = clock
        self._sleep = sleep

    def create_index(
        self,
        name: str,
        *,
        override_if_exists: bool = False,
        settings_and_mappings: Mapping[str, Any] | str | None = None,
    ) -> Acknowledgement:
        """Create an index.

        An existing index is left untouched when `override_if_exists` is set.

        Args:
            name (str): Index name.
            override_if_exists (bool): Succeed without changes when the index exists.
            settings_and_mappings (Mapping[str, Any] | str | None): Optional settings/mappings.

        Raises:
            IndexAlreadyExistsError: If the index exists and `override_if_exists` is False.

        Returns:
            Acknowledgement: Creation acknowledgement; `created` is False for the no-op case.

        """
        body = settings_body(settings_and_mappings)
        try:
            response = self._backend.create_index(index=name, body=body)
        except EngineReportedError as exc:
            if exc.error_type not in _ALREADY_EXISTS_ERRORS:
                raise
            if not override_if_exists:
                raise IndexAlreadyExistsError(name) from exc
            _logger.debug("Index [%s] already exists, keeping its configuration", name)
            return Acknowledgement(resource=name, created=False)

        _logger.info("Created index [%s]", name)
        return Acknowledgement(
            resource=name,
            acknowledged=bool(response.get("acknowledged", True)),
            created=True,
        )

    def is_existing_index(self, name: str) -> bool:
        """Tell whether an index exists, without mutating anything."""
        exists = self._backend.index_exists(index=name)
        _logger.debug("Index [%s] exists: %s", name, exists)
        return exists

    def delete_index(self, name: str) -> Acknowledgement:
        """Delete an index or index pattern; a missing index is not an error."""
        try:
            response = self._backend.delete_index(index=name)
        except EngineReportedError as exc:
            if exc.status != _HTTP_NOT_FOUND:
                raise
            _logger.debug("Index [%s] does not exist, nothing to delete", name)
            return Acknowledgement(resource=name, acknowledged=False)
        return Acknowledgement(resource=name, acknowledged=bool(response.get("acknowledged", True)))

    def index_health(self, name: str, *, hold_s: float | None = None) -> IndexDescriptor:
        """Poll index health once.

        Args:
            name (str): Index name.
            hold_s (float | None): Longest time the engine may hold the request; engine default when None.

        Returns:
            IndexDescriptor: Index with its current health; `unknown` when unavailable.

        """
        try:
            payload: Any = self._backend.cluster_health(index=name, timeout=_duration(hold_s))
        except EngineReportedError as exc:
            if exc.status not in _HEALTH_UNAVAILABLE_STATUSES:
                raise
            payload = exc.payload
        status = payload.get("status") if isinstance(payload, dict) else None
        return IndexDescriptor(name=name, health_state=HealthState.parse(status))

    def wait_for_healthy_index(self, name: str, timeout_s: float | None = None) -> IndexDescriptor:
        """Block until the index health is at least yellow.

        Polls with exponential backoff bounded by the poll settings and never
        sleeps past the deadline. Each poll asks the engine to answer within the
        remaining time, capped at the longest poll interval.

        Args:
            name (str): Index name.
            timeout_s (float | None): Deadline in seconds; settings default when None.

        Raises:
            HealthTimeoutError: If the deadline elapses while health is red or unknown.

        Returns:
            IndexDescriptor: Index with its healthy state.

        """
        limit = self._health_timeout_s if timeout_s is None else timeout_s
        deadline = self._clock() + limit
        interval = self._poll_initial_s

        while True:
            hold_s = min(max(deadline - self._clock(), 0.0), self._poll_max_s)
            descriptor = self.index_health(name, hold_s=hold_s)
            if descriptor.health_state.is_healthy:
                _logger.debug("Index [%s] is %s", name, descriptor.health_state)
                return descriptor

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise HealthTimeoutError(index=name, timeout_s=limit, last_state=descriptor.health_state.value)

            _logger.debug("Index [%s] is %s, next poll in %.2fs", name, descriptor.health_state, interval)
            self._sleep(min(interval, remaining))
            interval = min(interval * 2, self._poll_max_s)

    def refresh(self, name: str) -> Acknowledgement:
        """Make all prior writes to the index visible to search."""
        response = self._backend.refresh(index=name)
        shards = response.get("_shards")
        failed = shards.get("failed", 0) if isinstance(shards, dict) else 0
        return Acknowledgement(resource=name, acknowledged=not failed)
