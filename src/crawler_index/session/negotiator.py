"""Lazy engine version detection and capability derivation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from crawler_index.domain import CapabilitySet, EngineVersion, derive_capabilities
from crawler_index.errors import EngineConnectionError, EngineReportedError

if TYPE_CHECKING:
    from crawler_index.engine.protocols import EngineBackend

_MALFORMED_INFO_ERROR = "Malformed engine info response: {detail}"
_logger = logging.getLogger(__name__)


def parse_info_payload(payload: object) -> EngineVersion:
    """Parse the engine info payload into a version.

    Args:
        payload (object): Body of `GET /`.

    Raises:
        EngineConnectionError: If the payload carries no parseable version.

    Returns:
        EngineVersion: Detected version.

    """
    version_block = payload.get("version") if isinstance(payload, dict) else None
    if not isinstance(version_block, dict) or not isinstance(version_block.get("number"), str):
        raise EngineConnectionError(_MALFORMED_INFO_ERROR.format(detail=f"no version number in {payload!r}"))

    distribution = version_block.get("distribution")
    try:
        return EngineVersion.parse(
            version_block["number"],
            distribution=distribution if isinstance(distribution, str) else None,
        )
    except ValueError as exc:
        raise EngineConnectionError(_MALFORMED_INFO_ERROR.format(detail=exc)) from exc


class VersionNegotiator:
    """Detect the engine version once per session and cache its capabilities."""

    def __init__(self, backend: EngineBackend) -> None:
        self._backend = backend
        self._version: EngineVersion | None = None
        self._capabilities: CapabilitySet | None = None

    def detect(self) -> EngineVersion:
        """Return the engine version, probing the engine on first call only.

        Returns:
            EngineVersion: Cached engine version.

        """
        if self._version is not None:
            return self._version

        try:
            payload = self._backend.info()
        except EngineReportedError as exc:
            raise EngineConnectionError(_MALFORMED_INFO_ERROR.format(detail=exc)) from exc

        version = parse_info_payload(payload)
        _logger.debug("Detected %s engine version [%s]", version.distribution, version)
        # Concurrent first callers converge on equal values; the first assignment wins.
        if self._version is None:
            self._version = version
        return self._version

    def capabilities(self) -> CapabilitySet:
        """Return the capability set of the detected engine.

        Returns:
            CapabilitySet: Cached capabilities.

        """
        if self._capabilities is None:
            self._capabilities = derive_capabilities(self.detect())
        return self._capabilities

    @property
    def detected_version(self) -> EngineVersion | None:
        """Return the cached version without probing."""
        return self._version
