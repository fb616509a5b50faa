"""Domain contracts exchanged between the crawler and the engine facade."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from crawler_index.domain.enums import HealthState, MappingStyle

_VERSION_PATTERN = re.compile(r"^\s*(\d+)\.(\d+)(?:\.(\d+))?(?:-([0-9A-Za-z.\-]+))?\s*$")
_PRE_RELEASE_TOKEN = re.compile(r"\d+|[A-Za-z]+")
_INVALID_VERSION_MSG = "Invalid engine version string: {raw!r}"
_DEFAULT_DISTRIBUTION = "elasticsearch"


def _pre_release_key(pre_release: str | None) -> tuple[int, tuple[tuple[int, int, str], ...]]:
    if pre_release is None:
        return (1, ())
    tokens = tuple(
        (0, int(token), "") if token.isdigit() else (1, 0, token.lower())
        for token in _PRE_RELEASE_TOKEN.findall(pre_release)
    )
    return (0, tokens)


class EngineVersion(BaseModel):
    """Represent a detected engine version, ordered by semantic version rules.

    A release orders after all of its pre-releases (`5.0.0-alpha1 < 5.0.0`).
    The distribution name is informative and takes no part in ordering or
    equality.
    """

    model_config = ConfigDict(frozen=True)

    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(default=0, ge=0)
    pre_release: str | None = None
    distribution: str = _DEFAULT_DISTRIBUTION

    @classmethod
    def parse(cls, raw: str, *, distribution: str | None = None) -> EngineVersion:
        """Parse a `major.minor[.patch][-pre]` version string.

        Args:
            raw (str): Version string, e.g. `5.0.0-alpha1` or `7.17.9`.
            distribution (str | None): Engine distribution name.

        Raises:
            ValueError: If `raw` is not a version string.

        Returns:
            EngineVersion: Parsed version.

        """
        match = _VERSION_PATTERN.match(raw)
        if match is None:
            raise ValueError(_INVALID_VERSION_MSG.format(raw=raw))
        major, minor, patch, pre_release = match.groups()
        return cls(
            major=int(major),
            minor=int(minor),
            patch=int(patch) if patch is not None else 0,
            pre_release=pre_release,
            distribution=(distribution or _DEFAULT_DISTRIBUTION).strip().lower(),
        )

    def sort_key(self) -> tuple[int, int, int, tuple[int, tuple[tuple[int, int, str], ...]]]:
        """Return the key used for version ordering."""
        return (self.major, self.minor, self.patch, _pre_release_key(self.pre_release))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EngineVersion):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __hash__(self) -> int:
        return hash(self.sort_key())

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, EngineVersion):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, EngineVersion):
            return NotImplemented
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, EngineVersion):
            return NotImplemented
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, EngineVersion):
            return NotImplemented
        return self.sort_key() >= other.sort_key()

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        return f"{base}-{self.pre_release}" if self.pre_release else base


class CapabilitySet(BaseModel):
    """Represent optional engine behaviors derived from its version."""

    model_config = ConfigDict(frozen=True)

    ingest_supported: bool
    mapping_style: MappingStyle
    tracks_total_hits: bool = False
    document_type_required: bool = False


class IndexDescriptor(BaseModel):
    """Describe one index and its last observed health."""

    name: str
    settings_and_mappings: dict[str, Any] | None = None
    health_state: HealthState = HealthState.UNKNOWN


class Document(BaseModel):
    """Represent one document written to an index, overwritten by id."""

    id: str
    index: str
    source: dict[str, Any] = Field(default_factory=dict)
    pipeline_id: str | None = None


class SearchQuery(BaseModel):
    """Represent a search over one index."""

    target_index: str
    filter: dict[str, Any] | None = None
    requested_fields: list[str] = Field(default_factory=list)
    max_results: int = Field(default=10, ge=0)


class SearchHit(BaseModel):
    """Represent one matching document and the fields extracted from it."""

    id: str
    extracted_fields: dict[str, Any] = Field(default_factory=dict)


class SearchResult(BaseModel):
    """Represent the authoritative hit count and one bounded page of hits."""

    total_hits: int = Field(ge=0)
    hits: list[SearchHit] = Field(default_factory=list)


class Pipeline(BaseModel):
    """Represent an ingest pipeline definition."""

    id: str
    processors: list[dict[str, Any]] = Field(default_factory=list)
    description: str | None = None

    def body(self) -> dict[str, Any]:
        """Build the request body sent to the engine.

        Returns:
            dict[str, Any]: Pipeline definition payload.

        """
        payload: dict[str, Any] = {"processors": self.processors}
        if self.description is not None:
            payload["description"] = self.description
        return payload


class Acknowledgement(BaseModel):
    """Represent the engine acknowledgement of a mutating operation."""

    resource: str
    acknowledged: bool = True
    created: bool | None = None
    result: str | None = None
