from __future__ import annotations

import pytest

from crawler_index.domain import EngineVersion, MappingStyle, derive_capabilities


@pytest.mark.parametrize(
    ("raw_version", "ingest", "mapping_style", "tracks_total_hits"),
    [
        ("1.7.5", False, MappingStyle.LEGACY, False),
        ("2.4.6", False, MappingStyle.LEGACY, False),
        ("5.0.0-alpha1", True, MappingStyle.LEGACY, False),
        ("5.0.0-rc1", True, MappingStyle.LEGACY, False),
        ("5.0.0", True, MappingStyle.TYPELESS, False),
        ("6.8.23", True, MappingStyle.TYPELESS, False),
        ("7.0.0", True, MappingStyle.TYPELESS, True),
        ("8.11.1", True, MappingStyle.TYPELESS, True),
    ],
)
def test_derive_capabilities_follows_version_table(
    raw_version: str,
    ingest: bool,  # noqa: FBT001
    mapping_style: MappingStyle,
    tracks_total_hits: bool,  # noqa: FBT001
) -> None:
    capabilities = derive_capabilities(EngineVersion.parse(raw_version))

    assert capabilities.ingest_supported is ingest
    assert capabilities.mapping_style is mapping_style
    assert capabilities.tracks_total_hits is tracks_total_hits


def test_derive_capabilities_treats_opensearch_as_typeless_with_ingest() -> None:
    capabilities = derive_capabilities(EngineVersion.parse("2.11.0", distribution="opensearch"))

    assert capabilities.ingest_supported is True
    assert capabilities.mapping_style is MappingStyle.TYPELESS
    assert capabilities.tracks_total_hits is True


def test_derive_capabilities_is_deterministic() -> None:
    version = EngineVersion.parse("6.2.4")

    assert derive_capabilities(version) == derive_capabilities(version)


@pytest.mark.parametrize(
    ("raw_version", "distribution", "required"),
    [
        ("2.4.6", None, True),
        ("5.6.16", None, True),
        ("6.1.4", None, True),
        ("6.2.0", None, False),
        ("7.17.9", None, False),
        ("1.3.0", "opensearch", False),
    ],
)
def test_derive_capabilities_requires_document_type_before_doc_endpoint(
    raw_version: str,
    distribution: str | None,
    required: bool,  # noqa: FBT001
) -> None:
    capabilities = derive_capabilities(EngineVersion.parse(raw_version, distribution=distribution))

    assert capabilities.document_type_required is required
