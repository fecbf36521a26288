import pytest

from conftest import CONTRACT, GATEWAY, FakeFetcher, FakeReader
from nft_portfolio.errors import MetadataError
from nft_portfolio.services.content_address import ContentAddressResolver
from nft_portfolio.services.metadata import MetadataEnricher, build_entry, parse_attributes
from nft_portfolio.types import CollectionInfo, EnrichmentFailure, FailureStage, PortfolioEntry

COLLECTION = CollectionInfo(name="Test Apes", symbol="TAPE", contract_address=CONTRACT)


@pytest.fixture
def resolver():
    return ContentAddressResolver({"ipfs://": GATEWAY})


def test_build_entry_populates_fields_and_resolves_image(resolver):
    entry = build_entry("5", {
        "name": "Ape #5",
        "description": "A fine ape",
        "image": "ipfs://img/5.png",
        "attributes": [{"trait_type": "Fur", "value": "Gold"}, {"trait_type": "Eyes", "value": "Laser"}],
    }, COLLECTION, resolver)

    assert entry.name == "Ape #5"
    assert entry.description == "A fine ape"
    assert entry.image == f"{GATEWAY}/img/5.png"
    assert [(a.trait_type, a.value) for a in entry.attributes] == [("Fur", "Gold"), ("Eyes", "Laser")]
    assert entry.collection is COLLECTION
    assert entry.price is None


def test_build_entry_defaults(resolver):
    entry = build_entry("17", {}, COLLECTION, resolver)

    assert entry.name == "#17"
    assert entry.description == ""
    assert entry.image == ""
    assert entry.attributes is None


def test_null_or_empty_name_falls_back(resolver):
    assert build_entry("3", {"name": None}, COLLECTION, resolver).name == "#3"
    assert build_entry("3", {"name": ""}, COLLECTION, resolver).name == "#3"


def test_plain_image_url_is_kept(resolver):
    entry = build_entry("1", {"image": "https://cdn.example/1.png"}, COLLECTION, resolver)
    assert entry.image == "https://cdn.example/1.png"


def test_attributes_keep_order_and_duplicates_and_stringify_values():
    attributes = parse_attributes([
        {"trait_type": "Level", "value": 3},
        {"trait_type": "Level", "value": 3},
        "garbage",
        {"value": "Untyped"},
    ])
    assert [(a.trait_type, a.value) for a in attributes] == [("Level", "3"), ("Level", "3"), ("", "Untyped")]


def test_non_list_attributes_are_absent():
    assert parse_attributes({"Fur": "Gold"}) is None
    assert parse_attributes(None) is None
    assert parse_attributes([]) == []


@pytest.mark.asyncio
async def test_fetch_metadata_resolves_token_uri_through_gateway(resolver):
    reader = FakeReader()
    fetcher = FakeFetcher()
    enricher = MetadataEnricher(reader, fetcher, resolver)

    entry = await enricher.fetch_metadata(CONTRACT, "42", COLLECTION)

    assert isinstance(entry, PortfolioEntry)
    assert fetcher.locations == [f"{GATEWAY}/meta/42.json"]
    assert entry.name == "Ape 42"
    assert entry.image == f"{GATEWAY}/img/42.png"


@pytest.mark.asyncio
async def test_contract_call_failure_becomes_metadata_failure(resolver):
    enricher = MetadataEnricher(FakeReader(failing_uris={"8"}), FakeFetcher(), resolver)

    result = await enricher.fetch_metadata(CONTRACT, "8", COLLECTION)

    assert isinstance(result, EnrichmentFailure)
    assert result.stage == FailureStage.METADATA
    assert result.token_id == "8"
    assert "tokenURI" in result.cause


@pytest.mark.asyncio
async def test_fetch_and_parse_failures_become_metadata_failures(resolver):
    fetcher = FakeFetcher({"1": MetadataError("Metadata document is not valid JSON"), "2": RuntimeError("boom")})
    enricher = MetadataEnricher(FakeReader(), fetcher, resolver)

    bad_json = await enricher.fetch_metadata(CONTRACT, "1", COLLECTION)
    crashed = await enricher.fetch_metadata(CONTRACT, "2", COLLECTION)

    assert bad_json.cause == "Metadata document is not valid JSON"
    assert crashed.cause == "RuntimeError: boom"
