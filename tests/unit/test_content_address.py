from nft_portfolio.config import PipelineConfig, Settings
from nft_portfolio.services.content_address import (
    DEFAULT_GATEWAYS,
    ContentAddressResolver,
    resolve_reference,
)


def test_recognized_scheme_rewrites_to_gateway():
    resolver = ContentAddressResolver({"proto://": "https://gw.example"})
    assert resolver.resolve("proto://abc123") == "https://gw.example/abc123"


def test_gateway_trailing_slash_is_not_doubled():
    resolver = ContentAddressResolver({"proto://": "https://gw.example/"})
    assert resolver.resolve("proto://abc123") == "https://gw.example/abc123"


def test_plain_url_is_unchanged():
    resolver = ContentAddressResolver({"proto://": "https://gw.example"})
    url = "https://example.com/meta/1.json"
    assert resolver.resolve(url) == url


def test_empty_and_none_are_unchanged():
    resolver = ContentAddressResolver()
    assert resolver.resolve("") == ""
    assert resolver.resolve(None) == ""


def test_content_identifier_path_is_kept_verbatim():
    resolver = ContentAddressResolver()
    ref = "ipfs://QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG/readme?x=1"
    assert resolver.resolve(ref) == "https://ipfs.io/ipfs/QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG/readme?x=1"


def test_redundant_ipfs_segment_is_collapsed():
    assert resolve_reference("ipfs://ipfs/QmHash/1") == "https://ipfs.io/ipfs/QmHash/1"


def test_arweave_default_gateway():
    assert resolve_reference("ar://tx-id") == "https://arweave.net/tx-id"


def test_unknown_scheme_is_unchanged():
    assert resolve_reference("foo://bar") == "foo://bar"
    assert resolve_reference("data:application/json,{}") == "data:application/json,{}"


def test_defaults_used_when_mapping_empty():
    assert ContentAddressResolver({}).gateways == DEFAULT_GATEWAYS


def test_pipeline_config_carries_configured_gateway(monkeypatch):
    monkeypatch.setenv("IPFS_GATEWAY", "https://cloudflare-ipfs.com/ipfs/")
    config = PipelineConfig.from_settings(Settings())
    resolver = ContentAddressResolver(config.gateways)
    assert resolver.resolve("ipfs://abc") == "https://cloudflare-ipfs.com/ipfs/abc"
