"""Rewrite content-addressed references (ipfs://, ar://) into gateway URLs."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

DEFAULT_GATEWAYS: Dict[str, str] = {
    "ipfs://": "https://ipfs.io/ipfs",
    "ar://": "https://arweave.net",
}

# Some collections publish "ipfs://ipfs/<cid>", which would otherwise resolve
# to ".../ipfs/ipfs/<cid>".
_REDUNDANT_SEGMENTS: Dict[str, str] = {
    "ipfs://": "ipfs/",
}


class ContentAddressResolver:
    """Map recognized scheme prefixes onto configured gateway base paths.

    Inputs that are empty or carry no recognized scheme are returned
    unchanged; deciding whether that is a usable location is up to the caller.
    """

    def __init__(self, gateways: Optional[Mapping[str, str]] = None):
        source = gateways if gateways else DEFAULT_GATEWAYS
        self._gateways = {scheme.lower(): base.rstrip("/") for scheme, base in source.items()}

    @property
    def gateways(self) -> Dict[str, str]:
        return dict(self._gateways)

    def resolve(self, reference: Optional[str]) -> str:
        if not reference:
            return reference or ""

        lowered = reference.lower()
        for scheme, base in self._gateways.items():
            if not lowered.startswith(scheme):
                continue
            content_id = reference[len(scheme):]
            redundant = _REDUNDANT_SEGMENTS.get(scheme)
            if redundant and content_id.lower().startswith(redundant):
                content_id = content_id[len(redundant):]
            return f"{base}/{content_id}"

        return reference


def resolve_reference(reference: Optional[str], gateways: Optional[Mapping[str, str]] = None) -> str:
    return ContentAddressResolver(gateways).resolve(reference)
