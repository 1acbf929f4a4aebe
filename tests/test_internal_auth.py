"""Tests du vérificateur de clés d'API internes."""

import pytest

from siteapi.apigw.internal_auth import InternalApiKeyVerifier


class TestInternalApiKeyVerifier:
    """Tests unitaires (sans application)."""

    def setup_method(self) -> None:
        self.verifier = InternalApiKeyVerifier(["current-key", "next-key"])

    def test_accepts_any_configured_key(self) -> None:
        assert self.verifier.is_authorized("current-key")
        assert self.verifier.is_authorized("next-key")

    def test_value_is_trimmed(self) -> None:
        assert self.verifier.is_authorized("  next-key\t")

    def test_rejects_missing_empty_or_unknown(self) -> None:
        assert not self.verifier.is_authorized(None)
        assert not self.verifier.is_authorized("")
        assert not self.verifier.is_authorized("   ")
        assert not self.verifier.is_authorized("current-key-2")
        assert not self.verifier.is_authorized("CURRENT-KEY")

    def test_requires_at_least_one_key(self) -> None:
        with pytest.raises(ValueError):
            InternalApiKeyVerifier([" ", ""])
