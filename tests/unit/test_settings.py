"""Tests for settings and provider wiring."""

import pytest

from roadtrip.adapters.fixtures import FixtureGeocoder, StubRoutingProvider
from roadtrip.adapters.google_maps import GoogleDirectionsProvider, GoogleGeocoder
from roadtrip.adapters.opendatasoft import OpenDataSoftCityDataset
from roadtrip.api.deps import build_catalog, build_executor, build_providers
from roadtrip.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROVIDER_MODE", raising=False)
    settings = Settings(_env_file=None)
    assert settings.provider_mode == "stub"
    assert settings.catalog_region == "Europe/"
    assert settings.provider_timeout_ms == 4000
    assert settings.fanout_cap == 4


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROVIDER_MODE", "live")
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "abc")
    monkeypatch.setenv("FANOUT_CAP", "2")
    settings = Settings(_env_file=None)
    assert settings.provider_mode == "live"
    assert settings.google_maps_api_key == "abc"
    assert settings.fanout_cap == 2


def test_stub_mode_wires_fixtures() -> None:
    providers = build_providers(Settings(_env_file=None, provider_mode="stub"))
    assert isinstance(providers.geocoder, FixtureGeocoder)
    assert isinstance(providers.routing, StubRoutingProvider)


def test_live_mode_wires_http_adapters() -> None:
    settings = Settings(
        _env_file=None,
        provider_mode="live",
        google_maps_api_key="key",
        opendatasoft_api_key="ods",
        directions_region="de",
    )
    providers = build_providers(settings)

    assert isinstance(providers.geocoder, GoogleGeocoder)
    assert isinstance(providers.routing, GoogleDirectionsProvider)
    assert providers.routing.region == "de"
    assert isinstance(providers.dataset, OpenDataSoftCityDataset)
    assert providers.dataset.api_key == "ods"


def test_live_mode_requires_google_key() -> None:
    with pytest.raises(ValueError, match="GOOGLE_MAPS_API_KEY"):
        build_providers(Settings(_env_file=None, provider_mode="live", google_maps_api_key=""))


def test_catalog_uses_configured_region() -> None:
    settings = Settings(_env_file=None, catalog_region="America/")
    providers = build_providers(settings)
    catalog = build_catalog(settings, providers, build_executor(settings))
    assert catalog.region == "America/"
