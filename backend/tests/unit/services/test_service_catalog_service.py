# backend/tests/unit/services/test_service_catalog_service.py
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from carenow.core.exceptions import NotFoundException
from carenow.services.service_catalog_service import ServiceCatalogService


@pytest.fixture
def catalog(db, test_settings):
    return ServiceCatalogService(db, settings=test_settings)


def test_returns_immutable_snapshots(catalog, make_service):
    make_service()
    services = catalog.get_active_services()
    assert services[0].id == "elder_care_1"
    assert services[0].calculate_price(2.0) == 200000.0
    with pytest.raises(ValidationError):
        services[0].name = "changed"


def test_cached_until_ttl_expires(catalog, make_service):
    make_service()
    with patch("carenow.services.service_catalog_service.time.monotonic", return_value=1000.0):
        assert len(catalog.get_active_services()) == 1

    make_service(id="child_care_1", name="Child care", category="child_care")

    with patch("carenow.services.service_catalog_service.time.monotonic", return_value=1100.0):
        assert len(catalog.get_active_services()) == 1
    with patch("carenow.services.service_catalog_service.time.monotonic", return_value=1301.0):
        assert len(catalog.get_active_services()) == 2


def test_refresh_bypasses_cache(catalog, make_service):
    make_service()
    catalog.get_active_services()
    make_service(id="child_care_1", name="Child care", category="child_care")
    assert len(catalog.refresh()) == 2


def test_get_service(catalog, make_service):
    make_service()
    assert catalog.get_service("elder_care_1").base_price == 100000.0
    with pytest.raises(NotFoundException):
        catalog.get_service("nope")


def test_blank_search_returns_catalog(catalog, make_service):
    make_service()
    assert len(catalog.search_services("  ")) == 1
    assert catalog.search_services("elder")[0].id == "elder_care_1"
    assert catalog.get_services_by_category("elder_care")[0].id == "elder_care_1"
