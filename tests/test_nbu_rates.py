"""
Unit Tests for the NBU Rate Provider

HTTP is mocked at the session level; no network access is needed.

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

import opodatkuvayco.lib.nbu_rates as nbu_rates
from opodatkuvayco.core.config import NBU_API_URL
from opodatkuvayco.core.errors import ErrorKind, RateUnresolvableError
from opodatkuvayco.lib.nbu_rates import (
    NBURateProvider,
    canonical_date_key,
    get_default_converter,
    get_nbu_rate,
)


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def session():
    mock_session = MagicMock()
    mock_session.headers = {}
    mock_session.get.return_value = _response([
        {"r030": 840, "txt": "Долар США", "rate": 36.5686, "cc": "USD", "exchangedate": "10.01.2023"}
    ])
    return mock_session


@pytest.fixture
def provider(session):
    return NBURateProvider(session=session)


class TestNBURateProvider:

    def test_fetches_rate(self, provider, session):
        quote = provider.resolve_rate("usd", date(2023, 1, 10))

        assert quote.currency == "USD"
        assert quote.on_date == date(2023, 1, 10)
        assert quote.rate == Decimal("36.5686")

        session.get.assert_called_once()
        args, kwargs = session.get.call_args
        assert args[0] == NBU_API_URL
        assert kwargs["params"] == {"valcode": "USD", "date": "20230110", "json": ""}
        assert kwargs["timeout"] == provider.timeout

    def test_time_of_day_is_dropped(self, provider, session):
        quote = provider.resolve_rate("USD", datetime(2023, 1, 10, 23, 59))

        assert quote.on_date == date(2023, 1, 10)
        assert session.get.call_args[1]["params"]["date"] == "20230110"

    def test_repeated_lookup_uses_cache(self, provider, session):
        provider.resolve_rate("USD", date(2023, 1, 10))
        provider.resolve_rate("USD", datetime(2023, 1, 10, 15, 0))

        assert session.get.call_count == 1

    def test_clear_cache_refetches(self, provider, session):
        provider.resolve_rate("USD", date(2023, 1, 10))
        provider.clear_cache()
        provider.resolve_rate("USD", date(2023, 1, 10))

        assert session.get.call_count == 2

    def test_local_currency_skips_api(self, provider, session):
        quote = provider.resolve_rate("UAH", date(2023, 1, 10))

        assert quote.rate == Decimal(1)
        session.get.assert_not_called()

    def test_sets_json_headers(self, provider, session):
        assert session.headers["Accept"] == "application/json"

    def test_unknown_currency(self, provider, session):
        session.get.return_value = _response([])

        with pytest.raises(RateUnresolvableError) as exc_info:
            provider.resolve_rate("XYZ", date(2023, 1, 10))

        assert exc_info.value.kind == ErrorKind.RATE_UNRESOLVABLE
        assert exc_info.value.currency == "XYZ"
        assert "XYZ" in str(exc_info.value)

    def test_failed_lookup_is_not_cached(self, provider, session):
        session.get.return_value = _response([])
        with pytest.raises(RateUnresolvableError):
            provider.resolve_rate("USD", date(2023, 1, 10))

        session.get.return_value = _response([{"cc": "USD", "rate": 36.5}])
        quote = provider.resolve_rate("USD", date(2023, 1, 10))

        assert quote.rate == Decimal("36.5")

    def test_network_error(self, provider, session):
        session.get.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(RateUnresolvableError, match="request failed"):
            provider.resolve_rate("USD", date(2023, 1, 10))

    def test_http_error(self, provider, session):
        response = _response(None)
        response.raise_for_status.side_effect = requests.HTTPError("503 Server Error")
        session.get.return_value = response

        with pytest.raises(RateUnresolvableError):
            provider.resolve_rate("USD", date(2023, 1, 10))

    def test_non_json_response(self, provider, session):
        response = _response(None)
        response.json.side_effect = ValueError("Expecting value")
        session.get.return_value = response

        with pytest.raises(RateUnresolvableError, match="not JSON"):
            provider.resolve_rate("USD", date(2023, 1, 10))

    def test_mismatched_currency_entry(self, provider, session):
        session.get.return_value = _response([{"cc": "EUR", "rate": 40.1}])

        with pytest.raises(RateUnresolvableError, match="no matching entry"):
            provider.resolve_rate("USD", date(2023, 1, 10))

    def test_non_positive_rate(self, provider, session):
        session.get.return_value = _response([{"cc": "USD", "rate": 0}])

        with pytest.raises(RateUnresolvableError, match="non-positive"):
            provider.resolve_rate("USD", date(2023, 1, 10))

    def test_custom_url_and_timeout(self, session):
        provider = NBURateProvider(api_url="http://localhost/rates", timeout=2.5, session=session)

        provider.resolve_rate("USD", date(2023, 1, 10))

        args, kwargs = session.get.call_args
        assert args[0] == "http://localhost/rates"
        assert kwargs["timeout"] == 2.5


class TestModuleHelpers:

    def test_canonical_date_key(self):
        assert canonical_date_key(date(2023, 1, 5)) == "20230105"
        assert canonical_date_key(datetime(2023, 1, 5, 23, 0)) == "20230105"

    def test_default_converter_is_singleton(self, monkeypatch):
        monkeypatch.setattr(nbu_rates, "_nbu_provider_instance", None)

        assert get_default_converter() is get_default_converter()

    def test_get_nbu_rate_uses_default_converter(self, monkeypatch, session):
        monkeypatch.setattr(nbu_rates, "_nbu_provider_instance", NBURateProvider(session=session))

        assert get_nbu_rate("USD", date(2023, 1, 10)) == Decimal("36.5686")
