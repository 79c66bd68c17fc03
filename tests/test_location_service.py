from __future__ import annotations

import pytest

from services.location_service import LocationResolver
from services.session import CheckoutSession


@pytest.mark.parametrize('ip', ['127.0.0.1', '::1', '', None, '   '])
def test_local_or_empty_ip_returns_none_without_lookup(resolver, reader, session, ip) -> None:
    assert resolver.resolve_country(session, ip) is None
    assert reader.calls == []
    assert session.country is None


def test_resolves_and_caches_country_in_session(resolver, reader, session) -> None:
    assert resolver.resolve_country(session, '81.2.69.160') == 'GB'
    assert session.country == 'GB'

    assert resolver.resolve_country(session, '41.0.0.1') == 'GB'
    assert reader.calls == ['81.2.69.160']


def test_failed_lookup_is_retried_by_default(resolver, reader, session) -> None:
    assert resolver.resolve_country(session, '203.0.113.9') is None
    assert resolver.resolve_country(session, '203.0.113.9') is None
    assert reader.calls == ['203.0.113.9', '203.0.113.9']
    assert session.country is None


def test_failed_lookup_can_be_remembered(reader, session) -> None:
    resolver = LocationResolver(reader=reader, cache_failed_lookups=True)

    assert resolver.resolve_country(session, '203.0.113.9') is None
    assert resolver.resolve_country(session, '203.0.113.9') is None
    assert reader.calls == ['203.0.113.9']
    assert session.lookup_failed


def test_empty_iso_code_counts_as_failure(reader, session) -> None:
    reader.countries['198.51.100.7'] = None
    resolver = LocationResolver(reader=reader)

    assert resolver.resolve_country(session, '198.51.100.7') is None
    assert session.country is None


def test_malformed_ip_degrades_to_none(session) -> None:
    class RaisingReader:
        def country(self, ip_address):
            raise ValueError(f'{ip_address} does not appear to be an IPv4 or IPv6 address')

    resolver = LocationResolver(reader=RaisingReader())
    assert resolver.resolve_country(session, 'not-an-ip') is None


def test_test_ip_overrides_visitor_ip(reader, session) -> None:
    resolver = LocationResolver(reader=reader, test_ip='41.0.0.1')

    assert resolver.resolve_country(session, '127.0.0.1') == 'ZA'
    assert reader.calls == ['41.0.0.1']


def test_missing_database_file_degrades_to_none(tmp_path, session) -> None:
    resolver = LocationResolver(db_path=str(tmp_path / 'missing.mmdb'))

    assert resolver.resolve_country(session, '81.2.69.160') is None
    assert resolver.reader is None


def test_clear_forgets_country_and_next_call_looks_up_again(resolver, reader) -> None:
    session = CheckoutSession({})
    resolver.resolve_country(session, '81.2.69.160')

    resolver.clear(session)
    assert session.country is None

    assert resolver.resolve_country(session, '81.2.69.160') == 'GB'
    assert reader.calls == ['81.2.69.160', '81.2.69.160']


def test_get_local_country_never_looks_up(resolver, reader, session) -> None:
    assert resolver.get_local_country(session) is None
    assert reader.calls == []
