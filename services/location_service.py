"""
LocationResolver - visitor IP -> ISO country code, cached in the session.

Uses a local MaxMind GeoLite2-Country database through geoip2.  Any
lookup problem degrades to "no country", which hides the local price.
"""

from __future__ import annotations

import logging
from typing import Protocol

import geoip2.database
import geoip2.errors

from .session import COUNTRY_KEY, LOOKUP_FAILED_KEY, CheckoutSession


logger = logging.getLogger(__name__)

LOCAL_IPS = {'127.0.0.1', '::1'}


class CountryReader(Protocol):
    def country(self, ip_address: str): ...


class LocationResolver:
    """Resolves and caches the visitor's country for one checkout session.

    Usage:
        resolver = LocationResolver(db_path='GeoLite2-Country.mmdb')
        country = resolver.resolve_country(CheckoutSession(flask_session), request.remote_addr)
    """

    def __init__(
        self,
        db_path: str | None = None,
        reader: CountryReader | None = None,
        test_ip: str | None = None,
        cache_failed_lookups: bool = False,
    ) -> None:
        self._db_path = db_path
        self._reader = reader
        self.test_ip = test_ip
        self.cache_failed_lookups = cache_failed_lookups

    @property
    def reader(self) -> CountryReader | None:
        """Open the GeoIP database on first use; None if it can't be opened."""
        if self._reader is None and self._db_path:
            try:
                self._reader = geoip2.database.Reader(self._db_path)
                logger.info('GeoIP database loaded from %s', self._db_path)
            except (OSError, ValueError, RuntimeError) as exc:
                logger.error('Failed to load GeoIP database %s: %s', self._db_path, exc)
                self._db_path = None
        return self._reader

    # ------------------------------------------------------------------ #
    # Public API                                                           #
    # ------------------------------------------------------------------ #

    def resolve_country(self, session: CheckoutSession, ip_address: str | None) -> str | None:
        """Return the visitor's country, looking it up at most once per session.

        A failed lookup is not remembered unless ``cache_failed_lookups``
        is set, so by default the next call in the session tries again.
        """
        if session.country:
            return session.country
        if self.cache_failed_lookups and session.lookup_failed:
            return None

        if self.test_ip:
            ip_address = self.test_ip

        ip_address = (ip_address or '').strip()
        if not ip_address or ip_address in LOCAL_IPS:
            return None

        country = self._lookup(ip_address)
        if not country:
            logger.debug('No country found for %s', ip_address)
            if self.cache_failed_lookups:
                session.set(LOOKUP_FAILED_KEY, True)
            return None

        session.set(COUNTRY_KEY, country)
        return country

    @staticmethod
    def get_local_country(session: CheckoutSession) -> str | None:
        """Return the cached country without performing a lookup."""
        return session.country

    @staticmethod
    def clear(session: CheckoutSession) -> None:
        """Forget the resolved country (called once checkout completes)."""
        session.unset(COUNTRY_KEY)
        session.unset(LOOKUP_FAILED_KEY)

    # ------------------------------------------------------------------ #
    # GeoIP                                                                #
    # ------------------------------------------------------------------ #

    def _lookup(self, ip_address: str) -> str | None:
        reader = self.reader
        if reader is None:
            return None
        try:
            result = reader.country(ip_address)
        except geoip2.errors.AddressNotFoundError:
            return None
        except (geoip2.errors.GeoIP2Error, ValueError) as exc:
            logger.warning('GeoIP lookup failed for %s: %s', ip_address, exc)
            return None
        return getattr(result.country, 'iso_code', None) or None
