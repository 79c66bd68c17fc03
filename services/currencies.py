"""
Country -> currency lookup.

ISO 3166-1 alpha-2 country codes mapped to the ISO 4217 currency a
visitor from that country most likely thinks in.
"""

from __future__ import annotations

from typing import Mapping


COUNTRY_CURRENCIES: Mapping[str, str] = {
    # Eurozone
    'AD': 'EUR', 'AT': 'EUR', 'BE': 'EUR', 'CY': 'EUR', 'DE': 'EUR',
    'EE': 'EUR', 'ES': 'EUR', 'FI': 'EUR', 'FR': 'EUR', 'GR': 'EUR',
    'HR': 'EUR', 'IE': 'EUR', 'IT': 'EUR', 'LT': 'EUR', 'LU': 'EUR',
    'LV': 'EUR', 'MC': 'EUR', 'ME': 'EUR', 'MT': 'EUR', 'NL': 'EUR',
    'PT': 'EUR', 'SI': 'EUR', 'SK': 'EUR', 'SM': 'EUR', 'VA': 'EUR',
    'XK': 'EUR', 'GF': 'EUR', 'GP': 'EUR', 'MQ': 'EUR', 'RE': 'EUR',
    'YT': 'EUR', 'PM': 'EUR', 'BL': 'EUR', 'MF': 'EUR', 'AX': 'EUR',

    # Rest of Europe
    'AL': 'ALL', 'AM': 'AMD', 'AZ': 'AZN', 'BA': 'BAM', 'BG': 'BGN',
    'BY': 'BYN', 'CH': 'CHF', 'LI': 'CHF', 'CZ': 'CZK', 'DK': 'DKK',
    'FO': 'DKK', 'GL': 'DKK', 'GB': 'GBP', 'IM': 'GBP', 'JE': 'GBP',
    'GG': 'GBP', 'GI': 'GIP', 'GE': 'GEL', 'HU': 'HUF', 'IS': 'ISK',
    'MD': 'MDL', 'MK': 'MKD', 'NO': 'NOK', 'SJ': 'NOK', 'PL': 'PLN',
    'RO': 'RON', 'RS': 'RSD', 'RU': 'RUB', 'SE': 'SEK', 'TR': 'TRY',
    'UA': 'UAH',

    # Americas
    'US': 'USD', 'PR': 'USD', 'EC': 'USD', 'SV': 'USD', 'PA': 'USD',
    'TC': 'USD', 'VG': 'USD', 'VI': 'USD', 'GU': 'USD', 'AS': 'USD',
    'MP': 'USD', 'UM': 'USD', 'BQ': 'USD', 'TL': 'USD', 'FM': 'USD',
    'MH': 'USD', 'PW': 'USD', 'IO': 'USD',
    'CA': 'CAD', 'MX': 'MXN', 'BR': 'BRL', 'AR': 'ARS', 'CL': 'CLP',
    'CO': 'COP', 'PE': 'PEN', 'UY': 'UYU', 'PY': 'PYG', 'BO': 'BOB',
    'VE': 'VES', 'GY': 'GYD', 'SR': 'SRD', 'CR': 'CRC', 'GT': 'GTQ',
    'HN': 'HNL', 'NI': 'NIO', 'BZ': 'BZD', 'CU': 'CUP', 'DO': 'DOP',
    'HT': 'HTG', 'JM': 'JMD', 'TT': 'TTD', 'BB': 'BBD', 'BS': 'BSD',
    'BM': 'BMD', 'KY': 'KYD', 'AW': 'AWG', 'CW': 'ANG', 'SX': 'ANG',
    'AG': 'XCD', 'DM': 'XCD', 'GD': 'XCD', 'KN': 'XCD', 'LC': 'XCD',
    'VC': 'XCD', 'AI': 'XCD', 'MS': 'XCD', 'FK': 'FKP',

    # Asia
    'AE': 'AED', 'AF': 'AFN', 'BD': 'BDT', 'BH': 'BHD', 'BN': 'BND',
    'BT': 'BTN', 'CN': 'CNY', 'HK': 'HKD', 'ID': 'IDR', 'IL': 'ILS',
    'PS': 'ILS', 'IN': 'INR', 'IQ': 'IQD', 'IR': 'IRR', 'JO': 'JOD',
    'JP': 'JPY', 'KG': 'KGS', 'KH': 'KHR', 'KP': 'KPW', 'KR': 'KRW',
    'KW': 'KWD', 'KZ': 'KZT', 'LA': 'LAK', 'LB': 'LBP', 'LK': 'LKR',
    'MM': 'MMK', 'MN': 'MNT', 'MO': 'MOP', 'MV': 'MVR', 'MY': 'MYR',
    'NP': 'NPR', 'OM': 'OMR', 'PH': 'PHP', 'PK': 'PKR', 'QA': 'QAR',
    'SA': 'SAR', 'SG': 'SGD', 'SY': 'SYP', 'TH': 'THB', 'TJ': 'TJS',
    'TM': 'TMT', 'TW': 'TWD', 'UZ': 'UZS', 'VN': 'VND', 'YE': 'YER',

    # Africa
    'AO': 'AOA', 'BI': 'BIF', 'BW': 'BWP', 'CD': 'CDF', 'CV': 'CVE',
    'DJ': 'DJF', 'DZ': 'DZD', 'EG': 'EGP', 'ER': 'ERN', 'ET': 'ETB',
    'GH': 'GHS', 'GM': 'GMD', 'GN': 'GNF', 'KE': 'KES', 'KM': 'KMF',
    'LR': 'LRD', 'LS': 'LSL', 'LY': 'LYD', 'MA': 'MAD', 'EH': 'MAD',
    'MG': 'MGA', 'MR': 'MRU', 'MU': 'MUR', 'MW': 'MWK', 'MZ': 'MZN',
    'NA': 'NAD', 'NG': 'NGN', 'RW': 'RWF', 'SC': 'SCR', 'SD': 'SDG',
    'SH': 'SHP', 'SL': 'SLE', 'SO': 'SOS', 'SS': 'SSP', 'ST': 'STN',
    'SZ': 'SZL', 'TN': 'TND', 'TZ': 'TZS', 'UG': 'UGX', 'ZA': 'ZAR',
    'ZM': 'ZMW', 'ZW': 'ZWL',
    'BJ': 'XOF', 'BF': 'XOF', 'CI': 'XOF', 'GW': 'XOF', 'ML': 'XOF',
    'NE': 'XOF', 'SN': 'XOF', 'TG': 'XOF',
    'CM': 'XAF', 'CF': 'XAF', 'TD': 'XAF', 'CG': 'XAF', 'GQ': 'XAF',
    'GA': 'XAF',

    # Oceania
    'AU': 'AUD', 'CX': 'AUD', 'CC': 'AUD', 'NF': 'AUD', 'HM': 'AUD',
    'KI': 'AUD', 'NR': 'AUD', 'TV': 'AUD',
    'NZ': 'NZD', 'CK': 'NZD', 'NU': 'NZD', 'PN': 'NZD', 'TK': 'NZD',
    'FJ': 'FJD', 'PG': 'PGK', 'SB': 'SBD', 'TO': 'TOP', 'VU': 'VUV',
    'WS': 'WST', 'NC': 'XPF', 'PF': 'XPF', 'WF': 'XPF',
}


def currency_for_country(
    country_code: str | None,
    overrides: Mapping[str, str] | None = None,
) -> str | None:
    """Return the currency code for ``country_code``, or None if unmapped.

    ``overrides`` takes precedence over the built-in table.
    """
    if not country_code:
        return None
    country_code = country_code.strip().upper()
    if overrides and country_code in overrides:
        return overrides[country_code]
    return COUNTRY_CURRENCIES.get(country_code)
