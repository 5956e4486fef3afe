"""Static reference tables: country URL slugs, currencies, target days.

Loaded once as read-only mappings and passed into scrapers and
strategies; nothing here is mutated at runtime.
"""

from decimal import Decimal
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple


# Sentinel data amount stored for unlimited plans
UNLIMITED_DATA_GB = Decimal("999")

CANONICAL_CURRENCY = "USD"

# Multiplier from the currency to USD (USD baseline = 1.0)
STATIC_USD_RATES: Mapping[str, Decimal] = MappingProxyType({
    "USD": Decimal("1.0"),
    "EUR": Decimal("1.10"),
    "GBP": Decimal("1.27"),
    "JPY": Decimal("0.0067"),
    "INR": Decimal("0.012"),
})

CURRENCY_SYMBOLS: Mapping[str, str] = MappingProxyType({
    "€": "EUR",
    "$": "USD",
    "£": "GBP",
    "¥": "JPY",
    "₹": "INR",
})

# Holafly publishes prices reliably only for these day counts
HOLAFLY_TARGET_DAYS: FrozenSet[int] = frozenset({1, 3, 5, 7, 10, 14, 15, 20, 30, 60, 90})


AIRALO_COUNTRY_SLUGS: Mapping[str, str] = MappingProxyType({
    "CN": "china-esim",
    "US": "united-states-esim",
    "CA": "canada-esim",
    "GB": "united-kingdom-esim",
    "DE": "germany-esim",
    "FR": "france-esim",
    "JP": "japan-esim",
    "AU": "australia-esim",
    "ES": "spain-esim",
    "IT": "italy-esim",
    "NL": "netherlands-esim",
    "TR": "turkey-esim",
    "TH": "thailand-esim",
    "ID": "indonesia-esim",
    "SG": "singapore-esim",
    "IE": "ireland-esim",
    "OM": "oman-esim",
    "SA": "saudi-arabia-esim",
    "MX": "mexico-esim",
    "BR": "brazil-esim",
    "AR": "argentina-esim",
    "CL": "chile-esim",
    "CO": "colombia-esim",
    "PE": "peru-esim",
    "IN": "india-esim",
    "AE": "united-arab-emirates-esim",
    "ZA": "south-africa-esim",
    "EG": "egypt-esim",
    "KE": "kenya-esim",
    "MA": "morocco-esim",
    "PH": "philippines-esim",
    "VN": "vietnam-esim",
    "MY": "malaysia-esim",
    "KR": "south-korea-esim",
    "TW": "taiwan-esim",
    "HK": "hong-kong-esim",
    "NZ": "new-zealand-esim",
    "PT": "portugal-esim",
    "GR": "greece-esim",
    "PL": "poland-esim",
    "SE": "sweden-esim",
    "NO": "norway-esim",
    "DK": "denmark-esim",
    "FI": "finland-esim",
    "CH": "switzerland-esim",
    "AT": "austria-esim",
    "BE": "belgium-esim",
    "CZ": "czech-republic-esim",
    "IL": "israel-esim",
    "QA": "qatar-esim",
    "KW": "kuwait-esim",
    "BH": "bahrain-esim",
    "JO": "jordan-esim",
})

AIRALO_DEFAULT_COUNTRIES: Tuple[str, ...] = (
    "US", "CA", "GB", "DE", "FR", "JP", "AU",
    "ES", "IT", "NL", "TR", "TH", "CN",
    "ID", "SG", "IE", "OM", "SA",
)


SAILY_COUNTRY_SLUGS: Mapping[str, str] = MappingProxyType({
    "US": "esim-united-states",
    "CA": "esim-canada",
    "GB": "esim-united-kingdom",
    "DE": "esim-germany",
    "FR": "esim-france",
    "ES": "esim-spain",
    "IT": "esim-italy",
    "NL": "esim-netherlands",
    "JP": "esim-japan",
    "AU": "esim-australia",
    "TR": "esim-turkey",
    "TH": "esim-thailand",
    "SG": "esim-singapore",
    "MX": "esim-mexico",
    "BR": "esim-brazil",
    "AR": "esim-argentina",
    "CL": "esim-chile",
    "CO": "esim-colombia",
    "PE": "esim-peru",
    "IN": "esim-india",
    "AE": "esim-united-arab-emirates",
    "ZA": "esim-south-africa",
    "EG": "esim-egypt",
    "KE": "esim-kenya",
    "MA": "esim-morocco",
    "PH": "esim-philippines",
    "VN": "esim-vietnam",
    "MY": "esim-malaysia",
    "KR": "esim-south-korea",
    "TW": "esim-taiwan",
    "HK": "esim-hong-kong",
    "NZ": "esim-new-zealand",
    "PT": "esim-portugal",
    "GR": "esim-greece",
    "PL": "esim-poland",
    "SE": "esim-sweden",
    "NO": "esim-norway",
    "DK": "esim-denmark",
    "FI": "esim-finland",
    "CH": "esim-switzerland",
    "AT": "esim-austria",
    "BE": "esim-belgium",
    "CZ": "esim-czech-republic",
    "IL": "esim-israel",
    "QA": "esim-qatar",
    "KW": "esim-kuwait",
    "BH": "esim-bahrain",
    "JO": "esim-jordan",
})

SAILY_DEFAULT_COUNTRIES: Tuple[str, ...] = (
    "US", "CA", "GB", "DE", "FR", "ES", "IT",
    "JP", "AU", "NL", "TR", "TH", "SG",
)


# Holafly is only tracked for the countries in the scheduled groups
HOLAFLY_COUNTRY_SLUGS: Mapping[str, str] = MappingProxyType({
    "US": "usa",
    "CA": "canada",
    "GB": "united-kingdom",
    "DE": "germany",
    "FR": "france",
    "ES": "spain",
    "IT": "italy",
    "JP": "japan",
    "AU": "australia",
    "NL": "netherlands",
    "CH": "switzerland",
    "SG": "singapore",
})
