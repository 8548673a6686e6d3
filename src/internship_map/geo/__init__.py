"""
Geocoding, address search and travel-time providers.
"""

from .area import AREA_KEYWORDS, is_target_area
from .providers import (
    MapboxGeocoder,
    NominatimGeocoder,
    ProviderChain,
    build_geocoder_chain,
)
from .routing import (
    OsrmRouter,
    TravelTimeCalculator,
    build_travel_time_calculator,
    format_travel_time,
)
from .search import AddressSearchSession

__all__ = [
    "AREA_KEYWORDS",
    "is_target_area",
    "MapboxGeocoder",
    "NominatimGeocoder",
    "ProviderChain",
    "build_geocoder_chain",
    "AddressSearchSession",
    "OsrmRouter",
    "TravelTimeCalculator",
    "build_travel_time_calculator",
    "format_travel_time",
]
