"""Geocoding services."""

from .addresses import extract_addresses
from .nominatim import NominatimGeocoder, position_label

__all__ = ["NominatimGeocoder", "extract_addresses", "position_label"]
