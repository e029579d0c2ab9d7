"""Utility functions for propbot."""

from propbot.utils.address import extract_address_from_query, extract_location_from_query
from propbot.utils.pii import mask_email, mask_mapping, mask_phone_number, sanitize_message

__all__ = [
    "extract_address_from_query",
    "extract_location_from_query",
    "mask_email",
    "mask_mapping",
    "mask_phone_number",
    "sanitize_message",
]
