"""Shared constants for the listing API."""

DEFAULT_PAGE = 1

# Envelope messages
MSG_PAGE_OK = "Properties retrieved"
MSG_SEARCH_OK = "Search completed"
MSG_DETAIL_OK = "Property retrieved"
MSG_IMAGE_OK = "Image retrieved"
MSG_NOT_FOUND = "Property not found"
MSG_IMAGE_NOT_FOUND = "Image not found"
MSG_INVALID_FILTER = "Invalid search parameters"
MSG_STORE_UNAVAILABLE = "Listing store unavailable"
MSG_STORE_ERROR = "Error reading listings"
