# ==============================================
# ColumnNameNormalizer
# ==============================================
#
# PURPOSE:
#   Convert uploaded column headers to a single canonical form
#   (snake_case) and recognise role words in them, so that role
#   detection can match "RouteID", "route_id" and "Route Id"
#   the same way.
#
# WHY THIS CLASS EXISTS:
#   Traffic exports name the same logical column differently:
#     - "startLat", "Start Lat", "start_lat", "START_LAT"
#     - "VehicleCount", "vehicle-count", "vehicle_count"
#   Role detection looks for a role word anywhere in the header,
#   so glued headers like "vehiclecount" or "roadname" match too.
#
# CLASS: ColumnNameNormalizer
# ---------------------------
#   Keeps a cache of raw name → canonical name.
#
#   Methods:
#   --------
#   - normalize(name: str) -> str
#       Convert a single header to snake_case.
#
#   - matches_any(name: str, tokens: Iterable[str]) -> bool
#       True if the lowercased header contains any of the given tokens.
#
# RULES:
# ------
#   1. camelCase    → snake_case    (routeName → route_name)
#   2. PascalCase   → snake_case    (RouteName → route_name)
#   3. ALLCAPS      → lowercase     (LAT → lat)
#   4. Mixed abbrev → snake_case    (RouteID → route_id)
#   5. Already snake → unchanged    (start_lat → start_lat)
#   6. Spaces, dashes, dots → underscores, collapse repeats
#
# ==============================================

import re
from typing import Dict, Iterable


class ColumnNameNormalizer:
    """
    Converts column headers to canonical snake_case and tokens.
    Maintains a mapping of original names to canonical forms.
    """

    def __init__(self):
        """Initialize the normalizer with an empty mapping registry."""
        self._mappings: Dict[str, str] = {}

    def normalize(self, name: str) -> str:
        """
        Convert a column header to snake_case.

        Args:
            name: Raw header (e.g., "routeName", "Start Lat", "LAT")

        Returns:
            Canonical snake_case name (e.g., "route_name", "start_lat", "lat")
        """
        if not name:
            return ""

        name = str(name)

        # Check if we've already normalized this name
        if name in self._mappings:
            return self._mappings[name]

        normalized = self._camel_to_snake(name)
        self._mappings[name] = normalized

        return normalized

    def matches_any(self, name: str, tokens: Iterable[str]) -> bool:
        """
        Check if a header carries any of the given tokens.

        Args:
            name: Raw header
            tokens: Role tokens to look for (lowercase)

        Returns:
            True if one of the role tokens occurs anywhere in the header
            ("RouteID", "roadname", "vehicle_count" all match)
        """
        header = str(name or "").lower()
        return any(token in header for token in tokens)

    def _camel_to_snake(self, name: str) -> str:
        # Anything that is not alphanumeric separates words
        name = re.sub(r'[^a-zA-Z0-9]', '_', name)

        # "XMLParser" -> "XML_Parser"
        name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)

        # "routeName" -> "route_Name", "route2Id" -> "route2_Id"
        name = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', name)

        name = name.lower()
        name = re.sub(r'_+', '_', name)
        return name.strip('_')
