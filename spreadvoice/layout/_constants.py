"""Constants for gutter detection and the default reference layout."""

from __future__ import annotations


# Intensity below which a pixel counts as printed ink (8-bit scale).
DARK_THRESHOLD = 30

# Share of the page height a column must be dark across to count as a gutter rule.
MIN_COVERAGE = 0.5

# Leftmost fraction of the width ignored during the search (binding shadows).
LEFT_MARGIN_RATIO = 0.2

LEFT_REGION = "left"
RIGHT_REGION = "right"

# Exemplar scan the default layout was measured on.
REFERENCE_WIDTH = 3099
REFERENCE_HEIGHT = 2379

REFERENCE_REGION_WIDTH = 1166
REFERENCE_REGION_HEIGHT = 1809
REFERENCE_LEFT_OFFSET = (374, 193)
REFERENCE_RIGHT_OFFSET = (1808, 196)
