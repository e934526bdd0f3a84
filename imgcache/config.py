from __future__ import annotations

import os

# Pillow's JPEG quality scale tops out at 100; cache entries are written at maximum quality.
JPEG_QUALITY = 100

# Used when a GIF frame carries no duration of its own.
GIF_DEFAULT_DURATION_MS = 100
GIF_DEFAULT_LOOP = 0

# piexif.helper.UserComment encodings: "ascii", "jis" or "unicode".
USER_COMMENT_ENCODING = "unicode"

LOG_LEVEL = os.environ.get("IMGCACHE_LOG_LEVEL", "INFO").upper()
