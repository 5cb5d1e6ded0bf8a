from __future__ import annotations


MISSING_REQUIRED_FIELD = "missing_required_field"
INVALID_URL_FORMAT = "invalid_url_format"
