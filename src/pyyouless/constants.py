"""Constants for the Youless local HTTP API."""

from __future__ import annotations

# Connection defaults
DEFAULT_PORT = 80
DEFAULT_TIMEOUT = 10.0

# Method paths. The web interface uses single-letter page names.
METHOD_STATUS = "a"
METHOD_MEASUREMENTS = "V"
METHOD_LOGIN = "L"

# Query parameter forcing JSON output on every data request
FORMAT_PARAM = "f"
FORMAT_JSON = "j"

# Login query parameter carrying the password
LOGIN_PASSWORD_PARAM = "w"

# Measurement window selectors (query parameter names)
WINDOW_HOUR_HALF = "h"  # h=1|2, 30 minutes each at 60 second interval
WINDOW_EIGHT_HOURS = "w"  # w=1|2|3, 8 hours each at 10 minute interval
WINDOW_DAY = "d"  # d=0..6, 0 is today
WINDOW_MONTH = "m"  # m=1..12

CURRENT_DAY = 0
MAX_DAY_OFFSET = 6
HOURS_PER_WINDOW = 8
MAX_HOURS_BACK = 24

# Status codes accepted on the login status line
AUTH_ACCEPTED_STATUS_CODES = ("200", "302", "307")

HTTP_FORBIDDEN = 403

# Raw field decorations
CONNECTION_OK = "OK"
PLUS_MINUS_MARKERS = ("&plusmn;", "±")

# Wire timestamp layout, e.g. 2014-01-26T00:00:00
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
