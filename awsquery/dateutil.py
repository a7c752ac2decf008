"""
Strict ISO 8601 timestamp utilities.
"""
from datetime import datetime
from pytz import FixedOffset, UTC
from re import compile as re_compile

# ISO 8601 timestamp format regex (includes RFC 3339)
_iso_8601_regex = re_compile(
    r"^(?P<year>[0-9]{4})-?"
    r"(?P<month>0[1-9]|1[0-2])-?"
    r"(?P<day>0[1-9]|[12][0-9]|3[01])"
    r"[Tt ]"
    r"(?P<hour>[01][0-9]|2[0-3]):?"
    r"(?P<minute>[0-5][0-9]):?"
    r"(?P<second>[0-5][0-9]|6[01])"
    r"(?P<frac_sec>[\.,][0-9]+)?"
    r"(?P<timezone>[-+][01][0-9]:?[0-5][0-9]|[Zz])$")

# Timestamp format sent with signed requests (RFC 3339, second precision)
_request_timestamp_format = "%Y-%m-%dT%H:%M:%SZ"

def utc_now():
    """
    The current time as an aware datetime in UTC.
    """
    return datetime.now(UTC)

def format_iso8601(timestamp):
    """
    Format a datetime as an ISO 8601 UTC timestamp of the form
    2011-11-01T14:00:00Z. Naive datetimes are assumed to already be in UTC.
    """
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(UTC)

    return timestamp.strftime(_request_timestamp_format)

def parse_iso8601(s):
    """
    Parse a timestamp formatted in ISO 8601 timestamp format and return a
    datetime object. If the string is not a valid ISO 8601 timestamp, None
    is returned.

    ISO 8601 timestamps include the forms:
        2018-12-25T14:00:00-08:00
        20181225T140000-0800            (Condensed)
        2018-12-25T22:00:00.000Z        (EC2 launchTime)
        20181225T220000Z                (Condensed)
        20181225 220000Z                (Space instead of T)

    If fractional seconds are included, they are ignored. Leap seconds (60
    and 61) are clamped to 59, which datetime can represent.
    """
    m = _iso_8601_regex.match(s)
    if not m:
        return None

    zone = m.group("timezone")
    if zone in ("Z", "z"):
        offset = UTC
    else:
        zone = zone.replace(":", "")
        sign = zone[0]
        offset_hour = int(zone[1:3])
        offset_minutes = offset_hour * 60 + int(zone[3:5])

        if sign == "-":
            offset_minutes = -offset_minutes

        offset = FixedOffset(offset_minutes)

    try:
        return datetime(
            year=int(m.group("year")),
            month=int(m.group("month")),
            day=int(m.group("day")),
            hour=int(m.group("hour")),
            minute=int(m.group("minute")),
            second=min(int(m.group("second")), 59),
            tzinfo=offset)
    except ValueError:
        # Day out of range for the month (e.g. 2011-02-31).
        return None
