# CoursePortal - Course portal backend
# Copyright (C) 2026 (linuxdev)
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Input cleaning and structural format checks shared by every endpoint.

The ``validate_*`` helpers answer yes/no and never raise; turning a ``False``
into a client error is the caller's job.
"""

from datetime import datetime

import bleach
from pydantic import AnyUrl, EmailStr, TypeAdapter, ValidationError

DATE_FORMAT = "%Y-%m-%d"
SORT_DIRECTIONS = ("asc", "desc")

_email_adapter = TypeAdapter(EmailStr)
_url_adapter = TypeAdapter(AnyUrl)


def sanitize(value):
    """Trim, strip markup and escape HTML-special characters.

    Anything that is not a string (numbers, lists, None) is handed back as is.
    """
    if not isinstance(value, str):
        return value
    # bleach escapes &, < and > in the remaining text; quotes are left to us
    cleaned = bleach.clean(value.strip(), tags=set(), attributes={}, strip=True)
    return cleaned.replace('"', "&quot;").replace("'", "&#x27;").strip()


def validate_email(value) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        _email_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def validate_url(value) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        url = _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return bool(url.scheme and url.host)


def validate_date(value, fmt=DATE_FORMAT) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parsed = datetime.strptime(value, fmt)
    except ValueError:
        return False
    # strptime accepts "2024-1-5"; only the canonical form is valid
    return parsed.strftime(fmt) == value


def validate_required(data, fields):
    """Return the names from ``fields`` that are absent, None or blank in ``data``."""
    missing = []
    for name in fields:
        value = data.get(name)
        if value is None or (isinstance(value, str) and value.strip() == ""):
            missing.append(name)
    return missing


def validate_sort_spec(field, allowlist, direction, default=None):
    """Constrain a requested ordering to known columns and directions.

    Unknown input is not an error: the field falls back to ``default[0]``
    (first allowlisted column when no default is given) and the direction to
    ``default[1]`` (``asc``).
    """
    default_field, default_direction = default or (allowlist[0], "asc")
    if field not in allowlist:
        field = default_field
    direction = direction.lower() if isinstance(direction, str) else ""
    if direction not in SORT_DIRECTIONS:
        direction = default_direction
    return field, direction
