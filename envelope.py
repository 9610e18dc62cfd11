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


from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

_UNSET = object()


def envelope(success: bool, data=_UNSET, message=None, id=_UNSET, status_code: int = 200, headers=None):
    """Wrap a payload in the {success, data, message, id} response shape.

    ``data`` and ``id`` are left out unless given (``None`` is a legitimate
    value for neither), ``message`` is left out when empty.
    """
    body = {"success": success}
    if data is not _UNSET:
        body["data"] = jsonable_encoder(data)
    if message:
        body["message"] = message
    if id is not _UNSET:
        body["id"] = id
    return JSONResponse(content=body, status_code=status_code, headers=headers)
