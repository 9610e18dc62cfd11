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


from fastapi import status

from envelope import envelope


class ApiError(Exception):
    """Base for every failure that is reported to the client as an envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self):
        return envelope(False, message=self.message, status_code=self.status_code)


class BadRequest(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request."


class NoFieldsSupplied(BadRequest):
    default_message = "No fields to update."


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized. Please log in again."


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class MethodNotAllowed(ApiError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    default_message = "Method not allowed."


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Already exists."


class InternalError(ApiError):
    pass
