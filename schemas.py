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


import json
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


# Request bodies. Every field is optional at this layer: presence and
# emptiness are decided by the engine so that a missing field is reported
# by name instead of as a type error.

class RequestModel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class LoginRequest(RequestModel):
    email: Optional[str] = None
    password: Optional[str] = None


class PasswordChange(RequestModel):
    student_id: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class StudentCreate(RequestModel):
    student_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class StudentUpdate(RequestModel):
    student_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class ResourceCreate(RequestModel):
    title: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None


class ResourceUpdate(ResourceCreate):
    id: Optional[str] = None


class ResourceCommentCreate(RequestModel):
    resource_id: Optional[str] = None
    author: Optional[str] = None
    text: Optional[str] = None


class AssignmentCreate(RequestModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    files: Optional[List[str]] = None


class AssignmentUpdate(AssignmentCreate):
    id: Optional[str] = None


class AssignmentCommentCreate(RequestModel):
    assignment_id: Optional[str] = None
    author: Optional[str] = None
    text: Optional[str] = None


class TopicCreate(RequestModel):
    topic_id: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    author: Optional[str] = None


class TopicUpdate(RequestModel):
    topic_id: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


class ReplyCreate(RequestModel):
    reply_id: Optional[str] = None
    topic_id: Optional[str] = None
    text: Optional[str] = None
    author: Optional[str] = None


class WeekCreate(RequestModel):
    week_id: Optional[str] = None
    title: Optional[str] = None
    start_date: Optional[str] = None
    description: Optional[str] = None
    links: Optional[List[str]] = None


class WeekCommentCreate(RequestModel):
    week_id: Optional[str] = None
    author: Optional[str] = None
    text: Optional[str] = None


# Response bodies, read straight off ORM rows. Secret columns such as
# password_hash are simply not declared here.

class RowModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserOut(RowModel):
    id: int
    name: str
    email: str


class StudentOut(RowModel):
    id: int
    student_id: str
    name: str
    email: str
    created_at: Optional[datetime] = None


class ResourceOut(RowModel):
    id: int
    title: str
    description: str
    link: str
    created_at: Optional[datetime] = None


class ResourceCommentOut(RowModel):
    id: int
    resource_id: int
    author: str
    text: str
    created_at: Optional[datetime] = None


def _decode_json_list(value):
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    return value if isinstance(value, list) else []


class AssignmentOut(RowModel):
    id: int
    title: str
    description: str
    due_date: date
    files: List[str]
    created_at: Optional[datetime] = None

    @field_validator("files", mode="before")
    @classmethod
    def decode_files(cls, value):
        return _decode_json_list(value)


class AssignmentCommentOut(RowModel):
    id: int
    assignment_id: int
    author: str
    text: str
    created_at: Optional[datetime] = None


class TopicOut(RowModel):
    id: int
    topic_id: str
    subject: str
    message: str
    author: str
    created_at: Optional[datetime] = None


class ReplyOut(RowModel):
    id: int
    reply_id: str
    topic_id: str
    text: str
    author: str
    created_at: Optional[datetime] = None


class WeekOut(RowModel):
    id: int
    week_id: str
    title: str
    start_date: date
    description: str
    links: List[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("links", mode="before")
    @classmethod
    def decode_links(cls, value):
        return _decode_json_list(value)


class WeekCommentOut(RowModel):
    id: int
    week_id: str
    author: str
    text: str
    created_at: Optional[datetime] = None
