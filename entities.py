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


"""The five resource families served under /api, described for the generic engine."""

from crud_ops import EntityDescriptor, FieldSpec, SubResourceSpec, change_password
from errors import BadRequest
from models import (
    Assignment,
    AssignmentComment,
    Reply,
    Resource,
    ResourceComment,
    Student,
    Topic,
    Week,
    WeekComment,
)
from sanitize import sanitize
from schemas import (
    AssignmentCommentCreate,
    AssignmentCommentOut,
    AssignmentCreate,
    AssignmentOut,
    AssignmentUpdate,
    PasswordChange,
    ReplyCreate,
    ReplyOut,
    ResourceCommentCreate,
    ResourceCommentOut,
    ResourceCreate,
    ResourceOut,
    ResourceUpdate,
    StudentCreate,
    StudentOut,
    StudentUpdate,
    TopicCreate,
    TopicOut,
    TopicUpdate,
    WeekCommentCreate,
    WeekCommentOut,
    WeekCreate,
    WeekOut,
)


def change_student_password(db, data):
    student_id = data.get("student_id")
    if student_id is None or student_id.strip() == "":
        raise BadRequest("student_id is required.")
    change_password(
        db,
        Student,
        "student_id",
        sanitize(student_id),
        data.get("current_password"),
        data.get("new_password"),
        label="Student",
    )
    return "Password changed successfully."


STUDENTS = EntityDescriptor(
    label="Student",
    model=Student,
    key="student_id",
    fields=(
        FieldSpec("student_id", required=True, unique=True),
        FieldSpec("name", required=True),
        FieldSpec("email", kind="email", required=True, unique=True),
        FieldSpec("password", kind="password", required=True),
    ),
    updatable=("name", "email"),
    searchable=("name", "student_id", "email"),
    sortable=("name", "student_id", "email"),
    default_sort=("name", "asc"),
    create_schema=StudentCreate,
    update_schema=StudentUpdate,
    out_schema=StudentOut,
    post_actions={"change_password": (PasswordChange, change_student_password)},
)

RESOURCES = EntityDescriptor(
    label="Resource",
    model=Resource,
    key="id",
    key_is_int=True,
    fields=(
        FieldSpec("title", required=True),
        FieldSpec("description", allow_blank=True, default=""),
        FieldSpec("link", kind="url", required=True),
    ),
    updatable=("title", "description", "link"),
    searchable=("title", "description"),
    sortable=("title", "created_at"),
    default_sort=("created_at", "desc"),
    create_schema=ResourceCreate,
    update_schema=ResourceUpdate,
    out_schema=ResourceOut,
    sub=SubResourceSpec(
        label="Comment",
        plural="comments",
        model=ResourceComment,
        parent_column="resource_id",
        fields=(
            FieldSpec("author", required=True),
            FieldSpec("text", required=True),
        ),
        create_schema=ResourceCommentCreate,
        out_schema=ResourceCommentOut,
    ),
)

ASSIGNMENTS = EntityDescriptor(
    label="Assignment",
    model=Assignment,
    key="id",
    key_is_int=True,
    fields=(
        FieldSpec("title", required=True),
        FieldSpec("description", allow_blank=True, default=""),
        FieldSpec("due_date", kind="date", required=True),
        FieldSpec("files", kind="list", default=[]),
    ),
    updatable=("title", "description", "due_date", "files"),
    searchable=("title", "description"),
    sortable=("title", "due_date", "created_at"),
    default_sort=("due_date", "asc"),
    create_schema=AssignmentCreate,
    update_schema=AssignmentUpdate,
    out_schema=AssignmentOut,
    sub=SubResourceSpec(
        label="Comment",
        plural="comments",
        model=AssignmentComment,
        parent_column="assignment_id",
        fields=(
            FieldSpec("author", default="Student"),
            FieldSpec("text", required=True),
        ),
        create_schema=AssignmentCommentCreate,
        out_schema=AssignmentCommentOut,
    ),
)

TOPICS = EntityDescriptor(
    label="Topic",
    model=Topic,
    key="topic_id",
    fields=(
        FieldSpec("topic_id", required=True, unique=True),
        FieldSpec("subject", required=True),
        FieldSpec("message", required=True),
        FieldSpec("author", required=True),
    ),
    updatable=("subject", "message"),
    searchable=("subject", "message", "author"),
    sortable=("subject", "author", "created_at"),
    default_sort=("created_at", "desc"),
    create_schema=TopicCreate,
    update_schema=TopicUpdate,
    out_schema=TopicOut,
    sub=SubResourceSpec(
        label="Reply",
        plural="replies",
        model=Reply,
        parent_column="topic_id",
        fields=(
            FieldSpec("reply_id", required=True, unique=True),
            FieldSpec("text", required=True),
            FieldSpec("author", required=True),
        ),
        create_schema=ReplyCreate,
        out_schema=ReplyOut,
        key="reply_id",
        key_param="reply_id",
        key_supplied=True,
        list_action="replies",
        create_action="reply",
        delete_action="delete_reply",
    ),
)

WEEKS = EntityDescriptor(
    label="Week",
    model=Week,
    key="week_id",
    fields=(
        FieldSpec("week_id", required=True, unique=True),
        FieldSpec("title", required=True),
        FieldSpec("start_date", kind="date", required=True),
        FieldSpec("description", required=True),
        FieldSpec("links", kind="list", default=[]),
    ),
    updatable=("title", "start_date", "description", "links"),
    searchable=("title", "description"),
    sortable=("title", "start_date", "created_at", "updated_at"),
    default_sort=("start_date", "asc"),
    create_schema=WeekCreate,
    update_schema=WeekCreate,
    out_schema=WeekOut,
    touch_column="updated_at",
    sub=SubResourceSpec(
        label="Comment",
        plural="comments",
        model=WeekComment,
        parent_column="week_id",
        fields=(
            FieldSpec("author", required=True),
            FieldSpec("text", required=True),
        ),
        create_schema=WeekCommentCreate,
        out_schema=WeekCommentOut,
    ),
)

FAMILIES = {
    "students": STUDENTS,
    "resources": RESOURCES,
    "assignments": ASSIGNMENTS,
    "topics": TOPICS,
    "weeks": WEEKS,
}
