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
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from passlib.context import CryptContext
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from errors import BadRequest, Conflict, InternalError, NoFieldsSupplied, NotFound, Unauthorized
from models import AuthSession, User
from sanitize import (
    DATE_FORMAT,
    sanitize,
    validate_date,
    validate_email,
    validate_required,
    validate_sort_spec,
    validate_url,
)

logger = logging.getLogger(__name__)

# Configure argon2 for password hashing
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto", argon2__rounds=10, argon2__memory_cost=1024, argon2__parallelism=2)

MIN_PASSWORD_LENGTH = 8

# largest value an INTEGER primary key can hold
MAX_INT_KEY = 2**63 - 1


def get_password_hash(password):
    return pwd_context.hash(password)


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


# --- Users and sessions ---

def get_user(db: Session, user_id: int):
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == email).first()


def create_user(db: Session, name: str, email: str, password: str):
    db_user = User(name=name, email=email, password_hash=get_password_hash(password))
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def authenticate_user(db: Session, email: str, password: str):
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def get_session(db: Session, session_id: str):
    return db.query(AuthSession).filter(AuthSession.session_id == session_id).first()


def start_session(db: Session, user_id: int, previous_session_id: Optional[str] = None):
    """Open an authenticated session under a fresh identifier.

    The previous identifier, if any, is dropped so that an id handed out
    before login can never become authenticated.
    """
    if previous_session_id:
        db.query(AuthSession).filter(AuthSession.session_id == previous_session_id).delete(synchronize_session=False)
    session = AuthSession(session_id=secrets.token_urlsafe(32), user_id=user_id, is_authenticated=True)
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def end_session(db: Session, session_id: Optional[str]):
    if not session_id:
        return 0
    removed = db.query(AuthSession).filter(AuthSession.session_id == session_id).delete(synchronize_session=False)
    db.commit()
    return removed


def change_password(db: Session, model, key_column: str, key_value, current_password, new_password, label="User"):
    """Replace a stored hash after checking the current password against it."""
    if validate_required(
        {"current_password": current_password, "new_password": new_password},
        ["current_password", "new_password"],
    ):
        raise BadRequest("current_password and new_password are required.")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(f"New password must be at least {MIN_PASSWORD_LENGTH} characters long.")

    row = db.query(model).filter(getattr(model, key_column) == key_value).first()
    if not row:
        raise NotFound(f"{label} not found.")
    if not verify_password(current_password, row.password_hash):
        logger.warning("Rejected password change for %s %s: current password mismatch", label, key_value)
        raise Unauthorized("Current password is incorrect.")

    row.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info("Password changed for %s %s", label, key_value)


# --- Entity descriptors ---

@dataclass(frozen=True)
class FieldSpec:
    """One client-writable field.

    kind is one of text, email, url, date, list or password. Passwords are
    stored hashed in ``password_hash`` and never read back.
    """
    name: str
    kind: str = "text"
    required: bool = False
    allow_blank: bool = False
    unique: bool = False
    default: Any = None

    @property
    def column(self):
        return "password_hash" if self.kind == "password" else self.name


@dataclass(frozen=True)
class SubResourceSpec:
    label: str
    plural: str
    model: Any
    parent_column: str
    fields: Tuple[FieldSpec, ...]
    create_schema: Any
    out_schema: Any
    key: str = "id"
    key_param: str = "comment_id"
    key_supplied: bool = False
    list_action: str = "comments"
    create_action: str = "comment"
    delete_action: str = "delete_comment"


@dataclass(frozen=True, eq=False)
class EntityDescriptor:
    label: str
    model: Any
    key: str
    fields: Tuple[FieldSpec, ...]
    updatable: Tuple[str, ...]
    searchable: Tuple[str, ...]
    sortable: Tuple[str, ...]
    default_sort: Tuple[str, str]
    create_schema: Any
    update_schema: Any
    out_schema: Any
    key_is_int: bool = False
    sub: Optional[SubResourceSpec] = None
    touch_column: Optional[str] = None
    post_actions: Dict[str, Callable] = field(default_factory=dict)


def is_present(spec: FieldSpec, data) -> bool:
    value = data.get(spec.name)
    if value is None:
        return False
    if isinstance(value, str) and value.strip() == "" and not spec.allow_blank:
        return False
    return True


def prepare_value(spec: FieldSpec, value):
    """Turn a client value into what gets stored, rejecting malformed input."""
    if spec.kind == "text":
        cleaned = sanitize(value)
        if spec.required and cleaned == "":
            raise BadRequest(f"{spec.name} cannot be empty.")
        return cleaned
    if spec.kind == "email":
        value = value.strip()
        if not validate_email(value):
            raise BadRequest("Invalid email format.")
        return value
    if spec.kind == "url":
        value = value.strip()
        if not validate_url(value):
            raise BadRequest("Invalid URL format.")
        return value
    if spec.kind == "date":
        value = value.strip()
        if not validate_date(value):
            raise BadRequest(f"{spec.name} must be in YYYY-MM-DD format.")
        return datetime.strptime(value, DATE_FORMAT).date()
    if spec.kind == "list":
        return json.dumps([str(item).strip() for item in value])
    if spec.kind == "password":
        return get_password_hash(value)
    raise ValueError(f"Unknown field kind: {spec.kind}")


def build_update_values(descriptor: EntityDescriptor, data) -> Dict[str, Any]:
    """Map the allowlisted fields present in ``data`` to column values.

    Omitted fields are left out entirely (partial update). Raises
    NoFieldsSupplied when nothing updatable was sent.
    """
    values = {}
    for spec in descriptor.fields:
        if spec.name in descriptor.updatable and is_present(spec, data):
            values[spec.column] = prepare_value(spec, data[spec.name])
    if not values:
        raise NoFieldsSupplied()
    return values


def serialize(schema, row):
    return schema.model_validate(row).model_dump(mode="json")


class ResourceHandler:
    """CRUD for one entity family and its optional sub-resource."""

    def __init__(self, descriptor: EntityDescriptor, db: Session):
        self.descriptor = descriptor
        self.db = db

    @property
    def model(self):
        return self.descriptor.model

    @property
    def key_column(self):
        return getattr(self.model, self.descriptor.key)

    def _parse_key(self, raw, is_int, param, label):
        if is_int:
            text = str(raw).strip() if raw is not None else ""
            if not (text.isascii() and text.isdigit()) or int(text) > MAX_INT_KEY:
                raise BadRequest(f"Missing or invalid {label} ID.")
            return int(text)
        if raw is None or str(raw).strip() == "":
            raise BadRequest(f"{param} is required.")
        return sanitize(str(raw))

    def parse_key(self, raw):
        d = self.descriptor
        return self._parse_key(raw, d.key_is_int, d.key, d.label)

    def find(self, key):
        return self.db.query(self.model).filter(self.key_column == key).first()

    def _require(self, key):
        row = self.find(key)
        if row is None:
            raise NotFound(f"{self.descriptor.label} not found.")
        return row

    def _check_unique(self, fields, model, values, exclude=None):
        for spec in fields:
            if not spec.unique or spec.column not in values:
                continue
            query = self.db.query(model.id).filter(getattr(model, spec.column) == values[spec.column])
            if exclude is not None:
                query = query.filter(exclude)
            if query.first() is not None:
                raise Conflict(f"{spec.name} already exists.")

    def _collect(self, fields, data):
        missing = validate_required(data, [spec.name for spec in fields if spec.required])
        if missing:
            raise BadRequest("Missing required fields: " + ", ".join(missing))
        values = {}
        for spec in fields:
            if is_present(spec, data):
                values[spec.column] = prepare_value(spec, data[spec.name])
            elif spec.default is not None:
                values[spec.column] = prepare_value(spec, spec.default)
        return values

    def _commit(self, label):
        try:
            self.db.commit()
        except IntegrityError:
            # lost a race against a concurrent write of the same unique value
            self.db.rollback()
            logger.warning("Integrity error while saving %s", label, exc_info=True)
            raise Conflict(f"{label} already exists.")

    def _insert(self, row, label):
        self.db.add(row)
        self._commit(label)
        self.db.refresh(row)
        return row

    # --- parent entity ---

    def list(self, search=None, sort=None, order=None):
        d = self.descriptor
        query = self.db.query(self.model)
        term = search.strip() if isinstance(search, str) else ""
        if term:
            like = f"%{term}%"
            query = query.filter(or_(*[getattr(self.model, name).like(like) for name in d.searchable]))

        sort_field, direction = validate_sort_spec(sort, d.sortable, order, d.default_sort)
        column = getattr(self.model, sort_field)
        if direction == "desc":
            query = query.order_by(column.desc(), self.model.id.desc())
        else:
            query = query.order_by(column.asc(), self.model.id.asc())
        return [serialize(d.out_schema, row) for row in query.all()]

    def get_one(self, raw_key):
        row = self._require(self.parse_key(raw_key))
        return serialize(self.descriptor.out_schema, row)

    def create(self, data):
        d = self.descriptor
        values = self._collect(d.fields, data)
        self._check_unique(d.fields, self.model, values)
        row = self._insert(self.model(**values), d.label)
        logger.info("%s %s created", d.label, getattr(row, d.key))
        return row.id, serialize(d.out_schema, row)

    def update(self, data):
        d = self.descriptor
        key = self.parse_key(data.get(d.key))
        row = self._require(key)
        values = build_update_values(d, data)
        self._check_unique(d.fields, self.model, values, exclude=self.key_column != key)

        for column, value in values.items():
            setattr(row, column, value)
        if d.touch_column:
            setattr(row, d.touch_column, func.now())
        self._commit(d.label)
        self.db.refresh(row)
        logger.info("%s %s updated (%s)", d.label, key, ", ".join(sorted(values)))
        return serialize(d.out_schema, row)

    def delete(self, raw_key):
        """Delete one row, and its sub-resources first when it owns any.

        Children and parent go in a single transaction: either all of them
        are removed or, on failure, none are.
        """
        d = self.descriptor
        key = self.parse_key(raw_key)
        self._require(key)
        removed = 0
        try:
            if d.sub:
                parent_column = getattr(d.sub.model, d.sub.parent_column)
                removed = (
                    self.db.query(d.sub.model)
                    .filter(parent_column == key)
                    .delete(synchronize_session=False)
                )
            self.db.query(self.model).filter(self.key_column == key).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to delete %s %s", d.label, key)
            raise InternalError(f"Failed to delete {d.label.lower()}.")
        if d.sub:
            logger.info("%s %s deleted with %d %s", d.label, key, removed, d.sub.plural)
        else:
            logger.info("%s %s deleted", d.label, key)
        return removed

    # --- sub-resource ---

    def _sub(self):
        if self.descriptor.sub is None:
            raise BadRequest("Unknown action.")
        return self.descriptor.sub

    def parse_parent_key(self, raw):
        d = self.descriptor
        return self._parse_key(raw, d.key_is_int, self._sub().parent_column, d.label)

    def list_sub(self, raw_parent_key):
        sub = self._sub()
        parent_key = self.parse_parent_key(raw_parent_key)
        rows = (
            self.db.query(sub.model)
            .filter(getattr(sub.model, sub.parent_column) == parent_key)
            .order_by(sub.model.created_at.asc(), sub.model.id.asc())
            .all()
        )
        return [serialize(sub.out_schema, row) for row in rows]

    def create_sub(self, data):
        sub = self._sub()
        missing = validate_required(data, [sub.parent_column] + [s.name for s in sub.fields if s.required])
        if missing:
            raise BadRequest("Missing required fields: " + ", ".join(missing))
        values = self._collect(sub.fields, data)
        parent_key = self.parse_parent_key(data.get(sub.parent_column))

        if self.find(parent_key) is None:
            raise NotFound(f"{self.descriptor.label} not found.")
        if sub.key_supplied:
            self._check_unique(sub.fields, sub.model, values)

        row = self._insert(sub.model(**{sub.parent_column: parent_key}, **values), sub.label)
        logger.info("%s %s created for %s %s", sub.label, getattr(row, sub.key), self.descriptor.label, parent_key)
        return row.id, serialize(sub.out_schema, row)

    def delete_sub(self, raw_key):
        sub = self._sub()
        key = self._parse_key(raw_key, not sub.key_supplied, sub.key_param, sub.label)
        key_column = getattr(sub.model, sub.key)
        if self.db.query(sub.model.id).filter(key_column == key).first() is None:
            raise NotFound(f"{sub.label} not found.")
        self.db.query(sub.model).filter(key_column == key).delete(synchronize_session=False)
        self.db.commit()
        logger.info("%s %s deleted", sub.label, key)
