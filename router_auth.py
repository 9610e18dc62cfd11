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


import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from config import settings
from crud_ops import (
    MIN_PASSWORD_LENGTH,
    authenticate_user,
    change_password,
    end_session,
    get_session,
    get_user,
    serialize,
    start_session,
)
from database import get_db
from envelope import envelope
from errors import BadRequest, Unauthorized
from models import User
from router_api import read_body
from sanitize import validate_email, validate_required
from schemas import LoginRequest, PasswordChange, UserOut

logger = logging.getLogger(__name__)

router = APIRouter()
templates = Jinja2Templates(directory=os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates"))


@dataclass
class SessionContext:
    """What the server knows about the caller's session for this request only."""
    session_id: Optional[str] = None
    user_id: Optional[int] = None
    is_authenticated: bool = False


def get_session_context(request: Request, db: Session = Depends(get_db)) -> SessionContext:
    session_id = request.cookies.get(settings.session_cookie_name)
    if not session_id:
        return SessionContext()
    session = get_session(db, session_id)
    if session is None:
        return SessionContext()
    return SessionContext(
        session_id=session.session_id,
        user_id=session.user_id,
        is_authenticated=bool(session.is_authenticated and session.user_id is not None),
    )


def require_session(context: SessionContext = Depends(get_session_context)) -> SessionContext:
    if not context.is_authenticated:
        raise Unauthorized()
    return context


@router.get("/")
def home():
    return RedirectResponse(url="/admin", status_code=302)


@router.get("/login")
def login_page(request: Request, context: SessionContext = Depends(get_session_context)):
    if context.is_authenticated:
        return RedirectResponse(url="/admin", status_code=302)
    return templates.TemplateResponse(request, "login.html", {"min_password_length": MIN_PASSWORD_LENGTH})


@router.get("/admin")
def admin_page(request: Request, context: SessionContext = Depends(get_session_context), db: Session = Depends(get_db)):
    current_user = get_user(db, context.user_id) if context.is_authenticated else None
    if not current_user:
        return RedirectResponse(url="/login", status_code=302)
    return templates.TemplateResponse(request, "admin.html", {"current_user": current_user})


@router.post("/api/auth/login")
async def login(request: Request, context: SessionContext = Depends(get_session_context), db: Session = Depends(get_db)):
    data = await read_body(request, LoginRequest)
    if validate_required(data, ["email", "password"]):
        raise BadRequest("Email and password are required.")

    email = data["email"].strip()
    password = data["password"]
    if not validate_email(email):
        raise BadRequest("Invalid email format.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")

    user = await asyncio.to_thread(authenticate_user, db, email, password)
    if not user:
        logger.warning("Failed login attempt for %s", email)
        raise Unauthorized("Invalid email or password.")

    user_data = serialize(UserOut, user)
    session = await asyncio.to_thread(start_session, db, user_data["id"], context.session_id)
    logger.info("User %s logged in", user_data["id"])
    response = envelope(True, data=user_data, message="Login successful.")
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.session_id,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return response


@router.get("/api/auth/session")
def session_info(context: SessionContext = Depends(require_session), db: Session = Depends(get_db)):
    user = get_user(db, context.user_id)
    if not user:
        raise Unauthorized()
    return envelope(True, data=serialize(UserOut, user))


@router.post("/api/auth/change_password")
async def change_admin_password(request: Request, context: SessionContext = Depends(require_session), db: Session = Depends(get_db)):
    data = await read_body(request, PasswordChange)
    await asyncio.to_thread(
        change_password,
        db,
        User,
        "id",
        context.user_id,
        data.get("current_password"),
        data.get("new_password"),
    )
    return envelope(True, message="Password changed successfully.")


@router.post("/logout")
def logout(context: SessionContext = Depends(get_session_context), db: Session = Depends(get_db)):
    if end_session(db, context.session_id):
        logger.info("User %s logged out", context.user_id)
    response = RedirectResponse(url="/login", status_code=303)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/logout")
def logout_page():
    return RedirectResponse(url="/login", status_code=302)
