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
import json

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from crud_ops import EntityDescriptor, ResourceHandler
from database import get_db
from entities import ASSIGNMENTS, RESOURCES, STUDENTS, TOPICS, WEEKS
from envelope import envelope
from errors import BadRequest, MethodNotAllowed

router = APIRouter(prefix="/api")

API_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]


async def read_payload(request: Request):
    """Return the JSON object sent as the request body ({} when there is none)."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except ValueError:
        raise BadRequest("Invalid JSON body.")
    if not isinstance(payload, dict):
        raise BadRequest("Invalid JSON body.")
    return payload


async def read_body(request: Request, schema):
    """Validate the body against ``schema`` and return the fields the client sent."""
    payload = await read_payload(request)
    try:
        body = schema.model_validate(payload)
    except ValidationError as exc:
        loc = exc.errors()[0].get("loc") or ("body",)
        raise BadRequest(f"Invalid value for field '{loc[0]}'.")
    return body.model_dump(exclude_unset=True)


def unknown_action(action):
    return BadRequest(f"Unknown action '{action}'.")


async def dispatch(request: Request, descriptor: EntityDescriptor, db: Session):
    """Route one request on a resource family by HTTP method and ``action`` marker.

    Only the body is read on the event loop; engine calls run in a worker thread.
    """
    handler = ResourceHandler(descriptor, db)
    params = request.query_params
    action = params.get("action")
    sub = descriptor.sub
    label = descriptor.label

    if request.method == "OPTIONS":
        return envelope(True, message="Preflight OK")

    if request.method == "GET":
        if action is not None:
            if sub is None or action != sub.list_action:
                raise unknown_action(action)
            return envelope(True, data=await asyncio.to_thread(handler.list_sub, params.get(sub.parent_column)))
        key = params.get(descriptor.key)
        if key is not None and key.strip() != "":
            return envelope(True, data=await asyncio.to_thread(handler.get_one, key))
        rows = await asyncio.to_thread(handler.list, params.get("search"), params.get("sort"), params.get("order"))
        return envelope(True, data=rows)

    if request.method == "POST":
        if action is None:
            data = await read_body(request, descriptor.create_schema)
            new_id, row = await asyncio.to_thread(handler.create, data)
            return envelope(True, data=row, message=f"{label} created successfully.", id=new_id, status_code=201)
        if sub is not None and action == sub.create_action:
            data = await read_body(request, sub.create_schema)
            new_id, row = await asyncio.to_thread(handler.create_sub, data)
            return envelope(True, data=row, message=f"{sub.label} added successfully.", id=new_id, status_code=201)
        if action in descriptor.post_actions:
            schema, perform = descriptor.post_actions[action]
            data = await read_body(request, schema)
            return envelope(True, message=await asyncio.to_thread(perform, db, data))
        raise unknown_action(action)

    if request.method == "PUT":
        if action is not None:
            raise unknown_action(action)
        data = await read_body(request, descriptor.update_schema)
        row = await asyncio.to_thread(handler.update, data)
        return envelope(True, data=row, message=f"{label} updated successfully.")

    if request.method == "DELETE":
        # the key may come from the query string or from a JSON body
        values = await read_payload(request)
        values.update(params)
        if action is not None:
            if sub is None or action != sub.delete_action:
                raise unknown_action(action)
            await asyncio.to_thread(handler.delete_sub, values.get(sub.key_param))
            return envelope(True, message=f"{sub.label} deleted successfully.")
        await asyncio.to_thread(handler.delete, values.get(descriptor.key))
        if sub is not None:
            return envelope(True, message=f"{label} and its {sub.plural} deleted successfully.")
        return envelope(True, message=f"{label} deleted successfully.")

    raise MethodNotAllowed()


@router.api_route("/students", methods=API_METHODS)
async def students(request: Request, db: Session = Depends(get_db)):
    return await dispatch(request, STUDENTS, db)


@router.api_route("/resources", methods=API_METHODS)
async def resources(request: Request, db: Session = Depends(get_db)):
    return await dispatch(request, RESOURCES, db)


@router.api_route("/assignments", methods=API_METHODS)
async def assignments(request: Request, db: Session = Depends(get_db)):
    return await dispatch(request, ASSIGNMENTS, db)


@router.api_route("/topics", methods=API_METHODS)
async def topics(request: Request, db: Session = Depends(get_db)):
    return await dispatch(request, TOPICS, db)


@router.api_route("/weeks", methods=API_METHODS)
async def weeks(request: Request, db: Session = Depends(get_db)):
    return await dispatch(request, WEEKS, db)
