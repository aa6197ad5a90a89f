"""
mock_backend.daemon
-------------------
This module implements a mock content-management backend REST API using FastAPI.
It accepts packaging imports (data types, templates, macros, content types)
as XML bodies and manages user accounts, all in an in-memory store.
Intended for local development, testing, and demonstration purposes.
"""
import json
import os
import socket
from xml.etree import ElementTree as ET

import typer
import uvicorn
from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, Field

from common.app_setup import setup_logging

MIN_PASSWORD_LENGTH = 8


class ImportRecord(BaseModel):
    kind: str
    names: list[str]
    xml: str


class ContentTypeModel(BaseModel):
    alias: str
    name: str


class UserCreateModel(BaseModel):
    username: str = Field(..., min_length=1)
    email: str = Field("", pattern=r"^$|^[^@\s]+@[^@\s]+$")
    name: str = ""
    password: str = ""


class UserUpdateModel(BaseModel):
    username: str | None = Field(None, min_length=1)
    name: str | None = None
    email: str | None = None
    groups: list[str] | None = None
    is_approved: bool | None = None


class UserModel(BaseModel):
    id: int
    username: str
    name: str
    email: str = ""
    groups: list[str] = []
    is_approved: bool = False


class UserGroupModel(BaseModel):
    alias: str
    name: str


class PasswordModel(BaseModel):
    password: str


# Set up logging for the daemon
logger = setup_logging(app_name="chauffeur-backend", daemon=True)

# In-memory stores
imports: list[ImportRecord] = []
content_types: dict[str, ContentTypeModel] = {}
users: dict[int, UserModel] = {}
passwords: dict[int, str] = {}
user_groups: dict[str, UserGroupModel] = {}

DEFAULT_USER_GROUPS = {"admin": "Administrators", "editor": "Editors", "writer": "Writers"}

app = FastAPI()
app.state.allow_manual_password_change = True


def reset_store():
    """Forget everything, e.g. between tests."""
    imports.clear()
    content_types.clear()
    users.clear()
    passwords.clear()
    _seed_user_groups()
    app.state.allow_manual_password_change = True


def _seed_user_groups():
    user_groups.clear()
    for alias, name in DEFAULT_USER_GROUPS.items():
        user_groups[alias] = UserGroupModel(alias=alias, name=name)


_seed_user_groups()


async def _read_xml(request: Request) -> ET.Element:
    body = await request.body()
    try:
        return ET.fromstring(body)
    except ET.ParseError as exc:
        logger.warning(f"Malformed XML payload: {exc}")
        raise HTTPException(status_code=400, detail=f"Malformed XML: {exc}")


def _record(kind: str, element: ET.Element, names: list[str]) -> ImportRecord:
    record = ImportRecord(kind=kind, names=names, xml=ET.tostring(element, encoding="unicode"))
    imports.append(record)
    logger.info(f"Imported {kind}: {names}")
    return record


@app.get("/status")
def status():
    """Health/status endpoint for the mock backend."""
    return {"status": "ok", "imports": len(imports), "content_types": len(content_types), "users": len(users)}


@app.get("/imports", response_model=list[ImportRecord])
def list_imports(kind: str | None = None) -> list[ImportRecord]:
    """List recorded imports in arrival order, optionally filtered by kind."""
    if not kind:
        return list(imports)
    return [r for r in imports if r.kind == kind]


@app.post("/packaging/data-types", status_code=201)
async def import_data_types(request: Request):
    element = await _read_xml(request)
    if element.tag != "DataTypes":
        raise HTTPException(status_code=422, detail="Expected a <DataTypes> element")
    names = [dt.get("Name", "") for dt in element.findall("DataType")]
    return _record("data-types", element, names)


@app.post("/packaging/templates", status_code=201)
async def import_templates(request: Request):
    element = await _read_xml(request)
    return _record("templates", element, [element.findtext("Name", default="")])


@app.post("/packaging/macros", status_code=201)
async def import_macros(request: Request):
    element = await _read_xml(request)
    return _record("macros", element, [element.findtext("name", default="")])


@app.post("/packaging/content-types", response_model=list[ContentTypeModel], status_code=201)
async def import_content_types(request: Request) -> list[ContentTypeModel]:
    element = await _read_xml(request)
    if element.tag == "DocumentType":
        document_types = [element]
    else:
        document_types = element.findall("DocumentType")
    imported = []
    for dt in document_types:
        alias = dt.findtext("Info/Alias", default="")
        if not alias:
            raise HTTPException(status_code=422, detail="DocumentType without Info/Alias")
        ct = ContentTypeModel(alias=alias, name=dt.findtext("Info/Name", default=alias))
        content_types[alias] = ct
        imported.append(ct)
    _record("content-types", element, [ct.alias for ct in imported])
    return imported


@app.post("/users", response_model=UserModel, status_code=201)
def create_user(user: UserCreateModel) -> UserModel:
    if any(u.username == user.username for u in users.values()):
        raise HTTPException(status_code=409, detail="User with this username already exists")
    user_id = max(users, default=0) + 1
    users[user_id] = UserModel(id=user_id, username=user.username, name=user.name or user.username, email=user.email)
    passwords[user_id] = user.password
    logger.info(f"Created user: {users[user_id]}")
    return users[user_id]


@app.get("/users/{username}", response_model=UserModel)
def get_user(username: str) -> UserModel:
    for user in users.values():
        if user.username == username:
            return user
    raise HTTPException(status_code=404, detail="User not found")


@app.put("/users/{user_id}", response_model=UserModel)
def update_user(user_id: int, update: UserUpdateModel) -> UserModel:
    user = users.get(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if update.username is not None:
        user.username = update.username
    if update.name is not None:
        user.name = update.name
    if update.email is not None:
        user.email = update.email
    if update.groups is not None:
        unknown = [alias for alias in update.groups if alias not in user_groups]
        if unknown:
            raise HTTPException(status_code=422, detail=f"Unknown user groups: {unknown}")
        user.groups = update.groups
    if update.is_approved is not None:
        user.is_approved = update.is_approved
    logger.info(f"Updated user: {user!r}")
    return user


@app.get("/user-groups", response_model=list[UserGroupModel])
def get_user_groups(alias: list[str] = Query(default=[])) -> list[UserGroupModel]:
    """The groups matching the requested aliases. Unknown aliases are skipped."""
    return [user_groups[a] for a in alias if a in user_groups]


@app.post("/users/{user_id}/password")
def reset_password(user_id: int, body: PasswordModel):
    if user_id not in users:
        raise HTTPException(status_code=404, detail="User not found")
    if not app.state.allow_manual_password_change:
        raise HTTPException(status_code=501, detail="Manually changing passwords is not allowed")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        return {"succeeded": False, "errors": [f"The password must be at least {MIN_PASSWORD_LENGTH} characters long"]}
    passwords[user_id] = body.password
    logger.info(f"Password reset for user {user_id}")
    return {"succeeded": True, "errors": []}


app_cli = typer.Typer()


@app_cli.command()
def run(port: int = typer.Option(None, help="Port to run the server on (auto if not set)")):
    """Run the FastAPI app using Uvicorn on localhost, reporting the actual port used."""
    if not port:
        # Bind to port 0 to get a free port, then close and reuse
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(('127.0.0.1', 0))
            port = s.getsockname()[1]
    logger.info(f"Using port: {port}")
    print(json.dumps({"event": "port_selected", "port": port}), flush=True)
    config = uvicorn.Config(app, host="127.0.0.1", port=port, log_level="info")
    server = uvicorn.Server(config)
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt in main thread")
    logger.info("Server stopped, exiting process")
    os._exit(0)


if __name__ == "__main__":
    app_cli()
