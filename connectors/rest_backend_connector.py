import threading
from typing import Any, Callable
from xml.etree import ElementTree as ET

import httpx

from connectors.backend_interface import (
    BackendUser,
    ContentType,
    PackagingService,
    PasswordChangeNotSupported,
    PasswordResetResult,
    UserCreateResult,
    UserGroup,
    UserService,
)


##### Sessions #####
class BackendSession:
    """
    A session against a content-management backend exposing the REST contract
    implemented by ``mock_backend.daemon``.

    Args:
        host_URL (str): The base URL of the backend.
            Must include scheme (http:// or https://) and optionally port.
            Examples: "http://localhost:8000", "https://cms.example.com"
        user (str): The username for authentication.
        password (str): The password for authentication.
        client (httpx.Client, optional): A preconfigured client, e.g. a test client.
    """
    def __init__(self, host_URL: str, user: str, password: str, client: httpx.Client | None = None):
        self.base_URL = host_URL
        self.user = user
        self.password = password
        self._client = client or httpx.Client(base_url=host_URL, auth=(user, password))

    def request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """
        Make an HTTP request to the backend.
        raise_for_status() is called on the response.

        Args:
            method (str): The HTTP method (GET, POST, PUT, DELETE).
            endpoint (str): The API endpoint (path) to call.
            **kwargs: Additional arguments to pass to httpx request.
            example: session.request("POST", "/packaging/macros", content=xml_bytes)

        Returns:
            httpx.Response: The HTTP response object.
        """
        response = self._client.request(method, f"/{endpoint.lstrip('/')}", **kwargs)
        response.raise_for_status()
        return response

    @property
    def backend_type(self) -> str:
        return "rest"

    @property
    def is_alive(self) -> bool:
        """Check if the session is alive by making a test request to the backend."""
        try:
            resp = self.request("GET", "/status", timeout=2)
            return resp.status_code == 200
        except httpx.HTTPError:
            return False

    def connect(self):
        """Establish the session. Basic auth needs no handshake, so only reachability is checked."""
        if not self.is_alive:
            raise ConnectionError(f"Cannot connect to backend at {self.base_URL}")

    def disconnect(self):
        self._client.close()


class DeferredSession:
    """
    Stands in for a BackendSession and opens the real one on the first request,
    so commands that never reach the backend do not need it to be up.

    Args:
        opener (Callable): Returns a connected BackendSession. Called at most once.
    """
    def __init__(self, opener: Callable[[], BackendSession]):
        self._opener = opener
        self._session: BackendSession | None = None
        self._lock = threading.Lock()

    @property
    def session(self) -> BackendSession:
        # packages call in from several worker threads
        with self._lock:
            if self._session is None:
                self._session = self._opener()
            return self._session

    @property
    def is_open(self) -> bool:
        return self._session is not None

    def request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        return self.session.request(method, endpoint, **kwargs)


##### Services #####

class RestPackagingService(PackagingService):
    """Packaging capabilities over REST. Fragments travel as XML bodies."""

    def __init__(self, session: BackendSession | DeferredSession):
        self.session = session

    def import_data_type_definitions(self, fragment: ET.Element) -> None:
        self._post_fragment("/packaging/data-types", fragment)

    def import_templates(self, fragment: ET.Element) -> None:
        self._post_fragment("/packaging/templates", fragment)

    def import_macros(self, fragment: ET.Element) -> None:
        self._post_fragment("/packaging/macros", fragment)

    def import_content_types(self, fragment: ET.Element) -> list[ContentType]:
        r = self._post_fragment("/packaging/content-types", fragment)
        return [ContentType(ct) for ct in r.json()]

    def _post_fragment(self, endpoint: str, fragment: ET.Element) -> httpx.Response:
        body = ET.tostring(fragment, encoding="utf-8")
        return self.session.request("POST", endpoint, content=body, headers={"Content-Type": "application/xml"})


class RestUserService(UserService):
    """User-account operations over REST."""

    SAVED_FIELDS = ("name", "username", "email", "groups", "is_approved")

    def __init__(self, session: BackendSession | DeferredSession):
        self.session = session

    def create(self, username: str, email: str, name: str) -> UserCreateResult:
        try:
            r = self.session.request("POST", "/users", json={"username": username, "email": email, "name": name})
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code in (409, 422):
                return UserCreateResult(succeeded=False, errors=_error_details(exc.response), user=None)
            raise
        return UserCreateResult(succeeded=True, errors=[], user=BackendUser(r.json()))

    def get_by_username(self, username: str) -> BackendUser | None:
        try:
            r = self.session.request("GET", f"/users/{username}")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return None
            raise
        return BackendUser(r.json())

    def get_user_groups_by_alias(self, aliases: list[str]) -> list[UserGroup]:
        if not aliases:
            return []
        r = self.session.request("GET", "/user-groups", params=[("alias", alias) for alias in aliases])
        return [UserGroup(group) for group in r.json()]

    def save(self, user: BackendUser) -> None:
        body = {field: user[field] for field in self.SAVED_FIELDS if field in user}
        self.session.request("PUT", f"/users/{user.id}", json=body)

    def reset_password(self, user_id: Any, new_password: str) -> PasswordResetResult:
        try:
            r = self.session.request("POST", f"/users/{user_id}/password", json={"password": new_password})
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 501:
                raise PasswordChangeNotSupported(exc.response.text) from exc
            raise
        return PasswordResetResult(r.json())


def _error_details(response: httpx.Response) -> list[str]:
    detail = response.json().get("detail", response.text)
    if isinstance(detail, list):
        # pydantic validation errors
        return [item.get("msg", str(item)) for item in detail]
    return [str(detail)]
