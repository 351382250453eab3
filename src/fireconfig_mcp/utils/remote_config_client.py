"""
Async client for the Firebase Remote Config REST API.

This client:
- Authenticates with the OAuth2 token of a firebase_admin credential
- Fetches the active template (etag taken from the ETag header)
- Publishes templates, optionally forcing past etag conflicts
- Turns transport and HTTP failures into RemoteConfigError
"""

import asyncio
from typing import Any

import httpx
from firebase_admin import credentials
from google.auth.exceptions import GoogleAuthError

from fireconfig_mcp.models import RemoteConfigTemplate
from fireconfig_mcp.utils.logging_config import get_logger

logger = get_logger("utils.remote_config_client")

REMOTE_CONFIG_URL = "https://firebaseremoteconfig.googleapis.com/v1/projects/{project_id}/remoteConfig"

# If-Match value that makes the service skip its etag check
FORCE_ETAG = "*"


class RemoteConfigError(Exception):
    """Raised when the Remote Config service cannot be reached or rejects a request."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class RemoteConfigClient:
    """
    Remote Config client bound to one Firebase project.

    Usage:
        cred = credentials.Certificate("serviceAccount_dev.json")
        client = RemoteConfigClient(cred, cred.project_id)

        template = await client.get_template()
        published = await client.publish_template(template, force=True)
        await client.aclose()
    """

    def __init__(
        self,
        credential: credentials.Base,
        project_id: str,
        http_client: httpx.AsyncClient | None = None,
    ):
        if not project_id:
            raise ValueError("A Firebase project ID is required for Remote Config")
        self._credential = credential
        self._project_id = project_id
        self._url = REMOTE_CONFIG_URL.format(project_id=project_id)
        self._http = http_client or httpx.AsyncClient()

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def url(self) -> str:
        return self._url

    async def _headers(self) -> dict[str, str]:
        # get_access_token() may refresh over the network; keep it off the loop
        token = await asyncio.to_thread(self._credential.get_access_token)
        return {
            "Authorization": f"Bearer {token.access_token}",
            "Content-Type": "application/json; UTF-8",
        }

    async def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        try:
            headers = await self._headers()
        except GoogleAuthError as e:
            raise RemoteConfigError(f"Could not authenticate with Firebase: {e}") from e
        headers.update(kwargs.pop("headers", {}))

        try:
            response = await self._http.request(method, self._url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteConfigError(f"Remote Config request failed: {e}") from e

        if response.is_error:
            raise RemoteConfigError(_error_message(response), status_code=response.status_code)
        return response

    async def get_template(self) -> RemoteConfigTemplate:
        """
        Fetch the currently active template.

        Returns:
            Template snapshot with its etag

        Raises:
            RemoteConfigError: On network, auth or HTTP failures
        """
        logger.debug(f"Fetching Remote Config template for project {self._project_id}")
        response = await self._request("GET")
        return _parse_template(response)

    async def publish_template(
        self,
        template: RemoteConfigTemplate,
        force: bool = False,
    ) -> RemoteConfigTemplate:
        """
        Publish a template, replacing the active one.

        Args:
            template: Template to publish
            force: Skip the etag check, overwriting any newer remote version

        Returns:
            The published template with its new version and etag

        Raises:
            RemoteConfigError: On network, auth or HTTP failures, including
                etag conflicts when force is False
        """
        etag = FORCE_ETAG if force else template.etag
        if not etag:
            raise RemoteConfigError("Cannot publish a template without an etag unless force=True")

        response = await self._request(
            "PUT",
            json=template.to_payload(),
            headers={"If-Match": etag},
        )
        published = _parse_template(response)
        logger.info(
            f"Published Remote Config template v{published.version_number} "
            f"for project {self._project_id}"
        )
        return published

    async def aclose(self):
        """Close the underlying HTTP client."""
        await self._http.aclose()


def _parse_template(response: httpx.Response) -> RemoteConfigTemplate:
    etag = response.headers.get("etag")
    if not etag:
        raise RemoteConfigError("ETag header is not present in the server response.")
    try:
        data = response.json()
    except ValueError as e:
        raise RemoteConfigError(f"Invalid JSON in Remote Config response: {e}") from e
    if not isinstance(data, dict):
        raise RemoteConfigError("Unexpected Remote Config response: expected a JSON object")

    data["etag"] = etag
    try:
        return RemoteConfigTemplate.model_validate(data)
    except ValueError as e:
        raise RemoteConfigError(f"Invalid Remote Config template: {e}") from e


def _error_message(response: httpx.Response) -> str:
    """Extract the service's error message, falling back to the raw body."""
    detail = response.text
    try:
        error = response.json().get("error", {})
        detail = error.get("message") or detail
        status = error.get("status")
        if status:
            detail = f"{status}: {detail}"
    except (ValueError, AttributeError):
        pass
    return f"Remote Config request failed with HTTP {response.status_code}: {detail}"
