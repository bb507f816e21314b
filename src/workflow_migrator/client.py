"""
Content Management API client implementing the ContentService protocol.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Final

import requests

from .exceptions import ContentfulApiError, VersionConflictError, WorkflowAlreadyExistsError
from .models import Entry, EntryPage, Tag, WorkflowDefinition

if TYPE_CHECKING:
    from collections.abc import Sequence

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_BASE_URL: Final[str] = "https://api.contentful.com"
CONTENT_TYPE_JSON: Final[str] = "application/vnd.contentful.management.v1+json"
CONTENT_TYPE_JSON_PATCH: Final[str] = "application/json-patch+json"
ALPHA_HEADERS: Final[dict[str, str]] = {"x-contentful-enable-alpha-feature": "workflows"}
TAGS_PAGE_SIZE: Final[int] = 500
REQUEST_TIMEOUT: Final[float] = 30.0

_VERSION_MISMATCH_ERROR_ID: Final[str] = "VersionMismatch"
_ALREADY_EXISTS_MARKERS: Final[tuple[str, ...]] = ("active workflow", "already exists", "already has a workflow")


def _error_details(response: requests.Response) -> tuple[str | None, str]:
    """Extract the error id and a readable message from an API error response."""
    try:
        payload: Any = response.json()
    except ValueError:
        return None, response.text or response.reason or f"HTTP {response.status_code}"

    if not isinstance(payload, dict):
        return None, str(payload)

    error_id: str | None = payload.get("sys", {}).get("id")
    message: str = payload.get("message") or response.reason or f"HTTP {response.status_code}"
    details = payload.get("details")
    if details:
        message = f"{message} ({json.dumps(details, sort_keys=True)})"
    return error_id, message


def classify_error(response: requests.Response, context: str) -> ContentfulApiError:
    """Turn a failed response into the matching typed exception.

    Callers only ever check the exception type; message inspection is confined
    to this function.
    """
    error_id, message = _error_details(response)
    status = response.status_code
    msg = f"{context}: {message}"

    if status == 409 or error_id == _VERSION_MISMATCH_ERROR_ID:
        return VersionConflictError(msg, status=status, error_id=error_id)

    if 400 <= status < 500 and any(marker in message.lower() for marker in _ALREADY_EXISTS_MARKERS):
        return WorkflowAlreadyExistsError(msg, status=status, error_id=error_id)

    return ContentfulApiError(msg, status=status, error_id=error_id)


class ContentfulClient:
    """Thin Content Management API client scoped to one space environment."""

    space_id: str
    environment_id: str
    base_url: str
    _session: requests.Session

    def __init__(
        self,
        token: str,
        space_id: str,
        environment_id: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        session: requests.Session | None = None,
    ) -> None:
        self.space_id = space_id
        self.environment_id = environment_id
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": CONTENT_TYPE_JSON,
            }
        )

    @property
    def environment_url(self) -> str:
        return f"{self.base_url}/spaces/{self.space_id}/environments/{self.environment_id}"

    def _request(
        self,
        method: str,
        path: str,
        context: str,
        *,
        params: dict[str, Any] | None = None,
        payload: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.environment_url}{path}"
        logger.debug(f"{method} {url} params={params}")
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                data=json.dumps(payload) if payload is not None else None,
                headers=headers,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            msg = f"{context}: {e}"
            raise ContentfulApiError(msg) from e

        if not response.ok:
            raise classify_error(response, context)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def validate_access(self) -> None:
        _ = self._request("GET", "", f"Failed to access environment '{self.environment_id}'")
        logger.info(f"Content Management API access validated for {self.space_id}/{self.environment_id}")

    def list_entries_by_tag(self, tag_id: str, limit: int, skip: int) -> EntryPage:
        data = self._request(
            "GET",
            "/entries",
            f"Failed to fetch entries tagged '{tag_id}'",
            params={"metadata.tags.sys.id[in]": tag_id, "order": "sys.id", "limit": limit, "skip": skip},
        )
        return EntryPage(
            total=data.get("total", 0),
            skip=data.get("skip", skip),
            limit=data.get("limit", limit),
            items=[Entry.from_api(item) for item in data.get("items", [])],
        )

    def get_entry(self, entry_id: str) -> Entry:
        data = self._request("GET", f"/entries/{entry_id}", f"Failed to fetch entry '{entry_id}'")
        return Entry.from_api(data)

    def patch_entry_tags(self, entry_id: str, tag_ids: Sequence[str], expected_version: int) -> Entry:
        operations = [
            {
                "op": "replace",
                "path": "/metadata/tags",
                "value": [{"sys": {"type": "Link", "linkType": "Tag", "id": tag_id}} for tag_id in tag_ids],
            }
        ]
        data = self._request(
            "PATCH",
            f"/entries/{entry_id}",
            f"Failed to update tags of entry '{entry_id}'",
            payload=operations,
            headers={"Content-Type": CONTENT_TYPE_JSON_PATCH, "X-Contentful-Version": str(expected_version)},
        )
        return Entry.from_api(data)

    def create_workflow(self, entry_id: str, workflow_definition_id: str, step_id: str) -> None:
        payload = {
            "entity": {"sys": {"type": "Link", "linkType": "Entry", "id": entry_id}},
            "workflowDefinition": {
                "sys": {"type": "Link", "linkType": "WorkflowDefinition", "id": workflow_definition_id}
            },
            "stepId": step_id,
        }
        _ = self._request(
            "POST",
            "/workflows",
            f"Failed to create workflow for entry '{entry_id}'",
            payload=payload,
            headers=ALPHA_HEADERS,
        )

    def get_tags(self) -> list[Tag]:
        tags: list[Tag] = []
        skip = 0
        while True:
            data = self._request(
                "GET", "/tags", "Failed to fetch tags", params={"limit": TAGS_PAGE_SIZE, "skip": skip}
            )
            items = data.get("items", [])
            tags.extend(Tag.from_api(item) for item in items)
            skip += len(items)
            if not items or skip >= data.get("total", 0):
                return tags

    def get_tag(self, tag_id: str) -> Tag:
        data = self._request("GET", f"/tags/{tag_id}", f"Failed to fetch tag '{tag_id}'")
        return Tag.from_api(data)

    def delete_tag(self, tag_id: str, version: int) -> None:
        _ = self._request(
            "DELETE",
            f"/tags/{tag_id}",
            f"Failed to delete tag '{tag_id}'",
            headers={"X-Contentful-Version": str(version)},
        )

    def get_workflow_definitions(self) -> list[WorkflowDefinition]:
        data = self._request(
            "GET", "/workflow_definitions", "Failed to fetch workflow definitions", headers=ALPHA_HEADERS
        )
        return [WorkflowDefinition.from_api(item) for item in data.get("items", [])]

    def get_app_installation_parameters(self, app_definition_id: str) -> dict[str, Any]:
        data = self._request(
            "GET",
            f"/app_installations/{app_definition_id}",
            f"Failed to fetch app installation '{app_definition_id}'",
        )
        return data.get("parameters") or {}

    def upsert_app_installation_parameters(self, app_definition_id: str, parameters: dict[str, Any]) -> None:
        _ = self._request(
            "PUT",
            f"/app_installations/{app_definition_id}",
            f"Failed to update app installation '{app_definition_id}'",
            payload={"parameters": parameters},
        )
