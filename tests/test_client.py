"""
Tests for the Content Management API client.
"""

import json
from typing import Any
from unittest.mock import Mock

import pytest
import requests

from workflow_migrator.client import ALPHA_HEADERS, ContentfulClient, classify_error
from workflow_migrator.exceptions import ContentfulApiError, VersionConflictError, WorkflowAlreadyExistsError


def _response(status: int = 200, payload: Any = None, reason: str = "OK") -> Mock:
    response = Mock()
    response.status_code = status
    response.ok = status < 400
    response.reason = reason
    response.content = b"" if payload is None else json.dumps(payload).encode()
    response.text = response.content.decode()
    if payload is None:
        response.json.side_effect = ValueError("no body")
    else:
        response.json.return_value = payload
    return response


def _client(*responses: Mock) -> tuple[ContentfulClient, Mock]:
    session = Mock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return ContentfulClient("token", "space", "master", session=session), session


@pytest.mark.unit
class TestClassifyError:
    def test_version_mismatch(self) -> None:
        error = classify_error(
            _response(409, {"sys": {"id": "VersionMismatch"}, "message": "Version mismatch"}, "Conflict"),
            "Failed to update",
        )
        assert isinstance(error, VersionConflictError)
        assert error.status == 409
        assert error.error_id == "VersionMismatch"

    def test_active_workflow_exists(self) -> None:
        error = classify_error(
            _response(
                422,
                {"sys": {"id": "UnprocessableEntity"}, "message": "Entity already has an active workflow"},
            ),
            "Failed to create workflow",
        )
        assert isinstance(error, WorkflowAlreadyExistsError)

    def test_other_error(self) -> None:
        error = classify_error(
            _response(500, {"sys": {"id": "ServerError"}, "message": "Internal"}), "Failed to create workflow"
        )
        assert type(error) is ContentfulApiError
        assert str(error) == "Failed to create workflow: Internal"

    def test_non_json_body(self) -> None:
        response = _response(502, None, "Bad Gateway")
        error = classify_error(response, "Failed")
        assert type(error) is ContentfulApiError
        assert "Bad Gateway" in str(error)


@pytest.mark.unit
class TestContentfulClient:
    def test_sets_auth_header(self) -> None:
        client, session = _client()
        assert session.headers["Authorization"] == "Bearer token"
        assert client.environment_url == "https://api.contentful.com/spaces/space/environments/master"

    def test_list_entries_by_tag(self) -> None:
        payload = {
            "total": 1,
            "skip": 100,
            "limit": 100,
            "items": [{"sys": {"id": "e1", "version": 2, "contentType": {"sys": {"id": "article"}}}}],
        }
        client, session = _client(_response(200, payload))

        page = client.list_entries_by_tag("t1", limit=100, skip=100)

        assert page.total == 1
        assert page.items[0].id == "e1"
        _, kwargs = session.request.call_args
        assert kwargs["params"] == {"metadata.tags.sys.id[in]": "t1", "order": "sys.id", "limit": 100, "skip": 100}

    def test_patch_entry_tags_sends_version(self) -> None:
        client, session = _client(
            _response(200, {"sys": {"id": "e1", "version": 6, "contentType": {"sys": {"id": "article"}}}})
        )

        entry = client.patch_entry_tags("e1", ["other"], expected_version=5)

        assert entry.version == 6
        args, kwargs = session.request.call_args
        assert args[0] == "PATCH"
        assert kwargs["headers"]["X-Contentful-Version"] == "5"
        assert kwargs["headers"]["Content-Type"] == "application/json-patch+json"
        assert json.loads(kwargs["data"]) == [
            {
                "op": "replace",
                "path": "/metadata/tags",
                "value": [{"sys": {"type": "Link", "linkType": "Tag", "id": "other"}}],
            }
        ]

    def test_create_workflow_payload(self) -> None:
        client, session = _client(_response(201, {"sys": {"id": "w1"}}))

        client.create_workflow("e1", "wf1", "review")

        args, kwargs = session.request.call_args
        assert args[0] == "POST"
        assert args[1].endswith("/workflows")
        assert kwargs["headers"] == ALPHA_HEADERS
        body = json.loads(kwargs["data"])
        assert body["entity"]["sys"]["id"] == "e1"
        assert body["workflowDefinition"]["sys"]["id"] == "wf1"
        assert body["stepId"] == "review"

    def test_create_workflow_already_exists(self) -> None:
        client, _ = _client(_response(422, {"message": "An active workflow already exists for this entity"}))
        with pytest.raises(WorkflowAlreadyExistsError):
            client.create_workflow("e1", "wf1", "review")

    def test_network_error_is_wrapped(self) -> None:
        client, session = _client()
        session.request.side_effect = requests.ConnectionError("unreachable")
        with pytest.raises(ContentfulApiError, match="unreachable"):
            _ = client.get_entry("e1")

    def test_get_tags_paginates(self) -> None:
        first = {"total": 3, "items": [{"sys": {"id": "a"}, "name": "A"}, {"sys": {"id": "b"}, "name": "B"}]}
        second = {"total": 3, "items": [{"sys": {"id": "c"}, "name": "C"}]}
        client, session = _client(_response(200, first), _response(200, second))

        tags = client.get_tags()

        assert [tag.id for tag in tags] == ["a", "b", "c"]
        assert session.request.call_args_list[1].kwargs["params"] == {"limit": 500, "skip": 2}

    def test_delete_tag_sends_version(self) -> None:
        client, session = _client(_response(204))

        client.delete_tag("t1", 4)

        args, kwargs = session.request.call_args
        assert args[0] == "DELETE"
        assert kwargs["headers"] == {"X-Contentful-Version": "4"}

    def test_app_installation_roundtrip(self) -> None:
        parameters = {"workflowDefinitions": {"workflow": {"states": ["t1"]}}}
        client, session = _client(_response(200, {"parameters": parameters}), _response(200, {"parameters": {}}))

        assert client.get_app_installation_parameters("app") == parameters
        client.upsert_app_installation_parameters("app", {"x": 1})

        args, kwargs = session.request.call_args
        assert args[0] == "PUT"
        assert args[1].endswith("/app_installations/app")
        assert json.loads(kwargs["data"]) == {"parameters": {"x": 1}}
