"""Unit tests for the Todoist client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from shootingstar.services.todoist import TodoistClient


def response(status: int = 200, payload=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.content = b"{}" if payload is not None else b""
    resp.json.return_value = payload
    resp.text = str(payload)
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(response=resp)
    return resp


@pytest.fixture
def client(taxonomy):
    return TodoistClient(token="tok", url="https://api.todoist.test/rest/v2/", taxonomy=taxonomy)


class TestTodoistClient:
    """Tests for task and label operations."""

    def test_create_task_sends_display_names(self, client):
        created = {"id": "99", "content": "Call Bob", "description": "d", "labels": ["Errands 🏃"], "url": "u"}
        with patch("shootingstar.services.todoist.requests.request", return_value=response(200, created)) as req:
            task = client.create_task("Call Bob", "d", ["ctx-errands", "unknown"], "tomorrow")

        method, url = req.call_args.args
        assert method == "POST"
        assert url == "https://api.todoist.test/rest/v2/tasks"
        assert req.call_args.kwargs["json"] == {
            "content": "Call Bob",
            "description": "d",
            "labels": ["Errands 🏃"],
            "due_string": "tomorrow",
        }
        assert req.call_args.kwargs["headers"]["Authorization"] == "Bearer tok"
        assert task.id == "99"

    def test_retries_transient_errors(self, client):
        created = {"id": "1", "content": "x"}
        responses = [response(502), requests.ConnectionError("reset"), response(200, created)]
        with patch("shootingstar.services.todoist.requests.request", side_effect=responses) as req, \
                patch("shootingstar.services.todoist.time.sleep"):
            task = client.create_task("x")

        assert req.call_count == 3
        assert task.id == "1"
        # Every attempt carries the same request id so Todoist can drop duplicates
        request_ids = {call.kwargs["headers"]["X-Request-Id"] for call in req.call_args_list}
        assert len(request_ids) == 1
        assert all(request_ids)

    def test_each_task_gets_its_own_request_id(self, client):
        with patch("shootingstar.services.todoist.requests.request", return_value=response(200, {"id": "1"})) as req:
            client.create_task("a")
            client.create_task("b")

        first, second = (call.kwargs["headers"]["X-Request-Id"] for call in req.call_args_list)
        assert first != second

    def test_reads_send_no_request_id(self, client):
        with patch("shootingstar.services.todoist.requests.request", return_value=response(200, [])) as req:
            client.get_labels()

        assert "X-Request-Id" not in req.call_args.kwargs["headers"]

    def test_does_not_retry_client_errors(self, client):
        with patch("shootingstar.services.todoist.requests.request", return_value=response(400, {})) as req:
            with pytest.raises(requests.HTTPError):
                client.create_task("x")
        assert req.call_count == 1

    def test_ensure_labels_exist_creates_missing(self, client, taxonomy):
        existing = [{"id": "1", "name": "15 min ⌚"}, {"id": "2", "name": "Errands 🏃"}]
        with patch("shootingstar.services.todoist.requests.request") as req:
            req.side_effect = lambda method, url, **kwargs: response(200, existing if method == "GET" else {"id": "n"})
            created = client.ensure_labels_exist()

        assert created == ["1 hour ⏰", "Computer 💻", "Admin 📋"]

    def test_test_connection(self, client):
        with patch("shootingstar.services.todoist.requests.request", return_value=response(200, [])):
            assert client.test_connection()
        with patch("shootingstar.services.todoist.requests.request", side_effect=requests.ConnectionError()), \
                patch("shootingstar.services.todoist.time.sleep"):
            assert not client.test_connection()
