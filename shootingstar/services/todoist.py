"""
Todoist REST API v2 client.

Todoist's REST API addresses labels by name, so label IDs from the taxonomy
are converted to their "{name} {emoji}" display strings before sending.
"""

import time
import uuid
from typing import Any

import requests

from shootingstar.config import settings
from shootingstar.core.logging import get_logger
from shootingstar.core.models import TrackerTask
from shootingstar.labels.taxonomy import DEFAULT_TAXONOMY, LabelTaxonomy

log = get_logger(__name__)

# Retry settings for transient Todoist failures
MAX_RETRIES = 3
RETRY_DELAY = 0.5  # seconds
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class TodoistClient:
    """Client for Todoist task and label operations."""

    def __init__(
        self,
        token: str | None = None,
        url: str | None = None,
        taxonomy: LabelTaxonomy = DEFAULT_TAXONOMY,
    ):
        self.token = token or settings.todoist_token
        self.url = (url or settings.todoist_api_url).rstrip("/")
        self.taxonomy = taxonomy
        self.timeout = 30

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        endpoint: str,
        data: dict | None = None,
        request_id: str | None = None,
    ) -> Any:
        """
        Make a request with retry on transient status codes and connection errors.

        Writes pass a request_id that is sent unchanged on every attempt as
        X-Request-Id, so Todoist drops a retried write it already applied.
        """
        headers = self._headers
        if request_id:
            headers["X-Request-Id"] = request_id
        last_error: Exception | None = None
        for attempt in range(MAX_RETRIES):
            try:
                response = requests.request(
                    method,
                    f"{self.url}{endpoint}",
                    json=data,
                    headers=headers,
                    timeout=self.timeout,
                )
                response.raise_for_status()
                if response.status_code == 204 or not response.content:
                    return {}
                return response.json()
            except requests.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                if status in RETRY_STATUS_CODES:
                    last_error = e
                    if attempt < MAX_RETRIES - 1:
                        time.sleep(RETRY_DELAY * (attempt + 1))
                        continue
                log.error(
                    "todoist_http_error",
                    endpoint=endpoint,
                    status=status,
                    response_body=e.response.text[:500] if e.response is not None else "",
                )
                raise
            except requests.ConnectionError as e:
                last_error = e
                if attempt < MAX_RETRIES - 1:
                    time.sleep(RETRY_DELAY * (attempt + 1))
                    continue
                raise
        raise last_error

    def create_task(
        self,
        content: str,
        description: str = "",
        label_ids: list[str] | None = None,
        due_string: str | None = None,
    ) -> TrackerTask:
        """
        Create a task.

        Args:
            content: Task title
            description: Task description
            label_ids: Taxonomy label IDs (unknown IDs are dropped)
            due_string: Natural language due date

        Returns:
            The created TrackerTask
        """
        body: dict[str, Any] = {"content": content}
        if description:
            body["description"] = description
        labels = self.taxonomy.display_names(label_ids or [])
        if labels:
            body["labels"] = labels
        if due_string:
            body["due_string"] = due_string

        task = self._request("POST", "/tasks", body, request_id=str(uuid.uuid4()))
        log.info("todoist_task_created", task_id=task["id"], labels=labels)

        return TrackerTask(
            id=str(task["id"]),
            content=task.get("content", content),
            description=task.get("description") or "",
            labels=task.get("labels") or [],
            url=task.get("url", ""),
        )

    def get_labels(self) -> list[dict[str, Any]]:
        """All personal labels in the Todoist account."""
        return self._request("GET", "/labels")

    def ensure_labels_exist(self) -> list[str]:
        """
        Create any taxonomy labels missing from Todoist.

        Returns:
            Display names of labels that were created
        """
        existing = {label["name"] for label in self.get_labels()}
        created = []

        for label in self.taxonomy:
            if label.display_name in existing:
                continue
            try:
                self._request(
                    "POST",
                    "/labels",
                    {"name": label.display_name},
                    request_id=str(uuid.uuid4()),
                )
                created.append(label.display_name)
                log.info("todoist_label_created", label=label.display_name)
            except requests.RequestException as e:
                log.error("todoist_label_create_failed", label=label.display_name, error=str(e))

        return created

    def test_connection(self) -> bool:
        try:
            self.get_labels()
            return True
        except requests.RequestException as e:
            log.warning("todoist_connection_failed", error=str(e))
            return False
