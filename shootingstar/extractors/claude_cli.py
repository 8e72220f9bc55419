"""
Claude CLI task extractor.

Runs ``claude -p`` as a subprocess instead of calling the Anthropic API.
Requires a prior ``claude /login`` on the host.
"""

import json
import os
import subprocess
import time
from pathlib import Path

from shootingstar.config import settings
from shootingstar.core.errors import MisconfiguredEnvironment
from shootingstar.core.logging import get_logger
from shootingstar.core.models import (
    ExtractionOutcome,
    ExtractionResult,
    FallbackRequired,
    Fatal,
    Item,
    Success,
)
from shootingstar.extractors.base import BaseExtractor
from shootingstar.extractors.parsing import ExtractorOutputError, parse_cli_output
from shootingstar.extractors.prompts import build_prompt
from shootingstar.labels.normalizer import LabelNormalizer
from shootingstar.labels.taxonomy import DEFAULT_TAXONOMY, LabelTaxonomy

log = get_logger(__name__)

FORBIDDEN_ENV_VAR = "ANTHROPIC_API_KEY"
TOKEN_EXPIRY_BUFFER_MS = 5 * 60 * 1000


class ClaudeCliExtractor(BaseExtractor):
    """Extracts tasks by piping a prompt through the Claude CLI."""

    def __init__(
        self,
        taxonomy: LabelTaxonomy = DEFAULT_TAXONOMY,
        normalizer: LabelNormalizer | None = None,
        cli_path: str | None = None,
        timeout: float | None = None,
        credentials_path: str | None = None,
        body_chars: int | None = None,
    ):
        self.taxonomy = taxonomy
        self.normalizer = normalizer or LabelNormalizer(taxonomy)
        self.cli_path = cli_path or settings.claude_cli_path
        self.timeout = timeout or settings.claude_timeout_seconds
        self.credentials_path = Path(credentials_path or settings.claude_credentials_path)
        self.body_chars = body_chars or settings.extraction_body_chars

    def validate_environment(self) -> None:
        """Refuse to run with an API key set: this app must use the CLI login."""
        if os.environ.get(FORBIDDEN_ENV_VAR):
            raise MisconfiguredEnvironment(
                f"{FORBIDDEN_ENV_VAR} detected! This app uses Claude CLI, not the API. "
                f"Remove {FORBIDDEN_ENV_VAR} from environment to continue."
            )

    def is_authenticated(self) -> bool:
        """
        Check the CLI credentials file for usable OAuth tokens.

        A token past its expiry still counts when a refresh token is present;
        the CLI refreshes on its own.
        """
        try:
            credentials = json.loads(self.credentials_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return False

        oauth = credentials.get("claudeAiOauth") if isinstance(credentials, dict) else None
        if not isinstance(oauth, dict) or not oauth.get("accessToken"):
            return False

        expires_at = oauth.get("expiresAt")
        # Epoch milliseconds; bool is an int subclass but never a timestamp
        if not isinstance(expires_at, (int, float)) or isinstance(expires_at, bool) or not expires_at:
            return False

        now_ms = time.time() * 1000
        if expires_at > now_ms + TOKEN_EXPIRY_BUFFER_MS:
            return True
        return bool(oauth.get("refreshToken"))

    def extract(self, item: Item) -> ExtractionOutcome:
        """
        Extract a task from an email.

        Args:
            item: Starred email

        Returns:
            Fatal if the environment is misconfigured, FallbackRequired for any
            CLI, auth, timeout or parsing problem, otherwise Success
        """
        try:
            self.validate_environment()
        except MisconfiguredEnvironment as e:
            return Fatal(e)

        if not self.is_authenticated():
            return FallbackRequired(
                'Claude CLI not authenticated. Run "claude /login" on the host machine.'
            )

        prompt = build_prompt(
            self.taxonomy,
            sender=item.sender,
            subject=item.subject,
            body=item.body[:self.body_chars],
        )

        try:
            completed = subprocess.run(
                [self.cli_path, "-p", "-", "--output-format", "json"],
                input=prompt,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            log.warning("claude_cli_timeout", item_id=item.id, timeout=self.timeout)
            return FallbackRequired("Claude CLI timed out")
        except OSError as e:
            log.error("claude_cli_unavailable", item_id=item.id, error=str(e))
            return FallbackRequired(f"Claude CLI could not be started: {e}")

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            log.warning("claude_cli_failed", item_id=item.id, returncode=completed.returncode, stderr=stderr[:500])
            return FallbackRequired(f"Claude CLI exited with {completed.returncode}: {stderr[:200]}")

        try:
            data = parse_cli_output(completed.stdout)
        except ExtractorOutputError as e:
            log.warning("claude_parse_error", item_id=item.id, error=str(e), output=completed.stdout[:500])
            return FallbackRequired(f"Failed to parse Claude response: {e}")

        result = ExtractionResult.from_dict(data)
        if not result.task_title or not isinstance(data.get("labels"), list):
            return FallbackRequired("Claude response missing required fields (task, labels)")

        valid_labels = [label_id for label_id in result.label_ids if label_id in self.taxonomy]
        if not valid_labels:
            log.info("claude_labels_defaulted", item_id=item.id, proposed=result.label_ids)
            valid_labels = self.normalizer.safe_defaults
        result.label_ids = valid_labels

        log.info("task_extracted", item_id=item.id, task=result.task_title, labels=result.label_ids)
        return Success(result)
