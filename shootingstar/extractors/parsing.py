"""
Parsing helpers for Claude CLI output.

The CLI (``--output-format json``) prints a wrapper object whose ``result``
field holds the model's reply, which may wrap the JSON we asked for in prose
or markdown fences.
"""

import json
from typing import Any


class ExtractorOutputError(ValueError):
    """CLI output did not contain a usable JSON object."""


_decoder = json.JSONDecoder()


def find_first_json_object(text: str) -> dict[str, Any]:
    """
    Return the first well-formed JSON object embedded in text.

    Scans each '{' in order and tries to decode an object starting there,
    so fences, leading prose and trailing text are all ignored.

    Raises:
        ExtractorOutputError: If no JSON object is found
    """
    start = text.find("{")
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    raise ExtractorOutputError("No JSON found in Claude response")


def parse_cli_output(stdout: str) -> dict[str, Any]:
    """
    Unwrap CLI stdout into the extracted task payload.

    Raises:
        ExtractorOutputError: On malformed wrapper, CLI-reported error or missing JSON
    """
    try:
        wrapper = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise ExtractorOutputError(f"CLI output is not JSON: {e}") from e

    if not isinstance(wrapper, dict):
        raise ExtractorOutputError("CLI output is not a JSON object")

    if wrapper.get("is_error") or wrapper.get("subtype") == "error":
        raise ExtractorOutputError(wrapper.get("result") or "Claude CLI returned an error")

    return find_first_json_object(str(wrapper.get("result") or ""))
