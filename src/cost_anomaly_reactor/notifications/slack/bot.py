"""Slack Bot API client for sending messages and uploading graphs."""

from __future__ import annotations

import json
from typing import Any

import requests


class SlackAPIError(Exception):
    """Slack Web API call failed."""

    def __init__(self, method: str, error: str):
        super().__init__(f"Slack API error ({method}): {error}")
        self.method = method
        self.error = error


class SlackBotClient:
    """
    Client for the Slack Web API using a bot token.

    The reactor posts one message per anomaly, replies in its thread,
    updates it when the anomaly is re-notified and attaches graphs to the
    thread.
    """

    BASE_URL = "https://slack.com/api"

    def __init__(self, bot_token: str, session: requests.Session | None = None):
        """
        Initialize the Slack Bot client.

        Args:
            bot_token: Slack Bot User OAuth Token (xoxb-...).
            session: Optional requests session.
        """
        self.bot_token = bot_token
        self._session = session or requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {bot_token}"})

    def auth_test(self) -> dict[str, Any]:
        """Identify the bot (user_id, bot_id, team_id)."""
        return self._call("auth.test", {})

    def send_message(
        self,
        channel: str,
        text: str,
        thread_ts: str | None = None,
        reply_broadcast: bool = False,
    ) -> dict[str, Any]:
        """
        Send a text message to a channel or thread.

        Args:
            channel: Channel ID (C...), DM ID (D...), or user ID (U...).
            text: Message text (supports Slack mrkdwn formatting).
            thread_ts: Parent message timestamp to reply in thread. Optional.
            reply_broadcast: Also show a thread reply in the channel.

        Returns:
            Slack API response dict with 'ok', 'ts', etc.
        """
        payload: dict[str, Any] = {
            "channel": channel,
            "text": text,
        }

        if thread_ts:
            payload["thread_ts"] = thread_ts
            if reply_broadcast:
                payload["reply_broadcast"] = True

        return self._call("chat.postMessage", payload)

    def send_blocks(
        self,
        channel: str,
        blocks: list[dict[str, Any]],
        text: str = "",
        thread_ts: str | None = None,
    ) -> dict[str, Any]:
        """
        Send a Block Kit message to a channel or thread.

        Args:
            channel: Channel ID.
            blocks: List of Block Kit blocks.
            text: Fallback text for notifications.
            thread_ts: Parent message timestamp to reply in thread. Optional.

        Returns:
            Slack API response dict with 'ok', 'ts', etc.
        """
        payload: dict[str, Any] = {
            "channel": channel,
            "blocks": blocks,
            "text": text or "AWS Cost Anomaly Detected",
        }

        if thread_ts:
            payload["thread_ts"] = thread_ts

        return self._call("chat.postMessage", payload)

    def update_blocks(
        self,
        channel: str,
        ts: str,
        blocks: list[dict[str, Any]],
        text: str = "",
    ) -> dict[str, Any]:
        """Replace the content of a posted message."""
        payload = {
            "channel": channel,
            "ts": ts,
            "blocks": blocks,
            "text": text or "AWS Cost Anomaly Detected",
        }
        return self._call("chat.update", payload)

    def upload_file(
        self,
        channel: str,
        filename: str,
        data: bytes,
        size: int | None = None,
        thread_ts: str | None = None,
    ) -> dict[str, Any]:
        """
        Upload a file to a channel (or thread) with the external upload flow.

        Args:
            channel: Channel ID to share the file in.
            filename: File name shown in Slack.
            data: File content.
            size: Declared content length. Defaults to len(data).
            thread_ts: Parent message timestamp. Optional.

        Returns:
            The uploaded file object ('id', 'title').
        """
        length = len(data) if size is None else size
        upload = self._call_form("files.getUploadURLExternal", {"filename": filename, "length": str(length)})

        response = self._session.post(
            upload["upload_url"],
            files={"file": (filename, data)},
            timeout=30,
        )
        response.raise_for_status()

        form = {
            "files": json.dumps([{"id": upload["file_id"], "title": filename}]),
            "channel_id": channel,
        }
        if thread_ts:
            form["thread_ts"] = thread_ts
        completed = self._call_form("files.completeUploadExternal", form)
        files = completed.get("files") or [{"id": upload["file_id"], "title": filename}]
        return files[0]

    def _call(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Make a JSON POST request to the Slack API.

        Raises:
            SlackAPIError: If Slack answers ok=false or the request fails.
        """
        url = f"{self.BASE_URL}/{method}"
        try:
            response = self._session.post(url, json=payload, timeout=10)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            print(f"Slack API request failed ({method}): {e}")
            raise SlackAPIError(method, str(e)) from e
        return self._check(method, data)

    def _call_form(self, method: str, form: dict[str, str]) -> dict[str, Any]:
        """Form-encoded variant for methods that do not take JSON bodies."""
        url = f"{self.BASE_URL}/{method}"
        try:
            response = self._session.post(url, data=form, timeout=10)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            print(f"Slack API request failed ({method}): {e}")
            raise SlackAPIError(method, str(e)) from e
        return self._check(method, data)

    @staticmethod
    def _check(method: str, data: dict[str, Any]) -> dict[str, Any]:
        if not data.get("ok"):
            error = data.get("error", "unknown_error")
            print(f"Slack API error ({method}): {error}")
            raise SlackAPIError(method, error)
        return data
