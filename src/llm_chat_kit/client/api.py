from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, List

import requests

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """The relay answered with an error (or could not be reached)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ChatApiClient:
    """HTTP client for the relay server.

    Chat replies arrive as NDJSON events (``token`` / ``done`` / ``error``);
    :meth:`stream_chat` turns them back into plain text fragments.
    """

    def __init__(self, base_url: str = "http://127.0.0.1:8000", timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    # ------------------------------------------------------------------
    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = requests.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise ApiError(f"Server not reachable at {self.base_url}: {exc}") from exc
        if not resp.ok:
            raise ApiError(_error_message(resp), resp.status_code)
        return resp.json()

    # ------------------------------------------------------------------
    # Providers / models
    # ------------------------------------------------------------------
    def get_providers(self) -> Dict[str, Any]:
        return self._request("GET", "/providers")

    def list_models(self, provider: str) -> Dict[str, Any]:
        return self._request("GET", f"/models/{provider}")

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------
    def stream_chat(self, payload: Dict[str, Any]) -> Iterator[str]:
        """Yield reply fragments; raises :class:`ApiError` on an error event."""
        try:
            resp = requests.post(f"{self.base_url}/chat", json=payload, stream=True, timeout=(self.timeout, None))
        except requests.RequestException as exc:
            raise ApiError(f"Server not reachable at {self.base_url}: {exc}") from exc
        if not resp.ok:
            message = _error_message(resp)
            resp.close()
            raise ApiError(message, resp.status_code)

        with resp:
            try:
                for raw_line in resp.iter_lines():
                    if not raw_line:
                        continue
                    event = json.loads(raw_line)
                    kind = event.get("type")
                    if kind == "token":
                        yield event.get("token", "")
                    elif kind == "error":
                        raise ApiError(event.get("message") or "Unknown error")
                    elif kind == "done":
                        return
            except requests.RequestException as exc:
                raise ApiError(f"Stream interrupted: {exc}") from exc
            except json.JSONDecodeError as exc:
                raise ApiError(f"Malformed stream event: {exc}") from exc
        raise ApiError("Stream ended unexpectedly")

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------
    def list_prompts(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/prompts")["prompts"]

    def create_prompt(self, name: str, prompt: str) -> Dict[str, Any]:
        return self._request("POST", "/prompts", json={"name": name, "prompt": prompt})["prompt"]

    def update_prompt(self, prompt_id: str, name: str, prompt: str) -> Dict[str, Any]:
        return self._request("PUT", f"/prompts/{prompt_id}", json={"name": name, "prompt": prompt})["prompt"]

    def delete_prompt(self, prompt_id: str) -> None:
        self._request("DELETE", f"/prompts/{prompt_id}")


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text[:200]}"
    if isinstance(data, dict):
        if data.get("error"):
            return str(data["error"])
        if data.get("detail"):
            return str(data["detail"])
    return f"HTTP {resp.status_code}"
