import logging
from typing import Any

import requests

_LOGGER = logging.getLogger(__name__)


class RemoteUnavailableError(RuntimeError):
    """The remote API could not be reached, timed out or answered with an error."""


class RepQuestClient:
    """Simple REST client for the lift catalog and workout archive API.

    ``session`` may be anything with a ``requests``-style ``request``
    method; the module itself is used by default.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        timeout: float = 10.0,
        session: Any = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            _LOGGER.warning("%s %s failed: %s", method, url, e)
            raise RemoteUnavailableError(f"{method} {path} failed: {e}") from e

    def get_lifts(self) -> list[dict]:
        lifts = self._request("GET", "/api/lifts")
        if not isinstance(lifts, list):
            raise RemoteUnavailableError("GET /api/lifts returned a non-list payload")
        return lifts

    def save_workout_data(self, user_id: int, data: Any) -> dict:
        return self._request(
            "POST", "/api/workout-data", json={"userId": user_id, "data": data}
        )

    def get_workout_data(self, user_id: int) -> Any:
        return self._request("GET", f"/api/workout-data/{user_id}")
