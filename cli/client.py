from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional
from urllib.parse import quote

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the station service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def record(
        self, city: str, temperature: float, timestamp: Optional[str] = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"city": city, "temperature": temperature}
        if timestamp is not None:
            body["timestamp"] = timestamp
        return self._request("POST", "/measurements", json=body)

    def history(self, city: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/cities/{quote(city, safe='')}/measurements")

    def latest(self, city: str) -> Dict[str, Any]:
        response = self._client.get(f"/cities/{quote(city, safe='')}/latest")
        if response.status_code == 404:
            raise typer.BadParameter(f"No measurements recorded for city {city!r}.")
        return self._unwrap(response)

    def cities(self) -> List[str]:
        return self._request("GET", "/cities")

    def averages(self, window: Optional[int] = None) -> Dict[str, Any]:
        params = {"window": window} if window is not None else None
        return self._request("GET", "/averages", params=params)

    def import_file(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise typer.BadParameter(f"File {path} does not exist.")
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")

        with path.open("rb") as handle:
            return self._request(
                "POST",
                "/imports",
                files={"file": (path.name, handle, "text/csv")},
            )

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        return self._unwrap(self._client.request(method, url, **kwargs))

    def _unwrap(self, response: httpx.Response) -> Any:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> NoReturn:
        detail: Any = None
        try:
            detail = exc.response.json().get("detail")
        except ValueError:
            detail = exc.response.text.strip()
        if isinstance(detail, dict):
            detail = detail.get("message") or detail.get("reason")
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
