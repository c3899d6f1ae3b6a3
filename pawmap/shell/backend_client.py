"""Backend REST Client - Imperative Shell.

This module handles HTTP communication with the hosted backend's
PostgREST-style API: remote procedures under /rest/v1/rpc/<name> and
table reads under /rest/v1/<table>. All I/O is contained here; parsing
of the returned rows is in the core module.
"""

import logging
from typing import Any

import requests

from pawmap.core.errors import BackendError


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30

REST_PREFIX = "/rest/v1"


class BackendClient:
    """Client for the hosted backend's REST surface.

    This is part of the imperative shell - it handles HTTP I/O.
    Every failure is raised as BackendError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize backend client.

        Args:
            base_url: Backend base URL, without the /rest/v1 suffix
            api_key: Public (anon) API key sent with every request
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{REST_PREFIX}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _rows(self, response: requests.Response) -> list[dict[str, Any]]:
        """Validate a response and return its rows.

        Raises:
            BackendError: On non-2xx status or a body that is not a row list
        """
        if not response.ok:
            logger.warning(
                "Backend returned %d - %s",
                response.status_code,
                response.text,
            )
            raise BackendError(
                f"Backend returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(
                "Backend returned a non-JSON body",
                status_code=response.status_code,
            ) from e

        if not isinstance(data, list):
            raise BackendError(
                f"Expected a list of rows, got {type(data).__name__}",
                status_code=response.status_code,
            )

        return [row for row in data if isinstance(row, dict)]

    def call_function(
        self,
        name: str,
        params: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Call a remote procedure that returns rows.

        This method performs HTTP I/O.

        Args:
            name: Procedure name
            params: Named procedure arguments

        Returns:
            Rows returned by the procedure

        Raises:
            BackendError: If the request fails
        """
        logger.info("Calling backend function %s", name, extra={"params": params})

        try:
            response = requests.post(
                self._url(f"rpc/{name}"),
                json=params,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.error("Backend function %s timed out", name)
            raise BackendError(f"Function {name} timed out") from e
        except requests.RequestException as e:
            logger.error("Backend function %s failed: %s", name, str(e))
            raise BackendError(f"Function {name} failed: {e}") from e

        rows = self._rows(response)
        logger.info("Function %s returned %d rows", name, len(rows))
        return rows

    def select_rows(
        self,
        table: str,
        filters: dict[str, str] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Read rows from a table.

        This method performs HTTP I/O.

        Args:
            table: Table name
            filters: Column filters in PostgREST syntax,
                e.g. {"status": "eq.open", "latitude": "not.is.null"}
            limit: Maximum rows to return (None for all)

        Returns:
            Matching rows

        Raises:
            BackendError: If the request fails
        """
        params: dict[str, str] = {"select": "*"}
        params.update(filters or {})
        if limit is not None:
            params["limit"] = str(limit)

        logger.info("Reading backend table %s", table, extra={"params": params})

        try:
            response = requests.get(
                self._url(table),
                params=params,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.error("Read of %s timed out", table)
            raise BackendError(f"Read of {table} timed out") from e
        except requests.RequestException as e:
            logger.error("Read of %s failed: %s", table, str(e))
            raise BackendError(f"Read of {table} failed: {e}") from e

        rows = self._rows(response)
        logger.info("Read %d rows from %s", len(rows), table)
        return rows
