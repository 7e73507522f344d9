"""HTTP transport for the Timberlogs ingestion API."""

import json
from typing import Any, Dict, List, Optional, Tuple

import requests

from .enums import RawFormat
from .exceptions import HttpError, RequestError, ValidationError
from .models import ClientOptions, IngestRawOptions, LogEntry


class HttpTransport:
    """
    Single-attempt HTTP calls to the ingestion endpoint.

    Every method either returns normally or raises HttpError/RequestError;
    retrying is left to the caller.
    """

    def __init__(self, options: ClientOptions, session: Optional[requests.Session] = None) -> None:
        self.options = options
        base_url = options.base_url.rstrip("/")
        self.logs_url = f"{base_url}/v1/logs"
        self.flows_url = f"{base_url}/v1/flows"
        self._session = session or requests.Session()
        self._session.headers.update({"X-API-Key": options.api_key})

    def submit(self, entries: List[LogEntry]) -> None:
        """
        Send a batch of entries.

        Args:
            entries: Entries to send, in order
        """
        payload = {"logs": [self._record(entry) for entry in entries]}
        self._post(
            self.logs_url,
            data=self._encode(payload),
            headers={"Content-Type": "application/json"},
        )

    def submit_raw(
        self, body: str, fmt: RawFormat, raw_options: Optional[IngestRawOptions] = None
    ) -> None:
        """
        Send a pre-formatted body.

        Args:
            body: Raw payload
            fmt: Format of the payload
            raw_options: Optional source/environment/level/dataset overrides
        """
        params = {"format": fmt.value}
        if raw_options is not None:
            params.update(raw_options.to_params())

        self._post(
            self.logs_url,
            params=params,
            data=body.encode("utf-8"),
            headers={"Content-Type": fmt.content_type},
        )

    def create_flow(self, name: str) -> Tuple[str, str]:
        """
        Ask the server for a new flow id.

        Args:
            name: Flow name

        Returns:
            Tuple of (flow id, flow name) as assigned by the server
        """
        response = self._post(
            self.flows_url,
            data=self._encode({"name": name}),
            headers={"Content-Type": "application/json"},
        )
        try:
            data = response.json()
            return data["flowId"], data.get("name", name)
        except (ValueError, KeyError, TypeError) as e:
            raise RequestError(f"invalid flow response: {response.text!r}", e) from e

    def close(self) -> None:
        self._session.close()

    def _encode(self, payload: Dict[str, Any]) -> bytes:
        """JSON body for a request; unserializable values are a ValidationError."""
        try:
            return json.dumps(payload, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise ValidationError(f"payload is not JSON serializable: {e}") from e

    def _record(self, entry: LogEntry) -> Dict[str, Any]:
        """Wire record for one entry, tagged with the configured origin."""
        record = entry.to_dict()
        record["source"] = self.options.source
        record["environment"] = self.options.environment.value
        if self.options.version is not None:
            record["version"] = self.options.version
        return record

    def _post(self, url: str, **kwargs: Any) -> requests.Response:
        try:
            response = self._session.post(url, timeout=self.options.timeout, **kwargs)
        except requests.RequestException as e:
            raise RequestError(str(e), e) from e

        if not response.ok:
            raise HttpError(response.status_code, response.text)
        return response
