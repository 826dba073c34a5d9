"""Toteat vendor API client.

Fetches the daily collection (shifts, registers, payment methods) from the
Toteat middleware API, or from a local JSON sample when local-file mode is on.
Failures are returned as FetchResult(ok=False, message=...) instead of raised,
so callers refuse to normalize absent data and report the message.
"""

import json
import logging
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

import requests

from src.utils.exceptions import FetchError
from src.utils.report_config import ToteatSettings

logger = logging.getLogger(__name__)

COLLECTION_ENDPOINT = "/collection"
PERMISSION_ERROR_TYPE = 7  # vendor msg.tipo for tokens without API permissions


@dataclass
class FetchResult:
    """Tagged result of a vendor fetch."""

    ok: bool
    data: Any = None
    message: str = ""
    status: Optional[int] = None


def default_report_date(today: Optional[date] = None) -> date:
    """Reports cover the previous day by default."""
    if today is None:
        today = date.today()
    return today - timedelta(days=1)


def _vendor_message(body: Any) -> Dict[str, Any]:
    if isinstance(body, dict) and isinstance(body.get("msg"), dict):
        return body["msg"]
    return {}


class ToteatClient:
    """Client for the Toteat collection endpoint.

    Usage:
        client = ToteatClient(config.toteat)
        result = client.get_collection(date(2024, 5, 1))
        if result.ok:
            payload = result.data
    """

    def __init__(
        self, settings: ToteatSettings, session: Optional[requests.Session] = None
    ):
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    # ===== REQUEST HELPERS =====

    def _params(self, report_date: date) -> Dict[str, str]:
        return {
            "xir": self.settings.restaurant_id or "",
            "xil": self.settings.local_id,
            "xiu": self.settings.user_id,
            "xapitoken": self.settings.api_key or "",
            "date": report_date.strftime("%Y%m%d"),
        }

    def _url(self) -> str:
        return self.settings.api_url.rstrip("/") + COLLECTION_ENDPOINT

    def _request(self, report_date: date) -> requests.Response:
        """GET the collection endpoint, retrying rate-limited (429) responses.

        Raises:
            requests.RequestException: On network errors and timeouts
        """
        max_retries = max(self.settings.max_retries, 1)
        params = self._params(report_date)

        for attempt in range(max_retries):
            response = self.session.get(
                self._url(), params=params, timeout=self.settings.timeout_seconds
            )
            if response.status_code != 429:
                return response

            wait_time = 2**attempt  # 1s, 2s, 4s...
            logger.warning(
                f"Rate limited by Toteat, retrying in {wait_time}s "
                f"(attempt {attempt + 1}/{max_retries})"
            )
            time.sleep(wait_time)

        return response

    def _error_message(self, status: Optional[int], body: Any) -> str:
        """Human-readable message for a failed response."""
        if _vendor_message(body).get("tipo") == PERMISSION_ERROR_TYPE:
            return (
                "Toteat token has no API permissions. "
                "Contact Toteat support to enable API access."
            )
        if status == 404:
            return f"Endpoint not found (404). Check the API URL: {self._url()}"
        if status in (401, 403):
            return (
                f"Authentication error ({status}). "
                "Check the parameters: xir, xil, xiu, xapitoken"
            )
        if status == 429:
            return "Toteat rate limit exceeded, retries exhausted"
        text = _vendor_message(body).get("texto")
        if text:
            return str(text)
        return f"Unexpected Toteat response (HTTP {status})"

    # ===== LOCAL FILE MODE =====

    def load_from_local_file(self) -> Any:
        """Load collection data from the local JSON sample.

        Raises:
            FetchError: If the file is missing or not valid JSON
        """
        path = self.settings.local_file
        logger.info(f"Loading collection from local file: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise FetchError(f"Could not load local file {path}: {e}") from e

        if isinstance(content, dict) and "data" in content:
            return content["data"]
        return content

    # ===== PUBLIC API =====

    def validate_credentials(self) -> bool:
        """Check that the API key and local id are configured."""
        if not self.settings.api_key or not self.settings.local_id:
            logger.error("Toteat credentials not configured (api key / local id)")
            return False
        return True

    def get_collection(self, report_date: Optional[date] = None) -> FetchResult:
        """Fetch the collection report for one day.

        Args:
            report_date: Day to fetch; defaults to yesterday

        Returns:
            FetchResult with the unwrapped "data" member on success
        """
        if self.settings.use_local_file:
            logger.info("Local-file mode enabled, skipping Toteat API")
            try:
                return FetchResult(ok=True, data=self.load_from_local_file())
            except FetchError as e:
                logger.error(str(e))
                return FetchResult(ok=False, message=str(e))

        if report_date is None:
            report_date = default_report_date()

        logger.info(
            f"Fetching Toteat collection for {report_date:%Y%m%d} "
            f"({self.settings.environment})"
        )
        logger.debug(
            f"URL: {self._url()} (xir={self.settings.restaurant_id}, "
            f"xil={self.settings.local_id}, xiu={self.settings.user_id})"
        )

        try:
            response = self._request(report_date)
        except requests.Timeout:
            message = f"Toteat request timed out after {self.settings.timeout_seconds}s"
            logger.error(message)
            return FetchResult(ok=False, message=message)
        except requests.ConnectionError as e:
            message = f"Connection refused or unreachable: {self.settings.api_url}"
            logger.error(f"{message} ({e})")
            return FetchResult(ok=False, message=message)
        except requests.RequestException as e:
            message = f"Error fetching Toteat report: {e}"
            logger.error(message)
            return FetchResult(ok=False, message=message)

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.ok and isinstance(body, dict) and body.get("ok"):
            text = _vendor_message(body).get("texto", "")
            logger.info(f"Collection fetched successfully {text}".rstrip())
            return FetchResult(
                ok=True, data=body.get("data") or {}, status=response.status_code
            )

        message = self._error_message(response.status_code, body)
        logger.error(f"Toteat fetch failed: {message}")
        return FetchResult(ok=False, message=message, status=response.status_code)

    def test_connection(self) -> Dict[str, Any]:
        """Probe the API (or the local file) and report connection status."""
        timestamp = datetime.now().isoformat(timespec="seconds")

        if self.settings.use_local_file:
            try:
                self.load_from_local_file()
            except FetchError as e:
                return {
                    "connected": False,
                    "mode": "local",
                    "message": str(e),
                    "timestamp": timestamp,
                }
            return {
                "connected": True,
                "mode": "local",
                "message": "Local mode active, data loaded from file",
                "timestamp": timestamp,
            }

        logger.info("Testing connection with Toteat")
        result = self.get_collection(default_report_date())
        return {
            "connected": result.ok,
            "mode": "api",
            "environment": self.settings.environment,
            "message": result.message or "Connected to Toteat",
            "timestamp": timestamp,
        }
