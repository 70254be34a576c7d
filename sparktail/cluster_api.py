"""
Cluster API client.

Talks to every service the log engine needs:
- the Spark dispatcher (submission status / kill)
- Marathon (to find the Mesos leader)
- the Mesos master and agents (state documents, remote file reads)

All calls are single synchronous requests; failures surface as TransportError.
"""

import json
import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import requests
import urllib3


logger = logging.getLogger(__name__)


class DriverState(Enum):
    """Lifecycle states reported by the dispatcher."""
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    FAILED = "FAILED"
    KILLED = "KILLED"
    NOT_FOUND = "NOT_FOUND"


@dataclass
class ClusterConfig:
    """Cluster API configuration class."""
    dispatcher_url: str
    marathon_url: str
    agent_url_template: str = "http://{host}:5051"
    acs_token: Optional[str] = None
    timeout: int = 30
    max_retries: int = 0
    retry_delay: float = 1.0
    verify_ssl: bool = True


class APIEndpoints:
    """Endpoint paths on each service."""

    SUBMISSION_STATUS = "/v1/submissions/status/{submission_id}"
    SUBMISSION_KILL = "/v1/submissions/kill/{submission_id}"
    ORCHESTRATOR_INFO = "/v2/info"
    STATE = "/state.json"
    FILES_READ = "/files/read"


class TransportError(Exception):
    """An HTTP call failed or returned a malformed response."""
    pass


# Spark dispatcher ids: driver-<yyyyMMddHHmmss>-<sequence>
SUBMISSION_ID_PATTERN = re.compile(r'^driver-\d{14}-\d{4,}$')


def validate_submission_id(submission_id: str) -> Optional[str]:
    """Check a submission id and return a hint if it looks wrong.

    Returns None if the id looks like a Spark driver id.

    Raises:
        ValueError: If the id is empty
    """
    if not submission_id or not submission_id.strip():
        raise ValueError("Submission ID cannot be empty")

    if SUBMISSION_ID_PATTERN.match(submission_id):
        return None

    if not submission_id.startswith("driver-"):
        return (f"Submission ID '{submission_id}' does not start with 'driver-'. "
                f"Spark dispatcher ids usually look like driver-20260101120000-0001")
    return (f"Submission ID '{submission_id}' does not match the usual "
            f"driver-<timestamp>-<sequence> format")


class ClusterAPI:
    """
    HTTP client for the dispatcher, Marathon, and Mesos master/agents.
    """

    ERROR_BODY_PREVIEW_LIMIT = 2000

    def __init__(self, config: ClusterConfig):
        self.config = config
        self.dispatcher_url = config.dispatcher_url.rstrip('/')
        self.marathon_url = config.marathon_url.rstrip('/')
        self.headers = {
            'Accept': 'application/json',
        }
        if config.acs_token:
            self.headers['Authorization'] = f"token={config.acs_token}"

        if not config.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        self.session = requests.Session()
        self.session.trust_env = True

    def agent_url(self, host: str, agent_id: str = "") -> str:
        """Base URL of an agent's HTTP endpoint."""
        return self.config.agent_url_template.format(host=host, agent_id=agent_id).rstrip('/')

    def _make_request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send a request, retrying timeouts, connection errors and 5xx up to max_retries."""
        kwargs.setdefault('verify', self.config.verify_ssl)
        kwargs.setdefault('headers', self.headers)
        attempts = self.config.max_retries + 1

        for attempt in range(1, attempts + 1):
            try:
                if method.upper() == 'POST':
                    response = self.session.post(url, timeout=self.config.timeout, **kwargs)
                else:
                    response = self.session.get(url, timeout=self.config.timeout, **kwargs)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                if attempt < attempts:
                    logger.warning("Request to %s failed (%s), retrying in %ss...",
                                   url, e.__class__.__name__, self.config.retry_delay * attempt)
                    time.sleep(self.config.retry_delay * attempt)
                    continue
                raise TransportError(f"Request to {url} failed: {e}") from e
            except requests.exceptions.RequestException as e:
                raise TransportError(f"Request to {url} failed: {e}") from e

            if response.status_code >= 500 and attempt < attempts:
                logger.warning("Server error %s from %s, retrying in %ss...",
                               response.status_code, url, self.config.retry_delay * attempt)
                time.sleep(self.config.retry_delay * attempt)
                continue
            return response

        raise TransportError(f"All retry attempts to {url} failed")

    def _summarize_response_error(self, response: requests.Response) -> str:
        """Format an HTTP error response with status, URL and truncated body."""
        body_preview = response.text or ""
        if len(body_preview) > self.ERROR_BODY_PREVIEW_LIMIT:
            body_preview = body_preview[:self.ERROR_BODY_PREVIEW_LIMIT] + "..."
        return (f"Status: {response.status_code} {response.reason}\n"
                f"URL: {response.url}\n"
                f"Body: {body_preview.strip() or '<empty>'}")

    def _request_json(self, method: str, url: str, raw_strings: bool = False, **kwargs) -> Dict[str, Any]:
        """Send a request and return its JSON object body.

        With raw_strings, bytes that are not valid UTF-8 survive decoding as
        surrogate escapes, so `s.encode("utf-8", "surrogateescape")` gives
        back exactly what the server sent.
        """
        logger.debug(f"Request: {method} {url} {kwargs.get('params') or ''}")
        response = self._make_request_with_retry(method, url, **kwargs)
        logger.debug(f"Response status: {response.status_code}")

        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"Non-success response from {url}:\n{self._summarize_response_error(response)}"
            )

        try:
            if raw_strings:
                result = json.loads(response.content.decode("utf-8", "surrogateescape"))
            else:
                result = response.json()
        except (json.JSONDecodeError, ValueError):
            preview = (response.text or "")[:self.ERROR_BODY_PREVIEW_LIMIT]
            raise TransportError(f"Invalid JSON response from {url}. Body preview: {preview or '<empty>'}")

        if not isinstance(result, dict):
            raise TransportError(f"Unexpected response shape from {url}: expected a JSON object")
        return result

    # Dispatcher ---------------------------------------------------------

    def get_submission_status(self, submission_id: str) -> Dict[str, Any]:
        """Fetch the dispatcher's status document for a submission."""
        path = APIEndpoints.SUBMISSION_STATUS.format(submission_id=submission_id)
        return self._request_json('GET', f"{self.dispatcher_url}{path}")

    def kill_submission(self, submission_id: str) -> Dict[str, Any]:
        """Ask the dispatcher to kill a submission."""
        path = APIEndpoints.SUBMISSION_KILL.format(submission_id=submission_id)
        return self._request_json('POST', f"{self.dispatcher_url}{path}", json={})

    # Marathon / Mesos ---------------------------------------------------

    def get_orchestrator_info(self) -> Dict[str, Any]:
        return self._request_json('GET', f"{self.marathon_url}{APIEndpoints.ORCHESTRATOR_INFO}")

    def get_leader_url(self) -> str:
        """Resolve the Mesos leader URL from Marathon's info document."""
        info = self.get_orchestrator_info()
        leader = (info.get('marathon_config') or {}).get('mesos_leader_ui_url')
        if not leader or not isinstance(leader, str):
            raise TransportError(
                "Marathon info response has no marathon_config.mesos_leader_ui_url"
            )
        return leader.rstrip('/')

    def get_master_state(self, leader_url: str) -> Dict[str, Any]:
        return self._request_json('GET', f"{leader_url.rstrip('/')}{APIEndpoints.STATE}")

    def get_agent_state(self, host: str, agent_id: str = "") -> Dict[str, Any]:
        return self._request_json('GET', f"{self.agent_url(host, agent_id)}{APIEndpoints.STATE}")

    def read_file(
        self,
        host: str,
        path: str,
        offset: int,
        length: int,
        agent_id: str = "",
    ) -> Dict[str, Any]:
        """Read a window of a file in an agent's sandbox.

        offset=-1, length=-1 asks only for the current file size. The agent
        puts raw file bytes in `data`; a chunk may end inside a multibyte
        character, so the body is decoded with surrogate escapes.
        """
        params = {'path': path, 'offset': offset, 'length': length}
        return self._request_json(
            'GET', f"{self.agent_url(host, agent_id)}{APIEndpoints.FILES_READ}", params=params, raw_strings=True
        )
