"""Shared fakes for the cluster services."""

import threading
import time
from typing import Any, Dict, List, Optional

import pytest

from sparktail.cluster_api import TransportError


TEST_SUBMISSION_ID = "driver-20260101120000-0001"
TEST_AGENT_ID = "agent-a"
TEST_AGENT_HOST = "10.0.0.7"
TEST_DIRECTORY = "/var/lib/mesos/slaves/agent-a/frameworks/fw/executors/driver/runs/latest"


def make_master_state(
    submission_id: str = TEST_SUBMISSION_ID,
    agent_id: str = TEST_AGENT_ID,
    agents: Optional[List[Dict[str, Any]]] = None,
    completed: bool = False,
) -> Dict[str, Any]:
    task = {"id": submission_id, "slave_id": agent_id, "state": "TASK_RUNNING"}
    framework = {"id": "fw", "name": "spark", "tasks": [], "completed_tasks": []}
    if completed:
        framework["completed_tasks"].append(task)
    else:
        framework["tasks"].append(task)
    return {
        "frameworks": [framework],
        "completed_frameworks": [],
        "slaves": agents if agents is not None else [
            {"id": agent_id, "hostname": TEST_AGENT_HOST},
            {"id": "agent-b", "hostname": "10.0.0.8"},
        ],
    }


def make_agent_state(
    submission_id: str = TEST_SUBMISSION_ID,
    directory: str = TEST_DIRECTORY,
    completed: bool = False,
) -> Dict[str, Any]:
    executor = {"id": submission_id, "directory": directory}
    framework = {"id": "fw", "executors": [], "completed_executors": []}
    if completed:
        framework["completed_executors"].append(executor)
    else:
        framework["executors"].append(executor)
    return {"frameworks": [framework], "completed_frameworks": []}


class DummyAPI:
    """In-memory stand-in for ClusterAPI.

    `files` maps remote paths to bytes and may be appended to while a test
    runs. `max_read` caps how many bytes one read returns.
    """

    def __init__(
        self,
        states: Optional[List[str]] = None,
        master_state: Optional[Dict[str, Any]] = None,
        agent_state: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, bytes]] = None,
        max_read: Optional[int] = None,
    ) -> None:
        self.states = list(states or ["RUNNING"])
        self.master_state = master_state if master_state is not None else make_master_state()
        self.agent_state = agent_state if agent_state is not None else make_agent_state()
        self.files = dict(files or {})
        self.max_read = max_read
        self.calls: List[tuple] = []
        self.read_error: Optional[TransportError] = None
        self.lock = threading.Lock()

    def append(self, path: str, data: bytes) -> None:
        with self.lock:
            self.files[path] = self.files.get(path, b"") + data

    def calls_named(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    def get_submission_status(self, submission_id: str) -> Dict[str, Any]:
        self.calls.append(("get_submission_status", submission_id))
        state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
        return {"action": "SubmissionStatusResponse", "driverState": state, "submissionId": submission_id}

    def kill_submission(self, submission_id: str) -> Dict[str, Any]:
        self.calls.append(("kill_submission", submission_id))
        return {"action": "KillSubmissionResponse", "success": True, "submissionId": submission_id}

    def get_leader_url(self) -> str:
        self.calls.append(("get_leader_url",))
        return "http://leader.mesos:5050"

    def get_master_state(self, leader_url: str) -> Dict[str, Any]:
        self.calls.append(("get_master_state", leader_url))
        return self.master_state

    def get_agent_state(self, host: str, agent_id: str = "") -> Dict[str, Any]:
        self.calls.append(("get_agent_state", host, agent_id))
        return self.agent_state

    def read_file(self, host: str, path: str, offset: int, length: int, agent_id: str = "") -> Dict[str, Any]:
        self.calls.append(("read_file", path, offset, length))
        if self.read_error is not None:
            raise self.read_error
        with self.lock:
            content = self.files.get(path, b"")
        if offset == -1:
            return {"data": "", "offset": len(content)}
        if self.max_read is not None:
            length = min(length, self.max_read)
        return {"data": content[offset:offset + length].decode("utf-8", "surrogateescape"), "offset": offset}


def numbered_lines(count: int, start: int = 1) -> bytes:
    return "".join(f"line {i}\n" for i in range(start, start + count)).encode("utf-8")


def wait_until(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll predicate until it is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def dummy_api() -> DummyAPI:
    return DummyAPI(files={
        f"{TEST_DIRECTORY}/stdout": b"hello from stdout\n",
        f"{TEST_DIRECTORY}/stderr": b"hello from stderr\n",
    })
