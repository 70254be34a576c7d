"""Resolve a Spark submission to the agent and sandbox directory running it.

Resolution is a chain of lookups, each feeding the next:
dispatcher status -> Marathon leader -> Mesos master state -> agent state.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

from sparktail.cluster_api import ClusterAPI, DriverState, TransportError


logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Base class for failures while locating a submission."""
    pass


class SubmissionNotFound(ResolutionError):
    """The dispatcher does not know the submission."""
    pass


class SubmissionNotFoundInCluster(ResolutionError):
    """No Mesos task carries the submission id."""
    pass


class AmbiguousTask(ResolutionError):
    """More than one Mesos task carries the submission id."""
    pass


class AgentNotFound(ResolutionError):
    """The task's agent id is not in the master's agent list."""
    pass


class AmbiguousAgent(ResolutionError):
    """Several agents share the task's agent id."""
    pass


class ExecutorNotFound(ResolutionError):
    """The agent has no executor for the submission."""
    pass


class AmbiguousExecutor(ResolutionError):
    """The agent reports more than one executor for the submission."""
    pass


@dataclass(frozen=True)
class Location:
    """Where a submission's sandbox lives."""
    agent_host: str
    directory: str
    agent_id: str = ""


@dataclass(frozen=True)
class Match:
    """Outcome of a unique-match search: count is 0, 1, or more."""
    count: int
    item: Optional[dict] = None

    @property
    def found(self) -> bool:
        return self.count == 1

    @property
    def ambiguous(self) -> bool:
        return self.count > 1


def find_unique(collections: Iterable[Iterable[Any]], predicate: Callable[[dict], bool]) -> Match:
    """Search the union of several collections for records matching predicate.

    Never silently picks the first of several matches; callers decide what
    zero or many matches mean.
    """
    matches: List[dict] = []
    for collection in collections:
        for record in collection or []:
            if isinstance(record, dict) and predicate(record):
                matches.append(record)
    return Match(count=len(matches), item=matches[0] if len(matches) == 1 else None)


def _frameworks(state: dict) -> List[dict]:
    return list(state.get("frameworks") or []) + list(state.get("completed_frameworks") or [])


def parse_driver_state(status: dict) -> DriverState:
    """Extract the driver state from a dispatcher status document.

    Raises:
        TransportError: If the document has no recognizable driverState
    """
    raw = status.get("driverState")
    try:
        return DriverState(raw)
    except ValueError:
        raise TransportError(f"Dispatcher returned an unknown driverState: {raw!r}")


class SubmissionLocator:
    """Turns a submission id into a Location."""

    def __init__(self, api: ClusterAPI):
        self.api = api

    def fetch_state(self, submission_id: str) -> DriverState:
        """Query the dispatcher for the submission's lifecycle state."""
        state = parse_driver_state(self.api.get_submission_status(submission_id))
        logger.debug("Submission %s is %s", submission_id, state.value)
        return state

    def find_task(self, master_state: dict, submission_id: str) -> dict:
        frameworks = _frameworks(master_state)
        match = find_unique(
            [fw.get("tasks") for fw in frameworks] + [fw.get("completed_tasks") for fw in frameworks],
            lambda task: task.get("id") == submission_id,
        )
        if match.ambiguous:
            raise AmbiguousTask(
                f"Found {match.count} tasks with id {submission_id} in the cluster state"
            )
        if not match.found:
            raise SubmissionNotFoundInCluster(
                f"Submission {submission_id} has no task in the cluster state"
            )
        return match.item

    def find_agent(self, master_state: dict, agent_id: str) -> dict:
        match = find_unique(
            [master_state.get("slaves") or master_state.get("agents")],
            lambda agent: agent.get("id") == agent_id,
        )
        if match.ambiguous:
            raise AmbiguousAgent(f"Found {match.count} agents with id {agent_id}")
        if not match.found:
            raise AgentNotFound(f"Agent {agent_id} not found in the cluster state")
        return match.item

    def find_executor_directory(self, agent_state: dict, submission_id: str) -> str:
        frameworks = _frameworks(agent_state)
        match = find_unique(
            [fw.get("executors") for fw in frameworks]
            + [fw.get("completed_executors") for fw in frameworks],
            lambda executor: executor.get("id") == submission_id,
        )
        if match.ambiguous:
            raise AmbiguousExecutor(
                f"Found {match.count} executors with id {submission_id} on the agent"
            )
        if not match.found or not match.item.get("directory"):
            raise ExecutorNotFound(f"No executor for {submission_id} on the agent")
        return match.item["directory"]

    def locate(self, submission_id: str) -> Location:
        """Resolve a running (or finished) submission to its sandbox.

        Checks the dispatcher first; a QUEUED submission is not an error
        here, the master lookup simply decides whether it can be found.

        Raises:
            SubmissionNotFound: If the dispatcher reports NOT_FOUND
            ResolutionError: If any later lookup fails
            TransportError: If any HTTP call fails
        """
        if self.fetch_state(submission_id) is DriverState.NOT_FOUND:
            raise SubmissionNotFound(f"Submission {submission_id} not found")
        return self.locate_in_cluster(submission_id)

    def locate_in_cluster(self, submission_id: str) -> Location:
        """Resolve a submission already known to the dispatcher."""
        leader_url = self.api.get_leader_url()
        logger.debug("Mesos leader: %s", leader_url)

        master_state = self.api.get_master_state(leader_url)
        task = self.find_task(master_state, submission_id)
        agent_id = task.get("slave_id") or task.get("agent_id") or ""
        agent = self.find_agent(master_state, agent_id)
        host = agent.get("hostname")
        if not host:
            raise AgentNotFound(f"Agent {agent_id} has no hostname")
        logger.debug("Submission %s runs on agent %s (%s)", submission_id, agent_id, host)

        agent_state = self.api.get_agent_state(host, agent_id)
        directory = self.find_executor_directory(agent_state, submission_id)
        logger.debug("Sandbox directory: %s", directory)

        return Location(agent_host=host, directory=directory, agent_id=agent_id)
