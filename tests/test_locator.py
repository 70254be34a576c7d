"""Tests for resolving a submission to its agent and sandbox directory."""

import pytest

from sparktail.cluster_api import DriverState, TransportError
from sparktail.cli.utils.locator import (
    AgentNotFound,
    AmbiguousAgent,
    AmbiguousExecutor,
    AmbiguousTask,
    ExecutorNotFound,
    Location,
    SubmissionLocator,
    SubmissionNotFound,
    SubmissionNotFoundInCluster,
    find_unique,
    parse_driver_state,
)

from conftest import (
    TEST_AGENT_HOST,
    TEST_AGENT_ID,
    TEST_DIRECTORY,
    TEST_SUBMISSION_ID,
    DummyAPI,
    make_agent_state,
    make_master_state,
)


# ---------------------------------------------------------------------------
# find_unique
# ---------------------------------------------------------------------------


def test_find_unique_reports_zero_matches():
    match = find_unique([[{"id": "a"}], [{"id": "b"}]], lambda r: r["id"] == "c")
    assert match.count == 0
    assert not match.found
    assert not match.ambiguous
    assert match.item is None


def test_find_unique_reports_single_match_across_collections():
    match = find_unique([[{"id": "a"}], None, [{"id": "b", "x": 1}]], lambda r: r["id"] == "b")
    assert match.found
    assert match.item == {"id": "b", "x": 1}


def test_find_unique_never_picks_first_of_many():
    match = find_unique([[{"id": "a"}], [{"id": "a"}]], lambda r: r["id"] == "a")
    assert match.count == 2
    assert match.ambiguous
    assert match.item is None


def test_find_unique_skips_non_dict_records():
    match = find_unique([["junk", None, {"id": "a"}]], lambda r: r["id"] == "a")
    assert match.found


# ---------------------------------------------------------------------------
# Driver state
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("raw", ["QUEUED", "RUNNING", "FINISHED", "FAILED", "KILLED", "NOT_FOUND"])
def test_parse_driver_state_known_values(raw: str):
    assert parse_driver_state({"driverState": raw}) is DriverState(raw)


@pytest.mark.parametrize("status", [{}, {"driverState": "EXPLODED"}, {"driverState": None}])
def test_parse_driver_state_rejects_unknown_values(status: dict):
    with pytest.raises(TransportError):
        parse_driver_state(status)


# ---------------------------------------------------------------------------
# Full resolution chain
# ---------------------------------------------------------------------------


def test_locate_running_submission(dummy_api: DummyAPI):
    location = SubmissionLocator(dummy_api).locate(TEST_SUBMISSION_ID)

    assert location == Location(
        agent_host=TEST_AGENT_HOST, directory=TEST_DIRECTORY, agent_id=TEST_AGENT_ID
    )
    assert dummy_api.calls_named("get_master_state") == [("get_master_state", "http://leader.mesos:5050")]
    assert dummy_api.calls_named("get_agent_state") == [("get_agent_state", TEST_AGENT_HOST, TEST_AGENT_ID)]


def test_locate_is_deterministic(dummy_api: DummyAPI):
    locator = SubmissionLocator(dummy_api)
    assert locator.locate(TEST_SUBMISSION_ID) == locator.locate(TEST_SUBMISSION_ID)


def test_locate_not_found_stops_after_dispatcher():
    api = DummyAPI(states=["NOT_FOUND"])

    with pytest.raises(SubmissionNotFound):
        SubmissionLocator(api).locate(TEST_SUBMISSION_ID)

    assert [call[0] for call in api.calls] == ["get_submission_status"]


def test_locate_finished_submission_uses_completed_records():
    api = DummyAPI(
        states=["FINISHED"],
        master_state=make_master_state(completed=True),
        agent_state=make_agent_state(completed=True),
    )

    location = SubmissionLocator(api).locate(TEST_SUBMISSION_ID)

    assert location.directory == TEST_DIRECTORY
    assert location.agent_host == TEST_AGENT_HOST


def test_locate_finds_task_in_completed_framework():
    master_state = make_master_state()
    master_state["completed_frameworks"] = master_state.pop("frameworks")
    api = DummyAPI(master_state=master_state)

    assert SubmissionLocator(api).locate(TEST_SUBMISSION_ID).agent_id == TEST_AGENT_ID


def test_locate_accepts_agent_id_field():
    master_state = make_master_state()
    task = master_state["frameworks"][0]["tasks"][0]
    task["agent_id"] = task.pop("slave_id")
    master_state["agents"] = master_state.pop("slaves")
    api = DummyAPI(master_state=master_state)

    assert SubmissionLocator(api).locate(TEST_SUBMISSION_ID).agent_host == TEST_AGENT_HOST


def test_locate_missing_task():
    api = DummyAPI(master_state=make_master_state(submission_id="driver-20260101120000-9999"))

    with pytest.raises(SubmissionNotFoundInCluster):
        SubmissionLocator(api).locate(TEST_SUBMISSION_ID)

    assert api.calls_named("get_agent_state") == []


def test_locate_duplicate_task_is_ambiguous():
    master_state = make_master_state()
    task = master_state["frameworks"][0]["tasks"][0]
    master_state["frameworks"][0]["completed_tasks"].append(dict(task))
    api = DummyAPI(master_state=master_state)

    with pytest.raises(AmbiguousTask):
        SubmissionLocator(api).locate(TEST_SUBMISSION_ID)


def test_locate_unknown_agent():
    api = DummyAPI(master_state=make_master_state(agents=[{"id": "agent-z", "hostname": "10.0.0.9"}]))

    with pytest.raises(AgentNotFound):
        SubmissionLocator(api).locate(TEST_SUBMISSION_ID)


def test_locate_agent_without_hostname():
    api = DummyAPI(master_state=make_master_state(agents=[{"id": TEST_AGENT_ID}]))

    with pytest.raises(AgentNotFound):
        SubmissionLocator(api).locate(TEST_SUBMISSION_ID)


def test_locate_duplicate_agent_is_ambiguous():
    agents = [
        {"id": TEST_AGENT_ID, "hostname": TEST_AGENT_HOST},
        {"id": TEST_AGENT_ID, "hostname": "10.0.0.99"},
    ]
    api = DummyAPI(master_state=make_master_state(agents=agents))

    with pytest.raises(AmbiguousAgent):
        SubmissionLocator(api).locate(TEST_SUBMISSION_ID)

    assert api.calls_named("get_agent_state") == []


def test_locate_missing_executor():
    api = DummyAPI(agent_state=make_agent_state(submission_id="driver-20260101120000-9999"))

    with pytest.raises(ExecutorNotFound):
        SubmissionLocator(api).locate(TEST_SUBMISSION_ID)


def test_locate_duplicate_executor_is_ambiguous():
    agent_state = make_agent_state()
    executor = agent_state["frameworks"][0]["executors"][0]
    agent_state["frameworks"][0]["completed_executors"].append(dict(executor, directory="/other"))
    api = DummyAPI(agent_state=agent_state)

    with pytest.raises(AmbiguousExecutor):
        SubmissionLocator(api).locate(TEST_SUBMISSION_ID)


def test_locate_propagates_unknown_driver_state():
    api = DummyAPI(states=["EXPLODED"])

    with pytest.raises(TransportError):
        SubmissionLocator(api).locate(TEST_SUBMISSION_ID)

    assert api.calls_named("get_leader_url") == []
