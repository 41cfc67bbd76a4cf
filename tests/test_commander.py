"""Tests for lifecycle commands."""
from __future__ import annotations

from collections.abc import Collection, Sequence

import pytest

from hubctl.commander import InstanceCommander
from hubctl.errors import HubError, InstanceDecodeError, NotFoundError, ProtocolError
from hubctl.models import GitRemote, InstancePatch, InstanceRequest
from hubctl.resolver import SelectorResolver

BASE = "hub/api/v1/instances"


class DummyFollower:
    def __init__(self, status: int = 0) -> None:
        self.status = status
        self.domains: list[list[str]] = []
        self.jobs: list[tuple[str, list[str]]] = []

    def follow(
        self,
        domains: Sequence[str],
        *,
        job_id: str = "",
        previous: Collection[str] = (),
    ) -> int:
        self.domains.append(list(domains))
        self.jobs.append((job_id, list(previous)))
        return self.status


def _commander(transport, follower=None) -> InstanceCommander:
    return InstanceCommander(transport, SelectorResolver(transport), follower=follower)


def test_create_posts_request(fake_transport, make_instance) -> None:
    """Create posts the request and decodes the created instance."""
    fake_transport.add("POST", BASE, 201, make_instance())
    request = InstanceRequest(name="app", environment="7", template="5", tags=["demo"])

    created = _commander(fake_transport).create(request)

    assert created.id == "42"
    method, path, body = fake_transport.calls[0]
    assert (method, path) == ("POST", BASE)
    assert body == {"name": "app", "environment": "7", "template": "5", "tags": ["demo"]}


def test_create_rejects_unexpected_status(fake_transport) -> None:
    """Create only accepts 200/201."""
    fake_transport.add("POST", BASE, 400, {"error": "bad"})

    with pytest.raises(ProtocolError, match=r"expected \[200, 201\] HTTP"):
        _commander(fake_transport).create(InstanceRequest(name="a", environment="1", template="2"))


@pytest.mark.parametrize("verb", ["deploy", "undeploy"])
@pytest.mark.parametrize("status", [200, 202, 204])
def test_dry_run_appends_query(fake_transport, make_instance, verb: str, status: int) -> None:
    """Dry runs add ``?dryRun=1`` and accept 200/202/204."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("POST", f"{BASE}/42/{verb}?dryRun=1", status, None)

    outcome = getattr(_commander(fake_transport), verb)("42", dry_run=True)

    assert fake_transport.paths("POST") == [f"{BASE}/42/{verb}?dryRun=1"]
    assert outcome.verb == verb
    assert outcome.dry_run is True
    assert outcome.job_id == ""
    assert outcome.exit_code == 0


def test_deploy_reports_job_id(fake_transport, make_instance) -> None:
    """The asynchronous job id is surfaced on the outcome."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("POST", f"{BASE}/42/deploy", 202, {"jobId": "job-9"})

    outcome = _commander(fake_transport).deploy("42")

    assert outcome.job_id == "job-9"
    assert outcome.verb == "deploy"


def test_undeploy_wait_follows_by_domain(fake_transport, make_instance) -> None:
    """Waiting hands the instance domain to the follower and uses its status."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("POST", f"{BASE}/42/undeploy", 202, {"jobId": "1"})
    follower = DummyFollower(status=1)

    outcome = _commander(fake_transport, follower).undeploy("42", wait=True)

    assert follower.domains == [["app.dev.example.com"]]
    assert follower.jobs == [("1", [])]
    assert outcome.tail_status == 1
    assert outcome.exit_code == 1


def test_wait_without_follower_is_an_error(fake_transport, make_instance) -> None:
    """Waiting requires a follower."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("POST", f"{BASE}/42/deploy", 202, None)

    with pytest.raises(HubError, match="no log follower"):
        _commander(fake_transport).deploy("42", wait=True)


def test_deploy_unexpected_status(fake_transport, make_instance) -> None:
    """Deploy failures name the received and expected statuses."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("POST", f"{BASE}/42/deploy", 409, "conflict")

    with pytest.raises(ProtocolError) as excinfo:
        _commander(fake_transport).deploy("42")

    assert str(excinfo.value) == (
        "Got 409 HTTP in response to deploy Stack Instance, expected [200, 202, 204] HTTP"
    )


def test_delete_by_domain(fake_transport, make_instance) -> None:
    """Delete resolves the selector and deletes by id."""
    fake_transport.add("GET", f"{BASE}?domain=app.dev.example.com", 200, [make_instance()])
    fake_transport.add("DELETE", f"{BASE}/42", 204)

    outcome = _commander(fake_transport).delete("app.dev.example.com")

    assert outcome.instance_id == "42"
    assert outcome.domain == "app.dev.example.com"
    assert outcome.warnings == ()


def test_delete_numeric_selector_survives_decode_failure(fake_transport) -> None:
    """A broken record can still be deleted by id, with a warning."""
    fake_transport.add("GET", f"{BASE}/42", 200, {"id": 42, "tags": "not-a-list"})
    fake_transport.add("DELETE", f"{BASE}/42", 202)

    outcome = _commander(fake_transport).delete("42")

    assert fake_transport.paths("DELETE") == [f"{BASE}/42"]
    assert outcome.instance_id == "42"
    assert len(outcome.warnings) == 1
    assert "deleting Stack Instance by id 42" in outcome.warnings[0]


def test_delete_domain_selector_decode_failure_propagates(fake_transport) -> None:
    """The decode fallback only applies to numeric selectors."""
    fake_transport.add("GET", f"{BASE}?domain=broken.example.com", 200, [{"tags": 1}])

    with pytest.raises(InstanceDecodeError):
        _commander(fake_transport).delete("broken.example.com")

    assert fake_transport.paths("DELETE") == []


def test_delete_not_found_propagates(fake_transport) -> None:
    """Resolution failures other than decoding are not swallowed."""
    with pytest.raises(NotFoundError):
        _commander(fake_transport).delete("42")


def test_delete_unexpected_status(fake_transport, make_instance) -> None:
    """Delete accepts 202/204 only."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("DELETE", f"{BASE}/42", 500)

    with pytest.raises(ProtocolError, match=r"Got 500 HTTP deleting Stack Instance, expected \[202, 204\] HTTP"):
        _commander(fake_transport).delete("42")


def test_fetch_kubeconfig(fake_transport, make_instance) -> None:
    """Kubeconfig bytes are returned for a 200 with a body."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("GET", f"{BASE}/42/config", 200, b"apiVersion: v1\n")

    payload = _commander(fake_transport).fetch_kubeconfig("42")

    assert payload.body == b"apiVersion: v1\n"
    assert payload.instance.domain == "app.dev.example.com"


def test_fetch_kubeconfig_empty_body_is_error(fake_transport, make_instance) -> None:
    """An empty kubeconfig is an error even on 200."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("GET", f"{BASE}/42/config", 200, b"")

    with pytest.raises(ProtocolError, match="empty Stack Instance Kubeconfig"):
        _commander(fake_transport).fetch_kubeconfig("42")


def test_patch_scrubs_public_only_git_remote(fake_transport, make_instance) -> None:
    """Typed patches drop a public-only gitRemote and decode the response."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("PATCH", f"{BASE}/42", 200, make_instance(verbs=["deploy"]))
    change = InstancePatch(components_enabled=["app"], git_remote=GitRemote(public="https://x"))

    patched = _commander(fake_transport).patch("42", change)

    _, path, body = fake_transport.calls[-1]
    assert path == f"{BASE}/42"
    assert body == {"componentsEnabled": ["app"]}
    assert patched.verbs == ["deploy"]


def test_patch_requires_200(fake_transport, make_instance) -> None:
    """Patch succeeds on 200 only."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("PATCH", f"{BASE}/42?replace=1", 204)

    with pytest.raises(ProtocolError, match="expected 200 HTTP"):
        _commander(fake_transport).patch("42", InstancePatch(state_files=["a"]), replace=True)


def test_raw_patch_sends_body_verbatim(fake_transport, make_instance) -> None:
    """Raw patches bypass the scrub."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("PATCH", f"{BASE}/42", 200, make_instance())
    body = b'{"gitRemote": {"public": "https://x"}}'

    _commander(fake_transport).raw_patch("42", body)

    assert fake_transport.calls[-1] == ("PATCH", f"{BASE}/42", body)


def test_commands_share_the_selector_cache(fake_transport, make_instance) -> None:
    """Resolving the same selector twice in a run fetches once."""
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance())
    fake_transport.add("POST", f"{BASE}/42/deploy", 202, None)
    commander = _commander(fake_transport)

    commander.deploy("42")
    commander.deploy("42")

    assert fake_transport.paths("GET") == [f"{BASE}/42"]


def test_wait_passes_known_operations_to_follower(fake_transport, make_instance) -> None:
    """Operations present before the request are handed over as already known."""
    old = {"id": "op-old", "operation": "deploy", "status": "failed"}
    fake_transport.add("GET", f"{BASE}/42", 200, make_instance(inflightOperations=[old]))
    fake_transport.add("POST", f"{BASE}/42/deploy", 204, None)
    follower = DummyFollower()

    outcome = _commander(fake_transport, follower).deploy("42", wait=True)

    assert follower.jobs == [("", ["op-old"])]
    assert outcome.exit_code == 0
