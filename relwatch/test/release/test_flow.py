from __future__ import annotations

import pytest

from relwatch.core.config import CiSettings, ReleaseEnv, SlackSettings
from relwatch.core.result import Ok
from relwatch.output.console import MockConsole, OutputRecord, Style
from relwatch.release.contracts import ReleaseArtifact
from relwatch.release.flow import DeployTarget, ReleaseRequest, run_release
from relwatch.services.deploy import poller as poller_mod
from relwatch.services.notify.slack import MockSlackClient
from relwatch.test.services.deploy.fakes import FakeProvider, job_payload

ENV = ReleaseEnv(
    slack=SlackSettings(token="xoxb-1", channel_id="C1"),
    ci=CiSettings(repository="acme/widgets", run_id="9"),
)


@pytest.fixture(autouse=True)
def _patch_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(poller_mod, "sleep", lambda seconds: None)


def _no_supervisor(*args: object, **kwargs: object) -> object:
    raise AssertionError("supervisor must not be spawned")


def _request(*, target: DeployTarget | None = DeployTarget("d1abc", "web")) -> ReleaseRequest:
    return ReleaseRequest(
        package_name="widgets",
        version="2.0.0",
        commit_id="c0ffee",
        commit_title="Ship it (#5)",
        artifacts=(ReleaseArtifact(name="GitHub release", url="https://x/gh"),),
        target=target,
        supervise=False,
        poll_interval=0.0,
    )


def _last_update_color(client: MockSlackClient) -> object:
    (update,) = client.updates
    return update.payload["color"]


def test_successful_release_announces_deploy_link() -> None:
    client = MockSlackClient()
    console = MockConsole()
    provider = FakeProvider(statuses=[Ok(job_payload("RUNNING")), Ok(job_payload("SUCCEED"))])

    outcome = run_release(
        _request(),
        env=ENV,
        console=console,
        provider=provider,
        client=client,
        spawner=_no_supervisor,
    )

    assert outcome.success
    assert outcome.notified
    assert console.outputs[0] == OutputRecord("Release widgets v2.0.0", Style.HEADER)
    assert outcome.artifacts == (
        ReleaseArtifact(name="Amplify (web)", url="https://main.d1abc.amplifyapp.com"),
    )
    assert len(client.posts) == 1
    assert _last_update_color(client) == "#36a64f"
    (update,) = client.updates
    assert "https://main.d1abc.amplifyapp.com|Amplify (web)" in str(update.payload)


def test_failed_deploy_marks_message_failed() -> None:
    client = MockSlackClient()
    provider = FakeProvider(statuses=[Ok(job_payload("FAILED"))])

    outcome = run_release(
        _request(),
        env=ENV,
        console=MockConsole(),
        provider=provider,
        client=client,
        spawner=_no_supervisor,
    )

    assert not outcome.success
    assert outcome.summary == "deployment failed for web"
    assert outcome.artifacts == ()
    assert _last_update_color(client) == "#E01E5A"


def test_exception_still_marks_message_failed(monkeypatch: pytest.MonkeyPatch) -> None:
    import relwatch.release.flow as flow_mod

    def explode(*args: object, **kwargs: object) -> object:
        raise RuntimeError("runner lost")

    monkeypatch.setattr(flow_mod, "deploy_to_remote", explode)
    client = MockSlackClient()

    with pytest.raises(RuntimeError, match="runner lost"):
        run_release(
            _request(),
            env=ENV,
            console=MockConsole(),
            provider=FakeProvider(),
            client=client,
            spawner=_no_supervisor,
        )

    assert _last_update_color(client) == "#E01E5A"


def test_release_without_deploy_target_succeeds() -> None:
    client = MockSlackClient()

    outcome = run_release(
        _request(target=None),
        env=ENV,
        console=MockConsole(),
        provider=None,
        client=client,
        spawner=_no_supervisor,
    )

    assert outcome.success
    assert _last_update_color(client) == "#36a64f"


def test_release_without_slack_still_deploys() -> None:
    console = MockConsole()
    provider = FakeProvider(statuses=[Ok(job_payload("SUCCEED"))])

    outcome = run_release(
        _request(),
        env=ReleaseEnv(),
        console=console,
        provider=provider,
        client=None,
        spawner=_no_supervisor,
    )

    assert outcome.success
    assert not outcome.notified
    assert console.find("Slack not configured")
