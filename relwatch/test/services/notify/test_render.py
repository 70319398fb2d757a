from __future__ import annotations

import pytest

from relwatch.core.config import CiSettings
from relwatch.release.contracts import ReleaseArtifact
from relwatch.services.notify.model import PHASES, Phase, ReleaseInfo
from relwatch.services.notify.render import (
    artifact_links,
    extract_pr_number,
    render,
)

CI = CiSettings(server_url="https://github.com", repository="acme/widgets", run_id="42")
WORKFLOW = "<https://github.com/acme/widgets/actions/runs/42|workflow>"


def _info(
    *,
    version: str | None = "1.4.0",
    title: str = "Add dark mode (#77)",
    artifacts: tuple[ReleaseArtifact, ...] = (),
) -> ReleaseInfo:
    return ReleaseInfo(
        package_name="widgets",
        version=version,
        commit_title=title,
        ci=CI,
        artifacts=artifacts,
    )


def _fields(payload: dict[str, object]) -> tuple[str, str]:
    blocks = payload["blocks"]
    assert isinstance(blocks, list)
    status, links = blocks[0]["fields"]
    return status["text"], links["text"]


def _pr_text(payload: dict[str, object]) -> str:
    blocks = payload["blocks"]
    assert isinstance(blocks, list)
    return blocks[1]["text"]["text"]


@pytest.mark.parametrize(
    ("phase", "color", "status", "fallback"),
    [
        (
            "pending",
            "#3AA3E3",
            ":hourglass: Releasing *widgets* `v1.4.0`",
            "widgets v1.4.0 - In Progress",
        ),
        (
            "success",
            "#36a64f",
            ":white_check_mark: Released *widgets* `v1.4.0`",
            "widgets v1.4.0 - Success",
        ),
        ("failure", "#E01E5A", ":x: Release failed for *widgets*", "widgets v1.4.0 - Failed"),
    ],
)
def test_phase_styles(phase: Phase, color: str, status: str, fallback: str) -> None:
    payload = render(_info(), phase)

    assert payload["color"] == color
    assert payload["fallback"] == fallback
    assert _fields(payload)[0] == status


@pytest.mark.parametrize("phase", PHASES)
def test_always_two_sections(phase: Phase) -> None:
    blocks = render(_info(), phase)["blocks"]
    assert isinstance(blocks, list)
    assert [b["type"] for b in blocks] == ["section", "section"]


def test_missing_version_renders_empty() -> None:
    payload = render(_info(version=None), "pending")

    assert payload["fallback"] == "widgets v - In Progress"
    assert _fields(payload)[0] == ":hourglass: Releasing *widgets* `v`"


def test_pending_and_failure_only_link_workflow() -> None:
    artifacts = (ReleaseArtifact(name="GitHub release", url="https://x/gh"),)
    for phase in ("pending", "failure"):
        _, links = _fields(render(_info(artifacts=artifacts), phase))
        assert links == f"\N{LINK SYMBOL} {WORKFLOW}"


def test_success_links_artifacts_newest_first_then_workflow() -> None:
    artifacts = (
        ReleaseArtifact(name="GitHub release", url="https://x/gh"),
        ReleaseArtifact(name="@acme/widgets npm package", url="https://x/npm"),
        ReleaseArtifact(name="Amplify (web)", url="https://main.d1.amplifyapp.com"),
    )

    _, links = _fields(render(_info(artifacts=artifacts), "success"))

    assert links == (
        "\N{LINK SYMBOL} <https://main.d1.amplifyapp.com|Amplify (web)>"
        " | <https://x/npm|npm>"
        " | <https://x/gh|GitHub release>"
        f" | {WORKFLOW}"
    )


def test_artifacts_without_name_or_url_are_skipped() -> None:
    artifacts = (
        ReleaseArtifact(name="GitHub release", url=None),
        ReleaseArtifact(name=None, url="https://x/orphan"),
        ReleaseArtifact(name="docs", url="https://x/docs"),
    )

    links = artifact_links(artifacts)

    assert [(link.text, link.url) for link in links] == [("docs", "https://x/docs")]


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Add dark mode (#77)", "77"),
        ("Add dark mode (#77)  ", "77"),
        ("Fix (#3) regression", None),
        ("Bump deps #12", None),
        ("", None),
    ],
)
def test_extract_pr_number(title: str, expected: str | None) -> None:
    assert extract_pr_number(title) == expected


def test_pr_line_links_pull_request() -> None:
    text = _pr_text(render(_info(), "success"))
    assert text == "*PR:* <https://github.com/acme/widgets/pull/77|Add dark mode (#77)>"


def test_pr_line_without_number_links_pull_list() -> None:
    text = _pr_text(render(_info(title="chore: release"), "pending"))
    assert text == "*PR:* <https://github.com/acme/widgets/pull/|chore: release>"


def test_render_is_deterministic() -> None:
    artifacts = (ReleaseArtifact(name="docs", url="https://x/docs"),)
    assert render(_info(artifacts=artifacts), "success") == render(
        _info(artifacts=artifacts), "success"
    )


def test_pr_link_stays_on_github_for_enterprise_server() -> None:
    ci = CiSettings(server_url="https://ghe.acme.io", repository="acme/widgets", run_id="42")
    info = ReleaseInfo(
        package_name="widgets",
        version="1.4.0",
        commit_title="Add dark mode (#77)",
        ci=ci,
    )

    payload = render(info, "pending")

    assert _pr_text(payload) == (
        "*PR:* <https://github.com/acme/widgets/pull/77|Add dark mode (#77)>"
    )
    workflow = "<https://ghe.acme.io/acme/widgets/actions/runs/42|workflow>"
    assert _fields(payload)[1].endswith(workflow)
