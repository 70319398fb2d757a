"""Slack attachment rendering for the release status message.

Pure functions: the same ReleaseInfo and phase always produce the same
attachment. The attachment always has exactly two sections (status + links,
PR line) because every update replaces the whole attachment.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from relwatch.release.contracts import ReleaseArtifact
from relwatch.services.notify.model import Payload, Phase, ReleaseInfo, ReleaseLink

_PR_SUFFIX_RE = re.compile(r"\(#(\d+)\)$")

PR_BASE_URL = "https://github.com"


@dataclass(frozen=True, slots=True)
class PhaseStyle:
    emoji: str
    label: str
    color: str


PHASE_STYLES: dict[Phase, PhaseStyle] = {
    "pending": PhaseStyle(emoji=":hourglass:", label="In Progress", color="#3AA3E3"),
    "success": PhaseStyle(emoji=":white_check_mark:", label="Success", color="#36a64f"),
    "failure": PhaseStyle(emoji=":x:", label="Failed", color="#E01E5A"),
}


def extract_pr_number(title: str) -> str | None:
    """PR number from a squash-merge title ending in "(#123)"."""
    match = _PR_SUFFIX_RE.search(title.strip())
    if match is None:
        return None
    return match.group(1)


def headline(phase: Phase, *, package_name: str, version: str | None) -> str:
    v = version or ""
    if phase == "pending":
        return f"Releasing *{package_name}* `v{v}`"
    if phase == "success":
        return f"Released *{package_name}* `v{v}`"
    return f"Release failed for *{package_name}*"


def artifact_links(artifacts: Iterable[ReleaseArtifact]) -> list[ReleaseLink]:
    """Links for published artifacts, most recently added first.

    Artifacts without both a name and a url are skipped; any name containing
    "npm" is shortened to "npm".
    """
    links: list[ReleaseLink] = []
    for artifact in reversed(list(artifacts)):
        if not artifact.url or not artifact.name:
            continue
        text = "npm" if "npm" in artifact.name else artifact.name
        links.append(ReleaseLink(text=text, url=artifact.url))
    return links


def release_links(info: ReleaseInfo, phase: Phase) -> list[ReleaseLink]:
    workflow = ReleaseLink(text="workflow", url=info.ci.workflow_url)
    if phase != "success":
        return [workflow]
    return [*artifact_links(info.artifacts), workflow]


def pr_url(info: ReleaseInfo, pr_number: str | None) -> str:
    """Pull request link; always on github.com, unlike the workflow link."""
    base = f"{PR_BASE_URL}/{info.ci.repository}/pull/"
    return f"{base}{pr_number}" if pr_number else base


def render(info: ReleaseInfo, phase: Phase) -> Payload:
    style = PHASE_STYLES[phase]
    version = info.version or ""
    links = release_links(info, phase)
    pr = pr_url(info, extract_pr_number(info.commit_title))

    title = headline(phase, package_name=info.package_name, version=info.version)
    status_text = f"{style.emoji} {title}"
    links_text = "\N{LINK SYMBOL} " + " | ".join(link.mrkdwn() for link in links)

    return {
        "color": style.color,
        "fallback": f"{info.package_name} v{version} - {style.label}",
        "blocks": [
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": status_text},
                    {"type": "mrkdwn", "text": links_text},
                ],
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*PR:* <{pr}|{info.commit_title}>"},
            },
        ],
    }
