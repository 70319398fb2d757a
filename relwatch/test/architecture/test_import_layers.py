from __future__ import annotations

from ._gate import require_arch_checks_enabled
from ._utils import iter_source_files, matches_prefix, parse_imports


def _violations(source_prefix: str, forbidden: tuple[str, ...]) -> list[str]:
    offenders: list[str] = []
    for rel, path in iter_source_files():
        if not rel.startswith(source_prefix):
            continue
        for item in parse_imports(path):
            if any(matches_prefix(item.module, f) for f in forbidden):
                offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")
    return offenders


def test_core_is_a_leaf() -> None:
    require_arch_checks_enabled()

    offenders = _violations(
        "core/",
        ("relwatch.services", "relwatch.release", "relwatch.cli", "relwatch.platform"),
    )
    assert not offenders, "core dependency violations:\n" + "\n".join(offenders)


def test_services_do_not_import_cli_or_orchestration() -> None:
    require_arch_checks_enabled()

    offenders = _violations("services/", ("relwatch.cli", "relwatch.release.flow"))
    assert not offenders, "services -> cli dependency violations:\n" + "\n".join(offenders)


def test_deploy_and_notify_are_independent() -> None:
    require_arch_checks_enabled()

    offenders = _violations("services/deploy/", ("relwatch.services.notify",))
    offenders += _violations("services/notify/", ("relwatch.services.deploy",))
    assert not offenders, "deploy <-> notify coupling:\n" + "\n".join(offenders)
