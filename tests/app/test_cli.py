from __future__ import annotations

import pytest

from etisync.config import ConfigurationError
from etisync.domain.model import ITEM, MAPPINGS
from etisync.ui import cli


@pytest.fixture
def context(monkeypatch: pytest.MonkeyPatch) -> object:
    sentinel = object()
    monkeypatch.setattr(cli, "build_context", lambda **_: sentinel)
    return sentinel


def test_entity_command_dispatches_with_entity(
    monkeypatch: pytest.MonkeyPatch, context: object
) -> None:
    captured: list[object] = []

    def fake_promote(ctx: object, entity: object) -> str:
        captured.extend([ctx, entity])
        return "done"

    monkeypatch.setitem(cli.ENTITY_COMMANDS, "promote", ("Promote", fake_promote))

    cli.main(["promote", "--entity", "item"])

    assert captured == [context, ITEM]


def test_mapping_command_dispatches_with_mapping(
    monkeypatch: pytest.MonkeyPatch, context: object
) -> None:
    captured: list[object] = []

    def fake_discover(ctx: object, mapping: object) -> None:
        captured.extend([ctx, mapping])

    monkeypatch.setitem(
        cli.MAPPING_COMMANDS, "discover-mappings", ("Discover", fake_discover)
    )

    cli.main(["discover-mappings", "--mapping", "item-brand"])

    assert captured == [context, MAPPINGS["item-brand"]]


def test_evaluation_flag_is_forwarded(monkeypatch: pytest.MonkeyPatch, context: object) -> None:
    captured: dict[str, object] = {}

    def fake_update(ctx: object, **kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr(cli, "update_evaluation_log", fake_update)

    cli.main(["update-evaluation-log", "--keep-evaluator-row"])

    assert captured == {"keep_evaluator_row": True}


def test_unknown_entity_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["promote", "--entity", "vendor"])

    assert excinfo.value.code == 2


def test_configuration_error_exits_with_2(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_context(**_: object) -> object:
        raise ConfigurationError("Unsupported ETISYNC_BACKEND 'excel'")

    monkeypatch.setattr(cli, "build_context", broken_context)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["schema-snapshot"])

    assert excinfo.value.code == 2


def test_workflow_failure_exits_with_1(monkeypatch: pytest.MonkeyPatch, context: object) -> None:
    def failing(_: object) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(cli, "backfill_transaction_ids", failing)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["backfill-txn-ids"])

    assert excinfo.value.code == 1


def test_version_flag_exits_cleanly(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])

    assert excinfo.value.code == 0
    assert capsys.readouterr().out.strip().endswith(cli.__version__)
