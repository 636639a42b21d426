from pathlib import Path

import pytest

from activity_graph.core.config.status_config import (
    DEFAULT_STATUS_ALIASES,
    StatusConfigError,
    load_and_merge,
    load_status_file,
    merged_aliases,
    parse_status,
)
from activity_graph.core.model import ActivityStatus


EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def test_defaults_cover_every_status():
    assert set(DEFAULT_STATUS_ALIASES.values()) == set(ActivityStatus)
    for s in ActivityStatus:
        assert DEFAULT_STATUS_ALIASES[s.value] is s


def test_load_status_file():
    aliases = load_status_file(EXAMPLES / "statuses-extra.yaml")
    assert aliases == {
        "Doing": ActivityStatus.IN_PROGRESS,
        "WIP": ActivityStatus.IN_PROGRESS,
        "Done": ActivityStatus.COMPLETED,
    }


def test_load_and_merge_without_file_is_defaults():
    assert load_and_merge(None) == merged_aliases()


def test_canonical_values_cannot_be_repointed():
    merged = merged_aliases({"pending": ActivityStatus.COMPLETED, "Later": ActivityStatus.PENDING})
    assert merged["pending"] is ActivityStatus.PENDING
    assert merged["Later"] is ActivityStatus.PENDING


def test_status_file_unknown_status(tmp_path: Path):
    p = tmp_path / "statuses.yaml"
    p.write_text("blocked: [Stuck]\n", encoding="utf-8")
    with pytest.raises(StatusConfigError):
        load_status_file(p)


def test_status_file_not_a_mapping(tmp_path: Path):
    p = tmp_path / "statuses.yaml"
    p.write_text("- pending\n", encoding="utf-8")
    with pytest.raises(StatusConfigError):
        load_status_file(p)


def test_status_file_empty_alias(tmp_path: Path):
    p = tmp_path / "statuses.yaml"
    p.write_text("pending: ['  ']\n", encoding="utf-8")
    with pytest.raises(StatusConfigError):
        load_status_file(p)


def test_empty_status_file(tmp_path: Path):
    p = tmp_path / "statuses.yaml"
    p.write_text("", encoding="utf-8")
    assert load_status_file(p) == {}


def test_parse_status():
    aliases = merged_aliases()
    assert parse_status(" En Progreso ", aliases) is ActivityStatus.IN_PROGRESS
    assert parse_status(ActivityStatus.ON_HOLD, aliases) is ActivityStatus.ON_HOLD
    assert parse_status("finished", aliases) is None
    assert parse_status(3, aliases) is None


def test_status_file_broken_yaml(tmp_path: Path):
    p = tmp_path / "statuses.yaml"
    p.write_text("completed: [Done\n", encoding="utf-8")
    with pytest.raises(StatusConfigError):
        load_status_file(p)
