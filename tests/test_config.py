import json
from datetime import timedelta

import pytest

from pomodoro_core.config import (
    Config,
    ConfigError,
    ValidationError,
    default_config,
    format_duration,
    load_from_file,
)


def test_default_config_values():
    cfg = default_config()
    assert cfg.work_duration == timedelta(minutes=25)
    assert cfg.short_break == timedelta(minutes=5)
    assert cfg.long_break == timedelta(minutes=15)
    assert cfg.long_break_interval == 4


def test_default_config_is_valid():
    default_config().validate()
    assert default_config() == Config()


@pytest.mark.parametrize(
    "changes, field",
    [
        ({"work_duration": timedelta(seconds=59)}, "WorkDuration"),
        ({"work_duration": timedelta(minutes=121)}, "WorkDuration"),
        ({"short_break": timedelta(seconds=30)}, "ShortBreak"),
        ({"short_break": timedelta(minutes=31)}, "ShortBreak"),
        ({"long_break": timedelta(minutes=4)}, "LongBreak"),
        ({"long_break": timedelta(minutes=61)}, "LongBreak"),
        ({"long_break_interval": 1}, "LongBreakInterval"),
        ({"long_break_interval": 11}, "LongBreakInterval"),
        ({"short_break": timedelta(minutes=10), "long_break": timedelta(minutes=10)}, "LongBreak"),
    ],
)
def test_validate_rejects_out_of_range(changes, field):
    cfg = Config(**changes)
    with pytest.raises(ValidationError) as info:
        cfg.validate()
    assert info.value.field == field
    assert str(info.value).startswith(f"validation error in {field}: ")


def test_validate_long_not_longer_than_short_message():
    cfg = Config(short_break=timedelta(minutes=20), long_break=timedelta(minutes=10))
    with pytest.raises(ValidationError) as info:
        cfg.validate()
    assert info.value.message == "must be longer than short break"


def test_boundaries_are_accepted():
    cfg = Config(
        work_duration=timedelta(minutes=120),
        short_break=timedelta(minutes=1),
        long_break=timedelta(minutes=60),
        long_break_interval=10,
    )
    cfg.validate()
    assert cfg.long_break_interval == 10


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "config.json"
    cfg = Config(
        work_duration=timedelta(minutes=50),
        short_break=timedelta(minutes=10),
        long_break=timedelta(minutes=30),
        long_break_interval=3,
    )
    cfg.save_to_file(path)
    assert load_from_file(path) == cfg


def test_saved_file_uses_nanoseconds(tmp_path):
    path = tmp_path / "config.json"
    default_config().save_to_file(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["work_duration"] == 25 * 60 * 10**9
    assert data["long_break_interval"] == 4
    assert list(data) == ["work_duration", "short_break", "long_break", "long_break_interval"]


def test_save_invalid_config_raises_and_writes_nothing(tmp_path):
    path = tmp_path / "config.json"
    with pytest.raises(ConfigError) as info:
        Config(long_break_interval=0).save_to_file(path)
    assert isinstance(info.value.__cause__, ValidationError)
    assert not path.exists()


def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="failed to read config file"):
        load_from_file(tmp_path / "missing.json")


def test_load_malformed_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="failed to parse config file"):
        load_from_file(path)


def test_load_wrong_type(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"work_duration": "25m"}), encoding="utf-8")
    with pytest.raises(ConfigError, match="failed to parse config file"):
        load_from_file(path)


def test_load_invalid_values(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid configuration") as info:
        load_from_file(path)
    assert isinstance(info.value.__cause__, ValidationError)


def test_to_dict_from_dict_round_trip():
    cfg = Config(work_duration=timedelta(minutes=45), long_break_interval=6)
    assert Config.from_dict(cfg.to_dict()) == cfg


def test_clone_is_independent():
    cfg = default_config()
    copy = cfg.clone()
    assert copy == cfg
    copy.long_break_interval = 7
    assert cfg.long_break_interval == 4


@pytest.mark.parametrize("number", [1, 2, 3, 5, 6, 7])
def test_next_break_short(number):
    cfg = default_config()
    assert cfg.next_break_type(number) == (cfg.short_break, False)


@pytest.mark.parametrize("number", [4, 8, 12])
def test_next_break_long(number):
    cfg = default_config()
    assert cfg.next_break_type(number) == (cfg.long_break, True)


def test_str_representation():
    assert str(default_config()) == "Config{Work: 25m0s, Short: 5m0s, Long: 15m0s, Interval: 4}"


def test_format_duration_with_minutes():
    assert format_duration(timedelta(seconds=90)) == "1m 30s"


def test_format_duration_seconds_only():
    assert format_duration(timedelta(seconds=45)) == "45s"


def test_format_duration_whole_minutes_round_trip():
    for minutes in (1, 5, 25, 120):
        assert format_duration(timedelta(minutes=minutes)) == f"{minutes}m 0s"