import pytest

from levelrun.config import Settings, get_settings
from levelrun.errors import ConfigurationError
from levelrun.pipeline.orchestrator import PipelineTimings


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("TYPING_RATE", "LOAD_DELAY", "MAX_LEVELS", "START_LEVEL", "LOG_PROFILE"):
        monkeypatch.delenv(f"LEVELRUN_{name}", raising=False)


def test_defaults_match_the_pipeline_timings() -> None:
    settings = get_settings()

    assert settings.timings() == PipelineTimings()
    assert settings.frame_interval == pytest.approx(1 / 60)
    assert settings.start_level == 0
    assert settings.max_levels is None
    assert settings.log_profile == "default"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LEVELRUN_TYPING_RATE", "40")
    monkeypatch.setenv("LEVELRUN_MAX_LEVELS", "2")

    settings = get_settings()

    assert settings.typing_rate == 40.0
    assert settings.max_levels == 2


def test_dotenv_file_is_read(tmp_path) -> None:
    (tmp_path / ".env").write_text("LEVELRUN_LOAD_DELAY=0.25\n", encoding="utf-8")

    assert get_settings().load_delay == 0.25


def test_explicit_overrides_win_and_none_is_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LEVELRUN_START_LEVEL", "3")

    assert get_settings(start_level=1).start_level == 1
    assert get_settings(start_level=None).start_level == 3


@pytest.mark.parametrize(
    "overrides",
    [{"typing_rate": 0}, {"load_delay": -1}, {"frame_interval": 0}, {"max_levels": 0}, {"log_profile": "fancy"}],
)
def test_invalid_values_raise_configuration_error(overrides: dict) -> None:
    with pytest.raises(ConfigurationError):
        get_settings(**overrides)


def test_speedup_compresses_delays_and_accelerates_typing() -> None:
    timings = Settings().timings(speedup=4.0)

    assert timings.load_delay == 0.25
    assert timings.typing_rate == 80.0
    assert timings.completion_timeout == 1.25
    assert timings.next_level_delay == 0.125


def test_non_positive_speedup_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        Settings().timings(speedup=0)
