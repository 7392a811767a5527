import pytest

from levelrun.errors import OutcomeLogError
from levelrun.pipeline.outcomes import LevelTestOutcome, OutcomeLog


def test_log_counts_passes_and_failures() -> None:
    log = OutcomeLog()
    log.append(LevelTestOutcome("one", 0, True, duration=1.5))
    log.append(LevelTestOutcome("two", 1, False, error="nope"))
    log.append(LevelTestOutcome("four", 3, True))

    assert len(log) == 3
    assert (log.passed, log.failed) == (2, 1)
    assert log.has(3)
    assert not log.has(2)
    assert [entry.level_name for entry in log] == ["one", "two", "four"]


@pytest.mark.parametrize("index", [0, 1])
def test_log_rejects_duplicate_or_backward_indices(index: int) -> None:
    log = OutcomeLog()
    log.append(LevelTestOutcome("two", 1, True))

    with pytest.raises(OutcomeLogError):
        log.append(LevelTestOutcome("again", index, True))
    assert len(log) == 1


def test_entries_are_a_snapshot() -> None:
    log = OutcomeLog()
    snapshot = log.entries()
    log.append(LevelTestOutcome("one", 0, True))

    assert snapshot == ()
    assert log.entries() == (LevelTestOutcome("one", 0, True),)
