import pytest

from src.healthcare_staffing.healthcare_staffing.common.saga import saga


def test_saga_compensates_completed_steps_in_reverse_order():
    log = []

    with pytest.raises(RuntimeError):
        with saga("demo") as s:
            s.step("a", lambda: log.append("do a"), lambda: log.append("undo a"))
            s.step("b", lambda: log.append("do b"), lambda: log.append("undo b"))
            raise RuntimeError("boom")

    assert log == ["do a", "do b", "undo b", "undo a"]


def test_saga_keeps_compensating_after_failing_undo():
    log = []

    def broken_undo():
        raise ValueError("undo failed")

    with pytest.raises(RuntimeError):
        with saga("demo") as s:
            s.step("a", lambda: log.append("do a"), lambda: log.append("undo a"))
            s.step("b", lambda: None, broken_undo)
            raise RuntimeError("boom")

    assert log == ["do a", "undo a"]
