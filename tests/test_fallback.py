# tests/test_fallback.py
import asyncio

from jobharvest.fallback import run_with_fallback


def step(value, calls):
    async def run(previous):
        calls.append(previous)
        return value
    return run


def run(steps):
    return asyncio.run(run_with_fallback(
        steps,
        needs_fallback=lambda r: r in ("thin", "failed"),
        usable=lambda r: r != "failed",
    ))


def test_stops_at_first_good_result():
    calls = []

    result = run([("a", step("good", calls)), ("b", step("other", calls))])

    assert result.value == "good"
    assert result.label == "a"
    assert result.labels_tried == ["a"]
    assert calls == [None]


def test_later_result_replaces_poor_one_and_sees_previous():
    calls = []

    result = run([("a", step("thin", calls)), ("b", step("good", calls))])

    assert result.value == "good"
    assert result.label == "b"
    assert calls == [None, "thin"]


def test_failed_later_step_keeps_earlier_usable_result():
    result = run([("a", step("thin", [])), ("b", step("failed", []))])

    assert result.value == "thin"
    assert result.label == "a"
    assert result.labels_tried == ["a", "b"]


def test_nothing_usable():
    result = run([("a", step("failed", [])), ("b", step("failed", []))])

    assert result.value is None
    assert result.label is None
