import logging

import pytest

from image_compose.fonts import FontSpec
from image_compose.imaging.text_fit import fit_font_size

from stub_engine import RecordingEngine, StubBuffer


def _canvas() -> StubBuffer:
    return StubBuffer(200, 100)


def test_linear_fit_overshoots_by_one_size(engine: RecordingEngine) -> None:
    # "A" is 3px wide per size unit: size 3 -> 9px still fits 10px, size 4 -> 12px does not
    fitted = fit_font_size(engine, _canvas(), "A", FontSpec(), 10, strategy="linear")

    assert fitted.size == 4
    assert engine.measure_calls == 5


def test_exact_fit_still_steps_past_the_target(engine: RecordingEngine) -> None:
    fitted = fit_font_size(engine, _canvas(), "A", FontSpec(), 9, strategy="linear")
    assert fitted.size == 4


def test_zero_target_returns_first_size_with_any_width(engine: RecordingEngine) -> None:
    fitted = fit_font_size(engine, _canvas(), "A", FontSpec(), 0, strategy="linear")

    assert fitted.size == 1
    assert engine.measure_calls == 2


def test_negative_target_skips_measuring(engine: RecordingEngine) -> None:
    font = FontSpec(size=40)

    fitted = fit_font_size(engine, _canvas(), "A", font, -5)

    assert fitted.size == 40
    assert fitted is font
    assert engine.measure_calls == 0


@pytest.mark.parametrize("strategy", ["linear", "bisect"])
def test_negative_target_keeps_size_for_both_strategies(strategy: str, engine: RecordingEngine) -> None:
    fitted = fit_font_size(engine, _canvas(), "Hello", FontSpec(size=12), -1, strategy=strategy)

    assert fitted.size == 12
    assert engine.measure_calls == 0


def test_callers_font_is_not_modified(engine: RecordingEngine) -> None:
    font = FontSpec(family="DejaVuSans.ttf", size=77, color="#ff0000", alignment="center")

    fitted = fit_font_size(engine, _canvas(), "Hello", font, 100)

    assert font.size == 77
    assert fitted.size != 77
    assert (fitted.family, fitted.color, fitted.alignment) == ("DejaVuSans.ttf", "#ff0000", "center")


@pytest.mark.parametrize("target", [0, 1, 2, 9, 10, 11, 35, 100, 999, 1000])
@pytest.mark.parametrize("text", ["A", "Hello world"])
def test_bisect_matches_linear(target: int, text: str) -> None:
    linear = fit_font_size(RecordingEngine(), _canvas(), text, FontSpec(), target, strategy="linear")
    bisect = fit_font_size(RecordingEngine(), _canvas(), text, FontSpec(), target, strategy="bisect")
    assert bisect.size == linear.size


def test_bisect_needs_far_fewer_measurements() -> None:
    linear_engine = RecordingEngine()
    bisect_engine = RecordingEngine()

    linear = fit_font_size(linear_engine, _canvas(), "A", FontSpec(), 3000, strategy="linear")
    bisect = fit_font_size(bisect_engine, _canvas(), "A", FontSpec(), 3000, strategy="bisect")

    assert linear.size == bisect.size == 1001
    assert linear_engine.measure_calls == 1002
    assert bisect_engine.measure_calls < 30


@pytest.mark.parametrize("strategy", ["linear", "bisect"])
def test_text_that_never_grows_stops_at_the_cap(
    strategy: str, engine: RecordingEngine, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger="image_compose.imaging.text_fit"):
        fitted = fit_font_size(engine, _canvas(), "", FontSpec(), 10, strategy=strategy, max_size=50)

    assert fitted.size == 50
    assert "never exceeded the target width" in caplog.text


def test_unknown_strategy_is_rejected(engine: RecordingEngine) -> None:
    with pytest.raises(ValueError, match="Unknown fit strategy"):
        fit_font_size(engine, _canvas(), "A", FontSpec(), 10, strategy="golden")
