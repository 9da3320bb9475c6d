"""Unit tests for ModifyParams parsing, validation and the modification pipeline."""

import logging
import math

import pytest

from mpm_builders import ornament_header, performance, rubato, scope, tempo
from performkit.errors import ParameterError
from performkit.params import ModifyParams, apply_modifications
from performkit.performance import Performance
from performkit.transforms import OrnamentSpreadScale, RubatoIntensityScale, TempoScale


def _sample_performance() -> Performance:
    return Performance(
        performance(
            scope(
                "global",
                {"tempoMap": [tempo("t1", 0, 100, 140)], "rubatoMap": [rubato("r1", 0, 1.2)]},
                ornament_header(10.0),
            )
        )
    )


def test_from_dict_reads_both_sections() -> None:
    params = ModifyParams.from_dict(
        {"increase": {"tempo": 0.5}, "exaggerate": {"rubato": 1, "temporalSpread": 0.2, "unknown": 3}}
    )
    assert params.factors() == {
        "increase.tempo": 0.5,
        "exaggerate.rubato": 1.0,
        "exaggerate.temporalSpread": 0.2,
    }


def test_from_json_missing_sections_allowed() -> None:
    params = ModifyParams.from_json('{"exaggerate": {"tempo": 0.1}}')
    assert params.increase is None
    assert params.exaggerate.tempo == 0.1


@pytest.mark.parametrize(
    "text",
    ["not json", "[1, 2]", '{"increase": 3}', '{"exaggerate": {"rubato": "lots"}}', '{"increase": {"tempo": true}}'],
)
def test_malformed_documents_rejected(text: str) -> None:
    with pytest.raises(ParameterError):
        ModifyParams.from_json(text)


def test_validate_requires_a_factor() -> None:
    with pytest.raises(ParameterError, match="at least one factor"):
        ModifyParams.from_dict({"increase": {}, "exaggerate": {"tempo": None}}).validate()


@pytest.mark.parametrize("value", [-0.1, math.inf, math.nan])
def test_validate_rejects_negative_and_non_finite(value: float) -> None:
    params = ModifyParams.from_dict({"exaggerate": {"rubato": value}})
    with pytest.raises(ParameterError, match="exaggerate.rubato"):
        params.validate()


def test_validate_accepts_zero() -> None:
    ModifyParams.from_dict({"increase": {"tempo": 0}}).validate()


def test_build_transforms_order() -> None:
    params = ModifyParams.from_dict(
        {
            "exaggerate": {"temporalSpread": 0.2, "rubato": 0.4, "tempo": 0.3},
            "increase": {"tempo": 0.5},
        }
    )
    pipeline = params.build_transforms()
    assert [name for name, _ in pipeline] == [
        "increase.tempo",
        "exaggerate.tempo",
        "exaggerate.rubato",
        "exaggerate.temporalSpread",
    ]
    assert [type(t) for _, t in pipeline] == [TempoScale, TempoScale, RubatoIntensityScale, OrnamentSpreadScale]
    assert pipeline[0][1].factor == 0.5


def test_unsupported_factors_warn(caplog: pytest.LogCaptureFixture) -> None:
    params = ModifyParams.from_dict({"increase": {"dynamics": 0.1}, "exaggerate": {"relativeVelocity": 0.3}})
    with caplog.at_level(logging.WARNING, logger="performkit"):
        assert params.build_transforms() == []
    assert "increase.dynamics" in caplog.text
    assert "exaggerate.relativeVelocity" in caplog.text


def test_apply_modifications_runs_pipeline() -> None:
    perf = _sample_performance()
    params = ModifyParams.from_dict({"exaggerate": {"tempo": 0.5, "rubato": 1.0, "temporalSpread": 1.0}})
    counts = apply_modifications(perf, params)

    assert counts == {"exaggerate.tempo": 1, "exaggerate.rubato": 1, "exaggerate.temporalSpread": 1}
    entries = {e.identifier: e for e in perf.curve_entries()}
    assert entries["t1"].number("bpm") == pytest.approx(90.0)
    assert entries["r1"].number("intensity") == pytest.approx(1.4)
    spread = next(perf.ornament_defs()).children[0]
    assert spread.number("frameLength") == pytest.approx(20.0)


def test_increase_and_exaggerate_tempo_compound() -> None:
    perf = _sample_performance()
    apply_modifications(perf, ModifyParams.from_dict({"increase": {"tempo": 1.0}, "exaggerate": {"tempo": 1.0}}))
    entry = next(perf.curve_entries("tempoMap"))
    assert entry.number("bpm") == pytest.approx(40.0)
    assert entry.number("transition.to") == pytest.approx(200.0)


def test_apply_modifications_validates_first() -> None:
    perf = _sample_performance()
    with pytest.raises(ParameterError):
        apply_modifications(perf, ModifyParams.from_dict({"exaggerate": {"tempo": -1}}))
    assert next(perf.curve_entries("tempoMap")).get("bpm") == 100


def test_integer_too_large_for_float_rejected() -> None:
    text = '{"exaggerate": {"rubato": 1' + "0" * 400 + "}}"
    with pytest.raises(ParameterError, match="exaggerate.rubato"):
        ModifyParams.from_json(text)
