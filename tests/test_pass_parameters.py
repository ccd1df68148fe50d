import dataclasses

import pytest

from patchfill.models.pass_parameters import PassParameters, SourceStrategy
from patchfill.models.rect import Direction


def test_defaults():
    p = PassParameters()
    assert (p.pass_count, p.feather_radius, p.direction) == (2, 8, Direction.AUTO)
    assert p.strategy is SourceStrategy.PATCH
    assert p.feather_alpha == pytest.approx(0.55)
    assert p.gap_ratio == pytest.approx(0.12)
    assert p.min_gap == 2
    assert p.overlap_weight == pytest.approx(400)


@pytest.mark.parametrize("given, expected", [(0, 1), (-4, 1), (2.5, 3), (6, 6), (10, 6)])
def test_pass_count_is_clamped(given, expected):
    assert PassParameters(pass_count=given).pass_count == expected


@pytest.mark.parametrize("given, expected", [(-1, 0), (0, 0), (12.5, 13), (30, 30), (45, 30)])
def test_feather_radius_is_clamped(given, expected):
    assert PassParameters(feather_radius=given).feather_radius == expected


def test_direction_and_strategy_are_parsed():
    p = PassParameters(direction="Below", strategy="STRIP")
    assert p.direction is Direction.BELOW
    assert p.strategy is SourceStrategy.STRIP
    with pytest.raises(ValueError):
        PassParameters(direction="up")
    with pytest.raises(ValueError):
        PassParameters(strategy="clone")


def test_negative_tuning_is_rejected():
    with pytest.raises(ValueError):
        PassParameters(overlap_weight=-1)


def test_parameters_are_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        PassParameters().pass_count = 4


def test_environment_overrides_tuning(monkeypatch):
    monkeypatch.setenv("PATCH_OVERLAP_WEIGHT", "250")
    monkeypatch.setenv("FEATHER_ALPHA", "0.4")
    p = PassParameters()
    assert p.overlap_weight == pytest.approx(250)
    assert p.feather_alpha == pytest.approx(0.4)
