"""Tests for the Worley evaluator."""

import math

import pytest

# Nearest feature point to the origin with Ken Perlin's table.
GOLDEN_DISTANCE = 0.2892007788599862
GOLDEN_POSITION = (-0.2646414071939379, 0.1166276814981545)


def test_metric_values():
    from cellforge.worley import DistanceMetric
    assert DistanceMetric.EUCLIDEAN.distance((0, 0), (3, 4)) == 5.0
    assert DistanceMetric.MANHATTAN.distance((0, 0), (3, 4)) == 7.0
    assert DistanceMetric.MANHATTAN.distance((1, 1), (-2, 5)) == 7.0


def test_metric_parse():
    from cellforge.worley import DistanceMetric
    assert DistanceMetric.parse("Manhattan") is DistanceMetric.MANHATTAN
    assert DistanceMetric.parse(DistanceMetric.EUCLIDEAN) is DistanceMetric.EUCLIDEAN
    with pytest.raises(ValueError):
        DistanceMetric.parse("chebyshev")
    with pytest.raises(TypeError):
        DistanceMetric.parse(2)


def test_metric_propagates_nan():
    from cellforge.worley import DistanceMetric
    assert math.isnan(DistanceMetric.EUCLIDEAN.distance((math.nan, 0), (1, 1)))
    assert math.isinf(DistanceMetric.MANHATTAN.distance((math.inf, 0), (1, 1)))


def test_golden_reference_origin():
    from cellforge.permutation import PermutationTable
    from cellforge.worley import evaluate
    table = PermutationTable.reference()
    distance, position = evaluate((0.0, 0.0), table)
    assert distance == pytest.approx(GOLDEN_DISTANCE, rel=1e-12)
    assert position == pytest.approx(GOLDEN_POSITION, rel=1e-12)


def test_golden_reference_origin_manhattan():
    from cellforge.permutation import PermutationTable
    from cellforge.worley import evaluate
    table = PermutationTable.reference()
    distance, position = evaluate((0.0, 0.0), table, metric="manhattan")
    assert distance == pytest.approx(0.3812690886920924, rel=1e-12)
    assert position == pytest.approx(GOLDEN_POSITION, rel=1e-12)


def test_seeded_session_golden():
    from cellforge.permutation import PermutationTable
    from cellforge.worley import evaluate
    a = evaluate((0.0, 0.0), PermutationTable.build(0x5EED))
    b = evaluate((0.0, 0.0), PermutationTable.build(0x5EED))
    assert a == b
    distance, position = a
    assert distance == pytest.approx(0.9333409689181968, rel=1e-12)
    assert position == pytest.approx((-0.6333794455726744, -0.6855332538886862), rel=1e-12)


@pytest.mark.parametrize("sample", [(0.0, 0.0), (3.25, -7.5), (-0.001, 100.9), (1e4, 1e4 + 0.5)])
def test_ranks_non_decreasing(sample):
    from cellforge.permutation import PermutationTable
    from cellforge.worley import evaluate
    table = PermutationTable.build(7)
    distances = [evaluate(sample, table, rank=r)[0] for r in range(9)]
    assert distances == sorted(distances)


def test_ranked_features_matches_evaluate():
    from cellforge.permutation import PermutationTable
    from cellforge.worley import evaluate, ranked_features
    table = PermutationTable.reference()
    ranked = ranked_features((2.3, -1.7), table)
    assert len(ranked) == 9
    for r in range(9):
        assert evaluate((2.3, -1.7), table, rank=r) == ranked[r]


def test_feature_positions_lie_in_neighbor_cells():
    from cellforge.permutation import PermutationTable
    from cellforge.worley import ranked_features
    table = PermutationTable.reference()
    cells = set()
    for _, (x, y) in ranked_features((5.5, 5.5), table):
        cells.add((math.floor(x), math.floor(y)))
    assert cells == {(i, j) for i in (4, 5, 6) for j in (4, 5, 6)}


def test_distance_matches_world_position():
    from cellforge.permutation import PermutationTable
    from cellforge.worley import DistanceMetric, ranked_features
    table = PermutationTable.build(99)
    sample = (12.4, -3.8)
    for distance, position in ranked_features(sample, table):
        expected = DistanceMetric.EUCLIDEAN.distance(sample, position)
        assert distance == pytest.approx(expected, abs=1e-9)


@pytest.mark.parametrize("y", [0.1, 0.5, 0.9])
def test_continuity_at_cell_boundary(y):
    from cellforge.permutation import PermutationTable
    from cellforge.worley import evaluate
    table = PermutationTable.reference()
    inside = evaluate((0.999999, y), table)[0]
    outside = evaluate((1.000001, y), table)[0]
    assert abs(inside - outside) < 1e-5


def test_idempotent():
    from cellforge.permutation import PermutationTable
    from cellforge.worley import evaluate
    table = PermutationTable.build(31337)
    assert evaluate((4.2, 9.1), table, rank=1) == evaluate((4.2, 9.1), table, rank=1)


@pytest.mark.parametrize("rank", [-1, 9, 100])
def test_invalid_rank(rank):
    from cellforge.permutation import PermutationTable
    from cellforge.worley import evaluate
    with pytest.raises(ValueError):
        evaluate((0.5, 0.5), PermutationTable.reference(), rank=rank)


def test_larger_radius():
    from cellforge.permutation import PermutationTable
    from cellforge.worley import evaluate, neighborhood_size, ranked_features
    table = PermutationTable.reference()
    assert neighborhood_size(2) == 25
    assert len(ranked_features((0.5, 0.5), table, radius=2)) == 25
    # The nearest point is always within the 3x3 block.
    assert evaluate((0.5, 0.5), table, radius=2) == evaluate((0.5, 0.5), table)
    evaluate((0.5, 0.5), table, rank=24, radius=2)


@pytest.mark.parametrize("radius", [0, -1, 1.5, True])
def test_invalid_radius(radius):
    from cellforge.permutation import PermutationTable
    from cellforge.worley import evaluate
    with pytest.raises(ValueError):
        evaluate((0.5, 0.5), PermutationTable.reference(), radius=radius)


def test_non_finite_sample_propagates():
    from cellforge.permutation import PermutationTable
    from cellforge.worley import evaluate
    table = PermutationTable.reference()
    distance, _ = evaluate((math.nan, 0.0), table)
    assert math.isnan(distance)
    distance, _ = evaluate((0.0, math.inf), table, metric="manhattan")
    assert math.isnan(distance)


def test_cell_index_saturates_at_32_bits():
    from cellforge.worley import _split
    assert _split(2.0**40 + 0.25) == (2**31 - 1, 0.25)
    assert _split(-2.0**40 - 0.75) == (-2**31, 0.25)
    assert _split(-3.5) == (-4, 0.5)


def test_far_samples_share_edge_cells():
    from cellforge.permutation import PermutationTable
    from cellforge.worley import ranked_features
    table = PermutationTable.reference()
    near = ranked_features((2.0**31 + 100.5, 0.5), table)
    far = ranked_features((2.0**35 + 0.5, 0.5), table)
    assert sorted(p for _, p in near) == sorted(p for _, p in far)
