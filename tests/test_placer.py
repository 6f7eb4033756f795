"""Tests for the duplication placer."""

import random
from collections import Counter

import pytest

from slidesource import CandidateSlide, DuplicationPlacer, PlacementInternalError, copies, total_length


# ----------------------------------------------------------------------------
# Counting
# ----------------------------------------------------------------------------

@pytest.mark.parametrize("duplicate,count,expected", [
    (1, 9, 1),
    (3, 9, 3),
    (2, 9, 4),
    (5, 3, 1),
    (10, 10, 1),
    (2, 1, 1),
])
def test_copies(duplicate, count, expected):
    assert copies(duplicate, count) == expected


def test_total_length(make_slides):
    slides = make_slides(("A", 1), ("B", 1), ("C", 3), ("D", 1), ("E", 1), ("F", 1), ("G", 1), ("H", 1), ("I", 1))
    assert total_length(slides) == 11


def test_total_length_heavier_than_count(make_slides):
    # A weight larger than the number of slides still yields one instance.
    assert total_length(make_slides(("A", 1), ("B", 5), ("C", 1))) == 3


# ----------------------------------------------------------------------------
# Placement
# ----------------------------------------------------------------------------

class TestPlacement:

    def test_empty(self):
        assert DuplicationPlacer().place([], 42) == []

    def test_single_slide(self, make_slides):
        assert DuplicationPlacer().place(make_slides(("A", 4)), 1) == ["A"]

    def test_no_duplicates_is_permutation(self, make_slides):
        slides = make_slides(*[ (chr(ord("A") + i), 1) for i in range(8) ])
        plan = DuplicationPlacer().place(slides, 7)
        assert sorted(plan) == [ slide.body for slide in slides ]

    def test_weighted_slide_spread_over_windows(self, make_slides):
        slides = make_slides(("A", 1), ("B", 1), ("C", 3), ("D", 1), ("E", 1), ("F", 1), ("G", 1), ("H", 1), ("I", 1))
        for seed in range(50):
            plan = DuplicationPlacer().place(slides, seed)
            assert len(plan) == 11
            counts = Counter(plan)
            assert counts["C"] == 3
            assert all(counts[body] == 1 for body in "ABDEFGHI")
            # One copy per window [0, 3), [3, 7) and [7, 11).
            positions = [ pos for pos, body in enumerate(plan) if body == "C" ]
            assert 0 <= positions[0] < 3
            assert 3 <= positions[1] < 7
            assert 7 <= positions[2] < 11

    def test_small_set_with_heavy_weight(self, make_slides):
        slides = make_slides(("A", 1), ("B", 2), ("C", 1))
        plan = DuplicationPlacer().place(slides, 3)
        assert sorted(plan) == ["A", "B", "C"]

    def test_invalid_weights_behave_like_one(self, make_slides):
        slides = make_slides(("A", 0), ("B", -2), ("C", 1))
        assert sorted(DuplicationPlacer().place(slides, 5)) == ["A", "B", "C"]

    def test_several_weighted_slides(self, make_slides):
        slides = make_slides(*([ (f"S{i}", 1) for i in range(8) ] + [("A", 2), ("B", 5)]))
        plan = DuplicationPlacer().place(slides, 11)
        counts = Counter(plan)
        assert len(plan) == total_length(slides) == 15
        assert counts["A"] == 5
        assert counts["B"] == 2
        assert all(counts[f"S{i}"] == 1 for i in range(8))

    def test_deterministic(self, make_slides):
        slides = make_slides(*[ (f"S{i}", 1 + i % 3) for i in range(12) ])
        assert DuplicationPlacer().place(slides, 99) == DuplicationPlacer().place(slides, 99)

    def test_independent_of_input_order(self, make_slides):
        slides = make_slides(*[ (f"S{i}", 1 + i % 4) for i in range(15) ])
        shuffled = list(slides)
        random.Random(0).shuffle(shuffled)
        assert DuplicationPlacer().place(slides, 1234) == DuplicationPlacer().place(shuffled, 1234)

    def test_seed_changes_order(self, make_slides):
        slides = make_slides(*[ (f"S{i}", 1) for i in range(10) ])
        plans = { tuple(DuplicationPlacer().place(slides, seed)) for seed in range(10) }
        assert len(plans) > 1

    @pytest.mark.parametrize("count", [1, 2, 3, 5, 8, 13])
    @pytest.mark.parametrize("weight", [2, 3, 4, 7])
    def test_completeness(self, make_slides, count, weight):
        slides = make_slides(*[ (f"S{i}", weight if i % 2 == 0 else 1) for i in range(count) ])
        plan = DuplicationPlacer().place(slides, count * weight)
        assert None not in plan
        assert len(plan) == total_length(slides)
        counts = Counter(plan)
        for slide in slides:
            assert counts[slide.body] == copies(slide.duplicate, count)



# ----------------------------------------------------------------------------
# Windows
# ----------------------------------------------------------------------------

def window_indices(plan, body, total, num):
    """Return window index of every position holding the slide."""
    indices = []
    for pos, entry in enumerate(plan):
        if entry == body:
            indices.append(next(i for i in range(num) if i * total // num <= pos < (i + 1) * total // num))
    return indices


class TestWindows:

    def test_one_copy_per_window_for_random_weights(self):
        rng = random.Random(2024)
        for case in range(1000):
            count = rng.randint(1, 25)
            slides = [ CandidateSlide(f"S{i}", rng.choice([1, 2, 3, 4, 5])) for i in range(count) ]
            try:
                plan = DuplicationPlacer().place(slides, case)
            except PlacementInternalError:
                # No assignment with one copy per window exists.
                continue
            total = total_length(slides)
            assert len(plan) == total
            for slide in slides:
                num = copies(slide.duplicate, count)
                assert sorted(window_indices(plan, slide.body, total, num)) == list(range(num))

    def test_heavily_weighted_input(self):
        slides = [ CandidateSlide(f"S{i}", 2 if i < 8 else 1) for i in range(10) ]
        slides.append(CandidateSlide("T", 5))
        for seed in range(200):
            plan = DuplicationPlacer().place(slides, seed)
            total = total_length(slides)
            for slide in slides:
                num = copies(slide.duplicate, len(slides))
                assert sorted(window_indices(plan, slide.body, total, num)) == list(range(num))

    def test_assignment_by_window_end(self):
        output = DuplicationPlacer._place_by_window_end([(0, 4, "A"), (0, 2, "B"), (0, 2, "C")], 4)
        assert sorted(output[:2]) == ["B", "C"]
        assert output[2] == "A"
        assert output[3] is None

    def test_assignment_impossible(self):
        with pytest.raises(PlacementInternalError):
            DuplicationPlacer._place_by_window_end([(0, 1, "A"), (0, 1, "B")], 2)

    def test_random_placement_reports_full_window(self):
        assert DuplicationPlacer._place_random([(0, 1, "A"), (0, 1, "B")], 2, random.Random(0)) is None
