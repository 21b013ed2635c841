"""Tests for the page-break decision engine."""

import pytest

from docpager.engine.break_constraints import BreakConstraint, RepeatedHeader
from docpager.engine.page_breaker import PageBreakEngine
from docpager.models import WarningCode


def spans(plan):
    return [(s.top, s.bottom, s.page_index) for s in plan.segments]


class TestPageBreakEngine:
    """Test suite for PageBreakEngine."""

    @pytest.fixture
    def engine(self):
        return PageBreakEngine()

    def test_unconstrained_strides(self, engine):
        plan = engine.paginate(2500, 1000, block_id="b", scale_factor=0.5)

        assert spans(plan) == [(0, 1000, 0), (1000, 2000, 1), (2000, 2500, 2)]
        assert plan.page_count == 3
        assert plan.boundaries == [1000, 2000]
        assert all(s.source_block_id == "b" and s.scale_factor == 0.5 for s in plan.segments)
        assert plan.warnings == []

    def test_segments_cover_block_exactly(self, engine):
        constraint = BreakConstraint(forbidden=((900, 1100), (2950, 3050)), forced=(1500,))

        plan = engine.paginate(4321, 1000, constraint)

        assert plan.segments[0].top == 0
        assert plan.segments[-1].bottom == 4321
        for previous, current in zip(plan.segments, plan.segments[1:]):
            assert previous.bottom == current.top
            assert current.page_index == previous.page_index + 1
        assert all(0 < s.height <= 1000 for s in plan.segments)

    def test_boundary_moves_back_to_range_start(self, engine):
        plan = engine.paginate(2500, 1000, BreakConstraint(forbidden=((950, 1050),)))

        assert spans(plan) == [(0, 950, 0), (950, 1950, 1), (1950, 2500, 2)]

    def test_nested_ranges_use_outermost_start(self, engine):
        constraint = BreakConstraint(forbidden=((900, 1100), (980, 1020)))

        plan = engine.paginate(1500, 1000, constraint)

        assert plan.boundaries == [900]

    def test_overlapping_ranges_chain_backward(self, engine):
        constraint = BreakConstraint(forbidden=((920, 960), (950, 1050)))

        plan = engine.paginate(1500, 1000, constraint)

        assert plan.boundaries == [920]

    def test_boundary_on_range_edge_is_safe(self, engine):
        plan = engine.paginate(1500, 1000, BreakConstraint(forbidden=((1000, 1100),)))

        assert plan.boundaries == [1000]

    def test_forced_break_wins(self, engine):
        plan = engine.paginate(1500, 1000, BreakConstraint(forced=(300,)))

        assert spans(plan) == [(0, 300, 0), (300, 1300, 1), (1300, 1500, 2)]

    def test_unsatisfiable_range_splits_with_warning(self, engine):
        plan = engine.paginate(2500, 1000, BreakConstraint(forbidden=((0, 1500),)), block_id="tall")

        assert plan.boundaries == [1000, 2000]
        assert len(plan.warnings) == 1
        warning = plan.warnings[0]
        assert warning.code is WarningCode.FORBIDDEN_RANGE_SPLIT
        assert warning.offset == 1000
        assert warning.block_id == "tall"

    def test_shared_first_page(self, engine):
        plan = engine.paginate(500, 1000, first_page_capacity=700)

        assert spans(plan) == [(0, 500, 0)]
        assert plan.segments[0].dest_top == 300

    def test_shared_page_overflow_continues_on_fresh_pages(self, engine):
        plan = engine.paginate(1500, 1000, first_page_capacity=400)

        assert spans(plan) == [(0, 400, 0), (400, 1400, 1), (1400, 1500, 2)]
        assert [s.dest_top for s in plan.segments] == [600, 0, 0]

    def test_unsplittable_start_moves_to_fresh_page(self, engine):
        """Content that cannot start on the shared page moves on without a warning."""
        plan = engine.paginate(500, 1000, BreakConstraint(forbidden=((0, 500),)), first_page_capacity=300)

        assert spans(plan) == [(0, 500, 1)]
        assert plan.segments[0].dest_top == 0
        assert plan.warnings == []

    def test_zero_height_block(self, engine):
        plan = engine.paginate(0, 1000, first_page_capacity=600)

        assert spans(plan) == [(0, 0, 0)]
        assert plan.page_count == 1

    def test_deterministic(self, engine):
        constraint = BreakConstraint(forbidden=((900, 1100), (1950, 2100)), forced=(2500,))

        assert engine.paginate(3000, 1000, constraint).segments == engine.paginate(3000, 1000, constraint).segments

    def test_invalid_page_height(self, engine):
        with pytest.raises(ValueError):
            engine.paginate(100, 0)


class TestRepeatedTableHeaders:
    @pytest.fixture
    def engine(self):
        return PageBreakEngine()

    def test_header_reserved_on_continuation_pages(self, engine):
        constraint = BreakConstraint(headers=(RepeatedHeader(0, 50, 2500),))

        plan = engine.paginate(2500, 1000, constraint)

        assert spans(plan) == [(0, 1000, 0), (1000, 1950, 1), (1950, 2500, 2)]
        assert [s.dest_top for s in plan.segments] == [0, 50, 50]
        assert [s.repeated_header for s in plan.segments] == [None, (0, 50), (0, 50)]

    def test_no_header_after_table_ends(self, engine):
        constraint = BreakConstraint(headers=(RepeatedHeader(0, 50, 1200),))

        plan = engine.paginate(2500, 1000, constraint)

        assert [s.repeated_header for s in plan.segments] == [None, (0, 50), None]

    def test_tall_header_is_not_repeated(self, engine):
        constraint = BreakConstraint(headers=(RepeatedHeader(0, 600, 2000),))

        plan = engine.paginate(2000, 1000, constraint)

        assert spans(plan) == [(0, 1000, 0), (1000, 2000, 1)]
        assert all(s.repeated_header is None for s in plan.segments)
        assert [w.code for w in plan.warnings] == [WarningCode.TABLE_HEADER_NOT_REPEATED]
