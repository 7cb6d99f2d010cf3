"""Tests for the permutation engine and its bucket-pruning bookkeeping."""

from __future__ import annotations

import numpy as np
import pytest

from superminhash import MAX_HASH_VALUE, SuperMinHash, adjust_max_bucket_index
from superminhash.hash.permutation import ElementContext, process_element
from superminhash.hash.stream import seeded_stream


def _fold(elements, size, seed, *, prune):
    signature = [MAX_HASH_VALUE] * size
    steps = []
    for element in elements:
        stream = seeded_stream(f"{seed}:{element}")
        steps.append(process_element(signature, stream.__next__, prune=prune))
    return signature, steps


class TestAdjustMaxBucketIndex:
    def test_keeps_index_of_non_empty_bucket(self):
        assert adjust_max_bucket_index(2, [0, 0, 3]) == 2

    def test_falls_to_zero(self):
        assert adjust_max_bucket_index(2, [0, 0, 0]) == 0

    def test_stops_at_first_non_empty_bucket(self):
        assert adjust_max_bucket_index(4, [1, 0, 2, 0, 0]) == 2

    def test_zero_is_a_floor(self):
        assert adjust_max_bucket_index(0, [0]) == 0

    def test_reused_counts_after_emptying(self):
        bucket_counts = [0, 0, 3]
        assert adjust_max_bucket_index(2, bucket_counts) == 2
        bucket_counts[2] = 0
        assert adjust_max_bucket_index(2, bucket_counts) == 0


class TestElementContext:
    def test_fresh_signature_puts_everything_in_last_bucket(self):
        context = ElementContext.from_signature([MAX_HASH_VALUE] * 5)
        assert context.bucket_counts == [0, 0, 0, 0, 5]
        assert context.max_bucket_index == 4
        assert context.positions == {}

    def test_histogram_is_derived_from_current_values(self):
        context = ElementContext.from_signature([0, 2, 2, 900, MAX_HASH_VALUE])
        assert context.bucket_counts == [1, 0, 2, 0, 2]
        assert sum(context.bucket_counts) == 5
        assert context.max_bucket_index == 4

    def test_max_bucket_skips_empty_tail(self):
        context = ElementContext.from_signature([1, 0, 1, 0])
        assert context.max_bucket_index == 1

    def test_swap_materialises_lazily(self):
        context = ElementContext.from_signature([MAX_HASH_VALUE] * 10)
        assert context.swap(0, 7) == 7
        assert context.positions == {0: 7, 7: 0}
        assert context.swap(1, 1) == 1
        assert context.positions == {0: 7, 7: 0, 1: 1}

    def test_move_slot_keeps_total_and_shrinks_max(self):
        context = ElementContext.from_signature([MAX_HASH_VALUE] * 3)
        context.move_slot(2, 0)
        context.move_slot(2, 1)
        assert context.max_bucket_index == 2
        context.move_slot(2, 1)
        assert context.bucket_counts == [1, 2, 0]
        assert sum(context.bucket_counts) == 3
        assert context.max_bucket_index == 1


class TestProcessElement:
    def test_size_one_runs_single_step(self, cycling_draw):
        signature = [MAX_HASH_VALUE]
        assert process_element(signature, cycling_draw([0.25, 0.75])) == 1
        assert signature[0] == int(0.25 * MAX_HASH_VALUE)

    def test_identity_permutation_with_zero_draws(self, cycling_draw):
        signature = [MAX_HASH_VALUE] * 6
        steps = process_element(signature, cycling_draw([0.0]))
        assert steps == 6
        assert signature == [0, 1, 2, 3, 4, 5]

    def test_each_slot_visited_at_most_once(self, cycling_draw):
        signature = [MAX_HASH_VALUE] * 16
        process_element(signature, cycling_draw([0.0, 0.999, 0.5, 0.3, 0.0, 0.1]))
        # Every candidate is below the sentinel, so each visited slot is lowered
        assert all(value < MAX_HASH_VALUE for value in signature)
        assert len(set(signature)) == 16

    def test_prunes_when_no_slot_can_improve(self, cycling_draw):
        signature = [0] * 8
        assert process_element(signature, cycling_draw([0.5])) == 1
        assert signature == [0] * 8

    def test_unpruned_scan_visits_every_position(self, cycling_draw):
        signature = [0] * 8
        assert process_element(signature, cycling_draw([0.5]), prune=False) == 8
        assert signature == [0] * 8

    def test_stops_after_highest_occupied_bucket(self, cycling_draw):
        signature = [0, 1, 0, 1, 0, 1, 0, 1]
        steps = process_element(signature, cycling_draw([0.0]))
        # Highest bucket is 1, so only positions 0 and 1 are scanned
        assert steps == 2
        assert signature == [0, 1, 0, 1, 0, 1, 0, 1]

    def test_values_never_increase(self, cycling_draw):
        signature = [5, MAX_HASH_VALUE, 1, 700, MAX_HASH_VALUE]
        before = list(signature)
        process_element(signature, cycling_draw([0.9, 0.1, 0.4, 0.6]))
        assert all(after <= prior for after, prior in zip(signature, before))

    @pytest.mark.parametrize("size", [1, 2, 3, 8, 33, 64])
    def test_pruned_matches_full_scan(self, size):
        elements = [f"element-{i}" for i in range(50)]
        pruned, pruned_steps = _fold(elements, size, 42, prune=True)
        full, full_steps = _fold(elements, size, 42, prune=False)
        assert pruned == full
        assert all(steps <= size for steps in pruned_steps)
        assert all(steps == size for steps in full_steps)

    def test_pruned_matches_full_scan_from_arbitrary_state(self, rng):
        size = 32
        start = rng.integers(0, 64, size=size).tolist()
        for i in range(20):
            pruned = list(start)
            full = list(start)
            process_element(pruned, seeded_stream(f"7:{i}").__next__)
            process_element(full, seeded_stream(f"7:{i}").__next__, prune=False)
            assert pruned == full

    def test_engine_matches_facade(self):
        elements = ["a", "b", {"c": [1, 2]}]
        manual, _ = _fold(["a", "b", '{"c":[1,2]}'], 24, 42, prune=True)
        facade = SuperMinHash.from_iterable(elements, 24, 42)
        np.testing.assert_array_equal(facade.get_signature(), manual)
