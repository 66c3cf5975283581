"""Tests for fragment detection, collapse and removal."""

import math

import pytest

from chromagraph.gra.engine import GRAConfig, GRAEngine
from chromagraph.gra.graph import GraphStore
from chromagraph.gra.lifecycle import FragmentLifecycle


def _store_with(fragments):
    """
    Build a store from a list of (positions, edges) groups.

    Edges are local to each group.
    """
    store = GraphStore()
    for positions, edges in fragments:
        base = len(store)
        for x, y in positions:
            store.add_node(x, y, state=1)
        for a, b in edges:
            store.connect(base + a, base + b)
    return store


TRIANGLE = ([(300.0, 200.0), (250.0, 290.0), (350.0, 290.0)], [(0, 1), (1, 2), (0, 2)])


class TestComponents:
    def test_find_components(self):
        store = _store_with([
            ([(10.0, 10.0)], []),
            TRIANGLE,
            ([(500.0, 500.0), (520.0, 500.0)], [(0, 1)]),
        ])
        components = FragmentLifecycle.find_components(store)
        assert sorted(sorted(c) for c in components) == [[0], [1, 2, 3], [4, 5]]

    def test_dying_nodes_excluded(self):
        store = _store_with([([(0.0, 0.0), (10.0, 0.0)], [(0, 1)])])
        store[1].dying = True
        assert FragmentLifecycle.find_components(store) == [[0]]


class TestScan:
    def test_isolated_node_marked(self):
        store = _store_with([TRIANGLE, ([(100.0, 120.0)], [])])
        marked = FragmentLifecycle().scan(store)

        assert marked == [3]
        node = store[3]
        assert node.dying
        assert node.dying_ttl == 60
        assert node.alpha == 1.0
        assert node.gravity_target == (100.0, 120.0)
        assert not any(store[i].dying for i in range(3))

    def test_pair_targets_midpoint(self):
        store = _store_with([([(100.0, 100.0), (200.0, 300.0)], [(0, 1)])])
        FragmentLifecycle().scan(store)
        assert store[0].gravity_target == store[1].gravity_target == (150.0, 200.0)

    def test_constellation_never_marked(self):
        store = _store_with([TRIANGLE])
        lifecycle = FragmentLifecycle()
        for _ in range(20):
            assert lifecycle.scan(store) == []
            assert lifecycle.update(store) == []
        assert len(store) == 3
        assert not any(node.dying for node in store)

    def test_already_dying_not_remarked(self):
        store = _store_with([([(0.0, 0.0)], [])])
        lifecycle = FragmentLifecycle()
        lifecycle.scan(store)
        lifecycle.update(store)
        assert lifecycle.scan(store) == []
        assert store[0].dying_ttl == 59


class TestCollapse:
    def test_isolated_node_removed_within_ttl(self):
        store = _store_with([TRIANGLE, ([(100.0, 120.0)], [])])
        lifecycle = FragmentLifecycle()
        lifecycle.scan(store)

        for _ in range(30):
            lifecycle.update(store)
        assert len(store) == 4
        assert store[3].alpha == pytest.approx(0.25)
        assert store[3].dying_ttl == 30

        for _ in range(30):
            lifecycle.update(store)
        assert len(store) == 3

    def test_ttl_expiry_removes_without_fade(self):
        store = _store_with([([(0.0, 0.0)], [])])
        lifecycle = FragmentLifecycle(dying_ttl=5, fade_rate=0.0)
        lifecycle.scan(store)
        for _ in range(4):
            lifecycle.update(store)
        assert len(store) == 1
        assert lifecycle.update(store) == [0]
        assert len(store) == 0

    def test_gravity_accelerates(self):
        store = _store_with([([(100.0, 300.0), (500.0, 300.0)], [(0, 1)])])
        lifecycle = FragmentLifecycle(fade_rate=0.0)
        lifecycle.scan(store)

        lifecycle.update(store)
        first = store[0].vx
        lifecycle.update(store)
        second = store[0].vx - first

        # Left node pulled right, right node pulled left
        assert first == pytest.approx(0.15)
        assert store[1].vx == pytest.approx(-(0.15 + 0.15 * 1.05))
        assert second > first

    def test_batch_removal_keeps_survivors_consistent(self, assert_sound):
        store = _store_with([
            ([(10.0, 10.0)], []),
            TRIANGLE,
            ([(500.0, 500.0)], []),
            ([(40.0, 500.0), (60.0, 500.0)], [(0, 1)]),
        ])
        lifecycle = FragmentLifecycle()
        assert sorted(lifecycle.scan(store)) == [0, 4, 5, 6]

        removed = []
        for _ in range(60):
            removed.extend(lifecycle.update(store))

        assert sorted(removed) == [0, 4, 5, 6]
        assert len(store) == 3
        assert [set(node.neighbors) for node in store] == [{1, 2}, {0, 2}, {0, 1}]
        assert [node.x for node in store] == [300.0, 250.0, 350.0]
        assert_sound(store)


class TestEngineLifecycle:
    def test_scan_runs_every_fifth_step(self, assert_sound):
        engine = GRAEngine(GRAConfig(rule=0), rng=1)
        engine.create_seed("triangle")
        engine.store.add_node(50.0, 50.0, state=1)

        for _ in range(4):
            engine.step()
        assert not engine.nodes[3].dying

        engine.step()
        assert engine.time == 5
        assert engine.nodes[3].dying
        assert engine.nodes[3].dying_ttl == 60

        for _ in range(60):
            engine.physics()
        assert len(engine.nodes) == 3
        assert_sound(engine.store)

    def test_dying_nodes_skip_automaton(self):
        engine = GRAEngine(GRAConfig(rule=0xFFFF), rng=1)
        engine.create_seed("triangle")
        lone = engine.store.add_node(50.0, 50.0, state=0)
        engine.scan_fragments()

        engine.step()
        # Rule 0xFFFF would set every live node to 1 and divide node 0
        assert engine.nodes[lone].state == 0
        assert engine.total_divisions == 1
        assert len(engine.nodes) == 6

    def test_dying_node_fades_on_physics(self):
        engine = GRAEngine(rng=2)
        engine.create_seed("triangle")
        engine.store.add_node(50.0, 50.0)
        engine.scan_fragments()
        engine.physics()
        assert engine.nodes[3].alpha == pytest.approx(0.975)
        assert engine.nodes[3].dying_ttl == 59
        # Pulled toward its own marked position
        assert math.isfinite(engine.nodes[3].x)
