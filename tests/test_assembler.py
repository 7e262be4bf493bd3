import json
import threading
from dataclasses import replace

import numpy as np
import pytest

from hexworld.assembler import GenerationState, WorldAssembler, compute_adjacency, generate_world
from hexworld.config import DEFAULT_PRESET, WorldConfig
from hexworld.entities import EntityCategory, EntityType
from hexworld.errors import ConfigurationError, GenerationCancelled
from hexworld.export import result_to_json
from hexworld.pool import EntityPool


def small_config(**kw):
    data = dict(DEFAULT_PRESET, world_size_x=12, world_size_y=8)
    data.update(kw)
    return WorldConfig.from_dict(data)


def test_same_seed_same_world():
    cfg = small_config()
    a = WorldAssembler().generate(cfg, seed=123)
    b = WorldAssembler().generate(cfg, seed=123)
    assert a.elevation == b.elevation
    assert a.vegetation == b.vegetation
    assert a.decisions == b.decisions
    pa = [(e.type, e.world_position, e.scale_y) for e in a.iter_entities()]
    pb = [(e.type, e.world_position, e.scale_y) for e in b.iter_entities()]
    assert pa == pb


def test_different_seed_different_world():
    cfg = small_config()
    a = generate_world(cfg, seed=1)
    b = generate_world(cfg, seed=2)
    assert a.elevation != b.elevation


def test_threaded_layers_do_not_change_output():
    a = generate_world(small_config(), seed=9)
    b = generate_world(small_config(workers=3), seed=9)
    assert a.decisions == b.decisions


def test_seed_from_config_or_generated():
    res = generate_world(small_config(seed=55))
    assert res.seed == 55
    auto = WorldAssembler().generate(small_config())
    assert isinstance(auto.seed, int)
    assert auto.config.seed == auto.seed


def test_states_and_layers():
    asm = WorldAssembler()
    assert asm.state is GenerationState.IDLE
    res = asm.generate(small_config(), seed=4)
    assert asm.state is GenerationState.DONE
    assert asm.result is res
    assert set(res.layers()) == {"elevation", "heat", "rain", "vegetation"}
    for layer in res.layers().values():
        assert layer.shape == (8, 12)
        assert 0.0 <= layer.min() <= layer.max() <= 1.0


def test_optional_layers_can_be_skipped():
    res = generate_world(small_config(build_heat=False, build_rain=False), seed=4)
    assert res.heat is None and res.rain is None
    assert set(res.layers()) == {"elevation", "vegetation"}


def test_every_cell_is_placed_once():
    res = generate_world(small_config(), seed=7)
    seen = set()
    for r in range(res.height):
        for c in range(res.width):
            top = res.entity_at(r, c)
            assert top.active
            assert top.grid_index == (r, c)
            assert top.type is res.decisions.at(r, c).type
            seen.add(top.grid_index)
    assert len(seen) == 96


def test_vegetation_stands_on_grass():
    res = generate_world(small_config(vegetation_threshold=0.0, placement_threshold=0.0), seed=3)
    veg = [e for e in res.iter_entities() if e.is_vegetation]
    assert veg
    for e in veg:
        assert e.type is EntityType.MAPLE_TREE
        assert e.category is EntityCategory.QUERCUS
        assert e.ground.type is EntityType.GRASS
        assert e.world_position[0] == e.ground.world_position[0]
        assert e.world_position[1] == pytest.approx(e.ground.world_position[1] + 1.25)


def test_neighbors_follow_grid():
    res = generate_world(small_config(), seed=5)
    assert res.entity_at(0, 0).neighbors == {(0, 1), (1, 0)}
    assert len(res.entity_at(3, 4).neighbors) == 6
    for (r, c), ns in res.adjacency.items():
        assert res.entity_at(r, c).neighbors == set(ns)
        for n in ns:
            assert (r, c) in res.adjacency[n]


def test_adjacency_respects_occupancy():
    adj = compute_adjacency(3, 3, occupied=lambda r, c: (r, c) != (1, 1))
    assert (1, 1) not in adj
    assert all((1, 1) not in ns for ns in adj.values())


def test_world_positions_spacing():
    cfg = small_config()
    res = generate_world(cfg, seed=8)
    x0, _, z0 = res.surface_at(2, 3).world_position
    x1, _, _ = res.surface_at(2, 4).world_position
    _, _, z1 = res.surface_at(3, 3).world_position
    assert x1 - x0 == pytest.approx(cfg.tile_width)
    assert z0 - z1 == pytest.approx(cfg.tile_length * 0.75)


def test_surface_heights_follow_type():
    cfg = small_config()
    res = generate_world(cfg, seed=12)
    for r in range(res.height):
        for c in range(res.width):
            s = res.surface_at(r, c)
            d = res.decisions.at(r, c)
            if s.type in (EntityType.WATER, EntityType.SAND):
                assert s.world_position[1] == -cfg.water_elevation
            else:
                assert s.world_position[1] == pytest.approx(d.elevation * cfg.elevation_step)


def test_regeneration_reuses_entities():
    pool = EntityPool()
    asm = WorldAssembler(pool=pool)
    first = asm.generate(small_config(), seed=21)
    first_ids = {id(e) for e in first.iter_entities()}
    allocated = {t: pool.allocated_count(t) for t in EntityType}
    second = asm.generate(small_config(), seed=21)
    assert {id(e) for e in second.iter_entities()} == first_ids
    assert {t: pool.allocated_count(t) for t in EntityType} == allocated
    assert len(pool) == 0


def test_first_run_warms_pool_exactly():
    pool = EntityPool()
    res = WorldAssembler(pool=pool).generate(small_config(), seed=2)
    counts = res.decisions.entity_counts()
    for t in EntityType:
        assert pool.allocated_count(t) == counts.get(t, 0)


def test_bad_config_keeps_previous_result():
    asm = WorldAssembler()
    good = asm.generate(small_config(), seed=1)
    bad = replace(small_config(), frequency=0.0)
    with pytest.raises(ConfigurationError):
        asm.generate(bad, seed=2)
    assert asm.result is good
    assert all(e.active for e in good.iter_entities())


def test_cancel_before_start():
    asm = WorldAssembler()
    good = asm.generate(small_config(), seed=1)
    ev = threading.Event()
    ev.set()
    with pytest.raises(GenerationCancelled):
        asm.generate(small_config(), seed=2, cancel=ev)
    assert asm.result is good
    assert asm.state is GenerationState.IDLE
    assert all(e.active for e in good.iter_entities())


def test_cancel_between_phases():
    calls = []

    def cancel():
        calls.append(1)
        return len(calls) >= 2

    asm = WorldAssembler()
    with pytest.raises(GenerationCancelled):
        asm.generate(small_config(), seed=2, cancel=cancel)
    assert asm.result is None
    assert len(calls) == 2


def test_uncancelled_run_matches_plain_run():
    ev = threading.Event()
    a = WorldAssembler().generate(small_config(), seed=31, cancel=ev)
    b = WorldAssembler().generate(small_config(), seed=31)
    assert a.decisions == b.decisions


@pytest.mark.parametrize("variant", ["value", "simplex", "voronoi", "worley"])
def test_all_variants_generate(variant):
    res = generate_world(small_config(noise_variant=variant, frequency=3.0), seed=6)
    assert sum(res.type_counts().values()) >= 96


def test_result_to_dict():
    res = generate_world(small_config(), seed=14)
    data = res.to_dict()
    assert data["summary"]["seed"] == 14
    assert len(data["cells"]) == 96
    assert data["config"]["noise_variant"] == "perlin"


def test_bad_seed_rejected_before_layers():
    asm = WorldAssembler()
    good = asm.generate(small_config(), seed=1)
    with pytest.raises(ConfigurationError):
        asm.generate(small_config(), seed="abc")
    assert asm.state is GenerationState.IDLE
    assert asm.result is good
    with pytest.raises(ConfigurationError):
        asm.generate(replace(small_config(), seed=2.5))
    assert asm.state is GenerationState.IDLE


def test_failure_mid_run_resets_state(monkeypatch):
    asm = WorldAssembler()
    good = asm.generate(small_config(), seed=1)

    def boom(*args, **kwargs):
        raise RuntimeError("layer failure")

    monkeypatch.setattr(asm, "build_layers", boom)
    with pytest.raises(RuntimeError):
        asm.generate(small_config(), seed=2)
    assert asm.state is GenerationState.IDLE
    assert asm.result is good


def test_numpy_seed_normalised(tmp_path):
    res = generate_world(small_config(), seed=np.int64(5))
    assert type(res.seed) is int
    assert type(res.config.seed) is int
    path = tmp_path / "world.json"
    result_to_json(res, path)
    assert json.loads(path.read_text(encoding="utf-8"))["summary"]["seed"] == 5


def test_adjacency_shared_with_entities():
    res = generate_world(small_config(), seed=3)
    for (r, c), ns in res.adjacency.items():
        assert res.entity_at(r, c).neighbors == set(ns)
        assert res.surface_at(r, c).neighbors == set(ns)
