"""
Tests for the sparse block registry.
"""

import numpy as np
import pytest

from errors import MeshLoadError
from mesh import unit_cube
from world import INSTANCE_FLOATS, World


def test_place_then_contains():
    world = World()
    for c in [(0, 0, 0), (-3, 7, 2), (100, -1, 5)]:
        world.place(c)
        assert world.contains(c)


def test_destroy_then_not_contains():
    world = World()
    world.place((1, 2, 3))
    assert world.destroy((1, 2, 3)) is True
    assert not world.contains((1, 2, 3))


def test_destroy_absent_is_noop():
    world = World()
    world.place((0, 0, 0))
    world.place((2, 0, 0))
    before = sorted(world.coords())

    assert world.destroy((5, 5, 5)) is False
    assert sorted(world.coords()) == before
    assert world.block_count == 2


def test_place_occupied_overwrites():
    world = World()
    world.place((4, 0, 4))
    first = world.get((4, 0, 4))
    world.place((4, 0, 4))

    assert world.block_count == 1
    assert world.get((4, 0, 4)) is not first
    np.testing.assert_array_equal(world.get((4, 0, 4)).position, [4.0, 0.0, 4.0])


def test_block_has_identity_orientation():
    world = World()
    world.place((1, 2, 3))
    block = world.get((1, 2, 3))
    assert block.rotation == (1.0, 0.0, 0.0, 0.0)
    np.testing.assert_allclose(block.normal_matrix(), np.eye(3))


def test_ground_plane_scenario():
    world = World()
    world.populate_ground(100, 2)

    assert world.block_count == 100 * 100
    assert world.contains((0, 0, 0))
    assert world.contains((198, 0, 198))
    assert not world.contains((1, 0, 0))
    assert not world.contains((200, 0, 0))


def test_blocks_snapshot_is_detached():
    world = World()
    world.place((0, 0, 0))
    snap = world.blocks()
    snap.clear()
    assert world.block_count == 1


def test_instance_data_layout():
    world = World()
    world.place((3, -2, 7))
    data = world.get_instance_data()

    assert data.shape == (1, INSTANCE_FLOATS)
    assert data.dtype == np.float32
    # column-major model matrix: translation lives in the last column
    np.testing.assert_allclose(data[0, 12:15], [3.0, -2.0, 7.0])
    assert data[0, 15] == 1.0
    np.testing.assert_allclose(data[0, 16:].reshape(3, 3), np.eye(3))


def test_instance_data_cached_until_mutation():
    world = World()
    world.place((0, 0, 0))
    first = world.get_instance_data()
    assert world.get_instance_data() is first
    assert not world.is_dirty

    world.destroy((0, 0, 0))
    assert world.is_dirty
    second = world.get_instance_data()
    assert second is not first
    assert second.shape == (0, INSTANCE_FLOATS)


def test_create_loads_mesh_and_ground():
    world = World.create(lambda name: unit_cube(), "cube", extent=3, spacing=2)
    assert world.mesh.name == "cube"
    assert world.block_count == 9
    assert world.contains((4, 0, 4))


def test_create_propagates_mesh_failure():
    def broken(name):
        raise MeshLoadError(f"no such mesh: {name}")

    with pytest.raises(MeshLoadError):
        World.create(broken, "missing")


def test_vectorised_instances_match_per_block_packing():
    world = World()
    for c in [(0, 0, 0), (2, 4, -6), (-1, 0, 9)]:
        world.place(c)
    data = world.get_instance_data()
    expected = np.array([b.to_instance() for b in world.blocks()])
    np.testing.assert_allclose(data, expected)
