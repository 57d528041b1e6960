import math
from dataclasses import dataclass, field

import numpy as np
import pytest

from uuvsim.buoyancy import RESTORING_FORCE, BoundingBox, BuoyantObject, Pose


@dataclass
class FakeLink:
    name: str = "body"
    mass: float = 10.0
    bounding_box: BoundingBox = field(default_factory=lambda: BoundingBox.centered(1.0, 1.0, 2.0))
    world_pose: Pose = field(default_factory=Pose)
    forces_at: list = field(default_factory=list)
    forces: list = field(default_factory=list)
    torques: list = field(default_factory=list)

    def add_force_at_relative_position(self, force, position):
        self.forces_at.append((np.array(force), np.array(position)))

    def add_force(self, force):
        self.forces.append(np.array(force))

    def add_relative_torque(self, torque):
        self.torques.append(np.array(torque))


def make_object(**link_kwargs):
    obj = BuoyantObject(FakeLink(**link_kwargs))
    obj.volume = 0.5
    return obj


def test_defaults_from_source():
    obj = BuoyantObject(FakeLink())
    assert obj.fluid_density == 1028.0
    assert obj.gravity == 9.81
    assert obj.volume == 0.0
    assert obj.bounding_box.z_length == 2.0


@pytest.mark.parametrize("attribute", ["volume", "fluid_density", "gravity"])
def test_non_positive_values_rejected(attribute):
    obj = BuoyantObject(FakeLink())
    before = getattr(obj, attribute)
    with pytest.raises(ValueError):
        setattr(obj, attribute, 0.0)
    assert getattr(obj, attribute) == before


def test_effective_volume_scaling_and_clamp():
    obj = make_object()
    assert obj.effective_volume == pytest.approx(obj.volume)
    obj.offset_volume = -5.0
    assert obj.effective_volume == 0.0


def test_fully_submerged_force():
    obj = make_object()
    force, torque = obj.buoyancy_force(Pose((0.0, 0.0, -5.0)))
    expected = obj.effective_volume * obj.fluid_density * obj.gravity
    assert force == pytest.approx([0.0, 0.0, expected])
    assert torque == pytest.approx([0.0, 0.0, 0.0])
    assert obj.is_submerged is True


def test_partially_submerged_less_than_full():
    obj = make_object()
    full, _ = obj.buoyancy_force(Pose((0.0, 0.0, -5.0)))
    partial, _ = obj.buoyancy_force(Pose((0.0, 0.0, -0.5)))
    assert 0.0 < partial[2] < full[2]
    assert obj.is_submerged is False
    deeper, _ = obj.buoyancy_force(Pose((0.0, 0.0, -0.8)))
    assert partial[2] < deeper[2]


def test_above_surface_no_force():
    obj = make_object()
    force, _ = obj.buoyancy_force(Pose((0.0, 0.0, 1.0)))
    assert force == pytest.approx([0.0, 0.0, 0.0])


def test_neutrally_buoyant_balances_weight():
    obj = make_object()
    obj.set_neutrally_buoyant()
    assert obj.neutrally_buoyant is True
    assert obj.volume == pytest.approx(obj.link.mass / obj.fluid_density)
    force, _ = obj.buoyancy_force(Pose((0.0, 0.0, -5.0)))
    assert force[2] == pytest.approx(obj.link.mass * obj.gravity)


def surface_vessel():
    obj = make_object()
    obj.is_surface_vessel = True
    obj.metacentric_width = 0.3
    obj.metacentric_length = 0.7
    obj.submerged_height = 0.2
    return obj


def test_surface_vessel_out_of_water():
    obj = surface_vessel()
    force, torque = obj.buoyancy_force(Pose((0.0, 0.0, 3.0)))
    assert force == pytest.approx([0.0, 0.0, 0.0])
    assert torque == pytest.approx([0.0, 0.0, 0.0])


def test_surface_vessel_restoring_torque():
    obj = surface_vessel()
    level, level_torque = obj.buoyancy_force(Pose((0.0, 0.0, 0.0)))
    assert level[2] > 0.0
    assert level_torque == pytest.approx([0.0, 0.0, 0.0])
    roll, pitch = 0.1, -0.05
    force, torque = obj.buoyancy_force(Pose.from_euler(roll, pitch, 0.0))
    assert torque[0] == pytest.approx(-obj.metacentric_width * math.sin(roll) * force[2])
    assert torque[1] == pytest.approx(-obj.metacentric_length * math.sin(pitch) * force[2])
    assert obj.water_level_plane_area == pytest.approx(
        obj.link.mass / (obj.fluid_density * obj.submerged_height)
    )


def test_surface_vessel_negative_submerged_height_rejected():
    obj = surface_vessel()
    obj.submerged_height = -0.2
    with pytest.raises(ValueError):
        obj.buoyancy_force(Pose())


def test_store_vector_only_in_debug_mode():
    obj = make_object()
    obj.set_store_vector(RESTORING_FORCE)
    obj.buoyancy_force(Pose((0.0, 0.0, -5.0)))
    assert obj.stored_vector(RESTORING_FORCE) == pytest.approx([0.0, 0.0, 0.0])

    obj.debug_flag = True
    obj.set_store_vector(RESTORING_FORCE)
    force, _ = obj.buoyancy_force(Pose((0.0, 0.0, -5.0)))
    assert obj.stored_vector(RESTORING_FORCE) == pytest.approx(force)


def test_store_vector_ignores_unregistered_tag():
    obj = make_object()
    obj.debug_flag = True
    obj.store_vector("other", [1.0, 2.0, 3.0])
    assert obj.stored_vector("other") == pytest.approx([0.0, 0.0, 0.0])


def test_apply_submerged_force_at_center_of_buoyancy():
    link = FakeLink(world_pose=Pose((0.0, 0.0, -5.0)))
    obj = BuoyantObject(link)
    obj.volume = 0.5
    obj.center_of_buoyancy = (0.1, 0.0, 0.2)
    force, _ = obj.apply_buoyancy_force()
    assert len(link.forces_at) == 1
    applied, position = link.forces_at[0]
    assert applied == pytest.approx(force)
    assert position == pytest.approx([0.1, 0.0, 0.2])
    assert link.forces == []


def test_apply_surface_vessel_uses_force_and_torque():
    link = FakeLink(world_pose=Pose.from_euler(0.1, 0.0, 0.0))
    obj = BuoyantObject(link)
    obj.is_surface_vessel = True
    obj.metacentric_width = 0.3
    obj.submerged_height = 0.2
    force, torque = obj.apply_buoyancy_force()
    assert link.forces[0] == pytest.approx(force)
    assert link.torques[0] == pytest.approx(torque)
    assert link.forces_at == []


def test_pose_rotation_round_trip():
    pose = Pose.from_euler(0.3, -0.2, 1.1)
    vector = np.array([1.0, -2.0, 0.5])
    assert pose.rotate_vector_reverse(pose.rotate_vector(vector)) == pytest.approx(vector)


def test_pose_yaw_quarter_turn():
    pose = Pose.from_euler(0.0, 0.0, math.pi / 2)
    assert pose.rotate_vector([1.0, 0.0, 0.0]) == pytest.approx([0.0, 1.0, 0.0], abs=1e-12)


def test_pose_euler_round_trip():
    angles = (0.3, -0.2, 1.1)
    assert Pose.from_euler(*angles).euler() == pytest.approx(angles)


def test_bounding_box_lengths():
    box = BoundingBox((-1.0, -2.0, -3.0), (1.0, 2.0, 3.0))
    assert (box.x_length, box.y_length, box.z_length) == (2.0, 4.0, 6.0)