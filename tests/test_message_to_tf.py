import math

import pytest

from uuvsim.buoyancy import Pose
from uuvsim.message_to_tf import FrameConfig, StampedTransform, TransformBridge, resolve


def quat(roll=0.0, pitch=0.0, yaw=0.0):
    w, x, y, z = Pose.from_euler(roll, pitch, yaw).rotation
    return {"x": x, "y": y, "z": z, "w": w}


def euler_of(rotation):
    x, y, z, w = rotation
    return Pose(rotation=(w, x, y, z)).euler()


def pose_msg(position=(0.0, 0.0, 0.0), roll=0.0, pitch=0.0, yaw=0.0):
    return {
        "position": {"x": position[0], "y": position[1], "z": position[2]},
        "orientation": quat(roll, pitch, yaw),
    }


def odometry(position=(0.0, 0.0, 0.0), roll=0.0, pitch=0.0, yaw=0.0, child="base_link"):
    return {
        "header": {"stamp": 7, "frame_id": "odom"},
        "child_frame_id": child,
        "pose": {"pose": pose_msg(position, roll, pitch, yaw)},
    }


class Recorder:
    def __init__(self):
        self.items = []

    def __call__(self, item):
        self.items.append(item)


def make_bridge(**config):
    sent, poses, eulers = Recorder(), Recorder(), Recorder()
    bridge = TransformBridge(FrameConfig(**config), sent, poses, eulers)
    return bridge, sent, poses, eulers


def test_resolve_without_prefix_keeps_frame():
    assert resolve("", "base_link") == "base_link"


def test_resolve_with_prefix():
    assert resolve("/robot", "base_link") == "robot/base_link"
    assert resolve("robot", "base_link") == resolve("/robot", "base_link")


def test_resolve_absolute_frame_ignores_prefix():
    assert resolve("robot", "/odom") == "odom"


def test_odometry_builds_frame_chain():
    bridge, sent, _, _ = make_bridge()
    transforms = bridge.handle_odometry(odometry())
    assert [t.child_frame_id for t in transforms] == ["base_footprint", "base_stabilized", "base_link"]
    assert [t.frame_id for t in transforms] == ["odom", "base_footprint", "base_stabilized"]
    assert all(t.stamp == 7 for t in transforms)
    assert sent.items == [transforms]


def test_position_and_yaw_are_split_over_frames():
    bridge, _, _, _ = make_bridge()
    footprint, stabilized, base = bridge.handle_odometry(
        odometry(position=(1.0, 2.0, 3.0), roll=0.1, pitch=0.2, yaw=0.5)
    )
    assert footprint.translation == pytest.approx((1.0, 2.0, 0.0))
    assert euler_of(footprint.rotation) == pytest.approx((0.0, 0.0, 0.5))
    assert stabilized.translation == pytest.approx((0.0, 0.0, 3.0))
    assert stabilized.rotation == (0.0, 0.0, 0.0, 1.0)
    assert base.translation == pytest.approx((0.0, 0.0, 0.0))
    assert euler_of(base.rotation) == pytest.approx((0.1, 0.2, 0.0))


def test_euler_message_reports_zero_yaw_with_footprint():
    bridge, _, poses, eulers = make_bridge()
    message = odometry(roll=0.1, pitch=0.2, yaw=0.3)
    bridge.handle_odometry(message)
    vector = eulers.items[-1]["vector"]
    assert (vector["x"], vector["y"], vector["z"]) == pytest.approx((0.1, 0.2, 0.0))
    assert poses.items[-1]["pose"] == message["pose"]["pose"]
    assert poses.items[-1]["header"]["frame_id"] == "odom"


def test_child_equal_to_footprint_skips_footprint_transform():
    bridge, _, _, _ = make_bridge()
    transforms = bridge.handle_odometry(odometry(position=(1.0, 2.0, 3.0), child="base_footprint"))
    assert [t.child_frame_id for t in transforms] == ["base_stabilized", "base_footprint"]
    assert transforms[0].translation == pytest.approx((0.0, 0.0, 3.0))
    assert transforms[1].translation[:2] == pytest.approx((1.0, 2.0))


def test_without_roll_pitch_no_base_link_transform():
    bridge, _, _, _ = make_bridge(publish_roll_pitch=False)
    transforms = bridge.handle_odometry(odometry())
    assert "base_link" not in [t.child_frame_id for t in transforms]
    assert len(transforms) == 2


def test_frame_override_and_prefix():
    bridge, _, _, _ = make_bridge(frame_id="world", tf_prefix="robot")
    transforms = bridge.handle_odometry(odometry())
    assert transforms[0].frame_id == resolve("robot", "world")
    assert transforms[-1].child_frame_id == resolve("robot", "base_link")


def test_position_frame_gets_full_translation():
    bridge, _, _, _ = make_bridge(position_frame_id="base_position")
    transforms = bridge.handle_odometry(odometry(position=(1.0, 2.0, 3.0), yaw=0.4))
    first = transforms[0]
    assert first.child_frame_id == "base_position"
    assert first.translation == pytest.approx((1.0, 2.0, 3.0))
    assert first.rotation == (0.0, 0.0, 0.0, 1.0)
    assert len(transforms) == 4


def test_pose_and_transform_messages_match():
    bridge, _, _, _ = make_bridge()
    header = {"stamp": 1, "frame_id": "odom"}
    pose = pose_msg((1.0, -2.0, 0.5), 0.05, -0.1, 1.0)
    from_pose = bridge.handle_pose({"header": header, "pose": pose})
    transform = {
        "header": header,
        "child_frame_id": "ignored",
        "transform": {"translation": pose["position"], "rotation": pose["orientation"]},
    }
    from_transform = bridge.handle("geometry_msgs/TransformStamped", transform)
    assert from_pose == from_transform


def test_imu_publishes_roll_pitch_only():
    bridge, sent, poses, _ = make_bridge()
    imu = {"header": {"stamp": 3, "frame_id": "imu"}, "orientation": quat(0.1, -0.2, 1.2)}
    transforms = bridge.handle("sensor_msgs/Imu", imu)
    assert len(transforms) == 1
    only = transforms[0]
    assert isinstance(only, StampedTransform)
    assert (only.frame_id, only.child_frame_id) == ("base_stabilized", "base_link")
    assert euler_of(only.rotation) == pytest.approx((0.1, -0.2, 0.0))
    assert sent.items == [transforms]
    published = poses.items[-1]
    assert published["header"] == {"stamp": 3, "frame_id": "base_stabilized"}
    q = published["pose"]["orientation"]
    assert euler_of((q["x"], q["y"], q["z"], q["w"])) == pytest.approx((0.1, -0.2, 0.0))


def test_imu_without_roll_pitch_broadcasts_nothing():
    bridge, sent, poses, _ = make_bridge(publish_roll_pitch=False)
    imu = {"header": {"stamp": 3}, "orientation": quat(0.1, 0.2, 0.3)}
    assert bridge.handle_imu(imu) == []
    assert sent.items == []
    assert len(poses.items) == 1


def test_unit_quaternion_outputs():
    bridge, _, _, _ = make_bridge()
    for t in bridge.handle_odometry(odometry(roll=0.3, pitch=-0.4, yaw=2.0)):
        assert math.isclose(sum(c * c for c in t.rotation), 1.0, rel_tol=1e-9)


def test_unsupported_message_type_raises():
    bridge, _, _, _ = make_bridge()
    with pytest.raises(ValueError):
        bridge.handle("std_msgs/String", {})