"""Turns pose-carrying messages into a chain of stamped frame transforms."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from uuvsim.buoyancy import Pose

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]
Quaternion = tuple[float, float, float, float]

IDENTITY: Quaternion = (0.0, 0.0, 0.0, 1.0)

SUPPORTED_TYPES = (
    "nav_msgs/Odometry",
    "geometry_msgs/PoseStamped",
    "geometry_msgs/TransformStamped",
    "sensor_msgs/Imu",
)


def resolve(prefix: str, frame_id: str) -> str:
    """Qualify ``frame_id`` with ``prefix``; a leading slash marks an absolute frame."""
    if frame_id.startswith("/"):
        return frame_id.lstrip("/")
    if prefix:
        return f"{prefix.lstrip('/')}/{frame_id}"
    return frame_id


@dataclass
class FrameConfig:
    """Frame names and switches for the transforms that are produced."""

    frame_id: str = ""
    footprint_frame_id: str = "base_footprint"
    position_frame_id: str = ""
    stabilized_frame_id: str = "base_stabilized"
    child_frame_id: str = ""
    publish_roll_pitch: bool = True
    tf_prefix: str = ""


@dataclass(frozen=True)
class StampedTransform:
    """A transform from ``frame_id`` to ``child_frame_id``; rotation is (x, y, z, w)."""

    stamp: Any
    frame_id: str
    child_frame_id: str
    translation: Vector3
    rotation: Quaternion


def _xyz(values: Mapping[str, Any]) -> Vector3:
    return (float(values["x"]), float(values["y"]), float(values["z"]))


def _quaternion(values: Mapping[str, Any]) -> Quaternion:
    return (float(values["x"]), float(values["y"]), float(values["z"]), float(values["w"]))


def _euler(orientation: Quaternion) -> tuple[float, float, float]:
    x, y, z, w = orientation
    return Pose(rotation=(w, x, y, z)).euler()


def _from_rpy(roll: float, pitch: float, yaw: float) -> Quaternion:
    w, x, y, z = Pose.from_euler(roll, pitch, yaw).rotation
    return (x, y, z, w)


def _quaternion_dict(q: Quaternion) -> dict[str, float]:
    return {"x": q[0], "y": q[1], "z": q[2], "w": q[3]}


class TransformBridge:
    """Converts odometry, pose, transform and IMU messages into transforms.

    Messages are mappings shaped like their ROS counterparts. Transforms go to
    ``broadcast``; pose and Euler-angle messages go to the optional publishers.
    """

    def __init__(
        self,
        config: FrameConfig | None = None,
        broadcast: Callable[[list[StampedTransform]], None] | None = None,
        publish_pose: Callable[[dict[str, Any]], None] | None = None,
        publish_euler: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.config = config or FrameConfig()
        self.broadcast = broadcast
        self.publish_pose = publish_pose
        self.publish_euler = publish_euler

    def _resolve(self, frame_id: str) -> str:
        return resolve(self.config.tf_prefix, frame_id)

    def _child(self, child_frame_id: str = "") -> str:
        return self.config.child_frame_id or child_frame_id or "base_link"

    def _send(self, transforms: list[StampedTransform]) -> None:
        if self.broadcast is not None:
            self.broadcast(transforms)

    def _send_pose(
        self, pose: Mapping[str, Any], header: Mapping[str, Any], child_frame_id: str = ""
    ) -> list[StampedTransform]:
        cfg = self.config
        stamp = header.get("stamp")
        frame = self._resolve(cfg.frame_id or str(header.get("frame_id", "")))
        child = self._child(child_frame_id)

        orientation = _quaternion(pose["orientation"])
        roll, pitch, yaw = _euler(orientation)
        x, y, z = _xyz(pose["position"])
        transforms: list[StampedTransform] = []

        if cfg.position_frame_id and child != cfg.position_frame_id:
            transforms.append(
                StampedTransform(stamp, frame, self._resolve(cfg.position_frame_id), (x, y, z), IDENTITY)
            )

        if cfg.footprint_frame_id and child != cfg.footprint_frame_id:
            footprint = self._resolve(cfg.footprint_frame_id)
            transforms.append(StampedTransform(stamp, frame, footprint, (x, y, 0.0), _from_rpy(0.0, 0.0, yaw)))
            yaw = 0.0
            x = y = 0.0
            frame = footprint

        # The stabilized frame is only added together with a footprint frame.
        if cfg.footprint_frame_id and child != cfg.stabilized_frame_id:
            stabilized = self._resolve(cfg.stabilized_frame_id)
            transforms.append(StampedTransform(stamp, frame, stabilized, (0.0, 0.0, z), IDENTITY))
            z = 0.0
            frame = stabilized

        if cfg.publish_roll_pitch:
            transforms.append(
                StampedTransform(stamp, frame, self._resolve(child), (x, y, z), _from_rpy(roll, pitch, yaw))
            )

        self._send(transforms)

        if self.publish_pose is not None:
            self.publish_pose({"header": dict(header), "pose": pose})
        if self.publish_euler is not None:
            self.publish_euler(
                {"header": dict(header), "vector": {"x": roll, "y": pitch, "z": yaw}}
            )
        return transforms

    def handle_odometry(self, odometry: Mapping[str, Any]) -> list[StampedTransform]:
        """Handle a nav_msgs/Odometry-shaped message."""
        return self._send_pose(
            odometry["pose"]["pose"], odometry["header"], str(odometry.get("child_frame_id", ""))
        )

    def handle_pose(self, pose: Mapping[str, Any]) -> list[StampedTransform]:
        """Handle a geometry_msgs/PoseStamped-shaped message."""
        return self._send_pose(pose["pose"], pose["header"])

    def handle_transform(self, transform: Mapping[str, Any]) -> list[StampedTransform]:
        """Handle a geometry_msgs/TransformStamped-shaped message."""
        body = transform["transform"]
        pose = {"position": body["translation"], "orientation": body["rotation"]}
        return self._send_pose(pose, transform["header"])

    def handle_imu(self, imu: Mapping[str, Any]) -> list[StampedTransform]:
        """Handle a sensor_msgs/Imu-shaped message: only roll and pitch are used."""
        cfg = self.config
        stamp = imu["header"].get("stamp")
        frame = self._resolve(cfg.stabilized_frame_id)
        child = self._child()

        roll, pitch, _ = _euler(_quaternion(imu["orientation"]))
        roll_pitch = _from_rpy(roll, pitch, 0.0)

        transforms: list[StampedTransform] = []
        if cfg.publish_roll_pitch:
            transforms.append(
                StampedTransform(stamp, frame, self._resolve(child), (0.0, 0.0, 0.0), roll_pitch)
            )
        if transforms:
            self._send(transforms)

        if self.publish_pose is not None:
            self.publish_pose(
                {
                    "header": {"stamp": stamp, "frame_id": cfg.stabilized_frame_id},
                    "pose": {
                        "position": {"x": 0.0, "y": 0.0, "z": 0.0},
                        "orientation": _quaternion_dict(roll_pitch),
                    },
                }
            )
        return transforms

    def handle(self, message_type: str, message: Mapping[str, Any]) -> list[StampedTransform]:
        """Dispatch ``message`` by its type name; raise ValueError for unsupported types."""
        handlers = {
            "nav_msgs/Odometry": self.handle_odometry,
            "geometry_msgs/PoseStamped": self.handle_pose,
            "sensor_msgs/Imu": self.handle_imu,
            "geometry_msgs/TransformStamped": self.handle_transform,
        }
        try:
            handler = handlers[message_type]
        except KeyError:
            raise ValueError(
                f"received a {message_type} message. Supported message types: "
                + " ".join(SUPPORTED_TYPES)
            ) from None
        return handler(message)