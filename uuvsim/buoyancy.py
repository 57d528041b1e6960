"""Hydrostatic restoring forces for submerged bodies and surface vessels."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

import numpy as np

logger = logging.getLogger(__name__)

RESTORING_FORCE = "restoring"

DEFAULT_FLUID_DENSITY = 1028.0
DEFAULT_GRAVITY = 9.81


def _vector3(values: Sequence[float]) -> tuple[float, float, float]:
    x, y, z = (float(v) for v in values)
    return (x, y, z)


@dataclass(frozen=True)
class Pose:
    """A position and a unit quaternion rotation given as (w, x, y, z)."""

    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _vector3(self.position))
        w, x, y, z = (float(v) for v in self.rotation)
        norm = math.sqrt(w * w + x * x + y * y + z * z)
        if norm == 0.0:
            raise ValueError("rotation quaternion must not be zero")
        object.__setattr__(self, "rotation", (w / norm, x / norm, y / norm, z / norm))

    @classmethod
    def from_euler(
        cls,
        roll: float,
        pitch: float,
        yaw: float,
        position: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> "Pose":
        """Build a pose from roll, pitch and yaw angles in radians."""
        cr, sr = math.cos(roll / 2), math.sin(roll / 2)
        cp, sp = math.cos(pitch / 2), math.sin(pitch / 2)
        cy, sy = math.cos(yaw / 2), math.sin(yaw / 2)
        rotation = (
            cr * cp * cy + sr * sp * sy,
            sr * cp * cy - cr * sp * sy,
            cr * sp * cy + sr * cp * sy,
            cr * cp * sy - sr * sp * cy,
        )
        return cls(_vector3(position), rotation)

    @property
    def matrix(self) -> np.ndarray:
        """The 3x3 rotation matrix of the pose."""
        w, x, y, z = self.rotation
        return np.array(
            [
                [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
                [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
                [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
            ]
        )

    def rotate_vector(self, vector: Sequence[float]) -> np.ndarray:
        """Rotate ``vector`` from the body frame into the world frame."""
        return self.matrix @ np.asarray(vector, dtype=float)

    def rotate_vector_reverse(self, vector: Sequence[float]) -> np.ndarray:
        """Rotate ``vector`` from the world frame into the body frame."""
        return self.matrix.T @ np.asarray(vector, dtype=float)

    def euler(self) -> tuple[float, float, float]:
        """Return (roll, pitch, yaw) in radians."""
        w, x, y, z = self.rotation
        roll = math.atan2(2 * (w * x + y * z), 1 - 2 * (x * x + y * y))
        sin_pitch = max(-1.0, min(1.0, 2 * (w * y - z * x)))
        pitch = math.asin(sin_pitch)
        yaw = math.atan2(2 * (w * z + x * y), 1 - 2 * (y * y + z * z))
        return roll, pitch, yaw


@dataclass(frozen=True)
class BoundingBox:
    """An axis-aligned box given by its two opposite corners."""

    min: tuple[float, float, float] = (0.0, 0.0, 0.0)
    max: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "min", _vector3(self.min))
        object.__setattr__(self, "max", _vector3(self.max))

    @classmethod
    def centered(cls, x_length: float, y_length: float, z_length: float) -> "BoundingBox":
        """A box of the given side lengths centred on the origin."""
        half = (x_length / 2, y_length / 2, z_length / 2)
        return cls(tuple(-h for h in half), half)

    @property
    def x_length(self) -> float:
        return abs(self.max[0] - self.min[0])

    @property
    def y_length(self) -> float:
        return abs(self.max[1] - self.min[1])

    @property
    def z_length(self) -> float:
        return abs(self.max[2] - self.min[2])


class BuoyantLink(Protocol):
    """The rigid body the restoring forces act on."""

    name: str
    mass: float
    bounding_box: BoundingBox

    @property
    def world_pose(self) -> Pose: ...

    def add_force_at_relative_position(self, force: np.ndarray, position: np.ndarray) -> None: ...

    def add_force(self, force: np.ndarray) -> None: ...

    def add_relative_torque(self, torque: np.ndarray) -> None: ...


@dataclass(eq=False)
class BuoyantObject:
    """Computes and applies buoyancy for a link in a fluid whose surface is at z = 0."""

    link: BuoyantLink
    bounding_box: BoundingBox | None = None
    debug_flag: bool = False
    is_submerged: bool = True
    neutrally_buoyant: bool = False
    metacentric_width: float = 0.0
    metacentric_length: float = 0.0
    water_level_plane_area: float = 0.0
    submerged_height: float = 0.0
    is_surface_vessel: bool = False
    is_surface_vessel_floating: bool = False
    scaling_volume: float = 1.0
    offset_volume: float = 0.0
    _volume: float = field(default=0.0, init=False, repr=False)
    _fluid_density: float = field(default=DEFAULT_FLUID_DENSITY, init=False, repr=False)
    _gravity: float = field(default=DEFAULT_GRAVITY, init=False, repr=False)
    _center_of_buoyancy: np.ndarray = field(default_factory=lambda: np.zeros(3), init=False, repr=False)
    hydro_wrench: dict[str, np.ndarray] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.link is None:
            raise ValueError("Invalid link")
        if self.bounding_box is None:
            self.bounding_box = self.link.bounding_box

    @property
    def volume(self) -> float:
        """The nominal displaced volume."""
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        if not value > 0:
            raise ValueError("Invalid input volume")
        self._volume = float(value)

    @property
    def effective_volume(self) -> float:
        """The scaled and offset volume, never negative."""
        return max(0.0, self.scaling_volume * (self._volume + self.offset_volume))

    @property
    def fluid_density(self) -> float:
        return self._fluid_density

    @fluid_density.setter
    def fluid_density(self, value: float) -> None:
        if not value > 0:
            raise ValueError("Fluid density must be a positive value")
        self._fluid_density = float(value)

    @property
    def gravity(self) -> float:
        return self._gravity

    @gravity.setter
    def gravity(self, value: float) -> None:
        if not value > 0:
            raise ValueError("Acceleration of gravity must be positive")
        self._gravity = float(value)

    @property
    def center_of_buoyancy(self) -> np.ndarray:
        return self._center_of_buoyancy.copy()

    @center_of_buoyancy.setter
    def center_of_buoyancy(self, value: Sequence[float]) -> None:
        self._center_of_buoyancy = np.array(_vector3(value))

    def set_neutrally_buoyant(self) -> None:
        """Choose the volume so that buoyancy cancels the link's weight."""
        self.neutrally_buoyant = True
        self._volume = self.link.mass / self._fluid_density
        logger.info("%s is neutrally buoyant", self.link.name)

    def buoyancy_force(self, pose: Pose) -> tuple[np.ndarray, np.ndarray]:
        """Return the (force, torque) of buoyancy for the link at ``pose``."""
        box = self.bounding_box
        height = box.z_length
        z = pose.position[2]
        mass = self.link.mass
        force = np.zeros(3)
        torque = np.zeros(3)

        if not self.is_surface_vessel:
            volume = 0.0
            if z + height / 2 > 0 and z < 0:
                self.is_submerged = False
                volume = self.effective_volume * (abs(z) + height / 2) / height
            elif z + height / 2 < 0:
                self.is_submerged = True
                volume = self.effective_volume

            if not self.neutrally_buoyant or volume != self._volume:
                force = np.array([0.0, 0.0, volume * self._fluid_density * self._gravity])
            else:
                force = np.array([0.0, 0.0, mass * self._gravity])
        else:
            # Linear (small angle) theory for box-shaped vessels.
            if self.water_level_plane_area <= 0:
                self.water_level_plane_area = box.x_length * box.y_length
                logger.info("%s::waterLevelPlaneArea = %s", self.link.name, self.water_level_plane_area)

            denominator = self._fluid_density * self.submerged_height
            if denominator != 0:
                area = mass / denominator
            else:
                area = math.inf if mass > 0 else math.nan
            self.water_level_plane_area = area
            if not area > 0.0:
                raise ValueError("Water level plane area must be greater than zero")

            if z > height / 2.0:
                return np.zeros(3), np.zeros(3)
            if z < -height / 2.0:
                submerged = box.z_length
            else:
                submerged = height / 2.0 - z

            volume = submerged * area
            force = np.array([0.0, 0.0, volume * self._fluid_density * self._gravity])
            roll, pitch, _ = pose.euler()
            torque = np.array(
                [
                    -self.metacentric_width * math.sin(roll) * force[2],
                    -self.metacentric_length * math.sin(pitch) * force[2],
                    0.0,
                ]
            )

        self.store_vector(RESTORING_FORCE, force)
        return force, torque

    def apply_buoyancy_force(self) -> tuple[np.ndarray, np.ndarray]:
        """Apply buoyancy at the link's current pose and return (force, torque)."""
        force, torque = self.buoyancy_force(self.link.world_pose)
        if math.isnan(float(np.linalg.norm(force))):
            raise ValueError("Buoyancy force is invalid")
        if math.isnan(float(np.linalg.norm(torque))):
            raise ValueError("Buoyancy torque is invalid")
        if not self.is_surface_vessel:
            self.link.add_force_at_relative_position(force, self.center_of_buoyancy)
        else:
            self.link.add_force(force)
            self.link.add_relative_torque(torque)
        return force, torque

    def set_store_vector(self, tag: str) -> None:
        """Start recording the vector named ``tag`` (debug mode only)."""
        if not self.debug_flag:
            return
        self.hydro_wrench.setdefault(tag, np.zeros(3))

    def stored_vector(self, tag: str) -> np.ndarray:
        """Return the recorded vector ``tag``, or zeros if it is not recorded."""
        if not self.debug_flag or tag not in self.hydro_wrench:
            return np.zeros(3)
        return self.hydro_wrench[tag].copy()

    def store_vector(self, tag: str, vector: Sequence[float]) -> None:
        """Record ``vector`` under ``tag`` if that tag is being recorded."""
        if not self.debug_flag:
            return
        if tag in self.hydro_wrench:
            self.hydro_wrench[tag] = np.array(_vector3(vector))