"""Control fin: drives its joint through fin dynamics and applies lift and drag."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import numpy as np

from uuvsim.buoyancy import Pose
from uuvsim.dynamics import Dynamics, create_dynamics
from uuvsim.liftdrag import LiftDrag, create_lift_drag

logger = logging.getLogger(__name__)

_UNIT_Z = np.array([0.0, 0.0, 1.0])


class FinLink(Protocol):
    """The fin body the lift and drag act on."""

    @property
    def world_pose(self) -> Pose: ...

    @property
    def world_linear_vel(self) -> Sequence[float]: ...

    def add_relative_force(self, force: np.ndarray) -> None: ...


class FinJoint(Protocol):
    """The joint that sets the fin angle."""

    def upper_limit(self, index: int) -> float: ...

    def lower_limit(self, index: int) -> float: ...

    def set_position(self, index: int, position: float) -> None: ...


class Fin:
    """A fin whose angle follows its command through a dynamics model."""

    def __init__(
        self,
        dynamics: Dynamics,
        lift_drag: LiftDrag,
        link: FinLink,
        joint: FinJoint,
        *,
        fin_id: int = -1,
        input_topic: str = "",
        output_topic: str = "",
        current_velocity_topic: str = "",
    ) -> None:
        if link is None:
            raise ValueError("link is invalid")
        if joint is None:
            raise ValueError("joint is invalid")
        self.dynamics = dynamics
        self.lift_drag = lift_drag
        self.link = link
        self.joint = joint
        self.fin_id = fin_id
        self.input_topic = input_topic
        self.output_topic = output_topic
        self.current_velocity_topic = current_velocity_topic
        self.input_command = 0.0
        self.angle = 0.0
        self.angle_stamp: float | None = None
        self.current_velocity = np.zeros(3)
        self.fin_force = np.zeros(3)

    @classmethod
    def from_config(cls, config: Mapping[str, Any], link: FinLink, joint: FinJoint) -> "Fin":
        """Build a fin from its configuration elements."""
        if "fin_id" not in config:
            raise ValueError("Could not find fin_id parameter.")
        fin_id = int(config["fin_id"])
        if fin_id < 0:
            raise ValueError("Fin ID must be greater or equal than zero")

        prefix = f"/{config.get('model_name', '')}/fins/{fin_id}/"
        input_topic = str(config.get("input_topic", prefix + "input"))
        output_topic = str(config.get("output_topic", prefix + "output"))

        if "dynamics" not in config:
            raise ValueError("Could not find dynamics.")
        if "liftdrag" not in config:
            raise ValueError("Could not find liftdrag")
        if "current_velocity_topic" not in config:
            raise ValueError("Could not find current_velocity_topic.")
        current_topic = str(config["current_velocity_topic"])
        if not current_topic:
            raise ValueError("Fluid velocity topic tag cannot be empty")
        logger.info("Subscribing to current velocity topic: %s", current_topic)

        return cls(
            create_dynamics(config["dynamics"]),
            create_lift_drag(config["liftdrag"]),
            link,
            joint,
            fin_id=fin_id,
            input_topic=input_topic,
            output_topic=output_topic,
            current_velocity_topic=current_topic,
        )

    @property
    def topic_prefix(self) -> str:
        """The root of the fin's default topic names."""
        return self.input_topic.rsplit("/", 1)[0] + "/"

    def set_input(self, command: float) -> None:
        """Set the angle command that the next update acts on."""
        self.input_command = float(command)

    def set_current_velocity(self, x: float, y: float, z: float) -> None:
        """Store the current velocity of the fluid in world coordinates."""
        self.current_velocity = np.array([float(x), float(y), float(z)])

    def update(self, sim_time: float) -> np.ndarray:
        """Advance to ``sim_time``, apply the fin force to the link and return it."""
        if math.isnan(self.input_command):
            raise ValueError("nan in input command")

        upper = self.joint.upper_limit(0)
        lower = self.joint.lower_limit(0)
        self.input_command = max(lower, min(upper, self.input_command))

        self.angle = self.dynamics.update(self.input_command, sim_time)

        pose = self.link.world_pose
        lin_vel = np.asarray(self.link.world_linear_vel, dtype=float)
        normal = pose.rotate_vector(_UNIT_Z)
        vel = lin_vel - self.current_velocity
        in_plane_world = np.cross(normal, np.cross(vel, normal))
        in_plane_local = pose.rotate_vector_reverse(in_plane_world)

        self.fin_force = np.asarray(self.lift_drag.compute(in_plane_local), dtype=float)
        self.link.add_relative_force(self.fin_force.copy())

        # Setting the angle last, since it resets the link's velocity.
        self.joint.set_position(0, self.angle)
        self.angle_stamp = sim_time
        return self.fin_force.copy()