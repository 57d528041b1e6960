"""Fossen-style hydrodynamic models: added mass, added Coriolis and damping."""

from __future__ import annotations

import logging
import math
import warnings
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import Any, ClassVar, Protocol

import numpy as np

from uuvsim.buoyancy import BoundingBox, BuoyantObject, Pose
from uuvsim.conversion import parse_vector

logger = logging.getLogger(__name__)

DAMPING_FORCE = "damping_force"
DAMPING_TORQUE = "damping_torque"
ADDED_MASS_FORCE = "added_mass_force"
ADDED_MASS_TORQUE = "added_mass_torque"
ADDED_CORIOLIS_FORCE = "added_coriolis_force"
ADDED_CORIOLIS_TORQUE = "added_coriolis_torque"

_MATRIX_TAGS = ("added_mass", "linear_damping", "linear_damping_forward_speed", "quadratic_damping")


class HydrodynamicLink(Protocol):
    """The rigid body the hydrodynamic forces act on."""

    name: str
    model_name: str
    mass: float
    bounding_box: BoundingBox

    @property
    def world_pose(self) -> Pose: ...

    @property
    def relative_linear_vel(self) -> Sequence[float]: ...

    @property
    def relative_angular_vel(self) -> Sequence[float]: ...

    def add_relative_force(self, force: np.ndarray) -> None: ...

    def add_relative_torque(self, torque: np.ndarray) -> None: ...

    def add_force_at_relative_position(self, force: np.ndarray, position: np.ndarray) -> None: ...

    def add_force(self, force: np.ndarray) -> None: ...


HydrodynamicCreator = Callable[[Mapping[str, Any], HydrodynamicLink], "HydrodynamicModel"]

_CREATORS: dict[str, HydrodynamicCreator] = {}


def _vector(value: Any) -> list[float]:
    if isinstance(value, str):
        return parse_vector(value)
    return [float(item) for item in value]


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1")
    return bool(value)


def cross_product_operator(vector: Sequence[float]) -> np.ndarray:
    """Return the skew-symmetric matrix S(v) with S(v) @ w == v x w."""
    x, y, z = (float(v) for v in vector)
    return np.array([[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]])


class HydrodynamicModel(BuoyantObject, ABC):
    """A buoyant link with hydrodynamic parameters read from its configuration."""

    IDENTIFIER: ClassVar[str] = ""

    def __init__(self, config: Mapping[str, Any], link: HydrodynamicLink) -> None:
        super().__init__(link=link)
        self.filtered_acc = np.zeros(6)
        self.last_vel_rel = np.zeros(6)
        self.last_time = 0.0
        self.params: list[str] = []

        if "volume" in config:
            self._volume = float(config["volume"])

        if all(name in config for name in ("metacentric_width", "metacentric_length", "submerged_height")):
            self.metacentric_width = float(config["metacentric_width"])
            self.metacentric_length = float(config["metacentric_length"])
            self.submerged_height = float(config["submerged_height"])
            self.is_surface_vessel = True
            logger.info(
                "Surface vessel parameters: metacentric width %s m, metacentric length %s m, "
                "submerged height %s m",
                self.metacentric_width,
                self.metacentric_length,
                self.submerged_height,
            )
        else:
            self.metacentric_width = 0.0
            self.metacentric_length = 0.0
            self.water_level_plane_area = 0.0
            self.is_surface_vessel = False

        if "center_of_buoyancy" in config:
            cob = _vector(config["center_of_buoyancy"])
            if len(cob) != 3:
                raise ValueError("center_of_buoyancy must have 3 elements")
            self.center_of_buoyancy = cob

        box = config.get("box")
        if isinstance(box, Mapping) and all(name in box for name in ("width", "length", "height")):
            self.bounding_box = BoundingBox.centered(
                float(box["width"]), float(box["length"]), float(box["height"])
            )
            logger.info("New bounding box for %s: %s", link.name, self.bounding_box)

        if "neutrally_buoyant" in config and _as_bool(config["neutrally_buoyant"]):
            self.set_neutrally_buoyant()

        self.re = 0.0
        self.temperature = 0.0

    @property
    def type(self) -> str:
        """The identifier this model is registered under."""
        return self.IDENTIFIER

    def compute_acc(self, vel_rel: Sequence[float], time: float, alpha: float) -> None:
        """Update the low-pass filtered acceleration from a new relative velocity sample."""
        dt = time - self.last_time
        if dt <= 0.0:
            return
        vel = np.asarray(vel_rel, dtype=float)
        acc = (vel - self.last_vel_rel) / dt
        self.filtered_acc = (1.0 - alpha) * self.filtered_acc + alpha * acc
        self.last_time = time
        self.last_vel_rel = vel.copy()

    def to_ned(self, vector: Sequence[float]) -> np.ndarray:
        """Convert a vector between the simulator frame and north-east-down."""
        x, y, z = (float(v) for v in vector)
        return np.array([x, -y, -z])

    def from_ned(self, vector: Sequence[float]) -> np.ndarray:
        """Convert a north-east-down vector back to the simulator frame."""
        return self.to_ned(vector)

    def check_params(self, config: Mapping[str, Any]) -> bool:
        """Return whether ``config`` holds every parameter of this model."""
        for tag in self.params:
            if tag not in config:
                logger.error("Hydrodynamic model: expected element %s", tag)
                return False
        return True

    @abstractmethod
    def apply_hydrodynamic_forces(self, time: float, flow_velocity_world: Sequence[float]) -> np.ndarray:
        """Apply the hydrodynamic and hydrostatic forces at ``time``."""

    @abstractmethod
    def describe(self, param_name: str, message: str = "") -> str:
        """Return a printable description of a parameter."""


class FossenModel(HydrodynamicModel):
    """Fossen's robot-like equations of motion for underwater vehicles."""

    IDENTIFIER = "fossen"

    def __init__(self, config: Mapping[str, Any], link: HydrodynamicLink) -> None:
        super().__init__(config, link)
        if "hydrodynamic_model" not in config:
            raise ValueError("Hydrodynamic model is missing")
        model_params = config["hydrodynamic_model"]

        added_mass = [0.0] * 36
        lin_damp = [0.0] * 6
        lin_damp_forward = [0.0] * 6
        quad_damp = [0.0] * 6

        if "added_mass" in model_params:
            added_mass = _vector(model_params["added_mass"])
        else:
            logger.info("Fossen model: using zero added mass")
        if "linear_damping" in model_params:
            lin_damp = _vector(model_params["linear_damping"])
        else:
            logger.info("Fossen model: using zero linear damping")
        if "linear_damping_forward_speed" in model_params:
            lin_damp_forward = _vector(model_params["linear_damping_forward_speed"])
        else:
            logger.info("Fossen model: using zero linear damping for forward speed")
        if "quadratic_damping" in model_params:
            quad_damp = _vector(model_params["quadratic_damping"])
        else:
            logger.info("Fossen model: using zero quadratic damping")

        self.scaling_added_mass = 1.0
        self.offset_added_mass = 0.0
        self.scaling_damping = 1.0
        self.offset_linear_damping = 0.0
        self.offset_lin_forward_speed_damping = 0.0
        self.offset_nonlin_damping = 0.0

        self.params.extend(
            [
                "added_mass",
                "scaling_added_mass",
                "offset_added_mass",
                "linear_damping",
                "linear_damping_forward_speed",
                "quadratic_damping",
                "scaling_damping",
                "offset_linear_damping",
                "offset_lin_forward_speed_damping",
                "offset_nonlin_damping",
                "volume",
                "scaling_volume",
            ]
        )

        if len(added_mass) != 36:
            raise ValueError("Added-mass coefficients vector must have 36 elements")
        for name, values in (
            ("Linear damping", lin_damp),
            ("Linear damping proportional to the forward speed", lin_damp_forward),
            ("Quadratic damping", quad_damp),
        ):
            if len(values) not in (6, 36):
                raise ValueError(
                    f"{name} coefficients vector must have 6 elements for a diagonal matrix "
                    "or 36 elements for a full matrix"
                )

        self.ma = np.array(added_mass, dtype=float).reshape(6, 6)
        self.d_lin = self._matrix(lin_damp)
        self.d_lin_forward_speed = self._matrix(lin_damp_forward)
        self.d_non_lin = self._matrix(quad_damp)
        self.linear_damp_coef = list(lin_damp)
        self.quad_damp_coef = list(quad_damp)
        self.ca = np.zeros((6, 6))
        self.d = np.zeros((6, 6))

    @staticmethod
    def _matrix(values: Sequence[float]) -> np.ndarray:
        array = np.array(values, dtype=float)
        if array.size == 36:
            return array.reshape(6, 6)
        return np.diag(array)

    def added_mass(self) -> np.ndarray:
        """Return the scaled and offset added-mass matrix."""
        return self.scaling_added_mass * (self.ma + self.offset_added_mass * np.eye(6))

    def added_coriolis_matrix(self, velocity: Sequence[float]) -> np.ndarray:
        """Return the added Coriolis-centripetal matrix for a relative velocity."""
        ab = self.added_mass() @ np.asarray(velocity, dtype=float)
        sa = -cross_product_operator(ab[:3])
        return np.block([[np.zeros((3, 3)), sa], [sa, -cross_product_operator(ab[3:])]])

    def damping_matrix(self, velocity: Sequence[float]) -> np.ndarray:
        """Return the linear plus quadratic damping matrix for a relative velocity."""
        vel = np.asarray(velocity, dtype=float)
        identity = np.eye(6)
        damping = -(self.d_lin + self.offset_linear_damping * identity) - vel[0] * (
            self.d_lin_forward_speed + self.offset_lin_forward_speed_damping * identity
        )
        nonlinear = np.diag(self.d_non_lin) + self.offset_nonlin_damping
        damping[np.diag_indices(6)] -= nonlinear * np.abs(vel)
        return damping * self.scaling_damping

    def apply_hydrodynamic_forces(self, time: float, flow_velocity_world: Sequence[float]) -> np.ndarray:
        """Apply damping, added mass, added Coriolis and buoyancy; return the NED wrench."""
        pose = self.link.world_pose
        lin_vel = np.asarray(self.link.relative_linear_vel, dtype=float)
        ang_vel = np.asarray(self.link.relative_angular_vel, dtype=float)
        flow_vel = pose.rotate_vector_reverse(flow_velocity_world)

        vel_rel = np.concatenate([self.to_ned(lin_vel - flow_vel), self.to_ned(ang_vel)])

        self.ca = self.added_coriolis_matrix(vel_rel)
        self.d = self.damping_matrix(vel_rel)
        self.compute_acc(vel_rel, time, 0.3)

        damping = -self.d @ vel_rel
        added = -self.added_mass() @ self.filtered_acc
        coriolis = -self.ca @ vel_rel
        tau = damping + added + coriolis

        if math.isnan(float(np.linalg.norm(tau))):
            raise ValueError("Hydrodynamic forces vector is nan")

        self.link.add_relative_force(self.from_ned(tau[:3]))
        self.link.add_relative_torque(self.from_ned(tau[3:]))

        self.apply_buoyancy_force()

        if self.debug_flag:
            self.store_vector(DAMPING_FORCE, damping[:3])
            self.store_vector(DAMPING_TORQUE, damping[3:])
            self.store_vector(ADDED_MASS_FORCE, added[:3])
            self.store_vector(ADDED_MASS_TORQUE, added[3:])
            self.store_vector(ADDED_CORIOLIS_FORCE, coriolis[:3])
            self.store_vector(ADDED_CORIOLIS_TORQUE, coriolis[3:])
        return tau

    def _scalar_params(self) -> dict[str, float]:
        box = self.bounding_box
        return {
            "volume": self._volume,
            "scaling_volume": self.scaling_volume,
            "scaling_added_mass": self.scaling_added_mass,
            "scaling_damping": self.scaling_damping,
            "fluid_density": self._fluid_density,
            "bbox_height": box.z_length,
            "bbox_width": box.y_length,
            "bbox_length": box.x_length,
            "offset_volume": self.offset_volume,
            "offset_added_mass": self.offset_added_mass,
            "offset_linear_damping": self.offset_linear_damping,
            "offset_lin_forward_speed_damping": self.offset_lin_forward_speed_damping,
            "offset_nonlin_damping": self.offset_nonlin_damping,
        }

    def get_param(self, tag: str) -> list[float] | float:
        """Return a parameter: matrices flattened row by row, scalars as floats.

        Raises KeyError for an unknown tag.
        """
        matrices = {
            "added_mass": self.ma,
            "linear_damping": self.d_lin,
            "linear_damping_forward_speed": self.d_lin_forward_speed,
            "quadratic_damping": self.d_non_lin,
        }
        if tag in matrices:
            value: list[float] | float = [float(v) for v in matrices[tag].ravel()]
        elif tag == "center_of_buoyancy":
            value = [float(v) for v in self.center_of_buoyancy]
        else:
            value = self._scalar_params()[tag]
        logger.debug("Hydrodynamic model parameter <%s>=%s", tag, value)
        return value

    def set_param(self, tag: str, value: float) -> None:
        """Set a tunable parameter; raise ValueError for a negative scaling, KeyError if unknown."""
        value = float(value)
        non_negative = {
            "scaling_volume": "scaling_volume",
            "scaling_added_mass": "scaling_added_mass",
            "scaling_damping": "scaling_damping",
            "fluid_density": "_fluid_density",
        }
        free = {
            "offset_volume",
            "offset_added_mass",
            "offset_linear_damping",
            "offset_lin_forward_speed_damping",
            "offset_nonlin_damping",
        }
        if tag in non_negative:
            if value < 0:
                raise ValueError(f"{tag} must not be negative")
            setattr(self, non_negative[tag], value)
        elif tag in free:
            setattr(self, tag, value)
        else:
            raise KeyError(tag)
        logger.debug("Hydrodynamic model parameter <%s> set to %s", tag, value)

    def _header(self, param_name: str, message: str) -> str:
        if message:
            return message
        return f"{self.link.model_name}::{self.link.name}::{param_name}"

    def describe(self, param_name: str, message: str = "") -> str:
        """Return a printable description of ``param_name``, or of every parameter for "all"."""
        if param_name == "all":
            return "\n".join(self.describe(tag) for tag in self.params)
        lines = [self._header(param_name, message)]
        matrices = {
            "added_mass": self.ma,
            "linear_damping": self.d_lin,
            "linear_damping_forward_speed": self.d_lin_forward_speed,
            "quadratic_damping": self.d_non_lin,
        }
        if param_name in matrices:
            lines.extend("".join(f"{v:12g}" for v in row) for row in matrices[param_name])
        elif param_name == "volume":
            lines.append(f"{self._volume:12g} m^3")
        return "\n".join(lines)


def register_hydrodynamic_model(identifier: str, creator: HydrodynamicCreator) -> HydrodynamicCreator:
    """Register ``creator`` under ``identifier``, replacing any earlier one with a warning."""
    if identifier in _CREATORS:
        warnings.warn(
            f"Registering hydrodynamic model with identifier {identifier} twice",
            RuntimeWarning,
            stacklevel=2,
        )
    _CREATORS[identifier] = creator
    logger.debug("Registered hydrodynamic model type %s", identifier)
    return creator


def create_hydrodynamic_model(config: Mapping[str, Any], link: HydrodynamicLink) -> HydrodynamicModel:
    """Build the model named by ``config["hydrodynamic_model"]["type"]``."""
    if "hydrodynamic_model" not in config:
        raise ValueError("Hydrodynamic model is missing")
    model_params = config["hydrodynamic_model"]
    if "type" not in model_params:
        raise ValueError("Model has no type")
    identifier = str(model_params["type"])
    try:
        creator = _CREATORS[identifier]
    except KeyError:
        raise ValueError(f"Cannot create hydrodynamic model with unknown identifier: {identifier}") from None
    return creator(config, link)


register_hydrodynamic_model(FossenModel.IDENTIFIER, FossenModel)