"""Drag on the umbilical cable of a tethered vehicle, with a registry by type name."""

from __future__ import annotations

import logging
import warnings
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import Any, ClassVar, Protocol

import numpy as np

from uuvsim.buoyancy import Pose

logger = logging.getLogger(__name__)


class ConnectorLink(Protocol):
    """The link the umbilical is attached to."""

    @property
    def world_pose(self) -> Pose: ...

    @property
    def world_linear_vel(self) -> Sequence[float]: ...

    def add_force(self, force: np.ndarray) -> None: ...


class UmbilicalHost(Protocol):
    """The model that owns the connector link."""

    def get_link(self, name: str) -> ConnectorLink | None: ...


UmbilicalCreator = Callable[[Mapping[str, Any], UmbilicalHost], "UmbilicalModel"]

_CREATORS: dict[str, UmbilicalCreator] = {}


class UmbilicalModel(ABC):
    """Computes the force the umbilical exerts on its connector."""

    IDENTIFIER: ClassVar[str] = ""

    @property
    def type(self) -> str:
        """The identifier this model is registered under."""
        return self.IDENTIFIER

    def init(self) -> None:
        """Prepare the model before the first update."""
        logger.debug("Initialising umbilical model %s", self.type)

    @abstractmethod
    def on_update(self, sim_time: float, flow: Sequence[float]) -> np.ndarray:
        """Apply the umbilical force for the given flow velocity and return it."""

    @classmethod
    @abstractmethod
    def from_config(cls, config: Mapping[str, Any], model: UmbilicalHost) -> "UmbilicalModel":
        """Build the model from its configuration elements."""


class BergUmbilical(UmbilicalModel):
    """Berg's quadratic drag on the cable from the horizontal relative flow."""

    IDENTIFIER = "Berg"

    def __init__(self, connector: ConnectorLink, diameter: float, rho: float) -> None:
        self.connector = connector
        self.diameter = diameter
        self.rho = rho

    @classmethod
    def from_config(cls, config: Mapping[str, Any], model: UmbilicalHost) -> "BergUmbilical":
        for name in ("connector_link", "diameter", "water_density"):
            if name not in config:
                raise ValueError(f"Could not find {name}.")
        connector = model.get_link(str(config["connector_link"]))
        if connector is None:
            raise ValueError("connector_link is invalid")
        return cls(connector, float(config["diameter"]), float(config["water_density"]))

    def on_update(self, sim_time: float, flow: Sequence[float]) -> np.ndarray:
        depth = -self.connector.world_pose.position[2]
        # Some wiggle room is allowed when the vehicle breaks the surface.
        if not depth < 10.0:
            raise ValueError("z coordinate should be negative")

        relative = np.asarray(flow, dtype=float) - np.asarray(self.connector.world_linear_vel, dtype=float)
        ur2 = relative[0] * abs(relative[0])
        vr2 = relative[1] * abs(relative[1])
        factor = 0.25 * 1.2 * self.rho
        force = np.array([ur2, vr2, 0.0]) * factor
        self.connector.add_force(force)
        return force


def register_umbilical_model(identifier: str, creator: UmbilicalCreator) -> UmbilicalCreator:
    """Register ``creator`` under ``identifier``, replacing any earlier one with a warning."""
    if identifier in _CREATORS:
        warnings.warn(
            f"Registering umbilical model with identifier {identifier} twice",
            RuntimeWarning,
            stacklevel=2,
        )
    _CREATORS[identifier] = creator
    logger.debug("Registered umbilical model type %s", identifier)
    return creator


def create_umbilical_model(config: Mapping[str, Any], model: UmbilicalHost) -> UmbilicalModel:
    """Build the umbilical model named by ``config["type"]``."""
    if "type" not in config:
        raise ValueError("umbilical_model does not have a type element")
    identifier = str(config["type"])
    try:
        creator = _CREATORS[identifier]
    except KeyError:
        raise ValueError(f"Cannot create umbilical model with unknown identifier: {identifier}") from None
    return creator(config, model)


register_umbilical_model(BergUmbilical.IDENTIFIER, BergUmbilical.from_config)


class UmbilicalPlugin:
    """Feeds the latest flow velocity to an umbilical model on every update."""

    def __init__(self, umbilical: UmbilicalModel, flow_velocity_topic: str = "") -> None:
        self.umbilical = umbilical
        self.flow_velocity_topic = flow_velocity_topic
        self.flow_velocity = np.zeros(3)
        self.umbilical.init()

    @classmethod
    def from_config(cls, config: Mapping[str, Any], model: UmbilicalHost) -> "UmbilicalPlugin":
        """Build the plugin and its umbilical model from configuration elements."""
        if "umbilical_model" not in config:
            raise ValueError("Could not find umbilical_model.")
        umbilical = create_umbilical_model(config["umbilical_model"], model)
        if "flow_velocity_topic" not in config:
            raise ValueError("Umbilical model requires flow velocity topic")
        topic = str(config["flow_velocity_topic"])
        if not topic:
            raise ValueError("Fluid velocity topic tag cannot be empty")
        return cls(umbilical, topic)

    def update_flow_velocity(self, x: float, y: float, z: float) -> None:
        """Store a new flow velocity in world coordinates."""
        self.flow_velocity = np.array([float(x), float(y), float(z)])

    def on_update(self, sim_time: float) -> np.ndarray:
        """Run one update of the umbilical model and return its force."""
        return self.umbilical.on_update(sim_time, self.flow_velocity.copy())