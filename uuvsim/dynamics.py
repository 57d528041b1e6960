"""Actuator dynamics models for thrusters and fins, with a registry by type name."""

from __future__ import annotations

import logging
import math
import warnings
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any, ClassVar

logger = logging.getLogger(__name__)

DynamicsCreator = Callable[[Mapping[str, Any]], "Dynamics"]

_CREATORS: dict[str, DynamicsCreator] = {}


def _require(config: Mapping[str, Any], name: str, owner: str) -> float:
    if name not in config:
        raise ValueError(f"{owner}: expected element {name}")
    return float(config[name])


class Dynamics(ABC):
    """A first-call-initialised state machine driven by (command, time) samples."""

    IDENTIFIER: ClassVar[str] = ""

    def __init__(self) -> None:
        self.prev_time = -10.0
        self.state = 0.0

    @property
    def type(self) -> str:
        """The identifier this model is registered under."""
        return self.IDENTIFIER

    def reset(self) -> None:
        """Forget the time history and return the state to zero."""
        self.prev_time = -10.0
        self.state = 0.0

    @abstractmethod
    def update(self, cmd: float, t: float) -> float:
        """Advance the model to time ``t`` with input ``cmd`` and return its output."""

    @classmethod
    @abstractmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Dynamics":
        """Build the model from its configuration elements."""


class ZeroOrderDynamics(Dynamics):
    """No dynamics: the output is the command."""

    IDENTIFIER = "ZeroOrder"

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ZeroOrderDynamics":
        return cls()

    def update(self, cmd: float, t: float) -> float:
        return cmd


class FirstOrderDynamics(Dynamics):
    """First-order lag with time constant ``tau``."""

    IDENTIFIER = "FirstOrder"

    def __init__(self, tau: float) -> None:
        super().__init__()
        self.tau = tau

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "FirstOrderDynamics":
        return cls(_require(config, "timeConstant", "DynamicsFirstOrder"))

    def update(self, cmd: float, t: float) -> float:
        if self.prev_time < 0:
            self.prev_time = t
            return self.state
        dt = t - self.prev_time
        alpha = math.exp(-dt / self.tau)
        self.state = self.state * alpha + (1.0 - alpha) * cmd
        self.prev_time = t
        return self.state


class YoergerDynamics(Dynamics):
    """Yoerger's quadratic thruster model."""

    IDENTIFIER = "Yoerger"

    def __init__(self, alpha: float, beta: float) -> None:
        super().__init__()
        self.alpha = alpha
        self.beta = beta

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "YoergerDynamics":
        alpha = _require(config, "alpha", "ThrusterDynamicsYoerger")
        beta = _require(config, "beta", "ThrusterDynamicsYoerger")
        return cls(alpha, beta)

    def update(self, cmd: float, t: float) -> float:
        if self.prev_time < 0:
            self.prev_time = t
            return self.state
        dt = t - self.prev_time
        self.state += dt * (self.beta * cmd - self.alpha * self.state * abs(self.state))
        return self.state


class BessaDynamics(Dynamics):
    """Bessa's electro-mechanical thruster model."""

    IDENTIFIER = "Bessa"

    def __init__(self, jmsp: float, kv1: float, kv2: float, kt: float, rm: float) -> None:
        super().__init__()
        self.jmsp = jmsp
        self.kv1 = kv1
        self.kv2 = kv2
        self.kt = kt
        self.rm = rm

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "BessaDynamics":
        owner = "ThrusterDynamicsBessa"
        values = [_require(config, name, owner) for name in ("Jmsp", "Kv1", "Kv2", "Kt", "Rm")]
        return cls(*values)

    def update(self, cmd: float, t: float) -> float:
        if self.prev_time < 0:
            self.prev_time = t
            return self.state
        dt = t - self.prev_time
        self.state += (
            dt
            * (cmd * self.kt / self.rm - self.kv1 * self.state - self.kv2 * self.state * abs(self.state))
            / self.jmsp
        )
        return self.state


def register_dynamics(identifier: str, creator: DynamicsCreator) -> DynamicsCreator:
    """Register ``creator`` under ``identifier``, replacing any earlier one with a warning."""
    if identifier in _CREATORS:
        warnings.warn(
            f"Registering dynamics with identifier {identifier} twice",
            RuntimeWarning,
            stacklevel=2,
        )
    _CREATORS[identifier] = creator
    logger.debug("Registered dynamics type %s", identifier)
    return creator


def create_dynamics(config: Mapping[str, Any]) -> Dynamics:
    """Build the dynamics model named by ``config["type"]``."""
    if "type" not in config:
        raise ValueError("dynamics does not have a type element")
    identifier = str(config["type"])
    try:
        creator = _CREATORS[identifier]
    except KeyError:
        raise ValueError(f"Cannot create dynamics with unknown identifier: {identifier}") from None
    return creator(config)


for _cls in (ZeroOrderDynamics, FirstOrderDynamics, YoergerDynamics, BessaDynamics):
    register_dynamics(_cls.IDENTIFIER, _cls.from_config)