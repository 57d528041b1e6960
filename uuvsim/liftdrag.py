"""Lift and drag models for fins, with a registry by type name."""

from __future__ import annotations

import logging
import math
import warnings
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import Any, ClassVar

import numpy as np

logger = logging.getLogger(__name__)

LiftDragCreator = Callable[[Mapping[str, Any]], "LiftDrag"]

_CREATORS: dict[str, LiftDragCreator] = {}

_UNIT_Z = np.array([0.0, 0.0, 1.0])


def _normalized(vector: np.ndarray) -> np.ndarray:
    length = float(np.linalg.norm(vector))
    if length == 0.0:
        return vector
    return vector / length


def _fold_angle(velocity: np.ndarray) -> tuple[float, np.ndarray]:
    """Return the angle of attack folded into [-pi/2, pi/2] and the matching velocity."""
    angle = math.atan2(velocity[1], velocity[0])
    if angle > math.pi / 2:
        return angle - math.pi, -velocity
    if angle < -math.pi / 2:
        return angle + math.pi, -velocity
    return angle, velocity


def _directions(velocity: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    lift_direction = -_normalized(np.cross(_UNIT_Z, velocity))
    drag_direction = _normalized(-velocity)
    return lift_direction, drag_direction


class LiftDrag(ABC):
    """Computes the lift and drag force on a fin from its local velocity."""

    IDENTIFIER: ClassVar[str] = ""

    @property
    def type(self) -> str:
        """The identifier this model is registered under."""
        return self.IDENTIFIER

    @abstractmethod
    def compute(self, velocity: Sequence[float]) -> np.ndarray:
        """Return the force for a velocity given in the lift/drag plane of the fin."""

    @abstractmethod
    def params(self) -> dict[str, float]:
        """Return all parameters of the model by name."""

    def get_param(self, tag: str) -> float:
        """Return the parameter named ``tag``; raise KeyError if there is none."""
        value = self.params()[tag]
        logger.debug("%s parameter <%s>=%s", type(self).__name__, tag, value)
        return value

    @classmethod
    @abstractmethod
    def from_config(cls, config: Mapping[str, Any]) -> "LiftDrag":
        """Build the model from its configuration elements."""


class QuadraticLiftDrag(LiftDrag):
    """Lift and drag growing with the angle of attack and the square of the speed."""

    IDENTIFIER = "Quadratic"

    def __init__(self, lift_constant: float, drag_constant: float) -> None:
        self.lift_constant = lift_constant
        self.drag_constant = drag_constant

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "QuadraticLiftDrag":
        for name in ("lift_constant", "drag_constant"):
            if name not in config:
                raise ValueError(f"LiftDragQuadratic: expected element {name}")
        lift = float(config["lift_constant"])
        drag = float(config["drag_constant"])
        logger.info("Lift constant= %s, drag constant= %s", lift, drag)
        return cls(lift, drag)

    def compute(self, velocity: Sequence[float]) -> np.ndarray:
        vel = np.asarray(velocity, dtype=float)
        angle, folded = _fold_angle(vel)
        u = float(np.linalg.norm(folded))
        du2 = angle * u * u
        drag = angle * du2 * self.drag_constant
        lift = du2 * self.lift_constant
        lift_direction, drag_direction = _directions(vel)
        return lift * lift_direction + drag * drag_direction

    def params(self) -> dict[str, float]:
        return {"drag_constant": self.drag_constant, "lift_constant": self.lift_constant}


class TwoLinesLiftDrag(LiftDrag):
    """Piecewise-linear lift and drag coefficients with a stall angle."""

    IDENTIFIER = "TwoLines"

    _ELEMENTS = ("area", "fluid_density", "a0", "alpha_stall", "cla", "cla_stall", "cda", "cda_stall")

    def __init__(
        self,
        area: float,
        fluid_density: float,
        a0: float,
        alpha_stall: float,
        cla: float,
        cla_stall: float,
        cda: float,
        cda_stall: float,
    ) -> None:
        self.area = area
        self.fluid_density = fluid_density
        self.a0 = a0
        self.alpha_stall = alpha_stall
        self.cla = cla
        self.cla_stall = cla_stall
        self.cda = cda
        self.cda_stall = cda_stall

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TwoLinesLiftDrag":
        missing = [name for name in cls._ELEMENTS if name not in config]
        if missing:
            raise ValueError(f"LiftDrag: missing required element: {missing[0]}")
        return cls(*(float(config[name]) for name in cls._ELEMENTS))

    def compute(self, velocity: Sequence[float]) -> np.ndarray:
        vel = np.asarray(velocity, dtype=float)
        angle, folded = _fold_angle(vel)

        alpha = angle + self.a0
        while abs(alpha) > 0.5 * math.pi:
            alpha = alpha - math.pi if alpha > 0 else alpha + math.pi

        u = float(np.linalg.norm(folded))
        q = 0.5 * self.fluid_density * u * u

        if alpha > self.alpha_stall:
            diff = alpha - self.alpha_stall
            cl = self.cla * self.alpha_stall + self.cla_stall * diff
            cd = self.cda * self.alpha_stall + self.cda_stall * diff
        elif alpha < -self.alpha_stall:
            total = alpha + self.alpha_stall
            cl = -self.cla * self.alpha_stall + self.cda_stall * total
            cd = -self.cda * self.alpha_stall + self.cda_stall * total
        else:
            cd = self.cda * alpha
            cl = self.cla * alpha

        lift = cl * q * self.area
        drag = cd * q * self.area
        lift_direction, drag_direction = _directions(vel)
        return lift * lift_direction + drag * drag_direction

    def params(self) -> dict[str, float]:
        return {
            "area": self.area,
            "fluid_density": self.fluid_density,
            "a0": self.a0,
            "alpha_stall": self.alpha_stall,
            "cla": self.cla,
            "cla_stall": self.cla_stall,
            "cda": self.cda,
            "cda_stall": self.cda_stall,
        }


def register_lift_drag(identifier: str, creator: LiftDragCreator) -> LiftDragCreator:
    """Register ``creator`` under ``identifier``, replacing any earlier one with a warning."""
    if identifier in _CREATORS:
        warnings.warn(
            f"Registering lift/drag model with identifier {identifier} twice",
            RuntimeWarning,
            stacklevel=2,
        )
    _CREATORS[identifier] = creator
    logger.debug("Registered lift/drag type %s", identifier)
    return creator


def create_lift_drag(config: Mapping[str, Any]) -> LiftDrag:
    """Build the lift/drag model named by ``config["type"]``."""
    if "type" not in config:
        raise ValueError("liftdrag does not have a type element")
    identifier = str(config["type"])
    try:
        creator = _CREATORS[identifier]
    except KeyError:
        raise ValueError(f"Cannot create lift/drag model with unknown identifier: {identifier}") from None
    return creator(config)


for _cls in (QuadraticLiftDrag, TwoLinesLiftDrag):
    register_lift_drag(_cls.IDENTIFIER, _cls.from_config)