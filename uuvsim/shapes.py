"""Hydrodynamic models for simple body shapes: sphere, cylinder, spheroid and box."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from uuvsim.buoyancy import BoundingBox
from uuvsim.hydrodynamics import FossenModel, HydrodynamicLink, register_hydrodynamic_model

logger = logging.getLogger(__name__)


def _box_lengths(box: BoundingBox) -> tuple[float, float, float]:
    return box.x_length, box.y_length, box.z_length


def _radius(model_params: Mapping[str, Any], box: BoundingBox, owner: str) -> float:
    if "radius" in model_params:
        return float(model_params["radius"])
    logger.info("%s: using the smallest length of bounding box as radius", owner)
    return min(_box_lengths(box))


def _length(model_params: Mapping[str, Any], box: BoundingBox, owner: str) -> float:
    if "length" in model_params:
        return float(model_params["length"])
    logger.info("%s: using the biggest length of bounding box as length", owner)
    return max(_box_lengths(box))


def _circular_drag_coefficient(dim_ratio: float) -> float:
    if dim_ratio <= 1:
        return 0.91
    if dim_ratio <= 2:
        return 0.85
    if dim_ratio <= 4:
        return 0.87
    if dim_ratio <= 7:
        return 0.99
    raise ValueError(f"No circular drag coefficient for dimension ratio {dim_ratio}")


def _length_drag_coefficient(dim_ratio: float) -> float:
    if dim_ratio <= 1:
        return 0.63
    if dim_ratio <= 2:
        return 0.68
    if dim_ratio <= 5:
        return 0.74
    if dim_ratio <= 10:
        return 0.82
    return 0.98


class SphereModel(FossenModel):
    """A sphere: equal added mass and pressure drag along every translational axis."""

    IDENTIFIER = "sphere"

    def __init__(self, config: Mapping[str, Any], link: HydrodynamicLink) -> None:
        super().__init__(config, link)
        model_params = config["hydrodynamic_model"]
        self.radius = _radius(model_params, self.bounding_box, "Sphere model")
        logger.info("Sphere model radius=%s", self.radius)
        self.params.append("radius")

        # Subcritical flow.
        self.re = 3e5
        self.cd = 0.5
        self.area_section = math.pi * self.radius**2

        sphere_ma = -2.0 / 3.0 * self._fluid_density * math.pi * self.radius**3
        # Only pressure drag, no skin friction drag.
        dq = -0.5 * self._fluid_density * self.cd * self.area_section
        for i in range(3):
            self.ma[i, i] = -sphere_ma
            self.d_non_lin[i, i] = dq

    def describe(self, param_name: str, message: str = "") -> str:
        """Return a printable description of ``param_name``, including the radius."""
        if param_name == "radius":
            return "\n".join([self._header(param_name, message), f"{self.radius:12g}"])
        return super().describe(param_name, message)


class CylinderModel(FossenModel):
    """A cylinder rotating about one of the body axes i, j or k."""

    IDENTIFIER = "cylinder"

    def __init__(self, config: Mapping[str, Any], link: HydrodynamicLink) -> None:
        super().__init__(config, link)
        model_params = config["hydrodynamic_model"]
        box = self.bounding_box
        self.radius = _radius(model_params, box, "Cylinder model")
        self.length = _length(model_params, box, "Cylinder model")
        self.dim_ratio = self.length / (2 * self.radius)
        logger.info(
            "Cylinder model radius=%s, length=%s, dimension ratio=%s",
            self.radius,
            self.length,
            self.dim_ratio,
        )

        self.cd_circ = _circular_drag_coefficient(self.dim_ratio)
        self.cd_length = _length_drag_coefficient(self.dim_ratio)

        if "axis" in model_params:
            self.axis = str(model_params["axis"])
            if self.axis not in ("i", "j", "k"):
                raise ValueError("Invalid axis of rotation")
        else:
            logger.info("Cylinder model: using the direction of biggest length as axis")
            lengths = _box_lengths(box)
            biggest = max(lengths)
            if biggest == lengths[0]:
                self.axis = "i"
            elif biggest == lengths[1]:
                self.axis = "j"
            else:
                self.axis = "k"

        rho = self._fluid_density
        r2 = self.radius**2
        ma_length = -rho * math.pi * r2 * self.length
        ma_circ = -rho * math.pi * r2
        ma_length_torque = (-1.0 / 12.0) * rho * math.pi * r2 * self.length**3
        d_circ = -0.5 * self.cd_circ * math.pi * r2 * rho
        d_length = -0.5 * self.cd_length * self.radius * self.length * rho

        axis_index = "ijk".index(self.axis)
        for i in range(3):
            along = i == axis_index
            self.ma[i, i] = -(ma_circ if along else ma_length)
            self.d_non_lin[i, i] = d_circ if along else d_length
            if not along:
                self.ma[i + 3, i + 3] = -ma_length_torque

    def describe(self, param_name: str, message: str = "") -> str:
        """Return a printable description of ``param_name``, including radius and length."""
        if param_name == "radius":
            lines = [self.link.name] if message else []
            lines.append(f"{self.radius:12g}")
            return "\n".join(lines)
        if param_name == "length":
            lines = [message] if message else []
            lines.append(f"{self.length:12g}")
            return "\n".join(lines)
        return super().describe(param_name, message)


class SpheroidModel(FossenModel):
    """A prolate spheroid; still experimental."""

    IDENTIFIER = "spheroid"

    def __init__(self, config: Mapping[str, Any], link: HydrodynamicLink) -> None:
        super().__init__(config, link)
        logger.warning("Hydrodynamic model for a spheroid is still in development!")
        model_params = config["hydrodynamic_model"]
        box = self.bounding_box
        self.radius = _radius(model_params, box, "Spheroid model")
        if not self.radius > 0:
            raise ValueError("Radius must be positive")
        self.length = _length(model_params, box, "Spheroid model")
        if not self.length > 0:
            raise ValueError("Length must be positive")

        ratio = (self.radius / self.length) ** 2
        if ratio >= 1.0:
            raise ValueError("Spheroid radius must be smaller than its length")
        ecc = math.sqrt(1 - ratio)
        ln = math.log((1 + ecc) / (1 - ecc))
        alpha = 2 * (1 - ecc**2) / ecc**3 * (0.5 * ln - ecc)
        beta = 1 / ecc**2 - (1 - ecc**2 / (2 * ecc**3)) * ln
        logger.info("Spheroid model ecc=%s, alpha=%s, beta=%s", ecc, alpha, beta)

        mass = link.mass
        self.ma[0, 0] = mass * alpha / (2 - alpha)
        self.ma[1, 1] = mass * beta / (2 - beta)
        self.ma[2, 2] = self.ma[1, 1]
        self.ma[3, 3] = 0.0

        ba_minus = self.radius**2 - self.length**2
        ba_plus = self.radius**2 + self.length**2
        rotational = -0.2 * mass * ba_minus**2 * (alpha - beta)
        rotational /= 2 * ba_minus - ba_plus * (alpha - beta)
        self.ma[4, 4] = rotational
        self.ma[5, 5] = rotational

    def describe(self, param_name: str, message: str = "") -> str:
        """Return a printable description of ``param_name``, including radius and length."""
        if param_name == "radius":
            lines = [self.link.name] if message else []
            lines.append(f"{self.radius:12g}")
            return "\n".join(lines)
        if param_name == "length":
            lines = [message] if message else []
            lines.append(f"{self.length:12g}")
            return "\n".join(lines)
        return super().describe(param_name, message)


class BoxModel(FossenModel):
    """A box with pressure drag on its faces; still experimental."""

    IDENTIFIER = "box"

    def __init__(self, config: Mapping[str, Any], link: HydrodynamicLink) -> None:
        super().__init__(config, link)
        logger.warning("Hydrodynamic model for box is still in development!")
        model_params = config["hydrodynamic_model"]

        if "cd" in model_params:
            self.cd = float(model_params["cd"])
        else:
            logger.info("Box model: using 1 as drag coefficient")
            self.cd = 1.0

        for name in ("length", "width", "height"):
            if name not in model_params:
                raise ValueError(f"{name.capitalize()} of the box is missing")
        self.length = float(model_params["length"])
        self.width = float(model_params["width"])
        self.height = float(model_params["height"])

        rho = self._fluid_density
        self.quad_damp_coef[0] = -0.5 * self.cd * self.width * self.height * rho
        self.quad_damp_coef[1] = -0.5 * self.cd * self.length * self.height * rho
        self.quad_damp_coef[2] = -0.5 * self.cd * self.width * self.length * rho

    def describe(self, param_name: str, message: str = "") -> str:
        """Return a printable description of ``param_name``, including the box dimensions."""
        dimensions = {"length": self.length, "width": self.width, "height": self.height}
        if param_name in dimensions:
            lines = [message] if message else []
            lines.append(f"{dimensions[param_name]:12g}")
            return "\n".join(lines)
        return super().describe(param_name, message)


for _cls in (SphereModel, CylinderModel, SpheroidModel, BoxModel):
    register_hydrodynamic_model(_cls.IDENTIFIER, _cls)