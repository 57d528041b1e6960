"""Functions converting a thruster's dynamic state into thrust force."""

from __future__ import annotations

import bisect
import logging
import warnings
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from typing import Any, ClassVar

logger = logging.getLogger(__name__)

ConversionCreator = Callable[[Mapping[str, Any]], "ConversionFunction"]

_CREATORS: dict[str, ConversionCreator] = {}


def parse_vector(text: str) -> list[float]:
    """Parse whitespace-separated numbers into a list of floats."""
    return [float(token) for token in text.split()]


def _as_vector(value: Any) -> list[float]:
    if isinstance(value, str):
        return parse_vector(value)
    return [float(item) for item in value]


def _require(config: Mapping[str, Any], name: str, owner: str) -> float:
    if name not in config:
        raise ValueError(f"{owner}: expected element {name}")
    return float(config[name])


class ConversionFunction(ABC):
    """Maps a rotor state to a thrust force."""

    IDENTIFIER: ClassVar[str] = ""

    @property
    def type(self) -> str:
        """The identifier this function is registered under."""
        return self.IDENTIFIER

    @abstractmethod
    def convert(self, cmd: float) -> float:
        """Return the thrust for the dynamic state ``cmd``."""

    @abstractmethod
    def get_param(self, tag: str) -> float:
        """Return the parameter named ``tag``; raise KeyError if there is none."""

    @classmethod
    @abstractmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ConversionFunction":
        """Build the function from its configuration elements."""


class BasicConversion(ConversionFunction):
    """Thrust proportional to the signed square of the state."""

    IDENTIFIER = "Basic"

    def __init__(self, rotor_constant: float) -> None:
        self.rotor_constant = rotor_constant
        logger.info("Basic conversion function, rotor constant %s", rotor_constant)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "BasicConversion":
        return cls(_require(config, "rotorConstant", "ConversionFunctionBasic"))

    def convert(self, cmd: float) -> float:
        return self.rotor_constant * abs(cmd) * cmd

    def get_param(self, tag: str) -> float:
        if tag == "rotor_constant":
            return self.rotor_constant
        raise KeyError(tag)


class BessaConversion(ConversionFunction):
    """Signed-square conversion with an asymmetric dead zone."""

    IDENTIFIER = "Bessa"

    def __init__(
        self,
        rotor_constant_l: float,
        rotor_constant_r: float,
        delta_l: float,
        delta_r: float,
    ) -> None:
        if rotor_constant_l < 0.0:
            raise ValueError("rotor_constant_l should be >= 0")
        if rotor_constant_r < 0.0:
            raise ValueError("rotor_constant_r should be >= 0")
        if delta_l > 0.0:
            raise ValueError("delta_l should be <= 0")
        if delta_r < 0.0:
            raise ValueError("delta_r should be >= 0")
        self.rotor_constant_l = rotor_constant_l
        self.rotor_constant_r = rotor_constant_r
        self.delta_l = delta_l
        self.delta_r = delta_r

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "BessaConversion":
        owner = "ConversionFunctionBessa"
        return cls(
            _require(config, "rotorConstantL", owner),
            _require(config, "rotorConstantR", owner),
            _require(config, "deltaL", owner),
            _require(config, "deltaR", owner),
        )

    def convert(self, cmd: float) -> float:
        basic = cmd * abs(cmd)
        if basic <= self.delta_l:
            return self.rotor_constant_l * (basic - self.delta_l)
        if basic >= self.delta_r:
            return self.rotor_constant_r * (basic - self.delta_r)
        return 0.0

    def get_param(self, tag: str) -> float:
        params = {
            "rotor_constant_l": self.rotor_constant_l,
            "rotor_constant_r": self.rotor_constant_r,
            "delta_l": self.delta_l,
            "delta_r": self.delta_r,
        }
        return params[tag]


class LinearInterpConversion(ConversionFunction):
    """Piecewise-linear lookup table, clamped to its end values."""

    IDENTIFIER = "LinearInterp"

    def __init__(self, inputs: Iterable[float], outputs: Iterable[float]) -> None:
        inputs = [float(v) for v in inputs]
        outputs = [float(v) for v in outputs]
        if len(inputs) != len(outputs):
            raise ValueError("input and output do not match")
        table = dict(zip(inputs, outputs))
        self._keys = sorted(table)
        self._values = [table[key] for key in self._keys]

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "LinearInterpConversion":
        owner = "ConversionFunctionLinearInterp"
        for name in ("inputValues", "outputValues"):
            if name not in config:
                raise ValueError(f"{owner}: expected element {name}")
        inputs = _as_vector(config["inputValues"])
        outputs = _as_vector(config["outputValues"])
        if not inputs:
            raise ValueError(f"{owner}: need at least one input/output pair")
        if len(inputs) != len(outputs):
            raise ValueError(f"{owner}: number of input and output values should be the same")
        return cls(inputs, outputs)

    def convert(self, cmd: float) -> float:
        if not self._keys:
            raise ValueError("Lookup table is empty")
        index = bisect.bisect_left(self._keys, cmd)
        if index == len(self._keys):
            return self._values[-1]
        i1, o1 = self._keys[index], self._values[index]
        if index == 0:
            return o1
        i0, o0 = self._keys[index - 1], self._values[index - 1]
        w1 = cmd - i0
        w0 = i1 - cmd
        return (o0 * w0 + o1 * w1) / (w0 + w1)

    def get_param(self, tag: str) -> float:
        raise KeyError(tag)

    def table(self) -> dict[float, float]:
        """Return the lookup table ordered by input value."""
        return dict(zip(self._keys, self._values))


def register_conversion_function(identifier: str, creator: ConversionCreator) -> ConversionCreator:
    """Register ``creator`` under ``identifier``, replacing any earlier one with a warning."""
    if identifier in _CREATORS:
        warnings.warn(
            f"Registering conversion function with identifier {identifier} twice",
            RuntimeWarning,
            stacklevel=2,
        )
    _CREATORS[identifier] = creator
    logger.debug("Registered conversion function type %s", identifier)
    return creator


def create_conversion_function(config: Mapping[str, Any]) -> ConversionFunction:
    """Build the conversion function named by ``config["type"]``."""
    if "type" not in config:
        raise ValueError("conversion does not have a type element")
    identifier = str(config["type"])
    try:
        creator = _CREATORS[identifier]
    except KeyError:
        raise ValueError(
            f"Cannot create conversion function with unknown identifier: {identifier}"
        ) from None
    return creator(config)


for _cls in (BasicConversion, BessaConversion, LinearInterpConversion):
    register_conversion_function(_cls.IDENTIFIER, _cls.from_config)