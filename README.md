# uuvsim

Physical models for simulating unmanned underwater vehicles: actuator
dynamics and thrust conversion, fin lift and drag, buoyancy, Fossen-style
hydrodynamics for common hull shapes, tether (umbilical) drag, and a helper
that turns pose-carrying messages into a chain of coordinate-frame
transforms.

The models do not depend on any particular physics engine. Anything that
pushes a force onto a body does so through a small link object that you
supply (an object with methods such as `add_force`, `add_relative_force`,
`add_relative_torque` and properties such as `world_pose`), so the package
can be driven from your own integrator or simulator loop.

## Modules

| Module | What it provides |
| --- | --- |
| `uuvsim.dynamics` | Actuator dynamics: `ZeroOrderDynamics`, `FirstOrderDynamics`, `YoergerDynamics`, `BessaDynamics`, built from a config by `create_dynamics` |
| `uuvsim.conversion` | Maps a rotor state to thrust: `BasicConversion`, `BessaConversion` (with dead zone), `LinearInterpConversion` (lookup table), built by `create_conversion_function`; `parse_vector` for whitespace-separated numbers |
| `uuvsim.liftdrag` | Fin lift and drag: `QuadraticLiftDrag`, `TwoLinesLiftDrag` (with stall), built by `create_lift_drag` |
| `uuvsim.fin` | `Fin`: clamps its command to the joint limits, runs it through its dynamics, applies lift and drag to its link and sets the joint angle |
| `uuvsim.buoyancy` | `Pose`, `BoundingBox`, `BuoyantObject` for submerged bodies and surface vessels |
| `uuvsim.hydrodynamics` | `HydrodynamicModel` and `FossenModel`: added mass, added Coriolis, linear and quadratic damping; built by `create_hydrodynamic_model` |
| `uuvsim.shapes` | Ready-made hydrodynamic parameters for `SphereModel`, `CylinderModel`, `SpheroidModel`, `BoxModel` |
| `uuvsim.umbilical` | `BergUmbilical` tether drag model and the `UmbilicalPlugin` that feeds it the flow velocity |
| `uuvsim.message_to_tf` | `TransformBridge`, `FrameConfig`, `StampedTransform` and `resolve` for producing position, footprint, stabilized and base frames |

## Configuration

Each family of models is selected by a `type` entry in a configuration
mapping, and each model reads its own parameters from the same mapping. A
missing parameter or an unknown type raises `ValueError`. Further types can
be added with the matching registration function: `register_dynamics`,
`register_conversion_function`, `register_lift_drag`,
`register_hydrodynamic_model`, `register_umbilical_model`.

## Examples

Actuator dynamics:

```python
from uuvsim.dynamics import create_dynamics

dyn = create_dynamics({"type": "FirstOrder", "timeConstant": 0.5})
dyn.update(0.0, 0.0)    # first call only records the time, returns 0.0
dyn.update(1.0, 0.5)    # about 0.632 after one time constant
dyn.reset()
```

Thrust conversion:

```python
from uuvsim.conversion import create_conversion_function

basic = create_conversion_function({"type": "Basic", "rotorConstant": 0.0049})
basic.convert(50.0)     # 0.0049 * 50 * |50|

table = create_conversion_function({
    "type": "LinearInterp",
    "inputValues": "-5 0 2 5",
    "outputValues": "-100 -10 20 120",
})
table.convert(1.0)      # linear interpolation between the table points: 5.0
table.convert(10.0)     # outside the table: the nearest end value, 120.0
```

Fin lift and drag:

```python
from uuvsim.liftdrag import create_lift_drag

model = create_lift_drag({
    "type": "Quadratic",
    "lift_constant": 4.13,
    "drag_constant": 0.2,
})
force = model.compute((1.0, 0.2, 0.0))   # force in the fin frame
model.params()                           # {"drag_constant": 0.2, "lift_constant": 4.13}
```

Frame transforms from a pose message:

```python
from uuvsim.message_to_tf import FrameConfig, TransformBridge

bridge = TransformBridge(FrameConfig(), broadcast=print)
bridge.handle("geometry_msgs/PoseStamped", {
    "header": {"stamp": 0.0, "frame_id": "world"},
    "pose": {
        "position": {"x": 1.0, "y": 2.0, "z": -3.0},
        "orientation": {"x": 0.0, "y": 0.0, "z": 0.0, "w": 1.0},
    },
})
```

This yields a footprint, a stabilized and a `base_link` transform.

## Conventions

* Vectors are three-element sequences or numpy arrays in the simulator's
  world frame (z up); the hydrodynamic models convert to and from the
  north-east-down convention with `to_ned` and `from_ned`.
* Six-degree-of-freedom quantities are numpy arrays of shape `(6,)` and
  matrices of shape `(6, 6)`, ordered surge, sway, heave, roll, pitch, yaw.
* Quaternions in `Pose` are `(w, x, y, z)`; in `StampedTransform` and in
  message mappings they are `(x, y, z, w)`.
* Times are simulation times in seconds.

## What this package does not do

* There is no thruster object that ties dynamics and conversion together,
  clamps commands and applies thrust to a link; combine a `Dynamics` and a
  `ConversionFunction` yourself.
* There is no physics engine, message transport or network publishing:
  forces go to the link objects you supply, and `TransformBridge` hands its
  results to the callables you pass in.
* There is no command-line program.