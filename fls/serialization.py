"""
Serializes whole fuzzy logic systems to bytes and back.

Layout::

    +--------------------------+-------------------------------+
    | 8-byte magic header      | UTF-8 JSON payload            |
    | AB CD EF 12 34 56 78 90  | variables, output, nodes, ids |
    +--------------------------+-------------------------------+

The header is a plain prefix comparison for fast rejection of foreign files.
It is not a checksum and offers no tamper protection. Runtime trapezoid
heights are not stored.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from fls.fuzzifier import FuzzyVariable
from fls.inference import InferenceNode, Operator
from fls.registry import SystemRegistry
from fls.system import FuzzyLogicSystem
from fls.trapezoid import Trapezoid

serialization_log = logging.getLogger("serialization")

HEADER = bytes([0xAB, 0xCD, 0xEF, 0x12, 0x34, 0x56, 0x78, 0x90])


def validate_header(data: Optional[bytes]) -> bool:
    """True when data starts with the magic header."""
    if data is None or len(data) < len(HEADER):
        return False
    return data[: len(HEADER)] == HEADER


# ------------------------------------------------------------
# Dict conversion
# ------------------------------------------------------------
def _trapezoid_to_dict(trapezoid: Trapezoid) -> Dict[str, Any]:
    return {
        "id": trapezoid.id,
        "name": trapezoid.name,
        "foot_left": trapezoid.foot_left,
        "peak_left": trapezoid.peak_left,
        "peak_right": trapezoid.peak_right,
        "foot_right": trapezoid.foot_right,
        "color": list(trapezoid.color),
    }


def _variable_to_dict(variable: FuzzyVariable) -> Dict[str, Any]:
    return {
        "id": variable.id,
        "name": variable.name,
        "max_value": variable.max_value,
        "value": variable.value,
        "division": variable.division,
        "subdivision": variable.subdivision,
        "min_extension": variable.min_extension,
        "max_extension": variable.max_extension,
        "trapezoids": [_trapezoid_to_dict(t) for t in variable],
    }


def _node_to_dict(node: InferenceNode) -> Dict[str, Any]:
    return {
        "id": node.id,
        "name": node.name,
        "op": node.operator.name,
        "left": node.left_input,
        "right": node.right_input,
        "target": node.output_target,
    }


def system_to_dict(system: FuzzyLogicSystem) -> Dict[str, Any]:
    return {
        "id": system.id,
        "name": system.name,
        "variables": [_variable_to_dict(v) for v in system.variables],
        "output_variable": _variable_to_dict(system.output_variable),
        "nodes": [_node_to_dict(n) for n in system.nodes],
    }


def _trapezoid_from_dict(data: Dict[str, Any]) -> Trapezoid:
    return Trapezoid(
        id=data["id"],
        name=data.get("name", ""),
        foot_left=float(data["foot_left"]),
        peak_left=float(data["peak_left"]),
        peak_right=float(data["peak_right"]),
        foot_right=float(data["foot_right"]),
        color=tuple(float(c) for c in data.get("color", (1.0, 1.0, 1.0, 1.0))),
    )


def _variable_from_dict(data: Dict[str, Any], independent_feet: bool) -> FuzzyVariable:
    return FuzzyVariable.from_trapezoids(
        [_trapezoid_from_dict(t) for t in data["trapezoids"]],
        name=data.get("name", ""),
        max_value=float(data["max_value"]),
        variable_id=data["id"],
        independent_feet=independent_feet,
        division=int(data.get("division", 10)),
        subdivision=int(data.get("subdivision", 20)),
        min_extension=data.get("min_extension"),
        max_extension=data.get("max_extension"),
        value=float(data.get("value", 0.0)),
    )


def _node_from_dict(data: Dict[str, Any]) -> InferenceNode:
    return InferenceNode(
        Operator.parse(data["op"]),
        left_input=data.get("left"),
        right_input=data.get("right"),
        output_target=data.get("target"),
        name=data.get("name", ""),
        node_id=data["id"],
    )


def system_from_dict(
    data: Dict[str, Any],
    registry: Optional[SystemRegistry] = None,
    into: Optional[FuzzyLogicSystem] = None,
) -> FuzzyLogicSystem:
    """
    Rebuilds a system from its dict form.

    Args:
        data (Dict[str, Any]): As produced by system_to_dict().
        registry (Optional[SystemRegistry]): Registry to register a newly
            built system with.
        into (Optional[FuzzyLogicSystem]): Existing system to overwrite in
            place. Its object identity, id and registry are kept.

    Returns:
        FuzzyLogicSystem: The initialized system.
    """
    variables = [_variable_from_dict(v, independent_feet=False) for v in data["variables"]]
    output_variable = _variable_from_dict(data["output_variable"], independent_feet=True)
    nodes = [_node_from_dict(n) for n in data.get("nodes", [])]

    if into is not None:
        into.replace_contents(data.get("name", ""), variables, output_variable, nodes)
        return into

    system = FuzzyLogicSystem(
        name=data.get("name", ""),
        system_id=data["id"],
        variables=variables,
        output_variable=output_variable,
        nodes=nodes,
    )
    system.initialize()
    if registry is not None:
        registry.register(system)
    return system


# ------------------------------------------------------------
# Bytes
# ------------------------------------------------------------
def to_payload(system: FuzzyLogicSystem) -> bytes:
    """The structured-data payload without the magic header."""
    return json.dumps(system_to_dict(system), indent=2).encode("utf-8")


def serialize(system: FuzzyLogicSystem) -> bytes:
    data = HEADER + to_payload(system)
    serialization_log.debug("Serialized system '%s' into %d bytes.", system.name, len(data))
    return data


def deserialize(
    data: bytes,
    registry: Optional[SystemRegistry] = None,
    into: Optional[FuzzyLogicSystem] = None,
) -> FuzzyLogicSystem:
    """
    Restores a system from bytes produced by serialize().

    Raises:
        ValueError: If the magic header is missing. The payload is not
            parsed in that case.
    """
    if not validate_header(data):
        raise ValueError("Data does not start with the fuzzy logic system header.")
    payload = json.loads(data[len(HEADER):].decode("utf-8"))
    system = system_from_dict(payload, registry=registry, into=into)
    serialization_log.debug("Deserialized system '%s' (%s).", system.name, system.id)
    return system


# ------------------------------------------------------------
# Files
# ------------------------------------------------------------
def save(system: FuzzyLogicSystem, path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "wb") as f:
        f.write(serialize(system))
    serialization_log.info("Saved system '%s' to %s.", system.name, path)


def load(path: str, registry: Optional[SystemRegistry] = None) -> FuzzyLogicSystem:
    with open(path, "rb") as f:
        data = f.read()
    system = deserialize(data, registry=registry)
    serialization_log.info("Loaded system '%s' from %s.", system.name, path)
    return system
