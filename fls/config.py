# fls/config.py
"""
Builds fuzzy logic systems from TOML configuration files.

This keeps the engine independent of file formats: the loader turns a TOML
document into FuzzyVariables, an output variable and wired InferenceNodes,
and returns an initialized FuzzyLogicSystem.

Layout
------
    [system]
    name = "follow_target"
    id = "optional-stable-id"

    [[variables]]
    name = "distance"
    max_value = 100
    value = 0
    trapezoids = [
        { name = "near",   peak = [0, 20] },
        { name = "medium", peak = [30, 50] },
        { name = "far",    peak = [80, 100] },
    ]

    [output]
    name = "speed"
    max_value = 10
    subdivision = 40
    trapezoids = [
        { name = "slow", peak = [0, 0.5], foot = [-1, 1.5] },
        ...
    ]

    [[rules]]
    name = "near_is_slow"
    op = "IDENTITY"            # AND, OR, NOT, IDENTITY
    left = "distance.near"     # variable.trapezoid, a rule name, or a system id/name
    target = "slow"            # output trapezoid name

Input trapezoids only list their peaks; feet follow the neighbours. The first
and last entries are the shoulders. Output trapezoids list peaks and feet.

TOML parsing is done via Python's built-in `tomllib` module.
"""
import logging
import tomllib
from typing import Any, Dict, List, Optional

from fls.fuzzifier import FuzzyVariable
from fls.inference import Operator
from fls.registry import SystemRegistry
from fls.system import FuzzyLogicSystem

config_log = logging.getLogger("config")


# ------------------------------------------------------------
# Load TOML
# ------------------------------------------------------------
def load_config(path: str) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_system(path: str, registry: Optional[SystemRegistry] = None) -> FuzzyLogicSystem:
    system = build_system(load_config(path), registry=registry)
    config_log.info("System '%s' loaded from %s.", system.name, path)
    return system


# ------------------------------------------------------------
# Variables
# ------------------------------------------------------------
def _color(entry: Dict[str, Any]) -> Optional[tuple]:
    color = entry.get("color")
    if color is None:
        return None
    if len(color) == 3:
        color = list(color) + [1.0]
    return tuple(float(c) for c in color)


def _check_trapezoid_count(name: str, entries: List[Dict[str, Any]]) -> None:
    if len(entries) < 2:
        raise ValueError(f"Variable '{name}' needs at least two trapezoids (the shoulders), got {len(entries)}")


def build_input_variable(cfg: Dict[str, Any]) -> FuzzyVariable:
    name = cfg["name"]
    variable = FuzzyVariable(
        name=name,
        max_value=float(cfg.get("max_value", 100.0)),
        division=int(cfg.get("division", 10)),
    )
    entries = cfg.get("trapezoids", [])
    if entries:
        _check_trapezoid_count(name, entries)
        for _ in entries[1:-1]:
            variable.add_trapezoid()
        for trapezoid, entry in zip(variable, entries):
            trapezoid.name = entry.get("name", "")
            if _color(entry) is not None:
                trapezoid.color = _color(entry)
        variable.reshape([(float(s["peak"][0]), float(s["peak"][1])) for s in entries])
    variable.value = float(cfg.get("value", 0.0))
    return variable


def build_output_variable(cfg: Dict[str, Any]) -> FuzzyVariable:
    name = cfg.get("name", "")
    variable = FuzzyVariable(
        name=name,
        max_value=float(cfg.get("max_value", 100.0)),
        independent_feet=True,
        division=int(cfg.get("division", 10)),
        subdivision=int(cfg.get("subdivision", 20)),
    )
    entries = cfg.get("trapezoids", [])
    if entries:
        _check_trapezoid_count(name, entries)
        for _ in entries[1:-1]:
            variable.add_trapezoid()
        for index, entry in enumerate(entries):
            trapezoid = variable.get_trapezoid(index)
            trapezoid.name = entry.get("name", "")
            if _color(entry) is not None:
                trapezoid.color = _color(entry)
            peak = [float(x) for x in entry["peak"]]
            foot = [float(x) for x in entry.get("foot", peak)]
            variable.move(
                index,
                peak_left=peak[0],
                peak_right=peak[1],
                foot_left=foot[0],
                foot_right=foot[1],
            )
    return variable


# ------------------------------------------------------------
# Rules
# ------------------------------------------------------------
def _resolve_operand(
    system: FuzzyLogicSystem, ref: Optional[str], registry: Optional[SystemRegistry]
) -> Optional[str]:
    if ref is None or ref == "":
        return None

    variable_name, _, trapezoid_name = ref.partition(".")
    if trapezoid_name:
        variable = system.get_variable_by_name(variable_name)
        if variable is not None:
            trapezoid = variable.get_trapezoid_by_name(trapezoid_name)
            if trapezoid is not None:
                return trapezoid.id

    node = system.get_node_by_name(ref)
    if node is not None:
        return node.id

    if registry is not None:
        if ref in registry:
            return ref
        foreign = registry.get_by_name(ref)
        if foreign is not None:
            return foreign.id

    raise ValueError(f"Unknown operand reference '{ref}' in system '{system.name}'")


def wire_rules(
    system: FuzzyLogicSystem, rules: List[Dict[str, Any]], registry: Optional[SystemRegistry] = None
) -> None:
    """
    Adds one inference node per rule, then resolves operands and targets.

    Rules may reference rules defined later in the list.
    """
    nodes = [system.add_node(Operator.parse(rule.get("op", "AND")), name=rule.get("name")) for rule in rules]

    for node, rule in zip(nodes, rules):
        node.left_input = _resolve_operand(system, rule.get("left"), registry)
        node.right_input = _resolve_operand(system, rule.get("right"), registry)
        target = rule.get("target")
        if target is not None:
            trapezoid = system.output_variable.get_trapezoid_by_name(target)
            if trapezoid is None:
                raise ValueError(f"Rule '{node.name}' targets unknown output trapezoid '{target}'")
            node.set_target(trapezoid.id)

    for node in nodes:
        if node.is_cycle_reference():
            config_log.warning("Rule '%s' is part of a cycle and will not drive its output.", node.name)


# ------------------------------------------------------------
# Main builder
# ------------------------------------------------------------
def build_system(cfg: Dict[str, Any], registry: Optional[SystemRegistry] = None) -> FuzzyLogicSystem:
    """
    Builds, initializes and optionally registers a system from a config dict.

    Args:
        cfg (Dict[str, Any]): Parsed TOML document.
        registry (Optional[SystemRegistry]): Registry used to resolve
            references to other systems. The new system is registered too.

    Returns:
        FuzzyLogicSystem: The ready-to-evaluate system.
    """
    system_cfg = cfg.get("system", {})
    variables = [build_input_variable(v) for v in cfg.get("variables", [])]
    output_variable = build_output_variable(cfg.get("output", {}))

    system = FuzzyLogicSystem(
        name=system_cfg.get("name", ""),
        system_id=system_cfg.get("id"),
        variables=variables,
        output_variable=output_variable,
    )
    system.initialize()
    if registry is not None:
        registry.register(system)

    wire_rules(system, cfg.get("rules", []), registry)
    config_log.info(
        "Built system '%s' with %d variables and %d rules.",
        system.name,
        system.variable_count(),
        system.node_count(),
    )
    return system
