"""
Evaluates the inference graph: boolean-style algebra over fuzzy activations.

Each InferenceNode applies one operator to one or two operands. An operand
is referenced by id and may name:

    - a trapezoid on one of the system's input variables (its membership of
      the variable's current value),
    - another inference node of the same system (evaluated recursively),
    - a whole foreign FuzzyLogicSystem found in the registry (its normalized
      output).

Unknown or empty operands evaluate to 0.

Cycles are not errors. Evaluation returns an EvalResult that is either a
value or a cycle marker, and every operator checks its operands before
applying its own math. Recursion is cut off past MAX_DEPTH hops, which is
treated as a cycle. The graph walk in is_cycle_reference() is the edit-time
check.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple, Union

from fls.trapezoid import new_id

if TYPE_CHECKING:
    from fls.system import FuzzyLogicSystem

inference_log = logging.getLogger("inference")

MAX_DEPTH = 10
CYCLE_SENTINEL = -1.0


class Operator(IntEnum):
    AND = 1  # intersection of left and right
    OR = 2  # union of left and right
    NOT = 3  # complement of left, right ignored
    IDENTITY = 4  # left as is, right ignored

    @property
    def is_binary(self) -> bool:
        return self in (Operator.AND, Operator.OR)

    @classmethod
    def parse(cls, value: Union[str, int, "Operator"]) -> "Operator":
        """Accepts an Operator, its integer value, or a name such as 'and' or 'I'."""
        if isinstance(value, Operator):
            return value
        if isinstance(value, int):
            return cls(value)
        name = str(value).strip().upper()
        if name in ("I", "ID", "_I"):
            return cls.IDENTITY
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown inference operator '{value}'") from None


_COMBINATORS: Dict[Operator, Callable[..., float]] = {
    Operator.AND: min,
    Operator.OR: max,
    Operator.NOT: lambda a: 1.0 - a,
    Operator.IDENTITY: lambda a: a,
}


@dataclass(frozen=True)
class EvalResult:
    """Either an activation value or a detected cycle."""

    value: float = 0.0
    cycle: bool = False

    @classmethod
    def cycle_detected(cls) -> "EvalResult":
        return cls(cycle=True)


class InferenceNode:
    """
    One operator application in the inference graph.

    Attributes:
        id (str): Stable identifier.
        name (str): Readable name.
        operator (Operator): AND, OR, NOT or IDENTITY.
        left_input (Optional[str]): Id of the left operand.
        right_input (Optional[str]): Id of the right operand, used by AND/OR.
        output_target (Optional[str]): Id of the output trapezoid whose height
            this node drives.
        system (Optional[FuzzyLogicSystem]): The owning system, set when the
            node is added to it.
    """

    def __init__(
        self,
        operator: Union[str, int, Operator] = Operator.AND,
        left_input: Optional[str] = None,
        right_input: Optional[str] = None,
        output_target: Optional[str] = None,
        name: Optional[str] = None,
        node_id: Optional[str] = None,
    ) -> None:
        self.id = node_id or new_id()
        self.name = name or ""
        self.operator = Operator.parse(operator)
        self.left_input = left_input
        self.right_input = right_input
        self.output_target = output_target
        self.system: Optional["FuzzyLogicSystem"] = None

    def __repr__(self) -> str:
        return (
            f"InferenceNode(name={self.name!r}, operator={self.operator.name}, "
            f"left={self.left_input!r}, right={self.right_input!r}, target={self.output_target!r})"
        )

    def operands(self) -> Tuple[Optional[str], ...]:
        """The operand ids this node's operator actually reads."""
        if self.operator.is_binary:
            return self.left_input, self.right_input
        return (self.left_input,)

    # ------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------
    def evaluate(self, depth: int = 0) -> EvalResult:
        """
        Evaluates this node against the current variable values.

        Args:
            depth (int): Number of hops already taken from the root of the
                evaluation. Hosts call with 0.

        Returns:
            EvalResult: The activation, normally in [0, 1], or a cycle marker.
        """
        depth += 1
        results = [self._resolve(ref, depth) for ref in self.operands()]
        if any(result.cycle for result in results):
            return EvalResult.cycle_detected()
        value = _COMBINATORS[self.operator](*(result.value for result in results))
        return EvalResult(value)

    def output(self) -> float:
        """
        Evaluates this node on the numeric channel.

        Returns:
            float: The activation, or CYCLE_SENTINEL (negative) when a cycle
                was detected. Check with output_is_cycle_reference().
        """
        result = self.evaluate()
        if result.cycle:
            return CYCLE_SENTINEL
        return result.value

    @staticmethod
    def output_is_cycle_reference(output: float) -> bool:
        return output < 0

    def _resolve(self, ref: Optional[str], depth: int) -> EvalResult:
        system = self._require_system()
        if not ref:
            return EvalResult(0.0)

        node = system.get_node_by_id(ref)
        if node is not None:
            if depth > MAX_DEPTH:
                inference_log.debug("Depth %d exceeded at node '%s', assuming a cycle.", depth, self.name)
                return EvalResult.cycle_detected()
            return node.evaluate(depth)

        found = system.find_input_trapezoid(ref)
        if found is not None:
            variable, trapezoid = found
            return EvalResult(variable.membership(trapezoid))

        registry = system.registry
        if registry is not None and ref in registry:
            if depth > MAX_DEPTH:
                inference_log.debug("Depth %d exceeded at node '%s', assuming a cycle.", depth, self.name)
                return EvalResult.cycle_detected()
            return registry.get(ref).evaluate_output(depth)

        inference_log.debug("Node '%s' operand %s resolves to nothing, using 0.", self.name, ref)
        return EvalResult(0.0)

    # ------------------------------------------------------------
    # Edit-time checks
    # ------------------------------------------------------------
    def is_cycle_reference(self) -> bool:
        """
        Walks the operand chains and reports whether this node reaches itself.

        The walk follows inference nodes of the owning system. An operand that
        names a registered system counts as a cycle when that system is the
        owner or transitively references the owner.
        """
        system = self._require_system()
        registry = system.registry
        pending = list(self.operands())
        seen = set()
        while pending:
            ref = pending.pop()
            if not ref or ref in seen:
                continue
            seen.add(ref)
            if ref == self.id:
                return True

            node = system.get_node_by_id(ref)
            if node is not None:
                pending.extend(node.operands())
            elif registry is not None and ref in registry:
                foreign = registry.get(ref)
                if foreign is system or registry.references(foreign, system.id):
                    return True
        return False

    def connect(self, side: str, ref: Optional[str]) -> bool:
        """
        Sets one operand unless doing so would create a cycle.

        Args:
            side (str): 'left' or 'right'.
            ref (Optional[str]): The operand id, or None to clear it.

        Returns:
            bool: True if the operand was set, False if it was refused.
        """
        if side not in ("left", "right"):
            raise ValueError(f"side must be 'left' or 'right', got {side!r}")
        attr = f"{side}_input"
        previous = getattr(self, attr)
        setattr(self, attr, ref)
        if self.is_cycle_reference():
            setattr(self, attr, previous)
            inference_log.warning("Cycle reference is not allowed: %s.%s -> %s", self.name, side, ref)
            return False
        return True

    def set_target(self, trapezoid_id: Optional[str]) -> None:
        """
        Points this node at an output trapezoid.

        Raises:
            ValueError: If the id is not a trapezoid of the owning system's
                output variable.
        """
        system = self._require_system()
        if trapezoid_id is not None:
            if system.find_output_trapezoid(trapezoid_id) is None:
                raise ValueError(f"{trapezoid_id} is not an output trapezoid of '{system.name}'")
            for other in system.nodes:
                if other is not self and other.output_target == trapezoid_id:
                    inference_log.warning(
                        "Nodes '%s' and '%s' both target output trapezoid %s; the later node wins.",
                        other.name,
                        self.name,
                        trapezoid_id,
                    )
        self.output_target = trapezoid_id

    def _require_system(self) -> "FuzzyLogicSystem":
        if self.system is None:
            raise RuntimeError(f"Inference node '{self.name}' is not attached to a system.")
        return self.system
