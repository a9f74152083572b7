"""
Orchestrates a fuzzy logic system.

A FuzzyLogicSystem owns its input variables, exactly one output variable and
the inference nodes wiring them together. One evaluation pass pushes every
node's activation into the height of the output trapezoid it targets, then
the output variable's centroid gives the crisp result.

Host usage::

    system.set_value("distance", 15.0)
    speed = system.output() * system.output_variable.max_value

The engine is single-threaded and synchronous. Hosts must not mutate a
system while it is being evaluated.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

from fls.defuzzifier import Defuzzification
from fls.fuzzifier import FuzzyVariable
from fls.inference import EvalResult, InferenceNode, Operator
from fls.registry import SystemRegistry
from fls.trapezoid import Trapezoid, new_id

system_log = logging.getLogger("system")

_NODE = "node"
_INPUT = "input"
_OUTPUT = "output"


class FuzzyLogicSystem:
    """
    A set of input variables, one output variable and an inference graph.

    Attributes:
        id (str): Stable identifier, also the key in a SystemRegistry.
        name (str): Readable name.
        registry (Optional[SystemRegistry]): Set by SystemRegistry.register().
        evaluate_mode (bool): When False, evaluate() resets every output
            trapezoid to full height (design view of the unweighted union).
    """

    def __init__(
        self,
        name: Optional[str] = None,
        system_id: Optional[str] = None,
        variables: Optional[Sequence[FuzzyVariable]] = None,
        output_variable: Optional[FuzzyVariable] = None,
        nodes: Optional[Sequence[InferenceNode]] = None,
    ) -> None:
        self.id = system_id or new_id()
        self.name = name or ""
        self.registry: Optional[SystemRegistry] = None
        self.evaluate_mode = False

        if output_variable is not None and not output_variable.independent_feet:
            raise ValueError("The output variable must be created with independent_feet=True.")
        self._variables: List[FuzzyVariable] = list(variables or [])
        self._output_variable = output_variable
        self._nodes: List[InferenceNode] = list(nodes or [])

        self._initialized = False
        self._revision = 0
        self._id_table_key: Optional[Tuple] = None
        self._id_table: Dict[str, Tuple[str, object, object]] = {}

    def __repr__(self) -> str:
        return f"FuzzyLogicSystem(name={self.name!r}, id={self.id!r})"

    # ------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------
    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """
        Completes the system so it can be edited and evaluated.

        Creates a default input variable and the output variable when they
        are missing, resets runtime heights and attaches the nodes. Calling
        it again has no effect.
        """
        if self._initialized:
            return
        self._initialized = True
        self._bind()
        system_log.info(
            "System '%s' initialized with %d variables and %d nodes.",
            self.name,
            len(self._variables),
            len(self._nodes),
        )

    def _bind(self) -> None:
        if not self._variables:
            self._variables.append(FuzzyVariable())
        if self._output_variable is None:
            self._output_variable = FuzzyVariable(independent_feet=True)
        for variable in self._variables:
            variable.reset_heights()
        self._output_variable.reset_heights()
        for node in self._nodes:
            node.system = self
        self._revision += 1

    def replace_contents(
        self,
        name: str,
        variables: Sequence[FuzzyVariable],
        output_variable: FuzzyVariable,
        nodes: Sequence[InferenceNode],
    ) -> None:
        """Swaps in restored contents while keeping this object, its id and its registry."""
        for node in self._nodes:
            node.system = None
        self.name = name
        self._variables = list(variables)
        self._output_variable = output_variable
        self._nodes = list(nodes)
        self._initialized = True
        self._bind()

    def _check_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(f"FuzzyLogicSystem '{self.name}' is not initialized.")

    # ------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------
    @property
    def variables(self) -> Tuple[FuzzyVariable, ...]:
        self._check_initialized()
        return tuple(self._variables)

    @property
    def output_variable(self) -> FuzzyVariable:
        self._check_initialized()
        return self._output_variable

    def variable_count(self) -> int:
        self._check_initialized()
        return len(self._variables)

    def add_variable(self, name: Optional[str] = None, max_value: float = 100.0, **kwargs) -> FuzzyVariable:
        self._check_initialized()
        variable = FuzzyVariable(name=name, max_value=max_value, **kwargs)
        if variable.independent_feet:
            raise ValueError("Input variables cannot have independent feet.")
        self._variables.append(variable)
        self._revision += 1
        return variable

    def remove_variable(self, variable: FuzzyVariable) -> None:
        """Removes an input variable. A system always keeps at least one."""
        index = self.get_variable_index(variable)
        if len(self._variables) == 1:
            raise ValueError("Cannot remove the last input variable.")
        del self._variables[index]
        self._revision += 1

    def get_variable(self, index: int) -> FuzzyVariable:
        self._check_initialized()
        if index < 0 or index >= len(self._variables):
            raise IndexError(f"Variable index {index} out of range")
        return self._variables[index]

    def get_variable_index(self, variable: FuzzyVariable) -> int:
        self._check_initialized()
        for i, item in enumerate(self._variables):
            if item is variable:
                return i
        raise IndexError(f"Variable '{variable.name}' is not part of system '{self.name}'")

    def get_variable_by_name(self, name: str) -> Optional[FuzzyVariable]:
        self._check_initialized()
        for variable in self._variables:
            if variable.name == name:
                return variable
        return None

    def get_variable_by_id(self, variable_id: str) -> Optional[FuzzyVariable]:
        self._check_initialized()
        for variable in self._variables:
            if variable.id == variable_id:
                return variable
        return None

    def set_value(self, variable_name: str, value: float) -> None:
        """Sets the crisp value of a named input variable."""
        variable = self.get_variable_by_name(variable_name)
        if variable is None:
            raise KeyError(f"No input variable named '{variable_name}' in system '{self.name}'")
        variable.value = value

    def get_trapezoid_by_name(self, variable_name: str, trapezoid_name: str) -> Optional[Trapezoid]:
        """Finds a trapezoid by name on a named input variable or on the output variable."""
        self._check_initialized()
        variable = self.get_variable_by_name(variable_name)
        if variable is None and self._output_variable.name == variable_name:
            variable = self._output_variable
        if variable is None:
            return None
        return variable.get_trapezoid_by_name(trapezoid_name)

    # ------------------------------------------------------------
    # Inference nodes
    # ------------------------------------------------------------
    @property
    def nodes(self) -> Tuple[InferenceNode, ...]:
        self._check_initialized()
        return tuple(self._nodes)

    def node_count(self) -> int:
        self._check_initialized()
        return len(self._nodes)

    def add_node(
        self,
        operator: Union[str, int, Operator] = Operator.AND,
        left: Optional[str] = None,
        right: Optional[str] = None,
        target: Optional[str] = None,
        name: Optional[str] = None,
    ) -> InferenceNode:
        """
        Appends an inference node.

        Operands are stored as given; use InferenceNode.connect() for the
        cycle-checked editing path. The target is validated.
        """
        self._check_initialized()
        node = InferenceNode(operator, left_input=left, right_input=right, name=name)
        node.system = self
        self._nodes.append(node)
        self._revision += 1
        if target is not None:
            node.set_target(target)
        return node

    def remove_node(self, node: InferenceNode) -> None:
        self._check_initialized()
        for i, item in enumerate(self._nodes):
            if item is node:
                del self._nodes[i]
                node.system = None
                self._revision += 1
                return
        raise IndexError(f"Node '{node.name}' is not part of system '{self.name}'")

    def get_node(self, index: int) -> InferenceNode:
        self._check_initialized()
        if index < 0 or index >= len(self._nodes):
            raise IndexError(f"Node index {index} out of range")
        return self._nodes[index]

    def get_node_by_name(self, name: str) -> Optional[InferenceNode]:
        self._check_initialized()
        for node in self._nodes:
            if node.name == name:
                return node
        return None

    def conflicting_targets(self) -> Dict[str, List[InferenceNode]]:
        """Output trapezoid ids targeted by more than one node, in evaluation order."""
        self._check_initialized()
        targets: Dict[str, List[InferenceNode]] = {}
        for node in self._nodes:
            if node.output_target is not None:
                targets.setdefault(node.output_target, []).append(node)
        return {k: v for k, v in targets.items() if len(v) > 1}

    # ------------------------------------------------------------
    # Id lookups
    # ------------------------------------------------------------
    def _ids(self) -> Dict[str, Tuple[str, object, object]]:
        self._check_initialized()
        key = (
            self._revision,
            tuple((id(v), v.revision) for v in self._variables),
            self._output_variable.revision,
        )
        if key != self._id_table_key:
            table: Dict[str, Tuple[str, object, object]] = {}
            for node in self._nodes:
                table[node.id] = (_NODE, node, None)
            for variable in self._variables:
                for trapezoid in variable:
                    table[trapezoid.id] = (_INPUT, variable, trapezoid)
            for trapezoid in self._output_variable:
                table[trapezoid.id] = (_OUTPUT, self._output_variable, trapezoid)
            self._id_table = table
            self._id_table_key = key
        return self._id_table

    def get_node_by_id(self, node_id: Optional[str]) -> Optional[InferenceNode]:
        entry = self._ids().get(node_id)
        if entry is None or entry[0] != _NODE:
            return None
        return entry[1]

    def is_node_id(self, ref: Optional[str]) -> bool:
        return self.get_node_by_id(ref) is not None

    def find_input_trapezoid(self, ref: Optional[str]) -> Optional[Tuple[FuzzyVariable, Trapezoid]]:
        entry = self._ids().get(ref)
        if entry is None or entry[0] != _INPUT:
            return None
        return entry[1], entry[2]

    def find_output_trapezoid(self, ref: Optional[str]) -> Optional[Trapezoid]:
        entry = self._ids().get(ref)
        if entry is None or entry[0] != _OUTPUT:
            return None
        return entry[2]

    # ------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------
    def evaluate(self) -> None:
        """
        Pushes node outputs into the output trapezoid heights.

        In evaluate mode the last node targeting a trapezoid sets its height.
        A node that reports a cycle leaves the height at its default of 1.
        Outside evaluate mode every output trapezoid gets height 1.
        """
        self._update_heights(depth=0, strict=False)

    def _update_heights(self, depth: int, strict: bool) -> bool:
        output_variable = self.output_variable
        for trapezoid in output_variable:
            trapezoid.height = 1.0
            if not self.evaluate_mode:
                continue

            node = None
            for candidate in self._nodes:
                if candidate.output_target == trapezoid.id:
                    node = candidate
            if node is None:
                continue

            result = node.evaluate(depth)
            if result.cycle:
                if strict:
                    return False
                system_log.warning(
                    "Cycle reference at node '%s'; output '%s' keeps height 1.",
                    node.name,
                    trapezoid.name,
                )
                continue
            trapezoid.height = max(0.0, min(1.0, result.value))
        return True

    def defuzzify(self) -> Defuzzification:
        """Defuzzifies the output variable at its current heights."""
        return self.output_variable.defuzzify()

    def evaluate_output(self, depth: int = 0) -> EvalResult:
        """
        Runs one forced evaluation pass and defuzzifies.

        Args:
            depth (int): Hops already taken when this system is evaluated as
                an operand of another system. At depth 0 cycles are tolerated
                per trapezoid; deeper, the first cycle aborts the pass.

        Returns:
            EvalResult: The centroid x normalized by the output max_value, or
                a cycle marker.
        """
        previous = self.evaluate_mode
        self.evaluate_mode = True
        try:
            completed = self._update_heights(depth, strict=depth > 0)
        finally:
            self.evaluate_mode = previous
        if not completed:
            return EvalResult.cycle_detected()

        result = self.defuzzify()
        output = result.x / self._output_variable.max_value
        system_log.debug("System '%s' output= %.4f (centroid x= %.4f)", self.name, output, result.x)
        return EvalResult(output)

    def output(self) -> float:
        """
        Evaluates the whole system and returns the normalized crisp output.

        The value is the centroid divided by the output variable's max_value.
        It can leave [0, 1] slightly because the output domain is extended.
        """
        return self.evaluate_output().value

    def is_cycle_reference(self) -> bool:
        """True when this system's output depends on itself through other registered systems."""
        self._check_initialized()
        if self.registry is None:
            return False
        return self.registry.is_cycle_reference(self)
