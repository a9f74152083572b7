"""
Registry of live fuzzy logic systems, keyed by system id.

Inference nodes may use another system's output as an operand. They refer to
it by id, and the registry resolves that id. The registry is an explicit
object owned by the host (an editor session, a simulation); it is not global
state. Registering a system binds it to the registry, unregistering unbinds
it.

Single-threaded by contract, like the rest of the engine.
"""

import logging
from typing import TYPE_CHECKING, Dict, Iterator, Optional, Set

if TYPE_CHECKING:
    from fls.system import FuzzyLogicSystem

registry_log = logging.getLogger("registry")


class SystemRegistry:
    """Ownership table of the systems that may reference each other."""

    def __init__(self) -> None:
        self._systems: Dict[str, "FuzzyLogicSystem"] = {}

    def __contains__(self, system_id: object) -> bool:
        return system_id in self._systems

    def __len__(self) -> int:
        return len(self._systems)

    def __iter__(self) -> Iterator["FuzzyLogicSystem"]:
        return iter(list(self._systems.values()))

    def register(self, system: "FuzzyLogicSystem") -> bool:
        """
        Adds a system and binds it to this registry.

        Returns:
            bool: False if a system with the same id is already registered.
        """
        if system.id in self._systems:
            registry_log.warning("System %s is already registered.", system.id)
            return False
        self._systems[system.id] = system
        system.registry = self
        registry_log.info("Registered system '%s' (%s).", system.name, system.id)
        return True

    def unregister(self, system: "FuzzyLogicSystem") -> bool:
        """Removes a system. Returns False if it was not registered here."""
        if self._systems.get(system.id) is not system:
            return False
        del self._systems[system.id]
        system.registry = None
        registry_log.info("Unregistered system '%s' (%s).", system.name, system.id)
        return True

    def unregister_all(self) -> None:
        for system in list(self._systems.values()):
            system.registry = None
        self._systems.clear()

    def get(self, system_id: str) -> "FuzzyLogicSystem":
        """Looks up a system by id, raising KeyError when unknown."""
        try:
            return self._systems[system_id]
        except KeyError:
            raise KeyError(f"No registered system with id {system_id}") from None

    def query(self, system_id: str) -> Optional["FuzzyLogicSystem"]:
        return self._systems.get(system_id)

    def get_by_name(self, name: str) -> Optional["FuzzyLogicSystem"]:
        for system in self._systems.values():
            if system.name == name:
                return system
        return None

    def references(
        self, source: "FuzzyLogicSystem", target_id: str, visited: Optional[Set[str]] = None
    ) -> bool:
        """
        Reports whether any node of source reads target_id's output,
        directly or through other registered systems.
        """
        if visited is None:
            visited = set()
        visited.add(source.id)
        for node in source.nodes:
            for ref in node.operands():
                if ref not in self._systems:
                    continue
                if ref == target_id:
                    return True
                if ref not in visited and self.references(self._systems[ref], target_id, visited):
                    return True
        return False

    def is_cycle_reference(self, system: "FuzzyLogicSystem") -> bool:
        """True when the system's output depends on itself across system boundaries."""
        return self.references(system, system.id)
