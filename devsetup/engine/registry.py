# devsetup/engine/registry.py
"""
Registry for provisioning steps.

This module provides a registry that step classes register themselves with,
and resolves the registered steps into a stable execution order.
"""

from typing import Any, Dict, List, Optional, Set, Type

from devsetup.engine.base_step import BaseStep


class StepRegistry:
    """
    Registry for provisioning steps.

    Steps are ordered by their ``order`` metadata (registration order breaks
    ties), then adjusted so every step runs after its dependencies.
    """

    _registry: Dict[str, Type[BaseStep]] = {}

    @classmethod
    def register(cls, name: str, metadata: Optional[Dict[str, Any]] = None):
        """
        Decorator for registering step classes.

        Args:
            name: The unique name of the step.
            metadata: Optional metadata: ``order``, ``dependencies``,
                ``critical`` and ``description``.

        Returns:
            A decorator function that registers the step class.
        """

        def decorator(step_class: Type[BaseStep]) -> Type[BaseStep]:
            if name in cls._registry:
                raise ValueError(f"Step with name '{name}' already registered")

            merged = dict(BaseStep.metadata)
            if metadata:
                merged.update(metadata)
            step_class.metadata = merged
            step_class.name = name

            cls._registry[name] = step_class
            return step_class

        return decorator

    @classmethod
    def get_step(cls, name: str) -> Type[BaseStep]:
        """
        Get a step class by name.

        Raises:
            KeyError: If no step with the given name is registered.
        """
        if name not in cls._registry:
            raise KeyError(f"No step registered with name '{name}'")

        return cls._registry[name]

    @classmethod
    def get_all_steps(cls) -> Dict[str, Type[BaseStep]]:
        return cls._registry.copy()

    @classmethod
    def get_step_dependencies(cls, name: str) -> Set[str]:
        step_class = cls.get_step(name)
        metadata = getattr(step_class, "metadata", {})
        return set(metadata.get("dependencies", []))

    @classmethod
    def resolve_dependencies(cls, step_names: List[str]) -> List[str]:
        """
        Resolve dependencies for a list of steps.

        Args:
            step_names: A list of step names.

        Returns:
            The steps plus their dependencies, each after everything it
            depends on.

        Raises:
            KeyError: If any step or dependency is not registered.
            ValueError: If there is a circular dependency.
        """
        result: List[str] = []
        visited: Set[str] = set()
        temp_visited: Set[str] = set()

        def visit(step_name: str) -> None:
            if step_name in temp_visited:
                raise ValueError(
                    f"Circular dependency detected involving '{step_name}'"
                )

            if step_name in visited:
                return

            temp_visited.add(step_name)

            # Sorted so the result does not depend on set iteration order.
            for dependency in sorted(
                cls.get_step_dependencies(step_name), key=cls._sort_key
            ):
                visit(dependency)

            temp_visited.remove(step_name)
            visited.add(step_name)
            result.append(step_name)

        for step_name in step_names:
            if step_name not in visited:
                visit(step_name)

        return result

    @classmethod
    def ordered_names(cls) -> List[str]:
        """All registered step names in execution order."""
        return cls.resolve_dependencies(
            sorted(cls._registry, key=cls._sort_key)
        )

    @classmethod
    def _sort_key(cls, name: str) -> tuple:
        names = list(cls._registry)
        step_class = cls._registry.get(name)
        order = step_class.metadata.get("order", 0) if step_class else 0
        position = names.index(name) if name in names else len(names)
        return (order, position)
