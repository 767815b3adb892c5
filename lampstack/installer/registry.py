# lampstack/installer/registry.py
"""
Registry for installer steps.

This module provides a registry for step classes to register themselves
and a decorator for registering them.
"""

from typing import Any, Dict, List, Optional, Set, Type

from lampstack.installer.base_component import BaseComponent


class ComponentRegistry:
    """
    Registry for installer steps.

    This class provides a registry for step classes to register themselves
    and methods for accessing registered steps.
    """

    _registry: Dict[str, Type["BaseComponent"]] = {}

    @classmethod
    def register(cls, name: str, metadata: Optional[Dict[str, Any]] = None):
        """
        Decorator for registering component classes.

        Args:
            name: The name of the component.
            metadata: Optional metadata for the component: hard
                ``dependencies``, ordering-only ``after`` constraints,
                ``detect_command`` and ``description``.

        Returns:
            A decorator function that registers the component class.
        """

        def decorator(
            component_class: Type["BaseComponent"],
        ) -> Type["BaseComponent"]:
            if name in cls._registry:
                raise ValueError(
                    f"Component with name '{name}' already registered"
                )

            # Store metadata in the class if provided
            if metadata:
                component_class.metadata = metadata
            component_class.component_name = name

            cls._registry[name] = component_class
            return component_class

        return decorator

    @classmethod
    def get_component(cls, name: str) -> Type["BaseComponent"]:
        """
        Get a component class by name.

        Raises:
            KeyError: If no component with the given name is registered.
        """
        if name not in cls._registry:
            raise KeyError(f"No component registered with name '{name}'")

        return cls._registry[name]

    @classmethod
    def get_all_components(cls) -> Dict[str, Type["BaseComponent"]]:
        """
        Get all registered components.

        Returns:
            A dictionary mapping component names to component classes.
        """
        return cls._registry.copy()

    @classmethod
    def get_component_dependencies(cls, name: str) -> Set[str]:
        """
        Get the hard dependencies of a component.

        Raises:
            KeyError: If no component with the given name is registered.
        """
        component_class = cls.get_component(name)
        metadata = getattr(component_class, "metadata", {})
        return set(metadata.get("dependencies", []))

    @classmethod
    def get_component_predecessors(cls, name: str) -> List[str]:
        """Hard dependencies followed by ``after`` constraints, in declared order."""
        component_class = cls.get_component(name)
        metadata = getattr(component_class, "metadata", {})
        return list(metadata.get("dependencies", [])) + [
            other
            for other in metadata.get("after", [])
            if other not in metadata.get("dependencies", [])
        ]

    @classmethod
    def resolve_dependencies(cls, components: List[str]) -> List[str]:
        """
        Resolve dependencies for a list of components.

        Hard dependencies are added to the plan. An ``after`` constraint only
        orders two steps that are both planned. Otherwise the requested order
        is kept.

        Args:
            components: A list of component names.

        Returns:
            A list of component names in the order they should be processed.

        Raises:
            KeyError: If any of the components or their dependencies are not registered.
            ValueError: If there is a circular dependency.
        """
        planned: Set[str] = set()

        def collect(component: str):
            if component in planned:
                return
            planned.add(component)
            for dependency in sorted(cls.get_component_dependencies(component)):
                collect(dependency)

        for component in components:
            collect(component)

        result: List[str] = []
        visited: Set[str] = set()
        temp_visited: Set[str] = set()

        def visit(component: str):
            if component in temp_visited:
                raise ValueError(
                    f"Circular dependency detected involving '{component}'"
                )

            if component in visited:
                return

            temp_visited.add(component)

            for predecessor in cls.get_component_predecessors(component):
                if predecessor in planned:
                    visit(predecessor)

            temp_visited.remove(component)
            visited.add(component)
            result.append(component)

        for component in components:
            if component not in visited:
                visit(component)

        return result
