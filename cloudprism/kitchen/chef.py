"""
Chef - Coordinates one deployable stack.

Owns the recipes of a stack and runs the stack operations against the state
store the stack is bound to.
"""

import logging
from typing import Any, Self

from cloudprism.engine import PulumiEngine
from cloudprism.settings import get_settings
from cloudprism.statestore import StateStore

from .ingredient import Ingredient
from .recipe import Recipe

logger = logging.getLogger(__name__)


class Chef:
    """Runs stack operations for the recipes appended to it.

    Every operation hands the engine the ingredients of all recipes, in the
    order the recipes were appended and then in each recipe's own order,
    together with the URI of the bound state store. The store should be
    opened before the first operation. The Chef never deletes the store.

    Example:
        store = LocalStateStore()
        store.open()

        chef = Chef("website", store)
        chef.append(Recipe("content", index_html, robots_txt))
        chef.up()
    """

    def __init__(
        self,
        project_name: str,
        state_store: StateStore,
        engine: PulumiEngine | None = None,
        stack_name: str | None = None,
    ):
        """
        Initialize the Chef.

        Args:
            project_name: Pulumi project name of the stack
            state_store: Store holding the stack's state
            engine: Engine to delegate to (defaults to the store's engine)
            stack_name: Stack name (defaults to settings)
        """
        self._project_name = project_name
        self.state_store = state_store
        self.engine = engine or state_store.engine
        self.stack_name = stack_name or get_settings().stack_name
        self._recipes: list[Recipe] = []

    @property
    def project_name(self) -> str:
        return self._project_name

    @property
    def recipes(self) -> list[Recipe]:
        return list(self._recipes)

    @property
    def ingredients(self) -> list[Ingredient]:
        """All ingredients of all recipes, flattened in application order."""
        return [
            ingredient
            for recipe in self._recipes
            for ingredient in recipe.ingredients
        ]

    def append(self, *recipes: Recipe) -> Self:
        """Add recipes to the stack."""
        for recipe in recipes:
            logger.debug(
                f"Appending recipe {recipe.name} ({len(recipe)} ingredients) to {self.project_name}"
            )
        self._recipes.extend(recipes)
        return self

    def _stack_args(self) -> tuple[str, str, str]:
        return self.project_name, self.stack_name, self.state_store.uri

    def up(self) -> dict[str, Any]:
        """Create or update the stack."""
        return self.engine.up(*self._stack_args(), self.ingredients)

    def preview(self) -> dict[str, Any]:
        """Preview the creation or update of the stack."""
        return self.engine.preview(*self._stack_args(), self.ingredients)

    def down(self) -> dict[str, Any]:
        """Delete all resources of the stack, keeping the stack."""
        return self.engine.destroy(*self._stack_args(), self.ingredients)

    def destroy(self, force: bool = False) -> dict[str, Any]:
        """Delete the stack's resources, then the stack itself.

        Args:
            force: Remove the stack even if resources remain in its state

        The state store is left alone; delete it separately if wanted.
        """
        result = self.engine.destroy(*self._stack_args(), self.ingredients)
        self.engine.remove_stack(*self._stack_args(), force=force)
        logger.info(f"Stack {self.stack_name} of {self.project_name} removed")
        return result

    def refresh(self) -> dict[str, Any]:
        """Reconcile the stack state with the actual resources."""
        return self.engine.refresh(*self._stack_args(), self.ingredients)

    def results(self) -> dict[str, Any]:
        """Return the outputs of the stack."""
        return self.engine.outputs(*self._stack_args())

    def history(self) -> list[dict[str, Any]]:
        """Return the deployment/update history of the stack."""
        return self.engine.history(*self._stack_args())

    def __repr__(self) -> str:
        return (
            f"Chef({self.project_name!r}, stack={self.stack_name!r}, "
            f"recipes={[recipe.name for recipe in self._recipes]})"
        )
