"""Base ingredient classes for CloudPrism."""

import logging
from typing import Any, Self

import pulumi
from pydantic import BaseModel, PrivateAttr

from cloudprism.errors import IngredientNotAppliedError

logger = logging.getLogger(__name__)


class IngredientDependency:
    """Deferred reference to the result of another ingredient.

    Resolving it before the ingredient has been applied raises
    IngredientNotAppliedError instead of handing out a stale value.

    Example:
        readme = FileIngredient(name="readme", path="out/README.md", content="hi")
        ref = readme.dependency()
        ref()  # raises until readme.upsert() has run
    """

    def __init__(self, ingredient: "Ingredient"):
        self.ingredient = ingredient

    def resolve(self) -> Any:
        if not self.ingredient.applied:
            raise IngredientNotAppliedError(
                f"Ingredient '{self.ingredient.name}' has not been applied yet"
            )
        return self.ingredient.result

    def __call__(self) -> Any:
        return self.resolve()

    def __repr__(self) -> str:
        return f"IngredientDependency({self.ingredient.name!r})"


class Ingredient(BaseModel):
    """Base ingredient class - the smallest declarative unit of a stack.

    Subclasses implement ``to_pulumi()`` to declare Pulumi resources. The
    engine calls ``upsert()`` while running the stack's program, which
    records whatever ``to_pulumi()`` returns as the ingredient's result.

    Ordering between ingredients follows their position in the recipes.
    Use ``after()`` to add an explicit Pulumi dependency on other
    ingredients; those must be applied first.

    Attributes:
        name: Pulumi resource name of the ingredient
    """

    name: str

    _result: Any = PrivateAttr(default=None)
    _applied: bool = PrivateAttr(default=False)
    _dependencies: list[IngredientDependency] = PrivateAttr(
        default_factory=list
    )

    @property
    def applied(self) -> bool:
        return self._applied

    @property
    def result(self) -> Any:
        """Result of the last application, None before the first one."""
        return self._result

    def dependency(self) -> IngredientDependency:
        """Return a deferred reference to this ingredient's result."""
        return IngredientDependency(self)

    def after(self, *ingredients: "Ingredient") -> Self:
        """Make this ingredient depend on other ingredients.

        Args:
            *ingredients: Ingredients whose resources must exist first

        Returns:
            Self for method chaining

        Raises:
            TypeError: If any argument is not an Ingredient
        """
        for ingredient in ingredients:
            if not isinstance(ingredient, Ingredient):
                raise TypeError(
                    f"Can only depend on Ingredient objects, got {type(ingredient).__name__}"
                )
            self._dependencies.append(ingredient.dependency())
            logger.debug(f"{self.name} depends on {ingredient.name}")

        return self

    def _build_dependency_options(self) -> pulumi.ResourceOptions | None:
        """Build Pulumi ResourceOptions from the declared dependencies.

        Returns:
            pulumi.ResourceOptions with depends_on set, or None when there is
            nothing to depend on
        """
        depends_on = []
        for dependency in self._dependencies:
            result = dependency.resolve()
            if isinstance(result, pulumi.Resource):
                depends_on.append(result)
            elif isinstance(result, (list, tuple)):
                depends_on.extend(
                    r for r in result if isinstance(r, pulumi.Resource)
                )

        if depends_on:
            return pulumi.ResourceOptions(depends_on=depends_on)

        return None

    def reset(self) -> None:
        """Forget the previous application so references fail until re-applied."""
        self._result = None
        self._applied = False

    def upsert(self) -> Any:
        """Apply the ingredient within the running Pulumi program."""
        result = self.to_pulumi()
        self._result = result
        self._applied = True
        return result

    def to_pulumi(self) -> Any:
        """Create the Pulumi resource(s) for this ingredient.

        Returns:
            Pulumi Resource object(s) or any other result value
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement to_pulumi()"
        )
