"""
CloudPrism Kitchen - Ingredients grouped into recipes, cooked by a chef.
"""

from .chef import Chef
from .ingredient import Ingredient, IngredientDependency
from .recipe import Recipe

__all__ = [
    "Chef",
    "Ingredient",
    "IngredientDependency",
    "Recipe",
]
