"""
CloudPrism Ingredients - concrete building blocks for recipes.
"""

from .command import CommandIngredient
from .file import FileIngredient

__all__ = [
    "CommandIngredient",
    "FileIngredient",
]
