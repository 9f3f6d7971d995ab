"""Recipes - named, ordered groups of ingredients."""

from collections.abc import Iterator
from typing import Self

from .ingredient import Ingredient


class Recipe:
    """A named, append-only sequence of ingredients.

    Ingredients are applied in insertion order. Nothing is deduplicated or
    validated; the name is for grouping and reporting only.
    """

    def __init__(self, name: str, *ingredients: Ingredient):
        self._name = name
        self._ingredients: list[Ingredient] = []
        self.append(*ingredients)

    @property
    def name(self) -> str:
        return self._name

    @property
    def ingredients(self) -> list[Ingredient]:
        return list(self._ingredients)

    def append(self, *ingredients: Ingredient) -> Self:
        self._ingredients.extend(ingredients)
        return self

    def __iter__(self) -> Iterator[Ingredient]:
        return iter(self._ingredients)

    def __len__(self) -> int:
        return len(self._ingredients)

    def __repr__(self) -> str:
        names = [ingredient.name for ingredient in self._ingredients]
        return f"Recipe({self._name!r}, {names})"
