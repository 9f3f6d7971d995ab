"""
CloudPrism - State stores and recipes for Pulumi stacks.

Provisions and tears down the backend Pulumi keeps stack state in (a local
directory or an encrypted S3 bucket) and composes ingredients into recipes
that a chef applies as one stack.
"""

from .engine import PulumiEngine
from .kitchen import Chef, Ingredient, IngredientDependency, Recipe
from .naming import ApplicationEnvironment, sanitize, sanitize_for_id, store_name
from .settings import CloudPrismSettings, get_settings, reload_settings
from .statestore import LocalStateStore, S3StateStore, StateStore, get_state_store

__version__ = "0.1.0"
__all__ = [
    "ApplicationEnvironment",
    "Chef",
    "CloudPrismSettings",
    "Ingredient",
    "IngredientDependency",
    "LocalStateStore",
    "PulumiEngine",
    "Recipe",
    "S3StateStore",
    "StateStore",
    "get_settings",
    "get_state_store",
    "reload_settings",
    "sanitize",
    "sanitize_for_id",
    "store_name",
]
