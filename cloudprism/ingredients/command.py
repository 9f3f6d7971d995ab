"""Command ingredient for running local shell commands on create/update/delete."""

from pulumi_command import local
from pydantic import Field

from cloudprism.kitchen import Ingredient


class CommandIngredient(Ingredient):
    """Command ingredient - runs local commands as a pulumi-command resource.

    Example:
        CommandIngredient(
            name="build",
            create="make build",
            delete="make clean",
            dir="services/api",
        )
    """

    create: str = Field(description="Command run when the resource is created")
    update: str | None = Field(default=None, description="Command run on update (defaults to create)")
    delete: str | None = Field(default=None, description="Command run when the resource is deleted")
    dir: str | None = Field(default=None, description="Working directory of the commands")
    environment: dict[str, str] | None = None

    def to_pulumi(self):
        return local.Command(
            self.name,
            create=self.create,
            update=self.update,
            delete=self.delete,
            dir=self.dir,
            environment=self.environment,
            opts=self._build_dependency_options(),
        )
