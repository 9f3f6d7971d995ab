"""File ingredient for writing local files."""

from pathlib import Path

from pydantic import Field

from cloudprism.kitchen import Ingredient


class FileIngredient(Ingredient):
    """File ingredient - writes a local file through a dynamic provider.

    Example:
        FileIngredient(name="motd", path="out/motd.txt", content="Hello", mode="600")
    """

    path: str = Field(description="File path, relative paths resolve against the current directory")
    content: str = ""
    mode: str = Field(default="644", description="Unix file permissions in octal")

    def resolve_path(self) -> str:
        file_path = Path(self.path)
        if not file_path.is_absolute():
            file_path = Path.cwd() / file_path
        return str(file_path)

    def to_pulumi(self):
        from cloudprism.pulumi_providers import File

        return File(
            self.name,
            path=self.resolve_path(),
            content=self.content,
            mode=self.mode,
            opts=self._build_dependency_options(),
        )
