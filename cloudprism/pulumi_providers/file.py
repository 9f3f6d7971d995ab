"""Pulumi dynamic provider for files written by FileIngredient."""

import hashlib
import os
from pathlib import Path
from typing import Any, Optional

import pulumi
from pulumi import Input, Output
from pulumi.dynamic import (
    CreateResult,
    DiffResult,
    ResourceProvider,
    UpdateResult,
)


def _write_file(props: dict[str, Any]) -> dict[str, Any]:
    """Write the file described by props and return the provider outputs."""
    path = props["path"]
    content = props["content"]
    mode = props.get("mode", "644")

    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding="utf-8")
    os.chmod(path, int(mode, 8))

    return {
        "path": path,
        "content": content,
        "mode": mode,
        "size": len(content.encode("utf-8")),
        "sha256": hashlib.sha256(content.encode("utf-8")).hexdigest(),
    }


class FileProvider(ResourceProvider):
    """Dynamic provider that manages a single local file."""

    def create(self, props: dict[str, Any]) -> CreateResult:
        try:
            outs = _write_file(props)
        except OSError as e:
            raise OSError(f"Failed to create file {props['path']}: {e}") from e
        return CreateResult(id_=outs["path"], outs=outs)

    def update(
        self, id: str, old_props: dict[str, Any], new_props: dict[str, Any]
    ) -> UpdateResult:
        try:
            outs = _write_file(new_props)
        except OSError as e:
            raise OSError(f"Failed to update file {new_props['path']}: {e}") from e
        return UpdateResult(outs=outs)

    def delete(self, id: str, props: dict[str, Any]) -> None:
        Path(props["path"]).unlink(missing_ok=True)

    def diff(
        self, id: str, old_props: dict[str, Any], new_props: dict[str, Any]
    ) -> DiffResult:
        """Moving the file replaces it, content or mode changes update it."""
        replaces = []
        if old_props.get("path") != new_props.get("path"):
            replaces.append("path")

        changes = [
            prop
            for prop in ("content", "mode")
            if old_props.get(prop) != new_props.get(prop)
        ]

        return DiffResult(
            changes=bool(changes or replaces),
            replaces=replaces,
            stables=[],
            delete_before_replace=True,
        )


class File(pulumi.dynamic.Resource):
    """
    A Pulumi dynamic resource for a local file.

    Args:
        name: Resource name
        path: Absolute path to the file
        content: File content
        mode: File permissions in octal (default: "644")
        opts: Standard Pulumi resource options
    """

    path: Output[str]
    content: Output[str]
    mode: Output[str]
    size: Output[int]
    sha256: Output[str]

    def __init__(
        self,
        name: str,
        path: Input[str],
        content: Input[str],
        mode: Input[str] = "644",
        opts: Optional[pulumi.ResourceOptions] = None,
    ):
        super().__init__(
            FileProvider(),
            name,
            {
                "path": path,
                "content": content,
                "mode": mode,
                "size": None,
                "sha256": None,
            },
            opts,
        )
