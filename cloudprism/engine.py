"""
Pulumi Engine - Logs in to state backends and runs stack operations.

Login and logout go through the ``pulumi`` CLI, since they change which
backend the CLI stores state in. Stack operations use Pulumi's Automation API
with the state URI pinned as the project backend.
"""

import logging
import os
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pulumi import automation as auto

from .errors import EngineError
from .settings import get_settings

if TYPE_CHECKING:
    from .kitchen.ingredient import Ingredient

logger = logging.getLogger(__name__)


def log_engine_output(message: str, log: logging.Logger = logger) -> None:
    """Forward engine output to the log, one record per non-empty line.

    Progress dots and Terraform bridge chatter go to DEBUG, the rest to INFO.
    """
    for line in message.splitlines():
        line = line.rstrip()
        if not line.strip():
            continue
        if line == "." or "] Terraform" in line:
            log.debug(line)
        else:
            log.info(line)


class PulumiEngine:
    """Runs Pulumi login/logout and stack operations for CloudPrism."""

    def __init__(
        self,
        passphrase: str | None = None,
        pulumi_command: str = "pulumi",
        work_dir: Path | None = None,
    ):
        """
        Initialize the engine.

        Args:
            passphrase: Pulumi config passphrase (defaults to settings)
            pulumi_command: Name or path of the pulumi executable
            work_dir: Directory the CLI runs in (defaults to current directory)
        """
        settings = get_settings()
        self.passphrase = passphrase or settings.pulumi_config_passphrase
        self.pulumi_command = pulumi_command
        self.work_dir = work_dir or Path.cwd()

    def _cli_env(self) -> dict[str, str]:
        env = dict(os.environ)
        env["PULUMI_CONFIG_PASSPHRASE"] = self.passphrase
        return env

    def _run_cli(self, *args: str) -> str:
        cmd = [self.pulumi_command, *args]
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            process = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                env=self._cli_env(),
                cwd=self.work_dir,
            )
        except FileNotFoundError as e:
            logger.error(f"Pulumi CLI not found: {self.pulumi_command}")
            raise EngineError(
                f"Pulumi CLI not found: {self.pulumi_command}"
            ) from e
        except subprocess.CalledProcessError as e:
            logger.error(
                f"'{' '.join(cmd)}' failed with exit code {e.returncode}: {e.stderr}"
            )
            raise EngineError(
                f"'{' '.join(cmd)}' failed with exit code {e.returncode}",
                stderr=e.stderr,
            ) from e

        if process.stdout:
            log_engine_output(process.stdout)
        return process.stdout

    def login(self, uri: str) -> None:
        """Log the Pulumi CLI in to the state backend at ``uri``."""
        self._run_cli("login", uri)

    def logout(self, uri: str) -> None:
        """Log the Pulumi CLI out of the state backend at ``uri``."""
        self._run_cli("logout", uri)

    def create_program(
        self, ingredients: Sequence["Ingredient"]
    ) -> Callable[[], None]:
        """
        Create a Pulumi program function from ingredients.

        The program applies every ingredient in the given order.

        Args:
            ingredients: Flattened, ordered ingredients of a stack

        Returns:
            Pulumi program function that can be passed to Automation API
        """

        def pulumi_program():
            """Generated Pulumi program that applies the ingredients."""
            logger.info(
                f"Executing Pulumi program with {len(ingredients)} ingredients"
            )

            # Results from an earlier run belong to that run's resources
            for ingredient in ingredients:
                ingredient.reset()

            for ingredient in ingredients:
                try:
                    ingredient.upsert()
                    logger.debug(f"Applied ingredient: {ingredient.name}")
                except Exception as e:
                    logger.error(
                        f"Failed to apply ingredient {ingredient.name}: {e}"
                    )
                    raise

        return pulumi_program

    def _workspace_options(
        self, project_name: str, backend_url: str
    ) -> auto.LocalWorkspaceOptions:
        return auto.LocalWorkspaceOptions(
            project_settings=auto.ProjectSettings(
                name=project_name,
                runtime="python",
                backend=auto.ProjectBackend(url=backend_url),
            ),
            env_vars={"PULUMI_CONFIG_PASSPHRASE": self.passphrase},
        )

    def _create_or_select_stack(
        self,
        project_name: str,
        stack_name: str,
        backend_url: str,
        ingredients: Sequence["Ingredient"],
    ) -> auto.Stack:
        stack = auto.create_or_select_stack(
            stack_name=stack_name,
            project_name=project_name,
            program=self.create_program(ingredients),
            opts=self._workspace_options(project_name, backend_url),
        )
        logger.info(f"Using stack: {stack_name} ({backend_url})")
        return stack

    def _select_stack(
        self,
        project_name: str,
        stack_name: str,
        backend_url: str,
        ingredients: Sequence["Ingredient"] = (),
    ) -> auto.Stack:
        stack = auto.select_stack(
            stack_name=stack_name,
            project_name=project_name,
            program=self.create_program(ingredients),
            opts=self._workspace_options(project_name, backend_url),
        )
        logger.info(f"Selected stack: {stack_name} ({backend_url})")
        return stack

    def up(
        self,
        project_name: str,
        stack_name: str,
        backend_url: str,
        ingredients: Sequence["Ingredient"],
    ) -> dict[str, Any]:
        """
        Create or update a stack.

        Args:
            project_name: Name of the Pulumi project
            stack_name: Name of the stack
            backend_url: State store URI
            ingredients: Flattened, ordered ingredients

        Returns:
            Dictionary with result, resource changes and outputs
        """
        logger.info(
            f"Applying {len(ingredients)} ingredients with Pulumi (project: {project_name})"
        )

        try:
            stack = self._create_or_select_stack(
                project_name, stack_name, backend_url, ingredients
            )
            logger.info("Running Pulumi up...")
            up_result = stack.up(on_output=log_engine_output)
        except Exception as e:
            logger.error(f"Pulumi up failed: {e}")
            raise

        summary = up_result.summary
        changes = summary.resource_changes or {}

        logger.info(
            f"Pulumi up completed: {summary.result} "
            f"(resources: +{changes.get('create', 0)} "
            f"~{changes.get('update', 0)} "
            f"-{changes.get('delete', 0)})"
        )

        return {
            "result": summary.result,
            "resource_changes": changes,
            "outputs": {k: v.value for k, v in up_result.outputs.items()},
        }

    def preview(
        self,
        project_name: str,
        stack_name: str,
        backend_url: str,
        ingredients: Sequence["Ingredient"],
    ) -> dict[str, Any]:
        """
        Preview the creation or update of a stack.

        Returns:
            Dictionary with the change summary and total number of changes
        """
        logger.info(
            f"Previewing {len(ingredients)} ingredients with Pulumi (project: {project_name})"
        )

        try:
            stack = self._create_or_select_stack(
                project_name, stack_name, backend_url, ingredients
            )
            logger.info("Running Pulumi preview...")
            preview_result = stack.preview(on_output=log_engine_output)
        except Exception as e:
            logger.error(f"Pulumi preview failed: {e}")
            raise

        change_summary = preview_result.change_summary
        total_changes = sum(
            change_summary.get(op, 0)
            for op in ["create", "update", "delete", "replace"]
        )

        logger.info(
            f"Pulumi preview completed: {total_changes} total changes "
            f"(+{change_summary.get('create', 0)} "
            f"~{change_summary.get('update', 0)} "
            f"-{change_summary.get('delete', 0)})"
        )

        return {
            "change_summary": change_summary,
            "total_changes": total_changes,
        }

    def destroy(
        self,
        project_name: str,
        stack_name: str,
        backend_url: str,
        ingredients: Sequence["Ingredient"] = (),
    ) -> dict[str, Any]:
        """
        Delete all resources of a stack, keeping the stack itself.

        Returns:
            Dictionary with result and resource changes
        """
        logger.info(f"Destroying stack resources (project: {project_name})")

        try:
            stack = self._select_stack(
                project_name, stack_name, backend_url, ingredients
            )
            logger.info("Running Pulumi destroy...")
            destroy_result = stack.destroy(on_output=log_engine_output)
        except Exception as e:
            logger.error(f"Pulumi destroy failed: {e}")
            raise

        summary = destroy_result.summary
        logger.info(f"Pulumi destroy completed: {summary.result}")

        return {
            "result": summary.result,
            "resource_changes": summary.resource_changes or {},
        }

    def remove_stack(
        self,
        project_name: str,
        stack_name: str,
        backend_url: str,
        force: bool = False,
    ) -> None:
        """Remove the stack record from the state backend.

        Without ``force`` Pulumi refuses to remove a stack that still has
        resources.
        """
        logger.info(f"Removing stack {stack_name} (project: {project_name}, force: {force})")

        try:
            stack = self._select_stack(project_name, stack_name, backend_url)
            stack.workspace.remove_stack(stack_name, force=force)
        except Exception as e:
            logger.error(f"Pulumi stack removal failed: {e}")
            raise

    def refresh(
        self,
        project_name: str,
        stack_name: str,
        backend_url: str,
        ingredients: Sequence["Ingredient"] = (),
    ) -> dict[str, Any]:
        """
        Compare the stack state with the actual resources and update it.

        Returns:
            Dictionary with result and resource changes
        """
        logger.info(f"Refreshing stack (project: {project_name})")

        try:
            stack = self._select_stack(
                project_name, stack_name, backend_url, ingredients
            )
            refresh_result = stack.refresh(on_output=log_engine_output)
        except Exception as e:
            logger.error(f"Pulumi refresh failed: {e}")
            raise

        summary = refresh_result.summary
        logger.info(f"Pulumi refresh completed: {summary.result}")

        return {
            "result": summary.result,
            "resource_changes": summary.resource_changes or {},
        }

    def outputs(
        self, project_name: str, stack_name: str, backend_url: str
    ) -> dict[str, Any]:
        """Return the outputs of a stack as plain values."""
        try:
            stack = self._select_stack(project_name, stack_name, backend_url)
            outputs = stack.outputs()
        except Exception as e:
            logger.error(f"Reading Pulumi stack outputs failed: {e}")
            raise

        return {k: v.value for k, v in outputs.items()}

    def history(
        self, project_name: str, stack_name: str, backend_url: str
    ) -> list[dict[str, Any]]:
        """Return the deployment/update history of a stack, newest first."""
        try:
            stack = self._select_stack(project_name, stack_name, backend_url)
            updates = stack.history()
        except Exception as e:
            logger.error(f"Reading Pulumi stack history failed: {e}")
            raise

        return [
            {
                "version": update.version,
                "kind": update.kind,
                "result": update.result,
                "message": update.message,
                "start_time": update.start_time,
                "end_time": update.end_time,
                "resource_changes": update.resource_changes or {},
            }
            for update in updates
        ]
