"""Tests for the Pulumi engine adapter."""

import logging
import subprocess
from types import SimpleNamespace
from unittest.mock import MagicMock, Mock, patch

import pytest

from cloudprism.engine import PulumiEngine, log_engine_output
from cloudprism.errors import EngineError, IngredientNotAppliedError
from cloudprism.kitchen import Ingredient
from cloudprism.settings import reload_settings

URI = "file:///tmp/state"


@pytest.fixture
def pulumi_engine(temp_dir):
    return PulumiEngine(passphrase="secret", work_dir=temp_dir)


def _ingredient(name, calls):
    ingredient = Mock()
    ingredient.name = name
    ingredient.upsert.side_effect = lambda: calls.append(name)
    return ingredient


class OrderedIngredient(Ingredient):
    """Ingredient that resolves its dependencies while being applied."""

    def to_pulumi(self):
        self._build_dependency_options()
        return {"name": self.name}


class TestLogEngineOutput:
    def test_classifies_lines(self, caplog):
        caplog.set_level(logging.DEBUG, logger="cloudprism.engine")

        log_engine_output("Updating (dev)\n.\n\n  [aws] Terraform plan\r\nResources: 2 created\n")

        records = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert records == [
            (logging.INFO, "Updating (dev)"),
            (logging.DEBUG, "."),
            (logging.DEBUG, "  [aws] Terraform plan"),
            (logging.INFO, "Resources: 2 created"),
        ]

    def test_blank_output_logs_nothing(self, caplog):
        caplog.set_level(logging.DEBUG, logger="cloudprism.engine")

        log_engine_output("  \n\n")

        assert caplog.records == []


class TestLoginLogout:
    @patch("cloudprism.engine.subprocess.run")
    def test_login(self, mock_run, pulumi_engine, temp_dir):
        mock_run.return_value = SimpleNamespace(stdout="Logged in\n", stderr="")

        pulumi_engine.login(URI)

        args, kwargs = mock_run.call_args
        assert args[0] == ["pulumi", "login", URI]
        assert kwargs["check"] is True
        assert kwargs["cwd"] == temp_dir
        assert kwargs["env"]["PULUMI_CONFIG_PASSPHRASE"] == "secret"

    @patch("cloudprism.engine.subprocess.run")
    def test_logout(self, mock_run, pulumi_engine):
        mock_run.return_value = SimpleNamespace(stdout="", stderr="")

        pulumi_engine.logout(URI)

        assert mock_run.call_args[0][0] == ["pulumi", "logout", URI]

    @patch("cloudprism.engine.subprocess.run")
    def test_failure_raises_engine_error(self, mock_run, pulumi_engine):
        mock_run.side_effect = subprocess.CalledProcessError(
            255, ["pulumi", "login", URI], stderr="error: access denied"
        )

        with pytest.raises(EngineError) as excinfo:
            pulumi_engine.login(URI)

        assert excinfo.value.stderr == "error: access denied"

    @patch("cloudprism.engine.subprocess.run")
    def test_missing_cli_raises_engine_error(self, mock_run, pulumi_engine):
        mock_run.side_effect = FileNotFoundError("pulumi")

        with pytest.raises(EngineError):
            pulumi_engine.logout(URI)

    def test_passphrase_defaults_to_settings(self, monkeypatch):
        monkeypatch.setenv("PULUMI_CONFIG_PASSPHRASE", "from-env")
        reload_settings()

        assert PulumiEngine().passphrase == "from-env"


class TestProgram:
    def test_program_applies_ingredients_in_order(self, pulumi_engine):
        calls = []
        ingredients = [_ingredient(name, calls) for name in ["a", "b", "c"]]

        pulumi_engine.create_program(ingredients)()

        assert calls == ["a", "b", "c"]

    def test_program_stops_at_first_failure(self, pulumi_engine):
        calls = []
        ingredients = [_ingredient(name, calls) for name in ["a", "b", "c"]]
        ingredients[1].upsert.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            pulumi_engine.create_program(ingredients)()

        assert calls == ["a"]

    def test_program_run_does_not_reuse_previous_results(self, pulumi_engine):
        a = OrderedIngredient(name="a")
        b = OrderedIngredient(name="b")

        pulumi_engine.create_program([a])()
        assert a.applied is True

        b.after(a)
        with pytest.raises(IngredientNotAppliedError):
            pulumi_engine.create_program([b, a])()

        assert b.applied is False

    def test_program_rerun_applies_dependencies_again(self, pulumi_engine):
        a = OrderedIngredient(name="a")
        b = OrderedIngredient(name="b").after(a)
        program = pulumi_engine.create_program([a, b])

        program()
        program()

        assert a.result == {"name": "a"}
        assert b.result == {"name": "b"}


class TestStackOperations:
    @patch("cloudprism.engine.auto.create_or_select_stack")
    def test_up(self, mock_stack_factory, pulumi_engine):
        stack = MagicMock()
        stack.up.return_value = SimpleNamespace(
            summary=SimpleNamespace(result="succeeded", resource_changes={"create": 2}),
            outputs={"url": SimpleNamespace(value="http://localhost")},
        )
        mock_stack_factory.return_value = stack

        result = pulumi_engine.up("website", "dev", URI, [])

        assert result == {
            "result": "succeeded",
            "resource_changes": {"create": 2},
            "outputs": {"url": "http://localhost"},
        }
        kwargs = mock_stack_factory.call_args.kwargs
        assert kwargs["stack_name"] == "dev"
        assert kwargs["project_name"] == "website"
        project_settings = kwargs["opts"].project_settings
        assert project_settings.name == "website"
        assert project_settings.backend.url == URI
        assert kwargs["opts"].env_vars == {"PULUMI_CONFIG_PASSPHRASE": "secret"}

    @patch("cloudprism.engine.auto.create_or_select_stack")
    def test_up_failure_is_reraised(self, mock_stack_factory, pulumi_engine):
        mock_stack_factory.return_value.up.side_effect = RuntimeError("update failed")

        with pytest.raises(RuntimeError, match="update failed"):
            pulumi_engine.up("website", "dev", URI, [])

    @patch("cloudprism.engine.auto.create_or_select_stack")
    def test_preview(self, mock_stack_factory, pulumi_engine):
        mock_stack_factory.return_value.preview.return_value = SimpleNamespace(
            change_summary={"create": 2, "same": 4, "delete": 1}
        )

        result = pulumi_engine.preview("website", "dev", URI, [])

        assert result["total_changes"] == 3
        assert result["change_summary"]["same"] == 4

    @patch("cloudprism.engine.auto.select_stack")
    def test_destroy(self, mock_select, pulumi_engine):
        mock_select.return_value.destroy.return_value = SimpleNamespace(
            summary=SimpleNamespace(result="succeeded", resource_changes=None)
        )

        result = pulumi_engine.destroy("website", "dev", URI)

        assert result == {"result": "succeeded", "resource_changes": {}}

    @patch("cloudprism.engine.auto.select_stack")
    def test_remove_stack(self, mock_select, pulumi_engine):
        stack = mock_select.return_value

        pulumi_engine.remove_stack("website", "dev", URI, force=True)

        stack.workspace.remove_stack.assert_called_once_with("dev", force=True)

    @patch("cloudprism.engine.auto.select_stack")
    def test_refresh(self, mock_select, pulumi_engine):
        mock_select.return_value.refresh.return_value = SimpleNamespace(
            summary=SimpleNamespace(result="succeeded", resource_changes={"same": 3})
        )

        assert pulumi_engine.refresh("website", "dev", URI) == {
            "result": "succeeded",
            "resource_changes": {"same": 3},
        }

    @patch("cloudprism.engine.auto.select_stack")
    def test_outputs(self, mock_select, pulumi_engine):
        mock_select.return_value.outputs.return_value = {
            "url": SimpleNamespace(value="http://localhost", secret=False)
        }

        assert pulumi_engine.outputs("website", "dev", URI) == {"url": "http://localhost"}

    @patch("cloudprism.engine.auto.select_stack")
    def test_history(self, mock_select, pulumi_engine):
        mock_select.return_value.history.return_value = [
            SimpleNamespace(
                version=2,
                kind="update",
                result="succeeded",
                message="second",
                start_time="2024-01-02T00:00:00Z",
                end_time="2024-01-02T00:01:00Z",
                resource_changes=None,
            )
        ]

        history = pulumi_engine.history("website", "dev", URI)

        assert history == [
            {
                "version": 2,
                "kind": "update",
                "result": "succeeded",
                "message": "second",
                "start_time": "2024-01-02T00:00:00Z",
                "end_time": "2024-01-02T00:01:00Z",
                "resource_changes": {},
            }
        ]
