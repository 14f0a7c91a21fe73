"""
Tests for the conan client — availability check and command execution.
"""

from pathlib import Path

import pytest

from cmake_conan.adapters.conan import ConanAdapter
from cmake_conan.adapters.mock import MockAdapter
from cmake_conan.adapters.registry import AdapterRegistry
from cmake_conan.core.errors import CommandFailedError, ToolNotFoundError, ToolVersionError
from cmake_conan.core.models.scope import BuildScope
from cmake_conan.core.services.client import ConanClient, select_generators, version_tuple

# ── Availability check ───────────────────────────────────────────────


class TestCheck:
    def test_records_version_and_generators(self, client, scope):
        result = client.check(required=True, version="1.20.0")
        assert result.found
        assert result.version == "1.20.0"
        assert result.generators == ["cmake"]
        assert scope.get("CONAN_CMD") == "conan"
        assert scope.get("CONAN_VERSION") == "1.20.0"
        assert scope.get("CONAN_GENERATORS") == "cmake"
        assert not scope.is_true("CONAN_CMAKE_MULTI")

    def test_outdated_version_is_fatal(self, client, mock_conan):
        mock_conan.set_output("--version", "Conan version 1.19.1")
        with pytest.raises(ToolVersionError, match="1.19.1"):
            client.check(version="1.20.0")

    def test_newer_version_passes(self, client, mock_conan):
        mock_conan.set_output("--version", "Conan version 1.21.0")
        assert client.check(version="1.20.5").version == "1.21.0"

    def test_unparseable_version_with_minimum_is_fatal(self, client, mock_conan):
        mock_conan.set_output("--version", "something unexpected")
        with pytest.raises(ToolVersionError):
            client.check(version="1.0.0")

    def test_multi_config_swaps_generator(self, client, scope, echoed):
        scope.set("CMAKE_CONFIGURATION_TYPES", "Debug;Release")
        scope.unset("CMAKE_BUILD_TYPE")
        result = client.check(generators=["cmake", "txt"])
        assert result.multi_config
        assert result.generators == ["cmake_multi", "txt"]
        assert scope.is_true("CONAN_CMAKE_MULTI")
        assert "Conan: Using cmake-multi generator" in echoed

    def test_build_type_disables_multi_config(self, client, scope):
        scope.set("CMAKE_CONFIGURATION_TYPES", "Debug;Release")
        assert not client.check().multi_config

    def test_required_and_missing(self, scope, monkeypatch):
        monkeypatch.setattr("cmake_conan.core.services.client.find_conan", lambda *a: None)
        client = ConanClient(scope, registry=AdapterRegistry(), echo=lambda line: None)
        with pytest.raises(ToolNotFoundError):
            client.check(required=True)

    def test_optional_and_missing(self, scope, monkeypatch):
        monkeypatch.setattr("cmake_conan.core.services.client.find_conan", lambda *a: None)
        client = ConanClient(scope, registry=AdapterRegistry(), echo=lambda line: None)
        result = client.check(required=False)
        assert not result.found
        assert scope.get("CONAN_CMD") == "CONAN_CMD-NOTFOUND"

    def test_version_tuple(self):
        assert version_tuple("1.20.3") == (1, 20, 3)
        assert version_tuple("1.9") < version_tuple("1.10")
        assert version_tuple("2.0.0-beta") == (2, 0, 0)

    def test_select_generators(self):
        assert select_generators(["cmake"], False) == ["cmake"]
        assert select_generators(["cmake", "json"], True) == ["cmake_multi", "json"]


# ── Execution ────────────────────────────────────────────────────────


class TestRun:
    def test_facade_runs_translated_command(self, client, mock_conan, scope):
        result = client.install(".", "UPDATE", "INSTALL_FOLDER", "out")
        assert result.ok
        assert mock_conan.commands[-1] == ["install", "--update", "--install-folder=out", "."]
        assert mock_conan.call_log[-1].working_dir == scope.get("CMAKE_CURRENT_BINARY_DIR")

    def test_first_call_runs_check(self, client, mock_conan):
        client.remote_list()
        assert mock_conan.commands == [["--version"], ["remote", "list"]]

    def test_announces_command_and_directory(self, client, echoed, scope):
        client.search("zlib", "RAW")
        binary_dir = scope.get("CMAKE_CURRENT_BINARY_DIR")
        assert f"Running: 'conan search --raw zlib' in directory '{binary_dir}'" in echoed

    def test_output_variable(self, client, mock_conan, scope):
        mock_conan.set_output("profile list", "default\nclang\n")
        client.profile_list("OUTPUT_VARIABLE", "PROFILES")
        assert scope.get("PROFILES") == "default\nclang\n"

    def test_output_variable_keyword(self, client, mock_conan, scope):
        mock_conan.set_output("user", "Current user: none")
        client.user(output_variable="USER_OUT")
        assert scope.get("USER_OUT") == "Current user: none"

    def test_failure_raises(self, client, mock_conan):
        mock_conan.set_failure("install", error="ERROR: Missing prebuilt package", return_code=6)
        with pytest.raises(CommandFailedError) as exc_info:
            client.install("zlib/1.2.11@")
        assert "Returned error code 6" in str(exc_info.value)
        assert exc_info.value.return_code == 6

    def test_result_variable_captures_failure(self, client, mock_conan, scope, echoed):
        mock_conan.set_failure("install", error="boom", return_code=1)
        result = client.install(".", "RESULT_VARIABLE", "RC")
        assert scope.get("RC") == "1"
        assert not result.ok
        assert "Error messages from conan:" in echoed
        assert "boom" in echoed

    def test_error_variable_suppresses_echo(self, client, mock_conan, scope, echoed):
        mock_conan.set_output("info", "info output", stderr="WARN: deprecated")
        client.info(".", "ERROR_VARIABLE", "ERR")
        assert scope.get("ERR") == "WARN: deprecated"
        assert "Error messages from conan:" not in echoed

    def test_working_directory_control(self, client, mock_conan, tmp_path):
        client.export(".", "user/channel", "WORKING_DIRECTORY", str(tmp_path))
        assert mock_conan.call_log[-1].working_dir == str(tmp_path)
        assert mock_conan.commands[-1] == ["export", ".", "user/channel"]

    def test_environment_is_passed(self, client, mock_conan, scope):
        scope.environment["CONAN_IMPORT_PATH"] = "Debug"
        client.imports(".")
        assert mock_conan.call_log[-1].params["env"] == {"CONAN_IMPORT_PATH": "Debug"}

    def test_undeclared_subcommand_forwards_arguments(self, client, mock_conan):
        client.run("graph info", ".", "--format=json")
        assert mock_conan.commands[-1] == ["graph", "info", ".", "--format=json"]

    def test_dry_run_does_not_execute(self, scope, mock_conan, registry):
        client = ConanClient(scope, registry=registry, echo=lambda line: None, dry_run=True)
        result = client.install(".")
        assert not result.executed
        assert mock_conan.commands == [["--version"]]

    def test_prepare_does_not_execute(self, client, mock_conan):
        invocation, controls = client.prepare("remote add", "r", "url", "RESULT_VARIABLE", "RC")
        assert invocation.arguments == ["remote", "add", "r", "url"]
        assert controls == {"RESULT_VARIABLE": "RC"}
        assert mock_conan.call_count == 0

    def test_control_arguments_end_multi_value(self, client):
        invocation, controls = client.prepare(
            "install", ".", "GENERATOR", "cmake", "OUTPUT_VARIABLE", "OUT", "RESULT_VARIABLE", "RC"
        )
        assert invocation.arguments == ["install", "--generator=cmake", "."]
        assert controls == {"OUTPUT_VARIABLE": "OUT", "RESULT_VARIABLE": "RC"}

    def test_control_argument_after_one_value(self, client, mock_conan, scope):
        mock_conan.set_failure("install", error="boom", return_code=2)
        client.install("zlib/1.2.11@", "INSTALL_FOLDER", "RESULT_VARIABLE", "RC")
        assert mock_conan.commands[-1] == ["install", "--install-folder", "zlib/1.2.11@"]
        assert scope.get("RC") == "2"


class TestClientDefaults:
    def test_default_registry_has_real_adapter(self):
        client = ConanClient()
        assert isinstance(client.registry.get("conan"), ConanAdapter)
        assert isinstance(client.scope, BuildScope)

    def test_working_directory_defaults_to_cwd(self, registry):
        client = ConanClient(BuildScope(), registry=registry)
        invocation, _ = client.prepare("source", ".")
        assert Path(invocation.working_directory) == Path.cwd()

    def test_custom_mock_name(self, scope):
        registry = AdapterRegistry()
        registry.set_mock_mode(True, MockAdapter(version_output="Conan version 2.0.1"))
        client = ConanClient(scope, registry=registry, echo=lambda line: None)
        assert client.check().version == "2.0.1"
