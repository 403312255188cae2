"""Tests for argument parsing, configuration and the cudalis entry point."""

from unittest.mock import patch

import pytest

import builder
import cudalis
from args import parse_args
from cli_config import ConfigError, apply_constant_overrides, find_config_path, load_config, merge_cli
from constants import Constants, ExitCodes
from versioning.errors import FetchError, NoCandidatesError, NoImageTagError
from versioning.models import PackageArtifact, ResolutionConstraints

RESOLVED = PackageArtifact(
    package_name="torch",
    library_version="1.13.1",
    python_tag="cp310",
    os_tag="linux_x86_64",
    accelerator_tag="cu117",
    source_reference="cu117/torch-1.13.1%2Bcu117-cp310-cp310-linux_x86_64.whl",
)


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """No ambient config files or log level leaking into the test."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv(Constants.CONFIG_ENV, raising=False)
    monkeypatch.setenv(Constants.LOG_LEVEL_ENV, "INFO")
    for attr in ("INDEX_URL", "TAG_REGISTRY_URL", "CPU_BASE_IMAGE", "IMAGE_REPOSITORY", "REQUEST_TIMEOUT"):
        monkeypatch.setattr(Constants, attr, getattr(Constants, attr))
    return tmp_path


class TestArgParsing:
    """CLI flags."""

    def test_defaults(self):
        ns = parse_args([])
        assert ns.PYTHON is None
        assert ns.TORCH is None
        assert ns.CUDA is None
        assert ns.RESOLVE_ONLY is False
        assert ns.KEEP_BASE_IMAGE is None
        assert ns.LOG_LEVEL == "INFO"

    def test_constraints(self):
        ns = parse_args(["-p", "3.10", "-t", "1.13.1", "-c", "11.7"])
        assert (ns.PYTHON, ns.TORCH, ns.CUDA) == ("3.10", "1.13.1", "11.7")

    def test_long_flags(self):
        ns = parse_args(["--python", "3.9", "--cuda", "cpu", "--resolve-only", "--keep-base-image", "-v"])
        assert ns.PYTHON == "3.9"
        assert ns.CUDA == "cpu"
        assert ns.RESOLVE_ONLY
        assert ns.KEEP_BASE_IMAGE is True
        assert ns.VERBOSE


class TestConfig:
    """YAML configuration loading and precedence."""

    def test_no_config(self, isolated_env):
        assert find_config_path() is None
        assert load_config() == {}

    def test_default_location(self, isolated_env):
        (isolated_env / "cudalis.yml").write_text('python: "3.9"\n', encoding="utf-8")

        assert load_config() == {"python": "3.9"}

    def test_env_location(self, isolated_env, monkeypatch):
        path = isolated_env / "custom.yml"
        path.write_text("cuda: cpu\n", encoding="utf-8")
        monkeypatch.setenv(Constants.CONFIG_ENV, str(path))

        assert load_config() == {"cuda": "cpu"}

    def test_unknown_keys_are_dropped(self, isolated_env, caplog):
        path = isolated_env / "c.yml"
        path.write_text('torch: "1.13.1"\nbogus: 1\n', encoding="utf-8")

        assert load_config(str(path)) == {"torch": "1.13.1"}
        assert "bogus" in caplog.text

    def test_missing_file(self, isolated_env):
        with pytest.raises(ConfigError):
            load_config(str(isolated_env / "missing.yml"))

    def test_invalid_yaml(self, isolated_env):
        path = isolated_env / "bad.yml"
        path.write_text("python: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_non_mapping(self, isolated_env):
        path = isolated_env / "list.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_constant_overrides(self, isolated_env):
        apply_constant_overrides({"cpu_base_image": "ubuntu:24.04", "request_timeout": "60"})

        assert Constants.CPU_BASE_IMAGE == "ubuntu:24.04"
        assert Constants.REQUEST_TIMEOUT == 60

    @pytest.mark.parametrize("value", ["soon", 0, True, [30]])
    def test_invalid_request_timeout(self, isolated_env, value):
        with pytest.raises(ConfigError):
            apply_constant_overrides({"request_timeout": value})

    def test_keep_base_image_false(self):
        assert merge_cli(parse_args([]), {"keep_base_image": False})["keep_base_image"] is False

    @pytest.mark.parametrize("value", ["false", "no", 1])
    def test_keep_base_image_must_be_boolean(self, value):
        with pytest.raises(ConfigError):
            merge_cli(parse_args([]), {"keep_base_image": value})

    def test_cli_flag_ignores_config_value(self):
        ns = parse_args(["--keep-base-image"])

        assert merge_cli(ns, {"keep_base_image": "false"})["keep_base_image"] is True

    def test_cli_wins_over_config(self):
        ns = parse_args(["-p", "3.11"])
        settings = merge_cli(ns, {"python": "3.9", "cuda": "11.8", "keep_base_image": True})

        assert settings == {"python": "3.11", "torch": None, "cuda": "11.8", "keep_base_image": True}


class TestBuildConstraints:
    """Settings to resolution constraints."""

    def test_formats_versions(self):
        constraints = cudalis.build_constraints({"python": "3.10", "torch": "1.13.1", "cuda": "11.7"}, os_name="linux")

        assert constraints == ResolutionConstraints(python="cp310", library="1.13.1", accelerator="cu117")

    def test_unset_values(self):
        assert cudalis.build_constraints({}, os_name="linux") == ResolutionConstraints()

    def test_macos_defaults_to_cpu(self):
        assert cudalis.build_constraints({}, os_name="macos").accelerator == "cpu"

    def test_macos_respects_explicit_cuda(self):
        assert cudalis.build_constraints({"cuda": "11.7"}, os_name="macos").accelerator == "cu117"


class TestMain:
    """Entry point exit codes."""

    def _resolver(self, mock_resolver_cls):
        resolver = mock_resolver_cls.return_value
        resolver.resolve.return_value = RESOLVED
        resolver.resolve_base_image.return_value = "nvidia/cuda:11.7.1-devel-ubuntu22.04"
        return resolver

    @patch('cudalis.VersionResolver')
    def test_resolve_only(self, mock_resolver_cls, isolated_env):
        resolver = self._resolver(mock_resolver_cls)

        with pytest.raises(SystemExit) as exc_info:
            cudalis.main(["-p", "3.10", "-c", "11.7", "--resolve-only"])

        assert exc_info.value.code == ExitCodes.SUCCESS.value
        constraints = resolver.resolve.call_args[0][0]
        assert constraints.python == "cp310"
        assert constraints.accelerator == "cu117"
        resolver.resolve_base_image.assert_called_once_with(RESOLVED)

    @patch('cudalis.VersionResolver')
    def test_no_candidates(self, mock_resolver_cls, isolated_env):
        self._resolver(mock_resolver_cls).resolve.side_effect = NoCandidatesError("No versions found")

        with pytest.raises(SystemExit) as exc_info:
            cudalis.main(["--resolve-only"])

        assert exc_info.value.code == ExitCodes.RESOLUTION_ERROR.value

    @patch('cudalis.VersionResolver')
    def test_no_image_tag(self, mock_resolver_cls, isolated_env):
        self._resolver(mock_resolver_cls).resolve_base_image.side_effect = NoImageTagError("none", "11.7")

        with pytest.raises(SystemExit) as exc_info:
            cudalis.main(["--resolve-only"])

        assert exc_info.value.code == ExitCodes.RESOLUTION_ERROR.value

    @patch('cudalis.VersionResolver')
    def test_fetch_error(self, mock_resolver_cls, isolated_env):
        self._resolver(mock_resolver_cls).resolve.side_effect = FetchError("down", status_code=503)

        with pytest.raises(SystemExit) as exc_info:
            cudalis.main(["--resolve-only"])

        assert exc_info.value.code == ExitCodes.CONNECTION_ERROR.value

    def test_bad_config(self, isolated_env):
        with pytest.raises(SystemExit) as exc_info:
            cudalis.main(["--config", str(isolated_env / "missing.yml")])

        assert exc_info.value.code == ExitCodes.FILE_ERROR.value

    @pytest.mark.parametrize("content", ["request_timeout: soon\n", "keep_base_image: \"false\"\n"])
    @patch('cudalis.VersionResolver')
    def test_invalid_config_value(self, mock_resolver_cls, isolated_env, content):
        path = isolated_env / "c.yml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            cudalis.main(["--config", str(path), "--resolve-only"])

        assert exc_info.value.code == ExitCodes.FILE_ERROR.value
        mock_resolver_cls.assert_not_called()

    def test_errors_logged_through_module_logger(self, isolated_env, caplog):
        with pytest.raises(SystemExit):
            cudalis.main(["--config", str(isolated_env / "missing.yml")])

        assert [r.name for r in caplog.records if r.levelname == "ERROR"] == ["cudalis"]

    @patch.object(builder, 'build_image')
    @patch.object(builder, 'DockerClient')
    @patch('cudalis.VersionResolver')
    def test_build(self, mock_resolver_cls, mock_client_cls, mock_build, isolated_env):
        self._resolver(mock_resolver_cls)
        (isolated_env / "cudalis.yml").write_text("keep_base_image: true\n", encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            cudalis.main([])

        assert exc_info.value.code == ExitCodes.SUCCESS.value
        mock_build.assert_called_once_with(
            mock_client_cls.return_value,
            RESOLVED,
            "nvidia/cuda:11.7.1-devel-ubuntu22.04",
            keep_base_image=True,
        )

    @patch.object(builder, 'build_image')
    @patch.object(builder, 'DockerClient')
    @patch('cudalis.VersionResolver')
    def test_build_error(self, mock_resolver_cls, mock_client_cls, mock_build, isolated_env):
        self._resolver(mock_resolver_cls)
        mock_build.side_effect = builder.ProvisioningError("apt-get update", 100)

        with pytest.raises(SystemExit) as exc_info:
            cudalis.main([])

        assert exc_info.value.code == ExitCodes.BUILD_ERROR.value
