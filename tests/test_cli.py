from unittest.mock import patch

import pytest

from gastimator.cli import build_parser, main, resolve_settings
from gastimator.config import Settings
from gastimator.models.error import NoAlchemyApiKey


def _base(**overrides) -> Settings:
    fields = {"alchemy_api_key": "", "eth_rpc_url_override": ""}
    fields.update(overrides)
    return Settings(**fields)


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.address is None
        assert args.port is None
        assert args.alchemy_api_key is None

    def test_short_flags(self):
        args = build_parser().parse_args(["-a", "127.0.0.1", "-p", "8080", "-k", "secret"])
        assert args.address == "127.0.0.1"
        assert args.port == 8080
        assert args.alchemy_api_key == "secret"

    def test_non_numeric_port(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--port", "http"])


class TestResolveSettings:
    def test_flags_override_settings(self):
        args = build_parser().parse_args(["-a", "127.0.0.1", "-p", "8080", "-k", "secret"])
        resolved = resolve_settings(args, _base())
        assert resolved.server_address == "127.0.0.1"
        assert resolved.server_port == 8080
        assert resolved.alchemy_api_key == "secret"
        assert resolved.address_with_port == "127.0.0.1:8080"

    def test_env_key_used_when_flag_absent(self):
        resolved = resolve_settings(build_parser().parse_args([]), _base(alchemy_api_key="env"))
        assert resolved.alchemy_api_key == "env"
        assert resolved.server_port == 3000

    def test_missing_key(self):
        with pytest.raises(NoAlchemyApiKey):
            resolve_settings(build_parser().parse_args([]), _base())

    def test_rpc_override_needs_no_key(self):
        resolved = resolve_settings(
            build_parser().parse_args([]), _base(eth_rpc_url_override="http://localhost:8545")
        )
        assert resolved.eth_rpc_url == "http://localhost:8545"

    def test_port_out_of_range(self):
        with pytest.raises(ValueError):
            resolve_settings(build_parser().parse_args(["-p", "70000", "-k", "k"]), _base())


class TestMain:
    def test_exits_without_key(self, capsys):
        with patch("gastimator.cli.Settings", return_value=_base()):
            with pytest.raises(SystemExit) as exc_info:
                main([])
        assert exc_info.value.code == 1
        assert "No Alchemy API Key" in capsys.readouterr().err

    def test_runs_server(self):
        with patch("gastimator.cli.Settings", return_value=_base()), patch(
            "gastimator.cli.uvicorn.run"
        ) as run:
            main(["-k", "secret", "-p", "9000"])
        run.assert_called_once()
        assert run.call_args.kwargs["port"] == 9000
        assert run.call_args.kwargs["host"] == "0.0.0.0"
