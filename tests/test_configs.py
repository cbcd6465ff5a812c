from datetime import timedelta

import pytest

from flowwallet.configs import Config, ConfigError, parse_config


def _required():
    return {
        "FLOW_WALLET_ADMIN_ADDRESS": "0xf8d6e0586b0a20c7",
        "FLOW_WALLET_ADMIN_PRIVATE_KEY": "secret",
        "FLOW_WALLET_ENCRYPTION_KEY": "secret",
        "FLOW_WALLET_ACCESS_API_HOST": "localhost:3569",
    }


def test_defaults_apply_when_unset():
    cfg = parse_config(environ=_required())
    expected = Config(
        admin_address="0xf8d6e0586b0a20c7",
        admin_private_key="secret",
        encryption_key="secret",
        access_api_host="localhost:3569",
    )
    assert cfg == expected
    assert cfg.port == 3000
    assert cfg.chain_id == "flow-emulator"
    assert cfg.database_dsn == "wallet.db"


@pytest.mark.parametrize("missing", sorted(_required()))
def test_required_variable_missing(missing):
    env = _required()
    del env[missing]
    with pytest.raises(ConfigError, match=missing):
        parse_config(environ=env)


def test_required_variable_empty():
    env = _required()
    env["FLOW_WALLET_ENCRYPTION_KEY"] = ""
    with pytest.raises(ConfigError, match="should not be empty"):
        parse_config(environ=env)


def test_values_are_parsed():
    env = _required() | {
        "FLOW_WALLET_DISABLE_FT": "true",
        "FLOW_WALLET_DISABLE_NFT": "0",
        "FLOW_WALLET_PORT": "8080",
        "FLOW_WALLET_ENABLED_TOKENS": "FlowToken,FUSD",
        "FLOW_WALLET_ADMIN_PROPOSAL_KEY_COUNT": "50",
    }
    cfg = parse_config(environ=env)
    assert cfg.disable_fungible_tokens is True
    assert cfg.disable_non_fungible_tokens is False
    assert cfg.port == 8080
    assert cfg.enabled_tokens == ["FlowToken", "FUSD"]
    assert cfg.admin_proposal_key_count == 50


def test_durations():
    env = _required() | {"FLOW_WALLET_TRANSACTION_TIMEOUT": "1m30s"}
    assert parse_config(environ=env).transaction_timeout == timedelta(minutes=1, seconds=30)
    env["FLOW_WALLET_TRANSACTION_TIMEOUT"] = "0"
    assert parse_config(environ=env).transaction_timeout == Config().transaction_timeout


def test_empty_value_gives_zero_value():
    env = _required() | {"FLOW_WALLET_PORT": ""}
    assert parse_config(environ=env).port == 0


@pytest.mark.parametrize(
    "name,value",
    [
        ("FLOW_WALLET_DISABLE_FT", "yes"),
        ("FLOW_WALLET_PORT", "eighty"),
        ("FLOW_WALLET_ADMIN_PROPOSAL_KEY_COUNT", "-1"),
        ("FLOW_WALLET_ADMIN_PROPOSAL_KEY_COUNT", "70000"),
        ("FLOW_WALLET_WORKER_COUNT", "-5"),
        ("FLOW_WALLET_TRANSACTION_TIMEOUT", "10"),
        ("FLOW_WALLET_TRANSACTION_TIMEOUT", "5 days"),
    ],
)
def test_invalid_values_raise(name, value):
    env = _required() | {name: value}
    with pytest.raises(ConfigError, match=name):
        parse_config(environ=env)


def test_env_file_fills_missing_values(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "FLOW_WALLET_ACCESS_API_HOST=localhost:3569\n"
        "FLOW_WALLET_DATABASE_DSN=from-file.db\n"
        "FLOW_WALLET_ADMIN_ADDRESS=0x01cf0e2f2f715450\n"
    )
    env = _required()
    del env["FLOW_WALLET_ACCESS_API_HOST"]
    cfg = parse_config(env_file_path=str(env_file), environ=env)
    assert cfg.access_api_host == "localhost:3569"
    assert cfg.database_dsn == "from-file.db"
    # The environment takes precedence over the file.
    assert cfg.admin_address == "0xf8d6e0586b0a20c7"


def test_missing_env_file_is_tolerated(tmp_path):
    cfg = parse_config(env_file_path=str(tmp_path / "absent.env"), environ=_required())
    assert cfg.admin_address == _required()["FLOW_WALLET_ADMIN_ADDRESS"]