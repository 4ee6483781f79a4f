import json
import yaml
import pytest
from pathlib import Path

from deployconf.utils.common import read_document
from deployconf.utils.config import load_config_file, dump
from deployconf.utils.custom_exceptions import ConfigurationError

FIXTURES_DIR = Path(__file__).parent / "fixtures"

FULL_JSON_FIXTURE = FIXTURES_DIR / "full_config.json"
FULL_YAML_FIXTURE = FIXTURES_DIR / "full_config.yaml"

ALL_TOP_LEVEL_KEYS = {
    "compilerVersion",
    "defaultNetwork",
    "networks",
    "optimizerSettings",
    "contractSizerOptions",
    "namedAccounts",
    "plugins",
}

SAMPLE_CONFIG = {
    "compilerVersion": "0.8.6",
    "defaultNetwork": "hardhat",
    "networks": {
        "hardhat": {},
        "rinkeby": {
            "url": "https://eth-rinkeby.alchemyapi.io/v2/123abc123abc123abc123abc123abcde",
            "accounts": [],
        },
    },
    "optimizerSettings": {"enabled": True, "runs": 1000},
    "contractSizerOptions": {"strict": True},
    "namedAccounts": {"deployer": 0, "dev": 1},
}


def test_read_json_document(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(SAMPLE_CONFIG))
    assert read_document(str(path)) == SAMPLE_CONFIG


def test_read_yaml_document(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(SAMPLE_CONFIG))
    assert read_document(str(path)) == SAMPLE_CONFIG


def test_read_yml_document(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(yaml.dump(SAMPLE_CONFIG))
    assert read_document(str(path)) == SAMPLE_CONFIG


def test_case_insensitive_extension(tmp_path):
    yaml_path = tmp_path / "config.YAML"
    yaml_path.write_text(yaml.dump(SAMPLE_CONFIG))
    json_path = tmp_path / "config.JSON"
    json_path.write_text(json.dumps(SAMPLE_CONFIG))

    assert load_config_file(str(yaml_path)) == load_config_file(str(json_path))


def test_unsupported_extension_raises(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("")
    with pytest.raises(ValueError, match="Unsupported config file extension"):
        read_document(str(path))

    with pytest.raises(ConfigurationError, match="Unsupported config file extension"):
        load_config_file(str(path))


def test_missing_file_raises(tmp_path):
    path = tmp_path / "absent.yaml"
    with pytest.raises(ConfigurationError, match="not found") as exc_info:
        load_config_file(str(path))
    assert exc_info.value.field == str(path)


def test_malformed_yaml_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("networks:\n  bad: [unterminated\n")
    with pytest.raises(ConfigurationError, match="unreadable config"):
        load_config_file(str(path))


def test_malformed_json_raises(tmp_path):
    path = tmp_path / "config.json"
    path.write_text('{"networks": {trailing comma,}}')
    with pytest.raises(json.JSONDecodeError):
        read_document(str(path))
    with pytest.raises(ConfigurationError, match="unreadable config"):
        load_config_file(str(path))


def test_empty_yaml_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("# just a comment\n")
    with pytest.raises(ConfigurationError, match="empty or contains only comments"):
        load_config_file(str(path))


def test_yaml_unquoted_private_key_raises(tmp_path):
    """PyYAML turns unquoted 0x... into an int, which must not pass as a key."""
    path = tmp_path / "config.yaml"
    path.write_text(
        """\
compilerVersion: "0.8.6"
networks:
  hardhat: {}
  rinkeby:
    url: https://rinkeby.example.org
    accounts:
      - 0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80
"""
    )
    with pytest.raises(ConfigurationError, match="parsed as integer") as exc_info:
        load_config_file(str(path))
    assert exc_info.value.field == "networks.rinkeby.accounts[0]"


def test_yaml_unquoted_short_compiler_version_raises(tmp_path):
    """``0.8`` is a float in YAML, not a version string."""
    path = tmp_path / "config.yaml"
    path.write_text("compilerVersion: 0.8\nnetworks:\n  hardhat: {}\n")
    with pytest.raises(ConfigurationError, match="expected a string") as exc_info:
        load_config_file(str(path))
    assert exc_info.value.field == "compilerVersion"


def test_yaml_comments_are_ignored(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        """\
# Top-level comment
compilerVersion: "0.8.6" # pinned
networks:
  hardhat: {} # local
namedAccounts:
  deployer: 0 # first signer
"""
    )
    config = load_config_file(str(path))
    assert config.compiler_version == "0.8.6"
    assert dict(config.named_accounts) == {"deployer": 0}


# --- Full-fixture tests ---


def test_full_json_fixture_loads():
    config = load_config_file(str(FULL_JSON_FIXTURE))
    assert ALL_TOP_LEVEL_KEYS == set(dump(config).keys())
    assert set(config.networks) == {"hardhat", "rinkeby", "localhost"}


def test_full_fixtures_produce_identical_records():
    assert load_config_file(str(FULL_JSON_FIXTURE)) == load_config_file(
        str(FULL_YAML_FIXTURE)
    )


def test_full_fixture_values():
    config = load_config_file(str(FULL_YAML_FIXTURE))

    assert config.compiler_version == "0.8.6"
    assert config.default_network == "hardhat"
    assert config.optimizer_settings.enabled is True
    assert config.optimizer_settings.runs == 1000

    rinkeby = config.networks["rinkeby"]
    assert rinkeby.chain_id == 4
    assert len(rinkeby.accounts) == 2
    for account in rinkeby.accounts:
        assert isinstance(account, str) and account.startswith("0x")

    assert config.networks["hardhat"].is_local
    assert config.networks["hardhat"].url is None

    sizer = config.contract_sizer_options
    assert sizer.strict is True
    assert sizer.alpha_sort is True
    assert sizer.only == ("^contracts/",)
    assert sizer.exclude == ("Mock",)

    assert len(config.plugins) == 7


def test_yaml_duplicate_network_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "compilerVersion: 0.8.6\n"
        "networks:\n"
        "  hardhat: {}\n"
        "  rinkeby:\n"
        "    url: https://rinkeby.example.org\n"
        "  rinkeby:\n"
        "    url: https://other.example.org\n"
    )
    with pytest.raises(ConfigurationError, match="duplicate key") as exc_info:
        load_config_file(str(path))
    assert exc_info.value.field == "rinkeby"
    assert "line 6" in str(exc_info.value)


def test_yaml_duplicate_named_account_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        '"compilerVersion": "0.8.6"\n'
        "networks:\n"
        "  hardhat: {}\n"
        "namedAccounts:\n"
        "  deployer: 0\n"
        "  deployer: 1\n"
    )
    with pytest.raises(ConfigurationError, match="duplicate key") as exc_info:
        load_config_file(str(path))
    assert exc_info.value.field == "deployer"


def test_yaml_merge_key_is_not_a_duplicate(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "base: &base\n"
        "  url: https://rinkeby.example.org\n"
        "  chainId: 4\n"
        "rinkeby:\n"
        "  <<: *base\n"
        "  chainId: 5\n"
    )
    assert read_document(str(path))["rinkeby"] == {
        "url": "https://rinkeby.example.org",
        "chainId": 5,
    }


def test_json_duplicate_network_raises(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        '{"compilerVersion": "0.8.6", "networks": {'
        '"hardhat": {}, '
        '"rinkeby": {"url": "https://rinkeby.example.org"}, '
        '"rinkeby": {"url": "https://other.example.org"}}}'
    )
    with pytest.raises(ConfigurationError, match="duplicate key") as exc_info:
        load_config_file(str(path))
    assert exc_info.value.field == "rinkeby"
    assert str(path) in str(exc_info.value)
