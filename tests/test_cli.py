import json
import sys

import pytest
import yaml

from deployconf import deployconf
from deployconf.deployconf import process_config, main
from deployconf.utils.config import load_config_file
from deployconf.utils.custom_exceptions import ConfigurationError, ExceptionHandler

SAMPLE_YAML = """\
compilerVersion: "0.8.6"
defaultNetwork: hardhat
networks:
  hardhat: {}
  rinkeby:
    url: https://eth-rinkeby.alchemyapi.io/v2/123abc123abc123abc123abc123abcde
    accounts: []
optimizerSettings:
  enabled: true
  runs: 1000
contractSizerOptions:
  strict: true
namedAccounts:
  deployer: 0
  dev: 1
plugins:
  - hardhat-contract-sizer
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "deployconf.yaml"
    path.write_text(SAMPLE_YAML)
    return path


@pytest.fixture(autouse=True)
def restore_exception_handler():
    yield
    ExceptionHandler.initialize(True)


def run_main(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["deployconf", *argv])
    main()


def test_process_config_returns_record(config_path):
    config = process_config(str(config_path), None, None, False, False, None)
    assert config.default_network == "hardhat"


def test_process_config_dumps_json(config_path, tmp_path):
    out = tmp_path / "out" / "normalized.json"
    config = process_config(str(config_path), None, str(out), False, False, None)

    document = json.loads(out.read_text())
    assert document["compilerVersion"] == "0.8.6"
    assert load_config_file(str(out)) == config


def test_process_config_dumps_yaml(config_path, tmp_path):
    out = tmp_path / "normalized.yaml"
    config = process_config(str(config_path), None, str(out), False, False, None)

    assert yaml.safe_load(out.read_text())["namedAccounts"] == {"deployer": 0, "dev": 1}
    assert load_config_file(str(out)) == config


def test_process_config_dump_to_stdout(config_path, capsys):
    process_config(str(config_path), None, "-", False, False, None)
    assert '"compilerVersion": "0.8.6"' in capsys.readouterr().out


def test_process_config_runs_contract_sizer(config_path, tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(
        deployconf,
        "size_contracts",
        lambda artifacts, options: calls.append((artifacts, options.strict)),
    )

    process_config(str(config_path), None, None, False, False, str(tmp_path))

    assert calls == [(str(tmp_path), True)]


def test_process_config_checks_compiler_and_network(config_path, monkeypatch):
    checked = []
    monkeypatch.setattr(
        deployconf, "check_compiler_available", lambda version: checked.append(version)
    )
    monkeypatch.setattr(
        deployconf,
        "check_network",
        lambda config, network: checked.append(network),
    )

    process_config(str(config_path), "rinkeby", None, True, True, None)

    assert checked == ["0.8.6", "rinkeby"]


def test_process_config_invalid_raises(tmp_path):
    path = tmp_path / "deployconf.yaml"
    path.write_text(SAMPLE_YAML.replace("defaultNetwork: hardhat", "defaultNetwork: mainnet"))
    with pytest.raises(ConfigurationError) as exc_info:
        process_config(str(path), None, None, False, False, None)
    assert exc_info.value.field == "defaultNetwork"


def test_main_exits_on_invalid_config(tmp_path, monkeypatch, capsys):
    path = tmp_path / "deployconf.yaml"
    path.write_text(SAMPLE_YAML.replace("runs: 1000", "runs: 0"))

    with pytest.raises(SystemExit) as exc_info:
        run_main(monkeypatch, str(path))

    assert exc_info.value.code == 1
    assert "optimizerSettings.runs" in capsys.readouterr().out


def test_main_valid_config(config_path, monkeypatch, capsys):
    run_main(monkeypatch, str(config_path))
    assert "Config is valid" in capsys.readouterr().out


def test_main_version(monkeypatch, capsys):
    run_main(monkeypatch, "--version")
    assert capsys.readouterr().out.strip() == f"deployconf {deployconf.__version__}"


def test_main_size_contracts_defaults_to_artifacts_dir(config_path, monkeypatch):
    calls = []
    monkeypatch.setattr(
        deployconf,
        "size_contracts",
        lambda artifacts, options: calls.append(artifacts),
    )

    run_main(monkeypatch, str(config_path), "--size-contracts")

    assert calls == ["artifacts"]


def test_main_size_contracts_explicit_dir(config_path, tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(
        deployconf,
        "size_contracts",
        lambda artifacts, options: calls.append(artifacts),
    )

    run_main(monkeypatch, str(config_path), "-S", str(tmp_path))

    assert calls == [str(tmp_path)]
