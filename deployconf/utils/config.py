import json
import re
import types

from dataclasses import dataclass, field
from typing import Mapping
from urllib.parse import urlparse

import yaml

from .common import read_document, write_document, mask_text, DuplicateKeyError
from .compiler import parse_compiler_version
from .constants import (
    LOCAL_NETWORK_NAME,
    MIN_COMPILER_VERSION,
    DEFAULT_OPTIMIZER_RUNS,
    KNOWN_PLUGINS,
)
from .custom_exceptions import ConfigurationError
from .custom_types import ConfigDocument, NetworkProfileDocument
from .logger import logger
from .secrets import SecretStore, EnvSecretStore, split_accounts

TOP_LEVEL_KEYS = {
    "compilerVersion",
    "defaultNetwork",
    "networks",
    "optimizerSettings",
    "contractSizerOptions",
    "namedAccounts",
    "plugins",
}
NETWORK_KEYS = {"url", "urlEnvVar", "accounts", "accountsEnvVar", "chainId"}
OPTIMIZER_KEYS = {"enabled", "runs"}
CONTRACT_SIZER_KEYS = {"strict", "alphaSort", "only", "except"}

PRIVATE_KEY_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")
URL_SCHEMES = ("http", "https", "ws", "wss")


@dataclass(frozen=True)
class NetworkProfile:
    name: str
    url: str | None = None
    accounts: tuple[str, ...] = ()
    chain_id: int | None = None
    url_env_var: str | None = None
    accounts_env_var: str | None = None

    @property
    def is_local(self) -> bool:
        return self.name == LOCAL_NETWORK_NAME


@dataclass(frozen=True)
class OptimizerSettings:
    enabled: bool = False
    runs: int = DEFAULT_OPTIMIZER_RUNS


@dataclass(frozen=True)
class ContractSizerOptions:
    strict: bool = False
    alpha_sort: bool = False
    only: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProjectConfig:
    compiler_version: str
    default_network: str
    networks: Mapping[str, NetworkProfile]
    optimizer_settings: OptimizerSettings = field(default_factory=OptimizerSettings)
    contract_sizer_options: ContractSizerOptions = field(
        default_factory=ContractSizerOptions
    )
    named_accounts: Mapping[str, int] = field(
        default_factory=lambda: types.MappingProxyType({})
    )
    plugins: tuple[str, ...] = ()

    def __hash__(self):
        # mapping fields compare order-insensitively, so hash them as sets
        return hash(
            (
                self.compiler_version,
                self.default_network,
                frozenset(self.networks.items()),
                self.optimizer_settings,
                self.contract_sizer_options,
                frozenset(self.named_accounts.items()),
                self.plugins,
            )
        )

    def network(self, name: str | None = None) -> NetworkProfile:
        """Profile by name, or the default network profile."""
        if name is None:
            name = self.default_network
        if name not in self.networks:
            raise ConfigurationError("networks", f'network "{name}" is not defined')
        return self.networks[name]


def _type_name(value) -> str:
    return type(value).__name__


def _check_keys(document: dict, allowed: set, path: str) -> None:
    for key in document:
        if key not in allowed:
            name = f"{path}.{key}" if path else str(key)
            raise ConfigurationError(name, "unknown field")


def _require_mapping(value, path: str) -> dict:
    if not isinstance(value, dict):
        raise ConfigurationError(path, f"expected a mapping, got {_type_name(value)}")
    return value


def _require_str(value, path: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(path, f"expected a string, got {_type_name(value)}")
    if not value.strip():
        raise ConfigurationError(path, "must not be empty")
    return value


def _require_bool(value, path: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(path, f"expected a boolean, got {_type_name(value)}")
    return value


def _require_int(value, path: str) -> int:
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(path, f"expected an integer, got {_type_name(value)}")
    return value


def _require_str_list(value, path: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ConfigurationError(path, f"expected a list, got {_type_name(value)}")
    return tuple(_require_str(item, f"{path}[{index}]") for index, item in enumerate(value))


def _parse_compiler_version(document: dict) -> str:
    if "compilerVersion" not in document:
        raise ConfigurationError("compilerVersion", "required field is missing")
    version = _require_str(document["compilerVersion"], "compilerVersion")

    try:
        parsed = parse_compiler_version(version)
    except ValueError as err:
        raise ConfigurationError("compilerVersion", str(err))

    if parsed < MIN_COMPILER_VERSION:
        minimum = ".".join(str(part) for part in MIN_COMPILER_VERSION)
        raise ConfigurationError(
            "compilerVersion",
            f'unsupported version "{version}", the oldest supported is {minimum}',
        )
    return version


def _parse_url(value, path: str) -> str:
    url = _require_str(value, path)
    parsed = urlparse(url)
    if parsed.scheme not in URL_SCHEMES or not parsed.netloc:
        raise ConfigurationError(
            path, f"expected an {'/'.join(URL_SCHEMES)} URL, got {mask_text(url)}"
        )
    return url


def _parse_account(value, path: str) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        raise ConfigurationError(
            path,
            "value was parsed as integer, quote 0x-prefixed private keys in YAML",
        )
    account = _require_str(value, path)
    if not PRIVATE_KEY_PATTERN.match(account):
        raise ConfigurationError(
            path, "expected a 0x-prefixed 32-byte hex private key"
        )
    return account


def _resolve_secret(secret_store: SecretStore, env_var: str, path: str) -> str:
    value = secret_store.get(env_var)
    if value is None:
        raise ConfigurationError(path, f'secret "{env_var}" is not set')
    return value


def _parse_network(
    name: str, document, secret_store: SecretStore
) -> NetworkProfile:
    path = f"networks.{name}"
    document = _require_mapping(document, path)
    _check_keys(document, NETWORK_KEYS, path)
    is_local = name == LOCAL_NETWORK_NAME

    if "url" in document and "urlEnvVar" in document:
        raise ConfigurationError(path, 'set either "url" or "urlEnvVar", not both')
    if "accounts" in document and "accountsEnvVar" in document:
        raise ConfigurationError(
            path, 'set either "accounts" or "accountsEnvVar", not both'
        )

    url = None
    url_env_var = None
    if is_local and ("url" in document or "urlEnvVar" in document):
        raise ConfigurationError(
            f"{path}.url", "the local simulated network has no endpoint"
        )
    if "url" in document:
        url = _parse_url(document["url"], f"{path}.url")
    elif "urlEnvVar" in document:
        url_env_var = _require_str(document["urlEnvVar"], f"{path}.urlEnvVar")
        url = _parse_url(
            _resolve_secret(secret_store, url_env_var, f"{path}.urlEnvVar"),
            f"{path}.urlEnvVar",
        )
    elif not is_local:
        raise ConfigurationError(
            f"{path}.url", "required for every network except the local one"
        )

    accounts = ()
    accounts_env_var = None
    if "accounts" in document:
        raw_accounts = document["accounts"]
        if not isinstance(raw_accounts, list):
            raise ConfigurationError(
                f"{path}.accounts", f"expected a list, got {_type_name(raw_accounts)}"
            )
        accounts = tuple(
            _parse_account(account, f"{path}.accounts[{index}]")
            for index, account in enumerate(raw_accounts)
        )
    elif "accountsEnvVar" in document:
        accounts_env_var = _require_str(
            document["accountsEnvVar"], f"{path}.accountsEnvVar"
        )
        secret = _resolve_secret(
            secret_store, accounts_env_var, f"{path}.accountsEnvVar"
        )
        accounts = tuple(
            _parse_account(account, f"{path}.accountsEnvVar[{index}]")
            for index, account in enumerate(split_accounts(secret))
        )

    chain_id = None
    if "chainId" in document:
        chain_id = _require_int(document["chainId"], f"{path}.chainId")
        if chain_id <= 0:
            raise ConfigurationError(f"{path}.chainId", "must be a positive integer")

    return NetworkProfile(
        name=name,
        url=url,
        accounts=accounts,
        chain_id=chain_id,
        url_env_var=url_env_var,
        accounts_env_var=accounts_env_var,
    )


def _parse_networks(document: dict, secret_store: SecretStore) -> dict:
    if "networks" not in document:
        raise ConfigurationError("networks", "required field is missing")
    networks_document = _require_mapping(document["networks"], "networks")
    if not networks_document:
        raise ConfigurationError("networks", "at least one network is required")

    networks = {}
    for name, network_document in networks_document.items():
        if not isinstance(name, str) or not name:
            raise ConfigurationError("networks", f"invalid network name {name!r}")
        networks[name] = _parse_network(name, network_document, secret_store)
    return networks


def _parse_default_network(document: dict, networks: dict) -> str:
    default_network = _require_str(
        document.get("defaultNetwork", LOCAL_NETWORK_NAME), "defaultNetwork"
    )
    if default_network not in networks:
        raise ConfigurationError(
            "defaultNetwork",
            f'"{default_network}" is not a key of networks ({", ".join(networks)})',
        )
    return default_network


def _parse_optimizer_settings(document: dict) -> OptimizerSettings:
    if "optimizerSettings" not in document:
        return OptimizerSettings()

    optimizer = _require_mapping(document["optimizerSettings"], "optimizerSettings")
    _check_keys(optimizer, OPTIMIZER_KEYS, "optimizerSettings")

    enabled = _require_bool(
        optimizer.get("enabled", False), "optimizerSettings.enabled"
    )
    runs = _require_int(
        optimizer.get("runs", DEFAULT_OPTIMIZER_RUNS), "optimizerSettings.runs"
    )
    if enabled and runs <= 0:
        raise ConfigurationError(
            "optimizerSettings.runs",
            "must be a positive integer when the optimizer is enabled",
        )
    if runs < 0:
        raise ConfigurationError("optimizerSettings.runs", "must not be negative")
    return OptimizerSettings(enabled=enabled, runs=runs)


def _parse_patterns(options: dict, key: str) -> tuple[str, ...]:
    path = f"contractSizerOptions.{key}"
    patterns = _require_str_list(options.get(key, []), path)
    for index, pattern in enumerate(patterns):
        try:
            re.compile(pattern)
        except re.error as err:
            raise ConfigurationError(f"{path}[{index}]", f"invalid pattern: {err}")
    return patterns


def _parse_contract_sizer_options(document: dict) -> ContractSizerOptions:
    if "contractSizerOptions" not in document:
        return ContractSizerOptions()

    options = _require_mapping(
        document["contractSizerOptions"], "contractSizerOptions"
    )
    _check_keys(options, CONTRACT_SIZER_KEYS, "contractSizerOptions")

    return ContractSizerOptions(
        strict=_require_bool(options.get("strict", False), "contractSizerOptions.strict"),
        alpha_sort=_require_bool(
            options.get("alphaSort", False), "contractSizerOptions.alphaSort"
        ),
        only=_parse_patterns(options, "only"),
        exclude=_parse_patterns(options, "except"),
    )


def _parse_named_accounts(document: dict) -> dict:
    named_accounts_document = _require_mapping(
        document.get("namedAccounts", {}), "namedAccounts"
    )

    named_accounts = {}
    for role, index in named_accounts_document.items():
        if not isinstance(role, str) or not role:
            raise ConfigurationError("namedAccounts", f"invalid role name {role!r}")
        path = f"namedAccounts.{role}"
        index = _require_int(index, path)
        if index < 0:
            raise ConfigurationError(path, "account index must not be negative")
        named_accounts[role] = index

    indices = list(named_accounts.values())
    if len(indices) != len(set(indices)):
        duplicates = sorted({index for index in indices if indices.count(index) > 1})
        raise ConfigurationError(
            "namedAccounts",
            f"account indices must be unique, duplicated: {duplicates}",
        )
    return named_accounts


def _parse_plugins(document: dict) -> tuple[str, ...]:
    plugins = _require_str_list(document.get("plugins", []), "plugins")
    for plugin in plugins:
        if plugin not in KNOWN_PLUGINS:
            raise ConfigurationError(
                "plugins",
                f'unknown plugin "{plugin}", expected one of {", ".join(KNOWN_PLUGINS)}',
            )
    if len(plugins) != len(set(plugins)):
        raise ConfigurationError("plugins", "plugins must not repeat")
    return plugins


def load(
    document: ConfigDocument, secret_store: SecretStore | None = None
) -> ProjectConfig:
    """
    Validate a parsed configuration document and build the immutable record.

    Args:
        document: The parsed JSON/YAML document
        secret_store: Where ``urlEnvVar``/``accountsEnvVar`` references are
            looked up; process environment by default

    Returns:
        The fully populated ProjectConfig

    Raises:
        ConfigurationError: On the first missing, mistyped or inconsistent field
    """
    if secret_store is None:
        secret_store = EnvSecretStore()

    document = _require_mapping(document, "config")
    _check_keys(document, TOP_LEVEL_KEYS, "")

    compiler_version = _parse_compiler_version(document)
    networks = _parse_networks(document, secret_store)
    default_network = _parse_default_network(document, networks)

    return ProjectConfig(
        compiler_version=compiler_version,
        default_network=default_network,
        networks=types.MappingProxyType(networks),
        optimizer_settings=_parse_optimizer_settings(document),
        contract_sizer_options=_parse_contract_sizer_options(document),
        named_accounts=types.MappingProxyType(_parse_named_accounts(document)),
        plugins=_parse_plugins(document),
    )


def load_config_file(
    path: str, secret_store: SecretStore | None = None
) -> ProjectConfig:
    try:
        document = read_document(path)
    except FileNotFoundError:
        raise ConfigurationError(path, "config file not found")
    except DuplicateKeyError as err:
        raise ConfigurationError(
            str(err.key), f"duplicate key in {path}{err.location}"
        )
    except (ValueError, yaml.YAMLError) as err:
        # json.JSONDecodeError is a ValueError
        raise ConfigurationError(path, f"unreadable config: {err}")
    return load(document, secret_store)


def _dump_network(network: NetworkProfile) -> NetworkProfileDocument:
    document = {}
    if network.url_env_var is not None:
        document["urlEnvVar"] = network.url_env_var
    elif network.url is not None:
        document["url"] = network.url

    if network.accounts_env_var is not None:
        document["accountsEnvVar"] = network.accounts_env_var
    elif network.accounts or not network.is_local:
        document["accounts"] = list(network.accounts)

    if network.chain_id is not None:
        document["chainId"] = network.chain_id
    return document


def dump(config: ProjectConfig) -> ConfigDocument:
    """
    Serialize the record back to a document.

    Secrets sourced from the secret store are written as their references.
    """
    return {
        "compilerVersion": config.compiler_version,
        "defaultNetwork": config.default_network,
        "networks": {
            name: _dump_network(network) for name, network in config.networks.items()
        },
        "optimizerSettings": {
            "enabled": config.optimizer_settings.enabled,
            "runs": config.optimizer_settings.runs,
        },
        "contractSizerOptions": {
            "strict": config.contract_sizer_options.strict,
            "alphaSort": config.contract_sizer_options.alpha_sort,
            "only": list(config.contract_sizer_options.only),
            "except": list(config.contract_sizer_options.exclude),
        },
        "namedAccounts": dict(config.named_accounts),
        "plugins": list(config.plugins),
    }


def save_config(config: ProjectConfig, path: str) -> None:
    write_document(dump(config), path)
    logger.okay("Config written", path)


def dumps(config: ProjectConfig) -> str:
    return json.dumps(dump(config), indent=2)
