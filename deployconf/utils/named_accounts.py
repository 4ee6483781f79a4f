from typing import Sequence

from .config import ProjectConfig
from .custom_exceptions import ConfigurationError


def signers_for_network(config: ProjectConfig, network: str | None = None) -> tuple:
    return config.network(network).accounts


def resolve_named_accounts(config: ProjectConfig, signers: Sequence) -> dict:
    """
    Bind every named role to the signer at its index.

    Args:
        config: The loaded project configuration
        signers: The active signer list, private keys or node addresses

    Returns:
        Mapping of role name to signer

    Raises:
        ConfigurationError: If a role points past the end of the signer list
    """
    resolved = {}
    for role, index in config.named_accounts.items():
        if index >= len(signers):
            raise ConfigurationError(
                f"namedAccounts.{role}",
                f"account index {index} is out of bounds for {len(signers)} signer(s)",
            )
        resolved[role] = signers[index]
    return resolved
