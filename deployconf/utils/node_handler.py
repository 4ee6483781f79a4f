import json

from .common import pull, mask_text
from .config import ProjectConfig
from .constants import LOCAL_NETWORK_NAME
from .logger import logger
from .custom_exceptions import NodeError
from .named_accounts import resolve_named_accounts


def _rpc_call(rpc_url: str, method: str, params=None, request_id: int = 1):
    payload = json.dumps(
        {"id": request_id, "jsonrpc": "2.0", "method": method, "params": params or []}
    )
    headers = {"Content-Type": "application/json"}
    try:
        response = pull(rpc_url, payload, headers).json()
    except ValueError as err:
        raise NodeError(f"Received non-JSON response to {method}: {err}")
    if not isinstance(response, dict):
        raise NodeError(f"Received bad response to {method}: {response}")

    if "error" in response:
        error = response["error"]
        message = error.get("message") if isinstance(error, dict) else error
        raise NodeError(f"{method} failed: {message}")
    if "result" not in response:
        raise NodeError(f"Received bad response to {method}: {response}")
    return response["result"]


def get_chain_id(rpc_url: str) -> int:
    """
    Get the chain ID from an RPC node.

    Args:
        rpc_url: The RPC URL

    Returns:
        The chain ID as an integer

    Raises:
        NodeError: If the chain ID cannot be retrieved
    """
    logger.info(f'Receiving the chain ID from "{mask_text(rpc_url)}" ...')

    result = _rpc_call(rpc_url, "eth_chainId")

    logger.okay("Chain ID was successfully received")

    # Convert hex string to decimal integer
    try:
        return int(result, 16)
    except (TypeError, ValueError):
        raise NodeError(f"Malformed chain ID: {result}")


def get_accounts(rpc_url: str) -> list[str]:
    logger.info(f'Receiving the accounts from "{mask_text(rpc_url)}" ...')

    result = _rpc_call(rpc_url, "eth_accounts", request_id=42)
    if not isinstance(result, list):
        raise NodeError(f"Malformed account list: {result}")

    logger.okay("Accounts were successfully received", len(result))
    return result


def check_network(config: ProjectConfig, network_name: str | None = None) -> dict:
    """
    Probe a configured network and bind the named accounts against it.

    Configured private keys take precedence; otherwise the node's unlocked
    accounts are used.

    Returns:
        Mapping of role name to signer

    Raises:
        NodeError: If the endpoint is unreachable or on an unexpected chain
        ConfigurationError: If a named account is out of bounds
    """
    network = config.network(network_name)
    logger.info(f"Checking network {network.name} ...")

    if network.is_local:
        raise NodeError(
            f'"{LOCAL_NETWORK_NAME}" is simulated in-process and has no endpoint to probe'
        )

    chain_id = get_chain_id(network.url)
    if network.chain_id is not None and chain_id != network.chain_id:
        raise NodeError(
            f"Network {network.name} expects chain ID {network.chain_id}, node reports {chain_id}"
        )
    logger.okay("Chain ID", chain_id)

    signers = network.accounts
    if not signers:
        logger.warn(f"No accounts configured for {network.name}, using node accounts")
        signers = get_accounts(network.url)

    resolved = resolve_named_accounts(config, signers)
    for role, signer in resolved.items():
        printable = mask_text(signer) if signer in network.accounts else signer
        logger.okay(f"Named account {role}", printable)
    return resolved
