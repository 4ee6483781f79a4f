import sys
import time
import argparse

from .utils.common import mask_text
from .utils.compiler import check_compiler_available
from .utils.config import ProjectConfig, load_config_file, save_config, dumps
from .utils.constants import DEFAULT_ARTIFACTS_PATH, DEFAULT_CONFIG_PATH, START_TIME
from .utils.contract_sizer import size_contracts
from .utils.logger import logger
from .utils.node_handler import check_network
from .utils.plugins import PluginRegistry
from .utils.custom_exceptions import BaseCustomException

__version__ = "0.0.0"

NETWORKS_HEADER = ["Network", "URL", "Accounts", "Chain ID", "Default"]


def report_config(config: ProjectConfig):
    logger.divider()
    logger.okay("Compiler version", config.compiler_version)
    logger.okay("Default network", config.default_network)

    optimizer = config.optimizer_settings
    if optimizer.enabled:
        logger.okay("Optimizer runs", optimizer.runs)
    else:
        logger.warn("Optimizer is disabled")

    logger.okay("Contract sizer strict", config.contract_sizer_options.strict)
    for role, index in config.named_accounts.items():
        logger.okay(f"Named account {role}", index)
    if config.plugins:
        logger.okay("Plugins", ", ".join(config.plugins))
    logger.divider()

    rows = []
    for name, network in config.networks.items():
        if network.is_local:
            url = "<in-process>"
        elif network.url_env_var is not None:
            url = f"${network.url_env_var}"
        else:
            url = mask_text(network.url)
        rows.append(
            [
                name,
                url,
                len(network.accounts),
                network.chain_id if network.chain_id is not None else "-",
                name == config.default_network,
            ]
        )
    logger.report_table(rows, NETWORKS_HEADER)


def build_registry(artifacts_path: str | None) -> PluginRegistry:
    registry = PluginRegistry()
    if artifacts_path is not None:
        registry.register(
            "hardhat-contract-sizer",
            lambda config: size_contracts(
                artifacts_path, config.contract_sizer_options
            ),
        )
    return registry


def process_config(
    path: str,
    network: str | None,
    dump_path: str | None,
    enable_network_check: bool,
    enable_compiler_check: bool,
    artifacts_path: str | None,
):
    logger.info(f"Loading config {path}...")
    config = load_config_file(path)
    logger.okay("Config is valid", path)

    report_config(config)

    if dump_path == "-":
        logger.stdout(dumps(config))
    elif dump_path is not None:
        save_config(config, dump_path)

    if enable_compiler_check:
        check_compiler_available(config.compiler_version)

    registry = build_registry(artifacts_path)
    for plugin_id in registry.registered():
        if plugin_id not in config.plugins:
            logger.warn(f'Plugin "{plugin_id}" is not enabled in {path}, skipping')
    registry.run(config)

    if enable_network_check:
        check_network(config, network)

    return config


def parse_arguments():
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--version", "-V", action="store_true", help="Display version information"
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=DEFAULT_CONFIG_PATH,
        help="Path to a .json/.yaml project config",
    )
    parser.add_argument(
        "--network",
        "-n",
        default=None,
        help="Network profile to check instead of the default network",
    )
    parser.add_argument(
        "--dump",
        "-D",
        default=None,
        help="Write the normalized config to this .json/.yaml path, '-' for stdout",
    )
    parser.add_argument(
        "--check-network",
        "-N",
        help="Probe the network endpoint and resolve named accounts",
        action="store_true",
    )
    parser.add_argument(
        "--check-compiler",
        "-C",
        help="Make sure the compiler version is released upstream",
        action="store_true",
    )
    parser.add_argument(
        "--size-contracts",
        "-S",
        nargs="?",
        const=DEFAULT_ARTIFACTS_PATH,
        default=None,
        metavar="ARTIFACTS_DIR",
        help=f"Report compiled contract sizes from the artifacts directory (default: {DEFAULT_ARTIFACTS_PATH})",
    )
    return parser.parse_args()


def main():
    args = parse_arguments()
    if args.version:
        print(f"deployconf {__version__}")
        return
    logger.info("Welcome to deployconf!")
    logger.divider()

    try:
        process_config(
            args.path,
            args.network,
            args.dump,
            args.check_network,
            args.check_compiler,
            args.size_contracts,
        )
    except BaseCustomException as custom_exc:
        logger.error(str(custom_exc))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt by user")
        sys.exit(1)

    execution_time = time.time() - START_TIME

    logger.okay(f"Done in {round(execution_time, 3)}s ✨")


if __name__ == "__main__":
    main()
