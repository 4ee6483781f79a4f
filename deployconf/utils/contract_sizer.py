import json
import os
import re

from .config import ContractSizerOptions
from .constants import CONTRACT_SIZE_LIMIT, INITCODE_SIZE_LIMIT
from .logger import logger
from .custom_exceptions import ContractSizeError, ExceptionHandler

REPORT_HEADER = ["#", "Contract", "Deployed KiB", "Initcode KiB", "Oversized"]


def bytecode_size(bytecode: str) -> int:
    """Size in bytes of a hex bytecode string, with or without the 0x prefix."""
    if bytecode.startswith("0x"):
        bytecode = bytecode[2:]
    return len(bytecode) // 2


def _is_artifact(path: str) -> bool:
    filename = os.path.basename(path)
    return filename.endswith(".json") and not filename.endswith(".dbg.json")


def collect_contract_sizes(artifacts_dir: str) -> list[dict]:
    """
    Read compiled artifacts and measure every contract with runtime code.

    Interfaces and abstract contracts have an empty ``deployedBytecode``
    and are skipped, as is the ``build-info`` directory.
    """
    if not os.path.isdir(artifacts_dir):
        raise ContractSizeError(f"Artifacts directory '{artifacts_dir}' not found")

    sizes = []
    for root, dirs, files in os.walk(artifacts_dir):
        dirs[:] = sorted(d for d in dirs if d != "build-info")
        for filename in sorted(files):
            path = os.path.join(root, filename)
            if not _is_artifact(path):
                continue

            with open(path, mode="r", encoding="utf-8") as artifact_file:
                try:
                    artifact = json.load(artifact_file)
                except (json.JSONDecodeError, UnicodeDecodeError) as err:
                    raise ContractSizeError(f"Malformed artifact {path}: {err}")

            if not isinstance(artifact, dict) or "deployedBytecode" not in artifact:
                continue

            deployed_bytecode = artifact.get("deployedBytecode") or "0x"
            initcode = artifact.get("bytecode") or "0x"
            if not isinstance(deployed_bytecode, str) or not isinstance(initcode, str):
                raise ContractSizeError(f"Malformed bytecode in artifact {path}")

            deployed_size = bytecode_size(deployed_bytecode)
            if deployed_size == 0:
                continue

            source_name = artifact.get("sourceName") or os.path.relpath(
                root, artifacts_dir
            )
            contract_name = artifact.get("contractName") or filename[: -len(".json")]
            full_name = f"{source_name}:{contract_name}"
            sizes.append(
                {
                    "name": full_name,
                    "deployed_size": deployed_size,
                    "initcode_size": bytecode_size(initcode),
                }
            )
    return sizes


def filter_contract_sizes(sizes: list[dict], options: ContractSizerOptions) -> list[dict]:
    selected = sizes
    if options.only:
        selected = [
            size
            for size in selected
            if any(re.search(pattern, size["name"]) for pattern in options.only)
        ]
    if options.exclude:
        selected = [
            size
            for size in selected
            if not any(re.search(pattern, size["name"]) for pattern in options.exclude)
        ]

    if options.alpha_sort:
        return sorted(selected, key=lambda size: size["name"])
    return sorted(selected, key=lambda size: size["deployed_size"])


def is_oversized(size: dict) -> bool:
    return (
        size["deployed_size"] > CONTRACT_SIZE_LIMIT
        or size["initcode_size"] > INITCODE_SIZE_LIMIT
    )


def size_contracts(artifacts_dir: str, options: ContractSizerOptions) -> list[dict]:
    """
    Report compiled contract sizes against the deployable limits.

    In strict mode an oversized contract raises ContractSizeError, otherwise
    it is only logged.
    """
    logger.info(f"Measuring contracts in {artifacts_dir} ...")
    sizes = filter_contract_sizes(collect_contract_sizes(artifacts_dir), options)

    report = [
        [
            index + 1,
            size["name"],
            round(size["deployed_size"] / 1024, 3),
            round(size["initcode_size"] / 1024, 3),
            is_oversized(size),
        ]
        for index, size in enumerate(sizes)
    ]
    logger.report_table(report, REPORT_HEADER, flagged_column=4)

    oversized = [size["name"] for size in sizes if is_oversized(size)]
    if oversized:
        ExceptionHandler.initialize(options.strict)
        ExceptionHandler.raise_exception_or_log(
            ContractSizeError(
                f"{len(oversized)} contract(s) exceed the size limit: {', '.join(oversized)}"
            )
        )
    else:
        logger.okay("All contracts fit the size limit")

    return sizes
