import platform
import re
import sys

from .common import fetch
from .constants import MIN_COMPILER_VERSION
from .logger import logger
from .custom_exceptions import CompileError

VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


def parse_compiler_version(version: str) -> tuple[int, int, int]:
    match = VERSION_PATTERN.match(version)
    if not match:
        raise ValueError(f'"{version}" is not a MAJOR.MINOR.PATCH version')
    major, minor, patch = (int(part) for part in match.groups())
    return major, minor, patch


def is_supported_compiler_version(version: str) -> bool:
    try:
        return parse_compiler_version(version) >= MIN_COMPILER_VERSION
    except ValueError:
        return False


def get_solc_native_platform_from_os():
    platform_name = sys.platform
    if platform_name == "linux":
        return "linux-amd64"
    elif platform_name == "darwin":
        return "macosx-amd64" if platform.machine() == "x86_64" else "macosx-arm64"
    elif platform_name == "win32":
        return "windows-amd64"
    else:
        raise CompileError(f"Unsupported platform {platform_name}")


def get_compiler_releases(required_platform):
    compilers_list_url = f"https://raw.githubusercontent.com/ethereum/solc-bin/refs/heads/gh-pages/{required_platform}/list.json"
    try:
        available_compilers_list = fetch(compilers_list_url).json()
    except ValueError as err:
        raise CompileError(f"Received non-JSON compiler list: {err}")
    if (
        not isinstance(available_compilers_list, dict)
        or "releases" not in available_compilers_list
    ):
        raise CompileError(f"Malformed compiler list for {required_platform}")
    return available_compilers_list["releases"]


def check_compiler_available(required_compiler_version, required_platform=None):
    """
    Make sure the upstream solc build list has a release for the version.

    Returns:
        The release file name published for the version

    Raises:
        CompileError: If the version is not released for the platform
    """
    if required_platform is None:
        required_platform = get_solc_native_platform_from_os()

    logger.info(
        f"Looking up solc {required_compiler_version} for {required_platform} ..."
    )
    releases = get_compiler_releases(required_platform)

    if required_compiler_version not in releases:
        raise CompileError(
            f'Required compiler version "{required_compiler_version}" for "{required_platform}" is not found'
        )

    logger.okay("Compiler release", releases[required_compiler_version])
    return releases[required_compiler_version]
