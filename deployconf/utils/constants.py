import time

DIGEST_DIR = "digest"
START_TIME = time.time()
START_TIME_INT = int(START_TIME)
LOGS_PATH = f"{DIGEST_DIR}/{START_TIME_INT}/logs.txt"
DEFAULT_CONFIG_PATH = "deployconf.yaml"
DEFAULT_ARTIFACTS_PATH = "artifacts"

LOCAL_NETWORK_NAME = "hardhat"

# first solc release with --standard-json
MIN_COMPILER_VERSION = (0, 4, 11)

DEFAULT_OPTIMIZER_RUNS = 200

# EIP-170
CONTRACT_SIZE_LIMIT = 24576
# EIP-3860
INITCODE_SIZE_LIMIT = 49152

KNOWN_PLUGINS = (
    "hardhat-ethers",
    "hardhat-upgrades",
    "hardhat-waffle",
    "hardhat-contract-sizer",
    "solidity-coverage",
    "hardhat-deploy",
    "hardhat-deploy-ethers",
)

CONFIG_EXTENSIONS_JSON = (".json",)
CONFIG_EXTENSIONS_YAML = (".yaml", ".yml")
