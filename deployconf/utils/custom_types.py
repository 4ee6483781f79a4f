from typing import TypedDict, NotRequired


class NetworkProfileDocument(TypedDict):
    url: NotRequired[str]
    urlEnvVar: NotRequired[str]
    accounts: NotRequired[list[str]]
    accountsEnvVar: NotRequired[str]
    chainId: NotRequired[int]


class OptimizerSettingsDocument(TypedDict):
    enabled: bool
    runs: int


ContractSizerOptionsDocument = TypedDict(
    "ContractSizerOptionsDocument",
    {
        "strict": bool,
        "alphaSort": NotRequired[bool],
        "only": NotRequired[list[str]],
        "except": NotRequired[list[str]],
    },
)


class ConfigDocument(TypedDict):
    compilerVersion: str
    defaultNetwork: NotRequired[str]
    networks: dict[str, NetworkProfileDocument]
    optimizerSettings: NotRequired[OptimizerSettingsDocument]
    contractSizerOptions: NotRequired[ContractSizerOptionsDocument]
    namedAccounts: NotRequired[dict[str, int]]
    plugins: NotRequired[list[str]]
