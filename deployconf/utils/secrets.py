from .common import load_env


class SecretStore:
    """Source of credentials referenced from the configuration by name."""

    def get(self, name: str) -> str | None:
        raise NotImplementedError


class EnvSecretStore(SecretStore):
    def get(self, name: str) -> str | None:
        return load_env(name, required=False, masked=True) or None


class DictSecretStore(SecretStore):
    def __init__(self, secrets: dict[str, str]):
        self._secrets = dict(secrets)

    def get(self, name: str) -> str | None:
        return self._secrets.get(name) or None


def split_accounts(value: str) -> list[str]:
    """Split a comma-separated list of private keys, dropping blanks."""
    return [account.strip() for account in value.split(",") if account.strip()]
