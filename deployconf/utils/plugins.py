from typing import Callable

from .config import ProjectConfig
from .constants import KNOWN_PLUGINS
from .logger import logger

Capability = Callable[[ProjectConfig], object]


class PluginRegistry:
    """
    Capabilities the caller hands in explicitly, keyed by plugin id.

    Only plugins enabled in the configuration are invoked, in the order the
    configuration lists them.
    """

    def __init__(self):
        self._capabilities: dict[str, Capability] = {}

    def register(self, plugin_id: str, capability: Capability) -> None:
        if plugin_id not in KNOWN_PLUGINS:
            raise ValueError(f'Unknown plugin "{plugin_id}"')
        if plugin_id in self._capabilities:
            raise ValueError(f'Plugin "{plugin_id}" is already registered')
        self._capabilities[plugin_id] = capability

    def registered(self) -> tuple[str, ...]:
        return tuple(self._capabilities)

    def run(self, config: ProjectConfig) -> dict:
        results = {}
        for plugin_id in config.plugins:
            capability = self._capabilities.get(plugin_id)
            if capability is None:
                logger.info(f"Plugin {plugin_id} is handled by the external tool")
                continue
            logger.info(f"Running plugin {plugin_id} ...")
            results[plugin_id] = capability(config)
        return results
