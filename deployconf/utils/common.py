import json
import os
import sys

import requests
import yaml

from .constants import CONFIG_EXTENSIONS_JSON, CONFIG_EXTENSIONS_YAML
from .helpers import create_dirs
from .logger import logger
from .custom_exceptions import NodeError, CompileError


def load_env(variable_name, required=True, masked=False):
    value = os.getenv(variable_name, default=None)

    if required and not value:
        logger.error("Env not found", variable_name)
        sys.exit(1)

    printable_value = mask_text(value) if masked and value is not None else str(value)

    if value:
        logger.okay(f"{variable_name}", printable_value)
    else:
        logger.info(f"{variable_name} var is not set")

    return value


class DuplicateKeyError(ValueError):
    def __init__(self, key, location=""):
        super().__init__(f'duplicate key "{key}"{location}')
        self.key = key
        self.location = location


def _unique_pairs(pairs):
    document = {}
    for key, value in pairs:
        if key in document:
            raise DuplicateKeyError(key)
        document[key] = value
    return document


class UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that refuses mappings with a repeated key."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            # merge keys ("<<") may legitimately be overridden
            if (
                not isinstance(key_node, yaml.ScalarNode)
                or key_node.tag == "tag:yaml.org,2002:merge"
            ):
                continue
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise DuplicateKeyError(key, f" at line {key_node.start_mark.line + 1}")
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def _document_format(path: str) -> str:
    extension = os.path.splitext(path)[1].lower()
    if extension in CONFIG_EXTENSIONS_JSON:
        return "json"
    if extension in CONFIG_EXTENSIONS_YAML:
        return "yaml"
    raise ValueError(
        f"Unsupported config file extension '{extension}' for {path}, "
        "expected .json, .yaml or .yml"
    )


def read_document(path: str) -> dict:
    """
    Read a JSON or YAML document, picking the parser by file extension.

    Raises:
        ValueError: unsupported extension, or an empty YAML document
        DuplicateKeyError: a mapping repeats a key
        json.JSONDecodeError / yaml.YAMLError: malformed content
    """
    document_format = _document_format(path)

    with open(path, mode="r", encoding="utf-8") as config_file:
        if document_format == "json":
            return json.load(config_file, object_pairs_hook=_unique_pairs)
        document = yaml.load(config_file, Loader=UniqueKeyLoader)

    if document is None:
        raise ValueError(f"Config {path} is empty or contains only comments")
    return document


def write_document(document: dict, path: str) -> None:
    document_format = _document_format(path)

    create_dirs(path)
    with open(path, mode="w", encoding="utf-8") as config_file:
        if document_format == "json":
            json.dump(document, config_file, indent=2)
            config_file.write("\n")
        else:
            yaml.safe_dump(document, config_file, sort_keys=False)


def _handle_request_errors(error_class):
    """Decorator to handle common HTTP request errors and convert them to custom exceptions."""

    def decorator(func):
        def wrapper(*args, **kwargs):
            try:
                response = func(*args, **kwargs)
                response.raise_for_status()
                return response
            except requests.exceptions.HTTPError as http_err:
                raise error_class(f"HTTP error occurred: {http_err}")
            except requests.exceptions.ConnectionError as conn_err:
                raise error_class(f"Connection error occurred: {conn_err}")
            except requests.exceptions.Timeout as timeout_err:
                raise error_class(f"Timeout error occurred: {timeout_err}")
            except requests.exceptions.RequestException as req_err:
                raise error_class(f"Request exception occurred: {req_err}")

        return wrapper

    return decorator


@_handle_request_errors(CompileError)
def fetch(url, headers=None):
    logger.log(f"Fetch: {url}")
    return requests.get(url, headers=headers, timeout=30)


@_handle_request_errors(NodeError)
def pull(url, payload=None, headers=None):
    logger.log(f"Pull: {mask_text(url)}")
    return requests.post(url, data=payload, headers=headers, timeout=30)


def mask_text(text, mask_start=3, mask_end=3):
    text_length = len(text)
    if text_length <= mask_start + mask_end:
        return "*" * text_length
    mask = "*" * (text_length - mask_start - mask_end)
    return text[:mask_start] + mask + text[text_length - mask_end :]
