import json
import re
from pathlib import Path
from typing import Any, List

import yaml
from loguru import logger

from phonochunk import exceptions

_newline_re = re.compile(r"[\n\r\v\f\u0085\u2028\u2029]+")

Lexicon = dict[str, list[str]]


def load_json_or_yaml_path(path: Path) -> Any:
    """Read a JSON file, or a YAML file for any other suffix"""
    with open(path, "r", encoding="utf8") as f:
        return json.load(f) if path.suffix == ".json" else yaml.safe_load(f)


def load_config_from_json_or_yaml_path(path: Path):
    if not path.exists():
        raise ValueError(f"Config file '{path}' does not exist")
    config = load_json_or_yaml_path(path)
    if not config:
        raise exceptions.InvalidConfiguration(f"Your configuration at {path} was empty")
    return config


def expand_config_string_syntax(config_arg: str) -> dict:
    """Expand a string of the form "key1=value1" into a dict.

    >>> expand_config_string_syntax("target_tokens=64")
    {'target_tokens': '64'}
    """
    config_dict: Any = {}
    try:
        key, value = config_arg.split("=")
    except ValueError as e:
        raise ValueError(f"Invalid config string: {config_arg} - missing '='") from e
    current_dict = config_dict
    keys = key.split(".")
    for key in keys[:-1]:
        current_dict[key] = {}
        current_dict = current_dict[key]
    current_dict[keys[-1]] = value
    return config_dict


def update_config_from_cli_args(arg_list: List[str], original_config):
    if arg_list is None or not arg_list:
        return original_config
    for arg in arg_list:
        key, value = arg.split("=")
        logger.info(f"Updating config '{key}' to value '{value}'")
        original_config = original_config.update_config(
            expand_config_string_syntax(arg)
        )
    return original_config


def collapse_newlines(text: str) -> str:
    """Replace every run of line breaks with a single space

    >>> collapse_newlines("Hello.\\n\\nWorld.")
    'Hello. World.'
    >>> collapse_newlines("one line")
    'one line'
    """
    return re.sub(_newline_re, " ", text)


def _lexicon_entry(word: str, value: Any, path: Path) -> list[str]:
    if isinstance(value, str):
        return list(value)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return value
    raise exceptions.ConfigError(
        f"Lexicon entry for '{word}' in {path} must be a string or a list of strings, got {type(value).__name__}"
    )


def load_lexicon(path: Path) -> Lexicon:
    """Load a word-to-phonemes lexicon from a JSON or YAML file.

    Values are either lists of phoneme tokens or strings, which are split
    into one token per character.
    """
    data = load_json_or_yaml_path(path)
    if data is None:
        logger.warning(f"Lexicon at {path} was empty")
        return {}
    if not isinstance(data, dict):
        raise exceptions.ConfigError(
            f"Lexicon at {path} must be a mapping from words to phonemes"
        )
    return {str(word): _lexicon_entry(word, value, path) for word, value in data.items()}


def load_vocabulary(path: Path) -> set[str]:
    """Load an allowed-symbol vocabulary.

    JSON files may hold a list of symbols or an object whose keys are the
    symbols (e.g. a symbol-to-id table). Any other file is read as one
    symbol per line; a line holding a single space is kept as the space symbol.
    """
    if path.suffix == ".json":
        data = load_json_or_yaml_path(path)
        if isinstance(data, dict):
            return set(data.keys())
        if isinstance(data, list):
            return set(str(symbol) for symbol in data)
        raise exceptions.ConfigError(
            f"Vocabulary at {path} must be a JSON list or object"
        )
    with open(path, "r", encoding="utf8") as f:
        return set(line.rstrip("\n") for line in f if line.rstrip("\n"))
