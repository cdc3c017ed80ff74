"""
Base model and field types for the phonochunk configuration.
"""

from collections.abc import Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated

# Validation context for the model being built, e.g. {"config_path": Path(...)}
_init_context_var: ContextVar[Optional[Dict[str, Any]]] = ContextVar(
    "_init_context_var", default=None
)


def resolve_relative_path(value: Any, info: ValidationInfo) -> Any:
    """Resolve a relative path against the directory of the config file it
    was read from, when there is one. Other paths are returned unchanged."""
    if value is None:
        return value
    try:
        path = Path(value)
    except TypeError as e:
        # pydantic only turns ValueErrors into ValidationErrors
        raise ValueError(f"Expected a path, got {type(value).__name__}") from e
    config_path = info.context.get("config_path") if info and info.context else None
    if config_path is not None and not path.is_absolute():
        path = (Path(config_path).parent / path).resolve()
    return path


PossiblyRelativePath = Annotated[Path, BeforeValidator(resolve_relative_path)]


@contextmanager
def init_context(value: Dict[str, Any]) -> Iterator[None]:
    """Make `value` the validation context of every ConfigModel built inside
    the `with` block.

    BaseModel's initializer takes no context argument, so ConfigModel.__init__
    reads it from a ContextVar instead, see
    https://docs.pydantic.dev/2.3/usage/validators/#using-validation-context-with-basemodel-initialization
    """
    token = _init_context_var.set(value)
    try:
        yield
    finally:
        _init_context_var.reset(token)


class ConfigModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={"$schema": "http://json-schema.org/draft-07/schema#"},
    )

    def __init__(__pydantic_self__, **data: Any) -> None:
        __pydantic_self__.__pydantic_validator__.validate_python(
            data,
            self_instance=__pydantic_self__,
            context=_init_context_var.get(),
        )

    def update_config(self, new_config: dict):
        """Re-validate the config in place with new_config merged over its values"""
        self.__init__(**self.combine_configs(dict(self), new_config))  # type: ignore
        return self

    @staticmethod
    def combine_configs(orig_dict: Mapping, new_dict: Mapping) -> dict:
        """Recursively merge new_dict over orig_dict

        >>> ConfigModel.combine_configs({"a": 1, "b": {"c": 2}}, {"b": {"d": 3}})
        {'a': 1, 'b': {'c': 2, 'd': 3}}
        """
        combined = dict(orig_dict)
        for key, value in new_dict.items():
            if isinstance(value, Mapping):
                combined[key] = ConfigModel.combine_configs(
                    combined.get(key) or {}, value
                )
            else:
                combined[key] = value
        return combined
