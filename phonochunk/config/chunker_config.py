import importlib
from pathlib import Path
from typing import Annotated, Optional

from loguru import logger
from pydantic import Field, model_validator
from typing_extensions import Self

from phonochunk.config.shared_types import ConfigModel, PossiblyRelativePath, init_context
from phonochunk.exceptions import ConfigError
from phonochunk.text.phonemizer import DEFAULT_VOICE, G2PCallable
from phonochunk.text.segmentation import DEFAULT_SAFETY_MARGIN, compute_capacity
from phonochunk.utils import load_config_from_json_or_yaml_path

VoiceId = Annotated[
    str,
    Field(
        title="Voice ID",
        examples=["en-us"],
    ),
]
G2P_py_module = Annotated[
    str,
    Field(
        title="Module path",
        examples=["phonochunk_plugin_g2p4example.g2p"],
    ),
]
G2P_Engines = Annotated[
    dict[VoiceId, G2P_py_module],
    Field(description="Mapping from voice id to g2p module"),
]


def validate_g2p_engine_signature(g2p_func: G2PCallable) -> G2PCallable:
    """
    A G2P engine's signature should be:

    Callable[[str], List[str]]

    Note that we have to use `List` and not `list`.
    """
    import typing
    from inspect import signature

    sig = signature(g2p_func)
    assert (
        len(sig.parameters) == 1
    ), "G2P engine's signature should take a single argument"
    arg_names = list(sig.parameters)
    assert (
        sig.parameters[arg_names[0]].annotation is str
    ), "G2P Engine's signature should take a string"
    assert (
        sig.return_annotation is typing.List[str]
    ), "G2P Engine's signature should return a list of strings"

    return g2p_func


def load_custom_g2p_engine(voice_id: str, qualified_g2p_func_name: str) -> G2PCallable:
    # Load the user provided G2P Engine.
    module_name, _, function_name = qualified_g2p_func_name.rpartition(".")
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        error_message = f"Invalid G2P engine module `{module_name}` for `{voice_id}`"
        logger.error(error_message)
        raise ConfigError(error_message) from e

    try:
        g2p_func = getattr(module, function_name)
    except AttributeError as e:
        raise ConfigError(
            f"Cannot find G2P function `{function_name}` in module `{module_name}`"
        ) from e
    return validate_g2p_engine_signature(g2p_func)


class ChunkerConfig(ConfigModel):
    target_tokens: int = Field(
        default=510,
        ge=1,
        title="Target tokens",
        description="The model's input budget in tokens, before the BOS, EOS and language tokens are reserved.",
    )
    has_language_token: bool = Field(
        default=False,
        title="Language token",
        description="Whether the model input carries a language token, which takes one token of the budget.",
    )
    safety_margin: int = Field(
        default=DEFAULT_SAFETY_MARGIN,
        ge=0,
        title="Safety margin",
        description="Tokens kept free in every chunk so merged and split segments stay under the model limit.",
    )
    merge_threshold_tokens: int = Field(
        default=40,
        ge=1,
        title="Short sentence merge threshold",
        description="Neighbouring sentences are merged while their combined cost stays at or below this many tokens (and the capacity).",
    )
    default_voice: str = Field(
        default=DEFAULT_VOICE,
        title="Default voice",
        description="The g2p voice id used for words that are not written in a CJK script.",
    )
    g2p_engines: G2P_Engines = Field(
        default={},
        title="External G2P",
        description="User defined or external G2P engines, by voice id.",
        examples=["""{"fr-fr": "phonochunk_plugin_g2p4example.g2p"}"""],
    )
    propagate_g2p_errors: bool = Field(
        default=False,
        title="Propagate G2P errors",
        description="Raise when a g2p engine fails instead of moving on to the next resolution strategy.",
    )
    path_to_lexicon_file: Optional[PossiblyRelativePath] = Field(
        default=None,
        description="A JSON or YAML file mapping normalized words to phonemes.",
    )
    path_to_case_sensitive_lexicon_file: Optional[PossiblyRelativePath] = Field(
        default=None,
        description="A JSON or YAML file mapping exact spellings to phonemes.",
    )
    path_to_vocabulary_file: Optional[PossiblyRelativePath] = Field(
        default=None,
        description="The model's allowed symbols, as a JSON list, a JSON symbol-to-id object, or one symbol per line.",
    )

    @property
    def capacity(self) -> int:
        return compute_capacity(
            self.target_tokens, self.has_language_token, self.safety_margin
        )

    @model_validator(mode="after")
    def load_g2p_engines(self) -> Self:
        """
        Given `g2p_engines`, populate the global list `AVAILABLE_G2P_ENGINES`.
        """
        from phonochunk.text.phonemizer import AVAILABLE_G2P_ENGINES

        for voice_id, name in self.g2p_engines.items():
            g2p_func = load_custom_g2p_engine(voice_id, name)

            if voice_id in AVAILABLE_G2P_ENGINES:
                logger.warning(
                    f"Overriding g2p for `{voice_id}` with user provided g2p plugin `{name}`"
                )

            AVAILABLE_G2P_ENGINES[voice_id] = g2p_func
            logger.info(f"Adding G2P engine from `{name}` for `{voice_id}`")

        return self

    @staticmethod
    def load_config_from_path(path: Path) -> "ChunkerConfig":
        """Load a config from a path"""
        config = load_config_from_json_or_yaml_path(path)
        with init_context({"config_path": path}):
            config = ChunkerConfig(**config)
        return config
