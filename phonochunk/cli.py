import json
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from loguru import logger
from rich import print as rich_print
from rich.panel import Panel

from phonochunk._version import VERSION
from phonochunk.config.chunker_config import ChunkerConfig
from phonochunk.utils import (
    load_lexicon,
    load_vocabulary,
    update_config_from_cli_args,
)


# See https://github.com/tiangolo/typer/issues/428#issuecomment-1238866548
class TyperGroupOrderAsDeclared(typer.core.TyperGroup):
    def list_commands(self, ctx):
        return self.commands.keys()


app = typer.Typer(
    pretty_exceptions_show_locals=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    rich_markup_mode="markdown",
    cls=TyperGroupOrderAsDeclared,
    help="""
    # phonochunk

    Split text into phoneme-token chunks that fit a speech model's input budget.

    - **chunk**: chunk a text and print the chunks
    - **resolve**: show the phonemes each word resolves to
    - **capacity**: show the per-chunk token capacity for a budget
    """,
)


class OutputFormat(str, Enum):
    json = "json"
    text = "text"


def _load_config(
    config_file: Optional[Path],
    config_args: Optional[List[str]],
    target_tokens: Optional[int],
    language_token: Optional[bool],
) -> ChunkerConfig:
    config = (
        ChunkerConfig.load_config_from_path(config_file)
        if config_file is not None
        else ChunkerConfig()
    )
    config = update_config_from_cli_args(config_args or [], config)
    if target_tokens is not None:
        config = config.update_config({"target_tokens": target_tokens})
    if language_token is not None:
        config = config.update_config({"has_language_token": language_token})
    return config


def _make_chunker(
    config: ChunkerConfig,
    lexicon: Optional[Path],
    case_sensitive_lexicon: Optional[Path],
    vocabulary: Optional[Path],
):
    from phonochunk.text.chunker import TextChunker

    lexicon = lexicon or config.path_to_lexicon_file
    case_sensitive_lexicon = (
        case_sensitive_lexicon or config.path_to_case_sensitive_lexicon_file
    )
    vocabulary = vocabulary or config.path_to_vocabulary_file
    return TextChunker(
        config=config,
        lexicon=load_lexicon(lexicon) if lexicon else None,
        case_sensitive_lexicon=(
            load_lexicon(case_sensitive_lexicon) if case_sensitive_lexicon else None
        ),
        allowed=load_vocabulary(vocabulary) if vocabulary else None,
    )


CONFIG_FILE_OPTION = typer.Option(
    None,
    "--config",
    exists=True,
    dir_okay=False,
    file_okay=True,
    help="A JSON or YAML chunker configuration file.",
)
CONFIG_ARGS_OPTION = typer.Option(
    None,
    "--config-args",
    "-c",
    help="Override the configuration, e.g. -c merge_threshold_tokens=30",
)
LEXICON_OPTION = typer.Option(
    None,
    "--lexicon",
    exists=True,
    dir_okay=False,
    help="A JSON or YAML file mapping normalized words to phonemes.",
)
CASE_SENSITIVE_LEXICON_OPTION = typer.Option(
    None,
    "--case-sensitive-lexicon",
    exists=True,
    dir_okay=False,
    help="A JSON or YAML file mapping exact spellings to phonemes.",
)
VOCABULARY_OPTION = typer.Option(
    None,
    "--vocabulary",
    exists=True,
    dir_okay=False,
    help="The model's allowed symbols. Defaults to a generic IPA vocabulary.",
)
TARGET_TOKENS_OPTION = typer.Option(
    None, "--target-tokens", "-t", min=1, help="The model's input budget in tokens."
)
LANGUAGE_TOKEN_OPTION = typer.Option(
    None,
    "--language-token/--no-language-token",
    help="Whether the model input carries a language token.",
)


@app.command()
def chunk(
    text: str = typer.Argument(
        ..., help="The text to chunk. Use '-' to read it from stdin."
    ),
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
    config_args: Optional[List[str]] = CONFIG_ARGS_OPTION,
    lexicon: Optional[Path] = LEXICON_OPTION,
    case_sensitive_lexicon: Optional[Path] = CASE_SENSITIVE_LEXICON_OPTION,
    vocabulary: Optional[Path] = VOCABULARY_OPTION,
    overrides: Optional[Path] = typer.Option(
        None,
        "--overrides",
        exists=True,
        dir_okay=False,
        help="A JSON or YAML list of phonetic overrides: word_index, word, tokens, raw_symbols.",
    ),
    target_tokens: Optional[int] = TARGET_TOKENS_OPTION,
    language_token: Optional[bool] = LANGUAGE_TOKEN_OPTION,
    output_format: OutputFormat = typer.Option(
        OutputFormat.json,
        "--output-format",
        "-f",
        help="Print one JSON object per chunk, or a readable summary.",
    ),
):
    """Split TEXT into chunks that fit the model's token budget"""
    from phonochunk.text.chunker import load_overrides

    if text == "-":
        text = typer.get_text_stream("stdin").read()
    config = _load_config(config_file, config_args, target_tokens, language_token)
    chunker = _make_chunker(config, lexicon, case_sensitive_lexicon, vocabulary)
    chunks = chunker.chunk(text, load_overrides(overrides) if overrides else ())
    logger.info(f"Produced {len(chunks)} chunks with capacity {config.capacity}")

    for i, text_chunk in enumerate(chunks):
        if output_format == OutputFormat.json:
            print(text_chunk.model_dump_json())
        else:
            rich_print(
                Panel(
                    f"{text_chunk.text}\n\n[bold]{''.join(text_chunk.phonemes)}[/bold]",
                    title=f"Chunk {i} ({text_chunk.token_count} tokens)",
                )
            )


@app.command()
def resolve(
    words: List[str] = typer.Argument(..., help="The words to resolve."),
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
    config_args: Optional[List[str]] = CONFIG_ARGS_OPTION,
    lexicon: Optional[Path] = LEXICON_OPTION,
    case_sensitive_lexicon: Optional[Path] = CASE_SENSITIVE_LEXICON_OPTION,
    vocabulary: Optional[Path] = VOCABULARY_OPTION,
):
    """Print the phoneme tokens each word resolves to, or <missing>"""
    config = _load_config(config_file, config_args, None, None)
    resolver = _make_chunker(
        config, lexicon, case_sensitive_lexicon, vocabulary
    ).make_resolver()
    for word in words:
        tokens = resolver.resolve(word)
        print(f"{word}\t{json.dumps(tokens, ensure_ascii=False) if tokens else '<missing>'}")


@app.command()
def capacity(
    config_file: Optional[Path] = CONFIG_FILE_OPTION,
    config_args: Optional[List[str]] = CONFIG_ARGS_OPTION,
    target_tokens: Optional[int] = TARGET_TOKENS_OPTION,
    language_token: Optional[bool] = LANGUAGE_TOKEN_OPTION,
):
    """Print the number of phoneme tokens available to each chunk"""
    config = _load_config(config_file, config_args, target_tokens, language_token)
    print(config.capacity)


class TestSuites(str, Enum):
    all = "all"
    cli = "cli"
    config = "config"
    dev = "dev"
    text = "text"


@app.command(hidden=True)
def test(suite: TestSuites = typer.Argument(TestSuites.dev)):
    """Run a test suite"""
    from phonochunk.run_tests import run_tests

    if not run_tests(suite.value):
        raise typer.Exit(code=1)


def version_callback(value: bool):
    if value:
        print(VERSION)
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Print the phonochunk version and exit.",
    ),
):
    pass


if __name__ == "__main__":
    app()
