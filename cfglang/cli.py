"""
Command line front end.

Every option can also be set through an environment variable prefixed
with `CFGLANG_`, e.g. `CFGLANG_DEBUG=1`.
"""

import logging
from itertools import islice

import click

from cfglang.compare import compare
from cfglang.ebnf import read_cnf
from cfglang.errors import CfgLangError
from cfglang.producer import WordProducer

__version__ = "0.1.0"

DEFAULT_COMPARE_LIMIT = 1000
DEFAULT_PRODUCE_LIMIT = 20

logger = logging.getLogger(__name__)


def load(path):
    try:
        return read_cnf(path)
    except CfgLangError as e:
        raise click.ClickException(f"{path}: {e}") from e


@click.group()
@click.version_option(version=__version__)
@click.option("-d", "--debug", is_flag=True, help="Log the intermediate grammars")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def cli(ctx, debug, file):
    """Analyze the context-free grammar in FILE."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )
    # basicConfig leaves an already configured root logger alone
    logging.getLogger("cfglang").setLevel(level)
    ctx.obj = load(file)


@cli.command("parse")
def parse_command():
    """Only parse and normalize the grammar."""


@cli.command()
@click.argument("word")
@click.pass_obj
def check(grammar, word):
    """Check whether WORD belongs to the language."""
    verdict = "accepted" if grammar.accepts(word) else "rejected"
    click.echo(f"`{word}` is {verdict} by this grammar.")


@cli.command("check-file")
@click.argument("words", type=click.File("r"))
@click.pass_obj
def check_file(grammar, words):
    """Check every line of WORDS."""
    for word in words.read().split("\n"):
        mark = "y" if grammar.accepts(word) else "n"
        click.echo(f"[{mark}] '{word}'")


@cli.command("compare-to")
@click.argument("other_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("limit", type=int, default=DEFAULT_COMPARE_LIMIT)
@click.pass_obj
def compare_to(grammar, other_file, limit):
    """Compare the first LIMIT words with those of OTHER_FILE."""
    result = compare(grammar, load(other_file), limit)
    logger.debug("%d words in both grammars", len(result.both))
    click.echo(f"words only accepted by the first grammar:\n{result.only_first}")
    click.echo(f"words only accepted by the second grammar:\n{result.only_second}")


@cli.command("produce-words")
@click.argument("limit", type=int, default=DEFAULT_PRODUCE_LIMIT)
@click.pass_obj
def produce_words(grammar, limit):
    """Print the first LIMIT words of the language."""
    words = list(islice(WordProducer(grammar), limit))
    click.echo("\nwords accepted by this grammar:")
    click.echo(str(words))


def main():
    cli(auto_envvar_prefix="CFGLANG")


if __name__ == "__main__":
    main()
