"""Click base classes with an ``--examples`` flag.

Examples are ``(command line, what it does)`` pairs. ``--examples`` prints
them as a definition list and exits, which keeps ``--help`` short. A group
lists its own examples followed by those of its subcommands, so
``notepress git --examples`` also shows ``git init``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import click

Example = tuple[str, str]


class ExamplesMixin:
    """Stores ``examples`` and appends the eager ``--examples`` option."""

    examples: list[Example]
    params: list[click.Parameter]

    def _init_examples(self, examples: Sequence[Example] | None) -> None:
        self.examples = list(examples or ())
        self.params.append(
            click.Option(
                ["--examples"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=self._show_examples,
                help="Show usage examples.",
            )
        )

    def collect_examples(self, ctx: click.Context) -> list[Example]:
        return list(self.examples)

    def _show_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        examples = self.collect_examples(ctx)
        if not examples:
            click.echo(f"No examples for '{ctx.command_path}'.")
            ctx.exit(0)
        formatter = ctx.make_formatter()
        with formatter.section(f"Examples for '{ctx.command_path}'"):
            formatter.write_dl(examples)
        click.echo(formatter.getvalue().rstrip("\n"))
        ctx.exit(0)


class NpCommand(ExamplesMixin, click.Command):
    """Click Command that supports an ``--examples`` flag."""

    def __init__(
        self, *args: Any, examples: Sequence[Example] | None = None, **kwargs: Any
    ) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)


class NpGroup(ExamplesMixin, click.Group):
    """Click Group whose ``--examples`` also covers its subcommands.

    Subcommands default to :class:`NpCommand`, so they accept ``examples=``
    without passing ``cls=`` each time.
    """

    command_class = NpCommand

    def __init__(
        self, *args: Any, examples: Sequence[Example] | None = None, **kwargs: Any
    ) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)

    def collect_examples(self, ctx: click.Context) -> list[Example]:
        examples = list(self.examples)
        for name in self.list_commands(ctx):
            command = self.get_command(ctx, name)
            if isinstance(command, ExamplesMixin):
                examples.extend(command.collect_examples(ctx))
        return examples
