"""
Helmsman usage text.

Two renderers, both pure: they build a rich Text and never print or exit.
- render_usage(registry, program): top-level usage listing every command.
- render_subcommand_usage(entry, program): flags and required flags of one command.

format_usage() and format_subcommand_usage() return the same content as plain strings.

Top-level layout (with commands)
    usage: <program> <command>

    where <command> is one of:
      build           compile the sources
      ship            ship artifacts

    available flags:
      -verbose
            chatty output

    <program> <command> -h for subcommand help
"""
from rich.text import Text

# Width of the command-name column in the top-level listing.
NAME_COLUMN = 15


def render_usage(registry, program, /):
    """Render the top-level usage of `program` for the commands in `registry`."""
    defaults = registry.flags.defaults()

    if not len(registry):
        text = Text("usage of %s:" % program)
        if defaults:
            text.append("\n").append(defaults)
        return text

    text = Text("usage: %s <command>\n\n" % program)
    text.append("where <command> is one of:\n")
    for entry in registry.entries:
        text.append(("  %-*s %s" % (NAME_COLUMN, entry.name, entry.descr)).rstrip() + "\n")

    if defaults:
        text.append("\navailable flags:\n").append(defaults).append("\n")

    text.append("\n%s <command> -h for subcommand help" % program)
    return text


def render_subcommand_usage(entry, program, /):
    """Render the usage of `entry`: its visible flags, then its required flags."""
    text = Text("usage of %s %s:" % (program, entry.name))
    if defaults := entry.flagset.defaults():
        text.append("\n").append(defaults)
    if entry.required:
        text.append("\n\nrequired flags:\n")
        text.append("  " + ", ".join(entry.required))
    return text


def format_usage(registry, program, /):
    return render_usage(registry, program).plain


def format_subcommand_usage(entry, program, /):
    return render_subcommand_usage(entry, program).plain


__all__ = (
    "render_usage",
    "render_subcommand_usage",
    "format_usage",
    "format_subcommand_usage",
)
