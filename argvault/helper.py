"""
Help rendering for argvault parsers.

The renderer only reads what the registry exposes for formatters: the ordered
ArgumentInfo records (short name, long name, type, help text, required flag),
plus the parser's program name and description.

Layout
    usage: PROG [OPTIONS]

    DESCRIPTION

    options:
      -r, --round VALUE             Number of decimal places for output
      -n, --numbers VALUE1 VALUE2 ...  List of integers [required]

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
- When colorful is False, styling is suppressed.
"""
from collections import defaultdict
from io import StringIO

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .values import ArgType


def _palette(colorful):
    styles = defaultdict(str, {
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",  # Neutral gray
        "group-label": "bold #FFFFFF",  # Pure white headers
        "option-name": "bold #00E6FF",  # CYAN for value-bearing options
        "flag-name": "bold #22C55E",  # GREEN for booleans
        "metavar": "bold #FFD600",  # AMBER for parameters
        "argument-description": "#9CA3AF",  # Muted gray
        "required": "bold #EF4444",  # RED marker
    } | getattr(__import__("__main__"), "__styles__", {}))

    return lambda style: styles[style] if colorful else ""


def metavar(type, /):
    """
    value placeholder shown after an argument's names.
    """
    if type is ArgType.BOOL:
        return ""
    if type.is_list:
        return "VALUE1 VALUE2 ..."
    return "VALUE"


def render(arguments, /, prog, description=None, *, colorful=True):
    """
    build a rich renderable for the given ArgumentInfo sequence.
    """
    styler = _palette(colorful)

    usage = Text()
    usage.append("usage", styler("usage-label")).append(": ")
    usage.append(prog or "", styler("program-name"))
    usage.append(" ")
    usage.append("[OPTIONS]", styler("usage-section"))

    renders = [usage.append("\n")]

    if description:
        renders.append(Text(description, styler("description-section")).append("\n"))

    if arguments:
        renders.append(Text("options:", styler("group-label")))

        table = Table.grid(padding=(0, 2))
        table.add_column(no_wrap=True)
        table.add_column()

        for info in arguments:
            style = "flag-name" if info.type is ArgType.BOOL else "option-name"
            names = Text(", ").join(Text(name, styler(style)) for name in (info.short, info.long) if name)
            if placeholder := metavar(info.type):
                names.append(" ").append(placeholder, styler("metavar"))

            description = Text(info.help or "", styler("argument-description"))
            if info.required:
                description.append(" ").append("[required]", styler("required"))

            table.add_row(Text("  ").append_text(names), description)

        renders.append(table)

    return Group(*renders)


def format(arguments, /, prog, description=None, *, width=100):
    """
    render help as plain text (no styles, no terminal control codes).
    """
    console = Console(file=StringIO(), width=width, color_system=None, force_terminal=False)
    console.print(render(arguments, prog, description, colorful=False))
    return console.file.getvalue()


__all__ = (
    "render",
    "format",
    "metavar",
)
