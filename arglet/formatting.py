"""
Arglet help and usage formatting.

Two renditions of the same schema:
- plain text (format_*): stable strings, suitable for tests, custom help
  callbacks and non-terminal output. Labels are padded to 16 columns and every
  section is indented (6 spaces by default).
- rich (render_help): a renderable used by shell mode, honoring the parser's
  colorful/fancy flags and the __styles__ palette of __main__.

All functions only read the schema; none of them print.
"""
from collections import defaultdict

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

DEFAULT_INDENTATION = " " * 6
LABEL_WIDTH = 16


def _usage_options(options):
    parts = []
    optional = False
    for option in options:
        if option.required:
            parts.append(" %s=value" % (option.long or option.short or option.unconventional))
        else:
            optional = True
    if optional:
        parts.append(" [options]")
    return "".join(parts)


def _usage_args(arguments, remainder):
    parts = []
    for argument in arguments:
        if argument.required:
            parts.append(" <%s>" % argument.label)
        else:
            parts.append(" [<%s>]" % argument.label)
    if remainder is not None:
        if remainder.required:
            parts.append(" <%s...>" % remainder.label)
        else:
            parts.append(" [<%s...>]" % remainder.label)
    return "".join(parts)


def _row(label, description, indentation):
    # long labels push the description to the next line
    if len(label) <= LABEL_WIDTH:
        head = indentation + label.ljust(LABEL_WIDTH) + "  "
    else:
        head = indentation + label + "\n" + indentation + indentation
    return head + description


def format_usage(parser, indentation=DEFAULT_INDENTATION):
    """
    Usage lines of the whole program.

    When a command is mandatory, one line is emitted per command (name and
    alias joined by "|"); otherwise a single line ends with " [command] ...".
    """
    lines = []
    head = indentation + parser.name + _usage_options(parser.options) + _usage_args(parser.arguments, parser.remainder)
    if parser.command_required and parser.commands:
        for command in parser.commands:
            lines.append(
                head
                + " " + command.display("|")
                + _usage_options(command.options)
                + _usage_args(command.arguments, command.remainder)
            )
    else:
        if parser.commands:
            head += " command ..." if parser.command_required else " [command] ..."
        lines.append(head)
    return "\n".join(lines) + "\n"


def format_options(options, indentation=DEFAULT_INDENTATION):
    rows = []
    for option in options:
        rows.append(_row(option.display(), ("Required! " if option.required else "") + (option.descr or ""), indentation))
    return "\n".join(rows) + "\n"


def format_args(arguments, remainder, indentation=DEFAULT_INDENTATION):
    rows = [_row(argument.label, argument.descr or "", indentation) for argument in arguments]
    if remainder is not None:
        rows.append(_row(remainder.label, remainder.descr or "", indentation))
    return "\n".join(rows) + "\n"


def format_commands(commands, indentation=DEFAULT_INDENTATION):
    return "\n".join(_row(command.display(), command.descr or "", indentation) for command in commands) + "\n"


def format_command_usage(parser, command, indentation=DEFAULT_INDENTATION):
    """
    One usage line per spelling of the command (name, then alias).
    """
    head = indentation + parser.name + _usage_options(parser.options) + _usage_args(parser.arguments, parser.remainder)
    tail = _usage_options(command.options) + _usage_args(command.arguments, command.remainder)
    return "\n".join(head + " " + name + tail for name in filter(None, (command.name, command.alias))) + "\n"


def format_help(parser, indentation=DEFAULT_INDENTATION):
    sections = ["USAGE\n", format_usage(parser, indentation)]
    if parser.descr:
        sections += ["\nDESCRIPTION\n", indentation + str(parser.descr) + "\n"]
    if parser.arguments or parser.remainder is not None:
        sections += ["\nARGUMENTS\n", format_args(parser.arguments, parser.remainder, indentation)]
    if parser.options:
        sections += ["\nOPTIONS\n", format_options(parser.options, indentation)]
    if parser.commands:
        sections += ["\nCOMMANDS\n", format_commands(parser.commands, indentation)]
    return "".join(sections)


def format_command_help(parser, command, indentation=DEFAULT_INDENTATION):
    sections = ["USAGE\n", format_command_usage(parser, command, indentation)]
    if command.descr:
        sections += ["\nDESCRIPTION\n", indentation + str(command.descr) + "\n"]
    if command.arguments or command.remainder is not None:
        sections += ["\nARGUMENTS\n", format_args(command.arguments, command.remainder, indentation)]
    if command.options:
        sections += ["\nOPTIONS\n", format_options(command.options, indentation)]
    return "".join(sections)


def render_help(parser, command=None):
    """
    Build a rich renderable of the help of the parser (or of one of its commands).

    Palette keys
    - section-label, program-name, usage, description
    - option-name, required-marker, argument-name, command-name, row-description
    - panel-title

    Customization
    - Define a mapping named __styles__ in __main__ to override any palette entry.
    - When parser.colorful is False, styling is suppressed.
    - When parser.fancy is True, the sections are wrapped in a Panel.
    """
    styles = defaultdict(str, {
        # === Head sections ===
        "section-label": "bold #FFFFFF",  # Pure white headers
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage": "bold #36C5F0",  # SKY-BLUE
        "description": "italic #A3A3A3",  # Neutral gray

        # === Rows ===
        "option-name": "bold #00E6FF",  # CYAN for options
        "required-marker": "bold #EF4444",  # RED for mandatory options
        "argument-name": "bold #FFD600",  # AMBER for positionals
        "command-name": "bold #22C55E",  # GREEN for commands
        "row-description": "#9CA3AF",  # Muted gray

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if parser.colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not parser.colorful:
            return Text(str(fragment))
        return Text(str(fragment), style)

    def section(label, rows):
        table = Table.grid(padding=(0, 2))
        table.add_column(min_width=LABEL_WIDTH, no_wrap=True)
        table.add_column()
        for name, description in rows:
            table.add_row(name, description)
        return Group(text(label, styler("section-label")), table)

    def described(object, *, required=False):
        description = text(object.descr, styler("row-description"))
        if required:
            return Text.assemble(text("Required! ", styler("required-marker")), description)
        return description

    if command is None:
        usage = format_usage(parser, "")
        descr = parser.descr
        arguments, remainder, options = parser.arguments, parser.remainder, parser.options
        commands = parser.commands
    else:
        usage = format_command_usage(parser, command, "")
        descr = command.descr
        arguments, remainder, options = command.arguments, command.remainder, command.options
        commands = ()

    renders = [Group(
        text("USAGE", styler("section-label")),
        *(Text.assemble("  ", text(line, styler("usage"))) for line in usage.splitlines())
    )]

    if descr:
        renders.append(Group(text("DESCRIPTION", styler("section-label")), Text.assemble("  ", text(descr, styler("description")))))

    if arguments or remainder is not None:
        rows = [(text(argument.label, styler("argument-name")), described(argument)) for argument in arguments]
        if remainder is not None:
            rows.append((text(remainder.label + "...", styler("argument-name")), described(remainder)))
        renders.append(section("ARGUMENTS", rows))

    if options:
        renders.append(section("OPTIONS", [
            (text(option.display(), styler("option-name")), described(option, required=option.required))
            for option in options
        ]))

    if commands:
        renders.append(section("COMMANDS", [
            (text(child.display(), styler("command-name")), described(child))
            for child in commands
        ]))

    renderable = Group(*renders)

    if parser.fancy:
        title = parser.name if command is None else "%s %s" % (parser.name, command.name)
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{title} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )

    return renderable


__all__ = (
    "format_usage",
    "format_options",
    "format_args",
    "format_commands",
    "format_command_usage",
    "format_help",
    "format_command_help",
    "render_help",
    "DEFAULT_INDENTATION",
)
