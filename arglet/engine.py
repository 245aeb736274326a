"""
Arglet parse engine.

phases
- scan: a single forward pass over the tokens. each token is classified by
  arglet.matcher and bound immediately; malformed values fail on the spot.
  • "--" switches to args-only mode for the rest of the stream.
  • the first command spelling (outside args-only mode) selects the command,
    which stays active until the end.
  • positionals fill, in order: command arguments, command rest, global
    arguments, global rest; anything left over is unexpected.
- validate: once every token is consumed, in this order
  • missing command (when the parser requires one)
  • global required options, arguments, rest
  • command required options
  • command action
  • command required arguments, rest

failures
- every fault is handed to parser.trigger(), which raises it (or prints it
  and exits in shell mode). the first fault wins; values bound before it stay bound.
"""
import logging

from .coercion import CoercionError
from .faults import (
    FaultCode,
    InvalidArgValueError,
    InvalidCommandArgValueError,
    InvalidCommandOptionValueError,
    InvalidOptionError,
    InvalidOptionValueError,
    MissingArgError,
    MissingCommandArgError,
    MissingCommandError,
    MissingCommandOptionError,
    MissingOptionError,
    UnexpectedArgError,
)
from .matcher import Kind, Match, Scope, classify, find_command

logger = logging.getLogger(__name__)


class ParseCursor:
    """
    Per-call scanning state.

    - index: position of the current token
    - position: next global positional slot
    - local_position: next positional slot of the active command
    - args_only: True once "--" was consumed
    - command: the active command, or None
    """
    __slots__ = ("index", "position", "local_position", "args_only", "command")

    def __init__(self):
        self.index = 0
        self.position = 0
        self.local_position = 0
        self.args_only = False
        self.command = None

    def __repr__(self):
        return "ParseCursor(%s)" % ", ".join("%s=%r" % (name, getattr(self, name)) for name in self.__slots__)


def _bind_option(parser, cursor, binding, input, value):
    try:
        binding.option.set(value)
    except CoercionError as exception:
        _option_value_fault(parser, cursor, binding, input, value, exception.reason)


def _option_value_fault(parser, cursor, binding, input, value, reason):
    if binding.local:
        command = cursor.command.display()
        parser.trigger(InvalidCommandOptionValueError(
            "invalid value %r for command %r option %r: %s" % (value, command, input, reason),
            title="invalid command option value",
            code=FaultCode.INVALID_COMMAND_OPTION_VALUE,
            hint="run '%s %s --help' to see the accepted values" % (parser.name, cursor.command.name),
            command=command,
            option=binding.option.display(),
            input=input,
            value=value,
            reason=reason,
        ))
    else:
        parser.trigger(InvalidOptionValueError(
            "invalid value %r for option %r: %s" % (value, input, reason),
            title="invalid option value",
            code=FaultCode.INVALID_OPTION_VALUE,
            hint="run '%s --help' to see the accepted values" % parser.name,
            option=binding.option.display(),
            input=input,
            value=value,
            reason=reason,
        ))


def _bind_positional(parser, cursor, token):
    command = cursor.command

    if command is not None:
        if cursor.local_position < len(command.arguments):
            argument = command.arguments[cursor.local_position]
            cursor.local_position += 1
            return _bind_argument(parser, argument, token, command)
        if command.remainder is not None:
            return _bind_argument(parser, command.remainder, token, command)

    if cursor.position < len(parser.arguments):
        argument = parser.arguments[cursor.position]
        cursor.position += 1
        return _bind_argument(parser, argument, token)
    if parser.remainder is not None:
        return _bind_argument(parser, parser.remainder, token)

    parser.trigger(UnexpectedArgError(
        "unexpected argument %r" % token,
        title="unexpected argument",
        code=FaultCode.UNEXPECTED_ARG,
        hint="remove the extra input, run '%s --help' to see valid forms" % parser.name,
        value=token,
    ))


def _bind_argument(parser, argument, token, command=None):
    logger.debug("binding %r to argument %r", token, argument.label)
    try:
        argument.set(token)
    except CoercionError as exception:
        if command is not None:
            parser.trigger(InvalidCommandArgValueError(
                "invalid value %r for command %r argument %r: %s" % (
                    token, command.display(), argument.label, exception.reason
                ),
                title="invalid command argument value",
                code=FaultCode.INVALID_COMMAND_ARG_VALUE,
                command=command.display(),
                arg=argument.label,
                value=token,
                reason=exception.reason,
            ))
        else:
            parser.trigger(InvalidArgValueError(
                "invalid value %r for argument %r: %s" % (token, argument.label, exception.reason),
                title="invalid argument value",
                code=FaultCode.INVALID_ARG_VALUE,
                arg=argument.label,
                value=token,
                reason=exception.reason,
            ))


def _scan(parser, tokens, cursor):
    """
    Consume every token; returns False when a help callback stopped the scan.
    """
    while cursor.index < len(tokens):
        token = tokens[cursor.index]
        lookahead = tokens[cursor.index + 1] if cursor.index + 1 < len(tokens) else None

        if cursor.args_only:
            outcome = Match(Kind.POSITIONAL, token)
        else:
            outcome = classify(Scope(parser, cursor.command), token, lookahead)
            # a command spelling beats the registered-prefix rejection (e.g. "+run" next to "+r")
            if outcome.kind in (Kind.POSITIONAL, Kind.INVALID) and cursor.command is None and token[:1] != "-":
                if found := find_command(parser.commands, tokens, cursor.index):
                    command, consumed = found
                    outcome = Match(Kind.COMMAND, token, consumed=consumed, command=command)

        logger.debug("token %r at %d classified as %s", token, cursor.index, outcome.kind.value)

        match outcome.kind:
            case Kind.SEPARATOR:
                cursor.args_only = True
            case Kind.HELP:
                parser._requested_help(cursor.command)
                return False
            case Kind.COMMAND:
                cursor.command = outcome.command
                outcome.command.select()
                logger.debug("selected command %r", outcome.command.name)
            case Kind.EXACT | Kind.ASSIGNMENT | Kind.NEGATION | Kind.INLINE:
                _bind_option(parser, cursor, outcome.bindings[0], outcome.input, outcome.value)
            case Kind.GROUPED:
                for binding in outcome.bindings:
                    _bind_option(parser, cursor, binding, binding.option.short, outcome.value)
            case Kind.EMPTY:
                _option_value_fault(parser, cursor, outcome.bindings[0], outcome.input, "", "value is empty")
            case Kind.INVALID:
                parser.trigger(InvalidOptionError(
                    "invalid option %r" % token,
                    title="invalid option",
                    code=FaultCode.INVALID_OPTION,
                    hint="run '%s --help' to see all available options" % parser.name,
                    option=token,
                ))
            case Kind.POSITIONAL:
                _bind_positional(parser, cursor, token)

        cursor.index += 1 + outcome.consumed

    return True


def _validate_options(parser, options, command=None):
    for option in options:
        if option.required and not option.exists:
            if command is not None:
                parser.trigger(MissingCommandOptionError(
                    "command %r option %r is required" % (command.display(), option.display()),
                    title="missing command option",
                    code=FaultCode.MISSING_COMMAND_OPTION,
                    command=command.display(),
                    option=option.display(),
                ))
            else:
                parser.trigger(MissingOptionError(
                    "option %r is required" % option.display(),
                    title="missing option",
                    code=FaultCode.MISSING_OPTION,
                    option=option.display(),
                ))


def _validate_arguments(parser, arguments, remainder, command=None):
    for argument in (*arguments, *filter(None, [remainder])):
        if argument.required and not argument.exists:
            if command is not None:
                parser.trigger(MissingCommandArgError(
                    "command %r argument %r is required" % (command.display(), argument.label),
                    title="missing command argument",
                    code=FaultCode.MISSING_COMMAND_ARG,
                    command=command.display(),
                    arg=argument.label,
                ))
            else:
                parser.trigger(MissingArgError(
                    "argument %r is required" % argument.label,
                    title="missing argument",
                    code=FaultCode.MISSING_ARG,
                    arg=argument.label,
                ))


def _validate(parser, command):
    if parser.command_required and command is None:
        parser.trigger(MissingCommandError(
            "command is required",
            title="missing command",
            code=FaultCode.MISSING_COMMAND,
            hint="run '%s --help' to see available commands" % parser.name,
        ))

    _validate_options(parser, parser.options)
    _validate_arguments(parser, parser.arguments, parser.remainder)

    if command is None:
        return

    _validate_options(parser, command.options, command)
    if command.callback:
        logger.debug("running action of command %r", command.name)
        command.callback()
    _validate_arguments(parser, command.arguments, command.remainder, command)


def run(parser, tokens):
    """
    Parse tokens against the parser's schema.

    Returns the active command (or None). Faults go through parser.trigger().
    """
    tokens = list(tokens)
    logger.debug("parsing %r", tokens)

    parser._reset()
    for command in parser.commands:
        command._reset()

    cursor = ParseCursor()
    if _scan(parser, tokens, cursor):
        _validate(parser, cursor.command)
    return cursor.command


__all__ = (
    "ParseCursor",
    "run",
)
