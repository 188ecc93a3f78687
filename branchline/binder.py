"""
Branchline argument binder.

bind(command, positionals, options, faults) maps the positional tokens collected by
the walker onto the command's parameters:

- every slot starts from its load-time coerced default (Unset when none);
- fewer tokens than required parameters, or more than declared parameters on a
  non-variadic command, is an arity fault and skips coercion;
- tokens fill slots left to right; on a variadic command the leftover tokens are
  coerced to the element type and collected into the last slot, which keeps its
  default when nothing is left over;
- every coercion failure of the pass is collected, not only the first one.

When the command has an option group, its options object leads the argument list.
"""
from .faults import FaultCode, CoercionError, MissingArgumentError, TooManyArgumentsError
from .utils import Unset
from .values import Kind, coerce


def _prefill(parameter):
    if parameter.type.kind is Kind.ARRAY and parameter.value is not Unset:
        return list(parameter.value)
    return parameter.value


def bind(command, positionals, options, faults, /):
    """
    Bind positional tokens to the parameters of a command.

    Parameters
    - command: resolved Command.
    - positionals: ordered raw tokens.
    - options: assembled Options namespace, or Unset when the command has no group.
    - faults: the call's fault list, extended in place.

    Returns
    - list of bound arguments (options object first when the command has a group).
    """
    arguments = [_prefill(parameter) for parameter in command.parameters]
    supplied = len(positionals)

    if supplied < command.required:
        for parameter in command.parameters[supplied:command.required]:
            faults.append(MissingArgumentError(
                "missing argument for %s" % parameter.name,
                title="missing argument",
                code=FaultCode.MISSING_ARGUMENT,
                argument=parameter.name,
                hint="pass a %s value for <%s>" % (parameter.type, parameter.name),
            ))
    elif supplied > command.total and not command.variadic:
        faults.append(TooManyArgumentsError(
            "too many arguments given, expected at most %d but got %d" % (command.total, supplied),
            title="too many arguments",
            code=FaultCode.TOO_MANY_ARGUMENTS,
            input=positionals[command.total:],
            hint="remove the extra arguments, or quote values that contain spaces",
        ))
    else:
        parameters = command.parameters
        fixed = command.total - 1 if command.variadic else command.total
        for slot, token in enumerate(positionals[:fixed]):
            try:
                arguments[slot] = coerce(token, parameters[slot].type, parameters[slot].name)
            except CoercionError as fault:
                faults.append(fault)

        if command.variadic and supplied > fixed:
            parameter = parameters[fixed]
            values = []
            for index, token in enumerate(positionals[fixed:]):
                try:
                    values.append(coerce(token, parameter.type.element, "%s[%d]" % (parameter.name, index)))
                except CoercionError as fault:
                    faults.append(fault)
            arguments[fixed] = values

    if command.group is not Unset:
        arguments.insert(0, options)
    return arguments


__all__ = (
    "bind",
)
