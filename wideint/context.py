#
# Status flags, signals and per-thread contexts for 128-bit integer arithmetic
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import copy
import logging
import threading
from enum import IntFlag, IntEnum

__all__ = ('Context', 'DefaultContext', 'get_context', 'set_context', 'local_context',
           'Flags', 'Compare', 'HandlerKind',
           'WideIntError', 'DivideByZero', 'Overflow', 'ConversionOverflow',
           'MultiplyOverflow', 'NoInverse', 'FormatError',
           'OP_ABS', 'OP_NEGATE', 'OP_MULTIPLY', 'OP_MULTIPLY_CHECKED',
           'OP_DIVIDE', 'OP_REMAINDER', 'OP_DIVREM',
           'OP_FROM_INT', 'OP_FROM_NATIVE', 'OP_FROM_FLOAT', 'OP_FROM_DECIMAL',
           'OP_TO_NATIVE', 'OP_TO_CHAR', 'OP_TO_FLOAT')

logger = logging.getLogger(__name__)


# Operation names
OP_ABS = '__abs__'
OP_NEGATE = '__neg__'
OP_MULTIPLY = 'multiply'
OP_MULTIPLY_CHECKED = 'multiply_checked'
OP_DIVIDE = 'divide'
OP_REMAINDER = 'remainder'
OP_DIVREM = 'divrem'
OP_FROM_INT = 'from_int'
OP_FROM_NATIVE = 'from_native'
OP_FROM_FLOAT = 'from_float'
OP_FROM_DECIMAL = 'from_decimal'
OP_TO_NATIVE = 'to_native'
OP_TO_CHAR = 'to_char'
OP_TO_FLOAT = 'to_float'


# Three-way result of the compare() operations.
class Compare(IntEnum):
    LESS_THAN = -1
    EQUAL = 0
    GREATER_THAN = 1


# Operation status flags.
class Flags(IntFlag):
    DIV_BY_ZERO = 0x01
    OVERFLOW    = 0x02
    NO_INVERSE  = 0x04


class FormatError(ValueError):
    '''Raised when a string cannot be parsed as an integer, or a format specifier is not
    recognised.  This is an ordinary exception and is not signalled through the context.'''


#
# Signals
#

class WideIntError(ArithmeticError):
    '''All arithmetic exceptions signalled by this package subclass from this.

    WideIntError expects two arguments:

         def __init__(self, op_tuple, result):

    op_tuple is a tuple of the operation name and operands causing the signal.  result is
    the value that default exception handling should deliver.
    '''

    flag_to_raise = 'Nope! Fix your bug.'

    @property
    def op_tuple(self):
        return self.args[0]

    @property
    def default_result(self):
        return self.args[1]

    def signal(self, context=None):
        '''Call to signal an exception.  This routine handles the exception according to
        default or alternative exception handling as specified in the context.'''
        context = context or get_context()
        kind, handler = context.handler(self.__class__)
        result = self.default_result

        if kind != HandlerKind.NO_FLAG:
            context.flags |= self.flag_to_raise
            if kind == HandlerKind.RECORD_EXCEPTION:
                context.exceptions.append(self)

        if kind == HandlerKind.RAISE:
            raise self
        if kind == HandlerKind.SUBSTITUTE_VALUE:
            result = handler(self, context)

        logger.debug('%s signalled by %s; delivering %r',
                     self.__class__.__name__, self.op_tuple[0], result)
        return result


class DivideByZero(WideIntError, ZeroDivisionError):
    '''A divide or remainder operation with a zero divisor.  The default result of a
    division is zero and of a remainder the dividend; divrem delivers both as a pair.'''

    flag_to_raise = Flags.DIV_BY_ZERO


class Overflow(WideIntError, OverflowError):
    '''Signalled when a result cannot be represented in its destination.  The default
    result keeps the low-order bits that fit.'''

    flag_to_raise = Flags.OVERFLOW


class ConversionOverflow(Overflow):
    '''Signalled when converting a value to or from another type loses its magnitude.'''


class MultiplyOverflow(Overflow):
    '''Signalled by a checked multiplication whose exact product does not fit.'''


class NoInverse(WideIntError):
    '''Signalled when negating, or taking the absolute value of, the most negative value,
    which has no positive two's-complement counterpart.  The default result is the most
    negative value itself.'''

    flag_to_raise = Flags.NO_INVERSE


# Alternate exception handling

class HandlerKind(IntEnum):
    '''Indicates how a signalled exception should be handled.'''
    # Deliver the default result and raise the associated flag
    DEFAULT = 0

    # Default handling without raising the associated flag
    NO_FLAG = 1

    # Default handling, also appending the exception to the context's exceptions list
    RECORD_EXCEPTION = 2

    # Default handling but substitute a value for the default result.  A handler must be
    # provided with signature
    #
    #    def handler(exception, context):
    #
    # The value returned by the handler will become the operation's result.
    SUBSTITUTE_VALUE = 3

    # Raise the exception immediately
    RAISE = 4

    def requires_handler(self):
        return self == HandlerKind.SUBSTITUTE_VALUE


class Context:
    '''The execution context for operations.  Carries the status flags, the handlers
    for each signal, and the exceptions recorded by RECORD_EXCEPTION handling.'''

    __slots__ = ('flags', 'handlers', 'exceptions')

    def __init__(self, *, flags=0):
        '''flags represents the initially raised flags.'''
        self.flags = Flags(flags)
        self.handlers = {}
        self.exceptions = []

    def copy(self):
        '''Return a (deep) copy of the context.'''
        # A deep copy is needed because handlers and exceptions are mutable containers
        return copy.deepcopy(self)

    def set_handler(self, exc_classes, kind, handler=None):
        classes = (exc_classes, ) if not isinstance(exc_classes, (tuple, list)) else exc_classes
        if not all(isinstance(exc_class, type) and issubclass(exc_class, WideIntError)
                   for exc_class in classes):
            raise TypeError('all exception classes must be subclasses of WideIntError')
        if not isinstance(kind, HandlerKind):
            raise TypeError('kind must be a HandlerKind instance')
        if (handler is not None) ^ kind.requires_handler():
            if handler is None:
                raise ValueError(f'handler not given for kind {kind!r}')
            else:
                raise ValueError(f'handler given for kind {kind!r}')
        pair = (kind, handler)
        for exc_class in classes:
            self.handlers[exc_class] = pair

    def handler(self, exc_class):
        '''Return a (handler_kind, callback) pair for a signal class.'''
        if not issubclass(exc_class, WideIntError):
            raise TypeError('exc_class must be a subclass of WideIntError')

        for cls in exc_class.mro():
            handler = self.handlers.get(cls)
            if handler:
                return handler

        return HandlerKind.DEFAULT, None

    def __repr__(self):
        return f'<Context flags={self.flags!r}>'


#
# Exported functions
#

DefaultContext = Context()
DefaultContext.set_handler((DivideByZero, Overflow, NoInverse), HandlerKind.RAISE)
tls = threading.local()


def get_context():
    try:
        return tls.context
    except AttributeError:
        tls.context = DefaultContext.copy()
        return tls.context


def set_context(context):
    '''Sets the current thread's context to context (not a copy of it).'''
    tls.context = context


class LocalContext:
    '''A context manager that will set the current context for the active thread to a copy of
    context on entry to the with-statement and restore the previous context on exit.  If
    no context is specified a copy of the current context is taken instead.
    '''

    def __init__(self, context=None):
        self.saved_context = None
        self.context_to_set = context

    def __enter__(self):
        self.saved_context = get_context()
        context = (self.context_to_set or self.saved_context).copy()
        set_context(context)
        return context

    def __exit__(self, etype, value, traceback):
        set_context(self.saved_context)


local_context = LocalContext
