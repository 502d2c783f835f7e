#
# An implementation of signed two's-complement 128-bit integer arithmetic
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import sys
from collections import namedtuple
from decimal import Decimal
from math import frexp, isfinite, ldexp
from uuid import UUID

from .bits import MASK64, SIGN_BIT64, signed64
from .context import (
    Compare, ConversionOverflow, DivideByZero, FormatError, MultiplyOverflow, NoInverse,
    OP_ABS, OP_DIVIDE, OP_DIVREM, OP_FROM_DECIMAL, OP_FROM_FLOAT, OP_FROM_INT,
    OP_FROM_NATIVE, OP_MULTIPLY, OP_MULTIPLY_CHECKED, OP_NEGATE, OP_REMAINDER,
    OP_TO_CHAR, OP_TO_FLOAT, OP_TO_NATIVE,
)
from .native import NativeInt
from .text import NumberFormat, has_hex_prefix, split_decimal, split_hex
from .uint128 import UInt128, check_radix, shift_amount

__all__ = ('Int128', )


MIN_INT128 = -(1 << 127)
MAX_INT128 = (1 << 127) - 1
TWO_POW_64 = 18446744073709551616.0


def magnitude_fits(negative, magnitude):
    '''Return True if a UInt128 magnitude with the given sign is representable as an
    Int128.  Only negative magnitudes may reach 2^127.'''
    if not magnitude.hi & SIGN_BIT64:
        return True
    return negative and magnitude.hi == SIGN_BIT64 and magnitude.lo == 0


class Int128(namedtuple('Int128', 'hi lo')):
    '''A signed 128-bit integer.

    The words hi and lo hold the two's-complement representation; the sign is the top
    bit of hi.  MIN_VALUE has no positive counterpart, so negation and absolute value
    signal NoInverse for it, and the multiply and divide operations route magnitudes
    through UInt128 with that asymmetry in mind.

    Division truncates towards zero and the remainder takes the sign of the dividend.
    This applies to the //, % and divmod() operators too; it is not Python's floored
    convention.
    '''

    __slots__ = ()

    def __new__(cls, hi, lo):
        '''Validate and create a signed integer from the words of its bit pattern.'''
        if not isinstance(hi, int) or not isinstance(lo, int):
            raise TypeError('hi and lo must be integers')
        if not 0 <= hi <= MASK64:
            raise ValueError(f'high word {hi:,d} out of range')
        if not 0 <= lo <= MASK64:
            raise ValueError(f'low word {lo:,d} out of range')
        return super().__new__(cls, hi, lo)

    ##
    ## Construction
    ##

    @classmethod
    def from_uint128(cls, value):
        '''Return the Int128 with the same bit pattern as a UInt128.'''
        if not isinstance(value, UInt128):
            raise TypeError('from_uint128 requires a UInt128 instance')
        return cls(value.hi, value.lo)

    @classmethod
    def _from_magnitude(cls, negative, magnitude):
        if negative:
            magnitude = magnitude.twos_complement()
        return cls(magnitude.hi, magnitude.lo)

    @classmethod
    def from_int(cls, value, context=None):
        '''Return the Int128 equal to a Python integer.  Values out of range signal
        ConversionOverflow with the low 128 bits as default result.'''
        if not isinstance(value, int):
            raise TypeError('from_int requires an integer')
        result = cls((value >> 64) & MASK64, value & MASK64)
        if not MIN_INT128 <= value <= MAX_INT128:
            result = ConversionOverflow((OP_FROM_INT, value), result).signal(context)
        return result

    @classmethod
    def from_native(cls, fmt, value, context=None):
        '''Return a value of the native integer type fmt sign- or zero-extended to 128 bits.
        A value outside the range of fmt signals ConversionOverflow, with the value
        truncated to fmt as default result.'''
        if not isinstance(fmt, NativeInt):
            raise TypeError('fmt must be a NativeInt instance')
        if not isinstance(value, int):
            raise TypeError('from_native requires an integer')
        if not fmt.contains(value):
            op_tuple = (OP_FROM_NATIVE, fmt, value)
            value = ConversionOverflow(op_tuple, fmt.wrap(value)).signal(context)
        if value < 0:
            return cls(MASK64, value & MASK64)
        return cls(0, value)

    @classmethod
    def from_bool(cls, value):
        '''Return 1 for True and 0 for False.'''
        if not isinstance(value, bool):
            raise TypeError('from_bool requires a bool')
        return cls(0, int(value))

    @classmethod
    def from_char(cls, char):
        '''Return the code point of a single-character string.'''
        if not isinstance(char, str):
            raise TypeError('from_char requires a string')
        if len(char) != 1:
            raise ValueError(f'from_char requires a single character; got {len(char)}')
        return cls(0, ord(char))

    @classmethod
    def from_decimal(cls, value, context=None):
        '''Return the integer part of a Decimal, truncating towards zero.

        The coefficient is unscaled by dropping the digits its negative exponent makes
        fractional.  NaNs, infinities and out-of-range values signal ConversionOverflow;
        the default result is zero for the former and the low 128 bits otherwise.
        '''
        if not isinstance(value, Decimal):
            raise TypeError('from_decimal requires a Decimal instance')
        op_tuple = (OP_FROM_DECIMAL, value)
        if not value.is_finite():
            return ConversionOverflow(op_tuple, cls.ZERO).signal(context)

        sign, digit_tuple, exponent = value.as_tuple()
        digits = ''.join(map(str, digit_tuple))
        if exponent < 0:
            digits = digits[:exponent] or '0'
        magnitude, overflow = UInt128.from_decimal_digits(digits)
        for _ in range(max(exponent, 0)):
            if overflow or not magnitude:
                break
            magnitude, overflow = magnitude.mul_with_overflow(UInt128.TEN)

        result = cls._from_magnitude(sign, magnitude)
        if overflow or not magnitude_fits(sign, magnitude):
            result = ConversionOverflow(op_tuple, result).signal(context)
        return result

    @classmethod
    def from_float(cls, value, context=None):
        '''Return the integer part of a float, truncating towards zero.

        Magnitudes below 2^64 are cast directly.  Larger ones are split into a 64-bit
        integer significand and a power-of-two exponent, and the significand is shifted
        into place.  The result is exact for the float, but floats above 2^53 are
        themselves only approximations of the integer intended.  NaNs, infinities and
        out-of-range values signal ConversionOverflow with default result zero.
        '''
        if not isinstance(value, float):
            raise TypeError('from_float requires a float')
        op_tuple = (OP_FROM_FLOAT, value)
        if not isfinite(value):
            return ConversionOverflow(op_tuple, cls.ZERO).signal(context)

        negative = value < 0
        value = abs(value)
        if value < TWO_POW_64:
            magnitude = UInt128(0, int(value))
        else:
            significand, exponent = frexp(value)
            shift = exponent - 64
            if shift > 64:
                return ConversionOverflow(op_tuple, cls.ZERO).signal(context)
            magnitude = UInt128(0, int(ldexp(significand, 64))) << shift

        if not magnitude_fits(negative, magnitude):
            return ConversionOverflow(op_tuple, cls.ZERO).signal(context)
        return cls._from_magnitude(negative, magnitude)

    @classmethod
    def from_bytes(cls, raw, byteorder='big'):
        '''Return the value whose bit pattern is 16 bytes in the given byte order.'''
        return cls.from_uint128(UInt128.from_bytes(raw, byteorder))

    @classmethod
    def from_uuid(cls, value):
        '''Return the value whose big-endian bit pattern is the 16 bytes of a UUID.'''
        if not isinstance(value, UUID):
            raise TypeError('from_uuid requires a UUID instance')
        return cls.from_bytes(value.bytes)

    @classmethod
    def from_words32(cls, sign, words):
        '''Return the value with magnitude given by up to four 32-bit words, least
        significant first, negated if sign is negative.  A negative result always has
        the sign bit set.'''
        words = list(words)
        if len(words) > 4:
            raise ValueError(f'at most four 32-bit words are accepted; got {len(words)}')
        if not all(isinstance(word, int) and 0 <= word <= 0xffffffff for word in words):
            raise ValueError('words must be unsigned 32-bit integers')
        words.extend([0] * (4 - len(words)))
        magnitude = UInt128((words[3] << 32) | words[2], (words[1] << 32) | words[0])
        if sign < 0 and magnitude:
            bits = magnitude.twos_complement()
            return cls(bits.hi | SIGN_BIT64, bits.lo)
        return cls.from_uint128(magnitude)

    @classmethod
    def _coerce(cls, value):
        '''Return value as an Int128, or None if it is of an unsupported type.'''
        if isinstance(value, Int128):
            return value
        if isinstance(value, int):
            return cls.from_int(value)
        return None

    @classmethod
    def _operand(cls, value):
        '''As for _coerce() but raise TypeError for unsupported types.'''
        result = cls._coerce(value)
        if result is None:
            raise TypeError(f'unsupported operand type: {type(value).__name__}')
        return result

    ##
    ## Non-computational operations
    ##

    @property
    def sign(self):
        '''0 for zero, otherwise 1 or -1 as the sign bit is clear or set.'''
        if self.hi == 0 and self.lo == 0:
            return 0
        return -1 if self.hi & SIGN_BIT64 else 1

    def is_negative(self):
        '''Return True if the sign bit is set.'''
        return bool(self.hi & SIGN_BIT64)

    def to_uint128(self):
        '''Return the UInt128 with the same bit pattern.'''
        return UInt128(self.hi, self.lo)

    def uabs(self):
        '''Return the magnitude as a UInt128.  This succeeds for MIN_VALUE too.'''
        bits = self.to_uint128()
        return bits.twos_complement() if self.is_negative() else bits

    def to_bytes(self, byteorder='big'):
        '''Return the bit pattern as 16 bytes in the given byte order.'''
        return self.to_uint128().to_bytes(byteorder)

    def to_uuid(self):
        '''Return the UUID whose 16 bytes are the big-endian bit pattern.'''
        return UUID(bytes=self.to_bytes())

    def to_words64(self):
        '''Return the 64-bit words of the bit pattern, least significant first.'''
        return self.to_uint128().to_words64()

    def to_words32(self):
        '''Return the 32-bit words of the bit pattern, least significant first.'''
        return self.to_uint128().to_words32()

    def compare(self, other):
        '''Compare two Int128 values.  Values of the same sign order as their bit
        patterns.'''
        lhs_sign = self.sign
        rhs_sign = other.sign
        if lhs_sign == 0 and rhs_sign == 0:
            return Compare.EQUAL
        if lhs_sign >= 0 and rhs_sign < 0:
            return Compare.GREATER_THAN
        if lhs_sign < 0 and rhs_sign >= 0:
            return Compare.LESS_THAN
        return self.to_uint128().compare(other.to_uint128())

    def _compare_any(self, other):
        if isinstance(other, Int128):
            return self.compare(other)
        if isinstance(other, int):
            if other < MIN_INT128:
                return Compare.GREATER_THAN
            if other > MAX_INT128:
                return Compare.LESS_THAN
            return self.compare(Int128.from_int(other))
        return None

    def _fits(self, fmt):
        return (self.compare(Int128.from_int(fmt.min_value)) != Compare.LESS_THAN
                and self.compare(Int128.from_int(fmt.max_value)) != Compare.GREATER_THAN)

    ##
    ## Narrowing conversions
    ##

    def to_native(self, fmt, context=None):
        '''Return the value as a Python integer of the native type fmt.  Values out of range
        signal ConversionOverflow with the truncated value as default result.'''
        if not isinstance(fmt, NativeInt):
            raise TypeError('fmt must be a NativeInt instance')
        if self.sign == 0:
            return 0
        result = fmt.wrap(self.lo)
        if not self._fits(fmt):
            result = ConversionOverflow((OP_TO_NATIVE, self, fmt), result).signal(context)
        return result

    def try_to_native(self, fmt):
        '''As for to_native() but return None if the value is out of range.'''
        if not isinstance(fmt, NativeInt):
            raise TypeError('fmt must be a NativeInt instance')
        if not self._fits(fmt):
            return None
        return fmt.wrap(self.lo)

    def to_bool(self):
        return self.sign != 0

    def to_char(self, context=None):
        '''Return the single-character string with this code point.  Values that are not
        code points signal ConversionOverflow.'''
        if 0 <= self <= sys.maxunicode:
            return chr(self.lo)
        default = chr(self.lo % (sys.maxunicode + 1))
        return ConversionOverflow((OP_TO_CHAR, self), default).signal(context)

    def try_to_char(self):
        '''As for to_char() but return None if the value is not a code point.'''
        if 0 <= self <= sys.maxunicode:
            return chr(self.lo)
        return None

    def to_decimal(self):
        '''Return the exactly equal Decimal.'''
        return Decimal(self.to_string())

    def to_float(self, context=None):
        '''Return the nearest float.  The conversion goes through the decimal string.'''
        if self.sign == 0:
            return 0.0
        if self.hi == SIGN_BIT64 and self.lo == 0:
            # Step away from MIN_VALUE, whose magnitude is not an Int128
            return (self + 1).to_float(context) - 1.0
        result = float(self.to_string())
        if not isfinite(result):
            result = ConversionOverflow((OP_TO_FLOAT, self), result).signal(context)
        return result

    ##
    ## Sign operations
    ##

    def twos_complement(self):
        '''Return ~self + 1 modulo 2^128.  MIN_VALUE is its own two's complement.'''
        return Int128.from_uint128(self.to_uint128().twos_complement())

    def _negate(self, op_tuple, context):
        if self.hi == SIGN_BIT64 and self.lo == 0:
            return NoInverse(op_tuple, self).signal(context)
        return self.twos_complement()

    def negate(self, context=None):
        '''Return -self.  MIN_VALUE signals NoInverse with default result MIN_VALUE.'''
        return self._negate((OP_NEGATE, self), context)

    def abs(self, context=None):
        '''Return the absolute value.  MIN_VALUE signals NoInverse with default result
        MIN_VALUE.'''
        if self.is_negative():
            return self._negate((OP_ABS, self), context)
        return self

    ##
    ## Arithmetic
    ##

    def multiply(self, other, context=None):
        '''Return the product, truncated to 128 bits.

        Multiplying MIN_VALUE by -1 signals NoInverse.  Otherwise no overflow is detected;
        when the truncated product's sign disagrees with the sign the product should have
        it is negated, which is a correction of the sign only.  Use multiply_checked()
        to detect overflow.
        '''
        other = self._operand(other)
        if not self or not other:
            return Int128.ZERO
        if self == Int128.ONE:
            return other
        if other == Int128.ONE:
            return self
        if self == Int128.MINUS_ONE:
            return other._negate((OP_MULTIPLY, self, other), context)
        if other == Int128.MINUS_ONE:
            return self._negate((OP_MULTIPLY, self, other), context)
        return self._multiply_general(other)

    def _multiply_general(self, other):
        should_be_negative = self.is_negative() != other.is_negative()
        result = Int128.from_uint128(self.to_uint128().multiply(other.to_uint128()))
        if result.is_negative() != should_be_negative:
            result = result.twos_complement()
        return result

    def mul_with_overflow(self, other):
        '''Return a (product, overflow) pair.  The product wraps modulo 2^128 and overflow
        is True if the exact product is not representable.'''
        other = self._operand(other)
        negative = self.is_negative() != other.is_negative()
        magnitude, overflow = self.uabs().mul_with_overflow(other.uabs())
        overflow = overflow or not magnitude_fits(negative, magnitude)
        return Int128._from_magnitude(negative, magnitude), overflow

    def multiply_checked(self, other, context=None):
        '''Return the product, signalling MultiplyOverflow if it is not representable.  The
        default result is the product modulo 2^128.'''
        other = self._operand(other)
        product, overflow = self.mul_with_overflow(other)
        if overflow:
            op_tuple = (OP_MULTIPLY_CHECKED, self, other)
            product = MultiplyOverflow(op_tuple, product).signal(context)
        return product

    def _divrem(self, divisor):
        quotient, remainder = self.uabs()._divrem(divisor.uabs())
        quotient = Int128.from_uint128(quotient)
        remainder = Int128.from_uint128(remainder)
        if self.is_negative() != divisor.is_negative():
            quotient = quotient.twos_complement()
        if self.is_negative():
            remainder = remainder.twos_complement()
        return quotient, remainder

    def divrem(self, divisor, context=None):
        '''Return a (quotient, remainder) pair of truncating division.  The remainder has
        the sign of the dividend.  A zero divisor signals DivideByZero with default result
        (0, self).  MIN_VALUE divided by -1 wraps to MIN_VALUE.'''
        divisor = self._operand(divisor)
        if not divisor:
            op_tuple = (OP_DIVREM, self, divisor)
            return DivideByZero(op_tuple, (Int128.ZERO, self)).signal(context)
        return self._divrem(divisor)

    def divide(self, divisor, context=None):
        '''Return the quotient rounded towards zero.  A zero divisor signals DivideByZero
        with default result 0.'''
        divisor = self._operand(divisor)
        if not divisor:
            op_tuple = (OP_DIVIDE, self, divisor)
            return DivideByZero(op_tuple, Int128.ZERO).signal(context)
        return self._divrem(divisor)[0]

    def remainder(self, divisor, context=None):
        '''Return the remainder of truncating division, with the sign of the dividend.  A
        zero divisor signals DivideByZero with default result self.'''
        divisor = self._operand(divisor)
        if not divisor:
            op_tuple = (OP_REMAINDER, self, divisor)
            return DivideByZero(op_tuple, self).signal(context)
        return self._divrem(divisor)[1]

    ##
    ## Text
    ##

    @classmethod
    def parse(cls, string, radix=10):
        '''Convert a string to an Int128.

        Decimal strings have an optional leading '-' and may contain ',' separators.
        Strings with an '0x' or 'x' prefix, or any string if radix is 16, are read as up
        to 32 hexadecimal digits giving the bit pattern, with no sign.  Raises FormatError
        if the string is ill-formed or out of range.
        '''
        if not isinstance(string, str):
            raise TypeError('parse requires a string')
        check_radix(radix)
        if radix == 16 or has_hex_prefix(string):
            return cls.from_uint128(UInt128.from_hex_digits(split_hex(string)))
        negative, digits = split_decimal(string)
        magnitude, overflow = UInt128.from_decimal_digits(digits)
        if overflow or not magnitude_fits(negative, magnitude):
            raise FormatError(f'integer out of range: {string!r}')
        return cls._from_magnitude(negative, magnitude)

    @classmethod
    def try_parse(cls, string, radix=10):
        '''As for parse() but return None instead of raising FormatError.'''
        try:
            return cls.parse(string, radix)
        except FormatError:
            return None

    def to_string(self, format_spec=None):
        '''Return the value as a string.  See NumberFormat.from_spec() for the accepted
        format specifiers.  Hexadecimal output shows the bit pattern.'''
        text_format = NumberFormat.from_spec(format_spec)
        if text_format.kind == 'x':
            return text_format.format_hex(self.to_bytes())
        if self.sign == 0:
            return '0'
        return text_format.format_decimal(self.is_negative(), self.uabs().decimal_digits())

    def __repr__(self):
        return f'Int128(hi=0x{self.hi:016x}, lo=0x{self.lo:016x})'

    def __str__(self):
        return self.to_string()

    def __format__(self, format_spec):
        return self.to_string(format_spec)

    ##
    ## Python operators
    ##

    def __eq__(self, other):
        compare = self._compare_any(other)
        if compare is None:
            # Plain tuples and the other word-pair type are never equal
            return False if isinstance(other, tuple) else NotImplemented
        return compare == Compare.EQUAL

    def __ne__(self, other):
        compare = self._compare_any(other)
        if compare is None:
            return True if isinstance(other, tuple) else NotImplemented
        return compare != Compare.EQUAL

    def __lt__(self, other):
        compare = self._compare_any(other)
        if compare is None:
            return NotImplemented
        return compare == Compare.LESS_THAN

    def __le__(self, other):
        compare = self._compare_any(other)
        if compare is None:
            return NotImplemented
        return compare != Compare.GREATER_THAN

    def __ge__(self, other):
        compare = self._compare_any(other)
        if compare is None:
            return NotImplemented
        return compare != Compare.LESS_THAN

    def __gt__(self, other):
        compare = self._compare_any(other)
        if compare is None:
            return NotImplemented
        return compare == Compare.GREATER_THAN

    def __hash__(self):
        '''Hash equally to the Python integer of the same value.'''
        return hash(int(self))

    def __bool__(self):
        return self.sign != 0

    def __int__(self):
        return (signed64(self.hi) << 64) | self.lo

    __index__ = __int__

    def __float__(self):
        return self.to_float()

    def __pos__(self):
        return self

    def __neg__(self):
        return self.negate()

    def __abs__(self):
        return self.abs()

    def __invert__(self):
        return Int128(~self.hi & MASK64, ~self.lo & MASK64)

    def __and__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return Int128(self.hi & other.hi, self.lo & other.lo)

    def __or__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return Int128(self.hi | other.hi, self.lo | other.lo)

    def __xor__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return Int128(self.hi ^ other.hi, self.lo ^ other.lo)

    __rand__ = __and__
    __ror__ = __or__
    __rxor__ = __xor__

    def __lshift__(self, amount):
        '''Shift left by 0 to 127 bits, as for an unsigned value.'''
        if not isinstance(amount, int):
            return NotImplemented
        return Int128.from_uint128(self.to_uint128() << amount)

    def __rshift__(self, amount):
        '''Arithmetic shift right by 0 to 127 bits, replicating the sign bit.'''
        if not isinstance(amount, int):
            return NotImplemented
        amount = shift_amount(amount)
        if amount == 0:
            return self
        high = signed64(self.hi)
        if amount < 64:
            lo = ((self.lo >> amount) | (self.hi << (64 - amount))) & MASK64
            return Int128((high >> amount) & MASK64, lo)
        return Int128(MASK64 if high < 0 else 0, (high >> (amount - 64)) & MASK64)

    def __add__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return Int128.from_uint128(self.to_uint128() + other.to_uint128())

    def __sub__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return Int128.from_uint128(self.to_uint128() - other.to_uint128())

    def __mul__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self.multiply(other)

    def __floordiv__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self.divide(other)

    def __mod__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self.remainder(other)

    def __divmod__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self.divrem(other)

    __radd__ = __add__
    __rmul__ = __mul__

    def __rsub__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return other - self

    def __rfloordiv__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return other.divide(self)

    def __rmod__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return other.remainder(self)

    def __rdivmod__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return other.divrem(self)


Int128.ZERO = Int128(0, 0)
Int128.ONE = Int128(0, 1)
Int128.MINUS_ONE = Int128(MASK64, MASK64)
Int128.MIN_VALUE = Int128(SIGN_BIT64, 0)
Int128.MAX_VALUE = Int128(SIGN_BIT64 - 1, MASK64)
