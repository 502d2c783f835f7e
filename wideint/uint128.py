#
# An implementation of unsigned 128-bit integer arithmetic on pairs of 64-bit words
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

from collections import namedtuple
from struct import Struct

from .bits import MASK32, MASK64, count_leading_zeros64, fls128, fls128_checked
from .context import (
    Compare, ConversionOverflow, DivideByZero, FormatError, MultiplyOverflow,
    OP_DIVIDE, OP_DIVREM, OP_FROM_INT, OP_MULTIPLY_CHECKED, OP_REMAINDER,
)
from .text import NumberFormat, has_hex_prefix, split_decimal, split_hex

__all__ = ('UInt128', )


MAX_UINT128 = (1 << 128) - 1
pack_big = Struct('>QQ').pack
unpack_big = Struct('>QQ').unpack
pack_little = Struct('<QQ').pack
unpack_little = Struct('<QQ').unpack


def shift_amount(amount):
    '''Validate a shift amount and return it.'''
    if not 0 <= amount <= 127:
        raise ValueError(f'shift amount {amount} out of range 0 to 127')
    return amount


def check_radix(radix):
    if radix not in (10, 16):
        raise ValueError(f'radix must be 10 or 16, not {radix!r}')


class UInt128(namedtuple('UInt128', 'hi lo')):
    '''An unsigned 128-bit integer.

    The value is hi * 2^64 + lo where hi and lo are 64-bit words.  Every pair of words is
    a valid value.  Arithmetic is performed on the words as a machine with only 64-bit
    registers would, so results wrap modulo 2^128 unless an operation documents
    otherwise.

    Operands of binary operators can be UInt128 instances or Python integers in range.
    '''

    __slots__ = ()

    def __new__(cls, hi, lo):
        '''Validate and create an unsigned integer from its high and low words.'''
        if not isinstance(hi, int) or not isinstance(lo, int):
            raise TypeError('hi and lo must be integers')
        if not 0 <= hi <= MASK64:
            raise ValueError(f'high word {hi:,d} out of range')
        if not 0 <= lo <= MASK64:
            raise ValueError(f'low word {lo:,d} out of range')
        return super().__new__(cls, hi, lo)

    @classmethod
    def from_int(cls, value, context=None):
        '''Return the UInt128 equal to a Python integer.  Values out of range signal
        ConversionOverflow with the low 128 bits as default result.'''
        if not isinstance(value, int):
            raise TypeError('from_int requires an integer')
        result = cls((value >> 64) & MASK64, value & MASK64)
        if not 0 <= value <= MAX_UINT128:
            result = ConversionOverflow((OP_FROM_INT, value), result).signal(context)
        return result

    @classmethod
    def from_bytes(cls, raw, byteorder='big'):
        '''Return the value of 16 bytes in the given byte order ('big' or 'little').'''
        if len(raw) != 16:
            raise ValueError(f'expected 16 bytes to unpack; got {len(raw)}')
        if byteorder == 'big':
            hi, lo = unpack_big(raw)
        elif byteorder == 'little':
            lo, hi = unpack_little(raw)
        else:
            raise ValueError("byteorder must be either 'little' or 'big'")
        return cls(hi, lo)

    @classmethod
    def _coerce(cls, value):
        '''Return value as a UInt128, or None if it is of an unsupported type.'''
        if isinstance(value, UInt128):
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

    def to_bytes(self, byteorder='big'):
        '''Return the value as 16 bytes in the given byte order ('big' or 'little').'''
        if byteorder == 'big':
            return pack_big(self.hi, self.lo)
        if byteorder == 'little':
            return pack_little(self.lo, self.hi)
        raise ValueError("byteorder must be either 'little' or 'big'")

    def to_words64(self):
        '''Return the 64-bit words, least significant first.'''
        return [self.lo, self.hi]

    def to_words32(self):
        '''Return the 32-bit words, least significant first.'''
        return [self.lo & MASK32, self.lo >> 32, self.hi & MASK32, self.hi >> 32]

    def fls(self):
        '''Return the index of the most significant set bit.  The value must not be zero.'''
        return fls128(self.hi, self.lo)

    def fls_checked(self):
        '''Return the index of the most significant set bit.  Raises ValueError for zero.'''
        return fls128_checked(self.hi, self.lo)

    def count_leading_zeros(self):
        '''Return the number of leading zero bits, 128 for zero.'''
        if self.hi:
            return count_leading_zeros64(self.hi)
        return 64 + count_leading_zeros64(self.lo)

    def bit_length(self):
        '''Return the number of bits needed to represent the value, as int.bit_length().'''
        return 128 - self.count_leading_zeros()

    def compare(self, other):
        '''Compare two UInt128 values; the high words decide unless they are equal.'''
        if self.hi != other.hi:
            return Compare.GREATER_THAN if self.hi > other.hi else Compare.LESS_THAN
        if self.lo != other.lo:
            return Compare.GREATER_THAN if self.lo > other.lo else Compare.LESS_THAN
        return Compare.EQUAL

    def _compare_any(self, other):
        if isinstance(other, UInt128):
            return self.compare(other)
        if isinstance(other, int):
            if other < 0:
                return Compare.GREATER_THAN
            if other > MAX_UINT128:
                return Compare.LESS_THAN
            return self.compare(UInt128.from_int(other))
        return None

    ##
    ## Arithmetic
    ##

    def add_with_carry(self, other):
        '''Return a (sum, carry_out) pair.  The sum wraps modulo 2^128 and carry_out is True
        if the exact sum needed more than 128 bits.'''
        lo = (self.lo + other.lo) & MASK64
        # A wrapped sum is less than either addend
        carry = lo < other.lo
        hi = (self.hi + other.hi) & MASK64
        carry_out = hi < self.hi
        if carry:
            hi = (hi + 1) & MASK64
            carry_out = carry_out or hi == 0
        return UInt128(hi, lo), carry_out

    def twos_complement(self):
        '''Return the two's-complement negation ~self + 1, modulo 2^128.'''
        return (~self).add_with_carry(UInt128.ONE)[0]

    def multiply(self, other):
        '''Return the product modulo 2^128.  Bits beyond 128 are silently dropped.

        Only 64-bit products are formed.  The low words are split into 32-bit halves so
        that their full 128-bit product can be assembled with carries.
        '''
        a32 = self.lo >> 32
        a00 = self.lo & MASK32
        b32 = other.lo >> 32
        b00 = other.lo & MASK32

        hi = (self.hi * other.lo + self.lo * other.hi + a32 * b32) & MASK64
        result = UInt128(hi, a00 * b00)
        result = result.add_with_carry(UInt128(0, a32 * b00) << 32)[0]
        return result.add_with_carry(UInt128(0, a00 * b32) << 32)[0]

    def mul_with_overflow(self, other):
        '''Return a (product, overflow) pair.  The product wraps as for multiply() and
        overflow is True if the exact product needed more than 128 bits.'''
        other = self._operand(other)
        product = self.multiply(other)
        # A wrapped product divided by one factor cannot give back the other
        overflow = bool(self) and product._divrem(self)[0] != other
        return product, overflow

    def multiply_checked(self, other, context=None):
        '''Return the product, signalling MultiplyOverflow if it does not fit.  The default
        result is the wrapped product.'''
        other = self._operand(other)
        product, overflow = self.mul_with_overflow(other)
        if overflow:
            op_tuple = (OP_MULTIPLY_CHECKED, self, other)
            product = MultiplyOverflow(op_tuple, product).signal(context)
        return product

    def _divrem(self, divisor):
        '''Shift-subtract long division by a non-zero divisor.  Returns a (quotient,
        remainder) pair.'''
        if not self:
            return UInt128.ZERO, UInt128.ZERO
        order = self.compare(divisor)
        if order == Compare.LESS_THAN:
            return UInt128.ZERO, self
        if order == Compare.EQUAL:
            return UInt128.ONE, UInt128.ZERO

        # Left-align the divisor with the dividend, then produce one quotient bit per
        # position as it moves back down
        shift = self.fls() - divisor.fls()
        divisor <<= shift
        quotient = UInt128.ZERO
        remainder = self
        for _ in range(shift + 1):
            quotient <<= 1
            if remainder.compare(divisor) != Compare.LESS_THAN:
                remainder = remainder.add_with_carry(divisor.twos_complement())[0]
                quotient = UInt128(quotient.hi, quotient.lo | 1)
            divisor >>= 1
        return quotient, remainder

    def divrem(self, divisor, context=None):
        '''Return a (quotient, remainder) pair.  A zero divisor signals DivideByZero with
        default result (0, self).'''
        divisor = self._operand(divisor)
        if not divisor:
            op_tuple = (OP_DIVREM, self, divisor)
            return DivideByZero(op_tuple, (UInt128.ZERO, self)).signal(context)
        return self._divrem(divisor)

    def divide(self, divisor, context=None):
        '''Return the quotient.  A zero divisor signals DivideByZero with default result 0.'''
        divisor = self._operand(divisor)
        if not divisor:
            op_tuple = (OP_DIVIDE, self, divisor)
            return DivideByZero(op_tuple, UInt128.ZERO).signal(context)
        return self._divrem(divisor)[0]

    def remainder(self, divisor, context=None):
        '''Return the remainder.  A zero divisor signals DivideByZero with default result
        self.'''
        divisor = self._operand(divisor)
        if not divisor:
            op_tuple = (OP_REMAINDER, self, divisor)
            return DivideByZero(op_tuple, self).signal(context)
        return self._divrem(divisor)[1]

    ##
    ## Text
    ##

    def decimal_digits(self):
        '''Return the decimal digits of the value, least significant produced first.'''
        if not self:
            return '0'
        digits = []
        current = self
        while current:
            current, digit = current._divrem(UInt128.TEN)
            digits.append('0123456789'[digit.lo])
        return ''.join(reversed(digits))

    @classmethod
    def from_decimal_digits(cls, digits):
        '''Accumulate a string of decimal digits.  Returns a (value, overflow) pair where
        value wraps modulo 2^128.'''
        result = cls.ZERO
        overflow = False
        for char in digits:
            result, mul_overflow = result.mul_with_overflow(cls.TEN)
            result, carry = result.add_with_carry(cls(0, ord(char) - 48))
            overflow = overflow or mul_overflow or carry
        return result, overflow

    @classmethod
    def from_hex_digits(cls, digits):
        '''Pack up to 32 hexadecimal digits into the words, least significant nibble
        first.'''
        hi = lo = 0
        for position, char in enumerate(reversed(digits)):
            nibble = int(char, 16)
            if position < 16:
                lo |= nibble << (position * 4)
            else:
                hi |= nibble << ((position - 16) * 4)
        return cls(hi, lo)

    @classmethod
    def parse(cls, string, radix=10):
        '''Convert a string to a UInt128.  Decimal strings may contain ',' separators;
        strings with an '0x' or 'x' prefix, or any string if radix is 16, are read as
        hexadecimal.  Raises FormatError if the string is ill-formed or out of range.'''
        if not isinstance(string, str):
            raise TypeError('parse requires a string')
        check_radix(radix)
        if radix == 16 or has_hex_prefix(string):
            return cls.from_hex_digits(split_hex(string))
        negative, digits = split_decimal(string)
        value, overflow = cls.from_decimal_digits(digits)
        if overflow or (negative and value):
            raise FormatError(f'integer out of range: {string!r}')
        return value

    @classmethod
    def try_parse(cls, string, radix=10):
        '''As for parse() but return None instead of raising FormatError.'''
        try:
            return cls.parse(string, radix)
        except FormatError:
            return None

    def to_string(self, format_spec=None):
        '''Return the value as a string.  See NumberFormat.from_spec() for the accepted
        format specifiers.'''
        text_format = NumberFormat.from_spec(format_spec)
        if text_format.kind == 'x':
            return text_format.format_hex(self.to_bytes())
        return text_format.format_decimal(False, self.decimal_digits())

    def __repr__(self):
        return f'UInt128(hi=0x{self.hi:016x}, lo=0x{self.lo:016x})'

    def __str__(self):
        return self.decimal_digits()

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
        return bool(self.hi or self.lo)

    def __int__(self):
        return (self.hi << 64) | self.lo

    __index__ = __int__

    def __float__(self):
        return float(self.decimal_digits())

    def __pos__(self):
        return self

    def __neg__(self):
        return self.twos_complement()

    def __invert__(self):
        return UInt128(~self.hi & MASK64, ~self.lo & MASK64)

    def __and__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return UInt128(self.hi & other.hi, self.lo & other.lo)

    def __or__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return UInt128(self.hi | other.hi, self.lo | other.lo)

    def __xor__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return UInt128(self.hi ^ other.hi, self.lo ^ other.lo)

    __rand__ = __and__
    __ror__ = __or__
    __rxor__ = __xor__

    def __lshift__(self, amount):
        '''Shift left by 0 to 127 bits.'''
        if not isinstance(amount, int):
            return NotImplemented
        amount = shift_amount(amount)
        if amount == 0:
            return self
        if amount < 64:
            hi = ((self.hi << amount) | (self.lo >> (64 - amount))) & MASK64
            return UInt128(hi, (self.lo << amount) & MASK64)
        return UInt128((self.lo << (amount - 64)) & MASK64, 0)

    def __rshift__(self, amount):
        '''Logical shift right by 0 to 127 bits.'''
        if not isinstance(amount, int):
            return NotImplemented
        amount = shift_amount(amount)
        if amount == 0:
            return self
        if amount < 64:
            lo = ((self.lo >> amount) | (self.hi << (64 - amount))) & MASK64
            return UInt128(self.hi >> amount, lo)
        return UInt128(0, self.hi >> (amount - 64))

    def __add__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self.add_with_carry(other)[0]

    def __sub__(self, other):
        other = self._coerce(other)
        if other is None:
            return NotImplemented
        return self.add_with_carry(other.twos_complement())[0]

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


UInt128.ZERO = UInt128(0, 0)
UInt128.ONE = UInt128(0, 1)
UInt128.TEN = UInt128(0, 10)
UInt128.MAX_VALUE = UInt128(MASK64, MASK64)
