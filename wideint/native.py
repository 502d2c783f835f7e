#
# Descriptions of the native fixed-width integer types 128-bit integers convert to and from
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

from typing import NamedTuple

__all__ = ('NativeInt', 'INT8', 'INT16', 'INT32', 'INT64',
           'UINT8', 'UINT16', 'UINT32', 'UINT64', 'NATIVE_INTS')


class NativeInt(NamedTuple):
    '''A native fixed-width binary integer type.  Only instantiate indirectly through
    from_width().

    width is the number of bits, signed is True for a two's-complement type.  min_value
    and max_value are the bounds as Python integers.
    '''

    width: int
    signed: bool

    # A function of the two values above
    min_value: int
    max_value: int
    mask: int

    @classmethod
    def from_width(cls, width, signed):
        if not isinstance(width, int):
            raise TypeError('width must be an integer')
        if width not in (8, 16, 32, 64):
            raise ValueError(f'no native integer type has width {width}')
        mask = (1 << width) - 1
        if signed:
            min_value = -(1 << (width - 1))
            max_value = (1 << (width - 1)) - 1
        else:
            min_value = 0
            max_value = mask
        return cls(width, bool(signed), min_value, max_value, mask)

    @property
    def name(self):
        return f'{"" if self.signed else "u"}int{self.width}'

    def __repr__(self):
        return f'NativeInt({self.name})'

    def contains(self, value):
        '''Return True if the Python integer value is representable.'''
        return self.min_value <= value <= self.max_value

    def wrap(self, value):
        '''Return the value of the low width bits of the Python integer value, interpreted
        as this type.  This is what a truncating cast delivers.'''
        value &= self.mask
        if self.signed and value > self.max_value:
            value -= self.mask + 1
        return value


INT8 = NativeInt.from_width(8, True)
INT16 = NativeInt.from_width(16, True)
INT32 = NativeInt.from_width(32, True)
INT64 = NativeInt.from_width(64, True)
UINT8 = NativeInt.from_width(8, False)
UINT16 = NativeInt.from_width(16, False)
UINT32 = NativeInt.from_width(32, False)
UINT64 = NativeInt.from_width(64, False)

NATIVE_INTS = (INT8, INT16, INT32, INT64, UINT8, UINT16, UINT32, UINT64)
