#
# 64-bit word primitives underlying the 128-bit integer types
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

__all__ = ('MASK32', 'MASK64', 'SIGN_BIT64',
           'signed64', 'count_leading_zeros64', 'fls128', 'fls128_checked')


MASK32 = 0xffffffff
MASK64 = 0xffffffffffffffff
SIGN_BIT64 = 0x8000000000000000

# Leading zero count of each 4-bit value
_NIBBLE_CLZ = (4, 3, 2, 2, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 0, 0)


def signed64(word):
    '''Return the 64-bit word interpreted as a two's-complement signed value.'''
    return word - (1 << 64) if word & SIGN_BIT64 else word


def count_leading_zeros64(word):
    '''Return the number of leading zero bits of a 64-bit word, 64 for zero.

    The search narrows the word by halves and finishes with a table lookup on the
    remaining nibble, so its cost does not depend on the position of the top bit.
    '''
    zeroes = 60
    if word >> 32:
        zeroes -= 32
        word >>= 32
    if word >> 16:
        zeroes -= 16
        word >>= 16
    if word >> 8:
        zeroes -= 8
        word >>= 8
    if word >> 4:
        zeroes -= 4
        word >>= 4
    return _NIBBLE_CLZ[word] + zeroes


def fls128(hi, lo):
    '''Return the bit index (0 to 127) of the most significant set bit of the 128-bit
    magnitude with words hi and lo.

    The magnitude must be non-zero; this is only asserted.  Use fls128_checked() where
    a zero can reach the call.
    '''
    if hi:
        return 127 - count_leading_zeros64(hi)
    assert lo, 'fls128 of zero'
    return 63 - count_leading_zeros64(lo)


def fls128_checked(hi, lo):
    '''As for fls128() but raise ValueError if the magnitude is zero.'''
    if not (hi or lo):
        raise ValueError('fls128 requires a non-zero magnitude')
    return fls128(hi, lo)
