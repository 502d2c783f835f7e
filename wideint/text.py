#
# Text formats and string grammars of 128-bit integers
#
# (c) Neil Booth 2007-2021.  All rights reserved.
#

import re

import attr

from .context import FormatError

__all__ = ('NumberFormat', 'DefaultFormat', 'split_decimal', 'split_hex', 'has_hex_prefix')


# The longest hexadecimal digit string that fits in 128 bits
MAX_HEX_DIGITS = 32


@attr.s(slots=True, frozen=True, kw_only=True)
class NumberFormat:
    '''Controls the output of conversion to decimal and hexadecimal strings.  Usually
    built from a format specifier with from_spec().'''

    # 'd' for plain decimal, 'n' for decimal with digit grouping, 'x' for hexadecimal
    kind = attr.ib(default='d', validator=attr.validators.in_(('d', 'n', 'x')))
    # If True, hexadecimal digits are output in upper case
    upper_case = attr.ib(default=False)
    # The minimum number of hexadecimal digits output.  Leading zero bytes are trimmed
    # from hexadecimal output but zeroes are added back to reach this width.
    width = attr.ib(default=0)
    # Inserted between groups of three decimal digits by the 'n' kind
    group_separator = attr.ib(default=',')

    @classmethod
    def from_spec(cls, spec):
        '''Return the NumberFormat for a format specifier.  The empty string and None give
        the default decimal format.  Raises FormatError for unrecognised specifiers.'''
        if not spec:
            return DefaultFormat
        if not isinstance(spec, str):
            raise TypeError('a format specifier must be a string')
        match = FORMAT_SPEC_REGEX.fullmatch(spec)
        if not match:
            raise FormatError(f'unsupported format specifier: {spec!r}')
        hex_letter, width, dec_letter = match.groups()
        if hex_letter:
            return cls(kind='x', upper_case=hex_letter == 'X', width=int(width or 0))
        if dec_letter in 'nN':
            return cls(kind='n')
        return DefaultFormat

    def format_decimal(self, negative, digits):
        '''Return the text of a decimal number.  digits is the string of its decimal digits
        without leading zeroes, and negative is True if a minus sign is wanted.  Zero
        is never given a sign.'''
        if self.kind == 'n' and len(digits) > 3:
            head = len(digits) % 3 or 3
            groups = [digits[:head]]
            groups.extend(digits[pos: pos + 3] for pos in range(head, len(digits), 3))
            digits = self.group_separator.join(groups)
        if negative and digits != '0':
            return '-' + digits
        return digits

    def format_hex(self, raw):
        '''Return the hexadecimal text of raw, a big-endian bytes object.  Insignificant
        leading zero bytes are dropped, keeping at least one byte, and the result is
        padded with zeroes to the minimum width.'''
        start = 0
        while start < len(raw) - 1 and raw[start] == 0:
            start += 1
        result = raw[start:].hex()
        if len(result) < self.width:
            result = '0' * (self.width - len(result)) + result
        if self.upper_case:
            result = result.upper()
        return result


DefaultFormat = NumberFormat()


def has_hex_prefix(string):
    '''Return True if string begins with an '0x' or 'x' hexadecimal prefix.'''
    return HEX_PREFIX_REGEX.match(string) is not None


def split_decimal(string):
    '''Split a decimal integer string into a (negative, digits) pair where digits has the
    grouping separators removed.  Raises FormatError if the string is ill-formed.'''
    match = DEC_INT_REGEX.fullmatch(string)
    if match:
        sign, digits = match.groups()
        digits = digits.replace(',', '')
        if digits:
            return bool(sign), digits
    raise FormatError(f'invalid decimal integer: {string!r}')


def split_hex(string):
    '''Return the hexadecimal digits of a hexadecimal integer string, with the optional
    prefix removed.  Raises FormatError if the string is ill-formed or has more digits
    than fit in 128 bits.'''
    match = HEX_INT_REGEX.fullmatch(string)
    if not match:
        raise FormatError(f'invalid hexadecimal integer: {string!r}')
    digits = match.group(1)
    if len(digits) > MAX_HEX_DIGITS:
        raise FormatError(f'hexadecimal integer has more than {MAX_HEX_DIGITS} digits: '
                          f'{string!r}')
    return digits


FORMAT_SPEC_REGEX = re.compile(
    # x or X, followed by an optional minimum width
    '([xX])([0-9]*)|'
    # decimal kinds
    '([gGdDnN])',
    re.ASCII
)
HEX_PREFIX_REGEX = re.compile('0?x', re.ASCII | re.IGNORECASE)
DEC_INT_REGEX = re.compile(
    # sign[opt] digits-or-separators
    '(-?)([0-9,]+)',
    re.ASCII
)
HEX_INT_REGEX = re.compile(
    # hex-prefix[opt] hex-digits
    '(?:0?x)?([0-9a-f]+)',
    re.ASCII | re.IGNORECASE
)
