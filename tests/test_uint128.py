import random

import pytest

from wideint import *


MOD128 = 1 << 128


@pytest.fixture
def context():
    with local_context(DefaultContext) as context:
        yield context


@pytest.fixture
def quiet_context():
    with local_context(Context()) as context:
        yield context


def random_uint128():
    return UInt128.from_int(random.getrandbits(random.randrange(1, 129)))


def schoolbook_multiply(lhs, rhs):
    '''Multiply 32-bit limbs, least significant first, keeping the low four limbs.'''
    lhs_words = lhs.to_words32()
    rhs_words = rhs.to_words32()
    limbs = [0] * 4
    for i, lhs_word in enumerate(lhs_words):
        carry = 0
        for j in range(4 - i):
            total = limbs[i + j] + lhs_word * rhs_words[j] + carry
            limbs[i + j] = total & MASK32
            carry = total >> 32
    return UInt128((limbs[3] << 32) | limbs[2], (limbs[1] << 32) | limbs[0])


class TestConstruction:

    def test_constants(self):
        assert UInt128.ZERO == 0
        assert UInt128.ONE == 1
        assert UInt128.MAX_VALUE == MOD128 - 1
        assert UInt128.MAX_VALUE == UInt128(MASK64, MASK64)

    @pytest.mark.parametrize('hi, lo', ((-1, 0), (0, -1), (1 << 64, 0), (0, 1 << 64)))
    def test_bad_words(self, hi, lo):
        with pytest.raises(ValueError):
            UInt128(hi, lo)

    @pytest.mark.parametrize('hi, lo', ((1.0, 0), (0, '1'), (None, 0)))
    def test_bad_word_types(self, hi, lo):
        with pytest.raises(TypeError):
            UInt128(hi, lo)

    def test_from_int(self):
        for _ in range(200):
            value = random.getrandbits(128)
            result = UInt128.from_int(value)
            assert result.hi == value >> 64
            assert result.lo == value & MASK64
            assert int(result) == value

    @pytest.mark.parametrize('value', (-1, MOD128, -MOD128, 1 << 200))
    def test_from_int_overflow(self, value, context):
        with pytest.raises(ConversionOverflow):
            UInt128.from_int(value)
        assert context.flags == Flags.OVERFLOW

    def test_from_int_overflow_default(self, quiet_context):
        assert UInt128.from_int(-1) == UInt128.MAX_VALUE
        assert UInt128.from_int(MOD128 + 5) == 5
        assert quiet_context.flags == Flags.OVERFLOW

    def test_from_int_bad_type(self):
        with pytest.raises(TypeError):
            UInt128.from_int(1.0)

    def test_immutable(self):
        value = UInt128(1, 2)
        with pytest.raises(AttributeError):
            value.lo = 3

    def test_hash(self):
        assert hash(UInt128(1, 2)) == hash((1 << 64) + 2)
        assert len({UInt128(0, 5), UInt128.from_int(5)}) == 1

    def test_repr(self):
        assert repr(UInt128(1, 0xbeef)) == (
            'UInt128(hi=0x0000000000000001, lo=0x000000000000beef)')


class TestBytes:

    def test_to_bytes(self):
        value = UInt128(0x0102030405060708, 0x090a0b0c0d0e0f10)
        assert value.to_bytes() == bytes(range(1, 17))
        assert value.to_bytes('big') == bytes(range(1, 17))
        assert value.to_bytes('little') == bytes(range(16, 0, -1))

    def test_from_bytes(self):
        assert UInt128.from_bytes(bytes(range(1, 17))) == UInt128(
            0x0102030405060708, 0x090a0b0c0d0e0f10)
        assert UInt128.from_bytes(bytes(range(1, 17)), 'little') == UInt128(
            0x100f0e0d0c0b0a09, 0x0807060504030201)

    def test_matches_python(self):
        for _ in range(100):
            value = random_uint128()
            for byteorder in ('big', 'little'):
                raw = value.to_bytes(byteorder)
                assert raw == int(value).to_bytes(16, byteorder)
                assert UInt128.from_bytes(raw, byteorder) == value

    @pytest.mark.parametrize('raw', (b'', bytes(15), bytes(17)))
    def test_bad_length(self, raw):
        with pytest.raises(ValueError):
            UInt128.from_bytes(raw)

    def test_bad_byteorder(self):
        with pytest.raises(ValueError):
            UInt128.ONE.to_bytes('native')
        with pytest.raises(ValueError):
            UInt128.from_bytes(bytes(16), 'middle')

    def test_words(self):
        value = UInt128(0x0123456789abcdef, 0xfedcba9876543210)
        assert value.to_words64() == [0xfedcba9876543210, 0x0123456789abcdef]
        assert value.to_words32() == [0x76543210, 0xfedcba98, 0x89abcdef, 0x01234567]


class TestCompare:

    def test_compare(self):
        assert UInt128(1, 0).compare(UInt128(0, MASK64)) == Compare.GREATER_THAN
        assert UInt128(0, MASK64).compare(UInt128(1, 0)) == Compare.LESS_THAN
        assert UInt128(1, 5).compare(UInt128(1, 5)) == Compare.EQUAL
        assert UInt128(1, 4).compare(UInt128(1, 5)) == Compare.LESS_THAN

    def test_random(self):
        for _ in range(500):
            lhs, rhs = random_uint128(), random_uint128()
            a, b = int(lhs), int(rhs)
            assert (lhs < rhs) == (a < b)
            assert (lhs <= rhs) == (a <= b)
            assert (lhs == rhs) == (a == b)
            assert (lhs != rhs) == (a != b)
            assert (lhs >= rhs) == (a >= b)
            assert (lhs > rhs) == (a > b)

    def test_python_ints(self):
        assert UInt128.ZERO > -1
        assert UInt128.MAX_VALUE < MOD128
        assert UInt128.MAX_VALUE != MOD128
        assert 5 == UInt128.from_int(5)
        assert 4 < UInt128.from_int(5)

    def test_plain_tuples_unequal(self):
        value = UInt128.from_int(1)
        assert value != (0, 1)
        assert not value == (0, 1)
        assert (0, 1) != value
        assert not (0, 1) == value
        assert len({value, (0, 1)}) == 2

    def test_int128_unordered(self):
        assert UInt128.ONE != Int128.ONE
        with pytest.raises(TypeError):
            UInt128.ONE < Int128.ONE


class TestAddSubtract:

    def test_carry_out(self):
        assert UInt128.MAX_VALUE.add_with_carry(UInt128.ONE) == (UInt128.ZERO, True)
        assert UInt128.MAX_VALUE + 1 == 0

    @pytest.mark.parametrize('lhs, rhs, answer, carry', (
        # Carry from the low word into a saturated high word
        ((MASK64, 1), (0, MASK64), (0, 0), True),
        ((MASK64, MASK64), (MASK64, MASK64), (MASK64, MASK64 - 1), True),
        ((0, MASK64), (0, 1), (1, 0), False),
        ((MASK64 - 1, MASK64), (0, 1), (MASK64, 0), False),
        ((1 << 63, 0), (1 << 63, 0), (0, 0), True),
        ((0, 0), (0, 0), (0, 0), False),
    ))
    def test_add_with_carry(self, lhs, rhs, answer, carry):
        result = UInt128(*lhs).add_with_carry(UInt128(*rhs))
        assert result == (UInt128(*answer), carry)

    def test_random(self):
        for _ in range(1000):
            lhs, rhs = random_uint128(), random_uint128()
            a, b = int(lhs), int(rhs)
            total, carry = lhs.add_with_carry(rhs)
            assert total == (a + b) % MOD128
            assert carry == (a + b >= MOD128)
            assert lhs + rhs == (a + b) % MOD128
            assert lhs - rhs == (a - b) % MOD128

    def test_negate(self):
        assert -UInt128.ONE == UInt128.MAX_VALUE
        assert -UInt128.ZERO == UInt128.ZERO
        assert UInt128.ZERO - 1 == UInt128.MAX_VALUE
        assert ~UInt128.ZERO == UInt128.MAX_VALUE
        assert ~UInt128(0x0f, MASK64) == UInt128(MASK64 - 0x0f, 0)

    def test_reflected(self):
        assert 1 + UInt128.ONE == 2
        assert 0 - UInt128.ONE == UInt128.MAX_VALUE
        assert 3 * UInt128.from_int(5) == 15


class TestBitwise:

    def test_random(self):
        for _ in range(300):
            lhs, rhs = random_uint128(), random_uint128()
            a, b = int(lhs), int(rhs)
            assert lhs & rhs == a & b
            assert lhs | rhs == a | b
            assert lhs ^ rhs == a ^ b
            assert ~lhs == ~a % MOD128
            assert 0xff & lhs == a & 0xff

    @pytest.mark.parametrize('value, amount, left, right', (
        (UInt128(0, 1), 64, UInt128(1, 0), UInt128(0, 0)),
        (UInt128(1, 0), 64, UInt128(0, 0), UInt128(0, 1)),
        (UInt128(0, 1), 127, UInt128(1 << 63, 0), UInt128(0, 0)),
        (UInt128.MAX_VALUE, 0, UInt128.MAX_VALUE, UInt128.MAX_VALUE),
        (UInt128.MAX_VALUE, 1, UInt128(MASK64, MASK64 - 1), UInt128(MASK64 >> 1, MASK64)),
        (UInt128.MAX_VALUE, 100, UInt128(MASK64 << 36 & MASK64, 0), UInt128(0, (1 << 28) - 1)),
    ))
    def test_shift_values(self, value, amount, left, right):
        assert value << amount == left
        assert value >> amount == right

    def test_shift_random(self):
        for _ in range(500):
            value = random_uint128()
            amount = random.randrange(0, 128)
            assert value << amount == (int(value) << amount) % MOD128
            assert value >> amount == int(value) >> amount

    def test_shift_every_amount(self):
        value = UInt128(0x8000000000000001, 0x8000000000000001)
        for amount in range(128):
            assert value << amount == (int(value) << amount) % MOD128
            assert value >> amount == int(value) >> amount

    @pytest.mark.parametrize('amount', (-1, 128, 1000))
    def test_shift_bad(self, amount):
        with pytest.raises(ValueError):
            UInt128.ONE << amount
        with pytest.raises(ValueError):
            UInt128.ONE >> amount

    def test_shift_bad_type(self):
        with pytest.raises(TypeError):
            UInt128.ONE << 1.0


class TestMultiply:

    def test_values(self):
        assert UInt128.from_int(1 << 64) * (1 << 63) == 1 << 127
        assert UInt128.from_int(1 << 64) * (1 << 64) == 0
        assert UInt128.MAX_VALUE * UInt128.MAX_VALUE == 1
        assert UInt128(0, MASK64) * UInt128(0, MASK64) == MASK64 * MASK64

    def test_random(self):
        for _ in range(1000):
            lhs, rhs = random_uint128(), random_uint128()
            product = (int(lhs) * int(rhs)) % MOD128
            assert lhs * rhs == product
            assert lhs.multiply(rhs) == schoolbook_multiply(lhs, rhs)

    def test_mul_with_overflow(self):
        for _ in range(1000):
            lhs, rhs = random_uint128(), random_uint128()
            exact = int(lhs) * int(rhs)
            assert lhs.mul_with_overflow(rhs) == (exact % MOD128, exact >= MOD128)

    @pytest.mark.parametrize('lhs, rhs, overflow', (
        (0, MOD128 - 1, False),
        (1, MOD128 - 1, False),
        (2, 1 << 127, True),
        (1 << 64, 1 << 63, False),
        (1 << 64, 1 << 64, True),
        ((1 << 64) + 1, (1 << 64) - 1, False),
        ((1 << 64) + 1, 1 << 64, True),
    ))
    def test_mul_with_overflow_edges(self, lhs, rhs, overflow):
        product, result = UInt128.from_int(lhs).mul_with_overflow(rhs)
        assert product == (lhs * rhs) % MOD128
        assert result is overflow

    def test_multiply_checked(self, context):
        assert UInt128.from_int(1 << 64).multiply_checked(1 << 63) == 1 << 127
        with pytest.raises(MultiplyOverflow):
            UInt128.from_int(1 << 64).multiply_checked(1 << 64)

    def test_multiply_checked_default(self, quiet_context):
        assert UInt128.MAX_VALUE.multiply_checked(3) == MOD128 - 3
        assert quiet_context.flags == Flags.OVERFLOW


class TestDivide:

    @pytest.mark.parametrize('dividend, divisor, quotient, remainder', (
        (0, 7, 0, 0),
        (6, 7, 0, 6),
        (7, 7, 1, 0),
        (15, 7, 2, 1),
        (MOD128 - 1, 1, MOD128 - 1, 0),
        (MOD128 - 1, MOD128 - 1, 1, 0),
        (MOD128 - 1, 1 << 64, MASK64, MASK64),
        (1 << 127, 3, (1 << 127) // 3, (1 << 127) % 3),
    ))
    def test_values(self, dividend, divisor, quotient, remainder):
        lhs = UInt128.from_int(dividend)
        assert lhs.divrem(divisor) == (quotient, remainder)
        assert divmod(lhs, divisor) == (quotient, remainder)
        assert lhs.divide(divisor) == quotient
        assert lhs // divisor == quotient
        assert lhs.remainder(divisor) == remainder
        assert lhs % divisor == remainder

    def test_random(self):
        for _ in range(500):
            lhs = random_uint128()
            rhs = random_uint128() or UInt128.ONE
            quotient, remainder = lhs.divrem(rhs)
            assert quotient == int(lhs) // int(rhs)
            assert remainder == int(lhs) % int(rhs)
            assert remainder < rhs
            assert quotient * rhs + remainder == lhs

    def test_reflected(self):
        assert 100 // UInt128.from_int(7) == 14
        assert 100 % UInt128.from_int(7) == 2
        assert divmod(100, UInt128.from_int(7)) == (14, 2)

    def test_divide_by_zero(self, context):
        with pytest.raises(DivideByZero):
            UInt128.ONE.divrem(0)
        with pytest.raises(ZeroDivisionError):
            UInt128.ONE // UInt128.ZERO
        with pytest.raises(ZeroDivisionError):
            UInt128.ONE % 0

    def test_divide_by_zero_default(self, quiet_context):
        value = UInt128.from_int(12345)
        assert value.divrem(0) == (0, value)
        assert value.divide(0) == 0
        assert value.remainder(0) == value
        assert quiet_context.flags == Flags.DIV_BY_ZERO

    def test_bad_operand(self):
        with pytest.raises(TypeError):
            UInt128.ONE.divide(1.0)


class TestText:

    @pytest.mark.parametrize('value, spec, answer', (
        (0, None, '0'),
        (0, 'n', '0'),
        (0, 'x', '00'),
        (1, 'X4', '0001'),
        (MOD128 - 1, None, '340282366920938463463374607431768211455'),
        (MOD128 - 1, 'N', '340,282,366,920,938,463,463,374,607,431,768,211,455'),
        (MOD128 - 1, 'x', 'ff' * 16),
        (1 << 64, 'X', '010000000000000000'),
    ))
    def test_to_string(self, value, spec, answer):
        value = UInt128.from_int(value)
        assert value.to_string(spec) == answer
        assert format(value, spec or '') == answer
        if not spec:
            assert str(value) == answer

    def test_f_string(self):
        value = UInt128.from_int(0xbeef)
        assert f'{value}' == '48879'
        assert f'{value:X}' == 'BEEF'
        assert f'{value:x8}' == '0000beef'

    @pytest.mark.parametrize('spec', ('q', 'xx', 'x-1', 'd2', 'nN', ' x', '08x'))
    def test_bad_spec(self, spec):
        with pytest.raises(FormatError):
            UInt128.ONE.to_string(spec)

    def test_round_trip_random(self):
        for _ in range(200):
            value = random_uint128()
            assert UInt128.parse(value.to_string()) == value
            assert UInt128.parse(value.to_string('N')) == value
            assert UInt128.parse('0x' + value.to_string('x')) == value
            assert UInt128.parse(value.to_string('X'), radix=16) == value
            assert str(value) == str(int(value))

    @pytest.mark.parametrize('string, answer', (
        ('0', 0),
        ('-0', 0),
        ('1,000', 1000),
        ('340282366920938463463374607431768211455', MOD128 - 1),
        ('0xffffffffffffffffffffffffffffffff', MOD128 - 1),
        ('x1', 1),
    ))
    def test_parse(self, string, answer):
        assert UInt128.parse(string) == answer
        assert UInt128.try_parse(string) == answer

    @pytest.mark.parametrize('string', (
        '', '-1', '340282366920938463463374607431768211456', '0x', '1 ', 'abc',
        '0x' + '1' * 33,
    ))
    def test_parse_bad(self, string):
        with pytest.raises(FormatError):
            UInt128.parse(string)
        assert UInt128.try_parse(string) is None

    def test_parse_radix(self):
        assert UInt128.parse('ff', radix=16) == 255
        assert UInt128.parse('10', 16) == 16
        with pytest.raises(FormatError):
            UInt128.parse('-1', radix=16)
        with pytest.raises(ValueError):
            UInt128.parse('10', radix=8)

    def test_parse_bad_type(self):
        with pytest.raises(TypeError):
            UInt128.parse(b'1')

    def test_float(self):
        assert float(UInt128.ZERO) == 0.0
        assert float(UInt128.MAX_VALUE) == 2.0 ** 128
        for _ in range(100):
            value = random_uint128()
            assert float(value) == float(int(value))
