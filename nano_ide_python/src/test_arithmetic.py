import pytest
import architecture as arch
import arithmetic as arith

def flag(cc, i):
    return arch.get_bit_in_word_le(cc, i) == 1

def test_limits():
    assert arith.limit16(0x12345) == 0x2345
    assert arith.limit8(256 + 7) == 7
    assert arith.limit_pc(70) == 6
    assert arith.wrap(-1, 32) == 31
    assert arith.wrap(64, 64) == 0

def test_formatting():
    assert arith.word_to_hex4(0xBEEF) == "beef"
    assert arith.word_to_hex2(0x1FF) == "ff"
    assert arith.word_to_bin6(70) == "000110"
    assert arith.word_to_bin(5, 8) == "00000101"

@pytest.mark.parametrize("xs, ok", [
    ("1000000000000001", True),
    ("0000000000000000", True),
    ("100000000000000", False),
    ("0b00000000000001", False),
    ("1_00000000000001", False),
    ("+000000000000001", False),
    ("1000000000000002", False),
])
def test_is_bit_string(xs, ok):
    assert arith.is_bit_string(xs, 16) == ok

def test_split_instr():
    op, d, a, b, k, x = arch.split_instr(0xD5A3)
    assert (op, d, a, b) == (0xD, 0x5, 0xA, 0x3)
    assert k == 0xA3
    assert x == 0x5A3

def test_show_instr():
    assert arch.show_instr(0x1012) == "add r0,r1,r2"
    assert arch.show_instr(0x6310) == "rsh r3,r1"
    assert arch.show_instr(0xDC03) == "brc eq,0x03"
    assert arch.show_instr(0xE520) == "brp no,r2"
    assert arch.show_instr(0x0000) == "halt"

def test_add_widened():
    primary, cc = arith.op_add(255, 1)
    assert primary == 0
    assert flag(cc, arch.bit_ze)
    assert flag(cc, arch.bit_ca)
    assert not flag(cc, arch.bit_of)

def test_add_operands_are_truncated():
    primary, cc = arith.op_add(256 + 1, 1)
    assert primary == 2
    assert not flag(cc, arch.bit_ca)

def test_add_overflow_negative():
    # -128 + -1
    primary, cc = arith.op_add(0x80, 0xFF)
    assert primary == 0x7F
    assert flag(cc, arch.bit_ca)
    assert flag(cc, arch.bit_of)

def test_sub_equal_operands():
    primary, cc = arith.op_sub(9, 9)
    assert primary == 0
    assert flag(cc, arch.bit_ze)
    assert flag(cc, arch.bit_nc)
    assert flag(cc, arch.bit_no)

def test_alu_flags_stay_in_low_byte():
    for f in (arith.op_add, arith.op_sub, arith.op_and, arith.op_nor, arith.op_xor):
        primary, cc = f(0xA5, 0x3C)
        assert cc >> 8 == 0
    primary, cc = arith.op_rsh(0xA5)
    assert primary == 0x52
    assert cc >> 8 == 0

def test_cmp_flags_stay_in_high_byte():
    cc = arith.op_cmp(7, 3)
    assert cc & 0xFF == 0
    assert flag(cc, arch.bit_gr)
    assert flag(cc, arch.bit_ge)
    assert flag(cc, arch.bit_ne)
    assert not flag(cc, arch.bit_us)
    assert flag(cc, arch.bit_tr)

def test_show_cc():
    cc = arith.op_cmp(1, 1)
    assert arch.show_cc(cc) == "LE GE EQ TR"
