import pytest
import common
import architecture as arch
import arrbuf as ab
import emulator as em
from emulator import EmulatorState

def instr(op, d=0, a=0, b=0):
    return (op << 12) | (d << 8) | (a << 4) | b

def instr_k(op, d, k):
    return (op << 12) | (d << 8) | (k & 0xFF)

def load_rom(es, words):
    for i, w in enumerate(words):
        es.ab.write_rom(es, i, w)

def step(es, words=None):
    if words is not None:
        load_rom(es, words)
    es.mode = em.ManualStep
    em.cycle(es)

@pytest.fixture
def es(monkeypatch):
    monkeypatch.setattr(common.mode, "show_err", False)
    return EmulatorState(ab)

def test_emulator_init(es):
    assert es is not None
    assert hasattr(es, 'ab')
    assert len(es.vec) == ab.STATE_VEC_SIZE
    assert es.mode == em.Setup
    assert es.pc.get() == 0
    assert em.instr_count(es) == 0
    flags = es.flg.snapshot()
    assert flags[arch.bit_tr] is True
    assert not any(flags[:arch.bit_tr])
    trace = em.trace_lines(es)
    assert len(trace) == em.trace_log_size
    assert trace[-1] == "executed 0 instructions"

# Storage

def test_store_indices_wrap(es):
    es.reg.put(9, 7)
    es.rom.put(65, 0x1234)
    es.ram.put(-1, 3)
    es.flg.put(16, True)
    assert es.reg.snapshot()[1] == 7
    assert es.rom.snapshot()[1] == 0x1234
    assert es.ram.snapshot()[31] == 3
    assert es.flg.get(0) is True

def test_store_values_truncate(es):
    es.reg.put(0, 256 + 5)
    es.ram.put(0, 300)
    es.rom.put(0, 0x12345)
    assert es.reg.get(0) == 5
    assert es.ram.get(0) == 44
    assert es.rom.get(0) == 0x2345

def test_store_access_log(es):
    es.reg.put(2, 1)
    es.reg.get(5)
    assert es.reg.last_write == 2
    assert es.reg.last_read == 5
    em.clear_access_logs(es)
    assert es.reg.last_write is None
    assert es.reg.last_read is None

def test_pc_wraps(es):
    es.pc.put(70)
    assert es.pc.get() == 6

# ALU instructions

def test_add_carry(es):
    es.reg.put(1, 200)
    es.reg.put(2, 100)
    step(es, [instr(arch.op_add, 0, 1, 2)])
    assert es.reg.get(0) == 44
    assert es.flg.get(arch.bit_ca)
    assert not es.flg.get(arch.bit_nc)
    assert not es.flg.get(arch.bit_of)
    assert es.flg.get(arch.bit_no)
    assert not es.flg.get(arch.bit_ze)
    assert es.flg.get(arch.bit_nz)
    assert es.flg.get(arch.bit_ev)
    assert not es.flg.get(arch.bit_od)

def test_add_overflow(es):
    es.reg.put(1, 100)
    es.reg.put(2, 100)
    step(es, [instr(arch.op_add, 0, 1, 2)])
    assert es.reg.get(0) == 200
    assert not es.flg.get(arch.bit_ca)
    assert es.flg.get(arch.bit_of)
    assert not es.flg.get(arch.bit_no)

def test_add_zero(es):
    step(es, [instr(arch.op_add, 3, 4, 5)])
    assert es.reg.get(3) == 0
    assert es.flg.get(arch.bit_ze)
    assert not es.flg.get(arch.bit_nz)

def test_sub(es):
    es.reg.put(1, 5)
    es.reg.put(2, 3)
    step(es, [instr(arch.op_sub, 0, 1, 2)])
    assert es.reg.get(0) == 2
    assert not es.flg.get(arch.bit_ca)
    assert not es.flg.get(arch.bit_of)

def test_sub_borrow(es):
    es.reg.put(1, 3)
    es.reg.put(2, 5)
    step(es, [instr(arch.op_sub, 0, 1, 2)])
    assert es.reg.get(0) == 254
    assert es.flg.get(arch.bit_ca)
    assert not es.flg.get(arch.bit_of)

def test_sub_overflow(es):
    es.reg.put(1, 0x80)
    es.reg.put(2, 1)
    step(es, [instr(arch.op_sub, 0, 1, 2)])
    assert es.reg.get(0) == 127
    assert es.flg.get(arch.bit_of)
    assert es.flg.get(arch.bit_od)

@pytest.mark.parametrize("op, expected", [
    (arch.op_and, 0b00001000),
    (arch.op_nor, 0b11110001),
    (arch.op_xor, 0b00000110),
])
def test_logic_ops(es, op, expected):
    es.reg.put(1, 0b1100)
    es.reg.put(2, 0b1010)
    for i in (arch.bit_ca, arch.bit_nc, arch.bit_of, arch.bit_no):
        es.flg.put(i, True)
    step(es, [instr(op, 0, 1, 2)])
    assert es.reg.get(0) == expected
    for i in (arch.bit_ca, arch.bit_nc, arch.bit_of, arch.bit_no):
        assert not es.flg.get(i)

def test_rsh(es):
    es.reg.put(1, 7)
    es.flg.put(arch.bit_ca, True)
    step(es, [instr(arch.op_rsh, 0, 1)])
    assert es.reg.get(0) == 3
    assert es.flg.get(arch.bit_od)
    assert not es.flg.get(arch.bit_ca)
    assert not es.flg.get(arch.bit_nc)

def test_alu_touches_only_dest_and_alu_flags(es):
    es.reg.put(1, 9)
    es.reg.put(2, 4)
    es.ram.put(0, 17)
    es.flg.put(arch.bit_eq, True)
    regs = es.reg.snapshot()
    ram = es.ram.snapshot()
    cmp_flags = es.flg.snapshot()[8:]
    step(es, [instr(arch.op_sub, 3, 1, 2)])
    after = es.reg.snapshot()
    assert after[3] == 5
    assert after[:3] == regs[:3] and after[4:] == regs[4:]
    assert es.ram.snapshot() == ram
    assert es.flg.snapshot()[8:] == cmp_flags

def test_cmp(es):
    es.reg.put(1, 3)
    es.reg.put(2, 5)
    es.flg.put(arch.bit_ze, True)
    regs = es.reg.snapshot()
    step(es, [instr(arch.op_cmp, 0, 1, 2)])
    flags = es.flg.snapshot()
    assert flags[8:] == [False, True, True, False, False, True, False, True]
    assert flags[arch.bit_ze]
    assert es.reg.snapshot() == regs

def test_cmp_equal(es):
    es.reg.put(1, 42)
    es.reg.put(2, 42)
    step(es, [instr(arch.op_cmp, 0, 1, 2)])
    assert es.flg.get(arch.bit_eq)
    assert es.flg.get(arch.bit_le)
    assert es.flg.get(arch.bit_ge)
    assert not es.flg.get(arch.bit_ne)

# Data movement

def test_ldi(es):
    step(es, [instr_k(arch.op_ldi, 3, 0xAB)])
    assert es.reg.get(3) == 0xAB
    assert es.reg.last_write == 3

def test_register_field_wraps(es):
    step(es, [instr_k(arch.op_ldi, 9, 5)])
    assert es.reg.get(1) == 5

def test_ldm(es):
    es.ram.put(4, 9)
    step(es, [instr_k(arch.op_ldm, 2, 4)])
    assert es.reg.get(2) == 9
    assert es.ram.last_read == 4

def test_stm_address_wraps(es):
    es.reg.put(1, 77)
    step(es, [instr_k(arch.op_stm, 1, 35)])
    assert es.ram.get(3) == 77
    assert es.ram.last_write == 3

def test_ldp(es):
    es.reg.put(1, 6)
    es.ram.put(6, 123)
    step(es, [instr(arch.op_ldp, 0, 1)])
    assert es.reg.get(0) == 123

def test_stp(es):
    es.reg.put(0, 10)
    es.reg.put(1, 55)
    step(es, [instr(arch.op_stp, 0, 1)])
    assert es.ram.get(10) == 55

# Control flow

def test_brc_not_taken(es):
    step(es, [instr_k(arch.op_brc, arch.bit_eq, 20)])
    assert es.pc.get() == 1

def test_brc_taken_wraps_target(es):
    es.flg.put(arch.bit_eq, True)
    step(es, [instr_k(arch.op_brc, arch.bit_eq, 200)])
    assert es.pc.get() == 200 % 64

def test_brc_always_true_flag(es):
    step(es, [instr_k(arch.op_brc, arch.bit_tr, 12)])
    assert es.pc.get() == 12

def test_brp(es):
    es.reg.put(2, 70)
    es.flg.put(arch.bit_nz, True)
    step(es, [instr(arch.op_brp, arch.bit_nz, 2)])
    assert es.pc.get() == 6

def test_jmp_wraps(es):
    step(es, [0xF046])
    assert es.pc.get() == 6

def test_halt(es):
    step(es, [instr(arch.op_halt)])
    assert es.mode == em.Setup
    assert es.pc.get() == 1
    assert em.instr_count(es) == 1

def test_trace_line(es):
    step(es, [instr_k(arch.op_ldi, 0, 5)])
    assert em.trace_lines(es)[-1] == "000000 ldi r0,0x05"

def test_trace_log_is_bounded(es):
    load_rom(es, [instr_k(arch.op_ldi, 0, i) for i in range(10)])
    es.mode = em.ManualStep
    for _ in range(10):
        em.cycle(es)
    trace = em.trace_lines(es)
    assert len(trace) == em.trace_log_size
    assert trace[0] == "000011 ldi r0,0x03"
    assert trace[-1] == "001001 ldi r0,0x09"

def test_unknown_opcode(es, monkeypatch):
    monkeypatch.setattr(em, "limit_primary_code", 0)
    step(es, [instr_k(arch.op_ldi, 0, 5)])
    assert es.reg.get(0) == 0
    assert es.pc.get() == 1
    assert em.instr_count(es) == 1
    assert em.trace_lines(es)[-1] == "000000 unknown opcode"

# Resets

def test_program_reset_twice(es):
    load_rom(es, [instr_k(arch.op_ldi, 0, 5)])
    step(es)
    em.program_reset(es)
    once = list(es.vec)
    assert em.trace_lines(es)[-1] == "executed 1 instructions"
    em.program_reset(es)
    assert es.vec == once
    assert em.trace_lines(es)[-1] == "executed 0 instructions"

def test_program_reset_keeps_rom(es):
    load_rom(es, [0x1234])
    es.reg.put(0, 5)
    es.out.put(1, 3)
    em.program_reset(es)
    assert es.rom.get(0) == 0x1234
    assert es.reg.get(0) == 0
    assert es.out.get(1) == 0
    assert es.flg.get(arch.bit_tr)

def test_full_reset_clears_rom(es):
    load_rom(es, [0x1234])
    em.full_reset(es)
    assert es.rom.snapshot() == [0] * arch.rom_size
    assert es.mode == em.Setup

# Mode controller

def test_step_from_setup_enters_manual(es):
    assert em.request_step(es)
    assert es.mode == em.ManualStep
    assert em.instr_count(es) == 0

def test_step_in_manual_executes(es):
    load_rom(es, [instr_k(arch.op_ldi, 0, 5)])
    em.request_manual_mode(es)
    assert em.request_step(es)
    assert es.reg.get(0) == 5
    assert em.instr_count(es) == 1

def test_step_demotes_automatic(es):
    assert em.request_automatic_mode(es, 5)
    assert es.mode == em.Automatic(5)
    assert em.request_step(es)
    assert es.mode == em.ManualStep
    assert em.instr_count(es) == 0

def test_rejected_commands(es):
    em.request_manual_mode(es)
    assert not em.request_manual_mode(es)
    assert not em.request_automatic_mode(es)
    assert not em.run_tick(es)
    assert es.mode == em.ManualStep

def test_clear_commands_accepted_in_any_mode(es):
    em.request_automatic_mode(es)
    assert em.clear(es)
    assert es.mode == em.Setup
    em.request_manual_mode(es)
    assert em.clear_all(es)
    assert es.mode == em.Setup

def test_set_input(es):
    em.request_automatic_mode(es)
    em.set_input(es, 9, 300)
    assert es.inp.snapshot()[1] == 44

def test_end_to_end(es):
    load_rom(es, [
        0b1000000000000101,  # ldi r0,5
        0b1000000100000011,  # ldi r1,3
        0b0001000000000001,  # add r0,r0,r1
        0b0000000000000000,  # halt
    ])
    em.request_automatic_mode(es)
    icount = em.main_run(es, 100)
    assert icount == 4
    assert es.reg.get(0) == 8
    assert es.mode == em.Setup
    assert em.instr_count(es) == 4
    assert em.trace_lines(es)[-2] == "000010 add r0,r0,r1"
    assert em.trace_lines(es)[-1] == "000011 halt"

def test_main_run_limit(es):
    load_rom(es, [instr(arch.op_jmp)])
    em.request_automatic_mode(es)
    assert em.main_run(es, 10) == 10
    assert es.mode.kind == em.MODE_AUTOMATIC
    assert em.instr_count(es) == 10

def test_cycle_is_deterministic(monkeypatch):
    monkeypatch.setattr(common.mode, "show_err", False)
    words = [instr_k(arch.op_ldi, 1, 3), instr(arch.op_add, 2, 1, 1), instr(arch.op_stp, 1, 2)]
    results = []
    for _ in range(2):
        es = EmulatorState(ab)
        load_rom(es, words)
        es.mode = em.ManualStep
        for _ in range(3):
            em.cycle(es)
        results.append((list(es.vec), em.trace_lines(es)))
    assert results[0] == results[1]

def test_modified_registers_include_zero_writes(es, capsys):
    load_rom(es, [instr_k(arch.op_ldi, 2, 0), instr_k(arch.op_ldi, 5, 7), instr(arch.op_halt)])
    em.request_automatic_mode(es)
    em.main_run(es, 10)
    em.dump_modified_registers_summary(es)
    out = capsys.readouterr().out
    assert "r2: 00 (0)" in out
    assert "r5: 07 (7)" in out
    assert "r0:" not in out

def test_reset_forgets_modified_registers(es, capsys):
    es.reg.put(3, 0)
    assert es.reg.touched == {3}
    em.clear(es)
    assert es.reg.touched == set()
    em.dump_modified_registers_summary(es)
    assert "No Registers Modified" in capsys.readouterr().out
