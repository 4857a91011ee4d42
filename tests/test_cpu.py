import pytest

from famicore import cpu as cpu_module
from famicore.cpu import CPU, StatusFlag
from famicore.opcodes import decode

START = 0x8000


class RamBus:
    def __init__(self):
        self.memory = bytearray(0x10000)

    def read(self, address):
        return self.memory[address]

    def write(self, address, data):
        self.memory[address] = data

    def set_word(self, address, value):
        self.memory[address] = value & 0xFF
        self.memory[address + 1] = value >> 8


def make_cpu(program=b"", start=START):
    bus = RamBus()
    bus.memory[start:start + len(program)] = bytes(program)
    bus.set_word(cpu_module.RST_VECTOR, start)
    cpu = CPU(bus)
    cpu.reset()
    return cpu, bus


def step(cpu):
    while cpu.cycles:
        cpu.tick()
    cpu.tick()


def run(cpu, count):
    for _ in range(count):
        step(cpu)


def test_reset_state():
    cpu, _ = make_cpu()
    regs = cpu.registers
    assert regs.pc == START
    assert regs.sp == 0xFD
    assert regs.p == StatusFlag.U | StatusFlag.I
    assert cpu.cycles == cpu_module.INT_CYCLES
    assert (regs.a, regs.x, regs.y) == (0, 0, 0)


@pytest.mark.parametrize("value", [0x00, 0x42, 0x80, 0xFF])
def test_lda_immediate_sets_flags(value):
    cpu, _ = make_cpu([0xA9, value])
    step(cpu)
    assert cpu.registers.a == value
    assert bool(cpu.registers.p & StatusFlag.Z) == (value == 0)
    assert bool(cpu.registers.p & StatusFlag.N) == bool(value & 0x80)


def test_sta_writes_accumulator_to_memory():
    cpu, bus = make_cpu([0xA9, 0x42, 0x8D, 0x00, 0x02])
    run(cpu, 2)
    assert bus.memory[0x0200] == 0x42


def test_tax_copies_accumulator():
    cpu, _ = make_cpu([0xA9, 0x37, 0xAA])
    run(cpu, 2)
    assert cpu.registers.x == cpu.registers.a == 0x37


def test_pha_pla_round_trip():
    cpu, _ = make_cpu([0xA9, 0x5A, 0x48, 0xA9, 0x00, 0x68])
    run(cpu, 4)
    assert cpu.registers.a == 0x5A
    assert cpu.registers.sp == 0xFD


@pytest.mark.parametrize("a,n", [(0x10, 0x20), (0x7F, 0x01), (0xF0, 0x30), (0x00, 0x00)])
def test_adc_then_sbc_restores_accumulator(a, n):
    cpu, _ = make_cpu([0xA9, a, 0x18, 0x69, n, 0x38, 0xE9, n])
    run(cpu, 5)
    assert cpu.registers.a == a


def test_adc_signed_overflow_sets_v():
    cpu, _ = make_cpu([0xA9, 0x50, 0x18, 0x69, 0x50])
    run(cpu, 3)
    assert cpu.registers.a == 0xA0
    flags = cpu.registers.p & (StatusFlag.V | StatusFlag.C | StatusFlag.N)
    assert flags == StatusFlag.V | StatusFlag.N


@pytest.mark.parametrize("a,operand", [(0x10, 0x10), (0x20, 0x10), (0x10, 0x20)])
def test_cmp_flags(a, operand):
    cpu, _ = make_cpu([0xA9, a, 0xC9, operand])
    run(cpu, 2)
    assert bool(cpu.registers.p & StatusFlag.C) == (a >= operand)
    assert bool(cpu.registers.p & StatusFlag.Z) == (a == operand)
    assert cpu.registers.a == a


@pytest.mark.parametrize("value", [0x81, 0x01, 0x80, 0xFF])
def test_asl_then_ror_restores_accumulator(value):
    cpu, _ = make_cpu([0xA9, value, 0x0A, 0x6A])
    run(cpu, 2)
    assert bool(cpu.registers.p & StatusFlag.C) == bool(value & 0x80)
    step(cpu)
    assert cpu.registers.a == value


def test_inx_wraps_to_zero():
    cpu, _ = make_cpu([0xA2, 0xFF, 0xE8])
    run(cpu, 2)
    assert cpu.registers.x == 0
    assert cpu.registers.p & StatusFlag.Z


def test_php_pushes_break_and_unused_plp_masks_them():
    cpu, bus = make_cpu([0x08, 0x28])
    step(cpu)
    pushed = bus.memory[0x01FD]
    assert pushed & (StatusFlag.B | StatusFlag.U) == StatusFlag.B | StatusFlag.U
    step(cpu)
    assert not cpu.registers.p & (StatusFlag.B | StatusFlag.U)
    assert cpu.registers.p & StatusFlag.I


def test_jsr_rts_returns_after_call():
    cpu, bus = make_cpu([0x20, 0x00, 0x90])
    bus.memory[0x9000] = 0x60
    step(cpu)
    assert cpu.registers.pc == 0x9000
    step(cpu)
    assert cpu.registers.pc == START + decode(0x20).length
    assert cpu.registers.sp == 0xFD


def test_jmp_indirect_page_wrap():
    cpu, bus = make_cpu([0x6C, 0xFF, 0x02])
    bus.memory[0x02FF] = 0x34
    bus.memory[0x0200] = 0x12
    bus.memory[0x0300] = 0x56
    step(cpu)
    assert cpu.registers.pc == 0x1234


def test_zeropage_x_wraps_within_page():
    cpu, bus = make_cpu([0xA2, 0x20, 0xB5, 0xF0])
    bus.memory[0x0010] = 0x99
    bus.memory[0x0110] = 0x11
    run(cpu, 2)
    assert cpu.registers.a == 0x99


def test_absolute_x_page_cross_costs_a_cycle():
    no_cross, bus = make_cpu([0xA2, 0x01, 0xBD, 0x00, 0x02])
    run(no_cross, 2)
    cross, _ = make_cpu([0xA2, 0x01, 0xBD, 0xFF, 0x02])
    run(cross, 2)
    assert cross.cycles == no_cross.cycles + 1


def test_branch_taken_costs_a_cycle_and_moves_pc():
    taken, _ = make_cpu([0xA9, 0x00, 0xF0, 0x02])
    run(taken, 2)
    not_taken, _ = make_cpu([0xA9, 0x01, 0xF0, 0x02])
    run(not_taken, 2)
    assert taken.cycles == not_taken.cycles + 1
    assert taken.registers.pc == not_taken.registers.pc + 2


def test_brk_and_rti():
    cpu, bus = make_cpu([0x00])
    bus.set_word(cpu_module.IRQ_VECTOR, 0x9000)
    bus.memory[0x9000] = 0x40
    step(cpu)
    assert cpu.registers.pc == 0x9000
    assert cpu.registers.sp == 0xFA
    assert bus.memory[0x01FD] == 0x80
    assert bus.memory[0x01FC] == 0x02
    assert bus.memory[0x01FB] & StatusFlag.B
    step(cpu)
    assert cpu.registers.pc == START + 2
    assert cpu.registers.sp == 0xFD


def test_nmi_jumps_to_vector_and_saves_pc():
    cpu, bus = make_cpu([0xEA])
    bus.set_word(cpu_module.NMI_VECTOR, 0xA000)
    step(cpu)
    return_pc = cpu.registers.pc
    cpu.nmi()
    assert cpu.registers.pc == 0xA000
    assert bus.memory[0x01FD] == return_pc >> 8
    assert bus.memory[0x01FC] == return_pc & 0xFF
    assert cpu.registers.p & StatusFlag.I


def test_irq_masked_by_interrupt_disable():
    cpu, bus = make_cpu([0x58])
    bus.set_word(cpu_module.IRQ_VECTOR, 0xB000)
    cpu.irq()
    assert cpu.registers.pc == START
    step(cpu)
    cpu.irq()
    assert cpu.registers.pc == 0xB000


def test_dma_even_cycle_stalls_512():
    cpu, _ = make_cpu([0xEA])
    cpu.dma()
    for _ in range(512):
        cpu.tick()
    assert cpu.cycles == cpu_module.INT_CYCLES
    assert cpu.registers.pc == START
    cpu.tick()
    assert cpu.cycles == cpu_module.INT_CYCLES - 1


def test_dma_odd_cycle_stalls_one_more():
    cpu, _ = make_cpu([0xEA])
    cpu.tick()
    cpu.dma()
    for _ in range(513):
        cpu.tick()
    assert cpu.cycles == cpu_module.INT_CYCLES - 1
    cpu.tick()
    assert cpu.cycles == cpu_module.INT_CYCLES - 2


def test_lax_loads_a_and_x():
    cpu, bus = make_cpu([0xA7, 0x40])
    bus.memory[0x0040] = 0x6B
    step(cpu)
    assert cpu.registers.a == 0x6B
    assert cpu.registers.x == 0x6B


def test_isc_increments_memory():
    cpu, bus = make_cpu([0xEF, 0x00, 0x03])
    bus.memory[0x0300] = 0x41
    step(cpu)
    assert bus.memory[0x0300] == 0x41 + 1


def test_halt_opcode_logs_error(capsys):
    cpu, _ = make_cpu([0x02])
    step(cpu)
    assert "[ERROR]: CPU: halt! opcode: 02" in capsys.readouterr().err