"""The 6502 processor core: registers, addressing modes, instructions and interrupts."""

from dataclasses import dataclass
from enum import Enum, IntFlag

from .logger import LogLevel, log_f
from .opcodes import INSTRUCTIONS, AddressingMode

__all__ = [
    "StatusFlag",
    "InterruptType",
    "Registers",
    "CPU",
    "INT_CYCLES",
    "NMI_VECTOR",
    "RST_VECTOR",
    "IRQ_VECTOR",
]

INT_CYCLES = 7
NMI_VECTOR = 0xFFFA
RST_VECTOR = 0xFFFC
IRQ_VECTOR = 0xFFFE

DMA_CYCLES = 512  # 256 reads + 256 writes


class StatusFlag(IntFlag):
    """Bits of the processor status register."""

    C = 1 << 0
    Z = 1 << 1
    I = 1 << 2  # noqa: E741
    D = 1 << 3
    B = 1 << 4
    U = 1 << 5
    V = 1 << 6
    N = 1 << 7


class InterruptType(Enum):
    """Sources of an interrupt sequence."""

    RST = 0
    BRK = 1
    NMI = 2
    IRQ = 3


@dataclass
class Registers:
    """Programmer-visible registers."""

    a: int = 0
    x: int = 0
    y: int = 0
    p: int = 0
    sp: int = 0
    pc: int = 0


class CPU:
    """A cycle-counted 6502 attached to a bus offering ``read`` and ``write``."""

    def __init__(self, bus):
        self._bus = bus
        self.registers = Registers()
        self._opcode = 0
        self._mode = AddressingMode.IMPLIED
        self._address = 0
        self._cycles = 0
        self._dma_cycles = 0
        self._total_cycles = 0

        modes = {
            AddressingMode.IMPLIED: self._read_implied,
            AddressingMode.IMMEDIATE: self._read_immediate,
            AddressingMode.ABSOLUTE: self._read_absolute,
            AddressingMode.ABSOLUTE_X: self._read_absolute_x,
            AddressingMode.ABSOLUTE_Y: self._read_absolute_y,
            AddressingMode.RELATIVE: self._read_relative,
            AddressingMode.ZEROPAGE: self._read_zeropage,
            AddressingMode.ZEROPAGE_X: self._read_zeropage_x,
            AddressingMode.ZEROPAGE_Y: self._read_zeropage_y,
            AddressingMode.INDIRECT: self._read_indirect,
            AddressingMode.INDEXED_INDIRECT: self._read_indexed_indirect,
            AddressingMode.INDIRECT_INDEXED: self._read_indirect_indexed,
        }
        self._dispatch = tuple(
            (
                modes[ins.mode],
                getattr(self, f"_op_{ins.mnemonic.lower()}"),
                ins.mode,
                ins.cycles,
            )
            for ins in INSTRUCTIONS
        )

    # Introspection

    @property
    def cycles(self) -> int:
        """Cycles left before the next instruction is fetched."""
        return self._cycles

    @property
    def total_cycles(self) -> int:
        return self._total_cycles

    # Public control

    def reset(self) -> None:
        regs = self.registers
        regs.a = regs.x = regs.y = 0
        regs.p = StatusFlag.U
        regs.sp = 0xFD
        self._opcode = 0
        self._address = 0
        self._cycles = 0
        self._dma_cycles = 0
        self._total_cycles = 0
        self._interrupt(InterruptType.RST)

    def irq(self) -> None:
        self._interrupt(InterruptType.IRQ)

    def nmi(self) -> None:
        self._interrupt(InterruptType.NMI)

    def tick(self) -> None:
        """Advance one CPU cycle, executing a whole instruction on its first cycle."""
        self._total_cycles += 1

        if self._dma_cycles:
            self._dma_cycles -= 1
            return

        if self._cycles:
            self._cycles -= 1
            return

        regs = self.registers
        self._opcode = self._read(regs.pc)
        regs.pc = (regs.pc + 1) & 0xFFFF
        read_address, execute, mode, cycles = self._dispatch[self._opcode]
        self._mode = mode
        self._cycles = cycles
        self._address = 0
        am_cycle = read_address()
        op_cycle = execute()
        if am_cycle and op_cycle:
            self._cycles += 1
        self._cycles -= 1

    def dma(self) -> None:
        """Stall for an OAM DMA transfer, one extra cycle on odd cycles."""
        self._dma_cycles = DMA_CYCLES
        if self._total_cycles & 1:
            self._dma_cycles += 1

    # Internals

    def _interrupt(self, kind: InterruptType) -> None:
        if kind is InterruptType.IRQ and self._flag(StatusFlag.I):
            return

        regs = self.registers
        if kind is InterruptType.BRK:
            self._push_word(regs.pc)
            regs.pc = (regs.pc + 1) & 0xFFFF
            self._push(regs.p | StatusFlag.B | StatusFlag.U)
        elif kind is not InterruptType.RST:
            self._push_word(regs.pc)
            self._push(regs.p | StatusFlag.U)

        self._set_flag(StatusFlag.I, True)

        if kind is InterruptType.RST:
            vector = RST_VECTOR
        elif kind is InterruptType.NMI:
            vector = NMI_VECTOR
        else:
            vector = IRQ_VECTOR

        regs.pc = self._read_word(vector)
        self._cycles = INT_CYCLES

    def _set_flag(self, flag: StatusFlag, value) -> None:
        regs = self.registers
        regs.p = (regs.p | flag) if value else (regs.p & ~flag & 0xFF)

    def _flag(self, flag: StatusFlag) -> bool:
        return bool(self.registers.p & flag)

    def _carry(self) -> int:
        return 1 if self._flag(StatusFlag.C) else 0

    def _set_zn(self, value: int) -> None:
        self._set_flag(StatusFlag.Z, value == 0)
        self._set_flag(StatusFlag.N, value & 0x80)

    def _read(self, address: int) -> int:
        return self._bus.read(address & 0xFFFF)

    def _read_word(self, address: int) -> int:
        return self._read(address) | (self._read((address + 1) & 0xFFFF) << 8)

    def _write(self, address: int, data: int) -> None:
        self._bus.write(address & 0xFFFF, data & 0xFF)

    def _push(self, data: int) -> None:
        regs = self.registers
        self._write(0x100 | regs.sp, data)
        regs.sp = (regs.sp - 1) & 0xFF

    def _push_word(self, data: int) -> None:
        self._push((data >> 8) & 0xFF)
        self._push(data & 0xFF)

    def _pop(self) -> int:
        regs = self.registers
        regs.sp = (regs.sp + 1) & 0xFF
        return self._read(0x100 | regs.sp)

    def _pop_word(self) -> int:
        low = self._pop()
        high = self._pop()
        return (high << 8) | low

    def _pop_status(self) -> None:
        self.registers.p = self._pop() & 0xCF

    def _fetch_pc(self) -> int:
        regs = self.registers
        value = self._read(regs.pc)
        regs.pc = (regs.pc + 1) & 0xFFFF
        return value

    # Addressing modes; each returns True when a page boundary was crossed

    def _read_implied(self) -> bool:
        return False

    def _read_immediate(self) -> bool:
        regs = self.registers
        self._address = regs.pc
        regs.pc = (regs.pc + 1) & 0xFFFF
        return False

    def _read_absolute(self) -> bool:
        regs = self.registers
        self._address = self._read_word(regs.pc)
        regs.pc = (regs.pc + 2) & 0xFFFF
        return False

    def _indexed(self, index: int) -> bool:
        base = self._address & 0xFF00
        self._address = (self._address + index) & 0xFFFF
        return base != (self._address & 0xFF00)

    def _read_absolute_x(self) -> bool:
        self._read_absolute()
        return self._indexed(self.registers.x)

    def _read_absolute_y(self) -> bool:
        self._read_absolute()
        return self._indexed(self.registers.y)

    def _read_relative(self) -> bool:
        offset = self._fetch_pc()
        if offset & 0x80:
            offset -= 0x100
        pc = self.registers.pc
        self._address = (pc + offset) & 0xFFFF
        return (pc & 0xFF00) != (self._address & 0xFF00)

    def _read_zeropage(self) -> bool:
        self._address = self._fetch_pc() & 0xFF
        return False

    def _read_zeropage_x(self) -> bool:
        self._address = (self._fetch_pc() + self.registers.x) & 0xFF
        return False

    def _read_zeropage_y(self) -> bool:
        self._address = (self._fetch_pc() + self.registers.y) & 0xFF
        return False

    def _read_indirect(self) -> bool:
        regs = self.registers
        low = self._read_word(regs.pc)
        high = (low & 0xFF00) | ((low + 1) & 0x00FF)
        regs.pc = (regs.pc + 2) & 0xFFFF
        self._address = self._read(low) | (self._read(high) << 8)
        return False

    def _read_indexed_indirect(self) -> bool:
        low = (self._fetch_pc() + self.registers.x) & 0xFF
        high = (low + 1) & 0xFF
        self._address = self._read(low) | (self._read(high) << 8)
        return False

    def _read_indirect_indexed(self) -> bool:
        low = self._fetch_pc()
        high = (low + 1) & 0xFF
        self._address = self._read(low) | (self._read(high) << 8)
        return self._indexed(self.registers.y)

    # Branches

    def _branch_if(self, condition) -> bool:
        if not condition:
            return False
        self.registers.pc = self._address
        self._cycles += 1
        return True

    def _op_bcs(self) -> bool:
        return self._branch_if(self._flag(StatusFlag.C))

    def _op_bcc(self) -> bool:
        return self._branch_if(not self._flag(StatusFlag.C))

    def _op_beq(self) -> bool:
        return self._branch_if(self._flag(StatusFlag.Z))

    def _op_bne(self) -> bool:
        return self._branch_if(not self._flag(StatusFlag.Z))

    def _op_bmi(self) -> bool:
        return self._branch_if(self._flag(StatusFlag.N))

    def _op_bpl(self) -> bool:
        return self._branch_if(not self._flag(StatusFlag.N))

    def _op_bvs(self) -> bool:
        return self._branch_if(self._flag(StatusFlag.V))

    def _op_bvc(self) -> bool:
        return self._branch_if(not self._flag(StatusFlag.V))

    # Stack

    def _op_pha(self) -> bool:
        self._push(self.registers.a)
        return False

    def _op_php(self) -> bool:
        self._push(self.registers.p | StatusFlag.B | StatusFlag.U)
        return False

    def _op_pla(self) -> bool:
        self.registers.a = self._pop()
        self._set_zn(self.registers.a)
        return False

    def _op_plp(self) -> bool:
        self._pop_status()
        return False

    # Increments and decrements

    def _op_inc(self) -> bool:
        value = (self._read(self._address) + 1) & 0xFF
        self._write(self._address, value)
        self._set_zn(value)
        return False

    def _op_inx(self) -> bool:
        regs = self.registers
        regs.x = (regs.x + 1) & 0xFF
        self._set_zn(regs.x)
        return False

    def _op_iny(self) -> bool:
        regs = self.registers
        regs.y = (regs.y + 1) & 0xFF
        self._set_zn(regs.y)
        return False

    def _op_dec(self) -> bool:
        value = (self._read(self._address) - 1) & 0xFF
        self._write(self._address, value)
        self._set_zn(value)
        return False

    def _op_dex(self) -> bool:
        regs = self.registers
        regs.x = (regs.x - 1) & 0xFF
        self._set_zn(regs.x)
        return False

    def _op_dey(self) -> bool:
        regs = self.registers
        regs.y = (regs.y - 1) & 0xFF
        self._set_zn(regs.y)
        return False

    # Arithmetic

    def _add(self, operand: int) -> None:
        regs = self.registers
        sign = (regs.a & 0x80) == (operand & 0x80)
        value = regs.a + operand + self._carry()
        regs.a = value & 0xFF
        overflow = sign and (regs.a & 0x80) != (operand & 0x80)
        self._set_flag(StatusFlag.C, value & 0x100)
        self._set_flag(StatusFlag.V, overflow)
        self._set_zn(regs.a)

    def _op_adc(self) -> bool:
        self._add(self._read(self._address))
        return True

    def _op_sbc(self) -> bool:
        self._add(self._read(self._address) ^ 0xFF)
        return True

    # Flags

    def _op_clc(self) -> bool:
        self._set_flag(StatusFlag.C, False)
        return False

    def _op_cld(self) -> bool:
        self._set_flag(StatusFlag.D, False)
        return False

    def _op_cli(self) -> bool:
        self._set_flag(StatusFlag.I, False)
        return False

    def _op_clv(self) -> bool:
        self._set_flag(StatusFlag.V, False)
        return False

    def _op_sec(self) -> bool:
        self._set_flag(StatusFlag.C, True)
        return False

    def _op_sed(self) -> bool:
        self._set_flag(StatusFlag.D, True)
        return False

    def _op_sei(self) -> bool:
        self._set_flag(StatusFlag.I, True)
        return False

    # Loads, stores and transfers

    def _op_lda(self) -> bool:
        self.registers.a = self._read(self._address)
        self._set_zn(self.registers.a)
        return True

    def _op_ldx(self) -> bool:
        self.registers.x = self._read(self._address)
        self._set_zn(self.registers.x)
        return True

    def _op_ldy(self) -> bool:
        self.registers.y = self._read(self._address)
        self._set_zn(self.registers.y)
        return True

    def _op_sta(self) -> bool:
        self._write(self._address, self.registers.a)
        return False

    def _op_stx(self) -> bool:
        self._write(self._address, self.registers.x)
        return False

    def _op_sty(self) -> bool:
        self._write(self._address, self.registers.y)
        return False

    def _op_tax(self) -> bool:
        regs = self.registers
        regs.x = regs.a
        self._set_zn(regs.x)
        return False

    def _op_tay(self) -> bool:
        regs = self.registers
        regs.y = regs.a
        self._set_zn(regs.y)
        return False

    def _op_tsx(self) -> bool:
        regs = self.registers
        regs.x = regs.sp
        self._set_zn(regs.x)
        return False

    def _op_txa(self) -> bool:
        regs = self.registers
        regs.a = regs.x
        self._set_zn(regs.a)
        return False

    def _op_txs(self) -> bool:
        regs = self.registers
        regs.sp = regs.x
        return False

    def _op_tya(self) -> bool:
        regs = self.registers
        regs.a = regs.y
        self._set_zn(regs.a)
        return False

    # Jumps and interrupts

    def _op_jmp(self) -> bool:
        self.registers.pc = self._address
        return False

    def _op_rts(self) -> bool:
        self.registers.pc = (self._pop_word() + 1) & 0xFFFF
        return False

    def _op_jsr(self) -> bool:
        regs = self.registers
        self._push_word((regs.pc - 1) & 0xFFFF)
        regs.pc = self._address
        return False

    def _op_brk(self) -> bool:
        regs = self.registers
        regs.pc = (regs.pc + 1) & 0xFFFF
        self._interrupt(InterruptType.BRK)
        return False

    def _op_rti(self) -> bool:
        self._pop_status()
        self.registers.pc = self._pop_word()
        return False

    # Comparisons

    def _compare(self, register: int) -> None:
        operand = self._read(self._address)
        self._set_flag(StatusFlag.C, register >= operand)
        self._set_zn((register - operand) & 0xFF)

    def _op_cmp(self) -> bool:
        self._compare(self.registers.a)
        return True

    def _op_cpx(self) -> bool:
        self._compare(self.registers.x)
        return False

    def _op_cpy(self) -> bool:
        self._compare(self.registers.y)
        return False

    # Logic

    def _op_and(self) -> bool:
        self.registers.a &= self._read(self._address)
        self._set_zn(self.registers.a)
        return True

    def _op_eor(self) -> bool:
        self.registers.a ^= self._read(self._address)
        self._set_zn(self.registers.a)
        return True

    def _op_ora(self) -> bool:
        self.registers.a |= self._read(self._address)
        self._set_zn(self.registers.a)
        return True

    def _op_bit(self) -> bool:
        value = self._read(self._address)
        self._set_flag(StatusFlag.Z, (self.registers.a & value) == 0)
        self._set_flag(StatusFlag.V, value & 0x40)
        self._set_flag(StatusFlag.N, value & 0x80)
        return False

    # Shifts and rotates

    def _modify(self, operation) -> None:
        """Apply ``operation(value) -> (result, carry)`` to A or to memory."""
        if self._mode == AddressingMode.IMPLIED:
            result, carry = operation(self.registers.a)
            self._set_flag(StatusFlag.C, carry)
            self.registers.a = result
        else:
            result, carry = operation(self._read(self._address))
            self._write(self._address, result)
            self._set_flag(StatusFlag.C, carry)
        self._set_zn(result)

    def _op_asl(self) -> bool:
        self._modify(lambda v: ((v << 1) & 0xFF, v & 0x80))
        return False

    def _op_lsr(self) -> bool:
        self._modify(lambda v: (v >> 1, v & 1))
        return False

    def _op_rol(self) -> bool:
        carry = self._carry()
        self._modify(lambda v: (((v << 1) | carry) & 0xFF, v & 0x80))
        return False

    def _op_ror(self) -> bool:
        carry = self._carry()
        self._modify(lambda v: ((carry << 7) | (v >> 1), v & 1))
        return False

    # Unofficial opcodes

    def _op_lax(self) -> bool:
        regs = self.registers
        regs.a = self._read(self._address)
        regs.x = regs.a
        self._set_zn(regs.a)
        return True

    def _op_sax(self) -> bool:
        self._write(self._address, self.registers.a & self.registers.x)
        return False

    def _op_axs(self) -> bool:
        regs = self.registers
        value = self._read(self._address)
        regs.x &= regs.a
        self._set_flag(StatusFlag.C, regs.x >= value)
        regs.x = (regs.x - value) & 0xFF
        self._set_zn(regs.x)
        return False

    def _op_dcp(self) -> bool:
        regs = self.registers
        operand = (self._read(self._address) - 1) & 0xFF
        self._write(self._address, operand)
        self._set_flag(StatusFlag.C, regs.a >= operand)
        self._set_zn((regs.a - operand) & 0xFF)
        return False

    def _op_isc(self) -> bool:
        value = (self._read(self._address) + 1) & 0xFF
        self._write(self._address, value)
        self._add(value ^ 0xFF)
        return False

    def _op_slo(self) -> bool:
        operand = self._read(self._address)
        value = (operand << 1) & 0xFF
        self._set_flag(StatusFlag.C, operand & 0x80)
        self._write(self._address, value)
        self.registers.a |= value
        self._set_zn(self.registers.a)
        return False

    def _op_rla(self) -> bool:
        operand = self._read(self._address)
        value = ((operand << 1) | self._carry()) & 0xFF
        self._set_flag(StatusFlag.C, operand & 0x80)
        self._write(self._address, value)
        self.registers.a &= value
        self._set_zn(self.registers.a)
        return False

    def _op_sre(self) -> bool:
        operand = self._read(self._address)
        value = operand >> 1
        self._set_flag(StatusFlag.C, operand & 1)
        self._write(self._address, value)
        self.registers.a ^= value
        self._set_zn(self.registers.a)
        return False

    def _op_rra(self) -> bool:
        operand = self._read(self._address)
        value = (self._carry() << 7) | (operand >> 1)
        self._set_flag(StatusFlag.C, operand & 1)
        self._write(self._address, value)
        self._add(value)
        return False

    def _op_anc(self) -> bool:
        regs = self.registers
        regs.a &= self._read(self._address)
        self._set_flag(StatusFlag.C, regs.a & 0x80)
        self._set_zn(regs.a)
        return False

    def _op_alr(self) -> bool:
        regs = self.registers
        regs.a &= self._read(self._address)
        self._set_flag(StatusFlag.C, regs.a & 1)
        regs.a >>= 1
        self._set_zn(regs.a)
        return False

    def _op_arr(self) -> bool:
        regs = self.registers
        regs.a &= self._read(self._address)
        regs.a = (self._carry() << 7) | (regs.a >> 1)
        bit6 = (regs.a >> 6) & 1
        bit5 = (regs.a >> 5) & 1
        self._set_flag(StatusFlag.C, bit6)
        self._set_flag(StatusFlag.V, bit5 ^ bit6)
        self._set_zn(regs.a)
        return False

    def _op_xaa(self) -> bool:
        regs = self.registers
        regs.a = regs.x & self._read(self._address)
        self._set_zn(regs.a)
        return False

    def _op_las(self) -> bool:
        regs = self.registers
        value = regs.sp & self._read(self._address)
        regs.a = regs.x = regs.sp = value
        self._set_zn(value)
        return True

    def _op_ahx(self) -> bool:
        regs = self.registers
        self._write(self._address, ((self._address >> 8) + 1) & regs.a & regs.x)
        return False

    def _op_tas(self) -> bool:
        regs = self.registers
        regs.sp = regs.x & regs.a
        self._write(self._address, regs.sp & ((self._address >> 8) + 1))
        return False

    def _store_high_and(self, register: int) -> None:
        low = self._address & 0xFF
        high = self._address >> 8
        data = register & ((high + 1) & 0xFF)
        self._write((data << 8) | low, data)

    def _op_shy(self) -> bool:
        self._store_high_and(self.registers.y)
        return False

    def _op_shx(self) -> bool:
        self._store_high_and(self.registers.x)
        return False

    def _op_nop(self) -> bool:
        return True

    def _op_hlt(self) -> bool:
        log_f(LogLevel.ERROR, "CPU: halt! opcode: %02X", self._opcode)
        return False