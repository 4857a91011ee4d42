"""Decoding table for the 6502 instruction set, official and unofficial opcodes."""

from dataclasses import dataclass
from enum import IntEnum

__all__ = ["AddressingMode", "Instruction", "decode", "INSTRUCTIONS"]


class AddressingMode(IntEnum):
    """How an instruction locates its operand."""

    IMPLIED = 0
    IMMEDIATE = 1
    ABSOLUTE = 2
    ABSOLUTE_X = 3
    ABSOLUTE_Y = 4
    RELATIVE = 5
    ZEROPAGE = 6
    ZEROPAGE_X = 7
    ZEROPAGE_Y = 8
    INDIRECT = 9
    INDEXED_INDIRECT = 10
    INDIRECT_INDEXED = 11


_OPERAND_BYTES = {
    AddressingMode.IMPLIED: 0,
    AddressingMode.IMMEDIATE: 1,
    AddressingMode.ABSOLUTE: 2,
    AddressingMode.ABSOLUTE_X: 2,
    AddressingMode.ABSOLUTE_Y: 2,
    AddressingMode.RELATIVE: 1,
    AddressingMode.ZEROPAGE: 1,
    AddressingMode.ZEROPAGE_X: 1,
    AddressingMode.ZEROPAGE_Y: 1,
    AddressingMode.INDIRECT: 2,
    AddressingMode.INDEXED_INDIRECT: 1,
    AddressingMode.INDIRECT_INDEXED: 1,
}


@dataclass(frozen=True)
class Instruction:
    """One entry of the opcode table."""

    opcode: int
    mnemonic: str
    mode: AddressingMode
    cycles: int

    @property
    def length(self) -> int:
        """Size of the encoded instruction in bytes, opcode included."""
        return 1 + _OPERAND_BYTES[self.mode]


_MODE_CODES = {
    "IMP": AddressingMode.IMPLIED,
    "IMM": AddressingMode.IMMEDIATE,
    "ABS": AddressingMode.ABSOLUTE,
    "ABX": AddressingMode.ABSOLUTE_X,
    "ABY": AddressingMode.ABSOLUTE_Y,
    "REL": AddressingMode.RELATIVE,
    "ZP": AddressingMode.ZEROPAGE,
    "ZPX": AddressingMode.ZEROPAGE_X,
    "ZPY": AddressingMode.ZEROPAGE_Y,
    "IND": AddressingMode.INDIRECT,
    "IZX": AddressingMode.INDEXED_INDIRECT,
    "IZY": AddressingMode.INDIRECT_INDEXED,
}

# Eight opcodes per line, in opcode order: mnemonic, addressing mode, base cycles.
# BRK has no base cycles; the interrupt sequence adds them.
_TABLE = """
BRK IMP 0  ORA IZX 6  HLT IMP 2  SLO IZX 8  NOP ZP 3   ORA ZP 3   ASL ZP 5   SLO ZP 5
PHP IMP 3  ORA IMM 2  ASL IMP 2  ANC IMM 2  NOP ABS 4  ORA ABS 4  ASL ABS 6  SLO ABS 6
BPL REL 2  ORA IZY 5  HLT IMP 2  SLO IZY 8  NOP ZPX 4  ORA ZPX 4  ASL ZPX 6  SLO ZPX 6
CLC IMP 2  ORA ABY 4  NOP IMP 2  SLO ABY 7  NOP ABX 4  ORA ABX 4  ASL ABX 7  SLO ABX 7
JSR ABS 6  AND IZX 6  HLT IMP 2  RLA IZX 8  BIT ZP 3   AND ZP 3   ROL ZP 5   RLA ZP 5
PLP IMP 4  AND IMM 2  ROL IMP 2  ANC IMM 2  BIT ABS 4  AND ABS 4  ROL ABS 6  RLA ABS 6
BMI REL 2  AND IZY 5  HLT IMP 2  RLA IZY 8  NOP ZPX 4  AND ZPX 4  ROL ZPX 6  RLA ZPX 6
SEC IMP 2  AND ABY 4  NOP IMP 2  RLA ABY 7  NOP ABX 4  AND ABX 4  ROL ABX 7  RLA ABX 7
RTI IMP 6  EOR IZX 6  HLT IMP 2  SRE IZX 8  NOP ZP 3   EOR ZP 3   LSR ZP 5   SRE ZP 5
PHA IMP 3  EOR IMM 2  LSR IMP 2  ALR IMM 2  JMP ABS 3  EOR ABS 4  LSR ABS 6  SRE ABS 6
BVC REL 2  EOR IZY 5  HLT IMP 2  SRE IZY 8  NOP ZPX 4  EOR ZPX 4  LSR ZPX 6  SRE ZPX 6
CLI IMP 2  EOR ABY 4  NOP IMP 2  SRE ABY 7  NOP ABX 4  EOR ABX 4  LSR ABX 7  SRE ABX 7
RTS IMP 6  ADC IZX 6  HLT IMP 2  RRA IZX 8  NOP ZP 3   ADC ZP 3   ROR ZP 5   RRA ZP 5
PLA IMP 4  ADC IMM 2  ROR IMP 2  ARR IMM 2  JMP IND 5  ADC ABS 4  ROR ABS 6  RRA ABS 6
BVS REL 2  ADC IZY 5  HLT IMP 2  RRA IZY 8  NOP ZPX 4  ADC ZPX 4  ROR ZPX 6  RRA ZPX 6
SEI IMP 2  ADC ABY 4  NOP IMP 2  RRA ABY 7  NOP ABX 4  ADC ABX 4  ROR ABX 7  RRA ABX 7
NOP IMM 2  STA IZX 6  NOP IMM 2  SAX IZX 6  STY ZP 3   STA ZP 3   STX ZP 3   SAX ZP 3
DEY IMP 2  NOP IMM 2  TXA IMP 2  XAA IMM 2  STY ABS 4  STA ABS 4  STX ABS 4  SAX ABS 4
BCC REL 2  STA IZY 6  HLT IMP 2  AHX IZY 6  STY ZPX 4  STA ZPX 4  STX ZPY 4  SAX ZPY 4
TYA IMP 2  STA ABY 5  TXS IMP 2  TAS ABY 5  SHY ABX 5  STA ABX 5  SHX ABY 5  AHX ABY 5
LDY IMM 2  LDA IZX 6  LDX IMM 2  LAX IZX 6  LDY ZP 3   LDA ZP 3   LDX ZP 3   LAX ZP 3
TAY IMP 2  LDA IMM 2  TAX IMP 2  LAX IMM 2  LDY ABS 4  LDA ABS 4  LDX ABS 4  LAX ABS 4
BCS REL 2  LDA IZY 5  HLT IMP 2  LAX IZY 5  LDY ZPX 4  LDA ZPX 4  LDX ZPY 4  LAX ZPY 4
CLV IMP 2  LDA ABY 4  TSX IMP 2  LAS ABY 4  LDY ABX 4  LDA ABX 4  LDX ABY 4  LAX ABY 4
CPY IMM 2  CMP IZX 6  NOP IMM 2  DCP IZX 8  CPY ZP 3   CMP ZP 3   DEC ZP 5   DCP ZP 5
INY IMP 2  CMP IMM 2  DEX IMP 2  AXS IMM 2  CPY ABS 4  CMP ABS 4  DEC ABS 6  DCP ABS 6
BNE REL 2  CMP IZY 5  HLT IMP 2  DCP IZY 8  NOP ZPX 4  CMP ZPX 4  DEC ZPX 6  DCP ZPX 6
CLD IMP 2  CMP ABY 4  NOP IMP 2  DCP ABY 7  NOP ABX 4  CMP ABX 4  DEC ABX 7  DCP ABX 7
CPX IMM 2  SBC IZX 6  NOP IMM 2  ISC IZX 8  CPX ZP 3   SBC ZP 3   INC ZP 5   ISC ZP 5
INX IMP 2  SBC IMM 2  NOP IMP 2  SBC IMM 2  CPX ABS 4  SBC ABS 4  INC ABS 6  ISC ABS 6
BEQ REL 2  SBC IZY 5  HLT IMP 2  ISC IZY 8  NOP ZPX 4  SBC ZPX 4  INC ZPX 6  ISC ZPX 6
SED IMP 2  SBC ABY 4  NOP IMP 2  ISC ABY 7  NOP ABX 4  SBC ABX 4  INC ABX 7  ISC ABX 7
"""


def _build_table() -> tuple[Instruction, ...]:
    tokens = _TABLE.split()
    fields = zip(tokens[0::3], tokens[1::3], tokens[2::3])
    table = tuple(
        Instruction(opcode, mnemonic, _MODE_CODES[mode], int(cycles))
        for opcode, (mnemonic, mode, cycles) in enumerate(fields)
    )
    if len(table) != 256:
        raise RuntimeError(f"opcode table has {len(table)} entries, expected 256")
    return table


INSTRUCTIONS: tuple[Instruction, ...] = _build_table()


def decode(opcode: int) -> Instruction:
    """Return the table entry for an opcode byte."""
    if not 0 <= opcode <= 0xFF:
        raise ValueError(f"opcode out of range: {opcode}")
    return INSTRUCTIONS[opcode]