""" Opcode decoding. Turns a raw 16-bit opcode into an Instruction without
    touching any machine state.

    Dispatch is two levels deep: the high nibble picks the op class, and the
    0x0, 0x8, 0xE and 0xF classes pick the instruction from a second table
    keyed on the low byte or low nibble.

    Reference: Cowgod's CHIP-8 Technical Reference
    http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
"""

from collections import namedtuple

from chip8vm.errors import UnknownOpcode

_Instruction = namedtuple('Instruction', 'name opcode x y n nn nnn')


class Instruction(_Instruction):
    __slots__ = ()

    def __str__(self):
        return FORMATS[self.name].format(x=self.x, y=self.y, n=self.n, nn=self.nn, nnn=self.nnn)


# Classes that decode on the high nibble alone
PRIMARY = {
    0x1: 'JP',         # 1nnn - Jump to address NNN
    0x2: 'CALL',       # 2nnn - Call subroutine at NNN
    0x3: 'SE_VX_NN',   # 3xkk - Skip next instruction if Vx == kk
    0x4: 'SNE_VX_NN',  # 4xkk - Skip next instruction if Vx != kk
    0x6: 'LD_VX_NN',   # 6xkk - Set Vx = kk
    0x7: 'ADD_VX_NN',  # 7xkk - Add kk to Vx, no carry
    0xA: 'LD_I',       # Annn - Set I = NNN
    0xB: 'JP_V0',      # Bnnn - Jump to NNN + V0
    0xC: 'RND',        # Cxkk - Vx = random byte AND kk
    0xD: 'DRW',        # Dxyn - Draw n-row sprite from I at (Vx, Vy)
}

# Classes that also require the low nibble to be zero
ZERO_SUFFIX = {
    0x5: 'SE_VX_VY',   # 5xy0 - Skip next instruction if Vx == Vy
    0x9: 'SNE_VX_VY',  # 9xy0 - Skip next instruction if Vx != Vy
}

SYSTEM = {
    0x00E0: 'CLS',
    0x00EE: 'RET',
}

ARITHMETIC = {
    0x0: 'LD_VX_VY',
    0x1: 'OR',
    0x2: 'AND',
    0x3: 'XOR',
    0x4: 'ADD_VX_VY',
    0x5: 'SUB',
    0x6: 'SHR',
    0x7: 'SUBN',
    0xE: 'SHL',
}

KEYS = {
    0x9E: 'SKP',
    0xA1: 'SKNP',
}

MISC = {
    0x07: 'LD_VX_DT',
    0x0A: 'LD_VX_K',
    0x15: 'LD_DT_VX',
    0x18: 'LD_ST_VX',
    0x1E: 'ADD_I_VX',
    0x29: 'LD_F_VX',
    0x33: 'LD_B_VX',
    0x55: 'LD_I_VX',
    0x65: 'LD_VX_I',
}

FORMATS = {
    'CLS': 'CLS',
    'RET': 'RET',
    'JP': 'JP {nnn:03X}',
    'CALL': 'CALL {nnn:03X}',
    'SE_VX_NN': 'SE V{x:X}, {nn:02X}',
    'SNE_VX_NN': 'SNE V{x:X}, {nn:02X}',
    'SE_VX_VY': 'SE V{x:X}, V{y:X}',
    'LD_VX_NN': 'LD V{x:X}, {nn:02X}',
    'ADD_VX_NN': 'ADD V{x:X}, {nn:02X}',
    'LD_VX_VY': 'LD V{x:X}, V{y:X}',
    'OR': 'OR V{x:X}, V{y:X}',
    'AND': 'AND V{x:X}, V{y:X}',
    'XOR': 'XOR V{x:X}, V{y:X}',
    'ADD_VX_VY': 'ADD V{x:X}, V{y:X}',
    'SUB': 'SUB V{x:X}, V{y:X}',
    'SHR': 'SHR V{x:X}, V{y:X}',
    'SUBN': 'SUBN V{x:X}, V{y:X}',
    'SHL': 'SHL V{x:X}, V{y:X}',
    'SNE_VX_VY': 'SNE V{x:X}, V{y:X}',
    'LD_I': 'LD I, {nnn:03X}',
    'JP_V0': 'JP V0, {nnn:03X}',
    'RND': 'RND V{x:X}, {nn:02X}',
    'DRW': 'DRW V{x:X}, V{y:X}, {n:X}',
    'SKP': 'SKP V{x:X}',
    'SKNP': 'SKNP V{x:X}',
    'LD_VX_DT': 'LD V{x:X}, DT',
    'LD_VX_K': 'LD V{x:X}, K',
    'LD_DT_VX': 'LD DT, V{x:X}',
    'LD_ST_VX': 'LD ST, V{x:X}',
    'ADD_I_VX': 'ADD I, V{x:X}',
    'LD_F_VX': 'LD F, V{x:X}',
    'LD_B_VX': 'LD B, V{x:X}',
    'LD_I_VX': 'LD [I], V{x:X}',
    'LD_VX_I': 'LD V{x:X}, [I]',
}


def _lookup(opcode):
    prefix = (opcode >> 12) & 0xF
    if prefix in PRIMARY:
        return PRIMARY[prefix]
    if prefix in ZERO_SUFFIX:
        return ZERO_SUFFIX[prefix] if opcode & 0xF == 0 else None
    if prefix == 0x0:
        return SYSTEM.get(opcode)
    if prefix == 0x8:
        return ARITHMETIC.get(opcode & 0xF)
    if prefix == 0xE:
        return KEYS.get(opcode & 0xFF)
    return MISC.get(opcode & 0xFF)


def decode(opcode):
    """ Split opcode into its fields and name the instruction it encodes.
        Raises UnknownOpcode if no table matches. """
    opcode &= 0xFFFF
    name = _lookup(opcode)
    if name is None:
        raise UnknownOpcode(opcode)
    return Instruction(name=name,
                       opcode=opcode,
                       x=(opcode & 0x0F00) >> 8,
                       y=(opcode & 0x00F0) >> 4,
                       n=opcode & 0x000F,
                       nn=opcode & 0x00FF,
                       nnn=opcode & 0x0FFF)


def disassemble(data, origin=0x200):
    """ Yield (address, opcode, text) for each two-byte word of data.
        Words that don't decode are shown as raw data. """
    for offset in range(0, len(data) - 1, 2):
        opcode = (data[offset] << 8) | data[offset + 1]
        try:
            text = str(decode(opcode))
        except UnknownOpcode:
            text = 'DW %04X' % opcode
        yield origin + offset, opcode, text
