""" The 4KB of addressable memory: glyph table at the bottom, program from 0x200 """

from chip8vm.errors import OutOfBounds, ProgramTooLarge

MEMORY_SIZE = 4096
PROGRAM_START = 0x200
PROGRAM_CAPACITY = MEMORY_SIZE - PROGRAM_START

FONT_BASE = 0x000
GLYPH_SIZE = 5

# Standard CHIP-8 fontset (80 bytes), one 4x5 glyph per hex digit
FONTSET = (
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
)


def glyph_address(digit):
    return FONT_BASE + digit * GLYPH_SIZE


class Memory(object):

    def __init__(self):
        self._data = bytearray(MEMORY_SIZE)
        self._data[FONT_BASE:FONT_BASE + len(FONTSET)] = bytes(FONTSET)

    def __len__(self):
        return MEMORY_SIZE

    def _check(self, address, count=1):
        if address < 0 or address + count > MEMORY_SIZE:
            # report the first address that falls outside
            raise OutOfBounds(address if address < 0 else max(address, MEMORY_SIZE))

    def load_program(self, data):
        """ Copy the raw program bytes to 0x200. Nothing outside the program's
            range is touched. """
        data = bytes(data)
        if len(data) > PROGRAM_CAPACITY:
            raise ProgramTooLarge(len(data), PROGRAM_CAPACITY)
        self._data[PROGRAM_START:PROGRAM_START + len(data)] = data

    def read_byte(self, address):
        self._check(address)
        return self._data[address]

    def write_byte(self, address, value):
        self._check(address)
        self._data[address] = value & 0xFF

    def read_word(self, address):
        """ Big-endian 16-bit value at address, address+1 """
        self._check(address, 2)
        return (self._data[address] << 8) | self._data[address + 1]

    def read_block(self, address, count):
        self._check(address, count)
        return bytes(self._data[address:address + count])

    def write_block(self, address, values):
        """ Write all values starting at address, or nothing at all if the
            block doesn't fit. """
        values = bytes(v & 0xFF for v in values)
        self._check(address, len(values))
        self._data[address:address + len(values)] = values
