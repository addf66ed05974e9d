""" Errors raised by the virtual machine. Every one of them describes a single
    failed call and leaves the machine state as it was before that call. """


class Chip8Error(Exception):
    pass


class ProgramTooLarge(Chip8Error):
    def __init__(self, size, capacity):
        super().__init__('Program is %d bytes, only %d fit in memory' % (size, capacity))
        self.size = size
        self.capacity = capacity


class OutOfBounds(Chip8Error):
    def __init__(self, address, message=None):
        super().__init__(message or 'Memory access out of bounds: 0x%03X' % address)
        self.address = address


class FetchOutOfBounds(OutOfBounds):
    def __init__(self, pc):
        super().__init__(pc, 'PC out of bounds: 0x%03X' % pc)


class StackOverflow(Chip8Error):
    pass


class StackUnderflow(Chip8Error):
    pass


class UnknownOpcode(Chip8Error):
    def __init__(self, opcode):
        super().__init__('Unknown opcode: %04X' % opcode)
        self.opcode = opcode


class InvalidKey(Chip8Error):
    pass


class RomError(Chip8Error):
    pass
