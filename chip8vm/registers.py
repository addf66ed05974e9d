""" Register file: V0..VF, the index register I, the program counter and the
    return-address stack. """

from chip8vm.errors import StackOverflow, StackUnderflow
from chip8vm.memory import PROGRAM_START

REGISTER_COUNT = 16
STACK_DEPTH = 16
FLAG = 0xF


class RegisterFile(object):

    def __init__(self):
        self.V = [0] * REGISTER_COUNT
        self.I = 0
        self.pc = PROGRAM_START
        self.stack = [0] * STACK_DEPTH
        self.sp = 0

    def _check_index(self, x):
        if x < 0 or x >= REGISTER_COUNT:
            raise IndexError('No register V%X' % x)

    def get(self, x):
        self._check_index(x)
        return self.V[x]

    def set(self, x, value):
        """ Store value in VX, wrapped to 8 bits """
        self._check_index(x)
        self.V[x] = value & 0xFF

    @property
    def flag(self):
        return self.V[FLAG]

    @flag.setter
    def flag(self, value):
        self.V[FLAG] = 1 if value else 0

    def push(self, address):
        if self.sp >= STACK_DEPTH:
            raise StackOverflow('Stack overflow calling from 0x%03X' % address)
        self.stack[self.sp] = address
        self.sp += 1

    def pop(self):
        if self.sp == 0:
            raise StackUnderflow('Stack underflow on return')
        self.sp -= 1
        return self.stack[self.sp]

    def __repr__(self):
        regs = ' '.join('V%X=%02X' % (i, v) for i, v in enumerate(self.V))
        return '<RegisterFile pc=%03X I=%03X sp=%d %s>' % (self.pc, self.I, self.sp, regs)
