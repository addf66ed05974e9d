""" The CHIP-8 interpreter: fetch, decode and execute one instruction per step().

    CPU - Cowgod's CHIP-8 Technical Reference http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
    Memory - 4096 bytes holding the fonts and the loaded ROM.
    Input - 16 key states set by the host and checked per step.
    Output - 64x32 display buffer and a sound timer whose run-out is the buzzer.
"""

import enum
import logging
import random

from chip8vm.config import Config, TIMER_PER_INSTRUCTION
from chip8vm.decoder import decode
from chip8vm.display import Display, WIDTH, HEIGHT
from chip8vm.errors import FetchOutOfBounds
from chip8vm.keypad import Keypad
from chip8vm.memory import Memory, MEMORY_SIZE, glyph_address
from chip8vm.registers import RegisterFile, FLAG
from chip8vm.timers import Timers, DELAY, SOUND

logger = logging.getLogger(__name__)


class State(enum.Enum):
    RUNNING = 'running'
    AWAITING_KEY = 'awaiting_key'


class Interpreter(object):
    """ Owns the machine state and mutates it in place, one instruction per
        call to step(). Errors are raised before anything is changed, so a
        failed step leaves the machine as it was. """

    def __init__(self, config=None, rng=None):
        self.config = config or Config()
        self.rng = rng or random.Random()

        self.memory = Memory()
        self.registers = RegisterFile()
        self.display = Display()
        self.keypad = Keypad()
        self.timers = Timers()

        self.state = State.RUNNING
        self.key_register = None
        self.buzzer = False
        # timers loaded by the current instruction, first counted down by the next one
        self.loaded_timers = set()

        # Prepare opcode function map
        self.setup_funcmap()

    # ---- Host interface ----
    def load_program(self, data):
        self.memory.load_program(data)
        logger.debug('Loaded %d program bytes at 0x200', len(data))

    def set_key(self, index, pressed):
        self.keypad.set_key(index, pressed)

    def framebuffer(self):
        return self.display.framebuffer()

    def skip(self):
        """ Step over the current instruction without executing it, e.g.
            after the host decided to ignore an UnknownOpcode. """
        self.registers.pc += 2

    def tick_timers(self):
        """ Count both timers down once. Returns True on the buzzer edge. """
        edge = self.timers.tick()
        self.buzzer = self.buzzer or edge
        return edge

    @property
    def pc(self):
        return self.registers.pc

    @property
    def V(self):
        return self.registers.V

    @property
    def I(self):
        return self.registers.I

    @property
    def delay_timer(self):
        return self.timers.delay

    @property
    def sound_timer(self):
        return self.timers.sound

    # ---- Cycle ----
    def fetch(self):
        pc = self.registers.pc
        if pc < 0 or pc + 1 >= MEMORY_SIZE:
            raise FetchOutOfBounds(pc)
        return self.memory.read_word(pc)

    def step(self):
        """ Run one instruction. Returns the executed Instruction, or None if
            the machine is waiting on a key press. """
        self.buzzer = False
        self.loaded_timers.clear()

        if self.state is State.AWAITING_KEY:
            key = self.keypad.first_pressed()
            if key is None:
                if self.config.tick_while_waiting:
                    self._instruction_tick()
                return None
            self.registers.set(self.key_register, key)
            self.registers.pc += 2
            logger.debug('Key %X pressed, stored in V%X', key, self.key_register)
            self.state = State.RUNNING
            self.key_register = None
            self._instruction_tick()
            return None

        instruction = decode(self.fetch())
        self.funcmap[instruction.name](instruction)
        self._instruction_tick()
        return instruction

    def _instruction_tick(self):
        if self.config.timer_mode == TIMER_PER_INSTRUCTION:
            edge = self.timers.tick(hold=self.loaded_timers)
            self.buzzer = self.buzzer or edge

    # ---- Opcode function map ----
    def setup_funcmap(self):
        self.funcmap = {
            'CLS': self._00E0,        # 00E0 - Clear the display
            'RET': self._00EE,        # 00EE - Return from a subroutine
            'JP': self._1nnn,         # 1nnn - Jump to a specific memory address
            'CALL': self._2nnn,       # 2nnn - Call a subroutine at a memory address
            'SE_VX_NN': self._3xkk,   # 3xkk - Skip next instruction if a register equals a number
            'SNE_VX_NN': self._4xkk,  # 4xkk - Skip next instruction if a register does NOT equal a number
            'SE_VX_VY': self._5xy0,   # 5xy0 - Skip next instruction if two registers are equal
            'LD_VX_NN': self._6xkk,   # 6xkk - Set a register to a number
            'ADD_VX_NN': self._7xkk,  # 7xkk - Add a number to a register
            'LD_VX_VY': self._8xy0,   # 8xy0..8xyE - Math and logic between two registers
            'OR': self._8xy1,
            'AND': self._8xy2,
            'XOR': self._8xy3,
            'ADD_VX_VY': self._8xy4,
            'SUB': self._8xy5,
            'SHR': self._8xy6,
            'SUBN': self._8xy7,
            'SHL': self._8xyE,
            'SNE_VX_VY': self._9xy0,  # 9xy0 - Skip next instruction if two registers are NOT equal
            'LD_I': self._Annn,       # Annn - Set the memory pointer I
            'JP_V0': self._Bnnn,      # Bnnn - Jump to an address plus V0
            'RND': self._Cxkk,        # Cxkk - Random number ANDed with a value
            'DRW': self._Dxyn,        # Dxyn - Draw a sprite at (Vx, Vy)
            'SKP': self._Ex9E,        # Ex9E / ExA1 - Skip on key pressed / not pressed
            'SKNP': self._ExA1,
            'LD_VX_DT': self._Fx07,   # Fx07..Fx65 - timers, memory storage and waiting for keys
            'LD_VX_K': self._Fx0A,
            'LD_DT_VX': self._Fx15,
            'LD_ST_VX': self._Fx18,
            'ADD_I_VX': self._Fx1E,
            'LD_F_VX': self._Fx29,
            'LD_B_VX': self._Fx33,
            'LD_I_VX': self._Fx55,
            'LD_VX_I': self._Fx65,
        }

    def _next(self):
        self.registers.pc += 2

    def _skip_if(self, condition):
        self.registers.pc += 4 if condition else 2

    # ---- Opcode handlers ----
    def _00E0(self, ins):
        self.display.clear()
        self._next()
        logger.debug('Clear the display (all pixels turned off)')

    def _00EE(self, ins):
        address = self.registers.pop()
        self.registers.pc = address + 2
        logger.debug('Return to 0x%03X', self.registers.pc)

    def _1nnn(self, ins):
        self.registers.pc = ins.nnn
        logger.debug('Jump to address 0x%03X', ins.nnn)

    def _2nnn(self, ins):
        self.registers.push(self.registers.pc)
        self.registers.pc = ins.nnn
        logger.debug('Call subroutine at 0x%03X', ins.nnn)

    def _3xkk(self, ins):
        self._skip_if(self.registers.V[ins.x] == ins.nn)
        logger.debug('Skip next instruction if V%X == %d', ins.x, ins.nn)

    def _4xkk(self, ins):
        self._skip_if(self.registers.V[ins.x] != ins.nn)
        logger.debug('Skip next instruction if V%X != %d', ins.x, ins.nn)

    def _5xy0(self, ins):
        V = self.registers.V
        self._skip_if(V[ins.x] == V[ins.y])
        logger.debug('Skip next instruction if V%X == V%X', ins.x, ins.y)

    def _6xkk(self, ins):
        self.registers.set(ins.x, ins.nn)
        self._next()
        logger.debug('Set V%X = %d', ins.x, ins.nn)

    def _7xkk(self, ins):
        self.registers.set(ins.x, self.registers.V[ins.x] + ins.nn)
        self._next()
        logger.debug('Add %d to V%X: %d', ins.nn, ins.x, self.registers.V[ins.x])

    def _8xy0(self, ins):
        self.registers.set(ins.x, self.registers.V[ins.y])
        self._next()
        logger.debug('Copy V%X into V%X', ins.y, ins.x)

    def _8xy1(self, ins):
        V = self.registers.V
        self.registers.set(ins.x, V[ins.x] | V[ins.y])
        self._next()
        logger.debug('V%X = V%X OR V%X -> %d', ins.x, ins.x, ins.y, V[ins.x])

    def _8xy2(self, ins):
        V = self.registers.V
        self.registers.set(ins.x, V[ins.x] & V[ins.y])
        self._next()
        logger.debug('V%X = V%X AND V%X -> %d', ins.x, ins.x, ins.y, V[ins.x])

    def _8xy3(self, ins):
        V = self.registers.V
        self.registers.set(ins.x, V[ins.x] ^ V[ins.y])
        self._next()
        logger.debug('V%X = V%X XOR V%X -> %d', ins.x, ins.x, ins.y, V[ins.x])

    # VF is written last in the flag-setting ops so that it holds the flag
    # even when X is F.
    def _8xy4(self, ins):
        V = self.registers.V
        total = V[ins.x] + V[ins.y]
        self.registers.set(ins.x, total)
        self.registers.flag = total > 0xFF
        self._next()
        logger.debug('Add V%X to V%X: result %d, carry=%d', ins.y, ins.x, V[ins.x], V[FLAG])

    def _8xy5(self, ins):
        V = self.registers.V
        vx, vy = V[ins.x], V[ins.y]
        self.registers.set(ins.x, vx - vy)
        self.registers.flag = vy > vx
        self._next()
        logger.debug('Subtract V%X from V%X: result %d, borrow=%d', ins.y, ins.x, V[ins.x], V[FLAG])

    def _shift_source(self, ins):
        # the original COSMAC interpreter shifted VY into VX
        return self.registers.V[ins.y if self.config.quirks else ins.x]

    def _8xy6(self, ins):
        value = self._shift_source(ins)
        self.registers.set(ins.x, value >> 1)
        self.registers.flag = value & 1
        self._next()
        logger.debug('Shift V%X right by 1: %d, lsb=%d', ins.x, self.registers.V[ins.x], value & 1)

    def _8xy7(self, ins):
        V = self.registers.V
        vx, vy = V[ins.x], V[ins.y]
        self.registers.set(ins.x, vy - vx)
        self.registers.flag = vx > vy
        self._next()
        logger.debug('Set V%X = V%X - V%X: result %d, borrow=%d', ins.x, ins.y, ins.x, V[ins.x], V[FLAG])

    def _8xyE(self, ins):
        value = self._shift_source(ins)
        self.registers.set(ins.x, value << 1)
        self.registers.flag = (value >> 7) & 1
        self._next()
        logger.debug('Shift V%X left by 1: %d, msb=%d', ins.x, self.registers.V[ins.x], (value >> 7) & 1)

    def _9xy0(self, ins):
        V = self.registers.V
        self._skip_if(V[ins.x] != V[ins.y])
        logger.debug('Skip next instruction if V%X != V%X', ins.x, ins.y)

    def _Annn(self, ins):
        self.registers.I = ins.nnn
        self._next()
        logger.debug('Set I = %03X', ins.nnn)

    def _Bnnn(self, ins):
        self.registers.pc = ins.nnn + self.registers.V[0]
        logger.debug('Jump to address V0 + %03X = %03X', ins.nnn, self.registers.pc)

    def _Cxkk(self, ins):
        self.registers.set(ins.x, self.rng.getrandbits(8) & ins.nn)
        self._next()
        logger.debug('Set V%X = random_byte & %d -> %d', ins.x, ins.nn, self.registers.V[ins.x])

    def _Dxyn(self, ins):
        x0 = self.registers.V[ins.x]
        y0 = self.registers.V[ins.y]
        # read every row first so a bad I fails before any pixel changes
        sprite = self.memory.read_block(self.registers.I, ins.n)
        collision = 0
        for row, bits in enumerate(sprite):
            y = (y0 + row) % HEIGHT
            for bit in range(8):
                if bits & (0x80 >> bit):
                    collision |= self.display.toggle((x0 + bit) % WIDTH, y)
        self.registers.flag = collision
        self.display.mark_dirty()
        self._next()
        logger.debug('Drew %d-row sprite at (%d, %d), collision=%d', ins.n, x0, y0, collision)

    def _Ex9E(self, ins):
        key = self.registers.V[ins.x] & 0xF
        self._skip_if(self.keypad.is_pressed(key))
        logger.debug('Skip next instruction if key %X is pressed', key)

    def _ExA1(self, ins):
        key = self.registers.V[ins.x] & 0xF
        self._skip_if(not self.keypad.is_pressed(key))
        logger.debug('Skip next instruction if key %X is not pressed', key)

    def _Fx07(self, ins):
        self.registers.set(ins.x, self.timers.delay)
        self._next()
        logger.debug('Set V%X = delay timer (%d)', ins.x, self.timers.delay)

    def _Fx0A(self, ins):
        # PC stays on this instruction until a key press completes it
        self.state = State.AWAITING_KEY
        self.key_register = ins.x
        logger.debug('Waiting for a key press into V%X', ins.x)

    def _Fx15(self, ins):
        self.timers.delay = self.registers.V[ins.x]
        self.loaded_timers.add(DELAY)
        self._next()
        logger.debug('Set delay timer = V%X (%d)', ins.x, self.timers.delay)

    def _Fx18(self, ins):
        self.timers.sound = self.registers.V[ins.x]
        self.loaded_timers.add(SOUND)
        self._next()
        logger.debug('Set sound timer = V%X (%d)', ins.x, self.timers.sound)

    def _Fx1E(self, ins):
        total = self.registers.I + self.registers.V[ins.x]
        self.registers.flag = total > 0xFFF
        self.registers.I = total & 0xFFF
        self._next()
        logger.debug('Add V%X to I: I = %03X, overflow=%d', ins.x, self.registers.I, total > 0xFFF)

    def _Fx29(self, ins):
        self.registers.I = glyph_address(self.registers.V[ins.x])
        self._next()
        logger.debug('Set I to the glyph for V%X: %03X', ins.x, self.registers.I)

    def _Fx33(self, ins):
        value = self.registers.V[ins.x]
        self.memory.write_block(self.registers.I, (value // 100, (value // 10) % 10, value % 10))
        self._next()
        logger.debug('Store BCD of V%X (%d) at %03X', ins.x, value, self.registers.I)

    def _Fx55(self, ins):
        self.memory.write_block(self.registers.I, self.registers.V[:ins.x + 1])
        self.registers.I = (self.registers.I + ins.x + 1) & 0xFFF
        self._next()
        logger.debug('Store V0..V%X in memory, I = %03X', ins.x, self.registers.I)

    def _Fx65(self, ins):
        values = self.memory.read_block(self.registers.I, ins.x + 1)
        for i, value in enumerate(values):
            self.registers.set(i, value)
        self.registers.I = (self.registers.I + ins.x + 1) & 0xFFF
        self._next()
        logger.debug('Load V0..V%X from memory, I = %03X', ins.x, self.registers.I)
