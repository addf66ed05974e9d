""" A CHIP-8 virtual machine """

from chip8vm.config import Config
from chip8vm.decoder import Instruction, decode, disassemble
from chip8vm.errors import (Chip8Error, ProgramTooLarge, OutOfBounds, FetchOutOfBounds,
                            StackOverflow, StackUnderflow, UnknownOpcode, InvalidKey, RomError)
from chip8vm.interpreter import Interpreter, State
from chip8vm.rom import load_rom

__version__ = '0.1.0'
