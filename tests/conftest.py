import random

import pytest

from chip8vm.interpreter import Interpreter


@pytest.fixture
def vm():
    """ Build an interpreter with the given program words loaded at 0x200 """
    def build(*words, config=None, seed=0):
        interpreter = Interpreter(config, rng=random.Random(seed))
        program = bytearray()
        for word in words:
            program += bytes(((word >> 8) & 0xFF, word & 0xFF))
        interpreter.load_program(program)
        return interpreter
    return build
