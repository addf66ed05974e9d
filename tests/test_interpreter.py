import random

import pytest

from chip8vm.config import Config
from chip8vm.errors import (FetchOutOfBounds, OutOfBounds, ProgramTooLarge,
                            StackOverflow, StackUnderflow, UnknownOpcode, InvalidKey)
from chip8vm.interpreter import State


def run(interpreter, steps):
    for _ in range(steps):
        interpreter.step()


PAIRS = [(0, 0), (10, 5), (255, 1), (200, 100), (128, 128), (255, 255), (3, 17), (0, 1)]


class TestArithmetic:

    def test_add_scenario(self, vm):
        interpreter = vm(0x600A, 0x6105, 0x8014)
        run(interpreter, 3)
        assert interpreter.V[0] == 15
        assert interpreter.V[0xF] == 0
        assert interpreter.pc == 0x206

    @pytest.mark.parametrize('a,b', PAIRS)
    def test_add_with_carry(self, vm, a, b):
        interpreter = vm(0x6000 | a, 0x6100 | b, 0x8014)
        run(interpreter, 3)
        assert interpreter.V[0] == (a + b) % 256
        assert interpreter.V[0xF] == (1 if a + b > 255 else 0)

    @pytest.mark.parametrize('a,b', PAIRS)
    def test_sub_with_borrow(self, vm, a, b):
        interpreter = vm(0x6000 | a, 0x6100 | b, 0x8015)
        run(interpreter, 3)
        assert interpreter.V[0] == (a - b) % 256
        assert interpreter.V[0xF] == (1 if b > a else 0)

    @pytest.mark.parametrize('a,b', PAIRS)
    def test_reverse_sub(self, vm, a, b):
        interpreter = vm(0x6000 | a, 0x6100 | b, 0x8017)
        run(interpreter, 3)
        assert interpreter.V[0] == (b - a) % 256
        assert interpreter.V[0xF] == (1 if a > b else 0)

    def test_flag_register_as_destination(self, vm):
        interpreter = vm(0x6FFF, 0x6101, 0x8F14)
        run(interpreter, 3)
        assert interpreter.V[0xF] == 1

    def test_add_immediate_wraps_without_flag(self, vm):
        interpreter = vm(0x6F07, 0x60FF, 0x7002)
        run(interpreter, 3)
        assert interpreter.V[0] == 1
        assert interpreter.V[0xF] == 7

    def test_logic_leaves_flag(self, vm):
        interpreter = vm(0x6F07, 0x600C, 0x610A, 0x8011, 0x6203, 0x8212, 0x6306, 0x8313, 0x8430)
        run(interpreter, 9)
        assert interpreter.V[0] == 0x0E
        assert interpreter.V[2] == 0x02
        assert interpreter.V[3] == 0x0C
        assert interpreter.V[4] == 0x0C
        assert interpreter.V[0xF] == 7
        assert interpreter.pc == 0x212

    def test_shift_right(self, vm):
        interpreter = vm(0x6081, 0x8006)
        run(interpreter, 2)
        assert interpreter.V[0] == 0x40
        assert interpreter.V[0xF] == 1

    def test_shift_left(self, vm):
        interpreter = vm(0x6081, 0x800E)
        run(interpreter, 2)
        assert interpreter.V[0] == 0x02
        assert interpreter.V[0xF] == 1

    def test_shift_left_no_carry(self, vm):
        interpreter = vm(0x6041, 0x800E)
        run(interpreter, 2)
        assert interpreter.V[0] == 0x82
        assert interpreter.V[0xF] == 0

    def test_shift_quirk_uses_vy(self, vm):
        interpreter = vm(0x6003, 0x6181, 0x8016, config=Config(quirks=True))
        run(interpreter, 3)
        assert interpreter.V[0] == 0x40
        assert interpreter.V[1] == 0x81
        assert interpreter.V[0xF] == 1

    def test_random_masked(self, vm):
        interpreter = vm(0xC00F, seed=42)
        interpreter.step()
        assert interpreter.V[0] == random.Random(42).getrandbits(8) & 0x0F


class TestControlFlow:

    def test_jump(self, vm):
        interpreter = vm(0x1300)
        interpreter.step()
        assert interpreter.pc == 0x300

    def test_jump_plus_v0(self, vm):
        interpreter = vm(0x6004, 0xB300)
        run(interpreter, 2)
        assert interpreter.pc == 0x304

    def test_call_return_round_trip(self, vm):
        interpreter = vm(0x2300)
        interpreter.memory.write_block(0x300, [0x00, 0xEE])
        interpreter.step()
        assert interpreter.pc == 0x300
        assert interpreter.registers.sp == 1
        interpreter.step()
        assert interpreter.pc == 0x202
        assert interpreter.registers.sp == 0

    def test_return_underflow(self, vm):
        interpreter = vm(0x00EE)
        with pytest.raises(StackUnderflow):
            interpreter.step()
        assert interpreter.pc == 0x200

    def test_call_overflow(self, vm):
        interpreter = vm(0x2200)
        run(interpreter, 16)
        assert interpreter.registers.sp == 16
        with pytest.raises(StackOverflow):
            interpreter.step()
        assert interpreter.pc == 0x200
        assert interpreter.registers.sp == 16

    @pytest.mark.parametrize('words,expected_pc', [
        ((0x6005, 0x3005), 0x206),
        ((0x6005, 0x3006), 0x204),
        ((0x6005, 0x4005), 0x204),
        ((0x6005, 0x4006), 0x206),
        ((0x6005, 0x5010), 0x204),
        ((0x6005, 0x5000), 0x206),
        ((0x6005, 0x9010), 0x206),
        ((0x6005, 0x9000), 0x204),
    ])
    def test_skips(self, vm, words, expected_pc):
        interpreter = vm(*words)
        run(interpreter, 2)
        assert interpreter.pc == expected_pc

    def test_unknown_opcode_leaves_pc(self, vm):
        interpreter = vm(0xF0FA)
        with pytest.raises(UnknownOpcode) as info:
            interpreter.step()
        assert info.value.opcode == 0xF0FA
        assert interpreter.pc == 0x200
        interpreter.skip()
        assert interpreter.pc == 0x202

    def test_unknown_opcode_does_not_tick_timers(self, vm):
        interpreter = vm(0x6005, 0xF015, 0xFFFF)
        run(interpreter, 2)
        with pytest.raises(UnknownOpcode):
            interpreter.step()
        assert interpreter.delay_timer == 5

    def test_fetch_out_of_bounds(self, vm):
        interpreter = vm(0x1FFF)
        interpreter.step()
        with pytest.raises(FetchOutOfBounds):
            interpreter.step()
        assert interpreter.pc == 0xFFF

    def test_program_too_large(self, vm):
        interpreter = vm()
        with pytest.raises(ProgramTooLarge):
            interpreter.load_program(bytes(3585))


class TestDrawing:

    def test_clear_screen(self, vm):
        interpreter = vm(0x00E0)
        interpreter.display.toggle(5, 5)
        interpreter.framebuffer()
        interpreter.step()
        rows, dirty = interpreter.framebuffer()
        assert dirty
        assert not any(any(row) for row in rows)
        assert interpreter.pc == 0x202

    def test_draw_glyph(self, vm):
        # glyph "0" lives at address 0
        interpreter = vm(0xA000, 0xD015)
        run(interpreter, 2)
        rows, dirty = interpreter.framebuffer()
        assert dirty
        assert rows[0][:5] == [1, 1, 1, 1, 0]
        assert rows[1][:5] == [1, 0, 0, 1, 0]
        assert rows[4][:4] == [1, 1, 1, 1]
        assert interpreter.V[0xF] == 0

    def test_draw_twice_restores(self, vm):
        interpreter = vm(0x600A, 0x6103, 0xA000, 0xD015, 0xD015)
        run(interpreter, 4)
        assert interpreter.V[0xF] == 0
        interpreter.step()
        rows, _ = interpreter.framebuffer()
        assert not any(any(row) for row in rows)
        assert interpreter.V[0xF] == 1

    def test_draw_twice_over_lit_pixels(self, vm):
        interpreter = vm(0xA000, 0xD015, 0xD015)
        interpreter.display.toggle(0, 0)
        interpreter.display.toggle(10, 10)
        before, _ = interpreter.framebuffer()
        run(interpreter, 2)
        assert interpreter.V[0xF] == 1
        assert interpreter.display.get(0, 0) == 0
        interpreter.step()
        after, _ = interpreter.framebuffer()
        assert after == before
        assert interpreter.V[0xF] == 1

    def test_second_draw_flag_follows_screen(self, vm):
        # every lit pixel of the sprite is already on, so the first draw
        # clears exactly those and the second draw redraws them cleanly
        interpreter = vm(0xA300, 0xD011, 0xD011)
        interpreter.memory.write_byte(0x300, 0xC0)
        interpreter.display.toggle(0, 0)
        interpreter.display.toggle(1, 0)
        run(interpreter, 2)
        assert interpreter.V[0xF] == 1
        assert interpreter.display.get(0, 0) == 0
        interpreter.step()
        assert interpreter.V[0xF] == 0
        assert interpreter.display.get(0, 0) == 1
        assert interpreter.display.get(1, 0) == 1

    def test_collision_only_when_pixel_cleared(self, vm):
        # "1" then "0" overlapping: the two glyphs share lit pixels
        interpreter = vm(0xA005, 0xD015, 0xA000, 0xD015)
        run(interpreter, 2)
        assert interpreter.V[0xF] == 0
        run(interpreter, 2)
        assert interpreter.V[0xF] == 1

    def test_wraps_horizontally(self, vm):
        interpreter = vm(0x603F, 0x6100, 0xA300, 0xD011)
        interpreter.memory.write_byte(0x300, 0xFF)
        run(interpreter, 4)
        rows, _ = interpreter.framebuffer()
        assert rows[0][63] == 1
        assert rows[0][:7] == [1] * 7
        assert rows[0][7] == 0

    def test_wraps_vertically(self, vm):
        interpreter = vm(0x6000, 0x611F, 0xA300, 0xD012)
        interpreter.memory.write_block(0x300, [0x80, 0x80])
        run(interpreter, 4)
        rows, _ = interpreter.framebuffer()
        assert rows[31][0] == 1
        assert rows[0][0] == 1

    def test_coordinates_taken_modulo(self, vm):
        interpreter = vm(0x6044, 0x6122, 0xA300, 0xD011)
        interpreter.memory.write_byte(0x300, 0x80)
        run(interpreter, 4)
        assert interpreter.display.get(4, 2) == 1

    def test_empty_sprite_still_dirty(self, vm):
        interpreter = vm(0x6F01, 0xD010)
        interpreter.step()
        interpreter.framebuffer()
        interpreter.step()
        _, dirty = interpreter.framebuffer()
        assert dirty
        assert interpreter.V[0xF] == 0

    def test_sprite_past_memory_end(self, vm):
        interpreter = vm(0xAFFF, 0xD012)
        interpreter.memory.write_byte(0xFFF, 0xFF)
        interpreter.step()
        with pytest.raises(OutOfBounds):
            interpreter.step()
        rows, _ = interpreter.framebuffer()
        assert not any(any(row) for row in rows)
        assert interpreter.pc == 0x202


class TestKeys:

    @pytest.mark.parametrize('pressed,expected_pc', [(True, 0x206), (False, 0x204)])
    def test_skip_if_pressed(self, vm, pressed, expected_pc):
        interpreter = vm(0x6005, 0xE09E)
        interpreter.set_key(5, pressed)
        run(interpreter, 2)
        assert interpreter.pc == expected_pc

    @pytest.mark.parametrize('pressed,expected_pc', [(True, 0x204), (False, 0x206)])
    def test_skip_if_not_pressed(self, vm, pressed, expected_pc):
        interpreter = vm(0x6005, 0xE0A1)
        interpreter.set_key(5, pressed)
        run(interpreter, 2)
        assert interpreter.pc == expected_pc

    def test_invalid_key(self, vm):
        interpreter = vm()
        with pytest.raises(InvalidKey):
            interpreter.set_key(16, True)

    def test_await_key(self, vm):
        interpreter = vm(0xF30A, 0x6001)
        interpreter.step()
        assert interpreter.state is State.AWAITING_KEY
        assert interpreter.pc == 0x200
        assert interpreter.step() is None
        assert interpreter.pc == 0x200
        interpreter.set_key(7, True)
        interpreter.step()
        assert interpreter.V[3] == 7
        assert interpreter.pc == 0x202
        assert interpreter.state is State.RUNNING
        interpreter.step()
        assert interpreter.V[0] == 1

    def test_await_key_picks_lowest(self, vm):
        interpreter = vm(0xF00A)
        interpreter.step()
        interpreter.set_key(0xC, True)
        interpreter.set_key(0x2, True)
        interpreter.step()
        assert interpreter.V[0] == 2

    def test_timers_tick_while_waiting(self, vm):
        interpreter = vm(0x6005, 0xF015, 0xF10A)
        run(interpreter, 2)
        assert interpreter.delay_timer == 5
        interpreter.step()
        assert interpreter.delay_timer == 4
        interpreter.step()
        assert interpreter.delay_timer == 3

    def test_timers_hold_while_waiting(self, vm):
        interpreter = vm(0x6005, 0xF015, 0xF10A, config=Config(tick_while_waiting=False))
        run(interpreter, 3)
        assert interpreter.delay_timer == 4
        run(interpreter, 3)
        assert interpreter.delay_timer == 4


class TestTimers:

    def test_read_delay_timer(self, vm):
        interpreter = vm(0x600A, 0xF015, 0xF107)
        run(interpreter, 3)
        assert interpreter.V[1] == 10
        assert interpreter.delay_timer == 9

    def test_buzzer_edge(self, vm):
        interpreter = vm(0x6001, 0xF018, 0x6000, 0x6000)
        run(interpreter, 2)
        assert interpreter.sound_timer == 1
        assert not interpreter.buzzer
        interpreter.step()
        assert interpreter.sound_timer == 0
        assert interpreter.buzzer
        interpreter.step()
        assert not interpreter.buzzer

    def test_wallclock_mode(self, vm):
        interpreter = vm(0x6003, 0xF015, 0x6000, config=Config(timer_mode='wallclock'))
        run(interpreter, 3)
        assert interpreter.delay_timer == 3
        interpreter.tick_timers()
        assert interpreter.delay_timer == 2


class TestIndexAndMemory:

    def test_set_index(self, vm):
        interpreter = vm(0xA2F0)
        interpreter.step()
        assert interpreter.I == 0x2F0
        assert interpreter.pc == 0x202

    def test_add_to_index(self, vm):
        interpreter = vm(0xA100, 0x6005, 0xF01E)
        run(interpreter, 3)
        assert interpreter.I == 0x105
        assert interpreter.V[0xF] == 0

    def test_add_to_index_overflow(self, vm):
        interpreter = vm(0xAFFE, 0x6003, 0xF01E)
        run(interpreter, 3)
        assert interpreter.I == 0x001
        assert interpreter.V[0xF] == 1

    def test_glyph_address(self, vm):
        interpreter = vm(0x600A, 0xF029)
        run(interpreter, 2)
        assert interpreter.I == 50

    def test_bcd(self, vm):
        interpreter = vm(0x60EA, 0xA300, 0xF033)
        run(interpreter, 3)
        assert interpreter.memory.read_block(0x300, 3) == bytes([2, 3, 4])
        assert interpreter.I == 0x300

    def test_register_dump(self, vm):
        interpreter = vm(0x6001, 0x6102, 0x6203, 0x6304, 0xA300, 0xF255)
        run(interpreter, 6)
        assert interpreter.memory.read_block(0x300, 4) == bytes([1, 2, 3, 0])
        assert interpreter.I == 0x303

    def test_register_load(self, vm):
        interpreter = vm(0x6207, 0xA300, 0xF165)
        interpreter.memory.write_block(0x300, [9, 8, 6])
        run(interpreter, 3)
        assert interpreter.V[:3] == [9, 8, 7]
        assert interpreter.I == 0x302

    def test_register_dump_past_memory_end(self, vm):
        interpreter = vm(0x6001, 0xAFFE, 0xF255)
        run(interpreter, 2)
        with pytest.raises(OutOfBounds):
            interpreter.step()
        assert interpreter.memory.read_block(0xFFE, 2) == b'\x00\x00'
        assert interpreter.I == 0xFFE
        assert interpreter.pc == 0x204

    def test_register_dump_at_last_byte_wraps_index(self, vm):
        interpreter = vm(0x6009, 0xAFFF, 0xF055)
        run(interpreter, 3)
        assert interpreter.memory.read_byte(0xFFF) == 9
        assert interpreter.I == 0x000

    def test_register_load_at_last_bytes_wraps_index(self, vm):
        interpreter = vm(0xAFFC, 0xF365)
        interpreter.memory.write_block(0xFFC, [1, 2, 3, 4])
        run(interpreter, 2)
        assert interpreter.V[:4] == [1, 2, 3, 4]
        assert interpreter.I == 0x000
