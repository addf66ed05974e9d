""" Command line entry point: python -m chip8vm ROM """

import argparse
import logging
import sys

from chip8vm.config import Config, TIMER_MODES, UNKNOWN_POLICIES
from chip8vm.decoder import disassemble
from chip8vm.errors import Chip8Error
from chip8vm.interpreter import Interpreter
from chip8vm.memory import PROGRAM_START
from chip8vm.rom import load_rom

logger = logging.getLogger('chip8vm')


def build_parser():
    parser = argparse.ArgumentParser(prog='chip8vm', description='CHIP-8 emulator')
    parser.add_argument('rom', help='The ROM file to be played')
    parser.add_argument('-s', '--scale', type=int, default=10,
                        help='Sets the video scale factor')
    parser.add_argument('-d', '--delay', type=int, default=2,
                        help='The time between cycles, in milliseconds. Usually between 0 and 10')
    parser.add_argument('-c', '--cycles', type=int, default=1,
                        help='Instructions run per scheduled CPU tick')
    parser.add_argument('-q', '--quirks', action='store_true',
                        help='Activate CPU quirks. May improve compatibility in some ROMs')
    parser.add_argument('--timer-mode', choices=TIMER_MODES, default=TIMER_MODES[0],
                        help='Count timers down per instruction or at 60Hz wall clock')
    parser.add_argument('--on-unknown', choices=UNKNOWN_POLICIES, default=UNKNOWN_POLICIES[0],
                        help='What to do when an unknown opcode is fetched')
    parser.add_argument('--disassemble', action='store_true',
                        help='Print a listing of the ROM instead of running it')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log every executed instruction')
    return parser


def config_from_args(args):
    return Config(scale=args.scale,
                  delay_ms=args.delay,
                  quirks=args.quirks,
                  timer_mode=args.timer_mode,
                  on_unknown=args.on_unknown,
                  cycles_per_frame=args.cycles)


def print_listing(data, out=None):
    out = out or sys.stdout
    for address, opcode, text in disassemble(data, PROGRAM_START):
        out.write('%03X: %04X  %s\n' % (address, opcode, text))


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='[%(levelname)s] %(name)s: %(message)s')
    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    try:
        data = load_rom(args.rom)
    except Chip8Error as e:
        logger.error('Error: %s', e)
        return 1

    if args.disassemble:
        print_listing(data)
        return 0

    interpreter = Interpreter(config)
    interpreter.load_program(data)

    # needs a display
    from chip8vm.window import run
    run(interpreter, config)
    return 0


if __name__ == '__main__':
    sys.exit(main())
