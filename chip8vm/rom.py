""" Reading ROM images from disk. A ROM is raw program bytes, no header. """

import logging

from chip8vm.errors import ProgramTooLarge, RomError
from chip8vm.memory import PROGRAM_CAPACITY

logger = logging.getLogger(__name__)


def load_rom(path):
    """ Return the bytes of the ROM at path. Raises RomError if the file can't
        be read and ProgramTooLarge if it won't fit above 0x200. """
    logger.debug('Loading ROM: %s', path)
    try:
        with open(path, 'rb') as f:
            # one byte past capacity is enough to know it is too big
            data = f.read(PROGRAM_CAPACITY + 1)
    except OSError as e:
        raise RomError('Unable to read ROM %s: %s' % (path, e)) from e
    if len(data) > PROGRAM_CAPACITY:
        raise ProgramTooLarge(len(data), PROGRAM_CAPACITY)
    logger.debug('Read %d bytes from %s', len(data), path)
    return data
