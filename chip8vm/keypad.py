""" The 16-key hex keypad. Only the host changes it. """

from chip8vm.errors import InvalidKey

KEY_COUNT = 16


class Keypad(object):

    def __init__(self):
        self.keys = [False] * KEY_COUNT

    def set_key(self, index, pressed):
        if index < 0 or index >= KEY_COUNT:
            raise InvalidKey('No key 0x%X on the keypad' % index)
        self.keys[index] = bool(pressed)

    def is_pressed(self, index):
        return self.keys[index & 0xF]

    def first_pressed(self):
        """ Lowest pressed key index, or None """
        for i, pressed in enumerate(self.keys):
            if pressed:
                return i
        return None

    def release_all(self):
        self.keys = [False] * KEY_COUNT
