""" 64x32 monochrome framebuffer """

from chip8vm.errors import OutOfBounds

WIDTH, HEIGHT = 64, 32


class Display(object):
    """ Pixels are kept in a flat list, row-major, index = x + y * WIDTH.
        Coordinates are not wrapped here; callers wrap before toggling. """

    def __init__(self):
        self.pixels = [0] * (WIDTH * HEIGHT)
        self.dirty = True

    def _index(self, x, y):
        if not (0 <= x < WIDTH and 0 <= y < HEIGHT):
            raise OutOfBounds(x + y * WIDTH, 'Pixel (%d, %d) is off screen' % (x, y))
        return x + y * WIDTH

    def get(self, x, y):
        return self.pixels[self._index(x, y)]

    def toggle(self, x, y):
        """ XOR the pixel on and return its previous value """
        idx = self._index(x, y)
        old = self.pixels[idx]
        self.pixels[idx] = old ^ 1
        return old

    def clear(self):
        self.pixels[:] = [0] * (WIDTH * HEIGHT)
        self.dirty = True

    def mark_dirty(self):
        self.dirty = True

    def rows(self):
        return [self.pixels[y * WIDTH:(y + 1) * WIDTH] for y in range(HEIGHT)]

    def framebuffer(self):
        """ Return (rows, dirty). Reading resets the dirty flag. """
        dirty = self.dirty
        self.dirty = False
        return self.rows(), dirty
