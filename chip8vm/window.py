# We're subclassing pyglet (that'll handle graphics, sound output, and keyboard handling)
# and overriding whatever handlers we need from there. The window is only the host:
# all machine state lives in the Interpreter.

import logging

import pyglet
from pyglet.media import synthesis

from chip8vm.config import TIMER_WALLCLOCK, UNKNOWN_SKIP
from chip8vm.display import WIDTH, HEIGHT
from chip8vm.errors import Chip8Error, UnknownOpcode

logger = logging.getLogger(__name__)

# Key mapping - maps physical keyboard keys to the CHIP-8 keypad
#   1 2 3 4      1 2 3 C
#   Q W E R  ->  4 5 6 D
#   A S D F      7 8 9 E
#   Z X C V      A 0 B F
KEYMAP = {
    pyglet.window.key._1: 0x1, pyglet.window.key._2: 0x2, pyglet.window.key._3: 0x3, pyglet.window.key._4: 0xC,
    pyglet.window.key.Q: 0x4, pyglet.window.key.W: 0x5, pyglet.window.key.E: 0x6, pyglet.window.key.R: 0xD,
    pyglet.window.key.A: 0x7, pyglet.window.key.S: 0x8, pyglet.window.key.D: 0x9, pyglet.window.key.F: 0xE,
    pyglet.window.key.Z: 0xA, pyglet.window.key.X: 0x0, pyglet.window.key.C: 0xB, pyglet.window.key.V: 0xF,
}


def generate_beep(duration=0.1, frequency=440, sample_rate=44100):
    # Use a Sine waveform from pyglet.media.synthesis
    wave = synthesis.Sine(duration=duration, frequency=frequency, sample_rate=sample_rate)
    return pyglet.media.StaticSource(wave)


def toggle_logging():
    """ Flip the package logger between DEBUG and WARNING; returns True if now on """
    package_logger = logging.getLogger('chip8vm')
    on = package_logger.getEffectiveLevel() > logging.DEBUG
    package_logger.setLevel(logging.DEBUG if on else logging.WARNING)
    return on


class Chip8Window(pyglet.window.Window):

    def __init__(self, interpreter, config):
        width, height = config.window_size
        super().__init__(width, height, caption='CHIP-8 Emulator', resizable=False)
        self.interpreter = interpreter
        self.config = config
        self.halted = False
        self.frame = [[0] * WIDTH for _ in range(HEIGHT)]

        # Pre-create a pixel sprite for drawing
        self.pixel = pyglet.image.SolidColorImagePattern((255, 255, 255, 255)).create_image(config.scale, config.scale)
        self.beep_sound = generate_beep(duration=0.2)

        # Schedule CPU and (optionally) timer ticks
        if config.cpu_hz:
            pyglet.clock.schedule_interval(self._cpu_tick, 1.0 / config.cpu_hz)
        else:
            pyglet.clock.schedule(self._cpu_tick)
        if config.timer_mode == TIMER_WALLCLOCK:
            pyglet.clock.schedule_interval(self._timer_tick, 1.0 / config.timer_hz)

    # ---- Input ----
    def on_key_press(self, symbol, modifiers):
        if symbol == pyglet.window.key.ESCAPE:
            self.close()
        elif symbol == pyglet.window.key.F1:
            logger.warning('logging on: %s', toggle_logging())
        elif symbol in KEYMAP:
            self.interpreter.set_key(KEYMAP[symbol], True)

    def on_key_release(self, symbol, modifiers):
        if symbol in KEYMAP:
            self.interpreter.set_key(KEYMAP[symbol], False)

    def on_deactivate(self):
        # release events are lost while unfocused
        self.interpreter.keypad.release_all()

    # ---- Drawing ----
    def on_draw(self):
        rows, dirty = self.interpreter.framebuffer()
        if dirty:
            self.frame = rows
        self.clear()
        scale = self.config.scale
        for y, row in enumerate(self.frame):
            for x, pixel in enumerate(row):
                if pixel:
                    self.pixel.blit(x * scale, (HEIGHT - 1 - y) * scale)

    # ---- CPU cycle ----
    def _cpu_tick(self, dt):
        # keys only change between ticks, so each batch sees one key state
        for _ in range(self.config.cycles_per_frame):
            if self.halted:
                return
            self._step()

    def _step(self):
        try:
            self.interpreter.step()
        except UnknownOpcode as e:
            if self.config.on_unknown == UNKNOWN_SKIP:
                logger.warning('%s at 0x%03X, skipping', e, self.interpreter.pc)
                self.interpreter.skip()
            else:
                self._halt(e)
        except Chip8Error as e:
            self._halt(e)
        if self.interpreter.buzzer:
            self.beep_sound.play()

    # ---- timers ----
    def _timer_tick(self, dt):
        if self.interpreter.tick_timers():
            self.beep_sound.play()

    def _halt(self, error):
        logger.error('Emulation error: %s (pc=0x%03X)', error, self.interpreter.pc)
        self.halted = True
        self.close()

    def on_close(self):
        pyglet.clock.unschedule(self._cpu_tick)
        pyglet.clock.unschedule(self._timer_tick)
        super().on_close()


def run(interpreter, config):
    Chip8Window(interpreter, config)
    pyglet.app.run()
