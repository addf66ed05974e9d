""" Emulator configuration shared by the interpreter and its host window """

from dataclasses import dataclass

from chip8vm.display import WIDTH, HEIGHT

# timers count down once per executed instruction
TIMER_PER_INSTRUCTION = 'instruction'
# the host calls Interpreter.tick_timers() on its own clock
TIMER_WALLCLOCK = 'wallclock'
TIMER_MODES = (TIMER_PER_INSTRUCTION, TIMER_WALLCLOCK)

UNKNOWN_HALT = 'halt'
UNKNOWN_SKIP = 'skip'
UNKNOWN_POLICIES = (UNKNOWN_HALT, UNKNOWN_SKIP)


@dataclass
class Config:
    scale: int = 10
    delay_ms: int = 2
    quirks: bool = False
    timer_mode: str = TIMER_PER_INSTRUCTION
    timer_hz: int = 60
    tick_while_waiting: bool = True
    on_unknown: str = UNKNOWN_HALT
    cycles_per_frame: int = 1

    def __post_init__(self):
        if self.scale < 1:
            raise ValueError('scale must be at least 1, got %r' % self.scale)
        if self.delay_ms < 0:
            raise ValueError('delay_ms must not be negative, got %r' % self.delay_ms)
        if self.timer_mode not in TIMER_MODES:
            raise ValueError('timer_mode must be one of %s' % ', '.join(TIMER_MODES))
        if self.on_unknown not in UNKNOWN_POLICIES:
            raise ValueError('on_unknown must be one of %s' % ', '.join(UNKNOWN_POLICIES))
        if self.cycles_per_frame < 1:
            raise ValueError('cycles_per_frame must be at least 1, got %r' % self.cycles_per_frame)

    @property
    def cpu_hz(self):
        """ Steps per second implied by delay_ms; 0 means run as fast as possible """
        return 1000.0 / self.delay_ms if self.delay_ms else 0

    @property
    def window_size(self):
        return WIDTH * self.scale, HEIGHT * self.scale
