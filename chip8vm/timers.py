""" Delay and sound countdown timers """

import logging

logger = logging.getLogger(__name__)

DELAY = 'delay'
SOUND = 'sound'


class Timers(object):

    def __init__(self):
        self.delay = 0
        self.sound = 0

    def tick(self, hold=()):
        """ Count both timers down by one while nonzero, except the ones named
            in hold. Returns True when the sound timer just reached zero, which
            is when the host beeps. """
        if self.delay > 0 and DELAY not in hold:
            self.delay -= 1
        if self.sound > 0 and SOUND not in hold:
            self.sound -= 1
            if self.sound == 0:
                logger.debug('Sound plays!')
                return True
        return False
