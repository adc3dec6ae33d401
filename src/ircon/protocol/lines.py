"""
Encodes attribute tokens as protocol lines, and writes the lines to the device from a single
background thread.
"""
import logging
from queue import Empty, Queue

from ircon.conduit.base import Conduit
from ircon.connector.base import SendFailure
from ircon.protocol.background import AsyncLoop

logger = logging.getLogger(__name__)

TOKEN_TERMINATOR = ','
LINE_TERMINATOR = '\n'


def encode_line(tokens):
    """
    Builds a protocol line. Each token is followed by a comma, and the line ends with a newline.

    >>> encode_line(['mode:on', 'power:-'])
    'mode:on,power:-,\\n'
    >>> encode_line([])
    '\\n'
    """
    return ''.join(token + TOKEN_TERMINATOR for token in tokens) + LINE_TERMINATOR


def tobytes(arg):
    """
    Converts a string to bytes
    >>> tobytes("abc")
    b'abc'
    >>> tobytes(b"abc")
    b'abc'
    """
    if isinstance(arg, str):
        arg = bytes(arg, encoding='ascii')
    return arg


class LineWriter(AsyncLoop):
    """
    Owns the sending side of a conduit. Lines are queued by any number of threads with put()
    and written in order by the background thread, one complete line per send, so lines from
    concurrent writers are never interleaved.

    The protocol has no acknowledgements, so a failed send is only known to this thread. The
    first failure is kept and raised as SendFailure from the next put() or flush(); lines queued
    after a failure are discarded.

    :param conduit: the conduit lines are written to
    :param poll_interval: how often the background thread checks for the stop signal while idle
    """

    def __init__(self, conduit: Conduit, poll_interval=0.1, log=logger):
        super().__init__(log=log, name='line-writer')
        self.conduit = conduit
        self.poll_interval = poll_interval
        self._lines = Queue()
        self._failure = None

    @property
    def failure(self):
        return self._failure

    def put(self, line):
        """
        Queues a line for sending.
        :raises SendFailure: if an earlier line could not be sent
        """
        self.raise_failure()
        self._lines.put(tobytes(line))

    def flush(self):
        """
        Blocks until every queued line has been sent or discarded.
        :raises SendFailure: if a line could not be sent
        """
        if self.background_thread is not None:
            self._lines.join()
        self.raise_failure()

    def raise_failure(self):
        failure = self._failure
        if failure is not None:
            raise failure

    def loop(self):
        try:
            line = self._lines.get(timeout=self.poll_interval)
        except Empty:
            return
        try:
            self._send(line)
        finally:
            self._lines.task_done()

    def _send(self, line):
        if self._failure is not None:
            logger.debug("discarding %r after earlier send failure" % line)
            return
        try:
            self.conduit.send(line)
            logger.debug("sent %r" % line)
        except OSError as e:
            logger.warning("error sending %r: %s" % (line, e))
            failure = SendFailure("unable to send %r" % line)
            failure.__cause__ = e
            self._failure = failure

    def close(self):
        """
        Sends any queued lines then stops the background thread.
        """
        if self.background_thread is not None:
            self._lines.join()
        self.stop()
