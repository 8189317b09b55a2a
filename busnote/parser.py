
import logging
_log = logging.getLogger(__name__)

import re, codecs
import asyncio

from .props import String, Number, Unknown, Array, DictEntry, Message

__all__ = [
    'MalformedHeaderError',
    'decode_header',
    'decode_primitive',
    'MonitorParser',
]

class MalformedHeaderError(ValueError):
    """Thrown when a line which looks like the start of a message can't be decoded.

    The offending line is kept as .line
    """
    def __init__(self, msg, line):
        ValueError.__init__(self, '%s: %s'%(msg, line))
        self.line = line

# a header line starts in the first column, body lines are indented
_header = re.compile(r'\w')

_time = re.compile(r' time=(\d+\.\d+) ')

# newer dbus-monitor terminates path= and interface= with ';'
_fields = re.compile(r'time=(\d+\.\d+) sender=(.+?) -> destination=(.+?) serial=(\d+)'
                     r' path=(.+?);? interface=(.+?);? member=(.+)$')

_variant = re.compile(r'^variant\s+')

_primitive = re.compile(r'^(?:variant\s+)?(string|byte|u?int16|u?int32|u?int64|double) (.*)$')

def decode_header(line):
    """Decode the first line of a message

    >>> M = decode_header('signal time=1.5 sender=:1.2 -> destination=:1.3 serial=4 path=/p interface=a.b member=C')
    >>> M.type, M.timestamp, M.sender, M.destination, M.serial, M.path, M.interface, M.member
    ('signal', 1.5, ':1.2', ':1.3', 4, '/p', 'a.b', 'C')

    :returns: Message with no properties
    :throws: MalformedHeaderError
    """
    line = line.rstrip()
    T = _time.search(line)
    if T is None:
        raise MalformedHeaderError('No time= in header', line)
    mtype = line[:T.start()]

    M = _fields.match(line, T.start()+1)
    if M is None:
        raise MalformedHeaderError('Incomplete header', line)
    timestamp, sender, destination, serial, path, interface, member = M.groups()

    return Message(mtype, float(timestamp), sender, destination, int(serial), path, interface, member)

# plain ASCII decimal, as printed by dbus-monitor (doubles use %g)
_decimal = re.compile(r'^[+-]?\d+(\.\d*)?([eE][+-]?\d+)?$', re.ASCII)

def _number(text):
    M = _decimal.match(text)
    if M is None:
        return float('nan')
    elif M.group(1) is None and M.group(2) is None:
        return int(text)
    return float(text)

def decode_primitive(line):
    """Decode a single (trimmed) body line.

    >>> decode_primitive('string "hello"')
    String('hello')
    >>> decode_primitive('uint32 42')
    Number(42)
    >>> decode_primitive('variant       byte 1')
    Number(1)
    >>> decode_primitive('array [')
    Unknown('array [')

    :returns: String, Number, or Unknown
    """
    M = _primitive.match(line)
    if M is None:
        return Unknown(line)
    kind, rest = M.groups()
    if kind=='string':
        # strip quotes.  No un-escaping is done
        return String(rest[1:-1])
    return Number(_number(rest))

class MonitorParser(object):
    """Incremental parser for the text printed by 'dbus-monitor'.

    Raw output is passed to feed() in chunks of any size.
    Each complete Message is passed to the functions registered with on_message().

    A message has no terminator.  It is complete when the next header line is seen,
    or after 'delay' seconds pass without a call to feed().

    :param float delay: Quiet time (seconds) after which the message in progress is complete.
    :param loop: Event loop used to schedule the quiet time timer.
    """
    def __init__(self, *, delay=0.1, loop=None):
        self.log = _log
        self._loop = loop or asyncio.get_event_loop()
        self.delay = delay

        self._handlers = []
        self._msg = None   # Message in progress
        self._stack = []   # open composites.  [Array|DictEntry]
        self._tail = ''    # unterminated last line
        self._decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        self._flushT = None

    def on_message(self, fn):
        """Register fn(Message) to be called for each complete Message.

        Returns fn, so may be used as a decorator.
        """
        self._handlers.append(fn)
        return fn

    def remove_handler(self, fn):
        try:
            self._handlers.remove(fn)
        except ValueError:
            raise RuntimeError("Not my handler %s"%fn)

    @property
    def in_progress(self):
        'Is a Message being accumulated?'
        return self._msg is not None

    @property
    def depth(self):
        'Number of array/dict entries currently open'
        return len(self._stack)

    def feed(self, chunk):
        """Process some output.

        :param bytes|str chunk: Some number of lines, possibly incomplete.
        :throws: MalformedHeaderError.  The remainder of this chunk is discarded.
        """
        if self._flushT is not None:
            self._flushT.cancel()
            self._flushT = None
        try:
            if isinstance(chunk, (bytes, bytearray)):
                chunk = self._decoder.decode(chunk)
            else:
                # bytes left over from a previous chunk come first
                chunk = self._decoder.decode(b'', final=True)+chunk
            lines = (self._tail+chunk).split('\n')
            self._tail = lines.pop()
            for line in lines:
                self._line(line)
        finally:
            self._flushT = self._loop.call_later(self.delay, self._expire)

    def flush(self):
        """Complete the Message in progress now.

        Also processes any unterminated last line.
        """
        tail, self._tail = self._tail+self._decoder.decode(b'', final=True), ''
        if tail:
            self._line(tail)
        if self._msg is not None:
            self._finish()

    def close(self):
        'Cancel the quiet time timer.  A Message in progress is not emitted.'
        if self._flushT is not None:
            self._flushT.cancel()
            self._flushT = None

    def _expire(self):
        self._flushT = None
        try:
            self.flush()
        except MalformedHeaderError:
            self.log.exception("Discarding incomplete output")

    def _line(self, line):
        if not line:
            return

        elif _header.match(line):
            self._finish()
            self._msg = decode_header(line)
            self.log.debug("Begin %s %s", self._msg.type, self._msg.member)
            return

        elif self._msg is None:
            return # no header seen yet

        line = line.strip()
        if not line:
            return

        prop = decode_primitive(line)
        # variant contents are printed on the same line
        inner = _variant.sub('', line)
        if not isinstance(prop, Unknown):
            self._fold(prop)

        elif inner.startswith('dict entry('):
            self._stack.append(DictEntry())

        elif inner.startswith('array ['):
            self._stack.append(Array())

        elif line in (')', ']'):
            # the kind of bracket is not checked against the open composite
            if self._stack:
                self._fold(self._stack.pop())
            else:
                self.log.debug("Ignore unmatched '%s'", line)

        else:
            self._fold(prop)

    def _fold(self, prop):
        if not self._stack:
            self._msg.properties.append(prop)
            return
        top = self._stack[-1]
        if isinstance(top, DictEntry):
            if top.key=='' and isinstance(prop, String):
                top.key = prop.value
            else:
                top.value = prop
        else:
            top.append(prop)

    def _finish(self):
        msg, self._msg = self._msg, None
        if self._stack:
            self.log.debug("Discard %d unclosed composites", len(self._stack))
            self._stack = []
        if msg is None:
            return

        self.log.debug("Complete %s", msg)
        for fn in list(self._handlers):
            try:
                fn(msg)
            except Exception:
                self.log.exception("Error in message handler %s", fn)

    def __repr__(self):
        return '%s(delay=%s, depth=%d)'%(self.__class__.__name__, self.delay, len(self._stack))
