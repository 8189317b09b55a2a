
import logging
_log = logging.getLogger(__name__)

import asyncio
import subprocess as SP

from .escape import match_rule
from .parser import MonitorParser, MalformedHeaderError
from .note import NOTIFY_INTERFACE, extract_notification, as_condition
from .watch import NoteQueue, MonitorClosed

__all__ = [
    'MonitorError',
    'MonitorClosed',
    'Monitor',
    'with_monitor',
    'get_notification',
    'notification_from',
    'notification_head',
    'notification_body',
]

class MonitorError(RuntimeError):
    """Thrown when the dbus-monitor process can't be started, reports an error, or exits.

    :param int|None code: Process exit code, if known
    :param str|None stderr: Error output, if any
    """
    def __init__(self, msg, *, code=None, stderr=None):
        RuntimeError.__init__(self, msg)
        self.code, self.stderr = code, stderr

class Monitor(object):
    """Runs 'dbus-monitor' and parses its output.

    Notify calls are delivered to each :py:class:`.NoteQueue` created with new_queue().
    All messages are delivered to functions registered with on_message().

    :param str|None rule: Match rule.  Default watches the notification interface.
    :param str bus: 'session' or 'system'.  Ignored if address= is given.
    :param str|None address: Bus address.  eg. 'unix:path=/run/user/1000/bus'
    :param float delay: Quiet time (seconds) after which a message is complete.
    :param str|list program: Monitor executable, or list of executable and leading arguments.
    """
    #: whether to log raw output chunks (very verbose)
    debug_raw = False
    #: maximum bytes read at once
    chunk_size = 4096

    def __init__(self, *, rule=None, bus='session', address=None, delay=0.1,
                 program='dbus-monitor', loop=None):
        self.log = _log
        self._loop = loop or asyncio.get_event_loop()

        if rule is None:
            rule = match_rule(interface=NOTIFY_INTERFACE)
        if address is not None:
            busargs = ['--address', address]
        elif bus in ('session', 'system'):
            busargs = ['--'+bus]
        else:
            raise ValueError("bus= must be 'session' or 'system', not %r"%bus)
        if isinstance(program, str):
            program = [program]
        self.args = list(program) + busargs + [rule, '--monitor']

        self.parser = MonitorParser(delay=delay, loop=self._loop)
        self.parser.on_message(self._message)
        # delegate handler registration to the parser
        self.on_message = self.parser.on_message
        self.remove_handler = self.parser.remove_handler

        self._queues = [] # [NoteQueue()]
        self._proc = None
        self._T = None
        self._closing = False
        self._exit = self._loop.create_future() # completes with exit code

        #: Set to a MonitorError if the process failed (not by close())
        self.error = None

    @property
    def loop(self):
        return self._loop

    @property
    def pid(self):
        return self._proc.pid if self._proc is not None else None

    @property
    def running(self):
        'Process running?'
        return self._proc is not None and not self._exit.done()

    @property
    def closed(self):
        'Future which completes with the process exit code'
        return self._exit

    async def start(self):
        """Launch the monitor process

        A coroutine

        :throws: MonitorError if the process can't be started
        """
        if self._proc is not None or self._closing:
            raise RuntimeError("Already started")

        self.log.debug("Launching monitor with: %s", ' '.join(map(repr, self.args)))
        try:
            self._proc = await asyncio.create_subprocess_exec(*self.args,
                                                              stdin=SP.DEVNULL,
                                                              stdout=SP.PIPE,
                                                              stderr=SP.PIPE)
        except OSError as e:
            self.error = MonitorError("Can't launch %s: %s"%(self.args[0], e))
            self._shutdown(None)
            raise self.error

        self.log.info("Monitor started (pid %d)", self._proc.pid)
        self._T = self._loop.create_task(self._run())
        if self._closing:
            # close() while launching
            self._kill()
        return self

    def close(self):
        """Stop the monitor process.

        Returns a Future which completes after the process has exited,
        and all queues have been close()d.
        """
        if not self._closing:
            self.log.debug("Closing")
            self._closing = True
            if self._proc is None:
                self._shutdown(None)
            else:
                self._kill()
        return self._exit

    def new_queue(self, **kws):
        '''Create and return a new :py:class:`.NoteQueue`.
        '''
        Q = NoteQueue(self, **kws)
        self._queues.append(Q)
        if self._exit.done():
            Q.close()
        return Q

    def _kill(self):
        if self._proc.returncode is None:
            try:
                self._proc.kill()
            except ProcessLookupError:
                pass # exited, but not yet reaped

    def _message(self, msg):
        note = extract_notification(msg)
        if note is None:
            self.log.debug("Ignore %s %s", msg.type, msg.member)
            return

        used = False
        for Q in self._queues:
            used |= Q._emit(note)
        if not used:
            self.log.debug("Ignored notification %s", note)

    def _feed(self, chunk):
        if self.debug_raw:
            self.log.debug("recv %r", chunk)
        try:
            self.parser.feed(chunk)
        except MalformedHeaderError:
            self.log.exception("Discard chunk")

    async def _recv(self):
        try:
            while True:
                chunk = await self._proc.stdout.read(self.chunk_size)
                if not chunk:
                    break
                self._feed(chunk)
            # deliver anything still in progress
            self.parser.flush()

        except Exception:
            self.log.exception('Error in Monitor RX')
            self._kill()

    async def _errors(self):
        # any error output is fatal
        while True:
            data = await self._proc.stderr.read(self.chunk_size)
            if not data:
                break
            text = data.decode('utf-8', 'replace')
            self.log.warning("Monitor error output: %s", text.strip())
            if self.error is None and not self._closing:
                self.error = MonitorError("%s reports: %s"%(self.args[0], text.strip()), stderr=text)
            self._kill()

    async def _run(self):
        try:
            await asyncio.gather(self._recv(), self._errors())
        finally:
            self._kill()
            code = await self._proc.wait()
            self.log.info("Monitor exited with %s", code)
            if self.error is None and not self._closing:
                self.error = MonitorError("%s exited with %s"%(self.args[0], code), code=code)
            elif self.error is not None:
                self.error.code = code
            self._shutdown(code)

    def _shutdown(self, code):
        self.parser.close()
        for Q in self._queues:
            Q.close()
        if not self._exit.done():
            self._exit.set_result(code)

    def __repr__(self):
        return '%s(%s)'%(self.__class__.__name__, ' '.join(self.args))

async def with_monitor(func, **kws):
    """A coroutine which runs the provided coroutine function and passes in
    a newly started Monitor 'func(mon)'.

    The Monitor is closed after func() completes.

    This coroutine completes with the value returned by func()

    Remaining keyword arguments are passed to Monitor(**kws)
    """
    mon = Monitor(**kws)
    await mon.start()
    try:
        return (await func(mon))
    finally:
        await mon.close()

async def get_notification(like=None, *, timeout=None, **kws):
    """Wait for the next notification matching a condition.

    :param like: None (any notification), a :py:class:`.Condition`, or dict of Condition arguments.
    :param float|None timeout: Maximum time to wait (seconds)
    :returns: Notification
    :throws: MonitorError if the monitor fails first.  asyncio.TimeoutError on timeout.

    Remaining keyword arguments are passed to Monitor(**kws)
    """
    cond = as_condition(like)

    async def wait(mon):
        Q = mon.new_queue()
        Q.add(cond)
        F = Q.recv()
        if timeout is not None:
            F = asyncio.wait_for(F, timeout)
        try:
            note, _sts = await F
        except MonitorClosed:
            if mon.error is not None:
                raise mon.error
            raise
        return note

    return (await with_monitor(wait, **kws))

def notification_from(frm, **kws):
    'Wait for a notification from the named application (str or compiled regex)'
    return get_notification({'frm':frm}, **kws)

def notification_head(head, **kws):
    'Wait for a notification with matching summary (str or compiled regex)'
    return get_notification({'head':head}, **kws)

def notification_body(body, **kws):
    'Wait for a notification with matching body (str or compiled regex)'
    return get_notification({'body':body}, **kws)
