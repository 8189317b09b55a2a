
import logging
_log = logging.getLogger(__name__)
import asyncio, functools

import os, sys, tempfile, shutil
import subprocess as SP

def inloop(fn):
    """Decorator assumes wrapping method of object with .loop and maybe .timeout

    A new loop is created on first use, and closed after the test.
    """
    @functools.wraps(fn)
    def testmethod(self):
        if not hasattr(self, 'loop'):
            self.loop = asyncio.new_event_loop()
            self.loop.set_debug(True)
            self.addCleanup(self.loop.close)
        F = fn(self)
        timeout = getattr(self, 'timeout', None)
        if timeout is not None:
            F = asyncio.wait_for(F, timeout)
        self.loop.run_until_complete(F)
    return testmethod

def have_exe(name):
    return shutil.which(name) is not None

# Output of 'dbus-monitor' while 'notify-send -a From Head Body' runs
NOTIFY_OUTPUT = '''\
signal time=1700000000.100000 sender=org.freedesktop.DBus -> destination=:1.40 serial=2 path=/org/freedesktop/DBus; interface=org.freedesktop.DBus; member=NameAcquired
   string ":1.40"
method call time=1700000000.200000 sender=:1.41 -> destination=org.freedesktop.Notifications serial=7 path=/org/freedesktop/Notifications; interface=org.freedesktop.Notifications; member=Notify
   string "From"
   uint32 0
   string ""
   string "Head"
   string "Body"
   array [
   ]
   array [
      dict entry(
         string "urgency"
         variant             byte 1
      )
      dict entry(
         string "sender-pid"
         variant             int64 4242
      )
   ]
   int32 -1
'''

def fake_program(*chunks, stderr='', gap=0.2, sleep=10.0, code=0):
    """Arguments for Monitor(program=...) which print some output, wait, then exit.

    Each chunk is written separately, 'gap' seconds apart.
    """
    script = '''
import sys, time
for C in %r:
    sys.stdout.write(C)
    sys.stdout.flush()
    time.sleep(%r)
sys.stderr.write(%r)
sys.stderr.flush()
time.sleep(%r)
sys.exit(%d)
'''%(list(chunks), gap, stderr, sleep, code)
    return [sys.executable, '-c', script]

class FakeMonitor(object):
    'Stand in for Monitor when testing NoteQueue'
    def __init__(self):
        self.log = logging.getLogger(__name__+'.FakeMonitor')

def send_notification(body, head=None, frm=None, *, address=None, urgency=None):
    """Run 'notify-send'.

    :param str|None address: Bus address to use in place of the session bus
    :returns: exit code
    """
    args = ['notify-send']
    if frm:
        args += ['-a', frm]
    if urgency:
        args += ['-u', urgency]
    if head:
        args.append(head)
    args.append(body)

    env = dict(os.environ)
    if address is not None:
        env['DBUS_SESSION_BUS_ADDRESS'] = address
    _log.debug("Sending with: %s", ' '.join(map(repr, args)))
    P = SP.run(args, env=env, stdin=SP.DEVNULL, stdout=SP.DEVNULL, stderr=SP.DEVNULL, timeout=30)
    return P.returncode

def send_notify_call(body, head='', frm='', *, address):
    """Call Notify with 'dbus-send'.

    Does not wait for a reply, so no notification server is needed.
    Hints are not sent.
    """
    args = ['dbus-send', '--address=%s'%address, '--type=method_call',
            '--dest=org.freedesktop.Notifications',
            '/org/freedesktop/Notifications', 'org.freedesktop.Notifications.Notify',
            'string:'+frm, 'uint32:0', 'string:', 'string:'+head, 'string:'+body]
    _log.debug("Sending with: %s", ' '.join(map(repr, args)))
    P = SP.run(args, stdin=SP.DEVNULL, timeout=30)
    return P.returncode

class DaemonRunner(object):
    'Private dbus-daemon'
    daemon = 'dbus-daemon'
    def __init__(self):
        self.exe = shutil.which(self.daemon)
        # this is an abstract socket, so the file never actually exists
        self.addr = tempfile.mktemp(prefix='dbus-test-')
        self.proc = None

    @property
    def address(self):
        'Bus address as accepted by dbus-monitor --address and DBUS_SESSION_BUS_ADDRESS'
        return 'unix:abstract=%s'%self.addr

    def start(self):
        if self.proc is not None:
            raise RuntimeError("Already running")
        elif self.exe is None:
            raise RuntimeError("No %s"%self.daemon)

        args = [self.exe, '--nofork', '--address=%s'%self.address, '--session', '--print-address']
        _log.debug("Launching daemon with: %s",
                   ' '.join(map(repr, args)))
        self.proc = SP.Popen(args, executable=self.exe, shell=False,
                             stdin=SP.DEVNULL, stdout=SP.PIPE)
        # the address is printed once the daemon is listening
        if not self.proc.stdout.readline():
            self.proc.wait()
            self.proc = None
            raise RuntimeError("%s failed to start"%self.daemon)
        _log.info("Test dbus-daemon started")

    def stop(self):
        if self.proc is None:
            raise RuntimeError("Not running")
        self.proc.kill()
        self.proc.wait()
        self.proc.stdout.close()
        self.proc = None
        _log.info("Test dbus-daemon stopped")

    def __enter__(self):
        if self.proc is None:
            self.start()
        return self

    def __exit__(self, A,B,C):
        if self.proc is not None:
            self.stop()

    def __repr__(self):
        return 'DaemonRunner(%s)'%self.addr
    __str__ = __repr__
