
import logging
log = logging.getLogger(__name__)
import unittest
import os, io, tempfile, contextlib
import importlib.util

from .util import inloop, NOTIFY_OUTPUT

_examples = os.path.join(os.path.dirname(__file__), '..', '..', 'examples')

def load_example(name):
    S = importlib.util.spec_from_file_location(name, os.path.join(_examples, name+'.py'))
    mod = importlib.util.module_from_spec(S)
    S.loader.exec_module(mod)
    return mod

# unfiltered captures include headers without path/interface/member
CAPTURE = NOTIFY_OUTPUT.replace('method call', '''\
method return time=1700000000.150000 sender=org.freedesktop.DBus -> destination=:1.40 serial=3 reply_serial=1
   string ":1.40"
method call''', 1)

@unittest.skipUnless(os.path.isfile(os.path.join(_examples, 'dumpmon.py')), 'Needs examples/')
class TestDumpMon(unittest.TestCase):
    timeout = 5.0

    def setUp(self):
        self.dumpmon = load_example('dumpmon')
        F = tempfile.NamedTemporaryFile('w', suffix='.txt', delete=False)
        self.addCleanup(os.remove, F.name)
        with F:
            F.write(CAPTURE)
        self.fname = F.name

    @inloop
    async def test_readfile(self):
        out = io.StringIO()
        with self.assertLogs('dumpmon', 'ERROR') as L, contextlib.redirect_stdout(out):
            await self.dumpmon.readfile(self.fname)

        self.assertEqual(len(L.records), 1)
        self.assertRegex(L.output[0], 'Skip line')

        lines = out.getvalue().splitlines()
        headers = [line for line in lines if not line.startswith(' ')]
        self.assertEqual(len(headers), 2)
        self.assertRegex(headers[0], r'NameAcquired #2$')
        self.assertRegex(headers[1], r'org\.freedesktop\.Notifications\.Notify #7$')
        self.assertIn("   String('Head')", lines)
        self.assertNotIn('reply_serial', out.getvalue())
