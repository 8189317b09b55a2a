#!/usr/bin/env python3

# Print each message parsed from dbus-monitor output.
#
# Either runs dbus-monitor
#   ./dumpmon.py "interface='org.freedesktop.Notifications'"
# or reads previously captured output
#   dbus-monitor --session > capture.txt
#   ./dumpmon.py -f capture.txt

import logging
_log = logging.getLogger(__name__)
import asyncio

from busnote.props import Array, DictEntry
from busnote.monitor import Monitor
from busnote.parser import MonitorParser, MalformedHeaderError

def show(prop, indent='   '):
    if isinstance(prop, Array):
        print('%sArray' % indent)
        for P in prop:
            show(P, indent+'   ')
    elif isinstance(prop, DictEntry):
        print('%sDictEntry %r' % (indent, prop.key))
        show(prop.value, indent+'   ')
    else:
        print('%s%r' % (indent, prop))

def dump(msg):
    print('%s %s -> %s %s %s.%s #%d' % (msg.type, msg.sender, msg.destination,
                                        msg.path, msg.interface, msg.member, msg.serial))
    for P in msg.properties:
        show(P)

async def readfile(fname):
    parser = MonitorParser()
    parser.on_message(dump)
    with open(fname, 'rb') as F:
        # a line at a time, so a bad header only loses itself
        for line in F:
            try:
                parser.feed(line)
            except MalformedHeaderError:
                _log.exception("Skip line")
    parser.flush()
    parser.close()

async def monitor(args):
    mon = Monitor(rule=args.rule, bus=args.bus, address=args.address)
    mon.on_message(dump)
    await mon.start()
    try:
        await mon.closed
    finally:
        await mon.close()
    if mon.error is not None:
        _log.error("%s", mon.error)

def getargs():
    from argparse import ArgumentParser
    P = ArgumentParser()
    P.add_argument('-d', '--debug', action='store_true', default=False)
    P.add_argument('-f', '--file', help='Read captured output')
    P.add_argument('--system', action='store_const', dest='bus', const='system', default='session')
    P.add_argument('--address', help='Bus address')
    P.add_argument('rule', nargs='?', default="interface='org.freedesktop.Notifications'")
    return P.parse_args()

def main(args):
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    loop = asyncio.new_event_loop()
    loop.set_debug(args.debug)
    try:
        if args.file:
            loop.run_until_complete(readfile(args.file))
        else:
            loop.run_until_complete(monitor(args))
    except KeyboardInterrupt:
        pass
    finally:
        loop.close()

if __name__=='__main__':
    main(getargs())
