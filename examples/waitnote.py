#!/usr/bin/env python3

# Wait for a desktop notification, and print it.
#
#   ./waitnote.py --from Firefox --timeout 30

import logging
_log = logging.getLogger(__name__)
import asyncio, re, sys

from busnote.monitor import MonitorError, get_notification

def getargs():
    from argparse import ArgumentParser
    P = ArgumentParser()
    P.add_argument('-d', '--debug', action='store_true', default=False)
    P.add_argument('-E', '--regex', action='store_true', default=False,
                   help='Treat --from, --head, and --body as regular expressions')
    P.add_argument('--from', dest='frm', help='Application name')
    P.add_argument('--head', help='Summary')
    P.add_argument('--body', help='Body text')
    P.add_argument('--urgency', type=int)
    P.add_argument('--pid', type=int)
    P.add_argument('--system', action='store_const', dest='bus', const='system', default='session')
    P.add_argument('--address', help='Bus address')
    P.add_argument('-t', '--timeout', type=float)
    return P.parse_args()

async def run(args):
    like = {'urgency':args.urgency, 'pid':args.pid}
    for K in ('frm', 'head', 'body'):
        V = getattr(args, K)
        if V is not None and args.regex:
            V = re.compile(V)
        like[K] = V

    note = await get_notification(like, timeout=args.timeout, bus=args.bus, address=args.address)
    for K, V in note.as_dict().items():
        print('%s: %s'%(K, V))

def main(args):
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    loop = asyncio.new_event_loop()
    loop.set_debug(args.debug)
    try:
        loop.run_until_complete(run(args))
    except asyncio.TimeoutError:
        print("Timeout")
        sys.exit(1)
    except MonitorError as e:
        _log.error("%s", e)
        sys.exit(2)
    finally:
        loop.close()

if __name__=='__main__':
    main(getargs())
