
import re

from .valid import is_interface, is_member, is_path, is_bus_name

__all__ = [
    'escape_match',
    'match_rule',
]

_re = re.compile(r"([^']+)|(')")

def escape_match(s):
    """Quote a value for a DBus match rule.

    The only escape is for single quote, which is placed outside of quotes.
    """
    if s.find("'")==-1:
        return "'%s'"%s
    return ''.join(["'%s'"%S if len(S) else r"\'" for S, _Q in _re.findall(s)])

# match rule type= uses the names from the dbus spec, not the dbus-monitor labels
_types = set(['signal', 'method_call', 'method_return', 'error'])

_valid = {
    'type':lambda V:V in _types,
    'sender':is_bus_name,
    'destination':is_bus_name,
    'interface':is_interface,
    'member':is_member,
    'path':is_path,
    'path_namespace':is_path,
}

# order of keys in the generated rule
_keys = ('type', 'sender', 'destination', 'path', 'path_namespace', 'interface', 'member')

def match_rule(**kws):
    """Build a match rule expression, as accepted by 'dbus-monitor'

    Each keyword may be None (wildcard) or a string to match exactly.

    :param str|None type: 'signal', 'method_call', 'method_return', or 'error'
    :param str|None sender: Originating bus name
    :param str|None destination: Recipient bus name
    :param str|None path: Object path.  path='/A/*' is translated to path_namespace='/A'
    :param str|None path_namespace: Object path prefix
    :param str|None interface: Interface name
    :param str|None member: Method or signal name
    :returns: str
    :throws: ValueError for unknown keywords or invalid values
    """
    if (kws.get('path') or '').endswith('/*'):
        kws['path_namespace'] = kws.pop('path')[:-2] or '/'

    expr = []
    for K in _keys:
        V = kws.pop(K, None)
        if V is None:
            continue
        elif not _valid[K](V):
            raise ValueError("Invalid %s='%s'"%(K, V))
        expr.append("%s=%s"%(K,escape_match(V)))

    if kws:
        raise ValueError("Unknown match keys %s"%', '.join(sorted(kws)))
    return ','.join(expr)
