
import re

__all__ = [
    'is_interface',
    'is_member',
    'is_path',
    'is_bus_name',
]

_interface = re.compile(r'^[A-Za-z0-9_]+\.(?:[A-Za-z0-9_]+\.)*[A-Za-z0-9_]+$')
_member = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
_path = re.compile(r'^/$|^(?:/[A-Za-z0-9_]+)+$')
_unique = re.compile(r'^:[A-Za-z0-9_-]+(?:\.[A-Za-z0-9_-]+)+$')
_wellknown = re.compile(r'^[A-Za-z_-][A-Za-z0-9_-]*(?:\.[A-Za-z_-][A-Za-z0-9_-]*)+$')

def is_interface(s):
    """
    
    >>> is_interface("org.freedesktop.Notifications")
    True
    >>> is_interface("a")
    False
    >>> is_interface(".a.b")
    False
    >>> is_interface("a.b.")
    False
    >>> is_interface("")
    False
    >>> is_interface(None)
    False
    """
    return isinstance(s, str) and _interface.match(s) is not None

def is_member(s):
    """
    >>> is_member("Notify")
    True
    >>> is_member("a.b")
    False
    >>> is_member("1st")
    False
    """
    return isinstance(s, str) and _member.match(s) is not None

def is_path(s):
    """
    >>> is_path("/")
    True
    >>> is_path("/org/freedesktop/Notifications")
    True
    >>> is_path("/org/")
    False
    >>> is_path("org")
    False
    """
    return isinstance(s, str) and _path.match(s) is not None

def is_bus_name(s):
    """Unique (:1.2) or well-known (org.freedesktop.DBus) name

    >>> is_bus_name(":1.42")
    True
    >>> is_bus_name("org.freedesktop.Notifications")
    True
    >>> is_bus_name("Notifications")
    False
    """
    return isinstance(s, str) and (_unique.match(s) is not None or _wellknown.match(s) is not None)
