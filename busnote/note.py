
from .props import String, Number, Array, DictEntry

__all__ = [
    'NOTIFY_INTERFACE',
    'NOTIFY_PATH',
    'NOTIFY_MEMBER',
    'Notification',
    'extract_notification',
    'Condition',
    'as_condition',
]

#: Bus name and Interface name of the notification service
NOTIFY_INTERFACE = 'org.freedesktop.Notifications'
#: Path of the notification service
NOTIFY_PATH = '/org/freedesktop/Notifications'
#: Method which raises a notification
NOTIFY_MEMBER = 'Notify'

# Notify(app_name, replaces_id, app_icon, summary, body, actions, hints, expire_timeout)
_APP, _SUMMARY, _BODY, _HINTS = 0, 3, 4, 6

class Notification(object):
    """A desktop notification, as seen in a Notify call.

    :param str frm: Application name
    :param str head: Summary
    :param str body: Body text
    :param int|None urgency: Urgency hint (0, 1, or 2)
    :param int|None pid: Sender process id hint
    :param Message message: The call this was taken from
    """
    _dattrs = ('frm', 'head', 'body', 'urgency', 'pid')
    def __init__(self, frm, head, body, urgency=None, pid=None, *, message=None):
        self.frm, self.head, self.body = frm, head, body
        self.urgency, self.pid = urgency, pid
        self.message = message

    def as_dict(self):
        return {
            'from':self.frm,
            'head':self.head,
            'body':self.body,
            'urgency':self.urgency,
            'pid':self.pid,
        }

    def __eq__(self, other):
        if not isinstance(other, Notification):
            return NotImplemented
        return all([getattr(self, K)==getattr(other, K) for K in self._dattrs])

    __hash__ = None

    def __repr__(self):
        S = ','.join(["%s=%r"%(K,getattr(self, K)) for K in self._dattrs])
        return "%s(%s)"%(self.__class__.__name__, S)

def _text(props, idx):
    try:
        P = props[idx]
    except IndexError:
        return ''
    return P.value if isinstance(P, String) else ''

def _hint(hints, key, idx):
    # hints is a{sv}.  Look up by key, then fall back to position
    for E in hints:
        if isinstance(E, DictEntry) and E.key==key:
            P = E.value
            break
    else:
        try:
            P = hints[idx]
        except IndexError:
            return None
        if isinstance(P, DictEntry):
            P = P.value
    return P.value if isinstance(P, Number) else None

def extract_notification(msg):
    """Build a Notification from a Notify method call.

    :param Message msg: A complete Message
    :returns: Notification, or None if msg is not a Notify call
    """
    if msg.member!=NOTIFY_MEMBER:
        return None
    props = msg.properties
    hints = props[_HINTS] if len(props)>_HINTS and isinstance(props[_HINTS], Array) else Array()
    return Notification(
        _text(props, _APP),
        _text(props, _SUMMARY),
        _text(props, _BODY),
        urgency=_hint(hints, 'urgency', 0),
        pid=_hint(hints, 'sender-pid', 1),
        message=msg,
    )

class Condition(object):
    """Notification matching condition

    Each parameter may be None (wildcard).
    Text parameters may be a string to match exactly, or a compiled regular expression
    which must be found somewhere in the text.

    :param str|re.Pattern|None frm: Application name
    :param str|re.Pattern|None head: Summary
    :param str|re.Pattern|None body: Body text
    :param int|None urgency: Urgency hint
    :param int|None pid: Sender process id hint
    """
    cattrs = ('frm', 'head', 'body', 'urgency', 'pid')
    def __init__(self, frm=None, head=None, body=None, urgency=None, pid=None):
        self._cond = []
        for K, V in zip(self.cattrs, (frm, head, body, urgency, pid)):
            if V is not None:
                self._cond.append((K, V))

    def test(self, note):
        for K, V in self._cond:
            actual = getattr(note, K)
            if hasattr(V, 'search'):
                if not isinstance(actual, str) or V.search(actual) is None:
                    return False
            elif actual!=V:
                return False
        return True

    def __repr__(self):
        S = ','.join(["%s=%r"%(K, getattr(V, 'pattern', V)) for K, V in self._cond])
        return "%s(%s)"%(self.__class__.__name__, S)

def as_condition(like=None):
    """Accepts None (match anything), a Condition, or a dict of Condition arguments.

    The dict key 'from' is accepted in place of 'frm'.
    """
    if like is None:
        return Condition()
    elif isinstance(like, Condition):
        return like
    kws = dict(like)
    if 'from' in kws:
        kws['frm'] = kws.pop('from')
    return Condition(**kws)
