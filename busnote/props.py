
import math

__all__ = [
    'SIGNAL',
    'METHOD_CALL',
    'METHOD_RETURN',
    'ERROR',
    'Property',
    'String',
    'Number',
    'Unknown',
    'Array',
    'DictEntry',
    'Message',
]

# Message type labels as printed by dbus-monitor
SIGNAL = 'signal'
METHOD_CALL = 'method call'
METHOD_RETURN = 'method return'
ERROR = 'error'

class Property(object):
    """A decoded value from a message body.

    Sub-classes are compared by kind and content.
    """
    __slots__ = ('value',)
    def __init__(self, value):
        self.value = value

    def __eq__(self, other):
        return type(self) is type(other) and self.value==other.value

    __hash__ = None

    def __repr__(self):
        return '%s(%r)'%(self.__class__.__name__, self.value)

class String(Property):
    'string "..."'
    __slots__ = ()

class Number(Property):
    """Any of the integer (or double) primitives.

    NaN is produced for a value which can't be parsed, and compares equal to another NaN.
    """
    __slots__ = ()
    def __eq__(self, other):
        if type(self) is not type(other):
            return False
        elif isinstance(self.value, float) and isinstance(other.value, float) \
                and math.isnan(self.value) and math.isnan(other.value):
            return True
        return self.value==other.value

    __hash__ = None

class Unknown(Property):
    'A body line with no recognized syntax, kept verbatim'
    __slots__ = ()

class Array(Property):
    """array [ ... ]
    """
    __slots__ = ()
    def __init__(self, value=None):
        Property.__init__(self, [] if value is None else list(value))

    def append(self, prop):
        self.value.append(prop)

    def __len__(self):
        return len(self.value)

    def __iter__(self):
        return iter(self.value)

    def __getitem__(self, idx):
        return self.value[idx]

class DictEntry(Property):
    """dict entry( ... )

    One key/value pair.  A DBus map appears as an Array of DictEntry.
    The key is '' until the first String is folded in.
    """
    __slots__ = ('key',)
    def __init__(self, key='', value=None):
        Property.__init__(self, Unknown('') if value is None else value)
        self.key = key

    def __eq__(self, other):
        return type(self) is type(other) and self.key==other.key and self.value==other.value

    __hash__ = None

    def __repr__(self):
        return '%s(%r, %r)'%(self.__class__.__name__, self.key, self.value)

class Message(object):
    """One message as reported by dbus-monitor
    """
    #: Message type label.  eg. SIGNAL or METHOD_CALL
    type=None
    #: Time stamp in seconds
    timestamp=None
    #: Originator.  A unique bus name or well-known name
    sender=None
    #: Recipient bus name
    destination=None
    #: Serial number assigned by the bus
    serial=None
    #: Object path
    path=None
    #: Interface name
    interface=None
    #: Member name (method or signal name)
    member=None
    _dattrs = ('type', 'timestamp', 'sender', 'destination', 'serial', 'path', 'interface', 'member')

    def __init__(self, mtype, timestamp, sender, destination, serial, path, interface, member, properties=None):
        self.type, self.timestamp, self.serial = mtype, timestamp, serial
        self.sender, self.destination = sender, destination
        self.path, self.interface, self.member = path, interface, member
        #: Body arguments in call order.  [Property]
        self.properties = [] if properties is None else list(properties)

    @classmethod
    def build(klass, **kws):
        """Construct with defaults for any unspecified field
        """
        args = dict(mtype=SIGNAL, timestamp=0.0, sender='', destination='', serial=0,
                    path='/', interface='', member='', properties=None)
        if 'type' in kws:
            kws['mtype'] = kws.pop('type')
        for K in kws:
            if K not in args:
                raise TypeError('Unknown Message field %s'%K)
        args.update(kws)
        return klass(**args)

    def __eq__(self, other):
        if not isinstance(other, Message):
            return NotImplemented
        for K in self._dattrs:
            if getattr(self, K)!=getattr(other, K):
                return False
        return self.properties==other.properties

    __hash__ = None

    def __repr__(self):
        S = ','.join(["%s=%r"%(K,getattr(self, K, None)) for K in self._dattrs+('properties',)])
        return "%s(%s)"%(self.__class__.__name__, S)
