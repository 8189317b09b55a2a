
import asyncio

from .note import Condition

__all__ = [
    'MonitorClosed',
    'NoteQueue',
]

class MonitorClosed(RuntimeError):
    """Thrown by NoteQueue.recv() after the Monitor has stopped, or the queue is close()d
    """
    def __init__(self):
        RuntimeError.__init__(self, 'Monitor closed')

class NoteQueue(object):
    """Handles Notification matching condition(s) and a Queue of received notifications.

    A notification is queued if any one Condition matches.

    :param Monitor monitor: Source of notifications
    :param int qsize: Maximum capacity of notification queue.
    """
    #: Normal operation (not overflow)
    NORMAL = 0
    #: Queue overflowed.  Some notifications lost before this one
    OFLOW = 1
    #: close() was called
    DONE = 2

    Condition = Condition
    def __init__(self, monitor, *, qsize=4):
        self.monitor, self._cond = monitor, []
        self._done, self._oflow = 0, self.NORMAL
        self._Q = asyncio.Queue(maxsize=qsize)
        # delegate Q state info
        self.empty, self.full, self.qsize = self._Q.empty, self._Q.full, self._Q.qsize

    def add(self, C=None, **kws):
        """Add a new matching Condition

        Either pass a Condition, or keyword arguments to construct one.
        add() with no arguments matches any notification.

        :returns: Condition
        """
        if self._done>0:
            raise RuntimeError("Already close()d")
        if C is None:
            C = self.Condition(**kws)
        elif kws:
            raise TypeError("Pass a Condition or keywords, not both")
        self._cond.append(C)
        return C

    def remove(self, C):
        """Removes a Condition returned by add()

        :throws: RuntimeError if the Condition has not been added, or has already been removed
        """
        if self._done>0:
            return
        elif C not in self._cond:
            raise RuntimeError("Not my condition %s"%C)
        self._cond.remove(C)

    def close(self):
        """Remove all Conditions and push DONE to the queue.

        If the queue is full, DONE is reported once the queue has been emptied.
        """
        if self._done>0:
            return
        self._done = 1
        self._cond = []
        try:
            self._Q.put_nowait((None, self.DONE))
        except asyncio.QueueFull:
            pass # recv()/poll() see the empty queue

    @property
    def closed(self):
        return self._done>0

    def _next(self, note, sts, throw_done):
        if sts==self.DONE:
            self._done = 2
        if throw_done and sts==self.DONE:
            raise MonitorClosed()
        return note, sts

    async def recv(self, *, throw_done=True):
        """coroutine yielding the next notification

        :param bool throw_done: If False then returns (None, DONE). If True then MonitorClosed is thrown.
        :returns: (:py:class:`.Notification`, NORMAL|OFLOW|DONE)
        :throws: MonitorClosed if throw_done=True and close() has been called.
        """
        if self._done==0 or (self._done==1 and not self._Q.empty()):
            note, sts = await self._Q.get()
            self._Q.task_done()
        else:
            note, sts = None, self.DONE
        return self._next(note, sts, throw_done)

    def poll(self, *, throw_done=True):
        """Non-blocking version of recv()

        :throws: asyncio.QueueEmpty
        """
        if self._done==0 or (self._done==1 and not self._Q.empty()):
            note, sts = self._Q.get_nowait()
            self._Q.task_done()
        else:
            note, sts = None, self.DONE
        return self._next(note, sts, throw_done)

    def _emit(self, note):
        'Queue note if any Condition matches.  Returns True if queued.'
        if self._done>0 or not any([C.test(note) for C in self._cond]):
            return False

        try:
            # the entry after a gap carries OFLOW
            self._Q.put_nowait((note, self._oflow))
        except asyncio.QueueFull:
            if self._oflow==self.NORMAL:
                self.monitor.log.warning("%r full, dropping notifications", self)
            self._oflow = self.OFLOW
            return False

        if self._oflow==self.OFLOW:
            self.monitor.log.info("%r resumes after dropping notifications", self)
        self._oflow = self.NORMAL
        self.monitor.log.debug("Queued %s", note)
        return True

    def __repr__(self):
        return "%s(%d conditions, %d/%d queued)"%(self.__class__.__name__, len(self._cond),
                                                  self._Q.qsize(), self._Q.maxsize)
