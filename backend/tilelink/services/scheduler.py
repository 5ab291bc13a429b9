import threading


class ScheduledTask:
    """A deferred call that runs at most once and can be cancelled.

    ``cancel`` and ``run`` race safely: whichever claims the task first
    wins, the other becomes a no-op.
    """

    PENDING = 'pending'
    CANCELLED = 'cancelled'
    FIRED = 'fired'

    def __init__(self, callback, *args):
        self.callback = callback
        self.args = args
        self.state = self.PENDING
        self._lock = threading.Lock()

    def _claim(self, new_state: str) -> bool:
        with self._lock:
            if self.state != self.PENDING:
                return False
            self.state = new_state
            return True

    @property
    def pending(self) -> bool:
        return self.state == self.PENDING

    @property
    def fired(self) -> bool:
        return self.state == self.FIRED

    def cancel(self) -> bool:
        return self._claim(self.CANCELLED)

    def run(self) -> bool:
        if not self._claim(self.FIRED):
            return False
        self.callback(*self.args)
        return True


class SocketIOScheduler:
    """Runs scheduled tasks as Socket.IO background tasks.

    Uses ``socketio.sleep`` so timers cooperate with eventlet/gevent as well
    as the threading async mode.
    """

    def __init__(self, socketio):
        self.socketio = socketio

    def schedule(self, delay: float, callback, *args) -> ScheduledTask:
        task = ScheduledTask(callback, *args)

        def _runner(t: ScheduledTask, wait: float):
            self.socketio.sleep(wait)
            t.run()

        self.socketio.start_background_task(_runner, task, delay)
        return task
