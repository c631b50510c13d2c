#!/usr/bin/python3
import errno
import fcntl
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


class SystemHostsFile:
    """The OS hosts file, rewritten in full under an exclusive lock.

    Writes go to a temp file that replaces the original, keeping its mode
    and, when running as root, its owner. Where the file cannot be replaced
    (a bind-mounted /etc/hosts in a container) it is rewritten in place,
    which is not atomic.
    """

    def __init__(self, path, lock_path):
        self.path = str(path)
        self.lock_path = Path(lock_path)
        self._thread_lock = threading.Lock()
        self._held = threading.local()

    @contextmanager
    def locked(self):
        """Hold the hosts lock for one read-modify-write cycle.

        flock serializes other processes; the thread lock serializes the
        timer thread against the foreground thread of this process.
        """
        with self._thread_lock:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.lock_path, os.O_CREAT | os.O_RDWR, 0o644)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                self._held.value = True
                try:
                    yield self
                finally:
                    self._held.value = False
                    fcntl.flock(fd, fcntl.LOCK_UN)
            finally:
                os.close(fd)

    def _check_held(self):
        if not getattr(self._held, 'value', False):
            raise RuntimeError("hosts file accessed without holding its lock")

    def read(self):
        self._check_held()
        with open(self.path, 'r') as f:
            return f.read()

    def write(self, text):
        """Replace the hosts file with text, ending in a single newline."""
        self._check_held()
        if text and not text.endswith('\n'):
            text += '\n'

        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            st = None

        tf = tempfile.NamedTemporaryFile('w', delete=False, dir=directory,
                                         prefix='.hosts.', suffix='.tmp')
        try:
            with tf:
                tf.write(text)
            os.chmod(tf.name, st.st_mode & 0o777 if st is not None else 0o644)
            if st is not None and os.geteuid() == 0:
                os.chown(tf.name, st.st_uid, st.st_gid)
            os.replace(tf.name, self.path)
        except OSError as e:
            os.unlink(tf.name)
            if e.errno not in (errno.EBUSY, errno.EXDEV):
                raise
            # Bind-mounted hosts files cannot be replaced, only rewritten
            logger.warning(f"Cannot replace {self.path} ({e.strerror}), rewriting in place")
            with open(self.path, 'w') as f:
                f.write(text)
        except Exception:
            os.unlink(tf.name)
            raise
        logger.debug(f"Wrote {len(text)} bytes to {self.path}")
