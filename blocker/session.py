#!/usr/bin/python3
"""
Timed activation and deactivation of the managed hosts region
"""
import logging
import math
import os
import queue
import threading
import uuid
from datetime import datetime

from blocker import db
from blocker.regions import BLOCK_START, BLOCK_END, remove_region, build_region, has_region

logger = logging.getLogger(__name__)


def parse_duration(value):
    """Parse a block duration in minutes, raising ValueError if unusable."""
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid duration {value!r}, expected a number of minutes")
    if math.isnan(minutes) or math.isinf(minutes) or minutes < 0:
        raise ValueError(f"invalid duration {value!r}, expected a number of minutes")
    return minutes


class BlockTimer:
    """One-shot delayed action that can be polled, awaited or cancelled.

    Completion is signalled through a single-slot queue carrying None on
    success or the exception raised by the action.
    """

    PENDING = 'pending'
    RUNNING = 'running'
    DONE = 'done'
    CANCELLED = 'cancelled'

    def __init__(self, delay_seconds, action):
        self.delay_seconds = delay_seconds
        self.action = action
        self.state = self.PENDING
        self.error = None
        self._lock = threading.Lock()
        self._signal = queue.Queue(maxsize=1)
        self._completed = threading.Event()
        self._timer = threading.Timer(delay_seconds, self._fire)
        self._timer.daemon = True

    def start(self):
        self._timer.start()
        return self

    def _fire(self):
        with self._lock:
            if self.state != self.PENDING:
                return
            self.state = self.RUNNING
        try:
            self.action()
        except Exception as e:
            logger.exception("Block timer action failed")
            outcome = e
        else:
            outcome = None
        with self._lock:
            self.state = self.DONE
        self._signal.put(outcome)

    def cancel(self):
        """Disarm the timer if it has not fired yet. Returns True if cancelled."""
        with self._lock:
            if self.state != self.PENDING:
                return False
            self.state = self.CANCELLED
        self._timer.cancel()
        self._signal.put(None)
        return True

    def done(self):
        return self.state in (self.DONE, self.CANCELLED)

    def wait(self, timeout=None):
        """Wait for the timer to finish. Returns False if timeout elapsed first."""
        if self._completed.is_set():
            return True
        try:
            outcome = self._signal.get(timeout=timeout)
        except queue.Empty:
            return False
        if outcome is not None:
            self.error = outcome
            logger.error(f"Error: block timer did not complete cleanly: {outcome}")
        self._completed.set()
        return True


class BlockSession:
    """Injects the deny list into the hosts file and lifts it after a delay."""

    def __init__(self, hosts, denylist, start_marker=BLOCK_START, end_marker=BLOCK_END):
        self.hosts = hosts
        self.denylist = denylist
        self.start_marker = start_marker
        self.end_marker = end_marker
        self.timer = None
        self.token = None

    def _strip(self):
        # caller holds the hosts lock
        contents = self.hosts.read()
        return remove_region(contents, self.start_marker, self.end_marker)

    def region_present(self):
        """Check whether the hosts file currently holds a managed region."""
        with self.hosts.locked():
            return has_region(self.hosts.read(), self.start_marker)

    def activate(self, minutes):
        """Write a fresh managed region with the current deny list and record it.

        Returns the token identifying this block.
        """
        urls = self.denylist.read_all().strip("\n")
        hostnames = self.denylist.hostnames()
        with self.hosts.locked():
            base = self._strip()
            self.hosts.write(build_region(base, urls, self.start_marker, self.end_marker))
            token = uuid.uuid4().hex
            db.record_block(token, hostnames, minutes)
        logger.info(f"Blocked {len(hostnames)} hostnames for {minutes:g} minutes")
        return token

    def deactivate(self, token=None):
        """Strip the managed region.

        With a token the region is only stripped while the recorded block
        still carries it; a block superseded by a later start is left alone.
        Returns True if the hosts file was rewritten.
        """
        with self.hosts.locked():
            if token is not None and not db.owns_block(token):
                logger.info("Block was stopped or replaced elsewhere, nothing to lift")
                return False
            self.hosts.write(self._strip())
            db.clear_block(token)
        logger.info("Removed managed region from hosts file")
        return True

    def start(self, duration_minutes, wait=True):
        """Activate the block for duration_minutes and arm its removal."""
        minutes = parse_duration(duration_minutes)
        if self.timer is not None and self.timer.cancel():
            logger.info("Replacing pending block with a new one")

        token = self.activate(minutes)
        self._arm(token, minutes * 60)
        if wait:
            self.timer.wait()
        return self.timer

    def _arm(self, token, seconds):
        self.token = token

        def expire():
            print("Stopping...")
            self.deactivate(token)

        self.timer = BlockTimer(seconds, expire).start()
        return self.timer

    def stop(self):
        """Lift the block immediately."""
        print("Stopping...")
        if self.timer is not None:
            self.timer.cancel()
        self.deactivate()

    def resume(self, wait=True):
        """Re-arm the timer for a recorded block left behind by another process.

        Returns the timer, or None when there was nothing left to wait for.
        """
        block = db.get_block()
        if block is None:
            return None
        remaining = block['end_time'] - datetime.now().timestamp()
        if remaining <= 0:
            self.deactivate(block['token'])
            return None

        db.claim_block(block['token'], os.getpid())
        self._arm(block['token'], remaining)
        if wait:
            self.timer.wait()
        return self.timer

    def reconcile(self):
        """Lift an expired block whose owning process is gone.

        Returns True if a stale block was lifted.
        """
        block = db.get_block()
        if block is None:
            return False
        if block['end_time'] > datetime.now().timestamp():
            return False
        if block['pid'] != os.getpid() and db.is_process_alive(block['pid']):
            return False
        logger.warning(f"Lifting expired block left by process {block['pid']}")
        return self.deactivate(block['token'])
