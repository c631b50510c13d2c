#!/usr/bin/python3
import logging
from pathlib import Path

from blocker.config_loader import LOOPBACK

logger = logging.getLogger(__name__)


class DenyListStore:
    """The persisted list of hostnames to redirect while a block is active.

    Each line is ``<loopback>\\t<hostname>`` so the file content can be
    transplanted into the hosts file as-is.
    """

    def __init__(self, path, loopback=LOOPBACK):
        self.path = Path(path)
        self.loopback = loopback

    def ensure_exists(self):
        """Create the directory and an empty list file if missing."""
        if not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created config directory {self.path.parent}")
        if not self.path.exists():
            self.path.touch()

    def read_all(self):
        """Return the raw deny list text."""
        self.ensure_exists()
        with open(self.path, 'r') as f:
            return f.read()

    def hostnames(self):
        """Return the hostnames in insertion order."""
        names = []
        for line in self.read_all().splitlines():
            parts = line.split()
            if len(parts) >= 2 and not parts[0].startswith('#'):
                names.append(parts[1])
        return names

    def append(self, hostname):
        """Append a loopback mapping for hostname.

        Returns False when the hostname is already listed.
        """
        hostname = hostname.strip()
        if hostname in self.hostnames():
            logger.info(f"{hostname} already in deny list")
            return False

        contents = self.read_all().rstrip('\n')
        entry = f"{self.loopback}\t{hostname}"
        new_contents = f"{contents}\n{entry}" if contents else entry

        with open(self.path, 'w') as f:
            f.write(new_contents)
        logger.info(f"Added {hostname} to {self.path}")
        return True
