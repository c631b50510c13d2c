#!/usr/bin/python3
"""
Blocker - temporarily redirect distracting hostnames to localhost

Usage:
    blocker add example.com      # Add a hostname to the deny list
    blocker start 25             # Block for 25 minutes, then unblock
    blocker stop now             # Unblock now (second argument is ignored)
    blocker status               # Show the current block
    blocker list                 # Show the deny list
    blocker resume               # Wait out a block left by a killed process
"""
import argparse
import logging
import sqlite3
import sys
from datetime import datetime

import yaml

from blocker import db
from blocker.config_loader import Config
from blocker.denylist import DenyListStore
from blocker.hosts import SystemHostsFile
from blocker.session import BlockSession, parse_duration

logger = logging.getLogger(__name__)

# Commands that may leave out the positional argument
OPTIONAL_ARG_COMMANDS = ('status', 'list', 'resume')


class ArgumentError(Exception):
    pass


class ArgumentParser(argparse.ArgumentParser):
    """argparse parser that raises instead of exiting with status 2."""

    def error(self, message):
        raise ArgumentError(message)


def setup_logging(config, verbose=False):
    """Configure the root logger from config."""
    handlers = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def format_time_remaining(seconds):
    """Format seconds into human-readable time."""
    def plural(n, unit):
        return f"{n} {unit}{'s' if n != 1 else ''}"

    seconds = max(int(seconds), 0)
    if seconds < 60:
        return plural(seconds, "second")
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return plural(hours, "hour") + (f" {plural(minutes, 'minute')}" if minutes else "")
    return plural(minutes, "minute") + (f" {plural(secs, 'second')}" if secs else "")


def build_session(config):
    denylist = DenyListStore(config.denylist_path, config.loopback)
    hosts = SystemHostsFile(config.hosts_path, config.lock_path)
    return BlockSession(hosts, denylist)


def cmd_add(session, args):
    """Add a hostname to the deny list."""
    if session.denylist.append(args.arg):
        print(f"Added {args.arg}")
    else:
        print(f"{args.arg} is already in the deny list")


def cmd_start(session, args):
    """Block for the given minutes and wait until the block is lifted."""
    minutes = args.minutes
    if not session.denylist.hostnames():
        print("Deny list is empty, add a hostname first")
    print(f"Blocking for {format_time_remaining(minutes * 60)}")
    try:
        session.start(minutes)
    except KeyboardInterrupt:
        block = db.get_block()
        if block:
            until = datetime.fromtimestamp(block['end_time']).strftime('%H:%M')
            print(f"\nInterrupted. Block stays in place until {until}; "
                  f"run 'blocker resume' or 'blocker stop'.")
        raise


def cmd_stop(session, args):
    """Lift the block now."""
    session.stop()


def cmd_status(session, args):
    """Show the current block."""
    block = db.get_block()
    if block is None:
        print("No block active")
        if session.region_present():
            print("Hosts file still holds a managed region; run 'blocker stop' to remove it")
        return
    remaining = block['end_time'] - datetime.now().timestamp()
    print(f"Blocking: {', '.join(block['hostnames']) or '(nothing)'}")
    if remaining > 0:
        print(f"Remaining: {format_time_remaining(remaining)}")
    else:
        print("Expired, waiting to be lifted")
    if not db.is_process_alive(block['pid']):
        print("Owning process is gone; run 'blocker resume' to finish it")


def cmd_list(session, args):
    """Print the deny list."""
    hostnames = session.denylist.hostnames()
    if not hostnames:
        print("Deny list is empty")
        return
    for hostname in hostnames:
        print(hostname)


def cmd_resume(session, args):
    """Wait out a block recorded by another process."""
    block = db.get_block()
    if block is None:
        print("No block to resume")
        return
    if db.is_process_alive(block['pid']):
        print(f"Block is still owned by process {block['pid']}")
        return
    timer = session.resume()
    if timer is None:
        print("Block already expired, lifted it")


COMMANDS = {
    'add': cmd_add,
    'start': cmd_start,
    'stop': cmd_stop,
    'status': cmd_status,
    'list': cmd_list,
    'resume': cmd_resume,
}


def parse_args(argv=None):
    parser = ArgumentParser(
        prog='blocker',
        description="Temporarily block hostnames through the hosts file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split('Usage:', 1)[1],
    )
    parser.add_argument('--config', help='Path to config file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    parser.add_argument('command', help='add, start, stop, status, list or resume')
    parser.add_argument('arg', nargs='?', help='Hostname for add, minutes for start')
    args = parser.parse_args(argv)

    if args.arg is None and args.command not in OPTIONAL_ARG_COMMANDS:
        raise ArgumentError("not enough arguments")
    args.minutes = None
    if args.command == 'start':
        try:
            args.minutes = parse_duration(args.arg)
        except ValueError as e:
            raise ArgumentError(str(e))
    return args


def main(argv=None):
    try:
        args = parse_args(argv)
    except ArgumentError as e:
        print(f"Problem parsing arguments: {e}")
        sys.exit(1)

    handler = COMMANDS.get(args.command)
    if handler is None:
        print("Unknown command")
        sys.exit(0)

    try:
        config = Config(args.config)
        setup_logging(config, args.verbose)
        db.DB_PATH = config.state_path
        db.init_db()

        session = build_session(config)
        if args.command != 'resume' and session.reconcile():
            print("Lifted an expired block left by an earlier run")
        handler(session, args)
    except (OSError, ValueError, RuntimeError, sqlite3.Error, yaml.YAMLError) as e:
        logger.debug("Fatal error", exc_info=True)
        print(f"Application error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(1)

    sys.exit(0)


if __name__ == '__main__':
    main()
