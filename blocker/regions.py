#!/usr/bin/python3
"""
Text helpers for the managed region inside the hosts file
"""
import re

# Markers delimiting the region we own in the hosts file
BLOCK_START = "# start block"
BLOCK_END = "# end block"

_BLANK_RUNS = re.compile(r"\n{3,}")


def remove_region(text, start_marker=BLOCK_START, end_marker=BLOCK_END):
    """Remove the marker-delimited region (markers included) from text.

    Lines before the start marker and after the end marker are kept. A region
    with no end marker runs to the end of the text. An end marker seen before
    any start marker leaves the text untouched.
    """
    start_marker = start_marker.strip()
    end_marker = end_marker.strip()

    found_start = False
    found_end = False
    end_index = 0
    kept = []
    for i, line in enumerate(text.splitlines()):
        if line.strip() == start_marker:
            found_start = True
        if line.strip() == end_marker:
            end_index = i
            found_end = True

        if not found_start or (found_end and i != end_index):
            kept.append(line)

    result = "\n".join(kept) + "\n" if kept else ""
    return _BLANK_RUNS.sub("\n\n", result).rstrip()


def build_region(text, body, start_marker=BLOCK_START, end_marker=BLOCK_END):
    """Append a managed region holding body to text."""
    region = f"{start_marker}\n{body}\n{end_marker}" if body else f"{start_marker}\n{end_marker}"
    if not text:
        return region
    return f"{text}\n\n{region}"


def has_region(text, start_marker=BLOCK_START):
    """Check whether text contains a start marker line."""
    start_marker = start_marker.strip()
    return any(line.strip() == start_marker for line in text.splitlines())
