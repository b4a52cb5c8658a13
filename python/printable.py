#!/usr/bin/env python3
"""
Name: printable
Description: make a byte stream safe to display on a terminal
License: perl

Copies standard input to standard output one character at a time.
Printable ASCII, tab, carriage return and newline pass through untouched,
as do whole multi-byte UTF-8 sequences. Any other byte is shown as a cyan
dot.
"""

import sys
import os
import re
import argparse
from collections import namedtuple

__version__ = "1.0"

# The escape-framed dot written in place of a non-printable byte.
PLACEHOLDER = b"\x1b[36m.\x1b[0m"

# Bytes at or above this value start a multi-byte sequence.
LEAD_BYTE_MINIMUM = 0xC0

# POSIX [:print:] plus tab, carriage return and newline.
PRINTABLE_RE = re.compile(rb'[\t\r\n\x20-\x7e]')

# One row of the lead-byte table: a lead byte no greater than
# maximum_value is followed by extra_length continuation bytes.
MultiByteLimit = namedtuple('MultiByteLimit', ['extra_length', 'maximum_value'])


class TruncatedSequenceError(ValueError):
    """Input ended in the middle of a multi-byte sequence."""

    def __init__(self, lead, expected, received):
        self.lead = lead
        self.expected = expected
        self.received = received
        super().__init__(
            f"truncated multi-byte sequence: lead byte 0x{lead:02X} needs "
            f"{expected} continuation byte(s), got {received}"
        )


def build_multi_byte_limits(count=5):
    """
    Builds the lead-byte table, ordered by sequence length.

    Row i covers the (i + 2)-byte sequences: its maximum is the byte with
    every bit set except bit (5 - i), i.e. 0xDF, 0xEF, 0xF7, 0xFB, 0xFD.
    """
    return tuple(
        MultiByteLimit(extra_length=i + 1, maximum_value=~(1 << (5 - i)) & 0xFF)
        for i in range(count)
    )


MULTI_BYTE_LIMITS = build_multi_byte_limits()


def is_printable(byte: int) -> bool:
    """True if the byte can be written to a terminal as-is."""
    return PRINTABLE_RE.fullmatch(bytes((byte,))) is not None


def extra_length(byte: int, limits=MULTI_BYTE_LIMITS) -> int:
    """
    Returns how many continuation bytes follow this byte.

    Zero for anything below 0xC0. 0xFE and 0xFF lie above the last row of
    the table and are given the longest length.
    """
    if byte < LEAD_BYTE_MINIMUM:
        return 0
    return next(
        (limit.extra_length for limit in limits if byte <= limit.maximum_value),
        limits[-1].extra_length
    )


def filter_stream(instream, outstream, limits=MULTI_BYTE_LIMITS):
    """
    Copies a binary stream to another, one character per iteration.

    Returns at end of input. Raises TruncatedSequenceError if the input
    ends before a multi-byte sequence is complete; nothing of that
    sequence is written.
    """
    while True:
        lead = instream.read(1)
        if not lead:
            return

        byte = lead[0]
        if byte >= LEAD_BYTE_MINIMUM:
            length = extra_length(byte, limits)
            extra = instream.read(length)
            if len(extra) != length:
                raise TruncatedSequenceError(byte, length, len(extra))
            outstream.write(lead + extra)
        elif is_printable(byte):
            outstream.write(lead)
        else:
            outstream.write(PLACEHOLDER)

        # Interactive use: each character shows up as soon as it is read.
        outstream.flush()


def main():
    """Parses arguments and runs the filter over stdin."""
    parser = argparse.ArgumentParser(
        description="Copy stdin to stdout, replacing non-printable bytes with a cyan dot.",
        usage="%(prog)s"
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    parser.parse_args()
    program_name = os.path.basename(sys.argv[0])

    try:
        filter_stream(sys.stdin.buffer, sys.stdout.buffer)
    except KeyboardInterrupt:
        # Ctrl-C is the normal way to stop watching a live stream.
        sys.exit(0)
    except TruncatedSequenceError as e:
        print(f"{program_name}: {e}", file=sys.stderr)
        sys.exit(1)
    except BrokenPipeError:
        # The reader went away. Close stderr so the interpreter does not
        # complain again while flushing stdout at exit.
        sys.stderr.close()
        sys.exit(1)
    except OSError as e:
        print(f"{program_name}: {e.strerror or e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(0)

if __name__ == "__main__":
    main()
