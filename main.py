import argparse
import sys

from typing import List, Optional, TextIO
from archiver import Decoder, Encoder
from errors import EXIT_IO, EXIT_OK, EXIT_USAGE, UsageError, WzError

USAGE = """Usage: wz
-u (usage)
-r (read from stdin, mutually exclusive with -i)
-i (input file)
-p (print to stdout, mutually exclusive with -o)
-o (output file)
-z (compress input file, mutually exclusive with -x)
-x (extract input file, mutually exclusive with -z)
-c (compact frequency table, compress only)
-P (show progress on stderr)"""


class _Parser(argparse.ArgumentParser):
    """Argument parser raising :class:`UsageError` instead of exiting."""

    def error(self, message):
        raise UsageError(message)


def get_parser():
    """Create and configure the CLI argument parser.

    :returns: Configured argument parser.
    :rtype: argparse.ArgumentParser
    """
    parser = _Parser(
        prog="wz",
        description="Huffman compressor for single files or streams",
    )
    parser.add_argument("-i", "--input", help="Input file path")
    parser.add_argument(
        "-r", "--stdin", action="store_true", help="Read input from stdin"
    )
    parser.add_argument("-o", "--output", help="Output file path")
    parser.add_argument(
        "-p", "--stdout", action="store_true", help="Write output to stdout"
    )
    parser.add_argument(
        "-z", "--zip", action="store_true", help="Compress the input"
    )
    parser.add_argument(
        "-x", "--extract", action="store_true", help="Extract the input"
    )
    parser.add_argument(
        "-c",
        "--compact",
        action="store_true",
        help="Store the frequency table with variable-width counts",
    )
    parser.add_argument(
        "-P", "--progress", action="store_true", help="Show progress"
    )
    parser.add_argument(
        "-u", "--usage", action="store_true", help="Print usage and exit"
    )
    return parser


def _validate(args: argparse.Namespace) -> None:
    """Check the option combination.

    :param args: Parsed arguments.
    :type args: argparse.Namespace
    :returns: None
    :rtype: None
    :raises UsageError: If the combination of options is invalid.
    """
    if args.zip == args.extract:
        raise UsageError("Must either zip or unzip a file!")
    if args.input is None and not args.stdin:
        raise UsageError("No input specified!")
    if args.input is not None and args.stdin:
        raise UsageError("Both stdin and input filename specified!")
    if args.output is None and not args.stdout:
        raise UsageError("No output specified!")
    if args.output is not None and args.stdout:
        raise UsageError("Both stdout and output filename specified!")
    if args.compact and args.extract:
        raise UsageError("Compact tables are only written when zipping!")


def _print_progress(line: str) -> None:
    """Render and flush a single progress line in-place (carriage return).

    :param line: The textual progress line to display.
    :type line: str
    :returns: None
    :rtype: None
    """
    sys.stderr.write("\r" + line)
    sys.stderr.flush()


def _fmt_pct(done: int, total: int) -> str:
    """Format a completion percentage string like ``12.34%``.

    :param done: Units completed.
    :type done: int
    :param total: Total units to complete.
    :type total: int
    :returns: Percentage.
    :rtype: str
    """
    if total <= 0:
        return "0%"
    pct = 100.0 * (done / float(total))
    return f"{pct:6.2f}%"


def _fmt_bytes(n: int) -> str:
    """Format a byte count into a human-readable string.

    :param n: Number of bytes.
    :type n: int
    :returns: Human-readable string.
    :rtype: str
    """
    for unit in ['', 'Ki', 'Mi', 'Gi', 'Ti']:
        if abs(n) < 1024:
            return f"{n:.2f} {unit}B"
        n /= 1024
    return f"{n:.2f} PiB"


class ProgressLine:
    """Callable progress reporter rendering one in-place line.

    Only redraws when the integer percentage changes.

    :ivar label: Action label (``"Compressing"`` or ``"Extracting"``).
    :type label: str
    """

    def __init__(self, label: str) -> None:
        self.label = label
        self._last_reported = -1

    def __call__(self, done: int, total: int) -> None:
        """Update the progress display.

        :param done: Units processed so far.
        :type done: int
        :param total: Total units.
        :type total: int
        :returns: None
        :rtype: None
        """
        if total <= 0:
            return
        percent_bucket = int((done * 100) / total)
        if percent_bucket == self._last_reported:
            return
        self._last_reported = percent_bucket
        _print_progress(f"{self.label}  {_fmt_pct(done, total)}")


def _read_input(args: argparse.Namespace) -> bytes:
    if args.stdin:
        return sys.stdin.buffer.read()
    with open(args.input, "rb") as f:
        return f.read()


def _write_output(args: argparse.Namespace, data: bytes) -> None:
    if args.stdout:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    with open(args.output, "wb") as f:
        f.write(data)


def run(args: argparse.Namespace) -> int:
    """Execute one compress or extract job.

    :param args: Parsed and validated arguments.
    :type args: argparse.Namespace
    :returns: Process exit code.
    :rtype: int
    """
    report: TextIO = sys.stderr if args.stdout else sys.stdout
    try:
        data = _read_input(args)
    except OSError as e:
        print(f"[!] Cannot read input: {e}", file=report)
        return EXIT_IO

    on_progress = None
    if args.progress:
        on_progress = ProgressLine(
            "Compressing" if args.zip else "Extracting"
        )

    try:
        if args.zip:
            result = Encoder(compact=args.compact).compress(
                data, on_progress=on_progress
            )
        else:
            result = Decoder().decompress(data, on_progress=on_progress)
    except WzError as e:
        if on_progress is not None:
            sys.stderr.write("\n")
        print(f"[!] {type(e).__name__}: {e}", file=report)
        return e.exit_code
    if on_progress is not None:
        sys.stderr.write("\n")
        sys.stderr.flush()

    try:
        _write_output(args, result)
    except OSError as e:
        print(f"[!] Cannot write output: {e}", file=report)
        return EXIT_IO

    if args.zip:
        print("Size before compression: ", _fmt_bytes(len(data)), file=report)
        print("Size after compression: ", _fmt_bytes(len(result)), file=report)
        if result:
            print(
                f"Compression ratio: {len(data) / len(result):.2f}",
                file=report,
            )
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI tool.

    :param argv: Arguments without the program name; ``sys.argv[1:]`` if
        omitted.
    :type argv: Optional[List[str]]
    :returns: Process exit code.
    :rtype: int
    """
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        print(USAGE)
        return EXIT_OK

    parser = get_parser()
    try:
        args = parser.parse_args(argv)
        if args.usage:
            print(USAGE)
            return EXIT_OK
        _validate(args)
    except UsageError as e:
        print(e)
        print(USAGE)
        print("Terminating.")
        return EXIT_USAGE
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
