import argparse

import pytest

from errors import UsageError


def _ns(**overrides):
    values = dict(
        input="in", stdin=False, output="out", stdout=False,
        zip=True, extract=False, compact=False, progress=False, usage=False,
    )
    values.update(overrides)
    return argparse.Namespace(**values)


def test_fmt_pct_and_bytes(m):
    assert m._fmt_pct(0, 0) == "0%"
    assert m._fmt_pct(50, 100).strip().endswith("%")
    assert m._fmt_pct(10, 10).strip().startswith("100")

    assert m._fmt_bytes(0) == "0.00 B"
    assert m._fmt_bytes(1024).endswith("KiB")


def test_progress_line_calls_bucketed(no_progress, m):
    p = m.ProgressLine("Compressing")
    p(0, 100)
    p(0, 100)
    p(10, 100)
    p(10, 100)
    p(19, 100)
    p(19, 100)
    p(5, 0)
    assert len(no_progress) == 3
    assert all(line.startswith("Compressing") for line in no_progress)


def test_validate_accepts_file_and_stream_modes(m):
    m._validate(_ns())
    m._validate(_ns(input=None, stdin=True, output=None, stdout=True))
    m._validate(_ns(zip=False, extract=True))


@pytest.mark.parametrize(
    "overrides",
    [
        dict(zip=False),
        dict(extract=True),
        dict(input=None),
        dict(stdin=True),
        dict(output=None),
        dict(stdout=True),
        dict(zip=False, extract=True, compact=True),
    ],
)
def test_validate_rejects(overrides, m):
    with pytest.raises(UsageError):
        m._validate(_ns(**overrides))


def test_cli_parser_accepts_flags(m):
    parser = m.get_parser()
    ns = parser.parse_args(["-i", "file1", "-o", "out.wz", "-z", "-c"])
    assert ns.input == "file1" and ns.output == "out.wz"
    assert ns.zip and ns.compact and not ns.extract
    ns2 = parser.parse_args(["--stdin", "--stdout", "--extract", "-P"])
    assert ns2.stdin and ns2.stdout and ns2.extract and ns2.progress
