import csv
import io

import pytest

from csafutil.csvwriter import FullyQuotedCSVWriter


def _read_back(text, delimiter=","):
    return list(csv.reader(io.StringIO(text, newline=""), delimiter=delimiter))


def test_quotes_every_field():
    out = io.StringIO()
    writer = FullyQuotedCSVWriter(out)
    writer.write(["a", 'b"c'])
    writer.flush()
    assert out.getvalue() == '"a","b""c"\n'


def test_crlf_line_end():
    out = io.StringIO()
    writer = FullyQuotedCSVWriter(out, use_crlf=True)
    writer.write(["x"])
    writer.flush()
    assert out.getvalue() == '"x"\r\n'


def test_buffered_until_flush():
    out = io.StringIO()
    writer = FullyQuotedCSVWriter(out)
    writer.write(["a"])
    assert out.getvalue() == ""
    writer.flush()
    assert _read_back(out.getvalue()) == [["a"]]


@pytest.mark.parametrize("delimiter", [",", ";", "\t"])
def test_round_trip(delimiter):
    records = [
        ["id", "title", "note"],
        ["1", 'say "hi"', "multi\nline"],
        ["", "comma, inside", "semi; colon"],
    ]
    out = io.StringIO()
    with FullyQuotedCSVWriter(out, comma=delimiter) as writer:
        for record in records:
            writer.write(record)
    assert _read_back(out.getvalue(), delimiter) == records


def test_crlf_in_fields_kept_with_crlf():
    records = [["a\r\nb", "c"]]
    out = io.StringIO()
    with FullyQuotedCSVWriter(out, use_crlf=True) as writer:
        writer.write(records[0])
    assert _read_back(out.getvalue()) == records


def test_crlf_in_fields_dropped_without_crlf():
    out = io.StringIO()
    with FullyQuotedCSVWriter(out) as writer:
        writer.write(["a\r\nb"])
    assert "\r" not in out.getvalue()
    assert len(_read_back(out.getvalue())) == 1