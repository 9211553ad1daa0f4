import io
from email import policy
from email.parser import BytesParser

import pytest

from csafutil.mime import MultipartWriter, create_form_file


def test_create_form_file():
    writer = MultipartWriter(io.BytesIO())
    part = create_form_file(writer, "csaf", "data", "application/json")
    assert part.write(b"{}") == 2


def test_exact_bytes():
    buf = io.BytesIO()
    writer = MultipartWriter(buf, boundary="B")
    create_form_file(writer, "csaf", "data", "application/json").write(b"{}")
    writer.close()
    assert buf.getvalue() == (
        b"--B\r\n"
        b'Content-Disposition: form-data; name="csaf"; filename="data"\r\n'
        b"Content-Type: application/json\r\n"
        b"\r\n"
        b"{}\r\n--B--\r\n"
    )


def test_escapes_quotes_and_backslashes():
    buf = io.BytesIO()
    writer = MultipartWriter(buf, boundary="B")
    create_form_file(writer, 'f"x', 'a"b\\c', "text/plain")
    assert b'name="f\\"x"; filename="a\\"b\\\\c"' in buf.getvalue()


def test_round_trip_with_email_parser():
    buf = io.BytesIO()
    with MultipartWriter(buf) as writer:
        create_form_file(writer, "csaf", "data", "application/json").write(b'{"a": 1}')
        create_form_file(writer, "sig", "data.asc", "text/plain").write(b"sig")
        content_type = writer.content_type
    raw = b"Content-Type: " + content_type.encode() + b"\r\n\r\n" + buf.getvalue()
    msg = BytesParser(policy=policy.default).parsebytes(raw)
    parts = list(msg.iter_parts())
    assert len(parts) == 2
    assert parts[0].get_param("name", header="content-disposition") == "csaf"
    assert parts[0].get_filename() == "data"
    assert parts[0].get_content_type() == "application/json"
    assert parts[0].get_payload(decode=True) == b'{"a": 1}'
    assert parts[1].get_filename() == "data.asc"
    assert parts[1].get_payload(decode=True) == b"sig"


def test_write_to_finished_part_fails():
    writer = MultipartWriter(io.BytesIO())
    first = create_form_file(writer, "a", "a", "text/plain")
    create_form_file(writer, "b", "b", "text/plain")
    with pytest.raises(ValueError, match="finished part"):
        first.write(b"x")


def test_empty_close():
    buf = io.BytesIO()
    MultipartWriter(buf, boundary="B").close()
    assert buf.getvalue() == b"--B--\r\n"


def test_create_after_close_fails():
    writer = MultipartWriter(io.BytesIO())
    writer.close()
    with pytest.raises(ValueError):
        writer.create_part({})


@pytest.mark.parametrize("boundary", ["", "x" * 71, "bad;", "trailing "])
def test_invalid_boundary(boundary):
    with pytest.raises(ValueError):
        MultipartWriter(io.BytesIO(), boundary=boundary)


def test_content_type_quotes_special_boundary():
    writer = MultipartWriter(io.BytesIO(), boundary="a:b")
    assert writer.content_type == 'multipart/form-data; boundary="a:b"'