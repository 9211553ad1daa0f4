# csafutil

Building blocks for tools that work with CSAF security advisories:
naming and storing advisory files, pulling values out of advisory
documents, talking to servers over HTTP, and reading options and
configuration files.

Requires Python 3.11 or later. It depends on `requests` (for
`csafutil.client`) and `cryptography` (for `csafutil.certs`).

## Modules

- `csafutil.files`
  - `clean_file_name(s)` lower-cases a name, drops a trailing `.json`,
    replaces every run of characters other than `a`-`z`, `0`-`9`, `+` and
    `-` with one `_`, and appends `.json`.
  - `conforming_file_name(fname)` tells whether a name is already clean.
  - `id_matches_filename(evaluator, doc, filename)` raises `ValueError`
    unless `filename` is the clean form of `document/tracking/id`.
  - `path_exists(path)` returns `False` only when the path is missing;
    other errors propagate.
  - `CountingWriter(writer)` passes bytes through and counts them in
    `count`.
  - `write_to_file(fname, write)` creates a file and hands the open binary
    handle to `write`.
  - `deep_copy(dst, src)` recreates the directory tree of `src` inside the
    existing directory `dst`, hard linking regular files.
  - `make_uniq_file(prefix)` and `make_uniq_dir(prefix)` create a file or
    directory named after the prefix plus a time stamp
    (`-YYYY-MM-DD-HHMMSS`), adding a random hex suffix on collisions.
    `make_uniq_file` returns the name and a binary write handle.
- `csafutil.path_eval`
  - `PathEval` evaluates JSON path expressions on decoded JSON and caches
    compiled expressions. Supported are `$`, `.name`, `['name']`,
    `[index]` (negative too), `[*]`/`.*`, slices `[a:b:c]`, unions
    `['a','b']` and descent `..`. A path made only of names and indices
    yields one value and raises `PathError` if it is missing; any other path
    yields a list of all matches.
  - `extract`, `match` and `strings` run actions on results; failures raise
    `PathError` unless the expression is optional. In `strings`, a failed
    optional expression repeats the previous result (`""` at the start).
  - Actions: `string_matcher`, `bool_matcher`, `time_matcher` (a
    `strptime` format), `remarshal_matcher` and `string_tree_matcher`
    (collects unique strings, also from nested lists). `PathEvalMatcher`
    pairs an expression with an action. `as_strings` and `remarshal_json`
    are small helpers.
- `csafutil.hashes`
  - `hash_from_reader(stream)` and `hash_from_file(fname)` return the hash
    from the first line that starts with hex digits, or `None`.
  - `write_hash_to_file(fname, name, hasher, data)` and
    `write_hash_sum_to_file(fname, name, digest)` write a `<hex> <name>`
    line.
- `csafutil.urls`: `base_url(url)` returns the URL up to and including the
  last `/` of its path, without query or fragment.
- `csafutil.csvwriter`: `FullyQuotedCSVWriter(stream, comma=",",
  use_crlf=False)` quotes every field, doubles inner quotes and buffers
  records until `flush()` or the end of a `with` block.
- `csafutil.client`: clients that can be stacked, all with `do`, `get`,
  `head`, `post` and `post_form`.
  - `HttpClient(session=None, timeout=None)` sends through a
    `requests.Session`; usable as a context manager.
  - `HeaderClient(client, header)` adds header fields without changing the
    caller's request.
  - `LoggingClient(client, log=None)` reports each call as method and URL
    to `log`, or to the `logging` module at INFO level.
  - `LimitingClient(client, limiter)` calls `limiter.wait()` first;
    `RateLimiter(rate, burst=1)` is a token bucket for that.
- `csafutil.certs`: `load_certificate(cert_file, key_file, passphrase=None)`
  loads PEM certificates and a (possibly encrypted) private key into a list
  holding one `ClientCertificate`, returns `None` if neither file is given,
  and raises `ValueError` if only one is or the key does not fit.
- `csafutil.filters`: `PatternMatcher(patterns)` compiles regular
  expressions (`ValueError` on a bad one); `matches(s)` is true if any of
  them is found in `s`.
- `csafutil.mime`: `MultipartWriter(stream, boundary=None)` writes a
  multipart body part by part; `create_form_file(writer, fieldname,
  filename, mime_type)` starts a form file part with the given content type.
- `csafutil.models`
  - `TimeRange(start, end)` with `contains`, `intersects` and `to_json`.
  - `new_time_interval(a, b)` orders its arguments; `year(n)` covers a UTC
    calendar year.
  - `guess_date(s)` parses RFC 3339 time stamps and truncated forms down to
    the year alone (UTC if no zone given), or returns `None`.
  - `parse_duration(s, reference)` understands `h`, `m`, `s`, `ms`, `us`,
    `ns` plus years `y`, months `M` and days `d` counted back from
    `reference`.
  - `parse_time_range(s)` takes a duration (range ending now), a start date
    (range ending now) or `start, end`.
- `csafutil.loglevel`: `LogLevel` (`DEBUG` -4, `INFO` 0, `WARN` 4,
  `ERROR` 8, offsets such as `WARN+2`), `marshal_flag()` and
  `parse_log_level(value)`.
- `csafutil.options`
  - `Parser(config_type, ...)` builds command line options from the fields
    of a configuration dataclass, optionally loads a TOML file named by
    `config_location` or found among `default_config_locations`, and lets
    options from the command line override the file. `parse(argv)` returns
    the positional arguments and the configuration; help and a version
    request (which prints `SEM_VERSION`) end the program with status 0.
  - `load_toml(config_type, path)` raises `ValueError` for keys that match
    no field; `find_config_file(locations)` returns the first existing one
    or `""`; `error_check(err)` exits with status 1 if `err` is set.

## Examples

```python
from csafutil.files import clean_file_name, conforming_file_name

clean_file_name("HELLO")                     # "hello.json"
clean_file_name("abc_.htm__l")               # "abc_htm_l.json"
conforming_file_name("rhba-2019_0024.json")  # True
conforming_file_name("2022__01-a.json")      # False
```

```python
from csafutil.path_eval import PathEval

doc = {"document": {"tracking": {"id": "example-2024-0001"}, "title": "Example"}}
evaluator = PathEval()
evaluator.strings(["$.document.tracking.id", "$.document.title"], False, doc)
# ["example-2024-0001", "Example"]
```

```python
from datetime import datetime, timezone
from csafutil.models import year, parse_time_range

year(1984).contains(datetime(1984, 6, 1, tzinfo=timezone.utc))  # True
last_three_hours = parse_time_range("3h")
between = parse_time_range("2006-01-02T15:04:05, 2007-01-02T15:04:05")
```

```python
from csafutil.loglevel import parse_log_level

parse_log_level("info").marshal_flag()  # "info"
```

## What it does not do

This is a library only. It installs no commands, and it does not itself
download, validate against a schema, check or upload advisories; it offers
the pieces such tools are made of.