# cvsfastimport

Building blocks for moving a CVS repository into Git. The package parses
RCS `,v` files, groups per-file CVS commits into repository-wide patchsets,
and keeps the state of an import (file revisions, patchsets, tags and
fast-import marks) so that it can be saved and picked up again by a later
run.

It has no dependencies outside the standard library.

## Modules

- `cvsfastimport.num`: RCS revision numbers (`Num`), with `Num.parse`,
  `Num.from_bytes`, `contains`, `to_branch` and dotted formatting. Numbers
  with an odd count of components are branches, even ones are commits; zero
  components are dropped when parsing. Errors derive from `CommaVError`
  (`InvalidTypesForContains`, `RcsParseError`).
- `cvsfastimport.rcs`: a parser for whole `,v` files (`parse`, giving an
  `RcsFile` with its `Admin`, `Delta` and `DeltaText` entries) and for their
  parts: `parse_admin`, `parse_delta`, `parse_delta_text`, `parse_desc`,
  `parse_string`, `parse_integrity_string` and `parse_date`.
- `cvsfastimport.marks`: the `Mark` naming a fast-import object, and
  `get_last_mark`, which reads the last mark in a fast-import mark file. It
  also defines the error types `FastImportError`, `MarkParsingError`,
  `MissingCommitterError` and `MissingCommitMessageError`.
- `cvsfastimport.patchset`: the `Detector`, which joins file commits with
  the same author and message into `PatchSet`s as long as each follows the
  previous one by no more than a given delta.
- `cvsfastimport.revisions`: `FileRevisionKey`, `FileRevision` and the
  `FileRevisionStore` that hands out IDs in insertion order.
- `cvsfastimport.store`: `PatchSetStore` and `TagStore`, plus the state
  errors `StateError`, `NoFileRevisionError`, `NoPatchSetError` and
  `UnknownVersionError`.
- `cvsfastimport.state`: the thread-safe `Manager` that ties the stores
  together and saves them to, or loads them from, a binary stream
  (gzip-compressed JSON).
- `cvsfastimport.observer`: the `Observer`, which records each file revision
  in a `Manager`, feeds one `Detector` per branch, records tags, and returns
  an `ObservationResult` of patchsets per branch.

## Examples

Revision numbers:

```python
from cvsfastimport.num import Num

branch = Num.parse("1.1.2")
assert branch.contains(Num.parse("1.1.2.1"))
assert branch.contains(Num.parse("1.1"))
assert not branch.contains(Num.parse("1.2"))
assert str(Num.parse("1.2.0.3")) == "1.2.3"
assert Num.parse("1.4").to_branch() == Num.parse("1")
```

Parsing a `,v` file and its pieces:

```python
from cvsfastimport import rcs

with open("module/file.c,v", "rb") as handle:
    parsed = rcs.parse(handle.read())

head = parsed.head()
delta, text = parsed.revision(head)
print(head, delta.author, delta.date, text.log)

assert rcs.parse_string(b"@foo@@bar@") == b"foo@bar"
print(rcs.parse_date(b"98.08.11.19.08.27"))  # 1998-08-11 19:08:27+00:00
```

Reading the last mark of a mark file:

```python
from cvsfastimport.marks import Mark, get_last_mark

mark = get_last_mark(b":25 0123456789012345678901234567890123456789\n")
assert mark == Mark(25)
assert str(mark) == ":25"
```

Detecting patchsets:

```python
from datetime import datetime, timezone
from cvsfastimport.patchset import Detector

def at(seconds):
    return datetime.fromtimestamp(seconds, timezone.utc)

detector = Detector(120)
detector.add_file_commit("foo", 1, "author", "fix", at(100))
detector.add_file_commit("bar", 2, "author", "fix", at(101))
detector.add_file_commit("foo", 3, "author", "fix", at(300))

for patchset in detector.patchsets():
    print(patchset.time, dict(patchset.file_content_items()))
```

Keeping state between runs:

```python
from cvsfastimport.state import Manager

state = Manager()
file_id = state.add_file_revision(
    "src/main.c", "1.1", None, [b"main"], "author", "initial", at(100)
)
state.add_tag(b"release-1", file_id)

with open("import.state", "wb") as out:
    state.save(out)
with open("import.state", "rb") as source:
    restored = Manager.load(source)

assert restored.get_file_revision("src/main.c", "1.1").author == "author"
```

## What it does not do

The package has no command-line program. It does not apply the ed-style
delta scripts stored in `,v` files to rebuild older revisions, does not walk
a CVSROOT looking for `,v` files, does not write the `git fast-import`
command stream or start `git fast-import`, and does not create tag commits.
The delta texts it parses are returned as raw bytes, and the `Mark`s stored
in the state have to come from whatever writes the fast-import stream.