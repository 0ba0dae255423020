# mobikit

Building blocks for working with the binary parts of MOBI (Mobipocket / Kindle) e-books in
pure Python, with no dependencies outside the standard library.

## Modules

- `mobikit.buffer` – `Buffer`, a fixed-size big-endian read/write area with a cursor:
  `get8`/`get16`/`get32`, `add8`/`add16`/`add32`, raw and string access, `seek`, `set_pos`,
  `move`, `copy_from`, magic matching, and the MOBI variable-length integers read forward
  (`get_varlen`) or backward (`get_varlen_dec`). The errors `MobiError`, `BufferEndError`,
  `DataCorruptError` and `ParamError` live here too.
- `mobikit.compression` – `decompress_lz77` for PalmDOC records and `decompress_huffman`
  for HUFF/CDIC records, given an already filled `HuffCdic` table.
- `mobikit.tamper` – `build_tamperkeys` and `parse_tamperkeys` for the tamper-proof keys
  EXTH record, and `exth_drm_token`, which joins the EXTH records that record names.
- `mobikit.labels` – index labels: `read_label` for plain labels, `parse_ordt` and
  `read_ordt_string` for ORDT-encoded ones (returned as UTF-8).
- `mobikit.tagx` – `parse_tagx` and `parse_idxt` for the TAGX and IDXT sections.
- `mobikit.indx` – `parse_index` and `parse_indx` turn INDX records into an `Index` of
  `IndexEntry` objects; entries offer `tag_value`, `tag_values`, `orth_offset` and
  `orth_length`, and `Index.has_tag` searches all entries.
- `mobikit.inflections` – CNCX strings (`cncx_string`, `cncx_string_flat`,
  `cncx_string_utf8`), `decode_infl` for compiled inflection rules, and `infl_parts` for
  the base/inflected pairs of an old-type inflection index.

Errors are raised as exceptions derived from `mobikit.buffer.MobiError`.

## Install

```
pip install mobikit
```

## Examples

Read values from a record:

```python
from mobikit.buffer import Buffer

buf = Buffer(b"\x00\x01\x02\x03\x81")
assert buf.get32() == 0x00010203
assert buf.get_varlen() == (1, 1)   # (value, bytes read)
```

Decompress a PalmDOC text record (the second argument is the largest output allowed):

```python
from mobikit.compression import decompress_lz77

assert decompress_lz77(b"\xe8i", 4096) == b" hi"
```

Build and read back a tamper-proof keys record:

```python
from mobikit.tamper import build_tamperkeys, parse_tamperkeys

data = build_tamperkeys([(100, True)])
assert data == b"\x01\x00\x00\x00\x64"
assert parse_tamperkeys(data) == [(1, 100)]
```

Apply a compiled inflection rule:

```python
from mobikit.inflections import decode_infl

assert decode_infl(b"walk", b"\x02de") == b"walked"
```

Parse an index spread over consecutive records (meta record first, then entry records,
then any CNCX record):

```python
from mobikit.indx import parse_index

index = parse_index(records)
for entry in index.entries:
    print(entry.label, entry.orth_offset())
```

## What it does not do

mobikit works on record data you have already taken out of a file. It does not open or
write MOBI/PDB files, parse the PalmDOC, MOBI or EXTH headers, or build a `HuffCdic` table
from HUFF/CDIC records. It does not encrypt or decrypt text records and has no way to find
or apply a DRM key; `mobikit.tamper` only handles the tamper-proof keys record itself.
There is no command-line tool.

## Tests

```
pip install -e .[test]
pytest
```