# pmtypes

Polymorphic message types for Python.

A `Pmt` holds exactly one value from a fixed set of shapes (`Kind`):

- null
- a typed scalar
- a string
- a uniform vector of one scalar type
- a vector of strings
- a vector of other `Pmt` values
- a map from `str` keys to `Pmt` values

The scalar element types are listed in `Dtype`:

- `BOOL`
- `INT8`, `INT16`, `INT32`, `INT64`
- `UINT8`, `UINT16`, `UINT32`, `UINT64`
- `FLOAT32`, `FLOAT64`
- `COMPLEX64`, `COMPLEX128`

Every value keeps its element type. It can therefore be written to a compact binary form and read back unchanged.

The package has no dependencies outside the standard library.

## Installation

```
pip install pmtypes
```

## Building values (`pmtypes.types`)

```python
from pmtypes.types import Dtype, Pmt, bytes_per_element, cast, elements, get_map, get_vector

null = Pmt()
number = Pmt(42)                      # int64 scalar
small = Pmt(7, Dtype.UINT8)           # explicit element type
text = Pmt("hello world")
values = Pmt.vector(Dtype.INT32, range(5))
zeros = Pmt.filled(Dtype.FLOAT32, 10)
names = Pmt(["hello world", "abc"], str)
mixed = Pmt([1.0, 2, "abc"])          # vector of Pmt values
mapping = Pmt({"key1": Pmt(1.5), "key2": Pmt("abc")})
```

Plain Python numbers get a default type when no `dtype` is given:

| Python type | `Dtype`      |
|-------------|--------------|
| `bool`      | `BOOL`       |
| `int`       | `INT64`      |
| `float`     | `FLOAT64`    |
| `complex`   | `COMPLEX128` |

A value that does not fit the requested type raises an error:

- `ValueError` when an integer is out of range.
- `TypeError` when the value has the wrong kind for the type.

### Comparing values

A `Pmt` compares equal to another `Pmt` of the same kind, element type and contents. It also compares equal to a plain Python value of the matching category, for example `Pmt(4, Dtype.UINT8) == 4`.

### Helper functions

- `elements(value)` returns the number of elements: 0 for null, 1 for a scalar, the length otherwise. `len()` and `Pmt.size()` give the same number.
- `bytes_per_element(value)` returns the size in bytes of one element of a null, scalar, string or uniform vector.
- `cast(value, target)` converts a scalar to a `Dtype` or to `bool`, `int`, `float` or `complex`. Integers wrap as in a fixed-width conversion. It can also read a string (`str`), a vector (`list`) or a map (`dict`). Any other request raises `PmtCastError`; this includes complex to real.
- `get_map(value)` returns the stored map. Changes made to it change the `Pmt`.
- `get_vector(value, dtype=None)` returns the stored list. If `dtype` is given, the element type is checked first.

## Text form (`pmtypes.formatting`)

```python
from pmtypes.formatting import format_complex, format_pmt

format_pmt(mapping)             # "{key1: 1.5, key2: abc}"
format_pmt(Pmt(1 - 2j))         # "1-j2"
format_complex(0.5 + 3j)        # "0.5+j3"
```

How each kind is rendered:

| Value       | Text                                                        |
|-------------|-------------------------------------------------------------|
| null        | `null`                                                      |
| bool        | `true` / `false`                                            |
| number      | shortest form for its precision                             |
| complex     | `re+jim` or `re-jim`                                        |
| string      | the string itself                                           |
| vector      | `[a, b, c]`                                                 |
| map         | `{key: value, ...}`, keys sorted                            |

## Serialisation (`pmtypes.serialiser`)

```python
import io
from pmtypes.serialiser import deserialize, dumps, from_base64, loads, serialize, to_base64

data = dumps(mapping)
assert loads(data) == mapping

encoded = to_base64(mapping)
assert from_base64(encoded) == mapping

stream = io.BytesIO()
count = serialize(mapping, stream)    # number of bytes written
stream.seek(0)
assert deserialize(stream) == mapping
```

### Wire format

Each value is written as:

1. a 16-bit format version;
2. a 16-bit type identifier (see `serial_id(value)` and `type_index(dtype)`);
3. its payload.

All numbers are little-endian. Map entries are written in sorted key order.

### Errors

`DeserializeError` is raised in two cases:

- the type identifier is unknown;
- the data ends early.

### Base64 helpers (`pmtypes.b64`)

`pmtypes.b64` provides `encode`, `decode`, `encoded_length` and `decoded_length`.

The decoder reads up to the first character outside the base64 alphabet. Padding is optional.

### Dataclasses and maps

Dataclasses convert to and from maps:

```python
from dataclasses import dataclass, field
from pmtypes.serialiser import map_from_struct, to_struct, validate_map
from pmtypes.types import Dtype

@dataclass
class Sample:
    x: int
    y: float = field(metadata={"dtype": Dtype.FLOAT32})
    z: float = 0.0

m = map_from_struct(Sample(1, 2.0, 4.1))
assert validate_map(m, Sample, exact=True)
assert to_struct(m, Sample) == Sample(1, 2.0, 4.1)
```

Each field's type comes from one of two places:

- its `metadata["dtype"]`, if set;
- otherwise its annotation.

`to_struct` raises an error when the map does not match the dataclass:

- `KeyError` for a missing field;
- `PmtCastError` for an entry of the wrong type.

## Benchmarks (`pmtypes.bench`)

The `pmtypes-bench` command runs simple timing loops. It prints the elapsed seconds and whether every check passed, using this format:

```
[PROFILE_TIME]...[PROFILE_TIME]
[PROFILE_VALID]1[PROFILE_VALID]
```

```
pmtypes-bench --help
pmtypes-bench serialize-uvec --samples 1000 --veclen 1024
pmtypes-bench dict-ref --samples 10000 --items 100 --index 0
pmtypes-bench dict-pack --samples 10000 --items 100
```

The same loops are available as functions:

- `run_serialize_uvec(times, data)`
- `run_dict_ref(times, pmt_map, index)`
- `run_dict_pack(times, nitems)`

## What it does not do

Values are built from plain Python numbers, strings, lists and dicts. There is no conversion to or from NumPy arrays or NumPy scalar types.