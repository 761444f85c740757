"""Timing runs for vector serialisation and map lookup and construction."""

from __future__ import annotations

import argparse
import io
import sys
import time
from collections.abc import Callable, Sequence
from typing import Any

from pmtypes.serialiser import deserialize, serialize
from pmtypes.types import Dtype, Pmt, cast, get_map


def run_serialize_uvec(times: int, data: Sequence[int]) -> bool:
    """Serialise and read back an int32 vector ``times`` times; True if every copy matched."""
    valid = True
    original = Pmt(list(data), Dtype.INT32)
    channel = io.BytesIO()
    for _ in range(times):
        channel.seek(0)
        channel.truncate()
        serialize(original, channel)
        channel.seek(0)
        if deserialize(channel) != original:
            valid = False
    return valid


def run_dict_ref(times: int, pmt_map: Pmt, index: int) -> bool:
    """Look up ``key<index>`` ``times`` times; True if it always held ``index``.

    A missing key reads as null, which cannot be cast and raises PmtCastError.
    """
    key = f"key{index}"
    entries = get_map(pmt_map)
    valid = True
    for _ in range(times):
        ref = entries.get(key, Pmt())
        if cast(ref, Dtype.INT32) != index:
            valid = False
    return valid


def run_dict_pack(times: int, nitems: int) -> bool:
    """Build a map of ``nitems`` int32 entries ``times`` times."""
    valid = True
    for _ in range(times):
        starting = {f"key{k}": Pmt(k, Dtype.INT32) for k in range(nitems)}
        packed = Pmt(starting)
        if len(packed) != nitems:
            valid = False
    return valid


def _build_map(items: int) -> Pmt:
    return Pmt({f"key{k}": Pmt(k, Dtype.INT32) for k in range(items)})


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pmtypes-bench", description="Benchmarks for Pmt values"
    )
    commands = parser.add_subparsers(dest="benchmark", required=True)

    uvec = commands.add_parser(
        "serialize-uvec", help="Benchmarking Script for Uniform Vector Serialization"
    )
    uvec.add_argument("--samples", type=int, default=1000000, help="Number of Samples")
    uvec.add_argument("--veclen", type=int, default=1024, help="Vector Length")

    ref = commands.add_parser(
        "dict-ref", help="Benchmarking Script for Dictionary Packing and Unpacking"
    )
    ref.add_argument("--samples", type=int, default=10000,
                     help="Number of times to perform lookup")
    ref.add_argument("--items", type=int, default=100, help="Number of items in dict")
    ref.add_argument("--index", type=int, default=0, help="Index for lookup")

    pack = commands.add_parser(
        "dict-pack", help="Benchmarking Script for Dictionary Packing and Unpacking"
    )
    pack.add_argument("--samples", type=int, default=10000,
                      help="Number of times to perform lookup")
    pack.add_argument("--items", type=int, default=100, help="Number of items in dict")
    return parser


def _timed(run: Callable[[], Any]) -> tuple[float, bool]:
    start = time.perf_counter_ns()
    valid = run()
    elapsed = (time.perf_counter_ns() - start) * 1e-9
    return elapsed, bool(valid)


def main(argv: Sequence[str] | None = None) -> int:
    """Run one benchmark and print its time in seconds and whether it was valid."""
    args = _parser().parse_args(argv)

    if args.benchmark == "serialize-uvec":
        if args.veclen < 0:
            raise SystemExit("--veclen must not be negative")
        data = list(range(args.veclen))
        elapsed, valid = _timed(lambda: run_serialize_uvec(args.samples, data))
    elif args.benchmark == "dict-ref":
        pmt_map = _build_map(args.items)
        elapsed, valid = _timed(lambda: run_dict_ref(args.samples, pmt_map, args.index))
    else:
        elapsed, valid = _timed(lambda: run_dict_pack(args.samples, args.items))

    out = sys.stdout
    out.write(f"[PROFILE_TIME]{elapsed}[PROFILE_TIME]\n")
    out.write(f"[PROFILE_VALID]{int(valid)}[PROFILE_VALID]\n")
    out.flush()
    return 0