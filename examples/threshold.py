# filename: examples/threshold.py

from __future__ import annotations

import argparse
import logging

import numpy as np

import epipe
from epipe import Param


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="epipe scalar parameter demo")
    parser.add_argument("--threshold", type=int, default=128, help="threshold value")
    parser.add_argument("--gain", type=float, default=1.5, help="gain applied before thresholding")
    parser.add_argument("--pixel", type=int, default=100, help="input pixel value")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    threshold = Param(np.int32, "threshold", args.threshold, 0, 255)
    gain = Param(np.float32, "gain", args.gain)
    gain.set_default_value(1.0)
    pixel = Param(np.int32, "pixel", args.pixel)

    scaled = epipe.Cast(epipe.DType.I32, epipe.Cast(epipe.DType.F32, pixel.to_expr()) * gain)
    is_on = threshold < scaled

    # Jitting: evaluate with the values bound right now.
    print(f"scaled={epipe.evaluate(scaled)} on={bool(epipe.evaluate(is_on))}")

    # Ahead of time: describe the inputs of the compiled function.
    signature = epipe.infer_arguments(is_on)
    epipe.validate_arguments(signature)
    for arg in signature:
        lo = epipe.evaluate(arg.min_value) if arg.min_value.defined else "-"
        hi = epipe.evaluate(arg.max_value) if arg.max_value.defined else "-"
        default = arg.default.value if arg.default.defined else "-"
        print(f"{arg.name}: {arg.dtype.value} range=[{lo}, {hi}] default={default}")


if __name__ == "__main__":
    main()
