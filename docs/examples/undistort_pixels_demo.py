"""
Undistort pixel coordinates with a camera parameter file.

It does:
1) load the distortion model of a camera (key=value file or JSON),
2) convert pixels to normalized coordinates with fx, fy, cx, cy,
3) undistort them and report the forward reprojection residual in pixels.
"""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np

from lensdist import Distortion, load_distortion


def summarize(err_px: np.ndarray) -> dict[str, float]:
    v = np.asarray(err_px, dtype=np.float64).reshape(-1)
    return {
        "n": int(v.size),
        "rms": float(np.sqrt(np.mean(v * v))),
        "p95": float(np.quantile(v, 0.95)),
        "max": float(np.max(v)),
    }


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("props", type=Path, help="Camera parameter file.")
    ap.add_argument("--id", type=int, default=-1)
    ap.add_argument("--fx", type=float, required=True)
    ap.add_argument("--fy", type=float, required=True)
    ap.add_argument("--cx", type=float, required=True)
    ap.add_argument("--cy", type=float, required=True)
    ap.add_argument("--width", type=int, default=640)
    ap.add_argument("--height", type=int, default=480)
    ap.add_argument("--step", type=int, default=16, help="Pixel grid step.")
    args = ap.parse_args()

    model = load_distortion(args.props, args.id)
    if model is None:
        model = Distortion()
    print(repr(model))

    u, v = np.meshgrid(
        np.arange(0, args.width, args.step, dtype=np.float64),
        np.arange(0, args.height, args.step, dtype=np.float64),
    )
    xd = (u - args.cx) / args.fx
    yd = (v - args.cy) / args.fy

    x, y = model.inv_transform(xd, yd)
    xr, yr = model.transform(x, y)
    err_px = np.hypot((xr - xd) * args.fx, (yr - yd) * args.fy)
    print("reprojection residual [px]:", summarize(err_px))

    shift_px = np.hypot((x - xd) * args.fx, (y - yd) * args.fy)
    print("max distortion shift [px]:", float(np.max(shift_px)))


if __name__ == "__main__":
    main()
