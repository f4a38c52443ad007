from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from lensdist.api.model_io import load_distortion, save_distortion
from lensdist.core.distortion import Distortion
from lensdist.core.factory import clean_all_properties, variant_name
from lensdist.properties import Properties

logger = logging.getLogger(__name__)


def _load_or_identity(path: Path, cam_id: int) -> Distortion:
    model = load_distortion(path, cam_id)
    if model is None:
        logger.info("%s: no distortion for camera %d, using identity", path, cam_id)
        return Distortion()
    return model


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="lensdist")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    info = sub.add_parser("info", help="Show the distortion model stored in a parameter file.")
    info.add_argument("props", type=Path)
    info.add_argument("--id", type=int, default=-1, help="Camera id (-1 for unnamespaced keys).")

    dist = sub.add_parser("distort", help="Map an ideal normalized point to its distorted position.")
    dist.add_argument("props", type=Path)
    dist.add_argument("x", type=float)
    dist.add_argument("y", type=float)
    dist.add_argument("--id", type=int, default=-1, help="Camera id (-1 for unnamespaced keys).")

    undist = sub.add_parser("undistort", help="Map a distorted normalized point back to its ideal position.")
    undist.add_argument("props", type=Path)
    undist.add_argument("xd", type=float)
    undist.add_argument("yd", type=float)
    undist.add_argument("--id", type=int, default=-1, help="Camera id (-1 for unnamespaced keys).")

    conv = sub.add_parser("convert", help="Copy a distortion model between parameter files (.json or key=value).")
    conv.add_argument("src", type=Path)
    conv.add_argument("dst", type=Path)
    conv.add_argument("--id", type=int, default=-1, help="Camera id (-1 for unnamespaced keys).")

    clean = sub.add_parser("clean", help="Remove all distortion parameters of a camera from a key=value file.")
    clean.add_argument("props", type=Path)
    clean.add_argument("--id", type=int, default=-1, help="Camera id (-1 for unnamespaced keys).")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "info":
        model = load_distortion(args.props, args.id)
        if model is None:
            print("no distortion")
            return 1
        print(variant_name(model))
        for name, v in zip(model.parameter_names, model.parameters()):
            print(f"{name}={float(v)!r}")
        return 0

    if args.cmd == "distort":
        xd, yd = _load_or_identity(args.props, args.id).transform(args.x, args.y)
        print(f"{xd:.17g} {yd:.17g}")
        return 0

    if args.cmd == "undistort":
        x, y = _load_or_identity(args.props, args.id).inv_transform(args.xd, args.yd)
        print(f"{x:.17g} {y:.17g}")
        return 0

    if args.cmd == "convert":
        model = load_distortion(args.src, args.id)
        if model is None:
            print(f"{args.src}: no distortion parameters", file=sys.stderr)
            return 1
        save_distortion(args.dst, model, args.id)
        print(f"Wrote {args.dst}")
        return 0

    if args.cmd == "clean":
        prop = Properties.load(args.props)
        clean_all_properties(prop, args.id)
        prop.save(args.props)
        print(f"Wrote {args.props}")
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
