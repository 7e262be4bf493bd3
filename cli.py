import argparse
import json
import logging
import sys
from pathlib import Path

import render
from hexworld import DEFAULT_PRESET, HexworldError, WorldAssembler, WorldConfig, load_config
from hexworld.export import layers_to_npz, result_to_json

logger = logging.getLogger("hexworld.cli")


def build_config(args) -> WorldConfig:
    overrides = {}
    if args.width is not None:
        overrides["world_size_x"] = args.width
    if args.height is not None:
        overrides["world_size_y"] = args.height
    if args.variant is not None:
        overrides["noise_variant"] = args.variant
    if args.vegetation is not None:
        overrides["vegetation_mode"] = args.vegetation
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.config:
        return load_config(args.config, overrides)
    return WorldConfig.from_dict({**DEFAULT_PRESET, **overrides})


def cmd_generate(args):
    cfg = build_config(args)
    result = WorldAssembler().generate(cfg, seed=args.seed)
    if args.out:
        result_to_json(result, args.out)
        print(f"World saved to {args.out}")
    print(json.dumps(result.summary(), indent=2))


def cmd_export(args):
    cfg = build_config(args)
    result = WorldAssembler().generate(cfg, seed=args.seed)
    out = Path(args.out_dir)
    out.mkdir(parents=True, exist_ok=True)
    for name, layer in result.layers().items():
        img = render.render_layer(layer, heat=(name == "heat"), scale=args.scale)
        img.save(out / f"{name}.png")
        print(f"Saved {out / (name + '.png')}")
    img = render.render_topdown(result)
    img.save(out / "topdown.png")
    print(f"Saved {out / 'topdown.png'}")
    layers_to_npz(result, out / "layers.npz")
    print(f"Saved {out / 'layers.npz'}")


def _add_world_args(p):
    p.add_argument("--config", default=None, help="JSON config file (default: built-in preset)")
    p.add_argument("--seed", type=int, default=None, help="Seed override")
    p.add_argument("--width", type=int, default=None)
    p.add_argument("--height", type=int, default=None)
    p.add_argument("--variant", default=None,
                   help="Noise variant: perlin, value, simplex, voronoi, worley")
    p.add_argument("--vegetation", default=None, help="Vegetation mode: bush or maple_tree")
    p.add_argument("--workers", type=int, default=None, help="Threads for layer sampling")


def main(argv=None):
    ap = argparse.ArgumentParser(description="Headless CLI for hex world generation")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers()

    ap_gen = sub.add_parser("generate", help="Generate a world and print its summary")
    _add_world_args(ap_gen)
    ap_gen.add_argument("--out", default=None, help="Write the full result as JSON")
    ap_gen.set_defaults(func=cmd_generate)

    ap_exp = sub.add_parser("export", help="Render layers and top-down view to PNG")
    _add_world_args(ap_exp)
    ap_exp.add_argument("--out-dir", required=True, help="Directory for PNGs and layers.npz")
    ap_exp.add_argument("--scale", type=int, default=4, help="Pixels per cell in layer PNGs")
    ap_exp.set_defaults(func=cmd_export)

    args = ap.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not hasattr(args, "func"):
        ap.print_help()
        return 1
    try:
        args.func(args)
    except HexworldError as exc:
        logger.error("%s", exc)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
