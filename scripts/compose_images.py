from __future__ import annotations

import argparse
import logging
import os
import sys

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from groupshot.export import save_image  # noqa: E402
from groupshot.extractor import ExtractorSettings, LayerExtractor  # noqa: E402
from groupshot.frame_source import StaticFrameSource  # noqa: E402
from groupshot.segmentation import SelfieSegmenter  # noqa: E402
from groupshot.state import CompositionState  # noqa: E402


def main() -> int:
    ap = argparse.ArgumentParser(description="Composite people from several photos onto one background photo.")
    ap.add_argument("--background", required=True, help="Photo of the empty scene")
    ap.add_argument("--people", required=True, nargs="+", help="Photos each containing one person, in stacking order")
    ap.add_argument("--out", required=True, help="Path to output image")
    ap.add_argument("--feather", type=float, default=2.0, help="Mask edge feathering sigma in px (0 disables)")
    ap.add_argument("--timeout", type=float, default=30.0, help="Seconds to wait for each segmentation")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    extractor = LayerExtractor(ExtractorSettings(feather_sigma=args.feather))
    with SelfieSegmenter() as segmenter:
        state = CompositionState(segmenter=segmenter, extractor=extractor)
        state.lock_background(StaticFrameSource.from_file(args.background).get_current_frame())

        for path in args.people:
            frame = StaticFrameSource.from_file(path).get_current_frame()
            pending = state.request_add_person(frame)
            if not pending.wait(args.timeout):
                raise RuntimeError(f"Segmentation timed out for {path}")
            if pending.error is not None:
                print(f"skipped {path}: {pending.error.user_message}")
            else:
                print(f"added {path}")

    image = state.render()
    if image is None:
        raise RuntimeError("Could not compose: no background locked")
    save_image(image, args.out)
    print(f"people: {len(state.layers)} -> {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
