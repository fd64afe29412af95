from __future__ import annotations

import argparse
import logging
import os
import sys

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from groupshot.audio import CountdownBeeper  # noqa: E402
from groupshot.countdown import Countdown  # noqa: E402
from groupshot.drawing import draw_banner, draw_busy, draw_countdown, draw_text, idle_screen  # noqa: E402
from groupshot.errors import CompositionError  # noqa: E402
from groupshot.export import DEFAULT_FILENAME, save_image  # noqa: E402
from groupshot.extractor import ExtractorSettings, LayerExtractor  # noqa: E402
from groupshot.frame_source import CameraFrameSource  # noqa: E402
from groupshot.segmentation import SelfieSegmenter  # noqa: E402
from groupshot.state import CompositionState, EventKind, StateEvent  # noqa: E402
from groupshot.types import Phase  # noqa: E402


HINTS = {
    Phase.IDLE: "space: start camera",
    Phase.NO_BACKGROUND: "space: lock background",
    Phase.READY_FOR_PEOPLE: "space: add person | b: new background | r: reset",
    Phase.HAS_PEOPLE: "space: add person | b: new background | s: save | r: reset",
}


def main() -> int:
    ap = argparse.ArgumentParser(description="Group photo booth: lock a background, then add people one at a time.")
    ap.add_argument("--camera", type=int, default=0, help="Camera index (default: 0)")
    ap.add_argument("--alt-camera", type=int, default=1, help="Camera index used by the switch key (default: 1)")
    ap.add_argument("--width", type=int, default=1280, help="Capture width (best effort)")
    ap.add_argument("--height", type=int, default=720, help="Capture height (best effort)")
    ap.add_argument("--countdown", type=int, default=3, help="Seconds before each capture")
    ap.add_argument("--feather", type=float, default=2.0, help="Mask edge feathering sigma in px (0 disables)")
    ap.add_argument("--brightness", type=float, default=1.0, help="Cosmetic brightness multiplier for people")
    ap.add_argument("--contrast", type=float, default=1.0, help="Cosmetic contrast multiplier for people")
    ap.add_argument("--out", default=DEFAULT_FILENAME, help="Output image path")
    ap.add_argument("--no-sound", action="store_true", help="Disable countdown beeps")
    ap.add_argument("--no-mirror", action="store_true", help="Disable horizontal mirroring (selfie mode)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    extractor = LayerExtractor(
        ExtractorSettings(feather_sigma=args.feather, brightness=args.brightness, contrast=args.contrast)
    )
    beeper = None if args.no_sound else CountdownBeeper()
    countdown = Countdown(seconds=args.countdown, beeper=beeper)
    message = {"text": "", "color": (255, 255, 255)}

    def on_event(event: StateEvent) -> None:
        if event.kind is EventKind.ERROR and event.error is not None:
            message["text"] = event.error.user_message
            message["color"] = (80, 80, 255)
        elif event.kind is EventKind.LAYER_ADDED:
            message["text"] = "Person added successfully!"
            message["color"] = (120, 255, 120)
        elif event.kind is EventKind.PHASE_CHANGED and event.phase is Phase.READY_FOR_PEOPLE:
            message["text"] = "Background locked. Now add people."
            message["color"] = (255, 255, 255)

    def open_camera(index: int) -> CameraFrameSource:
        return CameraFrameSource(index, width=args.width, height=args.height, mirror=not args.no_mirror)

    # Camera opens on the first space press, like the browser booth's "Start Camera" button.
    source = None
    with SelfieSegmenter() as segmenter:
        state = CompositionState(segmenter=segmenter, extractor=extractor, camera_live=False)
        state.subscribe(on_event)
        if beeper is not None:
            beeper.start()

        try:
            while True:
                if source is None:
                    raw = idle_screen(args.width, args.height)
                else:
                    raw = source.read()
                    if raw is None:
                        print("camera stopped delivering frames")
                        break

                left = countdown.poll()
                if left == 0:
                    frame = source.get_current_frame()
                    try:
                        if state.phase is Phase.NO_BACKGROUND:
                            state.lock_background(frame)
                        else:
                            state.request_add_person(frame)
                    except CompositionError as e:
                        print(f"{e.kind.value}: {e.detail}")

                # Before lock: live camera. After lock: composite preview.
                composite = state.render()
                view = raw.copy() if composite is None else composite.copy()

                if state.busy:
                    draw_busy(view)
                if left:
                    draw_countdown(view, left)
                draw_text(view, f"people: {len(state.layers)} | {HINTS[state.phase]} | q: quit", (12, 28))
                draw_banner(view, message["text"], color=message["color"])

                cv2.imshow("groupshot", view)
                key = cv2.waitKey(1) & 0xFF
                if key in (ord("q"), 27):
                    break
                if key == ord(" ") and state.phase is Phase.IDLE:
                    try:
                        source = open_camera(args.camera)
                    except RuntimeError as e:
                        print(e)
                        message["text"] = "Could not open the camera."
                    else:
                        state.camera_started()
                        message["text"] = "Camera on. Press space to lock the background."
                elif key == ord(" ") and not countdown.running and not state.busy:
                    message["text"] = ""
                    countdown.start()
                elif key == ord("r"):
                    countdown.cancel()
                    state.reset()
                    message["text"] = "Reset. Lock a new background."
                elif key == ord("b") and source is not None and not countdown.running:
                    # Recapture the background right now, dropping everyone added so far.
                    state.lock_background(source.get_current_frame(), force=True)
                elif key == ord("s"):
                    composite = state.render()
                    if composite is None:
                        message["text"] = "Nothing to save."
                    else:
                        path = save_image(composite, args.out)
                        message["text"] = f"Saved {path}"
                elif key == ord("c") and source is not None:
                    nxt = args.alt_camera if source.camera == args.camera else args.camera
                    try:
                        source.switch(nxt)
                    except RuntimeError as e:
                        print(e)
                        source.switch(args.camera)
        finally:
            if beeper is not None:
                beeper.stop()
            if source is not None:
                source.release()
            cv2.destroyAllWindows()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
