from __future__ import annotations

import logging
import os
import ssl
import subprocess
import urllib.request

logger = logging.getLogger(__name__)


SELFIE_SEGMENTER_URL = (
    "https://storage.googleapis.com/mediapipe-models/image_segmenter/selfie_segmenter/float16/latest/selfie_segmenter.tflite"
)


def _remove_partial(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError:
        logger.warning("could not remove partial download %s", path)


def ensure_model_asset(model_path: str, *, url: str = SELFIE_SEGMENTER_URL, timeout_s: int = 30) -> str:
    """
    Ensure the segmentation model exists at `model_path`.

    If missing, downloads it from the MediaPipe model bucket, first with urllib and
    then with `curl` if that fails (typically an SSL certificate problem).
    """

    if os.path.exists(model_path):
        return model_path

    os.makedirs(os.path.dirname(model_path) or ".", exist_ok=True)
    logger.info("downloading segmentation model to %s", model_path)

    try:
        # python.org macOS builds often ship without root certificates; prefer certifi.
        try:
            import certifi  # type: ignore

            ctx = ssl.create_default_context(cafile=certifi.where())
        except ImportError:
            ctx = ssl.create_default_context()

        with urllib.request.urlopen(url, context=ctx, timeout=timeout_s) as r, open(model_path, "wb") as f:
            f.write(r.read())
    except Exception as e:
        logger.warning("urllib download failed (%s); trying curl", e)
        _remove_partial(model_path)

        proc = None
        try:
            proc = subprocess.run(
                ["curl", "-L", "-o", model_path, url],
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
            if proc.returncode == 0 and os.path.exists(model_path) and os.path.getsize(model_path) > 0:
                return model_path
        except OSError:
            proc = None

        _remove_partial(model_path)

        curl_err = ""
        if proc is not None:
            curl_err = f"\n\ncurl stderr:\n{proc.stderr.strip()}\n"

        raise RuntimeError(
            "Missing MediaPipe segmentation model and auto-download failed.\n\n"
            f"Expected model at: {model_path}\n"
            f"URL: {url}\n\n"
            "Download it manually:\n"
            f'  mkdir -p "{os.path.dirname(model_path) or "."}"\n'
            f'  curl -L -o "{model_path}" "{url}"\n'
            f"{curl_err}"
        ) from e

    return model_path
