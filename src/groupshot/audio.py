from __future__ import annotations

import threading
from typing import Optional

import numpy as np


TICK_HZ = 880.0
SHUTTER_HZ = 1760.0


def tone_samples(frequency: float, frames: int, sample_rate: int, volume: float, phase: float = 0.0) -> np.ndarray:
    """Sine samples (float32) starting at sample offset `phase`."""
    t = (np.arange(frames) + phase) / sample_rate
    return (volume * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


class CountdownBeeper:
    """
    Short beeps for the capture countdown.

    One tone per countdown tick and a higher "shutter" tone when the photo is
    taken. Playback runs on a sounddevice output stream; `beep` only schedules
    the tone and returns immediately.
    """

    def __init__(self, sample_rate: int = 44100, volume: float = 0.3, beep_s: float = 0.12) -> None:
        self.sample_rate = sample_rate
        self.volume = max(0.0, min(1.0, volume))
        self.beep_s = beep_s

        self._stream = None
        self._lock = threading.Lock()
        self._frequency = 0.0
        self._frames_left = 0
        self._phase = 0.0

    def start(self) -> None:
        if self._stream is not None:
            return
        # Imported lazily: sounddevice needs PortAudio at import time.
        import sounddevice as sd

        self._stream = sd.OutputStream(
            samplerate=self.sample_rate,
            channels=1,
            callback=self._audio_callback,
            blocksize=512,
        )
        self._stream.start()

    def stop(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None

    def beep(self, frequency: float = TICK_HZ, duration_s: Optional[float] = None) -> None:
        with self._lock:
            self._frequency = frequency
            self._frames_left = int(self.sample_rate * (duration_s if duration_s is not None else self.beep_s))
            self._phase = 0.0

    def tick(self) -> None:
        self.beep(TICK_HZ)

    def shutter(self) -> None:
        self.beep(SHUTTER_HZ, self.beep_s * 2)

    def _audio_callback(self, outdata, frames, time_info, status) -> None:
        with self._lock:
            outdata[:] = 0
            if self._frames_left <= 0 or self._frequency <= 0:
                return
            n = min(frames, self._frames_left)
            outdata[:n, 0] = tone_samples(self._frequency, n, self.sample_rate, self.volume, self._phase)
            self._frames_left -= n
            self._phase += n

    def __enter__(self) -> "CountdownBeeper":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
