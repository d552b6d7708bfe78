import array
import io
import logging
import math
import sys
import wave
from pathlib import Path
from typing import Callable, Optional

from plyer import notification

try:
    import simpleaudio as sa  # type: ignore
except ImportError:  # pragma: no cover
    sa = None

try:
    from pygame import mixer  # type: ignore
except ImportError:  # pragma: no cover
    mixer = None

logger = logging.getLogger(__name__)

APP_NAME = "Kitchen Timer"
SAMPLE_RATE = 44100
# (chord in Hz, length in ms); an empty chord is a rest
ALARM_PATTERN = [((1046, 784), 220), ((), 90), ((1046, 784), 220), ((880,), 320)]


def alarm_tone(pattern=ALARM_PATTERN, rate: int = SAMPLE_RATE) -> bytes:
    """16-bit mono PCM for a chime pattern, each note faded in."""
    samples = array.array("h")
    for chord, length_ms in pattern:
        count = max(int(rate * length_ms / 1000), 1)
        if not chord:
            samples.extend([0] * count)
            continue
        for n in range(count):
            fade = 0.5 - 0.5 * math.cos(math.pi * n / count)
            level = sum(math.sin(2 * math.pi * hz * n / rate) for hz in chord) / len(chord)
            samples.append(int(32767 * 0.85 * fade * level))
    if sys.byteorder == "big":
        samples.byteswap()
    return samples.tobytes()


def as_wave(pcm: bytes, rate: int = SAMPLE_RATE) -> bytes:
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as out:
        out.setnchannels(1)
        out.setsampwidth(2)
        out.setframerate(rate)
        out.writeframes(pcm)
    return buffer.getvalue()


class Notifier:
    """Plays the alarm and raises a notification when a timer completes."""

    def __init__(self, settings, show_modal: Optional[Callable[[str, str], None]] = None) -> None:
        self.settings = settings
        self.show_modal = show_modal
        self._pcm: Optional[bytes] = None
        self._play_obj = None
        self._mixer_channel = None
        self._active_sound = None

    def notify(self, message: str) -> None:
        logger.info("%s", message)
        if self.settings.play_sound:
            self.play_alarm()
        if self.settings.notification:
            self.show(message)

    def show(self, message: str) -> None:
        if self.settings.modal_notification and self.show_modal is not None:
            try:
                self.show_modal(APP_NAME, message)
                return
            except Exception:
                logger.exception("Unable to show modal notification")
        try:
            notification.notify(title=APP_NAME, message=message, app_name=APP_NAME, timeout=10)
        except Exception as exc:
            logger.warning("Unable to show desktop notification: %s", exc)

    def play_alarm(self) -> None:
        self.stop()
        loops = max(self.settings.sound_loops, 1)
        path = self._sound_path()
        if path is not None and self._play(path, loops):
            return
        if not self._play(None, loops):
            logger.warning("No audio backend could play the alarm")

    def _sound_path(self) -> Optional[Path]:
        if not self.settings.sound_file:
            return None
        path = Path(self.settings.sound_file).expanduser()
        if not path.exists():
            logger.warning("Sound file not found: %s", path)
            return None
        return path

    def _play(self, path: Optional[Path], loops: int) -> bool:
        """Play ``path`` (or the built-in chime) ``loops`` times; pygame first, then simpleaudio."""
        what = path or "built-in alarm"
        if self._mixer_ready():
            try:
                self._active_sound = mixer.Sound(str(path) if path else io.BytesIO(as_wave(self.pcm)))
                self._mixer_channel = self._active_sound.play(loops=loops - 1)
                if self._mixer_channel is not None:
                    return True
            except Exception as exc:
                logger.warning("Mixer could not play %s: %s", what, exc)
            self._active_sound = None
            self._mixer_channel = None

        if sa is None or (path and path.suffix.lower() != ".wav"):
            return False
        try:
            if path:
                self._play_obj = sa.WaveObject.from_wave_file(str(path)).play()
            else:
                self._play_obj = sa.play_buffer(self.pcm * loops, 1, 2, SAMPLE_RATE)
            return True
        except Exception as exc:
            logger.warning("simpleaudio could not play %s: %s", what, exc)
            self._play_obj = None
            return False

    @property
    def pcm(self) -> bytes:
        if self._pcm is None:
            self._pcm = alarm_tone()
        return self._pcm

    def stop(self) -> None:
        for handle in (self._mixer_channel, self._play_obj):
            if handle is None:
                continue
            try:
                handle.stop()
            except Exception as exc:  # pragma: no cover
                logger.debug("Stopping playback failed: %s", exc)
        self._mixer_channel = None
        self._active_sound = None
        self._play_obj = None

    def _mixer_ready(self) -> bool:
        if mixer is None:
            return False
        if not mixer.get_init():
            try:
                mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)  # pragma: no cover - system audio
            except Exception as exc:  # pragma: no cover - platform dependent
                logger.warning("Unable to initialise audio playback: %s", exc)
                return False
        return bool(mixer.get_init())
