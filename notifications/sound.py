"""
New-order sound alert.

The alert is synthesized on every play, not loaded from an asset: an 800 Hz
tone, then 100 ms later a 1000 Hz tone, each with a short attack and an
exponential decay. Samples are 16-bit mono PCM handed to an AudioOutput.

State machine:
    UNINITIALIZED -> READY        first time sound is seen enabled (or first play)
    READY -> PLAYING -> READY     during each play
    any -> UNAVAILABLE            the output could not be acquired
    any -> CLOSED                 close() at application shutdown

Without audio capability the player is a silent no-op; callers never see an
error. Overlapping plays are fine: each call renders its own two tones.
"""

import logging
import math
import wave
from array import array
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Protocol

logger = logging.getLogger("sound_player")


PEAK_GAIN = 0.3
FLOOR_GAIN = 0.01
ATTACK_SECONDS = 0.05
DEFAULT_SAMPLE_RATE = 22050


@dataclass(frozen=True)
class Tone:
    frequency: float
    start: float  # seconds from the beginning of the alert
    duration: float

    def gain_at(self, t: float) -> float:
        """Envelope gain `t` seconds into the tone."""
        if t < ATTACK_SECONDS:
            return PEAK_GAIN * t / ATTACK_SECONDS
        progress = (t - ATTACK_SECONDS) / (self.duration - ATTACK_SECONDS)
        return PEAK_GAIN * (FLOOR_GAIN / PEAK_GAIN) ** progress


ALERT_TONES = (
    Tone(frequency=800, start=0.0, duration=0.3),
    Tone(frequency=1000, start=0.1, duration=0.4),
)


def synthesize_alert(sample_rate: int = DEFAULT_SAMPLE_RATE, tones=ALERT_TONES) -> array:
    """Render the two-tone alert as signed 16-bit mono samples."""
    length = max(tone.start + tone.duration for tone in tones)
    mix = [0.0] * int(math.ceil(length * sample_rate))

    for tone in tones:
        offset = int(tone.start * sample_rate)
        count = int(tone.duration * sample_rate)
        step = 2 * math.pi * tone.frequency / sample_rate
        for i in range(count):
            mix[offset + i] += tone.gain_at(i / sample_rate) * math.sin(step * i)

    return array("h", (int(max(-1.0, min(1.0, s)) * 32767) for s in mix))


# =============================================================================
# Outputs
# =============================================================================

class AudioUnavailable(Exception):
    """No audio output can be acquired in this environment."""


class AudioOutput(Protocol):
    def play(self, pcm: bytes, sample_rate: int) -> None: ...

    def close(self) -> None: ...


class WaveFileOutput:
    """
    Writes every alert to a numbered WAV file.

    Used where there is no sound card (servers, CI) but the alert should still
    be observable.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise AudioUnavailable(f"Cannot use {self.directory}: {e}") from e
        self.written: list[Path] = []

    def play(self, pcm: bytes, sample_rate: int) -> None:
        path = self.directory / f"alert_{len(self.written) + 1:04d}.wav"
        with wave.open(str(path), "wb") as wav:
            wav.setnchannels(1)
            wav.setsampwidth(2)
            wav.setframerate(sample_rate)
            wav.writeframes(pcm)
        self.written.append(path)
        logger.debug(f"Alert written to {path}")

    def close(self) -> None:
        pass


def no_audio_device() -> AudioOutput:
    """Output factory for environments without sound support."""
    raise AudioUnavailable("No audio output configured")


def output_factory_for(directory: Optional[Path]) -> Callable[[], AudioOutput]:
    """Pick the output factory for a configured sound directory."""
    if directory is None:
        return no_audio_device
    return lambda: WaveFileOutput(directory)


# =============================================================================
# Player
# =============================================================================

class SoundState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    PLAYING = "playing"
    UNAVAILABLE = "unavailable"
    CLOSED = "closed"


class SoundPlayer:
    """
    Lazily acquired two-tone alert player.

    Example:
        player = SoundPlayer(output_factory=lambda: WaveFileOutput(Path("/tmp/alerts")))
        player.observe(enabled=True)   # acquires the output
        player.play()
        player.close()
    """

    def __init__(
        self,
        output_factory: Callable[[], AudioOutput] = no_audio_device,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
    ):
        self._output_factory = output_factory
        self.sample_rate = sample_rate
        self._output: Optional[AudioOutput] = None
        self.state = SoundState.UNINITIALIZED
        self.play_count = 0

    def observe(self, enabled: bool) -> None:
        """Note the current sound preference; the first enabled sighting acquires output."""
        if enabled and self.state == SoundState.UNINITIALIZED:
            self._acquire()

    def play(self) -> bool:
        """
        Play the alert once.

        Returns:
            True if the alert was handed to an output, False if the player is
            a no-op (no audio, closed) or the output failed.
        """
        if self.state == SoundState.UNINITIALIZED:
            self._acquire()
        if self.state not in (SoundState.READY, SoundState.PLAYING):
            logger.debug(f"Sound alert skipped (state={self.state.value})")
            return False

        self.state = SoundState.PLAYING
        try:
            pcm = synthesize_alert(self.sample_rate).tobytes()
            self._output.play(pcm, self.sample_rate)
        except Exception:
            logger.warning("Could not play notification sound", exc_info=True)
            return False
        finally:
            self.state = SoundState.READY
        self.play_count += 1
        return True

    def close(self) -> None:
        """Release the output. The player stays silent afterwards."""
        if self._output is not None:
            try:
                self._output.close()
            except Exception:
                logger.warning("Error closing audio output", exc_info=True)
            self._output = None
        self.state = SoundState.CLOSED

    def _acquire(self) -> None:
        try:
            self._output = self._output_factory()
        except AudioUnavailable as e:
            logger.warning(f"Sound alerts disabled: {e}")
            self.state = SoundState.UNAVAILABLE
            return
        except Exception:
            logger.warning("Could not create notification sound", exc_info=True)
            self.state = SoundState.UNAVAILABLE
            return
        self.state = SoundState.READY
        logger.info("Sound player ready")

    def __enter__(self) -> "SoundPlayer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
