"""
Notification module for the Pomodoro application.
Handles the phase-change chime, the ambient noise loop and desktop notifications.
"""

import io
import logging
import math
import os
import random
import struct
import subprocess
import sys
import tempfile
import wave
from typing import Dict, List, Optional, Tuple

from PySide6.QtCore import QObject, QUrl, Slot
from PySide6.QtMultimedia import QSoundEffect
from PySide6.QtWidgets import QSystemTrayIcon

from .models import NoiseType, parse_noise_type

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
NOISE_SAMPLE_RATE = 22050
NOISE_SECONDS = 2

# (frequency Hz, duration s): C5, E5, G5
CHIME_NOTES: List[Tuple[float, float]] = [
    (523.25, 0.15),
    (659.25, 0.15),
    (783.99, 0.3),
]
CHIME_NOTE_SPACING = 0.1
CHIME_VOLUME = 0.2
AUDIO_VOLUME = 0.3

NOISE_FILTER_FREQUENCY: Dict[NoiseType, int] = {
    NoiseType.RAIN: 800,
    NoiseType.CAFE: 1200,
    NoiseType.FIRE: 400,
}

NOISE_LABEL = {
    NoiseType.RAIN: "雨声",
    NoiseType.CAFE: "咖啡馆",
    NoiseType.FIRE: "篝火",
}


def _to_wav(samples: List[int], sample_rate: int) -> bytes:
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wav:
        wav.setnchannels(1)  # Mono
        wav.setsampwidth(2)  # 16-bit
        wav.setframerate(sample_rate)
        wav.writeframes(struct.pack(f'<{len(samples)}h', *samples))
    return buffer.getvalue()


def generate_chime_wav(sample_rate: int = SAMPLE_RATE) -> bytes:
    """
    Generate the phase-change chime: a rising C-E-G arpeggio.

    Each note starts 100 ms after the previous one, ramps up over 50 ms and
    decays exponentially; overlapping notes are mixed.
    """
    last_start = CHIME_NOTE_SPACING * (len(CHIME_NOTES) - 1)
    total = last_start + CHIME_NOTES[-1][1] + 0.1
    mix = [0.0] * (int(sample_rate * total) + 1)
    attack = 0.05

    for index, (frequency, duration) in enumerate(CHIME_NOTES):
        offset = int(sample_rate * index * CHIME_NOTE_SPACING)
        length = int(sample_rate * (duration + 0.1))
        for i in range(length):
            t = i / sample_rate
            if t < attack:
                envelope = t / attack
            else:
                # Exponential decay to ~0.0001 at duration + attack
                envelope = math.exp(-9.2 * (t - attack) / duration)
            mix[offset + i] += envelope * math.sin(2 * math.pi * frequency * t)

    max_amplitude = 32767 * CHIME_VOLUME
    samples = [int(max(-1.0, min(1.0, v)) * max_amplitude) for v in mix]
    return _to_wav(samples, sample_rate)


def generate_noise_wav(
    noise_type: NoiseType,
    seconds: int = NOISE_SECONDS,
    sample_rate: int = NOISE_SAMPLE_RATE,
    seed: Optional[int] = None
) -> bytes:
    """
    Generate a loopable noise buffer.
    White noise passed through a one-pole low-pass filter tuned per noise type.
    """
    rng = random.Random(seed)
    cutoff = NOISE_FILTER_FREQUENCY[noise_type]
    rc = 1.0 / (2 * math.pi * cutoff)
    dt = 1.0 / sample_rate
    alpha = dt / (rc + dt)

    samples = []
    value = 0.0
    # Low-pass output is quieter than the input; compensate before clipping
    gain = min(4.0, 1.0 / math.sqrt(alpha))
    max_amplitude = 32767 * AUDIO_VOLUME
    for _ in range(int(seconds * sample_rate)):
        value += alpha * (rng.uniform(-1.0, 1.0) - value)
        samples.append(int(max(-1.0, min(1.0, value * gain)) * max_amplitude))
    return _to_wav(samples, sample_rate)


def _write_temp_wav(data: bytes) -> str:
    fd, path = tempfile.mkstemp(suffix='.wav')
    with os.fdopen(fd, 'wb') as f:
        f.write(data)
    return path


def _remove_quietly(path: Optional[str]):
    if path and os.path.exists(path):
        try:
            os.remove(path)
        except OSError as e:
            logger.warning("Could not remove %s: %s", path, e)


class SoundPlayer:
    """
    Cross-platform one-shot sound player.
    Plays a cached WAV through the platform's command-line player.
    """

    def __init__(self, sound_data: Optional[bytes] = None):
        self._sound_data = sound_data if sound_data is not None else generate_chime_wav()
        self._temp_file: Optional[str] = _write_temp_wav(self._sound_data)

    def play(self):
        """Play the sound. Failures are logged, never raised."""
        if not self._temp_file:
            return
        try:
            self._play_sound()
        except Exception as e:
            logger.warning("Could not play sound: %s", e)

    def _play_sound(self):
        """Platform-specific sound playback."""
        system = sys.platform.lower()

        if system == 'darwin':
            # macOS: use afplay
            subprocess.Popen(
                ['afplay', self._temp_file],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL
            )
        elif system.startswith('linux'):
            # Linux: try paplay (PulseAudio), then aplay (ALSA)
            for cmd in ['paplay', 'aplay']:
                try:
                    subprocess.Popen(
                        [cmd, self._temp_file],
                        stdout=subprocess.DEVNULL,
                        stderr=subprocess.DEVNULL
                    )
                    return
                except FileNotFoundError:
                    continue
            logger.warning("No audio player found (tried paplay, aplay)")
        elif system == 'win32':
            # Windows: use winsound
            import winsound
            winsound.PlaySound(self._temp_file, winsound.SND_FILENAME | winsound.SND_ASYNC)

    def cleanup(self):
        """Clean up temporary files."""
        _remove_quietly(self._temp_file)
        self._temp_file = None


class AmbientNoisePlayer(QObject):
    """
    Looping ambient noise.
    Buffers are generated lazily per noise type and looped with QSoundEffect.
    """

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._effect = QSoundEffect(self)
        self._effect.setLoopCount(QSoundEffect.Loop.Infinite.value)
        self._effect.setVolume(1.0)
        self._files: Dict[NoiseType, str] = {}
        self._current: Optional[NoiseType] = None

    @Slot(str)
    def start(self, noise_type: str):
        noise = parse_noise_type(noise_type)
        if self._current == noise and self._effect.isPlaying():
            return
        try:
            if noise not in self._files:
                self._files[noise] = _write_temp_wav(generate_noise_wav(noise))
            self._effect.stop()
            self._effect.setSource(QUrl.fromLocalFile(self._files[noise]))
            self._effect.play()
            self._current = noise
        except OSError as e:
            logger.warning("Could not start ambient noise: %s", e)

    @Slot()
    def stop(self):
        self._effect.stop()
        self._current = None

    def cleanup(self):
        self.stop()
        for path in self._files.values():
            _remove_quietly(path)
        self._files.clear()


class NotificationManager(QObject):
    """
    Delivers desktop notifications and the chime.
    Delivery is fire-and-forget: errors are logged and never propagate.
    """

    APP_NAME = "番茄钟"

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)

        self._sound_player = SoundPlayer()
        self._tray_icon: Optional[QSystemTrayIcon] = None

    def set_tray_icon(self, tray_icon: QSystemTrayIcon):
        """Set the system tray icon for showing notifications."""
        self._tray_icon = tray_icon

    @Slot()
    def play_chime(self):
        self._sound_player.play()

    @Slot(str, str)
    def notify(self, title: str, message: str):
        """Show a desktop notification."""
        try:
            if self._tray_icon is not None and QSystemTrayIcon.isSystemTrayAvailable():
                self._tray_icon.showMessage(
                    title, message, QSystemTrayIcon.MessageIcon.Information, 3000
                )
            else:
                # Fallback: try native notification command
                self._show_native_notification(title, message)
        except Exception as e:
            logger.warning("Could not show notification: %s", e)

    def _show_native_notification(self, title: str, message: str):
        """Show notification using native OS commands."""
        system = sys.platform.lower()

        try:
            if system == 'darwin':
                # macOS: use osascript
                script = f'display notification "{message}" with title "{title}"'
                subprocess.run(
                    ['osascript', '-e', script],
                    capture_output=True,
                    timeout=5
                )
            elif system.startswith('linux'):
                # Linux: use notify-send
                subprocess.run(
                    ['notify-send', '--app-name', self.APP_NAME, title, message],
                    capture_output=True,
                    timeout=5
                )
            # Windows notifications handled by tray icon
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Could not show notification: %s", e)

    def cleanup(self):
        """Clean up resources."""
        self._sound_player.cleanup()
