"""
Procedural audio for the game: sound effects and an ambient music loop,
synthesized sample by sample and packaged as 16-bit mono WAV.

Voices
- tone(): one oscillator (sine/triangle/sawtooth/square), fixed pitch or an
  exponential sweep, 10ms linear attack then exponential decay to -60dB.
- noise(): white noise through a band-pass biquad with exponential decay.

Clips are rendered on first request and cached; the browser only ever
downloads finished WAV files. AudioCues turns engine events into the names
of the clips the page should play.
"""

from __future__ import annotations

import io
import math
import random
import struct
import threading
import wave
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .board import Tile
from .events import GameListener

SAMPLE_RATE = 22050
SFX_GAIN = 0.5
MUSIC_GAIN = 0.18

WAVEFORMS = ('sine', 'triangle', 'sawtooth', 'square')

Samples = List[float]


def _oscillator(waveform: str, phase: float) -> float:
    # phase is in cycles, [0, 1)
    if waveform == 'sine':
        return math.sin(2.0 * math.pi * phase)
    if waveform == 'triangle':
        return 1.0 - 4.0 * abs(phase - 0.5)
    if waveform == 'sawtooth':
        return 2.0 * phase - 1.0
    if waveform == 'square':
        return 1.0 if phase < 0.5 else -1.0
    raise ValueError(f"unknown waveform: {waveform!r}")


def _detune_ratio(cents: float) -> float:
    return 2.0 ** (cents / 1200.0)


def tone(
    freq: float = 440.0,
    waveform: str = 'sine',
    duration: float = 0.15,
    vol: float = 1.0,
    delay: float = 0.0,
    start_freq: Optional[float] = None,
    end_freq: Optional[float] = None,
    detune: float = 0.0,
    sample_rate: int = SAMPLE_RATE,
) -> Samples:
    """Renders one enveloped oscillator note, preceded by delay seconds of silence."""
    if waveform not in WAVEFORMS:
        raise ValueError(f"unknown waveform: {waveform!r}")
    if duration <= 0:
        raise ValueError("duration must be positive")
    out: Samples = [0.0] * int(delay * sample_rate)
    peak = vol * 0.6
    if peak <= 0:
        return out + [0.0] * int(duration * sample_rate)

    attack = min(0.01, duration)
    floor = 0.001
    ratio = _detune_ratio(detune)
    sweep = start_freq is not None and end_freq is not None
    n = int((duration + 0.05) * sample_rate)
    phase = 0.0
    for i in range(n):
        t = i / sample_rate
        if sweep:
            f = start_freq * (end_freq / start_freq) ** min(t / duration, 1.0)
        else:
            f = freq
        if t < attack:
            env = peak * t / attack
        elif duration > attack:
            env = peak * (floor / peak) ** min((t - attack) / (duration - attack), 1.0)
        else:
            env = floor
        out.append(env * _oscillator(waveform, phase))
        phase = (phase + f * ratio / sample_rate) % 1.0
    return out


def _bandpass(samples: Sequence[float], center: float, sample_rate: int, q: float = 1.0) -> Samples:
    # RBJ cookbook band-pass, constant 0dB peak gain
    w0 = 2.0 * math.pi * min(center, sample_rate * 0.49) / sample_rate
    alpha = math.sin(w0) / (2.0 * q)
    a0 = 1.0 + alpha
    b0, b2 = alpha / a0, -alpha / a0
    a1, a2 = -2.0 * math.cos(w0) / a0, (1.0 - alpha) / a0
    x1 = x2 = y1 = y2 = 0.0
    out: Samples = []
    for x in samples:
        y = b0 * x + b2 * x2 - a1 * y1 - a2 * y2
        x2, x1 = x1, x
        y2, y1 = y1, y
        out.append(y)
    return out


def noise(
    duration: float = 0.1,
    vol: float = 0.3,
    delay: float = 0.0,
    filter_freq: float = 1000.0,
    seed: int = 0,
    sample_rate: int = SAMPLE_RATE,
) -> Samples:
    """Renders a decaying burst of band-passed white noise. Seeded, so clips are reproducible."""
    if duration <= 0:
        raise ValueError("duration must be positive")
    rng = random.Random(seed)
    n = int(duration * sample_rate)
    raw = [rng.random() * 2.0 - 1.0 for _ in range(n)]
    filtered = _bandpass(raw, filter_freq, sample_rate)
    out: Samples = [0.0] * int(delay * sample_rate)
    if vol <= 0:
        return out + [0.0] * n
    for i, s in enumerate(filtered):
        env = vol * (0.001 / vol) ** (i / n)
        out.append(s * env)
    return out


def mix(*tracks: Sequence[float]) -> Samples:
    """Sums tracks sample by sample; shorter tracks are padded with silence."""
    length = max((len(t) for t in tracks), default=0)
    out = [0.0] * length
    for track in tracks:
        for i, s in enumerate(track):
            out[i] += s
    return out


def scale(samples: Sequence[float], gain: float) -> Samples:
    return [s * gain for s in samples]


def to_wav_bytes(samples: Sequence[float], sample_rate: int = SAMPLE_RATE) -> bytes:
    """Packs float samples into a 16-bit mono WAV, clipping at +/-0.95."""
    frames = [int(max(-0.95, min(0.95, s)) * 32767) for s in samples]
    buf = io.BytesIO()
    with wave.open(buf, 'wb') as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(sample_rate)
        w.writeframes(struct.pack(f"<{len(frames)}h", *frames))
    return buf.getvalue()


# ---------- sound effects ----------

def sfx_flip(sample_rate: int = SAMPLE_RATE) -> Samples:
    return mix(
        tone(start_freq=300, end_freq=520, waveform='sine', duration=0.12, vol=0.7, sample_rate=sample_rate),
        noise(duration=0.06, vol=0.08, filter_freq=3000, sample_rate=sample_rate),
    )


def sfx_match(sample_rate: int = SAMPLE_RATE) -> Samples:
    # C5 E5 G5
    return mix(*(
        tone(freq=f, waveform='triangle', duration=0.25, vol=0.8, delay=d, sample_rate=sample_rate)
        for f, d in zip((523, 659, 784), (0.0, 0.08, 0.18))
    ))


def sfx_mismatch(sample_rate: int = SAMPLE_RATE) -> Samples:
    return mix(
        tone(start_freq=280, end_freq=140, waveform='sawtooth', duration=0.22, vol=0.4, sample_rate=sample_rate),
        tone(start_freq=260, end_freq=130, waveform='sawtooth', duration=0.22, vol=0.3, delay=0.03, detune=15,
             sample_rate=sample_rate),
    )


def sfx_win(sample_rate: int = SAMPLE_RATE) -> Samples:
    melody = (523, 659, 784, 1047, 784, 1047, 1319)
    times = (0.0, 0.12, 0.24, 0.38, 0.52, 0.62, 0.74)
    return mix(*(
        tone(freq=f, waveform='triangle', duration=0.28, vol=0.85, delay=d, sample_rate=sample_rate)
        for f, d in zip(melody, times)
    ))


def sfx_restart(sample_rate: int = SAMPLE_RATE) -> Samples:
    return tone(start_freq=600, end_freq=300, waveform='sine', duration=0.2, vol=0.5, sample_rate=sample_rate)


SFX: Dict[str, Callable[[int], Samples]] = {
    'flip': sfx_flip,
    'match': sfx_match,
    'mismatch': sfx_mismatch,
    'win': sfx_win,
    'restart': sfx_restart,
}


# ---------- ambient music ----------

CHORDS: Tuple[Tuple[float, ...], ...] = (
    (261.63, 329.63, 392.00, 493.88),  # Cmaj7
    (293.66, 369.99, 440.00, 554.37),  # Dm7
    (349.23, 440.00, 523.25, 659.25),  # Fmaj7
    (329.63, 415.30, 493.88, 622.25),  # Em7
)
NOTE_INTERVAL = 0.55
CHORD_NOTES = 4


def music_note(freq: float, duration: float, sample_rate: int = SAMPLE_RATE) -> Samples:
    """A soft pad note: sine at freq plus a slightly detuned triangle an octave up."""
    n = int(duration * sample_rate)
    attack, release = 0.3, 0.4
    ratio = _detune_ratio(5.0)
    out: Samples = []
    for i in range(n):
        t = i / sample_rate
        if t < attack:
            env = 0.5 * t / attack
        elif t < duration - release:
            env = 0.5
        else:
            env = 0.5 * max(0.0, (duration - t) / release)
        p1 = (freq * t) % 1.0
        p2 = (2.0 * freq * ratio * t) % 1.0
        out.append(env * (_oscillator('sine', p1) + _oscillator('triangle', p2)))
    return out


def render_music(chords: Sequence[Sequence[float]] = CHORDS, sample_rate: int = SAMPLE_RATE) -> Samples:
    """
    One seamless loop of the chord arpeggio. Notes ring past the loop end,
    so their tails wrap around onto the start of the buffer.
    """
    steps = len(chords) * CHORD_NOTES
    length = int(steps * NOTE_INTERVAL * sample_rate)
    note_duration = NOTE_INTERVAL * CHORD_NOTES * 1.2
    buf = [0.0] * length
    for step in range(steps):
        chord = chords[step // CHORD_NOTES]
        freq = chord[step % len(chord)]
        start = int(step * NOTE_INTERVAL * sample_rate)
        for k, s in enumerate(music_note(freq, note_duration, sample_rate)):
            buf[(start + k) % length] += s
    return buf


CLIP_NAMES: Tuple[str, ...] = tuple(SFX) + ('music',)


@lru_cache(maxsize=None)
def render_clip(name: str, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Renders a named clip to WAV bytes. Raises KeyError for unknown names."""
    if name == 'music':
        return to_wav_bytes(scale(render_music(sample_rate=sample_rate), MUSIC_GAIN), sample_rate)
    recipe = SFX[name]
    return to_wav_bytes(scale(recipe(sample_rate), SFX_GAIN), sample_rate)


# ---------- engine -> audio cues ----------

class AudioCues(GameListener):
    """
    Audio layer listener. Queues the names of effects to play and whether the
    music should start or stop; the page drains the queue with each response.
    The first reveal of a game starts the music, a win or reset stops it.
    """

    def __init__(self, sfx_muted: bool = False, music_muted: bool = False):
        self.sfx_muted = sfx_muted
        self.music_muted = music_muted
        self.music_playing = False
        self._in_game = False
        self._sfx: List[str] = []
        self._music: Optional[str] = None
        self._lock = threading.Lock()

    def _play(self, name: str) -> None:
        if not self.sfx_muted:
            self._sfx.append(name)

    def _start_music(self) -> None:
        if not self.music_playing and not self.music_muted:
            self.music_playing = True
            self._music = 'start'

    def _stop_music(self) -> None:
        if self.music_playing:
            self.music_playing = False
            self._music = 'stop'

    def on_reveal(self, tile: Tile) -> None:
        with self._lock:
            self._play('flip')
            self._in_game = True
            self._start_music()

    def on_match(self, first: Tile, second: Tile) -> None:
        with self._lock:
            self._play('match')

    def on_mismatch(self, first: Tile, second: Tile) -> None:
        with self._lock:
            self._play('mismatch')

    def on_win(self, moves: int, elapsed_seconds: int) -> None:
        with self._lock:
            self._in_game = False
            self._stop_music()
            self._play('win')

    def on_reset(self) -> None:
        with self._lock:
            self._in_game = False
            self._play('restart')
            self._stop_music()

    def toggle_sfx(self) -> bool:
        with self._lock:
            self.sfx_muted = not self.sfx_muted
            if self.sfx_muted:
                self._sfx.clear()
            return self.sfx_muted

    def toggle_music(self) -> bool:
        with self._lock:
            self.music_muted = not self.music_muted
            if self.music_muted:
                self._stop_music()
            elif self._in_game:
                self._start_music()
            return self.music_muted

    def drain(self) -> Dict[str, object]:
        with self._lock:
            sfx, self._sfx = self._sfx, []
            music, self._music = self._music, None
        return {
            "sfx": sfx,
            "music": music,
            "sfxMuted": self.sfx_muted,
            "musicMuted": self.music_muted,
        }
