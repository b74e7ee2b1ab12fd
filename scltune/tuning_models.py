"""Data models for scales, keyboard mappings and the tuning table layout."""

from dataclasses import dataclass
from enum import Enum

# ── Reference constants ─────────────────────────────────────────────────────
MIDI0_FREQ = 8.17579891564371  # 440 * 2 ** (-69 / 12)

# Tuning tables cover MIDI notes -256 .. 255 so modulated or transposed
# notes far outside 0-127 still resolve to a frequency.
TABLE_SIZE = 512
TABLE_OFFSET = 256  # table index of MIDI note 0

#: Key table / scale degree table entry for a key that plays nothing.
UNMAPPED = -1


class ToneKind(Enum):
    """How a tone was written in the SCL file."""

    CENTS = "cents"
    RATIO = "ratio"


@dataclass(frozen=True)
class Tone:
    """
    A single entry of an SCL file.

    Attributes:
        kind:       CENTS for "701.955"-style lines, RATIO for "3/2" or "3".
        cents:      Pitch above the implicit unison, in cents.
        ratio_n:    Ratio numerator (RATIO tones only).
        ratio_d:    Ratio denominator (RATIO tones only).
        string_rep: The trimmed text the tone was parsed from.
    """

    kind: ToneKind
    cents: float
    ratio_n: int = 0
    ratio_d: int = 0
    string_rep: str = ""

    @property
    def float_value(self) -> float:
        """Pitch in octaves above the unison, plus one (1.0 = unison, 2.0 = octave)."""
        return self.cents / 1200.0 + 1.0


@dataclass(frozen=True)
class Scale:
    """
    The contents of an SCL file.

    ``tones`` omits the implicit unison at scale position 0, so the last
    tone is the period of the scale (usually, but not always, ``2/1``).

    Attributes:
        count:       Number of tones declared by the file.
        tones:       The parsed tones, ``count`` of them.
        description: The description line of the file. Informational only.
        raw_text:    Every line consumed by the parser, verbatim.
        name:        File path, or a placeholder for in-memory content.
    """

    count: int = 0
    tones: tuple[Tone, ...] = ()
    description: str = ""
    raw_text: str = ""
    name: str = ""

    @property
    def period(self) -> float:
        """Size of the repeating period in octaves."""
        return self.tones[self.count - 1].float_value - 1.0


@dataclass(frozen=True)
class KeyboardMapping:
    """
    The contents of a KBM file.

    Most mappings only pin ``tuning_constant_note`` to ``tuning_frequency``
    and leave ``keys`` empty (identity mapping). A non-empty ``keys`` table
    remaps each key of a ``count``-sized key period onto a scale degree, with
    ``UNMAPPED`` for silent keys.

    Attributes:
        count:                Size of the key table; 0 means identity mapping.
        first_midi:           First MIDI note to retune. Informational only.
        last_midi:            Last MIDI note to retune. Informational only.
        middle_note:          MIDI note that plays scale position 0.
        tuning_constant_note: MIDI note whose frequency is fixed.
        tuning_frequency:     Frequency of ``tuning_constant_note`` in Hz.
        octave_degrees:       Scale degrees per key period; 0 (or ``count``)
                              means the scale's own period.
        keys:                 Scale degree per key, ``UNMAPPED`` for silent keys.
        raw_text:             Every line consumed by the parser, verbatim.
        name:                 File path, or a placeholder for in-memory content.
    """

    count: int = 0
    first_midi: int = 0
    last_midi: int = 127
    middle_note: int = 60
    tuning_constant_note: int = 60
    tuning_frequency: float = MIDI0_FREQ * 32.0
    octave_degrees: int = 0
    keys: tuple[int, ...] = ()
    raw_text: str = ""
    name: str = ""

    @property
    def tuning_pitch(self) -> float:
        """``tuning_frequency`` relative to the frequency of MIDI note 0."""
        return self.tuning_frequency / MIDI0_FREQ

    def degree_for_key(self, index: int) -> int | None:
        """Return the scale degree of key-table entry ``index``, or None if unmapped."""
        degree = self.keys[index]
        return None if degree == UNMAPPED else degree
