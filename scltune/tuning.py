"""Tuning: compiles a Scale and KeyboardMapping into per-note lookup tables."""

from __future__ import annotations

import logging
import math

import numpy as np

from scltune.degree_strategy import resolver_for
from scltune.errors import BuildError
from scltune.keyboard_parser import standard_keyboard_mapping
from scltune.scale_parser import even_temperament_12_note_scale
from scltune.tuning_models import (
    MIDI0_FREQ,
    TABLE_OFFSET,
    TABLE_SIZE,
    UNMAPPED,
    KeyboardMapping,
    Scale,
)

logger = logging.getLogger(__name__)


def _table_index(midi_note: int) -> int:
    """Table index for ``midi_note``; notes outside -256..255 saturate at the edges."""
    return min(max(midi_note + TABLE_OFFSET, 0), TABLE_SIZE - 1)


def _check_compatible(scale: Scale, mapping: KeyboardMapping) -> None:
    if scale.count <= 0 or not scale.tones:
        raise BuildError(
            "Unable to tune to a scale with no notes. "
            f"Your scale provided {scale.count} notes."
        )
    if len(scale.tones) != scale.count:
        raise BuildError(
            f"Scale declares {scale.count} notes but holds {len(scale.tones)} tones."
        )
    if mapping.octave_degrees > scale.count:
        raise BuildError(
            f"Unable to apply mapping of size {mapping.octave_degrees} "
            f"to smaller scale of size {scale.count}."
        )
    if mapping.tuning_frequency <= 0:
        raise BuildError(
            f"Tuning frequency must be positive, got {mapping.tuning_frequency}."
        )


def _tuning_center_pitch_offset(scale: Scale, position: int) -> float:
    """
    Pitch of scale ``position`` relative to the unison, minus one.

    Subtracting this from every table entry re-centres the tables so the
    tuning constant note lands exactly on the tuning frequency.
    """
    if position == 0:
        return 0.0

    period = scale.period
    shift = 0.0
    while position <= 0:
        position += scale.count
        shift += period
    while position > scale.count:
        position -= scale.count
        shift -= period
    return scale.tones[position - 1].float_value - 1.0 - shift


def build_tables(scale: Scale, mapping: KeyboardMapping) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Compute the pitch, log-pitch and scale-degree tables for a scale and mapping.

    Algorithm overview
    ------------------
    1. **Anchor** - The tuning constant note always gets pitch 1.0 (in
       ``Tone.float_value`` units) and every other note is placed relative
       to the scale position the mapping assigns to it.

    2. **Degree resolution** - Each note's distance from the middle note is
       resolved by a DegreeResolver into whole periods (``rounds``) plus an
       index into the scale's tones (``this_round``), or marked unmapped.

    3. **Pitch** - ``tones[this_round] + rounds * period - offset``, shifted
       by ``log2(tuning_pitch) - 1`` so the anchor lands on the tuning
       frequency.

    Returns:
        A 3-tuple of arrays of length TABLE_SIZE:
          - pitch (float64): frequency relative to MIDI note 0.
          - log_pitch (float64): log2 of ``pitch``.
          - degrees (int64): scale position per note, UNMAPPED if silent.

    Raises:
        BuildError: If the scale and mapping cannot be combined.
    """
    _check_compatible(scale, mapping)

    resolver = resolver_for(scale, mapping)
    period = scale.period

    pos_pitch0 = TABLE_OFFSET + mapping.tuning_constant_note
    pos_scale0 = TABLE_OFFSET + mapping.middle_note
    pitch_mod = math.log2(mapping.tuning_pitch) - 1.0

    tuning_position = resolver.scale_position(mapping.tuning_constant_note - mapping.middle_note)
    offset = _tuning_center_pitch_offset(scale, tuning_position)

    log_pitch = np.empty(TABLE_SIZE, dtype=np.float64)
    degrees = np.empty(TABLE_SIZE, dtype=np.int64)

    for i in range(TABLE_SIZE):
        if i == pos_pitch0:
            pitch = 1.0
            degree = tuning_position % scale.count
        else:
            step = resolver.resolve(i - pos_scale0)
            if step.disabled:
                pitch = 0.0
                degree = UNMAPPED
            else:
                pitch = (
                    scale.tones[step.this_round].float_value
                    + step.rounds * period
                    - offset
                )
                degree = (step.this_round + 1) % scale.count

        log_pitch[i] = pitch + pitch_mod
        degrees[i] = degree

    return np.exp2(log_pitch), log_pitch, degrees


class Tuning:
    """
    Frequencies, log-frequencies and scale positions for MIDI notes -256..255.

    A Tuning is built once from a Scale and a KeyboardMapping and never
    changes afterwards; build a new one to retune.

    Usage:

        tuning = Tuning(read_scl_file("31edo.scl"), tune_a69_to(440.0))
        tuning.frequency_for_midi_note(69)  # 440.0

    Either argument may be omitted: the scale defaults to 12-tone equal
    temperament and the mapping to middle C at 261.63 Hz.
    """

    def __init__(
        self,
        scale: Scale | None = None,
        keyboard_mapping: KeyboardMapping | None = None,
    ) -> None:
        """
        Args:
            scale:            The scale to tune to.
            keyboard_mapping: Where the scale sits on the keyboard.

        Raises:
            BuildError: If the scale has no notes or the mapping does not fit it.
        """
        self._scale = scale if scale is not None else even_temperament_12_note_scale()
        self._keyboard_mapping = (
            keyboard_mapping if keyboard_mapping is not None else standard_keyboard_mapping()
        )
        pitch, log_pitch, degrees = build_tables(self._scale, self._keyboard_mapping)
        self._set_tables(pitch, log_pitch, degrees)
        logger.debug(
            "Built tuning for %d-note scale '%s' with mapping of size %d",
            self._scale.count,
            self._scale.description,
            self._keyboard_mapping.count,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _set_tables(self, pitch: np.ndarray, log_pitch: np.ndarray, degrees: np.ndarray) -> None:
        for table in (pitch, log_pitch, degrees):
            table.flags.writeable = False
        self._pitch = pitch
        self._log_pitch = log_pitch
        self._degrees = degrees

    @classmethod
    def _from_tables(
        cls,
        scale: Scale,
        keyboard_mapping: KeyboardMapping,
        pitch: np.ndarray,
        log_pitch: np.ndarray,
        degrees: np.ndarray,
    ) -> Tuning:
        tuning = cls.__new__(cls)
        tuning._scale = scale
        tuning._keyboard_mapping = keyboard_mapping
        tuning._set_tables(pitch, log_pitch, degrees)
        return tuning

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def scale(self) -> Scale:
        return self._scale

    @property
    def keyboard_mapping(self) -> KeyboardMapping:
        return self._keyboard_mapping

    def frequency_for_midi_note(self, midi_note: int) -> float:
        """
        Frequency in Hz. In standard tuning note 69 is 440.0 and note 60 is
        261.63.
        """
        return float(self._pitch[_table_index(midi_note)]) * MIDI0_FREQ

    def frequency_for_midi_note_scaled_by_midi0(self, midi_note: int) -> float:
        """
        Frequency divided by the frequency of MIDI note 0. In standard tuning
        note 0 gives 1.0 and note 60 gives 32.0.
        """
        return float(self._pitch[_table_index(midi_note)])

    def log_scaled_frequency_for_midi_note(self, midi_note: int) -> float:
        """
        log2 of the scaled frequency: grows by 1.0 per doubling of frequency.
        In standard tuning note 0 gives 0.0 and note 60 gives 5.0.
        """
        return float(self._log_pitch[_table_index(midi_note)])

    def scale_position_for_midi_note(self, midi_note: int) -> int:
        """
        Logical scale position of ``midi_note``: 0 is the root, the largest
        value is ``scale.count - 1``, and UNMAPPED (-1) marks a silent key.

        SCL files omit the root, so this position is one more than the index
        of the tone in ``Scale.tones``.
        """
        return int(self._degrees[_table_index(midi_note)])

    def scale_degree_for_midi_note(self, midi_note: int) -> int | None:
        """Like ``scale_position_for_midi_note`` but None for unmapped notes."""
        position = self.scale_position_for_midi_note(midi_note)
        return None if position == UNMAPPED else position

    def is_midi_note_mapped(self, midi_note: int) -> bool:
        return self.scale_position_for_midi_note(midi_note) != UNMAPPED

    def with_skipped_notes_interpolated(self) -> Tuning:
        """
        Return a new Tuning with the pitch of every unmapped note filled in.

        Each gap is interpolated linearly in log-pitch between the nearest
        mapped notes on either side; gaps at the ends of the table copy the
        nearest mapped note. Scale positions are left untouched, so filled
        notes still report ``is_midi_note_mapped() == False``.
        """
        unmapped = self._degrees == UNMAPPED
        log_pitch = self._log_pitch.copy()

        if unmapped.any() and not unmapped.all():
            indices = np.arange(TABLE_SIZE)
            mapped_indices = indices[~unmapped]
            # np.interp holds the end values constant beyond the outermost mapped notes
            filled = np.interp(indices, mapped_indices, self._log_pitch[mapped_indices])
            log_pitch[unmapped] = filled[unmapped]

        return Tuning._from_tables(
            self._scale,
            self._keyboard_mapping,
            np.exp2(log_pitch),
            log_pitch,
            self._degrees.copy(),
        )
