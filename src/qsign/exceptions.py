"""Error hierarchy for :mod:`qsign`."""

from __future__ import annotations

from typing import Literal

GeneratorStage = Literal["prefix", "suffix"]


class QsignError(RuntimeError):
    """Base class for qsign errors."""


class GeneratorError(QsignError):
    """Raised when a configured prefix or suffix generator fails.

    Attributes:
        partial: Digest bytes assembled before the failing generator ran.
        stage: Which generator failed, ``"prefix"`` or ``"suffix"``.
    """

    def __init__(self, stage: GeneratorStage, partial: bytes) -> None:
        super().__init__(f"{stage} generator failed")
        self.stage: GeneratorStage = stage
        self.partial = partial
