"""State machine for the assistant's active view."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .schemas import Mode

logger = logging.getLogger(__name__)


@dataclass
class ModeController:
    """Hold the single active :class:`Mode`.

    Users may navigate freely between the three modes. The only automatic
    transition is exam practice -> dialogue when a message is submitted, so the
    reply shows up in the chat view. Transitions never touch the conversation or
    the knowledge bank.
    """

    mode: Mode = Mode.DIALOGUE

    def navigate(self, target: Mode | str) -> Mode:
        target = Mode(target)
        if target is not self.mode:
            logger.info("Mode change: %s -> %s", self.mode.value, target.value)
            self.mode = target
        return self.mode

    def on_submit(self) -> bool:
        """Apply the submit-triggered transition; return whether it fired."""

        if self.mode is not Mode.EXAM_PRACTICE:
            return False
        logger.info("Mode change: %s -> %s (message submitted)", self.mode.value, Mode.DIALOGUE.value)
        self.mode = Mode.DIALOGUE
        return True


__all__ = ["ModeController"]
