"""Per-frame decision port: label the frame's regions, move on, or stop the sequence."""
import enum
from dataclasses import dataclass
from typing import Optional

import cv2

from feature_log import validate_label

KEY_ESC = 27
LABEL_KEYS = (ord("n"), ord("N"))


class Action(enum.Enum):
    LABEL = "label"
    SKIP = "skip"
    QUIT = "quit"


@dataclass(frozen=True)
class Decision:
    action: Action
    label: Optional[str] = None

    @classmethod
    def label_as(cls, label):
        return cls(Action.LABEL, label)


SKIP = Decision(Action.SKIP)
QUIT = Decision(Action.QUIT)


class KeyboardDecider:
    """Blocks on an OpenCV window key press; 'n' prompts for a label, ESC quits, anything else skips."""

    def __init__(self, prompt=input):
        self.prompt = prompt

    def __call__(self, result):
        print("Press 'n' to label the current object, or ESC to exit.")
        key = cv2.waitKey(0) & 0xFF
        if key == KEY_ESC:
            return QUIT
        if key not in LABEL_KEYS:
            return SKIP
        try:
            label = self.prompt("Enter label for the current object: ").strip()
        except EOFError:
            return SKIP
        if not label:
            return SKIP
        try:
            validate_label(label)
        except ValueError as e:
            print(f"{e}; frame not labeled.")
            return SKIP
        return Decision.label_as(label)


class ScriptedDecider:
    """Replays a fixed list of decisions, then quits."""

    def __init__(self, decisions):
        self._decisions = iter(decisions)

    def __call__(self, result):
        return next(self._decisions, QUIT)


class ConstantLabelDecider:
    """Labels every frame with the same label (headless batch mode)."""

    def __init__(self, label):
        self.decision = Decision.label_as(validate_label(label))

    def __call__(self, result):
        return self.decision
