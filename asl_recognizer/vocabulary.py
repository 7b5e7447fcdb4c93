"""
The fixed ASL alphabet vocabulary: one template per supported letter.

To support a new letter, append an entry to LETTER_POSES (or pass an
extended vocabulary to the matcher); nothing else needs to change.
"""
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

from .types import Finger, FingerCurl, FingerDirection, GestureTemplate


NO = FingerCurl.NO_CURL
HALF = FingerCurl.HALF_CURL
FULL = FingerCurl.FULL_CURL

UP = FingerDirection.VERTICAL_UP
DOWN = FingerDirection.VERTICAL_DOWN
RIGHT = FingerDirection.HORIZONTAL_RIGHT
UP_RIGHT = FingerDirection.DIAGONAL_UP_RIGHT

FingerSpec = Tuple[FingerCurl, FingerDirection]

# Per letter: thumb, index, middle, ring, pinky
LETTER_POSES: List[Tuple[str, Tuple[FingerSpec, FingerSpec, FingerSpec, FingerSpec, FingerSpec]]] = [
    ("A", ((NO, UP_RIGHT), (FULL, DOWN), (FULL, DOWN), (FULL, DOWN), (FULL, DOWN))),
    ("B", ((FULL, UP), (NO, UP), (NO, UP), (NO, UP), (NO, UP))),
    ("C", ((HALF, UP_RIGHT), (HALF, UP), (HALF, UP), (HALF, UP), (HALF, UP))),
    ("D", ((HALF, UP_RIGHT), (NO, UP), (FULL, DOWN), (FULL, DOWN), (FULL, DOWN))),
    ("E", ((FULL, DOWN), (FULL, DOWN), (FULL, DOWN), (FULL, DOWN), (FULL, DOWN))),
    ("F", ((HALF, UP_RIGHT), (FULL, DOWN), (NO, UP), (NO, UP), (NO, UP))),
    ("G", ((NO, RIGHT), (NO, RIGHT), (FULL, DOWN), (FULL, DOWN), (FULL, DOWN))),
    ("H", ((FULL, DOWN), (NO, RIGHT), (NO, RIGHT), (FULL, DOWN), (FULL, DOWN))),
    ("I", ((FULL, DOWN), (FULL, DOWN), (FULL, DOWN), (FULL, DOWN), (NO, UP))),
    ("L", ((NO, UP), (NO, UP), (FULL, DOWN), (FULL, DOWN), (FULL, DOWN))),
    ("O", ((HALF, UP_RIGHT), (FULL, DOWN), (FULL, DOWN), (FULL, DOWN), (FULL, DOWN))),
    ("U", ((FULL, DOWN), (NO, UP), (NO, UP), (FULL, DOWN), (FULL, DOWN))),
    ("V", ((FULL, DOWN), (NO, UP), (NO, UP), (FULL, DOWN), (FULL, DOWN))),
    ("W", ((FULL, DOWN), (NO, UP), (NO, UP), (NO, UP), (FULL, DOWN))),
    ("Y", ((NO, UP_RIGHT), (FULL, DOWN), (FULL, DOWN), (FULL, DOWN), (NO, UP))),
]


def make_template(name: str, finger_specs: Sequence[FingerSpec]) -> GestureTemplate:
    """Build a template from five (curl, direction) pairs in finger order."""
    if len(finger_specs) != len(Finger):
        raise ValueError(f"Template {name!r} needs {len(Finger)} finger specs, got {len(finger_specs)}")
    curls: Dict[Finger, FingerCurl] = {}
    directions: Dict[Finger, FingerDirection] = {}
    for finger, (curl, direction) in zip(Finger, finger_specs):
        curls[finger] = curl
        directions[finger] = direction
    return GestureTemplate(name=name, curls=curls, directions=directions)


class GestureVocabulary:
    """Immutable, ordered collection of gesture templates."""

    def __init__(self, templates: Iterable[GestureTemplate]):
        self._templates: Tuple[GestureTemplate, ...] = tuple(templates)
        seen = set()
        for template in self._templates:
            if template.name in seen:
                raise ValueError(f"Duplicate gesture template: {template.name!r}")
            seen.add(template.name)

    def __iter__(self) -> Iterator[GestureTemplate]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, name: object) -> bool:
        return any(template.name == name for template in self._templates)

    def templates(self) -> Tuple[GestureTemplate, ...]:
        return self._templates

    def names(self) -> List[str]:
        return [template.name for template in self._templates]

    def get(self, name: str) -> GestureTemplate:
        for template in self._templates:
            if template.name == name:
                return template
        raise KeyError(name)

    def extended(self, *templates: GestureTemplate) -> "GestureVocabulary":
        """Return a new vocabulary with `templates` registered after the existing ones."""
        return GestureVocabulary(self._templates + tuple(templates))


ASL_ALPHABET = GestureVocabulary(make_template(name, specs) for name, specs in LETTER_POSES)


def templates() -> Tuple[GestureTemplate, ...]:
    """The built-in templates, in registration order."""
    return ASL_ALPHABET.templates()
