#!/usr/bin/env python3
"""
Scene file loading and saving.

Scenes are whitespace-separated text, one record per body:

    <body count>
    <type id> <name> <mass> <px py pz> <vx vy vz> <qx qy qz qw> <wx wy wz> <rings 0|1>
    <r1> <r2> <albedo r g b> <emission> <metallic> <roughness> <texture id>   (one line per render record)
    ---

Example (saves/binary_star.scene):

    2
    0 Alpha 800.0 -20.0 0.0 0.0 0.0 0.0 -2.2360679775 0.0 0.0 0.0 1.0 0.0 0.15 0.0 0
    8.0 0.0 1.0 0.8 0.5 1000.0 0.0 1.0 -1
    ---
    ...

Spaces in names are written as underscores and read back as spaces. The number
of render-record lines per body is implied by its type and ring flag. Kinds of
render records are not stored: record 0 is always the sphere, record 1 the disk.

Users can drop their own .scene files into saves/ and they'll be picked up by
list_scenes().
"""
import logging
import os
from typing import Iterator, List, Tuple

from .data_models import Body, BodyType
from .errors import SceneFileError, SceneFormatError
from .evolution import create_body
from .utils import escape_name, unescape_name

logger = logging.getLogger(__name__)

SAVES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "saves")
SCENE_EXTENSION = ".scene"
SEPARATOR = "---"

_BODY_FIELDS = 17
_RECORD_FIELDS = 9


def _fmt(*values) -> str:
    return " ".join(repr(float(v)) if isinstance(v, float) else str(v) for v in values)


def dumps_scene(bodies: List[Body]) -> str:
    """Serialize bodies to scene text. Trails are not stored."""
    lines = [str(len(bodies))]
    for b in bodies:
        lines.append(_fmt(
            int(b.type), escape_name(b.name), float(b.mass),
            *map(float, b.position), *map(float, b.velocity),
            *map(float, b.orientation), *map(float, b.angular_velocity),
            1 if b.has_rings else 0,
        ))
        for rec in b.geometry:
            m = rec.material
            lines.append(_fmt(
                float(rec.r1), float(rec.r2), *map(float, m.albedo),
                float(m.emission), float(m.metallic), float(m.roughness), int(m.texture_id),
            ))
        lines.append(SEPARATOR)
    return "\n".join(lines) + "\n"


def _numbered_lines(text: str) -> Iterator[Tuple[int, List[str]]]:
    for number, raw in enumerate(text.splitlines(), start=1):
        tokens = raw.split()
        if tokens:
            yield number, tokens


def _next_line(lines: Iterator[Tuple[int, List[str]]], expected: str) -> Tuple[int, List[str]]:
    try:
        return next(lines)
    except StopIteration:
        raise SceneFormatError(f"unexpected end of file, expected {expected}") from None


def _floats(tokens: List[str], line: int) -> List[float]:
    try:
        return [float(t) for t in tokens]
    except ValueError as exc:
        raise SceneFormatError(f"invalid number ({exc})", line) from None


def _parse_body(lines: Iterator[Tuple[int, List[str]]]) -> Body:
    line, tokens = _next_line(lines, "a body record")
    if len(tokens) != _BODY_FIELDS:
        raise SceneFormatError(f"body record needs {_BODY_FIELDS} fields, got {len(tokens)}", line)
    try:
        body_type = BodyType(int(tokens[0]))
        rings = int(tokens[16]) == 1
    except ValueError as exc:
        raise SceneFormatError(f"invalid body type or ring flag ({exc})", line) from None
    values = _floats(tokens[2:16], line)
    mass = values[0]

    body = create_body(body_type, position=tuple(values[1:4]), has_rings=rings)
    body.name = unescape_name(tokens[1])
    if mass > 0:
        body.mass = mass
    else:
        logger.warning("Line %d: non-positive mass %r for '%s'; keeping %g.",
                       line, mass, body.name, body.mass)
    body.velocity = tuple(values[4:7])
    body.orientation = tuple(values[7:11])
    body.angular_velocity = tuple(values[11:14])

    for rec in body.geometry:
        rec_line, rec_tokens = _next_line(lines, "a render record")
        if len(rec_tokens) != _RECORD_FIELDS:
            raise SceneFormatError(
                f"render record needs {_RECORD_FIELDS} fields, got {len(rec_tokens)}", rec_line)
        r = _floats(rec_tokens[:8], rec_line)
        try:
            texture_id = int(rec_tokens[8])
        except ValueError:
            raise SceneFormatError(f"invalid texture id {rec_tokens[8]!r}", rec_line) from None
        rec.r1, rec.r2 = r[0], r[1]
        rec.material.albedo = (r[2], r[3], r[4])
        rec.material.emission = r[5]
        rec.material.metallic = r[6]
        rec.material.roughness = r[7]
        rec.material.texture_id = texture_id

    sep_line, sep_tokens = _next_line(lines, SEPARATOR)
    if sep_tokens != [SEPARATOR]:
        raise SceneFormatError(f"expected {SEPARATOR!r}", sep_line)

    body.sync_geometry()
    return body


def loads_scene(text: str) -> List[Body]:
    """Parse scene text into new bodies (ids unassigned, trails empty)."""
    lines = _numbered_lines(text)
    line, tokens = _next_line(lines, "the body count")
    try:
        count = int(tokens[0])
    except ValueError:
        raise SceneFormatError(f"invalid body count {tokens[0]!r}", line) from None
    if count < 0 or len(tokens) != 1:
        raise SceneFormatError("invalid body count line", line)
    return [_parse_body(lines) for _ in range(count)]


def scene_path(file_name: str, directory: str = SAVES_DIR) -> str:
    """Resolve a bare file name inside the saves directory."""
    if os.path.dirname(file_name):
        return file_name
    return os.path.join(directory, file_name)


def save_scene(path: str, bodies: List[Body]) -> None:
    text = dumps_scene(bodies)
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as exc:
        raise SceneFileError(f"Could not open file for writing: {path} ({exc})") from exc
    logger.info("Scene saved to %s", path)


def load_scene(path: str) -> List[Body]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as exc:
        raise SceneFileError(f"Could not open file for reading: {path} ({exc})") from exc
    bodies = loads_scene(text)
    logger.info("Scene loaded from %s. Total objects: %d", path, len(bodies))
    return bodies


def list_scenes(directory: str = SAVES_DIR) -> List[str]:
    """List .scene files in directory, creating the directory when missing."""
    if not os.path.isdir(directory):
        os.makedirs(directory, exist_ok=True)
        logger.info("Created %s directory.", directory)
        return []
    return sorted(fn for fn in os.listdir(directory)
                  if fn.lower().endswith(SCENE_EXTENSION)
                  and os.path.isfile(os.path.join(directory, fn)))
