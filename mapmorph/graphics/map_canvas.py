"""
map_canvas.py
-------------
pygame-backed 2D drawing surface with an affine transform stack.

pygame draws in screen pixels only, so every primitive here maps its
scene-space coordinates through the current matrix before calling
pygame.draw. Text is always drawn upright: only its anchor point is
transformed, its glyphs are scaled by the matrix scale factor.

Responsibilities
----------------
- save / restore of transform and global alpha
- translate / rotate / scale (uniform) composed like a canvas context
- circle, line, polyline, polygon, box, text and image primitives
- capture() of the current frame for degraded cross-fades
"""

import math
from typing import Dict, List, Optional, Sequence, Tuple

import pygame

from mapmorph.core.debug.debug_logger import DebugLogger


Matrix = Tuple[float, float, float, float, float, float]
IDENTITY: Matrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


class MapCanvas:
    """Drawing context over a pygame.Surface."""

    # ===========================================================
    # Initialization
    # ===========================================================

    def __init__(self, surface: pygame.Surface):
        self.surface = surface
        self._matrix: Matrix = IDENTITY
        self._alpha: float = 1.0
        self._stack: List[Tuple[Matrix, float]] = []
        self._fonts: Dict[int, pygame.font.Font] = {}

        if not pygame.font.get_init():
            pygame.font.init()

    @property
    def size(self) -> Tuple[int, int]:
        return self.surface.get_size()

    # ===========================================================
    # State Stack
    # ===========================================================

    def save(self) -> None:
        self._stack.append((self._matrix, self._alpha))

    def restore(self) -> None:
        if not self._stack:
            DebugLogger.warn("restore() without matching save()", category="drawing")
            return
        self._matrix, self._alpha = self._stack.pop()

    def reset_transform(self) -> None:
        self._matrix = IDENTITY

    @property
    def matrix(self) -> Matrix:
        return self._matrix

    @property
    def global_alpha(self) -> float:
        return self._alpha

    @global_alpha.setter
    def global_alpha(self, value: float) -> None:
        self._alpha = max(0.0, min(1.0, float(value)))

    # ===========================================================
    # Transform
    # ===========================================================

    def translate(self, tx: float, ty: float) -> None:
        a, b, c, d, e, f = self._matrix
        self._matrix = (a, b, c, d, e + a * tx + c * ty, f + b * tx + d * ty)

    def rotate(self, angle: float) -> None:
        if angle == 0.0:
            return
        a, b, c, d, e, f = self._matrix
        cos, sin = math.cos(angle), math.sin(angle)
        self._matrix = (a * cos + c * sin, b * cos + d * sin,
                        -a * sin + c * cos, -b * sin + d * cos, e, f)

    def scale(self, s: float) -> None:
        a, b, c, d, e, f = self._matrix
        self._matrix = (a * s, b * s, c * s, d * s, e, f)

    def transform_point(self, x: float, y: float) -> Tuple[float, float]:
        a, b, c, d, e, f = self._matrix
        return (a * x + c * y + e, b * x + d * y + f)

    @property
    def scale_factor(self) -> float:
        a, b, c, d, _, _ = self._matrix
        return math.sqrt(abs(a * d - b * c))

    # ===========================================================
    # Primitives
    # ===========================================================

    def clear(self, color) -> None:
        self.surface.fill(color)

    def draw_circle(self, center, radius: float, color, width: int = 0) -> None:
        cx, cy = self.transform_point(*center)
        r = max(1, int(round(radius * self.scale_factor)))
        if self._alpha <= 0.0:
            return
        if self._alpha >= 1.0:
            pygame.draw.circle(self.surface, color, (round(cx), round(cy)), r, width)
            return

        layer = pygame.Surface((r * 2 + 2, r * 2 + 2), pygame.SRCALPHA)
        pygame.draw.circle(layer, self._rgba(color), (r + 1, r + 1), r, width)
        self.surface.blit(layer, (round(cx) - r - 1, round(cy) - r - 1))

    def draw_line(self, start, end, color, width: int = 1) -> None:
        self.draw_polyline([start, end], color, width)

    def draw_polyline(self, points: Sequence, color, width: int = 1, closed: bool = False) -> None:
        if len(points) < 2 or self._alpha <= 0.0:
            return
        screen = [self.transform_point(*p) for p in points]
        self._blit_shape(screen, lambda surf, col, pts: pygame.draw.lines(surf, col, closed, pts, width), color)

    def draw_dashed(self, points: Sequence, color, dash: float = 4.0, gap: float = 4.0, width: int = 1) -> None:
        """Dashed polyline; dash lengths are in scene units."""
        for i in range(1, len(points)):
            (x0, y0), (x1, y1) = points[i - 1], points[i]
            length = math.hypot(x1 - x0, y1 - y0)
            if length <= 0:
                continue
            ux, uy = (x1 - x0) / length, (y1 - y0) / length
            pos = 0.0
            while pos < length:
                end = min(pos + dash, length)
                self.draw_line((x0 + ux * pos, y0 + uy * pos), (x0 + ux * end, y0 + uy * end), color, width)
                pos = end + gap

    def draw_polygon(self, points: Sequence, color, width: int = 0) -> None:
        if len(points) < 3 or self._alpha <= 0.0:
            return
        screen = [self.transform_point(*p) for p in points]
        self._blit_shape(screen, lambda surf, col, pts: pygame.draw.polygon(surf, col, pts, width), color)

    def draw_box(self, x: float, y: float, w: float, h: float, color, width: int = 1) -> None:
        """Scene-space rectangle; drawn as a polygon so it rotates with the scene."""
        self.draw_polygon([(x, y), (x + w, y), (x + w, y + h), (x, y + h)], color, width)

    def draw_text(self, text: str, position, size_px: float, color,
                  align: str = "center", alpha: float = 1.0, screen_space: bool = False) -> Optional[pygame.Rect]:
        """
        Upright text anchored at position (bottom-center by default).

        When screen_space is True the position and size bypass the matrix.
        """
        alpha = alpha * self._alpha
        if not text or alpha <= 0.0:
            return None

        if screen_space:
            x, y = position
            px = size_px
        else:
            x, y = self.transform_point(*position)
            px = size_px * self.scale_factor

        font = self._font(max(4, int(round(px))))
        image = font.render(text, True, color)
        if alpha < 1.0:
            image.set_alpha(int(255 * alpha))

        rect = image.get_rect()
        if align == "left":
            rect.bottomleft = (round(x), round(y))
        elif align == "right":
            rect.bottomright = (round(x), round(y))
        else:
            rect.midbottom = (round(x), round(y))
        self.surface.blit(image, rect)
        return rect

    def draw_image(self, image: pygame.Surface, center, scale: float = 1.0, alpha: float = 1.0) -> None:
        """Blit an image scaled about its center (screen space)."""
        alpha = alpha * self._alpha
        if image is None or alpha <= 0.0 or scale <= 0.0:
            return
        scaled = image if scale == 1.0 else pygame.transform.rotozoom(image, 0, scale)
        if alpha < 1.0:
            scaled.set_alpha(int(255 * alpha))
        rect = scaled.get_rect(center=(round(center[0]), round(center[1])))
        self.surface.blit(scaled, rect)

    def capture(self) -> pygame.Surface:
        """Copy of the current frame."""
        return self.surface.copy()

    # ===========================================================
    # Helpers
    # ===========================================================

    def _font(self, size: int) -> pygame.font.Font:
        if size not in self._fonts:
            self._fonts[size] = pygame.font.Font(None, size)
        return self._fonts[size]

    def _rgba(self, color):
        return (color[0], color[1], color[2], int(255 * self._alpha))

    def _blit_shape(self, screen_points, draw_fn, color) -> None:
        if self._alpha >= 1.0:
            draw_fn(self.surface, color, screen_points)
            return

        min_x = math.floor(min(p[0] for p in screen_points)) - 2
        min_y = math.floor(min(p[1] for p in screen_points)) - 2
        max_x = math.ceil(max(p[0] for p in screen_points)) + 2
        max_y = math.ceil(max(p[1] for p in screen_points)) + 2
        layer = pygame.Surface((max(1, max_x - min_x), max(1, max_y - min_y)), pygame.SRCALPHA)
        local = [(p[0] - min_x, p[1] - min_y) for p in screen_points]
        draw_fn(layer, self._rgba(color), local)
        self.surface.blit(layer, (min_x, min_y))
