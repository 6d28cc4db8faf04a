from __future__ import annotations

import math

ESCAPE_RADIUS = 2.0
_ESCAPE_RADIUS_SQ = ESCAPE_RADIUS * ESCAPE_RADIUS

def escape_ratio(c: complex, max_iter: int) -> float:
    """Fraction of ``max_iter`` completed before z -> z*z + c leaves radius 2.

    1.0 means the point never escaped. Overflow or NaN counts as an
    immediate escape (0.0).
    """
    if max_iter < 1:
        raise ValueError("max_iter must be >= 1")

    cr = c.real
    ci = c.imag
    if not (math.isfinite(cr) and math.isfinite(ci)):
        return 0.0

    x = 0.0
    y = 0.0
    n = 0
    while n < max_iter:
        x, y = x * x - y * y + cr, 2.0 * x * y + ci
        r2 = x * x + y * y
        if not math.isfinite(r2):
            return 0.0
        if r2 > _ESCAPE_RADIUS_SQ:
            break
        n += 1
    return n / max_iter
