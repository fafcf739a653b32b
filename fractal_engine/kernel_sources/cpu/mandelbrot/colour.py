import math

import numpy as np
from numba import njit

MODE_REGULAR = 0
MODE_RED = 1
MODE_GREEN = 2
MODE_BLUE = 3


@njit(cache=True, nogil=True)
def hsb_to_rgb(hue, saturation, brightness):
    """HSB -> (r, g, b) in 0..255. Hue wraps around [0, 1)."""
    if saturation == 0.0:
        v = int(brightness * 255.0 + 0.5)
        return v, v, v
    h = (hue - math.floor(hue)) * 6.0
    f = h - math.floor(h)
    p = brightness * (1.0 - saturation)
    q = brightness * (1.0 - saturation * f)
    t = brightness * (1.0 - saturation * (1.0 - f))
    sector = int(h)
    if sector == 0:
        r, g, b = brightness, t, p
    elif sector == 1:
        r, g, b = q, brightness, p
    elif sector == 2:
        r, g, b = p, brightness, t
    elif sector == 3:
        r, g, b = p, q, brightness
    elif sector == 4:
        r, g, b = t, p, brightness
    else:
        r, g, b = brightness, p, q
    return int(r * 255.0 + 0.5), int(g * 255.0 + 0.5), int(b * 255.0 + 0.5)


@njit(cache=True, nogil=True)
def escape_colour(k, zr, zi, max_iterations, mode):
    # interior
    if k >= max_iterations:
        return 0, 0, 0

    if mode == MODE_REGULAR:
        ratio = k / max_iterations
        return hsb_to_rgb(ratio ** (1.0 / 3.0) / 2.0 + 0.25, ratio * ratio, 0.8)

    mag2 = zr * zr + zi * zi
    nu = float(k)
    if mag2 > 1.0 and math.isfinite(mag2):
        nu = k + 1.0 - math.log2(math.log(mag2) / 2.0)
    offset = 0.5
    if mode == MODE_RED:
        offset = -1.0 / 6.0
    elif mode == MODE_GREEN:
        offset = 1.0 / 6.0
    return hsb_to_rgb(offset + nu / (3.0 * max_iterations), 1.0, 1.0)


@njit(cache=True, nogil=True)
def colour_escape_tile(iters, z_real, z_imag, max_iterations, mode):
    h, w = iters.shape
    rgb = np.empty((h, w, 3), dtype=np.uint8)
    for j in range(h):
        for i in range(w):
            r, g, b = escape_colour(iters[j, i], z_real[j, i], z_imag[j, i],
                                    max_iterations, mode)
            rgb[j, i, 0] = r
            rgb[j, i, 1] = g
            rgb[j, i, 2] = b
    return rgb


@njit(cache=True, nogil=True)
def colour_density(density):
    h, w = density.shape
    rgb = np.zeros((h, w, 3), dtype=np.uint8)
    peak = density.max()
    if peak == 0:
        return rgb
    for j in range(h):
        for i in range(w):
            t = math.tanh(density[j, i] / peak * math.pi)
            t = math.tanh(t * math.pi)
            r, g, b = hsb_to_rgb(0.69 - t / 4.0, 0.6 + t * 0.3, t)
            rgb[j, i, 0] = r
            rgb[j, i, 1] = g
            rgb[j, i, 2] = b
    return rgb
