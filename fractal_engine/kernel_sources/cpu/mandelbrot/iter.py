import numpy as np
from numba import njit

# |z|^2 threshold, i.e. bailout radius 5
BAILOUT = 25.0


# No fastmath: a NaN/inf orbit has to fail the `<= BAILOUT` test.
@njit(cache=True, nogil=True)
def iterate(c_real, c_imag, max_iterations):
    """
    Escape-time iteration of z <- z^2 + c from z = 0.
    Returns (k, z_real, z_imag): k is the number of iterations applied before
    |z|^2 exceeded BAILOUT, or max_iterations if it never did.
    """
    zr = 0.0
    zi = 0.0
    k = 0
    while k < max_iterations:
        if not (zr * zr + zi * zi <= BAILOUT):
            break
        zr, zi = zr * zr - zi * zi + c_real, 2.0 * zr * zi + c_imag
        k += 1
    return k, zr, zi


@njit(cache=True, nogil=True)
def escape_tile(x0, y0, w, h, min_x, max_y, unit_x, unit_y, max_iterations):
    """
    Runs `iterate` for every pixel of the (x0, y0, w, h) rectangle.
    Plane coordinates come from absolute pixel indices.
    """
    iters = np.empty((h, w), dtype=np.int32)
    z_real = np.empty((h, w), dtype=np.float64)
    z_imag = np.empty((h, w), dtype=np.float64)
    for j in range(h):
        ci = max_y - unit_y * (y0 + j)
        for i in range(w):
            cr = min_x + unit_x * (x0 + i)
            k, zr, zi = iterate(cr, ci, max_iterations)
            iters[j, i] = k
            z_real[j, i] = zr
            z_imag[j, i] = zi
    return iters, z_real, z_imag
