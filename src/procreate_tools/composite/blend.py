"""
Blend mode implementations.

Blend functions take the backdrop ``Cb`` and the source ``Cs`` as float
arrays in ``[0, 1]`` and return the blended color before alpha compositing.
"""

import numpy as np

from procreate_tools.constants import BlendMode

#: Backdrop level where overlay switches from multiply to screen (128 of 255).
OVERLAY_THRESHOLD = np.float32(128.0) / np.float32(255.0)


def normal(Cb, Cs):
    return Cs


def multiply(Cb, Cs):
    return Cb * Cs


def screen(Cb, Cs):
    return Cb + Cs - (Cb * Cs)


def overlay(Cb, Cs):
    index = Cb >= OVERLAY_THRESHOLD
    B = multiply(Cb, 2 * Cs)
    B[index] = screen(Cb, 2 * Cs - 1)[index]
    return B


"""Blend function table."""
BLEND_FUNC = {
    BlendMode.NORMAL: normal,
    BlendMode.MULTIPLY: multiply,
    BlendMode.SCREEN: screen,
    BlendMode.OVERLAY: overlay,
}


def get_blend_func(blend: int):
    """Blend function for a stored blend id, normal for unknown ids."""
    return BLEND_FUNC[BlendMode.from_id(blend)]
