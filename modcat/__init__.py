"""
Configure PWM modulators and PSoC peripherals and generate C code for them.
"""
__version__ = '1.0.0'
